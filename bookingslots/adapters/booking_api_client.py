"""
REST client for the public booking API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

import requests

from ..domain.exceptions import (
    AvailabilityNotFoundError,
    BookingAPIError,
    BookingValidationError,
    SlotAlreadyBookedError,
)
from ..schemas import AvailabilityProfile, BookingResponse

logger = logging.getLogger(__name__)

SLOT_TAKEN_MARKER = "ya ha sido reservado"

# Server payload path -> form field key
SERVER_FIELD_MAP = {
    "startTime": "date",
    "clientName": "name",
    "clientEmail": "email",
    "clientPhone": "phone",
    "clientCompany": "company",
    "clientAddress": "address",
    "notes": "notes",
}


def map_server_errors(errors: Iterable[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Map server validation errors (``[{"path": ..., "msg": ...}]``) to form keys.

    Unknown paths are dropped.
    """
    mapped: Dict[str, str] = {}
    for error in errors:
        path = str(error.get("path", ""))
        message = str(error.get("msg", ""))
        if path.startswith("customFields."):
            mapped[f"custom_{path.split('.', 1)[1]}"] = message
        elif path in SERVER_FIELD_MAP:
            mapped[SERVER_FIELD_MAP[path]] = message
    return mapped


class BookingApiClient:
    """
    Client for the public booking endpoints.

    The HTTP calls are blocking; the async methods run them in a worker
    thread so the client satisfies ``BookingClientProtocol``.
    """

    AVAILABILITY_PATH = "/api/booking/public/availability/{slug}"
    BOOKINGS_PATH = "/api/booking/public/bookings"

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Scheme and host of the backend, without trailing slash
            timeout: Per-request timeout in seconds
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("Content-Type", "application/json")

    async def fetch_availability(self, slug: str) -> AvailabilityProfile:
        return await asyncio.to_thread(self.get_availability, slug)

    async def create_booking(self, payload: Dict[str, Any]) -> BookingResponse:
        return await asyncio.to_thread(self.post_booking, payload)

    def get_availability(self, slug: str) -> AvailabilityProfile:
        """
        Fetch the availability profile published under ``slug``.

        Raises:
            AvailabilityNotFoundError: If the slug is unknown
            BookingAPIError: If the request fails or the payload is invalid
        """
        url = f"{self.base_url}{self.AVAILABILITY_PATH.format(slug=slug)}"
        logger.debug("GET %s", url)

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise BookingAPIError(f"No se pudo cargar la disponibilidad: {e}") from e

        if response.status_code == 404:
            raise AvailabilityNotFoundError(
                "No se pudo encontrar la configuración de disponibilidad"
            )
        if response.status_code != 200:
            raise BookingAPIError(
                f"No se pudo cargar la disponibilidad (HTTP {response.status_code})"
            )

        try:
            return AvailabilityProfile.model_validate(response.json())
        except ValueError as e:
            raise BookingAPIError(f"Invalid availability payload for '{slug}': {e}") from e

    def post_booking(self, payload: Dict[str, Any]) -> BookingResponse:
        """
        Submit a booking.

        Raises:
            SlotAlreadyBookedError: If the server reports the slot as taken
            BookingValidationError: If the server rejects form fields
            BookingAPIError: For transport errors and unexpected responses
        """
        url = f"{self.base_url}{self.BOOKINGS_PATH}"
        logger.debug("POST %s", url)

        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise BookingAPIError(f"No se pudo completar la reserva: {e}") from e

        data = self._json_or_empty(response)

        if response.status_code == 201:
            try:
                return BookingResponse.model_validate(data)
            except ValueError as e:
                raise BookingAPIError(f"Invalid booking response: {e}") from e

        message = str(data.get("message", "")) if isinstance(data, dict) else ""
        if response.status_code == 409 or SLOT_TAKEN_MARKER in message.lower():
            raise SlotAlreadyBookedError(message or "Este horario ya ha sido reservado")

        errors = data.get("errors") if isinstance(data, dict) else None
        if isinstance(errors, list):
            field_errors = map_server_errors(e for e in errors if isinstance(e, dict))
            if "date" in field_errors:
                summary = "Hora de inicio inválida. Por favor, selecciona otra fecha y hora."
            elif field_errors:
                summary = "Por favor, corrige los errores en el formulario."
            else:
                summary = "No se pudo completar la reserva. Verifica tus datos e intenta de nuevo."
            raise BookingValidationError(summary, field_errors)

        raise BookingAPIError(
            f"No se pudo completar la reserva (HTTP {response.status_code})"
        )

    @staticmethod
    def _json_or_empty(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {}
