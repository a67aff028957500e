"""
Building and validating the booking submission payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Union

from pendulum import Date, DateTime
from pydantic import EmailStr, TypeAdapter, ValidationError

from ..domain.exceptions import BookingValidationError
from ..domain.time_utils import at_time
from ..schemas import AvailabilityProfile

_EMAIL_ADAPTER = TypeAdapter(EmailStr)

CustomValue = Union[str, bool]

REQUIRED_FIELD_MESSAGES = {
    "name": "El nombre es obligatorio",
    "email": "El correo electrónico es obligatorio",
    "phone": "El teléfono es obligatorio",
    "company": "La empresa es obligatoria",
    "address": "La dirección es obligatoria",
    "notes": "Las notas son obligatorias",
}


@dataclass
class ClientDetails:
    """Data entered by the person booking the appointment."""
    name: str
    email: str
    phone: str = ""
    company: str = ""
    address: str = ""
    notes: str = ""
    custom_fields: Dict[str, CustomValue] = field(default_factory=dict)


@dataclass(frozen=True)
class BookingRequest:
    """A validated booking ready to be submitted."""
    availability_id: str
    start: DateTime
    duration: int
    client: ClientDetails

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the ``POST /api/booking/public/bookings`` body."""
        return {
            "availabilityId": self.availability_id,
            "startTime": self.start.in_timezone("UTC").to_iso8601_string(),
            "duration": self.duration,
            "clientName": self.client.name,
            "clientEmail": self.client.email,
            "clientPhone": self.client.phone,
            "clientCompany": self.client.company,
            "clientAddress": self.client.address,
            "notes": self.client.notes,
            "customFields": dict(self.client.custom_fields),
        }


def _is_valid_email(value: str) -> bool:
    try:
        _EMAIL_ADAPTER.validate_python(value)
    except ValidationError:
        return False
    return True


def validate_client_details(
    profile: AvailabilityProfile,
    client: ClientDetails,
    terms_accepted: bool = True,
) -> Dict[str, str]:
    """
    Collect form errors keyed by field name (``custom_<name>`` for custom
    fields). An empty dict means the data is valid.
    """
    errors: Dict[str, str] = {}
    required = profile.required_fields

    for field_name, message in REQUIRED_FIELD_MESSAGES.items():
        if getattr(required, field_name) and not getattr(client, field_name).strip():
            errors[field_name] = message

    if "email" not in errors and client.email and not _is_valid_email(client.email.strip()):
        errors["email"] = "Formato de correo electrónico inválido"

    for custom in profile.custom_fields:
        if not custom.required:
            continue
        value = client.custom_fields.get(custom.name)
        if custom.type == "checkbox":
            missing = value is not True
        else:
            missing = value is None or value == "" or value is False
        if missing:
            errors[f"custom_{custom.name}"] = f"{custom.name} es obligatorio"

    if not terms_accepted:
        errors["terms"] = "Debes aceptar los términos para continuar"

    return errors


def build_booking_request(
    profile: AvailabilityProfile,
    date: Date,
    time: str,
    client: ClientDetails,
    terms_accepted: bool = True,
) -> BookingRequest:
    """
    Validate the client data and combine it with the chosen slot.

    Raises:
        BookingValidationError: If any form field is missing or invalid
    """
    errors = validate_client_details(profile, client, terms_accepted=terms_accepted)
    if errors:
        raise BookingValidationError("Por favor, corrige los errores en el formulario.", errors)

    try:
        start = at_time(date, time, profile.timezone)
    except ValueError as exc:
        raise BookingValidationError(str(exc), {"time": str(exc)}) from exc

    return BookingRequest(
        availability_id=profile.id,
        start=start,
        duration=profile.duration,
        client=client,
    )

