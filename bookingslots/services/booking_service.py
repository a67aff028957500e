"""
Application services for the public booking flow.

The service coordinates fetching the availability profile via a client
adapter and delegates the actual slot computation to the domain-level
``AvailabilityCalculator``. This keeps the CLI thin and improves testability
by allowing the API dependency to be mocked via a simple protocol.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

import pendulum
from pendulum import Date, DateTime

from ..domain.exceptions import (
    AvailabilityInactiveError,
    BookingValidationError,
    SlotAlreadyBookedError,
)
from ..domain.models import AvailableSlot, DayAvailability
from ..domain.slot_calculator import AvailabilityCalculator, respects_min_notice
from ..domain.time_utils import at_time
from ..schemas import AvailabilityProfile, BookingResponse
from .booking_request import ClientDetails, build_booking_request

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "Este horario ya ha sido reservado"
NOTICE_MESSAGE = "Este horario no respeta la antelación mínima de reserva ({hours:g} horas)"
CAP_MESSAGE = "Se ha alcanzado el número máximo de reservas para esta fecha"
PAST_MESSAGE = "Este horario ya ha pasado"


class BookingClientProtocol(Protocol):
    """Protocol describing the API client behaviour needed by the service."""

    async def fetch_availability(self, slug: str) -> AvailabilityProfile:
        """Return the availability profile published under ``slug``."""

    async def create_booking(self, payload: Dict[str, Any]) -> BookingResponse:
        """Submit a booking payload and return the server confirmation."""


@dataclass(frozen=True)
class BookingConfirmation:
    """Result of a successful submission."""
    confirmation_code: str
    start: DateTime
    status: str


class BookingService:
    """
    Orchestrates profile retrieval, slot calculation and booking submission.

    Every public method takes an optional ``now``; when omitted the clock is
    read exactly once per call, in the provider's timezone.
    """

    def __init__(self, client: BookingClientProtocol) -> None:
        self._client = client

    async def load_profile(self, slug: str) -> AvailabilityProfile:
        """
        Fetch the profile and make sure it accepts bookings.

        Raises:
            AvailabilityInactiveError: If the agenda is switched off
        """
        profile = await self._client.fetch_availability(slug)
        if not profile.is_active:
            raise AvailabilityInactiveError("Esta agenda no está disponible actualmente")
        return profile

    async def initial_selection(self, slug: str, now: Optional[DateTime] = None) -> DayAvailability:
        """Pick the first date with a free slot (or the fallback date)."""
        profile = await self.load_profile(slug)
        calculator = AvailabilityCalculator(profile.to_settings())
        return calculator.find_first_available_date(self._resolve_now(profile, now))

    async def slots_for_date(
        self,
        slug: str,
        date: Date,
        now: Optional[DateTime] = None,
    ) -> List[AvailableSlot]:
        """Slot list for an explicitly chosen date."""
        profile = await self.load_profile(slug)
        calculator = AvailabilityCalculator(profile.to_settings())
        return calculator.compute_available_times_for_date(date, self._resolve_now(profile, now))

    async def selectable_dates(self, slug: str, now: Optional[DateTime] = None) -> List[Date]:
        """Dates a calendar widget should leave enabled."""
        profile = await self.load_profile(slug)
        calculator = AvailabilityCalculator(profile.to_settings())
        return calculator.selectable_dates(self._resolve_now(profile, now))

    async def submit_booking(
        self,
        *,
        slug: str,
        date: Date,
        time: str,
        client: ClientDetails,
        now: Optional[DateTime] = None,
        terms_accepted: bool = True,
    ) -> BookingConfirmation:
        """
        Validate and submit a booking for ``date`` at ``time``.

        Raises:
            BookingValidationError: If the form data is invalid, or the chosen
                time is not offered, too close to ``now`` or over a booking cap
            SlotAlreadyBookedError: If the slot overlaps a booking; carries the
                recomputed slot list for ``date``
        """
        profile = await self.load_profile(slug)
        current = self._resolve_now(profile, now)
        settings = profile.to_settings()
        calculator = AvailabilityCalculator(settings)
        slots = calculator.compute_available_times_for_date(date, current)

        chosen = next((slot for slot in slots if slot.time == time), None)
        if chosen is None:
            raise BookingValidationError(
                "Hora de inicio inválida. Por favor, selecciona otra fecha y hora.",
                {"time": f"{time} is not offered on {date.to_date_string()}"},
            )
        if not chosen.is_available:
            slot_start = at_time(date, time, settings.timezone)
            if slot_start < current:
                raise BookingValidationError(PAST_MESSAGE, {"time": PAST_MESSAGE})
            if not respects_min_notice(slot_start, current, settings.min_notice_hours):
                message = NOTICE_MESSAGE.format(hours=settings.min_notice_hours)
                raise BookingValidationError(message, {"time": message})
            if calculator.cap_reached(date):
                raise BookingValidationError(CAP_MESSAGE, {"date": CAP_MESSAGE})
            raise SlotAlreadyBookedError(SLOT_TAKEN_MESSAGE, refreshed_slots=slots)

        request = build_booking_request(profile, date, time, client, terms_accepted=terms_accepted)

        try:
            response = await self._client.create_booking(request.to_payload())
        except SlotAlreadyBookedError as exc:
            logger.info("Slot %s on %s was taken concurrently, recomputing", time, date)
            refreshed = await self.load_profile(slug)
            refreshed_slots = AvailabilityCalculator(
                refreshed.to_settings()
            ).compute_available_times_for_date(date, current)
            raise SlotAlreadyBookedError(str(exc) or SLOT_TAKEN_MESSAGE, refreshed_slots) from exc

        logger.info("Booked %s for %s", request.start.to_iso8601_string(), client.email)
        return BookingConfirmation(
            confirmation_code=response.confirmation_code,
            start=request.start,
            status=response.status,
        )

    @staticmethod
    def _resolve_now(profile: AvailabilityProfile, now: Optional[DateTime]) -> DateTime:
        return now if now is not None else pendulum.now(profile.timezone)
