"""
Tests for the BookingService orchestration layer.
"""

import asyncio
import copy
from typing import Any, Dict, List

import pendulum
import pytest

from bookingslots.domain.exceptions import (
    AvailabilityInactiveError,
    BookingValidationError,
    SlotAlreadyBookedError,
)
from bookingslots.schemas import AvailabilityProfile, BookingResponse
from bookingslots.services.booking_request import ClientDetails
from bookingslots.services.booking_service import BookingService

NOW = pendulum.datetime(2024, 1, 1, 12, tz="Europe/Madrid")
TUESDAY = pendulum.date(2024, 1, 2)


class StubBookingClient:
    """Minimal stub matching BookingClientProtocol."""

    def __init__(self, payloads: List[Dict[str, Any]], conflict: bool = False):
        self._payloads = payloads
        self._conflict = conflict
        self.fetches: List[str] = []
        self.submitted: List[Dict[str, Any]] = []

    async def fetch_availability(self, slug):
        index = min(len(self.fetches), len(self._payloads) - 1)
        self.fetches.append(slug)
        return AvailabilityProfile.model_validate(self._payloads[index])

    async def create_booking(self, payload):
        self.submitted.append(payload)
        if self._conflict:
            raise SlotAlreadyBookedError("Este horario ya ha sido reservado")
        return BookingResponse(confirmation_code="ABC123", status="confirmed")


def _client() -> ClientDetails:
    return ClientDetails(
        name="Ana Ruiz",
        email="ana@example.com",
        phone="600000000",
        custom_fields={"Asunto": "Despido", "Privacidad": True},
    )


def test_load_profile_rejects_inactive_agenda(availability_payload):
    availability_payload["isActive"] = False
    service = BookingService(StubBookingClient([availability_payload]))

    with pytest.raises(AvailabilityInactiveError):
        asyncio.run(service.load_profile("consulta-inicial"))


def test_initial_selection_picks_first_available_date(availability_payload):
    service = BookingService(StubBookingClient([availability_payload]))

    selection = asyncio.run(service.initial_selection("consulta-inicial", now=NOW))

    assert selection.date == TUESDAY
    assert selection.available_times() == ["09:30"]
    assert not selection.is_fallback


def test_slots_for_date_lists_unavailable_slots(availability_payload):
    client = StubBookingClient([availability_payload])
    service = BookingService(client)

    slots = asyncio.run(service.slots_for_date("consulta-inicial", TUESDAY, now=NOW))

    assert [(slot.time, slot.is_available) for slot in slots] == [("09:00", False), ("09:30", True)]
    assert client.fetches == ["consulta-inicial"]


def test_selectable_dates_skip_excluded_tuesday(availability_payload):
    service = BookingService(StubBookingClient([availability_payload]))

    dates = asyncio.run(service.selectable_dates("consulta-inicial", now=NOW))

    assert pendulum.date(2024, 1, 9) not in dates
    assert dates[:2] == [TUESDAY, pendulum.date(2024, 1, 16)]


def test_submit_booking_posts_payload(availability_payload):
    client = StubBookingClient([availability_payload])
    service = BookingService(client)

    confirmation = asyncio.run(
        service.submit_booking(slug="consulta-inicial", date=TUESDAY, time="09:30", client=_client(), now=NOW)
    )

    assert confirmation.confirmation_code == "ABC123"
    assert confirmation.start == pendulum.datetime(2024, 1, 2, 9, 30, tz="Europe/Madrid")
    assert client.submitted[0]["startTime"] == "2024-01-02T08:30:00Z"


def test_submit_booking_rejects_time_not_offered(availability_payload):
    client = StubBookingClient([availability_payload])
    service = BookingService(client)

    with pytest.raises(BookingValidationError):
        asyncio.run(
            service.submit_booking(slug="consulta-inicial", date=TUESDAY, time="09:15", client=_client(), now=NOW)
        )

    assert client.submitted == []


def test_submit_booking_rejects_known_taken_slot(availability_payload):
    client = StubBookingClient([availability_payload])
    service = BookingService(client)

    with pytest.raises(SlotAlreadyBookedError) as exc_info:
        asyncio.run(
            service.submit_booking(slug="consulta-inicial", date=TUESDAY, time="09:00", client=_client(), now=NOW)
        )

    assert client.submitted == []
    assert [slot.time for slot in exc_info.value.refreshed_slots] == ["09:00", "09:30"]


def test_submit_booking_inside_notice_window_is_a_validation_error(availability_payload):
    availability_payload["minNoticeHours"] = 48
    client = StubBookingClient([availability_payload])
    service = BookingService(client)

    with pytest.raises(BookingValidationError) as exc_info:
        asyncio.run(
            service.submit_booking(slug="consulta-inicial", date=TUESDAY, time="09:30", client=_client(), now=NOW)
        )

    assert "antelación mínima" in str(exc_info.value)
    assert "48 horas" in exc_info.value.field_errors["time"]
    assert client.submitted == []


def test_submit_booking_past_time_is_a_validation_error(availability_payload):
    client = StubBookingClient([availability_payload])
    service = BookingService(client)
    later = pendulum.datetime(2024, 1, 2, 9, 45, tz="Europe/Madrid")

    with pytest.raises(BookingValidationError) as exc_info:
        asyncio.run(
            service.submit_booking(slug="consulta-inicial", date=TUESDAY, time="09:30", client=_client(), now=later)
        )

    assert exc_info.value.field_errors == {"time": "Este horario ya ha pasado"}
    assert client.submitted == []


def test_submit_booking_over_daily_cap_is_a_validation_error(availability_payload):
    availability_payload["maxDailyBookings"] = 1
    client = StubBookingClient([availability_payload])
    service = BookingService(client)

    with pytest.raises(BookingValidationError) as exc_info:
        asyncio.run(
            service.submit_booking(slug="consulta-inicial", date=TUESDAY, time="09:30", client=_client(), now=NOW)
        )

    assert "date" in exc_info.value.field_errors
    assert "máximo de reservas" in str(exc_info.value)
    assert client.submitted == []


def test_submit_booking_recomputes_after_conflict(availability_payload):
    """A concurrent booking makes the server reject the slot; slots are refreshed."""
    taken = copy.deepcopy(availability_payload)
    taken["bookings"].append(
        {"startTime": "2024-01-02T08:30:00.000Z", "endTime": "2024-01-02T09:00:00.000Z"}
    )
    client = StubBookingClient([availability_payload, taken], conflict=True)
    service = BookingService(client)

    with pytest.raises(SlotAlreadyBookedError) as exc_info:
        asyncio.run(
            service.submit_booking(slug="consulta-inicial", date=TUESDAY, time="09:30", client=_client(), now=NOW)
        )

    assert len(client.fetches) == 2
    assert [slot.is_available for slot in exc_info.value.refreshed_slots] == [False, False]
