"""
Tests for the JSON-backed mock client.
"""

import asyncio
import json

import pytest

from bookingslots.adapters.mock_booking_client import MockBookingClient
from bookingslots.domain.exceptions import (
    AvailabilityNotFoundError,
    BookingAPIError,
    SlotAlreadyBookedError,
)


def _payload(start: str) -> dict:
    return {
        "availabilityId": "665f1c2ab7e4a90012c0ffee",
        "startTime": start,
        "duration": 30,
        "clientEmail": "ana@example.com",
    }


def test_bundled_sample_data_loads():
    client = MockBookingClient()

    profile = asyncio.run(client.fetch_availability("consulta-laboral"))

    assert profile.timezone == "Europe/Madrid"
    assert profile.duration == 30
    assert len(profile.to_settings().time_slots) == 6


def test_inactive_profile_is_served_as_is():
    profile = asyncio.run(MockBookingClient().fetch_availability("agenda-cerrada"))

    assert not profile.is_active


def test_unknown_slug():
    with pytest.raises(AvailabilityNotFoundError):
        asyncio.run(MockBookingClient().fetch_availability("desconocida"))


def test_overlapping_booking_is_rejected():
    client = MockBookingClient()

    with pytest.raises(SlotAlreadyBookedError):
        asyncio.run(client.create_booking(_payload("2026-10-20T07:15:00Z")))


def test_cancelled_booking_does_not_conflict_and_new_booking_is_visible():
    client = MockBookingClient()

    response = asyncio.run(client.create_booking(_payload("2026-10-20T09:15:00Z")))
    profile = asyncio.run(client.fetch_availability("consulta-laboral"))

    assert response.confirmation_code == "MOCK0001"
    assert response.status == "confirmed"
    assert len(profile.bookings) == 3

    with pytest.raises(SlotAlreadyBookedError):
        asyncio.run(client.create_booking(_payload("2026-10-20T09:30:00Z")))


def test_instances_do_not_share_bookings():
    first = MockBookingClient()
    asyncio.run(first.create_booking(_payload("2026-10-20T09:15:00Z")))

    second = MockBookingClient()
    response = asyncio.run(second.create_booking(_payload("2026-10-20T09:15:00Z")))

    assert response.confirmation_code == "MOCK0001"


def test_unknown_availability_id():
    client = MockBookingClient()

    with pytest.raises(BookingAPIError):
        asyncio.run(client.create_booking({"availabilityId": "nope", "startTime": "2026-10-20T09:15:00Z"}))


def test_custom_data_file(tmp_path, availability_payload):
    data_file = tmp_path / "profiles.json"
    data_file.write_text(json.dumps({"profiles": {"consulta-inicial": availability_payload}}), encoding="utf-8")

    profile = asyncio.run(MockBookingClient(data_file=data_file).fetch_availability("consulta-inicial"))

    assert profile.id == "avail-1"


def test_missing_data_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        MockBookingClient(data_file=tmp_path / "missing.json")


def test_data_file_without_profiles(tmp_path):
    data_file = tmp_path / "profiles.json"
    data_file.write_text("[]", encoding="utf-8")

    with pytest.raises(BookingAPIError):
        MockBookingClient(data_file=data_file)
