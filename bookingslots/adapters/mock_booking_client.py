"""
Mock booking API client for working without a backend.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum

from ..domain.exceptions import AvailabilityNotFoundError, BookingAPIError, SlotAlreadyBookedError
from ..domain.models import Booking
from ..schemas import AvailabilityProfile, BookingResponse

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_availability.json"


class MockBookingClient:
    """
    Mock client that simulates the public booking API.

    Profiles are loaded from a JSON file mapping slug -> availability payload
    (same camelCase shape the server returns). Bookings created through the
    client are kept in memory and show up in later fetches, so conflicting
    submissions are rejected like the real server does.
    """

    def __init__(self, data_file: Optional[Path] = None):
        """
        Initialize the mock client.

        Args:
            data_file: JSON file with a top-level ``profiles`` mapping;
                defaults to the bundled sample data
        """
        self.data_file = data_file or DEFAULT_DATA_FILE
        self.profiles: Dict[str, Dict[str, Any]] = self._load_profiles()
        self.created: List[Dict[str, Any]] = []

    def _load_profiles(self) -> Dict[str, Dict[str, Any]]:
        """Load mock profiles from the JSON file."""
        if not self.data_file.exists():
            raise FileNotFoundError(f"Mock data file not found: {self.data_file}")

        with open(self.data_file, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise BookingAPIError(f"Invalid JSON in {self.data_file}: {exc}") from exc

        profiles = data.get("profiles") if isinstance(data, dict) else None
        if not isinstance(profiles, dict):
            raise BookingAPIError(f"{self.data_file} must contain a 'profiles' mapping")
        return profiles

    async def fetch_availability(self, slug: str) -> AvailabilityProfile:
        raw = self.profiles.get(slug)
        if raw is None:
            raise AvailabilityNotFoundError(
                "No se pudo encontrar la configuración de disponibilidad"
            )
        try:
            return AvailabilityProfile.model_validate(copy.deepcopy(raw))
        except ValueError as exc:
            raise BookingAPIError(f"Invalid availability payload for '{slug}': {exc}") from exc

    async def create_booking(self, payload: Dict[str, Any]) -> BookingResponse:
        """
        Store a booking, rejecting it when it overlaps an existing one.
        """
        raw = self._profile_by_id(payload.get("availabilityId", ""))
        start = pendulum.parse(payload["startTime"])
        end = start.add(minutes=int(payload.get("duration") or raw["duration"]))

        for entry in raw.get("bookings", []):
            existing = Booking(
                start=pendulum.parse(entry["startTime"]),
                end=pendulum.parse(entry["endTime"]),
                status=entry.get("status", "confirmed"),
            )
            if existing.blocks_time() and existing.overlaps(start, end):
                raise SlotAlreadyBookedError("Este horario ya ha sido reservado")

        status = "pending" if raw.get("requireApproval") else "confirmed"
        raw.setdefault("bookings", []).append(
            {
                "startTime": start.to_iso8601_string(),
                "endTime": end.to_iso8601_string(),
                "status": status,
            }
        )
        self.created.append(payload)

        code = f"MOCK{len(self.created):04d}"
        logger.debug("Mock booking %s stored for %s", code, payload.get("clientEmail"))
        return BookingResponse(confirmation_code=code, status=status)

    def _profile_by_id(self, availability_id: str) -> Dict[str, Any]:
        for raw in self.profiles.values():
            if raw.get("_id") == availability_id:
                return raw
        raise BookingAPIError(f"Unknown availability id: {availability_id}")
