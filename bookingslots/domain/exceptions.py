"""
Domain-specific exception hierarchy for the booking application.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .models import AvailableSlot


class BookingError(Exception):
    """Base class for all application-level errors."""


class AvailabilityNotFoundError(BookingError):
    """Raised when no availability profile exists for a slug."""


class AvailabilityInactiveError(BookingError):
    """Raised when the availability profile exists but is switched off."""


class BookingAPIError(BookingError):
    """Raised when booking data cannot be fetched, parsed or submitted."""


class BookingValidationError(BookingError):
    """Raised when booking form data is rejected, locally or by the server."""

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.field_errors: Dict[str, str] = dict(field_errors or {})


class SlotAlreadyBookedError(BookingError):
    """
    Raised when the chosen slot was taken by someone else in the meantime.

    ``refreshed_slots`` holds the slot list recomputed after the conflict so
    callers can redisplay the date without another round trip.
    """

    def __init__(self, message: str, refreshed_slots: Optional[List[AvailableSlot]] = None):
        super().__init__(message)
        self.refreshed_slots: List[AvailableSlot] = list(refreshed_slots or [])
