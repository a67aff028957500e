"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    AvailabilitySettings,
    AvailableSlot,
    Booking,
    DayAvailability,
    ExcludedDate,
    WeeklyTimeSlot,
)
from .slot_calculator import AvailabilityCalculator

__all__ = [
    "AvailabilitySettings",
    "AvailableSlot",
    "Booking",
    "DayAvailability",
    "ExcludedDate",
    "WeeklyTimeSlot",
    "AvailabilityCalculator",
]
