"""
Domain models for availability and slot calculations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from pendulum import Date, DateTime

NON_BLOCKING_STATUSES = frozenset({"cancelled"})


@dataclass(frozen=True)
class WeeklyTimeSlot:
    """
    A weekly recurrence rule: on ``day`` the provider accepts bookings between
    ``start_time`` and ``end_time``.

    ``day`` uses Sunday=0 .. Saturday=6.
    """
    day: int
    start_time: str
    end_time: str
    is_active: bool = True


@dataclass(frozen=True)
class ExcludedDate:
    """A calendar date blocked regardless of the weekly schedule."""
    date: Date
    reason: Optional[str] = None


@dataclass(frozen=True)
class Booking:
    """An existing reservation, read-only for the engine."""
    start: DateTime
    end: DateTime
    status: str = "confirmed"

    def blocks_time(self) -> bool:
        """Cancelled bookings free their slot again."""
        return self.status.lower() not in NON_BLOCKING_STATUSES

    def overlaps(self, start: DateTime, end: DateTime) -> bool:
        """Half-open interval intersection with ``[start, end)``."""
        return not (end <= self.start or start >= self.end)


@dataclass(frozen=True)
class AvailabilitySettings:
    """
    Everything the engine needs to know about one provider's agenda.

    Treated as an immutable snapshot for the duration of a booking session.
    """
    duration: int
    buffer_before: int = 0
    buffer_after: int = 0
    min_notice_hours: float = 0
    max_days_in_advance: int = 60
    time_slots: Tuple[WeeklyTimeSlot, ...] = ()
    excluded_dates: Tuple[ExcludedDate, ...] = ()
    bookings: Tuple[Booking, ...] = ()
    timezone: str = "UTC"
    max_daily_bookings: Optional[int] = None
    max_weekly_bookings: Optional[int] = None

    @property
    def step_minutes(self) -> int:
        """Distance between two consecutive candidate start times."""
        return self.duration + self.buffer_before + self.buffer_after


@dataclass(frozen=True)
class AvailableSlot:
    """One candidate slot of a date; unavailable slots are shown disabled."""
    time: str
    is_available: bool


@dataclass
class DayAvailability:
    """A date together with its full slot list."""
    date: Date
    slots: List[AvailableSlot] = field(default_factory=list)
    is_fallback: bool = False

    def has_available_slot(self) -> bool:
        return any(slot.is_available for slot in self.slots)

    def available_times(self) -> List[str]:
        return [slot.time for slot in self.slots if slot.is_available]
