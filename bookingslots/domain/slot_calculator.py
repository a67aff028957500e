"""
Core business logic for calculating bookable time slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). Every function
receives the current instant as a parameter; nothing in here reads the clock.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from pendulum import Date, DateTime

from .models import (
    AvailabilitySettings,
    AvailableSlot,
    Booking,
    DayAvailability,
    ExcludedDate,
    WeeklyTimeSlot,
)
from .time_utils import at_time, day_of_week, format_minutes, local_date, parse_hhmm

logger = logging.getLogger(__name__)


def resolve_day_slot(date: Date, time_slots: Iterable[WeeklyTimeSlot]) -> Optional[WeeklyTimeSlot]:
    """Return the first active weekly rule for the weekday of ``date``."""
    weekday = day_of_week(date)
    for slot in time_slots:
        if slot.day == weekday and slot.is_active:
            return slot
    return None


def is_excluded(date: Date, excluded_dates: Iterable[ExcludedDate]) -> bool:
    """Check whether ``date`` is administratively blocked (date-only comparison)."""
    return any(excluded.date == date for excluded in excluded_dates)


def _window_minutes(day_slot: WeeklyTimeSlot) -> Optional[Tuple[int, int]]:
    try:
        return parse_hhmm(day_slot.start_time), parse_hhmm(day_slot.end_time)
    except ValueError as exc:
        logger.debug("Ignoring malformed day slot %s: %s", day_slot, exc)
        return None


def generate_candidate_slots(
    date: Date,
    day_slot: WeeklyTimeSlot,
    duration: int,
    buffer_before: int = 0,
    buffer_after: int = 0,
) -> List[str]:
    """
    Enumerate candidate start times for one day.

    Start times are ``start, start + step, start + 2*step, ...`` with
    ``step = duration + buffer_before + buffer_after``, as long as the
    appointment itself (``[t, t + duration)``) still fits before the window
    end. Buffers only widen the step, they are not applied at the window
    boundaries.

    Example:
    Window: 09:00 - 10:00, duration 30, no buffers
    Result: ["09:00", "09:30"]
    """
    window = _window_minutes(day_slot)
    if window is None:
        return []

    start, end = window
    step = duration + buffer_before + buffer_after
    if step <= 0 or duration <= 0 or start >= end:
        logger.debug(
            "No candidates on %s: window %s-%s, step %s",
            date, day_slot.start_time, day_slot.end_time, step,
        )
        return []

    candidates: List[str] = []
    current = start
    while current + duration <= end:
        candidates.append(format_minutes(current))
        current += step
    return candidates


def is_overlapping(slot_start: DateTime, slot_end: DateTime, bookings: Iterable[Booking]) -> bool:
    """Check whether ``[slot_start, slot_end)`` intersects any booking."""
    return any(booking.overlaps(slot_start, slot_end) for booking in bookings)


def respects_min_notice(slot_start: DateTime, now: DateTime, min_notice_hours: float) -> bool:
    """Check that the slot starts at least ``min_notice_hours`` after ``now``."""
    return slot_start >= now.add(seconds=int(round(min_notice_hours * 3600)))


class AvailabilityCalculator:
    """
    Computes slot lists for a provider's availability settings.

    Algorithm for a single date:
    1. Excluded dates yield no slots
    2. Resolve the active weekly rule for the weekday (none -> no slots)
    3. Generate fixed-size candidates inside the rule's window
    4. Flag each candidate available only if it respects the notice window,
       does not overlap a booking on that date and no booking cap is reached

    All candidates are returned; unavailable ones are flagged, not dropped.
    """

    def __init__(self, settings: AvailabilitySettings):
        self.settings = settings

    def compute_available_times_for_date(self, date: Date, now: DateTime) -> List[AvailableSlot]:
        """
        Compute the full slot list for one date.

        Args:
            date: Calendar date in the provider's timezone
            now: The instant every slot of this call is judged against

        Returns:
            All candidate slots in generation order
        """
        if is_excluded(date, self.settings.excluded_dates):
            return []

        day_slot = resolve_day_slot(date, self.settings.time_slots)
        if day_slot is None:
            return []

        return self._evaluate_day(date, day_slot, now)

    def find_first_available_date(self, now: DateTime) -> DayAvailability:
        """
        Scan forward from today for the first date with a bookable slot.

        Only dates within ``max_days_in_advance`` days from today are
        considered. If none qualifies, tomorrow is returned with whatever slots
        it has (possibly none) and ``is_fallback`` set, so callers always have
        a concrete date to show.
        """
        settings = self.settings
        min_date = now.add(seconds=int(round(settings.min_notice_hours * 3600)))
        today = local_date(now, settings.timezone)

        for offset in range(settings.max_days_in_advance):
            candidate = today.add(days=offset)

            if is_excluded(candidate, settings.excluded_dates):
                continue

            day_slot = resolve_day_slot(candidate, settings.time_slots)
            if day_slot is None:
                continue

            window = _window_minutes(day_slot)
            if window is None:
                continue

            # Whole window already inside the notice period
            if at_time(candidate, window[1], settings.timezone) < min_date:
                continue

            slots = self._evaluate_day(candidate, day_slot, now)
            if any(slot.is_available for slot in slots):
                logger.debug("First available date is %s (offset %d)", candidate, offset)
                return DayAvailability(date=candidate, slots=slots)

        tomorrow = today.add(days=1)
        logger.debug(
            "No availability within %d days, falling back to %s",
            settings.max_days_in_advance, tomorrow,
        )
        return DayAvailability(
            date=tomorrow,
            slots=self.compute_available_times_for_date(tomorrow, now),
            is_fallback=True,
        )

    def is_date_selectable(self, date: Date, now: DateTime) -> bool:
        """
        Check whether a date can be picked in a calendar widget.

        Past dates, dates beyond the horizon, excluded dates and weekdays
        without an active rule are not selectable.
        """
        today = local_date(now, self.settings.timezone)
        if date < today or date > today.add(days=self.settings.max_days_in_advance):
            return False
        if is_excluded(date, self.settings.excluded_dates):
            return False
        return resolve_day_slot(date, self.settings.time_slots) is not None

    def selectable_dates(self, now: DateTime) -> List[Date]:
        """All selectable dates from today up to the horizon."""
        today = local_date(now, self.settings.timezone)
        dates = (today.add(days=offset) for offset in range(self.settings.max_days_in_advance + 1))
        return [date for date in dates if self.is_date_selectable(date, now)]

    def _evaluate_day(self, date: Date, day_slot: WeeklyTimeSlot, now: DateTime) -> List[AvailableSlot]:
        settings = self.settings
        candidates = generate_candidate_slots(
            date,
            day_slot,
            settings.duration,
            settings.buffer_before,
            settings.buffer_after,
        )
        if not candidates:
            return []

        day_bookings = self._bookings_on(date)
        capped = self._cap_reached(date, day_bookings)

        slots: List[AvailableSlot] = []
        for time_str in candidates:
            slot_start = at_time(date, time_str, settings.timezone)
            slot_end = slot_start.add(minutes=settings.duration)
            is_available = (
                not capped
                and respects_min_notice(slot_start, now, settings.min_notice_hours)
                and not is_overlapping(slot_start, slot_end, day_bookings)
            )
            slots.append(AvailableSlot(time=time_str, is_available=is_available))

        return slots

    def _bookings_on(self, date: Date) -> List[Booking]:
        """Blocking bookings whose start falls on ``date`` in the provider timezone."""
        tz = self.settings.timezone
        return [
            booking for booking in self.settings.bookings
            if booking.blocks_time() and local_date(booking.start, tz) == date
        ]

    def cap_reached(self, date: Date) -> bool:
        """Check whether the daily or weekly booking cap is reached on ``date``."""
        return self._cap_reached(date, self._bookings_on(date))

    def _cap_reached(self, date: Date, day_bookings: Sequence[Booking]) -> bool:
        settings = self.settings

        if settings.max_daily_bookings is not None and len(day_bookings) >= settings.max_daily_bookings:
            return True

        if settings.max_weekly_bookings is not None:
            # Weeks start on Monday
            week_start = date.subtract(days=date.weekday())
            week_end = week_start.add(days=6)
            weekly = sum(
                1 for booking in settings.bookings
                if booking.blocks_time()
                and week_start <= local_date(booking.start, settings.timezone) <= week_end
            )
            if weekly >= settings.max_weekly_bookings:
                return True

        return False
