"""
Helpers for converting between ``HH:MM`` strings, minute offsets and instants.
"""

from __future__ import annotations

import re

import pendulum
from pendulum import Date, DateTime

_HHMM_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """
    Convert an ``HH:MM`` string to minutes since midnight.

    ``24:00`` is accepted so a window can run until the end of the day.

    Raises:
        ValueError: If the string is not a valid time of day
    """
    match = _HHMM_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    total = hours * 60 + minutes
    if minutes > 59 or total > MINUTES_PER_DAY:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return total


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as a zero-padded ``HH:MM`` string."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def day_of_week(date: Date) -> int:
    """Return the weekday with Sunday=0 .. Saturday=6."""
    return date.isoweekday() % 7


def at_time(date: Date, time_of_day: str | int, timezone: str) -> DateTime:
    """
    Build the concrete instant for a time of day on a calendar date.

    ``time_of_day`` is either an ``HH:MM`` string or minutes since midnight.
    """
    minutes = parse_hhmm(time_of_day) if isinstance(time_of_day, str) else time_of_day
    days, minutes = divmod(minutes, MINUTES_PER_DAY)
    target = date.add(days=days) if days else date
    hour, minute = divmod(minutes, 60)
    # Wall-clock construction keeps HH:MM stable across DST changes
    return pendulum.datetime(target.year, target.month, target.day, hour, minute, tz=timezone)


def local_date(instant: DateTime, timezone: str) -> Date:
    """Calendar date of an instant as seen in ``timezone``."""
    return instant.in_timezone(timezone).date()


def parse_date(value: str) -> Date:
    """Parse a ``YYYY-MM-DD`` string as a calendar date."""
    return pendulum.from_format(value, "YYYY-MM-DD").date()
