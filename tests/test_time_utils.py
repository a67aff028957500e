"""
Tests for time conversion helpers.
"""

import pendulum
import pytest

from bookingslots.domain.time_utils import (
    at_time,
    day_of_week,
    format_minutes,
    local_date,
    parse_date,
    parse_hhmm,
)


class TestParseHHMM:
    """Tests for parse_hhmm."""

    def test_parses_zero_padded_time(self):
        assert parse_hhmm("09:30") == 570

    def test_parses_single_digit_hour(self):
        assert parse_hhmm("9:05") == 545

    def test_accepts_end_of_day(self):
        assert parse_hhmm("24:00") == 1440

    @pytest.mark.parametrize("value", ["", "9", "09:60", "25:00", "24:30", "ab:cd", "09-30"])
    def test_rejects_malformed_values(self, value):
        with pytest.raises(ValueError, match="expected HH:MM"):
            parse_hhmm(value)


def test_format_minutes_zero_pads():
    assert format_minutes(0) == "00:00"
    assert format_minutes(545) == "09:05"
    assert format_minutes(1439) == "23:59"


def test_day_of_week_uses_sunday_as_zero():
    assert day_of_week(pendulum.date(2024, 1, 7)) == 0  # Sunday
    assert day_of_week(pendulum.date(2024, 1, 1)) == 1  # Monday
    assert day_of_week(pendulum.date(2024, 1, 6)) == 6  # Saturday


def test_at_time_builds_instant_in_timezone():
    instant = at_time(pendulum.date(2024, 1, 2), "09:30", "Europe/Madrid")

    assert instant == pendulum.datetime(2024, 1, 2, 8, 30, tz="UTC")
    assert instant.timezone_name == "Europe/Madrid"


def test_at_time_keeps_wall_clock_on_dst_change():
    """Spring-forward day in Madrid: 10:00 local is still 10:00 local."""
    instant = at_time(pendulum.date(2024, 3, 31), "10:00", "Europe/Madrid")

    assert instant.hour == 10
    assert instant.minute == 0


def test_at_time_end_of_day_rolls_to_next_midnight():
    instant = at_time(pendulum.date(2024, 1, 2), "24:00", "UTC")

    assert instant == pendulum.datetime(2024, 1, 3, tz="UTC")


def test_local_date_converts_timezone():
    late_utc = pendulum.datetime(2024, 1, 1, 23, 30, tz="UTC")

    assert local_date(late_utc, "UTC") == pendulum.date(2024, 1, 1)
    assert local_date(late_utc, "Europe/Madrid") == pendulum.date(2024, 1, 2)


def test_parse_date():
    assert parse_date("2024-01-02") == pendulum.date(2024, 1, 2)
    with pytest.raises(ValueError):
        parse_date("02/01/2024")
