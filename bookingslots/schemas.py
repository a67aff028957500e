"""
Pydantic schemas for the public booking API payloads.

The server speaks camelCase JSON with ISO-8601 date strings; these models
validate that payload and convert it into the immutable domain objects.
"""

from __future__ import annotations

from typing import List, Literal, Optional

import pendulum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .domain.models import AvailabilitySettings, Booking, ExcludedDate, WeeklyTimeSlot
from .domain.time_utils import parse_hhmm

DEFAULT_TIMEZONE = "Europe/Madrid"


def validate_timezone_name(value: str) -> str:
    """Ensure ``value`` is a known IANA timezone."""
    try:
        pendulum.timezone(value)
    except Exception as exc:
        raise ValueError(f"Unknown timezone: {value}") from exc
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeSlotSchema(CamelModel):
    """Weekly rule as sent by the server (``day`` is 0=Sunday .. 6=Saturday)."""
    day: int = Field(ge=0, le=6)
    start_time: str
    end_time: str
    is_active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_hhmm(cls, value: str) -> str:
        parse_hhmm(value)
        return value


class ExcludedDateSchema(CamelModel):
    date: str
    reason: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        _parse_instant(value, "UTC")
        return value


class BookingSchema(CamelModel):
    start_time: str
    end_time: str
    status: str = "confirmed"

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_instant(cls, value: str) -> str:
        _parse_instant(value, "UTC")
        return value


class RequiredFields(CamelModel):
    """Which client fields the booking form must collect."""
    name: bool = True
    email: bool = True
    phone: bool = False
    company: bool = False
    address: bool = False
    notes: bool = False


class CustomField(CamelModel):
    name: str
    required: bool = False
    type: Literal["text", "number", "select", "checkbox"] = "text"
    options: List[str] = Field(default_factory=list)


class HostInfo(CamelModel):
    name: str
    email: str
    avatar: Optional[str] = None
    title: Optional[str] = None
    company_name: Optional[str] = None


class AvailabilityProfile(CamelModel):
    """
    A provider's public booking agenda, as returned by
    ``GET /api/booking/public/availability/{slug}``.
    """
    id: str = Field(default="", alias="_id")
    user_id: str = ""
    title: str = ""
    description: str = ""
    duration: int = Field(gt=0)
    color: str = ""
    timezone: str = DEFAULT_TIMEZONE
    buffer_before: int = Field(default=0, ge=0)
    buffer_after: int = Field(default=0, ge=0)
    max_days_in_advance: int = Field(default=60, gt=0)
    min_notice_hours: float = Field(default=0, ge=0)
    max_daily_bookings: Optional[int] = Field(default=None, gt=0)
    max_weekly_bookings: Optional[int] = Field(default=None, gt=0)
    is_active: bool = True
    require_approval: bool = False
    public_url: str = ""
    time_slots: List[TimeSlotSchema] = Field(default_factory=list)
    excluded_dates: List[ExcludedDateSchema] = Field(default_factory=list)
    bookings: List[BookingSchema] = Field(default_factory=list)
    required_fields: RequiredFields = Field(default_factory=RequiredFields)
    custom_fields: List[CustomField] = Field(default_factory=list)
    host: Optional[HostInfo] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        return validate_timezone_name(value)

    def to_settings(self) -> AvailabilitySettings:
        """
        Convert the payload into engine settings.

        Excluded dates and bookings are interpreted in the provider's timezone;
        strings carrying an offset keep it and are converted.
        """
        tz = self.timezone
        return AvailabilitySettings(
            duration=self.duration,
            buffer_before=self.buffer_before,
            buffer_after=self.buffer_after,
            min_notice_hours=self.min_notice_hours,
            max_days_in_advance=self.max_days_in_advance,
            time_slots=tuple(
                WeeklyTimeSlot(
                    day=slot.day,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    is_active=slot.is_active,
                )
                for slot in self.time_slots
            ),
            excluded_dates=tuple(
                ExcludedDate(date=_parse_instant(entry.date, tz).date(), reason=entry.reason)
                for entry in self.excluded_dates
            ),
            bookings=tuple(
                Booking(
                    start=_parse_instant(entry.start_time, tz),
                    end=_parse_instant(entry.end_time, tz),
                    status=entry.status,
                )
                for entry in self.bookings
            ),
            timezone=tz,
            max_daily_bookings=self.max_daily_bookings,
            max_weekly_bookings=self.max_weekly_bookings,
        )

    def custom_field(self, name: str) -> Optional[CustomField]:
        for field in self.custom_fields:
            if field.name == name:
                return field
        return None


class BookingResponse(CamelModel):
    """Body of a successful ``POST /api/booking/public/bookings``."""
    confirmation_code: str = ""
    status: str = "confirmed"
    token: Optional[str] = None


def _parse_instant(value: str, timezone: str) -> pendulum.DateTime:
    try:
        parsed = pendulum.parse(value, tz=timezone)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Could not parse datetime: {value}") from exc
    if not isinstance(parsed, pendulum.DateTime):
        raise ValueError(f"Could not parse datetime: {value}")
    return parsed.in_timezone(timezone)
