"""Business hours, admin exclusions, and booked slots read by the availability check."""

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_HH_MM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class BusinessHoursEntry(BaseModel):
    """Opening hours for one weekday (0=Sunday .. 6=Saturday), 24-hour HH:MM."""

    model_config = ConfigDict(frozen=True)

    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str
    is_available: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_hh_mm(cls, value: str) -> str:
        value = value.strip()
        if not _HH_MM.match(value):
            raise ValueError(f"expected HH:MM in 24-hour format, got {value!r}")
        return value

    @property
    def start_minutes(self) -> int:
        hour, minute = self.start_time.split(":")
        return int(hour) * 60 + int(minute)

    @property
    def end_minutes(self) -> int:
        hour, minute = self.end_time.split(":")
        return int(hour) * 60 + int(minute)


class BlockedDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    reason: Optional[str] = None


class BlockedSlot(BaseModel):
    """A blocked time on a date. Without a time it blocks the whole date."""

    model_config = ConfigDict(frozen=True)

    date: str
    time: Optional[str] = None
    reason: Optional[str] = None


class BookingStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class Booking(BaseModel):
    """A stored booking. Only active bookings occupy their slot."""

    booking_ref: str
    date: str
    time: str
    status: BookingStatus = BookingStatus.ACTIVE
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    address: str = ""
    service_summary: str = ""
    quoted_total: Decimal = Decimal("0")
    notes: str = ""
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == BookingStatus.ACTIVE
