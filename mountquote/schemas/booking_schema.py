"""Booking submission data models."""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from mountquote.schemas.selection_schema import ServiceSelection


class BookingRequest(BaseModel):
    """Everything the booking repository needs to persist a confirmed wizard."""
    customer_name: str
    customer_email: str
    customer_phone: str
    street_address: str
    address_line2: Optional[str] = None
    city: str
    state: str
    zip_code: str
    notes: Optional[str] = None
    selection: ServiceSelection = Field(default_factory=ServiceSelection)
    preferred_date: str
    preferred_time: str
    quoted_total: Decimal = Decimal("0")

    @property
    def full_address(self) -> str:
        street = self.street_address
        if self.address_line2:
            street = f"{street}, {self.address_line2}"
        return f"{street}, {self.city}, {self.state} {self.zip_code}"


class BookingResponse(BaseModel):
    """Booking submission result shown to the customer."""
    success: bool
    booking_ref: Optional[str] = None
    message: str
    date: str = ""
    time: str = ""
    total: Optional[Decimal] = None
    created_at: Optional[datetime] = None
