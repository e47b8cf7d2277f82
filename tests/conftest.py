"""Shared test fixtures and helpers."""

from datetime import datetime
from typing import Optional

import pytest

from mountquote.pricing.price_table import default_price_table
from mountquote.schemas.booking_schema import BookingRequest
from mountquote.schemas.selection_schema import ServiceSelection
from mountquote.tools.availability import AvailabilityContext, build_context
from mountquote.tools.booking import BookingRepository
from mountquote.tools.calendar_store import CalendarStore
from mountquote.wizard.booking_wizard import BookingWizard

# Friday morning. 2025-06-14 is a Saturday (11:00-19:00) and
# 2025-06-16 a Monday (18:30-22:30) under the default hours.
NOW = datetime(2025, 6, 13, 9, 0)
SATURDAY = "2025-06-14"
SUNDAY = "2025-06-15"
MONDAY = "2025-06-16"


@pytest.fixture
def price_table():
    return default_price_table()


@pytest.fixture
def calendar_store():
    return CalendarStore()


@pytest.fixture
def repository():
    return BookingRepository()


@pytest.fixture
def context(calendar_store, repository) -> AvailabilityContext:
    return build_context(calendar_store, repository, now=NOW, buffer_minutes=30)


@pytest.fixture
def wizard(price_table, calendar_store, repository):
    return BookingWizard(
        price_table=price_table,
        calendar=calendar_store,
        repository=repository,
        now=NOW,
        session_id="WZ-TEST",
    )


def make_request(
    date: str = SATURDAY,
    time: str = "2:00 PM",
    customer_name: str = "Jane Doe",
    selection: Optional[ServiceSelection] = None,
    **overrides,
) -> BookingRequest:
    """Helper to create a BookingRequest with sensible defaults."""
    data = {
        "customer_name": customer_name,
        "customer_email": "jane@example.com",
        "customer_phone": "(404) 555-0123",
        "street_address": "12 Peachtree St",
        "city": "Atlanta",
        "state": "GA",
        "zip_code": "30303",
        "selection": selection or ServiceSelection(),
        "preferred_date": date,
        "preferred_time": time,
    }
    data.update(overrides)
    return BookingRequest(**data)


CONTACT_DETAILS = {
    "customer_name": "jane doe",
    "customer_email": "Jane@Example.com",
    "customer_phone": "(404) 555-0123",
    "street_address": "12 Peachtree St",
    "city": "Atlanta",
    "state": "ga",
    "zip_code": "30303",
}
