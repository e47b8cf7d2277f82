"""
Slot availability evaluator.

Decides whether a (date, time) can be offered to a customer, given the
weekly business hours, admin-blocked days and slots, existing bookings,
and a minimum lead time. Never raises on bad input: malformed dates or
times come back as unavailable with a reason the caller can log.

This check is advisory. The booking repository repeats the conflict
check when the booking is actually written.
"""

import logging
from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Sequence, Union

from mountquote.config import settings
from mountquote.schemas.calendar_schema import BlockedDay, BlockedSlot, Booking, BusinessHoursEntry
from mountquote.utils import day_of_week, format_minutes, parse_iso_date, parse_time_to_minutes

if TYPE_CHECKING:
    from mountquote.tools.booking import BookingRepository
    from mountquote.tools.calendar_store import CalendarStore

logger = logging.getLogger(__name__)

HoursLookup = Callable[[int], Optional[BusinessHoursEntry]]
BookingsLookup = Callable[[str], Sequence[Booking]]


class SlotReason(str, Enum):
    """Why a slot is or is not bookable. The first failing check wins."""

    AVAILABLE = "available"
    INVALID_DATE = "invalid_date"
    BLOCKED_DAY = "blocked_day"
    BLOCKED_SLOT = "blocked_slot"
    CLOSED = "closed"
    INVALID_TIME = "invalid_time"
    OUTSIDE_HOURS = "outside_hours"
    TOO_SOON = "too_soon"
    BOOKED = "booked"
    # a collaborator lookup raised
    ERROR = "error"


@dataclass(frozen=True)
class SlotCheck:
    available: bool
    reason: SlotReason


def hours_lookup(entries: Iterable[BusinessHoursEntry]) -> HoursLookup:
    """Build a day-of-week lookup from a list of business hours entries."""
    by_day = {entry.day_of_week: entry for entry in entries}
    return by_day.get


def _no_bookings(_date: str) -> Sequence[Booking]:
    return ()


@dataclass(frozen=True)
class AvailabilityContext:
    """Read-only view of the scheduling collaborators for one check."""

    business_hours: HoursLookup
    blocked_days: Sequence[BlockedDay] = ()
    blocked_slots: Sequence[BlockedSlot] = ()
    bookings_for_date: BookingsLookup = _no_bookings
    buffer_minutes: int = field(
        default_factory=lambda: settings.scheduling.booking_buffer_minutes
    )
    # None means the wall clock at check time.
    now: Optional[datetime] = None

    def current_time(self) -> datetime:
        return self.now if self.now is not None else datetime.now()


def build_context(
    store: "CalendarStore",
    repository: Optional["BookingRepository"] = None,
    now: Optional[datetime] = None,
    buffer_minutes: Optional[int] = None,
) -> AvailabilityContext:
    """Assemble a context from the calendar store and booking repository."""
    return AvailabilityContext(
        business_hours=store.get_business_hours,
        blocked_days=tuple(store.get_blocked_days()),
        blocked_slots=tuple(store.get_blocked_slots()),
        bookings_for_date=repository.get_bookings_by_date if repository else _no_bookings,
        buffer_minutes=(
            buffer_minutes if buffer_minutes is not None
            else settings.scheduling.booking_buffer_minutes
        ),
        now=now,
    )


def _matches_date(value: str, day: date_type) -> bool:
    return parse_iso_date(value) == day


def _matches_time(value: Optional[str], minutes: Optional[int], raw: str) -> bool:
    if value is None:
        return True
    other = parse_time_to_minutes(value)
    if other is None or minutes is None:
        return value.strip() == raw.strip()
    return other == minutes


def check_slot(date: Union[str, date_type], time: str, context: AvailabilityContext) -> SlotCheck:
    """Evaluate one candidate slot and report the first reason it fails."""
    day = parse_iso_date(date)
    if day is None:
        return SlotCheck(False, SlotReason.INVALID_DATE)
    raw_time = time if isinstance(time, str) else ""
    minutes = parse_time_to_minutes(raw_time)

    if any(_matches_date(d.date, day) for d in context.blocked_days):
        return SlotCheck(False, SlotReason.BLOCKED_DAY)

    for slot in context.blocked_slots:
        if _matches_date(slot.date, day) and _matches_time(slot.time, minutes, raw_time):
            return SlotCheck(False, SlotReason.BLOCKED_SLOT)

    hours = context.business_hours(day_of_week(day))
    if hours is None or not hours.is_available:
        return SlotCheck(False, SlotReason.CLOSED)

    if minutes is None:
        return SlotCheck(False, SlotReason.INVALID_TIME)
    if not hours.start_minutes <= minutes < hours.end_minutes:
        return SlotCheck(False, SlotReason.OUTSIDE_HOURS)

    slot_start = datetime.combine(day, datetime.min.time()) + timedelta(minutes=minutes)
    if slot_start < context.current_time() + timedelta(minutes=context.buffer_minutes):
        return SlotCheck(False, SlotReason.TOO_SOON)

    iso_day = day.isoformat()
    for booking in context.bookings_for_date(iso_day):
        if booking.is_active and parse_time_to_minutes(booking.time) == minutes:
            return SlotCheck(False, SlotReason.BOOKED)

    return SlotCheck(True, SlotReason.AVAILABLE)


def evaluate_slot(date: Union[str, date_type], time: str, context: AvailabilityContext) -> SlotCheck:
    """Like check_slot, but a failing collaborator makes the slot unavailable."""
    try:
        return check_slot(date, time, context)
    except Exception:
        logger.exception("Availability check failed for %r %r", date, time)
        return SlotCheck(False, SlotReason.ERROR)


def is_slot_available(date: Union[str, date_type], time: str, context: AvailabilityContext) -> bool:
    """True when the slot can be offered. Malformed input is never available."""
    return evaluate_slot(date, time, context).available


def get_time_slots_for_date(
    date: Union[str, date_type],
    business_hours: HoursLookup,
    interval_minutes: Optional[int] = None,
) -> list[str]:
    """All slot labels ("h:mm AM") that start within business hours for a date."""
    day = parse_iso_date(date)
    if day is None:
        return []
    hours = business_hours(day_of_week(day))
    if hours is None or not hours.is_available:
        return []
    step = interval_minutes or settings.scheduling.slot_interval_minutes
    count = max(0, (hours.end_minutes - hours.start_minutes) // step)
    return [format_minutes(hours.start_minutes + i * step) for i in range(count)]


def get_available_slots(
    date: Union[str, date_type],
    context: AvailabilityContext,
    interval_minutes: Optional[int] = None,
) -> list[str]:
    """Slot labels for a date that pass every availability check."""
    return [
        slot
        for slot in get_time_slots_for_date(date, context.business_hours, interval_minutes)
        if is_slot_available(date, slot, context)
    ]


def get_available_dates(
    context: AvailabilityContext,
    start: Optional[date_type] = None,
    limit: Optional[int] = None,
    lookahead_days: Optional[int] = None,
) -> list[dict]:
    """The next dates with at least one open slot, with their slot counts."""
    first = start or context.current_time().date()
    if limit is None:
        limit = settings.scheduling.max_dates_returned
    if lookahead_days is None:
        lookahead_days = settings.scheduling.lookahead_days
    results = []
    for offset in range(lookahead_days):
        if len(results) >= limit:
            break
        day = first + timedelta(days=offset)
        slots = get_available_slots(day, context)
        if slots:
            results.append(
                {"date": day.isoformat(), "day_name": day.strftime("%A"), "slot_count": len(slots)}
            )
    return results


def find_next_available(
    context: AvailabilityContext,
    start: Optional[date_type] = None,
    lookahead_days: Optional[int] = None,
) -> Optional[str]:
    """First open slot as "YYYY-MM-DD h:mm AM", or None within the lookahead."""
    first = start or context.current_time().date()
    if lookahead_days is None:
        lookahead_days = settings.scheduling.lookahead_days
    for offset in range(lookahead_days):
        day = first + timedelta(days=offset)
        slots = get_available_slots(day, context)
        if slots:
            return f"{day.isoformat()} {slots[0]}"
    return None
