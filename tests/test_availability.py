"""Tests for the slot availability evaluator."""

import logging
from datetime import date, datetime

import pytest

from mountquote.schemas.calendar_schema import BlockedDay, BlockedSlot, BusinessHoursEntry
from mountquote.tools.availability import (
    AvailabilityContext,
    SlotCheck,
    SlotReason,
    build_context,
    check_slot,
    evaluate_slot,
    find_next_available,
    get_available_dates,
    get_available_slots,
    get_time_slots_for_date,
    hours_lookup,
    is_slot_available,
)
from mountquote.tools.calendar_store import DEFAULT_BUSINESS_HOURS, CalendarStore
from tests.conftest import MONDAY, NOW, SATURDAY, SUNDAY, make_request


def _context(**overrides) -> AvailabilityContext:
    data = {
        "business_hours": hours_lookup(DEFAULT_BUSINESS_HOURS),
        "buffer_minutes": 30,
        "now": NOW,
    }
    data.update(overrides)
    return AvailabilityContext(**data)


class TestBasicChecks:
    def test_open_slot(self, context):
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.AVAILABLE
        assert is_slot_available(SATURDAY, "2:00 PM", context)

    def test_accepts_24_hour_time(self, context):
        assert is_slot_available(MONDAY, "19:30", context)

    def test_accepts_date_object(self, context):
        assert is_slot_available(date(2025, 6, 14), "11:00 AM", context)

    def test_start_of_hours_inclusive(self, context):
        assert check_slot(MONDAY, "6:30 PM", context).available

    def test_end_of_hours_exclusive(self, context):
        assert check_slot(MONDAY, "10:30 PM", context).reason == SlotReason.OUTSIDE_HOURS

    def test_before_opening(self, context):
        assert check_slot(MONDAY, "6:00 PM", context).reason == SlotReason.OUTSIDE_HOURS

    def test_day_marked_unavailable(self):
        closed_saturday = BusinessHoursEntry(
            day_of_week=6, start_time="11:00", end_time="19:00", is_available=False
        )
        context = _context(business_hours=hours_lookup([closed_saturday]))
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.CLOSED

    def test_missing_hours_entry_is_closed(self):
        context = _context(business_hours=hours_lookup([]))
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.CLOSED


class TestExclusions:
    def test_blocked_day(self):
        context = _context(blocked_days=(BlockedDay(date=SATURDAY, reason="Holiday"),))
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.BLOCKED_DAY

    def test_blocked_day_wins_over_malformed_time(self):
        context = _context(blocked_days=(BlockedDay(date=SATURDAY),))
        assert check_slot(SATURDAY, "noon", context).reason == SlotReason.BLOCKED_DAY

    def test_blocked_slot(self):
        context = _context(blocked_slots=(BlockedSlot(date=SATURDAY, time="2:00 PM"),))
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.BLOCKED_SLOT
        assert check_slot(SATURDAY, "3:00 PM", context).available

    def test_blocked_slot_matches_by_clock_time(self):
        context = _context(blocked_slots=(BlockedSlot(date=SATURDAY, time="14:00"),))
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.BLOCKED_SLOT

    def test_blocked_slot_without_time_blocks_the_date(self):
        context = _context(blocked_slots=(BlockedSlot(date=SATURDAY),))
        assert check_slot(SATURDAY, "11:00 AM", context).reason == SlotReason.BLOCKED_SLOT

    def test_blocked_day_checked_before_blocked_slot(self):
        context = _context(
            blocked_days=(BlockedDay(date=SATURDAY),),
            blocked_slots=(BlockedSlot(date=SATURDAY, time="2:00 PM"),),
        )
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.BLOCKED_DAY

    def test_context_from_store(self, repository):
        store = CalendarStore()
        store.block_day(SUNDAY, "Family event")
        store.block_time_slot(SATURDAY, "3:00 PM")
        context = build_context(store, repository, now=NOW, buffer_minutes=30)
        assert check_slot(SUNDAY, "2:00 PM", context).reason == SlotReason.BLOCKED_DAY
        assert check_slot(SATURDAY, "3:00 PM", context).reason == SlotReason.BLOCKED_SLOT


class TestBookings:
    def test_active_booking_occupies_slot(self, context, repository):
        repository.create_booking(make_request(SATURDAY, "2:00 PM"))
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.BOOKED

    def test_booking_matched_by_clock_time(self, context, repository):
        repository.create_booking(make_request(SATURDAY, "14:00"))
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.BOOKED

    def test_cancelled_booking_never_blocks(self, context, repository):
        result = repository.create_booking(make_request(SATURDAY, "2:00 PM"))
        repository.cancel_booking(result["booking_ref"])
        assert check_slot(SATURDAY, "2:00 PM", context).available

    def test_unpadded_booking_date_occupies_slot(self, context, repository):
        repository.create_booking(make_request("2025-6-14", "2:00 PM"))
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.BOOKED
        assert is_slot_available("2025-6-14", "2:00 PM", context) is False

    def test_other_dates_unaffected(self, context, repository):
        repository.create_booking(make_request(SATURDAY, "2:00 PM"))
        assert check_slot(SUNDAY, "2:00 PM", context).available


class TestBuffer:
    def test_ten_minutes_ahead_is_too_soon(self):
        context = _context(now=datetime(2025, 6, 14, 13, 50))
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.TOO_SOON
        assert not is_slot_available(SATURDAY, "2:00 PM", context)

    def test_exactly_buffer_ahead_is_allowed(self):
        context = _context(now=datetime(2025, 6, 14, 13, 30))
        assert check_slot(SATURDAY, "2:00 PM", context).available

    def test_past_slot_is_too_soon(self):
        context = _context(now=datetime(2025, 6, 20, 9, 0))
        assert check_slot(SATURDAY, "2:00 PM", context).reason == SlotReason.TOO_SOON

    def test_zero_buffer(self):
        context = _context(now=datetime(2025, 6, 14, 13, 59), buffer_minutes=0)
        assert check_slot(SATURDAY, "2:00 PM", context).available


class TestFailClosed:
    @pytest.mark.parametrize("bad_date", [
        "2025-13-01", "2025-02-30", "14/06/2025", "tomorrow", "", None, 20250614,
    ])
    def test_malformed_date(self, context, bad_date):
        assert is_slot_available(bad_date, "2:00 PM", context) is False
        assert check_slot(bad_date, "2:00 PM", context).reason == SlotReason.INVALID_DATE

    @pytest.mark.parametrize("bad_time", ["25:00", "2 PM", "noon", "", "13:00 PM", None])
    def test_malformed_time(self, context, bad_time):
        assert is_slot_available(SATURDAY, bad_time, context) is False
        assert check_slot(SATURDAY, bad_time, context).reason == SlotReason.INVALID_TIME

    def test_broken_hours_lookup_is_unavailable(self, caplog):
        def broken(day_of_week):
            raise TypeError("hours store unavailable")

        context = _context(business_hours=broken)
        with caplog.at_level(logging.ERROR, logger="mountquote.tools.availability"):
            assert is_slot_available(SATURDAY, "2:00 PM", context) is False
        assert "Availability check failed" in caplog.text

    def test_failing_bookings_lookup_reports_error(self):
        def broken(date):
            raise RuntimeError("bookings store down")

        context = _context(bookings_for_date=broken)
        assert evaluate_slot(SATURDAY, "2:00 PM", context) == SlotCheck(False, SlotReason.ERROR)
        assert is_slot_available(SATURDAY, "2:00 PM", context) is False


class TestSlotGeneration:
    def test_saturday_hourly_slots(self):
        slots = get_time_slots_for_date(SATURDAY, hours_lookup(DEFAULT_BUSINESS_HOURS), 60)
        assert slots == [
            "11:00 AM", "12:00 PM", "1:00 PM", "2:00 PM",
            "3:00 PM", "4:00 PM", "5:00 PM", "6:00 PM",
        ]

    def test_weekday_evening_slots(self):
        slots = get_time_slots_for_date(MONDAY, hours_lookup(DEFAULT_BUSINESS_HOURS), 60)
        assert slots == ["6:30 PM", "7:30 PM", "8:30 PM", "9:30 PM"]

    def test_closed_day_has_no_slots(self):
        assert get_time_slots_for_date(SATURDAY, hours_lookup([]), 60) == []

    def test_invalid_date_has_no_slots(self):
        assert get_time_slots_for_date("not-a-date", hours_lookup(DEFAULT_BUSINESS_HOURS)) == []

    def test_available_slots_skip_booked_and_blocked(self, repository):
        store = CalendarStore()
        store.block_time_slot(MONDAY, "7:30 PM")
        repository.create_booking(make_request(MONDAY, "8:30 PM"))
        context = build_context(store, repository, now=NOW, buffer_minutes=30)
        assert get_available_slots(MONDAY, context, 60) == ["6:30 PM", "9:30 PM"]

    def test_every_listed_slot_passes_the_check(self, context):
        for slot in get_available_slots(SATURDAY, context, 60):
            assert is_slot_available(SATURDAY, slot, context)


class TestDateSearch:
    def test_next_available_dates(self, repository):
        store = CalendarStore()
        store.block_day(SUNDAY)
        context = build_context(store, repository, now=NOW, buffer_minutes=30)
        dates = get_available_dates(context, start=date(2025, 6, 14), limit=2, lookahead_days=7)
        assert [d["date"] for d in dates] == [SATURDAY, MONDAY]
        assert dates[0]["day_name"] == "Saturday"
        assert dates[0]["slot_count"] > 0

    def test_find_next_available_same_evening(self, context):
        assert find_next_available(context, lookahead_days=7) == "2025-06-13 6:30 PM"

    def test_zero_limit_returns_nothing(self, context):
        assert get_available_dates(context, limit=0, lookahead_days=7) == []

    def test_zero_lookahead_returns_nothing(self, context):
        assert get_available_dates(context, limit=3, lookahead_days=0) == []
        assert find_next_available(context, lookahead_days=0) is None

    def test_find_next_available_none(self):
        context = _context(business_hours=hours_lookup([]))
        assert find_next_available(context, lookahead_days=7) is None
