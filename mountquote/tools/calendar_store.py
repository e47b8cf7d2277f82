"""
In-memory calendar store for admin-managed scheduling data.

Holds the weekly business hours plus blocked days and blocked time slots.
The admin screens write here; the availability check only reads. In
production this would sit on the application database.
"""

import logging
import threading
from typing import Iterable, Optional

from mountquote.schemas.calendar_schema import BlockedDay, BlockedSlot, BusinessHoursEntry
from mountquote.utils import parse_iso_date, parse_time_to_minutes

logger = logging.getLogger(__name__)

DEFAULT_BUSINESS_HOURS: tuple[BusinessHoursEntry, ...] = (
    BusinessHoursEntry(day_of_week=0, start_time="11:00", end_time="19:00"),
    BusinessHoursEntry(day_of_week=1, start_time="18:30", end_time="22:30"),
    BusinessHoursEntry(day_of_week=2, start_time="18:30", end_time="22:30"),
    BusinessHoursEntry(day_of_week=3, start_time="18:30", end_time="22:30"),
    BusinessHoursEntry(day_of_week=4, start_time="18:30", end_time="22:30"),
    BusinessHoursEntry(day_of_week=5, start_time="18:30", end_time="22:30"),
    BusinessHoursEntry(day_of_week=6, start_time="11:00", end_time="19:00"),
)


def _same_time(a: Optional[str], b: Optional[str]) -> bool:
    """Compare slot times by clock value so "7:30 PM" matches "19:30"."""
    if a is None or b is None:
        return a is b
    minutes_a, minutes_b = parse_time_to_minutes(a), parse_time_to_minutes(b)
    if minutes_a is None or minutes_b is None:
        return a.strip() == b.strip()
    return minutes_a == minutes_b


class CalendarStore:
    """Business hours (one entry per weekday) and admin exclusions."""

    def __init__(
        self, business_hours: Optional[Iterable[BusinessHoursEntry]] = None
    ) -> None:
        self._lock = threading.Lock()
        self._hours: dict[int, BusinessHoursEntry] = {}
        self._blocked_days: dict[str, BlockedDay] = {}
        self._blocked_slots: list[BlockedSlot] = []
        for entry in business_hours if business_hours is not None else DEFAULT_BUSINESS_HOURS:
            self._hours[entry.day_of_week] = entry

    # ------------------------------------------------------------------ #
    # Business hours
    # ------------------------------------------------------------------ #

    def get_business_hours(self, day_of_week: int) -> Optional[BusinessHoursEntry]:
        return self._hours.get(day_of_week)

    def list_business_hours(self) -> list[BusinessHoursEntry]:
        return [self._hours[day] for day in sorted(self._hours)]

    def set_business_hours(self, entry: BusinessHoursEntry) -> BusinessHoursEntry:
        """Insert or replace the entry for a weekday."""
        with self._lock:
            self._hours[entry.day_of_week] = entry
        logger.info(
            "Business hours set for day %d: %s-%s (available=%s)",
            entry.day_of_week, entry.start_time, entry.end_time, entry.is_available,
        )
        return entry

    def remove_business_hours(self, day_of_week: int) -> bool:
        with self._lock:
            removed = self._hours.pop(day_of_week, None)
        return removed is not None

    # ------------------------------------------------------------------ #
    # Blocked time slots
    # ------------------------------------------------------------------ #

    def block_time_slot(self, date: str, time: Optional[str], reason: Optional[str] = None) -> BlockedSlot:
        """Block one slot; blocking an already-blocked slot only updates the reason."""
        with self._lock:
            for index, slot in enumerate(self._blocked_slots):
                if slot.date == date and _same_time(slot.time, time):
                    if reason:
                        slot = slot.model_copy(update={"reason": reason})
                        self._blocked_slots[index] = slot
                    return slot
            slot = BlockedSlot(date=date, time=time, reason=reason)
            self._blocked_slots.append(slot)
        logger.info("Time slot blocked: %s %s", date, time)
        return slot

    def block_time_slots(self, date: str, times: Iterable[str], reason: Optional[str] = None) -> list[BlockedSlot]:
        return [self.block_time_slot(date, time, reason) for time in times]

    def unblock_time_slot(self, date: str, time: Optional[str]) -> bool:
        with self._lock:
            before = len(self._blocked_slots)
            self._blocked_slots = [
                s for s in self._blocked_slots
                if not (s.date == date and _same_time(s.time, time))
            ]
            removed = len(self._blocked_slots) < before
        if removed:
            logger.info("Time slot unblocked: %s %s", date, time)
        return removed

    def get_blocked_slots(self, date: Optional[str] = None) -> list[BlockedSlot]:
        if date is None:
            return list(self._blocked_slots)
        return [s for s in self._blocked_slots if s.date == date]

    def get_blocked_time_slots_for_range(self, start_date: str, end_date: str) -> dict[str, list[str]]:
        """Blocked times grouped by date, for dates within [start_date, end_date]."""
        start, end = parse_iso_date(start_date), parse_iso_date(end_date)
        if start is None or end is None:
            return {}
        result: dict[str, list[str]] = {}
        for slot in self._blocked_slots:
            slot_date = parse_iso_date(slot.date)
            if slot_date is None or not start <= slot_date <= end or slot.time is None:
                continue
            result.setdefault(slot.date, []).append(slot.time)
        return result

    # ------------------------------------------------------------------ #
    # Blocked days
    # ------------------------------------------------------------------ #

    def block_day(self, date: str, reason: Optional[str] = None) -> BlockedDay:
        with self._lock:
            existing = self._blocked_days.get(date)
            if existing is not None and not reason:
                return existing
            day = BlockedDay(date=date, reason=reason or (existing.reason if existing else None))
            self._blocked_days[date] = day
        logger.info("Day blocked: %s", date)
        return day

    def unblock_day(self, date: str) -> bool:
        with self._lock:
            removed = self._blocked_days.pop(date, None)
        if removed is not None:
            logger.info("Day unblocked: %s", date)
        return removed is not None

    def get_blocked_days(self) -> list[BlockedDay]:
        return list(self._blocked_days.values())

    def get_blocked_days_for_range(self, start_date: str, end_date: str) -> list[str]:
        start, end = parse_iso_date(start_date), parse_iso_date(end_date)
        if start is None or end is None:
            return []
        dates = []
        for day in self._blocked_days.values():
            parsed = parse_iso_date(day.date)
            if parsed is not None and start <= parsed <= end:
                dates.append(day.date)
        return sorted(dates)

    def reset(self) -> None:
        """Clear exclusions and restore default hours. Used by test fixtures."""
        with self._lock:
            self._hours = {e.day_of_week: e for e in DEFAULT_BUSINESS_HOURS}
            self._blocked_days.clear()
            self._blocked_slots.clear()
