"""Shared utilities used across the quote and scheduling modules."""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

_TWELVE_HOUR = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp])\.?\s*[Mm]\.?$")
_TWENTY_FOUR_HOUR = re.compile(r"^(\d{1,2}):(\d{2})$")


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("(404) 555-0123")
        '4045550123'
        >>> normalize_phone("+1 404 555 0123")
        '+14045550123'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def parse_time_to_minutes(value: str) -> Optional[int]:
    """Convert "h:mm AM/PM" or "HH:MM" into minutes past midnight.

    12 AM maps to hour 0 and 12 PM stays hour 12. Returns None for
    anything that is not a real clock time.

    Examples:
        >>> parse_time_to_minutes("7:30 PM")
        1170
        >>> parse_time_to_minutes("12:15 AM")
        15
        >>> parse_time_to_minutes("18:30")
        1110
    """
    if not isinstance(value, str):
        return None
    text = value.strip()

    match = _TWELVE_HOUR.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if not 1 <= hour <= 12 or minute > 59:
            return None
        meridiem = match.group(3).upper()
        if hour == 12:
            hour = 0
        if meridiem == "P":
            hour += 12
        return hour * 60 + minute

    match = _TWENTY_FOUR_HOUR.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            return None
        return hour * 60 + minute

    return None


def format_minutes(minutes: int) -> str:
    """Render minutes past midnight as a "h:mm AM" slot label."""
    hour, minute = divmod(minutes % (24 * 60), 60)
    suffix = "AM" if hour < 12 else "PM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {suffix}"


def parse_iso_date(value: Union[str, date]) -> Optional[date]:
    """Parse a YYYY-MM-DD string. Returns None when it is not a real date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def day_of_week(day: date) -> int:
    """Day-of-week index with 0=Sunday through 6=Saturday."""
    return (day.weekday() + 1) % 7


def format_price(amount: Union[Decimal, int, float, str], symbol: str = "$") -> str:
    """Format a whole-unit price for display.

    Examples:
        >>> format_price(Decimal("275"))
        '$275'
        >>> format_price("1250")
        '$1,250'
    """
    value = Decimal(str(amount)).quantize(Decimal("1"))
    if value < 0:
        return f"-{symbol}{-value:,}"
    return f"{symbol}{value:,}"
