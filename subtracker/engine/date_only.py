"""
Date-Only Arithmetic

A billing date is a calendar day, not an instant. Storing it as midnight UTC
makes it read back as the previous day anywhere west of Greenwich, so every
date that crosses a boundary (storage, form input, "today") is funnelled
through this module.

The canonical instant for a calendar day is 12:00 UTC: every time zone in
use today (UTC-12 to UTC+14) still reads that instant as the same y/m/d.
"""

import calendar
import re
from datetime import MAXYEAR, MINYEAR, date, datetime, time, timezone
from typing import Optional, Union

DateLike = Union[date, datetime]

NEUTRAL_TIME = time(12, 0, tzinfo=timezone.utc)
DATE_ONLY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DEFAULT_DISPLAY_FORMAT = "%d %b %Y"


def normalize(value: DateLike) -> datetime:
    """
    Pin a date to its canonical instant (12:00 UTC of the same calendar day).

    Aware datetimes contribute their UTC calendar day, naive datetimes their
    own calendar day. Plain dates are taken as-is.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        day = value.date()
    else:
        day = value
    return datetime.combine(day, NEUTRAL_TIME)


def to_date_only(value: DateLike) -> date:
    return normalize(value).date()


def to_date_only_string(value: DateLike) -> str:
    """Render as YYYY-MM-DD (zero padded, four digit year)."""
    day = to_date_only(value)
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def from_date_only_string(value: str) -> date:
    """
    Parse a YYYY-MM-DD string.

    Raises:
        ValueError: if the string is not in 4-2-2 digit form or names a day
            that does not exist (e.g. 2024-02-30).
    """
    if not DATE_ONLY_PATTERN.match(value):
        raise ValueError(f"Date must be in YYYY-MM-DD format: {value!r}")
    year, month, day = (int(part) for part in value.split("-"))
    return date(year, month, day)


def is_valid_date_only_string(value: str) -> bool:
    """True iff value matches YYYY-MM-DD and round-trips exactly."""
    if not isinstance(value, str) or not DATE_ONLY_PATTERN.match(value):
        return False
    try:
        parsed = from_date_only_string(value)
    except ValueError:
        return False
    return to_date_only_string(parsed) == value


def local_today(reference_now: Optional[DateLike] = None) -> date:
    """
    The calendar day of reference_now in its own time zone.

    Unlike normalize(), an aware "now" is NOT shifted to UTC: "today" is
    whatever day it is where the user is looking at the dashboard.
    """
    if reference_now is None:
        return datetime.now().date()
    if isinstance(reference_now, datetime):
        return reference_now.date()
    return reference_now


def days_between(target: DateLike, reference_now: Optional[DateLike] = None) -> int:
    """
    Signed number of days from today (per reference_now) to target.

    Negative means target is in the past. Time-of-day on either side has
    no effect on the result.
    """
    return (to_date_only(target) - local_today(reference_now)).days


def add_months(value: DateLike, month_delta: int) -> date:
    """
    Calendar month addition.

    The day of month is clamped to the last day of the target month,
    so Jan 31 + 1 month is Feb 29 in a leap year and Feb 28 otherwise.

    Raises:
        ValueError: if the result falls outside years 1..9999.
    """
    start = to_date_only(value)
    month_index = start.month - 1 + month_delta
    target_year = start.year + month_index // 12
    if not MINYEAR <= target_year <= MAXYEAR:
        raise ValueError(
            f"Date out of range: {to_date_only_string(start)} + {month_delta} months"
        )
    target_month = month_index % 12 + 1
    max_day = calendar.monthrange(target_year, target_month)[1]
    return date(target_year, target_month, min(start.day, max_day))


def format_date_only(value: DateLike, fmt: str = DEFAULT_DISPLAY_FORMAT) -> str:
    """Presentation formatting, e.g. '05 Mar 2024'."""
    return to_date_only(value).strftime(fmt)
