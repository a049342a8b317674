"""
TaxDesk - Date Helpers

Calendar arithmetic shared by the deadline scan and the report aggregations.
All timestamps are handled as timezone-aware UTC; "today" and "midnight" are
taken in the engine timezone (settings.engine_timezone, UTC by default).
"""

import math
from datetime import date, datetime, time, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from taxdesk.config import settings

SECONDS_PER_DAY = 86400

# Fixed English labels so report output does not depend on the process locale
MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def engine_tz(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or settings.engine_timezone)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    """Current time. Only call at the scheduler/HTTP boundary."""
    return datetime.now(timezone.utc)


def local_today(now: datetime, tz: Optional[ZoneInfo] = None) -> date:
    return as_utc(now).astimezone(tz or engine_tz()).date()


def local_midnight(day: date, tz: Optional[ZoneInfo] = None) -> datetime:
    """Midnight at the start of ``day`` in the engine timezone, as UTC."""
    return datetime.combine(day, time.min, tzinfo=tz or engine_tz()).astimezone(timezone.utc)


def start_of_day(now: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    """Start of the calendar day containing ``now``."""
    tz = tz or engine_tz()
    return local_midnight(local_today(now, tz), tz)


def days_until(due: date, now: datetime, tz: Optional[ZoneInfo] = None) -> int:
    """
    Whole days from ``now`` to the due date, rounded up.

    0 means due today, negative means overdue by that many days.
    """
    delta = local_midnight(due, tz) - as_utc(now)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def coerce_date(value) -> date:
    """Accept a date, datetime or ISO string. Raises ValueError otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"unsupported due date value: {value!r}")


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move ``delta`` months from (year, month)."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_window(year: int, month: Optional[int] = None) -> Tuple[date, date]:
    """[start, end) dates of a calendar month, or of the whole year."""
    if month is None:
        return date(year, 1, 1), date(year + 1, 1, 1)
    next_year, next_month = shift_month(year, month, 1)
    return date(year, month, 1), date(next_year, next_month, 1)


def month_label(year: int, month: int, with_year: bool = True) -> str:
    """'Nov 2024' (or 'Nov')."""
    label = MONTH_ABBR[month - 1]
    return f"{label} {year}" if with_year else label


def format_due_date(value: date) -> str:
    """'Nov 18, 2024'."""
    return f"{MONTH_ABBR[value.month - 1]} {value.day:02d}, {value.year}"


def describe_delta(days: int) -> str:
    """Human wording for a day delta."""
    if days == 0:
        return "due today"
    if days < 0:
        overdue = -days
        return f"overdue by {overdue} day{'s' if overdue != 1 else ''}"
    return f"due in {days} day{'s' if days != 1 else ''}"
