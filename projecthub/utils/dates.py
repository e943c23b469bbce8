"""
Calendar helpers shared by report submission and missing-update detection.

All report dates are plain calendar dates interpreted in UTC. Timestamps read
back from SQLite come without tzinfo; ``as_utc`` normalizes both cases.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, UTC
from typing import Iterator, Optional, Tuple


def now_utc() -> datetime:
    return datetime.now(UTC)


def today_utc() -> date:
    return now_utc().date()


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes; convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_date(value) -> Optional[date]:
    """Calendar date (UTC) of a datetime, or the date itself."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value).date()
    return value


def is_weekday(day: date) -> bool:
    return day.weekday() < 5


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def daterange(start: date, end: date) -> Iterator[date]:
    """Yield each day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def parse_month(value: str) -> Tuple[date, date]:
    """Parse ``YYYY-MM`` into the first and last day of that month.

    Raises:
        ValueError: if the value is not a valid month
    """
    try:
        year_str, month_str = value.strip().split("-", 1)
        year, month = int(year_str), int(month_str)
        first = date(year, month, 1)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid month '{value}', expected YYYY-MM") from exc
    last = date(year, month, calendar.monthrange(year, month)[1])
    return first, last


def parse_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` (a trailing time component is ignored)."""
    try:
        return date.fromisoformat(value.strip()[:10])
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc


def start_of_week_sunday(day: date) -> date:
    # weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def end_of_week_saturday(day: date) -> date:
    return start_of_week_sunday(day) + timedelta(days=6)


def start_of_week_monday(day: date) -> date:
    return day - timedelta(days=day.weekday())


def month_calendar_range(first: date, last: date) -> Tuple[date, date]:
    """Full Sunday-start weeks covering the month."""
    return start_of_week_sunday(first), end_of_week_saturday(last)


def format_time_12h(value: Optional[datetime]) -> str:
    """Render ``3:05 PM`` style times; ``-`` when there is no timestamp."""
    if value is None:
        return "-"
    value = as_utc(value)
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"
