"""
Datetime utilities for consistent timezone handling across the application.

All instants handled by the dashboard are timezone-aware. Calendar
boundaries (today, this week, this month, this year) are computed in the
shop's local timezone, never in UTC.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def get_timezone(name: Optional[str] = None) -> tzinfo:
    """
    Resolve a timezone name, falling back to the configured shop timezone.

    Unknown names resolve to UTC.
    """
    if name is None:
        from config import settings

        name = settings.timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def ensure_aware(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Attach tz (default: shop timezone) to a naive datetime."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz or get_timezone())
    return dt


def parse_iso_datetime(iso_string: str, tz: Optional[tzinfo] = None) -> datetime:
    """
    Parse ISO format datetime string to timezone-aware datetime.
    Handles both 'Z' suffix and '+00:00' timezone formats.

    Naive strings are interpreted in tz (default: shop timezone).

    Raises:
        ValueError: If datetime string cannot be parsed
    """
    normalized = iso_string.strip().replace("Z", "+00:00")
    try:
        dt = datetime.fromisoformat(normalized)
    except ValueError as e:
        raise ValueError(f"Invalid datetime string: {iso_string}") from e
    return ensure_aware(dt, tz)


def to_iso_string(dt: datetime) -> str:
    """Convert datetime to ISO format string (naive values treated as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


class Clock:
    """
    Injectable source of "now" in the shop's local timezone.

    Pass `fixed` to freeze time, e.g. in tests.
    """

    def __init__(self, tz: Optional[tzinfo] = None, fixed: Optional[datetime] = None):
        self.tz = tz or get_timezone()
        self._fixed = fixed

    def now(self) -> datetime:
        if self._fixed is not None:
            return ensure_aware(self._fixed, self.tz).astimezone(self.tz)
        return datetime.now(self.tz)

    def __call__(self) -> datetime:
        return self.now()


@dataclass(frozen=True)
class DateWindow:
    """Half-open interval [start, end) of aware instants."""

    start: datetime
    end: datetime

    def contains(self, instant: Optional[datetime]) -> bool:
        if instant is None:
            return False
        return self.start <= instant < self.end

    __contains__ = contains


def _local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min).replace(tzinfo=tz)


def _local_now(now: datetime) -> datetime:
    # Naive "now" values are taken as already local
    return ensure_aware(now)


def today_window(now: datetime) -> DateWindow:
    """The local calendar day containing now."""
    now = _local_now(now)
    tz = now.tzinfo
    start = _local_midnight(now.date(), tz)
    return DateWindow(start, _local_midnight(now.date() + timedelta(days=1), tz))


def week_window(now: datetime) -> DateWindow:
    """The local calendar week (Sunday to Saturday) containing now."""
    now = _local_now(now)
    tz = now.tzinfo
    # date.weekday(): Monday == 0 ... Sunday == 6
    days_since_sunday = (now.weekday() + 1) % 7
    first = now.date() - timedelta(days=days_since_sunday)
    return DateWindow(
        _local_midnight(first, tz), _local_midnight(first + timedelta(days=7), tz)
    )


def month_window(now: datetime) -> DateWindow:
    """The local calendar month containing now."""
    now = _local_now(now)
    tz = now.tzinfo
    first = now.date().replace(day=1)
    days = calendar.monthrange(first.year, first.month)[1]
    return DateWindow(
        _local_midnight(first, tz), _local_midnight(first + timedelta(days=days), tz)
    )


def year_window(now: datetime) -> DateWindow:
    """The local calendar year containing now."""
    now = _local_now(now)
    tz = now.tzinfo
    return DateWindow(
        _local_midnight(date(now.year, 1, 1), tz),
        _local_midnight(date(now.year + 1, 1, 1), tz),
    )


def days_in_month(now: datetime) -> int:
    return calendar.monthrange(now.year, now.month)[1]
