"""
Datetime utility functions.

Timestamps are stored in UTC. Calendar days, time slots and display strings
use the venue timezone from APP_TIMEZONE.
"""

import os
from datetime import date, datetime, time, timedelta
from typing import Optional
import pytz

DEFAULT_TIMEZONE = "America/New_York"


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def get_local_timezone():
    """
    Venue timezone used for days, time slots and display.

    Raises:
        pytz.UnknownTimeZoneError: If APP_TIMEZONE is not a known zone name
    """
    return pytz.timezone(os.getenv("APP_TIMEZONE") or DEFAULT_TIMEZONE)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes and convert aware ones to UTC.

    Some backends (SQLite) hand back naive datetimes even for
    ``DateTime(timezone=True)`` columns.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def to_local(value: Optional[datetime]) -> Optional[datetime]:
    """Convert a stored timestamp to venue time."""
    if value is None:
        return None
    return ensure_utc(value).astimezone(get_local_timezone())


def today_local() -> date:
    """Current calendar date at the venue."""
    return to_local(utcnow()).date()


def day_bounds(day: date):
    """Return [start, end) UTC datetimes covering a venue calendar day."""
    tz = get_local_timezone()
    start = tz.localize(datetime.combine(day, time()))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time()))
    return start.astimezone(pytz.UTC), end.astimezone(pytz.UTC)


def format_match_time(value: datetime, now: Optional[datetime] = None) -> str:
    """
    Format a match time for display in venue time.

    Examples:
        "Today at 7:00 PM", "Tomorrow at 5:30 PM", "Sat, Jun 7 at 9:00 AM"
    """
    value = to_local(value)
    now = to_local(now) if now is not None else to_local(utcnow())

    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    clock = f"{hour}:{value.minute:02d} {suffix}"

    delta_days = (value.date() - now.date()).days
    if delta_days == 0:
        return f"Today at {clock}"
    if delta_days == 1:
        return f"Tomorrow at {clock}"
    return f"{value.strftime('%a, %b')} {value.day} at {clock}"
