"""
Time parsing and timezone normalization.

Task rows carry ISO strings (`due_date`, `completed_time`); the digest compares
them against a timezone-aware "now", so everything is normalized to aware datetimes.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo


def ensure_tz(dt: datetime, timezone: str) -> datetime:
    """Ensure `dt` has tzinfo; attach `timezone` if naive."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=ZoneInfo(timezone))
    return dt


def parse_datetime(value: str, timezone: str) -> datetime:
    """Parse ISO-8601 datetime string and ensure tzinfo is present.

    Notes:
    - Accepts a trailing `Z` (UTC) and converts it to `+00:00` for `fromisoformat`.
    - If the parsed value is naive, the provided `timezone` is attached.
    """
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    return ensure_tz(dt, timezone)


def start_of_week(day: date, week_starts_on: int = 0) -> date:
    """Return the first day of the week containing `day` (0=Sunday .. 6=Saturday)."""
    # date.weekday(): Monday=0 .. Sunday=6; shift to Sunday=0.
    dow = (day.weekday() + 1) % 7
    return day - timedelta(days=(dow - week_starts_on) % 7)
