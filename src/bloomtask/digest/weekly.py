"""
Weekly productivity digest.

Aggregates already-fetched tasks into a `WeeklyDigest`:
- tasks due this week, how many are completed, and the completion rate
- tasks still open and due next week
- per-location totals (all tasks with a `location_label`)
- completions per weekday, and the most productive completion hours
"""

from __future__ import annotations

import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Sequence
from zoneinfo import ZoneInfo

from bloomtask.core.time import ensure_tz, start_of_week
from bloomtask.domain.models import HourCount, LocationStats, Task, WeeklyDigest


def _rate(part: int, whole: int) -> int:
    # Half-up, so 12.5% shows as 13%.
    return math.floor(part / whole * 100 + 0.5) if whole > 0 else 0


def build_weekly_digest(
    tasks: Sequence[Task],
    now: datetime,
    *,
    timezone: str = "UTC",
    week_starts_on: int = 0,
    top_hours: int = 3,
) -> WeeklyDigest:
    """Summarize `tasks` for the week containing `now`."""
    tz = ZoneInfo(timezone)
    today = ensure_tz(now, timezone).astimezone(tz).date()
    week_start = start_of_week(today, week_starts_on)
    week_end = week_start + timedelta(days=6)
    next_start = week_end + timedelta(days=1)
    next_end = next_start + timedelta(days=6)

    this_week = [t for t in tasks if t.due_date is not None and week_start <= t.due_date <= week_end]
    completed = [t for t in this_week if t.is_completed]
    upcoming = [
        t for t in tasks if not t.is_completed and t.due_date is not None and next_start <= t.due_date <= next_end
    ]

    daily = [0] * 7
    for t in completed:
        # Buckets are Sunday..Saturday regardless of week_starts_on.
        daily[(t.due_date.weekday() + 1) % 7] += 1

    totals: dict[str, list[int]] = {}
    for t in tasks:
        if not t.location_label:
            continue
        bucket = totals.setdefault(t.location_label, [0, 0])
        bucket[0] += 1
        if t.is_completed:
            bucket[1] += 1
    by_location = [
        LocationStats(name=name, total=total, completed=done, completion_rate=_rate(done, total))
        for name, (total, done) in totals.items()
    ]

    hours: Counter[int] = Counter()
    for t in tasks:
        if t.is_completed and t.completed_time is not None:
            hours[ensure_tz(t.completed_time, timezone).astimezone(tz).hour] += 1
    # Ties keep the earlier hour first.
    ranked = sorted(hours.items(), key=lambda kv: (-kv[1], kv[0]))[:top_hours]

    return WeeklyDigest(
        week_start=week_start,
        week_end=week_end,
        total_tasks=len(this_week),
        completed_tasks=len(completed),
        upcoming_tasks=len(upcoming),
        completion_rate=_rate(len(completed), len(this_week)),
        by_location=by_location,
        daily_completions=daily,
        productivity_hours=[HourCount(hour=h, count=c) for h, c in ranked if c > 0],
        has_completion_time_data=bool(hours),
    )


def format_hour(hour: int) -> str:
    """Format 0..23 as `12 AM` .. `11 PM`."""
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12} {suffix}"
