"""Calendar/agenda grouping of tasks by due date."""

from __future__ import annotations

from datetime import date
from typing import Sequence

from bloomtask.domain.models import Task

PRIORITY_COLORS = {
    "high": "#FF6B6B",
    "medium": "#FFD93D",
    "low": "#6BCF7F",
}


def priority_color(priority: str | None, default: str) -> str:
    if not priority:
        return default
    return PRIORITY_COLORS.get(priority.lower(), default)


def tasks_for_date(tasks: Sequence[Task], day: date) -> list[Task]:
    return [t for t in tasks if t.due_date == day]


def group_by_due_date(tasks: Sequence[Task]) -> dict[date, list[Task]]:
    """Map each due date to its tasks, in date order; undated tasks are left out."""
    out: dict[date, list[Task]] = {}
    for t in sorted((t for t in tasks if t.due_date is not None), key=lambda t: t.due_date):
        out.setdefault(t.due_date, []).append(t)
    return out


def marked_dates(tasks: Sequence[Task], *, today: date, default_color: str) -> dict[str, dict]:
    """Calendar markers: one dot per task (priority color), today marked selected."""
    marked: dict[str, dict] = {}
    for day, items in group_by_due_date(tasks).items():
        marked[day.isoformat()] = {
            "marked": True,
            "dots": [{"key": t.id, "color": priority_color(t.priority, default_color)} for t in items],
        }
    today_entry = marked.setdefault(today.isoformat(), {})
    today_entry["selected"] = True
    today_entry["selected_color"] = default_color
    return marked
