"""
Domain models (Pydantic).

These types are the contract between the store client, the proximity core, and
the CLI/API surfaces:
- `Coordinate`: the validated lat/lon value type (range-checked once, here)
- `StoredLocation` / `Task`: rows fetched from the remote data store
- `WeeklyDigest`: the aggregated productivity summary

Only `Coordinate` matters to the proximity core; the remaining task fields are
used by the digest and agenda helpers.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Coordinate(BaseModel):
    """A geographic point in decimal degrees (immutable)."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


def coordinate_or_none(raw: Any) -> Coordinate | None:
    """Build a `Coordinate` from a row-ish mapping; None if absent or out of range."""
    if not isinstance(raw, dict):
        return None
    lat = raw.get("latitude")
    lon = raw.get("longitude")
    if lat is None or lon is None:
        return None
    try:
        return Coordinate(latitude=float(lat), longitude=float(lon))
    except (TypeError, ValueError):
        return None


class StoredLocation(BaseModel):
    """A place the user saved."""

    id: str
    owner: str | None = None
    coordinate: Coordinate | None = None
    label: str = ""
    created_at: datetime | None = None


class Task(BaseModel):
    """A user task; only `coordinate` is relevant to proximity checks."""

    id: str
    coordinate: Coordinate | None = None
    title: str = ""
    is_completed: bool = False
    due_date: date | None = None
    completed_time: datetime | None = None
    location_label: str | None = None
    location_id: str | None = None
    category: str = "default"
    priority: str | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _date_only(cls, v: Any) -> Any:
        # Rows may carry a full timestamp; the calendar only cares about the day.
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        if isinstance(v, datetime):
            return v.date()
        return v


class Candidate(Protocol):
    """Anything with an id and an optional coordinate."""

    id: str
    coordinate: Coordinate | None


def as_candidates(records: Iterable[Candidate]) -> list[tuple[str, Coordinate | None]]:
    """Flatten stored locations / tasks into `(id, coordinate)` pairs."""
    return [(r.id, r.coordinate) for r in records]


class LocationStats(BaseModel):
    name: str
    total: int
    completed: int
    completion_rate: int = Field(..., ge=0, le=100)


class HourCount(BaseModel):
    hour: int = Field(..., ge=0, le=23)
    count: int = Field(..., ge=0)


class WeeklyDigest(BaseModel):
    """Productivity summary for one calendar week."""

    week_start: date
    week_end: date
    total_tasks: int
    completed_tasks: int
    upcoming_tasks: int
    completion_rate: int = Field(..., ge=0, le=100)
    by_location: list[LocationStats] = Field(default_factory=list)
    daily_completions: list[int] = Field(default_factory=lambda: [0] * 7)
    productivity_hours: list[HourCount] = Field(default_factory=list)
    has_completion_time_data: bool = False
