"""
Remote data store client (PostgREST / Supabase REST surface).

The client is constructed explicitly from `Settings` and passed to callers; there
is no module-level connection. Every read is owner-scoped: the owner id is
validated as a UUID once, here, and always sent as a `user_id=eq.<id>` filter.

Rows are mapped into domain models. A row with a missing or out-of-range
coordinate becomes a record with `coordinate=None` (the resolver skips it); a
row with any other invalid field is logged and dropped.
Transport/HTTP failures are raised as `StoreError`.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, TypeVar

import httpx
from pydantic import ValidationError

from bloomtask.config.settings import Settings
from bloomtask.core.errors import InvalidOwnerIdError, StoreError
from bloomtask.core.http import delete, get_json, post_json
from bloomtask.domain.models import Coordinate, StoredLocation, Task, coordinate_or_none

logger = logging.getLogger(__name__)

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def validate_owner_id(owner_id: object) -> str:
    """Return `owner_id` if it is a UUID string, else raise `InvalidOwnerIdError`."""
    if not isinstance(owner_id, str) or not _UUID_RE.match(owner_id):
        raise InvalidOwnerIdError(owner_id)
    return owner_id


def location_from_row(row: dict[str, Any]) -> StoredLocation:
    return StoredLocation(
        id=str(row["id"]),
        owner=row.get("user_id"),
        coordinate=coordinate_or_none(row),
        label=str(row.get("label") or ""),
        created_at=row.get("created_at"),
    )


def task_from_row(row: dict[str, Any]) -> Task:
    # Task coordinates are stored as a JSON column: {"latitude", "longitude", "timestamp"}.
    return Task(
        id=str(row["id"]),
        coordinate=coordinate_or_none(row.get("location")),
        title=str(row.get("title") or ""),
        is_completed=bool(row.get("is_completed")),
        due_date=row.get("due_date"),
        completed_time=row.get("completed_time"),
        location_label=row.get("location_label"),
        location_id=row.get("location_id"),
        category=row.get("category") or "default",
        priority=row.get("priority"),
    )


T = TypeVar("T")


def _map_rows(rows: list[dict[str, Any]], mapper: Callable[[dict[str, Any]], T], table: str) -> list[T]:
    """Map rows with `mapper`, skipping (and logging) rows that fail validation."""
    out: list[T] = []
    for row in rows:
        try:
            out.append(mapper(row))
        except ValidationError as exc:
            logger.warning("Skipping malformed %s row id=%s: %s", table, row.get("id"), exc.errors()[0].get("msg"))
    return out


class StoreClient:
    """Owner-scoped access to the `user_locations` and `tasks` tables."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._store = settings.ingestion.store

    def _url(self, table: str) -> str:
        return f"{self._store.base_url.rstrip('/')}/rest/v1/{table}"

    def _headers(self, *, write: bool = False) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._store.api_key:
            headers["apikey"] = self._store.api_key
            headers["Authorization"] = f"Bearer {self._store.api_key}"
        if write:
            headers["Prefer"] = "return=representation"
        return headers

    def _select(self, table: str, owner_id: str, *, order: str) -> list[dict[str, Any]]:
        params = {"select": "*", "user_id": f"eq.{owner_id}", "order": order}
        try:
            rows = get_json(
                self._url(table),
                params=params,
                headers=self._headers(),
                timeout_seconds=self._settings.app.http_timeout_seconds,
            )
        except (httpx.HTTPError, ValueError) as exc:
            raise StoreError(f"Failed to query {table}: {exc}") from exc
        if not isinstance(rows, list):
            raise StoreError(f"Unexpected payload from {table}; expected a list")
        return [r for r in rows if isinstance(r, dict) and r.get("id") is not None]

    def list_locations(self, owner_id: str) -> list[StoredLocation]:
        """Return the owner's saved locations, newest first."""
        owner_id = validate_owner_id(owner_id)
        rows = self._select(self._store.locations_table, owner_id, order="created_at.desc")
        logger.debug("Fetched %d locations for owner=%s", len(rows), owner_id)
        return _map_rows(rows, location_from_row, self._store.locations_table)

    def list_tasks(self, owner_id: str) -> list[Task]:
        """Return the owner's tasks ordered by due date."""
        owner_id = validate_owner_id(owner_id)
        rows = self._select(self._store.tasks_table, owner_id, order="due_date.asc")
        logger.debug("Fetched %d tasks for owner=%s", len(rows), owner_id)
        return _map_rows(rows, task_from_row, self._store.tasks_table)

    def save_location(self, owner_id: str, label: str, coordinate: Coordinate) -> StoredLocation:
        """Insert a saved location and return the created record."""
        owner_id = validate_owner_id(owner_id)
        label = label.strip()
        if not label:
            raise ValueError("label must not be empty")

        payload = {
            "user_id": owner_id,
            "label": label,
            "latitude": coordinate.latitude,
            "longitude": coordinate.longitude,
        }
        try:
            rows = post_json(
                self._url(self._store.locations_table),
                payload=[payload],
                headers=self._headers(write=True),
                timeout_seconds=self._settings.app.http_timeout_seconds,
            )
        except (httpx.HTTPError, ValueError) as exc:
            raise StoreError(f"Failed to save location: {exc}") from exc

        if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
            raise StoreError("Store did not return the created location")
        logger.info("Saved location %r for owner=%s", label, owner_id)
        return location_from_row(rows[0])

    def save_task_location(self, owner_id: str, task: Task) -> StoredLocation | None:
        """Mirror a task's coordinate into `user_locations` so proximity checks see it."""
        if task.coordinate is None:
            return None
        return self.save_location(owner_id, task.title or f"Task {task.id}", task.coordinate)

    def delete_location(self, owner_id: str, location_id: str) -> None:
        """Delete one of the owner's saved locations."""
        owner_id = validate_owner_id(owner_id)
        try:
            delete(
                self._url(self._store.locations_table),
                params={"id": f"eq.{location_id}", "user_id": f"eq.{owner_id}"},
                headers=self._headers(),
                timeout_seconds=self._settings.app.http_timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise StoreError(f"Failed to delete location {location_id}: {exc}") from exc
        logger.info("Deleted location %s for owner=%s", location_id, owner_id)
