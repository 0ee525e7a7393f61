"""
Proximity checks against the remote store.

This is the caller side of the pure resolver: it reads the device location,
fetches the owner's candidates, and hands both to `resolve_nearby`.

Failure policy ("fail open" to "nothing nearby"):
- location provider fails -> no user coordinate -> empty result
- store query fails       -> logged, treated as an empty candidate list
- invalid owner id        -> `InvalidOwnerIdError` (raised before any query)
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from bloomtask.config.settings import Settings
from bloomtask.core.errors import LocationUnavailableError, StoreError
from bloomtask.domain.models import Coordinate, StoredLocation, Task, as_candidates
from bloomtask.ingestion.store_client import validate_owner_id
from bloomtask.proximity.resolver import correlate, nearby_tasks, resolve_nearby

logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    def current_coordinate(self) -> Coordinate:
        """Return the device position or raise `LocationUnavailableError`."""
        ...


class LocationStore(Protocol):
    def list_locations(self, owner_id: str) -> list[StoredLocation]: ...

    def list_tasks(self, owner_id: str) -> list[Task]: ...


class FixedLocationProvider:
    """Provider for a known position (CLI flags, API payloads, tests)."""

    def __init__(self, coordinate: Coordinate | None):
        self._coordinate = coordinate

    def current_coordinate(self) -> Coordinate:
        if self._coordinate is None:
            raise LocationUnavailableError("no location reading available")
        return self._coordinate


def read_location(provider: LocationProvider) -> Coordinate | None:
    """Return the provider's reading, or None if it is unavailable."""
    try:
        return provider.current_coordinate()
    except LocationUnavailableError as exc:
        logger.warning("Location unavailable; skipping proximity checks: %s", exc)
        return None


class ProximityService:
    """Owner-scoped proximity checks with explicit thresholds."""

    def __init__(self, store: LocationStore, *, locations_threshold_m: float, tasks_threshold_m: float):
        self._store = store
        self.locations_threshold_m = float(locations_threshold_m)
        self.tasks_threshold_m = float(tasks_threshold_m)

    @classmethod
    def from_settings(cls, store: LocationStore, settings: Settings) -> "ProximityService":
        return cls(
            store,
            locations_threshold_m=settings.proximity.locations_threshold_m,
            tasks_threshold_m=settings.proximity.tasks_threshold_m,
        )

    def _locations(self, owner_id: str) -> list[StoredLocation]:
        try:
            return self._store.list_locations(owner_id)
        except StoreError as exc:
            logger.error("Error fetching locations: %s", exc)
            return []

    def _tasks(self, owner_id: str) -> list[Task]:
        try:
            return self._store.list_tasks(owner_id)
        except StoreError as exc:
            logger.error("Error fetching tasks: %s", exc)
            return []

    def check_location_proximity(
        self,
        user: Coordinate | None,
        owner_id: str,
        locations: Sequence[StoredLocation] | None = None,
    ) -> set[str]:
        """Ids of the owner's saved locations within `locations_threshold_m`."""
        owner_id = validate_owner_id(owner_id)
        if user is None:
            return set()
        if locations is None:
            locations = self._locations(owner_id)
        nearby = resolve_nearby(user, as_candidates(locations), self.locations_threshold_m)
        logger.debug("Nearby locations for owner=%s: %s", owner_id, sorted(nearby))
        return nearby

    def check_nearby_tasks(
        self,
        user: Coordinate | None,
        owner_id: str,
        tasks: Sequence[Task] | None = None,
        locations: Sequence[StoredLocation] | None = None,
    ) -> set[str]:
        """Ids of the owner's tasks near `user`.

        A task counts as nearby if its own coordinate is within `tasks_threshold_m`,
        or if its linked saved location is. Saved locations are only fetched when
        some task links to one and `locations` was not supplied.
        """
        owner_id = validate_owner_id(owner_id)
        if user is None:
            return set()
        if tasks is None:
            tasks = self._tasks(owner_id)
        if not tasks:
            return set()

        by_coordinate = nearby_tasks(user, tasks, self.tasks_threshold_m)
        linked = [t for t in tasks if t.location_id is not None]
        by_location: set[str] = set()
        if linked:
            if locations is None:
                locations = self._locations(owner_id)
            location_ids = resolve_nearby(user, as_candidates(locations), self.tasks_threshold_m)
            by_location = correlate(location_ids, linked)

        result = by_coordinate | by_location
        logger.info("Nearby tasks for owner=%s: %d of %d", owner_id, len(result), len(tasks))
        return result

    def check(self, user: Coordinate | None, owner_id: str) -> tuple[set[str], set[str]]:
        """Nearby (location ids, task ids), fetching each table at most once."""
        owner_id = validate_owner_id(owner_id)
        if user is None:
            return set(), set()
        locations = self._locations(owner_id)
        return (
            self.check_location_proximity(user, owner_id, locations=locations),
            self.check_nearby_tasks(user, owner_id, locations=locations),
        )

    def check_from_provider(self, provider: LocationProvider, owner_id: str) -> set[str]:
        """Read the device location, then run `check_nearby_tasks`."""
        return self.check_nearby_tasks(read_location(provider), owner_id)
