"""
Proximity resolver + nearby-task correlator.

Pure, synchronous functions over already-fetched data:
- `resolve_nearby`: ids of candidates within `threshold_m` of the user
- `correlate`: tasks whose id (or linked location id) is in a nearby set
- `nearby_tasks`: resolve directly against the tasks' own coordinates

No I/O, no caching, no defaults for the threshold. Callers fetch inputs and
pass the threshold explicitly (see `bloomtask.proximity.service`).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from bloomtask.core.geo import distance
from bloomtask.domain.models import Coordinate, Task, as_candidates


def resolve_nearby(
    user: Coordinate | None,
    candidates: Iterable[tuple[str, Coordinate | None]],
    threshold_m: float,
) -> set[str]:
    """Return ids of candidates whose distance to `user` is <= `threshold_m`.

    A missing user coordinate or an empty candidate list yields an empty set;
    candidates without a coordinate are skipped.
    """
    if user is None:
        return set()

    out: set[str] = set()
    for candidate_id, coord in candidates:
        if coord is None:
            continue
        if distance(user, coord) <= threshold_m:
            out.add(candidate_id)
    return out


def correlate(nearby_ids: set[str], tasks: Sequence[Task]) -> set[str]:
    """Return ids of tasks flagged nearby by id or by their linked location id."""
    if not nearby_ids:
        return set()
    return {
        t.id
        for t in tasks
        if t.id in nearby_ids or (t.location_id is not None and t.location_id in nearby_ids)
    }


def nearby_tasks(user: Coordinate | None, tasks: Sequence[Task], threshold_m: float) -> set[str]:
    """Flag tasks using each task's own coordinate."""
    return resolve_nearby(user, as_candidates(tasks), threshold_m)
