"""
API routes.

Endpoints:
- POST `/api/proximity/resolve`: pure resolve over inline candidates.
- POST `/api/proximity/tasks`: flag nearby tasks from an inline task list.
- GET  `/api/proximity/check`: owner-scoped check against the remote store.
- GET  `/api/distance`: great-circle distance between two points.
- POST `/api/digest/weekly`: weekly digest over an inline task list.
- GET  `/api/settings`: public settings (secrets redacted).
"""

from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from zoneinfo import ZoneInfo

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from bloomtask.config.settings import get_settings
from bloomtask.core.errors import InvalidOwnerIdError
from bloomtask.core.geo import distance
from bloomtask.digest.weekly import build_weekly_digest
from bloomtask.domain.models import Coordinate, Task, WeeklyDigest
from bloomtask.ingestion.store_client import StoreClient
from bloomtask.proximity.resolver import nearby_tasks, resolve_nearby
from bloomtask.proximity.service import ProximityService

router = APIRouter()


class CandidateIn(BaseModel):
    id: str
    coordinate: Coordinate | None = None


class ResolveRequest(BaseModel):
    user: Coordinate | None = None
    candidates: list[CandidateIn] = Field(default_factory=list)
    threshold_m: float = Field(..., ge=0)


class TasksRequest(BaseModel):
    user: Coordinate | None = None
    tasks: list[Task] = Field(default_factory=list)
    threshold_m: float | None = Field(default=None, ge=0)


class NearbyResponse(BaseModel):
    threshold_m: float
    nearby: list[str]


class DigestRequest(BaseModel):
    tasks: list[Task] = Field(default_factory=list)
    now: datetime | None = None


@lru_cache
def _service() -> ProximityService:
    settings = get_settings()
    return ProximityService.from_settings(StoreClient(settings), settings)


@router.post("/api/proximity/resolve", response_model=NearbyResponse)
def post_resolve(req: ResolveRequest) -> NearbyResponse:
    """Ids of the inline candidates within `threshold_m` of `user`."""
    pairs = [(c.id, c.coordinate) for c in req.candidates]
    nearby = resolve_nearby(req.user, pairs, req.threshold_m)
    return NearbyResponse(threshold_m=req.threshold_m, nearby=sorted(nearby))


@router.post("/api/proximity/tasks", response_model=NearbyResponse)
def post_nearby_tasks(req: TasksRequest) -> NearbyResponse:
    threshold = req.threshold_m if req.threshold_m is not None else get_settings().proximity.tasks_threshold_m
    return NearbyResponse(threshold_m=threshold, nearby=sorted(nearby_tasks(req.user, req.tasks, threshold)))


@router.get("/api/proximity/check")
def get_proximity_check(
    owner_id: str,
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
) -> dict:
    """Saved locations and tasks of `owner_id` near (lat, lon)."""
    service = _service()
    user = Coordinate(latitude=lat, longitude=lon)
    try:
        locations, tasks = service.check(user, owner_id)
    except InvalidOwnerIdError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "locations": {"threshold_m": service.locations_threshold_m, "nearby": sorted(locations)},
        "tasks": {"threshold_m": service.tasks_threshold_m, "nearby": sorted(tasks)},
    }


@router.get("/api/distance")
def get_distance(
    lat1: float = Query(..., ge=-90, le=90),
    lon1: float = Query(..., ge=-180, le=180),
    lat2: float = Query(..., ge=-90, le=90),
    lon2: float = Query(..., ge=-180, le=180),
) -> dict:
    a = Coordinate(latitude=lat1, longitude=lon1)
    b = Coordinate(latitude=lat2, longitude=lon2)
    return {"meters": distance(a, b)}


@router.post("/api/digest/weekly", response_model=WeeklyDigest)
def post_weekly_digest(req: DigestRequest) -> WeeklyDigest:
    settings = get_settings()
    tz = settings.app.timezone
    now = req.now or datetime.now(ZoneInfo(tz))
    return build_weekly_digest(
        req.tasks,
        now,
        timezone=tz,
        week_starts_on=settings.digest.week_starts_on,
        top_hours=settings.digest.top_hours,
    )


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return safe-to-expose settings (credentials removed)."""
    data = get_settings().model_dump(mode="json")
    ingestion = data.get("ingestion", {})
    ingestion.get("store", {}).pop("api_key", None)
    for provider in ingestion.get("weather", {}).values():
        if isinstance(provider, dict):
            provider.pop("api_key", None)
    return {
        "app": {"name": data["app"]["name"], "timezone": data["app"]["timezone"]},
        "proximity": data.get("proximity", {}),
        "digest": data.get("digest", {}),
        "ingestion": ingestion,
    }
