from datetime import date

from starlette.testclient import TestClient

from bloomtask.api.app import app
from bloomtask.domain.models import Coordinate, StoredLocation, Task
from bloomtask.proximity.service import ProximityService

OWNER = "3f2b8c1e-9a4d-4f6b-8e2a-1c5d7e9f0a12"
USER = {"latitude": 1.3521, "longitude": 103.8198}
NEAR = {"latitude": 1.3521, "longitude": 103.8199}
FAR = {"latitude": 1.4521, "longitude": 103.9198}


class _StubStore:
    def list_locations(self, owner_id: str):
        return [StoredLocation(id="home", owner=owner_id, coordinate=Coordinate(**NEAR), label="Home")]

    def list_tasks(self, owner_id: str):
        return [Task(id="t1", coordinate=Coordinate(**NEAR)), Task(id="t2", coordinate=Coordinate(**FAR))]


def test_resolve_endpoint_requires_explicit_threshold():
    payload = {"user": USER, "candidates": [{"id": "a", "coordinate": NEAR}]}
    with TestClient(app) as c:
        resp = c.post("/api/proximity/resolve", json=payload)
    assert resp.status_code == 422


def test_resolve_endpoint_returns_nearby_ids():
    payload = {
        "user": USER,
        "candidates": [
            {"id": "a", "coordinate": NEAR},
            {"id": "b", "coordinate": FAR},
            {"id": "c", "coordinate": None},
        ],
        "threshold_m": 15,
    }
    with TestClient(app) as c:
        resp = c.post("/api/proximity/resolve", json=payload)
    assert resp.status_code == 200
    assert resp.json() == {"threshold_m": 15, "nearby": ["a"]}


def test_resolve_endpoint_without_user_is_empty():
    payload = {"candidates": [{"id": "a", "coordinate": NEAR}], "threshold_m": 1e6}
    with TestClient(app) as c:
        resp = c.post("/api/proximity/resolve", json=payload)
    assert resp.json()["nearby"] == []


def test_out_of_range_coordinate_is_rejected_at_the_boundary():
    payload = {"user": {"latitude": 95, "longitude": 0}, "candidates": [], "threshold_m": 15}
    with TestClient(app) as c:
        resp = c.post("/api/proximity/resolve", json=payload)
    assert resp.status_code == 422


def test_nearby_tasks_endpoint_defaults_to_configured_threshold():
    payload = {"user": USER, "tasks": [{"id": "t1", "coordinate": NEAR}, {"id": "t2", "coordinate": FAR}]}
    with TestClient(app) as c:
        resp = c.post("/api/proximity/tasks", json=payload)
    assert resp.status_code == 200
    assert resp.json() == {"threshold_m": 50, "nearby": ["t1"]}


def test_check_endpoint_uses_the_injected_store(monkeypatch):
    import bloomtask.api.routes as routes

    service = ProximityService(_StubStore(), locations_threshold_m=15, tasks_threshold_m=50)
    monkeypatch.setattr(routes, "_service", lambda: service)

    with TestClient(app) as c:
        ok = c.get("/api/proximity/check", params={"owner_id": OWNER, "lat": 1.3521, "lon": 103.8198})
        bad = c.get("/api/proximity/check", params={"owner_id": "nope", "lat": 1.3521, "lon": 103.8198})

    assert ok.status_code == 200
    assert ok.json()["locations"]["nearby"] == ["home"]
    assert ok.json()["tasks"]["nearby"] == ["t1"]
    assert bad.status_code == 400


def test_distance_endpoint():
    with TestClient(app) as c:
        resp = c.get("/api/distance", params={"lat1": 0, "lon1": 0, "lat2": 0, "lon2": 1})
    assert resp.status_code == 200
    assert abs(resp.json()["meters"] - 111_195) < 1_112


def test_weekly_digest_endpoint():
    payload = {
        "now": "2026-10-21T09:00:00+08:00",
        "tasks": [
            {"id": "1", "due_date": "2026-10-19", "is_completed": True},
            {"id": "2", "due_date": "2026-10-22", "is_completed": False},
        ],
    }
    with TestClient(app) as c:
        resp = c.post("/api/digest/weekly", json=payload)
    assert resp.status_code == 200
    data = resp.json()
    assert data["week_start"] == date(2026, 10, 18).isoformat()
    assert data["completion_rate"] == 50
    assert data["daily_completions"][1] == 1


def test_public_settings_hide_secrets():
    with TestClient(app) as c:
        data = c.get("/api/settings").json()
    assert "api_key" not in data["ingestion"]["store"]
    assert "api_key" not in data["ingestion"]["weather"]["weatherapi"]
    assert data["proximity"]["tasks_threshold_m"] == 50


def test_check_endpoint_fetches_saved_locations_once(monkeypatch):
    import bloomtask.api.routes as routes

    class CountingStore(_StubStore):
        def __init__(self):
            self.location_fetches = 0

        def list_locations(self, owner_id: str):
            self.location_fetches += 1
            return super().list_locations(owner_id)

        def list_tasks(self, owner_id: str):
            return [Task(id="linked", location_id="home"), Task(id="t2", coordinate=Coordinate(**FAR))]

    store = CountingStore()
    service = ProximityService(store, locations_threshold_m=15, tasks_threshold_m=50)
    monkeypatch.setattr(routes, "_service", lambda: service)

    with TestClient(app) as c:
        resp = c.get("/api/proximity/check", params={"owner_id": OWNER, "lat": 1.3521, "lon": 103.8198})

    assert resp.json()["tasks"]["nearby"] == ["linked"]
    assert store.location_fetches == 1
