"""
BloomTask CLI entrypoint.

Intended for quick local checks without the mobile app: distances, offline
proximity runs over a JSON file, owner-scoped checks against the store, the
weekly digest, and current weather for a coordinate.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

from bloomtask.config.settings import get_settings
from bloomtask.core.env import resolve_project_path
from bloomtask.core.geo import distance
from bloomtask.core.logging import configure_logging
from bloomtask.core.time import parse_datetime
from bloomtask.digest.agenda import group_by_due_date
from bloomtask.digest.weekly import build_weekly_digest, format_hour
from bloomtask.domain.models import Coordinate, coordinate_or_none
from bloomtask.ingestion.store_client import StoreClient, task_from_row
from bloomtask.ingestion.weather_client import WeatherClient
from bloomtask.proximity.resolver import resolve_nearby
from bloomtask.proximity.service import ProximityService


def _read_json_list(path: str) -> list[dict[str, Any]]:
    data = json.loads(Path(resolve_project_path(path)).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list")
    return [row for row in data if isinstance(row, dict)]


def _coordinate(args: argparse.Namespace) -> Coordinate:
    return Coordinate(latitude=float(args.lat), longitude=float(args.lon))


def _cmd_distance(args: argparse.Namespace) -> int:
    a = Coordinate(latitude=args.lat1, longitude=args.lon1)
    b = Coordinate(latitude=args.lat2, longitude=args.lon2)
    meters = distance(a, b)
    if args.json:
        print(json.dumps({"meters": meters}))
    else:
        print(f"{meters:.1f} m")
    return 0


def _cmd_nearby(args: argparse.Namespace) -> int:
    """Offline resolve over a JSON list of `{id, latitude, longitude}` rows."""
    settings = get_settings()
    threshold = args.threshold if args.threshold is not None else settings.proximity.locations_threshold_m
    rows = _read_json_list(args.candidates)
    candidates = [(str(r["id"]), coordinate_or_none(r)) for r in rows if r.get("id") is not None]

    nearby = sorted(resolve_nearby(_coordinate(args), candidates, float(threshold)))
    if args.json:
        print(json.dumps({"threshold_m": threshold, "nearby": nearby}))
        return 0
    print(f"{len(nearby)} of {len(candidates)} within {threshold:g} m")
    for cid in nearby:
        print(f"  - {cid}")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    settings = get_settings()
    service = ProximityService.from_settings(StoreClient(settings), settings)
    user = _coordinate(args)

    nearby_locations, nearby_tasks = service.check(user, args.owner)
    locations = sorted(nearby_locations)
    tasks = sorted(nearby_tasks)
    if args.json:
        print(json.dumps({"locations": locations, "tasks": tasks}))
        return 0
    print(f"Nearby saved locations ({service.locations_threshold_m:g} m): {', '.join(locations) or '-'}")
    print(f"Nearby tasks ({service.tasks_threshold_m:g} m): {', '.join(tasks) or '-'}")
    return 0


def _cmd_digest(args: argparse.Namespace) -> int:
    settings = get_settings()
    tz = settings.app.timezone
    tasks = [task_from_row(r) for r in _read_json_list(args.tasks) if r.get("id") is not None]
    now = parse_datetime(args.now, tz) if args.now else datetime.now(ZoneInfo(tz))

    digest = build_weekly_digest(
        tasks,
        now,
        timezone=tz,
        week_starts_on=settings.digest.week_starts_on,
        top_hours=settings.digest.top_hours,
    )
    if args.json:
        print(json.dumps(digest.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    print(f"Week {digest.week_start.isoformat()} .. {digest.week_end.isoformat()}")
    print(
        f"  due={digest.total_tasks} completed={digest.completed_tasks} "
        f"rate={digest.completion_rate}% upcoming={digest.upcoming_tasks}"
    )
    print("  daily: " + " ".join(str(n) for n in digest.daily_completions))
    for loc in digest.by_location:
        print(f"  @ {loc.name}: {loc.completed}/{loc.total} ({loc.completion_rate}%)")
    if digest.productivity_hours:
        print("  best hours: " + ", ".join(f"{format_hour(h.hour)} ({h.count})" for h in digest.productivity_hours))
    return 0


def _cmd_agenda(args: argparse.Namespace) -> int:
    tasks = [task_from_row(r) for r in _read_json_list(args.tasks) if r.get("id") is not None]
    grouped = group_by_due_date(tasks)
    if args.json:
        print(json.dumps({d.isoformat(): [t.id for t in items] for d, items in grouped.items()}))
        return 0
    for day, items in grouped.items():
        print(day.isoformat())
        for t in items:
            mark = "x" if t.is_completed else " "
            print(f"  [{mark}] {t.title or t.id}")
    return 0


def _cmd_weather(args: argparse.Namespace) -> int:
    settings = get_settings()
    current = WeatherClient(settings).get_current(_coordinate(args))
    if current is None:
        print("Weather unavailable")
        return 1
    if args.json:
        print(json.dumps(asdict(current)))
    else:
        print(f"{current.temp_c}°C {current.condition} (feels {current.feels_like_c}°C)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the BloomTask CLI."""
    parser = argparse.ArgumentParser(prog="bloomtask")
    sub = parser.add_subparsers(dest="command", required=True)

    d = sub.add_parser("distance", help="Great-circle distance between two points (meters).")
    d.add_argument("--lat1", required=True, type=float)
    d.add_argument("--lon1", required=True, type=float)
    d.add_argument("--lat2", required=True, type=float)
    d.add_argument("--lon2", required=True, type=float)
    d.add_argument("--json", action="store_true")
    d.set_defaults(func=_cmd_distance)

    n = sub.add_parser("nearby", help="Resolve nearby ids from a JSON candidates file (offline).")
    n.add_argument("--lat", required=True, type=float)
    n.add_argument("--lon", required=True, type=float)
    n.add_argument("--candidates", required=True, help="JSON list of {id, latitude, longitude}")
    n.add_argument("--threshold", type=float, default=None, help="Meters; defaults to proximity.locations_threshold_m")
    n.add_argument("--json", action="store_true")
    n.set_defaults(func=_cmd_nearby)

    c = sub.add_parser("check", help="Owner-scoped proximity check against the remote store.")
    c.add_argument("--owner", required=True, help="Owner UUID")
    c.add_argument("--lat", required=True, type=float)
    c.add_argument("--lon", required=True, type=float)
    c.add_argument("--json", action="store_true")
    c.set_defaults(func=_cmd_check)

    g = sub.add_parser("digest", help="Weekly digest from a JSON tasks file.")
    g.add_argument("--tasks", required=True)
    g.add_argument("--now", default=None, help="ISO datetime; defaults to the current time")
    g.add_argument("--json", action="store_true")
    g.set_defaults(func=_cmd_digest)

    a = sub.add_parser("agenda", help="Group tasks from a JSON file by due date.")
    a.add_argument("--tasks", required=True)
    a.add_argument("--json", action="store_true")
    a.set_defaults(func=_cmd_agenda)

    w = sub.add_parser("weather", help="Current weather at a coordinate.")
    w.add_argument("--lat", required=True, type=float)
    w.add_argument("--lon", required=True, type=float)
    w.add_argument("--json", action="store_true")
    w.set_defaults(func=_cmd_weather)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m bloomtask.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except ValueError as exc:
        # Bad owner ids, out-of-range coordinates, malformed JSON input; exits with status 2.
        parser.error(str(exc))


if __name__ == "__main__":
    raise SystemExit(main())
