from __future__ import annotations
from dataclasses import dataclass
from math import atan2, cos, radians, sin, sqrt
from typing import Protocol, Union

"""
Geospatial helpers.

A tiny geometry layer so the proximity resolver can compute distances without
pulling in GIS dependencies. Inputs are assumed to be in range; validation
happens once at the boundary (`bloomtask.domain.models.Coordinate`).
"""

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


class LatLon(Protocol):
    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...


PointLike = Union[GeoPoint, LatLon]


def _latlon(p: PointLike) -> tuple[float, float]:
    if isinstance(p, GeoPoint):
        return p.lat, p.lon
    return p.latitude, p.longitude


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points."""
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlat = radians(b.lat - a.lat)
    dlon = radians(b.lon - a.lon)

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push h just past 1 for near-antipodal points.
    h = min(h, 1.0)
    return 2 * EARTH_RADIUS_M * atan2(sqrt(h), sqrt(1 - h))


def distance(a: PointLike, b: PointLike) -> float:
    """Distance in meters between two `GeoPoint`s or `Coordinate`s."""
    lat1, lon1 = _latlon(a)
    lat2, lon2 = _latlon(b)
    return haversine_m(GeoPoint(lat=lat1, lon=lon1), GeoPoint(lat=lat2, lon=lon2))
