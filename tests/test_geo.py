import pytest

from bloomtask.core.geo import GeoPoint, distance, haversine_m
from bloomtask.domain.models import Coordinate


def test_distance_to_self_is_zero():
    p = GeoPoint(lat=1.3521, lon=103.8198)
    assert haversine_m(p, p) == 0


def test_distance_is_symmetric():
    a = GeoPoint(lat=25.0478, lon=121.5170)
    b = GeoPoint(lat=-33.8688, lon=151.2093)
    assert haversine_m(a, b) == pytest.approx(haversine_m(b, a))


def test_one_degree_of_longitude_at_equator():
    d = haversine_m(GeoPoint(lat=0, lon=0), GeoPoint(lat=0, lon=1))
    assert d == pytest.approx(111_195, rel=0.01)


def test_distance_accepts_coordinates_and_geopoints():
    a = Coordinate(latitude=1.3521, longitude=103.8198)
    b = GeoPoint(lat=1.3521, lon=103.8199)
    d = distance(a, b)
    assert 10 < d < 12
    assert d == pytest.approx(distance(b, a))


def test_antipodal_points_are_half_the_circumference():
    d = haversine_m(GeoPoint(lat=0, lon=0), GeoPoint(lat=0, lon=180))
    assert d == pytest.approx(3.141592653589793 * 6_371_000, rel=1e-9)


def test_coordinate_rejects_out_of_range_values():
    with pytest.raises(ValueError):
        Coordinate(latitude=91, longitude=0)
    with pytest.raises(ValueError):
        Coordinate(latitude=0, longitude=-181)


def test_near_antipodal_points_do_not_raise():
    # Rounding pushes the haversine term just past 1 for this pair.
    a = GeoPoint(lat=66.16849958870057, lon=-92.19208432063249)
    b = GeoPoint(lat=-66.16849958870057, lon=87.80791567936751)
    d = haversine_m(a, b)
    assert d == pytest.approx(3.141592653589793 * 6_371_000, rel=1e-6)


@pytest.mark.parametrize("lat", [-89.9, -45.123456789, -12.5, 0.000001, 33.3333333, 66.16849958870057, 89.9])
@pytest.mark.parametrize("lon", [-179.9, -92.19208432063249, 0.0, 45.6789, 120.5])
def test_antipodes_give_a_finite_half_circumference(lat, lon):
    anti_lon = lon + 180 if lon <= 0 else lon - 180
    d = haversine_m(GeoPoint(lat=lat, lon=lon), GeoPoint(lat=-lat, lon=anti_lon))
    assert 0 <= d <= 3.141592653589793 * 6_371_000 + 1e-6
    assert d == pytest.approx(3.141592653589793 * 6_371_000, rel=1e-6)
