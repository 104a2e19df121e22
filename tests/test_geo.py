# tests/test_geo.py
import pytest

from radiowalk.services.geo import bounding_box, haversine_km

ORIGIN = (37.7749, -122.4194)


@pytest.mark.parametrize(
    "point, expected_km",
    [
        ((37.7849, -122.4194), 1.11),
        ((37.7749, -122.4644), 3.95),
        ((37.7749, -122.3394), 7.03),
        ((37.8249, -122.4194), 5.55),
    ],
)
def test_haversine_known_distances(point, expected_km):
    assert haversine_km(*ORIGIN, *point) == pytest.approx(expected_km, abs=0.02)


def test_haversine_zero_and_symmetric():
    assert haversine_km(*ORIGIN, *ORIGIN) == 0.0
    a = haversine_km(10.0, 20.0, 11.0, 21.0)
    b = haversine_km(11.0, 21.0, 10.0, 20.0)
    assert a == pytest.approx(b)


def test_haversine_antipodal():
    # half the circumference, 2*R*atan2(1, 0) = pi*R
    assert haversine_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(20015.09, abs=0.1)


def test_bounding_box_uses_flat_degree_constant():
    box = bounding_box(*ORIGIN, 5.0)
    delta = 5.0 / 111.0
    assert box.min_lat == pytest.approx(ORIGIN[0] - delta)
    assert box.max_lat == pytest.approx(ORIGIN[0] + delta)
    assert box.min_lng == pytest.approx(ORIGIN[1] - delta)
    assert box.max_lng == pytest.approx(ORIGIN[1] + delta)


def test_bounding_box_covers_circle_at_mid_latitude():
    box = bounding_box(*ORIGIN, 5.0)
    # a point 4.99 km due north sits inside the latitude range
    north = ORIGIN[0] + 4.99 / 111.2
    assert box.min_lat <= north <= box.max_lat
    # 5 km east at this latitude is ~0.057 deg, wider than the flat box
    assert ORIGIN[1] + 0.04 <= box.max_lng
    assert ORIGIN[0] + 0.05 > box.max_lat
