"""Tests for the haversine distance helpers."""

import math

import pytest

from checkin.core.geo import haversine_distance, is_valid_coordinate

OFFICE = (12.990461, 80.220037)


def test_distance_to_self_is_zero():
    assert haversine_distance(*OFFICE, *OFFICE) == pytest.approx(0.0, abs=1e-9)


@pytest.mark.parametrize(
    "a, b",
    [
        (OFFICE, (13.0827, 80.2707)),
        ((51.5074, -0.1278), (40.7128, -74.0060)),
        ((-33.8688, 151.2093), (35.6762, 139.6503)),
        ((0.0, 179.9), (0.0, -179.9)),
    ],
)
def test_distance_is_symmetric(a, b):
    assert haversine_distance(*a, *b) == pytest.approx(haversine_distance(*b, *a), abs=1.0)


def test_small_latitude_offset_is_about_100m():
    north = (OFFICE[0] + 0.0009, OFFICE[1])
    assert haversine_distance(*OFFICE, *north) == pytest.approx(100.0, abs=1.0)


def test_known_city_distance():
    """London to New York is roughly 5,570 km on a spherical Earth."""
    d = haversine_distance(51.5074, -0.1278, 40.7128, -74.0060)
    assert d == pytest.approx(5_570_000, rel=0.01)


def test_antipodal_points_do_not_overflow():
    d = haversine_distance(0.0, 0.0, 0.0, 180.0)
    assert d == pytest.approx(math.pi * 6_371_000, rel=1e-9)


@pytest.mark.parametrize(
    "lat, lon, ok",
    [
        (0.0, 0.0, True),
        (90.0, 180.0, True),
        (-90.0, -180.0, True),
        (90.0001, 0.0, False),
        (0.0, -180.5, False),
        (float("nan"), 0.0, False),
        (0.0, float("inf"), False),
        (True, 0.0, False),
        ("12.9", 80.2, False),
    ],
)
def test_coordinate_validation(lat, lon, ok):
    assert is_valid_coordinate(lat, lon) is ok
