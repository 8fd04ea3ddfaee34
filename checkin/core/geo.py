"""
Geofence helpers — haversine distance between two coordinates.
"""

from __future__ import annotations

import math

EARTH_RADIUS_M = 6_371_000.0


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """True if both values are finite and inside the WGS84 ranges."""
    for value in (latitude, longitude):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in meters.

    Coordinates are decimal degrees. Callers must reject out-of-range input
    (see :func:`is_valid_coordinate`) before calling.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Clamp: rounding can push `a` a hair above 1 for antipodal points
    c = 2 * math.asin(math.sqrt(min(1.0, a)))
    return EARTH_RADIUS_M * c
