"""Great-circle distance helpers."""

from __future__ import annotations

import math
from typing import Any

from hospital_finder.common.constants import EARTH_RADIUS_KM
from hospital_finder.common.models import Coordinate


def haversine_distance_km(a: Coordinate, b: Coordinate) -> float:
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.latitude)) * math.cos(math.radians(b.latitude)) * math.sin(d_lon / 2) ** 2
    )
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def format_distance(distance_km: float) -> str:
    if distance_km < 1:
        # Half-up rounding, not round()'s banker's rounding.
        meters = math.floor(distance_km * 1000 + 0.5)
        return f"{meters} m"
    return f"{distance_km:.1f} km"


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def coordinate_or_none(lat: Any, lon: Any) -> Coordinate | None:
    lat_f = safe_float(lat)
    lon_f = safe_float(lon)
    if lat_f is None or lon_f is None:
        return None
    try:
        return Coordinate(lat_f, lon_f)
    except ValueError:
        return None
