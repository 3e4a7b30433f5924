"""Display data derived from ranked hospitals for list and map views."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable
from urllib.parse import quote

from hospital_finder.common.geo import format_distance
from hospital_finder.common.models import Coordinate, HospitalRecord, RankedHospital

DEFAULT_LATITUDE_DELTA = 0.0922
FALLBACK_MARKER_COLOR = "#6366f1"

TYPE_LABELS = {
    "government": "Government",
    "private": "Private",
    "clinic": "Clinic",
    "specialist": "Specialist",
}
MARKER_COLORS = {
    "government": "#2196F3",
    "private": "#4CAF50",
    "clinic": "#FF9800",
    "specialist": "#9C27B0",
}


@dataclass(frozen=True)
class HospitalMarker:
    hospital_id: str
    title: str
    description: str
    coordinate: Coordinate
    pin_color: str


@dataclass(frozen=True)
class MapRegion:
    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float


def type_label(hospital_type: str) -> str:
    return TYPE_LABELS.get(hospital_type, hospital_type)


def marker_color(hospital_type: str) -> str:
    return MARKER_COLORS.get(hospital_type, FALLBACK_MARKER_COLOR)


def build_markers(ranked: Iterable[RankedHospital]) -> list[HospitalMarker]:
    """One marker per ranked hospital, in ranking order."""
    return [
        HospitalMarker(
            hospital_id=item.hospital.id,
            title=item.hospital.name,
            description=f"{type_label(item.hospital.type)} · {format_distance(item.distance_km)}",
            coordinate=item.hospital.coordinate,
            pin_color=marker_color(item.hospital.type),
        )
        for item in ranked
    ]


def map_region(
    center: Coordinate,
    aspect_ratio: float,
    *,
    latitude_delta: float = DEFAULT_LATITUDE_DELTA,
    zoom: float = 1.0,
) -> MapRegion:
    if aspect_ratio <= 0 or zoom <= 0:
        raise ValueError("aspect_ratio and zoom must be positive")
    lat_delta = latitude_delta / zoom
    return MapRegion(
        latitude=center.latitude,
        longitude=center.longitude,
        latitude_delta=lat_delta,
        longitude_delta=lat_delta * aspect_ratio,
    )


def directions_url(hospital: HospitalRecord, platform: str) -> str:
    lat_lng = f"{hospital.coordinate.latitude},{hospital.coordinate.longitude}"
    label = quote(hospital.name, safe="!'()*")
    if platform == "ios":
        return f"maps:0,0?q={label}@{lat_lng}"
    if platform == "android":
        return f"geo:0,0?q={lat_lng}({label})"
    raise ValueError(f"Unsupported platform: {platform}")


def dial_url(hospital: HospitalRecord) -> str | None:
    number = hospital.emergency_number or hospital.phone_number
    if not number:
        return None
    return f"tel:{number}"
