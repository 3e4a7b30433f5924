"""Data models shared by the location, source and ranking stages."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from hospital_finder.common.constants import (
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    HOSPITAL_TYPES,
    LOCATION_SOURCES,
    SOURCE_EXTERNAL,
    SOURCE_INTERNAL,
    SOURCE_NONE,
    TYPE_FILTER_ALL,
    TYPE_FILTERS,
)


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"longitude out of range: {self.longitude}")

    def to_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


DEFAULT_COORDINATE = Coordinate(DEFAULT_LATITUDE, DEFAULT_LONGITUDE)


@dataclass(frozen=True)
class Position:
    """A fix reported by a location provider."""

    coordinate: Coordinate
    accuracy: float | None = None
    timestamp: int | None = None


@dataclass(frozen=True)
class ResolvedLocation:
    coordinate: Coordinate
    accuracy: float | None
    timestamp: int
    source: str

    def __post_init__(self) -> None:
        if self.source not in LOCATION_SOURCES:
            raise ValueError(f"Unknown location source: {self.source}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HospitalRecord:
    id: str
    name: str
    type: str
    address: str
    city: str
    state: str
    postal_code: str
    coordinate: Coordinate
    is_24_hours: bool = False
    has_emergency: bool = False
    phone_number: str | None = None
    emergency_number: str | None = None
    website: str | None = None
    email: str | None = None
    operating_hours: str | None = None
    specialties: tuple[str, ...] = ()
    facilities: tuple[str, ...] = ()
    rating: float | None = None

    def __post_init__(self) -> None:
        if self.type not in HOSPITAL_TYPES:
            raise ValueError(f"Unknown hospital type: {self.type}")

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["specialties"] = list(self.specialties)
        payload["facilities"] = list(self.facilities)
        return payload


@dataclass(frozen=True)
class RankedHospital:
    hospital: HospitalRecord
    distance_km: float

    def to_dict(self) -> dict[str, Any]:
        payload = self.hospital.to_dict()
        payload["distance_km"] = self.distance_km
        return payload


@dataclass(frozen=True)
class FilterState:
    type_filter: str = TYPE_FILTER_ALL
    emergency_only: bool = False
    search_query: str = ""

    def __post_init__(self) -> None:
        if self.type_filter not in TYPE_FILTERS:
            raise ValueError(f"Unknown type filter: {self.type_filter}")


@dataclass(frozen=True)
class AggregationResult:
    hospitals: tuple[HospitalRecord, ...] = field(default_factory=tuple)
    source: str = SOURCE_NONE

    def __post_init__(self) -> None:
        if self.source not in (SOURCE_EXTERNAL, SOURCE_INTERNAL, SOURCE_NONE):
            raise ValueError(f"Unknown hospital source: {self.source}")
