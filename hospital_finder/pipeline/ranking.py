"""Distance annotation, filtering and sorting of hospital candidates."""

from __future__ import annotations

import unicodedata
from typing import Iterable

from hospital_finder.common.constants import SORT_MODES, TYPE_FILTER_ALL
from hospital_finder.common.deterministic import stable_sorted
from hospital_finder.common.geo import haversine_distance_km
from hospital_finder.common.models import (
    DEFAULT_COORDINATE,
    Coordinate,
    FilterState,
    HospitalRecord,
    RankedHospital,
)


def name_sort_key(name: str) -> str:
    # Approximates locale collation: accents and case only break ties.
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold()


def _matches_query(hospital: HospitalRecord, query: str) -> bool:
    return query in hospital.name.lower() or query in hospital.city.lower() or query in hospital.state.lower()


def rank_hospitals(
    hospitals: Iterable[HospitalRecord],
    origin: Coordinate | None,
    filters: FilterState,
    sort_mode: str = "distance",
) -> list[RankedHospital]:
    if sort_mode not in SORT_MODES:
        raise ValueError(f"Unknown sort mode: {sort_mode}")
    reference = origin or DEFAULT_COORDINATE

    ranked = [RankedHospital(hospital, haversine_distance_km(reference, hospital.coordinate)) for hospital in hospitals]

    if filters.type_filter != TYPE_FILTER_ALL:
        ranked = [item for item in ranked if item.hospital.type == filters.type_filter]
    if filters.emergency_only:
        ranked = [item for item in ranked if item.hospital.has_emergency]
    if filters.search_query:
        query = filters.search_query.lower()
        ranked = [item for item in ranked if _matches_query(item.hospital, query)]

    if sort_mode == "distance":
        return stable_sorted(ranked, key=lambda item: item.distance_km)
    if sort_mode == "name":
        return stable_sorted(ranked, key=lambda item: name_sort_key(item.hospital.name))
    return stable_sorted(ranked, key=lambda item: -(item.hospital.rating or 0.0))
