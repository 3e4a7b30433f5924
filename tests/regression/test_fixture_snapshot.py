from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from hospital_finder.common.geo import format_distance
from hospital_finder.common.models import Coordinate, FilterState
from hospital_finder.pipeline.presentation import build_markers
from hospital_finder.pipeline.ranking import rank_hospitals
from hospital_finder.sources.aggregator import aggregate_hospitals
from hospital_finder.sources.places import PlacesClient
from hospital_finder.sources.store import JsonHospitalStore

KL = Coordinate(3.139003, 101.686855)
FIXTURES = Path("tests/fixtures/places")


class FixtureHttpClient:
    def get_json(self, _url, *, params, **_kwargs):
        return json.loads((FIXTURES / f"{params['type']}.json").read_text(encoding="utf-8"))

    def close(self):
        return None


def _places_result():
    places = PlacesClient("key", http_client=FixtureHttpClient())
    return asyncio.run(aggregate_hospitals(KL, 5000, places=places, store=JsonHospitalStore(Path("data/hospitals.json"))))


@pytest.mark.regression
def test_places_fixture_rankings_are_stable():
    result = _places_result()
    assert result.source == "external"

    by_distance = rank_hospitals(result.hospitals, KL, FilterState(), "distance")
    assert [item.hospital.name for item in by_distance] == [
        "Farmasi Bukit Bintang",
        "Hospital Kuala Lumpur",
        "Klinik Pergigian Ampang",
    ]
    assert [format_distance(item.distance_km) for item in by_distance] == ["2.8 km", "3.9 km", "4.4 km"]

    by_rating = rank_hospitals(result.hospitals, KL, FilterState(), "rating")
    assert [item.hospital.id for item in by_rating] == [
        "external:ChIJ-dental",
        "external:ChIJ-hkl",
        "external:ChIJ-pharmacy",
    ]

    markers = build_markers(by_distance)
    assert [marker.pin_color for marker in markers] == ["#FF9800", "#2196F3", "#9C27B0"]


@pytest.mark.regression
def test_seed_store_distance_order_is_stable():
    hospitals = JsonHospitalStore(Path("data/hospitals.json")).list_hospitals()
    ranked = rank_hospitals(hospitals, None, FilterState(), "distance")
    assert [item.hospital.id for item in ranked] == [
        "internal:kkkl-004",
        "internal:pcmc-002",
        "internal:hkl-001",
        "internal:ijn-005",
        "internal:ummc-006",
        "internal:gkl-003",
    ]
