from __future__ import annotations

import random
from pathlib import Path

import pytest

from hospital_finder.common.models import Coordinate, FilterState
from hospital_finder.pipeline.ranking import rank_hospitals
from hospital_finder.sources.store import JsonHospitalStore

KL = Coordinate(3.139003, 101.686855)


def _ids(ranked):
    return [item.hospital.id for item in ranked]


@pytest.mark.regression
@pytest.mark.parametrize("sort_mode", ["distance", "name", "rating"])
def test_ranking_is_independent_of_input_order(sort_mode):
    hospitals = JsonHospitalStore(Path("data/hospitals.json")).list_hospitals()
    expected = _ids(rank_hospitals(hospitals, KL, FilterState(), sort_mode))

    shuffled = list(hospitals)
    random.Random(7).shuffle(shuffled)

    assert _ids(rank_hospitals(shuffled, KL, FilterState(), sort_mode)) == expected


@pytest.mark.regression
def test_ranking_twice_gives_identical_output():
    hospitals = JsonHospitalStore(Path("data/hospitals.json")).list_hospitals()
    filters = FilterState(type_filter="government", emergency_only=True, search_query="a")
    assert rank_hospitals(hospitals, KL, filters) == rank_hospitals(hospitals, KL, filters)


@pytest.mark.regression
def test_empty_inputs_rank_to_empty_lists():
    for sort_mode in ("distance", "name", "rating"):
        assert rank_hospitals([], KL, FilterState(), sort_mode) == []
        assert rank_hospitals([], None, FilterState(emergency_only=True), sort_mode) == []
