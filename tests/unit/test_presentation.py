import pytest

from hospital_finder.common.models import Coordinate, HospitalRecord, RankedHospital
from hospital_finder.pipeline.presentation import (
    build_markers,
    dial_url,
    directions_url,
    map_region,
    marker_color,
    type_label,
)


def _hospital(**overrides):
    fields = {
        "id": "internal:1",
        "name": "Prince Court (KL)",
        "type": "private",
        "address": "39 Jalan Kia Peng",
        "city": "Kuala Lumpur",
        "state": "Wilayah Persekutuan",
        "postal_code": "50450",
        "coordinate": Coordinate(3.1491, 101.7193),
    }
    fields.update(overrides)
    return HospitalRecord(**fields)


def test_type_labels_and_colours():
    assert type_label("government") == "Government"
    assert type_label("mystery") == "mystery"
    assert marker_color("government") == "#2196F3"
    assert marker_color("private") == "#4CAF50"
    assert marker_color("clinic") == "#FF9800"
    assert marker_color("specialist") == "#9C27B0"
    assert marker_color("mystery") == "#6366f1"


def test_build_markers_follows_ranking_order():
    ranked = [
        RankedHospital(_hospital(id="internal:b", type="clinic"), 0.42),
        RankedHospital(_hospital(id="internal:a"), 2.0),
    ]
    markers = build_markers(ranked)
    assert [marker.hospital_id for marker in markers] == ["internal:b", "internal:a"]
    assert markers[0].pin_color == "#FF9800"
    assert markers[0].description == "Clinic · 420 m"
    assert markers[1].description == "Private · 2.0 km"


def test_map_region_scales_longitude_delta_and_zoom():
    region = map_region(Coordinate(3.0, 101.0), 0.5)
    assert region.latitude_delta == pytest.approx(0.0922)
    assert region.longitude_delta == pytest.approx(0.0461)

    zoomed = map_region(Coordinate(3.0, 101.0), 0.5, zoom=4)
    assert zoomed.latitude_delta == pytest.approx(0.0922 / 4)

    with pytest.raises(ValueError):
        map_region(Coordinate(3.0, 101.0), 0)


def test_directions_url_per_platform():
    hospital = _hospital()
    assert directions_url(hospital, "ios") == "maps:0,0?q=Prince%20Court%20(KL)@3.1491,101.7193"
    assert directions_url(hospital, "android") == "geo:0,0?q=3.1491,101.7193(Prince%20Court%20(KL))"
    with pytest.raises(ValueError):
        directions_url(hospital, "web")


def test_dial_url_prefers_emergency_number():
    assert dial_url(_hospital(phone_number="03-1", emergency_number="999")) == "tel:999"
    assert dial_url(_hospital(phone_number="03-1")) == "tel:03-1"
    assert dial_url(_hospital()) is None
