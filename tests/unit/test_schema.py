import copy

import pytest

from hospital_finder.common.errors import ConfigError
from hospital_finder.common.schema import validate_finder_config

BASE_CONFIG = {
    "places": {
        "enabled": True,
        "endpoint": "x",
        "api_key_env": "KEY",
        "categories": ["hospital"],
        "search_radius_m": 5000,
        "excluded_tags": [],
    },
    "location": {"default": {"latitude": 3.1, "longitude": 101.6}, "live_timeout_seconds": 10},
    "internal_store": {"path": "data/hospitals.json"},
    "map": {"latitude_delta": 0.0922},
}


def test_validate_finder_config_accepts_valid_shape():
    validated = validate_finder_config(copy.deepcopy(BASE_CONFIG))
    assert validated["places"]["categories"] == ["hospital"]


def test_validate_finder_config_rejects_unknown_key_by_default():
    bad = copy.deepcopy(BASE_CONFIG)
    bad["unexpected"] = True
    with pytest.raises(ConfigError):
        validate_finder_config(bad)


def test_validate_finder_config_allows_unknown_when_enabled():
    okay = copy.deepcopy(BASE_CONFIG)
    okay["extra"] = 1
    okay["places"]["extra"] = 2
    validate_finder_config(okay, allow_unknown=True)


def test_validate_finder_config_rejects_missing_nested_key():
    bad = copy.deepcopy(BASE_CONFIG)
    del bad["location"]["default"]["longitude"]
    with pytest.raises(ConfigError):
        validate_finder_config(bad)


@pytest.mark.parametrize("value", [0, -1, "5000", True])
def test_validate_finder_config_rejects_bad_radius(value):
    bad = copy.deepcopy(BASE_CONFIG)
    bad["places"]["search_radius_m"] = value
    with pytest.raises(ConfigError):
        validate_finder_config(bad)


def test_validate_finder_config_rejects_empty_categories():
    bad = copy.deepcopy(BASE_CONFIG)
    bad["places"]["categories"] = []
    with pytest.raises(ConfigError):
        validate_finder_config(bad)
