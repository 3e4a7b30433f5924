"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from hospital_finder.common.errors import ConfigError


def _assert_mapping(obj, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_number(value, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{ctx} must be a positive number")


def validate_finder_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    _assert_mapping(cfg, "finder config")
    top_required = {"places", "location", "internal_store", "map"}
    _assert_required_keys(cfg, top_required, "finder config")
    _assert_no_unknown_keys(cfg, top_required, "finder config", allow_unknown)

    places = cfg["places"]
    _assert_mapping(places, "places")
    places_keys = {"enabled", "endpoint", "api_key_env", "categories", "search_radius_m", "excluded_tags"}
    _assert_required_keys(places, places_keys, "places")
    _assert_no_unknown_keys(places, places_keys, "places", allow_unknown)
    if not isinstance(places["categories"], list) or not places["categories"]:
        raise ConfigError("places.categories must be a non-empty list")
    if not isinstance(places["excluded_tags"], list):
        raise ConfigError("places.excluded_tags must be a list")
    _assert_positive_number(places["search_radius_m"], "places.search_radius_m")

    location = cfg["location"]
    _assert_mapping(location, "location")
    _assert_required_keys(location, {"default", "live_timeout_seconds"}, "location")
    _assert_no_unknown_keys(location, {"default", "live_timeout_seconds"}, "location", allow_unknown)
    _assert_mapping(location["default"], "location.default")
    _assert_required_keys(location["default"], {"latitude", "longitude"}, "location.default")
    _assert_positive_number(location["live_timeout_seconds"], "location.live_timeout_seconds")

    _assert_mapping(cfg["internal_store"], "internal_store")
    _assert_required_keys(cfg["internal_store"], {"path"}, "internal_store")

    _assert_mapping(cfg["map"], "map")
    _assert_required_keys(cfg["map"], {"latitude_delta"}, "map")
    _assert_positive_number(cfg["map"]["latitude_delta"], "map.latitude_delta")

    return cfg
