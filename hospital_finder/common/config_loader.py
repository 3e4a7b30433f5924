"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from hospital_finder.common.errors import ConfigError
from hospital_finder.common.fs import read_yaml
from hospital_finder.common.models import Coordinate
from hospital_finder.common.schema import validate_finder_config

CONFIG_FILENAME = "finder.yml"


@dataclass(frozen=True)
class FinderConfig:
    places_enabled: bool
    places_endpoint: str
    places_api_key: str
    place_categories: tuple[str, ...]
    excluded_tags: tuple[str, ...]
    search_radius_m: int
    default_coordinate: Coordinate
    live_timeout_seconds: float
    store_path: Path
    latitude_delta: float

    @property
    def places_configured(self) -> bool:
        return self.places_enabled and bool(self.places_api_key)


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    return _deep_merge(base, overlay)


def load_finder_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> FinderConfig:
    overlay_path = (overlay_config_dir / CONFIG_FILENAME) if overlay_config_dir is not None else None
    raw = validate_finder_config(
        _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path),
        allow_unknown=allow_unknown,
    )
    env = os.environ if environ is None else environ

    places = raw["places"]
    location = raw["location"]
    try:
        default_coordinate = Coordinate(float(location["default"]["latitude"]), float(location["default"]["longitude"]))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid location.default: {exc}") from exc

    store_path = Path(raw["internal_store"]["path"])
    if not store_path.is_absolute():
        store_path = config_dir.parent / store_path

    return FinderConfig(
        places_enabled=bool(places["enabled"]),
        places_endpoint=str(places["endpoint"]),
        places_api_key=env.get(str(places["api_key_env"]), "").strip(),
        place_categories=tuple(str(category) for category in places["categories"]),
        excluded_tags=tuple(str(tag) for tag in places["excluded_tags"]),
        search_radius_m=int(places["search_radius_m"]),
        default_coordinate=default_coordinate,
        live_timeout_seconds=float(location["live_timeout_seconds"]),
        store_path=store_path,
        latitude_delta=float(raw["map"]["latitude_delta"]),
    )
