"""CLI entrypoint for the hospital finder pipeline."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

from hospital_finder.common.config_loader import FinderConfig, load_finder_config
from hospital_finder.common.constants import (
    EXIT_HARD_FAIL,
    EXIT_PARTIAL,
    EXIT_SUCCESS,
    HOSPITAL_TYPES,
    SORT_MODES,
    SOURCE_EXTERNAL,
    TYPE_FILTERS,
)
from hospital_finder.common.errors import FinderError
from hospital_finder.common.fs import read_json
from hospital_finder.common.geo import format_distance
from hospital_finder.common.http import HttpClient
from hospital_finder.common.ids import generate_session_id
from hospital_finder.common.logging import build_logger, log_event
from hospital_finder.common.models import Coordinate, FilterState
from hospital_finder.location.providers import StaticLocationProvider
from hospital_finder.location.resolver import LocationResolver
from hospital_finder.pipeline.finder import STATUS_ERROR, STATUS_PERMISSION_DENIED, HospitalFinder
from hospital_finder.pipeline.presentation import MapRegion, dial_url, map_region
from hospital_finder.pipeline.ranking import rank_hospitals
from hospital_finder.sources.places import PlacesClient, search_nearby_hospitals
from hospital_finder.sources.store import JsonHospitalStore


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--store", default=None, help="Override the internal store JSON path")
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    commands = parser.add_subparsers(dest="command", required=True)

    find = commands.add_parser("find", help="Rank hospitals near a coordinate")
    find.add_argument("--lat", type=float, default=None)
    find.add_argument("--lon", type=float, default=None)
    find.add_argument("--radius", type=int, default=None)
    find.add_argument("--type", dest="type_filter", default="all", choices=TYPE_FILTERS)
    find.add_argument("--emergency-only", action="store_true")
    find.add_argument("--query", default="")
    find.add_argument("--keyword", default=None, help="Places keyword search instead of category search")
    find.add_argument("--sort", default="distance", choices=SORT_MODES)
    find.add_argument("--format", default="text", choices=["text", "json"])

    records = commands.add_parser("records", help="Maintain internal hospital records")
    actions = records.add_subparsers(dest="action", required=True)
    listing = actions.add_parser("list")
    listing.add_argument("--state", default=None)
    listing.add_argument("--city", default=None)
    listing.add_argument("--type", dest="type_filter", default=None, choices=HOSPITAL_TYPES)
    listing.add_argument("--emergency-only", action="store_true")
    listing.add_argument("--search", default=None)
    add = actions.add_parser("add")
    add.add_argument("json_file", help="JSON object with the hospital fields")
    update = actions.add_parser("update")
    update.add_argument("record_id")
    update.add_argument("json_file", help="JSON object with the fields to change")
    delete = actions.add_parser("delete")
    delete.add_argument("record_id")

    args = parser.parse_args(argv)
    if args.command == "find":
        if (args.lat is None) != (args.lon is None):
            parser.error("--lat and --lon must be given together")
        if args.lat is not None and not (-90 <= args.lat <= 90 and -180 <= args.lon <= 180):
            parser.error("--lat/--lon out of range")
    return args


def _store(args: argparse.Namespace, config: FinderConfig) -> JsonHospitalStore:
    return JsonHospitalStore(Path(args.store) if args.store else config.store_path)


def _print_ranked(ranked, fmt: str, *, source: str, location_source: str | None, region: MapRegion | None = None) -> None:
    if fmt == "json":
        payload = {
            "source": source,
            "location_source": location_source,
            "region": asdict(region) if region is not None else None,
            "hospitals": [
                dict(item.to_dict(), distance=format_distance(item.distance_km), dial_url=dial_url(item.hospital))
                for item in ranked
            ],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return
    for item in ranked:
        hospital = item.hospital
        emergency = " [ER]" if hospital.has_emergency else ""
        print(f"{format_distance(item.distance_km):>9}  {hospital.name} ({hospital.type}){emergency} - {hospital.city}, {hospital.state}")
    print(f"{len(ranked)} hospitals from {source} source")


async def _run_find(args: argparse.Namespace, config: FinderConfig, logger) -> int:
    live = Coordinate(args.lat, args.lon) if args.lat is not None and args.lon is not None else None
    resolver = LocationResolver(
        StaticLocationProvider(live),
        live_timeout_seconds=config.live_timeout_seconds,
        default_coordinate=config.default_coordinate,
    )
    store = _store(args, config)
    radius = args.radius or config.search_radius_m
    filters = FilterState(type_filter=args.type_filter, emergency_only=args.emergency_only, search_query=args.query)

    http_client = HttpClient()
    places = PlacesClient(config.places_api_key if config.places_enabled else "", endpoint=config.places_endpoint, http_client=http_client)
    try:
        if args.keyword:
            await resolver.start()
            if not places.is_configured:
                log_event(logger, "keyword search needs a places API key", event="KEYWORD_UNAVAILABLE", status="error")
                return EXIT_HARD_FAIL
            hospitals = await search_nearby_hospitals(
                places,
                resolver.coordinate or config.default_coordinate,
                args.keyword,
                radius,
                categories=config.place_categories,
                excluded_tags=config.excluded_tags,
            )
            ranked = rank_hospitals(hospitals, resolver.coordinate, filters, args.sort)
            _print_ranked(ranked, args.format, source=SOURCE_EXTERNAL, location_source=resolver.location.source if resolver.location else None)
            return EXIT_SUCCESS

        finder = HospitalFinder(
            resolver,
            places=places,
            store=store,
            search_radius_m=radius,
            filters=filters,
            sort_mode=args.sort,
            aggregate_kwargs={"categories": config.place_categories, "excluded_tags": config.excluded_tags},
        )
        await finder.start()
    finally:
        http_client.close()

    if finder.status in (STATUS_ERROR, STATUS_PERMISSION_DENIED):
        print(finder.error or finder.resolver.error, file=sys.stderr)
        return EXIT_HARD_FAIL

    location_source = resolver.location.source if resolver.location else None
    region = map_region(resolver.coordinate or config.default_coordinate, 1.0, latitude_delta=config.latitude_delta)
    _print_ranked(finder.ranked, args.format, source=finder.source, location_source=location_source, region=region)
    if finder.source != SOURCE_EXTERNAL or location_source == "default":
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def _run_records(args: argparse.Namespace, config: FinderConfig) -> int:
    store = _store(args, config)
    if args.action == "list":
        if args.search:
            records = store.search_hospitals(args.search)
        elif args.state:
            records = store.hospitals_by_state(args.state)
        elif args.city:
            records = store.hospitals_by_city(args.city)
        elif args.type_filter:
            records = store.hospitals_by_type(args.type_filter)
        elif args.emergency_only:
            records = store.emergency_hospitals()
        else:
            records = store.list_hospitals()
        print(json.dumps([record.to_dict() for record in records], ensure_ascii=False, indent=2))
    elif args.action == "add":
        print(store.add_hospital(read_json(Path(args.json_file))))
    elif args.action == "update":
        record = store.update_hospital(args.record_id, **read_json(Path(args.json_file)))
        print(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))
    elif args.action == "delete":
        store.delete_hospital(args.record_id)
    else:
        raise ValueError(f"Unknown records action: {args.action}")
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace) -> int:
    session_id = generate_session_id()
    logger = build_logger(session_id, log_dir=Path(args.log_dir) if args.log_dir else None, level=args.log_level)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    config = load_finder_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)

    log_event(logger, "command start", session_id=session_id, stage=args.command, event="COMMAND_START", status="ok")
    try:
        if args.command == "find":
            exit_code = asyncio.run(_run_find(args, config, logger))
        else:
            exit_code = _run_records(args, config)
    except FinderError as exc:
        log_event(
            logger,
            f"command failed: {exc}",
            session_id=session_id,
            stage=args.command,
            event="COMMAND_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        print(str(exc), file=sys.stderr)
        return EXIT_HARD_FAIL
    log_event(logger, "command end", session_id=session_id, stage=args.command, event="COMMAND_END", status="ok")
    return exit_code


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except FinderError:
        return EXIT_HARD_FAIL
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
