"""Hospital source selection with primary-to-secondary fallback."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from hospital_finder.common.constants import (
    DEFAULT_SEARCH_RADIUS_M,
    GENERIC_PLACE_TAGS,
    PLACE_CATEGORIES,
    SOURCE_EXTERNAL,
    SOURCE_INTERNAL,
)
from hospital_finder.common.errors import SourceError
from hospital_finder.common.logging import get_logger, log_event
from hospital_finder.common.models import AggregationResult, Coordinate
from hospital_finder.sources.places import PlacesClient, fetch_nearby_hospitals
from hospital_finder.sources.store import JsonHospitalStore

logger = get_logger(__name__)


async def fetch_stored_hospitals(store: JsonHospitalStore) -> AggregationResult:
    try:
        hospitals = await asyncio.to_thread(store.list_hospitals)
    except Exception as exc:
        log_event(
            logger,
            f"internal hospital fetch failed: {exc}",
            level=logging.ERROR,
            stage="aggregate",
            source=SOURCE_INTERNAL,
            event="SOURCE_FAILED",
            status="error",
            error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
        )
        raise SourceError(f"Failed to fetch internal hospitals: {exc}") from exc
    log_event(logger, f"using {len(hospitals)} internal hospitals", stage="aggregate", source=SOURCE_INTERNAL, event="SOURCE_SELECTED", rows_out=len(hospitals))
    return AggregationResult(hospitals=tuple(hospitals), source=SOURCE_INTERNAL)


async def aggregate_hospitals(
    origin: Coordinate | None,
    search_radius_m: int = DEFAULT_SEARCH_RADIUS_M,
    *,
    places: PlacesClient | None,
    store: JsonHospitalStore,
    categories: Iterable[str] = PLACE_CATEGORIES,
    excluded_tags: Iterable[str] = GENERIC_PLACE_TAGS,
) -> AggregationResult:
    """Return hospitals from the places lookup, or from the store when that yields nothing.

    Results are never merged across sources. Only a store failure raises.
    """
    if origin is None:
        log_event(logger, "no origin yet, skipping places lookup", stage="aggregate", event="PRIMARY_SKIPPED")
    elif places is None or not places.is_configured:
        log_event(logger, "places lookup not configured", stage="aggregate", event="PRIMARY_SKIPPED")
    else:
        try:
            hospitals = await fetch_nearby_hospitals(
                places,
                origin,
                search_radius_m,
                categories=categories,
                excluded_tags=excluded_tags,
            )
        except Exception as exc:
            log_event(
                logger,
                f"places lookup failed, falling back to internal hospitals: {exc}",
                level=logging.WARNING,
                stage="aggregate",
                source=SOURCE_EXTERNAL,
                event="PRIMARY_FAILED",
                status="error",
                error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
            )
        else:
            if hospitals:
                log_event(
                    logger,
                    f"using {len(hospitals)} places hospitals",
                    stage="aggregate",
                    source=SOURCE_EXTERNAL,
                    event="SOURCE_SELECTED",
                    rows_out=len(hospitals),
                )
                return AggregationResult(hospitals=tuple(hospitals), source=SOURCE_EXTERNAL)
            log_event(logger, "places lookup returned no results, falling back", stage="aggregate", event="PRIMARY_EMPTY")

    return await fetch_stored_hospitals(store)
