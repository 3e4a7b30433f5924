"""Places nearby-search source."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from hospital_finder.common.constants import (
    DEFAULT_SEARCH_RADIUS_M,
    GENERIC_PLACE_TAGS,
    PLACE_CATEGORIES,
    PLACES_NEARBY_ENDPOINT,
)
from hospital_finder.common.errors import ContractError, SourceError
from hospital_finder.common.http import HttpClient, describe_request
from hospital_finder.common.logging import get_logger, log_event
from hospital_finder.common.models import Coordinate, HospitalRecord
from hospital_finder.sources.normalise import is_permanently_closed, normalise_place

STATUS_OK = "OK"
STATUS_ZERO_RESULTS = "ZERO_RESULTS"

logger = get_logger(__name__)


class PlacesApiError(SourceError):
    error_code = "PLACES_API_ERROR"

    def __init__(self, status: str, error_message: str | None = None) -> None:
        self.status = status
        self.error_message = error_message
        detail = f": {error_message}" if error_message else ""
        super().__init__(f"Places API status {status}{detail}")


class PlacesUnavailableError(SourceError):
    """Every category query failed."""

    error_code = "PLACES_UNAVAILABLE"


class PlacesClient:
    def __init__(
        self,
        api_key: str,
        *,
        endpoint: str = PLACES_NEARBY_ENDPOINT,
        http_client: HttpClient | None = None,
    ) -> None:
        self.api_key = api_key or ""
        self.endpoint = endpoint
        self.http = http_client or HttpClient()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key.strip())

    def close(self) -> None:
        self.http.close()

    def nearby_search(
        self,
        origin: Coordinate,
        radius_m: int,
        *,
        place_type: str,
        keyword: str | None = None,
    ) -> list[dict[str, Any]]:
        """Run one nearby search; ``ZERO_RESULTS`` is an empty success."""
        params: dict[str, Any] = {
            "location": f"{origin.latitude},{origin.longitude}",
            "radius": str(int(radius_m)),
            "type": place_type,
        }
        if keyword:
            params["keyword"] = keyword
        params["key"] = self.api_key

        log_event(
            logger,
            f"places request {describe_request(self.endpoint, params)}",
            level=logging.DEBUG,
            stage="places",
            source=place_type,
            event="REQUEST",
        )
        payload = self.http.get_json(self.endpoint, source_type="places", params=params)
        status = payload.get("status")
        if status == STATUS_ZERO_RESULTS:
            return []
        if status != STATUS_OK:
            raise PlacesApiError(str(status), payload.get("error_message"))
        results = payload.get("results") or []
        return [result for result in results if isinstance(result, dict)]


def collect_places(
    batches: Iterable[list[dict[str, Any]]],
    *,
    excluded_tags: Iterable[str] = GENERIC_PLACE_TAGS,
) -> list[HospitalRecord]:
    """Dedupe by place_id in batch order, drop closed places, normalise the rest."""
    excluded_tags = tuple(excluded_tags)
    hospitals: list[HospitalRecord] = []
    seen_place_ids: set[str] = set()
    for batch in batches:
        for place in batch:
            place_id = place.get("place_id")
            if not place_id or place_id in seen_place_ids:
                continue
            seen_place_ids.add(place_id)
            if is_permanently_closed(place):
                continue
            try:
                hospitals.append(normalise_place(place, excluded_tags=excluded_tags))
            except ContractError as exc:
                log_event(logger, str(exc), level=logging.WARNING, stage="places", event="SKIP_PLACE", error_code=exc.error_code)
    return hospitals


async def fetch_nearby_hospitals(
    client: PlacesClient,
    origin: Coordinate,
    radius_m: int = DEFAULT_SEARCH_RADIUS_M,
    *,
    categories: Iterable[str] = PLACE_CATEGORIES,
    excluded_tags: Iterable[str] = GENERIC_PLACE_TAGS,
) -> list[HospitalRecord]:
    """Query every category concurrently and merge them into one deduplicated list.

    A failing category is logged and skipped. ``PlacesUnavailableError`` is
    raised only when every category failed.
    """
    categories = tuple(categories)

    async def _search(category: str) -> list[dict[str, Any]] | None:
        try:
            results = await asyncio.to_thread(client.nearby_search, origin, radius_m, place_type=category)
        except Exception as exc:
            log_event(
                logger,
                f"places search failed for category {category}: {exc}",
                level=logging.ERROR,
                stage="places",
                source=category,
                event="CATEGORY_FAILED",
                status="error",
                error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
            )
            return None
        log_event(logger, f"places results for {category}", stage="places", source=category, event="CATEGORY_OK", rows_out=len(results))
        return results

    outcomes = await asyncio.gather(*(_search(category) for category in categories))
    if categories and all(outcome is None for outcome in outcomes):
        raise PlacesUnavailableError("All places category searches failed")

    hospitals = collect_places((outcome for outcome in outcomes if outcome is not None), excluded_tags=excluded_tags)
    log_event(
        logger,
        f"places search found {len(hospitals)} unique hospitals",
        stage="places",
        event="SEARCH_DONE",
        rows_in=sum(len(outcome) for outcome in outcomes if outcome is not None),
        rows_out=len(hospitals),
    )
    return hospitals


async def search_nearby_hospitals(
    client: PlacesClient,
    origin: Coordinate,
    keyword: str,
    radius_m: int = DEFAULT_SEARCH_RADIUS_M,
    *,
    categories: Iterable[str] = PLACE_CATEGORIES,
    excluded_tags: Iterable[str] = GENERIC_PLACE_TAGS,
) -> list[HospitalRecord]:
    """Single keyword search across all categories; any failure yields an empty list."""
    try:
        results = await asyncio.to_thread(
            client.nearby_search,
            origin,
            radius_m,
            place_type="|".join(categories),
            keyword=keyword,
        )
    except Exception as exc:
        log_event(
            logger,
            f"keyword search failed for {keyword!r}: {exc}",
            level=logging.ERROR,
            stage="places",
            event="KEYWORD_FAILED",
            status="error",
            error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
        )
        return []
    return collect_places([results], excluded_tags=excluded_tags)
