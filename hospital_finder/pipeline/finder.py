"""Finder controller: owns inputs, the current result set, and the ranked view."""

from __future__ import annotations

import logging

from hospital_finder.common.constants import DEFAULT_SEARCH_RADIUS_M, SORT_MODES, SOURCE_NONE
from hospital_finder.common.errors import SourceError
from hospital_finder.common.logging import get_logger, log_event
from hospital_finder.common.models import AggregationResult, FilterState, HospitalRecord, RankedHospital
from hospital_finder.location.resolver import LocationResolver
from hospital_finder.pipeline.presentation import HospitalMarker, build_markers
from hospital_finder.pipeline.ranking import rank_hospitals
from hospital_finder.sources.aggregator import aggregate_hospitals
from hospital_finder.sources.places import PlacesClient
from hospital_finder.sources.store import JsonHospitalStore

STATUS_LOADING = "loading"
STATUS_PERMISSION_DENIED = "permission_denied"
STATUS_ERROR = "error"
STATUS_EMPTY = "empty"
STATUS_READY = "ready"


class HospitalFinder:
    """Single writer for finder state.

    ``ranked`` is recomputed whenever the coordinate, the hospital set, the
    filters or the sort mode change. List and map views both read it.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        *,
        places: PlacesClient | None,
        store: JsonHospitalStore,
        search_radius_m: int = DEFAULT_SEARCH_RADIUS_M,
        filters: FilterState | None = None,
        sort_mode: str = "distance",
        aggregate_kwargs: dict | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if sort_mode not in SORT_MODES:
            raise ValueError(f"Unknown sort mode: {sort_mode}")
        self.resolver = resolver
        self.places = places
        self.store = store
        self.search_radius_m = search_radius_m
        self.filters = filters or FilterState()
        self.sort_mode = sort_mode
        self.aggregate_kwargs = aggregate_kwargs or {}
        self.logger = logger or get_logger(__name__)

        self.hospitals: tuple[HospitalRecord, ...] | None = None
        self.source = SOURCE_NONE
        self.error: str | None = None
        self.loading = False
        self.ranked: list[RankedHospital] = []
        self._latest_load = 0

    def _recompute(self) -> None:
        self.ranked = rank_hospitals(self.hospitals or (), self.resolver.coordinate, self.filters, self.sort_mode)
        log_event(
            self.logger,
            f"ranked {len(self.ranked)} hospitals by {self.sort_mode}",
            stage="rank",
            event="RANKED",
            rows_in=len(self.hospitals or ()),
            rows_out=len(self.ranked),
        )

    async def start(self) -> None:
        await self.resolver.start()
        self._recompute()
        await self.load_hospitals()

    async def request_permission(self) -> bool:
        granted = await self.resolver.request_permission()
        self._recompute()
        if granted:
            await self.load_hospitals()
        return granted

    async def refresh(self) -> None:
        await self.resolver.refresh()
        self._recompute()
        await self.load_hospitals()

    async def load_hospitals(self) -> None:
        self._latest_load += 1
        attempt = self._latest_load
        self.loading = True
        self.error = None
        try:
            result: AggregationResult = await aggregate_hospitals(
                self.resolver.coordinate,
                self.search_radius_m,
                places=self.places,
                store=self.store,
                **self.aggregate_kwargs,
            )
        except SourceError as exc:
            if attempt != self._latest_load:
                return
            self.loading = False
            if self.hospitals is not None:
                log_event(
                    self.logger,
                    f"hospital refresh failed, keeping previous results: {exc}",
                    level=logging.WARNING,
                    stage="aggregate",
                    event="REFRESH_FAILED",
                    status="error",
                    error_code=exc.error_code,
                )
                return
            self.error = str(exc)
            self.source = SOURCE_NONE
            log_event(self.logger, f"hospital fetch failed: {exc}", level=logging.ERROR, stage="aggregate", event="FETCH_FAILED", status="error", error_code=exc.error_code)
            self._recompute()
            return

        if attempt != self._latest_load:
            log_event(self.logger, "discarding stale hospital result", stage="aggregate", event="STALE_LOAD", attempt=attempt)
            return
        self.loading = False
        self.hospitals = result.hospitals
        self.source = result.source
        self._recompute()

    def set_filters(self, filters: FilterState) -> list[RankedHospital]:
        self.filters = filters
        self._recompute()
        return self.ranked

    def set_sort_mode(self, sort_mode: str) -> list[RankedHospital]:
        if sort_mode not in SORT_MODES:
            raise ValueError(f"Unknown sort mode: {sort_mode}")
        self.sort_mode = sort_mode
        self._recompute()
        return self.ranked

    def markers(self) -> list[HospitalMarker]:
        return build_markers(self.ranked)

    @property
    def status(self) -> str:
        if self.resolver.permission_denied and self.resolver.coordinate is None:
            return STATUS_PERMISSION_DENIED
        if self.error is not None:
            return STATUS_ERROR
        if self.loading or self.hospitals is None:
            return STATUS_LOADING
        if not self.ranked:
            return STATUS_EMPTY
        return STATUS_READY
