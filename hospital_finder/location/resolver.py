"""Best-effort device location with permission tracking.

Resolution runs three tiers in order and the first success wins:

1. the provider's cached/last-known fix (no timeout),
2. a live fix bounded by ``live_timeout_seconds``,
3. the configured default coordinate, which never fails.

Each attempt is numbered when it starts. A finished attempt is applied only
if no newer attempt has started since, so a slow stale fix can never
overwrite a fresher one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from hospital_finder.common.constants import (
    LIVE_LOCATION_TIMEOUT_SECONDS,
    PERMISSION_DENIED_MESSAGE,
    PERMISSION_GRANTED,
    PERMISSION_UNDETERMINED,
)
from hospital_finder.common.logging import get_logger, log_event
from hospital_finder.common.models import DEFAULT_COORDINATE, Coordinate, Position, ResolvedLocation
from hospital_finder.common.time_utils import epoch_ms
from hospital_finder.location.providers import LocationProvider

UNINITIALIZED = "uninitialized"
CHECKING_PERMISSION = "checking_permission"
PERMISSION_DENIED_STATE = "permission_denied"
RESOLVING = "resolving"
RESOLVED = "resolved"


class LocationResolver:
    def __init__(
        self,
        provider: LocationProvider,
        *,
        live_timeout_seconds: float = LIVE_LOCATION_TIMEOUT_SECONDS,
        default_coordinate: Coordinate = DEFAULT_COORDINATE,
        clock: Callable[[], int] = epoch_ms,
        logger: logging.Logger | None = None,
    ) -> None:
        self.provider = provider
        self.live_timeout_seconds = live_timeout_seconds
        self.default_coordinate = default_coordinate
        self.clock = clock
        self.logger = logger or get_logger(__name__)

        self.state = UNINITIALIZED
        self.permission: str | None = None
        self.location: ResolvedLocation | None = None
        self.error: str | None = None
        self._latest_attempt = 0

    @property
    def coordinate(self) -> Coordinate | None:
        return self.location.coordinate if self.location is not None else None

    @property
    def permission_denied(self) -> bool:
        return self.state == PERMISSION_DENIED_STATE

    def _deny(self, message: str) -> None:
        # A denial supersedes any resolution still in flight.
        self._latest_attempt += 1
        self.state = PERMISSION_DENIED_STATE
        self.error = message
        log_event(self.logger, message, stage="location", event="PERMISSION_DENIED", status="error")

    async def _read_permission(self) -> str | None:
        self.state = CHECKING_PERMISSION
        try:
            status = await self.provider.get_permission_state()
        except Exception as exc:
            self._deny(f"Failed to read location permission: {exc}")
            return None
        self.permission = status
        log_event(self.logger, f"location permission status: {status}", stage="location", event="PERMISSION_STATE")
        return status

    async def start(self) -> ResolvedLocation | None:
        status = await self._read_permission()
        if status is None:
            return None
        if status == PERMISSION_GRANTED:
            return await self._resolve()
        if status == PERMISSION_UNDETERMINED:
            await self.request_permission()
            return self.location
        self._deny(PERMISSION_DENIED_MESSAGE)
        return None

    async def request_permission(self) -> bool:
        self.state = CHECKING_PERMISSION
        self.error = None
        try:
            status = await self.provider.request_permission()
        except Exception as exc:
            self._deny(f"Failed to request location permission: {exc}")
            return False
        self.permission = status
        if status != PERMISSION_GRANTED:
            self._deny(PERMISSION_DENIED_MESSAGE)
            return False
        log_event(self.logger, "location permission granted", stage="location", event="PERMISSION_GRANTED")
        await self._resolve()
        return True

    async def refresh(self) -> ResolvedLocation | None:
        """Re-check permission and re-run the tiers; the previous location is kept on denial."""
        status = await self._read_permission()
        if status is None:
            return None
        if status != PERMISSION_GRANTED:
            self._deny(PERMISSION_DENIED_MESSAGE)
            return None
        return await self._resolve()

    async def _resolve(self) -> ResolvedLocation | None:
        self._latest_attempt += 1
        attempt = self._latest_attempt
        self.state = RESOLVING
        self.error = None

        resolved = await self._fetch_with_fallback(attempt)

        if attempt != self._latest_attempt:
            log_event(
                self.logger,
                "discarding stale location result",
                stage="location",
                event="STALE_RESOLUTION",
                attempt=attempt,
                source=resolved.source,
            )
            return self.location

        self.location = resolved
        self.state = RESOLVED
        log_event(
            self.logger,
            f"location resolved: lat={resolved.coordinate.latitude:.6f}, lng={resolved.coordinate.longitude:.6f}",
            stage="location",
            event="RESOLVED",
            status="ok",
            attempt=attempt,
            source=resolved.source,
        )
        return resolved

    def _from_position(self, position: Position, source: str) -> ResolvedLocation:
        timestamp = position.timestamp if position.timestamp is not None else self.clock()
        return ResolvedLocation(
            coordinate=position.coordinate,
            accuracy=position.accuracy,
            timestamp=timestamp,
            source=source,
        )

    async def _fetch_with_fallback(self, attempt: int) -> ResolvedLocation:
        try:
            cached = await self.provider.get_cached_position()
        except Exception as exc:
            log_event(self.logger, f"cached position failed: {exc}", stage="location", event="CACHED_FAILED", attempt=attempt)
            cached = None
        if cached is not None:
            return self._from_position(cached, "cached")

        started = self.clock()
        try:
            live = await asyncio.wait_for(self.provider.get_live_position(), timeout=self.live_timeout_seconds)
        except asyncio.TimeoutError:
            log_event(
                self.logger,
                f"live position timed out after {self.live_timeout_seconds}s",
                stage="location",
                event="LIVE_TIMEOUT",
                attempt=attempt,
                duration_ms=self.clock() - started,
            )
        except Exception as exc:
            log_event(self.logger, f"live position failed: {exc}", stage="location", event="LIVE_FAILED", attempt=attempt)
        else:
            return self._from_position(live, "live")

        log_event(self.logger, "using default location", stage="location", event="DEFAULT_LOCATION", attempt=attempt)
        return ResolvedLocation(
            coordinate=self.default_coordinate,
            accuracy=None,
            timestamp=self.clock(),
            source="default",
        )
