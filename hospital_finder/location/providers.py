"""Location permission/provider collaborators."""

from __future__ import annotations

from hospital_finder.common.constants import PERMISSION_DENIED, PERMISSION_GRANTED, PERMISSION_STATES
from hospital_finder.common.errors import LocationUnavailableError
from hospital_finder.common.models import Coordinate, Position


class LocationProvider:
    """Interface the resolver consumes; device integrations subclass it."""

    async def get_permission_state(self) -> str:
        raise NotImplementedError

    async def request_permission(self) -> str:
        raise NotImplementedError

    async def get_cached_position(self) -> Position | None:
        raise NotImplementedError

    async def get_live_position(self) -> Position:
        raise NotImplementedError


class StaticLocationProvider(LocationProvider):
    """Serves a fixed permission answer and optional fixed positions.

    Used by the command line, where there is no device to ask: a coordinate
    passed on the command line becomes the live fix, and without one the
    live tier fails so the resolver falls back to its default.
    """

    def __init__(
        self,
        live: Coordinate | None = None,
        *,
        cached: Coordinate | None = None,
        permission: str = PERMISSION_GRANTED,
        grant_on_request: bool = True,
        accuracy: float | None = None,
    ) -> None:
        if permission not in PERMISSION_STATES:
            raise ValueError(f"Unknown permission state: {permission}")
        self.live = live
        self.cached = cached
        self.permission = permission
        self.grant_on_request = grant_on_request
        self.accuracy = accuracy

    async def get_permission_state(self) -> str:
        return self.permission

    async def request_permission(self) -> str:
        self.permission = PERMISSION_GRANTED if self.grant_on_request else PERMISSION_DENIED
        return self.permission

    async def get_cached_position(self) -> Position | None:
        if self.cached is None:
            return None
        return Position(self.cached, accuracy=self.accuracy)

    async def get_live_position(self) -> Position:
        if self.live is None:
            raise LocationUnavailableError("No live position configured")
        return Position(self.live, accuracy=self.accuracy)
