from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import GeocodingConfig
from .directions import fetch_route
from .models import MY_LOCATION, Position, TrailStop, TransportMode

logger = logging.getLogger(__name__)


class Trail:
    """
    An ordered list of stops to visit, plus the route drawn through them.

    Each site appears at most once and at most one stop is the user's own
    location, always first or last. Any change to the stops or the
    transport mode drops the stored route until ``refresh_route`` runs.
    """

    def __init__(self) -> None:
        self._stops: list[TrailStop] = []
        self._mode: TransportMode = "walking"
        self.route: dict[str, Any] | None = None

    @property
    def stops(self) -> tuple[TrailStop, ...]:
        return tuple(self._stops)

    @property
    def count(self) -> int:
        return len(self._stops)

    @property
    def mode(self) -> TransportMode:
        return self._mode

    def set_mode(self, mode: TransportMode) -> None:
        if mode not in ("walking", "driving"):
            raise ValueError(f"Unknown transport mode: {mode}")
        if mode != self._mode:
            self._mode = mode
            self.route = None

    def has_stop(self, est_id: Any) -> bool:
        return any(stop.est_id == est_id for stop in self._stops)

    def add_stop(self, stop: TrailStop) -> bool:
        """Append *stop*; returns False when that site is already on the trail."""
        if self.has_stop(stop.est_id):
            return False
        self._stops.append(stop)
        self.route = None
        return True

    def add_location_stop(self, latitude: float, longitude: float, position: Position = "start") -> TrailStop:
        stop = TrailStop(est_id=MY_LOCATION, name="My Location", latitude=latitude, longitude=longitude)
        others = [s for s in self._stops if s.est_id != MY_LOCATION]
        self._stops = [stop, *others] if position == "start" else [*others, stop]
        self.route = None
        return stop

    def remove_stop(self, est_id: Any) -> bool:
        remaining = [s for s in self._stops if s.est_id != est_id]
        if len(remaining) == len(self._stops):
            return False
        self._stops = remaining
        self.route = None
        return True

    def move_stop(self, from_index: int, to_index: int) -> None:
        """Move the stop at *from_index* so it ends up at *to_index*."""
        stop = self._stops.pop(from_index)
        self._stops.insert(to_index, stop)
        self.route = None

    def clear(self) -> None:
        self._stops = []
        self.route = None

    async def refresh_route(
        self,
        config: GeocodingConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> dict[str, Any] | None:
        stops, mode = self.stops, self._mode
        route = await fetch_route(stops, mode, config, transport=transport)
        if stops != self.stops or mode != self._mode:
            logger.info("Trail changed while its route was loading; keeping the route cleared")
            return None
        self.route = route
        return route
