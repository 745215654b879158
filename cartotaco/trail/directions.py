from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from ..config import GeocodingConfig
from .models import TrailStop, TransportMode

logger = logging.getLogger(__name__)


async def fetch_route(
    stops: Sequence[TrailStop],
    mode: TransportMode,
    config: GeocodingConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any] | None:
    """
    GeoJSON geometry of the Mapbox route through *stops* in order.

    Fewer than two stops, a missing API key, a failed request or an empty
    ``routes`` list all give ``None``.
    """
    if len(stops) < 2 or not config.enabled:
        return None

    profile = "driving" if mode == "driving" else "walking"
    coords = ";".join(f"{stop.longitude},{stop.latitude}" for stop in stops)
    url = f"{config.directions_url}/{profile}/{coords}"
    params = {"geometries": "geojson", "overview": "full", "access_token": config.api_key}

    try:
        async with httpx.AsyncClient(timeout=config.timeout, transport=transport) as client:
            response = await client.get(url, params=params)
    except httpx.HTTPError:
        logger.warning("Directions request failed", exc_info=True)
        return None

    if response.status_code >= 400:
        logger.warning("Directions API error %s: %s", response.status_code, response.text)
        return None

    try:
        routes = response.json().get("routes") or []
    except (ValueError, AttributeError):
        logger.warning("Directions API returned an unreadable body")
        return None
    if not routes:
        return None
    return routes[0].get("geometry")
