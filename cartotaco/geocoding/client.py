"""
Mapbox geocoding for location submissions.

Responsibilities:
- Turn a typed street address into coordinates.
- Bias results toward the service area and reject far-away matches.
- Degrade to a plain failure result when the API key is missing or the
  API is unreachable.
"""
from __future__ import annotations

import logging
import math
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from ..config import GeocodingConfig

logger = logging.getLogger(__name__)

_EARTH_RADIUS_KM = 6371.0


class GeocodeMatch(BaseModel):
    latitude: float
    longitude: float
    formatted_address: str
    confidence: float = 1.0


class GeocodeResult(BaseModel):
    success: bool
    data: GeocodeMatch | None = None
    error: str | None = None


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * _EARTH_RADIUS_KM * math.asin(math.sqrt(a))


async def geocode_address(
    address: str,
    config: GeocodingConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GeocodeResult:
    """Best Mapbox match for *address*, if it lies inside the service area."""
    if not address or not address.strip():
        return GeocodeResult(success=False, error="Address is required")
    if not config.enabled:
        return GeocodeResult(success=False, error="Geocoding is disabled (no MAPBOX_KEY configured)")

    params: dict[str, Any] = {
        "access_token": config.api_key,
        "proximity": f"{config.center_longitude},{config.center_latitude}",
        "limit": 5,
        "country": "US",
    }
    url = f"{config.base_url}/{quote(address.strip())}.json"

    try:
        async with httpx.AsyncClient(timeout=config.timeout, transport=transport) as client:
            response = await client.get(url, params=params)
    except httpx.HTTPError:
        logger.warning("Geocoding request failed", exc_info=True)
        return GeocodeResult(
            success=False,
            error="Failed to geocode address. Please check your internet connection and try again.",
        )

    if response.status_code >= 400:
        logger.warning("Geocoding API error %s: %s", response.status_code, response.text)
        return GeocodeResult(
            success=False,
            error=f"Geocoding failed: {response.status_code} {response.reason_phrase}",
        )

    features = response.json().get("features") or []
    if not features:
        return GeocodeResult(success=False, error="Address not found. Please check the address and try again.")

    best = features[0]
    longitude, latitude = best["center"]
    distance = haversine_km(config.center_latitude, config.center_longitude, latitude, longitude)
    if distance > config.max_distance_km:
        return GeocodeResult(
            success=False,
            error="Address appears to be outside the Tucson area. CartoTaco currently only covers Tucson, AZ.",
        )

    return GeocodeResult(
        success=True,
        data=GeocodeMatch(
            latitude=latitude,
            longitude=longitude,
            formatted_address=best.get("place_name", address.strip()),
            confidence=best.get("relevance", 1.0),
        ),
    )
