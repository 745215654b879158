"""
Taco trail builder.

Responsibilities:
- Keep an ordered, duplicate-free list of sites to visit.
- Allow one "my location" stop at the start or end of the trail.
- Fetch a walking or driving route through the stops from Mapbox Directions.
"""
from .builder import Trail
from .directions import fetch_route
from .models import (
    MY_LOCATION,
    LocationStopRequest,
    MoveStopRequest,
    TrailResponse,
    TrailStop,
)

__all__ = [
    "LocationStopRequest",
    "MY_LOCATION",
    "MoveStopRequest",
    "Trail",
    "TrailResponse",
    "TrailStop",
    "fetch_route",
]
