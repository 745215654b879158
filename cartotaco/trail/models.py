from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from ..sites.models import ProcessedSite

TransportMode = Literal["walking", "driving"]
Position = Literal["start", "end"]

# est_id of the single stop standing for the user's own position
MY_LOCATION = "my_location"


class TrailStop(BaseModel):
    est_id: int | str
    name: str = ""
    latitude: float
    longitude: float

    @classmethod
    def from_site(cls, site: ProcessedSite) -> "TrailStop":
        if site.latitude is None or site.longitude is None:
            raise ValueError(f"Site {site.est_id} has no coordinates")
        return cls(est_id=site.est_id, name=site.name, latitude=site.latitude, longitude=site.longitude)


class LocationStopRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    position: Position = "start"


class MoveStopRequest(BaseModel):
    from_index: int
    to_index: int


class TrailResponse(BaseModel):
    stops: list[TrailStop]
    mode: TransportMode
    route: dict[str, Any] | None = None
    count: int
