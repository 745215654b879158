from __future__ import annotations

import re
from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from ..sites.hours import DAY_KEYS

EstablishmentType = Literal["Brick and Mortar", "Stand", "Truck"]
SubmissionStatus = Literal["pending", "approved", "rejected"]

# Rough Tucson service area
LATITUDE_BOUNDS = (31.5, 33.0)
LONGITUDE_BOUNDS = (-111.5, -110.5)

_PHONE_RE = re.compile(r"^(\(?\d{3}\)?[\s.-]?)?\d{3}[\s.-]?\d{4}$")
_INSTAGRAM_RE = re.compile(r"^[a-zA-Z0-9._]{1,30}$")
_FACEBOOK_PAGE_RE = re.compile(r"^[a-zA-Z0-9.-]+$")
_TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _minutes(value: str) -> int:
    hour, minute = value.split(":")
    return int(hour) * 60 + int(minute)


class DayHours(BaseModel):
    """One day's opening window as HH:MM strings. Either bound may be left out."""

    open: str | None = None
    close: str | None = None

    @field_validator("open", "close")
    @classmethod
    def _time(cls, value: str | None, info: ValidationInfo) -> str | None:
        value = _blank_to_none(value)
        if value is not None and not _TIME_RE.match(value):
            label = "Opening time" if info.field_name == "open" else "Closing time"
            raise ValueError(f"{label}: Invalid time format. Use HH:MM (e.g., 08:00)")
        return value

    @model_validator(mode="after")
    def _close_after_open(self) -> "DayHours":
        if self.open and self.close and _minutes(self.close) <= _minutes(self.open):
            raise ValueError("Closing time must be after opening time")
        return self


class LocationSubmission(BaseModel):
    """A user-proposed establishment, validated field by field."""

    name: str = Field(..., max_length=100)
    type: EstablishmentType
    address: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    short_description: str = Field(..., max_length=150)
    long_description: str | None = Field(default=None, max_length=500)
    phone: str | None = None
    website: str | None = None
    instagram: str | None = None
    facebook: str | None = None
    # A day mapped to None is closed
    hours: dict[str, DayHours | None] | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 3:
            raise ValueError("Name must be at least 3 characters")
        return value

    @field_validator("address")
    @classmethod
    def _address(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 10:
            raise ValueError("Please enter a complete address")
        return value

    @field_validator("short_description")
    @classmethod
    def _short_description(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 10:
            raise ValueError("Description must be at least 10 characters")
        return value

    @field_validator("long_description", "phone", "website", "instagram", "facebook")
    @classmethod
    def _optional_text(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: str | None) -> str | None:
        if value is not None and not _PHONE_RE.match(value):
            raise ValueError("Invalid phone format. Use: (520) 123-4567")
        return value

    @field_validator("website")
    @classmethod
    def _website(cls, value: str | None) -> str | None:
        if value is not None and not _is_url(value):
            raise ValueError("Invalid website format. Must start with http:// or https://")
        return value

    @field_validator("instagram")
    @classmethod
    def _instagram(cls, value: str | None) -> str | None:
        if value is not None and not _INSTAGRAM_RE.match(value.replace("@", "", 1)):
            raise ValueError("Invalid Instagram handle. Use @username or username")
        return value

    @field_validator("facebook")
    @classmethod
    def _facebook(cls, value: str | None) -> str | None:
        if value is None:
            return value
        if "facebook.com/" in value:
            if not _is_url(value):
                raise ValueError("Invalid Facebook URL format. Must start with http:// or https://")
        elif not _FACEBOOK_PAGE_RE.match(value):
            raise ValueError("Invalid Facebook page. Use page name or full URL")
        return value

    @field_validator("hours")
    @classmethod
    def _hours(cls, value: dict[str, DayHours | None] | None) -> dict[str, DayHours | None] | None:
        if value is None:
            return value
        unknown = sorted(set(value) - set(DAY_KEYS))
        if unknown:
            raise ValueError(f"Unknown day in hours: {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def _inside_service_area(self) -> "LocationSubmission":
        lat_min, lat_max = LATITUDE_BOUNDS
        lon_min, lon_max = LONGITUDE_BOUNDS
        if not (lat_min <= self.latitude <= lat_max and lon_min <= self.longitude <= lon_max):
            raise ValueError("Location appears to be outside Tucson area")
        return self


class SubmissionUpdate(BaseModel):
    """Fields a user may change on a pending submission; unset fields are left alone."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    type: EstablishmentType | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    short_description: str | None = None
    long_description: str | None = None
    phone: str | None = None
    website: str | None = None
    instagram: str | None = None
    facebook: str | None = None
    hours: dict[str, Any] | None = None


class SubmissionStats(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
