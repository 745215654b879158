from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Labelled numeric value, e.g. ("chicken_perc", 42.0)
Pair = tuple[str, float]

SpecialtyCategory = Literal["Item", "Protein", "Salsa"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Specialty(_CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="allow",
    )

    category: SpecialtyCategory
    name: str | None = None
    description: str | None = None


class ProcessedSite(_CamelModel):
    """Flattened, UI-ready view of one establishment."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    est_id: int | str = Field(alias="est_id")
    name: str = ""
    type: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    created_at: str | None = None

    short_description: str | None = None
    long_description: str | None = None

    start_hours: dict[str, Any] = Field(default_factory=dict)
    end_hours: dict[str, Any] = Field(default_factory=dict)

    menu_percs: list[Pair] = Field(default_factory=list)
    top_menu: list[Pair] = Field(default_factory=list)
    protein_percs: list[Pair] = Field(default_factory=list)
    top_proteins: list[Pair] = Field(default_factory=list)
    protein: dict[str, Any] = Field(default_factory=dict)

    salsa_count: float = 0.0
    heat_overall: float = 0.0

    specialties: list[Specialty] = Field(default_factory=list)


class SummaryStats(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    max_salsa: float = 0.0
    avg_salsa: float = 0.0
    max_heat: float = 0.0
    avg_heat: float = 0.0


class SpiceRange(BaseModel):
    min: float = 0.0
    max: float = 10.0

    @model_validator(mode="after")
    def _ordered(self) -> "SpiceRange":
        if self.min > self.max:
            raise ValueError("spice range min must not exceed max")
        return self


class FilterConfig(_CamelModel):
    search_text: str = ""
    proteins: dict[str, bool] = Field(default_factory=dict)
    types: dict[str, bool] = Field(default_factory=dict)
    spice_level: SpiceRange | None = None
    open_now: bool = False
    show_favorites_only: bool = False


class WeeklyHoursRow(BaseModel):
    day: str
    open: str
    close: str
    closed: bool


class SitesResponse(_CamelModel):
    sites: list[ProcessedSite]
    total: int
    error: str | None = None


class SiteDetail(_CamelModel):
    site: ProcessedSite
    weekly_hours: list[WeeklyHoursRow]
    is_open_now: bool
    favorited: bool = False
