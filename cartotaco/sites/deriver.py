"""
View-model derivation.

Responsibilities:
- Turn each joined entity into one flat ``ProcessedSite``.
- Drop entities with missing sections or malformed data, one at a time,
  logging the cause instead of failing the batch.
- Build the ``SummaryStats`` record used to scale salsa/heat gauges.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping

from ..errors import ComputationError, PartialDataError
from .joiner import ENTITY_KEY, JoinedEntity
from .models import ProcessedSite, Specialty, SummaryStats
from .ranking import filter_by_substring, top_n

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = ("site", "descriptions", "menu", "hours", "salsa", "protein")

SPECIALTY_SECTIONS = (("Item", "menu"), ("Protein", "protein"), ("Salsa", "salsa"))

TOP_COUNT = 5


def _number(value: Any, default: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(number) else number


def _percent(value: Any) -> float:
    return _number(value) * 100


def _coordinate(section: Mapping[str, Any], field: str, est_id: Any) -> float | None:
    value = section.get(field)
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ComputationError(f"site {est_id} has non-numeric {field}: {value!r}") from exc
    if math.isnan(number):
        return None
    return number


def _text(value: Any) -> str | None:
    return None if value is None else str(value)


def _composition(section: Mapping[str, Any]) -> tuple[list[tuple[str, float]], list[tuple[str, float]]]:
    percs = [(key, _percent(value)) for key, value in filter_by_substring(section, "perc")]
    return percs, top_n(percs, TOP_COUNT)


def _specialties(entity: JoinedEntity) -> list[Specialty]:
    result: list[Specialty] = []
    for category, section_name in SPECIALTY_SECTIONS:
        section = entity.get(section_name) or {}
        for entry in section.get("specialties") or []:
            fields = {k: v for k, v in entry.items() if k != "category"}
            result.append(Specialty(category=category, **fields))
    return result


def derive_site(entity: JoinedEntity) -> ProcessedSite:
    """Build one view model; raises on partial or malformed data."""
    est_id = entity.get(ENTITY_KEY)
    missing = [name for name in REQUIRED_SECTIONS if not isinstance(entity.get(name), dict)]
    if missing:
        raise PartialDataError(est_id, missing)

    site = entity["site"]
    descriptions = entity["descriptions"]
    hours = entity["hours"]
    salsa = entity["salsa"]
    protein = {k: v for k, v in entity["protein"].items() if k != "specialties"}

    menu_percs, top_menu = _composition(entity["menu"])
    protein_percs, top_proteins = _composition(protein)

    return ProcessedSite(
        est_id=est_id,
        name=_text(site.get("name")) or "",
        type=_text(site.get("type")),
        latitude=_coordinate(site, "latitude", est_id),
        longitude=_coordinate(site, "longitude", est_id),
        created_at=_text(site.get("created_at")),
        short_description=_text(descriptions.get("short_description")),
        long_description=_text(descriptions.get("long_description")),
        start_hours=dict(filter_by_substring(hours, "start")),
        end_hours=dict(filter_by_substring(hours, "end")),
        menu_percs=menu_percs,
        top_menu=top_menu,
        protein_percs=protein_percs,
        top_proteins=top_proteins,
        protein=protein,
        salsa_count=_number(salsa.get("salsa_count")),
        heat_overall=_number(salsa.get("heat_overall")),
        specialties=_specialties(entity),
    )


def derive(entities: Iterable[JoinedEntity]) -> list[ProcessedSite]:
    """Derive every entity that can be derived; the rest are logged and skipped."""
    sites: list[ProcessedSite] = []
    for entity in entities:
        try:
            sites.append(derive_site(entity))
        except PartialDataError as exc:
            logger.warning("Skipping site %s: missing %s", exc.est_id, ", ".join(exc.missing))
        except Exception:
            logger.warning(
                "Skipping site %s: derivation failed", entity.get(ENTITY_KEY), exc_info=True,
            )
    return sites


def summarize(rows: list[dict[str, Any]] | None) -> SummaryStats:
    """First summary row as ``SummaryStats``; all zeros when there is none."""
    if not rows:
        return SummaryStats()
    row = rows[0]
    return SummaryStats(
        max_salsa=_number(row.get("max_salsa")),
        avg_salsa=_number(row.get("avg_salsa")),
        max_heat=_number(row.get("max_heat")),
        avg_heat=_number(row.get("avg_heat")),
    )
