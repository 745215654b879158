from __future__ import annotations

from datetime import datetime
from typing import AbstractSet, Any, Iterable
from zoneinfo import ZoneInfo

from .hours import DEFAULT_TIMEZONE, is_open_now
from .models import FilterConfig, ProcessedSite

_TRUE_STRINGS = {"true", "t", "yes", "y", "1"}


def _is_true(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    return isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS


def _active(flags: dict[str, bool]) -> list[str]:
    return [name for name, enabled in flags.items() if enabled]


def filter_sites(
    sites: Iterable[ProcessedSite],
    config: FilterConfig,
    favorites: AbstractSet[Any] = frozenset(),
    now: datetime | None = None,
    timezone_name: str | None = None,
) -> list[ProcessedSite]:
    """
    Sites passing every active predicate, in input order.

    Proteins and types are OR-ed within their group; the groups, search
    text, spice range, favorites and open-now checks are AND-ed.
    """
    search = config.search_text.strip().lower()
    proteins = _active(config.proteins)
    types = set(_active(config.types))
    spice = config.spice_level
    if config.open_now and now is None:
        # one clock reading for the whole pass
        now = datetime.now(ZoneInfo(timezone_name or DEFAULT_TIMEZONE))

    result = []
    for site in sites:
        if config.show_favorites_only and site.est_id not in favorites:
            continue
        if search and search not in site.name.lower():
            continue
        if proteins and not any(_is_true(site.protein.get(f"{p}_yes")) for p in proteins):
            continue
        if types and site.type not in types:
            continue
        if spice is not None and not spice.min <= (site.heat_overall or 0) <= spice.max:
            continue
        if config.open_now and not is_open_now(site.start_hours, site.end_hours, now, timezone_name):
            continue
        result.append(site)
    return result
