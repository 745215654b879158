"""
Site data pipeline.

Responsibilities:
- Join the per-table records for each establishment.
- Derive flat ``ProcessedSite`` view models and summary stats.
- Filter the derived sites by search text, protein, type, spice,
  favorites and opening hours.
- Hold the current snapshot and the per-user filtered views.
"""
from .deriver import derive, derive_site, summarize
from .filters import filter_sites
from .hours import is_open_now, parse_time_to_minutes, weekly_hours
from .joiner import join
from .models import FilterConfig, ProcessedSite, Specialty, SpiceRange, SummaryStats
from .ranking import filter_by_substring, percentage_of_max, top_n

__all__ = [
    "FilterConfig",
    "ProcessedSite",
    "Specialty",
    "SpiceRange",
    "SummaryStats",
    "derive",
    "derive_site",
    "filter_by_substring",
    "filter_sites",
    "is_open_now",
    "join",
    "parse_time_to_minutes",
    "percentage_of_max",
    "summarize",
    "top_n",
    "weekly_hours",
]
