from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from ..datasource import DataSource, QueryResult
from ..errors import FetchError
from ..inflight import InFlight
from .deriver import derive, summarize
from .joiner import ENTITY_KEY, JoinedEntity, group_by_entity, join
from .models import ProcessedSite, SummaryStats

logger = logging.getLogger(__name__)

# (joined section name, table name)
SITE_TABLES = (
    ("site", "sites"),
    ("descriptions", "descriptions"),
    ("menu", "menu"),
    ("hours", "hours"),
    ("salsa", "salsa"),
    ("protein", "protein"),
)
SPECIALTY_TABLES = (
    ("menu", "specialty_items"),
    ("protein", "specialty_proteins"),
    ("salsa", "specialty_salsas"),
)
SUMMARY_TABLE = "summary"


@dataclass(frozen=True)
class SiteSnapshot:
    sites: tuple[ProcessedSite, ...] = ()
    summary: SummaryStats = field(default_factory=SummaryStats)
    sequence: int = 0
    loaded_at: datetime | None = None


def attach_specialties(entities: list[JoinedEntity], section: str, rows: list[dict[str, Any]] | None) -> None:
    grouped = group_by_entity(rows)
    for entity in entities:
        current = entity.get(section)
        if isinstance(current, dict) and "specialties" not in current:
            entity[section] = {**current, "specialties": grouped.get(entity[ENTITY_KEY], [])}


def _rows(table: str, result: QueryResult) -> list[dict[str, Any]]:
    if result.error is not None:
        raise FetchError(table, result.error.message, result.error.code)
    return result.data or []


class SiteStore:
    """
    Owns the processed-site collection.

    ``refresh`` is the only writer. Each refresh carries a sequence number;
    a response older than the snapshot already applied is dropped. Failed
    refreshes keep the previous snapshot and set ``error``.
    """

    def __init__(self, source: DataSource, complete_view: str | None = None) -> None:
        self._source = source
        self._complete_view = complete_view
        self._snapshot = SiteSnapshot()
        self._issued = 0
        self._inflight = InFlight()
        self._subscribers: list[Callable[[SiteSnapshot], None]] = []
        self.error: str | None = None
        self.loading = False

    @property
    def snapshot(self) -> SiteSnapshot:
        return self._snapshot

    @property
    def sites(self) -> tuple[ProcessedSite, ...]:
        return self._snapshot.sites

    @property
    def summary(self) -> SummaryStats:
        return self._snapshot.summary

    @property
    def loaded(self) -> bool:
        return self._snapshot.sequence > 0

    def get(self, est_id: Any) -> ProcessedSite | None:
        for site in self._snapshot.sites:
            if site.est_id == est_id:
                return site
        return None

    def subscribe(self, callback: Callable[[SiteSnapshot], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def _fetch_entities(self) -> tuple[list[JoinedEntity], list[dict[str, Any]]]:
        if self._complete_view:
            view, summary = await asyncio.gather(
                self._source.select(self._complete_view),
                self._source.select(SUMMARY_TABLE),
            )
            entities = [dict(row) for row in _rows(self._complete_view, view)]
            return entities, _rows(SUMMARY_TABLE, summary)

        tables = [table for _, table in SITE_TABLES + SPECIALTY_TABLES] + [SUMMARY_TABLE]
        results = await asyncio.gather(*(self._source.select(table) for table in tables))
        by_table = {table: _rows(table, result) for table, result in zip(tables, results)}

        entities = join((section, by_table[table]) for section, table in SITE_TABLES)
        for section, table in SPECIALTY_TABLES:
            attach_specialties(entities, section, by_table[table])
        return entities, by_table[SUMMARY_TABLE]

    async def refresh(self) -> bool:
        """Fetch, join and derive everything; returns whether a new snapshot was applied."""
        self._issued += 1
        sequence = self._issued
        self.loading = True
        try:
            entities, summary_rows = await self._fetch_entities()
        except FetchError as exc:
            if sequence > self._snapshot.sequence:
                self.error = str(exc)
            logger.warning("Site refresh #%d failed, keeping previous data: %s", sequence, exc)
            return False
        finally:
            if sequence == self._issued:
                self.loading = False

        if sequence <= self._snapshot.sequence:
            logger.warning(
                "Discarding stale site refresh #%d (already at #%d)", sequence, self._snapshot.sequence,
            )
            return False

        self._snapshot = SiteSnapshot(
            sites=tuple(derive(entities)),
            summary=summarize(summary_rows),
            sequence=sequence,
            loaded_at=datetime.now(timezone.utc),
        )
        self.error = None
        logger.info("Loaded %d of %d sites (refresh #%d)", len(self._snapshot.sites), len(entities), sequence)
        for callback in list(self._subscribers):
            callback(self._snapshot)
        return True

    async def ensure_loaded(self) -> None:
        """Load once; concurrent first callers share a single refresh."""
        if not self.loaded:
            await self._inflight.run("sites", self.refresh)
