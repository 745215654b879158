from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from .base import UNIQUE_VIOLATION, DataSource, QueryResult, Row

DEFAULT_UNIQUE_KEYS: dict[str, tuple[str, ...]] = {
    "user_favorites": ("user_id", "est_id"),
}


def _matches(row: Row, filters: dict[str, Any] | None) -> bool:
    if not filters:
        return True
    return all(row.get(k) == v for k, v in filters.items())


class MemoryDataSource(DataSource):
    """Tables held in process memory; used for tests and as the CSV backend's store."""

    def __init__(
        self,
        tables: dict[str, list[Row]] | None = None,
        unique_keys: dict[str, tuple[str, ...]] | None = None,
    ) -> None:
        self._tables: dict[str, list[Row]] = {
            name: [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }
        self._unique_keys = dict(DEFAULT_UNIQUE_KEYS if unique_keys is None else unique_keys)
        self._failures: dict[str, str] = {}

    def fail(self, table: str, message: str = "simulated failure") -> None:
        """Make every call touching *table* return an error until ``recover``."""
        self._failures[table] = message

    def recover(self, table: str) -> None:
        self._failures.pop(table, None)

    def rows(self, table: str) -> list[Row]:
        return [dict(r) for r in self._tables.get(table, [])]

    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> QueryResult:
        if table in self._failures:
            return QueryResult.failure(self._failures[table])
        rows = [dict(r) for r in self._tables.get(table, []) if _matches(r, filters)]
        if order_by:
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing
        return QueryResult(data=rows)

    async def insert(self, table: str, row: Row) -> QueryResult:
        if table in self._failures:
            return QueryResult.failure(self._failures[table])
        existing = self._tables.setdefault(table, [])
        unique = self._unique_keys.get(table)
        if unique:
            key = tuple(row.get(c) for c in unique)
            if any(tuple(r.get(c) for c in unique) == key for r in existing):
                return QueryResult.failure(
                    f'duplicate key value violates unique constraint on {table}',
                    code=UNIQUE_VIOLATION,
                )
        stored = dict(row)
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        existing.append(stored)
        return QueryResult(data=[dict(stored)])

    async def delete(self, table: str, filters: dict[str, Any]) -> QueryResult:
        if table in self._failures:
            return QueryResult.failure(self._failures[table])
        rows = self._tables.get(table, [])
        removed = [r for r in rows if _matches(r, filters)]
        self._tables[table] = [r for r in rows if not _matches(r, filters)]
        return QueryResult(data=[dict(r) for r in removed])

    async def update(self, table: str, filters: dict[str, Any], changes: Row) -> QueryResult:
        if table in self._failures:
            return QueryResult.failure(self._failures[table])
        updated = []
        for row in self._tables.get(table, []):
            if _matches(row, filters):
                row.update(changes)
                updated.append(dict(row))
        return QueryResult(data=updated)
