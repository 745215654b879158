from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

# Postgres error code returned when a unique constraint rejects an insert.
UNIQUE_VIOLATION = "23505"

Row = dict[str, Any]


@dataclass(frozen=True)
class ErrorInfo:
    message: str
    code: str | None = None


@dataclass(frozen=True)
class QueryResult:
    data: list[Row] | None = None
    error: ErrorInfo | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, message: str, code: str | None = None) -> "QueryResult":
        return cls(data=None, error=ErrorInfo(message=message, code=code))


class DataSource(ABC):
    """Async table access. Implementations never raise for remote failures."""

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> QueryResult:
        ...

    @abstractmethod
    async def insert(self, table: str, row: Row) -> QueryResult:
        ...

    @abstractmethod
    async def update(self, table: str, filters: dict[str, Any], changes: Row) -> QueryResult:
        """Apply *changes* to every row matching *filters*; ``data`` holds the updated rows."""

    @abstractmethod
    async def delete(self, table: str, filters: dict[str, Any]) -> QueryResult:
        ...

    async def aclose(self) -> None:
        return None
