from __future__ import annotations

import logging
from typing import Any, Callable

from ..auth.provider import AuthProvider, resolve_user
from ..datasource import UNIQUE_VIOLATION, DataSource
from ..inflight import InFlight
from ..results import NOT_AUTHENTICATED, ServiceResult

logger = logging.getLogger(__name__)

FAVORITES_TABLE = "user_favorites"


class FavoritesStore:
    """
    The signed-in user's favorited site ids.

    The id set is replaced, never mutated, so readers always hold a
    consistent frozenset. Local state only changes after the remote write
    succeeds.
    """

    def __init__(self, source: DataSource, auth: AuthProvider) -> None:
        self._source = source
        self._auth = auth
        self._ids: frozenset = frozenset()
        self._inflight = InFlight()
        self._subscribers: list[Callable[[frozenset], None]] = []
        self._writes = 0
        self.loaded = False
        self.loading = False

    @property
    def ids(self) -> frozenset:
        return self._ids

    @property
    def count(self) -> int:
        return len(self._ids)

    def is_favorited(self, est_id: Any) -> bool:
        return est_id in self._ids

    def subscribe(self, callback: Callable[[frozenset], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _set(self, ids: frozenset) -> None:
        changed = ids != self._ids
        self._ids = ids
        if changed:
            for callback in list(self._subscribers):
                callback(ids)

    async def load(self, user_id: Any = None) -> frozenset:
        """
        Fetch the user's favorites. Failures leave an empty set rather
        than an error; concurrent loads for one user share a request.
        """
        if user_id is None:
            user = await resolve_user(self._auth)
            if user is None:
                self._set(frozenset())
                return self._ids
            user_id = user["id"]
        return await self._inflight.run(user_id, lambda: self._load(user_id))

    async def _load(self, user_id: Any) -> frozenset:
        writes = self._writes
        self.loading = True
        try:
            result = await self._source.select(
                FAVORITES_TABLE, {"user_id": user_id}, order_by="created_at", descending=True,
            )
        finally:
            self.loading = False

        if result.error is not None:
            logger.warning("Could not load favorites for %s: %s", user_id, result.error.message)
            ids: frozenset = frozenset()
        else:
            ids = frozenset(row["est_id"] for row in result.data or [] if row.get("est_id") is not None)
        if writes != self._writes:
            logger.warning("Discarding favorites load for %s: the set changed while it was in flight", user_id)
            return self._ids
        self.loaded = True
        self._set(ids)
        return ids

    async def add(self, est_id: Any) -> ServiceResult:
        user = await resolve_user(self._auth)
        if user is None:
            return ServiceResult.fail(NOT_AUTHENTICATED)

        result = await self._source.insert(FAVORITES_TABLE, {"user_id": user["id"], "est_id": est_id})
        # Already favorited remotely counts as success
        if result.error is not None and result.error.code != UNIQUE_VIOLATION:
            logger.warning("Error adding favorite %s: %s", est_id, result.error.message)
            return ServiceResult.fail(result.error.message)

        self._writes += 1
        self._set(self._ids | {est_id})
        return ServiceResult.ok()

    async def remove(self, est_id: Any) -> ServiceResult:
        user = await resolve_user(self._auth)
        if user is None:
            return ServiceResult.fail(NOT_AUTHENTICATED)

        result = await self._source.delete(FAVORITES_TABLE, {"user_id": user["id"], "est_id": est_id})
        if result.error is not None:
            logger.warning("Error removing favorite %s: %s", est_id, result.error.message)
            return ServiceResult.fail(result.error.message)

        self._writes += 1
        self._set(self._ids - {est_id})
        return ServiceResult.ok()

    async def flip(self, est_id: Any) -> ServiceResult:
        """Add or remove *est_id*; the failed write's error is kept on the result."""
        if self.is_favorited(est_id):
            result = await self.remove(est_id)
        else:
            result = await self.add(est_id)
        if not result.success:
            return result
        return ServiceResult.ok({"favorited": self.is_favorited(est_id)})

    async def toggle(self, est_id: Any) -> bool:
        """Flip membership; returns whether *est_id* is favorited afterwards."""
        await self.flip(est_id)
        return self.is_favorited(est_id)
