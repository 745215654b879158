from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from ..favorites import FavoritesStore
from .filters import filter_sites
from .models import FilterConfig, ProcessedSite
from .store import SiteSnapshot, SiteStore


class SiteView:
    """
    Filtered sites for one user, kept in step with its inputs.

    ``visible`` is recomputed when the site snapshot is replaced, when
    the filter config is set, and when the favorites set changes. With
    ``open_now`` on, it is also recomputed on every read since the
    result depends on the clock.
    """

    def __init__(
        self,
        store: SiteStore,
        favorites: FavoritesStore | None = None,
        config: FilterConfig | None = None,
        timezone_name: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._favorites = favorites
        self._config = config or FilterConfig()
        self._timezone_name = timezone_name
        self._clock = clock
        self._visible: tuple[ProcessedSite, ...] = ()
        self._unsubscribe = [store.subscribe(self._on_sites)]
        if favorites is not None:
            self._unsubscribe.append(favorites.subscribe(self._on_favorites))
        self.recompute()

    @property
    def config(self) -> FilterConfig:
        return self._config

    @property
    def visible(self) -> tuple[ProcessedSite, ...]:
        if self._config.open_now:
            self.recompute()
        return self._visible

    def set_config(self, config: FilterConfig) -> None:
        self._config = config
        self.recompute()

    def update_config(self, **changes: Any) -> FilterConfig:
        merged = {**self._config.model_dump(), **changes}
        self.set_config(FilterConfig.model_validate(merged))
        return self._config

    def recompute(self) -> None:
        favorites = self._favorites.ids if self._favorites is not None else frozenset()
        now = self._clock() if self._clock is not None else None
        self._visible = tuple(
            filter_sites(self._store.sites, self._config, favorites, now, self._timezone_name)
        )

    def _on_sites(self, snapshot: SiteSnapshot) -> None:
        self.recompute()

    def _on_favorites(self, ids: frozenset) -> None:
        self.recompute()

    def close(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
