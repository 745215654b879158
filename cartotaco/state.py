from __future__ import annotations

from typing import Any

from .auth.provider import StaticAuthProvider
from .auth.users import UserDirectory
from .config import DEFAULT_APP_CONFIG, AppConfig
from .datasource import DataSource, create_data_source
from .favorites import FavoritesStore
from .sites.store import SiteStore
from .sites.view import SiteView
from .trail import Trail


class AppState:
    """
    Everything one running app owns: the data source, the site store,
    and per-user favorites, filtered views and trails. Built by ``create_app``;
    tests build their own.
    """

    def __init__(
        self,
        config: AppConfig = DEFAULT_APP_CONFIG,
        source: DataSource | None = None,
        users: UserDirectory | None = None,
        complete_view: str | None = None,
    ) -> None:
        self.config = config
        self.source = source if source is not None else create_data_source(config.data)
        self.users = users if users is not None else UserDirectory()
        self.sites = SiteStore(self.source, complete_view=complete_view)
        self._favorites: dict[Any, FavoritesStore] = {}
        self._views: dict[Any, SiteView] = {}
        self._trails: dict[Any, Trail] = {}

    def favorites_for(self, user: dict[str, Any]) -> FavoritesStore:
        store = self._favorites.get(user["id"])
        if store is None:
            store = FavoritesStore(self.source, StaticAuthProvider(user))
            self._favorites[user["id"]] = store
        return store

    async def loaded_favorites(self, user: dict[str, Any]) -> FavoritesStore:
        store = self.favorites_for(user)
        if not store.loaded:
            await store.load(user["id"])
        return store

    def view_for(self, user: dict[str, Any]) -> SiteView:
        view = self._views.get(user["id"])
        if view is None:
            view = SiteView(
                self.sites,
                favorites=self.favorites_for(user),
                timezone_name=self.config.timezone,
            )
            self._views[user["id"]] = view
        return view

    def trail_for(self, user: dict[str, Any]) -> Trail:
        return self._trails.setdefault(user["id"], Trail())

    def forget_user(self, user: dict[str, Any]) -> None:
        view = self._views.pop(user["id"], None)
        if view is not None:
            view.close()
        self._favorites.pop(user["id"], None)
        self._trails.pop(user["id"], None)

    async def aclose(self) -> None:
        for view in self._views.values():
            view.close()
        self._views.clear()
        self._favorites.clear()
        self._trails.clear()
        await self.source.aclose()
