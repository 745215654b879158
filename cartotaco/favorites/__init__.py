"""
User favorites.

Responsibilities:
- Load the signed-in user's favorited site ids from ``user_favorites``.
- Add, remove and toggle favorites, updating local state only after the
  remote write succeeds.
- Notify views so "favorites only" filtering stays current.
"""
from .store import FAVORITES_TABLE, FavoritesStore

__all__ = ["FAVORITES_TABLE", "FavoritesStore"]
