"""Optimistic overlays over remote state."""

from gensaga.core.media import FavoriteKey
from gensaga.core.overlay.favorites import FavoritesOverlay, OptimisticOverlay

__all__ = ["FavoriteKey", "FavoritesOverlay", "OptimisticOverlay"]
