"""Optimistic overlay over the remote favorites set.

Reads merge the last remote snapshot with local overrides; an override
wins. `toggle()` installs an override immediately, runs the remote
mutation, then clears the override whether the mutation succeeded or not.
Each override carries a per-key sequence number so an earlier toggle that
settles late does not clear the override of a later toggle of the same key.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

from gensaga.core.media import FavoriteKey, MediaKind
from gensaga.core.remote.protocols import FavoritesService

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class _Override:
    value: bool
    seq: int


class OptimisticOverlay(Generic[K]):
    """Boolean overrides shadowing a remote set of keys."""

    def __init__(self) -> None:
        self._overrides: dict[K, _Override] = {}
        self._seq = 0

    def __len__(self) -> int:
        return len(self._overrides)

    def is_set(self, key: K) -> bool:
        return key in self._overrides

    def get(self, key: K) -> bool | None:
        override = self._overrides.get(key)
        return override.value if override else None

    def set(self, key: K, value: bool) -> int:
        """Install an override. Returns its sequence number."""
        self._seq += 1
        self._overrides[key] = _Override(value=value, seq=self._seq)
        return self._seq

    def clear(self, key: K, seq: int | None = None) -> bool:
        """Remove the override for key.

        With `seq`, only the override installed under that sequence number
        is removed. Returns True when something was removed.
        """
        override = self._overrides.get(key)
        if override is None or (seq is not None and override.seq != seq):
            return False
        del self._overrides[key]
        return True

    def clear_all(self) -> None:
        self._overrides.clear()

    def contains(self, remote: set[K], key: K) -> bool:
        """Merged membership: override first, then the remote set."""
        override = self._overrides.get(key)
        if override is not None:
            return override.value
        return key in remote

    def merged(self, remote: set[K]) -> set[K]:
        result = set(remote)
        for key, override in self._overrides.items():
            if override.value:
                result.add(key)
            else:
                result.discard(key)
        return result


class FavoritesOverlay:
    """Favorites with instant local feedback.

    Example:
        >>> favorites = FavoritesOverlay(backend)
        >>> await favorites.refresh()
        >>> await favorites.toggle(FavoriteKey(record_id="rec_1", media_type=MediaKind.IMAGE, index=0))
    """

    def __init__(self, service: FavoritesService) -> None:
        self._service = service
        self._remote: set[FavoriteKey] = set()
        self.overlay: OptimisticOverlay[FavoriteKey] = OptimisticOverlay()

    async def refresh(self) -> set[FavoriteKey]:
        """Reload the remote snapshot."""
        self._remote = set(await self._service.list_favorites())
        return set(self._remote)

    def favorites(self) -> set[FavoriteKey]:
        return self.overlay.merged(self._remote)

    def is_favorite(self, key: FavoriteKey) -> bool:
        return self.overlay.contains(self._remote, key)

    def is_favorited(self, record_id: str, media_type: MediaKind, index: int) -> bool:
        return self.is_favorite(FavoriteKey(record_id=record_id, media_type=media_type, index=index))

    async def toggle(self, key: FavoriteKey) -> bool:
        """Flip a favorite optimistically.

        Returns:
            The new value reported by the remote service

        Raises:
            Whatever the remote mutation raises; the override is cleared first.
        """
        desired = not self.is_favorite(key)
        seq = self.overlay.set(key, desired)
        try:
            value = await self._service.toggle_favorite(key)
        except Exception as e:
            logger.error(f"Failed to toggle favorite {key}: {e}")
            self.overlay.clear(key, seq)
            raise
        # a later toggle of the same key owns the snapshot; this answer is stale
        if self.overlay.clear(key, seq):
            if value:
                self._remote.add(key)
            else:
                self._remote.discard(key)
        return value
