"""Ports to the remote record store.

Each service is an async Protocol so the orchestrator can run against the
in-memory backend, the HTTP function-call store, or test doubles.
Slot and credit calls return raw, possibly polymorphic payloads; they are
normalized by `gensaga.core.remote.adapters`.
"""

from __future__ import annotations

from typing import Any, Protocol

from gensaga.core.media import FavoriteKey, MediaKind
from gensaga.core.remote.models import SlotStatus


class SlotService(Protocol):
    """Remote concurrency slots."""

    async def acquire(self, kind: MediaKind, prompt: str) -> Any:
        """Request a slot. Returns a raw slot result (see adapters)."""
        ...

    async def set_status(
        self,
        slot_id: str,
        status: SlotStatus,
        *,
        kind: MediaKind,
        result_url: str | None = None,
    ) -> None:
        """Set a slot's terminal status."""
        ...


class CreditService(Protocol):
    """Two-phase credit reservation."""

    async def reserve(self, amount: int) -> Any:
        """Hold `amount` credits. Returns a raw credit result (see adapters)."""
        ...

    async def capture(self, amount: int) -> None:
        """Convert a hold of `amount` into a charge."""
        ...

    async def release(self, amount: int) -> None:
        """Return a hold of `amount` to the balance."""
        ...


class SessionService(Protocol):
    """Sessions and the generation records inside them."""

    async def create_session(self, title: str, kind: MediaKind) -> str:
        ...

    async def add_record(
        self,
        session_id: str,
        *,
        prompt: str,
        kind: MediaKind,
        model_id: str,
        model_label: str | None,
        params: dict[str, Any],
        slot_id: str,
    ) -> str:
        """Create a loading record and return its id."""
        ...

    async def patch_record(self, record_id: str, fields: dict[str, Any]) -> None:
        """Patch record fields (snake_case GenerationRecord field names)."""
        ...


class FavoritesService(Protocol):
    async def list_favorites(self) -> list[FavoriteKey]:
        ...

    async def toggle_favorite(self, key: FavoriteKey) -> bool:
        """Flip a favorite and return the new value."""
        ...


class AssetService(Protocol):
    async def delete_asset_media(self, key: FavoriteKey) -> None:
        """Remove one media item from a record."""
        ...
