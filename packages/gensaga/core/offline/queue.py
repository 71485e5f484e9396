"""Durable queue of actions awaiting submission.

The queue is scoped to one identity: its contents live under
`<name>:<identity>` in the injected KeyValueStore and are written back
after every mutation. Switching identity loads the other identity's list;
it never carries items across.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from gensaga.core.media import FavoriteKey
from gensaga.core.offline.models import ActionKind, PendingAction, PendingStatus, new_local_id
from gensaga.core.storage.protocols import KeyValueStore

logger = logging.getLogger(__name__)

_ACTIONS = TypeAdapter(list[PendingAction])

ANONYMOUS = "anonymous"


class OfflineQueue:
    """Persisted list of PendingAction for the current identity.

    Args:
        store: Durable key-value store
        name: Storage namespace (e.g. "offline-queue", "assets-queue")
        identity: Signed-in user id; None scopes to an anonymous bucket
    """

    def __init__(self, store: KeyValueStore, *, name: str, identity: str | None = None) -> None:
        self._store = store
        self._name = name
        self._identity = identity
        self._items: list[PendingAction] = []
        self._loaded = False

    @property
    def identity(self) -> str | None:
        return self._identity

    @property
    def storage_key(self) -> str:
        return f"{self._name}:{self._identity or ANONYMOUS}"

    async def load(self) -> list[PendingAction]:
        """Load persisted items for the current identity (idempotent)."""
        if self._loaded:
            return list(self._items)
        raw = await self._store.get(self.storage_key)
        items: list[PendingAction] = []
        if raw:
            try:
                items = _ACTIONS.validate_json(raw)
            except PydanticValidationError as e:
                logger.warning(f"Discarding unreadable queue {self.storage_key}: {e}")
        self._items = items
        self._loaded = True
        return list(self._items)

    async def switch_identity(self, identity: str | None) -> None:
        """Scope the queue to another identity and load its items."""
        if identity == self._identity and self._loaded:
            return
        self._identity = identity
        self._loaded = False
        self._items = []
        await self.load()

    async def items(self) -> list[PendingAction]:
        return await self.load()

    # ========================================================================
    # Mutations (each one persists)
    # ========================================================================

    async def enqueue(self, kind: ActionKind, payload: dict[str, Any] | None = None) -> str:
        """Append a pending action and return its local id."""
        await self.load()
        action = PendingAction(
            local_id=new_local_id(kind.id_prefix), kind=kind, payload=dict(payload or {})
        )
        self._items.append(action)
        await self._persist()
        logger.debug(f"Queued {kind.value} action {action.local_id}")
        return action.local_id

    async def enqueue_asset_action(self, kind: ActionKind, key: FavoriteKey) -> str:
        if kind is ActionKind.GENERATION:
            raise ValueError("Generations are not asset actions")
        return await self.enqueue(kind, {"key": str(key)})

    async def mark_syncing(self, local_id: str) -> None:
        await self._update(local_id, status=PendingStatus.SYNCING)

    async def mark_synced(self, local_id: str, remote_id: str | None = None) -> None:
        await self._update(local_id, status=PendingStatus.SYNCED, remote_id=remote_id, error=None)

    async def mark_failed(self, local_id: str, error: str) -> None:
        await self._update(local_id, status=PendingStatus.FAILED, error=error)

    async def remove(self, local_id: str) -> None:
        await self.load()
        self._items = [a for a in self._items if a.local_id != local_id]
        await self._persist()

    async def clear_synced(self) -> int:
        """Drop synced items. Returns how many were removed."""
        await self.load()
        before = len(self._items)
        self._items = [a for a in self._items if a.status is not PendingStatus.SYNCED]
        await self._persist()
        return before - len(self._items)

    async def clear(self) -> None:
        """Drop every item for the current identity."""
        self._items = []
        self._loaded = True
        await self._store.remove(self.storage_key)
        logger.debug(f"Cleared queue {self.storage_key}")

    # ========================================================================
    # Queries
    # ========================================================================

    async def get(self, local_id: str) -> PendingAction | None:
        await self.load()
        return next((a for a in self._items if a.local_id == local_id), None)

    async def pending_to_sync(self) -> list[PendingAction]:
        """Items still to submit: pending or previously failed."""
        await self.load()
        return [
            a for a in self._items if a.status in (PendingStatus.PENDING, PendingStatus.FAILED)
        ]

    async def _update(self, local_id: str, **changes: Any) -> None:
        await self.load()
        for i, action in enumerate(self._items):
            if action.local_id == local_id:
                self._items[i] = action.model_copy(update=changes)
                break
        else:
            logger.debug(f"Ignoring update for unknown action {local_id}")
            return
        await self._persist()

    async def _persist(self) -> None:
        await self._store.set(self.storage_key, _ACTIONS.dump_json(self._items).decode())
