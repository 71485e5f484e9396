"""In-memory remote backend.

Implements every remote port (slots, credits, sessions, favorites, assets)
against process-local state. Used by the CLI's offline mode and by tests.
Each call yields to the event loop between reading and writing state, the
way a network round trip would.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from gensaga.core.errors import RemoteCallError
from gensaga.core.media import FavoriteKey, MediaItem, MediaKind
from gensaga.core.remote.models import GenerationRecord, SlotStatus

logger = logging.getLogger(__name__)


@dataclass
class SlotEntry:
    id: str
    kind: MediaKind
    prompt: str
    status: SlotStatus = SlotStatus.ACTIVE
    result_url: str | None = None


@dataclass
class SessionEntry:
    id: str
    title: str
    kind: MediaKind
    record_ids: list[str] = field(default_factory=list)


class InMemoryBackend:
    """All remote services backed by dicts.

    Attributes:
        slot_limit: Max simultaneously active slots
        balance: Credit balance (captured credits are deducted)
        reserved: Credits currently held
        calls: Log of (method, *args) tuples, in call order
    """

    def __init__(self, *, slot_limit: int = 2, credits: int = 1000) -> None:
        self.slot_limit = slot_limit
        self.balance = credits
        self.reserved = 0
        self.slots: dict[str, SlotEntry] = {}
        self.sessions: dict[str, SessionEntry] = {}
        self.records: dict[str, GenerationRecord] = {}
        self.favorites: set[FavoriteKey] = set()
        self.calls: list[tuple[Any, ...]] = []
        self._ids = itertools.count(1)
        self._failures: dict[str, list[BaseException]] = {}

    # =========================================================================
    # Test hooks
    # =========================================================================

    def fail_next(self, method: str, error: BaseException) -> None:
        """Make the next call to `method` raise `error`."""
        self._failures.setdefault(method, []).append(error)

    def calls_to(self, method: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == method]

    @property
    def active_slots(self) -> int:
        return sum(1 for s in self.slots.values() if s.status is SlotStatus.ACTIVE)

    async def _enter(self, method: str, *args: Any) -> None:
        self.calls.append((method, *args))
        await asyncio.sleep(0)
        pending = self._failures.get(method)
        if pending:
            raise pending.pop(0)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}_{next(self._ids)}"

    # =========================================================================
    # SlotService
    # =========================================================================

    async def acquire(self, kind: MediaKind, prompt: str) -> Any:
        active = self.active_slots
        await self._enter("acquire", kind, prompt)
        if active >= self.slot_limit:
            return {"ok": False, "reason": "limit_reached", "active": active, "limit": self.slot_limit}
        slot_id = self._next_id("gen")
        self.slots[slot_id] = SlotEntry(id=slot_id, kind=kind, prompt=prompt)
        return {"ok": True, "generationId": slot_id}

    async def set_status(
        self,
        slot_id: str,
        status: SlotStatus,
        *,
        kind: MediaKind,
        result_url: str | None = None,
    ) -> None:
        await self._enter("set_status", slot_id, status)
        slot = self.slots.get(slot_id)
        if slot is None:
            raise RemoteCallError("Generation slot not found", path="set_status")
        slot.status = status
        slot.result_url = result_url

    # =========================================================================
    # CreditService
    # =========================================================================

    async def reserve(self, amount: int) -> Any:
        await self._enter("reserve", amount)
        if self.balance - self.reserved < amount:
            return {"success": False, "message": "Insufficient credits"}
        self.reserved += amount
        return {"success": True}

    async def capture(self, amount: int) -> None:
        await self._enter("capture", amount)
        if amount > self.reserved:
            raise RemoteCallError("Capture exceeds reserved credits", path="capture")
        self.reserved -= amount
        self.balance -= amount

    async def release(self, amount: int) -> None:
        await self._enter("release", amount)
        if amount > self.reserved:
            raise RemoteCallError("Release exceeds reserved credits", path="release")
        self.reserved -= amount

    # =========================================================================
    # SessionService
    # =========================================================================

    async def create_session(self, title: str, kind: MediaKind) -> str:
        await self._enter("create_session", title, kind)
        session_id = self._next_id("session")
        self.sessions[session_id] = SessionEntry(id=session_id, title=title, kind=kind)
        return session_id

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
        await self._enter("add_record", session_id)
        session = self.sessions.get(session_id)
        if session is None:
            raise RemoteCallError("Session not found", path="add_record")
        record_id = self._next_id("rec")
        self.records[record_id] = GenerationRecord(
            id=record_id,
            session_id=session_id,
            prompt=prompt,
            model_id=model_id,
            model_label=model_label,
            kind=kind,
            slot_id=slot_id,
            params=params,
        )
        session.record_ids.append(record_id)
        return record_id

    async def patch_record(self, record_id: str, fields: dict[str, Any]) -> None:
        await self._enter("patch_record", record_id, dict(fields))
        record = self.records.get(record_id)
        if record is None:
            raise RemoteCallError("Generation not found", path="patch_record")
        merged = record.model_dump() | fields
        self.records[record_id] = GenerationRecord.model_validate(merged)

    # =========================================================================
    # FavoritesService / AssetService
    # =========================================================================

    async def list_favorites(self) -> list[FavoriteKey]:
        await self._enter("list_favorites")
        return sorted(self.favorites, key=str)

    async def toggle_favorite(self, key: FavoriteKey) -> bool:
        await self._enter("toggle_favorite", key)
        if key.record_id not in self.records:
            raise RemoteCallError("Generation not found", path="toggle_favorite")
        if key in self.favorites:
            self.favorites.discard(key)
            return False
        self.favorites.add(key)
        return True

    async def delete_asset_media(self, key: FavoriteKey) -> None:
        await self._enter("delete_asset_media", key)
        record = self.records.get(key.record_id)
        if record is None:
            raise RemoteCallError("Generation not found", path="delete_asset_media")
        if key.index >= record.media_count(key.media_type):
            raise RemoteCallError("Invalid media index", path="delete_asset_media")
        if key.media_type is MediaKind.IMAGE:
            images: list[MediaItem] = [m for i, m in enumerate(record.images) if i != key.index]
            self.records[key.record_id] = record.model_copy(update={"images": images})
        else:
            videos = [v for i, v in enumerate(record.videos) if i != key.index]
            self.records[key.record_id] = record.model_copy(update={"videos": videos})
        self.favorites.discard(key)

    def seed_record(
        self,
        *,
        kind: MediaKind = MediaKind.IMAGE,
        urls: list[str] | None = None,
        prompt: str = "seed",
    ) -> str:
        """Insert a completed record directly (no calls logged)."""
        session_id = self._next_id("session")
        self.sessions[session_id] = SessionEntry(id=session_id, title=prompt, kind=kind)
        record_id = self._next_id("rec")
        urls = urls or []
        self.records[record_id] = GenerationRecord(
            id=record_id,
            session_id=session_id,
            prompt=prompt,
            model_id="seed",
            kind=kind,
            is_loading=False,
            images=[MediaItem(url=u) for u in urls] if kind is MediaKind.IMAGE else [],
            videos=urls if kind is MediaKind.VIDEO else [],
            completed_at=datetime.now(UTC),
        )
        self.sessions[session_id].record_ids.append(record_id)
        return record_id
