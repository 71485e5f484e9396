"""Pending actions recorded while offline."""

from __future__ import annotations

import secrets
import string
import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from gensaga.core.media import FavoriteKey

_ALPHABET = string.ascii_lowercase + string.digits


class PendingStatus(str, Enum):
    PENDING = "pending"
    SYNCING = "syncing"
    SYNCED = "synced"
    FAILED = "failed"


class ActionKind(str, Enum):
    """What a pending action replays as once back online."""

    GENERATION = "generation"
    DELETE_ASSET = "deleteAsset"
    TOGGLE_FAVORITE = "toggleFavorite"

    @property
    def id_prefix(self) -> str:
        return "local" if self is ActionKind.GENERATION else "asset_action"


def new_local_id(prefix: str) -> str:
    """`<prefix>_<epoch ms>_<9 random chars>`."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def now_ms() -> int:
    return int(time.time() * 1000)


class PendingAction(BaseModel):
    """One queued action.

    Attributes:
        local_id: Client-side id assigned at enqueue time
        kind: Generation or asset edit
        payload: Action arguments (prompt/model/params, or a favorite key)
        status: Sync status
        error: Last sync error, when failed
        remote_id: Server id once synced (generations only)
        created_at: Enqueue time, epoch milliseconds
    """

    model_config = ConfigDict(frozen=True)

    local_id: str
    kind: ActionKind
    payload: dict[str, Any] = Field(default_factory=dict)
    status: PendingStatus = PendingStatus.PENDING
    error: str | None = None
    remote_id: str | None = None
    created_at: int = Field(default_factory=now_ms)

    @property
    def key(self) -> FavoriteKey | None:
        """Media key targeted by an asset action."""
        raw = self.payload.get("key")
        return FavoriteKey.parse(raw) if isinstance(raw, str) else None
