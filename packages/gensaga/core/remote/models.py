"""Models for the remote record store: slots, credit reservations, records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from gensaga.core.errors import InvalidTransition
from gensaga.core.media import MediaKind, MediaItem


class SlotStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class ReservationState(str, Enum):
    RESERVED = "reserved"
    CAPTURED = "captured"
    RELEASED = "released"


@dataclass
class GenerationSlot:
    """A remote concurrency ticket held by one invocation.

    Leaves ACTIVE exactly once; a second terminal transition raises.
    """

    id: str
    kind: MediaKind
    status: SlotStatus = SlotStatus.ACTIVE

    @property
    def is_terminal(self) -> bool:
        return self.status is not SlotStatus.ACTIVE

    def ensure_active(self, target: SlotStatus) -> None:
        if self.is_terminal:
            raise InvalidTransition(
                f"Slot {self.id} is already {self.status.value}; cannot mark {target.value}"
            )


@dataclass
class CreditReservation:
    """A two-phase credit hold: reserved, then captured or released (never both)."""

    amount: int
    state: ReservationState = ReservationState.RESERVED

    @property
    def is_terminal(self) -> bool:
        return self.state is not ReservationState.RESERVED

    def ensure_reserved(self, target: ReservationState) -> None:
        if self.is_terminal:
            raise InvalidTransition(
                f"Reservation of {self.amount} is already {self.state.value}; "
                f"cannot mark {target.value}"
            )


# Tagged results produced by the response adapters


class SlotGranted(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: Literal["granted"] = "granted"
    slot_id: str


class SlotDenied(BaseModel):
    """Slot refused. `reason == "limit_reached"` carries active/limit."""

    model_config = ConfigDict(frozen=True)

    tag: Literal["denied"] = "denied"
    reason: str | None = None
    message: str
    active: int | None = None
    limit: int | None = None


SlotResult = SlotGranted | SlotDenied


class CreditReserved(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: Literal["reserved"] = "reserved"


class CreditRefused(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: Literal["refused"] = "refused"
    message: str = "Insufficient credits"


CreditResult = CreditReserved | CreditRefused


class GenerationRecord(BaseModel):
    """Durable per-generation record shown in a session.

    Created with is_loading=True before the provider call and patched once
    to a terminal state (result media or error).
    """

    id: str
    session_id: str
    prompt: str
    model_id: str
    model_label: str | None = None
    kind: MediaKind
    is_loading: bool = True
    images: list[MediaItem] = Field(default_factory=list)
    videos: list[str] = Field(default_factory=list)
    preview_image: str | None = None
    error: str | None = None
    external_request_id: str | None = None
    slot_id: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    def media_count(self, media_type: MediaKind) -> int:
        if media_type is MediaKind.IMAGE:
            return len(self.images)
        return len(self.videos)
