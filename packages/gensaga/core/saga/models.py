"""Request, status and result types for the generation saga."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from gensaga.core.media import GenerationParams, MediaItem, MediaKind


class GenerationState(str, Enum):
    """Saga states, in order. COMPLETED and FAILED are terminal."""

    IDLE = "idle"
    ACQUIRING_SLOT = "acquiring_slot"
    RESERVING_CREDITS = "reserving_credits"
    CREATING_SESSION = "creating_session"
    GENERATING = "generating"
    POLLING = "polling"
    COMPLETING = "completing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationState.COMPLETED, GenerationState.FAILED)


class GenerationRequest(BaseModel):
    """One user generation action.

    Attributes:
        prompt: Text prompt
        model_id: Catalog model id (swapped for its edit variant when
            attachments are present)
        kind: Expected media kind; inferred from the model when None
        params: Generation parameters and attachments
        session_id: Existing session to append to; a new one is created when None
    """

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(min_length=1)
    model_id: str
    kind: MediaKind | None = None
    params: GenerationParams = Field(default_factory=GenerationParams)
    session_id: str | None = None


class StatusUpdate(BaseModel):
    """Progress notification emitted on every state transition."""

    model_config = ConfigDict(frozen=True)

    invocation_id: str
    state: GenerationState
    progress: float = Field(ge=0, le=100)
    job_id: str | None = None
    error: str | None = None


class GenerationResult(BaseModel):
    """Outcome of `generate()`. Never raised; always returned.

    On failure, ids reached before the failure (session, record, slot)
    are still populated.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    state: GenerationState
    invocation_id: str
    media: tuple[MediaItem, ...] = ()
    error: str | None = None
    generation_id: str | None = None
    session_id: str | None = None
    slot_id: str | None = None
    credits: int | None = None
    job_id: str | None = None
