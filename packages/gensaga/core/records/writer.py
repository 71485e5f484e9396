"""Record writer: sessions and the lifecycle of one generation record.

A record is created with is_loading=True before the provider is called,
and patched to a terminal state exactly once: either result media plus a
completion timestamp, or an error message.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from gensaga.core.config.catalog import ModelSpec
from gensaga.core.errors import InvalidTransition
from gensaga.core.media import MediaItem, MediaKind
from gensaga.core.remote.protocols import SessionService

logger = logging.getLogger(__name__)

SESSION_TITLE_LENGTH = 50


def session_title(prompt: str) -> str:
    """First 50 characters of the prompt, with "..." when truncated."""
    if len(prompt) > SESSION_TITLE_LENGTH:
        return prompt[:SESSION_TITLE_LENGTH] + "..."
    return prompt


@dataclass
class RecordHandle:
    """Local view of a created record."""

    id: str
    session_id: str
    kind: MediaKind
    finalized: bool = False


class RecordWriter:
    """Creates sessions and records, and finalizes records once."""

    def __init__(
        self,
        sessions: SessionService,
        *,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._sessions = sessions
        self._now = now

    async def ensure_session(
        self, session_id: str | None, prompt: str, kind: MediaKind
    ) -> tuple[str, bool]:
        """Reuse `session_id` or create a session titled from the prompt.

        Returns:
            (session_id, created)
        """
        if session_id:
            return session_id, False
        new_id = await self._sessions.create_session(session_title(prompt), kind)
        logger.debug(f"Created {kind.value} session {new_id}")
        return new_id, True

    async def create(
        self,
        session_id: str,
        *,
        prompt: str,
        model: ModelSpec,
        params: dict[str, Any],
        slot_id: str,
    ) -> RecordHandle:
        """Create a loading record in the session."""
        record_id = await self._sessions.add_record(
            session_id,
            prompt=prompt,
            kind=model.kind,
            model_id=model.id,
            model_label=model.label,
            params=params,
            slot_id=slot_id,
        )
        logger.debug(f"Created loading record {record_id} in session {session_id}")
        return RecordHandle(id=record_id, session_id=session_id, kind=model.kind)

    async def note_job(self, handle: RecordHandle, job_id: str) -> None:
        """Remember the provider job id on a still-loading record."""
        self._ensure_open(handle)
        await self._sessions.patch_record(handle.id, {"external_request_id": job_id})

    async def complete(
        self,
        handle: RecordHandle,
        media: Sequence[MediaItem],
        *,
        preview_image: str | None = None,
    ) -> None:
        """Patch the record with its final media."""
        self._ensure_open(handle)
        fields: dict[str, Any] = {"is_loading": False, "completed_at": self._now()}
        if handle.kind is MediaKind.IMAGE:
            # Only the URL is persisted
            fields["images"] = [MediaItem(url=m.url) for m in media]
        else:
            fields["videos"] = [m.url for m in media]
            if preview_image:
                fields["preview_image"] = preview_image
        await self._sessions.patch_record(handle.id, fields)
        handle.finalized = True
        logger.debug(f"Record {handle.id} completed with {len(media)} item(s)")

    async def fail(self, handle: RecordHandle, error: str) -> None:
        """Patch the record with an error."""
        self._ensure_open(handle)
        await self._sessions.patch_record(handle.id, {"is_loading": False, "error": error})
        handle.finalized = True
        logger.debug(f"Record {handle.id} failed: {error}")

    @staticmethod
    def _ensure_open(handle: RecordHandle) -> None:
        if handle.finalized:
            raise InvalidTransition(f"Record {handle.id} is already finalized")
