"""Generation saga orchestrator.

`generate()` turns one user action into a short-lived distributed
transaction:

    validate -> acquire slot (serialized) -> reserve credits -> session
    -> loading record -> provider call -> [poll] -> finalize record
    -> capture credits -> complete slot

Any failure after the slot is acquired runs the compensations that apply,
each one independently: fail the record, release the reservation, fail the
slot. A compensation that itself fails is logged and the remaining ones
still run. `generate()` never raises; it returns a GenerationResult.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol
from uuid import uuid4

from gensaga.core.api.http.errors import ApiError
from gensaga.core.config.catalog import ModelCatalog, ModelSpec
from gensaga.core.errors import (
    AuthRequired,
    GenerationCancelled,
    GenerationError,
    PollTimeout,
    ProviderError,
)
from gensaga.core.media import GenerationParams, MediaItem, MediaKind
from gensaga.core.polling.poller import Poller
from gensaga.core.providers.models import (
    ImmediateResult,
    ProviderRequest,
    QueuedJob,
    StatusOutcome,
)
from gensaga.core.records.writer import RecordHandle, RecordWriter
from gensaga.core.remote.models import CreditReservation, GenerationSlot
from gensaga.core.remote.reservation import ReservationClient
from gensaga.core.saga.models import (
    GenerationRequest,
    GenerationResult,
    GenerationState,
    StatusUpdate,
)

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str | None]]
StatusCallback = Callable[[StatusUpdate], None]
SessionCallback = Callable[[str], None]

PROGRESS = {
    GenerationState.ACQUIRING_SLOT: 10.0,
    GenerationState.RESERVING_CREDITS: 15.0,
    GenerationState.CREATING_SESSION: 20.0,
    GenerationState.GENERATING: 25.0,
    GenerationState.POLLING: 30.0,
    GenerationState.COMPLETING: 95.0,
    GenerationState.COMPLETED: 100.0,
    GenerationState.FAILED: 0.0,
}
STARTING_PROGRESS = 5.0


class GenerationProvider(Protocol):
    """What the orchestrator needs from the provider client."""

    async def invoke(self, request: ProviderRequest, token: str) -> ImmediateResult | QueuedJob:
        ...

    async def check_status(self, job: QueuedJob, token: str) -> StatusOutcome:
        ...

    async def extract_first_frame(self, video_url: str, token: str) -> str | None:
        ...


@dataclass
class _Invocation:
    """Per-call saga state: what has been acquired and must be compensated."""

    invocation_id: str
    cancel: asyncio.Event
    on_status: StatusCallback | None
    state: GenerationState = GenerationState.IDLE
    slot: GenerationSlot | None = None
    reservation: CreditReservation | None = None
    session_id: str | None = None
    record: RecordHandle | None = None
    job_id: str | None = None

    def report(
        self, state: GenerationState, progress: float, *, error: str | None = None
    ) -> None:
        self.state = state
        if self.on_status is None:
            return
        update = StatusUpdate(
            invocation_id=self.invocation_id,
            state=state,
            progress=progress,
            job_id=self.job_id,
            error=error,
        )
        try:
            self.on_status(update)
        except Exception:
            logger.exception(f"[{self.invocation_id}] on_status callback failed")

    def checkpoint(self) -> None:
        if self.cancel.is_set():
            raise GenerationCancelled()


def error_message(exc: BaseException) -> str:
    """Single user-facing string for a failure."""
    if isinstance(exc, GenerationError):
        return exc.message
    if isinstance(exc, ApiError):
        return str(exc)
    return str(exc) or "Generation failed"


def record_params(model: ModelSpec, params: GenerationParams) -> dict[str, Any]:
    """Parameters stored alongside the record."""
    fields: dict[str, Any] = {"aspectRatio": params.aspect_ratio}
    if model.kind is MediaKind.IMAGE:
        fields["numImages"] = params.num_images
        fields["quality"] = params.quality
    else:
        fields["duration"] = params.duration
        fields["resolution"] = params.resolution
    return {k: v for k, v in fields.items() if v is not None}


class GenerationOrchestrator:
    """Entry point for generations.

    Args:
        catalog: Model catalog for validation and pricing
        reservations: Slot and credit client (owns the serializer)
        records: Record writer
        provider: Provider client
        poller: Queued-job poller
        get_token: Auth token source, awaited on every use
        serializer_deadline: Max seconds to wait to start slot acquisition
        extract_preview: Ask for a first-frame preview after video generation

    Example:
        >>> result = await orchestrator.generate(
        ...     GenerationRequest(prompt="a fox", model_id="img-nano-banana"),
        ...     on_status=lambda u: print(u.state, u.progress),
        ... )
        >>> result.success, result.media
    """

    def __init__(
        self,
        *,
        catalog: ModelCatalog,
        reservations: ReservationClient,
        records: RecordWriter,
        provider: GenerationProvider,
        poller: Poller,
        get_token: TokenProvider,
        serializer_deadline: float | None = None,
        extract_preview: bool = True,
    ) -> None:
        self._catalog = catalog
        self._reservations = reservations
        self._records = records
        self._provider = provider
        self._poller = poller
        self._get_token = get_token
        self._serializer_deadline = serializer_deadline
        self._extract_preview = extract_preview
        self._cancel_events: dict[str, asyncio.Event] = {}

    @property
    def active_invocations(self) -> list[str]:
        return list(self._cancel_events)

    def cancel(self, invocation_id: str) -> bool:
        """Request cancellation of one in-flight invocation."""
        event = self._cancel_events.get(invocation_id)
        if event is None:
            return False
        event.set()
        logger.info(f"[{invocation_id}] Cancellation requested")
        return True

    def cancel_all(self) -> int:
        """Request cancellation of every in-flight invocation."""
        for event in self._cancel_events.values():
            event.set()
        return len(self._cancel_events)

    async def generate(
        self,
        request: GenerationRequest,
        *,
        on_status: StatusCallback | None = None,
        on_session_id: SessionCallback | None = None,
        invocation_id: str | None = None,
    ) -> GenerationResult:
        """Run one generation saga to completion or compensated failure."""
        invocation_id = invocation_id or uuid4().hex
        cancel = asyncio.Event()
        self._cancel_events[invocation_id] = cancel
        inv = _Invocation(invocation_id=invocation_id, cancel=cancel, on_status=on_status)
        inv.report(GenerationState.ACQUIRING_SLOT, STARTING_PROGRESS)

        try:
            media = await self._run(request, inv, on_session_id)
        except asyncio.CancelledError:
            await self._compensate(inv, "Generation cancelled")
            raise
        except Exception as e:
            message = error_message(e)
            logger.warning(f"[{invocation_id}] Generation failed in {inv.state.value}: {message}")
            await self._compensate(inv, message)
            inv.report(GenerationState.FAILED, PROGRESS[GenerationState.FAILED], error=message)
            return self._result(inv, success=False, error=message)
        finally:
            self._cancel_events.pop(invocation_id, None)

        inv.report(GenerationState.COMPLETED, PROGRESS[GenerationState.COMPLETED])
        logger.info(f"[{invocation_id}] Generation completed with {len(media)} item(s)")
        return self._result(inv, success=True, media=media)

    async def _run(
        self,
        request: GenerationRequest,
        inv: _Invocation,
        on_session_id: SessionCallback | None,
    ) -> tuple[MediaItem, ...]:
        params = request.params
        model_id = self._catalog.effective_model_id(
            request.model_id, params.attachment_count() > 0
        )
        model = self._catalog.require(model_id, request.kind)
        model.validate_request(params)

        # 1. slot
        inv.checkpoint()
        inv.report(GenerationState.ACQUIRING_SLOT, PROGRESS[GenerationState.ACQUIRING_SLOT])
        inv.slot = await self._reservations.acquire_slot(
            model.kind, request.prompt, deadline=self._serializer_deadline
        )

        # 2. credits
        inv.checkpoint()
        inv.report(GenerationState.RESERVING_CREDITS, PROGRESS[GenerationState.RESERVING_CREDITS])
        inv.reservation = await self._reservations.reserve(model.price(params))

        # 3. session
        inv.checkpoint()
        inv.report(GenerationState.CREATING_SESSION, PROGRESS[GenerationState.CREATING_SESSION])
        inv.session_id, created = await self._records.ensure_session(
            request.session_id, request.prompt, model.kind
        )
        if created and on_session_id is not None:
            try:
                on_session_id(inv.session_id)
            except Exception:
                logger.exception(f"[{inv.invocation_id}] on_session_id callback failed")

        # 4. loading record, then token
        inv.record = await self._records.create(
            inv.session_id,
            prompt=request.prompt,
            model=model,
            params=record_params(model, params),
            slot_id=inv.slot.id,
        )
        token = await self._get_token()
        if not token:
            raise AuthRequired()

        # 5. provider
        inv.checkpoint()
        inv.report(GenerationState.GENERATING, PROGRESS[GenerationState.GENERATING])
        outcome = await self._provider.invoke(
            ProviderRequest(prompt=request.prompt, model=model, params=params), token
        )

        if isinstance(outcome, QueuedJob):
            media = await self._poll(outcome, inv)
        else:
            media = outcome.media

        # 6. completing
        inv.checkpoint()
        inv.report(GenerationState.COMPLETING, PROGRESS[GenerationState.COMPLETING])
        preview = await self._preview(model, media)
        await self._records.complete(inv.record, media, preview_image=preview)
        await self._reservations.capture(inv.reservation)
        await self._reservations.complete_slot(inv.slot, media[0].url if media else None)
        return media

    async def _poll(self, job: QueuedJob, inv: _Invocation) -> tuple[MediaItem, ...]:
        inv.job_id = job.job_id
        inv.report(GenerationState.POLLING, PROGRESS[GenerationState.POLLING])
        if inv.record is not None:
            try:
                await self._records.note_job(inv.record, job.job_id)
            except Exception as e:
                logger.warning(f"[{inv.invocation_id}] Could not store job id {job.job_id}: {e}")

        outcome = await self._poller.poll(
            job,
            cancel=inv.cancel,
            on_progress=lambda p: inv.report(
                GenerationState.POLLING, max(PROGRESS[GenerationState.POLLING], p)
            ),
        )
        if outcome.success and outcome.media:
            return outcome.media
        if outcome.timed_out:
            raise PollTimeout(outcome.error or "Generation timed out")
        default = "Video generation failed" if job.kind is MediaKind.VIDEO else "Generation failed"
        raise ProviderError(outcome.error or default)

    async def _preview(self, model: ModelSpec, media: tuple[MediaItem, ...]) -> str | None:
        """First-frame preview for videos. Failures are not fatal."""
        if model.kind is not MediaKind.VIDEO or not media or not self._extract_preview:
            return None
        try:
            token = await self._get_token()
            if not token:
                return None
            return await self._provider.extract_first_frame(media[0].url, token)
        except Exception as e:
            logger.warning(f"First-frame extraction failed (non-fatal): {e}")
            return None

    async def _compensate(self, inv: _Invocation, message: str) -> None:
        """Undo whatever this invocation acquired. Never raises."""
        if inv.record is not None and not inv.record.finalized:
            try:
                await self._records.fail(inv.record, message)
            except Exception:
                logger.exception(f"[{inv.invocation_id}] Failed to mark record {inv.record.id} failed")

        if inv.reservation is not None and not inv.reservation.is_terminal:
            try:
                await self._reservations.release(inv.reservation)
            except Exception:
                logger.exception(
                    f"[{inv.invocation_id}] Failed to release {inv.reservation.amount} credits"
                )

        if inv.slot is not None and not inv.slot.is_terminal:
            try:
                await self._reservations.fail_slot(inv.slot)
            except Exception:
                logger.exception(f"[{inv.invocation_id}] Failed to mark slot {inv.slot.id} failed")

    @staticmethod
    def _result(
        inv: _Invocation,
        *,
        success: bool,
        media: tuple[MediaItem, ...] = (),
        error: str | None = None,
    ) -> GenerationResult:
        return GenerationResult(
            success=success,
            state=GenerationState.COMPLETED if success else GenerationState.FAILED,
            invocation_id=inv.invocation_id,
            media=media,
            error=error,
            generation_id=inv.record.id if inv.record else None,
            session_id=inv.session_id,
            slot_id=inv.slot.id if inv.slot else None,
            credits=inv.reservation.amount if inv.reservation else None,
            job_id=inv.job_id,
        )
