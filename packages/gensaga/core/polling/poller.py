"""Queued-job poller with exponential backoff.

Each attempt waits, refreshes the auth token, checks the job once and
classifies the outcome:

- succeeded with media: terminal success
- explicit error: terminal failure
- anything else: still queued, keep polling
- exception: fatal errors stop immediately, transient errors keep polling

The wait is interrupted as soon as the caller's cancellation event is set.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from gensaga.core.api.http.errors import ApiError, NetworkError, TimeoutError
from gensaga.core.config.models import PollingConfig, PollPolicy
from gensaga.core.errors import (
    AuthRequired,
    GenerationCancelled,
    ProviderError,
    TransientProviderError,
)
from gensaga.core.media import MediaItem, MediaKind
from gensaga.core.providers.models import JobStatus, QueuedJob, StatusOutcome

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str | None]]
ProgressCallback = Callable[[float], None]
Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]

_FATAL_MARKERS = ("policy", "flagged", "violation", "moderation")
_CLIENT_STATUS_RE = re.compile(r"\(4\d\d\)|\b4\d\d\b")


class StatusChecker(Protocol):
    async def check_status(self, job: QueuedJob, token: str) -> StatusOutcome:
        ...


def is_fatal_error(exc: BaseException) -> bool:
    """Whether a status-check exception should stop polling.

    HTTP status codes decide first: 4xx other than 408/429 is fatal;
    5xx, 408, 429, network and timeout errors are transient. Without a
    status code the message is matched against content-policy wording
    and 4xx-looking codes.
    """
    if isinstance(exc, ApiError):
        if exc.status_code is not None:
            return not exc.is_transient
        if isinstance(exc, (NetworkError, TimeoutError)):
            return False
    if isinstance(exc, TransientProviderError):
        return False
    if isinstance(exc, (ProviderError, AuthRequired)):
        return True

    message = str(exc).lower()
    if any(marker in message for marker in _FATAL_MARKERS):
        return True
    return bool(_CLIENT_STATUS_RE.search(message))


@dataclass
class PollState:
    """Mutable state for one poll run."""

    job_id: str
    model_id: str
    attempt: int
    delay: float
    deadline: float


class PollOutcome(BaseModel):
    """Terminal result of a poll run."""

    model_config = ConfigDict(frozen=True)

    success: bool
    media: tuple[MediaItem, ...] = ()
    error: str | None = None
    attempts: int = 0
    timed_out: bool = False


class Poller:
    """Drives status checks for queued jobs until a terminal outcome.

    Args:
        checker: Issues one status request (usually the ProviderClient)
        get_token: Returns a fresh auth token; awaited before every attempt
        policies: Poll policy per media kind
        sleep: Awaitable sleep (injectable for tests)
        clock: Monotonic clock in seconds (injectable for tests)
    """

    def __init__(
        self,
        checker: StatusChecker,
        get_token: TokenProvider,
        policies: PollingConfig | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ) -> None:
        self._checker = checker
        self._get_token = get_token
        self._policies = policies or PollingConfig()
        self._sleep = sleep
        self._clock = clock

    def policy_for(self, kind: MediaKind) -> PollPolicy:
        return self._policies.image if kind is MediaKind.IMAGE else self._policies.video

    async def poll(
        self,
        job: QueuedJob,
        *,
        cancel: asyncio.Event | None = None,
        on_progress: ProgressCallback | None = None,
        policy: PollPolicy | None = None,
    ) -> PollOutcome:
        """Poll `job` until success, failure, timeout or cancellation.

        Returns:
            PollOutcome; timeouts are reported with timed_out=True

        Raises:
            GenerationCancelled: The cancel event was set
            AuthRequired: No token was available for an attempt
        """
        policy = policy or self.policy_for(job.kind)
        state = PollState(
            job_id=job.job_id,
            model_id=job.model_id,
            attempt=0,
            delay=policy.initial_delay,
            deadline=self._clock() + policy.timeout,
        )

        while state.attempt < policy.max_attempts:
            self._raise_if_cancelled(cancel)
            remaining = state.deadline - self._clock()
            if remaining <= 0:
                break

            await self._wait(min(state.delay, remaining), cancel)

            token = await self._get_token()
            if not token:
                raise AuthRequired("Authentication expired during polling")

            try:
                outcome = await self._checker.check_status(job, token)
            except Exception as e:
                if is_fatal_error(e):
                    logger.warning(f"Polling {state.job_id} failed fatally: {e}")
                    return PollOutcome(success=False, error=str(e), attempts=state.attempt + 1)
                logger.warning(f"Transient polling error for {state.job_id}: {e}")
            else:
                if outcome.status is JobStatus.SUCCEEDED:
                    logger.debug(f"Job {state.job_id} succeeded after {state.attempt + 1} attempts")
                    return PollOutcome(
                        success=True, media=outcome.media, attempts=state.attempt + 1
                    )
                if outcome.status is JobStatus.FAILED:
                    return PollOutcome(
                        success=False, error=outcome.error, attempts=state.attempt + 1
                    )
                if on_progress is not None:
                    on_progress(policy.progress(state.attempt))

            state.attempt += 1
            state.delay = policy.next_delay(state.delay)

        logger.warning(f"Polling {state.job_id} timed out after {state.attempt} attempts")
        return PollOutcome(
            success=False,
            error=policy.timeout_message,
            attempts=state.attempt,
            timed_out=True,
        )

    @staticmethod
    def _raise_if_cancelled(cancel: asyncio.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            raise GenerationCancelled()

    async def _wait(self, delay: float, cancel: asyncio.Event | None) -> None:
        """Sleep for `delay`, waking early when `cancel` is set."""
        if cancel is None:
            await self._sleep(delay)
            return

        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waiter.cancel()

        self._raise_if_cancelled(cancel)
