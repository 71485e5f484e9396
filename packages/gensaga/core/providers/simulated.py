"""Offline stand-in for the provider API.

Used when no provider base URL is configured. Immediate models answer with
placeholder media at once; queued models report pending for a fixed number
of status checks and then succeed.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from uuid import uuid4

from gensaga.core.media import MediaItem, MediaKind
from gensaga.core.providers.models import (
    ImmediateResult,
    JobStatus,
    ProviderRequest,
    QueuedJob,
    StatusOutcome,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_HOST = "https://media.invalid"


class SimulatedProvider:
    """Deterministic provider that never touches the network.

    Args:
        pending_checks: Status checks answered "pending" before success
    """

    def __init__(self, pending_checks: int = 1) -> None:
        self._pending_checks = pending_checks
        self._checks: defaultdict[str, int] = defaultdict(int)
        self._jobs: dict[str, ProviderRequest] = {}

    async def invoke(self, request: ProviderRequest, token: str) -> ImmediateResult | QueuedJob:
        if request.model.is_queued:
            job_id = f"sim_{uuid4().hex[:12]}"
            self._jobs[job_id] = request
            logger.debug(f"Simulated job {job_id} queued for {request.model.id}")
            return QueuedJob(job_id=job_id, model_id=request.model.id, kind=request.kind)
        return ImmediateResult(media=self._media(request, uuid4().hex[:12]))

    async def check_status(self, job: QueuedJob, token: str) -> StatusOutcome:
        request = self._jobs.get(job.job_id)
        if request is None:
            return StatusOutcome(status=JobStatus.FAILED, error="Generation not found")
        self._checks[job.job_id] += 1
        if self._checks[job.job_id] <= self._pending_checks:
            return StatusOutcome(status=JobStatus.PENDING)
        return StatusOutcome(status=JobStatus.SUCCEEDED, media=self._media(request, job.job_id))

    async def extract_first_frame(self, video_url: str, token: str) -> str | None:
        return f"{video_url}.jpg"

    @staticmethod
    def _media(request: ProviderRequest, ref: str) -> tuple[MediaItem, ...]:
        if request.kind is MediaKind.VIDEO:
            return (MediaItem(url=f"{PLACEHOLDER_HOST}/{request.model.id}/{ref}.mp4"),)
        return tuple(
            MediaItem(url=f"{PLACEHOLDER_HOST}/{request.model.id}/{ref}_{i}.png")
            for i in range(request.params.num_images)
        )
