"""Tests for SimulatedProvider."""

from __future__ import annotations

import pytest

from gensaga.core.media import GenerationParams, MediaKind
from gensaga.core.providers import (
    ImmediateResult,
    JobStatus,
    ProviderRequest,
    QueuedJob,
    SimulatedProvider,
)


@pytest.mark.asyncio
async def test_immediate_model_returns_one_item_per_image(catalog) -> None:
    """Test non-queued models answer at once."""
    provider = SimulatedProvider()
    request = ProviderRequest(
        prompt="p", model=catalog.require("img-imagen4-preview"), params=GenerationParams(num_images=3)
    )

    outcome = await provider.invoke(request, "tok")

    assert isinstance(outcome, ImmediateResult)
    assert len(outcome.media) == 3
    assert all(item.url.endswith(".png") for item in outcome.media)


@pytest.mark.asyncio
async def test_queued_model_pends_then_succeeds(catalog) -> None:
    """Test queued jobs report pending for the configured number of checks."""
    provider = SimulatedProvider(pending_checks=2)
    request = ProviderRequest(prompt="p", model=catalog.require("vid-veo-3.1"))

    job = await provider.invoke(request, "tok")
    assert isinstance(job, QueuedJob)
    assert job.kind is MediaKind.VIDEO

    statuses = [(await provider.check_status(job, "tok")).status for _ in range(3)]

    assert statuses == [JobStatus.PENDING, JobStatus.PENDING, JobStatus.SUCCEEDED]
    final = await provider.check_status(job, "tok")
    assert final.media[0].url.endswith(f"{job.job_id}.mp4")


@pytest.mark.asyncio
async def test_unknown_job_fails() -> None:
    """Test status checks for unknown jobs fail."""
    provider = SimulatedProvider()
    job = QueuedJob(job_id="nope", model_id="m", kind=MediaKind.IMAGE)

    outcome = await provider.check_status(job, "tok")

    assert outcome.status is JobStatus.FAILED
    assert outcome.error == "Generation not found"


@pytest.mark.asyncio
async def test_first_frame() -> None:
    """Test preview URLs are derived from the video URL."""
    assert await SimulatedProvider().extract_first_frame("https://x/v.mp4", "t") == "https://x/v.mp4.jpg"
