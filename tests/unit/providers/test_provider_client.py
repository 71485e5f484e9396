"""Tests for ProviderClient routing and payloads."""

from __future__ import annotations

import json

import httpx
import pytest

from gensaga.core.api.http import AsyncApiClient, HttpClientConfig, ServerError
from gensaga.core.errors import TransientProviderError
from gensaga.core.media import GenerationParams, MediaKind
from gensaga.core.providers import (
    ImmediateResult,
    JobStatus,
    ProviderClient,
    ProviderRequest,
    QueuedJob,
    build_payload,
    resolve_route,
)


def make_client(handler) -> ProviderClient:
    api = AsyncApiClient(
        HttpClientConfig(base_url="https://api.example"), transport=httpx.MockTransport(handler)
    )
    return ProviderClient(api)


class TestRouting:
    """Endpoint selection."""

    def test_image_route(self) -> None:
        """Test all image models share one route."""
        route = resolve_route("img-flux-2-max", MediaKind.IMAGE)
        assert route.generate_path == "/api/mobile/generate-images"
        assert route.job_param == "requestId"

    def test_kie_route_uses_task_id(self) -> None:
        """Test KIE models poll their own endpoint with taskId."""
        route = resolve_route("kie-sora-2", MediaKind.VIDEO)
        assert route.status_path == "/api/kie-sora-2/status"
        assert route.job_param == "taskId"

    def test_unknown_kie_model_uses_task_id(self) -> None:
        """Test the KIE family convention applies to unlisted KIE models."""
        assert resolve_route("kie-new-model", MediaKind.VIDEO).job_param == "taskId"

    def test_generic_video_route(self) -> None:
        """Test other video models use the generic route."""
        route = resolve_route("vid-veo-3.1", MediaKind.VIDEO)
        assert route.generate_path == "/api/mobile/generate-video"
        assert route.status_path == "/api/fal-generate-videos/status"


class TestPayload:
    """Request bodies."""

    def test_image_payload(self, catalog) -> None:
        """Test image payload honors model capabilities."""
        model = catalog.require("img-gpt-image-1-5-edit")
        params = GenerationParams(
            num_images=2, quality="high", resolution="4K", attachment_urls=("https://x/a.png",)
        )

        payload = build_payload("p", model, params)

        assert payload == {
            "prompt": "p",
            "model": "img-gpt-image-1-5-edit",
            "numImages": 2,
            "quality": "high",
            "attachmentImages": [{"url": "https://x/a.png"}],
        }

    def test_transition_payload(self, catalog) -> None:
        """Test start/end frames are sent under both field names."""
        model = catalog.require("veo3.1-transition")
        params = GenerationParams(
            duration=8, start_frame_url="https://x/s.png", end_frame_url="https://x/e.png"
        )

        payload = build_payload("p", model, params)

        assert payload["duration"] == 8
        assert payload["startFrameImageUrl"] == payload["startImageUrl"] == "https://x/s.png"
        assert payload["endFrameImageUrl"] == payload["endImageUrl"] == "https://x/e.png"


class TestProviderClient:
    """HTTP behavior."""

    @pytest.mark.asyncio
    async def test_invoke_immediate(self, catalog) -> None:
        """Test an immediate image response."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/mobile/generate-images"
            assert request.headers["authorization"] == "Bearer tok"
            assert json.loads(request.content)["model"] == "img-imagen4-preview"
            return httpx.Response(200, json={"success": True, "images": [{"url": "https://x/1.png"}]})

        client = make_client(handler)
        request = ProviderRequest(prompt="p", model=catalog.require("img-imagen4-preview"))

        outcome = await client.invoke(request, "tok")

        assert isinstance(outcome, ImmediateResult)
        assert outcome.media[0].url == "https://x/1.png"

    @pytest.mark.asyncio
    async def test_invoke_queued_and_check_status(self, catalog) -> None:
        """Test a queued KIE job is polled with taskId."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.method == "POST":
                return httpx.Response(200, json={"success": True, "taskId": "t-1"})
            return httpx.Response(200, json={"success": True, "videos": ["https://x/v.mp4"]})

        client = make_client(handler)
        request = ProviderRequest(prompt="p", model=catalog.require("kie-sora-2"))

        job = await client.invoke(request, "tok")
        assert job == QueuedJob(job_id="t-1", model_id="kie-sora-2", kind=MediaKind.VIDEO)

        status = await client.check_status(job, "tok")

        assert status.status is JobStatus.SUCCEEDED
        assert seen[1].url.path == "/api/kie-sora-2/status"
        assert dict(seen[1].url.params) == {"taskId": "t-1", "modelId": "kie-sora-2"}

    @pytest.mark.asyncio
    async def test_check_status_passes_endpoint(self) -> None:
        """Test the endpoint key is echoed when polling generic video jobs."""
        params: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            params.update(request.url.params)
            return httpx.Response(200, json={"queued": True})

        client = make_client(handler)
        job = QueuedJob(job_id="r", model_id="vid-veo-3.1", kind=MediaKind.VIDEO, endpoint="fal/veo")

        status = await client.check_status(job, "tok")

        assert status.status is JobStatus.PENDING
        assert params == {"requestId": "r", "modelId": "vid-veo-3.1", "endpoint": "fal/veo"}

    @pytest.mark.asyncio
    async def test_http_errors_propagate(self) -> None:
        """Test status errors surface as ApiError subclasses for the poller."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="bad gateway")

        client = make_client(handler)
        job = QueuedJob(job_id="r", model_id="m", kind=MediaKind.IMAGE)

        with pytest.raises(ServerError):
            await client.check_status(job, "tok")

    @pytest.mark.asyncio
    async def test_unreadable_status_is_transient(self) -> None:
        """Test a non-JSON status body surfaces as a retryable provider error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, text="<html>gateway</html>", headers={"content-type": "text/html"}
            )

        client = make_client(handler)
        job = QueuedJob(job_id="r", model_id="m", kind=MediaKind.IMAGE)

        with pytest.raises(TransientProviderError, match="Unreadable status response for job r"):
            await client.check_status(job, "tok")

    @pytest.mark.asyncio
    async def test_extract_first_frame(self) -> None:
        """Test preview extraction."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content) == {"videoUrl": "https://x/v.mp4"}
            return httpx.Response(200, json={"success": True, "url": "https://x/v.jpg"})

        client = make_client(handler)

        assert await client.extract_first_frame("https://x/v.mp4", "tok") == "https://x/v.jpg"
