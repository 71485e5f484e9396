"""Provider invocation client.

Routes each model to its generate/status endpoints, builds the request
payload from the model's capabilities, and classifies responses into
ImmediateResult / QueuedJob / StatusOutcome.
"""

from __future__ import annotations

import logging
from typing import Any

from gensaga.core.api.http import AsyncApiClient, DecodeError
from gensaga.core.config.catalog import ModelSpec
from gensaga.core.errors import TransientProviderError
from gensaga.core.media import GenerationParams, MediaKind
from gensaga.core.providers.models import (
    ImmediateResult,
    ProviderRequest,
    ProviderRoute,
    QueuedJob,
    StatusOutcome,
)
from gensaga.core.providers.normalize import (
    classify_generate_response,
    classify_status_response,
)
from gensaga.core.utils.logging import mask_token

logger = logging.getLogger(__name__)

IMAGE_ROUTE = ProviderRoute(
    generate_path="/api/mobile/generate-images",
    status_path="/api/generate-images/status",
)

GENERIC_VIDEO_ROUTE = ProviderRoute(
    generate_path="/api/mobile/generate-video",
    status_path="/api/fal-generate-videos/status",
)

# Models with dedicated endpoints
_VIDEO_ROUTES: dict[str, ProviderRoute] = {
    "kie-sora-2": ProviderRoute(
        generate_path="/api/mobile/kie-sora-2",
        status_path="/api/kie-sora-2/status",
        job_param="taskId",
    ),
    "kie-wan-2.5": ProviderRoute(
        generate_path="/api/mobile/kie-wan-2.5",
        status_path="/api/kie-wan-2.5/status",
        job_param="taskId",
    ),
    "kie-seedance-1.5-pro": ProviderRoute(
        generate_path="/api/mobile/kie-seedance-1.5-pro",
        status_path="/api/kie-seedance-1.5-pro/status",
        job_param="taskId",
    ),
    "pixverse-v5": ProviderRoute(
        generate_path="/api/mobile/pixverse-video",
        status_path="/api/fal-generate-videos/status",
    ),
}

FIRST_FRAME_PATH = "/api/mobile/extract-first-frame"


def resolve_route(model_id: str, kind: MediaKind) -> ProviderRoute:
    """Endpoints for a model. KIE-family models poll with `taskId`."""
    if kind is MediaKind.IMAGE:
        return IMAGE_ROUTE
    route = _VIDEO_ROUTES.get(model_id, GENERIC_VIDEO_ROUTE)
    if model_id.startswith("kie-") and route.job_param != "taskId":
        route = route.model_copy(update={"job_param": "taskId"})
    return route


def build_payload(prompt: str, model: ModelSpec, params: GenerationParams) -> dict[str, Any]:
    """Request body for the generate endpoint."""
    payload: dict[str, Any] = {"prompt": prompt, "model": model.id}
    if params.aspect_ratio:
        payload["aspectRatio"] = params.aspect_ratio

    if model.kind is MediaKind.IMAGE:
        payload["numImages"] = params.num_images
        if params.attachment_urls:
            payload["attachmentImages"] = [{"url": u} for u in params.attachment_urls]
        if params.resolution and model.supports_resolution:
            payload["resolution"] = params.resolution
        if params.quality and model.supports_quality:
            payload["quality"] = params.quality
        return payload

    if params.duration is not None:
        payload["duration"] = int(params.duration)
    if params.resolution:
        payload["resolution"] = params.resolution
    for name, value in (
        ("generateAudio", params.generate_audio),
        ("fastMode", params.fast_mode),
        ("removeWatermark", params.remove_watermark),
        ("cameraFixed", params.camera_fixed),
    ):
        if value is not None:
            payload[name] = value

    # Different backends read different names for the same image
    if params.attachment_urls:
        payload["imageUrl"] = params.attachment_urls[0]
        payload["attachmentImageUrl"] = params.attachment_urls[0]
    if params.start_frame_url:
        payload["startFrameImageUrl"] = params.start_frame_url
        payload["startImageUrl"] = params.start_frame_url
    if params.end_frame_url:
        payload["endFrameImageUrl"] = params.end_frame_url
        payload["endImageUrl"] = params.end_frame_url
    if params.reference_urls:
        payload["klingO1Images"] = list(params.reference_urls)
    return payload


class ProviderClient:
    """Issues generation, status and post-processing requests.

    Args:
        api: HTTP client bound to the provider API base URL
    """

    def __init__(self, api: AsyncApiClient) -> None:
        self._api = api

    async def invoke(self, request: ProviderRequest, token: str) -> ImmediateResult | QueuedJob:
        """Send a generation request.

        Raises:
            ProviderError: Response carried neither media nor a job id
            ApiError: Transport or HTTP failure
        """
        route = resolve_route(request.model.id, request.kind)
        payload = build_payload(request.prompt, request.model, request.params)
        logger.debug(
            f"Invoking {route.generate_path} for {request.model.id} (token {mask_token(token)})"
        )
        body = await self._api.request_json(
            "POST", route.generate_path, json_body=payload, token=token
        )
        outcome = classify_generate_response(body, model_id=request.model.id, kind=request.kind)
        if isinstance(outcome, QueuedJob):
            logger.info(f"Queued job {outcome.job_id} for {request.model.id}")
        return outcome

    async def check_status(self, job: QueuedJob, token: str) -> StatusOutcome:
        """Check a queued job once.

        Raises:
            ApiError: Transport or HTTP failure (classified by the poller)
            TransientProviderError: The status body could not be decoded
        """
        route = resolve_route(job.model_id, job.kind)
        params: dict[str, Any] = {route.job_param: job.job_id, "modelId": job.model_id}
        if job.endpoint:
            params["endpoint"] = job.endpoint
        try:
            body = await self._api.request_json(
                "GET", route.status_path, params=params, token=token
            )
        except DecodeError as e:
            logger.warning(f"Unreadable status response for job {job.job_id}: {e.message}")
            raise TransientProviderError(f"Unreadable status response for job {job.job_id}") from e
        return classify_status_response(body, job.kind)

    async def extract_first_frame(self, video_url: str, token: str) -> str | None:
        """Ask the backend for a preview image of a video's first frame.

        Returns:
            Preview URL, or None when the backend reports no frame
        """
        body = await self._api.request_json(
            "POST", FIRST_FRAME_PATH, json_body={"videoUrl": video_url}, token=token
        )
        if isinstance(body, dict) and body.get("success") and body.get("url"):
            return str(body["url"])
        return None
