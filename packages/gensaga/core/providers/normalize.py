"""Normalization of heterogeneous provider responses.

Providers disagree on field names: jobs are identified by any of
requestId/request_id/taskId/task_id/operationName/operation_name/endpoint,
and videos arrive as `videos` (strings or {url}), `video` (string or {url})
or `videoUrl`. Everything past this module sees one shape.
"""

from __future__ import annotations

from typing import Any

from gensaga.core.errors import ProviderError
from gensaga.core.media import MediaItem, MediaKind
from gensaga.core.providers.models import ImmediateResult, JobStatus, QueuedJob, StatusOutcome

JOB_ID_FIELDS = (
    "requestId",
    "request_id",
    "taskId",
    "task_id",
    "operationName",
    "operation_name",
    "endpoint",
)


def extract_job_id(body: dict[str, Any]) -> str | None:
    """First non-empty job identifier in field-priority order."""
    for name in JOB_ID_FIELDS:
        value = body.get(name)
        if value:
            return str(value)
    return None


def is_queued(body: dict[str, Any]) -> bool:
    return bool(body.get("queued") or body.get("processing") or extract_job_id(body))


def _to_item(value: Any) -> MediaItem | None:
    if isinstance(value, str) and value:
        return MediaItem(url=value)
    if isinstance(value, dict) and value.get("url"):
        return MediaItem(url=str(value["url"]))
    return None


def _items(values: Any) -> tuple[MediaItem, ...]:
    if not isinstance(values, list):
        return ()
    return tuple(item for item in (_to_item(v) for v in values) if item is not None)


def extract_media(body: dict[str, Any], kind: MediaKind) -> tuple[MediaItem, ...]:
    """Media items in a response; empty when none are present."""
    if kind is MediaKind.IMAGE:
        return _items(body.get("images"))

    if body.get("videos"):
        return _items(body["videos"])
    if body.get("video"):
        item = _to_item(body["video"])
        return (item,) if item else ()
    if body.get("videoUrl"):
        return (MediaItem(url=str(body["videoUrl"])),)
    return ()


def _default_failure(kind: MediaKind) -> str:
    return "Video generation failed" if kind is MediaKind.VIDEO else "Generation failed"


def classify_generate_response(
    body: Any, *, model_id: str, kind: MediaKind
) -> ImmediateResult | QueuedJob:
    """Classify a generate response as immediate media or a queued job.

    Raises:
        ProviderError: When the response is neither
    """
    if not isinstance(body, dict):
        raise ProviderError(_default_failure(kind))

    media = extract_media(body, kind)
    if body.get("success") and media:
        return ImmediateResult(media=media)

    job_id = extract_job_id(body)
    if job_id and is_queued(body):
        endpoint = body.get("endpoint")
        return QueuedJob(
            job_id=job_id,
            model_id=model_id,
            kind=kind,
            endpoint=str(endpoint) if endpoint else None,
        )

    raise ProviderError(str(body.get("error") or _default_failure(kind)))


def classify_status_response(body: Any, kind: MediaKind) -> StatusOutcome:
    """Classify a status-check response as succeeded, failed, or still pending."""
    if not isinstance(body, dict):
        return StatusOutcome(status=JobStatus.PENDING)

    media = extract_media(body, kind)
    if body.get("success") and media:
        return StatusOutcome(status=JobStatus.SUCCEEDED, media=media)
    if body.get("error"):
        return StatusOutcome(status=JobStatus.FAILED, error=str(body["error"]))
    return StatusOutcome(status=JobStatus.PENDING)
