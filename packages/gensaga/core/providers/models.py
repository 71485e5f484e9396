"""Provider request and response models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from gensaga.core.config.catalog import ModelSpec
from gensaga.core.media import GenerationParams, MediaItem, MediaKind


class ProviderRequest(BaseModel):
    """A single generation request to the provider."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    model: ModelSpec
    params: GenerationParams = Field(default_factory=GenerationParams)

    @property
    def kind(self) -> MediaKind:
        return self.model.kind


class ImmediateResult(BaseModel):
    """Provider answered synchronously with media."""

    model_config = ConfigDict(frozen=True)

    media: tuple[MediaItem, ...]


class QueuedJob(BaseModel):
    """Provider accepted the request as an asynchronous job.

    Attributes:
        job_id: Opaque identifier, whatever field name the provider used
        endpoint: Provider-side endpoint key, echoed back when polling
    """

    model_config = ConfigDict(frozen=True)

    job_id: str
    model_id: str
    kind: MediaKind
    endpoint: str | None = None


class JobStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PENDING = "pending"


class StatusOutcome(BaseModel):
    """Classified status-check response."""

    model_config = ConfigDict(frozen=True)

    status: JobStatus
    media: tuple[MediaItem, ...] = ()
    error: str | None = None


class ProviderRoute(BaseModel):
    """HTTP paths used for one model."""

    model_config = ConfigDict(frozen=True)

    generate_path: str
    status_path: str
    job_param: str = "requestId"
