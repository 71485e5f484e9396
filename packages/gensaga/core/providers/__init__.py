"""Provider invocation: routing, payloads and response normalization."""

from gensaga.core.providers.client import ProviderClient, build_payload, resolve_route
from gensaga.core.providers.models import (
    ImmediateResult,
    JobStatus,
    ProviderRequest,
    ProviderRoute,
    QueuedJob,
    StatusOutcome,
)
from gensaga.core.providers.normalize import (
    classify_generate_response,
    classify_status_response,
    extract_job_id,
    extract_media,
)
from gensaga.core.providers.simulated import SimulatedProvider

__all__ = [
    "ImmediateResult",
    "JobStatus",
    "ProviderClient",
    "ProviderRequest",
    "ProviderRoute",
    "QueuedJob",
    "SimulatedProvider",
    "StatusOutcome",
    "build_payload",
    "classify_generate_response",
    "classify_status_response",
    "extract_job_id",
    "extract_media",
    "resolve_route",
]
