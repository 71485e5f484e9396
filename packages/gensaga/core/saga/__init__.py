"""Generation saga: orchestration with compensations."""

from gensaga.core.saga.models import (
    GenerationRequest,
    GenerationResult,
    GenerationState,
    StatusUpdate,
)
from gensaga.core.saga.orchestrator import GenerationOrchestrator, GenerationProvider

__all__ = [
    "GenerationOrchestrator",
    "GenerationProvider",
    "GenerationRequest",
    "GenerationResult",
    "GenerationState",
    "StatusUpdate",
]
