"""Exception taxonomy for the generation engine.

Library code raises these; the orchestrator and the offline sync pass turn
them into result objects. The message of each error is the single
human-readable string surfaced to the user.
"""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for all generation-engine errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(GenerationError):
    """Request rejected before any side effect (unknown model, bad attachments)."""


class AcquisitionFailed(GenerationError):
    """Slot acquisition failed or returned an unrecognized shape."""


class ResourceExhausted(AcquisitionFailed):
    """A remote quota (concurrency slots or credits) is exhausted.

    Attributes:
        active: Slots currently in use, when reported
        limit: Slot limit, when reported
    """

    def __init__(self, message: str, *, active: int | None = None, limit: int | None = None) -> None:
        super().__init__(message)
        self.active = active
        self.limit = limit

    @classmethod
    def limit_reached(cls, active: int | None, limit: int | None) -> ResourceExhausted:
        return cls(
            f"Concurrent generation limit reached ({active}/{limit}). "
            "Please wait or upgrade your plan.",
            active=active,
            limit=limit,
        )


class InsufficientCredits(ResourceExhausted):
    """Credit reservation was refused."""

    def __init__(self, message: str = "Insufficient credits") -> None:
        super().__init__(message)


class SerializerTimeout(AcquisitionFailed):
    """Waited longer than the deadline to enter the slot-acquire critical section."""


class AuthRequired(GenerationError):
    """No auth token available."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class ProviderError(GenerationError):
    """Provider reported a terminal failure."""


class TransientProviderError(GenerationError):
    """Provider failure that may succeed if repeated."""


class PollTimeout(GenerationError):
    """Polling exhausted its attempts or wall-clock budget."""


class GenerationCancelled(GenerationError):
    """Caller cancelled the invocation."""

    def __init__(self, message: str = "Generation cancelled") -> None:
        super().__init__(message)


class RemoteCallError(GenerationError):
    """Remote record store returned an error envelope.

    Attributes:
        path: Remote function path (e.g. "users:reserveCredits")
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class InvalidTransition(GenerationError):
    """A terminal slot, reservation or record was transitioned again."""


__all__ = [
    "AcquisitionFailed",
    "AuthRequired",
    "GenerationCancelled",
    "GenerationError",
    "InsufficientCredits",
    "InvalidTransition",
    "PollTimeout",
    "ProviderError",
    "RemoteCallError",
    "ResourceExhausted",
    "SerializerTimeout",
    "TransientProviderError",
    "ValidationError",
]
