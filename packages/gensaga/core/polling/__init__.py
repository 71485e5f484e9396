"""Queued-job polling."""

from gensaga.core.polling.poller import (
    PollOutcome,
    Poller,
    PollState,
    StatusChecker,
    is_fatal_error,
)

__all__ = [
    "PollOutcome",
    "PollState",
    "Poller",
    "StatusChecker",
    "is_fatal_error",
]
