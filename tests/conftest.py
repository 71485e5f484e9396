"""Shared pytest fixtures for gensaga tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from gensaga.core.config import PollingConfig, PollPolicy, builtin_catalog
from gensaga.core.config.catalog import ModelCatalog
from gensaga.core.remote import InMemoryBackend
from gensaga.core.storage import InMemoryKeyValueStore

# ============================================================================
# Backends
# ============================================================================


@pytest.fixture
def backend() -> InMemoryBackend:
    """In-memory remote backend with a generous balance."""
    return InMemoryBackend(slot_limit=2, credits=1000)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    """Empty in-memory durable store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def catalog() -> ModelCatalog:
    """Builtin model catalog."""
    return builtin_catalog()


# ============================================================================
# Polling
# ============================================================================


@pytest.fixture
def fast_polling() -> PollingConfig:
    """Poll policies with tiny delays so tests never actually wait."""
    policy = PollPolicy(
        initial_delay=0.001, max_delay=0.002, backoff_multiplier=1.5, max_attempts=5, timeout=5
    )
    video = policy.model_copy(update={"timeout_message": "Video generation timed out"})
    return PollingConfig(image=policy, video=video)


@pytest.fixture
def token_provider() -> Callable:
    """Factory for async token providers returning a fixed token."""

    def make(token: str | None = "test-token"):
        async def get_token() -> str | None:
            return token

        return get_token

    return make
