"""Protocol for durable key-value storage."""

from typing import Protocol


class KeyValueStore(Protocol):
    """
    Async string key-value map that survives restarts.

    Used for the offline queue, the favorites overlay and the generation
    settings cache. Values are opaque strings (callers serialize JSON).
    """

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None when absent."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    async def remove(self, key: str) -> None:
        """Delete key. Missing keys are ignored."""
        ...
