"""Process-local FIFO serializer for the slot-acquire critical section.

Slot acquisition reads and then increments a remote "active generations"
counter. Running two acquisitions from the same process concurrently lets
both observe the same count, so every acquisition goes through
`LocalSerializer.with_lock()`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from gensaga.core.errors import SerializerTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LocalSerializer:
    """Runs async callables one at a time, in call order.

    Built on asyncio.Lock, whose waiters are woken first-in first-out.
    An optional deadline bounds how long a caller waits to *enter* the
    critical section; it never interrupts a callable already running.

    Example:
        >>> serializer = LocalSerializer(default_deadline=30.0)
        >>> slot = await serializer.with_lock(lambda: slots.acquire(kind, prompt))
    """

    def __init__(self, default_deadline: float | None = None) -> None:
        """
        Args:
            default_deadline: Seconds to wait for entry when a call passes
                no deadline. None waits indefinitely.
        """
        self._lock = asyncio.Lock()
        self._default_deadline = default_deadline
        self._waiting = 0

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @property
    def waiting(self) -> int:
        """Callers currently queued for entry."""
        return self._waiting

    async def with_lock(
        self,
        fn: Callable[[], Awaitable[T]],
        *,
        deadline: float | None = None,
    ) -> T:
        """Run `fn` exclusively and return its result.

        Args:
            fn: Zero-argument async callable forming the critical section
            deadline: Seconds to wait for entry (overrides the default)

        Returns:
            Whatever `fn` returns. Exceptions from `fn` propagate unchanged
            and release the lock.

        Raises:
            SerializerTimeout: If entry was not granted within the deadline
        """
        wait_for = deadline if deadline is not None else self._default_deadline

        self._waiting += 1
        try:
            if wait_for is None:
                await self._lock.acquire()
            else:
                try:
                    async with asyncio.timeout(wait_for):
                        await self._lock.acquire()
                except TimeoutError as e:
                    logger.warning(f"Serializer entry timed out after {wait_for}s")
                    raise SerializerTimeout(
                        "Timed out waiting for another generation to acquire its slot"
                    ) from e
        finally:
            self._waiting -= 1

        try:
            return await fn()
        finally:
            self._lock.release()
