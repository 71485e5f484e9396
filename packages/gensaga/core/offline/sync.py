"""Replay of queued offline actions.

One OfflineSync drives one OfflineQueue through a caller-supplied submit
callback. A pass is skipped when another pass is running or nobody is
signed in. Passes are started by the host through the trigger methods:
connectivity regained, app foregrounded, sign-in.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from gensaga.core.errors import GenerationError
from gensaga.core.network import ConnectivityStatus
from gensaga.core.offline.models import PendingAction
from gensaga.core.offline.queue import OfflineQueue

logger = logging.getLogger(__name__)

SubmitFn = Callable[[PendingAction], Awaitable[str | None]]

NO_REMOTE_ID = "No ID returned from server"
APP_STATE_ACTIVE = "active"


def is_not_found(exc: BaseException) -> bool:
    """Remote "not found" errors mean an asset edit was already applied."""
    message = exc.message if isinstance(exc, GenerationError) else str(exc)
    return "not found" in message.lower()


@dataclass
class SyncReport:
    """Outcome of one sync pass."""

    skipped: bool = False
    synced: dict[str, str | None] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)
    cleared: int = 0
    aborted: bool = False

    @property
    def attempted(self) -> int:
        return len(self.synced) + len(self.failed)


class OfflineSync:
    """Sequential replay of one queue.

    Args:
        queue: Queue to drain
        submit: Sends one action; returns the remote id (or None)
        require_remote_id: Treat a None id from `submit` as failure
            (generations); asset edits have no id
        not_found_is_applied: Count "not found" errors as already synced
    """

    def __init__(
        self,
        queue: OfflineQueue,
        submit: SubmitFn,
        *,
        require_remote_id: bool = True,
        not_found_is_applied: bool = False,
    ) -> None:
        self._queue = queue
        self._submit = submit
        self._require_remote_id = require_remote_id
        self._not_found_is_applied = not_found_is_applied
        self._syncing = False
        self._idle = asyncio.Event()
        self._idle.set()
        self._online = True
        # bumped on every identity change; a pass started under an older
        # epoch stops submitting
        self._epoch = 0

    @classmethod
    def for_generations(cls, queue: OfflineQueue, submit: SubmitFn) -> OfflineSync:
        return cls(queue, submit, require_remote_id=True, not_found_is_applied=False)

    @classmethod
    def for_asset_actions(cls, queue: OfflineQueue, submit: SubmitFn) -> OfflineSync:
        return cls(queue, submit, require_remote_id=False, not_found_is_applied=True)

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    @property
    def is_signed_in(self) -> bool:
        return self._queue.identity is not None

    @property
    def queue(self) -> OfflineQueue:
        return self._queue

    async def sync(self) -> SyncReport:
        """Run one pass over pending and failed items."""
        if self._syncing or not self.is_signed_in:
            return SyncReport(skipped=True)

        self._syncing = True
        self._idle.clear()
        epoch = self._epoch
        identity = self._queue.identity
        report = SyncReport()
        try:
            items = await self._queue.pending_to_sync()
            if not items:
                return report
            logger.info(f"Syncing {len(items)} queued action(s) for {identity}")
            for item in items:
                if epoch != self._epoch:
                    break
                await self._sync_one(item, report, epoch)
            if epoch != self._epoch:
                logger.info(f"Identity changed; abandoned sync pass for {identity}")
                report.aborted = True
                return report
            report.cleared = await self._queue.clear_synced()
        finally:
            self._syncing = False
            self._idle.set()

        if report.failed:
            logger.warning(f"{len(report.failed)} queued action(s) failed to sync")
        return report

    async def _sync_one(self, item: PendingAction, report: SyncReport, epoch: int) -> None:
        await self._queue.mark_syncing(item.local_id)
        try:
            remote_id = await self._submit(item)
        except Exception as e:
            if epoch != self._epoch:
                return
            if self._not_found_is_applied and is_not_found(e):
                logger.debug(f"{item.local_id} already applied remotely: {e}")
                await self._queue.mark_synced(item.local_id)
                report.synced[item.local_id] = None
                return
            message = (e.message if isinstance(e, GenerationError) else str(e)) or "Unknown error"
            logger.error(f"Failed to sync {item.kind.value} {item.local_id}: {message}")
            await self._queue.mark_failed(item.local_id, message)
            report.failed[item.local_id] = message
            return

        if epoch != self._epoch:
            # the queue now belongs to someone else
            return
        if self._require_remote_id and not remote_id:
            await self._queue.mark_failed(item.local_id, NO_REMOTE_ID)
            report.failed[item.local_id] = NO_REMOTE_ID
            return
        await self._queue.mark_synced(item.local_id, remote_id)
        report.synced[item.local_id] = remote_id

    # ========================================================================
    # Triggers
    # ========================================================================

    async def on_connectivity(self, status: ConnectivityStatus) -> SyncReport | None:
        """Sync when the device is connected and the internet is reachable."""
        self._online = status.is_online
        if not status.is_online:
            return None
        return await self.sync()

    async def on_app_state(self, state: str) -> SyncReport | None:
        """Sync when the app returns to the foreground while online."""
        if state != APP_STATE_ACTIVE or not self._online:
            return None
        return await self.sync()

    async def on_sign_in(self, identity: str) -> SyncReport:
        """Scope the queue to `identity` and sync its items.

        A pass still running for the previous identity is abandoned and
        awaited first, so this identity's pass is never skipped.
        """
        if identity != self._queue.identity:
            self._epoch += 1
        await self._queue.switch_identity(identity)
        await self._idle.wait()
        return await self.sync()

    async def on_sign_out(self) -> None:
        """Clear the signed-out identity's queue and abandon its running pass."""
        self._epoch += 1
        if self._queue.identity is not None:
            await self._queue.clear()
        await self._queue.switch_identity(None)
