"""Offline queue and sync."""

from gensaga.core.offline.models import ActionKind, PendingAction, PendingStatus
from gensaga.core.offline.queue import OfflineQueue
from gensaga.core.offline.sync import OfflineSync, SyncReport, is_not_found

__all__ = [
    "ActionKind",
    "OfflineQueue",
    "OfflineSync",
    "PendingAction",
    "PendingStatus",
    "SyncReport",
    "is_not_found",
]
