"""Remote record store: ports, adapters and backends."""

from gensaga.core.remote.adapters import (
    normalize_credit_result,
    normalize_slot_result,
    parse_credit_result,
    parse_slot_result,
)
from gensaga.core.remote.http_store import HttpRecordStore
from gensaga.core.remote.memory import InMemoryBackend
from gensaga.core.remote.models import (
    CreditReservation,
    GenerationRecord,
    GenerationSlot,
    ReservationState,
    SlotDenied,
    SlotGranted,
    SlotStatus,
)
from gensaga.core.remote.protocols import (
    AssetService,
    CreditService,
    FavoritesService,
    SessionService,
    SlotService,
)
from gensaga.core.remote.reservation import ReservationClient

__all__ = [
    "AssetService",
    "CreditReservation",
    "CreditService",
    "FavoritesService",
    "GenerationRecord",
    "GenerationSlot",
    "HttpRecordStore",
    "InMemoryBackend",
    "ReservationClient",
    "ReservationState",
    "SessionService",
    "SlotDenied",
    "SlotGranted",
    "SlotService",
    "SlotStatus",
    "normalize_credit_result",
    "normalize_slot_result",
    "parse_credit_result",
    "parse_slot_result",
]
