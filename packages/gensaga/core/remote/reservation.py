"""Resource reservation client: slots and credits.

Wraps the raw SlotService/CreditService ports with:
- the LocalSerializer around slot acquisition,
- response normalization,
- local state tracking so each slot and each reservation reaches exactly
  one terminal state, amount-matched to what was reserved.

Local state moves only after the remote call returns, so a failed capture
leaves the reservation releasable.
"""

from __future__ import annotations

import logging

from gensaga.core.concurrency import LocalSerializer
from gensaga.core.media import MediaKind
from gensaga.core.remote.adapters import normalize_credit_result, normalize_slot_result
from gensaga.core.remote.models import (
    CreditReservation,
    GenerationSlot,
    ReservationState,
    SlotStatus,
)
from gensaga.core.remote.protocols import CreditService, SlotService

logger = logging.getLogger(__name__)


class ReservationClient:
    """Acquire/complete/fail slots and reserve/capture/release credits."""

    def __init__(
        self,
        slots: SlotService,
        credits: CreditService,
        serializer: LocalSerializer | None = None,
    ) -> None:
        self._slots = slots
        self._credits = credits
        self._serializer = serializer or LocalSerializer()

    @property
    def serializer(self) -> LocalSerializer:
        return self._serializer

    async def acquire_slot(
        self, kind: MediaKind, prompt: str, *, deadline: float | None = None
    ) -> GenerationSlot:
        """Acquire a slot inside the serializer.

        Raises:
            ResourceExhausted: Concurrency limit reached
            AcquisitionFailed: Any other refusal, bad shape, or serializer timeout
        """
        raw = await self._serializer.with_lock(
            lambda: self._slots.acquire(kind, prompt), deadline=deadline
        )
        slot_id = normalize_slot_result(raw)
        logger.debug(f"Acquired {kind.value} slot {slot_id}")
        return GenerationSlot(id=slot_id, kind=kind)

    async def complete_slot(self, slot: GenerationSlot, result_url: str | None = None) -> None:
        await self._finish_slot(slot, SlotStatus.COMPLETED, result_url)

    async def fail_slot(self, slot: GenerationSlot) -> None:
        await self._finish_slot(slot, SlotStatus.FAILED, None)

    async def _finish_slot(
        self, slot: GenerationSlot, status: SlotStatus, result_url: str | None
    ) -> None:
        slot.ensure_active(status)
        await self._slots.set_status(slot.id, status, kind=slot.kind, result_url=result_url)
        slot.status = status
        logger.debug(f"Slot {slot.id} -> {status.value}")

    async def reserve(self, amount: int) -> CreditReservation:
        """Reserve credits.

        Raises:
            InsufficientCredits: Reservation refused
        """
        raw = await self._credits.reserve(amount)
        normalize_credit_result(raw)
        logger.debug(f"Reserved {amount} credits")
        return CreditReservation(amount=amount)

    async def capture(self, reservation: CreditReservation) -> None:
        reservation.ensure_reserved(ReservationState.CAPTURED)
        await self._credits.capture(reservation.amount)
        reservation.state = ReservationState.CAPTURED
        logger.debug(f"Captured {reservation.amount} credits")

    async def release(self, reservation: CreditReservation) -> None:
        reservation.ensure_reserved(ReservationState.RELEASED)
        await self._credits.release(reservation.amount)
        reservation.state = ReservationState.RELEASED
        logger.debug(f"Released {reservation.amount} credits")
