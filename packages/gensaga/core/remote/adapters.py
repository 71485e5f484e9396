"""Adapters for polymorphic remote responses.

Different server versions answer slot acquisition and credit reservation in
different shapes. The parse functions map every accepted shape to one tagged
result; the normalize functions turn refusals into typed errors.

Accepted slot shapes:
- {"ok": false, "reason": "limit_reached", "active": n, "limit": m}
- {"ok": false, "message": "..."}
- {"ok": true, "generationId": "..."}
- "slot-id" (bare identifier)
- {"success": false, "message": "..."}
- {"generationId": "..."} or {"_id": "..."} (optionally with "success": true)

Accepted credit shapes:
- {"success": bool, "message": "..."}
- any other truthy value (accepted) / falsy value (refused)
"""

from __future__ import annotations

from typing import Any

from gensaga.core.errors import AcquisitionFailed, InsufficientCredits, ResourceExhausted
from gensaga.core.remote.models import (
    CreditRefused,
    CreditReserved,
    CreditResult,
    SlotDenied,
    SlotGranted,
    SlotResult,
)

LIMIT_REACHED = "limit_reached"
DEFAULT_SLOT_FAILURE = "Failed to acquire generation slot"


def _as_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def parse_slot_result(raw: Any) -> SlotResult:
    """Map a raw slot-acquire response to SlotGranted or SlotDenied.

    Raises:
        AcquisitionFailed: For empty or unrecognized shapes
    """
    if raw is None or raw == "" or raw is False:
        raise AcquisitionFailed(f"{DEFAULT_SLOT_FAILURE} - no result")

    if isinstance(raw, str):
        return SlotGranted(slot_id=raw)

    if not isinstance(raw, dict):
        raise AcquisitionFailed(f"Unexpected slot result type: {type(raw).__name__}")

    if "ok" in raw:
        if not raw["ok"]:
            return SlotDenied(
                reason=raw.get("reason"),
                message=raw.get("message") or DEFAULT_SLOT_FAILURE,
                active=_as_int(raw.get("active")),
                limit=_as_int(raw.get("limit")),
            )
        slot_id = raw.get("generationId")
        if not slot_id:
            raise AcquisitionFailed(f"{DEFAULT_SLOT_FAILURE} - missing generationId")
        return SlotGranted(slot_id=str(slot_id))

    if "success" in raw and raw["success"] is False:
        return SlotDenied(message=raw.get("message") or DEFAULT_SLOT_FAILURE)

    slot_id = raw.get("generationId") or raw.get("_id")
    if not slot_id:
        raise AcquisitionFailed(f"Unexpected slot result shape: keys={sorted(raw)}")
    return SlotGranted(slot_id=str(slot_id))


def normalize_slot_result(raw: Any) -> str:
    """Return the slot id from a raw slot-acquire response.

    Raises:
        ResourceExhausted: When the concurrency limit is reached
        AcquisitionFailed: For any other refusal or unrecognized shape
    """
    result = parse_slot_result(raw)
    if isinstance(result, SlotGranted):
        return result.slot_id
    if result.reason == LIMIT_REACHED:
        raise ResourceExhausted.limit_reached(result.active, result.limit)
    raise AcquisitionFailed(result.message)


def parse_credit_result(raw: Any) -> CreditResult:
    """Map a raw credit-reserve response to CreditReserved or CreditRefused."""
    if isinstance(raw, dict) and "success" in raw:
        if raw["success"]:
            return CreditReserved()
        return CreditRefused(message=raw.get("message") or "Insufficient credits")
    if not raw:
        return CreditRefused()
    return CreditReserved()


def normalize_credit_result(raw: Any) -> None:
    """Raise InsufficientCredits unless the reservation was accepted."""
    result = parse_credit_result(raw)
    if isinstance(result, CreditRefused):
        raise InsufficientCredits(result.message)
