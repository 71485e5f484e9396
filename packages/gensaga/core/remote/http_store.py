"""HTTP function-call record store.

Talks to a backend exposing named server functions over JSON:

    POST /api/mutation  {"path": "users:reserveCredits", "args": {...}, "format": "json"}
    POST /api/query     {"path": "sessions:listFavorites", "args": {}, "format": "json"}

    -> {"status": "success", "value": ...}
    -> {"status": "error", "errorMessage": "..."}

Implements every remote port. A bearer token is fetched per call.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from gensaga.core.api.http import AsyncApiClient
from gensaga.core.errors import RemoteCallError
from gensaga.core.media import FavoriteKey, MediaItem, MediaKind
from gensaga.core.remote.models import SlotStatus

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str | None]]

# snake_case record fields -> wire names
_RECORD_FIELD_NAMES = {
    "is_loading": "isLoading",
    "images": "images",
    "videos": "videos",
    "preview_image": "previewImage",
    "error": "error",
    "external_request_id": "externalRequestId",
    "completed_at": "completedAt",
}


def _encode_field(name: str, value: Any) -> Any:
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    if name == "images":
        return [m.model_dump() if isinstance(m, MediaItem) else m for m in value]
    return value


class HttpRecordStore:
    """Remote record store over the function-call JSON API."""

    def __init__(self, client: AsyncApiClient, get_token: TokenProvider) -> None:
        self._client = client
        self._get_token = get_token

    async def _call(self, kind: str, path: str, args: dict[str, Any]) -> Any:
        token = await self._get_token()
        body = await self._client.request_json(
            "POST",
            f"/api/{kind}",
            json_body={"path": path, "args": args, "format": "json"},
            token=token,
        )
        if not isinstance(body, dict):
            raise RemoteCallError(f"Malformed response from {path}", path=path)
        if body.get("status") == "success":
            return body.get("value")
        message = body.get("errorMessage") or f"Remote call {path} failed"
        logger.debug(f"Remote call {path} failed: {message}")
        raise RemoteCallError(message, path=path)

    async def mutation(self, path: str, args: dict[str, Any]) -> Any:
        return await self._call("mutation", path, args)

    async def query(self, path: str, args: dict[str, Any]) -> Any:
        return await self._call("query", path, args)

    # SlotService

    async def acquire(self, kind: MediaKind, prompt: str) -> Any:
        return await self.mutation(
            "generations:acquireGenerationSlot", {"type": kind.value, "prompt": prompt}
        )

    async def set_status(
        self,
        slot_id: str,
        status: SlotStatus,
        *,
        kind: MediaKind,
        result_url: str | None = None,
    ) -> None:
        args: dict[str, Any] = {"generationId": slot_id, "status": status.value}
        if result_url:
            args["imageUrl" if kind is MediaKind.IMAGE else "videoUrl"] = result_url
        await self.mutation("generations:updateGenerationStatus", args)

    # CreditService

    async def reserve(self, amount: int) -> Any:
        return await self.mutation("users:reserveCredits", {"amount": amount})

    async def capture(self, amount: int) -> None:
        await self.mutation("users:captureReservedCredits", {"amount": amount})

    async def release(self, amount: int) -> None:
        await self.mutation("users:releaseReservedCredits", {"amount": amount})

    # SessionService

    async def create_session(self, title: str, kind: MediaKind) -> str:
        value = await self.mutation("sessions:createSession", {"title": title, "type": kind.value})
        return str(value)

    async def add_record(
        self,
        session_id: str,
        *,
        prompt: str,
        kind: MediaKind,
        model_id: str,
        model_label: str | None,
        params: dict[str, Any],
        slot_id: str,
    ) -> str:
        args: dict[str, Any] = {
            "sessionId": session_id,
            "prompt": prompt,
            "type": kind.value,
            "model": model_id,
            "isLoading": True,
            "concurrencySlotId": slot_id,
        }
        if model_label:
            args["modelLabel"] = model_label
        for key in ("aspectRatio", "numImages", "quality"):
            if params.get(key) is not None:
                args[key] = params[key]
        value = await self.mutation("sessions:addGenerationToSession", args)
        return str(value)

    async def patch_record(self, record_id: str, fields: dict[str, Any]) -> None:
        args: dict[str, Any] = {"generationId": record_id}
        for name, value in fields.items():
            if value is None:
                continue
            args[_RECORD_FIELD_NAMES.get(name, name)] = _encode_field(name, value)
        await self.mutation("sessions:updateGeneration", args)

    # FavoritesService / AssetService

    async def list_favorites(self) -> list[FavoriteKey]:
        value = await self.query("sessions:listFavorites", {})
        keys: list[FavoriteKey] = []
        for item in value or []:
            key = FavoriteKey.parse(
                f"{item.get('generationId')}:{item.get('mediaType')}:{item.get('mediaIndex')}"
            )
            if key is not None:
                keys.append(key)
        return keys

    async def toggle_favorite(self, key: FavoriteKey) -> bool:
        value = await self.mutation("sessions:toggleFavorite", self._media_args(key))
        if isinstance(value, dict):
            return bool(value.get("isFavorite"))
        return bool(value)

    async def delete_asset_media(self, key: FavoriteKey) -> None:
        await self.mutation("sessions:deleteAssetMedia", self._media_args(key))

    @staticmethod
    def _media_args(key: FavoriteKey) -> dict[str, Any]:
        return {
            "generationId": key.record_id,
            "mediaType": key.media_type.value,
            "mediaIndex": key.index,
        }
