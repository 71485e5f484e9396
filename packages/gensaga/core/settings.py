"""Last-used generation settings, persisted per media kind.

Each field is stored under its own key ("@image_gen_model_id",
"@video_gen_duration", ...) as a string, so values written by other
clients of the same store stay readable.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict

from gensaga.core.media import GenerationParams, MediaKind
from gensaga.core.storage.protocols import KeyValueStore

logger = logging.getLogger(__name__)


class GenerationSettings(BaseModel):
    """User-selected defaults for the next generation of one kind."""

    model_config = ConfigDict(frozen=True)

    kind: MediaKind
    model_id: str
    aspect_ratio: str
    resolution: str
    num_images: int = 1
    quality: str | None = None
    duration: int | None = None
    generate_audio: bool | None = None
    fast_mode: bool | None = None
    remove_watermark: bool | None = None

    def to_params(self, **overrides: Any) -> GenerationParams:
        """GenerationParams for these settings, plus per-call fields (attachments)."""
        fields: dict[str, Any] = {
            "aspect_ratio": self.aspect_ratio,
            "resolution": self.resolution,
        }
        if self.kind is MediaKind.IMAGE:
            fields["num_images"] = self.num_images
            fields["quality"] = self.quality
        else:
            fields["duration"] = self.duration
            fields["generate_audio"] = self.generate_audio
            fields["fast_mode"] = self.fast_mode
            fields["remove_watermark"] = self.remove_watermark
        fields.update(overrides)
        return GenerationParams(**fields)


DEFAULT_SETTINGS: dict[MediaKind, GenerationSettings] = {
    MediaKind.IMAGE: GenerationSettings(
        kind=MediaKind.IMAGE,
        model_id="img-nano-banana",
        aspect_ratio="2:3",
        num_images=1,
        resolution="1K",
        quality="medium",
    ),
    MediaKind.VIDEO: GenerationSettings(
        kind=MediaKind.VIDEO,
        model_id="vid-veo-3.1",
        aspect_ratio="16:9",
        duration=5,
        resolution="720p",
        generate_audio=True,
        fast_mode=False,
        remove_watermark=False,
    ),
}

# field name -> storage key suffix
_FIELDS: dict[MediaKind, dict[str, str]] = {
    MediaKind.IMAGE: {
        "model_id": "model_id",
        "aspect_ratio": "aspect_ratio",
        "num_images": "num_images",
        "resolution": "resolution",
        "quality": "quality",
    },
    MediaKind.VIDEO: {
        "model_id": "model_id",
        "aspect_ratio": "aspect_ratio",
        "duration": "duration",
        "resolution": "resolution",
        "generate_audio": "audio",
        "fast_mode": "fast_mode",
        "remove_watermark": "remove_watermark",
    },
}

_INT_FIELDS = {"num_images", "duration"}
_BOOL_FIELDS = {"generate_audio", "fast_mode", "remove_watermark"}


def storage_key(kind: MediaKind, field: str) -> str:
    return f"@{kind.value}_gen_{_FIELDS[kind][field]}"


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _decode(field: str, raw: str) -> Any:
    if field in _INT_FIELDS:
        return int(raw)
    if field in _BOOL_FIELDS:
        return raw == "true"
    return raw


class SettingsStore:
    """Reads and writes GenerationSettings through a KeyValueStore."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def load(self, kind: MediaKind) -> GenerationSettings:
        """Stored settings for `kind`, with defaults for anything missing.

        Unreadable values are logged and the defaults are returned.
        """
        defaults = DEFAULT_SETTINGS[kind]
        try:
            changes: dict[str, Any] = {}
            for field in _FIELDS[kind]:
                raw = await self._store.get(storage_key(kind, field))
                if raw:
                    changes[field] = _decode(field, raw)
            return GenerationSettings.model_validate({**defaults.model_dump(), **changes})
        except Exception as e:
            logger.error(f"Failed to load {kind.value} settings: {e}")
            return defaults

    async def save(self, kind: MediaKind, **changes: Any) -> GenerationSettings:
        """Merge `changes` into the stored settings and persist every field."""
        unknown = set(changes) - set(_FIELDS[kind])
        if unknown:
            raise ValueError(f"Unknown {kind.value} setting(s): {', '.join(sorted(unknown))}")
        current = await self.load(kind)
        updated = GenerationSettings.model_validate({**current.model_dump(), **changes})
        for field in _FIELDS[kind]:
            value = getattr(updated, field)
            if value is not None:
                await self._store.set(storage_key(kind, field), _encode(value))
        return updated
