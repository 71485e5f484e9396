"""Shared media value types."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MediaKind(str, Enum):
    """Kind of generated media."""

    IMAGE = "image"
    VIDEO = "video"


class MediaItem(BaseModel):
    """A single generated media asset."""

    model_config = ConfigDict(frozen=True)

    url: str


class FavoriteKey(BaseModel):
    """Identifies one media item inside a generation record.

    Serialized as "record_id:media_type:index".
    """

    model_config = ConfigDict(frozen=True)

    record_id: str
    media_type: MediaKind
    index: int = Field(ge=0)

    def __str__(self) -> str:
        return f"{self.record_id}:{self.media_type.value}:{self.index}"

    @classmethod
    def parse(cls, raw: str) -> FavoriteKey | None:
        """Parse "record_id:media_type:index"; malformed keys yield None."""
        parts = raw.split(":")
        if len(parts) != 3:
            return None
        record_id, media_type, index = parts
        if not record_id or media_type not in ("image", "video"):
            return None
        try:
            idx = int(index)
        except ValueError:
            return None
        if idx < 0:
            return None
        return cls(record_id=record_id, media_type=MediaKind(media_type), index=idx)


class GenerationParams(BaseModel):
    """User-selected generation parameters.

    Only the fields relevant to the chosen model's kind are consulted;
    the rest stay None.
    """

    model_config = ConfigDict(frozen=True)

    aspect_ratio: str | None = None
    num_images: int = Field(default=1, ge=1)
    resolution: str | None = None
    quality: str | None = None
    duration: int | None = Field(default=None, gt=0)
    generate_audio: bool | None = None
    fast_mode: bool | None = None
    remove_watermark: bool | None = None
    camera_fixed: bool | None = None

    # Image models take a list of attachments; video models take one image,
    # a start/end frame pair, or a list of reference images
    attachment_urls: tuple[str, ...] = ()
    start_frame_url: str | None = None
    end_frame_url: str | None = None
    reference_urls: tuple[str, ...] = ()

    def attachment_count(self) -> int:
        """Number of attached images as seen by attachment validation."""
        if self.reference_urls:
            return len(self.reference_urls)
        if self.start_frame_url and self.end_frame_url:
            return 2
        if self.start_frame_url or self.end_frame_url:
            return 1
        return len(self.attachment_urls)
