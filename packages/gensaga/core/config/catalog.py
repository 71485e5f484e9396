"""Model catalog: pricing and attachment rules for generation models.

The catalog is static data. Pricing follows two schemes:

- Images cost a per-image amount, optionally overridden by the selected
  quality, resolution or aspect ratio, times the number of images.
- Videos start from a base cost and apply multipliers (1080p, audio,
  duration beyond 5s, fast mode, watermark removal), each rounded up.
"""

from __future__ import annotations

import math
from fractions import Fraction

from pydantic import BaseModel, ConfigDict, Field

from gensaga.core.errors import ValidationError
from gensaga.core.media import GenerationParams, MediaKind

UNKNOWN_MODEL_COST = 50

_BASE_DURATION_SECONDS = 5
_RESOLUTION_MULTIPLIER = Fraction(3, 2)
_AUDIO_MULTIPLIER = Fraction(6, 5)
_FAST_MODE_MULTIPLIER = Fraction(7, 10)
_WATERMARK_MULTIPLIER = Fraction(13, 10)


def _ceil_mul(cost: int, factor: Fraction) -> int:
    return math.ceil(cost * factor)


class ModelSpec(BaseModel):
    """Metadata for one generation model.

    Attributes:
        id: Stable model identifier sent to the provider
        label: Display name, used in validation messages
        kind: Media kind the model produces
        provider: Provider family (e.g. "fal", "kie", "google")
        credit_cost: Per-image cost for images, base cost for videos
        quality_costs: Per-image cost overrides keyed by quality
        resolution_costs: Per-image cost overrides keyed by resolution
        aspect_ratio_costs: Per-image cost overrides keyed by aspect ratio
        edit_model_id: Model to use instead when attachments are present
    """

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    kind: MediaKind
    provider: str = "fal"
    company: str = ""
    is_new: bool = False
    credit_cost: int = Field(ge=0)
    quality_costs: dict[str, int] = Field(default_factory=dict)
    resolution_costs: dict[str, int] = Field(default_factory=dict)
    aspect_ratio_costs: dict[str, int] = Field(default_factory=dict)
    requires_attachment: bool = False
    min_attachments: int | None = None
    max_attachments: int | None = None
    is_transition: bool = False
    max_images: int = 4
    supports_resolution: bool = False
    supports_quality: bool = False
    supports_audio: bool = False
    supports_fast_mode: bool = False
    supports_watermark_toggle: bool = False
    is_queued: bool = False
    edit_model_id: str | None = None
    is_edit_variant: bool = False

    def unit_price(self, params: GenerationParams) -> int:
        """Credits for a single unit (one image, or one video)."""
        if self.kind is MediaKind.IMAGE:
            return self._image_unit_price(params)
        return self._video_price(params)

    def unit_count(self, params: GenerationParams) -> int:
        """Number of billable units in a request."""
        if self.kind is MediaKind.IMAGE:
            return params.num_images
        return 1

    def price(self, params: GenerationParams) -> int:
        """Total credits to reserve for a request."""
        return self.unit_price(params) * self.unit_count(params)

    def _image_unit_price(self, params: GenerationParams) -> int:
        if params.quality is not None and params.quality in self.quality_costs:
            return self.quality_costs[params.quality]
        if params.resolution is not None and params.resolution in self.resolution_costs:
            return self.resolution_costs[params.resolution]
        if params.aspect_ratio is not None and params.aspect_ratio in self.aspect_ratio_costs:
            return self.aspect_ratio_costs[params.aspect_ratio]
        return self.credit_cost

    def _video_price(self, params: GenerationParams) -> int:
        cost = self.credit_cost
        if params.resolution == "1080p":
            cost = _ceil_mul(cost, _RESOLUTION_MULTIPLIER)
        if params.generate_audio and self.supports_audio:
            cost = _ceil_mul(cost, _AUDIO_MULTIPLIER)
        if params.duration and params.duration > _BASE_DURATION_SECONDS:
            cost = _ceil_mul(cost, Fraction(params.duration, _BASE_DURATION_SECONDS))
        if params.fast_mode and self.supports_fast_mode:
            cost = _ceil_mul(cost, _FAST_MODE_MULTIPLIER)
        if params.remove_watermark and self.supports_watermark_toggle:
            cost = _ceil_mul(cost, _WATERMARK_MULTIPLIER)
        return cost

    def validate_request(self, params: GenerationParams) -> None:
        """Validate attachment count and image count.

        Raises:
            ValidationError: With the user-facing reason
        """
        count = params.attachment_count()
        if self.kind is MediaKind.IMAGE:
            self._validate_image_attachments(count)
            if params.num_images > self.max_images:
                raise ValidationError(
                    f"{self.label} supports up to {self.max_images} image(s) per generation"
                )
        else:
            self._validate_video_attachments(count)

    def _validate_image_attachments(self, count: int) -> None:
        if self.requires_attachment and count == 0:
            raise ValidationError(
                f"{self.label} requires at least {self.min_attachments or 1} image(s)"
            )
        self._validate_max(count)

    def _validate_video_attachments(self, count: int) -> None:
        if self.requires_attachment and count == 0:
            if self.is_transition:
                raise ValidationError(f"{self.label} requires start and end frame images")
            raise ValidationError(f"{self.label} requires at least one image")
        if self.is_transition and count != 2:
            raise ValidationError(
                f"{self.label} requires exactly 2 images (start and end frames)"
            )
        self._validate_max(count)

    def _validate_max(self, count: int) -> None:
        if self.max_attachments and count > self.max_attachments:
            raise ValidationError(
                f"{self.label} supports up to {self.max_attachments} image(s)"
            )


class ModelCatalog(BaseModel):
    """Collection of model specs with lookup, pricing and ordering helpers."""

    model_config = ConfigDict(frozen=True)

    models: tuple[ModelSpec, ...] = ()
    priority: tuple[str, ...] = Field(
        default=(), description="Model ids listed first, in this order"
    )

    def get(self, model_id: str) -> ModelSpec | None:
        for spec in self.models:
            if spec.id == model_id:
                return spec
        return None

    def require(self, model_id: str, kind: MediaKind | None = None) -> ModelSpec:
        """Look up a model, raising ValidationError when unknown or of the wrong kind."""
        spec = self.get(model_id)
        if spec is None or (kind is not None and spec.kind is not kind):
            prefix = "Unknown video model" if kind is MediaKind.VIDEO else "Unknown model"
            raise ValidationError(f"{prefix}: {model_id}")
        return spec

    def price(self, model_id: str, params: GenerationParams) -> int:
        """Total credits for a request; unknown models use a flat fallback."""
        spec = self.get(model_id)
        if spec is None:
            return UNKNOWN_MODEL_COST
        return spec.price(params)

    def effective_model_id(self, model_id: str, has_attachments: bool) -> str:
        """Swap a unified model for its edit variant when attachments are present."""
        spec = self.get(model_id)
        if spec is not None and has_attachments and spec.edit_model_id:
            return spec.edit_model_id
        return model_id

    def by_kind(self, kind: MediaKind) -> list[ModelSpec]:
        return [m for m in self.models if m.kind is kind]

    def sorted_models(self, kind: MediaKind) -> list[ModelSpec]:
        """Display order: priority ids, then new models, then by label. Edit variants hidden."""

        def sort_key(spec: ModelSpec) -> tuple[int, int, str]:
            rank = self.priority.index(spec.id) if spec.id in self.priority else len(self.priority)
            return (rank, 0 if spec.is_new else 1, spec.label.lower())

        visible = [m for m in self.by_kind(kind) if not m.is_edit_variant]
        return sorted(visible, key=sort_key)
