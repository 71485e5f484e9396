"""Builtin model catalog.

Used when no catalog file is configured. A catalog file with the same
shape can be loaded with `load_model_catalog()`.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from gensaga.core.config.catalog import ModelCatalog

_FLUX_ASPECT_COSTS = {"1:1": 7, "3:4": 8, "4:3": 8, "9:16": 9, "16:9": 9}

_IMAGE_MODELS: list[dict[str, Any]] = [
    {
        "id": "img-nano-banana-pro",
        "label": "Nano Banana Pro",
        "company": "Google",
        "is_new": True,
        "max_attachments": 10,
        "supports_resolution": True,
        "credit_cost": 15,
        "resolution_costs": {"4K": 25},
        "is_queued": True,
        "edit_model_id": "img-nano-banana-pro-edit",
    },
    {
        "id": "img-nano-banana-pro-edit",
        "label": "Nano Banana Pro Edit",
        "company": "Google",
        "is_new": True,
        "requires_attachment": True,
        "min_attachments": 1,
        "max_attachments": 10,
        "supports_resolution": True,
        "credit_cost": 15,
        "resolution_costs": {"4K": 25},
        "is_queued": True,
        "is_edit_variant": True,
    },
    {
        "id": "img-gpt-image-1-5",
        "label": "GPT-Image 1.5",
        "company": "OpenAI",
        "is_new": True,
        "max_attachments": 10,
        "supports_quality": True,
        "credit_cost": 4,
        "quality_costs": {"high": 16},
        "is_queued": True,
        "edit_model_id": "img-gpt-image-1-5-edit",
    },
    {
        "id": "img-gpt-image-1-5-edit",
        "label": "GPT-Image 1.5 Edit",
        "company": "OpenAI",
        "is_new": True,
        "requires_attachment": True,
        "min_attachments": 1,
        "max_attachments": 10,
        "supports_quality": True,
        "credit_cost": 4,
        "quality_costs": {"high": 16},
        "is_queued": True,
        "is_edit_variant": True,
    },
    {
        "id": "img-flux-2-max",
        "label": "Flux 2 Max",
        "company": "FLUX",
        "is_new": True,
        "max_attachments": 10,
        "credit_cost": 7,
        "aspect_ratio_costs": _FLUX_ASPECT_COSTS,
        "is_queued": True,
        "edit_model_id": "img-flux-2-max-edit",
    },
    {
        "id": "img-flux-2-max-edit",
        "label": "Flux 2 Max Edit",
        "company": "FLUX",
        "is_new": True,
        "requires_attachment": True,
        "min_attachments": 1,
        "max_attachments": 10,
        "credit_cost": 7,
        "aspect_ratio_costs": _FLUX_ASPECT_COSTS,
        "is_queued": True,
        "is_edit_variant": True,
    },
    {
        "id": "img-kling-o1",
        "label": "Kling O1 Image Edit",
        "company": "Kling",
        "is_new": True,
        "requires_attachment": True,
        "min_attachments": 1,
        "max_attachments": 10,
        "supports_resolution": True,
        "credit_cost": 3,
        "is_queued": True,
    },
    {
        "id": "img-seedream-v45",
        "label": "Seedream v4.5",
        "company": "ByteDance",
        "is_new": True,
        "max_attachments": 10,
        "credit_cost": 3,
        "is_queued": True,
        "edit_model_id": "img-seedream-v45-edit",
    },
    {
        "id": "img-seedream-v45-edit",
        "label": "Seedream v4.5 Edit",
        "company": "ByteDance",
        "is_new": True,
        "requires_attachment": True,
        "min_attachments": 1,
        "max_attachments": 10,
        "credit_cost": 3,
        "is_queued": True,
        "is_edit_variant": True,
    },
    {
        "id": "img-nano-banana",
        "label": "Nano Banana",
        "company": "Google",
        "max_attachments": 10,
        "credit_cost": 3,
        "is_queued": True,
        "edit_model_id": "img-nano-banana-edit",
    },
    {
        "id": "img-nano-banana-edit",
        "label": "Nano Banana Edit",
        "company": "Google",
        "requires_attachment": True,
        "min_attachments": 1,
        "max_attachments": 10,
        "credit_cost": 3,
        "is_queued": True,
        "is_edit_variant": True,
    },
    {
        "id": "img-imagen4-preview",
        "label": "Imagen 4",
        "company": "Google",
        "credit_cost": 3,
        "is_queued": False,
    },
    {
        "id": "img-imagen3",
        "label": "Imagen 3",
        "company": "Google",
        "credit_cost": 3,
        "is_queued": True,
    },
    {
        "id": "img-reve",
        "label": "Reve",
        "company": "Reve",
        "max_attachments": 1,
        "credit_cost": 3,
        "is_queued": False,
        "edit_model_id": "img-reve-edit",
    },
    {
        "id": "img-reve-edit",
        "label": "Reve Edit",
        "company": "Reve",
        "requires_attachment": True,
        "min_attachments": 1,
        "max_attachments": 1,
        "credit_cost": 3,
        "is_queued": False,
        "is_edit_variant": True,
    },
]

_VIDEO_MODELS: list[dict[str, Any]] = [
    {
        "id": "vid-veo-3.1",
        "label": "Veo 3.1",
        "company": "Google",
        "is_new": True,
        "max_attachments": 1,
        "supports_resolution": True,
        "supports_audio": True,
        "credit_cost": 240,
    },
    {
        "id": "vid-veo-3.1-fast",
        "label": "Veo 3.1 Fast",
        "company": "Google",
        "is_new": True,
        "max_attachments": 1,
        "supports_resolution": True,
        "supports_audio": True,
        "credit_cost": 108,
    },
    {
        "id": "veo3.1-transition",
        "label": "Veo 3.1 Transition",
        "company": "Google",
        "is_new": True,
        "requires_attachment": True,
        "is_transition": True,
        "max_attachments": 2,
        "supports_audio": True,
        "credit_cost": 240,
    },
    {
        "id": "vid-kling-2.6-pro",
        "label": "Kling 2.6 Pro",
        "company": "Kling",
        "provider": "kie",
        "is_new": True,
        "max_attachments": 1,
        "supports_audio": True,
        "credit_cost": 40,
    },
    {
        "id": "kling-o1",
        "label": "Kling O1",
        "company": "Kling",
        "provider": "kie",
        "is_new": True,
        "requires_attachment": True,
        "max_attachments": 10,
        "credit_cost": 35,
    },
    {
        "id": "kie-sora-2",
        "label": "Sora 2",
        "company": "OpenAI",
        "provider": "kie",
        "is_new": True,
        "max_attachments": 1,
        "supports_watermark_toggle": True,
        "credit_cost": 30,
    },
    {
        "id": "kie-wan-2.5",
        "label": "Wan 2.5",
        "company": "Alibaba",
        "provider": "kie",
        "max_attachments": 1,
        "credit_cost": 15,
    },
    {
        "id": "vid-hailuo-2.3-pro",
        "label": "Hailuo 2.3 Pro",
        "company": "MiniMax",
        "is_new": True,
        "max_attachments": 1,
        "credit_cost": 49,
    },
    {
        "id": "vid-seedance-pro",
        "label": "Seedance Pro",
        "company": "ByteDance",
        "is_new": True,
        "max_attachments": 1,
        "credit_cost": 34,
    },
    {
        "id": "seedance-pro-transition",
        "label": "Seedance Pro Transition",
        "company": "ByteDance",
        "is_new": True,
        "requires_attachment": True,
        "is_transition": True,
        "max_attachments": 2,
        "credit_cost": 34,
    },
    {
        "id": "kie-seedance-1.5-pro",
        "label": "Seedance 1.5 Pro",
        "company": "ByteDance",
        "provider": "kie",
        "is_new": True,
        "max_attachments": 1,
        "supports_audio": True,
        "credit_cost": 34,
    },
    {
        "id": "pixverse-v5",
        "label": "Pixverse v5",
        "company": "Pixverse",
        "max_attachments": 1,
        "credit_cost": 16,
    },
    {
        "id": "vid-lucy-lite",
        "label": "Lucy Lite",
        "company": "Decart",
        "requires_attachment": True,
        "max_attachments": 1,
        "credit_cost": 16,
    },
]


def builtin_catalog_data() -> dict[str, Any]:
    """Raw catalog data in the same shape as a catalog file."""
    images = [{"kind": "image", "is_queued": True, **m} for m in _IMAGE_MODELS]
    videos = [{"kind": "video", "is_queued": True, **m} for m in _VIDEO_MODELS]
    return {
        "priority": ["img-nano-banana-pro", "vid-veo-3.1", "kie-sora-2"],
        "models": images + videos,
    }


@lru_cache(maxsize=1)
def builtin_catalog() -> ModelCatalog:
    """Validated builtin catalog (cached)."""
    return ModelCatalog.model_validate(builtin_catalog_data())
