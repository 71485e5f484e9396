"""Tests for the model catalog: pricing, validation and ordering."""

from __future__ import annotations

from pathlib import Path

import pytest

from gensaga.core.config import UNKNOWN_MODEL_COST, builtin_catalog, load_model_catalog
from gensaga.core.errors import ValidationError
from gensaga.core.media import GenerationParams, MediaKind


@pytest.fixture
def catalog():
    return builtin_catalog()


class TestImagePricing:
    """Per-image pricing with overrides."""

    def test_base_cost_times_count(self, catalog) -> None:
        """Test price is per-image cost times number of images."""
        assert catalog.price("img-nano-banana", GenerationParams(num_images=2)) == 6

    def test_resolution_override(self, catalog) -> None:
        """Test resolution-specific cost."""
        params = GenerationParams(resolution="4K", num_images=2)
        assert catalog.price("img-nano-banana-pro", params) == 50
        assert catalog.price("img-nano-banana-pro", GenerationParams(resolution="1K")) == 15

    def test_quality_override(self, catalog) -> None:
        """Test quality-specific cost."""
        assert catalog.price("img-gpt-image-1-5", GenerationParams(quality="high")) == 16
        assert catalog.price("img-gpt-image-1-5", GenerationParams(quality="low")) == 4

    def test_aspect_ratio_override(self, catalog) -> None:
        """Test aspect-ratio-specific cost."""
        assert catalog.price("img-flux-2-max", GenerationParams(aspect_ratio="16:9")) == 9
        assert catalog.price("img-flux-2-max", GenerationParams(aspect_ratio="2:3")) == 7

    def test_unknown_model_fallback(self, catalog) -> None:
        """Test unknown models use the flat fallback cost."""
        assert catalog.price("img-does-not-exist", GenerationParams()) == UNKNOWN_MODEL_COST


class TestVideoPricing:
    """Video base cost with multipliers, each rounded up."""

    def test_base_cost(self, catalog) -> None:
        """Test a plain request costs the base amount."""
        assert catalog.price("vid-veo-3.1", GenerationParams(duration=5)) == 240

    def test_multipliers_compound(self, catalog) -> None:
        """Test 1080p, audio and duration multipliers compound."""
        params = GenerationParams(resolution="1080p", generate_audio=True, duration=10)
        assert catalog.price("vid-veo-3.1", params) == 864

    def test_duration_rounds_up(self, catalog) -> None:
        """Test fractional results are rounded up."""
        assert catalog.price("pixverse-v5", GenerationParams(duration=7)) == 23

    def test_unsupported_options_ignored(self, catalog) -> None:
        """Test audio and fast mode only apply where supported."""
        params = GenerationParams(generate_audio=True, fast_mode=True)
        assert catalog.price("kie-wan-2.5", params) == 15

    def test_watermark_removal(self, catalog) -> None:
        """Test watermark removal multiplier."""
        assert catalog.price("kie-sora-2", GenerationParams(remove_watermark=True)) == 39

    def test_num_images_ignored_for_video(self, catalog) -> None:
        """Test videos are billed as a single unit."""
        assert catalog.price("vid-seedance-pro", GenerationParams(num_images=3)) == 34


class TestValidation:
    """Attachment and image-count validation."""

    def test_requires_attachment(self, catalog) -> None:
        """Test edit-only image model without attachments."""
        with pytest.raises(ValidationError, match="Kling O1 Image Edit requires at least 1 image"):
            catalog.require("img-kling-o1").validate_request(GenerationParams())

    def test_too_many_images(self, catalog) -> None:
        """Test num_images above the model maximum."""
        with pytest.raises(ValidationError, match="up to 4 image\\(s\\) per generation"):
            catalog.require("img-nano-banana").validate_request(GenerationParams(num_images=5))

    def test_too_many_attachments(self, catalog) -> None:
        """Test attachments above the model maximum."""
        params = GenerationParams(attachment_urls=("a", "b"))
        with pytest.raises(ValidationError, match="Reve supports up to 1 image"):
            catalog.require("img-reve").validate_request(params)

    def test_transition_needs_two_frames(self, catalog) -> None:
        """Test transition models need exactly a start and end frame."""
        model = catalog.require("veo3.1-transition")
        with pytest.raises(ValidationError, match="requires start and end frame images"):
            model.validate_request(GenerationParams())
        with pytest.raises(ValidationError, match="exactly 2 images"):
            model.validate_request(GenerationParams(start_frame_url="https://x/start.png"))
        model.validate_request(
            GenerationParams(start_frame_url="https://x/s.png", end_frame_url="https://x/e.png")
        )

    def test_video_requires_one_image(self, catalog) -> None:
        """Test image-to-video models without an image."""
        with pytest.raises(ValidationError, match="Lucy Lite requires at least one image"):
            catalog.require("vid-lucy-lite").validate_request(GenerationParams())

    def test_reference_images_count(self, catalog) -> None:
        """Test reference images count as attachments."""
        params = GenerationParams(reference_urls=tuple(f"https://x/{i}.png" for i in range(3)))
        catalog.require("kling-o1").validate_request(params)


class TestLookup:
    """Lookup, edit variants and ordering."""

    def test_require_unknown(self, catalog) -> None:
        """Test unknown ids raise with the kind in the message."""
        with pytest.raises(ValidationError, match="Unknown video model: nope"):
            catalog.require("nope", MediaKind.VIDEO)
        with pytest.raises(ValidationError, match="Unknown model: vid-veo-3.1"):
            catalog.require("vid-veo-3.1", MediaKind.IMAGE)

    def test_edit_variant_swap(self, catalog) -> None:
        """Test models swap to their edit variant when attachments are present."""
        assert catalog.effective_model_id("img-nano-banana", True) == "img-nano-banana-edit"
        assert catalog.effective_model_id("img-nano-banana", False) == "img-nano-banana"
        assert catalog.effective_model_id("img-imagen3", True) == "img-imagen3"

    def test_sorted_models(self, catalog) -> None:
        """Test priority first, then new models, then by label; edit variants hidden."""
        ids = [m.id for m in catalog.sorted_models(MediaKind.IMAGE)]

        assert ids[0] == "img-nano-banana-pro"
        assert ids[1:5] == [
            "img-flux-2-max",
            "img-gpt-image-1-5",
            "img-kling-o1",
            "img-seedream-v45",
        ]
        assert not any(i.endswith("-edit") for i in ids)

    def test_load_catalog_file(self, tmp_path: Path) -> None:
        """Test loading a custom catalog from YAML."""
        path = tmp_path / "catalog.yaml"
        path.write_text(
            "priority: [img-a]\n"
            "models:\n"
            "  - {id: img-a, label: A, kind: image, credit_cost: 2}\n"
            "  - {id: vid-b, label: B, kind: video, credit_cost: 10, is_queued: true}\n"
        )

        catalog = load_model_catalog(path)

        assert catalog.price("img-a", GenerationParams(num_images=3)) == 6
        assert catalog.require("vid-b").is_queued
