"""Tests for persisted generation settings."""

from __future__ import annotations

import pytest

from gensaga.core.media import MediaKind
from gensaga.core.settings import DEFAULT_SETTINGS, SettingsStore, storage_key


class TestSettingsStore:
    """Load and save per-kind settings."""

    @pytest.mark.asyncio
    async def test_defaults_when_empty(self, store) -> None:
        """Test empty storage yields the defaults."""
        settings = SettingsStore(store)

        assert await settings.load(MediaKind.IMAGE) == DEFAULT_SETTINGS[MediaKind.IMAGE]
        assert await settings.load(MediaKind.VIDEO) == DEFAULT_SETTINGS[MediaKind.VIDEO]

    @pytest.mark.asyncio
    async def test_save_and_load(self, store) -> None:
        """Test saved values are read back and stored as strings."""
        settings = SettingsStore(store)

        await settings.save(MediaKind.VIDEO, model_id="kie-sora-2", duration=10, generate_audio=False)
        loaded = await settings.load(MediaKind.VIDEO)

        assert (loaded.model_id, loaded.duration, loaded.generate_audio) == ("kie-sora-2", 10, False)
        snapshot = store.snapshot()
        assert snapshot["@video_gen_model_id"] == "kie-sora-2"
        assert snapshot["@video_gen_duration"] == "10"
        assert snapshot["@video_gen_audio"] == "false"
        assert await settings.load(MediaKind.IMAGE) == DEFAULT_SETTINGS[MediaKind.IMAGE]

    def test_storage_keys(self) -> None:
        """Test per-kind key naming."""
        assert storage_key(MediaKind.IMAGE, "num_images") == "@image_gen_num_images"
        assert storage_key(MediaKind.VIDEO, "generate_audio") == "@video_gen_audio"

    @pytest.mark.asyncio
    async def test_unreadable_value_falls_back(self, store) -> None:
        """Test a corrupt stored value yields the defaults."""
        await store.set("@image_gen_num_images", "many")

        assert await SettingsStore(store).load(MediaKind.IMAGE) == DEFAULT_SETTINGS[MediaKind.IMAGE]

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, store) -> None:
        """Test fields of the other kind are rejected."""
        with pytest.raises(ValueError, match="duration"):
            await SettingsStore(store).save(MediaKind.IMAGE, duration=5)

    def test_to_params(self) -> None:
        """Test settings convert to kind-appropriate params."""
        params = DEFAULT_SETTINGS[MediaKind.IMAGE].to_params(attachment_urls=("https://x/a.png",))

        assert params.quality == "medium"
        assert params.duration is None
        assert params.attachment_urls == ("https://x/a.png",)
