"""Tests for GenSession wiring."""

from __future__ import annotations

import pytest

from gensaga.core.config.models import AppConfig
from gensaga.core.media import FavoriteKey, GenerationParams, MediaKind
from gensaga.core.offline import ActionKind
from gensaga.core.providers import ProviderClient, SimulatedProvider
from gensaga.core.saga import GenerationRequest
from gensaga.core.session import LOCAL_TOKEN, GenSession


@pytest.fixture
def app_config(fast_polling) -> AppConfig:
    return AppConfig(polling=fast_polling)


@pytest.fixture
def session(app_config, backend) -> GenSession:
    return GenSession(app_config=app_config, identity="user_1", backend=backend)


class TestWiring:
    """Lazy service construction."""

    @pytest.mark.asyncio
    async def test_memory_backend_uses_local_token(self, app_config) -> None:
        """Test the in-memory backend gets a local token by default."""
        session = GenSession(app_config=app_config)

        assert await session.get_token() == LOCAL_TOKEN
        assert session.orchestrator is session.orchestrator

    def test_simulated_provider_without_api_url(self, app_config) -> None:
        """Test the simulated provider is used when no API is configured."""
        assert isinstance(GenSession(app_config=app_config).provider, SimulatedProvider)

    @pytest.mark.asyncio
    async def test_provider_client_with_api_url(self, app_config) -> None:
        """Test a configured API URL builds the HTTP provider client."""
        config = app_config.model_copy(
            update={"api": app_config.api.model_copy(update={"base_url": "https://api.example"})}
        )
        session = GenSession(app_config=config)

        assert isinstance(session.provider, ProviderClient)
        await session.aclose()

    def test_http_backend_requires_url(self) -> None:
        """Test the HTTP backend cannot be built without a base URL."""
        config = AppConfig.model_validate({"remote": {"backend": "http"}})

        with pytest.raises(ValueError, match="base_url"):
            _ = GenSession(app_config=config).backend

    def test_rejects_unknown_config_type(self) -> None:
        """Test bad app_config values fail early."""
        with pytest.raises(TypeError):
            GenSession(app_config=42)  # type: ignore[arg-type]


class TestOperations:
    """End-to-end flows against the in-memory backend."""

    @pytest.mark.asyncio
    async def test_generate(self, session, backend) -> None:
        """Test a queued image generation completes through the session."""
        result = await session.generate(
            GenerationRequest(prompt="a fox", model_id="img-nano-banana")
        )

        assert result.success
        assert backend.balance == 997
        assert backend.active_slots == 0

    @pytest.mark.asyncio
    async def test_queued_generation_syncs(self, session, backend) -> None:
        """Test a generation queued offline is submitted on the next pass."""
        local_id = await session.queue_generation(
            "a fox", "img-imagen4-preview", GenerationParams(num_images=2)
        )

        generations, assets = await session.sync_offline()

        record_id = generations.synced[local_id]
        assert len(backend.records[record_id].images) == 2
        assert assets.attempted == 0
        assert await session.generation_sync.queue.items() == []

    @pytest.mark.asyncio
    async def test_failed_generation_stays_queued(self, session, backend) -> None:
        """Test a refused replay is kept with its error."""
        backend.balance = 0
        local_id = await session.queue_generation("a fox", "img-imagen4-preview")

        generations, _ = await session.sync_offline()

        assert generations.failed == {local_id: "Insufficient credits"}
        assert (await session.generation_sync.queue.get(local_id)).error == "Insufficient credits"

    @pytest.mark.asyncio
    async def test_asset_actions_sync(self, session, backend) -> None:
        """Test queued favorite and delete actions replay against the backend."""
        record_id = backend.seed_record(urls=["https://x/1.png", "https://x/2.png"])
        favorite = FavoriteKey(record_id=record_id, media_type=MediaKind.IMAGE, index=0)
        removed = FavoriteKey(record_id=record_id, media_type=MediaKind.IMAGE, index=1)
        vanished = FavoriteKey(record_id="rec_gone", media_type=MediaKind.IMAGE, index=0)

        await session.queue_asset_action(ActionKind.TOGGLE_FAVORITE, favorite)
        await session.queue_asset_action(ActionKind.DELETE_ASSET, removed)
        await session.queue_asset_action(ActionKind.DELETE_ASSET, vanished)
        _, assets = await session.sync_offline()

        assert len(assets.synced) == 3
        assert assets.failed == {}
        assert backend.favorites == {favorite}
        assert [m.url for m in backend.records[record_id].images] == ["https://x/1.png"]

    @pytest.mark.asyncio
    async def test_sign_in_replays_and_sign_out_clears(self, app_config, backend) -> None:
        """Test identity changes drive the offline queues."""
        first = GenSession(app_config=app_config, identity="user_1", backend=backend)
        await first.queue_generation("queued", "img-imagen4-preview")

        session = GenSession(app_config=app_config, backend=backend, store=first.store)
        generations, _ = await session.sign_in("user_1")
        assert len(generations.synced) == 1

        await session.queue_generation("later", "img-imagen4-preview")
        session.favorites.overlay.set(
            FavoriteKey(record_id="r", media_type=MediaKind.IMAGE, index=0), True
        )
        await session.sign_out()

        assert session.identity is None
        assert len(session.favorites.overlay) == 0
        assert "offline-queue:user_1" not in first.store.snapshot()

    @pytest.mark.asyncio
    async def test_settings_round_trip(self, session) -> None:
        """Test settings persist through the session store."""
        await session.settings.save(MediaKind.IMAGE, model_id="img-flux-2-max")

        assert (await session.settings.load(MediaKind.IMAGE)).model_id == "img-flux-2-max"

    @pytest.mark.asyncio
    async def test_aclose_cancels_in_flight(self, session) -> None:
        """Test closing the session cancels running generations."""
        await session.aclose()

        assert session.orchestrator.active_invocations == []
