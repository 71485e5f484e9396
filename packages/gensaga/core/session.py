"""Gensaga session: builds every service once per process.

The session owns configuration, the durable store, the remote backend,
the provider client and the generation orchestrator, plus the offline
queues and the favorites overlay that share them. Services are created
lazily on first access.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from gensaga.core.api.http import AsyncApiClient, HttpClientConfig
from gensaga.core.concurrency import LocalSerializer
from gensaga.core.config.catalog import ModelCatalog
from gensaga.core.config.loader import load_app_config, load_model_catalog
from gensaga.core.config.models import AppConfig
from gensaga.core.errors import GenerationError
from gensaga.core.media import FavoriteKey, GenerationParams
from gensaga.core.network import ConnectivityStatus
from gensaga.core.offline import ActionKind, OfflineQueue, OfflineSync, PendingAction, SyncReport
from gensaga.core.overlay import FavoritesOverlay
from gensaga.core.polling import Poller
from gensaga.core.providers import ProviderClient, SimulatedProvider
from gensaga.core.records import RecordWriter
from gensaga.core.remote import HttpRecordStore, InMemoryBackend, ReservationClient
from gensaga.core.saga import (
    GenerationOrchestrator,
    GenerationProvider,
    GenerationRequest,
    GenerationResult,
)
from gensaga.core.settings import SettingsStore
from gensaga.core.storage import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str | None]]

LOCAL_TOKEN = "local-session"
GENERATION_QUEUE = "offline-queue"
ASSET_QUEUE = "assets-queue"


def static_token(token: str | None) -> TokenProvider:
    """Token provider that always returns `token`."""

    async def get_token() -> str | None:
        return token

    return get_token


class GenSession:
    """Process-wide service container.

    Args:
        app_config: AppConfig instance, path, or None (default path)
        get_token: Auth token source; defaults to the configured token
        identity: Signed-in user id; None means signed out
        store: Durable store override (tests)
        backend: Remote backend override (tests)
        provider: Provider override (tests)
        catalog: Model catalog override

    Example:
        >>> session = GenSession(identity="user_1")
        >>> result = await session.generate(GenerationRequest(prompt="a fox", model_id="img-nano-banana"))
        >>> await session.aclose()
    """

    def __init__(
        self,
        *,
        app_config: AppConfig | Path | str | None = None,
        get_token: TokenProvider | None = None,
        identity: str | None = None,
        store: KeyValueStore | None = None,
        backend: Any | None = None,
        provider: GenerationProvider | None = None,
        catalog: ModelCatalog | None = None,
    ) -> None:
        self.app_config = self._resolve_config(app_config)
        self.identity = identity
        self._get_token = get_token or static_token(self._default_token())
        self._http_clients: list[AsyncApiClient] = []
        if store is not None:
            self._store = store
        if backend is not None:
            self._backend = backend
        if provider is not None:
            self._provider = provider
        if catalog is not None:
            self._catalog = catalog
        logger.debug(
            f"Session initialized: remote={self.app_config.remote.backend}, "
            f"storage={self.app_config.storage.backend}, identity={identity}"
        )

    @staticmethod
    def _resolve_config(value: AppConfig | Path | str | None) -> AppConfig:
        if value is None:
            return load_app_config()
        if isinstance(value, (Path, str)):
            return load_app_config(value)
        if isinstance(value, AppConfig):
            return value
        raise TypeError(f"Expected AppConfig, Path, str, or None; got {type(value).__name__}")

    def _default_token(self) -> str | None:
        remote = self.app_config.remote
        if remote.auth_token:
            return remote.auth_token
        return LOCAL_TOKEN if remote.backend == "memory" else None

    def _http_client(self, base_url: str) -> AsyncApiClient:
        client = AsyncApiClient(
            HttpClientConfig.with_timeout(base_url, self.app_config.api.timeout_seconds)
        )
        self._http_clients.append(client)
        return client

    # ========================================================================
    # Services
    # ========================================================================

    @property
    def get_token(self) -> TokenProvider:
        return self._get_token

    @property
    def store(self) -> KeyValueStore:
        """Durable key-value store (memory or file)."""
        if not hasattr(self, "_store"):
            cfg = self.app_config.storage
            if cfg.backend == "file":
                self._store: KeyValueStore = FileKeyValueStore(Path(cfg.path))
            else:
                self._store = InMemoryKeyValueStore()
        return self._store

    @property
    def backend(self) -> Any:
        """Remote record store implementing every remote service protocol."""
        if not hasattr(self, "_backend"):
            remote = self.app_config.remote
            if remote.backend == "http":
                if not remote.base_url:
                    raise ValueError("remote.base_url is required for the http backend")
                self._backend = HttpRecordStore(self._http_client(remote.base_url), self._get_token)
            else:
                self._backend = InMemoryBackend(
                    slot_limit=remote.slot_limit, credits=remote.initial_credits
                )
        return self._backend

    @property
    def catalog(self) -> ModelCatalog:
        if not hasattr(self, "_catalog"):
            self._catalog = load_model_catalog(self.app_config.catalog_path)
        return self._catalog

    @property
    def provider(self) -> GenerationProvider:
        """Provider client; a simulated provider when no API URL is configured."""
        if not hasattr(self, "_provider"):
            base_url = self.app_config.api.base_url
            if base_url:
                self._provider: GenerationProvider = ProviderClient(self._http_client(base_url))
            else:
                logger.info("No provider API configured, using the simulated provider")
                self._provider = SimulatedProvider()
        return self._provider

    @property
    def reservations(self) -> ReservationClient:
        if not hasattr(self, "_reservations"):
            serializer = LocalSerializer(self.app_config.serializer.deadline_seconds)
            self._reservations = ReservationClient(self.backend, self.backend, serializer)
        return self._reservations

    @property
    def records(self) -> RecordWriter:
        if not hasattr(self, "_records"):
            self._records = RecordWriter(self.backend)
        return self._records

    @property
    def poller(self) -> Poller:
        if not hasattr(self, "_poller"):
            self._poller = Poller(self.provider, self._get_token, self.app_config.polling)
        return self._poller

    @property
    def orchestrator(self) -> GenerationOrchestrator:
        if not hasattr(self, "_orchestrator"):
            self._orchestrator = GenerationOrchestrator(
                catalog=self.catalog,
                reservations=self.reservations,
                records=self.records,
                provider=self.provider,
                poller=self.poller,
                get_token=self._get_token,
                serializer_deadline=self.app_config.serializer.deadline_seconds,
            )
        return self._orchestrator

    @property
    def favorites(self) -> FavoritesOverlay:
        if not hasattr(self, "_favorites"):
            self._favorites = FavoritesOverlay(self.backend)
        return self._favorites

    @property
    def settings(self) -> SettingsStore:
        if not hasattr(self, "_settings"):
            self._settings = SettingsStore(self.store)
        return self._settings

    @property
    def generation_sync(self) -> OfflineSync:
        """Replays generations queued while offline."""
        if not hasattr(self, "_generation_sync"):
            queue = OfflineQueue(self.store, name=GENERATION_QUEUE, identity=self.identity)
            self._generation_sync = OfflineSync.for_generations(queue, self._submit_generation)
        return self._generation_sync

    @property
    def asset_sync(self) -> OfflineSync:
        """Replays asset edits (delete, favorite) queued while offline."""
        if not hasattr(self, "_asset_sync"):
            queue = OfflineQueue(self.store, name=ASSET_QUEUE, identity=self.identity)
            self._asset_sync = OfflineSync.for_asset_actions(queue, self._submit_asset_action)
        return self._asset_sync

    # ========================================================================
    # Operations
    # ========================================================================

    async def generate(self, request: GenerationRequest, **kwargs: Any) -> GenerationResult:
        """Run one generation (see GenerationOrchestrator.generate)."""
        return await self.orchestrator.generate(request, **kwargs)

    async def queue_generation(
        self, prompt: str, model_id: str, params: GenerationParams | None = None
    ) -> str:
        """Queue a generation for the next sync pass. Returns its local id."""
        payload = {
            "prompt": prompt,
            "model_id": model_id,
            "params": (params or GenerationParams()).model_dump(mode="json"),
        }
        return await self.generation_sync.queue.enqueue(ActionKind.GENERATION, payload)

    async def queue_asset_action(self, kind: ActionKind, key: FavoriteKey) -> str:
        """Queue an asset edit for the next sync pass. Returns its local id."""
        return await self.asset_sync.queue.enqueue_asset_action(kind, key)

    async def sync_offline(self) -> list[SyncReport]:
        """One pass over both offline queues."""
        return [await self.generation_sync.sync(), await self.asset_sync.sync()]

    async def on_connectivity(self, status: ConnectivityStatus) -> None:
        await self.generation_sync.on_connectivity(status)
        await self.asset_sync.on_connectivity(status)

    async def on_app_state(self, state: str) -> None:
        await self.generation_sync.on_app_state(state)
        await self.asset_sync.on_app_state(state)

    async def sign_in(self, identity: str) -> list[SyncReport]:
        """Switch to `identity` and replay its queued actions."""
        self.identity = identity
        return [
            await self.generation_sync.on_sign_in(identity),
            await self.asset_sync.on_sign_in(identity),
        ]

    async def sign_out(self) -> None:
        """Clear the current identity's queues and overrides."""
        await self.generation_sync.on_sign_out()
        await self.asset_sync.on_sign_out()
        self.favorites.overlay.clear_all()
        self.identity = None

    async def aclose(self) -> None:
        """Cancel in-flight generations and close HTTP clients."""
        if hasattr(self, "_orchestrator"):
            self._orchestrator.cancel_all()
        for client in self._http_clients:
            await client.aclose()
        self._http_clients.clear()

    # ========================================================================
    # Offline submit callbacks
    # ========================================================================

    async def _submit_generation(self, action: PendingAction) -> str | None:
        payload = action.payload
        request = GenerationRequest(
            prompt=payload["prompt"],
            model_id=payload["model_id"],
            params=GenerationParams.model_validate(payload.get("params") or {}),
        )
        result = await self.orchestrator.generate(request)
        if not result.success:
            raise GenerationError(result.error or "Generation failed")
        return result.generation_id

    async def _submit_asset_action(self, action: PendingAction) -> str | None:
        key = action.key
        if key is None:
            raise ValueError(f"Invalid media key in {action.local_id}")
        if action.kind is ActionKind.DELETE_ASSET:
            await self.backend.delete_asset_media(key)
        elif action.kind is ActionKind.TOGGLE_FAVORITE:
            await self.backend.toggle_favorite(key)
        else:
            raise ValueError(f"Not an asset action: {action.kind.value}")
        return None
