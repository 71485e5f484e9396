"""Configuration management for gensaga."""

from gensaga.core.config.builtin_models import builtin_catalog
from gensaga.core.config.catalog import UNKNOWN_MODEL_COST, ModelCatalog, ModelSpec
from gensaga.core.config.loader import (
    detect_format,
    load_app_config,
    load_config,
    load_model_catalog,
)
from gensaga.core.config.models import (
    IMAGE_POLL_POLICY,
    VIDEO_POLL_POLICY,
    ApiConfig,
    AppConfig,
    LoggingConfig,
    PollingConfig,
    PollPolicy,
    RemoteConfig,
    SerializerConfig,
    StorageConfig,
)

__all__ = [
    # Loaders
    "detect_format",
    "load_config",
    "load_app_config",
    "load_model_catalog",
    "builtin_catalog",
    # Models
    "AppConfig",
    "ApiConfig",
    "RemoteConfig",
    "PollingConfig",
    "PollPolicy",
    "SerializerConfig",
    "StorageConfig",
    "LoggingConfig",
    "IMAGE_POLL_POLICY",
    "VIDEO_POLL_POLICY",
    # Catalog
    "ModelCatalog",
    "ModelSpec",
    "UNKNOWN_MODEL_COST",
]
