"""Configuration models for gensaga."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ConfigBase(BaseModel):
    """Base class for file-backed configurations.

    Subclasses must implement default_path() to specify their default location.
    """

    model_config = ConfigDict(extra="ignore")  # Forward compatibility

    @classmethod
    def default_path(cls) -> Path:
        """Return the default config file path for this config type."""
        raise NotImplementedError(f"{cls.__name__} must implement default_path()")

    @classmethod
    def load_or_default(cls, path: Path | str | None = None) -> Self:
        """Load config from path or use default path.

        Args:
            path: Path to config file, or None to use default

        Returns:
            Loaded config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValidationError: If config is invalid
        """
        # AppConfig needs environment variable loading
        if cls.__name__ == "AppConfig":
            from gensaga.core.config.loader import load_app_config

            return load_app_config(path)  # type: ignore[return-value]

        from gensaga.core.config.loader import load_config

        if path is None:
            path = cls.default_path()
        raw = load_config(path)
        return cls.model_validate(raw)


class PollPolicy(BaseModel):
    """Backoff policy for polling a queued provider job.

    Delays are in seconds.
    """

    model_config = ConfigDict(frozen=True)

    initial_delay: float = Field(gt=0)
    max_delay: float = Field(gt=0)
    backoff_multiplier: float = Field(default=1.5, ge=1.0)
    max_attempts: int = Field(gt=0)
    timeout: float = Field(gt=0, description="Wall-clock budget for the whole poll")
    timeout_message: str = "Generation timed out"

    @model_validator(mode="after")
    def _check_delays(self) -> PollPolicy:
        if self.initial_delay > self.max_delay:
            raise ValueError("initial_delay must not exceed max_delay")
        return self

    def next_delay(self, delay: float) -> float:
        """Delay for the attempt following one that waited `delay`."""
        return min(delay * self.backoff_multiplier, self.max_delay)

    def progress(self, attempt: int) -> float:
        """Progress hint for a still-queued job after `attempt` attempts."""
        return min(90.0, 20.0 + (attempt / self.max_attempts) * 70.0)


IMAGE_POLL_POLICY = PollPolicy(
    initial_delay=1.0,
    max_delay=10.0,
    backoff_multiplier=1.5,
    max_attempts=120,
    timeout=120.0,
)

VIDEO_POLL_POLICY = PollPolicy(
    initial_delay=2.0,
    max_delay=15.0,
    backoff_multiplier=1.5,
    max_attempts=180,
    timeout=300.0,
    timeout_message="Video generation timed out",
)


class ApiConfig(BaseModel):
    """Provider API surface."""

    base_url: str | None = None
    timeout_seconds: float = Field(default=60.0, gt=0)


class RemoteConfig(BaseModel):
    """Remote record store (slots, credits, sessions, favorites)."""

    backend: Literal["memory", "http"] = "memory"
    base_url: str | None = None
    auth_token: str | None = None

    # In-memory backend only
    slot_limit: int = Field(default=2, ge=1)
    initial_credits: int = Field(default=1000, ge=0)


class PollingConfig(BaseModel):
    """Per-kind poll policies."""

    image: PollPolicy = IMAGE_POLL_POLICY
    video: PollPolicy = VIDEO_POLL_POLICY


class SerializerConfig(BaseModel):
    """Slot-acquire serializer."""

    deadline_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Max wait to enter the critical section (None waits forever)",
    )


class StorageConfig(BaseModel):
    """Durable key-value storage for offline queue, settings and caches."""

    backend: Literal["memory", "file"] = "memory"
    path: str = ".gensaga/state.json"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False
    filename: str | None = None


class AppConfig(ConfigBase):
    """Application-level configuration."""

    model_config = ConfigDict(extra="ignore")

    api: ApiConfig = ApiConfig()
    remote: RemoteConfig = RemoteConfig()
    polling: PollingConfig = PollingConfig()
    serializer: SerializerConfig = SerializerConfig()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()
    catalog_path: str | None = Field(
        default=None, description="Model catalog file; builtin catalog when unset"
    )

    @classmethod
    def default_path(cls) -> Path:
        """Default path for application config."""
        return Path("gensaga.yaml")
