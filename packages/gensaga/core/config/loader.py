"""Configuration loading utilities with JSON and YAML support."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from gensaga.core.config.builtin_models import builtin_catalog
from gensaga.core.config.catalog import ModelCatalog
from gensaga.core.config.models import AppConfig

logger = logging.getLogger(__name__)

ENV_API_BASE_URL = "GENSAGA_API_BASE_URL"
ENV_REMOTE_URL = "GENSAGA_REMOTE_URL"
ENV_AUTH_TOKEN = "GENSAGA_AUTH_TOKEN"


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Args:
        file_path: Path to config file

    Returns:
        Format string: "json" or "yaml"

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("gensaga.json")
        'json'
        >>> detect_format("gensaga.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()

    if suffix == ".json":
        return "json"
    elif suffix in [".yaml", ".yml"]:
        return "yaml"
    else:
        raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> dict[str, Any]:
    """Load and return raw configuration dictionary.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Raw configuration dictionary

    Raises:
        FileNotFoundError: If config file does not exist
        ValueError: If format is not supported or file content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)

    if fmt == "json":
        try:
            with path.open("r", encoding="utf-8") as f:
                content = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    else:
        try:
            with path.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

    # safe_load returns None for empty files
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"Config root must be a mapping in {path}")
    return content


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration.

    A missing file yields defaults. Environment variables fill values left
    unset by the file.

    Args:
        path: Path to app config file (.json, .yaml, or .yml).
              Defaults to AppConfig.default_path().

    Returns:
        Validated AppConfig instance

    Raises:
        pydantic.ValidationError: If config is invalid
    """
    if path is None:
        path = AppConfig.default_path()

    if Path(path).exists():
        config = AppConfig.model_validate(load_config(path))
        logger.debug(f"Loaded app config from {path}")
    else:
        config = AppConfig()

    return _load_env_vars_into_config(config)


def _load_env_vars_into_config(config: AppConfig) -> AppConfig:
    """Fill unset URLs and the auth token from the environment."""
    api_updates: dict[str, Any] = {}
    remote_updates: dict[str, Any] = {}

    if config.api.base_url is None and os.getenv(ENV_API_BASE_URL):
        logger.debug(f"Loaded {ENV_API_BASE_URL} from environment")
        api_updates["base_url"] = os.getenv(ENV_API_BASE_URL)

    if config.remote.base_url is None and os.getenv(ENV_REMOTE_URL):
        logger.debug(f"Loaded {ENV_REMOTE_URL} from environment")
        remote_updates["base_url"] = os.getenv(ENV_REMOTE_URL)

    if config.remote.auth_token is None and os.getenv(ENV_AUTH_TOKEN):
        logger.debug(f"Loaded {ENV_AUTH_TOKEN} from environment")
        remote_updates["auth_token"] = os.getenv(ENV_AUTH_TOKEN)

    if not api_updates and not remote_updates:
        return config

    return config.model_copy(
        update={
            "api": config.api.model_copy(update=api_updates),
            "remote": config.remote.model_copy(update=remote_updates),
        }
    )


def load_model_catalog(path: str | Path | None = None) -> ModelCatalog:
    """Load a model catalog file, or the builtin catalog when path is None.

    Args:
        path: Catalog file (.json, .yaml, or .yml)

    Returns:
        Validated ModelCatalog

    Raises:
        FileNotFoundError: If the catalog file does not exist
        pydantic.ValidationError: If the catalog is invalid
    """
    if path is None:
        return builtin_catalog()
    catalog = ModelCatalog.model_validate(load_config(path))
    logger.debug(f"Loaded {len(catalog.models)} models from {path}")
    return catalog
