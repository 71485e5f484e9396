"""Tests for AppConfig loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gensaga.core.config.loader import (
    ENV_API_BASE_URL,
    ENV_AUTH_TOKEN,
    ENV_REMOTE_URL,
    detect_format,
    load_app_config,
    load_config,
)
from gensaga.core.config.models import AppConfig, PollPolicy


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (ENV_API_BASE_URL, ENV_REMOTE_URL, ENV_AUTH_TOKEN):
        monkeypatch.delenv(name, raising=False)


class TestDetectFormat:
    """Tests for detect_format."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [("a.json", "json"), ("a.yaml", "yaml"), ("a.YML", "yaml")],
    )
    def test_known_extensions(self, name: str, expected: str) -> None:
        """Test extension detection."""
        assert detect_format(name) == expected

    def test_unknown_extension(self) -> None:
        """Test unsupported extension raises."""
        with pytest.raises(ValueError, match="Unsupported config format"):
            detect_format("config.toml")


class TestLoadConfig:
    """Tests for raw config loading."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_yaml_is_empty_mapping(self, tmp_path: Path) -> None:
        """Test empty YAML loads as {}."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == {}

    def test_non_mapping_root_rejected(self, tmp_path: Path) -> None:
        """Test a list at the root is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)

    def test_invalid_json(self, tmp_path: Path) -> None:
        """Test malformed JSON raises ValueError."""
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_config(path)


class TestLoadAppConfig:
    """Tests for load_app_config."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """Test defaults when no config file exists."""
        config = load_app_config(tmp_path / "gensaga.yaml")

        assert config.remote.backend == "memory"
        assert config.serializer.deadline_seconds is None
        assert config.polling.image.max_attempts == 120
        assert config.polling.video.timeout == 300.0
        assert config.polling.video.timeout_message == "Video generation timed out"

    def test_yaml_file(self, tmp_path: Path) -> None:
        """Test values from a YAML file."""
        path = tmp_path / "gensaga.yaml"
        path.write_text(
            "remote:\n"
            "  backend: http\n"
            "  base_url: https://store.example\n"
            "serializer:\n"
            "  deadline_seconds: 30\n"
            "storage:\n"
            "  backend: file\n"
            "  path: state.json\n"
            "unknown_section: ignored\n"
        )

        config = load_app_config(path)

        assert config.remote.backend == "http"
        assert config.remote.base_url == "https://store.example"
        assert config.serializer.deadline_seconds == 30
        assert config.storage.backend == "file"

    def test_json_file(self, tmp_path: Path) -> None:
        """Test values from a JSON file."""
        path = tmp_path / "gensaga.json"
        path.write_text(json.dumps({"api": {"base_url": "https://api.example"}}))

        assert load_app_config(path).api.base_url == "https://api.example"

    def test_env_fills_unset_values(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment variables fill values the file leaves unset."""
        monkeypatch.setenv(ENV_API_BASE_URL, "https://env-api.example")
        monkeypatch.setenv(ENV_REMOTE_URL, "https://env-store.example")
        monkeypatch.setenv(ENV_AUTH_TOKEN, "env-token")

        config = load_app_config(tmp_path / "missing.yaml")

        assert config.api.base_url == "https://env-api.example"
        assert config.remote.base_url == "https://env-store.example"
        assert config.remote.auth_token == "env-token"

    def test_file_wins_over_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment does not override explicit file values."""
        monkeypatch.setenv(ENV_API_BASE_URL, "https://env-api.example")
        path = tmp_path / "gensaga.yaml"
        path.write_text("api:\n  base_url: https://file-api.example\n")

        assert load_app_config(path).api.base_url == "https://file-api.example"

    def test_load_or_default_delegates(self, tmp_path: Path) -> None:
        """Test AppConfig.load_or_default uses the loader."""
        path = tmp_path / "gensaga.yaml"
        path.write_text("remote:\n  slot_limit: 5\n")

        assert AppConfig.load_or_default(path).remote.slot_limit == 5


class TestPollPolicy:
    """Tests for PollPolicy backoff and progress."""

    def test_next_delay_is_capped(self) -> None:
        """Test delay grows by the multiplier up to the cap."""
        policy = PollPolicy(initial_delay=2, max_delay=5, backoff_multiplier=2, max_attempts=10, timeout=60)

        assert policy.next_delay(2) == 4
        assert policy.next_delay(4) == 5

    def test_progress_bounds(self) -> None:
        """Test progress runs from 20 towards 90 and never exceeds 90."""
        policy = PollPolicy(initial_delay=1, max_delay=1, max_attempts=10, timeout=60)

        assert policy.progress(0) == 20.0
        assert policy.progress(5) == 55.0
        assert policy.progress(10) == 90.0
        assert policy.progress(50) == 90.0

    def test_initial_delay_must_not_exceed_max(self) -> None:
        """Test inconsistent delays are rejected."""
        with pytest.raises(ValueError):
            PollPolicy(initial_delay=10, max_delay=1, max_attempts=1, timeout=1)
