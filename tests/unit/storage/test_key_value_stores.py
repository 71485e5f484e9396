"""Tests for the key-value store backends."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gensaga.core.storage import FileKeyValueStore, InMemoryKeyValueStore


class TestInMemoryKeyValueStore:
    """Tests for the dict-backed store."""

    @pytest.mark.asyncio
    async def test_set_get_remove(self) -> None:
        """Test basic operations."""
        store = InMemoryKeyValueStore({"a": "1"})

        assert await store.get("a") == "1"
        await store.set("b", "2")
        await store.remove("a")
        await store.remove("missing")

        assert await store.get("a") is None
        assert store.snapshot() == {"b": "2"}


class TestFileKeyValueStore:
    """Tests for the JSON-file store."""

    @pytest.mark.asyncio
    async def test_values_survive_new_instance(self, tmp_path: Path) -> None:
        """Test data persists across store instances."""
        path = tmp_path / "nested" / "state.json"
        store = FileKeyValueStore(path)
        await store.set("queue", "[]")
        await store.set("other", "x")
        await store.remove("other")

        reopened = FileKeyValueStore(path)

        assert await reopened.get("queue") == "[]"
        assert await reopened.get("other") is None
        assert json.loads(path.read_text()) == {"queue": "[]"}

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """Test a missing file reads as empty and is not created by reads."""
        path = tmp_path / "state.json"
        store = FileKeyValueStore(path)

        assert await store.get("anything") is None
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_corrupted_file_treated_as_empty(self, tmp_path: Path) -> None:
        """Test corrupted content is ignored and overwritten on write."""
        path = tmp_path / "state.json"
        path.write_text("{broken")
        store = FileKeyValueStore(path)

        assert await store.get("k") is None
        await store.set("k", "v")

        assert json.loads(path.read_text()) == {"k": "v"}
        assert not path.with_suffix(".json.tmp").exists()
