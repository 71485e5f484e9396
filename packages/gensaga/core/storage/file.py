"""File-backed key-value store.

All keys live in a single JSON document. Every mutation rewrites the
document through a temp file followed by an atomic rename, so a crash
mid-write leaves the previous contents intact.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

import aiofiles  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)


class FileKeyValueStore:
    """
    Async KeyValueStore persisted to one JSON file.

    The file is loaded lazily on first access. A corrupted file is logged
    and treated as empty; it is overwritten on the next mutation.
    """

    def __init__(self, path: Path | str) -> None:
        """
        Initialize file store.

        Args:
            path: JSON file holding all keys (parent dirs created on write)
        """
        self.path = Path(path)
        self._data: dict[str, str] | None = None
        self._lock = asyncio.Lock()

    async def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data

        if not self.path.exists():
            self._data = {}
            return self._data

        async with aiofiles.open(self.path, encoding="utf-8") as f:
            raw = await f.read()

        try:
            parsed = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring corrupted store file {self.path}: {e}")
            parsed = {}

        if not isinstance(parsed, dict):
            logger.warning(f"Ignoring store file {self.path}: root is not an object")
            parsed = {}

        self._data = {str(k): str(v) for k, v in parsed.items()}
        return self._data

    async def _flush(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data, indent=2, sort_keys=True))
        os.replace(tmp_path, self.path)

    async def get(self, key: str) -> str | None:
        async with self._lock:
            data = await self._load()
            return data.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            data = await self._load()
            data[key] = value
            await self._flush(data)

    async def remove(self, key: str) -> None:
        async with self._lock:
            data = await self._load()
            if key in data:
                del data[key]
                await self._flush(data)
