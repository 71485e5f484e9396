"""Durable key-value storage.

Backends:
- InMemoryKeyValueStore: dict-backed, for tests and ephemeral runs
- FileKeyValueStore: single JSON file with atomic rewrites
"""

from gensaga.core.storage.file import FileKeyValueStore
from gensaga.core.storage.memory import InMemoryKeyValueStore
from gensaga.core.storage.protocols import KeyValueStore

__all__ = [
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
]
