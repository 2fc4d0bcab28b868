"""Durable key-value media for the cache namespaces."""

from animebrowse.providers.storage.memory_store import MemoryKeyValueStore
from animebrowse.providers.storage.sqlite_store import SQLiteKeyValueStore

__all__ = ["MemoryKeyValueStore", "SQLiteKeyValueStore"]
