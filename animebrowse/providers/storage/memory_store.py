"""In-memory key-value store.

Simple, fast medium suitable for tests, the API server's default profile and
single-process deployments where losing the cache on restart is fine.  Can
be swapped for SQLite via the IKeyValueStore interface.
"""

from __future__ import annotations

import structlog

from animebrowse.interfaces.kv_store import IKeyValueStore
from animebrowse.utils.logging import get_logger


class MemoryKeyValueStore(IKeyValueStore):
    """Dict-backed string store.

    Parameters
    ----------
    initial:
        Optional seed contents, mostly useful for tests that need to start
        from a specific (possibly corrupt) persisted blob.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        self._logger.debug("kv_set", key=key, size=len(value))

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
        self._logger.debug("kv_remove", key=key)

    def keys(self) -> list[str]:
        return list(self._items)

    def get_provider_name(self) -> str:
        return "memory"
