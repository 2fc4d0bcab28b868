"""Abstract base class for the durable key-value medium.

The entry store persists each cache namespace as one JSON string under one
key.  Implementations may use an in-process dict, SQLite, a browser-style
local storage bridge, or anything else that can map strings to strings.

There are no transactional guarantees: a ``set_item`` either replaces the
whole value or fails.  Calls are synchronous because cache reads and writes
must never suspend the caller; implementations should keep them cheap.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IKeyValueStore(ABC):
    """Contract for a durable string-keyed string store.

    Implementations are free to raise on I/O failure; the entry store
    contains every such failure.
    """

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the value stored under *key*, or ``None`` when absent."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete *key*.  No-op if the key does not exist."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
