"""Capacity- and TTL-bounded entry store persisted as one JSON blob.

An ``EntryStore`` keeps an ordered list of cache entries under a single key
of the durable key-value medium.  It is generic over the logical key type
``K`` and the entry model ``E``; the namespaces in
:mod:`animebrowse.cache.namespaces` supply how a key is read from an entry
and how a new entry is built for a key.

# --- ORDERING AND EXPIRY ---------------------------------------------------
#
#   [newest] e0, e1, e2, ... e(capacity-1) [oldest, evicted first]
#
#   - set() removes any entry with the same key, prepends the new entry,
#     then truncates from the back.  Re-writing a key refreshes both its
#     timestamp and its position.
#   - get() never reorders.  Read recency has no effect on eviction.
#   - Expiry is lazy: get() deletes the single expired entry it lands on
#     and reports a miss.  Nothing sweeps in the background; purge_expired()
#     exists for explicit management actions only.
# ---------------------------------------------------------------------------

The cache is best-effort.  Every read and write of the medium goes through
``_load`` / ``_save``, which return a ``_StorageResult`` instead of raising:
an unreadable or corrupt blob reads as an empty list and a failed write is a
logged no-op.  Callers always fall back to the network.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import structlog
from pydantic import TypeAdapter, ValidationError

from animebrowse.interfaces.kv_store import IKeyValueStore
from animebrowse.models.cache import CacheEntry, NamespaceStats
from animebrowse.utils.errors import ConfigurationError
from animebrowse.utils.logging import get_logger

K = TypeVar("K", bound=Hashable)
E = TypeVar("E", bound=CacheEntry)

DEFAULT_TTL_MS = 30 * 60 * 1000


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class _StorageResult(Generic[E]):
    """Outcome of one read or write against the key-value medium."""

    ok: bool
    entries: list[E] = field(default_factory=list)
    size: int = 0
    error: str | None = None


class EntryStore(Generic[K, E]):
    """Ordered, bounded, lazily-expiring collection of cache entries.

    Parameters
    ----------
    store:
        The durable key-value medium.
    storage_key:
        Key under which this namespace's JSON array is persisted.
    capacity:
        Maximum number of entries kept after any write.
    entry_type:
        Pydantic model used to (de)serialize entries.
    key_of:
        Extracts the logical key from an entry.
    make_entry:
        Builds a new entry from ``(key, data, provenance, written_at)``.
    ttl_ms:
        Maximum entry age in milliseconds.
    clock:
        Returns the current time in epoch milliseconds.  Injected by tests.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        storage_key: str,
        *,
        capacity: int,
        entry_type: type[E],
        key_of: Callable[[E], K],
        make_entry: Callable[[K, dict[str, Any], str, int], E],
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if capacity < 1:
            raise ConfigurationError(f"Cache capacity must be positive, got {capacity}")
        if ttl_ms < 0:
            raise ConfigurationError(f"Cache TTL must not be negative, got {ttl_ms}")
        self._store = store
        self._storage_key = storage_key
        self._capacity = capacity
        self._ttl_ms = ttl_ms
        self._key_of = key_of
        self._make_entry = make_entry
        self._clock = clock
        self._adapter: TypeAdapter[list[E]] = TypeAdapter(list[entry_type])
        self._logger: structlog.BoundLogger = get_logger(__name__).bind(
            namespace=storage_key
        )

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    @property
    def storage_key(self) -> str:
        return self._storage_key

    def is_expired(self, entry: E) -> bool:
        """Whether *entry* is past this store's TTL at the current clock time."""
        return entry.is_expired(self._clock(), self._ttl_ms)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: K) -> dict[str, Any] | None:
        """Return the cached data for *key*, or ``None`` if absent or expired."""
        loaded = self._load()
        entry = next((e for e in loaded.entries if self._key_of(e) == key), None)
        if entry is None:
            self._logger.debug("cache_miss", key=key)
            return None

        now = self._clock()
        if entry.is_expired(now, self._ttl_ms):
            remaining = [e for e in loaded.entries if e is not entry]
            self._save(remaining)
            self._logger.debug("cache_expired", key=key, age_ms=entry.age_ms(now))
            return None

        self._logger.debug(
            "cache_hit",
            key=key,
            provenance=entry.provenance,
            age_ms=entry.age_ms(now),
        )
        return entry.data

    def set(self, key: K, data: dict[str, Any], provenance: str) -> None:
        """Write *data* under *key* at the front of the order.

        Never raises: a persistence failure is logged and the write is lost.
        """
        loaded = self._load()
        entries = [e for e in loaded.entries if self._key_of(e) != key]
        entries.insert(0, self._make_entry(key, data, provenance, self._clock()))

        evicted = len(entries) - self._capacity
        if evicted > 0:
            entries = entries[: self._capacity]

        result = self._save(entries)
        if result.ok:
            self._logger.debug(
                "cache_stored",
                key=key,
                provenance=provenance,
                total_entries=len(entries),
                evicted=max(evicted, 0),
            )

    def remove(self, key: K) -> bool:
        """Remove the entry for *key*.  Returns ``True`` if one was removed."""
        loaded = self._load()
        remaining = [e for e in loaded.entries if self._key_of(e) != key]
        if len(remaining) == len(loaded.entries):
            return False
        result = self._save(remaining)
        if result.ok:
            self._logger.debug("cache_removed", key=key)
        return result.ok

    def list(self) -> list[E]:
        """Return every stored entry, newest first, expired ones included."""
        return self._load().entries

    def clear(self) -> None:
        """Drop the whole namespace from the medium."""
        try:
            self._store.remove_item(self._storage_key)
        except Exception as exc:
            self._logger.error("cache_clear_failed", error=str(exc))
            return
        self._logger.info("cache_cleared")

    def stats(self) -> NamespaceStats:
        """Entry count, serialized size in bytes and oldest write time."""
        loaded = self._load()
        oldest = min((e.written_at for e in loaded.entries), default=None)
        return NamespaceStats(
            count=len(loaded.entries),
            approx_bytes=loaded.size,
            oldest_written_at=oldest,
        )

    def purge_expired(self) -> int:
        """Remove every expired entry in one pass.  Returns the number removed."""
        loaded = self._load()
        now = self._clock()
        fresh = [e for e in loaded.entries if not e.is_expired(now, self._ttl_ms)]
        purged = len(loaded.entries) - len(fresh)
        if purged and self._save(fresh).ok:
            self._logger.info("cache_purged", purged=purged, remaining=len(fresh))
        return purged

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def _load(self) -> _StorageResult[E]:
        """Read and validate the persisted list.  Never raises."""
        try:
            raw = self._store.get_item(self._storage_key)
        except Exception as exc:
            self._logger.error("cache_read_failed", error=str(exc))
            return _StorageResult(ok=False, error=str(exc))

        if not raw:
            return _StorageResult(ok=True)

        try:
            entries = self._adapter.validate_json(raw)
        except ValidationError as exc:
            self._logger.warning(
                "cache_blob_corrupt",
                error=str(exc)[:200],
                size=len(raw),
            )
            return _StorageResult(ok=False, size=len(raw), error=str(exc))

        return _StorageResult(ok=True, entries=entries, size=len(raw))

    def _save(self, entries: list[E]) -> _StorageResult[E]:
        """Persist *entries* as the complete namespace.  Never raises."""
        try:
            blob = self._adapter.dump_json(entries, by_alias=True).decode("utf-8")
            self._store.set_item(self._storage_key, blob)
        except Exception as exc:
            self._logger.error(
                "cache_write_failed",
                error=str(exc),
                entries=len(entries),
            )
            return _StorageResult(ok=False, entries=entries, error=str(exc))
        return _StorageResult(ok=True, entries=entries, size=len(blob))
