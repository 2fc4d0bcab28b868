"""Detail and listing namespaces over the generic entry store.

Each namespace owns one :class:`~animebrowse.cache.entry_store.EntryStore`
and only shapes keys and payloads:

    Namespace   Storage key            Logical key                  Capacity
    ---------   --------------------   --------------------------   --------
    Detail      anime_details_cache    mal_id (read from data)      5
    Listing     anime_search_cache     (listing, query_key, page)   10

Cached payloads are plain JSON dicts; the namespaces re-hydrate them into
catalog models on the way out.  A payload that no longer validates (schema
drift, hand-edited storage) is dropped and reported as a miss.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog
from pydantic import ValidationError

from animebrowse.cache.entry_store import DEFAULT_TTL_MS, EntryStore, now_ms
from animebrowse.interfaces.kv_store import IKeyValueStore
from animebrowse.models.anime import Anime, AnimeSearchResponse
from animebrowse.models.cache import CacheEntry, ListingEntry, ListingKind, NamespaceStats
from animebrowse.utils.logging import get_logger

DETAILS_STORAGE_KEY = "anime_details_cache"
LISTING_STORAGE_KEY = "anime_search_cache"
DETAILS_CAPACITY = 5
LISTING_CAPACITY = 10

# Display key for top-listing pages; lookups are separated by ListingKind.
TOP_LISTING_QUERY_KEY = "TOP_ANIME"

ListingKey = tuple[ListingKind, str, int]


# ---------------------------------------------------------------------------
# Key and entry shaping
# ---------------------------------------------------------------------------

def _detail_key(entry: CacheEntry) -> Any:
    return entry.data.get("mal_id")


def _make_detail_entry(
    key: int, data: dict[str, Any], provenance: str, written_at: int
) -> CacheEntry:
    return CacheEntry(data=data, written_at=written_at, provenance=provenance)


def _listing_key(entry: ListingEntry) -> ListingKey:
    return (entry.listing, entry.query_key, entry.page)


def _make_listing_entry(
    key: ListingKey, data: dict[str, Any], provenance: str, written_at: int
) -> ListingEntry:
    listing, query_key, page = key
    return ListingEntry(
        data=data,
        written_at=written_at,
        provenance=provenance,
        query_key=query_key,
        page=page,
        listing=listing,
    )


# ---------------------------------------------------------------------------
# Namespaces
# ---------------------------------------------------------------------------

class DetailNamespace:
    """Single-item cache keyed by the anime's ``mal_id``."""

    def __init__(
        self,
        store: IKeyValueStore,
        *,
        capacity: int = DETAILS_CAPACITY,
        ttl_ms: int = DEFAULT_TTL_MS,
        storage_key: str = DETAILS_STORAGE_KEY,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._entries: EntryStore[int, CacheEntry] = EntryStore(
            store,
            storage_key,
            capacity=capacity,
            entry_type=CacheEntry,
            key_of=_detail_key,
            make_entry=_make_detail_entry,
            ttl_ms=ttl_ms,
            clock=clock,
        )
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def entry_store(self) -> EntryStore[int, CacheEntry]:
        return self._entries

    def get(self, mal_id: int) -> Anime | None:
        data = self._entries.get(mal_id)
        if data is None:
            return None
        try:
            return Anime.model_validate(data)
        except ValidationError as exc:
            self._logger.warning("cached_detail_invalid", mal_id=mal_id, error=str(exc)[:200])
            self._entries.remove(mal_id)
            return None

    def set(self, anime: Anime, provenance: str) -> None:
        self._entries.set(anime.mal_id, anime.model_dump(mode="json"), provenance)

    def remove(self, mal_id: int) -> bool:
        return self._entries.remove(mal_id)

    def list(self) -> list[CacheEntry]:
        return self._entries.list()

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> NamespaceStats:
        return self._entries.stats()

    def purge_expired(self) -> int:
        return self._entries.purge_expired()


class ListingNamespace:
    """Result-page cache keyed by ``(listing, query_key, page)``.

    ``query_key`` is the trimmed search text for :attr:`ListingKind.SEARCH`
    pages and :data:`TOP_LISTING_QUERY_KEY` for :attr:`ListingKind.TOP`
    pages.  The tag keeps a search for the literal sentinel text apart from
    the top listing.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        *,
        capacity: int = LISTING_CAPACITY,
        ttl_ms: int = DEFAULT_TTL_MS,
        storage_key: str = LISTING_STORAGE_KEY,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._entries: EntryStore[ListingKey, ListingEntry] = EntryStore(
            store,
            storage_key,
            capacity=capacity,
            entry_type=ListingEntry,
            key_of=_listing_key,
            make_entry=_make_listing_entry,
            ttl_ms=ttl_ms,
            clock=clock,
        )
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def entry_store(self) -> EntryStore[ListingKey, ListingEntry]:
        return self._entries

    def get(
        self,
        query_key: str,
        page: int,
        listing: ListingKind = ListingKind.SEARCH,
    ) -> AnimeSearchResponse | None:
        key = (listing, query_key, page)
        data = self._entries.get(key)
        if data is None:
            return None
        try:
            return AnimeSearchResponse.model_validate(data)
        except ValidationError as exc:
            self._logger.warning(
                "cached_listing_invalid",
                listing=listing.value,
                query_key=query_key,
                page=page,
                error=str(exc)[:200],
            )
            self._entries.remove(key)
            return None

    def set(
        self,
        query_key: str,
        page: int,
        response: AnimeSearchResponse,
        provenance: str,
        listing: ListingKind = ListingKind.SEARCH,
    ) -> None:
        self._entries.set((listing, query_key, page), response.model_dump(mode="json"), provenance)

    def remove(
        self,
        query_key: str,
        page: int,
        listing: ListingKind = ListingKind.SEARCH,
    ) -> bool:
        return self._entries.remove((listing, query_key, page))

    def list(self) -> list[ListingEntry]:
        return self._entries.list()

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> NamespaceStats:
        return self._entries.stats()

    def purge_expired(self) -> int:
        return self._entries.purge_expired()
