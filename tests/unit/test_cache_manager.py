"""Unit tests for CacheManager."""

from __future__ import annotations

import pytest

from animebrowse.cache.manager import CacheManager
from animebrowse.cache.namespaces import TOP_LISTING_QUERY_KEY, DetailNamespace, ListingNamespace
from animebrowse.models.anime import Anime, AnimeSearchResponse
from animebrowse.models.cache import ListingKind
from animebrowse.providers.storage.memory_store import MemoryKeyValueStore
from tests.conftest import FakeClock, make_anime, make_listing


@pytest.fixture()
def manager(details_ns: DetailNamespace, listings_ns: ListingNamespace) -> CacheManager:
    details_ns.set(Anime.model_validate(make_anime(1)), "")
    details_ns.set(Anime.model_validate(make_anime(2)), "")
    listings_ns.set("bebop", 1, AnimeSearchResponse.model_validate(make_listing([1])), "")
    return CacheManager(details_ns, listings_ns)


class TestCacheManager:
    def test_list_details_newest_first(self, manager: CacheManager) -> None:
        assert [e.data["mal_id"] for e in manager.list_details()] == [2, 1]

    def test_list_searches(self, manager: CacheManager) -> None:
        entries = manager.list_searches()
        assert [(e.query_key, e.page) for e in entries] == [("bebop", 1)]

    def test_stats(self, manager: CacheManager, memory_store: MemoryKeyValueStore) -> None:
        stats = manager.stats()
        assert stats.details.count == 2
        assert stats.listings.count == 1
        assert stats.total_bytes == stats.details.approx_bytes + stats.listings.approx_bytes
        assert stats.total_bytes > 0

    def test_remove_detail(self, manager: CacheManager) -> None:
        assert manager.remove_detail(1) is True
        assert manager.remove_detail(1) is False
        assert [e.data["mal_id"] for e in manager.list_details()] == [2]

    def test_remove_listing(self, manager: CacheManager) -> None:
        assert manager.remove_listing("bebop", 1) is True
        assert manager.list_searches() == []

    def test_remove_top_listing_needs_its_kind(
        self, manager: CacheManager, listings_ns: ListingNamespace
    ) -> None:
        page = AnimeSearchResponse.model_validate(make_listing([5]))
        listings_ns.set(TOP_LISTING_QUERY_KEY, 1, page, "", ListingKind.TOP)

        assert manager.remove_listing(TOP_LISTING_QUERY_KEY, 1) is False
        assert manager.remove_listing(TOP_LISTING_QUERY_KEY, 1, ListingKind.TOP) is True
        assert [e.query_key for e in manager.list_searches()] == ["bebop"]

    def test_clear_all(self, manager: CacheManager, memory_store: MemoryKeyValueStore) -> None:
        manager.clear_all()
        assert manager.list_details() == []
        assert manager.list_searches() == []
        assert memory_store.keys() == []

    def test_purge_expired_counts_per_namespace(
        self,
        manager: CacheManager,
        details_ns: DetailNamespace,
        clock: FakeClock,
    ) -> None:
        clock.advance(30 * 60 * 1000 + 1)
        details_ns.set(Anime.model_validate(make_anime(3)), "")

        assert manager.purge_expired() == {"details": 2, "listings": 1}
        assert [e.data["mal_id"] for e in manager.list_details()] == [3]
