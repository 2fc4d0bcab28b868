"""Read/delete management surface over both cache namespaces.

Backs the cache-management views (API ``/cache`` routes, ``cache`` CLI
command).  Every method delegates straight to a namespace; the manager never
builds or edits entry contents.
"""

from __future__ import annotations

import structlog

from animebrowse.cache.namespaces import DetailNamespace, ListingNamespace
from animebrowse.models.cache import CacheEntry, CacheStats, ListingEntry, ListingKind
from animebrowse.utils.logging import get_logger


class CacheManager:
    """Inspect and prune the detail and listing caches."""

    def __init__(self, details: DetailNamespace, listings: ListingNamespace) -> None:
        self._details = details
        self._listings = listings
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def list_details(self) -> list[CacheEntry]:
        return self._details.list()

    def list_searches(self) -> list[ListingEntry]:
        return self._listings.list()

    def stats(self) -> CacheStats:
        return CacheStats(details=self._details.stats(), listings=self._listings.stats())

    def remove_detail(self, mal_id: int) -> bool:
        return self._details.remove(mal_id)

    def remove_listing(
        self,
        query_key: str,
        page: int,
        listing: ListingKind = ListingKind.SEARCH,
    ) -> bool:
        return self._listings.remove(query_key, page, listing)

    def clear_all(self) -> None:
        self._details.clear()
        self._listings.clear()
        self._logger.info("cache_cleared_all")

    def purge_expired(self) -> dict[str, int]:
        """Drop expired entries from both namespaces.

        Returns
        -------
        dict
            ``{"details": n, "listings": m}`` counts of removed entries.
        """
        purged = {
            "details": self._details.purge_expired(),
            "listings": self._listings.purge_expired(),
        }
        self._logger.info("cache_expired_entries_purged", **purged)
        return purged
