"""Bounded, time-expiring response cache.

- **entry_store** -- Generic ordered entry list with capacity eviction and
  lazy TTL expiry, persisted as one JSON blob per namespace.
- **namespaces** -- Detail (by ``mal_id``) and listing (by listing kind, query and page)
  key-shaping wrappers.
- **manager** -- Read/delete management surface over both namespaces.
"""

from animebrowse.cache.entry_store import DEFAULT_TTL_MS, EntryStore, now_ms
from animebrowse.cache.manager import CacheManager
from animebrowse.cache.namespaces import (
    DETAILS_CAPACITY,
    DETAILS_STORAGE_KEY,
    LISTING_CAPACITY,
    LISTING_STORAGE_KEY,
    TOP_LISTING_QUERY_KEY,
    DetailNamespace,
    ListingNamespace,
)

__all__ = [
    "DEFAULT_TTL_MS",
    "DETAILS_CAPACITY",
    "DETAILS_STORAGE_KEY",
    "LISTING_CAPACITY",
    "LISTING_STORAGE_KEY",
    "TOP_LISTING_QUERY_KEY",
    "CacheManager",
    "DetailNamespace",
    "EntryStore",
    "ListingNamespace",
    "now_ms",
]
