"""Cache entry models shared by the entry store and its namespaces.

Entries are serialized to the key-value medium with camelCase aliases
(``writtenAt``, ``queryKey``) so the persisted layout stays stable no matter
how the Python attribute names evolve:

    detail entry:  {"data": {...}, "writtenAt": 1718000000000, "provenance": "https://..."}
    listing entry: {"data": {...}, "writtenAt": ..., "provenance": ..., "queryKey": "naruto", "page": 1, "listing": "search"}

``written_at`` is epoch milliseconds.  ``provenance`` is the URL the data was
fetched from; it exists for diagnostics and is never used for lookup.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CacheEntry(BaseModel):
    """A cached payload plus the moment it was written."""

    model_config = ConfigDict(populate_by_name=True)

    data: dict[str, Any]
    written_at: int = Field(alias="writtenAt")
    provenance: str = ""

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.written_at

    def is_expired(self, now_ms: int, ttl_ms: int) -> bool:
        """Expired strictly after ``ttl_ms`` has elapsed."""
        return self.age_ms(now_ms) > ttl_ms


class ListingKind(str, Enum):
    """Which listing a cached page belongs to."""

    SEARCH = "search"
    TOP = "top"


class ListingEntry(CacheEntry):
    """A cached result page keyed by ``(listing, query_key, page)``.

    Blobs written before ``listing`` was persisted read back as searches.
    """

    query_key: str = Field(alias="queryKey")
    page: int
    listing: ListingKind = ListingKind.SEARCH


class NamespaceStats(BaseModel):
    """Snapshot of one namespace's size and age."""

    count: int = 0
    approx_bytes: int = 0
    oldest_written_at: int | None = None


class CacheStats(BaseModel):
    """Combined snapshot of both namespaces, as shown by the management UI."""

    details: NamespaceStats
    listings: NamespaceStats

    @property
    def total_bytes(self) -> int:
        return self.details.approx_bytes + self.listings.approx_bytes
