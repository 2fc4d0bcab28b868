"""Pydantic response schemas for the animeBrowse API.

Catalog endpoints return the catalog models from ``animebrowse.models``
directly; the schemas here cover errors, health and the cache-management
views.  Convention: response schemas end with "Response", row models used
inside them end with "Item".
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from animebrowse.models.cache import ListingKind, NamespaceStats


class ErrorResponse(BaseModel):
    """Sanitized error body returned for every application error."""

    error: str
    detail: str
    kind: str | None = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    cache_store: str
    pending_requests: list[str] = Field(default_factory=list)


class CacheStatsResponse(BaseModel):
    details: NamespaceStats
    listings: NamespaceStats
    total_bytes: int


class DetailCacheItem(BaseModel):
    """One row of the detail-cache management view."""

    mal_id: int | None
    title: str = ""
    provenance: str
    written_at: datetime
    expired: bool


class ListingCacheItem(BaseModel):
    """One row of the listing-cache management view."""

    listing: ListingKind
    query_key: str
    page: int
    result_count: int
    provenance: str
    written_at: datetime
    expired: bool


class RemoveResponse(BaseModel):
    removed: bool


class PurgeResponse(BaseModel):
    details: int
    listings: int


class LifecycleEventsResponse(BaseModel):
    events: list[dict[str, Any]] = Field(default_factory=list)
