"""Pydantic data models for animeBrowse.

- **anime** -- Jikan catalog payloads (Anime, result pages, recommendations).
- **cache** -- Persisted cache entries and namespace statistics.
- **lifecycle** -- Request classes and coordinator lifecycle events.
"""

from animebrowse.models.anime import (
    Anime,
    AnimeDetailsResponse,
    AnimeSearchResponse,
    Genre,
    Pagination,
    Recommendation,
    RecommendationsResponse,
)
from animebrowse.models.cache import (
    CacheEntry,
    CacheStats,
    ListingEntry,
    ListingKind,
    NamespaceStats,
)
from animebrowse.models.lifecycle import (
    LifecycleEvent,
    RequestClass,
    RequestFailed,
    RequestStarted,
    RequestSucceeded,
)

__all__ = [
    "Anime",
    "AnimeDetailsResponse",
    "AnimeSearchResponse",
    "CacheEntry",
    "CacheStats",
    "Genre",
    "LifecycleEvent",
    "ListingEntry",
    "ListingKind",
    "NamespaceStats",
    "Pagination",
    "Recommendation",
    "RecommendationsResponse",
    "RequestClass",
    "RequestFailed",
    "RequestStarted",
    "RequestSucceeded",
]
