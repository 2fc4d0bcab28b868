"""animeBrowse API layer: routes, schemas, and middleware."""

from animebrowse.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    status_for_error,
)
from animebrowse.api.routes import router
from animebrowse.api.schemas import (
    CacheStatsResponse,
    DetailCacheItem,
    ErrorResponse,
    HealthResponse,
    LifecycleEventsResponse,
    ListingCacheItem,
    PurgeResponse,
    RemoveResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "status_for_error",
    "router",
    "CacheStatsResponse",
    "DetailCacheItem",
    "ErrorResponse",
    "HealthResponse",
    "LifecycleEventsResponse",
    "ListingCacheItem",
    "PurgeResponse",
    "RemoveResponse",
]
