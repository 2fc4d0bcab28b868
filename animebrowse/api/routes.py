"""FastAPI route definitions for the animeBrowse API.

Exposes the catalog queries, the cache-management views and the request
lifecycle history.  The ``BrowseContext`` is resolved from ``app.state`` via
FastAPI's ``Depends`` using the ``Annotated`` pattern.  Catalog queries run on
the caller's own single-flight slots, keyed by the ``X-Client-Id`` header:
a newer query from the same client supersedes an older one, while requests
without the header are never superseded.

# --- API ROUTE MAP -----------------------------------------------------------
#
# Endpoint                              Method  Description
# ---------------------------------------------------------------------------
# /api/v1/anime/search?q=&page=         GET     Search by title (cached)
# /api/v1/anime/top?page=               GET     Top listing (cached)
# /api/v1/anime/{id}                    GET     Single title (cached)
# /api/v1/anime/{id}/recommendations    GET     Recommendations (never cached)
# /api/v1/cache/stats                   GET     Entry counts and sizes
# /api/v1/cache/details                 GET     Cached detail entries
# /api/v1/cache/searches                GET     Cached listing pages
# /api/v1/cache/details/{id}            DELETE  Drop one detail entry
# /api/v1/cache/searches?query_key=&page=&listing=
#                                       DELETE  Drop one listing page
# /api/v1/cache                         DELETE  Clear both namespaces
# /api/v1/cache/purge                   POST    Drop expired entries only
# /api/v1/requests/events               GET     Recent lifecycle events
# /api/v1/health                        GET     Health check
#
# Errors raised by the query service propagate to ErrorHandlingMiddleware,
# which maps them to status codes (see animebrowse/api/middleware.py).
# ---------------------------------------------------------------------------
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Header, Query, Request

from animebrowse import __version__
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
from animebrowse.context import BrowseContext
from animebrowse.models.anime import (
    AnimeDetailsResponse,
    AnimeSearchResponse,
    RecommendationsResponse,
)
from animebrowse.models.cache import CacheEntry, ListingEntry, ListingKind
from animebrowse.services.query_service import AnimeQueryService
from animebrowse.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_FAILURE_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def _get_context(request: Request) -> BrowseContext:
    """Retrieve the BrowseContext stored on app.state."""
    return request.app.state.context


ContextDep = Annotated[BrowseContext, Depends(_get_context)]


def _get_query_service(
    context: ContextDep,
    x_client_id: Annotated[str | None, Header()] = None,
) -> AnimeQueryService:
    """Resolve the caller's query service from the ``X-Client-Id`` header."""
    return context.query_service_for(x_client_id)


QueryServiceDep = Annotated[AnimeQueryService, Depends(_get_query_service)]


def _written_at(entry: CacheEntry) -> datetime:
    return datetime.fromtimestamp(entry.written_at / 1000, tz=timezone.utc)


def _detail_item(context: BrowseContext, entry: CacheEntry) -> DetailCacheItem:
    data = entry.data
    return DetailCacheItem(
        mal_id=data.get("mal_id"),
        title=data.get("title_english") or data.get("title") or "",
        provenance=entry.provenance,
        written_at=_written_at(entry),
        expired=context.details.entry_store.is_expired(entry),
    )


def _listing_item(context: BrowseContext, entry: ListingEntry) -> ListingCacheItem:
    results = entry.data.get("data")
    return ListingCacheItem(
        listing=entry.listing,
        query_key=entry.query_key,
        page=entry.page,
        result_count=len(results) if isinstance(results, list) else 0,
        provenance=entry.provenance,
        written_at=_written_at(entry),
        expired=context.listings.entry_store.is_expired(entry),
    )


# ---------------------------------------------------------------------------
# Catalog queries
# ---------------------------------------------------------------------------


@router.get(
    "/anime/search",
    response_model=AnimeSearchResponse,
    responses=_FAILURE_RESPONSES,
    summary="Search the catalog by title",
)
async def search_anime(
    service: QueryServiceDep,
    q: str = Query(default=""),
    page: int = Query(default=1),
) -> AnimeSearchResponse:
    """Search by title.  An empty or whitespace-only ``q`` is rejected with 400."""
    return await service.search(q, page)


@router.get(
    "/anime/top",
    response_model=AnimeSearchResponse,
    responses=_FAILURE_RESPONSES,
    summary="Top-ranked listing",
)
async def top_anime(
    service: QueryServiceDep,
    page: int = Query(default=1),
) -> AnimeSearchResponse:
    return await service.top_listing(page)


@router.get(
    "/anime/{anime_id}",
    response_model=AnimeDetailsResponse,
    responses=_FAILURE_RESPONSES,
    summary="Single title by catalog id",
)
async def anime_details(anime_id: int, service: QueryServiceDep) -> AnimeDetailsResponse:
    return await service.details(anime_id)


@router.get(
    "/anime/{anime_id}/recommendations",
    response_model=RecommendationsResponse,
    responses=_FAILURE_RESPONSES,
    summary="Recommendations for a title",
)
async def anime_recommendations(
    anime_id: int,
    service: QueryServiceDep,
) -> RecommendationsResponse:
    return await service.recommendations(anime_id)


# ---------------------------------------------------------------------------
# Cache management
# ---------------------------------------------------------------------------


@router.get(
    "/cache/stats",
    response_model=CacheStatsResponse,
    summary="Cache entry counts and approximate sizes",
)
async def cache_stats(context: ContextDep) -> CacheStatsResponse:
    stats = context.cache_manager.stats()
    return CacheStatsResponse(
        details=stats.details,
        listings=stats.listings,
        total_bytes=stats.total_bytes,
    )


@router.get(
    "/cache/details",
    response_model=list[DetailCacheItem],
    summary="List cached detail entries, newest first",
)
async def list_cached_details(context: ContextDep) -> list[DetailCacheItem]:
    return [_detail_item(context, e) for e in context.cache_manager.list_details()]


@router.get(
    "/cache/searches",
    response_model=list[ListingCacheItem],
    summary="List cached listing pages, newest first",
)
async def list_cached_searches(context: ContextDep) -> list[ListingCacheItem]:
    return [_listing_item(context, e) for e in context.cache_manager.list_searches()]


@router.delete(
    "/cache/details/{anime_id}",
    response_model=RemoveResponse,
    summary="Remove one cached detail entry",
)
async def remove_cached_detail(anime_id: int, context: ContextDep) -> RemoveResponse:
    return RemoveResponse(removed=context.cache_manager.remove_detail(anime_id))


@router.delete(
    "/cache/searches",
    response_model=RemoveResponse,
    summary="Remove one cached listing page",
)
async def remove_cached_search(
    context: ContextDep,
    query_key: str = Query(...),
    page: int = Query(default=1),
    listing: ListingKind = Query(default=ListingKind.SEARCH),
) -> RemoveResponse:
    return RemoveResponse(
        removed=context.cache_manager.remove_listing(query_key, page, listing)
    )


@router.delete(
    "/cache",
    status_code=204,
    summary="Clear both cache namespaces",
)
async def clear_cache(context: ContextDep) -> None:
    context.cache_manager.clear_all()


@router.post(
    "/cache/purge",
    response_model=PurgeResponse,
    summary="Remove expired entries from both namespaces",
)
async def purge_cache(context: ContextDep) -> PurgeResponse:
    return PurgeResponse(**context.cache_manager.purge_expired())


# ---------------------------------------------------------------------------
# Request lifecycle
# ---------------------------------------------------------------------------


@router.get(
    "/requests/events",
    response_model=LifecycleEventsResponse,
    summary="Recent request lifecycle events, oldest first",
)
async def request_events(
    context: ContextDep,
    limit: int = Query(default=50, ge=1, le=500),
    request_class: str | None = Query(default=None),
) -> LifecycleEventsResponse:
    events = context.tracker.recent_events(limit=limit, request_class=request_class)
    return LifecycleEventsResponse(events=[e.model_dump(mode="json") for e in events])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(context: ContextDep) -> HealthResponse:
    return HealthResponse(
        version=__version__,
        cache_store=context.store.get_provider_name(),
        pending_requests=context.pending_classes(),
    )
