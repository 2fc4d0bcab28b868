"""Query facade over the response cache and the request coordinator.

This is the only component the presentation layer talks to.  Every
operation follows the same three steps, in this order:

    1. validate input          -> QueryValidationError, no I/O at all
    2. check the namespace     -> hit: return cached data, coordinator untouched
    3. coordinate the fetch    -> success: write through, then return

The cache check always precedes any network call.  A detail hit
short-circuits exactly like a listing hit; callers that want fresh data
remove the entry through the cache manager first.

Request classes map onto Jikan endpoints as follows:

    Operation          Class             Endpoint                         Cached in
    ----------------   ---------------   ------------------------------   ---------
    search()           search            /anime?q=...                     listings
    top_listing()      top-listing       /top/anime                       listings
    details()          details           /anime/{id}                      details
    recommendations()  recommendations   /anime/{id}/recommendations      (never)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from urllib.parse import urlencode

import structlog
from pydantic import BaseModel

from animebrowse.cache.namespaces import TOP_LISTING_QUERY_KEY, DetailNamespace, ListingNamespace
from animebrowse.interfaces.transport import CancellationToken, ITransport
from animebrowse.models.anime import (
    AnimeDetailsResponse,
    AnimeSearchResponse,
    RecommendationsResponse,
)
from animebrowse.models.cache import ListingKind
from animebrowse.models.lifecycle import RequestClass
from animebrowse.pipeline.request_coordinator import RequestCoordinator
from animebrowse.utils.errors import QueryValidationError, UpstreamStatusError
from animebrowse.utils.logging import get_logger

DEFAULT_BASE_URL = "https://api.jikan.moe/v4"
DEFAULT_PAGE_SIZE = 25

_PROVIDER_NAME = "jikan"

_M = TypeVar("_M", bound=BaseModel)


class AnimeQueryService:
    """Cached, single-flight access to the Jikan catalog.

    Parameters
    ----------
    transport:
        Issues the HTTP GETs.
    coordinator:
        Owns the per-class single-flight slots.
    details, listings:
        The two cache namespaces.
    base_url:
        Jikan API root, without trailing slash.
    page_size:
        ``limit`` sent with listing requests.
    search_order_by, search_sort:
        Ordering applied to free-text searches.
    """

    def __init__(
        self,
        transport: ITransport,
        coordinator: RequestCoordinator,
        details: DetailNamespace,
        listings: ListingNamespace,
        *,
        base_url: str = DEFAULT_BASE_URL,
        page_size: int = DEFAULT_PAGE_SIZE,
        search_order_by: str = "popularity",
        search_sort: str = "asc",
    ) -> None:
        self._transport = transport
        self._coordinator = coordinator
        self._details = details
        self._listings = listings
        self._base_url = base_url.rstrip("/")
        self._page_size = page_size
        self._search_order_by = search_order_by
        self._search_sort = search_sort
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def search(self, query: str, page: int = 1) -> AnimeSearchResponse:
        """Search the catalog by free text."""
        trimmed = (query or "").strip()
        if not trimmed:
            raise QueryValidationError("Search query cannot be empty")
        _validate_page(page)

        cached = self._listings.get(trimmed, page)
        if cached is not None:
            self._logger.debug("search_cache_hit", query=trimmed, page=page)
            return cached

        url = self._url(
            "/anime",
            {
                "q": trimmed,
                "page": page,
                "limit": self._page_size,
                "order_by": self._search_order_by,
                "sort": self._search_sort,
            },
        )
        response = await self._coordinator.run(
            RequestClass.SEARCH,
            self._fetch(url, AnimeSearchResponse),
            key=f"{trimmed}:{page}",
        )
        self._listings.set(trimmed, page, response, url)
        return response

    async def top_listing(self, page: int = 1) -> AnimeSearchResponse:
        """Fetch a page of the default (top-ranked) listing."""
        _validate_page(page)

        cached = self._listings.get(TOP_LISTING_QUERY_KEY, page, ListingKind.TOP)
        if cached is not None:
            self._logger.debug("top_listing_cache_hit", page=page)
            return cached

        url = self._url("/top/anime", {"page": page, "limit": self._page_size})
        response = await self._coordinator.run(
            RequestClass.TOP_LISTING,
            self._fetch(url, AnimeSearchResponse),
            key=f"{TOP_LISTING_QUERY_KEY}:{page}",
        )
        self._listings.set(TOP_LISTING_QUERY_KEY, page, response, url, ListingKind.TOP)
        return response

    # ------------------------------------------------------------------
    # Single items
    # ------------------------------------------------------------------

    async def details(self, anime_id: int) -> AnimeDetailsResponse:
        """Fetch one anime by ``mal_id``."""
        _validate_anime_id(anime_id)

        cached = self._details.get(anime_id)
        if cached is not None:
            self._logger.debug("details_cache_hit", anime_id=anime_id)
            return AnimeDetailsResponse(data=cached)

        url = f"{self._base_url}/anime/{anime_id}"
        response = await self._coordinator.run(
            RequestClass.DETAILS,
            self._fetch(url, AnimeDetailsResponse),
            key=str(anime_id),
        )
        self._details.set(response.data, url)
        return response

    async def recommendations(self, anime_id: int) -> RecommendationsResponse:
        """Fetch user recommendations related to one anime.  Not cached."""
        _validate_anime_id(anime_id)
        url = f"{self._base_url}/anime/{anime_id}/recommendations"
        return await self._coordinator.run(
            RequestClass.RECOMMENDATIONS,
            self._fetch(url, RecommendationsResponse),
            key=str(anime_id),
        )

    def cancel(self, request_class: str | None = None) -> int:
        """Cancel the pending call of one request class, or all of them."""
        return self._coordinator.cancel(request_class)

    @property
    def coordinator(self) -> RequestCoordinator:
        return self._coordinator

    def with_coordinator(self, coordinator: RequestCoordinator) -> AnimeQueryService:
        """Return a service sharing this one's cache and transport but not its slots."""
        return AnimeQueryService(
            self._transport,
            coordinator,
            self._details,
            self._listings,
            base_url=self._base_url,
            page_size=self._page_size,
            search_order_by=self._search_order_by,
            search_sort=self._search_sort,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _url(self, path: str, params: dict[str, Any]) -> str:
        return f"{self._base_url}{path}?{urlencode(params)}"

    def _fetch(
        self, url: str, model: type[_M]
    ) -> Callable[[CancellationToken], Awaitable[_M]]:
        """Build the coordinator operation: GET, check status, parse body."""

        async def operation(token: CancellationToken) -> _M:
            response = await self._transport.get(url, token)
            if not response.ok:
                self._logger.error(
                    "upstream_status_error",
                    url=url,
                    status=response.status,
                )
                raise UpstreamStatusError(response.status, url, provider_name=_PROVIDER_NAME)
            return model.model_validate_json(response.body)

        return operation


def _validate_page(page: int) -> None:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise QueryValidationError(f"Invalid page number: {page!r}")


def _validate_anime_id(anime_id: int) -> None:
    if isinstance(anime_id, bool) or not isinstance(anime_id, int) or anime_id <= 0:
        raise QueryValidationError("Invalid anime ID")
