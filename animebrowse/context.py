"""Explicitly constructed wiring for one browsing session.

``BrowseContext`` holds every stateful collaborator (both cache namespaces,
the coordinator's per-class slots, the lifecycle tracker, the transport) so
nothing lives in module-level singletons.  Tests build isolated contexts
around an in-memory store and a fake transport; the API server and the CLI
build one from the merged configuration.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

from animebrowse.cache.entry_store import now_ms
from animebrowse.cache.manager import CacheManager
from animebrowse.cache.namespaces import (
    DETAILS_CAPACITY,
    DETAILS_STORAGE_KEY,
    LISTING_CAPACITY,
    LISTING_STORAGE_KEY,
    DetailNamespace,
    ListingNamespace,
)
from animebrowse.interfaces.kv_store import IKeyValueStore
from animebrowse.interfaces.transport import ITransport
from animebrowse.pipeline.lifecycle_tracker import LifecycleTracker
from animebrowse.pipeline.request_coordinator import RequestCoordinator
from animebrowse.providers.storage.memory_store import MemoryKeyValueStore
from animebrowse.providers.storage.sqlite_store import SQLiteKeyValueStore
from animebrowse.providers.transport.httpx_transport import HttpxTransport
from animebrowse.services.query_service import (
    DEFAULT_BASE_URL,
    DEFAULT_PAGE_SIZE,
    AnimeQueryService,
)
from animebrowse.utils.errors import ConfigurationError
from animebrowse.utils.logging import get_logger

_DEFAULT_TTL_SECONDS = 30 * 60
DEFAULT_MAX_CLIENTS = 256

_logger: structlog.BoundLogger = get_logger(__name__)


@dataclass
class BrowseContext:
    """Everything the presentation layer needs, built once and passed around.

    ``query_service`` owns a single flow of control (the CLI, one embedding
    application).  A server shared by many clients resolves a service per
    client with :meth:`query_service_for` so that only calls from the same
    client supersede each other.  All of them share the cache and transport.
    """

    store: IKeyValueStore
    transport: ITransport
    details: DetailNamespace
    listings: ListingNamespace
    tracker: LifecycleTracker
    coordinator: RequestCoordinator
    query_service: AnimeQueryService
    cache_manager: CacheManager
    max_clients: int = DEFAULT_MAX_CLIENTS
    _clients: OrderedDict[str, AnimeQueryService] = field(
        default_factory=OrderedDict, init=False, repr=False
    )

    def query_service_for(self, client_id: str | None) -> AnimeQueryService:
        """Return the query service whose single-flight slots belong to *client_id*.

        Calls without a client id get private slots and are never superseded.
        Past ``max_clients`` the least recently seen client is forgotten; its
        pending calls still run to completion.
        """
        if not client_id:
            return self.query_service.with_coordinator(RequestCoordinator(self.tracker))

        service = self._clients.get(client_id)
        if service is not None:
            self._clients.move_to_end(client_id)
            return service

        service = self.query_service.with_coordinator(RequestCoordinator(self.tracker))
        self._clients[client_id] = service
        while len(self._clients) > self.max_clients:
            forgotten, _ = self._clients.popitem(last=False)
            _logger.debug("client_slots_forgotten", client_id=forgotten)
        return service

    def pending_classes(self) -> list[str]:
        """Request classes with a call in flight on the shared or any client's slots."""
        pending = set(self.coordinator.pending_classes())
        for service in self._clients.values():
            pending.update(service.coordinator.pending_classes())
        return sorted(pending)

    async def aclose(self) -> None:
        """Cancel pending calls and release the transport's connections."""
        self.coordinator.cancel()
        for service in self._clients.values():
            service.cancel()
        self._clients.clear()
        await self.transport.aclose()


def build_store(cache_config: dict[str, Any]) -> IKeyValueStore:
    """Select the key-value medium named by ``cache.backend``."""
    backend = cache_config.get("backend", "memory")
    if backend == "memory":
        return MemoryKeyValueStore()
    if backend == "sqlite":
        store = SQLiteKeyValueStore(cache_config.get("db_path", "data/anime_cache.db"))
        store.initialize()
        return store
    raise ConfigurationError(f"Unknown cache backend: {backend!r}")


def build_context(
    config: dict[str, Any],
    *,
    store: IKeyValueStore | None = None,
    transport: ITransport | None = None,
    clock: Callable[[], int] = now_ms,
) -> BrowseContext:
    """Assemble a :class:`BrowseContext` from a merged configuration dict.

    ``store`` and ``transport`` override the configured adapters; ``clock``
    (epoch milliseconds) drives cache expiry.
    """
    cache_config = config.get("cache", {})
    jikan_config = config.get("jikan", {})
    lifecycle_config = config.get("lifecycle", {})
    api_config = config.get("api", {})

    store = store or build_store(cache_config)
    transport = transport or HttpxTransport(
        timeout=float(jikan_config.get("timeout_seconds", 15.0))
    )
    ttl_ms = int(cache_config.get("ttl_seconds", _DEFAULT_TTL_SECONDS)) * 1000

    details = DetailNamespace(
        store,
        capacity=int(cache_config.get("details_capacity", DETAILS_CAPACITY)),
        ttl_ms=ttl_ms,
        storage_key=cache_config.get("details_storage_key", DETAILS_STORAGE_KEY),
        clock=clock,
    )
    listings = ListingNamespace(
        store,
        capacity=int(cache_config.get("listing_capacity", LISTING_CAPACITY)),
        ttl_ms=ttl_ms,
        storage_key=cache_config.get("listing_storage_key", LISTING_STORAGE_KEY),
        clock=clock,
    )
    tracker = LifecycleTracker(history_size=int(lifecycle_config.get("history_size", 100)))
    coordinator = RequestCoordinator(tracker)
    query_service = AnimeQueryService(
        transport,
        coordinator,
        details,
        listings,
        base_url=jikan_config.get("base_url", DEFAULT_BASE_URL),
        page_size=int(jikan_config.get("page_size", DEFAULT_PAGE_SIZE)),
        search_order_by=jikan_config.get("search_order_by", "popularity"),
        search_sort=jikan_config.get("search_sort", "asc"),
    )

    _logger.info(
        "browse_context_built",
        store=store.get_provider_name(),
        transport=transport.get_provider_name(),
        ttl_ms=ttl_ms,
    )
    return BrowseContext(
        store=store,
        transport=transport,
        details=details,
        listings=listings,
        tracker=tracker,
        coordinator=coordinator,
        query_service=query_service,
        cache_manager=CacheManager(details, listings),
        max_clients=int(api_config.get("max_clients", DEFAULT_MAX_CLIENTS)),
    )
