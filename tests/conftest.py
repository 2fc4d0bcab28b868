"""Shared pytest fixtures for the animeBrowse test suite."""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from animebrowse.cache.namespaces import DetailNamespace, ListingNamespace
from animebrowse.interfaces.transport import CancellationToken, ITransport, TransportResponse
from animebrowse.pipeline.lifecycle_tracker import LifecycleTracker
from animebrowse.pipeline.request_coordinator import RequestCoordinator
from animebrowse.providers.storage.memory_store import MemoryKeyValueStore
from animebrowse.services.query_service import AnimeQueryService
from animebrowse.utils.logging import configure_logging

BASE_URL = "https://api.jikan.test/v4"
START_MS = 1_700_000_000_000


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------


def make_anime(mal_id: int, title: str | None = None, **extra: Any) -> dict[str, Any]:
    """Return a Jikan-shaped anime payload."""
    payload: dict[str, Any] = {
        "mal_id": mal_id,
        "url": f"https://myanimelist.net/anime/{mal_id}",
        "title": title or f"Anime {mal_id}",
        "title_english": None,
        "type": "TV",
        "episodes": 12,
        "status": "Finished Airing",
        "score": 8.1,
        "rank": mal_id,
        "synopsis": "A story.",
        "year": 2001,
        "genres": [{"mal_id": 1, "type": "anime", "name": "Action", "url": ""}],
    }
    payload.update(extra)
    return payload


def make_listing(
    ids: list[int],
    page: int = 1,
    has_next_page: bool = False,
) -> dict[str, Any]:
    """Return a Jikan-shaped result page."""
    return {
        "data": [make_anime(i) for i in ids],
        "pagination": {
            "last_visible_page": page + (1 if has_next_page else 0),
            "has_next_page": has_next_page,
            "current_page": page,
            "items": {"count": len(ids), "total": len(ids), "per_page": 25},
        },
    }


def make_recommendations(ids: list[int]) -> dict[str, Any]:
    return {
        "data": [
            {
                "entry": {"mal_id": i, "url": "", "title": f"Anime {i}", "images": {}},
                "url": "",
                "votes": 10 * i,
            }
            for i in ids
        ]
    }


def json_response(payload: Any, status: int = 200) -> TransportResponse:
    return TransportResponse(status=status, body=json.dumps(payload).encode("utf-8"))


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


Handler = Callable[[str, CancellationToken], Awaitable[TransportResponse]]


class ScriptedTransport(ITransport):
    """Transport whose responses come from a per-test async handler.

    Every requested URL is recorded in :attr:`calls`.  The default handler
    answers 404 so an unexpected request shows up as a failure.
    """

    def __init__(self, handler: Handler | None = None) -> None:
        self.calls: list[str] = []
        self.handler: Handler = handler or self._not_found
        self.closed = False

    async def get(self, url: str, token: CancellationToken) -> TransportResponse:
        self.calls.append(url)
        return await self.handler(url, token)

    def get_provider_name(self) -> str:
        return "scripted"

    async def aclose(self) -> None:
        self.closed = True

    @staticmethod
    async def _not_found(url: str, token: CancellationToken) -> TransportResponse:
        return TransportResponse(status=404)


class Gate:
    """Lets a test hold a fake network call open until it decides to finish."""

    def __init__(self) -> None:
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def wait(self) -> None:
        self.entered.set()
        await self.release.wait()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True, scope="session")
def _test_logging() -> None:
    """Route log lines to the session stderr capture at WARNING and above."""
    configure_logging(log_level="WARNING", stream=sys.stderr)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def details_ns(memory_store: MemoryKeyValueStore, clock: FakeClock) -> DetailNamespace:
    return DetailNamespace(memory_store, clock=clock)


@pytest.fixture
def listings_ns(memory_store: MemoryKeyValueStore, clock: FakeClock) -> ListingNamespace:
    return ListingNamespace(memory_store, clock=clock)


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def tracker() -> LifecycleTracker:
    return LifecycleTracker()


@pytest.fixture
def coordinator(tracker: LifecycleTracker) -> RequestCoordinator:
    return RequestCoordinator(tracker)


@pytest.fixture
def service(
    transport: ScriptedTransport,
    coordinator: RequestCoordinator,
    details_ns: DetailNamespace,
    listings_ns: ListingNamespace,
) -> AnimeQueryService:
    return AnimeQueryService(
        transport,
        coordinator,
        details_ns,
        listings_ns,
        base_url=BASE_URL,
    )


@pytest.fixture
def test_config() -> dict[str, Any]:
    """Minimal merged configuration for building contexts in tests."""
    return {
        "app": {"name": "animeBrowse", "env": "test"},
        "jikan": {"base_url": BASE_URL, "page_size": 25, "timeout_seconds": 5.0},
        "cache": {
            "backend": "memory",
            "ttl_seconds": 1800,
            "details_capacity": 5,
            "listing_capacity": 10,
        },
        "lifecycle": {"history_size": 50},
        "api": {"cors_origins": ["*"]},
    }
