"""Unit tests for RequestCoordinator single-flight semantics and failure classification."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from animebrowse.interfaces.lifecycle_observer import ILifecycleObserver
from animebrowse.interfaces.transport import CancellationToken
from animebrowse.models.lifecycle import RequestClass, RequestFailed, RequestStarted, RequestSucceeded
from animebrowse.pipeline.lifecycle_tracker import LifecycleTracker
from animebrowse.pipeline.request_coordinator import (
    RequestCoordinator,
    classify_failure,
    summarize_result,
)
from animebrowse.utils.errors import (
    FailureKind,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    RequestCancelledError,
    ServerError,
    TransportAbortedError,
    TransportError,
    UnknownRequestError,
    UpstreamStatusError,
)
from tests.conftest import Gate


def _returning(value: Any):
    async def operation(token: CancellationToken) -> Any:
        return value

    return operation


def _raising(exc: Exception):
    async def operation(token: CancellationToken) -> Any:
        raise exc

    return operation


def _gated(gate: Gate, value: Any = None, tokens: list[CancellationToken] | None = None):
    async def operation(token: CancellationToken) -> Any:
        if tokens is not None:
            tokens.append(token)
        await gate.wait()
        return value

    return operation


# ======================================================================
# classify_failure / summarize_result
# ======================================================================


class TestClassifyFailure:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (UpstreamStatusError(429), RateLimitedError),
            (UpstreamStatusError(404), NotFoundError),
            (UpstreamStatusError(500), ServerError),
            (UpstreamStatusError(403), ServerError),
            (TransportError("connection refused"), NetworkError),
            (TransportAbortedError(), RequestCancelledError),
            (ValueError("bad json"), UnknownRequestError),
        ],
    )
    def test_maps_raw_errors(self, exc: Exception, expected: type) -> None:
        assert isinstance(classify_failure(exc, "jikan"), expected)

    def test_rate_limited_message(self) -> None:
        failure = classify_failure(UpstreamStatusError(429))
        assert failure.kind is FailureKind.RATE_LIMITED
        assert failure.message == "Rate limit exceeded. Please wait a moment and try again."

    def test_not_found_message(self) -> None:
        assert classify_failure(UpstreamStatusError(404)).message == "Anime not found."

    def test_server_error_keeps_status(self) -> None:
        failure = classify_failure(UpstreamStatusError(503))
        assert failure.status == 503

    def test_request_failure_passes_through(self) -> None:
        original = NotFoundError()
        assert classify_failure(original) is original

    def test_cancellation_flag(self) -> None:
        assert classify_failure(TransportAbortedError()).is_cancellation is True
        assert classify_failure(TransportError()).is_cancellation is False


class TestSummarizeResult:
    def test_list_payload(self) -> None:
        assert summarize_result({"data": [1, 2, 3]}) == "3 items"

    def test_single_payload(self) -> None:
        assert summarize_result({"data": {"mal_id": 1}}) == "1 item"

    def test_payload_without_data(self) -> None:
        assert summarize_result(42) == "int"


# ======================================================================
# Single-flight
# ======================================================================


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_success_returns_result_and_releases_slot(self) -> None:
        coordinator = RequestCoordinator()
        result = await coordinator.run(RequestClass.SEARCH, _returning({"data": []}))
        assert result == {"data": []}
        assert coordinator.is_pending(RequestClass.SEARCH) is False

    @pytest.mark.asyncio
    async def test_newer_call_supersedes_older(self) -> None:
        coordinator = RequestCoordinator()
        gate = Gate()
        tokens: list[CancellationToken] = []

        first = asyncio.create_task(
            coordinator.run(RequestClass.SEARCH, _gated(gate, "stale", tokens), key="a")
        )
        await gate.entered.wait()

        second = await coordinator.run(RequestClass.SEARCH, _returning("fresh"), key="b")
        assert second == "fresh"
        assert tokens[0].is_cancelled is True

        gate.release.set()
        with pytest.raises(RequestCancelledError):
            await first

    @pytest.mark.asyncio
    async def test_superseded_failure_reports_cancellation(self) -> None:
        coordinator = RequestCoordinator()
        gate = Gate()

        async def fails_late(token: CancellationToken) -> Any:
            await gate.wait()
            raise UpstreamStatusError(500)

        first = asyncio.create_task(coordinator.run(RequestClass.DETAILS, fails_late))
        await gate.entered.wait()
        await coordinator.run(RequestClass.DETAILS, _returning("ok"))
        gate.release.set()

        with pytest.raises(RequestCancelledError):
            await first

    @pytest.mark.asyncio
    async def test_superseded_call_does_not_release_newer_slot(self) -> None:
        coordinator = RequestCoordinator()
        old_gate, new_gate = Gate(), Gate()

        first = asyncio.create_task(coordinator.run(RequestClass.SEARCH, _gated(old_gate)))
        await old_gate.entered.wait()
        second = asyncio.create_task(coordinator.run(RequestClass.SEARCH, _gated(new_gate, "new")))
        await new_gate.entered.wait()
        newest_handle = coordinator.current_handle(RequestClass.SEARCH)

        old_gate.release.set()
        with pytest.raises(RequestCancelledError):
            await first
        assert coordinator.current_handle(RequestClass.SEARCH) == newest_handle

        new_gate.release.set()
        assert await second == "new"
        assert coordinator.is_pending(RequestClass.SEARCH) is False

    @pytest.mark.asyncio
    async def test_classes_are_independent(self) -> None:
        coordinator = RequestCoordinator()
        gate = Gate()

        search = asyncio.create_task(coordinator.run(RequestClass.SEARCH, _gated(gate, "search")))
        await gate.entered.wait()
        details = await coordinator.run(RequestClass.DETAILS, _returning("details"))

        assert details == "details"
        assert coordinator.is_pending(RequestClass.SEARCH) is True
        gate.release.set()
        assert await search == "search"

    @pytest.mark.asyncio
    async def test_handles_increase(self) -> None:
        tracker = LifecycleTracker()
        coordinator = RequestCoordinator(tracker)
        await coordinator.run(RequestClass.SEARCH, _returning(1))
        await coordinator.run(RequestClass.SEARCH, _returning(2))
        handles = [e.handle for e in tracker.recent_events() if isinstance(e, RequestStarted)]
        assert handles == sorted(handles)
        assert len(set(handles)) == 2


# ======================================================================
# Failures and cancellation
# ======================================================================


class TestFailures:
    @pytest.mark.asyncio
    async def test_raw_error_is_classified(self) -> None:
        coordinator = RequestCoordinator()
        with pytest.raises(RateLimitedError) as exc_info:
            await coordinator.run(RequestClass.SEARCH, _raising(UpstreamStatusError(429)))
        assert isinstance(exc_info.value.__cause__, UpstreamStatusError)
        assert coordinator.is_pending(RequestClass.SEARCH) is False

    @pytest.mark.asyncio
    async def test_failure_carries_provider_name(self) -> None:
        coordinator = RequestCoordinator(provider_name="jikan")
        with pytest.raises(NetworkError) as exc_info:
            await coordinator.run(RequestClass.TOP_LISTING, _raising(TransportError()))
        assert exc_info.value.provider_name == "jikan"

    @pytest.mark.asyncio
    async def test_explicit_cancel(self) -> None:
        coordinator = RequestCoordinator()
        gate = Gate()
        tokens: list[CancellationToken] = []

        task = asyncio.create_task(coordinator.run(RequestClass.SEARCH, _gated(gate, "x", tokens)))
        await gate.entered.wait()

        assert coordinator.cancel(RequestClass.SEARCH) == 1
        assert coordinator.is_pending(RequestClass.SEARCH) is False
        assert tokens[0].is_cancelled is True

        gate.release.set()
        with pytest.raises(RequestCancelledError):
            await task

    @pytest.mark.asyncio
    async def test_cancel_all(self) -> None:
        coordinator = RequestCoordinator()
        gates = [Gate(), Gate()]
        tasks = [
            asyncio.create_task(coordinator.run(RequestClass.SEARCH, _gated(gates[0]))),
            asyncio.create_task(coordinator.run(RequestClass.DETAILS, _gated(gates[1]))),
        ]
        for gate in gates:
            await gate.entered.wait()

        assert sorted(coordinator.pending_classes()) == ["details", "search"]
        assert coordinator.cancel() == 2
        assert coordinator.pending_classes() == []

        for gate in gates:
            gate.release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        assert all(isinstance(r, RequestCancelledError) for r in results)

    def test_cancel_idle_class_is_noop(self) -> None:
        assert RequestCoordinator().cancel(RequestClass.SEARCH) == 0

    @pytest.mark.asyncio
    async def test_task_cancellation_releases_slot(self) -> None:
        coordinator = RequestCoordinator()
        gate = Gate()
        task = asyncio.create_task(coordinator.run(RequestClass.SEARCH, _gated(gate)))
        await gate.entered.wait()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert coordinator.is_pending(RequestClass.SEARCH) is False


# ======================================================================
# Lifecycle events
# ======================================================================


class TestLifecycleEvents:
    @pytest.mark.asyncio
    async def test_success_emits_start_then_success(self) -> None:
        tracker = LifecycleTracker()
        coordinator = RequestCoordinator(tracker)
        await coordinator.run(RequestClass.SEARCH, _returning({"data": [1, 2]}), key="bebop:1")

        started, succeeded = tracker.recent_events()
        assert isinstance(started, RequestStarted)
        assert isinstance(succeeded, RequestSucceeded)
        assert started.request_class == "search"
        assert started.key == "bebop:1"
        assert succeeded.handle == started.handle
        assert succeeded.summary == "2 items"
        assert succeeded.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_failure_emits_kind(self) -> None:
        tracker = LifecycleTracker()
        coordinator = RequestCoordinator(tracker)
        with pytest.raises(NotFoundError):
            await coordinator.run(RequestClass.DETAILS, _raising(UpstreamStatusError(404)))

        failed = tracker.recent_events()[-1]
        assert isinstance(failed, RequestFailed)
        assert failed.kind is FailureKind.NOT_FOUND
        assert failed.message == "Anime not found."

    @pytest.mark.asyncio
    async def test_superseded_call_emits_cancelled_failure(self) -> None:
        tracker = LifecycleTracker()
        coordinator = RequestCoordinator(tracker)
        gate = Gate()

        first = asyncio.create_task(coordinator.run(RequestClass.SEARCH, _gated(gate, "old")))
        await gate.entered.wait()
        await coordinator.run(RequestClass.SEARCH, _returning("new"))
        gate.release.set()
        with pytest.raises(RequestCancelledError):
            await first

        last = tracker.recent_events()[-1]
        assert isinstance(last, RequestFailed)
        assert last.kind is FailureKind.CANCELLED

    @pytest.mark.asyncio
    async def test_observer_errors_are_isolated(self) -> None:
        observer = MagicMock(spec=ILifecycleObserver)
        observer.notify = AsyncMock(side_effect=RuntimeError("listener down"))
        coordinator = RequestCoordinator(observer)

        result = await coordinator.run(RequestClass.SEARCH, _returning("ok"))

        assert result == "ok"
        assert observer.notify.await_count == 2
