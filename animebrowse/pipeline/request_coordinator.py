"""Single-flight request coordination per request class.

Each request class (``search``, ``top-listing``, ``details``,
``recommendations``) owns at most one pending slot.  Starting a call claims
the slot with a fresh generation handle and cancels the previous holder's
token.  When a call settles, its handle is compared with the slot:

    handle still current  -> slot released, outcome propagated
    handle superseded     -> outcome discarded, caller gets
                             RequestCancelledError, slot left to its new owner

Correctness rests on the handle comparison alone.  The token is only a hint
to the transport; a transport that ignores it still cannot leak a stale
result, because the stale call resolves into ``RequestCancelledError``
before the query service ever sees it.

Raw failures raised by operations are classified into the
:class:`~animebrowse.utils.errors.RequestFailure` taxonomy here.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from animebrowse.interfaces.lifecycle_observer import ILifecycleObserver
from animebrowse.interfaces.transport import CancellationToken
from animebrowse.models.lifecycle import (
    LifecycleEvent,
    RequestFailed,
    RequestStarted,
    RequestSucceeded,
)
from animebrowse.utils.errors import (
    NetworkError,
    NotFoundError,
    RateLimitedError,
    RequestCancelledError,
    RequestFailure,
    ServerError,
    TransportAbortedError,
    TransportError,
    UnknownRequestError,
    UpstreamStatusError,
)
from animebrowse.utils.logging import get_logger

_T = TypeVar("_T")


@dataclass
class _PendingSlot:
    handle: int
    token: CancellationToken


def _class_name(request_class: str) -> str:
    # RequestClass members are str subclasses; normalize to the plain value.
    return getattr(request_class, "value", request_class)


def summarize_result(result: Any) -> str:
    """Short description of a successful payload for lifecycle events."""
    data = result.get("data") if isinstance(result, dict) else getattr(result, "data", None)
    if isinstance(data, list):
        return f"{len(data)} items"
    if data is not None:
        return "1 item"
    return type(result).__name__


def classify_failure(exc: BaseException, provider_name: str | None = None) -> RequestFailure:
    """Map a raw exception onto exactly one failure kind."""
    if isinstance(exc, RequestFailure):
        return exc
    if isinstance(exc, TransportAbortedError):
        return RequestCancelledError(provider_name=provider_name)
    if isinstance(exc, TransportError):
        return NetworkError(provider_name=provider_name)
    if isinstance(exc, UpstreamStatusError):
        if exc.status == 429:
            return RateLimitedError(provider_name=provider_name)
        if exc.status == 404:
            return NotFoundError(provider_name=provider_name)
        return ServerError(provider_name=provider_name, status=exc.status)
    return UnknownRequestError(provider_name=provider_name)


class RequestCoordinator:
    """Tracks one pending call per request class and supersedes older ones.

    Parameters
    ----------
    observer:
        Receives start/success/failure events.  Optional.
    provider_name:
        Tagged onto classified failures, e.g. ``"jikan"``.
    clock:
        Monotonic clock in seconds used for call durations.
    """

    def __init__(
        self,
        observer: ILifecycleObserver | None = None,
        *,
        provider_name: str = "jikan",
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._observer = observer
        self._provider_name = provider_name
        self._clock = clock
        self._slots: dict[str, _PendingSlot] = {}
        self._handles = itertools.count(1)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(
        self,
        request_class: str,
        operation: Callable[[CancellationToken], Awaitable[_T]],
        *,
        key: str = "",
    ) -> _T:
        """Run *operation* as the sole pending call of *request_class*.

        Raises
        ------
        RequestCancelledError
            If a newer call of the same class started (or :meth:`cancel` was
            called) before this one settled.
        RequestFailure
            The classified failure of the operation otherwise.
        """
        name = _class_name(request_class)
        handle = next(self._handles)

        previous = self._slots.get(name)
        if previous is not None:
            previous.token.cancel()
            self._logger.debug(
                "request_superseded",
                request_class=name,
                superseded_handle=previous.handle,
                handle=handle,
            )

        token = CancellationToken()
        self._slots[name] = _PendingSlot(handle=handle, token=token)
        await self._emit(RequestStarted(request_class=name, handle=handle, key=key))

        started = self._clock()
        try:
            result = await operation(token)
        except asyncio.CancelledError:
            self._release(name, handle)
            raise
        except Exception as exc:
            failure = classify_failure(exc, self._provider_name)
            if not self._release(name, handle):
                failure = RequestCancelledError(provider_name=self._provider_name)
            await self._emit(
                RequestFailed(
                    request_class=name,
                    handle=handle,
                    key=key,
                    duration_ms=self._elapsed_ms(started),
                    kind=failure.kind,
                    message=failure.message,
                )
            )
            if failure is exc:
                raise
            raise failure from exc

        if not self._release(name, handle):
            cancelled = RequestCancelledError(provider_name=self._provider_name)
            await self._emit(
                RequestFailed(
                    request_class=name,
                    handle=handle,
                    key=key,
                    duration_ms=self._elapsed_ms(started),
                    kind=cancelled.kind,
                    message=cancelled.message,
                )
            )
            raise cancelled

        await self._emit(
            RequestSucceeded(
                request_class=name,
                handle=handle,
                key=key,
                duration_ms=self._elapsed_ms(started),
                summary=summarize_result(result),
            )
        )
        return result

    def cancel(self, request_class: str | None = None) -> int:
        """Cancel the pending call of one class, or of every class.

        Cancelled callers receive ``RequestCancelledError`` when their
        operation settles.  Returns the number of calls cancelled.
        """
        names = list(self._slots) if request_class is None else [_class_name(request_class)]
        cancelled = 0
        for name in names:
            slot = self._slots.pop(name, None)
            if slot is not None:
                slot.token.cancel()
                cancelled += 1
        if cancelled:
            self._logger.info("requests_cancelled", request_class=request_class, count=cancelled)
        return cancelled

    def is_pending(self, request_class: str) -> bool:
        return _class_name(request_class) in self._slots

    def pending_classes(self) -> list[str]:
        return list(self._slots)

    def current_handle(self, request_class: str) -> int | None:
        slot = self._slots.get(_class_name(request_class))
        return slot.handle if slot else None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _release(self, name: str, handle: int) -> bool:
        """Return the class to idle if *handle* still owns it."""
        slot = self._slots.get(name)
        if slot is None or slot.handle != handle:
            return False
        del self._slots[name]
        return True

    def _elapsed_ms(self, started: float) -> float:
        return (self._clock() - started) * 1000.0

    async def _emit(self, event: LifecycleEvent) -> None:
        if self._observer is None:
            return
        try:
            await self._observer.notify(event)
        except Exception as exc:
            self._logger.warning(
                "lifecycle_observer_error",
                lifecycle_event=event.event,
                error=str(exc),
            )
