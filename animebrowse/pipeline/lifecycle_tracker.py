"""Request lifecycle tracking with callback-based listener notification.

Receives the coordinator's start/success/failure events, logs them, keeps a
bounded history for diagnostics, and broadcasts each event to registered
listener callbacks.

# --- HOW LIFECYCLE TRACKING WORKS -----------------------------------------
#
#   RequestCoordinator --notify()--> LifecycleTracker --callback()--> telemetry
#                                                      --callback()--> UI hooks
#
#   - Listener errors are caught and logged; one broken listener cannot fail
#     a request or starve the other listeners.
#   - Both sync and async callbacks are supported.
#   - History is a fixed-size deque; the oldest events fall off first.
# ---------------------------------------------------------------------------
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable

import structlog

from animebrowse.interfaces.lifecycle_observer import ILifecycleObserver
from animebrowse.models.lifecycle import (
    LifecycleEvent,
    RequestFailed,
    RequestStarted,
    RequestSucceeded,
)
from animebrowse.utils.errors import FailureKind
from animebrowse.utils.logging import get_logger

_DEFAULT_HISTORY_SIZE = 100


class LifecycleTracker(ILifecycleObserver):
    """Logs, records and fans out coordinator lifecycle events.

    Parameters
    ----------
    history_size:
        Number of most recent events retained for :meth:`recent_events`.
    """

    def __init__(self, history_size: int = _DEFAULT_HISTORY_SIZE) -> None:
        self._history: deque[LifecycleEvent] = deque(maxlen=history_size)
        self._listeners: list[Callable] = []
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # ILifecycleObserver implementation
    # ------------------------------------------------------------------

    async def notify(self, event: LifecycleEvent) -> None:
        """Record *event* and notify all registered listeners."""
        self._history.append(event)
        self._log_event(event)
        await self._notify_listeners(event)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def register_listener(self, callback: Callable) -> None:
        """Register an async or sync callable accepting ``(event)``."""
        if callback not in self._listeners:
            self._listeners.append(callback)
            self._logger.debug("listener_registered", total_listeners=len(self._listeners))

    def unregister_listener(self, callback: Callable) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)
            self._logger.debug(
                "listener_unregistered", remaining_listeners=len(self._listeners)
            )

    def recent_events(
        self,
        limit: int | None = None,
        request_class: str | None = None,
    ) -> list[LifecycleEvent]:
        """Return recorded events, oldest first, optionally filtered by class."""
        events = [
            e for e in self._history
            if request_class is None or e.request_class == request_class
        ]
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _log_event(self, event: LifecycleEvent) -> None:
        if isinstance(event, RequestStarted):
            self._logger.debug(
                "request_start",
                request_class=event.request_class,
                handle=event.handle,
                key=event.key,
            )
        elif isinstance(event, RequestSucceeded):
            self._logger.info(
                "request_success",
                request_class=event.request_class,
                handle=event.handle,
                key=event.key,
                duration_ms=round(event.duration_ms, 1),
                summary=event.summary,
            )
        elif isinstance(event, RequestFailed):
            # Cancellations are routine when users type quickly.
            log = self._logger.info if event.kind is FailureKind.CANCELLED else self._logger.warning
            log(
                "request_failure",
                request_class=event.request_class,
                handle=event.handle,
                key=event.key,
                duration_ms=round(event.duration_ms, 1),
                kind=event.kind.value,
            )

    async def _notify_listeners(self, event: LifecycleEvent) -> None:
        """Invoke all listeners, logging and skipping any that raise."""
        for callback in list(self._listeners):
            try:
                result = callback(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
