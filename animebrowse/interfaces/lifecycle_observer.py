"""Abstract base class for request lifecycle observers.

The request coordinator reports every call's start, success and failure to
an observer.  Observers feed logging, telemetry or diagnostics views; the
cache logic never depends on them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from animebrowse.models.lifecycle import LifecycleEvent


class ILifecycleObserver(ABC):
    """Contract for consumers of coordinator lifecycle events."""

    @abstractmethod
    async def notify(self, event: LifecycleEvent) -> None:
        """Receive one lifecycle event.

        Implementations should not raise; the coordinator logs and discards
        observer exceptions so a faulty observer cannot fail a request.
        """
