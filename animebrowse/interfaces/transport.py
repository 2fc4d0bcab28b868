"""Abstract base class for the HTTP transport collaborator.

A transport issues a GET, yields the status and body, and honours a
:class:`CancellationToken` on a best-effort basis.  The request coordinator
never relies on cancellation actually stopping network traffic; it only
uses the token to tell the transport that nobody is waiting any more.
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class CancellationToken:
    """One-shot cooperative cancellation flag.

    The coordinator creates one token per call and cancels it when the call
    is superseded.  Transports either poll :attr:`is_cancelled` or await
    :meth:`wait` alongside the network I/O.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Block until :meth:`cancel` is called."""
        await self._event.wait()


@dataclass(frozen=True)
class TransportResponse:
    """Status code and raw body of a completed HTTP exchange."""

    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Decode the body as JSON.  Raises ``ValueError`` on bad payloads."""
        return json.loads(self.body)


class ITransport(ABC):
    """Contract for issuing cancellable HTTP GET requests."""

    @abstractmethod
    async def get(self, url: str, token: CancellationToken) -> TransportResponse:
        """Fetch *url* and return its status and body.

        Raises
        ------
        TransportAbortedError
            When *token* is cancelled before the response arrives.
        TransportError
            When no status could be obtained (connection refused, DNS,
            client timeout).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this transport."""

    async def aclose(self) -> None:
        """Release pooled connections.  Default is a no-op."""
        return None
