"""HTTP transport backed by ``httpx.AsyncClient``.

Implements ITransport for the Jikan REST API.  Each GET is raced against the
call's cancellation token: whichever finishes first wins, and a fired token
cancels the in-flight httpx request so the connection is returned to the
pool instead of draining a response nobody wants.

httpx failures that happen before a status is available (connect errors,
read timeouts, protocol errors) are re-raised as TransportError; the request
coordinator classifies them as network errors.
"""

from __future__ import annotations

import asyncio
import contextlib

import httpx
import structlog

from animebrowse.interfaces.transport import CancellationToken, ITransport, TransportResponse
from animebrowse.utils.errors import TransportAbortedError, TransportError
from animebrowse.utils.logging import get_logger

_USER_AGENT = "animeBrowse/0.1.0"
_DEFAULT_TIMEOUT = 15.0


class HttpxTransport(ITransport):
    """Cancellable GET transport.

    Parameters
    ----------
    http_client:
        Injected ``httpx.AsyncClient`` for testability and connection pooling.
        When omitted the transport creates and owns its own client.
    timeout:
        Client timeout in seconds, only used for an owned client.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json", "User-Agent": _USER_AGENT},
        )
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # -- ITransport implementation ---------------------------------------------

    async def get(self, url: str, token: CancellationToken) -> TransportResponse:
        """Fetch *url*, aborting as soon as *token* is cancelled."""
        if token.is_cancelled:
            raise TransportAbortedError(provider_name=self.get_provider_name())

        request_task = asyncio.ensure_future(
            self._http.get(url, headers={"Accept": "application/json"})
        )
        cancel_task = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait(
                {request_task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            cancel_task.cancel()
            if not request_task.done():
                request_task.cancel()

        if request_task not in done:
            with contextlib.suppress(asyncio.CancelledError, httpx.HTTPError):
                await request_task
            self._logger.debug("transport_aborted", url=url)
            raise TransportAbortedError(provider_name=self.get_provider_name())

        try:
            response = request_task.result()
        except httpx.TimeoutException as exc:
            self._logger.warning("transport_timeout", url=url, error=str(exc))
            raise TransportError(
                message=f"Timed out fetching {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            self._logger.warning("transport_error", url=url, error=str(exc))
            raise TransportError(
                message=f"Failed to fetch {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return TransportResponse(
            status=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )

    def get_provider_name(self) -> str:
        return "httpx"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
