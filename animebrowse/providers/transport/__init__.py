"""HTTP transports for the Jikan API."""

from animebrowse.providers.transport.httpx_transport import HttpxTransport

__all__ = ["HttpxTransport"]
