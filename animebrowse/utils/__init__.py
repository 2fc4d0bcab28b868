"""Utility modules for animeBrowse.

- **errors** -- Domain-specific exception hierarchy rooted at
  AnimeBrowseError, including the classified request-failure taxonomy
  raised by the request coordinator.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from animebrowse.utils.errors import (
    AnimeBrowseError,
    ConfigurationError,
    FailureKind,
    NetworkError,
    NotFoundError,
    QueryValidationError,
    RateLimitedError,
    RequestCancelledError,
    RequestFailure,
    ServerError,
    TransportAbortedError,
    TransportError,
    UnknownRequestError,
    UpstreamStatusError,
)

# -- Structured logging setup ----------------------------------------------
from animebrowse.utils.logging import configure_logging, get_logger

__all__ = [
    "AnimeBrowseError",
    "ConfigurationError",
    "FailureKind",
    "NetworkError",
    "NotFoundError",
    "QueryValidationError",
    "RateLimitedError",
    "RequestCancelledError",
    "RequestFailure",
    "ServerError",
    "TransportAbortedError",
    "TransportError",
    "UnknownRequestError",
    "UpstreamStatusError",
    "configure_logging",
    "get_logger",
]
