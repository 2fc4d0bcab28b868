"""Custom exception hierarchy for animeBrowse.

All application exceptions inherit from :class:`AnimeBrowseError`, which
carries an optional ``provider_name`` so error handlers can identify which
external collaborator (e.g. "jikan", "httpx", "sqlite") caused the failure.

The hierarchy is organized by layer:

    AnimeBrowseError  (base -- catch-all for any animeBrowse error)
    +-- QueryValidationError     (bad input, rejected before any I/O)
    +-- ConfigurationError       (startup / missing config)
    +-- TransportError           (transport adapter: no status obtained)
    |   +-- TransportAbortedError    (cancellation token fired mid-flight)
    +-- UpstreamStatusError      (transport adapter: non-success status)
    +-- RequestFailure           (classified outcome of a coordinated call)
        +-- RateLimitedError         (HTTP 429)
        +-- NotFoundError            (HTTP 404)
        +-- RequestCancelledError    (superseded or aborted)
        +-- ServerError              (any other non-success status)
        +-- NetworkError             (connectivity failure)
        +-- UnknownRequestError      (anything uncategorized)

``TransportError`` and ``UpstreamStatusError`` are raw signals raised by the
transport layer.  The request coordinator turns every raw signal into exactly
one ``RequestFailure`` subclass; those are what callers of the query service
see.  Each ``RequestFailure`` has a stable, user-presentable default message.
"""

from __future__ import annotations

from enum import Enum


class AnimeBrowseError(Exception):
    """Base exception for all animeBrowse errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[jikan] Anime not found.``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input / configuration errors
# ---------------------------------------------------------------------------

class QueryValidationError(AnimeBrowseError):
    """Raised when a query is rejected before any cache or network activity
    (empty search text, non-positive anime id, page below 1)."""

    def __init__(
        self,
        message: str = "Invalid query",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(AnimeBrowseError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Raw transport signals
# ---------------------------------------------------------------------------

class TransportError(AnimeBrowseError):
    """Raised by a transport adapter when no HTTP status could be obtained
    (DNS failure, connection reset, client-side timeout)."""

    def __init__(
        self,
        message: str = "Transport failure",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class TransportAbortedError(TransportError):
    """Raised by a transport adapter when its cancellation token fired."""

    def __init__(
        self,
        message: str = "Request was aborted",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UpstreamStatusError(AnimeBrowseError):
    """Raised when the upstream API answered with a non-success status."""

    def __init__(
        self,
        status: int,
        url: str = "",
        provider_name: str | None = None,
    ) -> None:
        self._status = status
        self._url = url
        super().__init__(
            message=f"API Error: {status}",
            provider_name=provider_name,
        )

    @property
    def status(self) -> int:
        return self._status

    @property
    def url(self) -> str:
        return self._url


# ---------------------------------------------------------------------------
# Classified request failures
# ---------------------------------------------------------------------------

class FailureKind(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """Taxonomy of coordinated request failures."""

    RATE_LIMITED = "RATE_LIMITED"
    NOT_FOUND = "NOT_FOUND"
    CANCELLED = "CANCELLED"
    SERVER_ERROR = "SERVER_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class RequestFailure(AnimeBrowseError):
    """Base class for the classified outcome of a failed coordinated call.

    Subclasses pin ``kind`` and a default message.  Callers branch on
    :attr:`is_cancellation` to silently drop superseded requests instead of
    surfacing an error banner.
    """

    kind: FailureKind = FailureKind.UNKNOWN_ERROR

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
        status: int | None = None,
    ) -> None:
        self._status = status
        super().__init__(message=message, provider_name=provider_name)

    @property
    def status(self) -> int | None:
        return self._status

    @property
    def is_cancellation(self) -> bool:
        return self.kind is FailureKind.CANCELLED


class RateLimitedError(RequestFailure):
    """The upstream API rejected the call with HTTP 429."""

    kind = FailureKind.RATE_LIMITED

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please wait a moment and try again.",
        provider_name: str | None = None,
        status: int | None = 429,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status=status)


class NotFoundError(RequestFailure):
    """The upstream API answered HTTP 404."""

    kind = FailureKind.NOT_FOUND

    def __init__(
        self,
        message: str = "Anime not found.",
        provider_name: str | None = None,
        status: int | None = 404,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status=status)


class RequestCancelledError(RequestFailure):
    """A newer call of the same class superseded this one, or it was aborted."""

    kind = FailureKind.CANCELLED

    def __init__(
        self,
        message: str = "Request was cancelled",
        provider_name: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status=status)


class ServerError(RequestFailure):
    """Any other non-success status from the upstream API."""

    kind = FailureKind.SERVER_ERROR

    def __init__(
        self,
        message: str = "The catalog service returned an error. Please try again later.",
        provider_name: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status=status)


class NetworkError(RequestFailure):
    """The transport failed before any status was received."""

    kind = FailureKind.NETWORK_ERROR

    def __init__(
        self,
        message: str = "Network error. Please check your connection and try again.",
        provider_name: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, status=status)


class UnknownRequestError(RequestFailure):
    """Catch-all for failures that fit no other kind."""

    kind = FailureKind.UNKNOWN_ERROR
