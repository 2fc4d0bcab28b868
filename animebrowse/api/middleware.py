"""API middleware -- CORS, request logging, and error handling.

Starlette middleware is a stack (last added, first executed).  ``main.py``
adds ErrorHandlingMiddleware first and RequestLoggingMiddleware second, so:

    Client -> RequestLogging -> ErrorHandling -> route handler

RequestLoggingMiddleware therefore sees the final status code even when
ErrorHandlingMiddleware replaced an exception with a JSON error body.
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from animebrowse.api.schemas import ErrorResponse
from animebrowse.utils.errors import (
    AnimeBrowseError,
    FailureKind,
    QueryValidationError,
    RequestFailure,
)
from animebrowse.utils.logging import get_logger, log_context

_logger: structlog.BoundLogger = get_logger(__name__)

_STATUS_BY_KIND: dict[FailureKind, int] = {
    FailureKind.RATE_LIMITED: 429,
    FailureKind.NOT_FOUND: 404,
    FailureKind.CANCELLED: 409,
    FailureKind.SERVER_ERROR: 502,
    FailureKind.NETWORK_ERROR: 502,
    FailureKind.UNKNOWN_ERROR: 500,
}


def status_for_error(exc: AnimeBrowseError) -> int:
    """HTTP status code for an application error."""
    if isinstance(exc, QueryValidationError):
        return 400
    if isinstance(exc, RequestFailure):
        return _STATUS_BY_KIND.get(exc.kind, 500)
    return 500


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]``.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration.

    Every event logged while the request is handled, coordinator and cache
    events included, carries ``request_id`` and the caller's ``client_id``.
    The request id is echoed in the ``X-Request-Id`` response header.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        start = time.perf_counter()
        response: Response | None = None

        with log_context(request_id=request_id, client_id=request.headers.get("x-client-id")):
            try:
                response = await call_next(request)
                response.headers["X-Request-Id"] = request_id
                return response
            finally:
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                status_code = response.status_code if response else 500
                _logger.info(
                    "http_request",
                    method=request.method,
                    path=str(request.url.path),
                    status=status_code,
                    duration_ms=duration_ms,
                )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``AnimeBrowseError`` subclasses and return structured JSON errors.

    The client sees the error class, its user-presentable message and, for
    request failures, the failure kind.  Cancellations are logged at info
    level only; they mean a newer request superseded this one.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except AnimeBrowseError as exc:
            status_code = status_for_error(exc)
            kind = exc.kind.value if isinstance(exc, RequestFailure) else None
            log = _logger.info if status_code < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                kind=kind,
                path=str(request.url.path),
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message,
                kind=kind,
            )
            return JSONResponse(
                status_code=status_code,
                content=body.model_dump(),
            )
