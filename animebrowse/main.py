"""animeBrowse FastAPI application entry point.

Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, builds a :class:`~animebrowse.context.BrowseContext` and
mounts the API router.  Run with::

    python -m animebrowse.main
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from animebrowse import __version__
from animebrowse.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from animebrowse.api.routes import router as api_router
from animebrowse.config.loader import load_config
from animebrowse.config.settings import Settings
from animebrowse.context import BrowseContext, build_context
from animebrowse.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    context: BrowseContext | None = None,
    config: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    context:
        Pre-built context.  Tests pass one wired to an in-memory store and a
        mock transport; when omitted it is built from *config*.
    config:
        Merged configuration.  Loaded via :func:`load_config` when omitted.
    """
    config = config if config is not None else load_config()
    context = context or build_context(config)

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        _logger.info(
            "app_startup",
            version=__version__,
            environment=config.get("app", {}).get("env", "development"),
            cache_store=context.store.get_provider_name(),
        )
        yield
        await context.aclose()
        _logger.info("app_shutdown", message="Transport closed")

    application = FastAPI(
        title="animeBrowse API",
        version=__version__,
        description=(
            "Search and browse the Jikan anime catalog through a bounded, "
            "time-limited cache with single-flight request coordination."
        ),
        lifespan=_lifespan,
    )
    application.state.context = context

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=config.get("api", {}).get("cors_origins"))

    application.include_router(api_router)
    return application


def main() -> None:
    """Configure logging and serve the app with uvicorn."""
    settings = Settings()
    configure_logging(
        log_level=settings.log_level,
        json_output=(settings.app_env == "production"),
    )
    config = load_config(settings=settings)
    uvicorn.run(
        create_app(config=config),
        host=settings.app_host,
        port=settings.app_port,
    )


if __name__ == "__main__":
    main()
