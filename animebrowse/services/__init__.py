"""Application services consumed by the API, the CLI and any UI layer."""

from animebrowse.services.query_service import (
    DEFAULT_BASE_URL,
    DEFAULT_PAGE_SIZE,
    AnimeQueryService,
)

__all__ = ["DEFAULT_BASE_URL", "DEFAULT_PAGE_SIZE", "AnimeQueryService"]
