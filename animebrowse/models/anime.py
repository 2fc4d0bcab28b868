"""Catalog models for Jikan API payloads.

Defines Pydantic v2 models for anime items, result pages and
recommendations.  The upstream schema is large and evolves independently,
so every model uses ``extra="allow"``: fields declared here are the ones the
application reads, everything else survives a round trip through the cache
untouched.

Key relationships:
    - AnimeSearchResponse holds a page of Anime plus Pagination metadata
    - AnimeDetailsResponse wraps a single Anime (the ``/anime/{id}`` shape)
    - Recommendation points at another Anime via a lightweight ``entry``
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Supporting models
# ---------------------------------------------------------------------------

class Genre(BaseModel):
    """A genre, theme, studio or producer reference (Jikan "MalUrl")."""

    model_config = ConfigDict(extra="allow")

    mal_id: int
    type: str = ""
    name: str = ""
    url: str = ""


class PaginationItems(BaseModel):
    model_config = ConfigDict(extra="allow")

    count: int = 0
    total: int = 0
    per_page: int = 0


class Pagination(BaseModel):
    """Pagination metadata returned with every listing page."""

    model_config = ConfigDict(extra="allow")

    last_visible_page: int = 1
    has_next_page: bool = False
    current_page: int | None = None
    items: PaginationItems = Field(default_factory=PaginationItems)


# ---------------------------------------------------------------------------
# Anime
# ---------------------------------------------------------------------------

class Anime(BaseModel):
    """A single catalog item.

    ``mal_id`` is the unique identifier; the detail cache reads its lookup
    key from this field rather than storing a separate index.
    """

    model_config = ConfigDict(extra="allow")

    mal_id: int
    url: str = ""
    title: str = ""
    title_english: str | None = None
    title_japanese: str | None = None
    type: str | None = None
    episodes: int | None = None
    status: str | None = None
    score: float | None = None
    rank: int | None = None
    popularity: int | None = None
    synopsis: str | None = None
    year: int | None = None
    images: dict[str, Any] = Field(default_factory=dict)
    genres: list[Genre] = Field(default_factory=list)

    @property
    def display_title(self) -> str:
        """English title when available, otherwise the default title."""
        return self.title_english or self.title


class AnimeSearchResponse(BaseModel):
    """One page of search or top-listing results."""

    model_config = ConfigDict(extra="allow")

    data: list[Anime] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class AnimeDetailsResponse(BaseModel):
    """Response shape of ``GET /anime/{id}``."""

    model_config = ConfigDict(extra="allow")

    data: Anime


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

class RecommendationEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    mal_id: int
    url: str = ""
    title: str = ""
    images: dict[str, Any] = Field(default_factory=dict)


class Recommendation(BaseModel):
    """A related anime suggested by MyAnimeList users."""

    model_config = ConfigDict(extra="allow")

    entry: RecommendationEntry
    url: str = ""
    votes: int = 0


class RecommendationsResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: list[Recommendation] = Field(default_factory=list)
