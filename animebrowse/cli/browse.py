# =============================================================================
# animebrowse/cli/browse.py — Browse the catalog from the command line
# =============================================================================
#
# One-shot commands over the same BrowseContext the API server uses, so the
# CLI reads and writes the same persisted cache (SQLite by default):
#
#   python -m animebrowse.cli search "cowboy bebop" --page 2
#   python -m animebrowse.cli top
#   python -m animebrowse.cli details 1 --recommendations
#   python -m animebrowse.cli cache stats | list | clear | purge
#
# Command output goes to stdout; log lines go to stderr.  --json prints the
# raw models and implies --quiet.
#
# Exit codes:
#   0  success (and superseded/cancelled requests, which are not errors)
#   1  request failure (rate limited, not found, server or network error)
#   2  invalid input (empty query, non-positive id or page)
# =============================================================================

"""Command-line front end for animeBrowse.

Usage::

    python -m animebrowse.cli search naruto
    python -m animebrowse.cli details 20 --json
    python -m animebrowse.cli cache stats
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any

from animebrowse.context import BrowseContext
from animebrowse.models.anime import (
    Anime,
    AnimeSearchResponse,
    RecommendationsResponse,
)
from animebrowse.models.cache import CacheStats, ListingKind
from animebrowse.utils.errors import QueryValidationError, RequestFailure
from animebrowse.utils.logging import log_context

_SYNOPSIS_WIDTH = 300


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_anime_line(anime: Anime) -> str:
    parts = [anime.type or "?"]
    if anime.episodes:
        parts.append(f"{anime.episodes} eps")
    if anime.year:
        parts.append(str(anime.year))
    score = f"{anime.score:.2f}" if anime.score is not None else "-"
    return f"[{anime.mal_id:>6}] {anime.display_title} ({', '.join(parts)})  score {score}"


def _format_listing(response: AnimeSearchResponse) -> str:
    if not response.data:
        return "No results."
    lines = [_format_anime_line(a) for a in response.data]
    pagination = response.pagination
    page = pagination.current_page or "?"
    more = "more available" if pagination.has_next_page else "last page"
    lines.append(f"-- page {page} of {pagination.last_visible_page} ({more})")
    return "\n".join(lines)


def _format_details(anime: Anime) -> str:
    lines = [
        anime.display_title,
        "=" * len(anime.display_title),
        f"ID:         {anime.mal_id}",
        f"Type:       {anime.type or '-'}",
        f"Episodes:   {anime.episodes or '-'}",
        f"Status:     {anime.status or '-'}",
        f"Score:      {anime.score if anime.score is not None else '-'}",
        f"Rank:       {anime.rank or '-'}",
    ]
    if anime.genres:
        lines.append(f"Genres:     {', '.join(g.name for g in anime.genres)}")
    if anime.synopsis:
        synopsis = anime.synopsis
        if len(synopsis) > _SYNOPSIS_WIDTH:
            synopsis = synopsis[:_SYNOPSIS_WIDTH].rstrip() + "..."
        lines.extend(["", synopsis])
    return "\n".join(lines)


def _format_recommendations(response: RecommendationsResponse) -> str:
    if not response.data:
        return "No recommendations."
    return "\n".join(
        f"[{r.entry.mal_id:>6}] {r.entry.title}  ({r.votes} votes)" for r in response.data
    )


def _format_stats(stats: CacheStats) -> str:
    rows = []
    for name, ns in (("details", stats.details), ("listings", stats.listings)):
        oldest = _format_timestamp(ns.oldest_written_at) if ns.oldest_written_at else "-"
        rows.append(f"{name:<10} {ns.count:>3} entries  {ns.approx_bytes:>9,} bytes  oldest {oldest}")
    rows.append(f"{'total':<10}               {stats.total_bytes:>9,} bytes")
    return "\n".join(rows)


def _format_timestamp(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _format_cache_entries(context: BrowseContext) -> str:
    lines = ["Details:"]
    for entry in context.cache_manager.list_details():
        mark = " (expired)" if context.details.entry_store.is_expired(entry) else ""
        title = entry.data.get("title_english") or entry.data.get("title") or ""
        lines.append(
            f"  {entry.data.get('mal_id')}  {title}  {_format_timestamp(entry.written_at)}{mark}"
        )
    lines.append("Listings:")
    for entry in context.cache_manager.list_searches():
        mark = " (expired)" if context.listings.entry_store.is_expired(entry) else ""
        label = "top listing" if entry.listing is ListingKind.TOP else repr(entry.query_key)
        lines.append(
            f"  {label} page {entry.page}  {_format_timestamp(entry.written_at)}{mark}"
        )
    return "\n".join(lines)


def _dump(payload: Any) -> str:
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(mode="json", by_alias=True)
    return json.dumps(payload, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Command runner
# ---------------------------------------------------------------------------


async def run_command(args: argparse.Namespace, context: BrowseContext) -> int:
    """Execute one parsed command against *context*.  Returns the exit code."""
    service = context.query_service
    try:
        if args.command == "search":
            result = await service.search(args.query, args.page)
            print(_dump(result) if args.json_output else _format_listing(result))
        elif args.command == "top":
            result = await service.top_listing(args.page)
            print(_dump(result) if args.json_output else _format_listing(result))
        elif args.command == "details":
            details = await service.details(args.anime_id)
            recommendations = None
            if args.recommendations:
                recommendations = await service.recommendations(args.anime_id)
            if args.json_output:
                payload: dict[str, Any] = {"details": details.model_dump(mode="json")}
                if recommendations is not None:
                    payload["recommendations"] = recommendations.model_dump(mode="json")
                print(_dump(payload))
            else:
                print(_format_details(details.data))
                if recommendations is not None:
                    print("\nRecommendations:")
                    print(_format_recommendations(recommendations))
        elif args.command == "cache":
            return _run_cache_action(args, context)
    except QueryValidationError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 2
    except RequestFailure as exc:
        if exc.is_cancellation:
            return 0
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    return 0


def _run_cache_action(args: argparse.Namespace, context: BrowseContext) -> int:
    manager = context.cache_manager
    if args.action == "stats":
        stats = manager.stats()
        if args.json_output:
            payload = stats.model_dump(mode="json")
            payload["total_bytes"] = stats.total_bytes
            print(_dump(payload))
        else:
            print(_format_stats(stats))
    elif args.action == "list":
        if args.json_output:
            print(_dump({
                "details": [e.model_dump(mode="json", by_alias=True) for e in manager.list_details()],
                "listings": [e.model_dump(mode="json", by_alias=True) for e in manager.list_searches()],
            }))
        else:
            print(_format_cache_entries(context))
    elif args.action == "clear":
        manager.clear_all()
        print("Cache cleared.")
    elif args.action == "purge":
        purged = manager.purge_expired()
        if args.json_output:
            print(_dump(purged))
        else:
            print(f"Purged {purged['details']} detail and {purged['listings']} listing entries.")
    return 0


async def _run(args: argparse.Namespace) -> int:
    """Build a context from configuration, run the command, release resources."""
    from animebrowse.config.loader import load_config
    from animebrowse.context import build_context

    context = build_context(load_config(args.config))
    try:
        with log_context(command=args.command, action=getattr(args, "action", None)):
            return await run_command(args, context)
    finally:
        await context.aclose()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog="python -m animebrowse.cli",
        description="Search and browse the anime catalog through the local cache.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output raw JSON instead of formatted text (implies --quiet).",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="Path to the YAML configuration file.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search the catalog by title.")
    search.add_argument("query", help="Title text to search for.")
    search.add_argument("--page", type=int, default=1, help="Result page (1-based).")

    top = sub.add_parser("top", help="Show the top-ranked listing.")
    top.add_argument("--page", type=int, default=1, help="Result page (1-based).")

    details = sub.add_parser("details", help="Show one title by catalog id.")
    details.add_argument("anime_id", type=int, help="MyAnimeList id.")
    details.add_argument(
        "--recommendations", "-r",
        action="store_true",
        help="Also fetch recommendations (never cached).",
    )

    cache = sub.add_parser("cache", help="Inspect or prune the local cache.")
    cache.add_argument("action", choices=["stats", "list", "clear", "purge"])

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, configure logging to stderr, and run the command."""
    from animebrowse.config.settings import Settings
    from animebrowse.utils.logging import configure_logging

    args = build_parser().parse_args(argv)
    quiet = args.quiet or args.json_output
    settings = Settings()
    configure_logging(
        log_level="WARNING" if quiet else settings.log_level,
        stream=sys.stderr,
    )
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
