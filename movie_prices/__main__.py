"""Command line entry point.

Usage:
    python -m movie_prices serve [--host HOST] [--port PORT] [--reload]
    python -m movie_prices movies [--search TEXT] [--json]
    python -m movie_prices providers [--health]
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from pathlib import Path

import httpx
import uvicorn

from movie_prices.api.main import build_aggregator
from movie_prices.api.schemas import MovieComparison
from movie_prices.settings import get_masked_settings, settings
from movie_prices.utils import setup_logger

logger = setup_logger(
    "movie_prices",
    level=settings.logging.level,
    log_dir=Path(settings.logging.log_dir),
    to_file=settings.logging.to_file,
)


# =============================================================================
# COMMANDS
# =============================================================================


def run_server(args: argparse.Namespace) -> int:
    """Start the REST API with uvicorn."""
    logger.debug("Configuration: %s", get_masked_settings())
    uvicorn.run(
        "movie_prices.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.logging.level.lower(),
    )
    return 0


async def show_movies(args: argparse.Namespace) -> int:
    """Aggregate once and print the merged movies."""
    async with httpx.AsyncClient(follow_redirects=True) as http_client:
        aggregator = build_aggregator(http_client)
        if args.search:
            movies = await aggregator.search_movies(args.search)
        else:
            movies = await aggregator.get_all_movies()

    rows = [MovieComparison.from_summary(m) for m in movies]
    if args.json:
        print(json.dumps([r.model_dump(mode="json") for r in rows], indent=2))
        return 0

    for row in rows:
        cheapest = row.cheapest_price
        best = f"{cheapest.price:.2f} ({cheapest.provider})" if cheapest else "no price"
        print(f"{row.title} [{row.year or '?'}] - {best}")
    print(f"\nTotal: {len(rows)} movies")
    return 0


async def show_providers(args: argparse.Namespace) -> int:
    """Print the configured providers, optionally probing them."""
    async with httpx.AsyncClient(follow_redirects=True) as http_client:
        aggregator = build_aggregator(http_client)
        if args.health:
            for health in await aggregator.get_provider_health():
                state = "healthy" if health.is_healthy else f"unhealthy: {health.error_message}"
                print(f"{health.provider_id:<15} {state}")
            return 0

        providers = await aggregator.list_providers()

    for provider in providers:
        enabled = "enabled" if provider.is_enabled else "disabled"
        print(f"{provider.id:<15} {provider.label:<20} {enabled:<9} {provider.base_url}")
    return 0


# =============================================================================
# CLI
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="movie_prices",
        description="Movie price comparison across providers",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the REST API")
    serve.add_argument("--host", default=settings.api.host, help="Bind address")
    serve.add_argument("--port", type=int, default=settings.api.port, help="Bind port")
    serve.add_argument("--reload", action="store_true", default=settings.api.reload)

    movies = commands.add_parser("movies", help="Aggregate and print movies")
    movies.add_argument("--search", default="", help="Filter by title, genre, director or actors")
    movies.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    providers = commands.add_parser("providers", help="List configured providers")
    providers.add_argument("--health", action="store_true", help="Probe each provider")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        return run_server(args)
    if args.command == "movies":
        return asyncio.run(show_movies(args))
    return asyncio.run(show_providers(args))


if __name__ == "__main__":
    sys.exit(main())
