"""Application entrypoint (command line)."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Sequence

from .controllers.http_errors import to_error_response
from .domain.errors import EnhancerDomainError
from .lifespan import AppServices, lifespan_manager


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"not JSON serializable: {type(value).__name__}")


def _dump(value: Any) -> str:
    if is_dataclass(value) and not isinstance(value, type):
        value = asdict(value)
    elif isinstance(value, list):
        value = [asdict(v) if is_dataclass(v) and not isinstance(v, type) else v for v in value]
    return json.dumps(value, default=_json_default, ensure_ascii=False, indent=2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="article-enhancer", description="Scrape and enhance web articles.")
    sub = parser.add_subparsers(dest="command", required=True)

    scrape = sub.add_parser("scrape", help="Scrape one or more URLs (listing pages are expanded) and store them")
    scrape.add_argument("urls", nargs="+")
    scrape.add_argument("--no-save", action="store_true", help="Print scraped articles without storing them")

    enhance = sub.add_parser("enhance", help="Enhance a stored article")
    enhance.add_argument("article_id")
    enhance.add_argument("--force", action="store_true", help="Restart an article stuck in processing")

    discover = sub.add_parser("discover", help="List article links found on a listing page")
    discover.add_argument("listing_url")
    return parser


async def _run(args: argparse.Namespace, services: AppServices) -> Any:
    if args.command == "scrape":
        if args.no_save:
            results = await services.scraper.scrape_many(args.urls)
            return results[0] if len(results) == 1 else results
        if len(args.urls) == 1:
            return await services.ingestion.ingest(args.urls[0])
        return await services.ingestion.ingest_batch(args.urls)

    if args.command == "enhance":
        if services.enhancement is None:
            raise SystemExit("Enhancement requires LLM_API_KEY (or GROQ_API_KEY / OPENAI_API_KEY)")
        return await services.enhancement.enhance(args.article_id, force=args.force)

    return await services.scraper.discover_articles(args.listing_url)


async def main(argv: Sequence[str] | None = None) -> int:
    """Main application entrypoint."""
    args = build_parser().parse_args(argv)
    async with lifespan_manager() as services:
        try:
            result = await _run(args, services)
        except EnhancerDomainError as e:
            status, payload = to_error_response(e, expose_details=not services.settings.is_production)
            print(_dump({"status": status, **payload}), file=sys.stderr)
            return 1
    print(_dump(result))
    return 0


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nShutting down...")
        sys.exit(0)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
