"""
Beer Stream CLI.

Streams beers above an ABV threshold from the upstream catalogue and prints
them as JSON lines on stdout. Logs go to stderr.

Usage:
    python -m packages.beer_stream.cli --min-abv 15
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional, TextIO

from dotenv import load_dotenv

from core.config import get_settings
from core.logging import LogContext, cli_logger, configure_logging

from .errors import PipelineError
from .pipeline import BeerPipeline, abv_above
from .punk import PunkApiClient


def _positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1 (got {number})")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line flags; defaults come from settings."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Stream strong beers from a paginated catalogue")
    parser.add_argument(
        "--min-abv",
        type=float,
        default=settings.default_min_abv,
        help=f"Keep beers with ABV strictly above this value (default: {settings.default_min_abv})",
    )
    parser.add_argument("--base-url", default=settings.punk_api_url, help="Catalogue base URL")
    parser.add_argument("--per-page", type=_positive_int, default=settings.punk_per_page, help="Page size to request")
    parser.add_argument(
        "--max-pages",
        type=_positive_int,
        default=settings.max_pages,
        help="Fail if no empty page arrives within this many pages",
    )
    return parser.parse_args(argv)


async def stream_beers(args: argparse.Namespace, out: TextIO) -> int:
    """Run one pipeline and write each match to ``out``. Returns the match count."""
    async with PunkApiClient(base_url=args.base_url, per_page=args.per_page) as client:
        pipeline = BeerPipeline(client.fetch_page, abv_above(args.min_abv), max_pages=args.max_pages)
        async for beer in pipeline.stream():
            out.write(json.dumps(beer.to_dict()) + "\n")
            out.flush()
    return pipeline.matched_count


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    configure_logging(level=get_settings().log_level, stream=sys.stderr)

    with LogContext(source="cli", min_abv=args.min_abv):
        try:
            count = asyncio.run(stream_beers(args, sys.stdout))
        except PipelineError as e:
            cli_logger.error("stream_failed", error=str(e), error_type=type(e).__name__)
            return 1
        except KeyboardInterrupt:
            cli_logger.warning("stream_interrupted")
            return 130

        cli_logger.info("stream_finished", matched=count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
