"""
CLI management commands for the BrezelScraper backend.

Usage:
    python -m brezel.cli.commands version
    python -m brezel.cli.commands healthcheck --url http://localhost:8080/health
"""
from __future__ import annotations

import argparse
import logging
import sys
import traceback
from typing import List, Optional

from brezel.api.services.version_service import encode_version_info, get_version_info
from brezel.utils.health import wait_for_http

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_HEALTH_URL = "http://localhost:8080/health"


def cmd_version() -> int:
    """Print build metadata as JSON."""
    try:
        body = encode_version_info(get_version_info())
    except Exception as e:
        logger.error(f"Failed to encode version info: {e}")
        logger.error(traceback.format_exc())
        return 1
    print(body)
    return 0


def cmd_healthcheck(url: str, attempts: int, interval: float) -> int:
    """Poll a health endpoint; exit 0 when healthy."""
    def report(attempt: int, total: int) -> None:
        logger.info(f"Health attempt {attempt}/{total} failed, retrying...")

    if wait_for_http(url, max_attempts=attempts, interval=interval, on_attempt=report):
        logger.info(f"{url} is healthy")
        return 0

    logger.error(f"{url} failed to become healthy after {attempts} attempts")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="BrezelScraper management commands",
        prog="python -m brezel.cli.commands"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Print build metadata as JSON"
    )

    health_parser = subparsers.add_parser(
        "healthcheck",
        help="Poll a health endpoint until it responds"
    )
    health_parser.add_argument("--url", default=DEFAULT_HEALTH_URL)
    health_parser.add_argument("--attempts", type=int, default=1)
    health_parser.add_argument("--interval", type=float, default=2.0)

    args = parser.parse_args(argv)

    if args.command == "version":
        return cmd_version()
    if args.command == "healthcheck":
        return cmd_healthcheck(args.url, args.attempts, args.interval)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
