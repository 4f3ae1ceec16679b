"""Command line entry point for the expiry sweeper.

Usage:
    shortlink-sweep --root path/to/checkout
    shortlink-sweep --location js/rules_direct.js:RULES_DIRECT --exit-code
"""

import argparse
import sys
from pathlib import Path

from shortlink.app.core.config import settings
from shortlink.app.core.logging import get_logger, setup_logging
from shortlink.app.services.sweeper import SweepLocation, sweep, sweep_locations_from_settings

logger = get_logger("shortlink.cli")


def parse_location(value: str) -> SweepLocation:
    path, sep, binding = value.rpartition(":")
    if not sep or not path or not binding:
        raise argparse.ArgumentTypeError(f"expected PATH:BINDING, got {value!r}")
    return SweepLocation(Path(path), binding)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shortlink-sweep",
        description="Remove expired short links from local rule documents",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Checkout root the configured rule paths are relative to (default: .)",
    )
    parser.add_argument(
        "--location",
        action="append",
        type=parse_location,
        default=[],
        metavar="PATH:BINDING",
        help="Rule document to sweep; repeatable, replaces the configured pair list",
    )
    parser.add_argument(
        "--exit-code",
        action="store_true",
        help="Exit with status 1 when no document changed",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    locations = args.location or sweep_locations_from_settings(settings, args.root)

    logger.info("Starting cleanup check...")
    results = sweep(locations)

    if any(results.values()):
        logger.info("Cleanup completed with changes.")
        return 0

    logger.info("Cleanup completed, no changes.")
    return 1 if args.exit_code else 0


if __name__ == "__main__":
    sys.exit(main())
