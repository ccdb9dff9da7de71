# main.py

"""Entry point for the dealscan price checker CLI."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("dealscan.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    provider_ids = ", ".join(
        p["id"] for p in Settings.AVAILABLE_PROVIDERS
    )

    parser = argparse.ArgumentParser(
        prog="dealscan",
        description=(
            "Resolve a scanned product code to nearby competing "
            "offers and rate the scanned price."
        ),
        epilog=f"Providers (in precedence order): {provider_ids}",
    )
    parser.add_argument(
        "identifier",
        nargs="?",
        default=None,
        help="Product identifier (UPC) to resolve.",
    )
    parser.add_argument(
        "--search",
        default=None,
        metavar="TERM",
        help="Free-text catalog search instead of a scan.",
    )
    parser.add_argument(
        "--lat",
        type=float,
        default=None,
        help="Latitude of the shopper.",
    )
    parser.add_argument(
        "--lon",
        type=float,
        default=None,
        help="Longitude of the shopper.",
    )
    parser.add_argument(
        "-r",
        "--radius",
        type=float,
        default=Settings.DEFAULT_RADIUS_MILES,
        help=(
            "Store search radius in miles "
            f"(default: {Settings.DEFAULT_RADIUS_MILES:g})."
        ),
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Check configuration and authentication of every provider.",
    )
    return parser


def _require_location(
    parser: argparse.ArgumentParser, args: argparse.Namespace,
) -> None:
    if args.lat is None or args.lon is None:
        parser.error("--lat and --lon are required")
    if args.radius <= 0:
        parser.error("--radius must be a positive number of miles")


def _run_health_check() -> None:
    """Run provider health check."""
    from src.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def _run_search(args: argparse.Namespace) -> None:
    """Run a headless catalog search and exit."""
    from src.cli.runner import cli_search

    exit_code = asyncio.run(
        cli_search(
            term=args.search,
            latitude=args.lat,
            longitude=args.lon,
            radius_miles=args.radius,
            output_format=args.output_format,
        )
    )
    sys.exit(exit_code)


def _run_scan(args: argparse.Namespace) -> None:
    """Resolve a scanned identifier and exit."""
    from src.cli.runner import cli_scan

    exit_code = asyncio.run(
        cli_scan(
            identifier=args.identifier,
            latitude=args.lat,
            longitude=args.lon,
            radius_miles=args.radius,
            output_format=args.output_format,
        )
    )
    sys.exit(exit_code)


def main() -> None:
    """Route to health check, search or scan."""
    log_file = setup_logging()
    logger.info("dealscan starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.health:
        _run_health_check()
    elif args.search is not None:
        _require_location(parser, args)
        _run_search(args)
    elif args.identifier is not None:
        _require_location(parser, args)
        _run_scan(args)
    else:
        parser.print_help()
        sys.exit(2)


if __name__ == "__main__":
    main()
