# main.py

"""Entry point for the spot_deals refresh pipeline."""

import argparse
import asyncio
import logging
import sys

from spot_deals.config.logging_config import setup_logging
from spot_deals.config.settings import Settings

logger = logging.getLogger("spot_deals.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="spot_deals",
        description=(
            "Refresh the ranked EC2 spot deals dataset "
            f"(default output: {Settings.OUTPUT_PATH})."
        ),
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        dest="output_path",
        help="Alternate dataset path (default: docs/spot_data.json).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Fetch and merge but do not write; print the leaderboard.",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Print the leaderboard from the persisted dataset.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Run a connectivity health check on the upstream APIs.",
    )
    return parser


def _run_pipeline(args: argparse.Namespace) -> None:
    """Run one refresh and exit with its status."""
    from spot_deals.cli.runner import run_pipeline

    exit_code = asyncio.run(
        run_pipeline(
            output_path=args.output_path,
            dry_run=args.dry_run,
        )
    )
    sys.exit(exit_code)


def _run_show(args: argparse.Namespace) -> None:
    """Display the persisted leaderboard."""
    from spot_deals.cli.runner import show_leaderboard

    sys.exit(show_leaderboard(args.output_path))


def _run_health_check() -> None:
    """Run upstream connectivity health check."""
    from spot_deals.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def main() -> None:
    """Route to the refresh run (default), --show or --health."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging()
    logger.info("spot_deals starting, log file: %s", log_file)

    try:
        if args.health:
            _run_health_check()
        elif args.show:
            _run_show(args)
        else:
            _run_pipeline(args)
    finally:
        logger.info("spot_deals shutting down")


if __name__ == "__main__":
    main()
