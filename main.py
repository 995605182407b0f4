# main.py

"""Entry point for the pricewatch engine (daemon or one-shot commands)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("pricewatch.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pricewatch",
        description="Unattended price tracking for saved product pages.",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help=(
            "Minutes between checks "
            f"(default: {Settings.CHECK_INTERVAL_MINUTES})."
        ),
    )
    parser.add_argument(
        "--check-on-start",
        action="store_true",
        default=False,
        help="Run one check immediately when the daemon starts.",
    )
    commands = parser.add_mutually_exclusive_group()
    commands.add_argument(
        "--check-now",
        action="store_true",
        default=False,
        help="Run a single check cycle and exit.",
    )
    commands.add_argument(
        "--history",
        metavar="PRODUCT_ID",
        default=None,
        help="Show the price history of a product.",
    )
    commands.add_argument(
        "--drops",
        metavar="DAYS",
        type=int,
        nargs="?",
        const=Settings.DROPS_LOOKBACK_DAYS,
        default=None,
        help="List products whose price dropped in the last DAYS days.",
    )
    commands.add_argument(
        "--add",
        metavar="URL",
        default=None,
        help="Start tracking a product page.",
    )
    commands.add_argument(
        "--remove",
        metavar="PRODUCT_ID",
        default=None,
        help="Stop tracking a product.",
    )
    parser.add_argument("--title", default=None, help="Title for --add.")
    parser.add_argument(
        "--price", default=None, help="Current price text for --add.",
    )
    return parser


def main() -> None:
    """Route to the daemon (no command) or a one-shot command."""
    log_file = setup_logging()
    logger.info("pricewatch starting, log file: %s", log_file)

    args = _build_parser().parse_args()

    from src.cli import runner
    from src.services.engine import PriceTrackingEngine

    engine = PriceTrackingEngine()

    if args.check_now:
        exit_code = asyncio.run(runner.run_check_now(engine))
    elif args.history is not None:
        exit_code = runner.show_history(engine, args.history)
    elif args.drops is not None:
        exit_code = runner.show_drops(engine, args.drops)
    elif args.add is not None:
        exit_code = runner.add_product(engine, args.add, args.title, args.price)
    elif args.remove is not None:
        exit_code = runner.remove_product(engine, args.remove)
    else:
        try:
            exit_code = asyncio.run(
                runner.run_daemon(engine, args.interval, args.check_on_start)
            )
        except KeyboardInterrupt:
            logger.info("pricewatch interrupted, shutting down")
            exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
