# main.py

"""Entry point for the listing_watch poller."""

import argparse
import logging
import sys

from listing_watch.config.logging_config import setup_logging
from listing_watch.config.settings import AVAILABLE_TARGETS, Settings

logger = logging.getLogger("listing_watch.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(t["id"] for t in AVAILABLE_TARGETS)

    parser = argparse.ArgumentParser(
        prog="listing_watch",
        description="Poll job board listings and notify on new entries.",
        epilog=f"Available targets: {valid_ids}",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        default=False,
        help="Run a single polling cycle and exit.",
    )
    parser.add_argument(
        "-t",
        "--targets",
        default=None,
        help="Comma-separated target IDs (default: all).",
    )
    parser.add_argument(
        "--ping",
        action="store_true",
        default=False,
        help="Send a ready message through the notifier and exit.",
    )
    parser.add_argument(
        "--preview",
        default=None,
        metavar="TARGET",
        help="Fetch and print one target's listings without saving.",
    )
    return parser


def run(argv: list[str] | None = None) -> int:
    """Parse *argv*, dispatch, and return the process exit code."""
    args = _build_parser().parse_args(argv)
    settings = Settings.from_env()
    log_file = setup_logging(settings.LOGS_DIR, settings.LOG_LEVEL)
    logger.info("listing_watch starting, log file: %s", log_file)

    from listing_watch.cli.runner import run_ping, run_poller, run_preview

    try:
        if args.ping:
            return run_ping(settings)
        if args.preview is not None:
            return run_preview(settings, args.preview)
        return run_poller(settings, args.targets, once=args.once)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 0
    except Exception as exc:
        logger.critical("Poller error: %s", exc, exc_info=True)
        return 2
    finally:
        logger.info("listing_watch shutting down")


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
