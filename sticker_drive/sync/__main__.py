"""CLI entry point for sticker_drive.sync.

Usage:
    python -m sticker_drive.sync                    # Full folder scan
    python -m sticker_drive.sync --incremental      # Replay the change feed
    python -m sticker_drive.sync --setup-webhook    # Also register a push channel
    python -m sticker_drive.sync --verbose          # Show more details
    python -m sticker_drive.sync --debug            # Show debug info
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from sticker_drive.sync.logger import logger
from sticker_drive.sync.run import STATUS_SYNCED, run_sync
from sticker_drive.utils.logging import setup_logging


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Sticker Drive Sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m sticker_drive.sync
      Mirror every collection folder under the configured root

  python -m sticker_drive.sync --incremental
      Apply changes since the stored change-feed cursor

  python -m sticker_drive.sync --full --setup-webhook
      Full scan, then register a Drive push-notification channel

  python -m sticker_drive.sync --config /path/to/config.json
      Use a custom config file
        """,
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--full",
        dest="full",
        action="store_true",
        default=True,
        help="Full folder scan (default)",
    )
    mode.add_argument(
        "--incremental",
        dest="full",
        action="store_false",
        help="Replay the change feed from the stored cursor",
    )
    parser.add_argument(
        "--setup-webhook",
        action="store_true",
        help="Register a push-notification channel after syncing",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config.json",
        help="Path to config.json (default: config.json)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (DEBUG level)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with third-party library logs",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Optional file to write logs to",
    )

    args = parser.parse_args()

    if args.debug:
        log_level = logging.DEBUG
        debug_third_party = True
    elif args.verbose:
        log_level = logging.DEBUG
        debug_third_party = False
    else:
        log_level = logging.INFO
        debug_third_party = False

    setup_logging(
        level=log_level,
        log_file=args.log_file,
        debug_third_party=debug_third_party,
    )

    logger.info("Starting Sticker Drive sync")

    try:
        report = asyncio.run(
            run_sync(
                config_path=args.config,
                full=args.full,
                setup_webhook=args.setup_webhook,
            )
        )
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        raise

    if report.status != STATUS_SYNCED:
        detail = f": {report.error}" if report.error else ""
        logger.error(f"Sync {report.status}{detail}")
        sys.exit(1)
    logger.success("Sync complete!")


if __name__ == "__main__":
    main()
