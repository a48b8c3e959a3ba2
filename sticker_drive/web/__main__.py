"""Run the web service with uvicorn.

Usage:
    python -m sticker_drive.web
    python -m sticker_drive.web --host 0.0.0.0 --port 8080 --config config.json
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from sticker_drive.config.settings import load_config
from sticker_drive.utils.logging import setup_logging
from sticker_drive.web.app import create_app


def main() -> None:
    parser = argparse.ArgumentParser(description="Sticker Drive web service")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument(
        "--config",
        type=str,
        default="config.json",
        help="Path to config.json (default: config.json)",
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

    setup_logging(
        level=logging.DEBUG if args.debug else logging.INFO,
        log_file=args.log_file,
        debug_third_party=args.debug,
    )

    uvicorn.run(
        create_app(load_config(args.config)),
        host=args.host,
        port=args.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
