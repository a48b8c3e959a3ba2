"""Logging setup shared by the sync CLI and the web service.

All rich output (log records, sync summaries, collection blocks) goes
through the single ``console`` defined here. Modules log through
``logging.getLogger(__name__)``; ``setup_logging`` is called once by each
entry point, never at import time.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

console = Console()

FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Library loggers that are noisy at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "uvicorn.access")


def setup_logging(
    level: int = logging.INFO,
    log_file: str | Path | None = None,
    debug_third_party: bool = False,
) -> None:
    """Route the root logger through RichHandler, plus an optional file.

    Args:
        level: Root logger level
        log_file: Also append plain-text records to this file
        debug_third_party: Leave httpx, sqlalchemy and uvicorn at their own levels
    """
    handlers: list[logging.Handler] = [
        RichHandler(console=console, show_path=False, rich_tracebacks=True)
    ]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(FILE_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, format="%(message)s", force=True)

    quiet_level = logging.DEBUG if debug_third_party else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
