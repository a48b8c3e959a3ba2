"""Bounded exponential backoff for Drive calls made by the reconciler."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sticker_drive.sync.errors import ConfigurationError
from sticker_drive.sync.logger import logger

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY = 1.0  # seconds


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    attempts: int = DEFAULT_ATTEMPTS,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    description: str = "",
) -> T:
    """Await ``fn()`` up to ``attempts`` times, doubling the delay each time.

    Transient and permanent errors are retried alike; the last error is
    re-raised once attempts are exhausted. ConfigurationError is raised
    immediately.

    Args:
        fn: Zero-argument coroutine factory
        attempts: Total number of attempts (>= 1)
        initial_delay: Delay before the second attempt, in seconds
        description: Short label for retry log lines

    Returns:
        Whatever ``fn()`` returns on the first success
    """
    delay = initial_delay
    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except ConfigurationError:
            raise
        except Exception as e:
            if attempt >= attempts:
                raise
            reason = f"{description}: {e}" if description else str(e)
            logger.retry(attempt, attempts - 1, delay, reason)
            await asyncio.sleep(delay)
            delay *= 2
    raise RuntimeError("retry_with_backoff called with attempts < 1")
