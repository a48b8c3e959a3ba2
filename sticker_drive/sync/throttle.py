"""In-process sync throttle.

Guards against overlapping runs and, for opportunistic triggers, against
syncing more often than a minimum interval. State lives in this process
only; one instance per application.
"""

from __future__ import annotations

import math
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sticker_drive.utils.time import isoformat_or_none, utcnow

ALREADY_SYNCING = "already_syncing"
THROTTLED = "throttled"


@dataclass(frozen=True)
class ThrottleDecision:
    """Whether a sync may start now, and if not, why."""

    allowed: bool
    reason: str | None = None
    retry_after: float | None = None  # seconds, when throttled


class SyncThrottle:
    """Single-flight guard plus minimum-interval throttle.

    ``try_begin`` checks and claims the in-flight flag without awaiting,
    so two triggers on the same event loop can never both get through.
    """

    def __init__(
        self,
        min_interval_seconds: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_interval_seconds = min_interval_seconds
        self._clock = clock
        self.is_syncing = False
        self.last_sync_at: datetime | None = None
        self._last_sync_tick: float | None = None

    def check(self, enforce_interval: bool = True) -> ThrottleDecision:
        """Decide whether a sync may start, without claiming anything."""
        if self.is_syncing:
            return ThrottleDecision(False, ALREADY_SYNCING)
        if enforce_interval and self._last_sync_tick is not None:
            since = self._clock() - self._last_sync_tick
            if since < self.min_interval_seconds:
                return ThrottleDecision(
                    False, THROTTLED, retry_after=self.min_interval_seconds - since
                )
        return ThrottleDecision(True)

    def try_begin(self, enforce_interval: bool = True) -> ThrottleDecision:
        """Claim the in-flight flag if ``check`` allows it."""
        decision = self.check(enforce_interval)
        if decision.allowed:
            self.is_syncing = True
        return decision

    def release(self) -> None:
        self.is_syncing = False

    def mark_synced(self) -> None:
        """Start a new interval; only runs that finished call this."""
        self._last_sync_tick = self._clock()
        self.last_sync_at = utcnow()

    @asynccontextmanager
    async def acquire(
        self, enforce_interval: bool = True
    ) -> AsyncIterator[ThrottleDecision]:
        """Claim the flag for the body of the block, releasing it on exit.

        Yields the decision; the body must check ``decision.allowed``.
        """
        decision = self.try_begin(enforce_interval)
        if not decision.allowed:
            yield decision
            return
        try:
            yield decision
        finally:
            self.release()

    def status(self) -> dict[str, Any]:
        return {
            "lastSync": isoformat_or_none(self.last_sync_at),
            "isSyncing": self.is_syncing,
            "throttleSeconds": self.min_interval_seconds,
        }

    def next_sync_in(self) -> int:
        """Whole seconds until the interval allows another sync."""
        decision = self.check()
        return math.ceil(decision.retry_after) if decision.retry_after else 0
