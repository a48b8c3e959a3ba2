"""Bounded in-memory TTL cache for proxied image bytes."""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

FULL_SIZE_KEY = "full"


@dataclass(frozen=True)
class CachedImage:
    content: bytes
    content_type: str
    stored_at: float


class ImageCache:
    """Cache keyed by ``(file id, requested size)``.

    Entries expire after ``ttl_seconds``. When the entry cap is exceeded,
    expired entries are pruned first, then the oldest ones.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        max_entries: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[tuple[str, str], CachedImage] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def key(file_id: str, size: int | None) -> tuple[str, str]:
        return file_id, str(size) if size else FULL_SIZE_KEY

    def _expired(self, entry: CachedImage, now: float) -> bool:
        return now - entry.stored_at >= self.ttl_seconds

    def get(self, file_id: str, size: int | None = None) -> CachedImage | None:
        key = self.key(file_id, size)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            del self._entries[key]
            return None
        return entry

    def set(
        self, file_id: str, size: int | None, content: bytes, content_type: str
    ) -> None:
        key = self.key(file_id, size)
        self._entries.pop(key, None)
        self._entries[key] = CachedImage(content, content_type, self._clock())
        if len(self._entries) > self.max_entries:
            self.prune()

    def prune(self) -> int:
        """Drop expired entries, then the oldest beyond the cap.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [k for k, v in self._entries.items() if self._expired(v, now)]
        for key in expired:
            del self._entries[key]
        removed = len(expired)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
            removed += 1
        return removed

    def clear(self) -> int:
        """Empty the cache. Returns the number of entries dropped."""
        count = len(self._entries)
        self._entries.clear()
        return count
