"""Shared result type for sync runs."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class SyncResult:
    """Accumulated outcome of a sync run.

    Filled in place while the run progresses, so a run that aborts halfway
    still reports what it managed to do.
    """

    items_synced: int = 0
    errors: list[str] = field(default_factory=list)
    stale_removed: int = 0
    pages_processed: int = 0
    collections_synced: int = 0
