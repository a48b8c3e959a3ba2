"""Rich-based logging utilities for the Drive sync pipeline.

Provides console output for collection progress, renames and pruning,
plus a summary panel at the end of each run.
"""

from __future__ import annotations

from typing import Any

from sticker_drive.utils.pipeline_logger import BasePipelineLogger


class SyncLogger(BasePipelineLogger):
    """Logger for Drive reconciliation with rich output.

    Extends BasePipelineLogger with sync-specific methods.
    """

    def __init__(self) -> None:
        super().__init__(__name__)

    # -------------------------------------------------------------------------
    # Rate Limiting & Retries
    # -------------------------------------------------------------------------

    def rate_limit(self, retry_after: float) -> None:
        """Log a rate limit warning with retry time."""
        self._logger.warning(f"Rate limited. Waiting {retry_after:.1f}s...")

    def retry(
        self, attempt: int, max_attempts: int, wait_time: float, reason: str = ""
    ) -> None:
        """Log a retry attempt with optional reason."""
        msg = f"Retry {attempt}/{max_attempts} in {wait_time:.1f}s"
        if reason:
            msg += f" ({reason})"
        self._logger.warning(msg)

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    def collection_synced(self, name: str, created: bool) -> None:
        verb = "Created" if created else "Synced"
        self._logger.info(f"{verb} collection: {name}")

    def collection_renamed(self, old_name: str, new_name: str) -> None:
        self._logger.info(f'Renamed collection: "{old_name}" → "{new_name}"')

    def collection_removed(self, name: str, sticker_count: int) -> None:
        self._logger.info(
            f"Removed collection: {name} ({sticker_count} stickers cascaded)"
        )

    # -------------------------------------------------------------------------
    # Stickers
    # -------------------------------------------------------------------------

    def sticker_synced(self, title: str) -> None:
        self._logger.debug(f"Synced sticker: {title}")

    def sticker_renamed(self, old_filename: str, new_filename: str) -> None:
        self._logger.info(f'Renamed sticker: "{old_filename}" → "{new_filename}"')

    def sticker_removed(self, title: str) -> None:
        self._logger.info(f"Removed sticker: {title}")

    def stale_pruned(self, collection_name: str, count: int) -> None:
        self._logger.info(f"Removed {count} stale stickers from {collection_name}")

    # -------------------------------------------------------------------------
    # Change Feed
    # -------------------------------------------------------------------------

    def page_processed(self, page: int, changes: int, errors: int) -> None:
        msg = f"Change page {page}: {changes} changes"
        if errors:
            msg += f", {errors} errors"
        self._logger.info(msg)

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def summary(
        self,
        sync_type: str = "full",
        items: int = 0,
        errors: int = 0,
        elapsed: float = 0.0,
        **kwargs: Any,
    ) -> None:
        """Print final sync summary."""
        stats: dict[str, int | str] = {
            "Mode": sync_type,
            "Items synced": items,
            "Errors": errors,
        }
        if "stale_removed" in kwargs:
            stats["Stale removed"] = kwargs["stale_removed"]
        if "pages" in kwargs:
            stats["Change pages"] = kwargs["pages"]
        self.print_summary(
            "Sync", elapsed=elapsed, stats=stats, style="red" if errors else "cyan"
        )


# Global logger instance
logger = SyncLogger()
