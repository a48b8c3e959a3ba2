"""Incremental sync over the Drive change feed.

The feed is paged with resumption tokens. The cursor is persisted after
every page, so an interruption costs at most one page of rework and never
skips unseen changes.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sticker_drive.config.settings import SyncConfig
from sticker_drive.sync.changes import process_changes
from sticker_drive.sync.errors import MissingBaselineError
from sticker_drive.sync.logger import logger
from sticker_drive.sync.result import SyncResult
from sticker_drive.sync.retry import retry_with_backoff
from sticker_drive.sync.state import SyncStateManager

if TYPE_CHECKING:
    from sticker_drive.sync.client import DriveClient


async def run_incremental_sync(
    client: "DriveClient",
    session_factory: async_sessionmaker[AsyncSession],
    root_folder_id: str,
    config: SyncConfig,
    result: SyncResult | None = None,
) -> SyncResult:
    """Replay the change feed from the stored cursor.

    Args:
        client: Drive API client with OAuth credentials
        session_factory: Session factory for the catalogue database
        root_folder_id: Drive folder holding the collection folders
        config: Sync tuning
        result: Optional accumulator to fill in place

    Returns:
        SyncResult with items applied, pages processed and per-change errors

    Raises:
        MissingBaselineError: If no cursor has been stored yet
        Exception: If fetching a page fails after retries; the cursor of
            the last completed page stays persisted
    """
    result = result if result is not None else SyncResult()

    async with session_factory() as session:
        token = await SyncStateManager(session).get_page_token()
    if not token:
        raise MissingBaselineError()

    while token:
        page = await retry_with_backoff(
            partial(client.poll_changes, token),
            attempts=config.retry_attempts,
            initial_delay=config.retry_initial_delay,
            description="poll changes",
        )

        outcome = await process_changes(page.changes, session_factory, root_folder_id, config)
        result.items_synced += outcome.applied
        result.errors.extend(outcome.errors)
        result.pages_processed += 1
        logger.page_processed(result.pages_processed, len(page.changes), len(outcome.errors))

        # The final page carries newStartPageToken instead of nextPageToken.
        cursor = page.next_token or page.new_start_token
        if cursor:
            async with session_factory() as session:
                await SyncStateManager(session).set_page_token(cursor)
                await session.commit()

        token = page.next_token

    return result
