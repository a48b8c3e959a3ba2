"""Full folder-scan reconciliation.

Lists every collection folder under the configured root and mirrors its
image files into the catalogue. Once every folder has been listed,
stickers missing from their collection's listing are pruned, so the local
state converges on Drive regardless of earlier drift.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sticker_drive.config.settings import SyncConfig
from sticker_drive.db.models import Collection
from sticker_drive.db.repositories import (
    delete_stale_stickers,
    upsert_folder_collection,
    upsert_root_collection,
    upsert_sticker,
)
from sticker_drive.sync.logger import logger
from sticker_drive.sync.result import SyncResult
from sticker_drive.sync.retry import retry_with_backoff
from sticker_drive.sync.state import SyncStateManager

if TYPE_CHECKING:
    from sticker_drive.sync.client import DriveClient


async def run_full_sync(
    client: "DriveClient",
    session_factory: async_sessionmaker[AsyncSession],
    root_folder_id: str,
    config: SyncConfig,
    result: SyncResult | None = None,
) -> SyncResult:
    """Mirror the Drive folder tree under ``root_folder_id``.

    Subfolders become collections (matched by folder id). A root without
    subfolders is mirrored as the single "All Stickers" collection. Each
    write runs in its own short transaction; per-item failures are recorded
    and the run continues.

    Args:
        client: Drive API client
        session_factory: Session factory for the catalogue database
        root_folder_id: Drive folder holding the collection folders
        config: Sync tuning
        result: Optional accumulator to fill in place

    Returns:
        SyncResult with counts and per-item errors

    Raises:
        Exception: If the root listing itself fails after retries
    """
    result = result if result is not None else SyncResult()
    retry = partial(
        retry_with_backoff,
        attempts=config.retry_attempts,
        initial_delay=config.retry_initial_delay,
    )

    # Taken before scanning so changes made during the scan are replayed later.
    baseline = await _fetch_baseline(client, session_factory, retry, result)

    folders = await retry(partial(client.list_folders, root_folder_id), description="list folders")
    listed: list[tuple[Collection, set[str]]] = []

    if not folders:
        async with session_factory() as session:
            upsert = await upsert_root_collection(session, root_folder_id)
            await session.commit()
        logger.collection_synced(upsert.collection.name, upsert.created)
        active_ids = await _sync_collection(
            client, session_factory, upsert.collection, root_folder_id, config, retry, result
        )
        if active_ids is not None:
            listed.append((upsert.collection, active_ids))
    else:
        for position, folder in enumerate(folders, start=1):
            try:
                async with session_factory() as session:
                    upsert = await upsert_folder_collection(
                        session, folder.id, folder.name, sort_order=position
                    )
                    await session.commit()
            except Exception as e:
                result.errors.append(f"Collection {folder.name}: {e}")
                continue

            if upsert.previous_name is not None:
                logger.collection_renamed(upsert.previous_name, folder.name)
            else:
                logger.collection_synced(folder.name, upsert.created)
            active_ids = await _sync_collection(
                client, session_factory, upsert.collection, folder.id, config, retry, result
            )
            if active_ids is not None:
                listed.append((upsert.collection, active_ids))

    await _prune_stale(session_factory, listed, result)

    if baseline is not None:
        async with session_factory() as session:
            await SyncStateManager(session).set_page_token(baseline)
            await session.commit()
        logger.info("Stored change-feed baseline")

    return result


async def _fetch_baseline(client, session_factory, retry, result: SyncResult) -> str | None:
    """Start cursor to store after the scan, if no baseline exists yet."""
    if not client.can_read_changes:
        return None
    async with session_factory() as session:
        if await SyncStateManager(session).get_page_token() is not None:
            return None
    try:
        return await retry(client.get_start_cursor, description="start page token")
    except Exception as e:
        result.errors.append(f"Failed to establish change-feed baseline: {e}")
        return None


async def _sync_collection(
    client: "DriveClient",
    session_factory: async_sessionmaker[AsyncSession],
    collection: Collection,
    folder_id: str,
    config: SyncConfig,
    retry,
    result: SyncResult,
) -> set[str] | None:
    """Upsert every image in one folder.

    Returns:
        Drive ids in the listing, or None if the listing failed
    """
    with logger.block(collection.name) as block:
        block.field("folder ID", folder_id)
        try:
            files = await retry(partial(client.list_files, folder_id), description="list files")
        except Exception as e:
            # An unknown listing is not an empty listing: never prune on failure.
            result.errors.append(f"Listing {collection.name} failed, pruning skipped: {e}")
            block.result("listing failed", success=False)
            block.skip("stale pruning")
            return None

        block.field("files", len(files))
        active_ids: set[str] = set()
        synced = 0
        for file in files:
            active_ids.add(file.id)
            try:
                async with session_factory() as session:
                    upsert = await upsert_sticker(
                        session, file, collection.id, config.thumbnail_size
                    )
                    await session.commit()
            except Exception as e:
                result.errors.append(f"{file.name}: {e}")
                continue
            synced += 1
            if upsert.previous_filename is not None:
                logger.sticker_renamed(upsert.previous_filename, file.name)
            else:
                logger.sticker_synced(upsert.sticker.title)

        result.items_synced += synced
        result.collections_synced += 1
        block.result(f"synced {synced} stickers", success=synced == len(files))
    return active_ids


async def _prune_stale(
    session_factory: async_sessionmaker[AsyncSession],
    listed: list[tuple[Collection, set[str]]],
    result: SyncResult,
) -> None:
    """Prune each listed collection once every folder has been upserted.

    Stickers moved between folders have already been re-parented by then,
    so a move never deletes and re-creates the row.
    """
    for collection, active_ids in listed:
        try:
            async with session_factory() as session:
                removed = await delete_stale_stickers(session, collection.id, active_ids)
                await session.commit()
        except Exception as e:
            result.errors.append(f"Pruning {collection.name} failed: {e}")
            continue
        if removed:
            result.stale_removed += removed
            logger.stale_pruned(collection.name, removed)
