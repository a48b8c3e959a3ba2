"""Applying change-feed entries to the catalogue.

Each change is applied in its own short transaction. Changes are handled
in small concurrent batches with a pause between batches to stay under
Drive's quotas; one failing change never aborts its batch.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sticker_drive.config.settings import SyncConfig
from sticker_drive.db.repositories import (
    delete_collection_cascade,
    delete_sticker_by_drive_id,
    get_collection_by_folder_id,
    upsert_folder_collection,
    upsert_sticker,
)
from sticker_drive.sync.logger import logger
from sticker_drive.sync.mappers.drive import DriveChange, DriveFile


@dataclass
class ChangeBatchResult:
    """Outcome of applying a list of changes."""

    applied: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


async def process_changes(
    changes: list[DriveChange],
    session_factory: async_sessionmaker[AsyncSession],
    root_folder_id: str,
    config: SyncConfig,
) -> ChangeBatchResult:
    """Apply change-feed entries in batches of ``config.change_batch_size``.

    Args:
        changes: Entries from one change-feed page
        session_factory: Session factory for the catalogue database
        root_folder_id: Drive folder holding the collection folders
        config: Sync tuning

    Returns:
        ChangeBatchResult with applied/skipped counts and per-change errors
    """
    result = ChangeBatchResult()
    size = max(1, config.change_batch_size)

    for start in range(0, len(changes), size):
        batch = changes[start : start + size]
        outcomes = await asyncio.gather(
            *(_apply_safely(c, session_factory, root_folder_id, config) for c in batch)
        )
        for applied, error in outcomes:
            if error is not None:
                result.errors.append(error)
            elif applied:
                result.applied += 1
            else:
                result.skipped += 1

        if start + size < len(changes):
            await asyncio.sleep(config.batch_pause_seconds)

    return result


async def _apply_safely(
    change: DriveChange,
    session_factory: async_sessionmaker[AsyncSession],
    root_folder_id: str,
    config: SyncConfig,
) -> tuple[bool, str | None]:
    try:
        return await apply_change(change, session_factory, root_folder_id, config), None
    except Exception as e:
        logger.warning(f"Change for file {change.file_id} failed: {e}")
        return False, f"Error processing change for file {change.file_id}: {e}"


async def apply_change(
    change: DriveChange,
    session_factory: async_sessionmaker[AsyncSession],
    root_folder_id: str,
    config: SyncConfig,
) -> bool:
    """Apply a single change. Returns False when the change was irrelevant."""
    if not change.file_id:
        return False

    if change.is_deletion:
        return await _apply_removal(change.file_id, session_factory)

    file = change.file
    if file is None:
        return False
    if file.is_folder:
        return await _apply_folder(file, session_factory, root_folder_id)
    if file.is_image:
        return await _apply_image(file, session_factory, config)
    return False


async def _apply_removal(
    file_id: str, session_factory: async_sessionmaker[AsyncSession]
) -> bool:
    """A removed id may be a sticker or a collection folder; try both."""
    async with session_factory() as session:
        sticker = await delete_sticker_by_drive_id(session, file_id)
        collection = await get_collection_by_folder_id(session, file_id)
        cascaded = 0
        if collection is not None:
            cascaded = await delete_collection_cascade(session, collection)
        await session.commit()

    if sticker is not None:
        logger.sticker_removed(sticker.title)
    if collection is not None:
        logger.collection_removed(collection.name, cascaded)
    return sticker is not None or collection is not None


async def _apply_folder(
    file: DriveFile,
    session_factory: async_sessionmaker[AsyncSession],
    root_folder_id: str,
) -> bool:
    async with session_factory() as session:
        existing = await get_collection_by_folder_id(session, file.id)
        # Only folders directly under the root become new collections.
        if existing is None and root_folder_id not in file.parents:
            return False
        upsert = await upsert_folder_collection(session, file.id, file.name)
        await session.commit()

    if upsert.previous_name is not None:
        logger.collection_renamed(upsert.previous_name, file.name)
    elif upsert.created:
        logger.collection_synced(file.name, created=True)
    return True


async def _apply_image(
    file: DriveFile,
    session_factory: async_sessionmaker[AsyncSession],
    config: SyncConfig,
) -> bool:
    async with session_factory() as session:
        collection = None
        if file.parent_id is not None:
            collection = await get_collection_by_folder_id(session, file.parent_id)

        if collection is None:
            # Moved outside the mirrored tree, or never inside it.
            removed = await delete_sticker_by_drive_id(session, file.id)
            await session.commit()
            if removed is None:
                logger.debug(f"Ignoring {file.name}: parent folder is not a collection")
                return False
            logger.sticker_removed(removed.title)
            return True

        upsert = await upsert_sticker(session, file, collection.id, config.thumbnail_size)
        await session.commit()

    if upsert.previous_filename is not None:
        logger.sticker_renamed(upsert.previous_filename, file.name)
    else:
        logger.sticker_synced(upsert.sticker.title)
    return True
