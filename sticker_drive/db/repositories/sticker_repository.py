"""Sticker repository for database operations."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sticker_drive.db.models import Sticker
from sticker_drive.db.repositories._assign import assign_changed
from sticker_drive.sync.mappers.drive import DriveFile
from sticker_drive.sync.mappers.sticker import map_sticker_fields


@dataclass
class StickerUpsert:
    """Outcome of a sticker upsert."""

    sticker: Sticker
    created: bool
    changed: bool
    # Filename and title before a rename, None when the filename is unchanged.
    previous_filename: str | None = None
    previous_title: str | None = None


async def get_sticker_by_drive_id(
    session: AsyncSession, drive_id: str
) -> Sticker | None:
    result = await session.execute(select(Sticker).where(Sticker.drive_id == drive_id))
    return result.scalar_one_or_none()


async def upsert_sticker(
    session: AsyncSession,
    file: DriveFile,
    collection_id: str,
    thumbnail_size: int = 400,
) -> StickerUpsert:
    """Insert or update the sticker for a Drive file, keyed on ``drive_id``.

    On rename the title, tags and caption are recomputed and overwritten;
    the local id never changes.

    Args:
        session: Database session
        file: Drive image descriptor
        collection_id: Owning collection id
        thumbnail_size: Thumbnail width for the proxy URL

    Returns:
        StickerUpsert describing what happened
    """
    values = map_sticker_fields(file, collection_id, thumbnail_size)
    sticker = await get_sticker_by_drive_id(session, file.id)

    if sticker is None:
        sticker = Sticker(drive_id=file.id, **values)
        session.add(sticker)
        await session.flush()
        return StickerUpsert(sticker=sticker, created=True, changed=True)

    previous_filename = sticker.filename if sticker.filename != file.name else None
    previous_title = sticker.title if previous_filename is not None else None
    # Listings without media metadata must not wipe known dimensions.
    for key in ("width", "height", "file_size"):
        if values[key] is None:
            values.pop(key)

    changed = assign_changed(sticker, values)
    if changed:
        await session.flush()
    return StickerUpsert(
        sticker=sticker,
        created=False,
        changed=changed,
        previous_filename=previous_filename,
        previous_title=previous_title,
    )


async def delete_sticker_by_drive_id(
    session: AsyncSession, drive_id: str
) -> Sticker | None:
    """Delete the sticker for a Drive file.

    Returns:
        The deleted sticker (detached), or None if none matched
    """
    sticker = await get_sticker_by_drive_id(session, drive_id)
    if sticker is not None:
        await session.delete(sticker)
        await session.flush()
    return sticker


async def delete_stale_stickers(
    session: AsyncSession,
    collection_id: str,
    active_drive_ids: Iterable[str],
) -> int:
    """Delete a collection's Drive-backed stickers missing from a listing.

    Manually seeded stickers (``drive_id`` NULL) are never pruned.

    Returns:
        Number of stickers deleted
    """
    active = set(active_drive_ids)
    result = await session.execute(
        select(Sticker.id, Sticker.drive_id).where(
            Sticker.collection_id == collection_id,
            Sticker.drive_id.is_not(None),
        )
    )
    stale_ids = [row.id for row in result if row.drive_id not in active]
    if not stale_ids:
        return 0
    await session.execute(delete(Sticker).where(Sticker.id.in_(stale_ids)))
    return len(stale_ids)


async def count_stickers(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(Sticker))
    return int(result.scalar_one())
