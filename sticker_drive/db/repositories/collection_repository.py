"""Collection repository for database operations."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sticker_drive.db.models import Collection, Sticker
from sticker_drive.db.repositories._assign import assign_changed
from sticker_drive.sync.mappers.naming import disambiguate_slug, slugify

ROOT_COLLECTION_NAME = "All Stickers"
ROOT_COLLECTION_SLUG = "all-stickers"
ROOT_COLLECTION_DESCRIPTION = "Love Facts media literacy stickers"


@dataclass
class CollectionUpsert:
    """Outcome of a collection upsert."""

    collection: Collection
    created: bool
    # Name before a rename, None when the name did not change.
    previous_name: str | None = None


def collection_description(name: str) -> str:
    return f"{name} stickers"


async def get_collection_by_folder_id(
    session: AsyncSession, folder_id: str
) -> Collection | None:
    result = await session.execute(
        select(Collection).where(Collection.drive_folder_id == folder_id)
    )
    return result.scalar_one_or_none()


async def get_collection_by_slug(session: AsyncSession, slug: str) -> Collection | None:
    result = await session.execute(select(Collection).where(Collection.slug == slug))
    return result.scalar_one_or_none()


async def resolve_slug(
    session: AsyncSession,
    name: str,
    folder_id: str,
    current: Collection | None = None,
) -> str:
    """Pick a unique slug for a folder's collection.

    A collision with a *different* collection is resolved by suffixing the
    first characters of the folder id; if that is taken too, the full id.

    Args:
        session: Database session
        name: Folder display name
        folder_id: Drive folder id of the collection being written
        current: The existing collection for this folder, if any

    Returns:
        A slug no other collection holds
    """
    candidates = [
        slugify(name),
        disambiguate_slug(slugify(name), folder_id),
        f"{slugify(name)}-{folder_id}",
    ]
    for slug in candidates:
        holder = await get_collection_by_slug(session, slug)
        if holder is None or holder is current or holder.drive_folder_id == folder_id:
            return slug
    return candidates[-1]


async def upsert_folder_collection(
    session: AsyncSession,
    folder_id: str,
    name: str,
    sort_order: int | None = None,
) -> CollectionUpsert:
    """Create or update the collection mirroring a Drive folder.

    Matching is by folder id, so renames update the existing row. The slug
    is only recomputed when the name actually changed.

    Args:
        session: Database session
        folder_id: Drive folder id
        name: Current folder name
        sort_order: Display position; left untouched when None

    Returns:
        CollectionUpsert describing what happened
    """
    collection = await get_collection_by_folder_id(session, folder_id)

    if collection is None:
        collection = Collection(
            drive_folder_id=folder_id,
            name=name,
            slug=await resolve_slug(session, name, folder_id),
            description=collection_description(name),
            sort_order=sort_order or 0,
        )
        session.add(collection)
        await session.flush()
        return CollectionUpsert(collection=collection, created=True)

    previous_name = collection.name if collection.name != name else None
    values: dict = {}
    if previous_name is not None:
        values["name"] = name
        values["slug"] = await resolve_slug(session, name, folder_id, current=collection)
        values["description"] = collection_description(name)
    if sort_order is not None:
        values["sort_order"] = sort_order

    if assign_changed(collection, values):
        await session.flush()
    return CollectionUpsert(
        collection=collection, created=False, previous_name=previous_name
    )


async def upsert_root_collection(
    session: AsyncSession, root_folder_id: str
) -> CollectionUpsert:
    """Get or create the implicit "All Stickers" collection for a flat root.

    A previously seeded ``all-stickers`` row without a folder id is adopted
    rather than duplicated.
    """
    collection = await get_collection_by_folder_id(session, root_folder_id)
    if collection is None:
        collection = await get_collection_by_slug(session, ROOT_COLLECTION_SLUG)
        if collection is not None and collection.drive_folder_id in (None, root_folder_id):
            collection.drive_folder_id = root_folder_id
            await session.flush()
        else:
            slug = ROOT_COLLECTION_SLUG
            if collection is not None:
                slug = disambiguate_slug(ROOT_COLLECTION_SLUG, root_folder_id)
            collection = Collection(
                drive_folder_id=root_folder_id,
                name=ROOT_COLLECTION_NAME,
                slug=slug,
                description=ROOT_COLLECTION_DESCRIPTION,
                sort_order=1,
            )
            session.add(collection)
            await session.flush()
            return CollectionUpsert(collection=collection, created=True)
    return CollectionUpsert(collection=collection, created=False)


async def delete_collection_cascade(
    session: AsyncSession, collection: Collection
) -> int:
    """Delete a collection and all its stickers.

    Returns:
        Number of stickers removed with it
    """
    result = await session.execute(
        delete(Sticker).where(Sticker.collection_id == collection.id)
    )
    await session.execute(delete(Collection).where(Collection.id == collection.id))
    return result.rowcount or 0


async def count_collections(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(Collection))
    return int(result.scalar_one())
