"""Repository layer for database operations.

Provides clean separation between data access and reconciliation logic.
All upsert operations are centralized here.
"""

from sticker_drive.db.repositories.collection_repository import (
    CollectionUpsert,
    count_collections,
    delete_collection_cascade,
    get_collection_by_folder_id,
    upsert_folder_collection,
    upsert_root_collection,
)
from sticker_drive.db.repositories.sticker_repository import (
    StickerUpsert,
    count_stickers,
    delete_stale_stickers,
    delete_sticker_by_drive_id,
    get_sticker_by_drive_id,
    upsert_sticker,
)
from sticker_drive.db.repositories.sync_run_repository import (
    finish_sync_run,
    recent_sync_runs,
    start_sync_run,
)

__all__ = [
    "CollectionUpsert",
    "StickerUpsert",
    "count_collections",
    "count_stickers",
    "delete_collection_cascade",
    "delete_stale_stickers",
    "delete_sticker_by_drive_id",
    "finish_sync_run",
    "get_collection_by_folder_id",
    "get_sticker_by_drive_id",
    "recent_sync_runs",
    "start_sync_run",
    "upsert_folder_collection",
    "upsert_root_collection",
    "upsert_sticker",
]
