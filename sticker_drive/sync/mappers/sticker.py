"""DriveFile -> Sticker column values."""

from __future__ import annotations

from typing import Any

from sticker_drive.sync.mappers.drive import DriveFile
from sticker_drive.sync.mappers.naming import build_caption, derive
from sticker_drive.utils.urls import image_proxy_thumbnail_url, image_proxy_url


def map_sticker_fields(
    file: DriveFile, collection_id: str, thumbnail_size: int = 400
) -> dict[str, Any]:
    """Build the column values for upserting a sticker from a Drive file.

    Args:
        file: Drive image descriptor
        collection_id: Local id of the owning collection
        thumbnail_size: Pixel width used in the thumbnail proxy URL

    Returns:
        Mapping of Sticker column name to value (excluding ``id``/``drive_id``)
    """
    derived = derive(file.name)
    return {
        "title": derived.title,
        "filename": file.name,
        "source_url": image_proxy_url(file.id),
        "thumbnail_url": image_proxy_thumbnail_url(file.id, thumbnail_size),
        "caption": build_caption(derived.title),
        "tags": derived.tags,
        "collection_id": collection_id,
        "width": file.width,
        "height": file.height,
        "file_size": file.size,
    }
