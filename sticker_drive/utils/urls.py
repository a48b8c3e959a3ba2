# sticker_drive/utils/urls.py
from __future__ import annotations

# Mount point of the image proxy; stored sticker URLs are relative to the site.
IMAGE_PROXY_PATH = "/api/image"


def image_proxy_url(file_id: str) -> str:
    return f"{IMAGE_PROXY_PATH}/{file_id}"


def image_proxy_thumbnail_url(file_id: str, size: int = 400) -> str:
    return f"{IMAGE_PROXY_PATH}/{file_id}?size={size}"
