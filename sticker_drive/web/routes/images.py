"""Image proxy endpoint.

Always answers 200 with image bytes: a fetched image (cacheable by
browsers and CDNs) or the placeholder (never cacheable).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from sticker_drive.images import parse_size
from sticker_drive.web.dependencies import Services, get_services

router = APIRouter(tags=["Images"])

IMMUTABLE_CACHE_CONTROL = "public, max-age=3600, immutable"


@router.get("/image/{file_id}")
async def get_image(
    file_id: str,
    size: str | None = None,
    services: Services = Depends(get_services),
) -> Response:
    image = await services.image_proxy.resolve(file_id, parse_size(size))

    if image.placeholder:
        headers = {"Cache-Control": "no-store", "X-Cache": "MISS"}
    else:
        headers = {
            "Cache-Control": IMMUTABLE_CACHE_CONTROL,
            "X-Cache": "HIT" if image.cached else "MISS",
        }
    headers["X-Image-Source"] = image.source
    return Response(content=image.content, media_type=image.content_type, headers=headers)
