"""Image cache maintenance endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from sticker_drive.utils.time import utcnow
from sticker_drive.web.dependencies import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cache", tags=["Cache"])


@router.post("/clear")
async def clear_cache(services: Services = Depends(get_services)) -> dict:
    cleared = services.image_cache.clear()
    logger.info(f"Image cache cleared ({cleared} entries)")
    return {"status": "cleared", "entries": cleared, "timestamp": utcnow().isoformat()}
