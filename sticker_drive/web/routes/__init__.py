from fastapi import APIRouter

from sticker_drive.web.routes import cache, images, sync, webhooks

api_router = APIRouter(prefix="/api")

api_router.include_router(images.router)
api_router.include_router(sync.router)
api_router.include_router(webhooks.router)
api_router.include_router(cache.router)
