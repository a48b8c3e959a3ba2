"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from sticker_drive.config.settings import AppSettings, get_settings
from sticker_drive.db.engine import dispose_engines
from sticker_drive.web.dependencies import build_services
from sticker_drive.web.routes import api_router

logger = logging.getLogger(__name__)


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Build the app; services are created on startup and torn down on exit."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(api: FastAPI):
        http = httpx.AsyncClient(timeout=settings.images.fetch_timeout_seconds)
        services = build_services(settings, http)
        await services.orchestrator.init_db()
        api.state.services = services
        logger.info("Sticker Drive service started")
        try:
            yield
        finally:
            await http.aclose()
            await dispose_engines()

    api = FastAPI(title="Sticker Drive", version="0.1.0", lifespan=lifespan)
    api.include_router(api_router)

    @api.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return api
