"""Long-lived services shared by the HTTP routes."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Request

from sticker_drive.auth import build_service_account_source, build_token_source
from sticker_drive.config.settings import AppSettings
from sticker_drive.images import ImageCache, ImageProxy, build_default_strategies
from sticker_drive.sync.client import DriveClient
from sticker_drive.sync.run import SyncOrchestrator
from sticker_drive.sync.throttle import SyncThrottle


@dataclass
class Services:
    settings: AppSettings
    image_cache: ImageCache
    image_proxy: ImageProxy
    orchestrator: SyncOrchestrator


def build_services(settings: AppSettings, http: httpx.AsyncClient) -> Services:
    """Wire the image proxy and the sync orchestrator around one HTTP pool."""
    image_cache = ImageCache(
        ttl_seconds=settings.images.cache_ttl_seconds,
        max_entries=settings.images.cache_max_entries,
    )
    image_proxy = ImageProxy(
        build_default_strategies(
            http,
            settings.drive,
            settings.images,
            service_account=build_service_account_source(settings.drive),
        ),
        image_cache,
    )
    client = DriveClient(
        api_key=settings.drive.api_key,
        token_source=build_token_source(settings.drive),
        http=http,
    )
    orchestrator = SyncOrchestrator(
        settings,
        client,
        throttle=SyncThrottle(settings.sync.min_interval_seconds),
        image_cache=image_cache,
    )
    return Services(settings, image_cache, image_proxy, orchestrator)


def get_services(request: Request) -> Services:
    return request.app.state.services
