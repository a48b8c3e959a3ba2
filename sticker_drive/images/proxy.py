"""Resilient image proxy.

Tries an ordered list of strategies for a Drive file id, caches the first
validated result, and falls back to a placeholder so a request never fails.
"""

from __future__ import annotations

import logging
import re

import httpx

from sticker_drive.auth import TokenSource
from sticker_drive.config.settings import DriveConfig, ImageProxyConfig
from sticker_drive.images.cache import ImageCache
from sticker_drive.images.placeholder import PLACEHOLDER_CONTENT_TYPE, PLACEHOLDER_SVG
from sticker_drive.images.strategies import (
    AuthenticatedContentStrategy,
    CdnStrategy,
    ExportUrlStrategy,
    ImageFetcher,
    MetadataLinkStrategy,
    PublicThumbnailStrategy,
    ResolutionStrategy,
    ResolvedImage,
    ServiceAccountStrategy,
)

logger = logging.getLogger(__name__)

# Drive ids are URL-safe base64-ish; anything else never reaches the network.
DRIVE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{10,200}$")

MIN_SIZE = 16
MAX_SIZE = 4000


def is_valid_drive_id(file_id: str) -> bool:
    return bool(DRIVE_ID_PATTERN.match(file_id))


def parse_size(value: str | None) -> int | None:
    """Lenient ``?size=`` parsing: junk means full size, numbers are clamped."""
    if not value:
        return None
    try:
        size = int(value)
    except ValueError:
        return None
    if size <= 0:
        return None
    return max(MIN_SIZE, min(size, MAX_SIZE))


def placeholder_image() -> ResolvedImage:
    return ResolvedImage(
        PLACEHOLDER_SVG, PLACEHOLDER_CONTENT_TYPE, source="placeholder", placeholder=True
    )


class ImageProxy:
    """Strategy chain in front of an ImageCache."""

    def __init__(self, strategies: list[ResolutionStrategy], cache: ImageCache) -> None:
        self.strategies = strategies
        self.cache = cache

    async def resolve(self, file_id: str, size: int | None = None) -> ResolvedImage:
        """Return image bytes for ``file_id``; never raises.

        Args:
            file_id: Drive file id
            size: Requested width, or None for the full image

        Returns:
            The cached or freshly fetched image, or the placeholder
        """
        if not is_valid_drive_id(file_id):
            logger.warning(f"Rejected malformed file id {file_id!r}")
            return placeholder_image()

        cached = self.cache.get(file_id, size)
        if cached is not None:
            return ResolvedImage(
                cached.content, cached.content_type, source="cache", cached=True
            )

        for strategy in self.strategies:
            if not strategy.is_available:
                continue
            try:
                image = await strategy.attempt(file_id, size)
            except Exception as e:
                logger.warning(f"Strategy {strategy.name} errored for {file_id}: {e}")
                continue
            if image is not None:
                logger.debug(f"Resolved {file_id} via {strategy.name}")
                self.cache.set(file_id, size, image.content, image.content_type)
                return image

        logger.warning(f"All image strategies failed for {file_id}")
        return placeholder_image()


def build_default_strategies(
    http: httpx.AsyncClient,
    drive: DriveConfig,
    config: ImageProxyConfig,
    service_account: TokenSource | None = None,
) -> list[ResolutionStrategy]:
    """Strategies in fallback order, most reliable first."""
    fetcher = ImageFetcher(http, timeout=config.fetch_timeout_seconds)
    return [
        AuthenticatedContentStrategy(fetcher, drive.api_key),
        PublicThumbnailStrategy(fetcher, default_size=config.full_size_hint),
        CdnStrategy(fetcher),
        ExportUrlStrategy(fetcher),
        MetadataLinkStrategy(fetcher, drive.api_key, default_size=config.full_size_hint),
        ServiceAccountStrategy(fetcher, service_account),
    ]
