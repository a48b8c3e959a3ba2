"""Image resolution strategies.

Each strategy is one way of getting bytes for a Drive file id. Strategies
report failure by returning None; exceptions are reserved for bugs and
are contained by the proxy.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from sticker_drive.auth import TokenSource
from sticker_drive.images.validation import extract_confirm_url, validate_image_response

logger = logging.getLogger(__name__)

DRIVE_API_URL = "https://www.googleapis.com/drive/v3/files"
THUMBNAIL_URL = "https://drive.google.com/thumbnail"
EXPORT_URL = "https://drive.google.com/uc"
CDN_URL = "https://lh3.googleusercontent.com/d"

# Width asked of thumbnail endpoints when the full image was requested.
FULL_SIZE_HINT = 2000

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://drive.google.com/",
}


@dataclass(frozen=True)
class ResolvedImage:
    """Bytes ready to serve, with where they came from."""

    content: bytes
    content_type: str
    source: str
    cached: bool = False
    placeholder: bool = False


class ImageFetcher:
    """GET + validate, with optional retries and one confirm-page hop."""

    def __init__(self, http: httpx.AsyncClient, timeout: float = 15.0) -> None:
        self.http = http
        self.timeout = timeout

    async def fetch(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        retries: int = 0,
        retry_delay: float = 0.5,
    ) -> tuple[bytes, str] | None:
        """Fetch ``url`` and return ``(content, content_type)`` if it is an image."""
        delay = retry_delay
        for attempt in range(retries + 1):
            try:
                image = await self._fetch_once(url, params, headers, follow_confirm=True)
            except httpx.HTTPError as e:
                logger.debug(f"Fetch failed for {url}: {e}")
                image = None
            if image is not None:
                return image
            if attempt < retries:
                await asyncio.sleep(delay)
                delay *= 2
        return None

    async def _fetch_once(
        self,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
        follow_confirm: bool,
    ) -> tuple[bytes, str] | None:
        response = await self.http.get(
            url,
            params=params,
            headers=headers,
            timeout=self.timeout,
            follow_redirects=True,
        )
        if response.status_code != 200:
            logger.debug(f"HTTP {response.status_code} from {url}")
            return None

        verdict = validate_image_response(
            response.content, response.headers.get("content-type")
        )
        if verdict.accepted:
            return response.content, verdict.content_type

        if verdict.is_html and follow_confirm:
            confirm_url = extract_confirm_url(response.text, str(response.url))
            if confirm_url:
                logger.debug(f"Following download confirmation for {url}")
                return await self._fetch_once(confirm_url, None, headers, follow_confirm=False)

        logger.debug(f"Rejected response from {url}: {verdict.reason}")
        return None

    async def fetch_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any] | None:
        try:
            response = await self.http.get(
                url, params=params, headers=headers, timeout=self.timeout
            )
        except httpx.HTTPError as e:
            logger.debug(f"Metadata request failed: {e}")
            return None
        if response.status_code != 200:
            return None
        return response.json()


class ResolutionStrategy(ABC):
    """One way of obtaining image bytes for a Drive file id."""

    name: str = ""

    def __init__(self, fetcher: ImageFetcher) -> None:
        self.fetcher = fetcher

    @property
    def is_available(self) -> bool:
        """False when the strategy lacks the credentials it needs."""
        return True

    @abstractmethod
    async def attempt(self, file_id: str, size: int | None) -> ResolvedImage | None:
        ...

    async def _first_of(
        self,
        urls: list[str],
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        retries: int = 0,
    ) -> ResolvedImage | None:
        for url in urls:
            image = await self.fetcher.fetch(
                url, params=params, headers=headers, retries=retries
            )
            if image is not None:
                content, content_type = image
                return ResolvedImage(content, content_type, source=self.name)
        return None


class AuthenticatedContentStrategy(ResolutionStrategy):
    """Drive API ``alt=media`` download with the API key."""

    name = "drive_api"

    def __init__(self, fetcher: ImageFetcher, api_key: str, retries: int = 2) -> None:
        super().__init__(fetcher)
        self.api_key = api_key
        self.retries = retries

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    async def attempt(self, file_id: str, size: int | None) -> ResolvedImage | None:
        return await self._first_of(
            [f"{DRIVE_API_URL}/{file_id}"],
            params={"alt": "media", "key": self.api_key},
            retries=self.retries,
        )


class PublicThumbnailStrategy(ResolutionStrategy):
    """Public thumbnail endpoint, width-bounded then square."""

    name = "thumbnail"

    def __init__(self, fetcher: ImageFetcher, default_size: int = FULL_SIZE_HINT) -> None:
        super().__init__(fetcher)
        self.default_size = default_size

    async def attempt(self, file_id: str, size: int | None) -> ResolvedImage | None:
        width = size or self.default_size
        urls = [
            f"{THUMBNAIL_URL}?id={file_id}&sz=w{width}",
            f"{THUMBNAIL_URL}?id={file_id}&sz=s{width}",
        ]
        return await self._first_of(urls, headers=BROWSER_HEADERS, retries=1)


class CdnStrategy(ResolutionStrategy):
    """Direct googleusercontent CDN URL, sized if a size was asked for."""

    name = "cdn"

    async def attempt(self, file_id: str, size: int | None) -> ResolvedImage | None:
        urls = [f"{CDN_URL}/{file_id}"]
        if size:
            urls.insert(0, f"{CDN_URL}/{file_id}=w{size}")
        return await self._first_of(urls, headers=BROWSER_HEADERS)


class ExportUrlStrategy(ResolutionStrategy):
    """Legacy ``uc?export=`` view and download URLs."""

    name = "export"

    async def attempt(self, file_id: str, size: int | None) -> ResolvedImage | None:
        urls = [
            f"{EXPORT_URL}?export=view&id={file_id}",
            f"{EXPORT_URL}?export=download&id={file_id}",
        ]
        return await self._first_of(urls, headers=BROWSER_HEADERS)


class MetadataLinkStrategy(ResolutionStrategy):
    """Server-issued ``thumbnailLink`` / ``webContentLink`` from file metadata."""

    name = "metadata_link"

    def __init__(
        self, fetcher: ImageFetcher, api_key: str, default_size: int = FULL_SIZE_HINT
    ) -> None:
        super().__init__(fetcher)
        self.api_key = api_key
        self.default_size = default_size

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    async def attempt(self, file_id: str, size: int | None) -> ResolvedImage | None:
        metadata = await self.fetcher.fetch_json(
            f"{DRIVE_API_URL}/{file_id}",
            params={"fields": "thumbnailLink,webContentLink", "key": self.api_key},
        )
        if not metadata:
            return None

        urls = []
        thumbnail = metadata.get("thumbnailLink")
        if thumbnail:
            urls.append(sized_thumbnail_link(thumbnail, size or self.default_size))
        if metadata.get("webContentLink"):
            urls.append(metadata["webContentLink"])
        return await self._first_of(urls, headers=BROWSER_HEADERS)


class ServiceAccountStrategy(ResolutionStrategy):
    """``alt=media`` download with a service-account bearer token."""

    name = "service_account"

    def __init__(self, fetcher: ImageFetcher, token_source: TokenSource | None) -> None:
        super().__init__(fetcher)
        self.token_source = token_source

    @property
    def is_available(self) -> bool:
        return self.token_source is not None

    async def attempt(self, file_id: str, size: int | None) -> ResolvedImage | None:
        token = await self.token_source.get_token()
        return await self._first_of(
            [f"{DRIVE_API_URL}/{file_id}"],
            params={"alt": "media"},
            headers={"Authorization": f"Bearer {token}"},
        )


def sized_thumbnail_link(link: str, size: int) -> str:
    """Swap the ``=s220`` style suffix Drive puts on thumbnail links."""
    base, sep, suffix = link.rpartition("=")
    if sep and suffix[:1] == "s" and suffix[1:].isdigit():
        return f"{base}=s{size}"
    return link
