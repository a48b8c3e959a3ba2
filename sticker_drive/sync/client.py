"""Google Drive v3 REST client with rate limit handling.

This module provides an async HTTP client for the Drive API with:
- Automatic rate limit handling (429 and Drive's rate-limit 403s)
- Exponential backoff for server errors (5xx), timeouts and transport errors
- API-key and/or bearer-token authentication
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import httpx

from sticker_drive.auth import TokenSource
from sticker_drive.sync.errors import ConfigurationError
from sticker_drive.sync.logger import logger
from sticker_drive.sync.mappers.drive import (
    FOLDER_MIME_TYPE,
    ChangePage,
    DriveFile,
    DriveFolder,
    map_change_page,
    map_file,
    map_folder,
)
from sticker_drive.utils.time import epoch_millis, utcnow


# Drive API base URL
BASE_URL = "https://www.googleapis.com/drive/v3"

# Retry configuration
MAX_RETRIES = 3
MAX_RATE_LIMIT_RETRIES = 10  # Cap on consecutive rate-limit retries
INITIAL_BACKOFF = 1.0  # seconds
MAX_BACKOFF = 32.0  # seconds

LIST_PAGE_SIZE = 1000
CHANGES_PAGE_SIZE = 100

RATE_LIMIT_REASONS = frozenset({"rateLimitExceeded", "userRateLimitExceeded"})

FILE_FIELDS = "id,name,mimeType,parents,trashed,size,imageMediaMetadata(width,height)"


class DriveAPIError(Exception):
    """Raised when the Drive API returns an error."""

    def __init__(self, status_code: int, message: str, reason: str | None = None) -> None:
        self.status_code = status_code
        self.message = message
        self.reason = reason
        super().__init__(f"Drive API error {status_code}: {message}")


def _error_details(response: httpx.Response) -> tuple[str, str | None]:
    """Extract (message, reason) from a Drive error body."""
    try:
        error = response.json().get("error", {})
    except Exception:
        return response.text, None
    if not isinstance(error, dict):
        return response.text, None
    errors = error.get("errors") or [{}]
    return error.get("message", response.text), errors[0].get("reason")


@dataclass
class DriveClient:
    """Async Google Drive API client.

    Handles rate limits and retries automatically. Use as an async context
    manager, or pass an existing ``httpx.AsyncClient`` via ``http``.
    """

    api_key: str = ""
    token_source: TokenSource | None = None
    timeout: float = 30.0
    http: httpx.AsyncClient | None = None

    def __post_init__(self) -> None:
        self._client: httpx.AsyncClient | None = self.http
        self._owns_client = self.http is None

    @property
    def can_read_changes(self) -> bool:
        """The change feed and push channels require OAuth credentials."""
        return self.token_source is not None

    async def __aenter__(self) -> "DriveClient":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _auth(
        self, params: dict[str, Any], require_token: bool
    ) -> tuple[dict[str, Any], dict[str, str]]:
        """Attach the API key and/or bearer token to a request."""
        if require_token and self.token_source is None:
            raise ConfigurationError(
                "Drive OAuth credentials (access token or service account) not configured"
            )
        if not self.api_key and self.token_source is None:
            raise ConfigurationError("Drive API key not configured")

        headers: dict[str, str] = {}
        if self.token_source is not None:
            headers["Authorization"] = f"Bearer {await self.token_source.get_token()}"
        if self.api_key:
            params = {**params, "key": self.api_key}
        return params, headers

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        require_token: bool = False,
    ) -> Any:
        """Make a request with rate limit and retry handling."""
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with.")

        params, headers = await self._auth(params or {}, require_token)
        url = f"{BASE_URL}{path}"
        backoff = INITIAL_BACKOFF
        rate_limit_retries = 0
        attempt = 0

        while attempt <= MAX_RETRIES:
            try:
                response = await self._client.request(
                    method, url, params=params, json=json, headers=headers
                )

                if response.status_code == 200:
                    return response.json()

                if response.status_code == 204:
                    return None

                message, reason = _error_details(response)

                # Rate limited - wait and retry (doesn't count as attempt)
                if response.status_code == 429 or (
                    response.status_code == 403 and reason in RATE_LIMIT_REASONS
                ):
                    rate_limit_retries += 1
                    if rate_limit_retries > MAX_RATE_LIMIT_RETRIES:
                        raise DriveAPIError(
                            response.status_code, "Max rate limit retries exceeded", reason
                        )
                    retry_after = float(response.headers.get("Retry-After", backoff))
                    logger.rate_limit(retry_after)
                    await asyncio.sleep(retry_after)
                    backoff = min(backoff * 2, MAX_BACKOFF)
                    continue

                # Client errors - fail immediately
                if response.status_code in (400, 401, 403, 404):
                    raise DriveAPIError(response.status_code, message, reason)

                # Server errors - retry with backoff
                if response.status_code >= 500:
                    if attempt < MAX_RETRIES:
                        logger.retry(
                            attempt + 1,
                            MAX_RETRIES,
                            backoff,
                            f"HTTP {response.status_code}",
                        )
                        await asyncio.sleep(backoff)
                        backoff = min(backoff * 2, MAX_BACKOFF)
                        attempt += 1
                        continue
                    raise DriveAPIError(response.status_code, message, reason)

                raise DriveAPIError(response.status_code, message, reason)

            except httpx.TimeoutException:
                if attempt < MAX_RETRIES:
                    logger.retry(attempt + 1, MAX_RETRIES, backoff, "timeout")
                    await asyncio.sleep(backoff)
                    backoff = min(backoff * 2, MAX_BACKOFF)
                    attempt += 1
                    continue
                raise

            except httpx.TransportError as e:
                if attempt < MAX_RETRIES:
                    logger.retry(attempt + 1, MAX_RETRIES, backoff, str(e))
                    await asyncio.sleep(backoff)
                    backoff = min(backoff * 2, MAX_BACKOFF)
                    attempt += 1
                    continue
                raise

        # Should not reach here
        raise DriveAPIError(500, "Max retries exceeded")

    async def _list_all(self, query: str, fields: str) -> list[dict[str, Any]]:
        """Follow ``nextPageToken`` through a ``files.list`` query."""
        items: list[dict[str, Any]] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {
                "q": query,
                "fields": f"nextPageToken,files({fields})",
                "pageSize": LIST_PAGE_SIZE,
            }
            if page_token:
                params["pageToken"] = page_token
            data = await self._request("GET", "/files", params=params)
            items.extend(data.get("files") or [])
            page_token = data.get("nextPageToken")
            if not page_token:
                return items

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    async def list_folders(self, parent_id: str) -> list[DriveFolder]:
        """List non-trashed subfolders of a folder, in Drive's order."""
        query = (
            f"'{parent_id}' in parents and trashed = false "
            f"and mimeType = '{FOLDER_MIME_TYPE}'"
        )
        return [map_folder(f) for f in await self._list_all(query, "id,name")]

    async def list_files(self, folder_id: str) -> list[DriveFile]:
        """List non-trashed image files directly inside a folder."""
        query = (
            f"'{folder_id}' in parents and trashed = false "
            "and mimeType contains 'image/'"
        )
        return [map_file(f) for f in await self._list_all(query, FILE_FIELDS)]

    # -------------------------------------------------------------------------
    # Change feed
    # -------------------------------------------------------------------------

    async def get_start_cursor(self) -> str:
        """Fetch the baseline page token for the change feed."""
        data = await self._request(
            "GET", "/changes/startPageToken", require_token=True
        )
        token = data.get("startPageToken") if data else None
        if not token:
            raise DriveAPIError(500, "Drive returned no startPageToken")
        return token

    async def poll_changes(self, page_token: str) -> ChangePage:
        """Fetch one page of the change feed."""
        params: dict[str, Any] = {
            "pageToken": page_token,
            "pageSize": CHANGES_PAGE_SIZE,
            "includeRemoved": "true",
            "fields": (
                "nextPageToken,newStartPageToken,"
                f"changes(fileId,removed,file({FILE_FIELDS}))"
            ),
        }
        data = await self._request("GET", "/changes", params=params, require_token=True)
        return map_change_page(data or {})

    async def register_webhook(
        self,
        callback_url: str,
        channel_id: str,
        ttl_seconds: int,
        page_token: str,
        channel_token: str | None = None,
    ) -> dict[str, Any]:
        """Register a push-notification channel on the change feed.

        Args:
            callback_url: Public HTTPS address Google will POST to
            channel_id: Caller-chosen unique channel id
            ttl_seconds: Requested channel lifetime
            page_token: Change-feed position to watch from
            channel_token: Optional secret echoed back in X-Goog-Channel-Token

        Returns:
            Channel resource as returned by Drive
        """
        body: dict[str, Any] = {
            "id": channel_id,
            "type": "web_hook",
            "address": callback_url,
            "expiration": str(epoch_millis(utcnow() + timedelta(seconds=ttl_seconds))),
        }
        if channel_token:
            body["token"] = channel_token
        return await self._request(
            "POST",
            "/changes/watch",
            params={"pageToken": page_token},
            json=body,
            require_token=True,
        )
