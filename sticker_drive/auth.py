"""Bearer-token sources for the Drive API.

The Drive change feed, push channels and authenticated ``alt=media`` reads
need OAuth credentials; listings and the image proxy's key-based fetches do
not. Token sources hide where a token comes from:

- StaticTokenSource: a pre-issued access token from configuration
- ServiceAccountTokenSource: a short-lived token minted by exchanging a
  signed JWT assertion at Google's token endpoint (via google-auth)
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from google.auth.transport.requests import Request
from google.oauth2 import service_account

from sticker_drive.config.settings import DriveConfig

logger = logging.getLogger(__name__)

DRIVE_SCOPES = [
    "https://www.googleapis.com/auth/drive.readonly",
    "https://www.googleapis.com/auth/drive.metadata.readonly",
]


class TokenSource(ABC):
    """Supplies OAuth bearer tokens."""

    @abstractmethod
    async def get_token(self) -> str:
        """Return a currently valid access token."""
        ...


class StaticTokenSource(TokenSource):
    """A fixed access token (e.g. issued out of band)."""

    def __init__(self, token: str) -> None:
        self._token = token

    async def get_token(self) -> str:
        return self._token


class ServiceAccountTokenSource(TokenSource):
    """Mints and caches service-account access tokens.

    google-auth signs the JWT assertion and performs the token exchange; the
    blocking refresh runs in a worker thread. Tokens are reused until
    google-auth reports them expired.
    """

    def __init__(self, credentials: service_account.Credentials) -> None:
        self._credentials = credentials
        self._lock = asyncio.Lock()

    @classmethod
    def from_file(
        cls, path: str, scopes: list[str] | None = None
    ) -> "ServiceAccountTokenSource":
        credentials = service_account.Credentials.from_service_account_file(
            path, scopes=scopes or DRIVE_SCOPES
        )
        return cls(credentials)

    async def get_token(self) -> str:
        async with self._lock:
            if not self._credentials.valid:
                logger.debug("Refreshing service account access token")
                await asyncio.to_thread(self._credentials.refresh, Request())
            return self._credentials.token


def build_token_source(config: DriveConfig) -> TokenSource | None:
    """Pick the token source for a Drive configuration.

    A service account takes precedence over a static token. Returns None
    when neither is configured.
    """
    if config.service_account_file:
        return ServiceAccountTokenSource.from_file(config.service_account_file)
    if config.access_token:
        return StaticTokenSource(config.access_token)
    return None


def build_service_account_source(config: DriveConfig) -> TokenSource | None:
    """Service-account source only (the image proxy's last-resort strategy)."""
    if config.service_account_file:
        return ServiceAccountTokenSource.from_file(config.service_account_file)
    return None
