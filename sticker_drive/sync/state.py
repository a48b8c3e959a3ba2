"""Persisted sync state management.

Provides get/set access to the ``sync_state`` key-value table. The key of
interest is the Drive change-feed page token, which must survive restarts.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from sticker_drive.db.base import utcnow
from sticker_drive.db.models import SyncState

PAGE_TOKEN_KEY = "drive_page_token"


class SyncStateManager:
    """Manages SyncState records for cursor persistence."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_value(self, key: str) -> str | None:
        """Get the stored value for a key, or None if not set."""
        state = await self.session.get(SyncState, key)
        return state.value if state else None

    async def set_value(self, key: str, value: str) -> None:
        """Insert or update the value for a key."""
        state = await self.session.get(SyncState, key)
        if state is None:
            self.session.add(SyncState(key=key, value=value))
        else:
            state.value = value
            state.updated_at = utcnow()
        await self.session.flush()

    async def get_page_token(self) -> str | None:
        """Change-feed resumption token, or None if no baseline exists."""
        return await self.get_value(PAGE_TOKEN_KEY)

    async def set_page_token(self, token: str) -> None:
        await self.set_value(PAGE_TOKEN_KEY, token)
