"""Tests for sticker_drive.sync.state."""

from __future__ import annotations

import pytest

from sticker_drive.sync.state import PAGE_TOKEN_KEY, SyncStateManager


class TestSyncStateManager:
    """Tests for SyncStateManager against a real database."""

    @pytest.mark.asyncio
    async def test_missing_token_is_none(self, session_factory):
        async with session_factory() as session:
            assert await SyncStateManager(session).get_page_token() is None

    @pytest.mark.asyncio
    async def test_set_then_get(self, session_factory):
        async with session_factory() as session:
            await SyncStateManager(session).set_page_token("100")
            await session.commit()

        async with session_factory() as session:
            assert await SyncStateManager(session).get_page_token() == "100"

    @pytest.mark.asyncio
    async def test_overwrite_keeps_single_row(self, session_factory):
        async with session_factory() as session:
            state = SyncStateManager(session)
            await state.set_page_token("100")
            await state.set_page_token("200")
            await session.commit()

        async with session_factory() as session:
            state = SyncStateManager(session)
            assert await state.get_value(PAGE_TOKEN_KEY) == "200"

    @pytest.mark.asyncio
    async def test_uncommitted_write_is_discarded(self, session_factory):
        async with session_factory() as session:
            await SyncStateManager(session).set_page_token("100")

        async with session_factory() as session:
            assert await SyncStateManager(session).get_page_token() is None
