"""Tests for sticker_drive.sync.full_sync against a real database."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from sticker_drive.db.models import Collection, Sticker
from sticker_drive.sync.full_sync import run_full_sync
from sticker_drive.sync.state import SyncStateManager

from conftest import make_file, make_folder


def _make_client(
    folders: list | None = None,
    files_by_folder: dict | None = None,
    can_read_changes: bool = False,
) -> MagicMock:
    """A DriveClient stand-in serving a fixed folder tree."""
    files_by_folder = files_by_folder if files_by_folder is not None else {}
    client = MagicMock()
    client.can_read_changes = can_read_changes
    client.list_folders = AsyncMock(return_value=folders or [])
    client.list_files = AsyncMock(side_effect=lambda folder_id: files_by_folder.get(folder_id, []))
    client.get_start_cursor = AsyncMock(return_value="start-token")
    return client


async def _snapshot(session_factory) -> dict:
    async with session_factory() as session:
        collections = (await session.execute(select(Collection))).scalars().all()
        stickers = (await session.execute(select(Sticker))).scalars().all()
    return {
        "collections": {
            c.drive_folder_id: (c.id, c.name, c.slug, c.sort_order, c.updated_at)
            for c in collections
        },
        "stickers": {
            s.drive_id: (s.id, s.title, s.filename, s.collection_id, s.updated_at)
            for s in stickers
        },
    }


# ---------------------------------------------------------------------------
# TestFlatRoot
# ---------------------------------------------------------------------------


class TestFlatRoot:
    """A root folder with images and no subfolders."""

    @pytest.mark.asyncio
    async def test_single_all_stickers_collection(
        self, session_factory, sync_config, root_folder_id
    ):
        files = [make_file(f"f{i}", f"Sticker-{i}.png") for i in range(3)]
        client = _make_client(files_by_folder={root_folder_id: files})

        result = await run_full_sync(client, session_factory, root_folder_id, sync_config)

        snapshot = await _snapshot(session_factory)
        assert result.items_synced == 3
        assert result.errors == []
        assert list(snapshot["collections"]) == [root_folder_id]
        _, name, slug, _, _ = snapshot["collections"][root_folder_id]
        assert (name, slug) == ("All Stickers", "all-stickers")
        assert len(snapshot["stickers"]) == 3


# ---------------------------------------------------------------------------
# TestFolderTree
# ---------------------------------------------------------------------------


class TestFolderTree:
    """A root folder whose subfolders are collections."""

    @pytest.mark.asyncio
    async def test_folders_become_ordered_collections(
        self, session_factory, sync_config, root_folder_id
    ):
        client = _make_client(
            folders=[make_folder("fa", "Spot Fakes"), make_folder("fb", "Check Sources")],
            files_by_folder={
                "fa": [make_file("a1", "one.png", parent="fa")],
                "fb": [
                    make_file("b1", "two.png", parent="fb"),
                    make_file("b2", "three.png", parent="fb"),
                ],
            },
        )

        result = await run_full_sync(client, session_factory, root_folder_id, sync_config)

        snapshot = await _snapshot(session_factory)
        assert result.items_synced == 3
        assert result.collections_synced == 2
        assert snapshot["collections"]["fa"][3] == 1
        assert snapshot["collections"]["fb"][3] == 2
        assert snapshot["collections"]["fb"][2] == "check-sources"
        assert snapshot["stickers"]["b2"][3] == snapshot["collections"]["fb"][0]

    @pytest.mark.asyncio
    async def test_second_run_is_a_no_op(self, session_factory, sync_config, root_folder_id):
        client = _make_client(
            folders=[make_folder("fa", "Facts")],
            files_by_folder={"fa": [make_file("a1", "one.png", parent="fa")]},
        )

        await run_full_sync(client, session_factory, root_folder_id, sync_config)
        before = await _snapshot(session_factory)
        await run_full_sync(client, session_factory, root_folder_id, sync_config)
        after = await _snapshot(session_factory)

        assert after == before

    @pytest.mark.asyncio
    async def test_converges_on_listing(self, session_factory, sync_config, root_folder_id):
        files = {
            "fa": [
                make_file("a1", "Keep-Me.png", parent="fa"),
                make_file("a2", "Drop-Me.png", parent="fa"),
            ]
        }
        client = _make_client(folders=[make_folder("fa", "Facts")], files_by_folder=files)
        await run_full_sync(client, session_factory, root_folder_id, sync_config)
        before = await _snapshot(session_factory)

        files["fa"] = [make_file("a1", "Renamed.png", parent="fa")]
        result = await run_full_sync(client, session_factory, root_folder_id, sync_config)

        after = await _snapshot(session_factory)
        assert result.stale_removed == 1
        assert set(after["stickers"]) == {"a1"}
        assert after["stickers"]["a1"][0] == before["stickers"]["a1"][0]
        assert after["stickers"]["a1"][1] == "Renamed"

    @pytest.mark.asyncio
    async def test_move_to_later_collection_keeps_sticker(
        self, session_factory, sync_config, root_folder_id
    ):
        files = {"fa": [make_file("m1", "Moving.png", parent="fa")], "fb": []}
        client = _make_client(
            folders=[make_folder("fa", "Alpha"), make_folder("fb", "Beta")],
            files_by_folder=files,
        )
        await run_full_sync(client, session_factory, root_folder_id, sync_config)
        before = await _snapshot(session_factory)

        files["fa"] = []
        files["fb"] = [make_file("m1", "Moving.png", parent="fb")]
        result = await run_full_sync(client, session_factory, root_folder_id, sync_config)

        after = await _snapshot(session_factory)
        assert result.stale_removed == 0
        assert after["stickers"]["m1"][0] == before["stickers"]["m1"][0]
        assert after["stickers"]["m1"][3] == after["collections"]["fb"][0]

    @pytest.mark.asyncio
    async def test_folder_rename_keeps_collection(
        self, session_factory, sync_config, root_folder_id
    ):
        client = _make_client(folders=[make_folder("fa", "Facts")])
        await run_full_sync(client, session_factory, root_folder_id, sync_config)
        before = await _snapshot(session_factory)

        client.list_folders.return_value = [make_folder("fa", "Fact Checks")]
        await run_full_sync(client, session_factory, root_folder_id, sync_config)

        after = await _snapshot(session_factory)
        assert after["collections"]["fa"][0] == before["collections"]["fa"][0]
        assert after["collections"]["fa"][1:3] == ("Fact Checks", "fact-checks")

    @pytest.mark.asyncio
    async def test_same_names_get_distinct_slugs(
        self, session_factory, sync_config, root_folder_id
    ):
        client = _make_client(
            folders=[make_folder("folder-one", "Facts"), make_folder("folder-two", "Facts")]
        )

        await run_full_sync(client, session_factory, root_folder_id, sync_config)

        snapshot = await _snapshot(session_factory)
        slugs = {c[2] for c in snapshot["collections"].values()}
        assert slugs == {"facts", "facts-folder"}


# ---------------------------------------------------------------------------
# TestFailures
# ---------------------------------------------------------------------------


class TestFailures:
    """Listing failures and baseline capture."""

    @pytest.mark.asyncio
    async def test_failed_listing_skips_pruning(
        self, session_factory, sync_config, root_folder_id
    ):
        files = {
            "fa": [make_file("a1", "one.png", parent="fa")],
            "fb": [make_file("b1", "two.png", parent="fb")],
        }
        client = _make_client(
            folders=[make_folder("fa", "A"), make_folder("fb", "B")], files_by_folder=files
        )
        await run_full_sync(client, session_factory, root_folder_id, sync_config)

        def flaky_listing(folder_id):
            if folder_id == "fa":
                raise RuntimeError("Drive unavailable")
            return files[folder_id]

        client.list_files.side_effect = flaky_listing
        result = await run_full_sync(client, session_factory, root_folder_id, sync_config)

        snapshot = await _snapshot(session_factory)
        assert set(snapshot["stickers"]) == {"a1", "b1"}
        assert result.stale_removed == 0
        assert result.items_synced == 1
        assert len(result.errors) == 1
        assert "pruning skipped" in result.errors[0]

    @pytest.mark.asyncio
    async def test_root_listing_failure_raises(
        self, session_factory, sync_config, root_folder_id
    ):
        client = _make_client()
        client.list_folders.side_effect = RuntimeError("Drive unavailable")

        with pytest.raises(RuntimeError):
            await run_full_sync(client, session_factory, root_folder_id, sync_config)

        assert client.list_folders.await_count == sync_config.retry_attempts

    @pytest.mark.asyncio
    async def test_stores_baseline_when_missing(
        self, session_factory, sync_config, root_folder_id
    ):
        client = _make_client(can_read_changes=True)

        await run_full_sync(client, session_factory, root_folder_id, sync_config)

        async with session_factory() as session:
            assert await SyncStateManager(session).get_page_token() == "start-token"

    @pytest.mark.asyncio
    async def test_keeps_existing_baseline(
        self, session_factory, sync_config, root_folder_id
    ):
        async with session_factory() as session:
            await SyncStateManager(session).set_page_token("existing")
            await session.commit()
        client = _make_client(can_read_changes=True)

        await run_full_sync(client, session_factory, root_folder_id, sync_config)

        client.get_start_cursor.assert_not_awaited()
        async with session_factory() as session:
            assert await SyncStateManager(session).get_page_token() == "existing"

    @pytest.mark.asyncio
    async def test_baseline_failure_is_not_fatal(
        self, session_factory, sync_config, root_folder_id
    ):
        client = _make_client(can_read_changes=True)
        client.get_start_cursor.side_effect = RuntimeError("quota")

        result = await run_full_sync(client, session_factory, root_folder_id, sync_config)

        assert any("baseline" in e for e in result.errors)
