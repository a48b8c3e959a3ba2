"""Tests for sticker_drive.sync.run."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio

from sticker_drive.config.settings import AppSettings, DriveConfig, SyncConfig
from sticker_drive.db.engine import dispose_engines
from sticker_drive.images.cache import ImageCache
from sticker_drive.sync.result import SyncResult
from sticker_drive.sync.run import SyncOrchestrator, SyncReport, run_sync
from sticker_drive.sync.state import SyncStateManager
from sticker_drive.sync.throttle import SyncThrottle

from conftest import ROOT_FOLDER_ID, make_file


def _make_settings(tmp_path, **drive_overrides) -> AppSettings:
    drive = {"root_folder_id": ROOT_FOLDER_ID, "api_key": "key", "access_token": "token"}
    drive.update(drive_overrides)
    return AppSettings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'stickers.db'}",
        app_url="https://stickers.example.org/",
        drive=DriveConfig(**drive),
        sync=SyncConfig(retry_initial_delay=0, batch_pause_seconds=0),
    )


def _make_client(files: list | None = None, can_read_changes: bool = True) -> MagicMock:
    client = MagicMock()
    client.can_read_changes = can_read_changes
    client.list_folders = AsyncMock(return_value=[])
    client.list_files = AsyncMock(return_value=files if files is not None else [])
    client.get_start_cursor = AsyncMock(return_value="start-token")
    client.register_webhook = AsyncMock(return_value={"id": "chan"})
    return client


@pytest_asyncio.fixture
async def build_orchestrator(tmp_path):
    """Factory for orchestrators on a fresh database."""

    async def build(
        client=None, image_cache=None, throttle=None, **drive_overrides
    ) -> SyncOrchestrator:
        orchestrator = SyncOrchestrator(
            _make_settings(tmp_path, **drive_overrides),
            client or _make_client(),
            image_cache=image_cache,
            throttle=throttle,
        )
        await orchestrator.init_db()
        return orchestrator

    yield build
    await dispose_engines()


# ---------------------------------------------------------------------------
# TestConfiguration
# ---------------------------------------------------------------------------


class TestConfiguration:
    """Runs refused before starting."""

    @pytest.mark.asyncio
    async def test_missing_root_folder(self, build_orchestrator):
        orch = await build_orchestrator(root_folder_id="")

        report = await orch.trigger_sync()

        assert report.status == "not_configured"
        assert report.run_id is None
        assert (await orch.sync_overview())["recentSyncs"] == []

    @pytest.mark.asyncio
    async def test_incremental_needs_oauth(self, build_orchestrator):
        orch = await build_orchestrator(client=_make_client(can_read_changes=False))

        report = await orch.trigger_sync(full=False)

        assert report.status == "not_configured"

    @pytest.mark.asyncio
    async def test_full_needs_some_credential(self, build_orchestrator):
        orch = await build_orchestrator(
            client=_make_client(can_read_changes=False), api_key=""
        )

        report = await orch.trigger_auto_sync()

        assert report.status == "not_configured"
        assert "API key" in report.error


# ---------------------------------------------------------------------------
# TestRunRecords
# ---------------------------------------------------------------------------


class TestRunRecords:
    """sync_runs rows and reports."""

    @pytest.mark.asyncio
    async def test_successful_full_sync(self, build_orchestrator):
        cache = ImageCache()
        cache.set("old", None, b"x" * 100, "image/png")
        files = [make_file("f1", "One.png"), make_file("f2", "Two.png")]
        orch = await build_orchestrator(client=_make_client(files), image_cache=cache)

        report = await orch.trigger_sync(full=True)

        assert report.status == "synced"
        assert report.items_synced == 2
        assert report.errors == []
        assert len(cache) == 0
        overview = await orch.sync_overview()
        assert overview["stats"] == {"stickers": 2, "collections": 1}
        run = overview["recentSyncs"][0]
        assert run["id"] == report.run_id
        assert run["status"] == "completed"
        assert run["syncType"] == "full"
        assert run["itemsSynced"] == 2

    @pytest.mark.asyncio
    async def test_empty_sync_keeps_cache(self, build_orchestrator):
        cache = ImageCache()
        cache.set("old", None, b"x" * 100, "image/png")
        orch = await build_orchestrator(image_cache=cache)

        await orch.trigger_sync()

        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_item_errors_mark_completed_with_errors(self, build_orchestrator):
        orch = await build_orchestrator()
        partial = SyncResult(items_synced=1, errors=["bad.png: boom"])

        with patch("sticker_drive.sync.run.run_full_sync", new_callable=AsyncMock) as mock_sync:
            mock_sync.side_effect = lambda *args: _fill(args[-1], partial)
            report = await orch.trigger_sync()

        assert report.status == "synced"
        assert report.errors == ["bad.png: boom"]
        run = (await orch.sync_overview())["recentSyncs"][0]
        assert run["status"] == "completed_with_errors"
        assert run["errors"] == "bad.png: boom"

    @pytest.mark.asyncio
    async def test_failure_marks_run_failed(self, build_orchestrator):
        orch = await build_orchestrator()

        with patch(
            "sticker_drive.sync.run.run_full_sync",
            new_callable=AsyncMock,
            side_effect=RuntimeError("Drive unavailable"),
        ):
            report = await orch.trigger_sync()

        assert report.status == "error"
        assert report.error == "Drive unavailable"
        assert not orch.throttle.is_syncing
        assert orch.throttle.last_sync_at is None
        run = (await orch.sync_overview())["recentSyncs"][0]
        assert run["status"] == "failed"
        assert "Drive unavailable" in run["errors"]

    @pytest.mark.asyncio
    async def test_incremental_without_baseline(self, build_orchestrator):
        orch = await build_orchestrator()

        report = await orch.trigger_sync(full=False)

        assert report.status == "no_baseline"
        run = (await orch.sync_overview())["recentSyncs"][0]
        assert run["status"] == "failed"
        assert run["syncType"] == "incremental"


def _fill(target: SyncResult, source: SyncResult) -> SyncResult:
    target.items_synced = source.items_synced
    target.errors.extend(source.errors)
    return target


# ---------------------------------------------------------------------------
# TestThrottling
# ---------------------------------------------------------------------------


class TestThrottling:
    """How the triggers interact with the throttle."""

    @pytest.mark.asyncio
    async def test_auto_sync_is_throttled(self, build_orchestrator):
        orch = await build_orchestrator()

        first = await orch.trigger_auto_sync()
        second = await orch.trigger_auto_sync()

        assert first.status == "synced"
        assert second.status == "throttled"
        assert second.run_id is None
        assert 0 < second.next_sync_in <= 120
        assert second.last_sync is not None

    @pytest.mark.asyncio
    async def test_throttled_report_rounds_wait_up(self, build_orchestrator):
        clock = MagicMock(return_value=1000.0)
        orch = await build_orchestrator(throttle=SyncThrottle(120, clock=clock))
        await orch.trigger_auto_sync()

        clock.return_value = 1000.0 + 30.5
        report = await orch.trigger_auto_sync()

        assert report.status == "throttled"
        assert report.next_sync_in == 90
        assert report.to_dict()["nextSyncIn"] == 90

    @pytest.mark.asyncio
    async def test_explicit_and_webhook_ignore_interval(self, build_orchestrator):
        orch = await build_orchestrator()
        await orch.trigger_auto_sync()
        async with orch.async_session() as session:
            await SyncStateManager(session).set_page_token("t1")
            await session.commit()
        orch.client.poll_changes = AsyncMock(
            return_value=MagicMock(changes=[], next_token=None, new_start_token="t2")
        )

        explicit = await orch.trigger_sync()
        webhook = await orch.trigger_webhook_sync()

        assert explicit.status == "synced"
        assert webhook.status == "synced"
        assert webhook.sync_type == "incremental"

    @pytest.mark.asyncio
    async def test_in_flight_run_refuses_others(self, build_orchestrator):
        orch = await build_orchestrator()
        orch.throttle.try_begin()

        for report in (
            await orch.trigger_sync(),
            await orch.trigger_webhook_sync(),
            await orch.trigger_auto_sync(),
        ):
            assert report.status == "already_syncing"
            assert report.run_id is None


# ---------------------------------------------------------------------------
# TestWebhookSetup
# ---------------------------------------------------------------------------


class TestWebhookSetup:
    """Push channel registration after a sync."""

    @pytest.mark.asyncio
    async def test_registers_channel(self, build_orchestrator):
        orch = await build_orchestrator(webhook_channel_token="shh")

        report = await orch.trigger_sync(setup_webhook=True)

        assert report.webhook_setup is True
        orch.client.register_webhook.assert_awaited_once()
        args, kwargs = orch.client.register_webhook.call_args
        assert args[0] == "https://stickers.example.org/api/webhooks/google-drive"
        assert kwargs["page_token"] == "start-token"
        assert kwargs["channel_token"] == "shh"
        assert kwargs["ttl_seconds"] == 7 * 24 * 60 * 60

    @pytest.mark.asyncio
    async def test_registration_failure_is_reported(self, build_orchestrator):
        orch = await build_orchestrator()
        orch.client.register_webhook.side_effect = RuntimeError("forbidden")

        report = await orch.trigger_sync(setup_webhook=True)

        assert report.status == "synced"
        assert report.webhook_setup is False
        assert any("Failed to setup webhook" in e for e in report.errors)
        run = (await orch.sync_overview())["recentSyncs"][0]
        assert run["status"] == "completed_with_errors"


# ---------------------------------------------------------------------------
# TestSyncReport
# ---------------------------------------------------------------------------


class TestSyncReport:
    """Tests for SyncReport.to_dict."""

    def test_drops_empty_fields(self):
        data = SyncReport("throttled", "full", next_sync_in=30).to_dict()

        assert data["status"] == "throttled"
        assert data["nextSyncIn"] == 30
        assert "errors" not in data
        assert "syncRunId" not in data
        assert "timestamp" in data

    def test_synced_fields(self):
        data = SyncReport("synced", "full", run_id=3, items_synced=0, webhook_setup=False).to_dict()

        assert data["syncRunId"] == 3
        assert data["itemsSynced"] == 0
        assert data["webhookSetup"] is False


# ---------------------------------------------------------------------------
# TestRunSync
# ---------------------------------------------------------------------------


class TestRunSync:
    """Tests for the CLI entry coroutine."""

    @pytest.mark.asyncio
    @patch("sticker_drive.sync.run.dispose_engines", new_callable=AsyncMock)
    @patch("sticker_drive.sync.run.SyncOrchestrator")
    @patch("sticker_drive.sync.run.DriveClient")
    @patch("sticker_drive.sync.run.load_config")
    async def test_wires_client_and_orchestrator(
        self, mock_load, mock_client_cls, mock_orch_cls, mock_dispose, tmp_path
    ):
        settings = _make_settings(tmp_path)
        mock_load.return_value = settings
        client = MagicMock()
        mock_client_cls.return_value.__aenter__ = AsyncMock(return_value=client)
        mock_client_cls.return_value.__aexit__ = AsyncMock(return_value=False)
        orch = mock_orch_cls.return_value
        orch.init_db = AsyncMock()
        orch.trigger_sync = AsyncMock(return_value=SyncReport("synced", "incremental"))

        report = await run_sync("cfg.json", full=False, setup_webhook=True)

        assert report.status == "synced"
        mock_load.assert_called_once_with("cfg.json")
        mock_orch_cls.assert_called_once_with(settings, client)
        orch.trigger_sync.assert_awaited_once_with(full=False, setup_webhook=True)
        mock_dispose.assert_awaited_once()
