"""Main orchestration for Drive sync.

Wraps the reconciliation engine with the throttle, the ``sync_runs`` audit
log, webhook registration and image-cache invalidation. Every trigger
(opportunistic, explicit, webhook, CLI) goes through SyncOrchestrator.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from sticker_drive.auth import build_token_source
from sticker_drive.config.settings import AppSettings, load_config
from sticker_drive.core import BaseOrchestrator
from sticker_drive.db.engine import dispose_engines
from sticker_drive.db.models.sync_run import (
    SYNC_STATUS_COMPLETED,
    SYNC_STATUS_COMPLETED_WITH_ERRORS,
    SYNC_STATUS_FAILED,
    SYNC_TYPE_FULL,
    SYNC_TYPE_INCREMENTAL,
)
from sticker_drive.db.repositories import (
    count_collections,
    count_stickers,
    finish_sync_run,
    recent_sync_runs,
    start_sync_run,
)
from sticker_drive.images.cache import ImageCache
from sticker_drive.sync.client import DriveClient
from sticker_drive.sync.errors import ConfigurationError, MissingBaselineError
from sticker_drive.sync.full_sync import run_full_sync
from sticker_drive.sync.incremental import run_incremental_sync
from sticker_drive.sync.logger import logger
from sticker_drive.sync.result import SyncResult
from sticker_drive.sync.state import SyncStateManager
from sticker_drive.sync.throttle import THROTTLED, SyncThrottle
from sticker_drive.utils.json import compact_json
from sticker_drive.utils.time import utcnow

# Report statuses (throttle refusals use the throttle's own reasons)
STATUS_SYNCED = "synced"
STATUS_ERROR = "error"
STATUS_NOT_CONFIGURED = "not_configured"
STATUS_NO_BASELINE = "no_baseline"


@dataclass
class SyncReport:
    """What a trigger did, shaped for API responses via to_dict()."""

    status: str
    sync_type: str
    run_id: int | None = None
    items_synced: int | None = None
    errors: list[str] = field(default_factory=list)
    error: str | None = None
    last_sync: str | None = None
    next_sync_in: int | None = None
    webhook_setup: bool | None = None
    result: SyncResult | None = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return compact_json(
            {
                "status": self.status,
                "syncType": self.sync_type,
                "syncRunId": self.run_id,
                "itemsSynced": self.items_synced,
                "errors": self.errors or None,
                "error": self.error,
                "lastSync": self.last_sync,
                "nextSyncIn": self.next_sync_in,
                "webhookSetup": self.webhook_setup,
                "timestamp": utcnow().isoformat(),
            }
        )


class SyncOrchestrator(BaseOrchestrator):
    """Orchestrates sync runs for one application instance."""

    def __init__(
        self,
        settings: AppSettings,
        client: DriveClient,
        throttle: SyncThrottle | None = None,
        image_cache: ImageCache | None = None,
    ) -> None:
        super().__init__(settings.database_url)
        self.settings = settings
        self.client = client
        self.throttle = throttle or SyncThrottle(settings.sync.min_interval_seconds)
        self.image_cache = image_cache

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    async def trigger_auto_sync(self) -> SyncReport:
        """Opportunistic full sync, subject to the minimum interval."""
        return await self.run(sync_type=SYNC_TYPE_FULL, enforce_interval=True)

    async def trigger_sync(
        self, full: bool = True, setup_webhook: bool = False
    ) -> SyncReport:
        """Explicit sync; only refused while another run is in flight."""
        return await self.run(
            sync_type=SYNC_TYPE_FULL if full else SYNC_TYPE_INCREMENTAL,
            enforce_interval=False,
            setup_webhook=setup_webhook,
        )

    async def trigger_webhook_sync(self) -> SyncReport:
        """Incremental sync in response to a push notification."""
        return await self.run(sync_type=SYNC_TYPE_INCREMENTAL, enforce_interval=False)

    async def sync_overview(self, limit: int = 10) -> dict[str, Any]:
        """Recent runs plus catalogue counts."""
        async with self.async_session() as session:
            runs = await recent_sync_runs(session, limit)
            stickers = await count_stickers(session)
            collections = await count_collections(session)
        return {
            "recentSyncs": [run.to_dict() for run in runs],
            "stats": {"stickers": stickers, "collections": collections},
            "throttle": self.throttle.status(),
        }

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    async def _run_pipeline(
        self,
        sync_type: str = SYNC_TYPE_FULL,
        enforce_interval: bool = True,
        setup_webhook: bool = False,
    ) -> SyncReport:
        problem = self._configuration_problem(sync_type)
        if problem:
            logger.warning(f"Sync not started: {problem}")
            return SyncReport(STATUS_NOT_CONFIGURED, sync_type, error=problem)

        async with self.throttle.acquire(enforce_interval) as decision:
            if not decision.allowed:
                logger.info(f"Sync skipped: {decision.reason}")
                return SyncReport(
                    decision.reason,
                    sync_type,
                    last_sync=self.throttle.status()["lastSync"],
                    next_sync_in=(
                        self.throttle.next_sync_in() if decision.reason == THROTTLED else None
                    ),
                )
            return await self._execute(sync_type, setup_webhook)

    def _log_summary(self, report: SyncReport, elapsed: float) -> None:
        if report.result is None:
            return
        extra: dict[str, int] = {}
        if report.sync_type == SYNC_TYPE_FULL:
            extra["stale_removed"] = report.result.stale_removed
        else:
            extra["pages"] = report.result.pages_processed
        logger.summary(
            sync_type=report.sync_type,
            items=report.result.items_synced,
            errors=len(report.result.errors) + (1 if report.error else 0),
            elapsed=elapsed,
            **extra,
        )

    def _configuration_problem(self, sync_type: str) -> str | None:
        drive = self.settings.drive
        if not drive.root_folder_id:
            return "Drive root folder not configured"
        if sync_type == SYNC_TYPE_INCREMENTAL and not self.client.can_read_changes:
            return "Drive OAuth credentials not configured"
        if not drive.api_key and not self.client.can_read_changes:
            return "Drive API key not configured"
        return None

    async def _execute(self, sync_type: str, setup_webhook: bool) -> SyncReport:
        result = SyncResult()
        async with self.async_session() as session:
            run = await start_sync_run(session, sync_type)
            await session.commit()
            run_id = run.id

        logger.info(f"Starting {sync_type} sync (run {run_id})")
        root_folder_id = self.settings.drive.root_folder_id
        try:
            if sync_type == SYNC_TYPE_FULL:
                await run_full_sync(
                    self.client, self.async_session, root_folder_id, self.settings.sync, result
                )
            else:
                await run_incremental_sync(
                    self.client, self.async_session, root_folder_id, self.settings.sync, result
                )
        except (MissingBaselineError, ConfigurationError) as e:
            status = (
                STATUS_NO_BASELINE
                if isinstance(e, MissingBaselineError)
                else STATUS_NOT_CONFIGURED
            )
            logger.warning(str(e))
            await self._finish(run_id, SYNC_STATUS_FAILED, result, str(e))
            return SyncReport(status, sync_type, run_id, error=str(e))
        except Exception as e:
            logger.error(f"{sync_type.capitalize()} sync failed: {e}")
            await self._finish(run_id, SYNC_STATUS_FAILED, result, str(e))
            return SyncReport(
                STATUS_ERROR,
                sync_type,
                run_id,
                items_synced=result.items_synced,
                errors=result.errors,
                error=str(e),
                result=result,
            )

        webhook_setup = await self._register_webhook(result) if setup_webhook else None

        status = SYNC_STATUS_COMPLETED_WITH_ERRORS if result.errors else SYNC_STATUS_COMPLETED
        await self._finish(run_id, status, result)
        self.throttle.mark_synced()

        if result.items_synced > 0 and self.image_cache is not None:
            cleared = self.image_cache.clear()
            logger.debug(f"Cleared {cleared} cached images")

        return SyncReport(
            STATUS_SYNCED,
            sync_type,
            run_id,
            items_synced=result.items_synced,
            errors=result.errors,
            last_sync=self.throttle.status()["lastSync"],
            webhook_setup=webhook_setup,
            result=result,
        )

    async def _finish(
        self, run_id: int, status: str, result: SyncResult, error: str | None = None
    ) -> None:
        errors = result.errors + [error] if error else result.errors
        async with self.async_session() as session:
            await finish_sync_run(session, run_id, status, result.items_synced, errors)
            await session.commit()

    async def _register_webhook(self, result: SyncResult) -> bool:
        """Register a push channel on the change feed.

        Failures are recorded on the result rather than failing the run.
        """
        callback_url = self.settings.webhook_url
        if not callback_url:
            result.errors.append("Webhook not registered: app_url not configured")
            return False

        try:
            async with self.async_session() as session:
                state = SyncStateManager(session)
                token = await state.get_page_token()
                if token is None:
                    token = await self.client.get_start_cursor()
                    await state.set_page_token(token)
                    await session.commit()

            channel = await self.client.register_webhook(
                callback_url,
                channel_id=uuid.uuid4().hex,
                ttl_seconds=self.settings.sync.webhook_ttl_seconds,
                page_token=token,
                channel_token=self.settings.drive.webhook_channel_token or None,
            )
        except Exception as e:
            result.errors.append(f"Failed to setup webhook: {e}")
            return False

        logger.info(f"Registered webhook channel {(channel or {}).get('id')} -> {callback_url}")
        return True


async def run_sync(
    config_path: str = "config.json",
    full: bool = True,
    setup_webhook: bool = False,
) -> SyncReport:
    """Entry point for a one-off sync from the command line."""
    settings = load_config(config_path)
    async with DriveClient(
        api_key=settings.drive.api_key,
        token_source=build_token_source(settings.drive),
    ) as client:
        orchestrator = SyncOrchestrator(settings, client)
        try:
            await orchestrator.init_db()
            return await orchestrator.trigger_sync(full=full, setup_webhook=setup_webhook)
        finally:
            await dispose_engines()
