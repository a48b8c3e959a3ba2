"""SyncRun repository: append-only audit log of sync attempts."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sticker_drive.db.base import utcnow
from sticker_drive.db.models import SyncRun
from sticker_drive.db.models.sync_run import SYNC_STATUS_STARTED


async def start_sync_run(session: AsyncSession, sync_type: str) -> SyncRun:
    """Insert a ``started`` row for a new sync attempt."""
    run = SyncRun(status=SYNC_STATUS_STARTED, sync_type=sync_type, items_synced=0)
    session.add(run)
    await session.flush()
    return run


async def finish_sync_run(
    session: AsyncSession,
    run_id: int,
    status: str,
    items_synced: int,
    errors: list[str] | None = None,
) -> None:
    """Apply the single terminal update to a sync run."""
    run = await session.get(SyncRun, run_id)
    if run is None:
        return
    run.status = status
    run.items_synced = items_synced
    run.errors = "\n".join(errors) if errors else None
    run.completed_at = utcnow()
    await session.flush()


async def recent_sync_runs(session: AsyncSession, limit: int = 10) -> list[SyncRun]:
    result = await session.execute(
        select(SyncRun).order_by(SyncRun.started_at.desc(), SyncRun.id.desc()).limit(limit)
    )
    return list(result.scalars().all())
