"""Shared fixtures for sticker-drive tests."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

from sticker_drive.config.settings import SyncConfig
from sticker_drive.db.engine import create_engine_for, init_db
from sticker_drive.sync.mappers.drive import DriveFile, DriveFolder

ROOT_FOLDER_ID = "root-folder-0001"


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """File-backed SQLite catalogue, one per test."""
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'stickers.db'}")
    await init_db(engine)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sync_config() -> SyncConfig:
    """Sync tuning with no real sleeping."""
    return SyncConfig(batch_pause_seconds=0, retry_initial_delay=0)


@pytest.fixture
def root_folder_id() -> str:
    return ROOT_FOLDER_ID


def make_file(
    file_id: str,
    name: str,
    parent: str = ROOT_FOLDER_ID,
    mime_type: str = "image/png",
    trashed: bool = False,
    width: int | None = 512,
    height: int | None = 512,
) -> DriveFile:
    """Build a DriveFile as a listing or change would report it."""
    return DriveFile(
        id=file_id,
        name=name,
        mime_type=mime_type,
        parents=[parent],
        trashed=trashed,
        size=2048,
        width=width,
        height=height,
    )


def make_folder(folder_id: str, name: str) -> DriveFolder:
    return DriveFolder(id=folder_id, name=name)
