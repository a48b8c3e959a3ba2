"""Sticker catalogue database models.

All models use SQLAlchemy 2.0 syntax and stay dialect-portable
(PostgreSQL in production, SQLite for local runs and tests).
"""

from sticker_drive.db.base import Base
from sticker_drive.db.models.collection import Collection
from sticker_drive.db.models.sticker import Sticker
from sticker_drive.db.models.sync_run import SyncRun
from sticker_drive.db.models.sync_state import SyncState

__all__ = [
    "Base",
    "Collection",
    "Sticker",
    "SyncRun",
    "SyncState",
]
