"""SyncState ORM model.

Generic key -> string value store for sync metadata that must survive
process restarts (e.g. the Drive change-feed page token).
"""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from sticker_drive.db.base import Base, TZDateTime, utcnow


class SyncState(Base):
    """Key-value row for persisted sync state."""

    __tablename__ = "sync_state"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(1024), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<SyncState(key={self.key}, value={self.value})>"
