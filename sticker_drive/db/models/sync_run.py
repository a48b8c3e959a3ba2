"""SyncRun ORM model.

One row per sync attempt, used purely for observability. Rows are
append-only apart from a single terminal update:

    started -> completed | completed_with_errors | failed
"""

from datetime import datetime

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sticker_drive.db.base import Base, TZDateTime, utcnow

SYNC_STATUS_STARTED = "started"
SYNC_STATUS_COMPLETED = "completed"
SYNC_STATUS_COMPLETED_WITH_ERRORS = "completed_with_errors"
SYNC_STATUS_FAILED = "failed"

SYNC_TYPE_FULL = "full"
SYNC_TYPE_INCREMENTAL = "incremental"


class SyncRun(Base):
    """Audit record of a single sync run."""

    __tablename__ = "sync_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=SYNC_STATUS_STARTED
    )
    sync_type: Mapped[str] = mapped_column(String(16), nullable=False)
    items_synced: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Newline-joined error messages; NULL when the run had none.
    errors: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(TZDateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status,
            "syncType": self.sync_type,
            "itemsSynced": self.items_synced,
            "errors": self.errors,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }

    def __repr__(self) -> str:
        return f"<SyncRun(id={self.id}, type={self.sync_type}, status={self.status})>"
