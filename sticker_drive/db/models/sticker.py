"""Sticker ORM model.

Stickers are LATEST-STATE SNAPSHOTS of Drive image files: each sync
overwrites title, filename, tags and caption in place.

Design principles:
- drive_id is the reconciliation key; at most one row per Drive file
- source_url/thumbnail_url are image proxy paths, never raw Drive URLs
- tags is a bounded list (max 5) of lowercase keywords
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sticker_drive.db.base import Base, PortableJSON, TZDateTime, new_id, utcnow

if TYPE_CHECKING:
    from sticker_drive.db.models.collection import Collection


class Sticker(Base):
    """One downloadable sticker image."""

    __tablename__ = "stickers"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    # NULL for manually seeded records.
    drive_id: Mapped[str | None] = mapped_column(
        String(128), unique=True, nullable=True
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    source_url: Mapped[str] = mapped_column(String(512), nullable=False)
    thumbnail_url: Mapped[str] = mapped_column(String(512), nullable=False)
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str]] = mapped_column(PortableJSON, nullable=False, default=list)

    collection_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("collections.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Optional image metadata reported by the Drive listing.
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    collection: Mapped["Collection"] = relationship(back_populates="stickers")

    __table_args__ = (Index("ix_stickers_collection_id", "collection_id"),)

    def __repr__(self) -> str:
        return f"<Sticker(id={self.id}, drive_id={self.drive_id}, title={self.title})>"
