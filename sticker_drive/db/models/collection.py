"""Collection ORM model.

A collection is a themed group of stickers mirrored from one Google Drive
folder. When the configured root folder has no subfolders, the root itself
is mirrored as the implicit "All Stickers" collection.

Design principles:
- drive_folder_id is the reconciliation key (renames never create duplicates)
- slug is globally unique; collisions are disambiguated with a folder id suffix
- Deleting a collection cascades to its stickers
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sticker_drive.db.base import Base, TZDateTime, new_id, utcnow

if TYPE_CHECKING:
    from sticker_drive.db.models.sticker import Sticker


class Collection(Base):
    """Themed sticker group backed by a Drive folder."""

    __tablename__ = "collections"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    # NULL until first matched to a Drive folder (manually seeded rows).
    drive_folder_id: Mapped[str | None] = mapped_column(
        String(128), unique=True, nullable=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    stickers: Mapped[list["Sticker"]] = relationship(
        back_populates="collection",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Collection(id={self.id}, slug={self.slug})>"
