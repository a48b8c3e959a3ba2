from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from sticker_drive.utils.time import utcnow

__all__ = ["Base", "PortableJSON", "TZDateTime", "new_id", "utcnow"]


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TZDateTime(TypeDecorator):
    """Timezone-aware datetime; SQLite drops the offset, so naive reads are UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        return _as_utc(value)

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        return _as_utc(value)


def new_id() -> str:
    """Callable default for string primary keys."""
    return uuid4().hex


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests and local runs)
PortableJSON = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Declarative base for all sticker catalogue ORM models."""

    type_annotation_map = {
        dict: PortableJSON,
    }
