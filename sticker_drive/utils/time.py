from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def isoformat_or_none(value: Optional[datetime]) -> Optional[str]:
    """ISO8601 string for a datetime, or None."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def epoch_millis(value: datetime) -> int:
    """Milliseconds since the Unix epoch (Drive channel expirations use this)."""
    return int(value.timestamp() * 1000)
