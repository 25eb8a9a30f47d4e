from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def epoch_ms(value: Optional[datetime]) -> float:
    """Milliseconds since the epoch; a missing timestamp sorts as 0."""
    value = ensure_utc(value)
    if value is None:
        return 0.0
    return value.timestamp() * 1000.0
