"""Timezone policy: every timestamp is timezone-aware UTC."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def ensure_utc(now: Optional[datetime] = None) -> datetime:
    """Return `now` as an aware datetime (naive values are taken as UTC), or utc_now() if None."""
    if now is None:
        return utc_now()
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now
