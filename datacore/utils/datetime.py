# datacore/utils/datetime.py
from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc_aware(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        # Naive values coming back from storage are UTC
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
