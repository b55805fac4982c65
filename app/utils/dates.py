"""Timestamp helpers. All stored timestamps are naive UTC."""
from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hours_ago(hours: int, now: datetime | None = None) -> datetime:
    return (now or utcnow()) - timedelta(hours=hours)
