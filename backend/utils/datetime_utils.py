from datetime import datetime, date, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def to_storage(value: datetime | None) -> datetime:
    """Normalize a datetime to naive UTC for storage; None means now."""
    if value is None:
        value = utcnow()
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None)


def from_storage(value: datetime) -> datetime:
    """Attach UTC to a stored naive datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def window_start(days: int, now: datetime | None = None) -> datetime:
    """Return the aware UTC instant `days` days before `now`."""
    reference = from_storage(to_storage(now))
    return reference - timedelta(days=max(int(days), 0))
