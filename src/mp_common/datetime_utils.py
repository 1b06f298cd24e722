"""UTC datetime utilities."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def parse_utc(value: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    asyncpg requires a real datetime for TIMESTAMPTZ parameters, so cursor
    timestamps are parsed here before they reach SQL. Naive values are
    assumed to be UTC.
    """
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
