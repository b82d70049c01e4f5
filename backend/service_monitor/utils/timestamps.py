"""UTC timestamp helpers.

Timestamps are kept as naive UTC datetimes so they compare cleanly with
values read back from SQLite.
"""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_z(value: Optional[datetime]) -> Optional[str]:
    """Render a naive UTC datetime as ISO-8601 with a trailing Z."""
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds") + "Z"
