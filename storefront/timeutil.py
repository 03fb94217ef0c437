import time
from datetime import datetime, timezone
from typing import Optional


def to_iso(timestamp: Optional[float] = None) -> str:
    """Unix seconds (default: now) to a UTC ISO-8601 instant, e.g. 2024-01-01T00:00:00.000Z."""
    timestamp = time.time() if timestamp is None else timestamp
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
