"""Date manipulation utilities"""

from datetime import datetime, timedelta, timezone
from typing import Callable

# Injectable time source; services never call datetime.now() directly
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start) / timedelta(hours=1)
