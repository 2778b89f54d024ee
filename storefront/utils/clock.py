# storefront/utils/clock.py
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """naive UTC. DB 에는 모두 tz 없는 UTC 로 저장한다 (SQLite 호환)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
