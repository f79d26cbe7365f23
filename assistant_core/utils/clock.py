"""Clock implementations (epoch milliseconds)."""

import time
from datetime import datetime, timezone


def to_epoch_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


class SystemClock:
    """Wall clock."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000


class FixedClock:
    """Clock frozen at a given instant, for deterministic resolution."""

    def __init__(self, now_ms: int):
        self._now_ms = now_ms

    def now_ms(self) -> int:
        return self._now_ms

    def advance(self, delta_ms: int) -> None:
        self._now_ms += delta_ms


__all__ = [
    "to_epoch_ms",
    "SystemClock",
    "FixedClock",
]
