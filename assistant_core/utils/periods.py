"""Period arithmetic over epoch milliseconds.

A period is identified by the timestamp of its start and its type. All
arithmetic happens on local wall time in the configured timezone, with
DAY/WEEK/MONTH/YEAR periods beginning at ``day_start_hour``.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from assistant_core.errors import TemporalSelectionError


class PeriodType(str, Enum):
    HOUR = "HOUR"
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    YEAR = "YEAR"


@dataclass(frozen=True)
class Period:
    timestamp: int
    type: PeriodType


_RELATIVE_MARKER = re.compile(r"^(-?\d+)_([A-Z]+)$")


def encode_relative_marker(offset: int, period_type: PeriodType) -> str:
    """Encode a relative period as ``"<offset>_<TYPE>"`` (e.g. ``"-2_WEEK"``)."""
    return f"{offset}_{PeriodType(period_type).value}"


def parse_relative_marker(marker: str) -> Tuple[int, PeriodType]:
    match = _RELATIVE_MARKER.match(str(marker).strip())
    if not match:
        raise TemporalSelectionError(f"Malformed relative period marker: {marker!r}")
    offset, type_name = match.groups()
    try:
        return int(offset), PeriodType(type_name)
    except ValueError as e:
        raise TemporalSelectionError(f"Unknown period type in marker: {marker!r}") from e


class PeriodCalculator:
    """Normalizes, shifts and bounds periods in one timezone."""

    def __init__(
        self,
        tz: Optional[tzinfo] = None,
        day_start_hour: int = 0,
        week_start_index: int = 0,
    ):
        self._tz = tz or ZoneInfo("UTC")
        self._day_start_hour = day_start_hour
        self._week_start_index = week_start_index

    @classmethod
    def from_settings(cls, settings) -> "PeriodCalculator":
        return cls(
            tz=settings.tzinfo,
            day_start_hour=settings.day_start_hour,
            week_start_index=settings.week_start_index,
        )

    @property
    def tz(self) -> tzinfo:
        return self._tz

    # -- conversions --

    def _local(self, timestamp_ms: int) -> datetime:
        return datetime.fromtimestamp(timestamp_ms / 1000, tz=self._tz).replace(tzinfo=None)

    def _epoch(self, local: datetime) -> int:
        return int(local.replace(tzinfo=self._tz).timestamp() * 1000)

    # -- arithmetic --

    def normalize(self, timestamp_ms: int, period_type: PeriodType) -> int:
        """Return the start of the period containing ``timestamp_ms``."""
        local = self._local(timestamp_ms)
        period_type = PeriodType(period_type)

        if period_type == PeriodType.HOUR:
            return self._epoch(local.replace(minute=0, second=0, microsecond=0))

        day_start = local.replace(hour=self._day_start_hour, minute=0, second=0, microsecond=0)
        if local < day_start:
            day_start -= timedelta(days=1)

        if period_type == PeriodType.DAY:
            start = day_start
        elif period_type == PeriodType.WEEK:
            back = (day_start.weekday() - self._week_start_index) % 7
            start = day_start - timedelta(days=back)
        elif period_type == PeriodType.MONTH:
            start = day_start.replace(day=1)
        else:
            start = day_start.replace(month=1, day=1)
        return self._epoch(start)

    def shift(self, timestamp_ms: int, period_type: PeriodType, offset: int) -> int:
        """Move the period start by ``offset`` periods."""
        start = self.normalize(timestamp_ms, period_type)
        period_type = PeriodType(period_type)

        if period_type == PeriodType.HOUR:
            return start + offset * 3_600_000

        local = self._local(start)
        if period_type == PeriodType.DAY:
            shifted = local + timedelta(days=offset)
        elif period_type == PeriodType.WEEK:
            shifted = local + timedelta(weeks=offset)
        elif period_type == PeriodType.MONTH:
            months = local.year * 12 + (local.month - 1) + offset
            shifted = local.replace(year=months // 12, month=months % 12 + 1)
        else:
            shifted = local.replace(year=local.year + offset)
        return self._epoch(shifted)

    def period_end(self, timestamp_ms: int, period_type: PeriodType) -> int:
        """Last millisecond of the period containing ``timestamp_ms``."""
        return self.shift(timestamp_ms, period_type, 1) - 1

    def resolve_relative(self, offset: int, period_type: PeriodType, now_ms: int) -> Period:
        """Concrete period ``offset`` periods away from the one containing now."""
        return Period(self.shift(now_ms, period_type, offset), PeriodType(period_type))

    def resolve_marker(self, marker: str, now_ms: int) -> Period:
        offset, period_type = parse_relative_marker(marker)
        return self.resolve_relative(offset, period_type, now_ms)

    def describe(self, period: Period) -> str:
        start = self._local(period.timestamp)
        if period.type == PeriodType.HOUR:
            return start.strftime("%Y-%m-%d %H:00")
        if period.type == PeriodType.DAY:
            return start.strftime("%Y-%m-%d")
        if period.type == PeriodType.WEEK:
            return f"week of {start.strftime('%Y-%m-%d')}"
        if period.type == PeriodType.MONTH:
            return start.strftime("%Y-%m")
        return start.strftime("%Y")

    def format_timestamp(self, timestamp_ms: int) -> str:
        return self._local(timestamp_ms).strftime("%Y-%m-%d %H:%M")


__all__ = [
    "PeriodType",
    "Period",
    "PeriodCalculator",
    "encode_relative_marker",
    "parse_relative_marker",
]
