"""Turn a time filter into command parameters.

Two modes:

- relative (automation): relative sides stay opaque ``"<offset>_<TYPE>"``
  markers under ``period_start`` / ``period_end`` so they are resolved
  against "now" when the command eventually runs;
- absolute (interactive): every side becomes an epoch-millisecond
  ``startTime`` / ``endTime`` immediately.

Absolute sides are always emitted as ``startTime`` / ``endTime``. A
custom timestamp wins over a named period on the same side.
"""

from typing import Any, Dict, Optional

from assistant_core.config import get_settings
from assistant_core.enrichments.models import TimestampSelection
from assistant_core.protocols import ClockProtocol
from assistant_core.utils.clock import SystemClock
from assistant_core.utils.periods import Period, PeriodCalculator, encode_relative_marker


class TemporalResolver:
    """Resolves ``TimestampSelection`` into start/end command params."""

    def __init__(
        self,
        periods: Optional[PeriodCalculator] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        self._periods = periods or PeriodCalculator.from_settings(get_settings())
        self._clock = clock or SystemClock()

    @property
    def periods(self) -> PeriodCalculator:
        return self._periods

    def resolve(
        self,
        selection: Optional[TimestampSelection],
        is_relative: bool,
        now_ms: Optional[int] = None,
    ) -> Dict[str, Any]:
        if selection is None or selection.is_empty:
            return {}

        params: Dict[str, Any] = {}
        now = now_ms if now_ms is not None else self._clock.now_ms()

        # Start side
        if selection.min_relative_period is not None:
            rel = selection.min_relative_period
            if is_relative:
                params["period_start"] = encode_relative_marker(rel.offset, rel.type)
            else:
                params["startTime"] = self._periods.resolve_relative(rel.offset, rel.type, now).timestamp
        elif selection.min_custom_date_time is not None:
            params["startTime"] = selection.min_custom_date_time
        elif selection.min_period is not None:
            params["startTime"] = self._periods.normalize(
                selection.min_period.timestamp, selection.min_period.type
            )

        # End side
        if selection.max_relative_period is not None:
            rel = selection.max_relative_period
            if is_relative:
                params["period_end"] = encode_relative_marker(rel.offset, rel.type)
            else:
                period = self._periods.resolve_relative(rel.offset, rel.type, now)
                params["endTime"] = self._periods.period_end(period.timestamp, period.type)
        elif selection.max_custom_date_time is not None:
            params["endTime"] = selection.max_custom_date_time
        elif selection.max_period is not None:
            params["endTime"] = self._periods.period_end(
                selection.max_period.timestamp, selection.max_period.type
            )

        return params

    def describe(self, selection: Optional[TimestampSelection]) -> str:
        """Short human description of a time filter, for summaries."""
        if selection is None or selection.is_empty:
            return "all time"

        def side(rel, period, custom) -> Optional[str]:
            if rel is not None:
                if rel.offset == 0:
                    return f"current {rel.type.value.lower()}"
                unit = rel.type.value.lower() + ("s" if abs(rel.offset) > 1 else "")
                return f"{abs(rel.offset)} {unit} {'ago' if rel.offset < 0 else 'ahead'}"
            if custom is not None:
                return self._periods.format_timestamp(custom)
            if period is not None:
                return self._periods.describe(Period(period.timestamp, period.type))
            return None

        start = side(selection.min_relative_period, selection.min_period, selection.min_custom_date_time)
        end = side(selection.max_relative_period, selection.max_period, selection.max_custom_date_time)
        if start and end:
            return start if start == end else f"{start} to {end}"
        if start:
            return f"since {start}"
        return f"until {end}"


__all__ = ["TemporalResolver"]
