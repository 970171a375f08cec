"""Timeframe selection: allowed granularities and the visible slice of a series."""

from __future__ import annotations

from typing import Sequence, TypeVar

from vinestats.core.types import ChartDataPointRaw, Granularity, Timeframe

_P = TypeVar("_P", bound=ChartDataPointRaw)

_VALID_GRANULARITIES: dict[Timeframe, tuple[Granularity, ...]] = {
    Timeframe.DAY: (Granularity.QUARTER_HOUR, Granularity.HOUR),
    Timeframe.WEEK: (Granularity.HOUR, Granularity.DAY),
    Timeframe.MONTH: (Granularity.DAY,),
    Timeframe.QUARTER: (Granularity.DAY,),
    Timeframe.YEAR: (Granularity.DAY,),
}


def valid_granularities(timeframe: Timeframe) -> list[Granularity]:
    """Granularities that make sense for *timeframe*, preferred first."""
    return list(_VALID_GRANULARITIES[timeframe])


def coerce_granularity(timeframe: Timeframe, granularity: Granularity) -> Granularity:
    """Keep *granularity* if *timeframe* allows it, else the preferred one."""
    allowed = _VALID_GRANULARITIES[timeframe]
    return granularity if granularity in allowed else allowed[0]


def visible_window(
    points: Sequence[_P],
    timeframe: Timeframe,
    granularity: Granularity,
    scroll_percentage: float = 100.0,
) -> list[_P]:
    """Slice *points* to one timeframe-wide window.

    ``scroll_percentage`` 100 shows the newest window, 0 the oldest.  The
    window start is snapped to the bucket phase of the first point so the
    slice never cuts a bucket in half.
    """
    if not points:
        return []
    window = timeframe.window_ms
    first = points[0].date
    last = points[-1].date
    if last - first <= window:
        return list(points)

    interval = granularity.interval_ms
    scrollable = last - window - first
    start = first + scrollable * (scroll_percentage / 100)
    phase = first % interval
    aligned = int((start - phase) // interval) * interval + phase
    aligned = max(first, aligned)
    end = aligned + window
    return [p for p in points if aligned <= p.date <= end]
