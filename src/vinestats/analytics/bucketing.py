"""Gap-free bucketing of a sorted drop stream for charting.

Two paths:

* **fixed** (``15m`` / ``1h``) -- buckets are absolute multiples of the
  interval; no timezone work is needed.
* **calendar day** (``1d``) -- buckets are local days in the fixed zone,
  so a DST day is 23 or 25 hours long.

Both paths emit every bucket between the first event and
``max(now, last event)``, including empty ones.
"""

from __future__ import annotations

import logging
from typing import Sequence

from vinestats.analytics.filters import filtered_counts
from vinestats.core.defaults import DAY_MS
from vinestats.core.offsets import (
    OffsetCursor,
    build_offset_segments,
    get_offset_at,
    get_utc_for_local,
    local_day_key,
)
from vinestats.core.time import align_to_interval, fields_of_local, now_ms
from vinestats.core.types import (
    ChartDataPoint,
    ChartDataPointRaw,
    DataFilter,
    DropEvent,
    Granularity,
)

logger = logging.getLogger(__name__)


def _point(date: int, ai: int, last_chance: int, zero_etv: int) -> ChartDataPointRaw:
    return ChartDataPointRaw(
        date=date,
        ai=ai,
        last_chance=last_chance,
        zero_etv=zero_etv,
        total=ai + last_chance,
    )


def _bucket_fixed(
    history: Sequence[DropEvent],
    interval_ms: int,
    data_filter: DataFilter,
    now: int,
) -> list[ChartDataPointRaw]:
    cursor = align_to_interval(history[0].t, interval_ms)
    last = align_to_interval(max(now, history[-1].t), interval_ms)

    points: list[ChartDataPointRaw] = []
    idx = 0
    n = len(history)
    while cursor <= last:
        nxt = cursor + interval_ms
        ai = lc = ze = 0
        while idx < n and history[idx].t < nxt:
            a, l, z = filtered_counts(history[idx], data_filter)
            ai += a
            lc += l
            ze += z
            idx += 1
        points.append(_point(cursor, ai, lc, ze))
        cursor = nxt
    return points


def _bucket_daily(
    history: Sequence[DropEvent],
    data_filter: DataFilter,
    now: int,
) -> list[ChartDataPointRaw]:
    first = history[0].t
    end = max(now, history[-1].t)
    segments = build_offset_segments(first - DAY_MS, end + DAY_MS)

    start_key = local_day_key(first + get_offset_at(first, segments))
    end_key = local_day_key(end + get_offset_at(end, segments))
    day_key_to_start = {
        key: get_utc_for_local(key * DAY_MS, segments)
        for key in range(start_key, end_key + 1)
    }

    sums = [[0, 0, 0] for _ in range(end_key - start_key + 1)]
    cursor = OffsetCursor(segments)
    for event in history:
        key = local_day_key(cursor.to_local(event.t))
        if not start_key <= key <= end_key:
            continue
        a, l, z = filtered_counts(event, data_filter)
        acc = sums[key - start_key]
        acc[0] += a
        acc[1] += l
        acc[2] += z

    return [
        _point(day_key_to_start[key], *sums[key - start_key])
        for key in range(start_key, end_key + 1)
    ]


def bucket_history(
    history: Sequence[DropEvent],
    granularity: Granularity,
    data_filter: DataFilter = DataFilter.ALL,
    *,
    now: int | None = None,
) -> list[ChartDataPointRaw]:
    """Partition *history* into contiguous buckets of per-category sums.

    *history* must be sorted by ``t`` ascending.

    Args:
        history: Sorted drop events.
        granularity: Bucket width.
        data_filter: Category selection applied per event.
        now: Current instant (epoch ms); defaults to the wall clock.
            The series always extends to the bucket containing
            ``max(now, last event)``.

    Returns:
        One raw point per bucket, oldest first.  Empty if *history* is.
    """
    if not history:
        return []
    now = now_ms() if now is None else now

    if granularity is Granularity.DAY:
        points = _bucket_daily(history, data_filter, now)
    else:
        points = _bucket_fixed(history, granularity.interval_ms, data_filter, now)

    logger.debug(
        "Bucketed %d events into %d %s bucket(s)", len(history), len(points), granularity,
    )
    return points


def format_points(
    points: Sequence[ChartDataPointRaw], granularity: Granularity,
) -> list[ChartDataPoint]:
    """Attach ``label`` and ``full_date`` strings read from local civil fields.

    * day: ``"Mar 09"`` / ``"2025-03-09"``
    * hour: ``"Mar 09 14:00"`` / ``"2025-03-09 14:00"``
    * sub-hour: ``"14:15"`` / ``"2025-03-09 14:15"``
    """
    if not points:
        return []
    segments = build_offset_segments(points[0].date, points[-1].date)
    cursor = OffsetCursor(segments)

    out: list[ChartDataPoint] = []
    for p in points:
        c = fields_of_local(cursor.to_local(p.date))
        hm = f"{c.hour:02d}:{c.minute:02d}"
        if granularity is Granularity.DAY:
            label = f"{c.month_abbr} {c.day:02d}"
            full_date = c.date_key
        elif granularity is Granularity.HOUR:
            label = f"{c.month_abbr} {c.day:02d} {hm}"
            full_date = f"{c.date_key} {hm}"
        else:
            label = hm
            full_date = f"{c.date_key} {hm}"
        out.append(ChartDataPoint(**p.model_dump(), label=label, full_date=full_date))
    return out


def process_chart_data(
    history: Sequence[DropEvent],
    granularity: Granularity,
    data_filter: DataFilter = DataFilter.ALL,
    *,
    now: int | None = None,
) -> list[ChartDataPoint]:
    """Bucket *history* and format the result for display."""
    return format_points(
        bucket_history(history, granularity, data_filter, now=now), granularity,
    )
