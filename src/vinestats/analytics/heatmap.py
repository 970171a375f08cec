"""Weekday-by-hour intensity matrices and per-day totals.

Only drops in the trailing :data:`HEATMAP_HORIZON_DAYS` participate.
Each weekday/hour cell gets one sample per Monday-started local week in
the span of surviving data.  Weeks without drops in that cell contribute
a zero sample, so the median describes a typical week, quiet ones
included.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Sequence

from vinestats.analytics.filters import contribution, round_half_up
from vinestats.analytics.stats import median
from vinestats.core.defaults import (
    DAY_MS,
    HEATMAP_DAYS,
    HEATMAP_HORIZON_DAYS,
    HEATMAP_HOURS,
    HOUR_MS,
)
from vinestats.core.offsets import (
    OffsetCursor,
    build_offset_segments,
    get_offset_at,
    local_day_key,
    local_week_key,
    weekday_of_day_key,
)
from vinestats.core.time import fields_of_local, now_ms
from vinestats.core.types import DataFilter, DropEvent, HeatMapData

logger = logging.getLogger(__name__)

_HEAT_THRESHOLDS = (0.2, 0.4, 0.6, 0.8)


def _zeros() -> list[list[float]]:
    return [[0.0] * HEATMAP_HOURS for _ in range(HEATMAP_DAYS)]


def _matrix_max(matrix: list[list[float]]) -> float:
    return max(1, max(v for row in matrix for v in row))


def compute_heat_map(
    history: Sequence[DropEvent],
    data_filter: DataFilter = DataFilter.ALL,
    *,
    now: int | None = None,
) -> HeatMapData:
    """Aggregate *history* into daily totals and 7x24 median/mean matrices.

    *history* must be sorted by ``t`` ascending.  Drops at or before
    ``now - 365 days`` are ignored.

    Args:
        history: Sorted drop events.
        data_filter: ``all`` counts ai + last_chance, ``zeroEtv`` only
            zero_etv, ``afa`` only last_chance.
        now: Current instant (epoch ms); defaults to the wall clock.

    Returns:
        A :class:`HeatMapData`; all-zero matrices with maxima of 1 when no
        drop survives the cutoff.
    """
    now = now_ms() if now is None else now
    cutoff = now - HEATMAP_HORIZON_DAYS * DAY_MS
    recent = [e for e in history if e.t > cutoff]
    if not recent:
        return HeatMapData(hourly_median=_zeros(), hourly_mean=_zeros())

    first, last = recent[0].t, recent[-1].t
    segments = build_offset_segments(first - DAY_MS, last + DAY_MS)
    min_week = local_week_key(first + get_offset_at(first, segments))
    max_week = local_week_key(last + get_offset_at(last, segments))
    week_count = max(max_week - min_week + 1, 1)

    weekly: dict[str, int] = defaultdict(int)
    date_keys: dict[int, str] = {}
    hourly_sum = [[0] * HEATMAP_HOURS for _ in range(HEATMAP_DAYS)]
    hourly_week_sums = [
        [[0] * week_count for _ in range(HEATMAP_HOURS)] for _ in range(HEATMAP_DAYS)
    ]

    cursor = OffsetCursor(segments)
    for event in recent:
        value = contribution(event, data_filter)
        local = cursor.to_local(event.t)
        day_key = local_day_key(local)
        weekday = weekday_of_day_key(day_key)
        hour = (local % DAY_MS) // HOUR_MS

        date_key = date_keys.get(day_key)
        if date_key is None:
            date_key = date_keys[day_key] = fields_of_local(local).date_key
        weekly[date_key] += value

        hourly_sum[weekday][hour] += value
        hourly_week_sums[weekday][hour][local_week_key(local) - min_week] += value

    hourly_median = _zeros()
    hourly_mean = _zeros()
    for d in range(HEATMAP_DAYS):
        for h in range(HEATMAP_HOURS):
            hourly_mean[d][h] = round_half_up(hourly_sum[d][h] / week_count, 1)
            hourly_median[d][h] = round_half_up(median(hourly_week_sums[d][h]), 1)

    logger.debug(
        "Heat map over %d event(s), %d day(s), %d week(s)",
        len(recent), len(weekly), week_count,
    )
    return HeatMapData(
        weekly=dict(weekly),
        hourly_median=hourly_median,
        hourly_mean=hourly_mean,
        max_daily=max(1, max(weekly.values())),
        max_hourly_median=_matrix_max(hourly_median),
        max_hourly_mean=_matrix_max(hourly_mean),
    )


def heat_level(value: float, max_value: float) -> int:
    """Bin *value* relative to *max_value* into an intensity level 0..5.

    0 is reserved for an empty cell; the remaining levels split
    ``value / max_value`` at 0.2, 0.4, 0.6 and 0.8.
    """
    if value == 0:
        return 0
    ratio = value / max_value
    for level, threshold in enumerate(_HEAT_THRESHOLDS, start=1):
        if ratio < threshold:
            return level
    return len(_HEAT_THRESHOLDS) + 1
