"""Rolling dashboard statistics: last hour, today, this week, and growth.

Growth compares the current local day (and Monday-started week) against
the median total of all earlier days (weeks) present in the history.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Sequence

from vinestats.analytics.filters import round_half_up
from vinestats.core.defaults import HOUR_MS, WEEK_MS
from vinestats.core.offsets import (
    OffsetCursor,
    build_offset_segments,
    local_day_key,
    local_week_key,
    resolve_boundaries,
)
from vinestats.core.time import now_ms, parse_iso_datetime
from vinestats.core.types import DashboardStats, DropEvent

logger = logging.getLogger(__name__)


def median(values: Sequence[float]) -> float:
    """Median of *values*; 0 for an empty sequence.

    Even-length input averages the two central values.
    """
    if not values:
        return 0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def growth_percent(current: int, baseline: int) -> int:
    """Percent change of *current* over *baseline*; 100 when the baseline is 0."""
    if baseline == 0:
        return 100
    return int(round_half_up((current - baseline) / baseline * 100))


def _parse_updated_at(raw: datetime | str | None) -> datetime | None:
    if not raw:
        return None
    if isinstance(raw, datetime):
        return raw
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        logger.warning("Ignoring unparseable updated_at %r", raw)
        return None


def compute_stats(
    history: Sequence[DropEvent],
    updated_at: datetime | str | None,
    *,
    now: int | None = None,
) -> DashboardStats:
    """Summarise *history* relative to *now* in the fixed timezone.

    *history* must be sorted by ``t`` ascending.

    Args:
        history: Sorted drop events.
        updated_at: Refresh instant stated by the feed, as a datetime or
            an ISO-8601 string.  An unparseable string is logged and
            reported as ``None``.
        now: Current instant (epoch ms); defaults to the wall clock.

    Returns:
        A :class:`DashboardStats`.  All zeros with ``updated_at=None``
        when *history* is empty.
    """
    if not history:
        return DashboardStats()
    now = now_ms() if now is None else now

    segments = build_offset_segments(
        min(history[0].t, now) - WEEK_MS, max(history[-1].t, now) + WEEK_MS,
    )
    bounds = resolve_boundaries(now, segments)
    one_hour_ago = now - HOUR_MS

    last_hour = today = this_week = 0
    daily_totals: dict[int, int] = defaultdict(int)
    weekly_totals: dict[int, int] = defaultdict(int)

    cursor = OffsetCursor(segments)
    for event in history:
        total = event.ai + event.last_chance
        local = cursor.to_local(event.t)

        if event.t > one_hour_ago:
            last_hour += total

        if event.t >= bounds.day_start:
            today += total
        else:
            daily_totals[local_day_key(local)] += total

        if event.t >= bounds.week_start:
            this_week += total
        else:
            weekly_totals[local_week_key(local)] += total

    daily_median = int(round_half_up(median(list(daily_totals.values()))))
    weekly_median = int(round_half_up(median(list(weekly_totals.values()))))
    logger.debug(
        "Stats over %d prior day(s), %d prior week(s)", len(daily_totals), len(weekly_totals),
    )

    return DashboardStats(
        last_hour=last_hour,
        today=today,
        today_growth=growth_percent(today, daily_median),
        today_median=daily_median,
        this_week=this_week,
        week_growth=growth_percent(this_week, weekly_median),
        week_median=weekly_median,
        updated_at=_parse_updated_at(updated_at),
    )
