"""Constant-offset segments and local-boundary resolution.

A range of absolute time is partitioned into maximal runs of constant UTC
offset (:class:`OffsetSegment`).  Once a segment list exists, every
local-calendar computation is plain integer arithmetic:

* absolute -> local: ``local = ts + offset`` with the offset of the
  segment containing ``ts``;
* local -> absolute: :func:`get_utc_for_local`.

Local instants are "fake UTC" values: their UTC field reading is the civil
reading in the fixed zone.  Day keys count local days since 1970-01-01
(a Thursday), week keys count Monday-started local weeks.

Transitions are located by sampling the offset once per probe window and
binary-searching any window whose end offset differs from its start.
Precision is :data:`~vinestats.core.defaults.TRANSITION_PRECISION_MS`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, NamedTuple, Sequence

from vinestats.core.defaults import (
    DAY_MS,
    MARKER_MAX_SPAN_MS,
    MARKER_MAX_TS_MS,
    MARKER_MIN_TS_MS,
    SEGMENT_PROBE_MS,
    TRANSITION_PRECISION_MS,
)
from vinestats.core.time import get_time_zone_offset_ms

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# 1970-01-01 is a Thursday: Monday-first index 3.
_EPOCH_WEEKDAY = 3


@dataclass(frozen=True)
class OffsetSegment:
    """Half-open interval ``[start, end)`` with a constant UTC offset (ms)."""

    start: int
    end: int
    offset: int

    def contains(self, ts: int) -> bool:
        return self.start <= ts < self.end


class LocalBoundaries(NamedTuple):
    """Absolute instants of the local day, iso-week and month containing an anchor."""

    day_start: int
    week_start: int
    month_start: int


def find_offset_transition(lo: int, hi: int, lo_offset: int) -> int:
    """Locate the first instant in ``(lo, hi]`` whose offset is not *lo_offset*.

    The offset must equal *lo_offset* at *lo* and differ at *hi*.  The search
    keeps that invariant while halving the window until it is at most
    :data:`TRANSITION_PRECISION_MS` wide.

    Returns:
        An instant carrying the new offset, no more than one precision step
        after the true transition.
    """
    while hi - lo > TRANSITION_PRECISION_MS:
        mid = (lo + hi) // 2
        if get_time_zone_offset_ms(mid) == lo_offset:
            lo = mid
        else:
            hi = mid
    return hi


def build_offset_segments(start_ts: int, end_ts: int) -> list[OffsetSegment]:
    """Partition ``[min, max + 1)`` of the two instants into constant-offset runs.

    The arguments may be given in either order.  A zero-length or inverted
    range still yields exactly one segment.

    Args:
        start_ts: One bound of the range (epoch ms).
        end_ts: The other bound (epoch ms).

    Returns:
        Contiguous segments ordered by ``start``; the first starts at
        ``min(start_ts, end_ts)`` and the last ends at ``max(...) + 1``.
    """
    start = min(start_ts, end_ts)
    end_exclusive = max(start_ts, end_ts) + 1

    segments: list[OffsetSegment] = []
    seg_start = start
    cur_offset = get_time_zone_offset_ms(start)
    # Latest instant known to carry cur_offset.
    known = start
    probe = start

    while probe < end_exclusive:
        window_end = min(probe + SEGMENT_PROBE_MS, end_exclusive)
        last = window_end - 1
        if last > known and get_time_zone_offset_ms(last) != cur_offset:
            transition = find_offset_transition(known, last, cur_offset)
            segments.append(OffsetSegment(seg_start, transition, cur_offset))
            seg_start = transition
            cur_offset = get_time_zone_offset_ms(transition)
            known = probe = transition
            continue
        known = max(known, last)
        probe = window_end

    segments.append(OffsetSegment(seg_start, end_exclusive, cur_offset))
    logger.debug(
        "Built %d offset segment(s) for [%d, %d)", len(segments), start, end_exclusive,
    )
    return segments


def get_offset_at(ts: int, segments: Sequence[OffsetSegment]) -> int:
    """Offset of the segment containing *ts*.

    Instants before the first segment take its offset; instants past the
    last take the last segment's offset.
    """
    for seg in reversed(segments):
        if ts >= seg.start:
            return seg.offset
    return segments[0].offset


class OffsetCursor:
    """Forward-only offset lookup for a non-decreasing sequence of instants.

    Each :meth:`offset_for` call advances past segments that end at or
    before the queried instant, so a full pass over sorted events costs
    O(events + segments).  Querying an instant earlier than a previous
    query returns a stale offset; callers must feed sorted input.
    """

    def __init__(self, segments: Sequence[OffsetSegment]) -> None:
        self._segments = segments
        self._idx = 0

    def offset_for(self, ts: int) -> int:
        segs = self._segments
        last = len(segs) - 1
        while self._idx < last and ts >= segs[self._idx].end:
            self._idx += 1
        return segs[self._idx].offset

    def to_local(self, ts: int) -> int:
        return ts + self.offset_for(ts)


def to_local(ts: int, segments: Sequence[OffsetSegment]) -> int:
    """Shift absolute *ts* into local ("fake UTC") time."""
    return ts + get_offset_at(ts, segments)


def get_utc_for_local(local_ts: int, segments: Sequence[OffsetSegment]) -> int:
    """Map a local instant back to the absolute instant it denotes.

    The first segment whose offset, subtracted from *local_ts*, lands inside
    that same segment wins; for a repeated local hour this is the earlier
    reading.  A local time skipped by a forward transition, or one outside
    the built range, falls back to the offset in force at the
    first-segment reading.
    """
    for seg in segments:
        candidate = local_ts - seg.offset
        if seg.contains(candidate):
            return candidate
    return local_ts - get_offset_at(local_ts - segments[0].offset, segments)


# ---------------------------------------------------------------------------
# Local calendar arithmetic
# ---------------------------------------------------------------------------


def local_day_key(local_ts: int) -> int:
    """Local days elapsed since 1970-01-01 (floor)."""
    return local_ts // DAY_MS


def local_day_start(local_ts: int) -> int:
    """Local midnight at or before *local_ts*."""
    return local_ts - local_ts % DAY_MS


def weekday_of_day_key(day_key: int) -> int:
    """Monday-first weekday (Monday=0 .. Sunday=6) of a local day key."""
    return (day_key + _EPOCH_WEEKDAY) % 7


def local_weekday(local_ts: int) -> int:
    return weekday_of_day_key(local_day_key(local_ts))


def local_week_key(local_ts: int) -> int:
    """Index of the Monday-started local week containing *local_ts*."""
    return (local_day_key(local_ts) + _EPOCH_WEEKDAY) // 7


def local_week_start(local_ts: int) -> int:
    """Local Monday 00:00 at or before *local_ts*."""
    return local_day_start(local_ts) - local_weekday(local_ts) * DAY_MS


def local_month_start(local_ts: int) -> int:
    """Local first-of-month 00:00 at or before *local_ts*."""
    d = _EPOCH + timedelta(milliseconds=local_ts)
    first = d.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return (first - _EPOCH) // timedelta(milliseconds=1)


def _next_month_start(local_month_start_ts: int) -> int:
    d = _EPOCH + timedelta(milliseconds=local_month_start_ts)
    if d.month == 12:
        nxt = d.replace(year=d.year + 1, month=1)
    else:
        nxt = d.replace(month=d.month + 1)
    return (nxt - _EPOCH) // timedelta(milliseconds=1)


def resolve_boundaries(
    anchor: int, segments: Sequence[OffsetSegment],
) -> LocalBoundaries:
    """Absolute starts of the local day, iso-week and month containing *anchor*."""
    local = to_local(anchor, segments)
    return LocalBoundaries(
        day_start=get_utc_for_local(local_day_start(local), segments),
        week_start=get_utc_for_local(local_week_start(local), segments),
        month_start=get_utc_for_local(local_month_start(local), segments),
    )


# ---------------------------------------------------------------------------
# Chart reference markers
# ---------------------------------------------------------------------------


def _markers(
    start_ts: int,
    end_ts: int,
    first_local: Callable[[int], int],
    step_local: Callable[[int], int],
) -> list[int]:
    start, end = min(start_ts, end_ts), max(start_ts, end_ts)
    if start < MARKER_MIN_TS_MS or end > MARKER_MAX_TS_MS:
        raise ValueError(
            f"Marker range must lie within [{MARKER_MIN_TS_MS}, {MARKER_MAX_TS_MS}] ms"
        )
    if end - start > MARKER_MAX_SPAN_MS:
        raise ValueError(
            f"Marker range wider than {MARKER_MAX_SPAN_MS // DAY_MS} days"
        )
    segments = build_offset_segments(start - DAY_MS, end + DAY_MS)
    local = first_local(to_local(start, segments))
    out: list[int] = []
    while True:
        ts = get_utc_for_local(local, segments)
        if ts > end:
            break
        if ts >= start:
            out.append(ts)
        local = step_local(local)
    return out


def midnight_markers(start_ts: int, end_ts: int) -> list[int]:
    """Absolute instants of every local midnight within ``[start, end]``."""
    return _markers(
        start_ts, end_ts, local_day_start, lambda local: local + DAY_MS,
    )


def week_start_markers(start_ts: int, end_ts: int) -> list[int]:
    """Absolute instants of every local Monday 00:00 within ``[start, end]``."""
    return _markers(
        start_ts, end_ts, local_week_start, lambda local: local + 7 * DAY_MS,
    )


def month_start_markers(start_ts: int, end_ts: int) -> list[int]:
    """Absolute instants of every local first-of-month 00:00 within ``[start, end]``."""
    return _markers(start_ts, end_ts, local_month_start, _next_month_start)
