"""Civil-time projection and fixed-interval alignment.

All instants are integer milliseconds since the Unix epoch.  The only
timezone-aware operation in the project is :func:`to_civil`, which reads
the clock fields of an instant in :data:`~vinestats.core.defaults.TIMEZONE`.
Everything else derives local time arithmetically from the UTC offset
(``civil = utc + offset``).
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from vinestats.core.defaults import TIMEZONE

_ZONE = ZoneInfo(TIMEZONE)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


@dataclass(frozen=True)
class CivilTime:
    """Calendar and clock fields of an instant as read on a wall clock.

    ``weekday`` is Monday-first (Monday=0 .. Sunday=6).
    """

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    weekday: int

    @property
    def date_key(self) -> str:
        """``YYYY-MM-DD`` string for the civil date."""
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    @property
    def month_abbr(self) -> str:
        return _MONTH_ABBR[self.month - 1]


def _from_datetime(d: datetime) -> CivilTime:
    return CivilTime(
        year=d.year,
        month=d.month,
        day=d.day,
        hour=d.hour,
        minute=d.minute,
        second=d.second,
        weekday=d.weekday(),
    )


def to_civil(ts: int) -> CivilTime:
    """Project the absolute instant *ts* onto civil fields in the fixed zone.

    Args:
        ts: Epoch milliseconds.

    Returns:
        The :class:`CivilTime` a wall clock in ``America/Los_Angeles``
        shows at *ts*.
    """
    return _from_datetime((_EPOCH + timedelta(milliseconds=ts)).astimezone(_ZONE))


def fields_of_local(local_ts: int) -> CivilTime:
    """Read civil fields from an already offset-shifted instant.

    *local_ts* is ``utc + offset``; its UTC field reading is the civil
    reading, so no zone lookup happens here.
    """
    return _from_datetime(_EPOCH + timedelta(milliseconds=local_ts))


def get_time_zone_offset_ms(ts: int) -> int:
    """Return the civil-minus-UTC offset at *ts*, in milliseconds.

    The civil fields of *ts* are reinterpreted as UTC fields; the
    difference between that "fake UTC" instant and *ts* is the offset.
    Sub-second precision is dropped by the projection, so the comparison
    is made against *ts* truncated to the whole second.
    """
    c = to_civil(ts)
    fake_utc = calendar.timegm(
        (c.year, c.month, c.day, c.hour, c.minute, c.second, 0, 0, 0)
    ) * 1000
    return fake_utc - (ts - ts % 1000)


def align_to_interval(ts: int, interval_ms: int) -> int:
    """Floor *ts* to the nearest absolute multiple of *interval_ms*."""
    return (ts // interval_ms) * interval_ms


def generate_interval_range(start: int, end: int, interval_ms: int) -> list[int]:
    """Enumerate aligned interval starts from *start* to *end* (inclusive).

    Both bounds are aligned first, so callers need not pre-align.

    Args:
        start: Earliest instant (epoch ms).
        end: Latest instant (epoch ms).
        interval_ms: Interval width in milliseconds.

    Returns:
        Sorted list of interval-start instants.  Empty if *end* < *start*.
    """
    cur = align_to_interval(start, interval_ms)
    last = align_to_interval(end, interval_ms)
    out: list[int] = []
    while cur <= last:
        out.append(cur)
        cur += interval_ms
    return out


def parse_iso_datetime(raw: str) -> datetime:
    """Parse an ISO-8601 string into an aware datetime.

    A trailing ``Z`` is accepted and a naive value is taken as UTC.

    Raises:
        ValueError: If *raw* is not ISO-8601.
    """
    d = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if d.tzinfo is None:
        d = d.replace(tzinfo=timezone.utc)
    return d


def parse_iso_ms(raw: str) -> int:
    """Parse an ISO-8601 string into epoch milliseconds (naive means UTC)."""
    d = parse_iso_datetime(raw)
    return (d - _EPOCH) // timedelta(milliseconds=1)


def now_ms() -> int:
    """Current wall-clock instant in epoch milliseconds."""
    return (datetime.now(timezone.utc) - _EPOCH) // timedelta(milliseconds=1)
