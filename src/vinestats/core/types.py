"""Core data contracts: drop events, selector enums, and engine outputs.

Output models serialize with camelCase aliases (``model_dump(by_alias=True)``)
because that is the shape the visualization layer reads.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vinestats.core.defaults import DAY_MS, HOUR_MS, QUARTER_HOUR_MS


class DropEvent(BaseModel, frozen=True):
    """One observed drop: an instant and per-category item counts.

    The legacy ``encore`` alias for ``ai`` is resolved at ingestion
    (:func:`~vinestats.adapters.feed.client.normalize_raw_event`), so the
    engine only ever sees the canonical field.
    """

    t: int = Field(description="Drop instant, epoch milliseconds.")
    ai: int = Field(default=0, description="Items in the AI category.")
    last_chance: int = Field(default=0, description="Items in the last-chance (AFA) category.")
    zero_etv: int = Field(default=0, description="Items with zero estimated tax value.")


class Granularity(StrEnum):
    """Chart bucket width."""

    QUARTER_HOUR = "15m"
    HOUR = "1h"
    DAY = "1d"

    @property
    def interval_ms(self) -> int:
        return _INTERVALS[self]


_INTERVALS: dict[Granularity, int] = {
    Granularity.QUARTER_HOUR: QUARTER_HOUR_MS,
    Granularity.HOUR: HOUR_MS,
    Granularity.DAY: DAY_MS,
}


class DataFilter(StrEnum):
    """Category selection applied per event before summation.

    ``ALL``
        Every category counts.

    ``ZERO_ETV``
        Only ``zero_etv`` items count.

    ``AFA``
        Only ``last_chance`` items count.
    """

    ALL = "all"
    ZERO_ETV = "zeroEtv"
    AFA = "afa"


class Timeframe(StrEnum):
    """Visible chart window selected by the consumer."""

    DAY = "1d"
    WEEK = "7d"
    MONTH = "1m"
    QUARTER = "3m"
    YEAR = "1y"

    @property
    def window_ms(self) -> int:
        return _WINDOW_DAYS[self] * DAY_MS


_WINDOW_DAYS: dict[Timeframe, int] = {
    Timeframe.DAY: 1,
    Timeframe.WEEK: 7,
    Timeframe.MONTH: 30,
    Timeframe.QUARTER: 90,
    Timeframe.YEAR: 365,
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True,
    )


class ChartDataPointRaw(_CamelModel):
    """One bucket's start instant and summed category counts."""

    date: int = Field(description="Bucket start, epoch milliseconds.")
    ai: int = 0
    last_chance: int = 0
    zero_etv: int = 0
    total: int = Field(default=0, description="ai + last_chance.")


class ChartDataPoint(ChartDataPointRaw):
    """A :class:`ChartDataPointRaw` with display strings attached."""

    label: str = Field(description="Short axis label.")
    full_date: str = Field(description="Tooltip date string.")


class DashboardStats(_CamelModel):
    """Rolling summary snapshot.

    ``today_growth`` and ``week_growth`` are percentages relative to the
    historical medians; both are 100 when the median is 0.
    """

    last_hour: int = 0
    today: int = 0
    today_growth: int = 0
    today_median: int = 0
    this_week: int = 0
    week_growth: int = 0
    week_median: int = 0
    updated_at: datetime | None = None


class HeatMapData(_CamelModel):
    """Daily totals plus 7x24 weekday-by-hour median/mean matrices.

    Rows are weekdays (Monday=0 .. Sunday=6), columns hours 0..23.
    The ``max_*`` fields are floored at 1.
    """

    weekly: dict[str, int] = Field(default_factory=dict, description="YYYY-MM-DD -> daily total.")
    hourly_median: list[list[float]]
    hourly_mean: list[list[float]]
    max_daily: int = 1
    max_hourly_median: float = 1
    max_hourly_mean: float = 1
