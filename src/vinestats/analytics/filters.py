"""Per-event category filtering shared by the chart and heat-map views."""

from __future__ import annotations

import math

from vinestats.core.types import DataFilter, DropEvent


def filtered_counts(event: DropEvent, data_filter: DataFilter) -> tuple[int, int, int]:
    """Return ``(ai, last_chance, zero_etv)`` with deselected categories zeroed."""
    if data_filter is DataFilter.ZERO_ETV:
        return 0, 0, event.zero_etv
    if data_filter is DataFilter.AFA:
        return 0, event.last_chance, 0
    return event.ai, event.last_chance, event.zero_etv


def contribution(event: DropEvent, data_filter: DataFilter) -> int:
    """Single intensity value of *event* under *data_filter*."""
    if data_filter is DataFilter.ZERO_ETV:
        return event.zero_etv
    if data_filter is DataFilter.AFA:
        return event.last_chance
    return event.ai + event.last_chance


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves toward +inf (``-2.5 -> -2``, ``2.5 -> 3``)."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale
