"""Shared fixtures for the vinestats test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from vinestats.core.types import DropEvent

# Wednesday 2025-06-18 12:00 PDT.
NOW = int(datetime(2025, 6, 18, 19, 0, tzinfo=timezone.utc).timestamp() * 1000)


@pytest.fixture()
def now() -> int:
    return NOW


@pytest.fixture()
def sample_history() -> list[DropEvent]:
    """Three days of drops around NOW, sorted by ``t``."""
    hour = 3_600_000
    return [
        DropEvent(t=NOW - 50 * hour, ai=2, last_chance=1, zero_etv=1),
        DropEvent(t=NOW - 26 * hour, ai=4, last_chance=0, zero_etv=2),
        DropEvent(t=NOW - 3 * hour, ai=1, last_chance=3, zero_etv=0),
        DropEvent(t=NOW - hour // 2, ai=5, last_chance=1, zero_etv=3),
    ]


@pytest.fixture()
def feed_document(sample_history: list[DropEvent]) -> dict[str, Any]:
    """Raw feed JSON as served upstream, mixing ``ai`` and legacy ``encore``."""
    history: list[dict[str, Any]] = []
    for i, e in enumerate(reversed(sample_history)):
        raw: dict[str, Any] = {"t": e.t, "last_chance": e.last_chance, "zero_etv": e.zero_etv}
        raw["encore" if i % 2 else "ai"] = e.ai
        history.append(raw)
    return {
        "meta": {"totalItems": len(history), "updatedAt": "2025-06-18T18:58:00Z"},
        "history": history,
    }
