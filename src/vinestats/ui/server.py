"""FastAPI backend serving the dashboard views as JSON.

The feed is fetched lazily and reused for ``poll_seconds``; every request
recomputes its view from the cached history, so views never disagree
about which feed snapshot they describe.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Literal

from fastapi import FastAPI, HTTPException, Query

from vinestats.adapters.feed.client import FeedFetchError, fetch_stats
from vinestats.adapters.feed.types import StatsFeed
from vinestats.analytics.bucketing import process_chart_data
from vinestats.analytics.heatmap import compute_heat_map
from vinestats.analytics.stats import compute_stats
from vinestats.analytics.windowing import coerce_granularity, visible_window
from vinestats.core.defaults import (
    DEFAULT_FEED_TIMEOUT_SECONDS,
    DEFAULT_FEED_URL,
    DEFAULT_POLL_SECONDS,
    MARKER_MAX_TS_MS,
    MARKER_MIN_TS_MS,
)
from vinestats.core.offsets import (
    midnight_markers,
    month_start_markers,
    week_start_markers,
)
from vinestats.core.time import now_ms
from vinestats.core.types import DataFilter, Granularity, Timeframe

logger = logging.getLogger(__name__)

_MARKERS = {
    "day": midnight_markers,
    "week": week_start_markers,
    "month": month_start_markers,
}


class FeedCache:
    """Holds the latest feed snapshot and refetches it once it is stale."""

    def __init__(
        self,
        fetcher: Callable[[], StatsFeed],
        poll_seconds: float,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetcher = fetcher
        self._poll_seconds = poll_seconds
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._feed: StatsFeed | None = None
        self._fetched_at = 0.0

    def get(self) -> StatsFeed:
        # The lock is held across the fetch: concurrent callers on a stale
        # cache wait for one upstream request instead of issuing their own.
        with self._lock:
            fresh = (
                self._feed is not None
                and self._monotonic() - self._fetched_at < self._poll_seconds
            )
            if not fresh:
                self._feed = self._fetcher()
                self._fetched_at = self._monotonic()
                logger.info("Feed refreshed (%d events)", len(self._feed.history))
            return self._feed


def create_app(
    *,
    feed_url: str = DEFAULT_FEED_URL,
    timeout_seconds: float = DEFAULT_FEED_TIMEOUT_SECONDS,
    poll_seconds: float = DEFAULT_POLL_SECONDS,
    fetcher: Callable[[], StatsFeed] | None = None,
    clock: Callable[[], int] = now_ms,
) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        feed_url: Stats feed URL (ignored when *fetcher* is given).
        timeout_seconds: Per-request fetch timeout.
        poll_seconds: Minimum age before the cached feed is refetched.
        fetcher: Zero-argument callable returning a :class:`StatsFeed`;
            defaults to fetching *feed_url*.
        clock: Returns the current instant in epoch ms.
    """
    cache = FeedCache(
        fetcher or (lambda: fetch_stats(feed_url, timeout=timeout_seconds)),
        poll_seconds,
    )

    app = FastAPI(
        title="vinestats",
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )

    def _feed() -> StatsFeed:
        try:
            return cache.get()
        except FeedFetchError as exc:
            raise HTTPException(status_code=502, detail="Failed to load stats") from exc

    @app.get("/api/stats")
    def get_stats() -> dict:
        feed = _feed()
        stats = compute_stats(feed.history, feed.meta.updated_at, now=clock())
        return stats.model_dump(mode="json", by_alias=True)

    @app.get("/api/chart")
    def get_chart(
        granularity: Granularity = Granularity.HOUR,
        data_filter: DataFilter = Query(DataFilter.ALL, alias="filter"),
        timeframe: Timeframe | None = None,
        scroll: float = Query(100.0, ge=0.0, le=100.0),
    ) -> dict:
        feed = _feed()
        if timeframe is not None:
            granularity = coerce_granularity(timeframe, granularity)
        points = process_chart_data(feed.history, granularity, data_filter, now=clock())
        if timeframe is not None:
            points = visible_window(points, timeframe, granularity, scroll)
        return {
            "granularity": str(granularity),
            "points": [p.model_dump(mode="json", by_alias=True) for p in points],
        }

    @app.get("/api/heatmap")
    def get_heatmap(
        data_filter: DataFilter = Query(DataFilter.ALL, alias="filter"),
    ) -> dict:
        feed = _feed()
        data = compute_heat_map(feed.history, data_filter, now=clock())
        return data.model_dump(mode="json", by_alias=True)

    @app.get("/api/markers")
    def get_markers(
        start: int = Query(..., ge=MARKER_MIN_TS_MS, le=MARKER_MAX_TS_MS),
        end: int = Query(..., ge=MARKER_MIN_TS_MS, le=MARKER_MAX_TS_MS),
        kind: Literal["day", "week", "month"] = "day",
    ) -> list[int]:
        try:
            return _MARKERS[kind](start, end)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

    return app
