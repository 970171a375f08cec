"""Centralised default constants for vinestats.

Every project-wide magic number / string lives here.
Import these instead of hard-coding values in function signatures or CLI options.
"""

from __future__ import annotations

from typing import Final

# ── Timezone ──
TIMEZONE: Final[str] = "America/Los_Angeles"

# ── Durations (milliseconds) ──
MINUTE_MS: Final[int] = 60 * 1000
HOUR_MS: Final[int] = 60 * MINUTE_MS
DAY_MS: Final[int] = 24 * HOUR_MS
WEEK_MS: Final[int] = 7 * DAY_MS
QUARTER_HOUR_MS: Final[int] = 15 * MINUTE_MS

# ── Offset segments ──
TRANSITION_PRECISION_MS: Final[int] = MINUTE_MS
SEGMENT_PROBE_MS: Final[int] = DAY_MS

# ── Heat map ──
HEATMAP_HORIZON_DAYS: Final[int] = 365
HEATMAP_DAYS: Final[int] = 7
HEATMAP_HOURS: Final[int] = 24

# ── Feed ──
DEFAULT_FEED_URL: Final[str] = "https://vine-api.maarv.dev/stats.json"
DEFAULT_FEED_TIMEOUT_SECONDS: Final[int] = 10
DEFAULT_POLL_SECONDS: Final[int] = 60
FEED_URL_ENV: Final[str] = "VINESTATS_FEED_URL"

# ── Paths ──
DEFAULT_OUT_DIR: Final[str] = "artifacts"
DEFAULT_CONFIG_PATH: Final[str] = "vinestats.json"

# ── Server ──
DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PORT: Final[int] = 8741

# ── Chart markers ──
# 1900-01-01 .. 9999-01-01 UTC, clear of datetime's limits after zone shifts.
MARKER_MIN_TS_MS: Final[int] = -2_208_988_800_000
MARKER_MAX_TS_MS: Final[int] = 253_370_764_800_000
MARKER_MAX_SPAN_MS: Final[int] = 3660 * DAY_MS
