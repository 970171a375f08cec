"""Per-install settings persistence.

Settings live in a small JSON file so they can be hand-edited::

    {"feed_url": "https://vine-api.maarv.dev/stats.json", "timeout_seconds": 10}

Usage::

    from vinestats.core.config import AppConfig

    cfg = AppConfig("vinestats.json")
    cfg.feed_url        # env VINESTATS_FEED_URL, else file, else default
    cfg.poll_seconds = 30   # persists immediately

The timezone and the heat-map horizon are deliberately absent: they are
constants in :mod:`vinestats.core.defaults`.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from vinestats.core.defaults import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_FEED_TIMEOUT_SECONDS,
    DEFAULT_FEED_URL,
    DEFAULT_POLL_SECONDS,
    FEED_URL_ENV,
)

logger = logging.getLogger(__name__)


class AppConfig:
    """Read/write access to the settings JSON file.

    A missing file means "all defaults"; the file is only created on the
    first mutation.  A corrupt file is logged and ignored.
    """

    def __init__(self, path: Path | str = DEFAULT_CONFIG_PATH) -> None:
        self._path = Path(path)
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if self._path.exists():
            try:
                data = json.loads(self._path.read_text("utf-8"))
            except (json.JSONDecodeError, OSError):
                logger.warning("Corrupt config at %s, using defaults", self._path)
                return {}
            if isinstance(data, dict):
                return data
            logger.warning("Config at %s is not a JSON object, using defaults", self._path)
        return {}

    def _persist(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._data, indent=2) + "\n", "utf-8")

    @property
    def path(self) -> Path:
        return self._path

    # -- feed_url --------------------------------------------------------------

    @property
    def feed_url(self) -> str:
        """Feed location.  ``VINESTATS_FEED_URL`` wins over the file."""
        return os.environ.get(FEED_URL_ENV) or self._data.get("feed_url", DEFAULT_FEED_URL)

    @feed_url.setter
    def feed_url(self, value: str) -> None:
        value = value.strip()
        if not value:
            raise ValueError("feed_url must not be empty")
        self._data["feed_url"] = value
        self._persist()

    # -- timeouts / polling ----------------------------------------------------

    @property
    def timeout_seconds(self) -> float:
        return float(self._data.get("timeout_seconds", DEFAULT_FEED_TIMEOUT_SECONDS))

    @property
    def poll_seconds(self) -> int:
        return int(self._data.get("poll_seconds", DEFAULT_POLL_SECONDS))

    @poll_seconds.setter
    def poll_seconds(self, value: int) -> None:
        if value <= 0:
            raise ValueError("poll_seconds must be positive")
        self._data["poll_seconds"] = int(value)
        self._persist()

    def as_dict(self) -> dict[str, Any]:
        return {
            "feed_url": self.feed_url,
            "timeout_seconds": self.timeout_seconds,
            "poll_seconds": self.poll_seconds,
        }
