"""Stats feed access: HTTPS fetch and JSON file parsing.

Provides two data-ingestion paths:

* **REST-based** -- :func:`fetch_stats` issues a single GET against the
  public feed URL.
* **File-based** -- :func:`parse_stats_file` reads a saved copy of the
  same document.

Both paths normalize every event via :func:`normalize_raw_event` (the
legacy ``encore`` field becomes ``ai``, absent counts become 0) and sort
the history by ``t`` so the analytics functions can stream over it.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from vinestats.adapters.feed.types import StatsFeed, StatsMeta
from vinestats.core.defaults import DEFAULT_FEED_TIMEOUT_SECONDS
from vinestats.core.types import DropEvent

logger = logging.getLogger(__name__)


class FeedFetchError(RuntimeError):
    """The feed could not be fetched or did not parse as a stats document."""


def _count(raw: dict[str, Any], key: str) -> int:
    value = raw.get(key)
    return 0 if value is None else int(value)


def normalize_raw_event(raw: dict[str, Any]) -> DropEvent:
    """Convert one raw feed event into a canonical :class:`DropEvent`.

    ``ai`` is taken from ``ai``, else the legacy ``encore``, else 0.
    """
    ai = raw.get("ai")
    if ai is None:
        ai = raw.get("encore")
    return DropEvent(
        t=int(raw["t"]),
        ai=0 if ai is None else int(ai),
        last_chance=_count(raw, "last_chance"),
        zero_etv=_count(raw, "zero_etv"),
    )


def parse_stats_document(raw: dict[str, Any]) -> StatsFeed:
    """Validate a decoded feed document and normalize its history.

    Raises:
        KeyError: If an event has no ``t``.
        pydantic.ValidationError: If ``meta`` or an event is malformed.
    """
    events = [normalize_raw_event(e) for e in raw.get("history", [])]
    events.sort(key=lambda e: e.t)
    meta = StatsMeta.model_validate(raw.get("meta", {}))
    logger.info("Parsed stats feed (%d events, updated %s)", len(events), meta.updated_at)
    return StatsFeed(meta=meta, history=events)


def parse_stats_file(path: Path) -> StatsFeed:
    """Parse a stats feed document saved at *path*.

    Raises:
        FileNotFoundError: If *path* does not exist.
    """
    return parse_stats_document(json.loads(path.read_text(encoding="utf-8")))


def fetch_stats(url: str, *, timeout: float = DEFAULT_FEED_TIMEOUT_SECONDS) -> StatsFeed:
    """Fetch and parse the stats feed from *url*.

    A single attempt is made; callers that poll simply call again later.

    Raises:
        FeedFetchError: On a non-2xx status, a network error, or a body
            that is not a valid stats document.
    """
    req = urllib.request.Request(url, headers={"Accept": "application/json"})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            body = json.loads(resp.read().decode("utf-8"))
        return parse_stats_document(body)
    except urllib.error.HTTPError as exc:
        logger.warning("Stats feed %s returned HTTP %s", url, exc.code)
        raise FeedFetchError("Failed to fetch stats") from exc
    except (urllib.error.URLError, OSError) as exc:
        logger.warning("Stats feed %s unreachable: %s", url, exc)
        raise FeedFetchError("Failed to fetch stats") from exc
    except (ValueError, KeyError, ValidationError) as exc:
        logger.warning("Stats feed %s returned an invalid document: %s", url, exc)
        raise FeedFetchError("Failed to fetch stats") from exc
