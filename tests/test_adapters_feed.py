"""Tests for the stats feed adapter: normalization, parsing, fetching."""

from __future__ import annotations

import io
import json
import urllib.error
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from vinestats.adapters.feed import client
from vinestats.adapters.feed.client import (
    FeedFetchError,
    fetch_stats,
    normalize_raw_event,
    parse_stats_document,
    parse_stats_file,
)


class TestNormalizeRawEvent:
    def test_ai_field(self) -> None:
        e = normalize_raw_event({"t": 1, "ai": 3, "last_chance": 2, "zero_etv": 1})
        assert (e.t, e.ai, e.last_chance, e.zero_etv) == (1, 3, 2, 1)

    def test_legacy_encore_alias(self) -> None:
        assert normalize_raw_event({"t": 1, "encore": 4, "last_chance": 0}).ai == 4

    def test_ai_wins_over_encore_even_when_zero(self) -> None:
        assert normalize_raw_event({"t": 1, "ai": 0, "encore": 4}).ai == 0

    def test_null_ai_falls_back_to_encore(self) -> None:
        assert normalize_raw_event({"t": 1, "ai": None, "encore": 4}).ai == 4

    def test_missing_counts_default_to_zero(self) -> None:
        e = normalize_raw_event({"t": 5})
        assert (e.ai, e.last_chance, e.zero_etv) == (0, 0, 0)

    def test_missing_timestamp(self) -> None:
        with pytest.raises(KeyError):
            normalize_raw_event({"ai": 1})


class TestParse:
    def test_document_is_sorted_and_normalized(
        self, feed_document: dict[str, Any], sample_history,
    ) -> None:
        feed = parse_stats_document(feed_document)
        assert feed.history == sample_history
        assert feed.meta.total_items == 4
        assert feed.meta.updated_at == datetime(2025, 6, 18, 18, 58, tzinfo=timezone.utc)

    def test_missing_sections(self) -> None:
        feed = parse_stats_document({})
        assert feed.history == []
        assert feed.meta.updated_at is None

    def test_empty_updated_at_is_none(self) -> None:
        assert parse_stats_document({"meta": {"updatedAt": ""}}).meta.updated_at is None

    def test_naive_updated_at_is_utc(self) -> None:
        meta = parse_stats_document({"meta": {"updatedAt": "2025-06-18T18:58:00"}}).meta
        assert meta.updated_at == datetime(2025, 6, 18, 18, 58, tzinfo=timezone.utc)

    def test_bad_updated_at_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_stats_document({"meta": {"updatedAt": "not-a-date"}, "history": []})

    def test_file(self, tmp_path: Path, feed_document: dict[str, Any], sample_history) -> None:
        path = tmp_path / "stats.json"
        path.write_text(json.dumps(feed_document))
        assert parse_stats_file(path).history == sample_history

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            parse_stats_file(tmp_path / "nope.json")


class _FakeResponse(io.BytesIO):
    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class TestFetch:
    def test_success(
        self, monkeypatch: pytest.MonkeyPatch, feed_document: dict[str, Any], sample_history,
    ) -> None:
        seen: dict[str, Any] = {}

        def fake_urlopen(req, timeout):
            seen["url"] = req.full_url
            seen["accept"] = req.get_header("Accept")
            seen["timeout"] = timeout
            return _FakeResponse(json.dumps(feed_document).encode("utf-8"))

        monkeypatch.setattr(client.urllib.request, "urlopen", fake_urlopen)
        feed = fetch_stats("https://example.test/stats.json", timeout=3)
        assert feed.history == sample_history
        assert seen == {
            "url": "https://example.test/stats.json",
            "accept": "application/json",
            "timeout": 3,
        }

    def test_http_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_urlopen(req, timeout):
            raise urllib.error.HTTPError(req.full_url, 503, "unavailable", {}, None)

        monkeypatch.setattr(client.urllib.request, "urlopen", fake_urlopen)
        with pytest.raises(FeedFetchError, match="Failed to fetch stats"):
            fetch_stats("https://example.test/stats.json")

    def test_network_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_urlopen(req, timeout):
            raise urllib.error.URLError("no route")

        monkeypatch.setattr(client.urllib.request, "urlopen", fake_urlopen)
        with pytest.raises(FeedFetchError) as info:
            fetch_stats("https://example.test/stats.json")
        assert isinstance(info.value.__cause__, urllib.error.URLError)

    def test_invalid_body(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            client.urllib.request, "urlopen", lambda req, timeout: _FakeResponse(b"<html>"),
        )
        with pytest.raises(FeedFetchError):
            fetch_stats("https://example.test/stats.json")

    def test_bad_updated_at(self, monkeypatch: pytest.MonkeyPatch) -> None:
        body = {"meta": {"updatedAt": "not-a-date"}, "history": [{"t": 1, "ai": 1}]}
        monkeypatch.setattr(
            client.urllib.request, "urlopen",
            lambda req, timeout: _FakeResponse(json.dumps(body).encode("utf-8")),
        )
        with pytest.raises(FeedFetchError, match="Failed to fetch stats"):
            fetch_stats("https://example.test/stats.json")
