"""End-to-end CLI tests for vinestats commands.

Tests invoke the Typer CLI via CliRunner against a saved feed file and a
fixed ``--now`` so results do not depend on the wall clock.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from vinestats.cli.main import app

runner = CliRunner()

NOW_ISO = "2025-06-18T19:00:00Z"


@pytest.fixture()
def feed_file(tmp_path: Path, feed_document: dict[str, Any]) -> Path:
    path = tmp_path / "stats.json"
    path.write_text(json.dumps(feed_document))
    return path


class TestStats:
    def test_prints_summary(self, feed_file: Path) -> None:
        result = runner.invoke(app, ["stats", "--file", str(feed_file), "--now", NOW_ISO])
        assert result.exit_code == 0, result.output
        assert "Last hour:  6" in result.output
        assert "Today:      10 (+150% vs median 4)" in result.output
        assert "This week:  17 (+100% vs median 0)" in result.output

    def test_writes_json(self, feed_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "stats_out.json"
        result = runner.invoke(
            app, ["stats", "--file", str(feed_file), "--now", NOW_ISO, "--out", str(out)],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text())["thisWeek"] == 17

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["stats", "--file", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_bad_now(self, feed_file: Path) -> None:
        result = runner.invoke(app, ["stats", "--file", str(feed_file), "--now", "yesterday"])
        assert result.exit_code == 1

    def test_bad_updated_at_in_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"meta": {"updatedAt": "not-a-date"}, "history": []}))
        result = runner.invoke(app, ["stats", "--file", str(path), "--now", NOW_ISO])
        assert result.exit_code == 1
        assert "Invalid stats file" in result.output


class TestChart:
    def test_daily_csv(self, feed_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "chart.csv"
        result = runner.invoke(app, [
            "chart", "--granularity", "1d", "--file", str(feed_file),
            "--now", NOW_ISO, "--out", str(out),
        ])
        assert result.exit_code == 0, result.output
        with open(out, newline="") as f:
            rows = list(csv.DictReader(f))
        assert [r["fullDate"] for r in rows] == ["2025-06-16", "2025-06-17", "2025-06-18"]

    def test_timeframe_coerces_granularity(self, feed_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "chart.json"
        result = runner.invoke(app, [
            "chart", "--granularity", "1d", "--timeframe", "1d", "--file", str(feed_file),
            "--now", NOW_ISO, "--out", str(out),
        ])
        assert result.exit_code == 0, result.output
        assert "using 15m" in result.output
        data = json.loads(out.read_text())
        assert data[-1]["date"] - data[0]["date"] <= 24 * 3_600_000

    def test_filter(self, feed_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "chart.json"
        result = runner.invoke(app, [
            "chart", "--granularity", "1d", "--filter", "afa", "--file", str(feed_file),
            "--now", NOW_ISO, "--out", str(out),
        ])
        assert result.exit_code == 0, result.output
        assert [row["ai"] for row in json.loads(out.read_text())] == [0, 0, 0]

    def test_invalid_granularity(self, feed_file: Path) -> None:
        result = runner.invoke(app, ["chart", "--granularity", "5m", "--file", str(feed_file)])
        assert result.exit_code == 1

    def test_unsupported_output(self, feed_file: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, [
            "chart", "--file", str(feed_file), "--now", NOW_ISO,
            "--out", str(tmp_path / "chart.xlsx"),
        ])
        assert result.exit_code == 1


class TestHeatmap:
    def test_writes_json(self, feed_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "heat.json"
        result = runner.invoke(app, [
            "heatmap", "--file", str(feed_file), "--now", NOW_ISO, "--out", str(out),
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text())
        assert data["maxDaily"] == 10
        assert len(data["hourlyMedian"]) == 7


class TestMarkers:
    def test_month_markers(self) -> None:
        result = runner.invoke(app, [
            "markers", "--start", "2025-01-15T00:00:00Z", "--end", "2025-04-15T00:00:00Z",
            "--kind", "month",
        ])
        assert result.exit_code == 0, result.output
        assert len(json.loads(result.output)) == 3

    def test_unknown_kind(self) -> None:
        result = runner.invoke(app, [
            "markers", "--start", "2025-01-15T00:00:00Z", "--end", "2025-04-15T00:00:00Z",
            "--kind", "year",
        ])
        assert result.exit_code == 1

    def test_out_of_range(self) -> None:
        result = runner.invoke(app, [
            "markers", "--start", "9999-12-31T00:00:00Z", "--end", "9999-12-31T23:59:59Z",
        ])
        assert result.exit_code == 1

    def test_range_too_wide(self) -> None:
        result = runner.invoke(app, [
            "markers", "--start", "1970-01-01T00:00:00Z", "--end", "5000-01-01T00:00:00Z",
        ])
        assert result.exit_code == 1
