"""Export utilities for engine outputs: JSON, CSV, and Parquet."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Sequence

import pandas as pd

from vinestats.core.types import ChartDataPoint, DashboardStats, HeatMapData

_POINT_COLUMNS = ["date", "label", "fullDate", "ai", "lastChance", "zeroEtv", "total"]


def _points_to_rows(points: Sequence[ChartDataPoint]) -> list[dict[str, object]]:
    return [
        {col: row[col] for col in _POINT_COLUMNS}
        for row in (p.model_dump(by_alias=True) for p in points)
    ]


def _write_json(data: object, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return path


def export_points_json(points: Sequence[ChartDataPoint], path: Path) -> Path:
    """Write chart points to *path* as a JSON array (camelCase keys)."""
    return _write_json([p.model_dump(mode="json", by_alias=True) for p in points], path)


def export_points_csv(points: Sequence[ChartDataPoint], path: Path) -> Path:
    """Write chart points as a flat CSV, one row per bucket.

    Columns: ``date``, ``label``, ``fullDate``, ``ai``, ``lastChance``,
    ``zeroEtv``, ``total``.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=_POINT_COLUMNS)
        writer.writeheader()
        writer.writerows(_points_to_rows(points))
    return path


def export_points_parquet(points: Sequence[ChartDataPoint], path: Path) -> Path:
    """Write chart points as Parquet.  Schema matches :func:`export_points_csv`."""
    df = pd.DataFrame(_points_to_rows(points), columns=_POINT_COLUMNS)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(path, index=False)
    return path


def export_stats_json(stats: DashboardStats, path: Path) -> Path:
    return _write_json(stats.model_dump(mode="json", by_alias=True), path)


def export_heatmap_json(data: HeatMapData, path: Path) -> Path:
    return _write_json(data.model_dump(mode="json", by_alias=True), path)
