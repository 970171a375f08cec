"""Typer CLI entrypoint and command definitions for vinestats."""

import json
from pathlib import Path

import typer

from vinestats.core.defaults import DEFAULT_CONFIG_PATH, DEFAULT_HOST, DEFAULT_PORT

app = typer.Typer()


def _load_history(file: str | None, config_path: str):
    """Return the parsed feed from *file*, or fetched from the configured URL."""
    from vinestats.adapters.feed.client import FeedFetchError, fetch_stats, parse_stats_file
    from vinestats.core.config import AppConfig

    if file is not None:
        path = Path(file)
        if not path.exists():
            typer.echo(f"File not found: {path}", err=True)
            raise typer.Exit(code=1)
        try:
            return parse_stats_file(path)
        except (ValueError, KeyError) as exc:
            typer.echo(f"Invalid stats file {path}: {exc}", err=True)
            raise typer.Exit(code=1) from exc

    cfg = AppConfig(config_path)
    try:
        return fetch_stats(cfg.feed_url, timeout=cfg.timeout_seconds)
    except FeedFetchError as exc:
        typer.echo(f"{exc} from {cfg.feed_url}", err=True)
        raise typer.Exit(code=1) from exc


def _parse_now(now: str | None) -> int | None:
    from vinestats.core.time import parse_iso_ms

    if now is None:
        return None
    try:
        return parse_iso_ms(now)
    except ValueError:
        typer.echo(f"Invalid --now timestamp: {now}", err=True)
        raise typer.Exit(code=1)


def _setup(verbose: bool) -> None:
    from vinestats.core.logging import setup_logging

    setup_logging("DEBUG" if verbose else "WARNING")


@app.command("stats")
def stats_cmd(
    file: str = typer.Option(None, "--file", help="Read the feed from a saved JSON file instead of fetching"),
    config: str = typer.Option(DEFAULT_CONFIG_PATH, help="Settings JSON file"),
    now: str = typer.Option(None, help="Treat this ISO-8601 instant as the current time"),
    out: str = typer.Option(None, help="Also write the stats as JSON to this path"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Print last-hour, today and this-week totals with growth vs. median."""
    from vinestats.analytics.stats import compute_stats
    from vinestats.report.export import export_stats_json

    _setup(verbose)
    feed = _load_history(file, config)
    stats = compute_stats(feed.history, feed.meta.updated_at, now=_parse_now(now))

    typer.echo(f"Last hour:  {stats.last_hour}")
    typer.echo(f"Today:      {stats.today} ({stats.today_growth:+d}% vs median {stats.today_median})")
    typer.echo(f"This week:  {stats.this_week} ({stats.week_growth:+d}% vs median {stats.week_median})")
    if stats.updated_at is not None:
        typer.echo(f"Updated at: {stats.updated_at.isoformat()}")

    if out is not None:
        path = export_stats_json(stats, Path(out))
        typer.echo(f"Stats written to {path}")


@app.command("chart")
def chart_cmd(
    granularity: str = typer.Option("1h", help="Bucket width: 15m, 1h or 1d"),
    data_filter: str = typer.Option("all", "--filter", help="Category filter: all, zeroEtv or afa"),
    timeframe: str = typer.Option(None, help="Limit to the newest window: 1d, 7d, 1m, 3m or 1y"),
    file: str = typer.Option(None, "--file", help="Read the feed from a saved JSON file instead of fetching"),
    config: str = typer.Option(DEFAULT_CONFIG_PATH, help="Settings JSON file"),
    now: str = typer.Option(None, help="Treat this ISO-8601 instant as the current time"),
    out: str = typer.Option("artifacts/chart.csv", help="Output path (.csv, .json or .parquet)"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Bucket the drop history into a gap-free chart series and export it."""
    from vinestats.analytics.bucketing import process_chart_data
    from vinestats.analytics.windowing import coerce_granularity, visible_window
    from vinestats.core.types import DataFilter, Granularity, Timeframe
    from vinestats.report.export import (
        export_points_csv,
        export_points_json,
        export_points_parquet,
    )

    _setup(verbose)
    try:
        gran = Granularity(granularity)
        flt = DataFilter(data_filter)
        tf = Timeframe(timeframe) if timeframe is not None else None
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    if tf is not None:
        coerced = coerce_granularity(tf, gran)
        if coerced is not gran:
            typer.echo(f"Granularity {gran} not available for {tf}; using {coerced}")
            gran = coerced

    feed = _load_history(file, config)
    points = process_chart_data(feed.history, gran, flt, now=_parse_now(now))
    if tf is not None:
        points = visible_window(points, tf, gran)
    typer.echo(f"Built {len(points)} {gran} bucket(s)")

    out_path = Path(out)
    exporters = {
        ".csv": export_points_csv,
        ".json": export_points_json,
        ".parquet": export_points_parquet,
    }
    exporter = exporters.get(out_path.suffix)
    if exporter is None:
        typer.echo(f"Unsupported output format: {out_path.suffix}", err=True)
        raise typer.Exit(code=1)
    exporter(points, out_path)
    typer.echo(f"Chart data written to {out_path}")


@app.command("heatmap")
def heatmap_cmd(
    data_filter: str = typer.Option("all", "--filter", help="Category filter: all, zeroEtv or afa"),
    file: str = typer.Option(None, "--file", help="Read the feed from a saved JSON file instead of fetching"),
    config: str = typer.Option(DEFAULT_CONFIG_PATH, help="Settings JSON file"),
    now: str = typer.Option(None, help="Treat this ISO-8601 instant as the current time"),
    out: str = typer.Option("artifacts/heatmap.json", help="Output JSON path"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Compute daily totals and weekday-by-hour median/mean matrices."""
    from vinestats.analytics.heatmap import compute_heat_map
    from vinestats.core.types import DataFilter
    from vinestats.report.export import export_heatmap_json

    _setup(verbose)
    try:
        flt = DataFilter(data_filter)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    feed = _load_history(file, config)
    data = compute_heat_map(feed.history, flt, now=_parse_now(now))
    typer.echo(
        f"{len(data.weekly)} day(s); peak day {data.max_daily}, "
        f"peak hourly median {data.max_hourly_median}, mean {data.max_hourly_mean}"
    )
    path = export_heatmap_json(data, Path(out))
    typer.echo(f"Heat map written to {path}")


@app.command("markers")
def markers_cmd(
    start: str = typer.Option(..., help="Range start (ISO-8601)"),
    end: str = typer.Option(..., help="Range end (ISO-8601)"),
    kind: str = typer.Option("day", help="Marker kind: day, week or month"),
) -> None:
    """List local midnight / week-start / month-start instants in a range."""
    from vinestats.core.offsets import (
        midnight_markers,
        month_start_markers,
        week_start_markers,
    )

    builders = {
        "day": midnight_markers,
        "week": week_start_markers,
        "month": month_start_markers,
    }
    if kind not in builders:
        typer.echo(f"Unknown marker kind: {kind}", err=True)
        raise typer.Exit(code=1)
    start_ms, end_ms = _parse_now(start), _parse_now(end)
    try:
        markers = builders[kind](start_ms, end_ms)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(markers))


@app.command("serve")
def serve_cmd(
    host: str = typer.Option(DEFAULT_HOST, help="Bind address"),
    port: int = typer.Option(DEFAULT_PORT, help="Bind port"),
    config: str = typer.Option(DEFAULT_CONFIG_PATH, help="Settings JSON file"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Serve the stats, chart and heat-map views as JSON over HTTP."""
    import uvicorn

    from vinestats.core.config import AppConfig
    from vinestats.core.logging import setup_logging
    from vinestats.ui.server import create_app

    setup_logging("DEBUG" if verbose else "INFO")
    cfg = AppConfig(config)
    typer.echo(f"Serving {cfg.feed_url} on http://{host}:{port}")
    uvicorn.run(
        create_app(
            feed_url=cfg.feed_url,
            timeout_seconds=cfg.timeout_seconds,
            poll_seconds=cfg.poll_seconds,
        ),
        host=host,
        port=port,
    )


if __name__ == "__main__":
    app()
