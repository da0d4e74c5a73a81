"""Command-line entry point for allocviz.

Usage examples:
  allocviz fetch --chip cpu --start 2024-01-01 --end 2024-01-07 --granularity hourly
  allocviz fetch --chip gpu --start 2024-04-01 --end 2025-03-31 --daily
  allocviz --json grid --start 2024-04-01
  allocviz render --chart heatmap --chip cpu --start 2024-04-01 --out cpu.png
  allocviz render --chart timeseries --chip gpu --format json --out frame.json
  allocviz dashboard --heatmap-start 2024-04-01
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Callable
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from .charts import CalendarHeatmapChart, ChartStatus, TimeSeriesChart
from .config import AppConfig, load_app_config
from .contracts.error import BadInputError, EmptySeriesError, guard_cli
from .layout.calendar import CellGeometry, build_calendar_grid
from .logging_setup import DEFAULT_LOG_BACKUP_COUNT, DEFAULT_LOG_MAX_BYTES, configure_logging
from .models import Chip, DateRange, Granularity, to_js_iso
from .normalize import normalize_daily, normalize_time_series, require_samples
from .render.primitives import Canvas, RecordingCanvas
from .source.client import MetricsSourceClient
from .source.tasks import FetchCoordinator

logger = logging.getLogger("allocviz")

CONFIG_ENV_VAR = "ALLOCVIZ_CONFIG"
OUTPUT_JSON: bool = False

Handler = Callable[[argparse.Namespace, AppConfig], int]


def emit_success(
    command: str, *, text: str | None = None, data: dict[str, Any] | None = None
) -> None:
    if OUTPUT_JSON:
        payload: dict[str, Any] = {"ok": True, "command": command}
        if data:
            payload.update(data)
        if text is not None and "result" not in payload:
            payload["result"] = text
        print(json.dumps(payload, ensure_ascii=False, default=str))
    else:
        if text is not None:
            print(text)


def parse_day(raw: str | None, label: str) -> date | None:
    if raw is None:
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        raise BadInputError(f"{label} must be an ISO date (YYYY-MM-DD); got {raw!r}") from exc


def parse_instant(raw: str | None, label: str) -> datetime | None:
    """Parse an ISO date or datetime; naive values are taken as UTC."""

    if raw is None:
        return None
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError as exc:
        raise BadInputError(f"{label} must be an ISO date or datetime; got {raw!r}") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment


def _client(cfg: AppConfig) -> MetricsSourceClient:
    return MetricsSourceClient(
        cfg.source.base_url,
        timeout=cfg.source.timeout,
        max_response_bytes=cfg.source.max_response_bytes,
    )


def _fetch_range(args: argparse.Namespace, cfg: AppConfig) -> DateRange:
    start = parse_instant(args.start, "--start")
    end = parse_instant(args.end, "--end")
    if start is None and end is None:
        return DateRange.trailing_days(cfg.timeseries.default_days)
    if start is None or end is None:
        raise BadInputError("--start and --end must be given together")
    return DateRange(start, end)


def _handle_fetch(args: argparse.Namespace, cfg: AppConfig) -> int:
    chip = Chip(args.chip)
    granularity = Granularity(args.granularity) if args.granularity else cfg.timeseries.granularity
    if args.daily and not args.granularity:
        granularity = Granularity.DAILY
    date_range = _fetch_range(args, cfg)
    rows = _client(cfg).fetch(chip, date_range, granularity)
    if args.daily:
        days = require_samples(normalize_daily(rows))
        samples = [{"date": day.date.isoformat(), "value": day.value} for day in days]
        text = "\n".join(f"{day.date.isoformat()} {day.value}" for day in days)
    else:
        series = require_samples(normalize_time_series(rows))
        samples = [
            {"time": to_js_iso(s.time), "allocated": s.allocated, "total": s.total} for s in series
        ]
        text = "\n".join(
            f"{to_js_iso(s.time)} allocated={s.allocated:g} total={s.total:g}" for s in series
        )
    emit_success(
        "fetch",
        text=text,
        data={
            "chip": chip.value,
            "granularity": granularity.value,
            "start": to_js_iso(date_range.start),
            "end": to_js_iso(date_range.end),
            "count": len(samples),
            "samples": samples,
        },
    )
    return 0


def _heatmap_start(args: argparse.Namespace, cfg: AppConfig) -> date:
    return (
        parse_day(args.start, "--start")
        or cfg.heatmap.start
        or date(datetime.now(UTC).year, 1, 1)
    )


def _handle_grid(args: argparse.Namespace, cfg: AppConfig) -> int:
    start = _heatmap_start(args, cfg)
    end = parse_day(args.end, "--end") or DateRange.calendar_year(start).end_date
    grid = build_calendar_grid(start, end)
    geometry = CellGeometry(cfg.heatmap.cell_size, cfg.heatmap.cell_margin)
    lines = [
        f"range: {grid.start.isoformat()} .. {grid.end.isoformat()}",
        f"anchor: {grid.anchor.isoformat()}",
        f"weeks: {grid.week_count}",
        f"cells: {len(grid.cells)}",
        f"grid size: {geometry.grid_width(grid.week_count):g}x{geometry.grid_height:g}px",
        "months: " + ", ".join(f"{label.text}@{label.week_index}" for label in grid.labels),
    ]
    emit_success(
        "grid",
        text="\n".join(lines),
        data={
            "start": grid.start.isoformat(),
            "end": grid.end.isoformat(),
            "anchor": grid.anchor.isoformat(),
            "week_count": grid.week_count,
            "cells": [
                {"date": c.date.isoformat(), "week": c.week_index, "weekday": c.day_of_week}
                for c in grid.cells
            ],
            "labels": [{"text": m.text, "week": m.week_index} for m in grid.labels],
        },
    )
    return 0


def _build_render_chart(
    args: argparse.Namespace, cfg: AppConfig, canvas: Canvas
) -> TimeSeriesChart | CalendarHeatmapChart:
    chip = Chip(args.chip)
    coordinator = FetchCoordinator(background=False)
    if args.chart == "heatmap":
        return CalendarHeatmapChart(
            _client(cfg),
            chip=chip,
            start=_heatmap_start(args, cfg),
            geometry=CellGeometry(cfg.heatmap.cell_size, cfg.heatmap.cell_margin),
            coordinator=coordinator,
            canvas=canvas,
        )
    date_range = _fetch_range(args, cfg)
    return TimeSeriesChart(
        _client(cfg),
        chip=chip,
        start=date_range.start,
        end=date_range.end,
        granularity=Granularity(args.granularity) if args.granularity else cfg.timeseries.granularity,
        color=cfg.timeseries.color_for(chip),
        min_width=cfg.timeseries.min_width,
        coordinator=coordinator,
        canvas=canvas,
    )


def _handle_render(args: argparse.Namespace, cfg: AppConfig) -> int:
    if args.format == "png" and not args.out:
        raise BadInputError("--out is required for PNG output")
    if args.format == "png":
        os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
        try:
            from .dashboard.app import build_app
            from .dashboard.canvas import QtCanvas

            app = build_app([])
            canvas: Canvas = QtCanvas()
        except RuntimeError as exc:
            raise BadInputError(str(exc), hint="pip install .[gui]") from exc
    else:
        app = None
        canvas = RecordingCanvas()

    chart = _build_render_chart(args, cfg, canvas)
    try:
        chart.configure()
        if chart.status is ChartStatus.ERROR and chart.error is not None:
            raise chart.error
        if chart.status is ChartStatus.EMPTY:
            raise EmptySeriesError()
        chart.resize(args.width)
    finally:
        chart.shutdown()
    size = chart.surface.size
    if size is None:
        raise RuntimeError(f"{chart.kind} surface was never sized")

    if app is not None:
        app.processEvents()
        out_path = canvas.save_png(args.out, size.width, size.height)  # type: ignore[attr-defined]
        emit_success("render", text=f"Wrote {out_path}", data={"out": str(out_path)})
        return 0

    payload = {"width": size.width, "height": size.height, "primitives": canvas.to_payload()}  # type: ignore[attr-defined]
    if args.out:
        out_path = Path(args.out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(payload, default=str), encoding="utf-8")
        emit_success("render", text=f"Wrote {out_path}", data={"out": str(out_path)})
    else:
        emit_success("render", text=json.dumps(payload, default=str), data=payload)
    return 0


def _handle_dashboard(args: argparse.Namespace, cfg: AppConfig) -> int:
    try:
        from .dashboard.app import run_dashboard

        return run_dashboard(
            cfg,
            [sys.argv[0]],
            heatmap_start=parse_day(args.heatmap_start, "--heatmap-start"),
            timeseries_start=parse_instant(args.timeseries_start, "--timeseries-start"),
            timeseries_end=parse_instant(args.timeseries_end, "--timeseries-end"),
        )
    except RuntimeError as exc:
        raise BadInputError(str(exc), hint="pip install .[gui]") from exc


def _add_chip(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--chip", choices=[c.value for c in Chip], default=Chip.CPU.value)


def _add_granularity(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--granularity",
        choices=[g.value for g in Granularity],
        default=None,
        help="Server-side resampling (default: from config)",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="allocviz",
        description="Fetch, lay out and render CPU/GPU allocation charts.",
    )
    p.add_argument("--log-json", action="store_true", help="Emit logs in JSON format")
    p.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path (rotates at 5MB, keeps 5 backups by default)",
    )
    p.add_argument(
        "--log-max-bytes",
        type=int,
        default=DEFAULT_LOG_MAX_BYTES,
        help="Max bytes per log file before rotation (default: %(default)s)",
    )
    p.add_argument(
        "--log-backup-count",
        type=int,
        default=DEFAULT_LOG_BACKUP_COUNT,
        help="Number of rotated log files to keep (default: %(default)s)",
    )
    p.add_argument(
        "--json", action="store_true", help="Emit machine-readable success output to stdout"
    )
    p.add_argument("--config", default=None, help="Path to TOML config file")
    p.add_argument("--base-url", default=None, help="Override the metrics endpoint base URL")
    sub = p.add_subparsers(dest="cmd", required=True)

    fetch = sub.add_parser("fetch", help="Fetch and normalize one series.")
    _add_chip(fetch)
    fetch.add_argument("--start", default=None, help="ISO date/datetime (default: trailing window)")
    fetch.add_argument("--end", default=None)
    _add_granularity(fetch)
    fetch.add_argument("--daily", action="store_true", help="Normalize as rounded per-day values")
    fetch.set_defaults(handler=_handle_fetch)

    grid = sub.add_parser("grid", help="Print calendar grid geometry for a date range.")
    grid.add_argument("--start", default=None, help="First day (default: config or Jan 1)")
    grid.add_argument("--end", default=None, help="Last day (default: one year after start)")
    grid.set_defaults(handler=_handle_grid)

    render = sub.add_parser("render", help="Render one chart to PNG or recorded primitives.")
    render.add_argument("--chart", choices=["heatmap", "timeseries"], required=True)
    _add_chip(render)
    render.add_argument("--start", default=None)
    render.add_argument("--end", default=None, help="Time series only")
    _add_granularity(render)
    render.add_argument("--width", type=float, default=1200.0, help="Container width in px")
    render.add_argument("--format", choices=["png", "json"], default="png")
    render.add_argument("--out", default=None)
    render.set_defaults(handler=_handle_render)

    dash = sub.add_parser("dashboard", help="Launch the Qt dashboard.")
    dash.add_argument("--heatmap-start", default=None)
    dash.add_argument("--timeseries-start", default=None)
    dash.add_argument("--timeseries-end", default=None)
    dash.set_defaults(handler=_handle_dashboard)
    return p


def main(argv: list[str]) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    global OUTPUT_JSON
    OUTPUT_JSON = bool(args.json)

    configure_logging(
        args.log_json,
        args.log_file,
        max_bytes=args.log_max_bytes,
        backup_count=args.log_backup_count,
    )
    return _run(args)


@guard_cli
def _run(args: argparse.Namespace) -> int:
    cfg_path = args.config or os.getenv(CONFIG_ENV_VAR)
    cfg = load_app_config(cfg_path)
    if cfg_path:
        logger.info("Loaded config from %s", cfg_path)
    if args.base_url:
        cfg.source.base_url = args.base_url
        cfg.source.validate()
    handler: Handler = args.handler
    return handler(args, cfg)


def console_main() -> None:
    """Entry point for console_scripts."""

    raise SystemExit(main(sys.argv[1:]))


__all__ = ["main", "console_main", "build_parser", "emit_success", "parse_day", "parse_instant"]
