"""Full-frame draw pipelines for both chart kinds.

Each pipeline clears the canvas first and emits the whole chart from its
inputs, so drawing twice with equal inputs produces an identical frame.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date

from ..geometry import DrawableSize, Point, Rect
from ..layout.calendar import WEEKDAY_LABELS, CalendarGrid, CellGeometry
from ..models import Chip, TimeSample
from ..normalize import js_round
from ..scales import NO_DATA_FILL, ScaleSet, format_number
from .primitives import Canvas

logger = logging.getLogger(__name__)

LINE_WIDTH = 2.0
AXIS_COLOR = "#000000"
HEATMAP_BACKGROUND = "#f9f9f9"
CELL_STROKE = "#cccccc"
LEGEND_WIDTH = 15.0
LEGEND_STEPS = 10
X_TICK_COUNT = 10
Y_TICK_COUNT = 10


def heatmap_title(chip: Chip) -> str:
    return f"{chip.unit} Usage"


def draw_time_series(
    canvas: Canvas,
    series: Sequence[TimeSample],
    drawable: DrawableSize,
    scales: ScaleSet,
    *,
    color: str = "steelblue",
) -> None:
    """Axes plus one line of allocated counts over time."""

    canvas.clear()
    x_scale, y_scale = scales.position, scales.value
    if x_scale is None or y_scale is None:
        raise ValueError("time series drawing needs position and value scales")
    margins = drawable.margins

    x_format = x_scale.tick_format(X_TICK_COUNT)
    x_ticks = tuple(
        (margins.left + x_scale(tick), tick.strftime(x_format))
        for tick in x_scale.ticks(X_TICK_COUNT)
    )
    canvas.axis(
        "bottom",
        Point(margins.left, margins.top + drawable.inner_height),
        drawable.inner_width,
        x_ticks,
        color=AXIS_COLOR,
        key="x-axis",
    )
    y_ticks = tuple(
        (margins.top + y_scale(tick), format_number(tick)) for tick in y_scale.ticks(Y_TICK_COUNT)
    )
    canvas.axis(
        "left",
        Point(margins.left, margins.top),
        drawable.inner_height,
        y_ticks,
        color=AXIS_COLOR,
        key="y-axis",
    )

    xs = x_scale.map_array([sample.time for sample in series]) + margins.left
    ys = y_scale.map_array([sample.allocated for sample in series]) + margins.top
    points = tuple(Point(float(x), float(y)) for x, y in zip(xs, ys, strict=True))
    canvas.path(points, stroke=color, stroke_width=LINE_WIDTH, key="line")
    logger.debug("Drew time series with %d points", len(points))


def draw_heatmap(
    canvas: Canvas,
    grid: CalendarGrid,
    lookup: Mapping[date, int],
    drawable: DrawableSize,
    scales: ScaleSet,
    *,
    chip: Chip,
    geometry: CellGeometry | None = None,
) -> None:
    """Background, labels, one cell per visible day, legend and title.

    Days missing from ``lookup`` are filled with :data:`NO_DATA_FILL`. Without
    a color scale every cell is a no-data cell and the legend is omitted.
    """

    geometry = geometry or CellGeometry()
    margins = drawable.margins
    canvas.clear()
    canvas.rect(drawable.bounds, fill=HEATMAP_BACKGROUND, radius=8.0, key="background")

    for label in grid.labels:
        canvas.text(
            Point(margins.left + geometry.label_x(label), margins.top - 10),
            label.text,
            anchor="start",
            key="month-label",
        )
    for weekday, name in enumerate(WEEKDAY_LABELS):
        canvas.text(
            Point(margins.left - 5, margins.top + geometry.weekday_label_y(weekday)),
            name,
            anchor="end",
            key="weekday-label",
        )

    color_scale = scales.color
    for cell in grid.cells:
        local = geometry.cell_rect(cell)
        value = lookup.get(cell.date)
        fill = NO_DATA_FILL if value is None or color_scale is None else color_scale(value)
        canvas.rect(
            Rect(local.x + margins.left, local.y + margins.top, local.width, local.height),
            fill=fill,
            stroke=CELL_STROKE,
            stroke_width=0.5,
            radius=2.0,
            key="day",
        )

    if color_scale is not None:
        _draw_legend(canvas, drawable, geometry, color_scale.legend_stops(LEGEND_STEPS), color_scale.domain)

    canvas.text(
        Point(drawable.width / 2, 20),
        heatmap_title(chip),
        anchor="middle",
        size=16,
        bold=True,
        key="title",
    )


def _draw_legend(
    canvas: Canvas,
    drawable: DrawableSize,
    geometry: CellGeometry,
    stops: Sequence[tuple[float, str]],
    domain: tuple[float, float],
) -> None:
    height = geometry.grid_height
    left = drawable.width - LEGEND_WIDTH - drawable.margins.right / 2
    top = drawable.margins.top
    canvas.gradient(Rect(left, top, LEGEND_WIDTH, height), stops, key="legend")
    lo, hi = domain
    canvas.text(Point(left - 5, top + height + 5), str(js_round(lo)), anchor="end", key="legend-min")
    canvas.text(Point(left - 5, top), str(js_round(hi)), anchor="end", key="legend-max")
    canvas.text(Point(left + LEGEND_WIDTH / 2, top - 15), "Usage", anchor="middle", key="legend-caption")


__all__ = ["draw_time_series", "draw_heatmap", "heatmap_title"]
