"""Resolve pointer positions to samples and place tooltips."""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime

from .geometry import DrawableSize, Point, Rect, Size
from .layout.calendar import CalendarGrid, CellGeometry, GridCell
from .models import Chip, DaySample, TimeSample
from .scales import ScaleSet

TIME_SERIES_TOOLTIP = Size(150.0, 80.0)
HEATMAP_TOOLTIP = Size(150.0, 60.0)
TOOLTIP_PADDING = 10.0


@dataclass(frozen=True, slots=True)
class TooltipState:
    visible: bool
    position: Point
    lines: tuple[str, ...] = ()

    @classmethod
    def hidden(cls) -> TooltipState:
        return cls(False, Point(0.0, 0.0))

    @classmethod
    def show(cls, position: Point, lines: Sequence[str]) -> TooltipState:
        return cls(True, position, tuple(lines))

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True, slots=True)
class Resolution:
    sample: TimeSample | DaySample | None
    tooltip: Rect
    cell: GridCell | None = None


def nearest_index(times: Sequence[datetime], target: datetime) -> int | None:
    """Index of the entry nearest ``target`` in sorted ``times``.

    An exact match wins; otherwise the closer neighbour, ties going left.
    """

    if not times:
        return None
    index = bisect_left(times, target)
    if index >= len(times):
        return len(times) - 1
    if times[index] == target or index == 0:
        return index
    before = target - times[index - 1]
    after = times[index] - target
    return index - 1 if before <= after else index


def nearest_sample(series: Sequence[TimeSample], target: datetime) -> TimeSample | None:
    index = nearest_index(_time_keys(series), target)
    return None if index is None else series[index]


class _TimeKeys(Sequence[datetime]):
    """Read-only view of sample times so bisection does not copy the series."""

    def __init__(self, series: Sequence[TimeSample]) -> None:
        self._series = series

    def __len__(self) -> int:
        return len(self._series)

    def __getitem__(self, index):  # type: ignore[override]
        if isinstance(index, slice):
            return [sample.time for sample in self._series[index]]
        return self._series[index].time


def _time_keys(series: Sequence[TimeSample]) -> Sequence[datetime]:
    return _TimeKeys(series)


def place_tooltip(
    anchor: Point,
    footprint: Size,
    bounds: Rect,
    padding: float = TOOLTIP_PADDING,
) -> Rect:
    """Place a tooltip near ``anchor`` so it stays inside ``bounds``.

    The default spot is ``padding`` right of and below the pointer. When that
    overflows the right edge the box moves to ``width + padding`` left of the
    pointer, and when it overflows the bottom to ``height + padding`` above it.
    Both corrections can apply together. A final clamp covers surfaces smaller
    than the flip distance.
    """

    left = anchor.x + padding
    top = anchor.y + padding
    if left + footprint.width > bounds.right:
        left = anchor.x - (footprint.width + padding)
    if top + footprint.height > bounds.bottom:
        top = anchor.y - (footprint.height + padding)
    left = min(max(left, bounds.x), max(bounds.right - footprint.width, bounds.x))
    top = min(max(top, bounds.y), max(bounds.bottom - footprint.height, bounds.y))
    return Rect(left, top, footprint.width, footprint.height)


def format_time_series_tooltip(sample: TimeSample, chip: Chip) -> tuple[str, ...]:
    local = sample.time.astimezone()
    unit = f"{chip.unit}s"
    return (
        f"Time: {local.strftime('%x, %X')}",
        f"Allocated: {_format_count(sample.allocated)} {unit}",
        f"Total: {_format_count(sample.total)} {unit}",
    )


def format_heatmap_tooltip(day: date, value: int | None, chip: Chip) -> tuple[str, ...]:
    # A zero count reads as "No data", matching the dashboard this replaces.
    shown = str(value) if value else "No data"
    return (f"Date: {day.strftime('%x')}", f"{chip.unit}s: {shown}")


def _format_count(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def resolve_time_series(
    pointer: Point,
    series: Sequence[TimeSample],
    scales: ScaleSet | None,
    drawable: DrawableSize,
    footprint: Size = TIME_SERIES_TOOLTIP,
    padding: float = TOOLTIP_PADDING,
) -> Resolution | None:
    """Resolve a pointer given in plot-area coordinates.

    The tooltip rectangle is returned in outer surface coordinates.
    """

    if not series or scales is None or scales.position is None:
        return None
    sample = nearest_sample(series, scales.position.inverse(pointer.x))
    if sample is None:
        return None
    tooltip = place_tooltip(drawable.to_outer(pointer), footprint, drawable.bounds, padding)
    return Resolution(sample=sample, tooltip=tooltip)


def resolve_heatmap(
    pointer: Point,
    grid: CalendarGrid,
    lookup: Mapping[date, int],
    geometry: CellGeometry,
    drawable: DrawableSize,
    footprint: Size = HEATMAP_TOOLTIP,
    padding: float = TOOLTIP_PADDING,
) -> Resolution | None:
    """Hit-test the calendar cell under a plot-area pointer.

    Returns ``None`` outside every visible cell. A cell without data resolves
    with ``sample=None``.
    """

    hit = geometry.hit_test(pointer.x, pointer.y)
    if hit is None:
        return None
    cell = grid.cell_at(*hit)
    if cell is None:
        return None
    value = lookup.get(cell.date)
    sample = DaySample(cell.date, value) if value is not None else None
    tooltip = place_tooltip(drawable.to_outer(pointer), footprint, drawable.bounds, padding)
    return Resolution(sample=sample, tooltip=tooltip, cell=cell)


__all__ = [
    "TooltipState",
    "Resolution",
    "TIME_SERIES_TOOLTIP",
    "HEATMAP_TOOLTIP",
    "TOOLTIP_PADDING",
    "nearest_index",
    "nearest_sample",
    "place_tooltip",
    "resolve_time_series",
    "resolve_heatmap",
    "format_time_series_tooltip",
    "format_heatmap_tooltip",
]
