"""Chart controllers: fetch, status, redraw and pointer state per chart.

A controller owns its series, scales and tooltip exclusively. Fetches go
through a :class:`~allocviz.source.tasks.FetchCoordinator`, so reconfiguring
or shutting a chart down discards any result still in flight. Everything
else (resize, pointer, redraw) runs synchronously on the caller's thread.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from enum import StrEnum
from typing import Any

from .contracts.error import EmptySeriesError
from .geometry import DrawableSize, Point
from .layout.calendar import CalendarGrid, CellGeometry, grid_for_range
from .models import Chip, DateRange, DaySeries, Granularity, TimeSeries
from .normalize import normalize_daily, normalize_time_series
from .pointer import (
    HEATMAP_TOOLTIP,
    TIME_SERIES_TOOLTIP,
    TOOLTIP_PADDING,
    TooltipState,
    format_heatmap_tooltip,
    format_time_series_tooltip,
    resolve_heatmap,
    resolve_time_series,
)
from .render.pipeline import draw_heatmap, draw_time_series
from .render.primitives import Canvas, RecordingCanvas
from .scales import ScaleSet, build_heatmap_scales, build_time_series_scales, day_lookup
from .source.client import MetricsSourceClient
from .source.tasks import CancelToken, FetchCoordinator, FetchTask
from .surface import RenderSurface, heatmap_spec, time_series_spec

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
StatusListener = Callable[["ChartStatus"], None]

NO_DATA_MESSAGE = "No data available"
DEFAULT_LINE_COLOR = "steelblue"


class ChartStatus(StrEnum):
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    READY = "ready"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class _ChartController(ABC):
    """Shared fetch/status/resize plumbing for both chart kinds."""

    kind = "chart"

    def __init__(
        self,
        client: MetricsSourceClient,
        surface: RenderSurface,
        *,
        coordinator: FetchCoordinator | None = None,
        canvas: Canvas | None = None,
    ) -> None:
        self._client = client
        self.surface = surface
        self.canvas: Canvas = canvas if canvas is not None else RecordingCanvas()
        self._coordinator = coordinator or FetchCoordinator()
        self.status = ChartStatus.LOADING
        self.error: Exception | None = None
        self.scales: ScaleSet | None = None
        self.tooltip = TooltipState.hidden()
        self.draw_count = 0
        self._listeners: list[StatusListener] = []
        self._unsubscribe_resize: Callable[[], None] | None = surface.on_resize(self._on_resize)

    # -- status ------------------------------------------------------------
    @property
    def message(self) -> str | None:
        """User-visible text replacing the chart, if any."""

        if self.status is ChartStatus.LOADING:
            return "Loading..."
        if self.status is ChartStatus.ERROR:
            return f"Error: {self.error}"
        if self.status is ChartStatus.EMPTY:
            return NO_DATA_MESSAGE
        return None

    def add_status_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def _set_status(self, status: ChartStatus) -> None:
        self.status = status
        for listener in list(self._listeners):
            listener(status)

    # -- fetching ----------------------------------------------------------
    def refresh(self) -> FetchTask[Any]:
        """Drop the current series and fetch it again with current settings."""

        self._clear_series()
        self.error = None
        self._set_status(ChartStatus.LOADING)
        label = f"{self.kind}-{self._chip_label()}"
        return self._coordinator.submit(self._work, self._on_loaded, self._on_failed, label=label)

    @abstractmethod
    def _work(self, token: CancelToken) -> Any: ...

    def _on_loaded(self, series: Any) -> None:
        if not series:
            logger.info("%s fetch returned no samples", self.kind)
            self._clear_series()
            self.error = EmptySeriesError()
            self._set_status(ChartStatus.EMPTY)
            self.canvas.clear()
            return
        logger.info("%s fetch committed %d samples", self.kind, len(series))
        self._store_series(series)
        self._set_status(ChartStatus.READY)
        self.redraw()

    def _on_failed(self, exc: Exception) -> None:
        logger.warning("%s fetch failed: %s", self.kind, exc)
        self._clear_series()
        self.error = exc
        self._set_status(ChartStatus.ERROR)
        self.canvas.clear()

    # -- drawing -----------------------------------------------------------
    def resize(self, container_width: float, container_height: float = 0.0) -> bool:
        return self.surface.notify_resize(container_width, container_height)

    def _on_resize(self, _size: DrawableSize) -> None:
        self.tooltip = TooltipState.hidden()
        self.redraw()

    def redraw(self) -> bool:
        """Rebuild scales from scratch and draw; no-op until data and a size exist."""

        size = self.surface.size
        if self.status is not ChartStatus.READY or size is None:
            return False
        self._draw(size)
        self.draw_count += 1
        return True

    @abstractmethod
    def _draw(self, size: DrawableSize) -> None: ...

    # -- pointer -----------------------------------------------------------
    def pointer_leave(self) -> None:
        self.tooltip = TooltipState.hidden()

    def shutdown(self) -> None:
        self._coordinator.shutdown()
        if self._unsubscribe_resize is not None:
            self._unsubscribe_resize()
            self._unsubscribe_resize = None

    # -- hooks -------------------------------------------------------------
    @abstractmethod
    def _chip_label(self) -> str: ...

    @abstractmethod
    def _store_series(self, series: Any) -> None: ...

    @abstractmethod
    def _clear_series(self) -> None: ...


class TimeSeriesChart(_ChartController):
    """Line chart of allocated counts for one chip kind over a time window."""

    kind = "timeseries"

    def __init__(
        self,
        client: MetricsSourceClient,
        *,
        chip: Chip = Chip.CPU,
        start: datetime | None = None,
        end: datetime | None = None,
        granularity: Granularity = Granularity.RAW,
        color: str = DEFAULT_LINE_COLOR,
        default_days: int = 7,
        min_width: float = 1200.0,
        clock: Clock = _utc_now,
        surface: RenderSurface | None = None,
        coordinator: FetchCoordinator | None = None,
        canvas: Canvas | None = None,
    ) -> None:
        super().__init__(
            client,
            surface or RenderSurface(time_series_spec(min_width)),
            coordinator=coordinator,
            canvas=canvas,
        )
        # Defaults are taken once per chart, not per fetch.
        now = clock()
        self.chip = chip
        self.end = end or now
        self.start = start or (self.end - timedelta(days=default_days))
        self.granularity = granularity
        self.color = color
        self.series: TimeSeries = ()
        self._fetched = False

    @property
    def date_range(self) -> DateRange:
        return DateRange(self.start, self.end)

    def configure(
        self,
        *,
        chip: Chip | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        granularity: Granularity | None = None,
        color: str | None = None,
    ) -> FetchTask[Any] | None:
        """Apply new inputs; issues one fetch when a fetch input changed.

        A color change alone only redraws. The first call always fetches.
        """

        new_range = DateRange(start or self.start, end or self.end)
        changed = (
            (chip is not None and chip != self.chip)
            or new_range != self.date_range
            or (granularity is not None and granularity != self.granularity)
        )
        self.chip = chip or self.chip
        self.start, self.end = new_range.start, new_range.end
        self.granularity = granularity or self.granularity
        if color is not None and color != self.color:
            self.color = color
            if not changed and self._fetched:
                self.redraw()
        if changed or not self._fetched:
            self._fetched = True
            return self.refresh()
        return None

    def _chip_label(self) -> str:
        return self.chip.value

    def _work(self, token: CancelToken) -> TimeSeries:
        rows = self._client.fetch(self.chip, self.date_range, self.granularity)
        return normalize_time_series(rows)

    def _store_series(self, series: TimeSeries) -> None:
        self.series = series

    def _clear_series(self) -> None:
        self.series = ()
        self.scales = None
        self.tooltip = TooltipState.hidden()

    def _draw(self, size: DrawableSize) -> None:
        self.scales = build_time_series_scales(self.series, size)
        draw_time_series(self.canvas, self.series, size, self.scales, color=self.color)

    def pointer_move(self, outer: Point) -> TooltipState:
        """Update the tooltip for a pointer given in surface coordinates."""

        size = self.surface.size
        if size is None or self.status is not ChartStatus.READY:
            self.tooltip = TooltipState.hidden()
            return self.tooltip
        inner = size.to_inner(outer)
        if not (0 <= inner.x <= size.inner_width and 0 <= inner.y <= size.inner_height):
            self.tooltip = TooltipState.hidden()
            return self.tooltip
        resolution = resolve_time_series(
            inner, self.series, self.scales, size, TIME_SERIES_TOOLTIP, TOOLTIP_PADDING
        )
        if resolution is None or resolution.sample is None:
            self.tooltip = TooltipState.hidden()
        else:
            box = resolution.tooltip
            self.tooltip = TooltipState.show(
                Point(box.x, box.y), format_time_series_tooltip(resolution.sample, self.chip)
            )
        return self.tooltip


class CalendarHeatmapChart(_ChartController):
    """One-year calendar of daily allocation for one chip kind."""

    kind = "heatmap"

    def __init__(
        self,
        client: MetricsSourceClient,
        *,
        chip: Chip = Chip.CPU,
        start: date | None = None,
        granularity: Granularity = Granularity.DAILY,
        geometry: CellGeometry | None = None,
        color: str = DEFAULT_LINE_COLOR,
        clock: Clock = _utc_now,
        surface: RenderSurface | None = None,
        coordinator: FetchCoordinator | None = None,
        canvas: Canvas | None = None,
    ) -> None:
        self.geometry = geometry or CellGeometry()
        super().__init__(
            client,
            surface
            or RenderSurface(heatmap_spec(self.geometry.cell_size, self.geometry.cell_margin)),
            coordinator=coordinator,
            canvas=canvas,
        )
        self.chip = chip
        self.start = start or date(clock().year, 1, 1)
        self.granularity = granularity
        # Cells take their fill from the value scale; the accent is kept so every
        # chart accepts the same inputs.
        self.color = color
        self.series: DaySeries = ()
        self.grid: CalendarGrid = grid_for_range(self.date_range)
        self._lookup: dict[date, int] = {}
        self._fetched = False

    @property
    def date_range(self) -> DateRange:
        return DateRange.calendar_year(self.start)

    def configure(
        self,
        *,
        chip: Chip | None = None,
        start: date | None = None,
        granularity: Granularity | None = None,
        color: str | None = None,
    ) -> FetchTask[Any] | None:
        changed = (
            (chip is not None and chip != self.chip)
            or (start is not None and start != self.start)
            or (granularity is not None and granularity != self.granularity)
        )
        self.chip = chip or self.chip
        self.granularity = granularity or self.granularity
        self.color = color or self.color
        if start is not None and start != self.start:
            self.start = start
            self.grid = grid_for_range(self.date_range)
        if changed or not self._fetched:
            self._fetched = True
            return self.refresh()
        return None

    def _chip_label(self) -> str:
        return self.chip.value

    def _work(self, token: CancelToken) -> DaySeries:
        rows = self._client.fetch(self.chip, self.date_range, self.granularity)
        return normalize_daily(rows)

    def _store_series(self, series: DaySeries) -> None:
        self.series = series
        self._lookup = day_lookup(series)

    def _clear_series(self) -> None:
        self.series = ()
        self._lookup = {}
        self.scales = None
        self.tooltip = TooltipState.hidden()

    def _draw(self, size: DrawableSize) -> None:
        self.scales = build_heatmap_scales(self.series)
        draw_heatmap(
            self.canvas,
            self.grid,
            self._lookup,
            size,
            self.scales,
            chip=self.chip,
            geometry=self.geometry,
        )

    def pointer_move(self, outer: Point) -> TooltipState:
        size = self.surface.size
        if size is None or self.status is not ChartStatus.READY:
            self.tooltip = TooltipState.hidden()
            return self.tooltip
        resolution = resolve_heatmap(
            size.to_inner(outer),
            self.grid,
            self._lookup,
            self.geometry,
            size,
            HEATMAP_TOOLTIP,
            TOOLTIP_PADDING,
        )
        if resolution is None or resolution.cell is None:
            self.tooltip = TooltipState.hidden()
        else:
            box = resolution.tooltip
            value = self._lookup.get(resolution.cell.date)
            self.tooltip = TooltipState.show(
                Point(box.x, box.y),
                format_heatmap_tooltip(resolution.cell.date, value, self.chip),
            )
        return self.tooltip


__all__ = [
    "ChartStatus",
    "TimeSeriesChart",
    "CalendarHeatmapChart",
    "NO_DATA_MESSAGE",
]
