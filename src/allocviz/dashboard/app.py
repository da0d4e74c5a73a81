# mypy: ignore-errors

"""Desktop dashboard: two calendar heatmaps above two time-series charts.

When PyQt6 is unavailable (e.g., in headless CI), attempting to launch the UI
raises a friendly error.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Any, cast

from ..charts import CalendarHeatmapChart, TimeSeriesChart
from ..config import AppConfig
from ..layout.calendar import CellGeometry
from ..models import Chip
from ..source.client import MetricsSourceClient
from ..source.tasks import FetchCoordinator
from .bridge import UiBridge
from .canvas import QtCanvas
from .common import QApplication, QMainWindow, QScrollArea, Qt, QVBoxLayout, QWidget, require_qt
from .widgets import ChartPane

logger = logging.getLogger(__name__)

# Page layout the dashboard opens with when nothing else is configured.
DEFAULT_HEATMAP_START = date(2024, 4, 1)
DEFAULT_TIMESERIES_START = datetime(2023, 1, 1, tzinfo=UTC)
DEFAULT_TIMESERIES_END = datetime(2025, 4, 1, tzinfo=UTC)

STYLESHEET = """
QWidget#dashboardBody {
    background-color: #ffffff;
}
QLabel#chartStatus {
    color: #213547;
    font-size: 14px;
    padding: 12px;
}
QWidget#chartPane {
    border-bottom: 1px solid #eeeeee;
}
"""

if Qt is not None:  # pragma: no cover - only when PyQt6 is present

    class DashboardWindow(QMainWindow):  # type: ignore[misc]
        def __init__(self) -> None:
            super().__init__()
            self.setObjectName("dashboardWindow")
            self.panes: list[ChartPane] = []

        def closeEvent(self, event) -> None:  # type: ignore[override]
            for pane in self.panes:
                pane.shutdown()
            super().closeEvent(event)

else:  # pragma: no cover - PyQt6 missing
    DashboardWindow = cast(Any, object)


def build_app(argv: Sequence[str] | None = None) -> QApplication:
    require_qt()
    app = QApplication.instance()
    if app is None:
        app = QApplication(list(argv or []))
    return app


def build_client(config: AppConfig) -> MetricsSourceClient:
    return MetricsSourceClient(
        config.source.base_url,
        timeout=config.source.timeout,
        max_response_bytes=config.source.max_response_bytes,
    )


def build_panes(
    config: AppConfig,
    bridge: UiBridge,
    *,
    client: MetricsSourceClient | None = None,
    heatmap_start: date | None = None,
    timeseries_start: datetime | None = None,
    timeseries_end: datetime | None = None,
) -> list[ChartPane]:
    """One pane per chart, each with its own coordinator, canvas and state."""

    client = client or build_client(config)
    if timeseries_start is None and timeseries_end is None:
        timeseries_start, timeseries_end = DEFAULT_TIMESERIES_START, DEFAULT_TIMESERIES_END
    geometry = CellGeometry(config.heatmap.cell_size, config.heatmap.cell_margin)
    panes: list[ChartPane] = []
    for chip in (Chip.CPU, Chip.GPU):
        canvas = QtCanvas()
        chart = CalendarHeatmapChart(
            client,
            chip=chip,
            start=heatmap_start or config.heatmap.start or DEFAULT_HEATMAP_START,
            geometry=geometry,
            coordinator=FetchCoordinator(bridge.dispatch),
            canvas=canvas,
        )
        panes.append(ChartPane(chart, canvas))
    for chip in (Chip.CPU, Chip.GPU):
        canvas = QtCanvas()
        chart = TimeSeriesChart(
            client,
            chip=chip,
            start=timeseries_start,
            end=timeseries_end,
            granularity=config.timeseries.granularity,
            color=config.timeseries.color_for(chip),
            default_days=config.timeseries.default_days,
            min_width=config.timeseries.min_width,
            coordinator=FetchCoordinator(bridge.dispatch),
            canvas=canvas,
        )
        panes.append(ChartPane(chart, canvas))
    return panes


def build_window(panes: Sequence[ChartPane]) -> DashboardWindow:
    window = DashboardWindow()
    window.setWindowTitle("Allocation Dashboard")
    body = QWidget()
    body.setObjectName("dashboardBody")
    layout = QVBoxLayout(body)
    for pane in panes:
        layout.addWidget(pane)
    layout.addStretch(1)
    scroll = QScrollArea()
    scroll.setWidgetResizable(True)
    scroll.setWidget(body)
    window.setCentralWidget(scroll)
    window.panes = list(panes)
    window.resize(1280, 900)
    return window


def run_dashboard(
    config: AppConfig,
    argv: Sequence[str] | None = None,
    *,
    heatmap_start: date | None = None,
    timeseries_start: datetime | None = None,
    timeseries_end: datetime | None = None,
) -> int:
    """Launch the dashboard window and block until it closes."""

    require_qt()
    app = build_app(argv)
    app.setStyleSheet(STYLESHEET)
    bridge = UiBridge()
    panes = build_panes(
        config,
        bridge,
        heatmap_start=heatmap_start,
        timeseries_start=timeseries_start,
        timeseries_end=timeseries_end,
    )
    window = build_window(panes)
    for pane in panes:
        pane.chart.configure()
    window.show()
    logger.info("Dashboard started against %s", config.source.base_url)
    return app.exec()


__all__ = [
    "DEFAULT_HEATMAP_START",
    "DEFAULT_TIMESERIES_END",
    "DEFAULT_TIMESERIES_START",
    "DashboardWindow",
    "STYLESHEET",
    "build_app",
    "build_client",
    "build_panes",
    "build_window",
    "run_dashboard",
]
