# mypy: ignore-errors
"""Qt widgets hosting one chart controller each."""

from __future__ import annotations

from typing import Any, cast

from ..charts import CalendarHeatmapChart, ChartStatus, TimeSeriesChart
from ..geometry import DrawableSize, Point
from .canvas import QtCanvas
from .common import QGraphicsView, QLabel, QPointF, Qt, QVBoxLayout, QWidget

Chart = TimeSeriesChart | CalendarHeatmapChart

TOOLTIP_STYLE = (
    "background-color: white; border: 1px solid #ddd; border-radius: 4px;"
    " padding: 8px; font-size: 12px; color: #213547;"
)


if Qt is not None:  # pragma: no cover - requires PyQt6

    class ChartView(QGraphicsView):  # type: ignore[misc]
        """Graphics view that reports pointer movement in scene coordinates."""

        def __init__(self, pane: ChartPane, canvas: QtCanvas) -> None:
            super().__init__(canvas.scene, pane)
            self._pane = pane
            self.setMouseTracking(True)
            self.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
            self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

        def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
            scene_pos = self.mapToScene(event.position().toPoint())
            self._pane.pointer_moved(Point(scene_pos.x(), scene_pos.y()))
            super().mouseMoveEvent(event)

        def leaveEvent(self, event) -> None:  # type: ignore[override]
            self._pane.pointer_left()
            super().leaveEvent(event)

    class ChartPane(QWidget):  # type: ignore[misc]
        """Chart surface, status line and a floating tooltip overlay.

        The tooltip is a child of the view's viewport placed absolutely, so it
        never takes part in layout.
        """

        def __init__(self, chart: Chart, canvas: QtCanvas, parent: Any = None) -> None:
            super().__init__(parent)
            self.setObjectName("chartPane")
            self.chart = chart
            self.canvas = canvas
            layout = QVBoxLayout(self)
            layout.setContentsMargins(0, 0, 0, 0)
            self.status_label = QLabel(chart.message or "", self)
            self.status_label.setObjectName("chartStatus")
            layout.addWidget(self.status_label)
            self.view = ChartView(self, canvas)
            layout.addWidget(self.view)
            self.tooltip_label = QLabel(self.view.viewport())
            self.tooltip_label.setStyleSheet(TOOLTIP_STYLE)
            self.tooltip_label.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
            self.tooltip_label.hide()
            chart.add_status_listener(self._on_status)
            self._unsubscribe = chart.surface.on_resize(self._on_surface_resized)
            self._on_status(chart.status)

        def _on_status(self, status: ChartStatus) -> None:
            message = self.chart.message
            self.status_label.setText(message or "")
            self.status_label.setVisible(message is not None)
            self.view.setVisible(status is ChartStatus.READY)
            if status is not ChartStatus.READY:
                self.tooltip_label.hide()

        def _on_surface_resized(self, size: DrawableSize) -> None:
            self.canvas.scene.setSceneRect(0, 0, size.width, size.height)
            self.view.setFixedHeight(int(size.height) + 2 * self.view.frameWidth() + 20)

        def resizeEvent(self, event) -> None:  # type: ignore[override]
            super().resizeEvent(event)
            self.chart.resize(self.width(), self.height())

        def pointer_moved(self, point: Point) -> None:
            state = self.chart.pointer_move(point)
            if not state.visible:
                self.tooltip_label.hide()
                return
            self.tooltip_label.setText("<br/>".join(state.lines))
            self.tooltip_label.adjustSize()
            local = self.view.mapFromScene(QPointF(state.position.x, state.position.y))
            self.tooltip_label.move(local)
            self.tooltip_label.raise_()
            self.tooltip_label.show()

        def pointer_left(self) -> None:
            self.chart.pointer_leave()
            self.tooltip_label.hide()

        def shutdown(self) -> None:
            self._unsubscribe()
            self.chart.shutdown()

else:  # pragma: no cover - PyQt6 missing
    ChartView = cast(Any, object)
    ChartPane = cast(Any, object)


__all__ = ["ChartPane", "ChartView", "TOOLTIP_STYLE"]
