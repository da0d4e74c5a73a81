# mypy: ignore-errors
"""Optional Qt imports shared by the dashboard modules."""

from __future__ import annotations

from typing import Any, cast

QT_IMPORT_ERROR: Exception | None = None

try:  # pragma: no cover - only when PyQt6 is present
    from PyQt6.QtCore import QObject, QPointF, QRectF, Qt, pyqtSignal
    from PyQt6.QtGui import (
        QBrush,
        QColor,
        QFont,
        QImage,
        QLinearGradient,
        QPainter,
        QPainterPath,
    )
    from PyQt6.QtWidgets import (
        QApplication,
        QGraphicsScene,
        QGraphicsView,
        QLabel,
        QMainWindow,
        QScrollArea,
        QVBoxLayout,
        QWidget,
    )
except Exception as exc:  # pragma: no cover - CI or headless environments  # noqa: BLE001
    QT_IMPORT_ERROR = exc
    QObject = cast(Any, object)
    QPointF = cast(Any, None)
    QRectF = cast(Any, None)
    Qt = None  # type: ignore[assignment]
    pyqtSignal = None  # type: ignore[assignment]  # noqa: N816
    QBrush = cast(Any, None)
    QColor = cast(Any, None)
    QFont = cast(Any, None)
    QImage = cast(Any, None)
    QLinearGradient = cast(Any, None)
    QPainter = cast(Any, None)
    QPainterPath = cast(Any, None)
    QApplication = cast(Any, object)
    QGraphicsScene = cast(Any, None)
    QGraphicsView = cast(Any, object)
    QLabel = cast(Any, object)
    QMainWindow = cast(Any, object)
    QScrollArea = cast(Any, object)
    QVBoxLayout = cast(Any, None)
    QWidget = cast(Any, object)

try:  # pragma: no cover - optional plotting dependency
    import pyqtgraph as pg  # type: ignore[import-not-found]
except Exception as exc:  # pragma: no cover - charting optional  # noqa: BLE001
    pg = cast(Any, None)
    QT_IMPORT_ERROR = QT_IMPORT_ERROR or exc
else:  # pragma: no cover - requires PyQtGraph
    pg.setConfigOptions(antialias=True)


def require_qt() -> None:
    if QT_IMPORT_ERROR is not None:
        raise RuntimeError(
            "The allocviz dashboard requires PyQt6 and pyqtgraph. Install with `pip install .[gui]`."
        ) from QT_IMPORT_ERROR


def make_pen(color: str | None, width: float = 1.0) -> Any:
    """Pen for ``color``; ``None`` means no outline."""

    return pg.mkPen(color, width=width) if color is not None else pg.mkPen(None)


def make_brush(color: str | None) -> Any:
    return pg.mkBrush(color) if color is not None else pg.mkBrush(None)


__all__ = [
    "QT_IMPORT_ERROR",
    "QObject",
    "QPointF",
    "QRectF",
    "Qt",
    "pyqtSignal",
    "QBrush",
    "QColor",
    "QFont",
    "QImage",
    "QLinearGradient",
    "QPainter",
    "QPainterPath",
    "QApplication",
    "QGraphicsScene",
    "QGraphicsView",
    "QLabel",
    "QMainWindow",
    "QScrollArea",
    "QVBoxLayout",
    "QWidget",
    "pg",
    "require_qt",
    "make_pen",
    "make_brush",
]
