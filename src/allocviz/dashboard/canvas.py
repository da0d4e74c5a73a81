# mypy: ignore-errors
"""Canvas implementation that paints onto a ``QGraphicsScene``."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from ..geometry import Point, Rect
from ..render.primitives import Anchor, Orientation
from .common import (
    QBrush,
    QColor,
    QFont,
    QGraphicsScene,
    QImage,
    QLinearGradient,
    QPainter,
    QPainterPath,
    QRectF,
    make_brush,
    make_pen,
    require_qt,
)

LABEL_GAP = 3.0


class QtCanvas:
    """Draw recorded-style primitives as scene items in surface coordinates."""

    def __init__(self, scene: QGraphicsScene | None = None) -> None:
        require_qt()
        self.scene = scene if scene is not None else QGraphicsScene()

    def clear(self) -> None:
        self.scene.clear()

    def rect(
        self,
        rect: Rect,
        *,
        fill: str | None,
        stroke: str | None = None,
        stroke_width: float = 0.0,
        radius: float = 0.0,
        key: str = "",
    ) -> None:
        pen = make_pen(stroke, stroke_width)
        brush = make_brush(fill)
        bounds = QRectF(rect.x, rect.y, rect.width, rect.height)
        if radius > 0:
            path = QPainterPath()
            path.addRoundedRect(bounds, radius, radius)
            item = self.scene.addPath(path, pen, brush)
        else:
            item = self.scene.addRect(bounds, pen, brush)
        item.setData(0, key)

    def path(
        self, points: Sequence[Point], *, stroke: str, stroke_width: float = 1.0, key: str = ""
    ) -> None:
        if not points:
            return
        path = QPainterPath()
        path.moveTo(points[0].x, points[0].y)
        for point in points[1:]:
            path.lineTo(point.x, point.y)
        item = self.scene.addPath(path, make_pen(stroke, stroke_width), make_brush(None))
        item.setData(0, key)

    def text(
        self,
        position: Point,
        text: str,
        *,
        anchor: Anchor = "start",
        size: float = 10.0,
        color: str = "#000000",
        bold: bool = False,
        key: str = "",
    ) -> None:
        font = QFont()
        font.setPixelSize(max(int(size), 1))
        font.setBold(bold)
        item = self.scene.addSimpleText(text, font)
        item.setBrush(QBrush(QColor(color)))
        box = item.boundingRect()
        x = position.x
        if anchor == "middle":
            x -= box.width() / 2
        elif anchor == "end":
            x -= box.width()
        # Positions are baselines; scene text items are placed by their top edge.
        item.setPos(x, position.y - box.height() * 0.75)
        item.setData(0, key)

    def axis(
        self,
        orientation: Orientation,
        origin: Point,
        length: float,
        ticks: Sequence[tuple[float, str]],
        *,
        color: str = "#000000",
        key: str = "",
    ) -> None:
        pen = make_pen(color, 1.0)
        tick = 6.0
        if orientation == "bottom":
            self.scene.addLine(origin.x, origin.y, origin.x + length, origin.y, pen).setData(0, key)
            for pixel, label in ticks:
                self.scene.addLine(pixel, origin.y, pixel, origin.y + tick, pen)
                self.text(
                    Point(pixel, origin.y + tick + LABEL_GAP + 9),
                    label,
                    anchor="middle",
                    color=color,
                    key=key,
                )
        else:
            self.scene.addLine(origin.x, origin.y, origin.x, origin.y + length, pen).setData(0, key)
            for pixel, label in ticks:
                self.scene.addLine(origin.x - tick, pixel, origin.x, pixel, pen)
                self.text(
                    Point(origin.x - tick - LABEL_GAP, pixel + 3),
                    label,
                    anchor="end",
                    color=color,
                    key=key,
                )

    def gradient(
        self, rect: Rect, stops: Sequence[tuple[float, str]], *, key: str = ""
    ) -> None:
        # Offset 0 sits at the bottom edge, 1 at the top.
        ramp = QLinearGradient(rect.x, rect.bottom, rect.x, rect.y)
        for offset, color in stops:
            ramp.setColorAt(offset, QColor(color))
        item = self.scene.addRect(
            QRectF(rect.x, rect.y, rect.width, rect.height), make_pen(None), QBrush(ramp)
        )
        item.setData(0, key)

    def save_png(self, path: str | Path, width: float, height: float) -> Path:
        """Render the scene region ``[0, width] x [0, height]`` to a PNG file."""

        target = Path(path)
        image = QImage(int(round(width)), int(round(height)), QImage.Format.Format_ARGB32)
        image.fill(QColor("#ffffff"))
        painter = QPainter(image)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            self.scene.render(painter, QRectF(0, 0, width, height), QRectF(0, 0, width, height))
        finally:
            painter.end()
        if not image.save(str(target), "PNG"):
            raise OSError(f"Could not write PNG to {target}")
        return target


__all__ = ["QtCanvas"]
