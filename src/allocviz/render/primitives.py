"""Backend-neutral drawing primitives.

The pipelines in :mod:`allocviz.render.pipeline` talk to a :class:`Canvas`
only. :class:`RecordingCanvas` keeps every call as a frozen value so a frame
can be compared, serialised, or replayed onto a Qt scene later.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any, Literal, Protocol

from ..geometry import Point, Rect

Anchor = Literal["start", "middle", "end"]
Orientation = Literal["bottom", "left"]


@dataclass(frozen=True, slots=True)
class RectShape:
    rect: Rect
    fill: str | None
    stroke: str | None = None
    stroke_width: float = 0.0
    radius: float = 0.0
    key: str = ""


@dataclass(frozen=True, slots=True)
class PathShape:
    points: tuple[Point, ...]
    stroke: str
    stroke_width: float = 1.0
    key: str = ""


@dataclass(frozen=True, slots=True)
class TextShape:
    position: Point
    text: str
    anchor: Anchor = "start"
    size: float = 10.0
    color: str = "#000000"
    bold: bool = False
    key: str = ""


@dataclass(frozen=True, slots=True)
class AxisShape:
    """An axis line with labelled ticks; ``ticks`` holds ``(pixel, label)`` pairs."""

    orientation: Orientation
    origin: Point
    length: float
    ticks: tuple[tuple[float, str], ...]
    color: str = "#000000"
    tick_size: float = 6.0
    key: str = ""


@dataclass(frozen=True, slots=True)
class GradientShape:
    """A rectangle filled bottom-to-top through ``(offset, color)`` stops."""

    rect: Rect
    stops: tuple[tuple[float, str], ...]
    key: str = ""


Primitive = RectShape | PathShape | TextShape | AxisShape | GradientShape


class Canvas(Protocol):
    def clear(self) -> None: ...

    def rect(
        self,
        rect: Rect,
        *,
        fill: str | None,
        stroke: str | None = None,
        stroke_width: float = 0.0,
        radius: float = 0.0,
        key: str = "",
    ) -> None: ...

    def path(
        self, points: Sequence[Point], *, stroke: str, stroke_width: float = 1.0, key: str = ""
    ) -> None: ...

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
    ) -> None: ...

    def axis(
        self,
        orientation: Orientation,
        origin: Point,
        length: float,
        ticks: Sequence[tuple[float, str]],
        *,
        color: str = "#000000",
        key: str = "",
    ) -> None: ...

    def gradient(
        self, rect: Rect, stops: Sequence[tuple[float, str]], *, key: str = ""
    ) -> None: ...


class RecordingCanvas:
    """Canvas that records primitives instead of painting them."""

    def __init__(self) -> None:
        self.primitives: list[Primitive] = []

    def clear(self) -> None:
        self.primitives.clear()

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
        self.primitives.append(RectShape(rect, fill, stroke, stroke_width, radius, key))

    def path(
        self, points: Sequence[Point], *, stroke: str, stroke_width: float = 1.0, key: str = ""
    ) -> None:
        self.primitives.append(PathShape(tuple(points), stroke, stroke_width, key))

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
        self.primitives.append(TextShape(position, text, anchor, size, color, bold, key))

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
        self.primitives.append(
            AxisShape(orientation, origin, length, tuple(ticks), color, key=key)
        )

    def gradient(
        self, rect: Rect, stops: Sequence[tuple[float, str]], *, key: str = ""
    ) -> None:
        self.primitives.append(GradientShape(rect, tuple(stops), key))

    def by_key(self, key: str) -> list[Primitive]:
        return [primitive for primitive in self.primitives if primitive.key == key]

    def to_payload(self) -> list[dict[str, Any]]:
        """JSON-ready description of the recorded frame."""

        return [{"type": type(p).__name__, **asdict(p)} for p in self.primitives]


__all__ = [
    "Anchor",
    "Orientation",
    "RectShape",
    "PathShape",
    "TextShape",
    "AxisShape",
    "GradientShape",
    "Primitive",
    "Canvas",
    "RecordingCanvas",
]
