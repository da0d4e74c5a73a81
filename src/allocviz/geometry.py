"""Plain value types for pixel geometry."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, point: Point) -> bool:
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom

    def within(self, other: Rect) -> bool:
        return (
            self.x >= other.x
            and self.y >= other.y
            and self.right <= other.right
            and self.bottom <= other.bottom
        )


@dataclass(frozen=True, slots=True)
class Margins:
    top: float
    right: float
    bottom: float
    left: float


@dataclass(frozen=True, slots=True)
class DrawableSize:
    """Outer pixel size of a chart plus the margins around its plot area."""

    width: float
    height: float
    margins: Margins

    @property
    def inner_width(self) -> float:
        return max(self.width - self.margins.left - self.margins.right, 0.0)

    @property
    def inner_height(self) -> float:
        return max(self.height - self.margins.top - self.margins.bottom, 0.0)

    @property
    def bounds(self) -> Rect:
        return Rect(0.0, 0.0, self.width, self.height)

    def to_outer(self, inner: Point) -> Point:
        return Point(inner.x + self.margins.left, inner.y + self.margins.top)

    def to_inner(self, outer: Point) -> Point:
        return Point(outer.x - self.margins.left, outer.y - self.margins.top)


__all__ = ["Point", "Size", "Rect", "Margins", "DrawableSize"]
