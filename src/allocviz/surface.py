"""Drawable-area sizing and resize notification."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .geometry import DrawableSize, Margins

logger = logging.getLogger(__name__)

ResizeHandler = Callable[[DrawableSize], None]


@dataclass(frozen=True, slots=True)
class SurfaceSpec:
    """How a chart derives its drawable size from its container."""

    margins: Margins
    min_width: float = 0.0
    aspect_ratio: float | None = None
    fixed_height: float | None = None

    def measure(self, container_width: float, container_height: float = 0.0) -> DrawableSize:
        width = max(float(self.min_width), float(container_width))
        if self.aspect_ratio is not None:
            height = width * self.aspect_ratio
        elif self.fixed_height is not None:
            height = float(self.fixed_height)
        else:
            height = max(float(container_height), 0.0)
        return DrawableSize(width, height, self.margins)


def time_series_spec(min_width: float = 1200.0) -> SurfaceSpec:
    return SurfaceSpec(
        margins=Margins(top=40, right=40, bottom=40, left=60),
        min_width=min_width,
        aspect_ratio=9 / 16,
    )


def heatmap_spec(cell_size: int = 12, cell_margin: int = 2) -> SurfaceSpec:
    pitch = cell_size + cell_margin
    return SurfaceSpec(
        margins=Margins(top=50, right=60, bottom=20, left=40),
        fixed_height=max(7 * pitch * 2, 230),
    )


class RenderSurface:
    """Owns a chart's drawable size and tells subscribers when it changes."""

    def __init__(self, spec: SurfaceSpec) -> None:
        self.spec = spec
        self._size: DrawableSize | None = None
        self._handlers: list[ResizeHandler] = []

    @property
    def size(self) -> DrawableSize | None:
        return self._size

    def measure(self, container_width: float, container_height: float = 0.0) -> DrawableSize:
        return self.spec.measure(container_width, container_height)

    def on_resize(self, callback: ResizeHandler) -> Callable[[], None]:
        self._handlers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._handlers:
                self._handlers.remove(callback)

        return _unsubscribe

    def notify_resize(self, container_width: float, container_height: float = 0.0) -> bool:
        """Re-measure; call every handler when the drawable size changed."""

        size = self.measure(container_width, container_height)
        if size == self._size:
            return False
        logger.debug("Surface resized to %.0fx%.0f", size.width, size.height)
        self._size = size
        for handler in list(self._handlers):
            handler(size)
        return True


__all__ = ["SurfaceSpec", "RenderSurface", "ResizeHandler", "time_series_spec", "heatmap_spec"]
