"""Drawing primitives and chart pipelines."""

from .pipeline import draw_heatmap, draw_time_series, heatmap_title
from .primitives import (
    AxisShape,
    Canvas,
    GradientShape,
    PathShape,
    Primitive,
    RecordingCanvas,
    RectShape,
    TextShape,
)

__all__ = [
    "AxisShape",
    "Canvas",
    "GradientShape",
    "PathShape",
    "Primitive",
    "RecordingCanvas",
    "RectShape",
    "TextShape",
    "draw_heatmap",
    "draw_time_series",
    "heatmap_title",
]
