"""Layout engines."""

from .calendar import (
    WEEKDAY_LABELS,
    CalendarGrid,
    CellGeometry,
    GridCell,
    MonthLabel,
    build_calendar_grid,
    day_of_week,
    days_between,
    grid_anchor,
    grid_for_range,
    iter_days,
    month_labels,
    week_index,
)

__all__ = [
    "WEEKDAY_LABELS",
    "CalendarGrid",
    "CellGeometry",
    "GridCell",
    "MonthLabel",
    "build_calendar_grid",
    "day_of_week",
    "days_between",
    "grid_anchor",
    "grid_for_range",
    "iter_days",
    "month_labels",
    "week_index",
]
