"""Week-aligned calendar grid for the heatmap.

Row 0 is always Sunday. Column 0 is the week that contains the *grid anchor*,
the Sunday on or before the range start, so the anchor may precede the first
visible day. Geometry depends only on ``(start, end)``; the data shown in a
cell is looked up separately by date.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date, timedelta

from ..contracts.error import BadInputError
from ..geometry import Rect
from ..models import DateRange

WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
DAYS_PER_WEEK = 7
_ONE_DAY = timedelta(days=1)


def day_of_week(day: date) -> int:
    """Weekday with Sunday as 0 (``date.weekday`` counts from Monday)."""

    return (day.weekday() + 1) % DAYS_PER_WEEK


def days_between(start: date, end: date) -> int:
    return (end - start).days


def grid_anchor(start: date) -> date:
    anchor = start
    while day_of_week(anchor) != 0:
        anchor -= _ONE_DAY
    return anchor


def week_index(day: date, anchor: date) -> int:
    return days_between(anchor, day) // DAYS_PER_WEEK


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from ``start`` to ``end`` inclusive."""

    current = start
    while current <= end:
        yield current
        current += _ONE_DAY


@dataclass(frozen=True, slots=True)
class GridCell:
    week_index: int
    day_of_week: int
    date: date


@dataclass(frozen=True, slots=True)
class MonthLabel:
    week_index: int
    month: date
    text: str


def month_labels(start: date, end: date, anchor: date | None = None) -> tuple[MonthLabel, ...]:
    """Labels for every month after the first one touched by ``start..end``."""

    anchor = anchor or grid_anchor(start)
    labels: list[MonthLabel] = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        first = date(year, month, 1)
        if (year, month) != (start.year, start.month):
            labels.append(
                MonthLabel(
                    week_index=week_index(grid_anchor(first), anchor),
                    month=first,
                    text=first.strftime("%b %Y"),
                )
            )
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return tuple(labels)


@dataclass(frozen=True)
class CalendarGrid:
    start: date
    end: date
    anchor: date
    cells: tuple[GridCell, ...]
    week_count: int
    labels: tuple[MonthLabel, ...]
    _by_position: dict[tuple[int, int], GridCell] = field(repr=False, compare=False)

    def cell_at(self, week: int, weekday: int) -> GridCell | None:
        return self._by_position.get((week, weekday))

    def cell_for(self, day: date) -> GridCell | None:
        if not self.start <= day <= self.end:
            return None
        return self.cell_at(week_index(day, self.anchor), day_of_week(day))


def build_calendar_grid(start: date, end: date) -> CalendarGrid:
    if start > end:
        raise BadInputError(f"Calendar start {start} is after end {end}")
    anchor = grid_anchor(start)
    cells = tuple(GridCell(week_index(day, anchor), day_of_week(day), day) for day in iter_days(start, end))
    total_days = days_between(anchor, end) + 1
    return CalendarGrid(
        start=start,
        end=end,
        anchor=anchor,
        cells=cells,
        week_count=math.ceil(total_days / DAYS_PER_WEEK),
        labels=month_labels(start, end, anchor),
        _by_position={(cell.week_index, cell.day_of_week): cell for cell in cells},
    )


def grid_for_range(date_range: DateRange) -> CalendarGrid:
    return build_calendar_grid(date_range.start_date, date_range.end_date)


@dataclass(frozen=True, slots=True)
class CellGeometry:
    """Pixel placement of grid cells inside the calendar's plot area."""

    cell_size: int = 12
    cell_margin: int = 2

    @property
    def pitch(self) -> int:
        return self.cell_size + self.cell_margin

    def cell_rect(self, cell: GridCell) -> Rect:
        return Rect(
            float(cell.week_index * self.pitch),
            float(cell.day_of_week * self.pitch),
            float(self.cell_size),
            float(self.cell_size),
        )

    def label_x(self, label: MonthLabel) -> float:
        return float(label.week_index * self.pitch)

    def weekday_label_y(self, weekday: int) -> float:
        return (weekday + 0.5) * self.pitch

    def grid_width(self, week_count: int) -> float:
        return float(week_count * self.pitch)

    @property
    def grid_height(self) -> float:
        return float(DAYS_PER_WEEK * self.pitch)

    def hit_test(self, x: float, y: float) -> tuple[int, int] | None:
        """Return ``(week_index, day_of_week)`` under a plot-area point; gaps miss."""

        if x < 0 or y < 0:
            return None
        column = int(x // self.pitch)
        row = int(y // self.pitch)
        if row >= DAYS_PER_WEEK:
            return None
        if x - column * self.pitch > self.cell_size or y - row * self.pitch > self.cell_size:
            return None
        return column, row


__all__ = [
    "WEEKDAY_LABELS",
    "GridCell",
    "MonthLabel",
    "CalendarGrid",
    "CellGeometry",
    "build_calendar_grid",
    "grid_for_range",
    "grid_anchor",
    "week_index",
    "day_of_week",
    "days_between",
    "iter_days",
    "month_labels",
]
