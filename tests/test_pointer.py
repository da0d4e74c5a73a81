from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from allocviz.geometry import DrawableSize, Margins, Point, Rect, Size
from allocviz.layout.calendar import CellGeometry, build_calendar_grid
from allocviz.models import Chip, TimeSample
from allocviz.pointer import (
    TooltipState,
    format_heatmap_tooltip,
    format_time_series_tooltip,
    nearest_index,
    nearest_sample,
    place_tooltip,
    resolve_heatmap,
    resolve_time_series,
)
from allocviz.scales import build_time_series_scales

JAN_1 = datetime(2024, 1, 1, tzinfo=UTC)
SERIES = (
    TimeSample(JAN_1, 10, 100),
    TimeSample(JAN_1 + timedelta(days=1), 20, 100),
)
TIME_DRAWABLE = DrawableSize(1200.0, 675.0, Margins(40, 40, 40, 60))
HEATMAP_DRAWABLE = DrawableSize(900.0, 230.0, Margins(50, 60, 20, 40))


def test_midpoint_between_two_samples_resolves_left() -> None:
    sample = nearest_sample(SERIES, JAN_1 + timedelta(hours=12))
    assert sample is SERIES[0]


@pytest.mark.parametrize(
    ("offset_hours", "expected"),
    [(-5, 0), (0, 0), (11, 0), (13, 1), (24, 1), (500, 1)],
)
def test_nearest_index_picks_closer_neighbour(offset_hours: int, expected: int) -> None:
    times = [sample.time for sample in SERIES]
    assert nearest_index(times, JAN_1 + timedelta(hours=offset_hours)) == expected


def test_nearest_on_empty_series_is_none() -> None:
    assert nearest_index([], JAN_1) is None
    assert nearest_sample((), JAN_1) is None


def test_exact_match_wins_over_neighbours() -> None:
    times = [JAN_1 + timedelta(minutes=15 * i) for i in range(5)]
    assert nearest_index(times, times[3]) == 3


def test_tooltip_flips_left_at_right_edge() -> None:
    box = place_tooltip(Point(390, 10), Size(150, 80), Rect(0, 0, 400, 300), 10)
    assert (box.x, box.y) == (230, 20)


def test_flipped_tooltip_ends_one_padding_left_of_the_pointer() -> None:
    box = place_tooltip(Point(990, 10), Size(150, 80), Rect(0, 0, 1100, 675), 10)
    assert box.x == 990 - (150 + 10) == 830
    assert box.right == 980


def test_tooltip_flips_up_at_bottom_edge() -> None:
    box = place_tooltip(Point(10, 290), Size(150, 80), Rect(0, 0, 400, 300), 10)
    assert (box.x, box.y) == (20, 200)


def test_tooltip_flips_on_both_axes_in_the_corner() -> None:
    box = place_tooltip(Point(395, 295), Size(150, 80), Rect(0, 0, 400, 300), 10)
    assert (box.x, box.y) == (235, 205)


@given(
    x=st.floats(min_value=0, max_value=1200),
    y=st.floats(min_value=0, max_value=675),
    width=st.floats(min_value=1, max_value=300),
    height=st.floats(min_value=1, max_value=200),
)
def test_tooltip_stays_inside_bounds(x: float, y: float, width: float, height: float) -> None:
    bounds = Rect(0.0, 0.0, 1200.0, 675.0)
    box = place_tooltip(Point(x, y), Size(width, height), bounds)
    assert box.x >= bounds.x and box.y >= bounds.y
    assert box.right <= bounds.right + 1e-9
    assert box.bottom <= bounds.bottom + 1e-9


def test_time_series_tooltip_lines() -> None:
    lines = format_time_series_tooltip(TimeSample(JAN_1, 10, 100), Chip.CPU)
    assert lines[0].startswith("Time: ")
    assert lines[1:] == ("Allocated: 10 CPUs", "Total: 100 CPUs")
    fractional = format_time_series_tooltip(TimeSample(JAN_1, 2.5, 8), Chip.GPU)
    assert fractional[1] == "Allocated: 2.5 GPUs"


@pytest.mark.parametrize("value", [0, None])
def test_heatmap_tooltip_reads_no_data_for_zero_or_missing(value: int | None) -> None:
    lines = format_heatmap_tooltip(date(2024, 1, 1), value, Chip.CPU)
    assert lines[0].startswith("Date: ")
    assert lines[1] == "CPUs: No data"
    assert format_heatmap_tooltip(date(2024, 1, 1), 7, Chip.GPU)[1] == "GPUs: 7"


def test_resolve_time_series_uses_inner_coordinates() -> None:
    scales = build_time_series_scales(SERIES, TIME_DRAWABLE)
    resolution = resolve_time_series(Point(1100.0, 10.0), SERIES, scales, TIME_DRAWABLE)
    assert resolution is not None
    assert resolution.sample is SERIES[1]
    # pointer sits at outer (1160, 50); the box flips left of it
    assert (resolution.tooltip.x, resolution.tooltip.y) == (1000.0, 60.0)
    assert resolution.tooltip.within(TIME_DRAWABLE.bounds)


def test_resolve_time_series_without_data_is_none() -> None:
    assert resolve_time_series(Point(0, 0), (), None, TIME_DRAWABLE) is None


def test_resolve_heatmap_hits_a_day_cell() -> None:
    grid = build_calendar_grid(date(2024, 1, 1), date(2024, 12, 31))
    lookup = {date(2024, 1, 1): 5}
    resolution = resolve_heatmap(Point(6.0, 20.0), grid, lookup, CellGeometry(), HEATMAP_DRAWABLE)
    assert resolution is not None
    assert resolution.cell is not None and resolution.cell.date == date(2024, 1, 1)
    assert resolution.sample is not None and resolution.sample.value == 5
    assert resolution.tooltip.within(HEATMAP_DRAWABLE.bounds)


def test_resolve_heatmap_day_without_data_has_no_sample() -> None:
    grid = build_calendar_grid(date(2024, 1, 1), date(2024, 12, 31))
    resolution = resolve_heatmap(Point(6.0, 34.0), grid, {}, CellGeometry(), HEATMAP_DRAWABLE)
    assert resolution is not None
    assert resolution.cell is not None and resolution.cell.date == date(2024, 1, 2)
    assert resolution.sample is None


@pytest.mark.parametrize(
    "pointer",
    [
        Point(6.0, 6.0),  # Sunday before the range starts
        Point(12.5, 20.0),  # gap between columns
        Point(-3.0, 20.0),
        Point(6.0, 200.0),
    ],
)
def test_resolve_heatmap_misses(pointer: Point) -> None:
    grid = build_calendar_grid(date(2024, 1, 1), date(2024, 12, 31))
    assert resolve_heatmap(pointer, grid, {}, CellGeometry(), HEATMAP_DRAWABLE) is None


def test_tooltip_state_text_joins_lines() -> None:
    state = TooltipState.show(Point(1, 2), ["a", "b"])
    assert state.visible and state.text == "a\nb"
    assert not TooltipState.hidden().visible
