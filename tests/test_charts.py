from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, date, datetime
from urllib.error import HTTPError

import pytest

from allocviz.charts import NO_DATA_MESSAGE, CalendarHeatmapChart, ChartStatus, TimeSeriesChart
from allocviz.contracts.error import EmptySeriesError, HttpStatusError
from allocviz.geometry import Point
from allocviz.models import Chip, Granularity
from allocviz.render.primitives import RecordingCanvas
from allocviz.source.tasks import FetchCoordinator
from tests.util.fakes import json_response

ROWS = [
    {"time": "2024-01-01T00:00:00Z", "allocated": 10, "total": 100},
    {"time": "2024-01-02T00:00:00Z", "allocated": 20, "total": 100},
]
DAILY_ROWS = [
    {"time": "2024-01-01T00:00:00Z", "allocated": 5},
    {"time": "2024-01-03T00:00:00Z", "allocated": 9.5},
]
START = datetime(2024, 1, 1, tzinfo=UTC)
END = datetime(2024, 1, 8, tzinfo=UTC)


class QueueDispatch:
    def __init__(self) -> None:
        self.pending: list[Callable[[], None]] = []

    def __call__(self, func: Callable[[], None]) -> None:
        self.pending.append(func)

    def flush(self) -> None:
        while self.pending:
            self.pending.pop(0)()


def _time_series(client, **kwargs) -> TimeSeriesChart:
    kwargs.setdefault("coordinator", FetchCoordinator(background=False))
    return TimeSeriesChart(client, start=START, end=END, **kwargs)


def test_successful_fetch_draws_once_sized(make_client) -> None:
    client, opener = make_client(json_response(ROWS))
    canvas = RecordingCanvas()
    chart = _time_series(client, canvas=canvas)
    statuses: list[ChartStatus] = []
    chart.add_status_listener(statuses.append)
    chart.resize(1200)
    assert chart.draw_count == 0
    chart.configure()
    assert statuses == [ChartStatus.LOADING, ChartStatus.READY]
    assert chart.message is None
    assert len(chart.series) == 2
    assert chart.draw_count == 1
    assert chart.scales is not None
    assert len(canvas.by_key("line")) == 1
    assert len(opener.requests) == 1


def test_empty_series_shows_no_data_without_scales(make_client) -> None:
    client, _ = make_client(json_response([]))
    chart = _time_series(client)
    chart.resize(1200)
    chart.configure()
    assert chart.status is ChartStatus.EMPTY
    assert chart.message == NO_DATA_MESSAGE == "No data available"
    assert isinstance(chart.error, EmptySeriesError)
    assert chart.scales is None
    assert chart.draw_count == 0
    assert chart.canvas.primitives == []


def test_http_500_replaces_previous_series_with_error(make_client) -> None:
    failure = HTTPError("http://metrics.test/gpu", 500, "Internal Server Error", hdrs=None, fp=None)
    client, _ = make_client(json_response(ROWS), failure)
    chart = _time_series(client)
    chart.resize(1200)
    chart.configure()
    assert chart.status is ChartStatus.READY
    chart.configure(chip=Chip.GPU)
    assert chart.status is ChartStatus.ERROR
    assert isinstance(chart.error, HttpStatusError)
    assert "500" in str(chart.error)
    assert chart.message == f"Error: {chart.error}"
    assert chart.series == ()
    assert chart.scales is None
    assert chart.canvas.primitives == []


def test_each_input_change_fetches_once(make_client) -> None:
    client, opener = make_client(json_response(ROWS))
    chart = _time_series(client)
    chart.configure()
    assert chart.configure() is None
    chart.configure(granularity=Granularity.HOURLY)
    chart.configure(granularity=Granularity.HOURLY)
    chart.configure(start=datetime(2023, 12, 25, tzinfo=UTC))
    assert len(opener.requests) == 3
    assert "/cpu/hourly?start=2023-12-25T00:00:00.000Z" in opener.urls[-1]


def test_color_change_redraws_without_fetching(make_client) -> None:
    client, opener = make_client(json_response(ROWS))
    canvas = RecordingCanvas()
    chart = _time_series(client, canvas=canvas)
    chart.resize(1200)
    chart.configure()
    assert chart.configure(color="#ff0000") is None
    assert len(opener.requests) == 1
    assert chart.draw_count == 2
    (line,) = canvas.by_key("line")
    assert line.stroke == "#ff0000"


def test_superseded_fetch_never_commits(make_client) -> None:
    gpu_rows = [{"time": "2024-01-05T00:00:00Z", "allocated": 3, "total": 4}]
    client, _ = make_client(json_response(ROWS), json_response(gpu_rows))
    dispatch = QueueDispatch()
    chart = _time_series(client, coordinator=FetchCoordinator(dispatch, background=False))
    chart.configure()
    chart.configure(chip=Chip.GPU)
    assert len(dispatch.pending) == 2
    dispatch.flush()
    assert chart.status is ChartStatus.READY
    assert [sample.allocated for sample in chart.series] == [3]


def test_shutdown_discards_in_flight_result(make_client) -> None:
    client, _ = make_client(json_response(ROWS))
    dispatch = QueueDispatch()
    chart = _time_series(client, coordinator=FetchCoordinator(dispatch, background=False))
    chart.configure()
    chart.shutdown()
    dispatch.flush()
    assert chart.status is ChartStatus.LOADING
    assert chart.series == ()


def test_redraw_only_on_size_change(make_client) -> None:
    client, _ = make_client(json_response(ROWS))
    chart = _time_series(client)
    chart.configure()
    chart.resize(1200)
    assert chart.draw_count == 1
    assert not chart.resize(1200)
    assert not chart.resize(800)
    assert chart.draw_count == 1
    assert chart.resize(1600)
    assert chart.draw_count == 2


def test_pointer_tooltip_stays_inside_and_hides_outside(make_client) -> None:
    client, _ = make_client(json_response(ROWS))
    chart = _time_series(client)
    chart.resize(1200)
    chart.configure()
    state = chart.pointer_move(Point(1160.0, 50.0))
    assert state.visible
    assert state.position == Point(1000.0, 60.0)
    assert state.lines[1] == "Allocated: 20 CPUs"
    assert not chart.pointer_move(Point(10.0, 10.0)).visible
    chart.pointer_move(Point(70.0, 50.0))
    assert chart.tooltip.visible
    chart.pointer_leave()
    assert not chart.tooltip.visible


def test_resize_hides_tooltip(make_client) -> None:
    client, _ = make_client(json_response(ROWS))
    chart = _time_series(client)
    chart.resize(1200)
    chart.configure()
    chart.pointer_move(Point(600.0, 300.0))
    assert chart.tooltip.visible
    chart.resize(1500)
    assert not chart.tooltip.visible


def test_time_series_defaults_come_from_the_clock(make_client) -> None:
    client, _ = make_client(json_response(ROWS))
    now = datetime(2024, 3, 10, 12, tzinfo=UTC)
    chart = TimeSeriesChart(client, clock=lambda: now, coordinator=FetchCoordinator(background=False))
    assert chart.date_range.end == now
    assert chart.date_range.start == datetime(2024, 3, 3, 12, tzinfo=UTC)
    other = TimeSeriesChart(
        client,
        clock=lambda: datetime(2025, 1, 1, tzinfo=UTC),
        default_days=1,
        coordinator=FetchCoordinator(background=False),
    )
    assert other.date_range.start == datetime(2024, 12, 31, tzinfo=UTC)
    assert chart.date_range.end == now


def test_heatmap_fetches_a_calendar_year(make_client) -> None:
    client, opener = make_client(json_response(DAILY_ROWS))
    chart = CalendarHeatmapChart(
        client, start=date(2024, 1, 1), coordinator=FetchCoordinator(background=False)
    )
    chart.resize(900)
    chart.configure()
    assert opener.urls == [
        "http://metrics.test/cpu/daily?start=2024-01-01T00:00:00.000Z&end=2024-12-31T00:00:00.000Z"
    ]
    assert chart.status is ChartStatus.READY
    assert len(chart.grid.cells) == 366
    assert len(chart.canvas.by_key("day")) == 366
    assert chart.scales is not None and chart.scales.color is not None
    assert chart.scales.color.domain == (5.0, 10.0)


def test_heatmap_default_start_is_january_first(make_client) -> None:
    client, _ = make_client(json_response(DAILY_ROWS))
    chart = CalendarHeatmapChart(
        client,
        clock=lambda: datetime(2026, 7, 4, tzinfo=UTC),
        coordinator=FetchCoordinator(background=False),
    )
    assert chart.start == date(2026, 1, 1)
    assert chart.date_range.end_date == date(2026, 12, 31)


def test_heatmap_start_change_rebuilds_grid_and_refetches(make_client) -> None:
    client, opener = make_client(json_response(DAILY_ROWS))
    chart = CalendarHeatmapChart(
        client, start=date(2024, 1, 1), coordinator=FetchCoordinator(background=False)
    )
    chart.configure()
    chart.configure(start=date(2024, 4, 1))
    assert len(opener.requests) == 2
    assert chart.grid.anchor == date(2024, 3, 31)
    assert chart.date_range.end_date == date(2025, 3, 31)


@pytest.mark.parametrize(
    ("pointer", "expected"),
    [
        (Point(46.0, 70.0), "CPUs: 5"),
        (Point(46.0, 84.0), "CPUs: No data"),
    ],
)
def test_heatmap_pointer_reports_cell_value(make_client, pointer: Point, expected: str) -> None:
    client, _ = make_client(json_response(DAILY_ROWS))
    chart = CalendarHeatmapChart(
        client, start=date(2024, 1, 1), coordinator=FetchCoordinator(background=False)
    )
    chart.resize(900)
    chart.configure()
    state = chart.pointer_move(pointer)
    assert state.visible
    assert state.lines[1] == expected
    assert not chart.pointer_move(Point(46.0, 56.0)).visible


def test_default_coordinator_commits_status_on_caller_thread(make_client) -> None:
    client, _ = make_client(json_response(ROWS))
    chart = TimeSeriesChart(client, start=START, end=END)
    seen: list[tuple[ChartStatus, str]] = []
    chart.add_status_listener(lambda status: seen.append((status, threading.current_thread().name)))
    chart.configure()
    caller = threading.current_thread().name
    assert seen == [(ChartStatus.LOADING, caller), (ChartStatus.READY, caller)]
    chart.shutdown()


def test_heatmap_accent_change_does_not_refetch(make_client) -> None:
    client, opener = make_client(json_response(DAILY_ROWS))
    chart = CalendarHeatmapChart(client, start=date(2024, 1, 1), color="#9467bd")
    assert chart.color == "#9467bd"
    chart.configure()
    assert chart.configure(color="#1f77b4") is None
    assert chart.color == "#1f77b4"
    assert len(opener.urls) == 1


def test_chart_base_cannot_be_instantiated(make_client) -> None:
    from allocviz.charts import _ChartController
    from allocviz.surface import RenderSurface, time_series_spec

    client, _ = make_client(json_response(ROWS))
    with pytest.raises(TypeError):
        _ChartController(client, RenderSurface(time_series_spec()))  # type: ignore[abstract]
