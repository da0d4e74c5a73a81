from __future__ import annotations

from datetime import UTC, date, datetime

import pytest
from hypothesis import given
from hypothesis import strategies as st

from allocviz.contracts.error import EmptySeriesError, MalformedPayloadError
from allocviz.normalize import js_round, normalize_daily, normalize_time_series, require_samples


def test_time_series_is_sorted_and_later_duplicates_win() -> None:
    series = normalize_time_series(
        [
            {"time": "2024-01-02T00:00:00Z", "allocated": 20, "total": 100},
            {"time": "2024-01-01T00:00:00Z", "allocated": 10, "total": 100},
            {"time": "2024-01-02T00:00:00+00:00", "allocated": 25, "total": 110},
        ]
    )
    assert [sample.time.day for sample in series] == [1, 2]
    assert series[1].allocated == 25
    assert series[1].total == 110


def test_time_series_keeps_fractional_values() -> None:
    (sample,) = normalize_time_series([{"time": "2024-01-01T00:00:00Z", "allocated": 2.5, "total": 8}])
    assert sample.allocated == 2.5


def test_timestamp_forms_are_coerced_to_utc() -> None:
    series = normalize_time_series(
        [
            {"timestamp": 1704067200000, "allocated": 1, "total": 2},
            {"time": "2024-01-01T02:00:00", "allocated": 1, "total": 2},
            {"time": "2024-01-01T05:00:00+02:00", "allocated": 1, "total": 2},
        ]
    )
    assert [sample.time for sample in series] == [
        datetime(2024, 1, 1, 0, tzinfo=UTC),
        datetime(2024, 1, 1, 2, tzinfo=UTC),
        datetime(2024, 1, 1, 3, tzinfo=UTC),
    ]
    assert all(sample.time.tzinfo is not None for sample in series)


@pytest.mark.parametrize(
    "rows",
    [
        [{"time": "2024-01-01T00:00:00Z", "allocated": 1, "total": 1}, {"time": "yesterday", "allocated": 1, "total": 1}],
        [{"time": "2024-01-01T00:00:00Z", "allocated": 1, "total": 1}, {"time": "2024-01-01T00:00:00Z", "total": 1}],
        [{"time": "2024-01-01T00:00:00Z", "allocated": 1, "total": 1}, "row"],
    ],
)
def test_bad_rows_name_their_index(rows: list[object]) -> None:
    with pytest.raises(MalformedPayloadError, match="Row 1"):
        normalize_time_series(rows)


def test_non_sequence_payload_is_malformed() -> None:
    with pytest.raises(MalformedPayloadError):
        normalize_time_series({"time": "2024-01-01"})
    with pytest.raises(MalformedPayloadError):
        normalize_daily("[]")


def test_daily_values_are_rounded_and_keyed_by_utc_date() -> None:
    days = normalize_daily(
        [
            {"time": "2024-01-02T00:00:00Z", "allocated": 3.49},
            {"time": "2024-01-01T23:00:00-02:00", "allocated": 9},
            {"time": "2024-01-01T00:00:00Z", "allocated": 2.5},
        ]
    )
    # 2024-01-01T23:00-02:00 is 2024-01-02T01:00Z and replaces the earlier row for that day.
    assert [(day.date, day.value) for day in days] == [
        (date(2024, 1, 1), 3),
        (date(2024, 1, 2), 9),
    ]


def test_daily_accepts_value_and_date_aliases() -> None:
    (day,) = normalize_daily([{"date": "2024-05-01", "value": 7.5}])
    assert (day.date, day.value) == (date(2024, 5, 1), 8)


def test_missing_days_are_not_filled() -> None:
    days = normalize_daily(
        [{"time": "2024-01-01T00:00:00Z", "allocated": 1}, {"time": "2024-01-05T00:00:00Z", "allocated": 1}]
    )
    assert len(days) == 2


@pytest.mark.parametrize(("value", "expected"), [(0.5, 1), (1.5, 2), (2.5, 3), (-0.5, 0), (-1.5, -1), (2.49, 2)])
def test_js_round_rounds_half_up(value: float, expected: int) -> None:
    assert js_round(value) == expected


@given(st.lists(st.integers(min_value=0, max_value=10**6), max_size=40))
def test_time_series_output_is_strictly_increasing(offsets: list[int]) -> None:
    rows = [
        {"time": (1_700_000_000 + offset) * 1000, "allocated": offset, "total": offset + 1}
        for offset in offsets
    ]
    series = normalize_time_series(rows)
    times = [sample.time for sample in series]
    assert times == sorted(set(times))
    assert len(series) == len(set(offsets))


def test_require_samples_raises_on_empty() -> None:
    with pytest.raises(EmptySeriesError):
        require_samples(())
    assert require_samples((1,)) == (1,)
