"""Convert raw endpoint rows into ordered, typed series."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .contracts.error import EmptySeriesError, MalformedPayloadError
from .models import DaySample, DaySeries, TimeSample, TimeSeries

_TIME_ALIASES = AliasChoices("time", "timestamp", "date")


def _coerce_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, bool):
        raise ValueError("boolean is not a timestamp")
    elif isinstance(value, int | float):
        if not math.isfinite(value):
            raise ValueError("timestamp must be finite")
        # Epoch milliseconds, as accepted by ``new Date(number)``.
        return datetime.fromtimestamp(value / 1000.0, tz=UTC)
    elif isinstance(value, str):
        moment = datetime.fromisoformat(value.strip())
    else:
        raise ValueError(f"unsupported timestamp {value!r}")
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


class _TimeRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    time: datetime = Field(validation_alias=_TIME_ALIASES)
    allocated: float = Field(allow_inf_nan=False)
    total: float = Field(allow_inf_nan=False)

    @field_validator("time", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> datetime:
        return _coerce_timestamp(value)


class _DayRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    time: datetime = Field(validation_alias=_TIME_ALIASES)
    value: float = Field(validation_alias=AliasChoices("allocated", "value"), allow_inf_nan=False)

    @field_validator("time", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> datetime:
        return _coerce_timestamp(value)


RowModel = TypeVar("RowModel", bound=BaseModel)


def _validated(rows: Any, model: type[RowModel]) -> list[RowModel]:
    if isinstance(rows, str | bytes) or not isinstance(rows, Iterable):
        raise MalformedPayloadError(f"Expected a sequence of rows; got {type(rows).__name__}")
    out: list[RowModel] = []
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise MalformedPayloadError(f"Row {index} is not an object")
        try:
            out.append(model.model_validate(dict(row)))
        except ValidationError as exc:
            first = exc.errors()[0] if exc.errors() else {}
            location = ".".join(str(part) for part in first.get("loc", ())) or "row"
            raise MalformedPayloadError(
                f"Row {index}: invalid {location}: {first.get('msg', exc)}"
            ) from exc
    return out


def js_round(value: float) -> int:
    """Round half up, matching ``Math.round``."""

    return math.floor(value + 0.5)


def normalize_time_series(rows: Any) -> TimeSeries:
    """Return time-ordered samples; later duplicates of a timestamp win."""

    by_time: dict[datetime, TimeSample] = {}
    for row in _validated(rows, _TimeRow):
        by_time[row.time] = TimeSample(time=row.time, allocated=row.allocated, total=row.total)
    return tuple(by_time[key] for key in sorted(by_time))


def normalize_daily(rows: Any) -> DaySeries:
    """Return one rounded sample per UTC calendar day, ordered by date.

    Days missing from ``rows`` stay missing; they are not filled with zero.
    """

    by_day: dict[date, DaySample] = {}
    for row in _validated(rows, _DayRow):
        day = row.time.date()
        by_day[day] = DaySample(date=day, value=js_round(row.value))
    return tuple(by_day[key] for key in sorted(by_day))


def require_samples(series: tuple[Any, ...]) -> tuple[Any, ...]:
    if not series:
        raise EmptySeriesError()
    return series


__all__ = ["normalize_time_series", "normalize_daily", "require_samples", "js_round"]
