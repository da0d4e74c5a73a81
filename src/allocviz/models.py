"""Domain types shared by the fetch, layout, scale and pointer layers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from enum import StrEnum

from .contracts.error import BadInputError


class Chip(StrEnum):
    """Chip kind; the value doubles as the endpoint path segment."""

    CPU = "cpu"
    GPU = "gpu"

    @property
    def unit(self) -> str:
        return self.value.upper()


class Granularity(StrEnum):
    """Server-side resampling level requested from the data source."""

    RAW = "raw"
    HOURLY = "hourly"
    DAILY = "daily"

    @property
    def path_suffix(self) -> str:
        """Path segment appended after the chip kind (empty for raw rows)."""

        if self is Granularity.RAW:
            return ""
        return f"/{self.value}"


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive range of instants; ``start`` must not be after ``end``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise BadInputError("DateRange bounds must be timezone-aware")
        if self.start > self.end:
            raise BadInputError(
                f"Range start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    @classmethod
    def from_dates(cls, start: date, end: date) -> DateRange:
        """Build a range covering whole UTC days ``start`` through ``end``."""

        return cls(
            datetime(start.year, start.month, start.day, tzinfo=UTC),
            datetime(end.year, end.month, end.day, tzinfo=UTC),
        )

    @classmethod
    def trailing_days(cls, days: int, *, now: datetime | None = None) -> DateRange:
        """Range of ``days`` days ending at ``now`` (evaluated per call)."""

        if days <= 0:
            raise BadInputError("days must be > 0")
        end = now if now is not None else datetime.now(UTC)
        if end.tzinfo is None:
            end = end.replace(tzinfo=UTC)
        return cls(end - timedelta(days=days), end)

    @classmethod
    def calendar_year(cls, start: date) -> DateRange:
        """One year starting at ``start``, ending the day before its anniversary."""

        return cls.from_dates(start, add_years(start, 1) - timedelta(days=1))

    @property
    def start_date(self) -> date:
        return self.start.astimezone(UTC).date()

    @property
    def end_date(self) -> date:
        return self.end.astimezone(UTC).date()


@dataclass(frozen=True, slots=True)
class TimeSample:
    time: datetime
    allocated: float
    total: float


@dataclass(frozen=True, slots=True)
class DaySample:
    date: date
    value: int


TimeSeries = tuple[TimeSample, ...]
DaySeries = tuple[DaySample, ...]


def add_years(day: date, years: int) -> date:
    """Shift ``day`` by whole years; Feb 29 rolls over to Mar 1 like JS ``setFullYear``."""

    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return date(day.year + years, 3, 1)


def to_js_iso(moment: datetime) -> str:
    """Format ``moment`` the way ``Date.prototype.toISOString`` does."""

    utc = moment.astimezone(UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


__all__ = [
    "Chip",
    "Granularity",
    "DateRange",
    "TimeSample",
    "DaySample",
    "TimeSeries",
    "DaySeries",
    "add_years",
    "to_js_iso",
]
