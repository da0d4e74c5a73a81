"""Scales mapping data domains to pixels and colors.

All scales are frozen value objects: rebuilding them from the same series and
drawable size yields equal instances, which is what makes redraws idempotent.
A zero-width domain never divides by zero; it maps everything to the middle
of the output range instead.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

import numpy as np

from .contracts.error import EmptySeriesError
from .geometry import DrawableSize
from .models import DaySample, TimeSample

# ColorBrewer "Blues" (9-class), the palette behind d3.interpolateBlues.
BLUES = (
    "#f7fbff",
    "#deebf7",
    "#c6dbef",
    "#9ecae1",
    "#6baed6",
    "#4292c6",
    "#2171b5",
    "#08519c",
    "#08306b",
)
NO_DATA_FILL = "#eeeeee"

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


def _nice_step(lo: float, hi: float, count: int) -> float:
    raw = (hi - lo) / max(count, 1)
    power = 10 ** math.floor(math.log10(raw))
    error = raw / power
    if error >= _E10:
        factor = 10
    elif error >= _E5:
        factor = 5
    elif error >= _E2:
        factor = 2
    else:
        factor = 1
    return factor * power


def _hex_to_rgb(color: str) -> tuple[int, int, int]:
    text = color.lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)


def _rgb_to_hex(rgb: Sequence[float]) -> str:
    r, g, b = (int(round(min(max(channel, 0.0), 255.0))) for channel in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def format_number(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.6g}"


@dataclass(frozen=True, slots=True)
class LinearScale:
    domain: tuple[float, float]
    range: tuple[float, float]

    @property
    def degenerate(self) -> bool:
        return self.domain[0] == self.domain[1]

    def __call__(self, value: float) -> float:
        return self.forward(value)

    def forward(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d0 == d1:
            return (r0 + r1) / 2.0
        return r0 + (value - d0) / (d1 - d0) * (r1 - r0)

    def inverse(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d0 == d1 or r0 == r1:
            return d0
        return d0 + (pixel - r0) / (r1 - r0) * (d1 - d0)

    def map_array(self, values: Sequence[float]) -> np.ndarray:
        arr = np.asarray(values, dtype=float)
        d0, d1 = self.domain
        r0, r1 = self.range
        if d0 == d1:
            return np.full(arr.shape, (r0 + r1) / 2.0)
        return r0 + (arr - d0) / (d1 - d0) * (r1 - r0)

    def ticks(self, count: int = 10) -> tuple[float, ...]:
        lo, hi = sorted(self.domain)
        if lo == hi:
            return (lo,)
        step = _nice_step(lo, hi, count)
        first = math.ceil(lo / step)
        last = math.floor(hi / step)
        return tuple(round(i * step, 12) for i in range(first, last + 1))


# Tick intervals for time axes: (approximate seconds, unit, step).
_TIME_INTERVALS: tuple[tuple[float, str, int], ...] = (
    (1, "second", 1),
    (5, "second", 5),
    (15, "second", 15),
    (30, "second", 30),
    (60, "minute", 1),
    (300, "minute", 5),
    (900, "minute", 15),
    (1800, "minute", 30),
    (3600, "hour", 1),
    (3 * 3600, "hour", 3),
    (6 * 3600, "hour", 6),
    (12 * 3600, "hour", 12),
    (86400, "day", 1),
    (2 * 86400, "day", 2),
    (7 * 86400, "week", 1),
    (30 * 86400, "month", 1),
    (90 * 86400, "month", 3),
    (365 * 86400, "year", 1),
)
_UNIT_SECONDS = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class TimeScale:
    """Linear mapping between UTC instants and pixels."""

    domain: tuple[datetime, datetime]
    range: tuple[float, float]

    @property
    def _linear(self) -> LinearScale:
        return LinearScale((self.domain[0].timestamp(), self.domain[1].timestamp()), self.range)

    @property
    def degenerate(self) -> bool:
        return self.domain[0] == self.domain[1]

    def __call__(self, value: datetime) -> float:
        return self.forward(value)

    def forward(self, value: datetime) -> float:
        return self._linear.forward(value.timestamp())

    def inverse(self, pixel: float) -> datetime:
        return datetime.fromtimestamp(self._linear.inverse(pixel), tz=UTC)

    def map_array(self, values: Sequence[datetime]) -> np.ndarray:
        return self._linear.map_array([value.timestamp() for value in values])

    def tick_interval(self, count: int = 10) -> tuple[str, int]:
        span = (self.domain[1] - self.domain[0]).total_seconds()
        target = abs(span) / max(count, 1)
        for seconds, unit, step in _TIME_INTERVALS:
            if seconds >= target:
                return unit, step
        years = LinearScale((0.0, abs(span) / (365 * 86400)), (0.0, 1.0)).ticks(count)
        step = int(years[1] - years[0]) if len(years) > 1 else 1
        return "year", max(step, 1)

    def ticks(self, count: int = 10) -> tuple[datetime, ...]:
        lo, hi = sorted(self.domain)
        if lo == hi:
            return (lo,)
        lo, hi = lo.astimezone(UTC), hi.astimezone(UTC)
        unit, step = self.tick_interval(count)
        out: list[datetime] = []
        if unit in _UNIT_SECONDS:
            seconds = _UNIT_SECONDS[unit] * step
            elapsed = (lo - _EPOCH).total_seconds()
            current = _EPOCH + timedelta(seconds=math.ceil(elapsed / seconds) * seconds)
            while current <= hi:
                out.append(current)
                current += timedelta(seconds=seconds)
        elif unit == "week":
            first = lo.date()
            first -= timedelta(days=(first.weekday() + 1) % 7)
            current = datetime(first.year, first.month, first.day, tzinfo=UTC)
            while current <= hi:
                if current >= lo:
                    out.append(current)
                current += timedelta(days=7)
        elif unit == "month":
            year, month = lo.year, lo.month
            while True:
                current = datetime(year, month, 1, tzinfo=UTC)
                if current > hi:
                    break
                if current >= lo and (month - 1) % step == 0:
                    out.append(current)
                month += 1
                if month > 12:
                    year, month = year + 1, 1
        else:
            year = lo.year
            while True:
                current = datetime(year, 1, 1, tzinfo=UTC)
                if current > hi:
                    break
                if current >= lo and year % step == 0:
                    out.append(current)
                year += 1
        return tuple(out)

    def tick_format(self, count: int = 10) -> str:
        unit, _step = self.tick_interval(count)
        return {
            "second": "%H:%M:%S",
            "minute": "%H:%M",
            "hour": "%H:%M",
            "day": "%b %d",
            "week": "%b %d",
            "month": "%B",
            "year": "%Y",
        }[unit]


@dataclass(frozen=True, slots=True)
class SequentialColorScale:
    """Map ``[lo, hi]`` onto a multi-stop color ramp."""

    domain: tuple[float, float]
    ramp: tuple[str, ...] = BLUES

    def _positions(self, values: np.ndarray) -> np.ndarray:
        lo, hi = self.domain
        if lo == hi:
            return np.full(values.shape, 0.5)
        return np.clip((values - lo) / (hi - lo), 0.0, 1.0)

    def rgb_array(self, values: Sequence[float]) -> np.ndarray:
        arr = np.asarray(values, dtype=float)
        t = self._positions(arr)
        stops = np.array([_hex_to_rgb(color) for color in self.ramp], dtype=float)
        xp = np.linspace(0.0, 1.0, len(stops))
        return np.stack([np.interp(t, xp, stops[:, channel]) for channel in range(3)], axis=-1)

    def __call__(self, value: float) -> str:
        return _rgb_to_hex(self.rgb_array([value])[0])

    def legend_stops(self, steps: int = 10) -> tuple[tuple[float, str], ...]:
        lo, hi = self.domain
        return tuple(
            (i / steps, self(lo + (i / steps) * (hi - lo))) for i in range(steps + 1)
        )


@dataclass(frozen=True, slots=True)
class ScaleSet:
    position: TimeScale | None = None
    value: LinearScale | None = None
    color: SequentialColorScale | None = None


def build_time_series_scales(
    series: Sequence[TimeSample], drawable: DrawableSize
) -> ScaleSet:
    """Time → x over the inner width and ``[0, max(total)]`` → y, inverted."""

    if not series:
        raise EmptySeriesError()
    times = [sample.time for sample in series]
    max_total = max(sample.total for sample in series)
    return ScaleSet(
        position=TimeScale((min(times), max(times)), (0.0, drawable.inner_width)),
        value=LinearScale((0.0, float(max_total)), (drawable.inner_height, 0.0)),
    )


def build_heatmap_scales(series: Sequence[DaySample]) -> ScaleSet:
    if not series:
        raise EmptySeriesError()
    values = [float(sample.value) for sample in series]
    return ScaleSet(color=SequentialColorScale((min(values), max(values))))


def day_lookup(series: Sequence[DaySample]) -> dict[date, int]:
    return {sample.date: sample.value for sample in series}


__all__ = [
    "BLUES",
    "NO_DATA_FILL",
    "LinearScale",
    "TimeScale",
    "SequentialColorScale",
    "ScaleSet",
    "build_time_series_scales",
    "build_heatmap_scales",
    "day_lookup",
    "format_number",
]
