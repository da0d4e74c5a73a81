"""Typed configuration loader for allocviz."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from .contracts.error import BadInputError
from .models import Chip, Granularity

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_NAMED_COLORS = {"steelblue", "black", "white", "gray", "grey", "red", "green", "blue", "orange"}


def _valid_color(value: str) -> bool:
    return bool(_HEX_COLOR.match(value)) or value.lower() in _NAMED_COLORS


@dataclass
class SourceConfig:
    base_url: str = "http://localhost:3000"
    timeout: float = 10.0
    max_response_bytes: int = 5 * 1024 * 1024

    def validate(self) -> None:
        parsed = urlparse(self.base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise BadInputError(f"source.base_url must be an http(s) URL; got {self.base_url!r}")
        if self.timeout <= 0:
            raise BadInputError("source.timeout must be > 0")
        if self.max_response_bytes <= 0:
            raise BadInputError("source.max_response_bytes must be > 0")


@dataclass
class TimeSeriesConfig:
    default_days: int = 7
    granularity: Granularity = Granularity.RAW
    cpu_color: str = "#1f77b4"
    gpu_color: str = "#9467bd"
    min_width: int = 1200

    def validate(self) -> None:
        if self.default_days <= 0:
            raise BadInputError("timeseries.default_days must be > 0")
        if self.min_width <= 0:
            raise BadInputError("timeseries.min_width must be > 0")
        for name in ("cpu_color", "gpu_color"):
            value = getattr(self, name)
            if not _valid_color(value):
                raise BadInputError(f"timeseries.{name} must be a hex or named color; got {value!r}")

    def color_for(self, chip: Chip) -> str:
        return self.cpu_color if chip is Chip.CPU else self.gpu_color


@dataclass
class HeatmapConfig:
    start: date | None = None
    cell_size: int = 12
    cell_margin: int = 2

    def validate(self) -> None:
        if self.cell_size <= 0:
            raise BadInputError("heatmap.cell_size must be > 0")
        if self.cell_margin < 0:
            raise BadInputError("heatmap.cell_margin must be >= 0")


@dataclass
class AppConfig:
    source: SourceConfig = field(default_factory=SourceConfig)
    timeseries: TimeSeriesConfig = field(default_factory=TimeSeriesConfig)
    heatmap: HeatmapConfig = field(default_factory=HeatmapConfig)

    @classmethod
    def load(cls, path: Path | None, env: Mapping[str, str] | None = None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ if env is None else env)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        sections: dict[str, dict[str, Any]] = {}
        for name in ("source", "timeseries", "heatmap"):
            section = data.get(name, {})
            if not isinstance(section, dict):
                raise BadInputError(f"[{name}] section must be a table")
            sections[name] = dict(section)

        try:
            source = SourceConfig(**sections["source"])
        except TypeError as exc:
            raise BadInputError(f"[source] {exc}") from exc

        ts_data = sections["timeseries"]
        if "granularity" in ts_data:
            ts_data["granularity"] = _parse_granularity(ts_data["granularity"], "timeseries.granularity")
        try:
            timeseries = TimeSeriesConfig(**ts_data)
        except TypeError as exc:
            raise BadInputError(f"[timeseries] {exc}") from exc

        hm_data = sections["heatmap"]
        if "start" in hm_data:
            hm_data["start"] = _parse_date(hm_data["start"], "heatmap.start")
        try:
            heatmap = HeatmapConfig(**hm_data)
        except TypeError as exc:
            raise BadInputError(f"[heatmap] {exc}") from exc
        return cls(source=source, timeseries=timeseries, heatmap=heatmap)

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        mapping: dict[str, tuple[object, str, Callable[[str], Any]]] = {
            "ALLOCVIZ_BASE_URL": (self.source, "base_url", str),
            "ALLOCVIZ_TIMEOUT": (self.source, "timeout", float),
            "ALLOCVIZ_TIMESERIES_DAYS": (self.timeseries, "default_days", int),
            "ALLOCVIZ_GRANULARITY": (
                self.timeseries,
                "granularity",
                lambda raw: _parse_granularity(raw, "ALLOCVIZ_GRANULARITY"),
            ),
            "ALLOCVIZ_CPU_COLOR": (self.timeseries, "cpu_color", str),
            "ALLOCVIZ_GPU_COLOR": (self.timeseries, "gpu_color", str),
            "ALLOCVIZ_HEATMAP_START": (
                self.heatmap,
                "start",
                lambda raw: _parse_date(raw, "ALLOCVIZ_HEATMAP_START"),
            ),
        }
        for key, (target, attr, caster) in mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value.strip())
            except ValueError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(target, attr, value)

    def validate(self) -> None:
        self.source.validate()
        self.timeseries.validate()
        self.heatmap.validate()


def _parse_granularity(value: Any, label: str) -> Granularity:
    if isinstance(value, Granularity):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"", "quarter-hour", "quarterhour"}:
        return Granularity.RAW
    try:
        return Granularity(normalized)
    except ValueError as exc:
        raise BadInputError(f"{label} must be one of raw, hourly, daily; got {value!r}") from exc


def _parse_date(value: Any, label: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise BadInputError(f"{label} must be an ISO date (YYYY-MM-DD); got {value!r}") from exc


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)


__all__ = [
    "AppConfig",
    "SourceConfig",
    "TimeSeriesConfig",
    "HeatmapConfig",
    "load_app_config",
]
