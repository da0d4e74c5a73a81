"""CPU/GPU allocation charts: fetch, calendar layout, scales and pointer lookup."""

from .charts import CalendarHeatmapChart, ChartStatus, TimeSeriesChart
from .config import AppConfig, load_app_config
from .models import Chip, DateRange, DaySample, Granularity, TimeSample

__all__ = [
    "AppConfig",
    "CalendarHeatmapChart",
    "ChartStatus",
    "Chip",
    "DateRange",
    "DaySample",
    "Granularity",
    "TimeSample",
    "TimeSeriesChart",
    "load_app_config",
]

__version__ = "0.1.0"
