"""Metrics data source: HTTP client and cancellable fetch tasks."""

from .client import MetricsSourceClient, parse_rows
from .tasks import CancelToken, FetchCoordinator, FetchTask, dispatch_inline

__all__ = [
    "MetricsSourceClient",
    "parse_rows",
    "CancelToken",
    "FetchCoordinator",
    "FetchTask",
    "dispatch_inline",
]
