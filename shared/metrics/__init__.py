"""Metrics module using Prometheus."""

from .prometheus_metrics import (
    HTTPMetrics,
    ProfilerMetrics,
    get_http_metrics,
    get_metrics_handler,
    get_profiler_metrics,
)

__all__ = [
    "HTTPMetrics",
    "ProfilerMetrics",
    "get_http_metrics",
    "get_metrics_handler",
    "get_profiler_metrics",
]
