"""Prometheus metrics definitions and helpers.

Provides metric groups for the hello service and the profiling loop.
"""

from functools import lru_cache
from typing import Callable

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class HTTPMetrics:
    """HTTP request metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize HTTP metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=registry,
        )

        # Buckets straddle the one second /hello latency
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 0.9, 1.0, 1.1, 1.5, 2.0, 5.0],
            registry=registry,
        )

        self.requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method", "endpoint"],
            registry=registry,
        )


class ProfilerMetrics:
    """Fibonacci profiling loop metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize profiling loop metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.iterations_total = Counter(
            "fibonacci_iterations_total",
            "Total number of fibonacci iterations computed",
            ["n"],
            registry=registry,
        )

        self.iteration_duration = Histogram(
            "fibonacci_iteration_duration_seconds",
            "Time spent computing one fibonacci iteration",
            ["n"],
            buckets=[0.001, 0.01, 0.1, 1.0, 10.0, 60.0, 300.0, 900.0, 1800.0],
            registry=registry,
        )

        self.last_result = Gauge(
            "fibonacci_last_result",
            "Result of the most recent fibonacci iteration",
            ["n"],
            registry=registry,
        )


def get_metrics_handler(registry: CollectorRegistry = REGISTRY) -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Args:
        registry: Prometheus registry to expose

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(registry)

    return metrics_handler


@lru_cache()
def get_http_metrics(registry: CollectorRegistry = REGISTRY) -> HTTPMetrics:
    """Return the HTTP metric group for `registry`, registering it once."""
    return HTTPMetrics(registry)


@lru_cache()
def get_profiler_metrics(registry: CollectorRegistry = REGISTRY) -> ProfilerMetrics:
    """Return the profiling loop metric group for `registry`, registering it once."""
    return ProfilerMetrics(registry)
