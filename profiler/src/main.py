"""Main entry point for the Fibonacci profiling loop.

Computes fib(n) repeatedly with naive recursion while a CPU profile is
recorded. Setup failures (output file, profiler) abort before any
computation and exit with status 1.
"""

import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import structlog
from prometheus_client import start_http_server

from shared.logging import configure_logging
from shared.metrics import ProfilerMetrics, get_profiler_metrics
from shared.tracing import configure_tracing, shutdown_tracing, trace_function

from .config import get_config
from .cpu_profile import DEFAULT_INTERVAL_MS, CPUProfileSession
from .exceptions import ProfilingError
from .fibonacci import fibonacci

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class IterationResult:
    """Outcome of one fibonacci computation."""
    iteration: int
    result: int
    duration_seconds: float


@dataclass(frozen=True)
class ProfileRunResult:
    """Outcome of a whole profiled run."""
    output_path: Path
    total_duration_seconds: float
    iterations: List[IterationResult] = field(default_factory=list)


@trace_function("fibonacci_iteration")
def compute_iteration(n: int) -> int:
    """Compute one fib(n). Traced as a single span, not per recursive call."""
    return fibonacci(n)


def run_profile(
    n: int,
    iterations: int,
    output_path: Union[str, Path],
    metrics: Optional[ProfilerMetrics] = None,
    interval_ms: int = DEFAULT_INTERVAL_MS,
) -> ProfileRunResult:
    """
    Compute fib(n) `iterations` times inside a CPU profile session.

    Args:
        n: Fibonacci term
        iterations: Number of repetitions
        output_path: Where the CPU profile is written
        metrics: Optional metric group to record iterations into
        interval_ms: CPU sampling interval

    Returns:
        Per-iteration results and the total duration

    Raises:
        ValueError: iterations is not positive
        ProfileOutputError: output_path could not be created
        ProfilerStartError: the profiler could not be started
    """
    if iterations <= 0:
        raise ValueError(f"iterations must be positive, got: {iterations}")

    results: List[IterationResult] = []

    with CPUProfileSession(output_path, interval_ms=interval_ms):
        logger.info("fibonacci_compute_starting", n=n, iterations=iterations)
        start_time = time.perf_counter()

        for iteration in range(1, iterations + 1):
            iteration_start = time.perf_counter()
            result = compute_iteration(n)
            duration = time.perf_counter() - iteration_start

            logger.info(
                "fibonacci_iteration_completed",
                iteration=iteration,
                result=result,
                duration=f"{duration:.3f}s"
            )

            if metrics:
                metrics.iterations_total.labels(n=str(n)).inc()
                metrics.iteration_duration.labels(n=str(n)).observe(duration)
                metrics.last_result.labels(n=str(n)).set(result)

            results.append(IterationResult(iteration, result, duration))

        total_duration = time.perf_counter() - start_time
        logger.info(
            "fibonacci_compute_completed",
            iterations=iterations,
            duration=f"{total_duration:.3f}s"
        )

    return ProfileRunResult(
        output_path=Path(output_path),
        total_duration_seconds=total_duration,
        iterations=results,
    )


def main():
    """Main entry point."""
    config = get_config()

    configure_logging(
        log_level=config.log_level,
        json_logs=config.json_logs,
        service_name=config.service_name
    )

    if config.tracing_enabled:
        configure_tracing(config.service_name, otlp_endpoint=config.tracing_otlp_endpoint)

    metrics = get_profiler_metrics()
    if config.metrics_port:
        start_http_server(config.metrics_port)
        logger.info("metrics_server_started", port=config.metrics_port)

    try:
        run = run_profile(
            n=config.n,
            iterations=config.iterations,
            output_path=config.output_path,
            metrics=metrics,
            interval_ms=config.sample_interval_ms,
        )
    except ProfilingError as e:
        logger.error("profiling_setup_failed", output_path=config.output_path, error=str(e))
        sys.exit(1)
    finally:
        if config.tracing_enabled:
            shutdown_tracing()

    logger.info(
        "cpu_profile_saved",
        output_path=str(run.output_path),
        report_command=f"profile-report {run.output_path}"
    )


if __name__ == "__main__":
    main()
