"""Naive recursive Fibonacci, the CPU-bound workload being profiled."""


def fibonacci(n: int) -> int:
    """Return the n-th Fibonacci number by double recursion, without memoization.

    Runs in exponential time on purpose: the call tree is what the profiler
    is there to record.

    Raises:
        ValueError: n is negative
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got: {n}")
    if n <= 1:
        return n
    return fibonacci(n - 1) + fibonacci(n - 2)
