"""Fibonacci CPU profiling loop and offline profile report.

The loop computes fib(45) five times with naive recursion while spprof
samples it into ``cpu_profile.json``; the report tool summarizes such files.
"""

__version__ = "1.0.0"
