"""FastAPI hello service.

Exposes a single greeting endpoint that simulates one second of latency,
plus health and Prometheus metrics endpoints.
"""

__version__ = "1.0.0"
