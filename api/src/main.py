"""
FastAPI application entry point for the hello service.

This module provides:
- The /hello endpoint (logged, delayed, fixed body)
- Health and Prometheus metrics endpoints
- Request logging with correlation IDs
- Optional OpenTelemetry distributed tracing
- Fail-fast startup: the socket is bound before the server starts, and a
  bind failure exits the process with status 1

Run with `hello-server`, `python -m api.src.main`, or
`uvicorn api.src.main:create_app --factory`.
"""

import socket
import sys
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from api.src.config import Settings, get_settings
from api.src.exceptions import ListenerBindError, ServiceStartupError
from api.src.routers.hello import register_hello_routes
from shared.logging import bind_context, configure_logging, unbind_context
from shared.metrics import HTTPMetrics, get_http_metrics, get_metrics_handler
from shared.tracing import configure_tracing, shutdown_tracing

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


# ============================================================================
# Request Logging and Metrics Middleware
# ============================================================================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging, metrics, and correlation IDs."""

    def __init__(self, app, metrics: Optional[HTTPMetrics] = None):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next):
        """Process request and log details."""
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        if self.metrics:
            self.metrics.requests_in_progress.labels(method=method, endpoint=path).inc()

        start_time = time.perf_counter()
        bind_context(correlation_id=correlation_id)

        logger.info(
            "request_started",
            method=method,
            path=path,
            client_ip=client_ip
        )

        try:
            response = await call_next(request)

            duration = time.perf_counter() - start_time

            if self.metrics:
                self.metrics.requests_total.labels(
                    method=method,
                    endpoint=path,
                    status=response.status_code
                ).inc()
                self.metrics.request_duration.labels(
                    method=method,
                    endpoint=path
                ).observe(duration)

            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration=f"{duration:.3f}s"
            )

            response.headers[CORRELATION_HEADER] = correlation_id
            return response

        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration=f"{duration:.3f}s",
                exc_info=True
            )
            raise

        finally:
            unbind_context("correlation_id")
            if self.metrics:
                self.metrics.requests_in_progress.labels(method=method, endpoint=path).dec()


# ============================================================================
# Application Factory
# ============================================================================

def create_app(
    settings: Optional[Settings] = None,
    registry: CollectorRegistry = REGISTRY,
) -> FastAPI:
    """
    Build the hello service application.

    Args:
        settings: Settings to build with (defaults to the cached settings)
        registry: Prometheus registry for HTTP metrics and /metrics output

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Initialize tracing on startup and flush it on shutdown."""
        logger.info(
            "application_starting",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment
        )

        if settings.tracing_enabled:
            logger.info("initializing_tracing", endpoint=settings.tracing_otlp_endpoint)
            configure_tracing(
                service_name=settings.app_name,
                otlp_endpoint=settings.tracing_otlp_endpoint,
                sampling_rate=settings.tracing_sample_rate,
                service_version=settings.app_version,
            )

        logger.info("application_started", app_name=settings.app_name)

        try:
            yield
        finally:
            logger.info("application_shutting_down")
            if settings.tracing_enabled:
                shutdown_tracing()
            logger.info("application_shutdown_complete")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Greeting service with simulated latency.",
        lifespan=lifespan,
    )
    app.state.settings = settings

    metrics = get_http_metrics(registry) if settings.metrics_enabled else None
    app.add_middleware(RequestLoggingMiddleware, metrics=metrics)

    if settings.tracing_enabled:
        FastAPIInstrumentor.instrument_app(app)

    # ========================================================================
    # Exception Handlers
    # ========================================================================

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        logger.warning(
            "http_exception",
            path=request.url.path,
            status_code=exc.status_code,
            detail=exc.detail
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            "unexpected_exception",
            path=request.url.path,
            error=str(exc),
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"}
        )

    # ========================================================================
    # Routes
    # ========================================================================

    register_hello_routes(app, settings.hello_path)

    @app.get("/health", tags=["Health"], response_class=JSONResponse)
    async def health_check() -> Dict[str, Any]:
        """
        Health check endpoint.

        Returns basic health status. Use for container health checks.
        """
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment
        }

    if settings.metrics_enabled:
        render_metrics = get_metrics_handler(registry)

        @app.get(settings.metrics_endpoint, tags=["Monitoring"])
        async def metrics_endpoint() -> Response:
            """Prometheus metrics endpoint."""
            return Response(content=render_metrics(), media_type=CONTENT_TYPE_LATEST)

    return app


# ============================================================================
# Listener and Entry Point
# ============================================================================

def bind_listener(host: str, port: int, backlog: int = 2048) -> socket.socket:
    """
    Bind and listen on `host:port` before the server starts.

    Args:
        host: Interface to bind
        port: TCP port
        backlog: Listen backlog

    Returns:
        Listening socket, ready to hand to uvicorn

    Raises:
        ListenerBindError: The address could not be bound (e.g. already in use)
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError as exc:
        sock.close()
        raise ListenerBindError(host, port, exc.strerror or str(exc)) from exc

    sock.set_inheritable(True)
    return sock


def main() -> None:
    """Start the hello service, exiting with status 1 on any startup failure."""
    settings = get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        service_name=settings.app_name,
        environment=settings.environment,
    )

    logger.info("server_starting", host=settings.host, port=settings.port)

    try:
        sock = bind_listener(settings.host, settings.port, settings.backlog)
    except ServiceStartupError as e:
        logger.error(
            "server_bind_failed",
            host=settings.host,
            port=settings.port,
            error=str(e)
        )
        sys.exit(1)

    server = uvicorn.Server(
        uvicorn.Config(
            create_app(settings),
            lifespan="on",
            log_level=settings.log_level.lower(),
            access_log=False,
        )
    )

    try:
        server.run(sockets=[sock])
    finally:
        sock.close()

    if not server.started:
        logger.error("server_startup_failed", host=settings.host, port=settings.port)
        sys.exit(1)


if __name__ == "__main__":
    main()
