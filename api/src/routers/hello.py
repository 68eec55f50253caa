"""
Hello router.

Serves the fixed greeting: log the request, wait for the configured delay
and answer with the configured message. The method is not checked: the
documented methods go through FastAPI, anything else falls through to a
plain Starlette route on the same path.
"""

import asyncio

import structlog
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.routing import Route

from api.src.config import Settings
from api.src.dependencies import get_app_settings, get_correlation_id

logger = structlog.get_logger(__name__)

HELLO_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def respond(settings: Settings, correlation_id: str, method: str) -> PlainTextResponse:
    """Log the request, sleep, and return the greeting."""
    logger.info(
        "hello_request_received",
        path=settings.hello_path,
        method=method,
        correlation_id=correlation_id
    )

    # Yields the event loop, so concurrent requests overlap their delays
    await asyncio.sleep(settings.hello_delay_seconds)

    return PlainTextResponse(settings.hello_message)


async def hello(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    correlation_id: str = Depends(get_correlation_id),
) -> PlainTextResponse:
    return await respond(settings, correlation_id, request.method)


async def hello_any_method(request: Request) -> PlainTextResponse:
    """Endpoint for methods outside HELLO_METHODS (TRACE, WebDAV, custom verbs)."""
    return await respond(get_app_settings(request), get_correlation_id(request), request.method)


def build_hello_router(path: str = "/hello") -> APIRouter:
    """
    Create the router serving the documented greeting routes at `path`.

    Args:
        path: Route path of the endpoint

    Returns:
        Router with a single route accepting every common HTTP method
    """
    router = APIRouter(tags=["Hello"])
    router.add_api_route(
        path,
        hello,
        methods=HELLO_METHODS,
        response_class=PlainTextResponse,
        summary="Hello",
        description="Returns the fixed greeting after the simulated latency.",
    )
    return router


def register_hello_routes(app: FastAPI, path: str = "/hello") -> None:
    """
    Mount the greeting at `path` for every HTTP method.

    The catch-all route is appended to the app router directly, since
    include_router turns a method-less route into one that matches nothing.
    """
    app.include_router(build_hello_router(path))
    app.router.routes.append(Route(path, endpoint=hello_any_method, include_in_schema=False))
