"""
FastAPI dependency injection for the hello service.

The settings an app was built with live on `app.state`, so handlers read
them per request instead of from the process-wide cache. That keeps apps
built with different settings (tests, embedded use) independent.
"""

from fastapi import Request

from api.src.config import Settings


def get_app_settings(request: Request) -> Settings:
    """Return the settings the running application was created with."""
    return request.app.state.settings


def get_correlation_id(request: Request) -> str:
    """Return the correlation id assigned by the request logging middleware."""
    return getattr(request.state, "correlation_id", "unknown")
