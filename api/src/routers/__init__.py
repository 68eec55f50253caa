"""API routers for the hello service."""
