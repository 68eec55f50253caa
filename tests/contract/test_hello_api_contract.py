"""
Contract tests for the hello service HTTP API.

Tests verify the API contract:
- /hello body, status and media type for every method
- Health response schema
- Error response schema
- OpenAPI document advertises the published routes

Response bodies are validated against Pydantic contract models.
"""

from typing import Literal

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry
from pydantic import BaseModel, Field, ValidationError

from api.src.config import Settings
from api.src.main import create_app
from api.src.routers.hello import HELLO_METHODS


# ============================================================================
# CONTRACT MODELS (API Contract Definitions)
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response schema."""
    status: Literal["healthy"]
    service: str = Field(..., min_length=1)
    version: str = Field(..., pattern=r"^\d+\.\d+\.\d+$")
    environment: Literal["development", "staging", "production"]


class ErrorResponse(BaseModel):
    """Error response schema."""
    detail: str = Field(..., min_length=1)


@pytest.fixture
def client():
    app = create_app(Settings(hello_delay_seconds=0.0), registry=CollectorRegistry())
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# CONTRACT VALIDATION TESTS
# ============================================================================


class TestHelloContract:
    """Test /hello endpoint contract"""

    @pytest.mark.parametrize("method", [m for m in HELLO_METHODS if m not in ("HEAD", "OPTIONS")])
    def test_body_and_status(self, client, method):
        response = client.request(method, "/hello")

        assert response.status_code == 200
        assert response.content == b"Hello World"
        assert response.headers["content-length"] == "11"
        assert response.headers["content-type"] == "text/plain; charset=utf-8"

    def test_head_accepted(self, client):
        assert client.head("/hello").status_code == 200

    def test_any_method_accepted(self, client):
        response = client.request("MKCOL", "/hello")

        assert response.status_code == 200
        assert response.content == b"Hello World"

    def test_custom_path_accepts_any_method(self):
        settings = Settings(hello_delay_seconds=0.0, hello_path="/greet")
        app = create_app(settings, registry=CollectorRegistry())
        with TestClient(app) as test_client:
            assert test_client.request("TRACE", "/greet").content == b"Hello World"
            assert test_client.request("TRACE", "/hello").status_code == 404


class TestHealthContract:
    """Test /health endpoint contract"""

    def test_schema(self, client):
        HealthResponse(**client.get("/health").json())

    def test_schema_rejects_unhealthy(self):
        with pytest.raises(ValidationError):
            HealthResponse(status="down", service="x", version="1.0.0", environment="production")


class TestErrorContract:
    """Test error response contract"""

    def test_not_found(self, client):
        response = client.get("/missing")

        assert response.status_code == 404
        ErrorResponse(**response.json())

    def test_method_not_allowed_on_health(self, client):
        response = client.post("/health")

        assert response.status_code == 405
        ErrorResponse(**response.json())


class TestOpenAPIContract:
    """Test the published OpenAPI document"""

    def test_routes_advertised(self, client):
        paths = client.get("/openapi.json").json()["paths"]

        assert {"/hello", "/health", "/metrics"} <= set(paths)
        assert {"get", "post", "put", "patch", "delete"} <= set(paths["/hello"])
