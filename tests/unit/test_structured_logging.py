"""
Unit tests for structured logging and tracing helpers.

Tests cover:
- Application context processor
- Trace context processor inside and outside a recording span
- trace_function spans for sync and async callables, including failures
"""

import asyncio

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

import shared.logging
import shared.tracing
from shared.logging.structured_logger import APP_NAME, add_app_context, add_trace_context
from shared.tracing import trace_function


@pytest.fixture(scope="module")
def span_exporter():
    """Install an in-memory SDK provider as the global tracer provider"""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    return exporter


@pytest.fixture
def spans(span_exporter):
    span_exporter.clear()
    return span_exporter


# ============================================================================
# LOG PROCESSORS
# ============================================================================


class TestLogProcessors:
    """Test structlog processors"""

    def test_app_context(self):
        event = add_app_context(None, "info", {"event": "x"})

        assert event["app"] == APP_NAME
        assert "environment" in event

    def test_no_trace_context_outside_span(self):
        event = add_trace_context(None, "info", {"event": "x"})

        assert "trace_id" not in event
        assert "span_id" not in event

    def test_trace_context_inside_span(self):
        tracer = TracerProvider().get_tracer("test")

        with tracer.start_as_current_span("work") as span:
            event = add_trace_context(None, "info", {"event": "x"})
            context = span.get_span_context()

        assert event["trace_id"] == format(context.trace_id, "032x")
        assert event["span_id"] == format(context.span_id, "016x")
        assert len(event["trace_id"]) == 32


# ============================================================================
# TRACE DECORATOR
# ============================================================================


class TestTraceFunction:
    """Test the trace_function decorator"""

    def test_sync_span(self, spans):
        @trace_function("compute")
        def compute(x):
            return x * 2

        assert compute(21) == 42

        (span,) = spans.get_finished_spans()
        assert span.name == "compute"
        assert span.attributes["function.name"] == "compute"
        assert span.status.status_code == StatusCode.OK

    def test_default_span_name(self, spans):
        @trace_function()
        def named_after_function():
            return None

        named_after_function()

        assert spans.get_finished_spans()[0].name == "named_after_function"

    def test_sync_failure_recorded(self, spans):
        @trace_function()
        def broken():
            raise ValueError("boom")

        with pytest.raises(ValueError):
            broken()

        (span,) = spans.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert any(event.name == "exception" for event in span.events)

    def test_async_span(self, spans):
        @trace_function("wait")
        async def wait():
            await asyncio.sleep(0)
            return "done"

        assert asyncio.run(wait()) == "done"

        (span,) = spans.get_finished_spans()
        assert span.name == "wait"
        assert span.status.status_code == StatusCode.OK


class TestPublicInterface:
    """Test what the shared packages export"""

    def test_logging_exports(self):
        assert sorted(shared.logging.__all__) == [
            "bind_context", "configure_logging", "unbind_context"
        ]

    def test_tracing_exports(self):
        assert sorted(shared.tracing.__all__) == [
            "configure_tracing", "shutdown_tracing", "trace_function"
        ]
