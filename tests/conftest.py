"""
Shared pytest fixtures for the mqtrace tests.

This module provides:
- OpenTelemetry fixtures (span_exporter, tracer_provider, otel_tracer)
- A W3C trace-context propagator and producer headers carrying a valid context
- Fake channels implementing the patch helpers' Channel protocol
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any, NamedTuple

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from mqtrace.instrumentation.rabbitmq.channel import ExchangeInfo
from mqtrace.observability import MockTracer, OpenTelemetryTracer

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for tests."""
    config.addinivalue_line("markers", "rabbitmq: marks tests that exercise aio-pika classes")


# ============================================================================
# Fake Channels
# ============================================================================


class FakeChannel:
    """Channel with a fixed broker address and a dict of declared exchanges."""

    def __init__(
        self,
        host: str = "rabbit.local",
        port: int = 5672,
        exchanges: dict[str, str] | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.exchanges = {
            name: ExchangeInfo(name=name, type=exchange_type)
            for name, exchange_type in (exchanges or {}).items()
        }
        self.lookups: list[str] = []

    def find_exchange(self, name: str) -> ExchangeInfo | None:
        self.lookups.append(name)
        return self.exchanges.get(name)


class BrokenChannel(FakeChannel):
    """Channel whose exchange lookup always fails."""

    def find_exchange(self, name: str) -> ExchangeInfo | None:
        raise ConnectionError("channel closed")


@pytest.fixture
def channel() -> FakeChannel:
    """Channel knowing a direct, a topic, a fanout and a headers exchange."""
    return FakeChannel(
        exchanges={
            "tasks": "direct",
            "logs": "topic",
            "broadcast": "fanout",
            "matching": "headers",
        }
    )


@pytest.fixture
def broken_channel() -> BrokenChannel:
    return BrokenChannel()


# ============================================================================
# OpenTelemetry Fixtures
# ============================================================================


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """In-memory exporter capturing every finished span of the test."""
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter: InMemorySpanExporter) -> Generator[TracerProvider, None, None]:
    """
    TracerProvider exporting synchronously into ``span_exporter``.

    The provider is local to the test and never installed globally.
    """
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()


@pytest.fixture
def otel_tracer(tracer_provider: TracerProvider) -> OpenTelemetryTracer:
    return OpenTelemetryTracer("mqtrace.tests", tracer_provider)


@pytest.fixture
def mock_tracer() -> MockTracer:
    return MockTracer()


@pytest.fixture
def propagator() -> TraceContextTextMapPropagator:
    return TraceContextTextMapPropagator()


class Producer(NamedTuple):
    """Headers written by an instrumented producer and its span context."""

    headers: dict[str, Any]
    span_context: trace.SpanContext


@pytest.fixture
def producer(
    tracer_provider: TracerProvider,
    propagator: TraceContextTextMapPropagator,
) -> Producer:
    """
    Headers carrying ``traceparent`` for a finished span named "producer".

    An unrelated application header is included to check it is ignored.
    """
    tracer = tracer_provider.get_tracer("producer")
    headers: dict[str, Any] = {"app-id": "billing"}
    with tracer.start_as_current_span("producer") as span:
        propagator.inject(headers)
        span_context = span.get_span_context()
    return Producer(headers=headers, span_context=span_context)
