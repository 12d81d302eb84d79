"""
Tracer protocol and implementations for composition-based tracing.

This module provides a tracer abstraction that is injected into the patch
helpers and middlewares as a dependency, rather than reaching for a global
tracer from inside the instrumentation.

The key benefits of composition-based tracing:
- Helpers stay free of global state
- Easy to mock for testing
- Swappable tracer implementations

Example:
    >>> from mqtrace.observability import create_tracer, NullTracer, SpanKindEnum
    >>>
    >>> # Create tracer based on configuration
    >>> tracer = create_tracer(__name__, enable_tracing=True)
    >>>
    >>> # Or explicitly use NullTracer for testing
    >>> tracer = NullTracer()
    >>>
    >>> with tracer.in_span("orders send", {"messaging.system": "rabbitmq"},
    ...                    kind=SpanKindEnum.PRODUCER):
    ...     publish()
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator, Sequence
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from opentelemetry import context as otel_context
from opentelemetry import trace

if TYPE_CHECKING:
    from opentelemetry.context import Context
    from opentelemetry.trace import Link, Span, TracerProvider


class SpanKindEnum(Enum):
    """
    Span kinds for distributed tracing.

    Used to indicate the role a span plays in a trace. This is a simplified
    enumeration that maps to OpenTelemetry's SpanKind.

    Values:
        INTERNAL: Default span kind for internal operations
        PRODUCER: For producer/publisher operations (e.g., publishing to an exchange)
        CONSUMER: For consumer/subscriber operations (e.g., receiving from a queue)
        CLIENT: For client operations
        SERVER: For server operations
    """

    INTERNAL = "internal"
    PRODUCER = "producer"
    CONSUMER = "consumer"
    CLIENT = "client"
    SERVER = "server"


_OTEL_KINDS = {
    SpanKindEnum.INTERNAL: trace.SpanKind.INTERNAL,
    SpanKindEnum.PRODUCER: trace.SpanKind.PRODUCER,
    SpanKindEnum.CONSUMER: trace.SpanKind.CONSUMER,
    SpanKindEnum.CLIENT: trace.SpanKind.CLIENT,
    SpanKindEnum.SERVER: trace.SpanKind.SERVER,
}


@runtime_checkable
class Tracer(Protocol):
    """
    Protocol for tracers that can create tracing spans.

    Implementations:
    - NullTracer: No-op tracer for when tracing is disabled
    - OpenTelemetryTracer: Wrapper around OpenTelemetry tracer
    - MockTracer: Records spans for assertions in tests
    """

    def in_span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        links: Sequence[Link] | None = None,
        context: Context | None = None,
    ) -> AbstractContextManager[Span | None]:
        """
        Open a span that is current for the duration of the ``with`` block.

        The span ends on every exit path. An exception raised inside the
        block is recorded on the span, the span status is set to ERROR and
        the exception propagates unchanged.

        Args:
            name: Span name (e.g., "orders send")
            attributes: Span attributes (optional)
            kind: The span kind (PRODUCER, CONSUMER, etc.)
            links: Causal links to other spans (optional)
            context: Parent context; the current context when None

        Returns:
            Context manager that yields Span or None
        """
        ...

    @property
    def enabled(self) -> bool:
        """
        Check if tracing is enabled.

        Returns:
            True if tracing is active and will create real spans
        """
        ...


class NullTracer:
    """
    No-op tracer implementation for when tracing is disabled.

    Example:
        >>> tracer = NullTracer()
        >>> with tracer.in_span("operation"):  # Does nothing
        ...     do_work()
        >>> tracer.enabled  # False
    """

    @contextlib.contextmanager
    def in_span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        links: Sequence[Link] | None = None,
        context: Context | None = None,
    ) -> Generator[None, None, None]:
        """Create a no-op span context (yields None)."""
        yield None

    @property
    def enabled(self) -> bool:
        """Always returns False for NullTracer."""
        return False


class OpenTelemetryTracer:
    """
    OpenTelemetry tracer implementation.

    Wraps the OpenTelemetry tracer API to conform to our Tracer protocol.

    Args:
        tracer_name: Name for the tracer (typically __name__)
        tracer_provider: Provider to take the tracer from; the global
            provider when None
    """

    def __init__(
        self,
        tracer_name: str,
        tracer_provider: TracerProvider | None = None,
    ) -> None:
        from mqtrace import __version__

        self._tracer = trace.get_tracer(
            tracer_name,
            __version__,
            tracer_provider=tracer_provider,
        )

    def in_span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        links: Sequence[Link] | None = None,
        context: Context | None = None,
    ) -> AbstractContextManager[Span | None]:
        """
        Create an OpenTelemetry span context.

        Returns:
            Context manager yielding the OpenTelemetry Span
        """
        return self._tracer.start_as_current_span(
            name,
            context=context,
            kind=_OTEL_KINDS.get(kind, trace.SpanKind.INTERNAL),
            attributes=attributes or {},
            links=links or (),
            record_exception=True,
            set_status_on_exception=True,
        )

    @property
    def enabled(self) -> bool:
        """Always returns True for OpenTelemetryTracer."""
        return True


@dataclass
class RecordedSpan:
    """A span captured by MockTracer."""

    name: str
    attributes: dict[str, Any] | None
    kind: SpanKindEnum
    links: list[Link] = field(default_factory=list)
    parent_context: Context | None = None
    exception: BaseException | None = None


class MockTracer:
    """
    Mock tracer for testing that records span information.

    The context that was current (or explicitly passed) when each span was
    opened is kept as ``parent_context``, so tests can assert on context
    restoration without an SDK installed.

    Example:
        >>> tracer = MockTracer()
        >>> with tracer.in_span("operation", {"key": "value"}):
        ...     pass
        >>> assert tracer.span_names == ["operation"]
    """

    def __init__(self) -> None:
        """Initialize MockTracer with empty span list."""
        self.spans: list[RecordedSpan] = []

    @contextlib.contextmanager
    def in_span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
        kind: SpanKindEnum = SpanKindEnum.INTERNAL,
        links: Sequence[Link] | None = None,
        context: Context | None = None,
    ) -> Generator[None, None, None]:
        """Record span and yield None."""
        recorded = RecordedSpan(
            name=name,
            attributes=attributes,
            kind=kind,
            links=list(links or ()),
            parent_context=context if context is not None else otel_context.get_current(),
        )
        self.spans.append(recorded)
        try:
            yield None
        except BaseException as e:
            recorded.exception = e
            raise

    @property
    def enabled(self) -> bool:
        """Returns True to enable attribute computation in tests."""
        return True

    @property
    def span_names(self) -> list[str]:
        """Get just the span names for easy assertions."""
        return [span.name for span in self.spans]

    def clear(self) -> None:
        """Clear recorded spans."""
        self.spans.clear()


def create_tracer(
    name: str,
    enable_tracing: bool = True,
    tracer_provider: TracerProvider | None = None,
) -> Tracer:
    """
    Factory function to create the appropriate tracer.

    Args:
        name: Tracer name (typically __name__)
        enable_tracing: Whether tracing should be enabled (default True)
        tracer_provider: Provider for the OpenTelemetry tracer (optional)

    Returns:
        OpenTelemetryTracer if enabled, NullTracer otherwise

    Example:
        >>> def __init__(self, tracer: Tracer | None = None, enable_tracing: bool = True):
        ...     self._tracer = tracer or create_tracer(__name__, enable_tracing)
    """
    if enable_tracing:
        return OpenTelemetryTracer(name, tracer_provider)
    return NullTracer()


__all__ = [
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "RecordedSpan",
    "SpanKindEnum",
    "create_tracer",
]
