"""
Observability utilities for mqtrace.

This module provides the tracer abstraction, trace context helpers and the
standard attribute definitions shared by every instrumentation.

Example:
    >>> from mqtrace.observability import create_tracer, SpanKindEnum
    >>>
    >>> tracer = create_tracer(__name__)
    >>> with tracer.in_span("orders send", kind=SpanKindEnum.PRODUCER):
    ...     pass
"""

from mqtrace.observability.attributes import (
    AMQP_PROTOCOL_VERSION,
    ATTR_JOB_CLASS,
    ATTR_JOB_RETRY_COUNT,
    ATTR_MESSAGING_DESTINATION,
    ATTR_MESSAGING_DESTINATION_KIND,
    ATTR_MESSAGING_MESSAGE_ID,
    ATTR_MESSAGING_OPERATION,
    ATTR_MESSAGING_PROTOCOL,
    ATTR_MESSAGING_PROTOCOL_VERSION,
    ATTR_MESSAGING_RABBITMQ_ROUTING_KEY,
    ATTR_MESSAGING_SYSTEM,
    ATTR_NET_PEER_NAME,
    ATTR_NET_PEER_PORT,
    ATTR_PEER_SERVICE,
    DESTINATION_KIND_DIRECT,
    DESTINATION_KIND_QUEUE,
    DESTINATION_KIND_TOPIC,
    MESSAGING_PROTOCOL_AMQP,
    MESSAGING_SYSTEM_RABBITMQ,
)
from mqtrace.observability.context import (
    HeadersGetter,
    extract_headers,
    get_propagator,
    inject_headers,
    use_context,
)
from mqtrace.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    RecordedSpan,
    SpanKindEnum,
    Tracer,
    create_tracer,
)

__all__ = [
    # Tracer (composition-based API)
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "RecordedSpan",
    "SpanKindEnum",
    "create_tracer",
    # Context
    "HeadersGetter",
    "extract_headers",
    "get_propagator",
    "inject_headers",
    "use_context",
    # Attributes - Messaging
    "ATTR_MESSAGING_SYSTEM",
    "ATTR_MESSAGING_DESTINATION",
    "ATTR_MESSAGING_DESTINATION_KIND",
    "ATTR_MESSAGING_PROTOCOL",
    "ATTR_MESSAGING_PROTOCOL_VERSION",
    "ATTR_MESSAGING_OPERATION",
    "ATTR_MESSAGING_MESSAGE_ID",
    "ATTR_MESSAGING_RABBITMQ_ROUTING_KEY",
    # Attributes - Network
    "ATTR_NET_PEER_NAME",
    "ATTR_NET_PEER_PORT",
    "ATTR_PEER_SERVICE",
    # Attributes - Job
    "ATTR_JOB_CLASS",
    "ATTR_JOB_RETRY_COUNT",
    # Values
    "MESSAGING_SYSTEM_RABBITMQ",
    "MESSAGING_PROTOCOL_AMQP",
    "AMQP_PROTOCOL_VERSION",
    "DESTINATION_KIND_DIRECT",
    "DESTINATION_KIND_TOPIC",
    "DESTINATION_KIND_QUEUE",
]
