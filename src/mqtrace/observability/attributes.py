"""
Standard span attributes for mqtrace.

This module defines the attribute keys and well-known values attached to
messaging spans. Keys follow the OpenTelemetry messaging and network
semantic conventions where applicable; job-specific keys live under the
``messaging.job`` namespace.

Example:
    >>> from mqtrace.observability.attributes import (
    ...     ATTR_MESSAGING_SYSTEM,
    ...     ATTR_MESSAGING_DESTINATION,
    ... )
    >>>
    >>> with tracer.in_span(
    ...     "orders send",
    ...     attributes={
    ...         ATTR_MESSAGING_SYSTEM: MESSAGING_SYSTEM_RABBITMQ,
    ...         ATTR_MESSAGING_DESTINATION: "orders",
    ...     },
    ... ):
    ...     pass
"""

# =============================================================================
# Messaging Attributes (OpenTelemetry Semantic Conventions)
# =============================================================================

ATTR_MESSAGING_SYSTEM = "messaging.system"
"""Messaging system identifier (e.g., 'rabbitmq')."""

ATTR_MESSAGING_DESTINATION = "messaging.destination"
"""Destination exchange, queue or topic name."""

ATTR_MESSAGING_DESTINATION_KIND = "messaging.destination_kind"
"""Kind of destination: 'queue' or 'topic' (RabbitMQ also uses 'direct')."""

ATTR_MESSAGING_PROTOCOL = "messaging.protocol"
"""Transport protocol name (e.g., 'AMQP')."""

ATTR_MESSAGING_PROTOCOL_VERSION = "messaging.protocol_version"
"""Transport protocol version (e.g., '0.9.1')."""

ATTR_MESSAGING_OPERATION = "messaging.operation"
"""Messaging operation type (e.g., 'receive', 'process')."""

ATTR_MESSAGING_MESSAGE_ID = "messaging.message_id"
"""Identifier of the message or job."""

ATTR_MESSAGING_RABBITMQ_ROUTING_KEY = "messaging.rabbitmq.routing_key"
"""RabbitMQ routing key used for the message."""

# =============================================================================
# Network Attributes (OpenTelemetry Semantic Conventions)
# =============================================================================

ATTR_NET_PEER_NAME = "net.peer.name"
"""Host name of the broker."""

ATTR_NET_PEER_PORT = "net.peer.port"
"""Port of the broker (integer)."""

ATTR_PEER_SERVICE = "peer.service"
"""Logical name of the remote service."""

# =============================================================================
# Job Attributes
# =============================================================================

ATTR_JOB_CLASS = "messaging.job.class"
"""Name of the job class being enqueued or performed."""

ATTR_JOB_RETRY_COUNT = "messaging.job.retry_count"
"""Number of times the job has been retried (integer)."""

# =============================================================================
# Attribute Values
# =============================================================================

MESSAGING_SYSTEM_RABBITMQ = "rabbitmq"
MESSAGING_PROTOCOL_AMQP = "AMQP"
AMQP_PROTOCOL_VERSION = "0.9.1"

DESTINATION_KIND_DIRECT = "direct"
DESTINATION_KIND_TOPIC = "topic"
DESTINATION_KIND_QUEUE = "queue"

OPERATION_RECEIVE = "receive"
OPERATION_PROCESS = "process"

# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    # Messaging (OTEL semantic)
    "ATTR_MESSAGING_SYSTEM",
    "ATTR_MESSAGING_DESTINATION",
    "ATTR_MESSAGING_DESTINATION_KIND",
    "ATTR_MESSAGING_PROTOCOL",
    "ATTR_MESSAGING_PROTOCOL_VERSION",
    "ATTR_MESSAGING_OPERATION",
    "ATTR_MESSAGING_MESSAGE_ID",
    "ATTR_MESSAGING_RABBITMQ_ROUTING_KEY",
    # Network (OTEL semantic)
    "ATTR_NET_PEER_NAME",
    "ATTR_NET_PEER_PORT",
    "ATTR_PEER_SERVICE",
    # Job
    "ATTR_JOB_CLASS",
    "ATTR_JOB_RETRY_COUNT",
    # Values
    "MESSAGING_SYSTEM_RABBITMQ",
    "MESSAGING_PROTOCOL_AMQP",
    "AMQP_PROTOCOL_VERSION",
    "DESTINATION_KIND_DIRECT",
    "DESTINATION_KIND_TOPIC",
    "DESTINATION_KIND_QUEUE",
    "OPERATION_RECEIVE",
    "OPERATION_PROCESS",
]
