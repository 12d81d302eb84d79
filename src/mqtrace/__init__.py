"""
mqtrace - OpenTelemetry instrumentation for message queues and background jobs.

This library provides:
- Span attribute and trace context derivation for RabbitMQ (AMQP 0-9-1)
- aio-pika patches tracing publish, get and consume
- Client/server middlewares tracing background jobs
- A composition-based Tracer abstraction with mock and no-op tracers
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("mqtrace")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from mqtrace.exceptions import (
    ConfigurationError,
    InstrumentationError,
    MqTraceError,
    RabbitMQNotAvailableError,
)
from mqtrace.instrumentation import (
    Instrumentation,
    InstrumentationRegistry,
    JobsInstrumentation,
    RabbitMQInstrumentation,
    registry,
)
from mqtrace.instrumentation.jobs import (
    JobsInstrumentationConfig,
    TracerClientMiddleware,
    TracerServerMiddleware,
)
from mqtrace.instrumentation.rabbitmq import (
    RABBITMQ_AVAILABLE,
    DeliveryInfo,
    ExchangeRegistry,
    MessageProperties,
    PatchHelpers,
    RabbitMQInstrumentationConfig,
)
from mqtrace.observability import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    SpanKindEnum,
    Tracer,
    create_tracer,
)

__all__ = [
    "__version__",
    # Exceptions
    "MqTraceError",
    "InstrumentationError",
    "ConfigurationError",
    "RabbitMQNotAvailableError",
    # Instrumentation lifecycle
    "Instrumentation",
    "InstrumentationRegistry",
    "registry",
    # RabbitMQ
    "RABBITMQ_AVAILABLE",
    "RabbitMQInstrumentation",
    "RabbitMQInstrumentationConfig",
    "PatchHelpers",
    "DeliveryInfo",
    "MessageProperties",
    "ExchangeRegistry",
    # Jobs
    "JobsInstrumentation",
    "JobsInstrumentationConfig",
    "TracerClientMiddleware",
    "TracerServerMiddleware",
    # Tracer
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "SpanKindEnum",
    "create_tracer",
]
