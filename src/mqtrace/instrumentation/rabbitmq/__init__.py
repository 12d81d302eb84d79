"""OpenTelemetry instrumentation for RabbitMQ (aio-pika)."""

from mqtrace.instrumentation.rabbitmq.channel import (
    AioPikaChannel,
    BrokerAddress,
    Channel,
    ExchangeInfo,
    ExchangeRegistry,
)
from mqtrace.instrumentation.rabbitmq.instrumentation import (
    RABBITMQ_AVAILABLE,
    RabbitMQInstrumentation,
    RabbitMQInstrumentationConfig,
)
from mqtrace.instrumentation.rabbitmq.patch_helpers import (
    DeliveryInfo,
    MessageProperties,
    PatchHelpers,
    destination_name,
)

__all__ = [
    "RABBITMQ_AVAILABLE",
    "AioPikaChannel",
    "BrokerAddress",
    "Channel",
    "DeliveryInfo",
    "ExchangeInfo",
    "ExchangeRegistry",
    "MessageProperties",
    "PatchHelpers",
    "RabbitMQInstrumentation",
    "RabbitMQInstrumentationConfig",
    "destination_name",
]
