"""Span naming, attributes and context propagation shared by the RabbitMQ patches.

For additional details around trace messaging semantics see
https://github.com/open-telemetry/opentelemetry-specification/blob/main/specification/trace/semantic_conventions/messaging.md

Example:
    >>> helpers = PatchHelpers(tracer=create_tracer(__name__))
    >>> with helpers.send_span(channel, "logs", "app.error"):
    ...     await exchange.publish(message, routing_key="app.error")
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator, Mapping, MutableMapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from opentelemetry import trace

from mqtrace.instrumentation.rabbitmq.channel import Channel
from mqtrace.observability import SpanKindEnum, Tracer
from mqtrace.observability.attributes import (
    AMQP_PROTOCOL_VERSION,
    ATTR_MESSAGING_DESTINATION,
    ATTR_MESSAGING_DESTINATION_KIND,
    ATTR_MESSAGING_PROTOCOL,
    ATTR_MESSAGING_PROTOCOL_VERSION,
    ATTR_MESSAGING_RABBITMQ_ROUTING_KEY,
    ATTR_MESSAGING_SYSTEM,
    ATTR_NET_PEER_NAME,
    ATTR_NET_PEER_PORT,
    DESTINATION_KIND_DIRECT,
    DESTINATION_KIND_TOPIC,
    MESSAGING_PROTOCOL_AMQP,
    MESSAGING_SYSTEM_RABBITMQ,
)
from mqtrace.observability.context import extract_headers, inject_headers, use_context

if TYPE_CHECKING:
    from opentelemetry.context import Context
    from opentelemetry.propagators.textmap import TextMapPropagator
    from opentelemetry.trace import Span

logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class DeliveryInfo:
    """Where a delivered message came from."""

    exchange: str | None = None
    routing_key: str | None = None


@dataclass(frozen=True)
class MessageProperties:
    """AMQP basic properties; only headers matter for tracing."""

    headers: Mapping[str, Any] | None = field(default=None)


def _field(source: Any, name: str) -> Any:
    # Delivery info and properties arrive as objects (aio-pika messages)
    # or as plain mappings.
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def destination_name(exchange: str | None, routing_key: str | None) -> str:
    """
    Join exchange and routing key with ``"."``, skipping absent parts.

    The anonymous default exchange ``""`` contributes nothing, so a message
    published to it is named after its routing key (the target queue).

    Example:
        >>> destination_name("logs", "app.error")
        'logs.app.error'
        >>> destination_name("", "orders")
        'orders'
        >>> destination_name(None, None)
        ''
    """
    return ".".join(part for part in (exchange, routing_key) if part)


class PatchHelpers:
    """
    Derives span names, attributes and parent contexts from AMQP metadata.

    Stateless apart from the injected tracer and propagator.

    Args:
        tracer: Tracer used to open spans
        propagator: Text-map propagator; the global one when None
    """

    def __init__(
        self,
        tracer: Tracer,
        propagator: TextMapPropagator | None = None,
    ) -> None:
        self._tracer = tracer
        self._propagator = propagator

    @property
    def tracer(self) -> Tracer:
        return self._tracer

    destination_name = staticmethod(destination_name)

    def destination_kind(self, channel: Channel, exchange: str | None) -> str:
        """
        Map an exchange to ``direct`` or ``topic``.

        The default exchange with no name is always a direct exchange. All
        other exchange types (fanout and headers included) except direct
        exchanges are mapped to topic, as are exchanges the channel does not
        know about.
        """
        if exchange == "":
            return DESTINATION_KIND_DIRECT

        try:
            info = channel.find_exchange(exchange) if exchange is not None else None
        except Exception as e:
            logger.debug(
                f"Exchange type lookup failed for {exchange!r}: {e}",
                extra={"exchange": exchange, "error_type": type(e).__name__},
            )
            return DESTINATION_KIND_TOPIC

        if info is not None and getattr(info, "type", None) == DESTINATION_KIND_DIRECT:
            return DESTINATION_KIND_DIRECT
        return DESTINATION_KIND_TOPIC

    def basic_attributes(
        self,
        channel: Channel,
        exchange: str | None,
        routing_key: str | None,
    ) -> dict[str, Any]:
        attributes: dict[str, Any] = {
            ATTR_MESSAGING_SYSTEM: MESSAGING_SYSTEM_RABBITMQ,
            ATTR_MESSAGING_PROTOCOL: MESSAGING_PROTOCOL_AMQP,
            ATTR_MESSAGING_PROTOCOL_VERSION: AMQP_PROTOCOL_VERSION,
            ATTR_NET_PEER_NAME: channel.host,
            ATTR_NET_PEER_PORT: channel.port,
        }
        if exchange is not None:
            attributes[ATTR_MESSAGING_DESTINATION] = exchange
            attributes[ATTR_MESSAGING_DESTINATION_KIND] = self.destination_kind(channel, exchange)
        if routing_key is not None:
            attributes[ATTR_MESSAGING_RABBITMQ_ROUTING_KEY] = routing_key
        return attributes

    def extract_context(
        self,
        headers: Mapping[str, Any] | None,
    ) -> tuple[Context, list[trace.Link]]:
        """
        Extract the producer's context from message headers.

        Extraction starts from the current context, so without trace
        headers the caller's active span stays the parent.

        Returns:
            The parent context and a list holding one link to the producer
            span when the headers carried a valid span context, else no links.
        """
        active = trace.get_current_span().get_span_context()
        parent_context = extract_headers(headers, self._propagator)
        span_context = trace.get_current_span(parent_context).get_span_context()
        links = [trace.Link(span_context)] if span_context.is_valid and span_context != active else []
        return parent_context, links

    def inject_context(self, headers: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        """Write the current trace context into outgoing message headers."""
        return inject_headers(headers, self._propagator)

    @contextmanager
    def send_span(
        self,
        channel: Channel,
        exchange: str | None,
        routing_key: str | None,
    ) -> Generator[Span | None, None, None]:
        attributes = self.basic_attributes(channel, exchange, routing_key)
        destination = destination_name(exchange, routing_key)

        with self._tracer.in_span(
            f"{destination} send",
            attributes=attributes,
            kind=SpanKindEnum.PRODUCER,
        ) as span:
            yield span

    @contextmanager
    def receive_span(
        self,
        channel: Channel,
        delivery_info: Any,
        properties: Any,
    ) -> Generator[Span | None, None, None]:
        exchange = _field(delivery_info, "exchange")
        routing_key = _field(delivery_info, "routing_key")
        attributes = self.basic_attributes(channel, exchange, routing_key)
        destination = destination_name(exchange, routing_key)
        parent_context, links = self.extract_context(_field(properties, "headers"))

        with (
            use_context(parent_context),
            self._tracer.in_span(
                f"{destination} receive",
                attributes=attributes,
                kind=SpanKindEnum.CONSUMER,
                links=links,
            ) as span,
        ):
            yield span

    @contextmanager
    def process_span(
        self,
        delivery_info: Any,
        properties: Any,
    ) -> Generator[Span | None, None, None]:
        destination = destination_name(
            _field(delivery_info, "exchange"),
            _field(delivery_info, "routing_key"),
        )
        parent_context, links = self.extract_context(_field(properties, "headers"))

        with (
            use_context(parent_context),
            self._tracer.in_span(
                f"{destination} process",
                kind=SpanKindEnum.CONSUMER,
                links=links,
            ) as span,
        ):
            yield span

    def with_send_span(
        self,
        channel: Channel,
        exchange: str | None,
        routing_key: str | None,
        body: Callable[[], R],
    ) -> R:
        with self.send_span(channel, exchange, routing_key):
            return body()

    def with_receive_span(
        self,
        channel: Channel,
        delivery_info: Any,
        properties: Any,
        body: Callable[[], R],
    ) -> R:
        with self.receive_span(channel, delivery_info, properties):
            return body()

    def with_process_span(
        self,
        delivery_info: Any,
        properties: Any,
        body: Callable[[], R],
    ) -> R:
        with self.process_span(delivery_info, properties):
            return body()


__all__ = [
    "DeliveryInfo",
    "MessageProperties",
    "PatchHelpers",
    "destination_name",
]
