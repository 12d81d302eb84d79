"""aio-pika method wrappers.

Each ``patch_*`` function takes the original unbound method and returns the
replacement installed on the aio-pika class:

- ``Channel.declare_exchange``: records the exchange type
- ``Exchange.publish``: send span, trace context injected into headers
- ``Queue.get``: receive span for the fetched message
- ``Queue.consume``: process span around every callback invocation
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from mqtrace.instrumentation.rabbitmq.channel import AioPikaChannel, ExchangeRegistry, resolve_broker
from mqtrace.instrumentation.rabbitmq.patch_helpers import PatchHelpers

logger = logging.getLogger(__name__)

PATCHED_MARKER = "__mqtrace_original__"


def _mark(wrapper: Callable[..., Any], original: Callable[..., Any]) -> Callable[..., Any]:
    setattr(wrapper, PATCHED_MARKER, original)
    return wrapper


def patch_declare_exchange(
    original: Callable[..., Awaitable[Any]],
    registry: ExchangeRegistry,
) -> Callable[..., Awaitable[Any]]:
    @functools.wraps(original)
    async def declare_exchange(self: Any, name: str, type: Any = "direct", *args: Any, **kwargs: Any) -> Any:
        exchange = await original(self, name, type, *args, **kwargs)
        registry.record(resolve_broker(self), name, type)
        return exchange

    return _mark(declare_exchange, original)


def patch_publish(
    original: Callable[..., Awaitable[Any]],
    helpers_factory: Callable[[], PatchHelpers],
    registry: ExchangeRegistry,
) -> Callable[..., Awaitable[Any]]:
    @functools.wraps(original)
    async def publish(self: Any, message: Any, routing_key: str, *args: Any, **kwargs: Any) -> Any:
        helpers = helpers_factory()
        channel = AioPikaChannel(self, registry)

        with helpers.send_span(channel, self.name, routing_key):
            headers = dict(message.headers or {})
            helpers.inject_context(headers)
            message.headers = headers
            return await original(self, message, routing_key, *args, **kwargs)

    return _mark(publish, original)


def patch_get(
    original: Callable[..., Awaitable[Any]],
    helpers_factory: Callable[[], PatchHelpers],
    registry: ExchangeRegistry,
) -> Callable[..., Awaitable[Any]]:
    @functools.wraps(original)
    async def get(self: Any, *args: Any, **kwargs: Any) -> Any:
        message = await original(self, *args, **kwargs)
        if message is None:
            return None

        helpers = helpers_factory()
        channel = AioPikaChannel(self, registry)
        # The message is already fetched; the span marks its receipt.
        with helpers.receive_span(channel, message, message):
            pass
        return message

    return _mark(get, original)


async def _run_callback(callback: Callable[[Any], Any], message: Any) -> Any:
    result = callback(message)
    if inspect.isawaitable(result):
        result = await result
    return result


def trace_consumer_callback(
    callback: Callable[[Any], Any],
    helpers_factory: Callable[[], PatchHelpers | None],
) -> Callable[[Any], Awaitable[Any]]:
    """
    Wrap a consumer callback so each delivery runs inside a process span.

    Consumers outlive the instrumentation: once ``helpers_factory`` returns
    None the callback is called untraced.
    """

    @functools.wraps(callback)
    async def traced_callback(message: Any) -> Any:
        helpers = helpers_factory()
        if helpers is None:
            return await _run_callback(callback, message)
        with helpers.process_span(message, message):
            return await _run_callback(callback, message)

    return traced_callback


def patch_consume(
    original: Callable[..., Awaitable[Any]],
    helpers_factory: Callable[[], PatchHelpers | None],
) -> Callable[..., Awaitable[Any]]:
    @functools.wraps(original)
    async def consume(self: Any, callback: Callable[[Any], Any], *args: Any, **kwargs: Any) -> Any:
        logger.debug(
            f"Tracing consumer callback for queue {getattr(self, 'name', None)!r}",
            extra={"queue": getattr(self, "name", None)},
        )
        return await original(self, trace_consumer_callback(callback, helpers_factory), *args, **kwargs)

    return _mark(consume, original)


def original_of(method: Callable[..., Any]) -> Callable[..., Any] | None:
    """Return the method a wrapper replaced, or None for unpatched methods."""
    return getattr(method, PATCHED_MARKER, None)


__all__ = [
    "patch_consume",
    "patch_declare_exchange",
    "patch_get",
    "patch_publish",
    "trace_consumer_callback",
    "original_of",
]
