"""
Trace context helpers: scoped activation and header propagation.

Example:
    >>> from mqtrace.observability.context import extract_headers, use_context
    >>>
    >>> ctx = extract_headers(message.headers)
    >>> with use_context(ctx):
    ...     handle(message)  # ctx is current here, restored afterwards
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator, Iterable, Mapping, MutableMapping
from typing import Any

from opentelemetry import context as otel_context
from opentelemetry import propagate
from opentelemetry.context import Context
from opentelemetry.propagators.textmap import Getter, TextMapPropagator


class HeadersGetter(Getter[Mapping[str, Any]]):
    """
    Getter for AMQP and job headers.

    Header tables coming off the wire may hold ``bytes`` values, and job
    payloads may hold non-string values; both are converted to ``str`` so
    the text-map propagator can parse them.
    """

    def get(self, carrier: Mapping[str, Any], key: str) -> list[str] | None:
        value = carrier.get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            return [value.decode("utf-8", errors="replace")]
        if isinstance(value, (list, tuple)):
            return [v.decode("utf-8", errors="replace") if isinstance(v, bytes) else str(v) for v in value]
        return [str(value)]

    def keys(self, carrier: Mapping[str, Any]) -> Iterable[str]:
        return list(carrier.keys())


headers_getter = HeadersGetter()


def get_propagator(propagator: TextMapPropagator | None = None) -> TextMapPropagator:
    """
    Resolve the propagator to use.

    Args:
        propagator: Explicit propagator, or None for the globally
            configured text-map propagator (looked up on every call so
            later ``set_global_textmap`` calls are honoured)
    """
    if propagator is not None:
        return propagator
    return propagate.get_global_textmap()


def extract_headers(
    headers: Mapping[str, Any] | None,
    propagator: TextMapPropagator | None = None,
    context: Context | None = None,
) -> Context:
    """
    Extract a trace context from a headers mapping (None is treated as empty).

    Extraction starts from ``context``, or from the current context when
    None, so headers without trace fields leave the caller's span and
    baggage in place. Pass ``Context()`` to extract into an empty context.
    """
    if context is None:
        context = otel_context.get_current()
    return get_propagator(propagator).extract(dict(headers or {}), context=context, getter=headers_getter)


def inject_headers(
    headers: MutableMapping[str, Any],
    propagator: TextMapPropagator | None = None,
    context: Context | None = None,
) -> MutableMapping[str, Any]:
    """Write the current (or given) trace context into ``headers`` and return it."""
    get_propagator(propagator).inject(headers, context=context)
    return headers


@contextlib.contextmanager
def use_context(ctx: Context | None) -> Generator[Context | None, None, None]:
    """
    Make ``ctx`` the current context for the duration of the block.

    The previous context is restored on every exit path, including when
    the block raises. ``None`` leaves the current context untouched.
    """
    if ctx is None:
        yield None
        return

    token = otel_context.attach(ctx)
    try:
        yield ctx
    finally:
        otel_context.detach(token)


__all__ = [
    "HeadersGetter",
    "headers_getter",
    "get_propagator",
    "extract_headers",
    "inject_headers",
    "use_context",
]
