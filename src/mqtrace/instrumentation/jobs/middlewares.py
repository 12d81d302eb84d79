"""Client and server middlewares tracing background jobs.

A job is a ``dict`` payload carrying at least ``class`` and ``queue``, and
usually ``jid``. Adapters that wrap another job class put the real class
name in ``wrapped``. The client middleware runs in the enqueuing process and
writes the trace context into the payload; the server middleware runs in the
worker around ``perform`` and reads it back.

Both middlewares follow the ``(job_class_or_worker, job, queue, call_next)``
calling convention and return whatever ``call_next()`` returns.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from opentelemetry import trace
from opentelemetry.context import Context

from mqtrace.exceptions import ConfigurationError
from mqtrace.observability import SpanKindEnum, Tracer, create_tracer
from mqtrace.observability.attributes import (
    ATTR_JOB_CLASS,
    ATTR_JOB_RETRY_COUNT,
    ATTR_MESSAGING_DESTINATION,
    ATTR_MESSAGING_DESTINATION_KIND,
    ATTR_MESSAGING_MESSAGE_ID,
    ATTR_MESSAGING_OPERATION,
    ATTR_MESSAGING_SYSTEM,
    ATTR_PEER_SERVICE,
    DESTINATION_KIND_QUEUE,
    OPERATION_PROCESS,
)
from mqtrace.observability.context import extract_headers, inject_headers, use_context

if TYPE_CHECKING:
    from opentelemetry.propagators.textmap import TextMapPropagator
    from opentelemetry.trace import TracerProvider

logger = logging.getLogger(__name__)

R = TypeVar("R")

SPAN_NAMING_QUEUE = "queue"
SPAN_NAMING_JOB_CLASS = "job_class"
SPAN_NAMING_CHOICES = (SPAN_NAMING_QUEUE, SPAN_NAMING_JOB_CLASS)

PROPAGATION_LINK = "link"
PROPAGATION_CHILD = "child"
PROPAGATION_NONE = "none"
PROPAGATION_STYLES = (PROPAGATION_LINK, PROPAGATION_CHILD, PROPAGATION_NONE)


@dataclass
class JobsInstrumentationConfig:
    """Configuration for the background job instrumentation.

    Attributes:
        span_naming: Name spans after the queue (``"queue"``, default) or
            after the job class (``"job_class"``).
        propagation_style: How a performed job relates to the span that
            enqueued it:
            - ``"link"``: new trace, linked to the enqueuing span (default)
            - ``"child"``: continues the enqueuing trace as a child span
            - ``"none"``: enqueuing context is ignored
        messaging_system: Value of ``messaging.system``.
        peer_service: Value of ``peer.service``; omitted when None.
        enable_tracing: Create real spans.
        tracer: Tracer to use instead of one created from the provider.
        tracer_provider: Provider for the created tracer.
        propagator: Text-map propagator; the global one when None.
    """

    span_naming: str = SPAN_NAMING_QUEUE
    propagation_style: str = PROPAGATION_LINK
    messaging_system: str = "jobs"
    peer_service: str | None = None
    enable_tracing: bool = True
    tracer: Tracer | None = None
    tracer_provider: TracerProvider | None = None
    propagator: TextMapPropagator | None = None

    def __post_init__(self) -> None:
        if self.span_naming not in SPAN_NAMING_CHOICES:
            raise ConfigurationError("span_naming", self.span_naming, SPAN_NAMING_CHOICES)
        if self.propagation_style not in PROPAGATION_STYLES:
            raise ConfigurationError("propagation_style", self.propagation_style, PROPAGATION_STYLES)

    def create_tracer(self) -> Tracer:
        return self.tracer or create_tracer(__name__, self.enable_tracing, self.tracer_provider)


def job_class_name(job: MutableMapping[str, Any], default: Any = None) -> str:
    """Name of the class that performs ``job``, preferring the wrapped class."""
    job_class = job.get("wrapped") or job.get("class") or default
    if isinstance(job_class, type):
        return job_class.__name__
    return str(job_class) if job_class is not None else "unknown"


class _JobMiddleware:
    def __init__(self, config: JobsInstrumentationConfig, tracer: Tracer | None = None) -> None:
        self._config = config
        self._tracer = tracer or config.create_tracer()

    @property
    def config(self) -> JobsInstrumentationConfig:
        return self._config

    def _span_name(self, job: MutableMapping[str, Any], queue: str, job_class: Any, operation: str) -> str:
        if self._config.span_naming == SPAN_NAMING_JOB_CLASS:
            return f"{job_class_name(job, job_class)} {operation}"
        return f"{queue} {operation}"

    def _attributes(self, job: MutableMapping[str, Any], queue: str, job_class: Any) -> dict[str, Any]:
        attributes: dict[str, Any] = {
            ATTR_MESSAGING_SYSTEM: self._config.messaging_system,
            ATTR_JOB_CLASS: job_class_name(job, job_class),
            ATTR_MESSAGING_DESTINATION: queue,
            ATTR_MESSAGING_DESTINATION_KIND: DESTINATION_KIND_QUEUE,
        }
        if job.get("jid") is not None:
            attributes[ATTR_MESSAGING_MESSAGE_ID] = str(job["jid"])
        if self._config.peer_service:
            attributes[ATTR_PEER_SERVICE] = self._config.peer_service
        return attributes


class TracerClientMiddleware(_JobMiddleware):
    """Traces job enqueueing and propagates the context inside the job."""

    def __call__(
        self,
        job_class: Any,
        job: MutableMapping[str, Any],
        queue: str,
        call_next: Callable[[], R],
    ) -> R:
        queue = job.get("queue") or queue
        with self._tracer.in_span(
            self._span_name(job, queue, job_class, "send"),
            attributes=self._attributes(job, queue, job_class),
            kind=SpanKindEnum.PRODUCER,
        ):
            inject_headers(job, self._config.propagator)
            return call_next()


class TracerServerMiddleware(_JobMiddleware):
    """Traces job execution, relating it to the enqueuing span."""

    def __call__(
        self,
        worker: Any,
        job: MutableMapping[str, Any],
        queue: str,
        call_next: Callable[[], R],
    ) -> R:
        queue = job.get("queue") or queue
        job_class = type(worker) if worker is not None else None
        attributes = self._attributes(job, queue, job_class)
        attributes[ATTR_MESSAGING_OPERATION] = OPERATION_PROCESS
        if job.get("retry_count") is not None:
            attributes[ATTR_JOB_RETRY_COUNT] = int(job["retry_count"])

        name = self._span_name(job, queue, job_class, "process")
        style = self._config.propagation_style

        if style == PROPAGATION_NONE:
            with self._tracer.in_span(name, attributes=attributes, kind=SpanKindEnum.CONSUMER):
                return call_next()

        if style == PROPAGATION_CHILD:
            with (
                use_context(extract_headers(job, self._config.propagator)),
                self._tracer.in_span(name, attributes=attributes, kind=SpanKindEnum.CONSUMER),
            ):
                return call_next()

        remote_context = extract_headers(job, self._config.propagator, context=Context())
        span_context = trace.get_current_span(remote_context).get_span_context()
        links = [trace.Link(span_context)] if span_context.is_valid else []
        if not links:
            logger.debug(
                f"No trace context in job {job.get('jid')!r}, starting unlinked root span",
                extra={"jid": job.get("jid"), "queue": queue},
            )
        with self._tracer.in_span(
            name,
            attributes=attributes,
            kind=SpanKindEnum.CONSUMER,
            links=links,
            context=Context(),
        ):
            return call_next()


__all__ = [
    "JobsInstrumentationConfig",
    "TracerClientMiddleware",
    "TracerServerMiddleware",
    "job_class_name",
    "SPAN_NAMING_CHOICES",
    "PROPAGATION_STYLES",
]
