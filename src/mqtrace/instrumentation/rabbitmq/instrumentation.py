"""RabbitMQ instrumentation for aio-pika.

Example:
    >>> from mqtrace.instrumentation.rabbitmq import (
    ...     RabbitMQInstrumentation,
    ...     RabbitMQInstrumentationConfig,
    ... )
    >>>
    >>> instrumentation = RabbitMQInstrumentation()
    >>> instrumentation.install(RabbitMQInstrumentationConfig())
    >>> # Every aio-pika publish, get and consume is now traced
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from mqtrace.exceptions import InstrumentationError, RabbitMQNotAvailableError
from mqtrace.instrumentation.base import Instrumentation
from mqtrace.instrumentation.rabbitmq.channel import ExchangeRegistry
from mqtrace.instrumentation.rabbitmq.patch_helpers import PatchHelpers
from mqtrace.instrumentation.rabbitmq.patches import (
    original_of,
    patch_consume,
    patch_declare_exchange,
    patch_get,
    patch_publish,
)
from mqtrace.observability import Tracer, create_tracer

if TYPE_CHECKING:
    from opentelemetry.propagators.textmap import TextMapPropagator
    from opentelemetry.trace import TracerProvider

# Optional aio-pika import - fail gracefully if not installed
try:
    import aio_pika

    RABBITMQ_AVAILABLE = True
except ImportError:
    RABBITMQ_AVAILABLE = False
    aio_pika = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


@dataclass
class RabbitMQInstrumentationConfig:
    """Configuration for the RabbitMQ instrumentation.

    Attributes:
        enable_tracing: Create real spans. When False a NullTracer is used
            and the patches still run (headers are left untouched).
        tracer: Tracer to use instead of one created from the provider.
        tracer_provider: Provider for the created tracer; the global
            provider when None.
        propagator: Text-map propagator; the global one when None.
    """

    enable_tracing: bool = True
    tracer: Tracer | None = None
    tracer_provider: TracerProvider | None = None
    propagator: TextMapPropagator | None = None

    def create_tracer(self) -> Tracer:
        return self.tracer or create_tracer(__name__, self.enable_tracing, self.tracer_provider)


class RabbitMQInstrumentation(Instrumentation):
    """
    Patches aio-pika so publishes, gets and consumer callbacks are traced.

    Args:
        registry: Exchange registry shared by the patches (optional)
    """

    name = "rabbitmq"
    version = "0.1.0"

    def __init__(self, registry: ExchangeRegistry | None = None) -> None:
        super().__init__()
        self._registry = registry or ExchangeRegistry()
        self._helpers: PatchHelpers | None = None
        self._patched: list[tuple[type, str]] = []

    @property
    def registry(self) -> ExchangeRegistry:
        return self._registry

    @property
    def helpers(self) -> PatchHelpers:
        if self._helpers is None:
            raise InstrumentationError(self.name, "not installed")
        return self._helpers

    def available(self) -> bool:
        return RABBITMQ_AVAILABLE

    def default_config(self) -> RabbitMQInstrumentationConfig:
        return RabbitMQInstrumentationConfig()

    def _targets(self) -> list[tuple[type, str, Any]]:
        return [
            (
                aio_pika.Channel,
                "declare_exchange",
                lambda original: patch_declare_exchange(original, self._registry),
            ),
            (
                aio_pika.Exchange,
                "publish",
                lambda original: patch_publish(original, lambda: self.helpers, self._registry),
            ),
            (
                aio_pika.Queue,
                "get",
                lambda original: patch_get(original, lambda: self.helpers, self._registry),
            ),
            (
                aio_pika.Queue,
                "consume",
                lambda original: patch_consume(original, lambda: self._helpers),
            ),
        ]

    def _install(self, config: RabbitMQInstrumentationConfig) -> None:
        if not RABBITMQ_AVAILABLE:
            raise RabbitMQNotAvailableError()

        self._helpers = PatchHelpers(config.create_tracer(), config.propagator)
        try:
            for cls, attribute, make_wrapper in self._targets():
                original = getattr(cls, attribute)
                if original_of(original) is not None:
                    raise InstrumentationError(self.name, f"{cls.__name__}.{attribute} is already patched")
                setattr(cls, attribute, make_wrapper(original))
                self._patched.append((cls, attribute))
                logger.debug(f"Patched {cls.__name__}.{attribute}")
        except Exception:
            self._uninstall()
            raise

    def _uninstall(self) -> None:
        while self._patched:
            cls, attribute = self._patched.pop()
            original = original_of(getattr(cls, attribute))
            if original is not None:
                setattr(cls, attribute, original)
                logger.debug(f"Restored {cls.__name__}.{attribute}")
        self._helpers = None
        self._registry.clear()


__all__ = [
    "RABBITMQ_AVAILABLE",
    "RabbitMQInstrumentation",
    "RabbitMQInstrumentationConfig",
]
