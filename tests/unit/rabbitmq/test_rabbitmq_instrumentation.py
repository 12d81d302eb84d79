"""Tests for RabbitMQInstrumentation patching aio-pika classes."""

from __future__ import annotations

import importlib.util
from collections.abc import Generator

import pytest

from mqtrace.exceptions import InstrumentationError, RabbitMQNotAvailableError
from mqtrace.instrumentation.rabbitmq import (
    RabbitMQInstrumentation,
    RabbitMQInstrumentationConfig,
)
from mqtrace.instrumentation.rabbitmq import instrumentation as instrumentation_module
from mqtrace.instrumentation.rabbitmq.patches import original_of
from mqtrace.observability import MockTracer, NullTracer, OpenTelemetryTracer

AIO_PIKA_AVAILABLE = importlib.util.find_spec("aio_pika") is not None

PATCHED_METHODS = [
    ("Channel", "declare_exchange"),
    ("Exchange", "publish"),
    ("Queue", "get"),
    ("Queue", "consume"),
]


@pytest.fixture
def instrumentation() -> Generator[RabbitMQInstrumentation, None, None]:
    instrumentation = RabbitMQInstrumentation()
    yield instrumentation
    instrumentation.uninstall()


class TestRabbitMQInstrumentationConfig:
    """Tests for RabbitMQInstrumentationConfig."""

    def test_tracing_enabled_by_default(self):
        assert RabbitMQInstrumentationConfig().enable_tracing is True

    def test_disabled_tracing_uses_null_tracer(self):
        config = RabbitMQInstrumentationConfig(enable_tracing=False)
        assert isinstance(config.create_tracer(), NullTracer)

    def test_enabled_tracing_uses_otel_tracer(self, tracer_provider):
        config = RabbitMQInstrumentationConfig(tracer_provider=tracer_provider)
        assert isinstance(config.create_tracer(), OpenTelemetryTracer)

    def test_custom_tracer_can_be_injected(self):
        tracer = MockTracer()
        assert RabbitMQInstrumentationConfig(tracer=tracer).create_tracer() is tracer


class TestRabbitMQInstrumentationLifecycle:
    """Lifecycle tests that do not touch aio-pika."""

    def test_name(self):
        assert RabbitMQInstrumentation.name == "rabbitmq"

    def test_helpers_unavailable_before_install(self, instrumentation):
        with pytest.raises(InstrumentationError, match="not installed"):
            _ = instrumentation.helpers

    def test_missing_aio_pika_raises(self, instrumentation, monkeypatch):
        monkeypatch.setattr(instrumentation_module, "RABBITMQ_AVAILABLE", False)

        with pytest.raises(RabbitMQNotAvailableError, match="pip install mqtrace"):
            instrumentation.install()

        assert instrumentation.installed is False

    def test_explicit_config_without_aio_pika_raises(self, instrumentation, monkeypatch):
        from mqtrace.instrumentation.base import InstrumentationRegistry

        monkeypatch.setattr(instrumentation_module, "RABBITMQ_AVAILABLE", False)
        registry = InstrumentationRegistry()
        registry.register(instrumentation)

        assert instrumentation.available() is False
        with pytest.raises(RabbitMQNotAvailableError):
            registry.install_all({"rabbitmq": RabbitMQInstrumentationConfig()})

    def test_disabled_by_environment(self, instrumentation, monkeypatch):
        monkeypatch.setenv("MQTRACE_RABBITMQ_ENABLED", "false")

        assert instrumentation.install() is False
        assert instrumentation.installed is False


@pytest.mark.rabbitmq
@pytest.mark.skipif(not AIO_PIKA_AVAILABLE, reason="aio-pika is not installed")
class TestRabbitMQInstrumentationPatching:
    """Tests patching the real aio-pika classes."""

    def test_install_patches_methods(self, instrumentation):
        import aio_pika

        originals = {
            (cls, attr): getattr(getattr(aio_pika, cls), attr) for cls, attr in PATCHED_METHODS
        }

        assert instrumentation.install(RabbitMQInstrumentationConfig(tracer=MockTracer())) is True

        for (cls, attr), original in originals.items():
            patched = getattr(getattr(aio_pika, cls), attr)
            assert patched is not original
            assert original_of(patched) is original

    def test_uninstall_restores_methods(self, instrumentation):
        import aio_pika

        originals = {
            (cls, attr): getattr(getattr(aio_pika, cls), attr) for cls, attr in PATCHED_METHODS
        }
        instrumentation.install(RabbitMQInstrumentationConfig(tracer=MockTracer()))

        assert instrumentation.uninstall() is True

        for (cls, attr), original in originals.items():
            assert getattr(getattr(aio_pika, cls), attr) is original

    def test_install_is_idempotent(self, instrumentation):
        config = RabbitMQInstrumentationConfig(tracer=MockTracer())
        assert instrumentation.install(config) is True
        assert instrumentation.install(config) is False

    def test_second_instance_refuses_to_double_patch(self, instrumentation):
        import aio_pika

        instrumentation.install(RabbitMQInstrumentationConfig(tracer=MockTracer()))
        publish = aio_pika.Exchange.publish

        other = RabbitMQInstrumentation()
        with pytest.raises(InstrumentationError, match="already patched"):
            other.install(RabbitMQInstrumentationConfig(tracer=MockTracer()))

        assert other.installed is False
        assert aio_pika.Exchange.publish is publish

    def test_helpers_use_configured_tracer(self, instrumentation):
        tracer = MockTracer()
        instrumentation.install(RabbitMQInstrumentationConfig(tracer=tracer))
        assert instrumentation.helpers.tracer is tracer

    def test_uninstall_clears_registry(self, instrumentation):
        from mqtrace.instrumentation.rabbitmq import BrokerAddress

        instrumentation.install(RabbitMQInstrumentationConfig(tracer=MockTracer()))
        instrumentation.registry.record(BrokerAddress("localhost", 5672), "tasks", "direct")

        instrumentation.uninstall()

        assert len(instrumentation.registry) == 0
