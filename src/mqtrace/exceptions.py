"""Library exceptions for the mqtrace package."""

from collections.abc import Iterable


class MqTraceError(Exception):
    """Base exception for mqtrace library."""

    pass


class InstrumentationError(MqTraceError):
    """Raised when an instrumentation cannot be installed or removed."""

    def __init__(self, instrumentation: str, message: str) -> None:
        self.instrumentation = instrumentation
        super().__init__(f"Instrumentation {instrumentation}: {message}")


class ConfigurationError(MqTraceError):
    """Raised when an instrumentation option has an unsupported value."""

    def __init__(self, option: str, value: object, allowed: Iterable[str]) -> None:
        self.option = option
        self.value = value
        self.allowed = tuple(allowed)
        super().__init__(
            f"Invalid value {value!r} for option {option}: "
            f"expected one of {', '.join(self.allowed)}"
        )


class RabbitMQNotAvailableError(ImportError):
    """Raised when aio-pika package is not installed.

    The RabbitMQ patches hook into aio-pika classes, so installing the
    RabbitMQ instrumentation without aio-pika fails with this error. The
    helper layer in ``mqtrace.instrumentation.rabbitmq.patch_helpers`` does
    not need aio-pika and keeps working.

    Example:
        >>> from mqtrace.instrumentation.rabbitmq import RabbitMQInstrumentation
        >>> RabbitMQInstrumentation().install()  # Raises if aio-pika not installed
        RabbitMQNotAvailableError: aio-pika package is not installed. ...
    """

    def __init__(self) -> None:
        """Initialize the error with a helpful installation message."""
        super().__init__(
            "aio-pika package is not installed. Install it with: pip install mqtrace[rabbitmq]"
        )


__all__ = [
    "MqTraceError",
    "InstrumentationError",
    "ConfigurationError",
    "RabbitMQNotAvailableError",
]
