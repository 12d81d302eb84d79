"""
Instrumentations shipped with mqtrace.

``registry`` holds one instance of every instrumentation, so applications
can install everything in one call:

    >>> from mqtrace.instrumentation import registry
    >>> registry.install_all()
"""

from mqtrace.instrumentation.base import Instrumentation, InstrumentationRegistry
from mqtrace.instrumentation.jobs import JobsInstrumentation
from mqtrace.instrumentation.rabbitmq import RabbitMQInstrumentation

registry = InstrumentationRegistry()
registry.register(RabbitMQInstrumentation())
registry.register(JobsInstrumentation())

__all__ = [
    "Instrumentation",
    "InstrumentationRegistry",
    "JobsInstrumentation",
    "RabbitMQInstrumentation",
    "registry",
]
