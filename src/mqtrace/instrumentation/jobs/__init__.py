"""OpenTelemetry instrumentation for background job processors."""

from mqtrace.instrumentation.jobs.instrumentation import JobsInstrumentation
from mqtrace.instrumentation.jobs.middlewares import (
    PROPAGATION_STYLES,
    SPAN_NAMING_CHOICES,
    JobsInstrumentationConfig,
    TracerClientMiddleware,
    TracerServerMiddleware,
    job_class_name,
)

__all__ = [
    "JobsInstrumentation",
    "JobsInstrumentationConfig",
    "TracerClientMiddleware",
    "TracerServerMiddleware",
    "job_class_name",
    "PROPAGATION_STYLES",
    "SPAN_NAMING_CHOICES",
]
