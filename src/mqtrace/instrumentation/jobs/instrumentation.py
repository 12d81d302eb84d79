"""Background job instrumentation.

The job processor owns its middleware chains, so installing this
instrumentation builds the two middlewares and hands them out for
registration instead of patching anything.

Example:
    >>> instrumentation = JobsInstrumentation()
    >>> instrumentation.install(JobsInstrumentationConfig(propagation_style="child"))
    >>> processor.client_middleware.append(instrumentation.client_middleware)
    >>> processor.server_middleware.append(instrumentation.server_middleware)
"""

from __future__ import annotations

from mqtrace.exceptions import InstrumentationError
from mqtrace.instrumentation.base import Instrumentation
from mqtrace.instrumentation.jobs.middlewares import (
    JobsInstrumentationConfig,
    TracerClientMiddleware,
    TracerServerMiddleware,
)


class JobsInstrumentation(Instrumentation):
    name = "jobs"
    version = "0.1.0"

    def __init__(self) -> None:
        super().__init__()
        self._client: TracerClientMiddleware | None = None
        self._server: TracerServerMiddleware | None = None

    @property
    def client_middleware(self) -> TracerClientMiddleware:
        if self._client is None:
            raise InstrumentationError(self.name, "not installed")
        return self._client

    @property
    def server_middleware(self) -> TracerServerMiddleware:
        if self._server is None:
            raise InstrumentationError(self.name, "not installed")
        return self._server

    def default_config(self) -> JobsInstrumentationConfig:
        return JobsInstrumentationConfig()

    def _install(self, config: JobsInstrumentationConfig) -> None:
        tracer = config.create_tracer()
        self._client = TracerClientMiddleware(config, tracer)
        self._server = TracerServerMiddleware(config, tracer)

    def _uninstall(self) -> None:
        self._client = None
        self._server = None


__all__ = ["JobsInstrumentation"]
