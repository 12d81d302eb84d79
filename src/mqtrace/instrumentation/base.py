"""
Instrumentation base class and registry.

An instrumentation owns the lifecycle of one integration: it is installed
once with a configuration, can be switched off through the environment,
and can be uninstalled again (mostly useful in tests).

Example:
    >>> from mqtrace.instrumentation import registry
    >>>
    >>> registry.install_all({"rabbitmq": RabbitMQInstrumentationConfig()})
    >>> registry.lookup("rabbitmq").installed
    True
"""

from __future__ import annotations

import logging
import os
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any, ClassVar

from mqtrace.exceptions import InstrumentationError

logger = logging.getLogger(__name__)

_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


class Instrumentation(ABC):
    """
    Base class for instrumentations.

    Subclasses set ``name`` and ``version`` and implement ``_install`` and
    ``_uninstall``. ``install`` and ``uninstall`` handle idempotency, the
    environment switch and logging.

    The environment variable ``MQTRACE_<NAME>_ENABLED`` set to ``false``,
    ``0``, ``no`` or ``off`` keeps the instrumentation from installing.
    """

    name: ClassVar[str] = ""
    version: ClassVar[str] = "0.0.0"

    def __init__(self) -> None:
        self._installed = False
        self._config: Any = None
        self._lock = threading.Lock()

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def config(self) -> Any:
        return self._config

    @property
    def env_var(self) -> str:
        return f"MQTRACE_{self.name.upper()}_ENABLED"

    def enabled_by_env(self) -> bool:
        value = os.environ.get(self.env_var)
        if value is None:
            return True
        return value.strip().lower() not in _FALSE_VALUES

    def available(self) -> bool:
        """Whether the libraries this instrumentation hooks into are importable."""
        return True

    def default_config(self) -> Any:
        return None

    def install(self, config: Any = None) -> bool:
        """
        Install the instrumentation.

        Args:
            config: Instrumentation-specific configuration; the default
                configuration when None

        Returns:
            True if the instrumentation was installed by this call, False if
            it was already installed or is disabled through the environment
        """
        with self._lock:
            if self._installed:
                logger.debug(f"Instrumentation {self.name} already installed")
                return False
            if not self.enabled_by_env():
                logger.info(
                    f"Instrumentation {self.name} disabled by {self.env_var}",
                    extra={"instrumentation": self.name},
                )
                return False

            resolved = config if config is not None else self.default_config()
            self._install(resolved)
            self._config = resolved
            self._installed = True

        logger.info(
            f"Instrumentation {self.name} installed",
            extra={"instrumentation": self.name, "version": self.version},
        )
        return True

    def uninstall(self) -> bool:
        """Revert ``install``. Returns False if nothing was installed."""
        with self._lock:
            if not self._installed:
                return False
            self._uninstall()
            self._installed = False
            self._config = None

        logger.info(f"Instrumentation {self.name} uninstalled", extra={"instrumentation": self.name})
        return True

    @abstractmethod
    def _install(self, config: Any) -> None:
        """Apply the instrumentation with a resolved configuration."""

    @abstractmethod
    def _uninstall(self) -> None:
        """Revert everything ``_install`` applied."""


class InstrumentationRegistry:
    """Name-indexed collection of instrumentations."""

    def __init__(self) -> None:
        self._instrumentations: dict[str, Instrumentation] = {}

    def register(self, instrumentation: Instrumentation) -> Instrumentation:
        if not instrumentation.name:
            raise InstrumentationError(type(instrumentation).__name__, "instrumentation has no name")
        if instrumentation.name in self._instrumentations:
            raise InstrumentationError(instrumentation.name, "already registered")
        self._instrumentations[instrumentation.name] = instrumentation
        return instrumentation

    def lookup(self, name: str) -> Instrumentation | None:
        return self._instrumentations.get(name)

    def install_all(self, configs: dict[str, Any] | None = None) -> list[str]:
        """
        Install every registered instrumentation.

        Instrumentations whose optional dependency is missing are skipped,
        unless a configuration was passed for them explicitly, in which case
        their install error propagates.

        Args:
            configs: Per-name configuration (optional)

        Returns:
            Names of the instrumentations installed by this call
        """
        configs = configs or {}
        unknown = set(configs) - set(self._instrumentations)
        if unknown:
            raise InstrumentationError(", ".join(sorted(unknown)), "not registered")

        installed = []
        for name, instrumentation in self._instrumentations.items():
            if name not in configs and not instrumentation.available():
                logger.info(
                    f"Instrumentation {name} skipped, its library is not installed",
                    extra={"instrumentation": name},
                )
                continue
            if instrumentation.install(configs.get(name)):
                installed.append(name)
        return installed

    def __iter__(self) -> Iterator[Instrumentation]:
        return iter(self._instrumentations.values())

    def __len__(self) -> int:
        return len(self._instrumentations)


__all__ = [
    "Instrumentation",
    "InstrumentationRegistry",
]
