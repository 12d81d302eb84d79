"""Channel adapters: broker address and declared exchange types.

The patch helpers only need three things from a channel: the broker host,
the broker port and the type of an exchange looked up by name. aio-pika
exposes the first two through the connection URL but keeps no record of
declared exchanges, so ``ExchangeRegistry`` records every exchange declared
through an instrumented channel. Exchange types are per virtual host on a
broker, so the registry is keyed by broker address rather than by channel.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, NamedTuple, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 5672
DEFAULT_TLS_PORT = 5671
DEFAULT_VHOST = "/"

# Attribute names walked to get from an exchange or queue to its connection.
# aio-pika moved these between releases, so both spellings are tried.
_PARENT_ATTRIBUTES = ("channel", "_channel", "connection", "_connection")
_MAX_DEPTH = 4


@dataclass(frozen=True)
class ExchangeInfo:
    """An exchange as declared on the broker."""

    name: str
    type: str


class BrokerAddress(NamedTuple):
    """Broker identity used to scope exchange declarations."""

    host: str
    port: int
    vhost: str = DEFAULT_VHOST


@runtime_checkable
class Channel(Protocol):
    """What the patch helpers need to know about a channel."""

    @property
    def host(self) -> str: ...

    @property
    def port(self) -> int: ...

    def find_exchange(self, name: str) -> ExchangeInfo | None: ...


def normalize_exchange_type(exchange_type: Any) -> str:
    """Return the lowercase string form of an exchange type.

    Accepts plain strings and enum members such as aio-pika's
    ``ExchangeType.DIRECT``.
    """
    value = getattr(exchange_type, "value", exchange_type)
    return str(value).lower()


class ExchangeRegistry:
    """
    Thread-safe record of exchange types per broker.

    Example:
        >>> registry = ExchangeRegistry()
        >>> broker = BrokerAddress("localhost", 5672)
        >>> registry.record(broker, "logs", "topic")
        ExchangeInfo(name='logs', type='topic')
        >>> registry.find(broker, "logs").type
        'topic'
    """

    def __init__(self) -> None:
        self._exchanges: dict[BrokerAddress, dict[str, ExchangeInfo]] = {}
        self._lock = threading.Lock()

    def record(self, broker: BrokerAddress, name: str, exchange_type: Any) -> ExchangeInfo:
        info = ExchangeInfo(name=name, type=normalize_exchange_type(exchange_type))
        with self._lock:
            self._exchanges.setdefault(broker, {})[name] = info
        logger.debug(
            f"Recorded exchange {name!r} of type {info.type}",
            extra={"broker_host": broker.host, "broker_port": broker.port, "vhost": broker.vhost},
        )
        return info

    def find(self, broker: BrokerAddress, name: str) -> ExchangeInfo | None:
        with self._lock:
            return self._exchanges.get(broker, {}).get(name)

    def clear(self) -> None:
        with self._lock:
            self._exchanges.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(exchanges) for exchanges in self._exchanges.values())


def _safe_getattr(obj: Any, name: str) -> Any:
    # Closed aio-pika channels raise from their ``channel`` property.
    try:
        return getattr(obj, name, None)
    except Exception:
        return None


def _find_url(obj: Any) -> Any:
    pending = [(obj, 0)]
    seen: set[int] = set()
    while pending:
        node, depth = pending.pop(0)
        if node is None or id(node) in seen:
            continue
        seen.add(id(node))
        url = _safe_getattr(node, "url")
        if url is not None and _safe_getattr(url, "host") is not None:
            return url
        if depth < _MAX_DEPTH:
            pending.extend((_safe_getattr(node, attr), depth + 1) for attr in _PARENT_ATTRIBUTES)
    return None


def resolve_broker(obj: Any) -> BrokerAddress:
    """
    Find the broker address of an aio-pika exchange, queue, channel or connection.

    Falls back to ``localhost:5672`` and the default virtual host when no
    connection URL can be reached from ``obj``.
    """
    url = _find_url(obj)
    if url is None:
        logger.debug(f"No connection URL reachable from {type(obj).__name__}, using defaults")
        return BrokerAddress(DEFAULT_HOST, DEFAULT_PORT)

    scheme = _safe_getattr(url, "scheme") or "amqp"
    default_port = DEFAULT_TLS_PORT if scheme == "amqps" else DEFAULT_PORT
    path = _safe_getattr(url, "path") or ""
    return BrokerAddress(
        host=url.host or DEFAULT_HOST,
        port=url.port or default_port,
        vhost=path[1:] or DEFAULT_VHOST,
    )


class AioPikaChannel:
    """
    ``Channel`` adapter for aio-pika objects.

    Args:
        obj: An aio-pika exchange, queue, channel or connection
        registry: Registry holding the exchanges declared so far
    """

    def __init__(self, obj: Any, registry: ExchangeRegistry) -> None:
        self._broker = resolve_broker(obj)
        self._registry = registry

    @property
    def broker(self) -> BrokerAddress:
        return self._broker

    @property
    def host(self) -> str:
        return self._broker.host

    @property
    def port(self) -> int:
        return self._broker.port

    def find_exchange(self, name: str) -> ExchangeInfo | None:
        return self._registry.find(self._broker, name)

    def __repr__(self) -> str:
        return f"AioPikaChannel({self.host}:{self.port}{self._broker.vhost})"


__all__ = [
    "AioPikaChannel",
    "BrokerAddress",
    "Channel",
    "ExchangeInfo",
    "ExchangeRegistry",
    "normalize_exchange_type",
    "resolve_broker",
]
