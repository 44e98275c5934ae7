# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""DogStatsD metrics client.

``DataDogClient`` owns tags, rates and handle derivation. Everything on the
wire side (name resolution, sockets, encoding, sampling, client telemetry) is
delegated to a :class:`StatsdTransport`, by default :class:`DogStatsdTransport`
wrapping ``datadog.dogstatsd.DogStatsd``.
"""

from __future__ import annotations

import copy
import os
from collections.abc import Mapping, Sequence
from datetime import timedelta
from typing import Any, Final, Protocol, Self, runtime_checkable

from datadog.dogstatsd import DogStatsd

from ._events import Event
from ._util import combine_tags, tag_strings, to_float, validate_rate
from .errors import ClientConfigurationError
from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_HOST: Final = "localhost"
DEFAULT_PORT: Final = 8125

UNIX_SCHEME: Final = "unix://"
_MAX_PORT: Final = 65535


def connection_options(address: str) -> dict[str, Any]:
    """Translate ``host:port``, ``[ipv6]:port`` or ``unix:///path`` into
    ``DogStatsd`` keyword arguments.

    Raises:
        ClientConfigurationError: If the address matches none of the forms.
    """
    if address.startswith(UNIX_SCHEME):
        path = address.removeprefix(UNIX_SCHEME)
        if not path:
            raise ClientConfigurationError(
                f"Unix socket address has no path: {address!r}"
            )
        return {"socket_path": path}

    host, _, port = address.rpartition(":")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        host = ""
    if not host or not port.isdigit() or not 0 < int(port) <= _MAX_PORT:
        raise ClientConfigurationError(
            f"Expected 'host:port', '[ipv6]:port' or 'unix:///path', "
            f"got {address!r}"
        )
    return {"host": host, "port": int(port)}


@runtime_checkable
class StatsdTransport(Protocol):
    """Sends individual metrics and events to a stats daemon.

    ``tags`` are pre-rendered ``key:value`` strings.
    """

    def send_metric(
        self, kind: str, name: str, value: float, tags: Sequence[str], rate: float
    ) -> None:
        """Send one metric of ``kind`` (``count``, ``gauge``, ``timing``...)."""
        ...

    def send_event(self, event: Event) -> None:
        """Send one event, including its tags."""
        ...

    def flush(self) -> None:
        """Send anything buffered."""
        ...

    def close(self) -> None:
        """Flush and release the connection."""
        ...


class DogStatsdTransport:
    """Adapter from :class:`StatsdTransport` onto a ``DogStatsd`` client.

    Args:
        statsd: The client to forward to. Its namespace, telemetry and
            socket settings are used as they are.
    """

    __slots__ = ("_statsd",)

    def __init__(self, statsd: DogStatsd) -> None:
        super().__init__()
        self._statsd = statsd

    @property
    def statsd(self) -> DogStatsd:
        return self._statsd

    def send_metric(
        self, kind: str, name: str, value: float, tags: Sequence[str], rate: float
    ) -> None:
        statsd = self._statsd
        match kind:
            case "count":
                send = statsd.increment
            case "gauge":
                send = statsd.gauge
            case "histogram":
                send = statsd.histogram
            case "distribution":
                send = statsd.distribution
            case "timing":
                send = statsd.timing
            case _:
                raise ValueError(f"Unknown metric kind: {kind!r}")
        send(name, value, tags=list(tags), sample_rate=rate)

    def send_event(self, event: Event) -> None:
        timestamp = event.timestamp
        self._statsd.event(
            event.title,
            event.text,
            alert_type=None if event.alert_type is None else str(event.alert_type),
            aggregation_key=event.aggregation_key,
            source_type_name=event.source_type_name,
            date_happened=None if timestamp is None else int(timestamp.timestamp()),
            priority=None if event.priority is None else str(event.priority),
            tags=list(event.tags),
            hostname=event.hostname,
        )

    def flush(self) -> None:
        self._statsd.flush()

    def close(self) -> None:
        """Flush, then close the socket."""
        self._statsd.flush()
        self._statsd.close_socket()


class DataDogClient:
    """Metrics client backed by a DogStatsD agent.

    Example::

        metrics = DataDogClient("localhost:8125", namespace="myapp")
        requests = metrics.with_tags({"route": "home"})
        requests.incr("requests")
        requests.timing("latency", timedelta(milliseconds=12))
        metrics.close()

    Clients derived with ``with_tags`` and ``with_rate`` share the transport.
    Closing any of them closes it for all.

    Args:
        address: ``host:port``, ``[ipv6]:port`` or ``unix:///path/to.sock``.
        namespace: Prefix for every metric name, e.g. ``myapp``.
        telemetry: Whether ``DogStatsd`` reports its client telemetry.
        transport: Use this transport instead of building one. ``address``,
            ``namespace`` and ``telemetry`` are then ignored.
        constant_tags: Tags attached to everything this client sends.

    Raises:
        ClientConfigurationError: If the address is malformed.
    """

    __slots__ = ("_rate", "_tags", "_transport")

    def __init__(
        self,
        address: str = f"{DEFAULT_HOST}:{DEFAULT_PORT}",
        namespace: str = "",
        *,
        telemetry: bool = True,
        transport: StatsdTransport | None = None,
        constant_tags: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__()
        if transport is None:
            statsd = DogStatsd(
                namespace=namespace.rstrip(".") or None,
                disable_telemetry=not telemetry,
                **connection_options(address),
            )
            transport = DogStatsdTransport(statsd)
            logger.debug(
                "Created DogStatsD client.",
                event="datadog.client_created",
                context={
                    "address": address,
                    "namespace": namespace,
                    "telemetry": telemetry,
                },
            )
        self._transport: StatsdTransport = transport
        self._rate = 1.0
        self._tags: dict[str, str] = dict(constant_tags or {})

    @classmethod
    def from_env(
        cls,
        namespace: str = "",
        env: Mapping[str, str] | None = None,
        *,
        telemetry: bool = True,
        transport: StatsdTransport | None = None,
        constant_tags: Mapping[str, str] | None = None,
    ) -> Self:
        """Build a client from the standard Datadog environment variables.

        ``DD_AGENT_HOST`` and ``DD_DOGSTATSD_PORT`` select the agent, and
        ``DD_ENV``, ``DD_SERVICE`` and ``DD_VERSION`` become the constant tags
        ``env``, ``service`` and ``version``. Explicit ``constant_tags`` win
        over the environment.
        """
        env = os.environ if env is None else env
        host = env.get("DD_AGENT_HOST") or DEFAULT_HOST
        port = env.get("DD_DOGSTATSD_PORT") or str(DEFAULT_PORT)
        address = f"[{host}]:{port}" if ":" in host else f"{host}:{port}"

        unified: dict[str, str] = {}
        for variable, tag in (
            ("DD_ENV", "env"),
            ("DD_SERVICE", "service"),
            ("DD_VERSION", "version"),
        ):
            value = env.get(variable)
            if value:
                unified[tag] = value
        return cls(
            address,
            namespace,
            telemetry=telemetry,
            transport=transport,
            constant_tags=combine_tags(unified, constant_tags),
        )

    def _derive(
        self, *, rate: float | None = None, tags: dict[str, str] | None = None
    ) -> DataDogClient:
        clone = copy.copy(self)
        if rate is not None:
            clone._rate = rate
        if tags is not None:
            clone._tags = tags
        return clone

    def with_tags(self, tags: Mapping[str, str]) -> DataDogClient:
        return self._derive(tags=combine_tags(self._tags, tags))

    def with_rate(self, rate: float) -> DataDogClient:
        """Return a client that sends ``rate`` along with every metric."""
        return self._derive(rate=validate_rate(rate))

    @property
    def tags(self) -> list[str]:
        """Sorted ``key:value`` strings sent with every call."""
        return tag_strings(self._tags)

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def transport(self) -> StatsdTransport:
        return self._transport

    def _send(self, kind: str, name: str, value: object) -> None:
        self._transport.send_metric(
            kind, name, to_float(value), self.tags, self._rate
        )

    def count(self, name: str, value: int) -> None:
        self._send("count", name, value)

    def incr(self, name: str) -> None:
        self._send("count", name, 1)

    def decr(self, name: str) -> None:
        self._send("count", name, -1)

    def gauge(self, name: str, value: float) -> None:
        self._send("gauge", name, value)

    def histogram(self, name: str, value: float) -> None:
        self._send("histogram", name, value)

    def distribution(self, name: str, value: float) -> None:
        self._send("distribution", name, value)

    def timing(self, name: str, value: timedelta | float) -> None:
        """Send a duration in milliseconds."""
        self._send("timing", name, value)

    def event(self, event: Event) -> None:
        """Send a copy of ``event`` with this client's tags appended."""
        self._transport.send_event(event.with_tags(self.tags))

    def flush(self) -> None:
        self._transport.flush()

    def close(self) -> None:
        self._transport.close()


__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DataDogClient",
    "DogStatsdTransport",
    "StatsdTransport",
    "connection_options",
]
