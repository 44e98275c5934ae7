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

"""Fan-out client that forwards every call to several clients."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import timedelta

from ._client import MetricsClient
from ._events import Event
from ._util import validate_rate


class MultiClient:
    """Forwards each call to every wrapped client, in order.

    Example::

        metrics = MultiClient(DataDogClient.from_env("myapp"), LoggerClient())
        metrics.with_tags({"route": "home"}).incr("requests")

    Errors raised by a wrapped client propagate immediately, except from
    :meth:`close`, which closes every client before reporting failures.
    """

    __slots__ = ("_clients",)

    def __init__(self, *clients: MetricsClient) -> None:
        super().__init__()
        self._clients: tuple[MetricsClient, ...] = clients

    @property
    def clients(self) -> tuple[MetricsClient, ...]:
        return self._clients

    def _derive(self, make: Callable[[MetricsClient], MetricsClient]) -> MultiClient:
        return MultiClient(*(make(client) for client in self._clients))

    def with_tags(self, tags: Mapping[str, str]) -> MultiClient:
        return self._derive(lambda client: client.with_tags(tags))

    def with_rate(self, rate: float) -> MultiClient:
        checked = validate_rate(rate)
        return self._derive(lambda client: client.with_rate(checked))

    def count(self, name: str, value: int) -> None:
        for client in self._clients:
            client.count(name, value)

    def incr(self, name: str) -> None:
        for client in self._clients:
            client.incr(name)

    def decr(self, name: str) -> None:
        for client in self._clients:
            client.decr(name)

    def gauge(self, name: str, value: float) -> None:
        for client in self._clients:
            client.gauge(name, value)

    def histogram(self, name: str, value: float) -> None:
        for client in self._clients:
            client.histogram(name, value)

    def distribution(self, name: str, value: float) -> None:
        for client in self._clients:
            client.distribution(name, value)

    def timing(self, name: str, value: timedelta | float) -> None:
        for client in self._clients:
            client.timing(name, value)

    def event(self, event: Event) -> None:
        for client in self._clients:
            client.event(event)

    def close(self) -> None:
        """Close every client.

        Raises:
            ExceptionGroup: If any client failed to close. All clients are
                attempted first.
        """
        errors: list[Exception] = []
        for client in self._clients:
            try:
                client.close()
            except Exception as error:
                errors.append(error)
        if errors:
            failures = ", ".join(repr(error) for error in errors)
            raise ExceptionGroup(
                f"Errors while closing metrics clients: {failures}", errors
            )


__all__ = ["MultiClient"]
