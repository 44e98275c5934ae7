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

"""Metrics client and test failer protocols."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from typing import Protocol, runtime_checkable

from ._events import Event


@runtime_checkable
class MetricsClient(Protocol):
    """Protocol implemented by every metrics backend.

    Clients are immutable by convention: ``with_tags`` and ``with_rate``
    return derived clients and never modify the receiver.
    """

    def with_tags(self, tags: Mapping[str, str]) -> MetricsClient:
        """Return a client with ``tags`` merged over the current tags.

        Args:
            tags: Tags to add. Keys already present are overwritten.
        """
        ...

    def with_rate(self, rate: float) -> MetricsClient:
        """Return a client that reports with the given sample rate.

        Args:
            rate: Sample rate in ``(0, 1]``.

        Raises:
            InvalidSampleRateError: If ``rate`` is out of range.
        """
        ...

    def count(self, name: str, value: int) -> None:
        """Add ``value`` to a counter."""
        ...

    def incr(self, name: str) -> None:
        """Add one to a counter."""
        ...

    def decr(self, name: str) -> None:
        """Subtract one from a counter."""
        ...

    def gauge(self, name: str, value: float) -> None:
        """Set a point-in-time value."""
        ...

    def histogram(self, name: str, value: float) -> None:
        """Record a value tracked with min/max/avg/percentiles."""
        ...

    def distribution(self, name: str, value: float) -> None:
        """Record a value for a globally aggregated distribution."""
        ...

    def timing(self, name: str, value: timedelta | float) -> None:
        """Record a duration.

        Args:
            name: Metric name.
            value: A timedelta or a number of milliseconds.
        """
        ...

    def event(self, event: Event) -> None:
        """Emit an event."""
        ...

    def close(self) -> None:
        """Flush buffered data and release connections."""
        ...


@runtime_checkable
class TestFailer(Protocol):
    """Anything that can fail the current test with a message.

    ``unittest.TestCase`` instances satisfy this protocol directly. For pytest
    use :class:`unimetrics.pytest_plugin.PytestFailer` or the
    ``metrics_recorder`` fixture.
    """

    def fail(self, msg: str) -> object:
        """Fail the current test with ``msg``."""
        ...


__all__ = [
    "MetricsClient",
    "TestFailer",
]
