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

"""Recording metrics client with assertion helpers."""

from __future__ import annotations

import copy
import threading
from collections.abc import Mapping
from datetime import timedelta
from types import MappingProxyType

from ._calls import Call, EventCall, MetricCall
from ._client import TestFailer
from ._events import Event
from ._query import RecorderQuery
from ._stack import describe_call_stack
from ._util import MetricValue, combine_tags, to_float, validate_rate
from .errors import MissingTestFailerError
from .logging import get_logger

logger = get_logger(__name__)

_EMPTY_TAGS: Mapping[str, str] = MappingProxyType({})


class _CallLog:
    """Append-only call list shared by every client derived from one recorder."""

    __slots__ = ("_calls", "_lock")

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self._calls: list[Call] = []

    def append(self, call: Call) -> None:
        with self._lock:
            self._calls.append(call)

    def clear(self) -> int:
        with self._lock:
            cleared = len(self._calls)
            self._calls = []
        return cleared

    def snapshot(self) -> tuple[Call, ...]:
        with self._lock:
            return tuple(self._calls)

    def __len__(self) -> int:
        with self._lock:
            return len(self._calls)


class RecorderClient:
    """Metrics client that records every call for later assertions.

    Clients derived through ``with_tags``, ``with_rate`` and ``with_test``
    share one call log, so a recorder handed to the code under test sees
    everything its derived clients emit::

        def test_checkout(self) -> None:  # unittest.TestCase
            recorder = RecorderClient().with_test(self)
            checkout(metrics=recorder)

            recorder.expect("orders.created").value(1).tag("region", "eu")

    Asserting that something did *not* happen uses ``if_`` and ``reject``::

        recorder.count("orders.created", 5)

        # Passes, no call has the value 10.
        recorder.if_("orders.created").value(10).reject()

        # Both of these fail the test.
        recorder.if_("orders.created").reject()
        recorder.if_("orders.created").value(5).reject()

    Custom checks can read the recorded calls directly and report through
    :meth:`fail`, which appends the full call log to the message::

        values = [call.value for call in recorder.expect("orders.created").calls()]
        if values != [1.0, 2.0]:
            recorder.fail("Expected values 1, 2 in order.")

    Thread-safe: any number of threads may emit through clients derived from
    the same recorder.
    """

    __slots__ = ("_failer", "_log", "_rate", "_tags")

    def __init__(self) -> None:
        super().__init__()
        self._log = _CallLog()
        self._failer: TestFailer | None = None
        self._rate = 1.0
        self._tags: Mapping[str, str] = _EMPTY_TAGS

    def _derive(
        self,
        *,
        failer: TestFailer | None = None,
        rate: float | None = None,
        tags: Mapping[str, str] | None = None,
    ) -> RecorderClient:
        clone = copy.copy(self)
        if failer is not None:
            clone._failer = failer
        if rate is not None:
            clone._rate = rate
        if tags is not None:
            clone._tags = MappingProxyType(dict(tags))
        return clone

    def with_tags(self, tags: Mapping[str, str]) -> RecorderClient:
        """Return a client with ``tags`` merged over the current tags."""
        return self._derive(tags=combine_tags(self._tags, tags))

    def with_rate(self, rate: float) -> RecorderClient:
        """Return a client recording with sample rate ``rate``."""
        return self._derive(rate=validate_rate(rate))

    def with_test(self, failer: TestFailer) -> RecorderClient:
        """Return a client whose assertions report through ``failer``."""
        return self._derive(failer=failer)

    @property
    def tags(self) -> Mapping[str, str]:
        """Tags attached to calls made through this client."""
        return self._tags

    @property
    def rate(self) -> float:
        """Sample rate attached to metrics recorded through this client."""
        return self._rate

    def _record(self, name: str, value: MetricValue) -> None:
        call = MetricCall(
            name=name, value=to_float(value), rate=self._rate, tags=self._tags
        )
        self._log.append(call)

    def count(self, name: str, value: int) -> None:
        """Record a counter delta."""
        self._record(name, value)

    def incr(self, name: str) -> None:
        """Record a counter delta of one."""
        self._record(name, 1)

    def decr(self, name: str) -> None:
        """Record a counter delta of minus one."""
        self._record(name, -1)

    def gauge(self, name: str, value: float) -> None:
        self._record(name, value)

    def histogram(self, name: str, value: float) -> None:
        self._record(name, value)

    def distribution(self, name: str, value: float) -> None:
        self._record(name, value)

    def timing(self, name: str, value: timedelta | float) -> None:
        """Record a duration; timedeltas are stored in milliseconds."""
        self._record(name, value)

    def event(self, event: Event) -> None:
        """Record an event. Events are never sampled, so no rate is kept."""
        self._log.append(EventCall(event=event, tags=self._tags))

    def close(self) -> None:
        """Nothing to release; present for protocol compatibility."""

    def reset(self) -> None:
        """Clear the shared call log, e.g. between test cases."""
        cleared = self._log.clear()
        logger.debug(
            "Metrics recorder reset.",
            event="recorder.reset",
            context={"cleared_calls": cleared},
        )

    def length(self) -> int:
        """Return the number of recorded calls."""
        return len(self._log)

    def __len__(self) -> int:
        return len(self._log)

    def calls(self) -> tuple[Call, ...]:
        """Return a snapshot of every recorded call, oldest first."""
        return self._log.snapshot()

    def _require_failer(self) -> TestFailer:
        if self._failer is None:
            raise MissingTestFailerError(
                "No test associated with metrics recorder, "
                "call `recorder.with_test(test)` first."
            )
        return self._failer

    def fail(self, message: str) -> None:
        """Fail the attached test with ``message`` plus debugging context.

        The full call log and the caller's stack are appended to the message.

        Raises:
            MissingTestFailerError: If no failer is attached.
        """
        failer = self._require_failer()
        recorded = "\n".join(str(call) for call in self._log.snapshot())
        stack = describe_call_stack()
        _ = failer.fail(
            f"{message} Current metrics stack:\n{recorded}\nFrom call stack:\n{stack}"
        )

    def expect_empty(self) -> None:
        """Fail the test if any call has been recorded."""
        _ = self._require_failer()
        if len(self._log) > 0:
            self.fail("Expected empty metrics call stack.")

    def _query(self, *, check_min: bool) -> RecorderQuery:
        _ = self._require_failer()
        return RecorderQuery(
            matches=self._log.snapshot(), recorder=self, check_min=check_min
        )

    def expect(self, identifier: str) -> RecorderQuery:
        """Match metrics by name or events by title; ``*`` matches anything.

        Fails immediately if nothing matches, and again after any later filter
        that leaves fewer calls than the minimum.
        """
        return self._query(check_min=True).id(identifier)

    def expect_contains(self, component: str) -> RecorderQuery:
        """Match calls whose serialized form contains ``component``.

        ``recorder.expect_contains("foo")`` matches both ``foo1:1[]`` and
        ``foo2:1[]``.
        """
        return self._query(check_min=True).contains(component)

    def if_(self, identifier: str) -> RecorderQuery:
        """Like :meth:`expect`, but only checks on ``accept`` or ``reject``.

        ``recorder.expect("m")`` and ``recorder.if_("m").accept()`` are
        equivalent; the first is preferred.
        """
        return self._query(check_min=False).id(identifier)


__all__ = ["RecorderClient"]
