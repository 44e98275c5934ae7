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

"""Chainable filters and assertions over recorded calls."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from ._calls import Call, EventCall, MetricCall
from ._util import format_number, to_float

if TYPE_CHECKING:
    from ._recorder import RecorderClient

WILDCARD = "*"


@dataclass(slots=True, frozen=True)
class RecorderQuery:
    """Immutable, narrowing view over a snapshot of recorded calls.

    Every filter returns a new query holding the calls that survived it, in
    their original order. Queries created by ``RecorderClient.expect`` check
    the minimum after each filter and fail fast; queries created by
    ``RecorderClient.if_`` only check in :meth:`accept` or :meth:`reject`::

        # A metric with this value and tag was emitted.
        recorder.expect("my.metric").value(1).tag("foo", "bar")

        # No metric with this name and value was emitted.
        recorder.if_("my.metric").value(100).reject()

    Attributes:
        matches: Calls that survived every filter so far.
        recorder: Recorder that reports failures.
        min_calls: Minimum number of matches required.
        check_min: Whether filters enforce ``min_calls`` immediately.
        history: Filter steps applied so far, used in failure messages.
    """

    matches: tuple[Call, ...]
    recorder: RecorderClient
    min_calls: int = 1
    check_min: bool = True
    history: tuple[str, ...] = ()

    def calls(self) -> tuple[Call, ...]:
        """Return the calls currently matching the query."""
        return self.matches

    def _fail(self, reason: str) -> None:
        self.recorder.fail(f"{reason}. Query was '{' '.join(self.history)}'.")

    def _narrow(
        self, step: str, keep: Callable[[Call], bool], reason: str
    ) -> RecorderQuery:
        narrowed = replace(
            self,
            matches=tuple(call for call in self.matches if keep(call)),
            history=(*self.history, step),
        )
        if narrowed.check_min and len(narrowed.matches) < narrowed.min_calls:
            narrowed._fail(reason)
        return narrowed

    def min_times(self, num: int) -> RecorderQuery:
        """Require at least ``num`` matching calls (default ``1``)."""
        updated = replace(
            self, min_calls=num, history=(*self.history, f"min_times({num})")
        )
        if updated.check_min:
            updated.accept()
        return updated

    def accept(self) -> None:
        """Fail if fewer than the minimum number of calls match."""
        if len(self.matches) >= self.min_calls:
            return
        if not self.matches:
            self._fail(f"Expected at least {self.min_calls} calls but have none")
        else:
            self._fail(
                f"Expected at least {self.min_calls} calls "
                f"but only have {_quoted(self.matches)}"
            )

    def reject(self) -> None:
        """Fail if at least the minimum number of calls match."""
        if len(self.matches) >= self.min_calls:
            self._fail(
                f"Expected fewer than {self.min_calls} matching calls "
                f"but have {_quoted(self.matches)}"
            )

    def contains(self, component: str) -> RecorderQuery:
        """Keep calls whose serialized form contains ``component``."""
        return self._narrow(
            f"contains({component})",
            lambda call: component in str(call),
            f"Expected metric or event to contain '{component}'",
        )

    def id(self, identifier: str) -> RecorderQuery:
        """Keep metrics named ``identifier`` and events titled ``identifier``.

        The wildcard ``*`` keeps every call.
        """

        def keep(call: Call) -> bool:
            if identifier == WILDCARD:
                return True
            match call:
                case MetricCall(name=name):
                    return name == identifier
                case EventCall(event=event):
                    return event.title == identifier

        return self._narrow(
            f"id({identifier})",
            keep,
            f"Expected metric or event with ID '{identifier}'",
        )

    def value(self, value: float) -> RecorderQuery:
        """Keep metrics whose value equals ``value``; events are dropped."""
        expected = to_float(value)

        def keep(call: Call) -> bool:
            match call:
                case MetricCall(value=actual):
                    return actual == expected
                case _:
                    return False

        rendered = format_number(expected)
        return self._narrow(
            f"value({rendered})", keep, f"Expected metric value '{rendered}'"
        )

    def rate(self, rate: float) -> RecorderQuery:
        """Keep metrics recorded with sample rate ``rate``; events are dropped."""
        expected = to_float(rate)

        def keep(call: Call) -> bool:
            match call:
                case MetricCall(rate=actual):
                    return actual == expected
                case _:
                    return False

        rendered = format_number(expected)
        return self._narrow(
            f"rate({rendered})", keep, f"Expected metric rate '{rendered}'"
        )

    def text(self, text: str) -> RecorderQuery:
        """Keep events whose text equals ``text``; metrics are dropped."""

        def keep(call: Call) -> bool:
            match call:
                case EventCall(event=event):
                    return event.text == text
                case _:
                    return False

        return self._narrow(f"text({text})", keep, f"Expected event text '{text}'")

    def tag(self, name: str, value: str) -> RecorderQuery:
        """Keep calls tagged ``name`` with exactly ``value``."""
        return self._narrow(
            f"tag({name}, {value})",
            lambda call: name in call.tags and call.tags[name] == value,
            f"Expected tag '{name}' with value '{value}'",
        )

    def tag_name(self, name: str) -> RecorderQuery:
        """Keep calls carrying tag ``name`` with any value."""
        return self._narrow(
            f"tag_name({name})",
            lambda call: name in call.tags,
            f"Expected tag '{name}'",
        )


def _quoted(calls: tuple[Call, ...]) -> str:
    return ", ".join(f"'{call}'" for call in calls)


__all__ = ["WILDCARD", "RecorderQuery"]
