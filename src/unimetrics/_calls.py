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

"""Recorded call records.

A call is either a :class:`MetricCall` or an :class:`EventCall`. Converting a
call to a string yields its serialized form, which is also what
``RecorderQuery.contains`` matches against::

    # Serialized metric, (RATE) only shown when the rate is not 1.0
    NAME:VALUE(RATE)[TAG_NAME:TAG_VALUE TAG_NAME:TAG_VALUE ...]

    # Serialized event
    TITLE:TEXT[TAG_NAME:TAG_VALUE TAG_NAME:TAG_VALUE ...]

Tags are always sorted, so the serialized form is deterministic.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import override

from ._events import Event
from ._util import format_number, render_tags


def _freeze_tags(tags: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(tags))


@dataclass(slots=True, frozen=True)
class MetricCall:
    """A single recorded metric.

    Attributes:
        name: Metric name.
        value: Value coerced to float; timings are in milliseconds.
        rate: Sample rate of the emitting client.
        tags: Read-only copy of the client's tags at emission time.
    """

    name: str
    value: float
    rate: float = 1.0
    tags: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", _freeze_tags(self.tags))

    @override
    def __str__(self) -> str:
        value = format_number(self.value)
        tags = render_tags(self.tags)
        if self.rate != 1.0:
            return f"{self.name}:{value}({format_number(self.rate)}){tags}"
        return f"{self.name}:{value}{tags}"


@dataclass(slots=True, frozen=True)
class EventCall:
    """A single recorded event.

    Attributes:
        event: The event as passed to ``RecorderClient.event``.
        tags: Read-only copy of the client's tags at emission time.
    """

    event: Event
    tags: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", _freeze_tags(self.tags))

    @property
    def title(self) -> str:
        return self.event.title

    @property
    def text(self) -> str:
        return self.event.text

    @override
    def __str__(self) -> str:
        return f"{self.title}:{self.text}{render_tags(self.tags)}"


type Call = MetricCall | EventCall


__all__ = [
    "Call",
    "EventCall",
    "MetricCall",
]
