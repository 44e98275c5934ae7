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

"""Event value type shared by all metrics clients."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import StrEnum


class EventPriority(StrEnum):
    """Priority attached to an event."""

    NORMAL = "normal"
    LOW = "low"


class EventAlertType(StrEnum):
    """Alert category attached to an event."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


@dataclass(slots=True, frozen=True)
class Event:
    """Something worth calling out alongside the numeric metrics.

    Only ``title`` and ``text`` are required. The remaining fields are
    forwarded to backends that understand them and ignored elsewhere.

    Attributes:
        title: Short event identifier, matched by ``RecorderClient.expect``.
        text: Event body.
        timestamp: When the event happened; backends default to "now".
        hostname: Host the event relates to.
        aggregation_key: Key used to group related events.
        priority: Event priority.
        source_type_name: Source type reported to the backend.
        alert_type: Alert category.
        tags: Event-specific ``key:value`` tag strings. Client tags are
            appended to these when the event is sent.
    """

    title: str
    text: str
    timestamp: datetime | None = None
    hostname: str | None = None
    aggregation_key: str | None = None
    priority: EventPriority | None = None
    source_type_name: str | None = None
    alert_type: EventAlertType | None = None
    tags: tuple[str, ...] = ()

    def with_tags(self, tags: list[str] | tuple[str, ...]) -> Event:
        """Return a copy with ``tags`` appended to the event's own tags."""
        if not tags:
            return self
        return replace(self, tags=(*self.tags, *tags))


__all__ = [
    "Event",
    "EventAlertType",
    "EventPriority",
]
