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

"""Metrics client that discards everything."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta

from ._events import Event
from ._util import validate_rate


class NullClient:
    """Client for code paths that must emit metrics but nobody is listening.

    Rates are still validated so that a misconfigured rate fails the same way
    it would with a real backend.
    """

    __slots__ = ()

    def with_tags(self, tags: Mapping[str, str]) -> NullClient:
        del tags
        return NullClient()

    def with_rate(self, rate: float) -> NullClient:
        _ = validate_rate(rate)
        return NullClient()

    def count(self, name: str, value: int) -> None:
        pass

    def incr(self, name: str) -> None:
        pass

    def decr(self, name: str) -> None:
        pass

    def gauge(self, name: str, value: float) -> None:
        pass

    def histogram(self, name: str, value: float) -> None:
        pass

    def distribution(self, name: str, value: float) -> None:
        pass

    def timing(self, name: str, value: timedelta | float) -> None:
        pass

    def event(self, event: Event) -> None:
        pass

    def close(self) -> None:
        pass


__all__ = ["NullClient"]
