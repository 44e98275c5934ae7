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

"""Metrics client that writes every call to a log."""

from __future__ import annotations

import copy
import logging
import os
import random
import sys
import threading
from collections.abc import Mapping
from datetime import timedelta
from typing import IO, Final, Protocol

from ._events import Event
from ._util import combine_tags, format_number, tag_strings, to_float, validate_rate

OUTPUT_LOGGER_NAME: Final = "unimetrics.output"

# ANSI 256-color palette codes.
_NAME_COLOR: Final = 208
_VALUE_COLOR: Final = 32
_RATE_COLOR: Final = 106
_EXTRAPOLATED_COLOR: Final = 43
_TAG_COLOR: Final = 133

_default_logger_lock = threading.Lock()


class InfoLogger(Protocol):
    """Anything with a printf-style ``info`` method, e.g. ``logging.Logger``."""

    def info(self, msg: str, *args: object) -> object:
        """Write one formatted message."""
        ...


def _colorize(text: str, code: int) -> str:
    return f"\x1b[38;5;{code}m{text}\x1b[0m"


def _supports_color(stream: IO[str]) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def _default_logger() -> logging.Logger:
    """Return the stdout logger used when no logger is supplied."""
    output = logging.getLogger(OUTPUT_LOGGER_NAME)
    with _default_logger_lock:
        if not output.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter("%(message)s"))
            output.addHandler(handler)
            output.setLevel(logging.INFO)
            output.propagate = False
    return output


class LoggerClient:
    """Client that logs each metric instead of sending it anywhere.

    Useful when running locally. Output looks like::

        Count requests.count:1 [tag1:value1]
        Gauge memory:1024 []
        Timing db.query:12.5ms [table:users]
        Event deploy
        finished in 42s [env:prod]

    With a sample rate below 1.0 only a random fraction of calls is logged.
    Counts then show the value extrapolated to all occurrences,
    ``Count hits:10 (1 / 0.1) []``, while every other kind shows the rate
    next to the raw value, ``Gauge memory:1024 (0.1) []``.

    Args:
        logger: Destination; defaults to a bare stdout logger.
        colors: Force ANSI colors on or off. ``None`` enables them only for
            the default stdout logger attached to a terminal.
        rng: Random source used for sampling decisions.
    """

    __slots__ = ("_colors", "_logger", "_rate", "_rng", "_tags")

    def __init__(
        self,
        logger: InfoLogger | None = None,
        *,
        colors: bool | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__()
        if logger is None:
            logger = _default_logger()
            if colors is None:
                colors = _supports_color(sys.stdout)
        self._logger = logger
        self._colors = bool(colors)
        self._rng = rng or random.Random()
        self._rate = 1.0
        self._tags: dict[str, str] = {}

    def _derive(
        self,
        *,
        colors: bool | None = None,
        rate: float | None = None,
        tags: dict[str, str] | None = None,
    ) -> LoggerClient:
        clone = copy.copy(self)
        if colors is not None:
            clone._colors = colors
        if rate is not None:
            clone._rate = rate
        if tags is not None:
            clone._tags = tags
        return clone

    def colorized(self) -> LoggerClient:
        """Return a client with colored terminal output enabled."""
        return self._derive(colors=True)

    def with_tags(self, tags: Mapping[str, str]) -> LoggerClient:
        return self._derive(tags=combine_tags(self._tags, tags))

    def with_rate(self, rate: float) -> LoggerClient:
        """Return a client that logs only a ``rate`` fraction of calls."""
        return self._derive(rate=validate_rate(rate))

    def _render_tags(self) -> str:
        if not self._colors:
            return "[" + " ".join(tag_strings(self._tags)) + "]"
        rendered = (
            f"{_colorize(key, _TAG_COLOR)}:{self._tags[key]}"
            for key in sorted(self._tags)
        )
        return "[" + " ".join(rendered) + "]"

    def _paint(self, text: str, code: int) -> str:
        return _colorize(text, code) if self._colors else text

    def _print(
        self, kind: str, name: str, value: float, *, unit: str = "", extrapolate: bool
    ) -> None:
        painted_name = self._paint(name, _NAME_COLOR)
        painted_value = self._paint(f"{format_number(value)}{unit}", _VALUE_COLOR)
        tags = self._render_tags()

        if self._rate == 1.0:
            self._logger.info("%s %s:%s %s", kind, painted_name, painted_value, tags)
            return

        if self._rng.random() >= self._rate:
            return

        rate = self._paint(format_number(self._rate), _RATE_COLOR)
        if extrapolate:
            extrapolated = self._paint(
                f"{format_number(value / self._rate)}{unit}", _EXTRAPOLATED_COLOR
            )
            self._logger.info(
                "%s %s:%s (%s / %s) %s",
                kind,
                painted_name,
                extrapolated,
                painted_value,
                rate,
                tags,
            )
        else:
            self._logger.info(
                "%s %s:%s (%s) %s", kind, painted_name, painted_value, rate, tags
            )

    def count(self, name: str, value: int) -> None:
        self._print("Count", name, to_float(value), extrapolate=True)

    def incr(self, name: str) -> None:
        self.count(name, 1)

    def decr(self, name: str) -> None:
        self.count(name, -1)

    def gauge(self, name: str, value: float) -> None:
        self._print("Gauge", name, to_float(value), extrapolate=False)

    def histogram(self, name: str, value: float) -> None:
        self._print("Histogram", name, to_float(value), extrapolate=False)

    def distribution(self, name: str, value: float) -> None:
        self._print("Distribution", name, to_float(value), extrapolate=False)

    def timing(self, name: str, value: timedelta | float) -> None:
        self._print("Timing", name, to_float(value), unit="ms", extrapolate=False)

    def event(self, event: Event) -> None:
        self._logger.info(
            "Event %s\n%s %s", event.title, event.text, self._render_tags()
        )

    def close(self) -> None:
        """Nothing to release; the logger belongs to the caller."""


__all__ = [
    "OUTPUT_LOGGER_NAME",
    "InfoLogger",
    "LoggerClient",
]
