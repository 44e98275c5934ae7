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

"""Structured logging for the library's own diagnostics.

Library modules log through :func:`get_logger`, which requires an ``event``
name on every record and nests any additional keywords under ``context``::

    logger = get_logger(__name__)
    logger.debug(
        "Created DogStatsD client.",
        event="datadog.client_created",
        context={"address": "localhost:8125", "namespace": "myapp"},
    )

Applications that do not configure logging themselves can call
:func:`configure_logging`, optionally driven by the ``UNIMETRICS_LOG_LEVEL``
and ``UNIMETRICS_LOG_FORMAT`` environment variables.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from collections.abc import Mapping, MutableMapping
from datetime import UTC, datetime
from typing import Any, Final, cast, override

__all__ = [
    "StructuredLogger",
    "configure_logging",
    "get_logger",
]

LOG_LEVEL_ENV: Final = "UNIMETRICS_LOG_LEVEL"
LOG_FORMAT_ENV: Final = "UNIMETRICS_LOG_FORMAT"


class StructuredLogger(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that attaches ``event`` and ``context`` to every record."""

    def __init__(
        self,
        logger: logging.Logger,
        *,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(logger, dict(context or {}))

    def bind(self, **context: object) -> StructuredLogger:
        """Return a child adapter with ``context`` added to the bound context."""
        bound = cast(Mapping[str, object], self.extra)
        return type(self)(self.logger, context={**bound, **context})

    @override
    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        event = kwargs.pop("event", None)
        if not isinstance(event, str):
            raise TypeError("Structured logs require an 'event' keyword.")

        payload: dict[str, object] = dict(cast(Mapping[str, object], self.extra))
        inline = kwargs.pop("context", None)
        if inline is not None:
            payload.update(cast(Mapping[str, object], inline))
        extra = kwargs.pop("extra", None)
        if extra:
            payload.update(cast(Mapping[str, object], extra))

        kwargs["extra"] = {"event": event, "context": payload}
        return msg, kwargs


def get_logger(
    name: str, *, context: Mapping[str, object] | None = None
) -> StructuredLogger:
    """Return a :class:`StructuredLogger` for the standard logger ``name``."""
    return StructuredLogger(logging.getLogger(name), context=context)


def configure_logging(
    *,
    level: int | str | None = None,
    json_mode: bool | None = None,
    env: Mapping[str, str] | None = None,
    force: bool = False,
) -> None:
    """Install a stderr handler on the root logger.

    ``level`` falls back to ``UNIMETRICS_LOG_LEVEL`` and then ``INFO``.
    ``json_mode`` falls back to ``UNIMETRICS_LOG_FORMAT == "json"``. When the
    root logger already has handlers only the level is updated, unless
    ``force=True``.
    """
    env = os.environ if env is None else env
    resolved_level = _coerce_level(level or env.get(LOG_LEVEL_ENV) or logging.INFO)

    if json_mode is None:
        json_mode = env.get(LOG_FORMAT_ENV, "text").lower() == "json"

    root_logger = logging.getLogger()
    if root_logger.handlers and not force:
        root_logger.setLevel(resolved_level)
        return

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "text": {"()": "unimetrics.logging._TextFormatter"},
                "json": {"()": "unimetrics.logging._JsonFormatter"},
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "json" if json_mode else "text",
                }
            },
            "root": {"handlers": ["stderr"], "level": resolved_level},
        }
    )


class _TextFormatter(logging.Formatter):
    """Plain formatter tolerant of records without structured fields."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        event = getattr(record, "event", None)
        if event is not None:
            line = f"{line} event={event}"
        context = getattr(record, "context", None)
        if context:
            line = f"{line} context={context}"
        return line


class _JsonFormatter(logging.Formatter):
    """Formatter that renders one compact JSON object per record."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        event = getattr(record, "event", None)
        if event is not None:
            payload["event"] = event
        context = getattr(record, "context", None)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=repr, separators=(",", ":"))


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.upper())
    if resolved is None:
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved
