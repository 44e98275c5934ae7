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

"""Uniform metrics emission with interchangeable backends.

Application code depends on the :class:`MetricsClient` protocol and picks a
backend at startup::

    from unimetrics import DataDogClient, LoggerClient, MultiClient

    metrics = MultiClient(DataDogClient.from_env("myapp"), LoggerClient())
    api = metrics.with_tags({"component": "api"})
    api.incr("requests")
    api.with_rate(0.1).timing("latency", timedelta(milliseconds=12))

Tests swap in a :class:`RecorderClient` and assert on what was emitted::

    recorder = RecorderClient().with_test(self)
    handle_request(metrics=recorder)
    recorder.expect("requests").tag("component", "api")
    recorder.if_("errors").reject()

Backends:

- :class:`DataDogClient` forwards to a DogStatsD agent through ``datadog``.
- :class:`LoggerClient` writes one readable line per call.
- :class:`NullClient` discards everything.
- :class:`MultiClient` fans out to several clients.
- :class:`RecorderClient` records calls in memory for assertions.
"""

from __future__ import annotations

from ._calls import Call, EventCall, MetricCall
from ._client import MetricsClient, TestFailer
from ._datadog import (
    DataDogClient,
    DogStatsdTransport,
    StatsdTransport,
)
from ._events import Event, EventAlertType, EventPriority
from ._logger_client import InfoLogger, LoggerClient
from ._multi import MultiClient
from ._null import NullClient
from ._query import WILDCARD, RecorderQuery
from ._recorder import RecorderClient
from .errors import (
    ClientConfigurationError,
    InvalidSampleRateError,
    MetricValueError,
    MissingTestFailerError,
    UnimetricsError,
)
from .logging import configure_logging, get_logger

__all__ = [
    "WILDCARD",
    "Call",
    "ClientConfigurationError",
    "DataDogClient",
    "DogStatsdTransport",
    "Event",
    "EventAlertType",
    "EventCall",
    "EventPriority",
    "InfoLogger",
    "InvalidSampleRateError",
    "LoggerClient",
    "MetricCall",
    "MetricValueError",
    "MetricsClient",
    "MissingTestFailerError",
    "MultiClient",
    "NullClient",
    "RecorderClient",
    "RecorderQuery",
    "StatsdTransport",
    "TestFailer",
    "UnimetricsError",
    "configure_logging",
    "get_logger",
]
