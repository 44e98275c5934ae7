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

"""Base exception hierarchy for :mod:`unimetrics`."""

from __future__ import annotations


class UnimetricsError(Exception):
    """Base class for all unimetrics exceptions.

    Every error raised by the library derives from this class so callers can
    catch library failures with a single handler. Assertion failures reported
    by :class:`~unimetrics.RecorderClient` are *not* part of this hierarchy;
    they are raised by whatever test failer is attached to the recorder.

    Note:
        Subclasses also inherit from a matching builtin (``TypeError``,
        ``ValueError``, ``RuntimeError``) so generic handlers keep working.
    """


class MetricValueError(UnimetricsError, TypeError):
    """Raised when a metric value cannot be coerced to a float.

    Metric values must be ``int``, ``float`` or :class:`datetime.timedelta`.
    Anything else (including ``bool``) is a defect in the calling code, so the
    error is raised immediately instead of being recorded or dropped.

    Example::

        recorder.gauge("queue.depth", "12")  # raises MetricValueError
    """


class InvalidSampleRateError(UnimetricsError, ValueError):
    """Raised when a sample rate falls outside the ``(0, 1]`` interval.

    Example::

        client.with_rate(0)  # raises InvalidSampleRateError
        client.with_rate(1.5)  # raises InvalidSampleRateError
    """


class MissingTestFailerError(UnimetricsError, RuntimeError):
    """Raised when an assertion is used on a recorder without a test failer.

    Assertion helpers report failures through the failer attached with
    :meth:`~unimetrics.RecorderClient.with_test`. Without one an assertion
    cannot report anything, so it aborts instead of silently passing.

    Example::

        recorder = RecorderClient()
        recorder.expect("requests.count")  # raises MissingTestFailerError

        recorder = RecorderClient().with_test(self)  # unittest.TestCase
        recorder.expect("requests.count")  # reports via self.fail()
    """


class ClientConfigurationError(UnimetricsError, ValueError):
    """Raised when a metrics client cannot be constructed.

    Common causes:
        - Malformed daemon address (missing port, non-numeric port)
        - Port outside 1-65535
        - Empty unix socket path

    A client that cannot be built is a deployment defect, so construction
    fails loudly rather than degrading to a client that drops everything.
    """


__all__ = [
    "ClientConfigurationError",
    "InvalidSampleRateError",
    "MetricValueError",
    "MissingTestFailerError",
    "UnimetricsError",
]
