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

"""Pytest integration for :class:`~unimetrics.RecorderClient`.

Installed packages register this plugin automatically through the ``pytest11``
entry point, which provides the ``metrics_recorder`` fixture::

    def test_checkout(metrics_recorder: RecorderClient) -> None:
        checkout(metrics=metrics_recorder)
        metrics_recorder.expect("orders.created").value(1)
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import NoReturn

import pytest

from ._recorder import RecorderClient
from .logging import get_logger

logger = get_logger(__name__)


class PytestFailer:
    """Reports recorder assertion failures through :func:`pytest.fail`.

    The pytest traceback is suppressed because the failure message already
    carries the relevant call stack.
    """

    __slots__ = ()

    def fail(self, msg: str) -> NoReturn:
        pytest.fail(msg, pytrace=False)


@pytest.fixture
def metrics_recorder() -> Iterator[RecorderClient]:
    """Return a recorder wired to fail the requesting test."""
    recorder = RecorderClient().with_test(PytestFailer())
    yield recorder
    logger.debug(
        "Metrics recorder fixture finished.",
        event="pytest_plugin.recorder_finished",
        context={"recorded_calls": recorder.length()},
    )


__all__ = ["PytestFailer", "metrics_recorder"]
