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

from __future__ import annotations

import random
from typing import override

import pytest

from unimetrics import RecorderClient

pytest_plugins = ["unimetrics.pytest_plugin"]


class RecordingFailer:
    """Failer that collects messages instead of stopping the test."""

    def __init__(self) -> None:
        super().__init__()
        self.messages: list[str] = []

    def fail(self, msg: str) -> None:
        self.messages.append(msg)


class RecordingInfoLogger:
    """Info logger that stores each formatted line."""

    def __init__(self) -> None:
        super().__init__()
        self.lines: list[str] = []

    def info(self, msg: str, *args: object) -> None:
        self.lines.append(msg % args if args else msg)


class FixedRandom(random.Random):
    """Random source whose ``random()`` always returns the same value."""

    def __init__(self, value: float) -> None:
        super().__init__()
        self.value = value

    @override
    def random(self) -> float:
        return self.value


@pytest.fixture
def failer() -> RecordingFailer:
    return RecordingFailer()


@pytest.fixture
def recorder(failer: RecordingFailer) -> RecorderClient:
    """Recorder reporting into the ``failer`` fixture."""
    return RecorderClient().with_test(failer)


@pytest.fixture
def info_logger() -> RecordingInfoLogger:
    return RecordingInfoLogger()
