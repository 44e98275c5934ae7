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

"""Call-stack context appended to assertion failure messages."""

from __future__ import annotations

import inspect
import linecache
import traceback
from collections.abc import Sequence
from pathlib import Path
from typing import Final

# Frames from these modules (and their submodules) are left out of the dump.
DEFAULT_EXCLUDED_MODULES: Final = (
    "unimetrics",
    "_pytest",
    "pluggy",
    "unittest",
    "threading",
    "concurrent.futures",
)

_MAX_FRAMES: Final = 10


def _is_excluded(module: str, excluded: Sequence[str]) -> bool:
    return any(
        module == prefix or module.startswith(f"{prefix}.") for prefix in excluded
    )


def source_line(filename: str, lineno: int) -> str:
    """Return the stripped source line, or an empty string when unavailable."""
    return linecache.getline(filename, lineno).strip()


def describe_call_stack(
    *,
    excluded: Sequence[str] = DEFAULT_EXCLUDED_MODULES,
    limit: int = _MAX_FRAMES,
) -> str:
    """Describe the live call stack, innermost frame first.

    Each kept frame renders as two lines::

        tests.test_orders.test_checkout test_orders.py:42
        \trecorder.expect("orders.created")

    Args:
        excluded: Module prefixes whose frames are skipped.
        limit: Maximum number of frames to describe.

    Returns:
        The rendered frames joined by newlines; empty when nothing is left or
        the interpreter does not expose frames.
    """
    current = inspect.currentframe()
    if current is None:
        return ""
    blocks: list[str] = []
    for frame, lineno in traceback.walk_stack(current):
        if len(blocks) >= limit:
            break
        module = str(frame.f_globals.get("__name__", ""))
        if _is_excluded(module, excluded):
            continue
        code = frame.f_code
        location = f"{Path(code.co_filename).name}:{lineno}"
        snippet = source_line(code.co_filename, lineno)
        blocks.append(f"{module}.{code.co_qualname} {location}\n\t{snippet}")
    return "\n".join(blocks)


__all__ = [
    "DEFAULT_EXCLUDED_MODULES",
    "describe_call_stack",
    "source_line",
]
