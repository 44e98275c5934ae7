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

"""Tag, value and rate helpers shared by every client."""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import timedelta
from decimal import Decimal
from typing import Final

from .errors import InvalidSampleRateError, MetricValueError

type MetricValue = int | float | timedelta
"""Inputs accepted wherever a metric value is expected."""

_MILLISECOND: Final = timedelta(milliseconds=1)

# Decimal exponents outside [-4, 6) switch to scientific notation.
_MIN_FIXED_EXPONENT: Final = -4
_MAX_FIXED_EXPONENT: Final = 6


def combine_tags(
    original: Mapping[str, str] | None, override: Mapping[str, str] | None
) -> dict[str, str]:
    """Merge two tag mappings into a new dict, ``override`` winning on conflict."""
    combined: dict[str, str] = dict(original or {})
    combined.update(override or {})
    return combined


def tag_strings(tags: Mapping[str, str]) -> list[str]:
    """Return ``key:value`` strings for ``tags`` sorted lexicographically."""
    return sorted(f"{key}:{value}" for key, value in tags.items())


def render_tags(tags: Mapping[str, str]) -> str:
    """Render tags as ``[k1:v1 k2:v2]``; an empty mapping renders as ``[]``."""
    return "[" + " ".join(tag_strings(tags)) + "]"


def to_float(value: object) -> float:
    """Coerce a metric value to ``float``.

    Integers and floats convert directly, timedeltas convert to milliseconds.
    Anything else is a programming error.

    Raises:
        MetricValueError: If ``value`` is not one of the supported kinds.
    """
    match value:
        case bool():
            raise MetricValueError(f"cannot convert bool to float: {value!r}")
        case float():
            return float(value)
        case int():
            try:
                return float(value)
            except OverflowError as error:
                raise MetricValueError(
                    f"integer too large to convert to float: {value!r}"
                ) from error
        case timedelta():
            return value / _MILLISECOND
        case _:
            raise MetricValueError(
                f"cannot convert {type(value).__name__} to float: {value!r}"
            )


def validate_rate(rate: float) -> float:
    """Return ``rate`` as a float after checking it lies in ``(0, 1]``.

    Raises:
        InvalidSampleRateError: If the rate is out of range or not a number.
    """
    if isinstance(rate, bool) or not isinstance(rate, int | float):
        raise InvalidSampleRateError(f"sample rate must be a number: {rate!r}")
    coerced = float(rate)
    if not 0.0 < coerced <= 1.0:
        raise InvalidSampleRateError(f"sample rate must be in (0, 1]: {rate!r}")
    return coerced


def format_number(value: float) -> str:
    """Render ``value`` in its shortest form, without a trailing ``.0``.

    ``5.0`` renders as ``5``, ``4.3`` as ``4.3``, ``1e6`` as ``1e+06`` and
    ``1e-5`` as ``1e-05``. This is the number format used by call strings.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"

    sign, digit_tuple, exponent = Decimal(repr(value)).normalize().as_tuple()
    digits = "".join(str(digit) for digit in digit_tuple)
    point = len(digits) + int(exponent)
    sign_str = "-" if sign else ""
    decimal_exponent = point - 1

    if not _MIN_FIXED_EXPONENT <= decimal_exponent < _MAX_FIXED_EXPONENT:
        mantissa = digits[0] + (f".{digits[1:]}" if len(digits) > 1 else "")
        exp_sign = "-" if decimal_exponent < 0 else "+"
        return f"{sign_str}{mantissa}e{exp_sign}{abs(decimal_exponent):02d}"

    if point <= 0:
        return f"{sign_str}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return f"{sign_str}{digits}{'0' * (point - len(digits))}"
    return f"{sign_str}{digits[:point]}.{digits[point:]}"


__all__ = [
    "MetricValue",
    "combine_tags",
    "format_number",
    "render_tags",
    "tag_strings",
    "to_float",
    "validate_rate",
]
