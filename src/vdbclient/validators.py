# Copyright 2025 Sushanth (https://github.com/sushanthpy)
#
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

"""
Parameter validators for index tuning knobs.

Each check raises ValidationError naming the offending parameter and
returns the value unchanged, so calls can be used inline:

    m = require_positive("hnsw_m", m)
"""

from __future__ import annotations

import math
from numbers import Real

from .errors import ValidationError


def _require_number(name: str, value) -> None:
    # bool is an int subclass but never a valid tuning value
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{name} must be a number, got {value!r}")


def _require_integer(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")


def require_positive(name: str, value: int) -> int:
    _require_integer(name, value)
    if value <= 0:
        raise ValidationError(f"{name} must be > 0, got {value}")
    return value


def require_at_least(name: str, value: int, minimum: int) -> int:
    _require_integer(name, value)
    if value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}, got {value}")
    return value


def require_positive_finite(name: str, value: float) -> float:
    _require_number(name, value)
    if math.isnan(value) or math.isinf(value) or value <= 0:
        raise ValidationError(f"{name} must be > 0 and finite, got {value}")
    return value


def require_finite(name: str, value: float) -> float:
    _require_number(name, value)
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(f"{name} must be finite, got {value}")
    return value


def require_range(name: str, value, minimum, maximum):
    """Inclusive range check for SPANN parameters."""
    _require_number(name, value)
    if math.isnan(value) or value < minimum or value > maximum:
        raise ValidationError(
            f"{name} must be between {minimum} and {maximum}, got {value}"
        )
    return value


def require_non_blank(name: str, value) -> str:
    """Return ``value`` trimmed; fail on non-strings and blank strings."""
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string, got {value!r}")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{name} must not be blank")
    return trimmed
