# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Deep structural equality between an expected and an actual value.

Both sides come out of JSON (the oracle file and the child's protocol line),
so we only ever see None, bools, numbers, strings, lists and dicts. The
rules:

  - sequences: same length, element-wise equal, order matters
  - mappings: same key set, value-wise equal, key order doesn't matter
  - bools are never equal to numbers (True is not 1 here, even though
    Python says it is)
  - ints and floats compare numerically, so 5 == 5.0
  - NaN equals NaN, since "both returned NaN" is agreement
  - anything else falls back to ==, with no cross-type coercion
"""

import math
from collections.abc import Mapping, Sequence
from typing import Any


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def deep_equal(expected: Any, actual: Any) -> bool:
    if isinstance(expected, bool) or isinstance(actual, bool):
        return isinstance(expected, bool) and isinstance(actual, bool) and expected == actual

    if isinstance(expected, (int, float)) and isinstance(actual, (int, float)):
        if isinstance(expected, float) and isinstance(actual, float):
            if math.isnan(expected) and math.isnan(actual):
                return True
        return expected == actual

    if isinstance(expected, Mapping) or isinstance(actual, Mapping):
        if not (isinstance(expected, Mapping) and isinstance(actual, Mapping)):
            return False
        if set(expected.keys()) != set(actual.keys()):
            return False
        return all(deep_equal(expected[key], actual[key]) for key in expected)

    if _is_sequence(expected) or _is_sequence(actual):
        if not (_is_sequence(expected) and _is_sequence(actual)):
            return False
        if len(expected) != len(actual):
            return False
        return all(deep_equal(e, a) for e, a in zip(expected, actual))

    if type(expected) is not type(actual):
        return False
    return expected == actual
