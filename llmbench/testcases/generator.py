# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Heuristic argument generation from a function signature.

We don't know what a function wants, so we guess a "kind" for every
parameter and draw values of that kind from a seeded RNG:

  1. The declared type, when there is one (`int`, `list[str]`, `number`,
     `string[]`, `Optional[dict]`, ...).
  2. Otherwise the parameter name: `count`/`num` → int, `str`/`text` → str,
     `bool`/`flag` → bool, `arr`/`list` → list, `obj`/`dict` → dict.
  3. Otherwise int.

Same signature + same seed = same inputs, on every machine. That's what
makes property-based runs reproducible.
"""

import random
import re
import string
from typing import Any

from llmbench.evaluation.models import Parameter, Signature

_NAME_HINTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("count", "num"), "int"),
    (("str", "text"), "str"),
    (("bool", "flag"), "bool"),
    (("arr", "list"), "list"),
    (("obj", "dict"), "dict"),
)

_TYPE_KINDS: dict[str, str] = {
    "int": "int",
    "integer": "int",
    "bigint": "int",
    "float": "float",
    "number": "float",
    "str": "str",
    "string": "str",
    "bool": "bool",
    "boolean": "bool",
    "list": "list",
    "tuple": "list",
    "sequence": "list",
    "iterable": "list",
    "array": "list",
    "dict": "dict",
    "mapping": "dict",
    "object": "dict",
    "record": "dict",
}

# Wrappers that don't change what kind of value is wanted.
_TRANSPARENT_WRAPPERS = frozenset({"optional", "typing.optional", "readonly", "final"})

_MAX_INT = 64
_MAX_COLLECTION = 8


def infer_kind(param: Parameter) -> str:
    """Pick a value kind for one parameter."""
    if param.type:
        kind = _kind_from_type(param.type)
        if kind is not None:
            return kind

    lowered = param.name.lower()
    for needles, kind in _NAME_HINTS:
        if any(needle in lowered for needle in needles):
            return kind
    return "int"


def _kind_from_type(annotation: str) -> str | None:
    text = annotation.strip().lower()
    if text.endswith("[]"):
        return "list"

    head = re.split(r"[\[\]<>|, ]", text, maxsplit=1)[0]
    if head in _TRANSPARENT_WRAPPERS:
        inner = text[len(head):].strip("[]<> ")
        return _kind_from_type(inner) if inner else None
    return _TYPE_KINDS.get(head.rsplit(".", 1)[-1])


def _value(kind: str, rng: random.Random) -> Any:
    if kind == "float":
        return round(rng.uniform(-_MAX_INT, _MAX_INT), 3)
    if kind == "str":
        length = rng.randint(0, 12)
        return "".join(rng.choices(string.ascii_lowercase, k=length))
    if kind == "bool":
        return rng.random() < 0.5
    if kind == "list":
        return [rng.randint(0, _MAX_INT) for _ in range(rng.randint(0, _MAX_COLLECTION))]
    if kind == "dict":
        size = rng.randint(0, _MAX_COLLECTION // 2)
        return {f"key_{i}": rng.randint(0, _MAX_INT) for i in range(size)}
    return rng.randint(0, _MAX_INT)


def generate_inputs(signature: Signature, count: int, seed: int = 0) -> list[list[Any]]:
    """`count` argument vectors for `signature`, deterministic in `seed`."""
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")

    rng = random.Random(seed)
    kinds = [infer_kind(param) for param in signature.params]
    return [[_value(kind, rng) for kind in kinds] for _ in range(count)]
