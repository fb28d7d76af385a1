from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .runtime import ArrayValue, FunctionValue, TupleValue


@dataclass(frozen=True)
class Type:
    name: str

    def __str__(self) -> str:  # pragma: no cover - trivial repr
        return self.name


INT = Type("int")
REAL = Type("real")
BOOL = Type("bool")
STRING = Type("string")
ARRAY = Type("array")
TUPLE = Type("tuple")
FUNC = Type("func")
NONE = Type("none")

NUMERIC = frozenset({INT, REAL})

_INDICATORS: Dict[str, Type] = {
    "int": INT,
    "real": REAL,
    "bool": BOOL,
    "string": STRING,
    "none": NONE,
    "array": ARRAY,
    "[]": ARRAY,
    "tuple": TUPLE,
    "{}": TUPLE,
    "func": FUNC,
}


class TypeSystemError(Exception):
    pass


def resolve_indicator(indicator: str) -> Type:
    resolved = _INDICATORS.get(indicator)
    if resolved is None:
        raise TypeSystemError(f"Unknown type indicator '{indicator}'")
    return resolved


def type_of(value: object) -> Type:
    if value is None:
        return NONE
    # bool before int: True/False must never pass as integers.
    if isinstance(value, bool):
        return BOOL
    if isinstance(value, int):
        return INT
    if isinstance(value, float):
        return REAL
    if isinstance(value, str):
        return STRING
    if isinstance(value, ArrayValue):
        return ARRAY
    if isinstance(value, TupleValue):
        return TUPLE
    if isinstance(value, FunctionValue):
        return FUNC
    raise TypeSystemError(f"Not a runtime value: {value!r}")


def is_numeric(value: object) -> bool:
    return type_of(value) in NUMERIC
