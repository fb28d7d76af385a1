"""
Runtime value model.

Scalars are plain Python objects (`int`, `float`, `bool`, `str`, and `None` for
void). Arrays, tuples and functions are reference objects: two variables holding
the same array see each other's writes, and a closure shares (never copies) the
frame it captured.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from .. import ast
from ..diagnostics import EvalError
from ..numeric import int_to_text

if TYPE_CHECKING:  # pragma: no cover
    from ..interp import Environment


def _check_index(index: int, kind: str) -> None:
    if index <= 0:
        raise EvalError(f"{kind} index out of bounds: {int_to_text(index)} (indices must be >= 1)")


class ArrayValue:
    """1-based, growable array. Reads past the end yield void."""

    def __init__(self, elements: Optional[Sequence[object]] = None) -> None:
        self.elements: List[object] = list(elements) if elements is not None else []

    def __len__(self) -> int:
        return len(self.elements)

    def get(self, index: int) -> object:
        _check_index(index, "Array")
        if index > len(self.elements):
            return None
        return self.elements[index - 1]

    def set(self, index: int, value: object) -> None:
        _check_index(index, "Array")
        if index > len(self.elements):
            self.elements.extend([None] * (index - len(self.elements)))
        self.elements[index - 1] = value

    def snapshot(self) -> List[object]:
        return list(self.elements)

    def concat(self, other: ArrayValue) -> ArrayValue:
        return ArrayValue(self.elements + other.elements)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"ArrayValue({self.elements!r})"


@dataclass
class TupleSlot:
    name: Optional[str]
    value: object


class TupleValue:
    """Ordered entries, each optionally named; names and positions share slots."""

    def __init__(self) -> None:
        self.slots: List[TupleSlot] = []
        self._by_name: Dict[str, TupleSlot] = {}

    @classmethod
    def of(cls, entries: Sequence[tuple]) -> TupleValue:
        result = cls()
        for name, value in entries:
            result.append(name, value)
        return result

    def __len__(self) -> int:
        return len(self.slots)

    def append(self, name: Optional[str], value: object) -> None:
        slot = TupleSlot(name, value)
        if name is not None:
            if name in self._by_name:
                raise EvalError(f"Duplicate tuple member '{name}'")
            self._by_name[name] = slot
        self.slots.append(slot)

    def _slot_at(self, index: int) -> TupleSlot:
        if index <= 0 or index > len(self.slots):
            raise EvalError(f"Tuple index out of bounds: {int_to_text(index)}")
        return self.slots[index - 1]

    def _slot_named(self, name: str) -> TupleSlot:
        slot = self._by_name.get(name)
        if slot is None:
            raise EvalError(f"Tuple has no member named '{name}'")
        return slot

    def get(self, member: object) -> object:
        if isinstance(member, str):
            return self._slot_named(member).value
        return self._slot_at(member).value

    def set(self, member: object, value: object) -> None:
        if isinstance(member, str):
            self._slot_named(member).value = value
        else:
            self._slot_at(member).value = value

    def snapshot(self) -> List[object]:
        return [slot.value for slot in self.slots]

    def items(self) -> List[tuple]:
        return [(slot.name, slot.value) for slot in self.slots]

    def concat(self, other: TupleValue) -> TupleValue:
        return TupleValue.of(self.items() + other.items())

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"TupleValue({self.items()!r})"


@dataclass(eq=False)
class FunctionValue:
    definition: ast.FunctionLiteral
    closure: "Environment"

    @property
    def params(self) -> Sequence[str]:
        return self.definition.params

    def __str__(self) -> str:
        return f"func({', '.join(self.params)})"


def render(value: object) -> str:
    """Canonical text form used by `print`."""
    if value is None:
        return "none"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return int_to_text(value)
    if isinstance(value, str):
        return value
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, ArrayValue):
        return "[" + ", ".join(render(item) for item in value.elements) + "]"
    if isinstance(value, TupleValue):
        parts = []
        for name, item in value.items():
            parts.append(f"{name}:={render(item)}" if name is not None else render(item))
        return "{" + ", ".join(parts) + "}"
    if isinstance(value, FunctionValue):
        return str(value)
    raise TypeError(f"not a runtime value: {value!r}")


def truthy(value: object) -> bool:
    """Condition truthiness for `if`/`while`: false, 0, "", [], {} and none are falsy."""
    if value is None:
        return False
    if isinstance(value, (bool, int, float, str)):
        return bool(value)
    if isinstance(value, (ArrayValue, TupleValue)):
        return len(value) > 0
    return True


@dataclass
class RuntimeContext:
    stdout: object

    def print_values(self, values: Sequence[object]) -> None:
        self.stdout.write(" ".join(render(value) for value in values) + "\n")
        self.stdout.flush()
