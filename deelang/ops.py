"""
Operator semantics.

The interpreter evaluates every `Binary`/`Unary` node through `binary_op` and
`unary_op`, and the optimizer folds literals through the same two functions, so
a folded expression can never disagree with its run-time value. Failures raise
an unlocated `EvalError`; the caller attaches the node position.
"""

from __future__ import annotations

from typing import Callable, Dict

from .diagnostics import EvalError
from .runtime import ArrayValue, FunctionValue, TupleValue
from .types import Type, is_numeric, type_of

ARITHMETIC_OPS = frozenset({"+", "-", "*", "/"})
ORDERING_OPS = frozenset({"<", "<=", ">", ">="})
EQUALITY_OPS = frozenset({"=", "==", "!=", "/="})
LOGICAL_OPS = frozenset({"and", "or", "xor"})


def _operand_error(op: str, left: object, right: object) -> EvalError:
    return EvalError(f"Unsupported operand types for '{op}': {type_of(left)} and {type_of(right)}")


def _arithmetic(op: str, left: object, right: object) -> object:
    try:
        return _apply_arithmetic(op, left, right)
    except OverflowError:
        raise EvalError(f"Numeric overflow in '{op}': {type_of(left)} and {type_of(right)}") from None


def _apply_arithmetic(op: str, left: object, right: object) -> object:
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if right == 0:
        raise EvalError("Division by zero")
    if isinstance(left, float) or isinstance(right, float):
        return left / right
    # Python's // already floors toward negative infinity.
    return left // right


def _concat(left: object, right: object) -> object:
    if isinstance(left, str) and isinstance(right, str):
        return left + right
    if isinstance(left, ArrayValue) and isinstance(right, ArrayValue):
        return left.concat(right)
    if isinstance(left, TupleValue) and isinstance(right, TupleValue):
        return left.concat(right)
    return None


# Mixed int/real operands compare exactly without promotion.
_ORDERING: Dict[str, Callable[[object, object], bool]] = {
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}


def values_equal(left: object, right: object) -> bool:
    """Equality as `=` sees it. Raises on mismatched non-numeric types."""
    if is_numeric(left) and is_numeric(right):
        return left == right
    left_type: Type = type_of(left)
    right_type: Type = type_of(right)
    if left_type != right_type:
        raise EvalError(f"Cannot compare {left_type} and {right_type}")
    return _same_type_equal(left, right)


def _element_equal(left: object, right: object) -> bool:
    if is_numeric(left) and is_numeric(right):
        return left == right
    if type_of(left) != type_of(right):
        return False
    return _same_type_equal(left, right)


def _same_type_equal(left: object, right: object) -> bool:
    if isinstance(left, ArrayValue):
        if len(left) != len(right):
            return False
        return all(_element_equal(a, b) for a, b in zip(left.elements, right.elements))
    if isinstance(left, TupleValue):
        if len(left) != len(right):
            return False
        for (left_name, a), (right_name, b) in zip(left.items(), right.items()):
            if left_name != right_name or not _element_equal(a, b):
                return False
        return True
    if isinstance(left, FunctionValue):
        return left is right
    return left == right


def _require_bool(op: str, value: object) -> bool:
    if not isinstance(value, bool):
        raise EvalError(f"Expected boolean value for '{op}', got {type_of(value)}")
    return value


def binary_op(op: str, left: object, right: object) -> object:
    if op in LOGICAL_OPS:
        a = _require_bool(op, left)
        b = _require_bool(op, right)
        if op == "and":
            return a and b
        if op == "or":
            return a or b
        return a != b
    if op in EQUALITY_OPS:
        equal = values_equal(left, right)
        return equal if op in ("=", "==") else not equal
    if op in ORDERING_OPS:
        if not (is_numeric(left) and is_numeric(right)):
            raise _operand_error(op, left, right)
        return _ORDERING[op](left, right)
    if op in ARITHMETIC_OPS:
        if is_numeric(left) and is_numeric(right):
            return _arithmetic(op, left, right)
        if op == "+":
            joined = _concat(left, right)
            if joined is not None:
                return joined
        raise _operand_error(op, left, right)
    raise EvalError(f"Unknown operator '{op}'")


def unary_op(op: str, operand: object) -> object:
    if op == "not":
        return not _require_bool(op, operand)
    if op in ("+", "-"):
        if not is_numeric(operand):
            raise EvalError(f"Unsupported operand type for unary '{op}': {type_of(operand)}")
        return -operand if op == "-" else operand
    raise EvalError(f"Unknown unary operator '{op}'")
