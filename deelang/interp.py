from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence

from . import ast
from .diagnostics import Diagnostic, EvalError
from .ops import binary_op, unary_op
from .runtime import ArrayValue, FunctionValue, RuntimeContext, TupleValue, truthy
from .types import TypeSystemError, resolve_indicator, type_of

logger = logging.getLogger(__name__)

DEFAULT_RECURSION_LIMIT = 6000


@contextmanager
def recursion_limit(limit: int = DEFAULT_RECURSION_LIMIT) -> Iterator[None]:
    """Raise the interpreter recursion limit to at least `limit` for the block."""
    previous = sys.getrecursionlimit()
    sys.setrecursionlimit(max(previous, limit))
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


class Signal:
    """Non-local control flow, returned (never raised) by statement execution."""


@dataclass(frozen=True)
class BreakSignal(Signal):
    pass


@dataclass(frozen=True)
class ContinueSignal(Signal):
    pass


@dataclass(frozen=True)
class ReturnSignal(Signal):
    value: object = None


BREAK = BreakSignal()
CONTINUE = ContinueSignal()

_STRAY_SIGNAL_MESSAGES = {
    BreakSignal: "'exit' statement outside loop",
    ContinueSignal: "'continue' statement outside loop",
    ReturnSignal: "Return statement outside function",
}


class Environment:
    def __init__(self, parent: Environment | None = None) -> None:
        self.parent = parent
        self.values: Dict[str, object] = {}

    def define(self, name: str, value: object) -> None:
        if name in self.values:
            raise EvalError(f"Variable '{name}' is already declared in this scope")
        self.values[name] = value

    def set(self, name: str, value: object) -> None:
        if name in self.values:
            self.values[name] = value
            return
        if self.parent:
            self.parent.set(name, value)
            return
        raise EvalError(f"Cannot assign to undeclared variable '{name}'")

    def get(self, name: str) -> object:
        if name in self.values:
            return self.values[name]
        if self.parent:
            return self.parent.get(name)
        raise EvalError(f"Undefined variable '{name}'")


def _require_int(value: object, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EvalError(f"{what} must be an integer, got {type_of(value)}")
    return value


class Interpreter:
    """
    Tree-walking evaluator.

    Each top-level statement runs on its own: a runtime error becomes a located
    diagnostic and execution moves on to the next statement.
    """

    def __init__(self, stdout=None, recursion_limit: int = DEFAULT_RECURSION_LIMIT) -> None:
        self.stdout = stdout or sys.stdout
        self.runtime_ctx = RuntimeContext(self.stdout)
        self.global_env = Environment()
        self.recursion_limit = recursion_limit

    def run(self, program: ast.Program) -> List[Diagnostic]:
        diagnostics: List[Diagnostic] = []
        env = Environment(parent=self.global_env)
        with recursion_limit(self.recursion_limit):
            for stmt in program.statements:
                failure = self._run_top_level(stmt, env)
                if failure is not None:
                    logger.debug("runtime failure: %s", failure)
                    diagnostics.append(failure)
        return diagnostics

    def _run_top_level(self, stmt: ast.Stmt, env: Environment) -> Optional[Diagnostic]:
        try:
            signal = self._exec_stmt(stmt, env)
        except EvalError as exc:
            return exc.to_diagnostic()
        except RecursionError:
            return Diagnostic.error("Maximum recursion depth exceeded", stmt.loc)
        if signal is not None:
            return Diagnostic.error(_STRAY_SIGNAL_MESSAGES[type(signal)], stmt.loc)
        return None

    # Statements

    def _execute_block(self, statements: Sequence[ast.Stmt], env: Environment) -> Optional[Signal]:
        for stmt in statements:
            signal = self._exec_stmt(stmt, env)
            if signal is not None:
                return signal
        return None

    def _exec_stmt(self, stmt: ast.Stmt, env: Environment) -> Optional[Signal]:
        try:
            return self._exec(stmt, env)
        except EvalError as exc:
            if not exc.located:
                exc.locate(stmt.loc)
            raise

    def _exec(self, stmt: ast.Stmt, env: Environment) -> Optional[Signal]:
        if isinstance(stmt, ast.Declaration):
            # Every name exists (as none) before the first initializer runs.
            for var in stmt.variables:
                env.define(var.name, None)
            for var in stmt.variables:
                if var.initializer is not None:
                    env.set(var.name, self._eval_expr(var.initializer, env))
            return None
        if isinstance(stmt, ast.Assign):
            value = self._eval_expr(stmt.value, env)
            self._assign(stmt.target, value, env)
            return None
        if isinstance(stmt, ast.Print):
            values = [self._eval_expr(value, env) for value in stmt.values]
            self.runtime_ctx.print_values(values)
            return None
        if isinstance(stmt, ast.ExprStmt):
            self._eval_expr(stmt.value, env)
            return None
        if isinstance(stmt, ast.Block):
            return self._execute_block(stmt.statements, Environment(parent=env))
        if isinstance(stmt, ast.If):
            if truthy(self._eval_expr(stmt.condition, env)):
                return self._exec_stmt(stmt.then_block, env)
            if stmt.else_block is not None:
                return self._exec_stmt(stmt.else_block, env)
            return None
        if isinstance(stmt, ast.While):
            while truthy(self._eval_expr(stmt.condition, env)):
                signal = self._exec_stmt(stmt.body, env)
                if isinstance(signal, BreakSignal):
                    break
                if isinstance(signal, ReturnSignal):
                    return signal
            return None
        if isinstance(stmt, ast.For):
            return self._exec_for(stmt, env)
        if isinstance(stmt, ast.Return):
            value = self._eval_expr(stmt.value, env) if stmt.value is not None else None
            return ReturnSignal(value)
        if isinstance(stmt, ast.Break):
            return BREAK
        if isinstance(stmt, ast.Continue):
            return CONTINUE
        raise EvalError(f"Unsupported statement {stmt}")

    def _exec_for(self, stmt: ast.For, env: Environment) -> Optional[Signal]:
        if stmt.is_infinite:
            while True:
                signal = self._exec_stmt(stmt.body, env)
                if isinstance(signal, BreakSignal):
                    return None
                if isinstance(signal, ReturnSignal):
                    return signal
        if stmt.is_range:
            start = _require_int(self._eval_expr(stmt.iterable, env), "Range start")
            end = _require_int(self._eval_expr(stmt.range_end, env), "Range end")
            step = 1 if start <= end else -1
            items: Sequence[object] = range(start, end + step, step)
        else:
            container = self._eval_expr(stmt.iterable, env)
            if not isinstance(container, (ArrayValue, TupleValue)):
                raise EvalError(f"Cannot iterate over {type_of(container)}")
            items = container.snapshot()
        for item in items:
            frame = env
            if stmt.variable is not None:
                frame = Environment(parent=env)
                frame.define(stmt.variable, item)
            signal = self._exec_stmt(stmt.body, frame)
            if isinstance(signal, BreakSignal):
                break
            if isinstance(signal, ReturnSignal):
                return signal
        return None

    def _assign(self, target: ast.Expr, value: object, env: Environment) -> None:
        if isinstance(target, ast.Reference):
            env.set(target.name, value)
            return
        if isinstance(target, ast.Index):
            container = self._eval_expr(target.value, env)
            index = _require_int(self._eval_expr(target.index, env), "Index")
            if not isinstance(container, (ArrayValue, TupleValue)):
                raise EvalError(f"Cannot index into {type_of(container)}")
            container.set(index, value)
            return
        if isinstance(target, ast.Member):
            container = self._eval_expr(target.value, env)
            if not isinstance(container, TupleValue):
                raise EvalError(f"Cannot access member '{target.member}' of {type_of(container)}")
            container.set(target.member, value)
            return
        raise EvalError("Invalid assignment target")

    # Expressions

    def _eval_expr(self, expr: ast.Expr, env: Environment) -> object:
        try:
            return self._eval(expr, env)
        except EvalError as exc:
            if not exc.located:
                exc.locate(expr.loc)
            raise

    def _eval(self, expr: ast.Expr, env: Environment) -> object:
        if isinstance(expr, ast.Literal):
            return expr.value
        if isinstance(expr, ast.Reference):
            return env.get(expr.name)
        if isinstance(expr, ast.Binary):
            # Both sides always run; logical operators do not short-circuit.
            left = self._eval_expr(expr.left, env)
            right = self._eval_expr(expr.right, env)
            return binary_op(expr.op, left, right)
        if isinstance(expr, ast.Unary):
            return unary_op(expr.op, self._eval_expr(expr.operand, env))
        if isinstance(expr, ast.Call):
            func = self._eval_expr(expr.func, env)
            args = [self._eval_expr(arg, env) for arg in expr.args]
            return self._invoke(func, args)
        if isinstance(expr, ast.Index):
            container = self._eval_expr(expr.value, env)
            index = _require_int(self._eval_expr(expr.index, env), "Index")
            if not isinstance(container, (ArrayValue, TupleValue)):
                raise EvalError(f"Cannot index into {type_of(container)}")
            return container.get(index)
        if isinstance(expr, ast.Member):
            container = self._eval_expr(expr.value, env)
            if not isinstance(container, TupleValue):
                raise EvalError(f"Cannot access member '{expr.member}' of {type_of(container)}")
            return container.get(expr.member)
        if isinstance(expr, ast.ArrayLiteral):
            return ArrayValue([self._eval_expr(element, env) for element in expr.elements])
        if isinstance(expr, ast.TupleLiteral):
            result = TupleValue()
            for entry in expr.entries:
                result.append(entry.name, self._eval_expr(entry.value, env))
            return result
        if isinstance(expr, ast.FunctionLiteral):
            return FunctionValue(definition=expr, closure=env)
        if isinstance(expr, ast.TypeCheck):
            value = self._eval_expr(expr.value, env)
            try:
                expected = resolve_indicator(expr.indicator)
            except TypeSystemError as exc:
                raise EvalError(str(exc)) from exc
            return type_of(value) == expected
        raise EvalError(f"Unsupported expression {expr}")

    def _invoke(self, func: object, args: Sequence[object]) -> object:
        if not isinstance(func, FunctionValue):
            raise EvalError(f"Cannot call value of type {type_of(func)}")
        definition = func.definition
        if len(args) != len(definition.params):
            raise EvalError(f"Function expects {len(definition.params)} arguments, got {len(args)}")
        # The call frame hangs off the captured frame, not the caller's.
        frame = Environment(parent=func.closure)
        for param, value in zip(definition.params, args):
            frame.define(param, value)
        if definition.expression is not None:
            return self._eval_expr(definition.expression, frame)
        signal = self._execute_block(definition.statements, frame)
        if isinstance(signal, ReturnSignal):
            return signal.value
        if signal is not None:
            raise EvalError(_STRAY_SIGNAL_MESSAGES[type(signal)])
        return None


def interpret(program: ast.Program, stdout=None) -> List[Diagnostic]:
    return Interpreter(stdout=stdout).run(program)
