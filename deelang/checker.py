from __future__ import annotations

import logging
from typing import List, Optional, Set

from . import ast
from .diagnostics import Diagnostic

logger = logging.getLogger(__name__)

GLOBAL = "global"
FUNCTION = "function"
LOOP = "loop"


class Scope:
    def __init__(self, parent: Optional[Scope] = None) -> None:
        self.parent = parent
        self.names: Set[str] = set()

    def define(self, name: str) -> bool:
        if name in self.names:
            return False
        self.names.add(name)
        return True

    def lookup(self, name: str) -> bool:
        if name in self.names:
            return True
        if self.parent:
            return self.parent.lookup(name)
        return False


class Checker:
    """
    Scope and context validation. Frames are opened exactly where the
    interpreter will open environment frames, so a name that resolves here
    resolves at run time too. Every problem is collected; nothing is raised.
    """

    def __init__(self) -> None:
        self.diagnostics: List[Diagnostic] = []
        self.scope = Scope()
        self.contexts: List[str] = [GLOBAL]
        self.declared = 0

    def check(self, program: ast.Program) -> List[Diagnostic]:
        self.diagnostics = []
        self.scope = Scope()
        self.contexts = [GLOBAL]
        self.declared = 0
        for stmt in program.statements:
            self._check_stmt(stmt)
        logger.debug("checked %d declarations, %d diagnostics", self.declared, len(self.diagnostics))
        return list(self.diagnostics)

    def _error(self, message: str, loc: ast.Located) -> None:
        self.diagnostics.append(Diagnostic.error(message, loc))

    def _push_scope(self) -> Scope:
        self.scope = Scope(parent=self.scope)
        return self.scope

    def _pop_scope(self) -> None:
        assert self.scope.parent is not None
        self.scope = self.scope.parent

    def _declare(self, name: str, loc: ast.Located) -> None:
        self.declared += 1
        if not self.scope.define(name):
            self._error(f"Variable '{name}' is already declared in this scope", loc)

    def _in_context(self, kind: str) -> bool:
        return kind in self.contexts

    # Statements

    def _check_block(self, block: ast.Block) -> None:
        self._push_scope()
        try:
            for stmt in block.statements:
                self._check_stmt(stmt)
        finally:
            self._pop_scope()

    def _check_loop_body(self, variable: Optional[str], body: ast.Block, loc: ast.Located) -> None:
        self.contexts.append(LOOP)
        if variable is not None:
            self._push_scope()
            self._declare(variable, loc)
        try:
            self._check_block(body)
        finally:
            if variable is not None:
                self._pop_scope()
            self.contexts.pop()

    def _check_stmt(self, stmt: ast.Stmt) -> None:
        if isinstance(stmt, ast.Declaration):
            # Names first: initializers may refer to any name of the same statement.
            for var in stmt.variables:
                self._declare(var.name, stmt.loc)
            for var in stmt.variables:
                if var.initializer is not None:
                    self._check_expr(var.initializer)
            return
        if isinstance(stmt, ast.Assign):
            self._check_expr(stmt.value)
            self._check_expr(stmt.target)
            return
        if isinstance(stmt, ast.Block):
            self._check_block(stmt)
            return
        if isinstance(stmt, ast.If):
            self._check_expr(stmt.condition)
            self._check_block(stmt.then_block)
            if stmt.else_block is not None:
                self._check_block(stmt.else_block)
            return
        if isinstance(stmt, ast.While):
            self._check_expr(stmt.condition)
            self._check_loop_body(None, stmt.body, stmt.loc)
            return
        if isinstance(stmt, ast.For):
            if stmt.iterable is not None:
                self._check_expr(stmt.iterable)
            if stmt.range_end is not None:
                self._check_expr(stmt.range_end)
            self._check_loop_body(stmt.variable, stmt.body, stmt.loc)
            return
        if isinstance(stmt, ast.Return):
            if not self._in_context(FUNCTION):
                self._error("Return statement outside function", stmt.loc)
            if stmt.value is not None:
                self._check_expr(stmt.value)
            return
        if isinstance(stmt, ast.Break):
            if not self._in_context(LOOP):
                self._error("'exit' statement outside loop", stmt.loc)
            return
        if isinstance(stmt, ast.Continue):
            if not self._in_context(LOOP):
                self._error("'continue' statement outside loop", stmt.loc)
            return
        if isinstance(stmt, ast.Print):
            for value in stmt.values:
                self._check_expr(value)
            return
        if isinstance(stmt, ast.ExprStmt):
            self._check_expr(stmt.value)
            return
        raise TypeError(f"Unsupported statement {stmt!r}")

    # Expressions

    def _check_expr(self, expr: ast.Expr) -> None:
        if isinstance(expr, ast.Literal):
            return
        if isinstance(expr, ast.Reference):
            if not self.scope.lookup(expr.name):
                self._error(f"Variable '{expr.name}' is not declared", expr.loc)
            return
        if isinstance(expr, ast.Binary):
            self._check_expr(expr.left)
            self._check_expr(expr.right)
            return
        if isinstance(expr, ast.Unary):
            self._check_expr(expr.operand)
            return
        if isinstance(expr, ast.Call):
            self._check_expr(expr.func)
            for arg in expr.args:
                self._check_expr(arg)
            return
        if isinstance(expr, ast.Index):
            self._check_expr(expr.value)
            self._check_expr(expr.index)
            return
        if isinstance(expr, ast.ArrayLiteral):
            for element in expr.elements:
                self._check_expr(element)
            return
        if isinstance(expr, ast.TupleLiteral):
            for entry in expr.entries:
                self._check_expr(entry.value)
            return
        if isinstance(expr, (ast.Member, ast.TypeCheck)):
            self._check_expr(expr.value)
            return
        if isinstance(expr, ast.FunctionLiteral):
            self._check_function(expr)
            return
        raise TypeError(f"Unsupported expression {expr!r}")

    def _check_function(self, fn: ast.FunctionLiteral) -> None:
        self.contexts.append(FUNCTION)
        scope = self._push_scope()
        try:
            for param in fn.params:
                if not scope.define(param):
                    self._error(f"Duplicate parameter '{param}'", fn.loc)
            if fn.expression is not None:
                self._check_expr(fn.expression)
            for stmt in fn.statements:
                self._check_stmt(stmt)
        finally:
            self._pop_scope()
            self.contexts.pop()


def analyze(program: ast.Program) -> List[Diagnostic]:
    return Checker().check(program)
