"""
AST optimizer.

One rewrite over the whole tree applies four rules:

* constant folding of unary/binary operators over literal operands,
* dead-branch elimination for `if` with a literal boolean condition,
* pruning of statements that follow a `return` in the same statement list,
* removal of declared variables that are never referenced anywhere.

Nodes are frozen, so every touched node is rebuilt with `dataclasses.replace`
and the input tree is left untouched. Each applied rule records an INFO
diagnostic; the optimizer never reports errors.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Set

from . import ast
from .diagnostics import Diagnostic, EvalError
from .ops import binary_op, unary_op
from .runtime import render

logger = logging.getLogger(__name__)

UNREACHABLE_AT_TOP_LEVEL = "Unreachable code detected after return"
UNREACHABLE_IN_BLOCK = "Unreachable code in block after return"


def _format_literal(node: ast.Literal) -> str:
    if node.kind == ast.STRING:
        return f'"{node.value}"'
    return render(node.value)


def collect_references(node: object, names: Optional[Set[str]] = None) -> Set[str]:
    """Every `Reference` name in the subtree, assignment targets and closures included."""
    if names is None:
        names = set()
    if isinstance(node, ast.Reference):
        names.add(node.name)
    elif isinstance(node, (ast.Program, ast.Block)):
        _collect_all(node.statements, names)
    elif isinstance(node, ast.Declaration):
        _collect_all((var.initializer for var in node.variables if var.initializer is not None), names)
    elif isinstance(node, ast.Assign):
        _collect_all((node.target, node.value), names)
    elif isinstance(node, ast.If):
        _collect_all((node.condition, node.then_block, node.else_block), names)
    elif isinstance(node, ast.While):
        _collect_all((node.condition, node.body), names)
    elif isinstance(node, ast.For):
        _collect_all((node.iterable, node.range_end, node.body), names)
    elif isinstance(node, ast.Return):
        collect_references(node.value, names)
    elif isinstance(node, ast.Print):
        _collect_all(node.values, names)
    elif isinstance(node, ast.ExprStmt):
        collect_references(node.value, names)
    elif isinstance(node, ast.Binary):
        _collect_all((node.left, node.right), names)
    elif isinstance(node, ast.Unary):
        collect_references(node.operand, names)
    elif isinstance(node, ast.Call):
        collect_references(node.func, names)
        _collect_all(node.args, names)
    elif isinstance(node, ast.Index):
        _collect_all((node.value, node.index), names)
    elif isinstance(node, ast.ArrayLiteral):
        _collect_all(node.elements, names)
    elif isinstance(node, ast.TupleLiteral):
        _collect_all((entry.value for entry in node.entries), names)
    elif isinstance(node, (ast.Member, ast.TypeCheck)):
        collect_references(node.value, names)
    elif isinstance(node, ast.FunctionLiteral):
        collect_references(node.expression, names)
        _collect_all(node.statements, names)
    return names


def _collect_all(nodes: Iterable[object], names: Set[str]) -> None:
    for node in nodes:
        if node is not None:
            collect_references(node, names)


class Optimizer:
    def __init__(self) -> None:
        self.diagnostics: List[Diagnostic] = []
        self.used: Set[str] = set()
        self.stmt_handlers: Dict[type, Callable[[ast.Stmt], Optional[ast.Stmt]]] = {
            ast.Declaration: self._rewrite_declaration,
            ast.Assign: self._rewrite_assign,
            ast.Block: self._rewrite_block,
            ast.If: self._rewrite_if,
            ast.While: self._rewrite_while,
            ast.For: self._rewrite_for,
            ast.Return: self._rewrite_return,
            ast.Break: lambda stmt: stmt,
            ast.Continue: lambda stmt: stmt,
            ast.Print: self._rewrite_print,
            ast.ExprStmt: self._rewrite_expr_stmt,
        }
        self.expr_handlers: Dict[type, Callable[[ast.Expr], ast.Expr]] = {
            ast.Literal: lambda expr: expr,
            ast.Reference: lambda expr: expr,
            ast.Binary: self._rewrite_binary,
            ast.Unary: self._rewrite_unary,
            ast.Call: self._rewrite_call,
            ast.Index: self._rewrite_index,
            ast.ArrayLiteral: self._rewrite_array,
            ast.TupleLiteral: self._rewrite_tuple,
            ast.FunctionLiteral: self._rewrite_function,
            ast.TypeCheck: self._rewrite_value_holder,
            ast.Member: self._rewrite_value_holder,
        }

    def optimize(self, program: ast.Program) -> ast.Program:
        self.diagnostics = []
        # The census runs on the untouched tree, before anything is removed.
        self.used = collect_references(program)
        statements = self._rewrite_statements(program.statements, UNREACHABLE_AT_TOP_LEVEL)
        logger.debug("optimizer applied %d rewrites", len(self.diagnostics))
        return replace(program, statements=statements)

    def _note(self, message: str, loc: ast.Located) -> None:
        logger.debug("%d:%d: %s", loc.line, loc.column, message)
        self.diagnostics.append(Diagnostic.info(message, loc))

    # Statements

    def rewrite_stmt(self, stmt: ast.Stmt) -> Optional[ast.Stmt]:
        handler = self.stmt_handlers.get(type(stmt))
        if handler is None:
            raise TypeError(f"Unsupported statement {stmt!r}")
        return handler(stmt)

    def _rewrite_statements(self, statements: Iterable[ast.Stmt], unreachable: str = UNREACHABLE_IN_BLOCK) -> tuple:
        result: List[ast.Stmt] = []
        returned = False
        for stmt in statements:
            if returned:
                self._note(unreachable, stmt.loc)
                continue
            rewritten = self.rewrite_stmt(stmt)
            if rewritten is None:
                continue
            result.append(rewritten)
            returned = isinstance(rewritten, ast.Return)
        return tuple(result)

    def _rewrite_block(self, block: ast.Block) -> ast.Block:
        return replace(block, statements=self._rewrite_statements(block.statements))

    def _rewrite_declaration(self, stmt: ast.Declaration) -> Optional[ast.Declaration]:
        kept: List[ast.VarDef] = []
        for var in stmt.variables:
            if var.name not in self.used and not var.name.startswith("_"):
                # The initializer goes with the variable, side effects included.
                self._note(f"Unused variable removal: '{var.name}'", stmt.loc)
                continue
            if var.initializer is not None:
                var = replace(var, initializer=self.rewrite_expr(var.initializer))
            kept.append(var)
        if not kept:
            return None
        return replace(stmt, variables=tuple(kept))

    def _rewrite_assign(self, stmt: ast.Assign) -> ast.Assign:
        return replace(stmt, target=self.rewrite_expr(stmt.target), value=self.rewrite_expr(stmt.value))

    def _rewrite_if(self, stmt: ast.If) -> ast.Stmt:
        condition = self.rewrite_expr(stmt.condition)
        if isinstance(condition, ast.Literal) and condition.kind == ast.BOOL:
            if condition.value:
                self._note("Dead branch elimination: if condition is always true, removing else branch", stmt.loc)
                return self._rewrite_block(stmt.then_block)
            if stmt.else_block is not None:
                self._note("Dead branch elimination: if condition is always false, removing then branch", stmt.loc)
                return self._rewrite_block(stmt.else_block)
            self._note("Dead branch elimination: if condition is always false, removing entire if statement", stmt.loc)
            return ast.Block(loc=stmt.loc, statements=())
        else_block = self._rewrite_block(stmt.else_block) if stmt.else_block is not None else None
        return replace(stmt, condition=condition, then_block=self._rewrite_block(stmt.then_block), else_block=else_block)

    def _rewrite_while(self, stmt: ast.While) -> ast.While:
        return replace(stmt, condition=self.rewrite_expr(stmt.condition), body=self._rewrite_block(stmt.body))

    def _rewrite_for(self, stmt: ast.For) -> ast.For:
        return replace(
            stmt,
            iterable=self._rewrite_optional(stmt.iterable),
            range_end=self._rewrite_optional(stmt.range_end),
            body=self._rewrite_block(stmt.body),
        )

    def _rewrite_return(self, stmt: ast.Return) -> ast.Return:
        return replace(stmt, value=self._rewrite_optional(stmt.value))

    def _rewrite_print(self, stmt: ast.Print) -> ast.Print:
        return replace(stmt, values=tuple(self.rewrite_expr(value) for value in stmt.values))

    def _rewrite_expr_stmt(self, stmt: ast.ExprStmt) -> ast.ExprStmt:
        return replace(stmt, value=self.rewrite_expr(stmt.value))

    # Expressions

    def rewrite_expr(self, expr: ast.Expr) -> ast.Expr:
        handler = self.expr_handlers.get(type(expr))
        if handler is None:
            raise TypeError(f"Unsupported expression {expr!r}")
        return handler(expr)

    def _rewrite_optional(self, expr: Optional[ast.Expr]) -> Optional[ast.Expr]:
        return self.rewrite_expr(expr) if expr is not None else None

    def _rewrite_binary(self, expr: ast.Binary) -> ast.Expr:
        left = self.rewrite_expr(expr.left)
        right = self.rewrite_expr(expr.right)
        if isinstance(left, ast.Literal) and isinstance(right, ast.Literal):
            try:
                value = binary_op(expr.op, left.value, right.value)
            except EvalError:
                # Left for the interpreter, which reports it with a position.
                value = _UNFOLDABLE
            if value is not _UNFOLDABLE:
                folded = ast.Literal.of(value, expr.loc)
                self._note(
                    f"Constant folding: {_format_literal(left)} {expr.op} {_format_literal(right)} -> {_format_literal(folded)}",
                    expr.loc,
                )
                return folded
        return replace(expr, left=left, right=right)

    def _rewrite_unary(self, expr: ast.Unary) -> ast.Expr:
        operand = self.rewrite_expr(expr.operand)
        if isinstance(operand, ast.Literal):
            try:
                value = unary_op(expr.op, operand.value)
            except EvalError:
                value = _UNFOLDABLE
            if value is not _UNFOLDABLE:
                folded = ast.Literal.of(value, expr.loc)
                self._note(
                    f"Constant folding: {expr.op} {_format_literal(operand)} -> {_format_literal(folded)}",
                    expr.loc,
                )
                return folded
        return replace(expr, operand=operand)

    def _rewrite_call(self, expr: ast.Call) -> ast.Call:
        return replace(expr, func=self.rewrite_expr(expr.func), args=tuple(self.rewrite_expr(arg) for arg in expr.args))

    def _rewrite_index(self, expr: ast.Index) -> ast.Index:
        return replace(expr, value=self.rewrite_expr(expr.value), index=self.rewrite_expr(expr.index))

    def _rewrite_array(self, expr: ast.ArrayLiteral) -> ast.ArrayLiteral:
        return replace(expr, elements=tuple(self.rewrite_expr(element) for element in expr.elements))

    def _rewrite_tuple(self, expr: ast.TupleLiteral) -> ast.TupleLiteral:
        entries = tuple(replace(entry, value=self.rewrite_expr(entry.value)) for entry in expr.entries)
        return replace(expr, entries=entries)

    def _rewrite_function(self, expr: ast.FunctionLiteral) -> ast.FunctionLiteral:
        if expr.expression is not None:
            return replace(expr, expression=self.rewrite_expr(expr.expression))
        return replace(expr, statements=self._rewrite_statements(expr.statements))

    def _rewrite_value_holder(self, expr: ast.Expr) -> ast.Expr:
        return replace(expr, value=self.rewrite_expr(expr.value))


_UNFOLDABLE = object()


def optimize(program: ast.Program, diagnostics: Optional[List[Diagnostic]] = None) -> ast.Program:
    optimizer = Optimizer()
    result = optimizer.optimize(program)
    if diagnostics is not None:
        diagnostics.extend(optimizer.diagnostics)
    return result
