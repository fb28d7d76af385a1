from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class Located:
    line: int
    column: int


NOWHERE = Located(line=0, column=0)


class Stmt:
    loc: Located


class Expr:
    loc: Located


# Statements


@dataclass(frozen=True)
class Program:
    statements: Tuple[Stmt, ...]
    loc: Located = NOWHERE


@dataclass(frozen=True)
class VarDef:
    name: str
    initializer: Optional[Expr] = None


@dataclass(frozen=True)
class Declaration(Stmt):
    loc: Located
    variables: Tuple[VarDef, ...]

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(var.name for var in self.variables)


@dataclass(frozen=True)
class Assign(Stmt):
    loc: Located
    target: Expr
    value: Expr


@dataclass(frozen=True)
class Block(Stmt):
    loc: Located
    statements: Tuple[Stmt, ...]


@dataclass(frozen=True)
class If(Stmt):
    loc: Located
    condition: Expr
    then_block: Block
    else_block: Optional[Block] = None


@dataclass(frozen=True)
class While(Stmt):
    loc: Located
    condition: Expr
    body: Block


@dataclass(frozen=True)
class For(Stmt):
    """
    One node for the three loop shapes:

    * infinite:  `loop ... end`                      (iterable and range_end unset)
    * range:     `for [v in] START..END loop ... end` (iterable is START)
    * iterable:  `for [v in] EXPR loop ... end`       (range_end unset)
    """

    loc: Located
    variable: Optional[str]
    body: Block
    iterable: Optional[Expr] = None
    range_end: Optional[Expr] = None

    @property
    def is_infinite(self) -> bool:
        return self.iterable is None

    @property
    def is_range(self) -> bool:
        return self.iterable is not None and self.range_end is not None

    @property
    def is_iterable(self) -> bool:
        return self.iterable is not None and self.range_end is None


@dataclass(frozen=True)
class Return(Stmt):
    loc: Located
    value: Optional[Expr] = None


@dataclass(frozen=True)
class Break(Stmt):
    loc: Located


@dataclass(frozen=True)
class Continue(Stmt):
    loc: Located


@dataclass(frozen=True)
class Print(Stmt):
    loc: Located
    values: Tuple[Expr, ...]


@dataclass(frozen=True)
class ExprStmt(Stmt):
    loc: Located
    value: Expr


# Expressions

INT = "int"
REAL = "real"
BOOL = "bool"
STRING = "string"
NONE = "none"


@dataclass(frozen=True)
class Literal(Expr):
    loc: Located
    value: object
    kind: str

    @classmethod
    def of(cls, value: object, loc: Located) -> Literal:
        if value is None:
            return cls(loc, None, NONE)
        if isinstance(value, bool):
            return cls(loc, value, BOOL)
        if isinstance(value, int):
            return cls(loc, value, INT)
        if isinstance(value, float):
            return cls(loc, value, REAL)
        if isinstance(value, str):
            return cls(loc, value, STRING)
        raise TypeError(f"no literal form for {value!r}")


@dataclass(frozen=True)
class Reference(Expr):
    loc: Located
    name: str


@dataclass(frozen=True)
class Binary(Expr):
    loc: Located
    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True)
class Unary(Expr):
    loc: Located
    op: str
    operand: Expr


@dataclass(frozen=True)
class Call(Expr):
    loc: Located
    func: Expr
    args: Tuple[Expr, ...]


@dataclass(frozen=True)
class Index(Expr):
    loc: Located
    value: Expr
    index: Expr


@dataclass(frozen=True)
class ArrayLiteral(Expr):
    loc: Located
    elements: Tuple[Expr, ...]


@dataclass(frozen=True)
class TupleEntry:
    name: Optional[str]
    value: Expr


@dataclass(frozen=True)
class TupleLiteral(Expr):
    loc: Located
    entries: Tuple[TupleEntry, ...]


@dataclass(frozen=True)
class FunctionLiteral(Expr):
    """`func(params) is ... end` carries `statements`; `=>`/`->` forms carry `expression`."""

    loc: Located
    params: Tuple[str, ...]
    statements: Tuple[Stmt, ...] = ()
    expression: Optional[Expr] = None

    @property
    def is_expression_body(self) -> bool:
        return self.expression is not None


@dataclass(frozen=True)
class TypeCheck(Expr):
    loc: Located
    value: Expr
    indicator: str


@dataclass(frozen=True)
class Member(Expr):
    """Tuple member access: `.name` or 1-based `.N`."""

    loc: Located
    value: Expr
    member: Union[str, int]

    @property
    def is_index(self) -> bool:
        return isinstance(self.member, int)


ASSIGNABLE = (Reference, Index, Member)
