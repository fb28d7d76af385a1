"""
Recursive-descent parser for Dee.

The parser pulls tokens from the lexer one at a time and keeps a single token of
lookahead. Expression precedence, lowest to highest:

  1. or and xor             (one level, left-associative)
  2. < <= > >= = == /= !=
  3. + -
  4. * /
  5. unary + - not
  6. postfix: call, index, .member, `is` type check
  7. primaries

The first syntax error aborts parsing; there is no recovery.
"""

from __future__ import annotations

from typing import Callable, FrozenSet, List, Optional, TypeVar

from . import ast
from . import token as T
from .diagnostics import ParseError
from .lexer import Lexer
from .token import Token

_Item = TypeVar("_Item")

_LOGICAL_OPS = frozenset({T.AND, T.OR, T.XOR})
_COMPARISON_OPS = frozenset({T.LT, T.LE, T.GT, T.GE, T.EQ, T.NOT_EQ})
_ADDITIVE_OPS = frozenset({T.PLUS, T.MINUS})
_MULTIPLICATIVE_OPS = frozenset({T.STAR, T.SLASH})
_UNARY_OPS = frozenset({T.PLUS, T.MINUS, T.NOT})

_LITERAL_KINDS = frozenset({T.INTEGER, T.REAL, T.STRING, T.TRUE, T.FALSE, T.NONE})

_TYPE_WORDS = frozenset(
    {T.INT_TYPE, T.REAL_TYPE, T.BOOL_TYPE, T.STRING_TYPE, T.ARRAY_TYPE, T.TUPLE_TYPE, T.FUNC, T.NONE}
)

# Tokens that end a statement list without needing a separator first.
_BLOCK_END = frozenset({T.END, T.ELSE, T.EOF})


def _loc(tok: Token) -> ast.Located:
    return ast.Located(line=tok.line, column=tok.column)


class Parser:
    def __init__(self, lexer: Lexer) -> None:
        self.lexer = lexer
        self.current = lexer.next_token()

    def parse(self) -> ast.Program:
        statements = self._statement_list(frozenset({T.EOF}), "end of input")
        self._expect(T.EOF, "end of input")
        return ast.Program(statements=tuple(statements), loc=ast.Located(line=1, column=1))

    # Token plumbing

    def _advance(self) -> Token:
        tok = self.current
        if tok.kind != T.EOF:
            self.current = self.lexer.next_token()
        return tok

    def _check(self, *kinds: str) -> bool:
        return self.current.kind in kinds

    def _match(self, *kinds: str) -> Optional[Token]:
        if self.current.kind in kinds:
            return self._advance()
        return None

    def _expect(self, kind: str, what: str) -> Token:
        if self.current.kind != kind:
            raise self._error(f"Expected {what} but found {self.current.describe()}")
        return self._advance()

    def _error(self, message: str, tok: Optional[Token] = None) -> ParseError:
        tok = tok or self.current
        return ParseError(message, tok.line, tok.column)

    def _skip_separators(self) -> None:
        while self.current.kind in T.SEPARATORS:
            self._advance()

    def _skip_newlines(self) -> None:
        while self.current.kind == T.NEWLINE:
            self._advance()

    def _expect_identifier(self) -> Token:
        if self.current.kind in T.RESERVED_TYPE_WORDS:
            raise self._error(f"Reserved word '{self.current.text}' cannot be used as an identifier")
        return self._expect(T.IDENT, "identifier")

    # Statements

    def _statement_list(self, terminators: FrozenSet[str], expected: str) -> List[ast.Stmt]:
        statements: List[ast.Stmt] = []
        self._skip_separators()
        while not self._check(*terminators):
            if self._check(T.EOF):
                raise self._error(f"Expected {expected} but found end of input")
            statements.append(self._statement())
            if self._check(*terminators) or self._check(*_BLOCK_END):
                continue
            if not self._check(*T.SEPARATORS):
                raise self._error(f"Expected ';' or newline but found {self.current.describe()}")
            self._skip_separators()
        return statements

    def _statement(self) -> ast.Stmt:
        kind = self.current.kind
        if kind == T.VAR:
            return self._declaration()
        if kind == T.PRINT:
            return self._print()
        if kind == T.IF:
            return self._if()
        if kind == T.WHILE:
            return self._while()
        if kind == T.FOR:
            return self._for()
        if kind == T.LOOP:
            return self._loop()
        if kind == T.RETURN:
            return self._return()
        if kind == T.EXIT:
            return ast.Break(loc=_loc(self._advance()))
        if kind == T.CONTINUE:
            return ast.Continue(loc=_loc(self._advance()))
        return self._assignment_or_expression()

    def _declaration(self) -> ast.Declaration:
        start = self._advance()
        variables = [self._var_def()]
        while self._match(T.COMMA):
            variables.append(self._var_def())
        return ast.Declaration(loc=_loc(start), variables=tuple(variables))

    def _var_def(self) -> ast.VarDef:
        name = self._expect_identifier()
        initializer = None
        if self._match(T.ASSIGN):
            initializer = self._expression()
        return ast.VarDef(name=name.text, initializer=initializer)

    def _print(self) -> ast.Print:
        start = self._advance()
        values = [self._expression()]
        while self._match(T.COMMA):
            self._skip_newlines()
            values.append(self._expression())
        return ast.Print(loc=_loc(start), values=tuple(values))

    def _if(self) -> ast.If:
        start = self._advance()
        condition = self._expression()
        then_tok = self._match(T.THEN)
        if then_tok is not None:
            then_block = ast.Block(
                loc=_loc(then_tok),
                statements=tuple(self._statement_list(frozenset({T.ELSE, T.END}), "'else' or 'end'")),
            )
            else_block = None
            else_tok = self._match(T.ELSE)
            if else_tok is not None:
                else_block = self._block_until_end(else_tok)
            self._expect(T.END, "'end'")
            return ast.If(loc=_loc(start), condition=condition, then_block=then_block, else_block=else_block)
        arrow = self._match(T.ARROW)
        if arrow is not None:
            body = self._statement()
            return ast.If(
                loc=_loc(start),
                condition=condition,
                then_block=ast.Block(loc=_loc(arrow), statements=(body,)),
            )
        raise self._error(f"Expected 'then' or '=>' but found {self.current.describe()}")

    def _while(self) -> ast.While:
        start = self._advance()
        condition = self._expression()
        loop_tok = self._expect(T.LOOP, "'loop'")
        body = self._block_until_end(loop_tok)
        self._expect(T.END, "'end'")
        return ast.While(loc=_loc(start), condition=condition, body=body)

    def _for(self) -> ast.For:
        start = self._advance()
        variable = None
        if self.current.kind in T.RESERVED_TYPE_WORDS:
            raise self._error(f"Reserved word '{self.current.text}' cannot be used as an identifier")
        source = self._expression()
        if isinstance(source, ast.Reference) and self._match(T.IN):
            variable = source.name
            source = self._expression()
        range_end = None
        if self._match(T.RANGE):
            range_end = self._expression()
        loop_tok = self._expect(T.LOOP, "'loop'")
        body = self._block_until_end(loop_tok)
        self._expect(T.END, "'end'")
        return ast.For(loc=_loc(start), variable=variable, body=body, iterable=source, range_end=range_end)

    def _loop(self) -> ast.For:
        start = self._advance()
        body = self._block_until_end(start)
        self._expect(T.END, "'end'")
        return ast.For(loc=_loc(start), variable=None, body=body)

    def _block_until_end(self, opener: Token) -> ast.Block:
        statements = self._statement_list(frozenset({T.END}), "'end'")
        return ast.Block(loc=_loc(opener), statements=tuple(statements))

    def _return(self) -> ast.Return:
        start = self._advance()
        if self._check(*T.SEPARATORS) or self._check(*_BLOCK_END):
            return ast.Return(loc=_loc(start))
        return ast.Return(loc=_loc(start), value=self._expression())

    def _assignment_or_expression(self) -> ast.Stmt:
        start = self.current
        expr = self._expression()
        if self._match(T.ASSIGN):
            if not isinstance(expr, ast.ASSIGNABLE):
                raise self._error("Invalid assignment target", start)
            value = self._expression()
            return ast.Assign(loc=_loc(start), target=expr, value=value)
        return ast.ExprStmt(loc=_loc(start), value=expr)

    # Expressions

    def _expression(self) -> ast.Expr:
        return self._binary_level(_LOGICAL_OPS, self._comparison)

    def _comparison(self) -> ast.Expr:
        return self._binary_level(_COMPARISON_OPS, self._additive)

    def _additive(self) -> ast.Expr:
        return self._binary_level(_ADDITIVE_OPS, self._multiplicative)

    def _multiplicative(self) -> ast.Expr:
        return self._binary_level(_MULTIPLICATIVE_OPS, self._unary)

    def _binary_level(self, ops: FrozenSet[str], operand: Callable[[], ast.Expr]) -> ast.Expr:
        left = operand()
        while self.current.kind in ops:
            op = self._advance()
            right = operand()
            left = ast.Binary(loc=_loc(op), op=op.text, left=left, right=right)
        return left

    def _unary(self) -> ast.Expr:
        if self.current.kind in _UNARY_OPS:
            op = self._advance()
            return ast.Unary(loc=_loc(op), op=op.text, operand=self._unary())
        return self._postfix()

    def _postfix(self) -> ast.Expr:
        expr = self._primary()
        while True:
            tok = self.current
            if self._match(T.LPAREN):
                args = self._comma_list(T.RPAREN, "')'", self._expression)
                expr = ast.Call(loc=_loc(tok), func=expr, args=tuple(args))
            elif self._match(T.LBRACKET):
                self._skip_newlines()
                index = self._expression()
                self._skip_newlines()
                self._expect(T.RBRACKET, "']'")
                expr = ast.Index(loc=_loc(tok), value=expr, index=index)
            elif self._match(T.DOT):
                expr = self._member(expr, tok)
            elif self._match(T.IS):
                expr = ast.TypeCheck(loc=_loc(tok), value=expr, indicator=self._type_indicator())
            else:
                return expr

    def _member(self, target: ast.Expr, dot: Token) -> ast.Expr:
        tok = self.current
        if tok.kind == T.IDENT:
            self._advance()
            return ast.Member(loc=_loc(dot), value=target, member=tok.text)
        if tok.kind == T.INTEGER:
            self._advance()
            return ast.Member(loc=_loc(dot), value=target, member=int(tok.text))
        if tok.kind == T.REAL:
            # `t.1.2` arrives as IDENT DOT REAL("1.2"): two positional accesses.
            self._advance()
            first, second = tok.text.split(".")
            inner = ast.Member(loc=_loc(dot), value=target, member=int(first))
            return ast.Member(loc=_loc(tok), value=inner, member=int(second))
        if tok.kind in T.RESERVED_TYPE_WORDS:
            raise self._error(f"Reserved word '{tok.text}' cannot be used as an identifier")
        raise self._error(f"Expected member name or index but found {tok.describe()}")

    def _type_indicator(self) -> str:
        tok = self.current
        if tok.kind in _TYPE_WORDS or tok.kind == T.IDENT:
            self._advance()
            return tok.text
        if self._match(T.LBRACKET):
            self._expect(T.RBRACKET, "']'")
            return "[]"
        if self._match(T.LBRACE):
            self._expect(T.RBRACE, "'}'")
            return "{}"
        raise self._error(f"Expected type indicator but found {tok.describe()}")

    def _primary(self) -> ast.Expr:
        tok = self.current
        if tok.kind in _LITERAL_KINDS:
            self._advance()
            return ast.Literal.of(tok.value, _loc(tok))
        if tok.kind == T.IDENT:
            self._advance()
            return ast.Reference(loc=_loc(tok), name=tok.text)
        if tok.kind == T.LPAREN:
            self._advance()
            self._skip_newlines()
            expr = self._expression()
            self._skip_newlines()
            self._expect(T.RPAREN, "')'")
            return expr
        if tok.kind == T.LBRACKET:
            self._advance()
            elements = self._comma_list(T.RBRACKET, "']'", self._expression)
            return ast.ArrayLiteral(loc=_loc(tok), elements=tuple(elements))
        if tok.kind == T.LBRACE:
            self._advance()
            entries = self._comma_list(T.RBRACE, "'}'", self._tuple_entry)
            return ast.TupleLiteral(loc=_loc(tok), entries=tuple(entries))
        if tok.kind == T.FUNC:
            return self._function_literal()
        if tok.kind in T.RESERVED_TYPE_WORDS:
            raise self._error(f"Reserved word '{tok.text}' cannot be used as an identifier")
        if tok.kind == T.EOF:
            raise self._error("Unexpected end of input")
        raise self._error(f"Unexpected token {tok.describe()}")

    def _tuple_entry(self) -> ast.TupleEntry:
        value = self._expression()
        if isinstance(value, ast.Reference) and self._match(T.ASSIGN):
            return ast.TupleEntry(name=value.name, value=self._expression())
        return ast.TupleEntry(name=None, value=value)

    def _function_literal(self) -> ast.FunctionLiteral:
        start = self._advance()
        params: List[str] = []
        if self._match(T.LPAREN):
            params = [tok.text for tok in self._comma_list(T.RPAREN, "')'", self._expect_identifier)]
        if self._match(T.IS):
            statements = self._statement_list(frozenset({T.END}), "'end'")
            self._expect(T.END, "'end'")
            return ast.FunctionLiteral(loc=_loc(start), params=tuple(params), statements=tuple(statements))
        if self._match(T.ARROW, T.THIN_ARROW):
            return ast.FunctionLiteral(loc=_loc(start), params=tuple(params), expression=self._expression())
        raise self._error(f"Expected 'is', '=>' or '->' but found {self.current.describe()}")

    def _comma_list(self, closing: str, what: str, item: Callable[[], _Item]) -> List[_Item]:
        items: List[_Item] = []
        self._skip_newlines()
        if self._match(closing):
            return items
        while True:
            items.append(item())
            self._skip_newlines()
            if self._match(T.COMMA):
                self._skip_newlines()
                continue
            self._expect(closing, what)
            return items


def parse_program(source: str) -> ast.Program:
    return Parser(Lexer(source)).parse()
