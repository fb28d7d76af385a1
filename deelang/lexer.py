from __future__ import annotations

from typing import Dict, List, Optional

from . import token as T
from .diagnostics import LexError
from .numeric import int_from_text
from .token import Token

_TWO_CHAR_TOKENS: Dict[str, str] = {
    ":=": T.ASSIGN,
    "=>": T.ARROW,
    "->": T.THIN_ARROW,
    "..": T.RANGE,
    "==": T.EQ,
    "!=": T.NOT_EQ,
    "/=": T.NOT_EQ,
    "<=": T.LE,
    ">=": T.GE,
}

_ONE_CHAR_TOKENS: Dict[str, str] = {
    "+": T.PLUS,
    "-": T.MINUS,
    "*": T.STAR,
    "/": T.SLASH,
    "=": T.EQ,
    "<": T.LT,
    ">": T.GT,
    "(": T.LPAREN,
    ")": T.RPAREN,
    "[": T.LBRACKET,
    "]": T.RBRACKET,
    "{": T.LBRACE,
    "}": T.RBRACE,
    ",": T.COMMA,
    ";": T.SEMICOLON,
    ".": T.DOT,
}

_ESCAPES: Dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "'": "'",
}


def _is_digit(ch: Optional[str]) -> bool:
    return ch is not None and "0" <= ch <= "9"


def _is_ident_start(ch: Optional[str]) -> bool:
    return ch is not None and (ch.isalpha() or ch == "_")


def _is_ident_part(ch: Optional[str]) -> bool:
    return ch is not None and (ch.isalnum() or ch == "_")


class Lexer:
    """Pull-model scanner: the parser calls `next_token()` whenever it advances."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    def next_token(self) -> Token:
        self._skip_trivia()
        if self.pos >= len(self.source):
            return Token(T.EOF, None, self.line, self.column, "")

        ch = self.source[self.pos]
        line, column = self.line, self.column

        if ch == "\n":
            self._advance()
            return Token(T.NEWLINE, "\n", line, column, "\n")

        pair = self.source[self.pos : self.pos + 2]
        kind = _TWO_CHAR_TOKENS.get(pair)
        if kind is not None:
            self._advance(2)
            return Token(kind, pair, line, column, pair)

        if _is_digit(ch):
            return self._scan_number()
        if ch in ("'", '"'):
            return self._scan_string(ch)
        if _is_ident_start(ch):
            return self._scan_word()

        kind = _ONE_CHAR_TOKENS.get(ch)
        if kind is not None:
            self._advance()
            return Token(kind, ch, line, column, ch)

        raise LexError(f"Unexpected character: '{ch}'", line, column)

    def _peek(self, offset: int = 0) -> Optional[str]:
        index = self.pos + offset
        if index < len(self.source):
            return self.source[index]
        return None

    def _advance(self, count: int = 1) -> None:
        for _ in range(count):
            if self.pos >= len(self.source):
                return
            if self.source[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def _skip_trivia(self) -> None:
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in " \t\r":
                self._advance()
            elif ch == "/" and self._peek(1) == "=":
                # `/=` is the inequality operator, not a comment opener.
                return
            elif ch == "/" and self._peek(1) == "/":
                while self.pos < len(self.source) and self.source[self.pos] != "\n":
                    self._advance()
            elif ch == "/" and self._peek(1) == "*":
                self._skip_block_comment()
            else:
                return

    def _skip_block_comment(self) -> None:
        line, column = self.line, self.column
        self._advance(2)
        while self.pos < len(self.source):
            if self.source[self.pos] == "*" and self._peek(1) == "/":
                self._advance(2)
                return
            self._advance()
        raise LexError("Unterminated multi-line comment", line, column)

    def _scan_number(self) -> Token:
        line, column = self.line, self.column
        start = self.pos
        while _is_digit(self._peek()):
            self._advance()
        # A '.' only belongs to the number when a digit follows; `1..5` is a range.
        if self._peek() == "." and _is_digit(self._peek(1)):
            self._advance()
            while _is_digit(self._peek()):
                self._advance()
            text = self.source[start : self.pos]
            return Token(T.REAL, float(text), line, column, text)
        text = self.source[start : self.pos]
        return Token(T.INTEGER, int_from_text(text), line, column, text)

    def _scan_string(self, quote: str) -> Token:
        line, column = self.line, self.column
        start = self.pos
        self._advance()
        chars: List[str] = []
        while True:
            ch = self._peek()
            if ch is None:
                raise LexError("Unterminated string literal", line, column)
            if ch == quote:
                self._advance()
                break
            if ch == "\\":
                self._advance()
                escaped = self._peek()
                if escaped is None:
                    raise LexError("Unterminated string literal", line, column)
                chars.append(_ESCAPES.get(escaped, escaped))
                self._advance()
                continue
            chars.append(ch)
            self._advance()
        return Token(T.STRING, "".join(chars), line, column, self.source[start : self.pos])

    def _scan_word(self) -> Token:
        line, column = self.line, self.column
        start = self.pos
        while _is_ident_part(self._peek()):
            self._advance()
        text = self.source[start : self.pos]
        kind = T.KEYWORDS.get(text, T.IDENT)
        value: object = text
        if kind == T.TRUE:
            value = True
        elif kind == T.FALSE:
            value = False
        elif kind == T.NONE:
            value = None
        return Token(kind, value, line, column, text)


def tokenize(source: str) -> List[Token]:
    lexer = Lexer(source)
    tokens: List[Token] = []
    while True:
        tok = lexer.next_token()
        tokens.append(tok)
        if tok.kind == T.EOF:
            return tokens
