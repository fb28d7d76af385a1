from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

# Literals and structure
INTEGER = "INTEGER"
REAL = "REAL"
STRING = "STRING"
IDENT = "IDENT"
NEWLINE = "NEWLINE"
EOF = "EOF"

# Keywords
VAR = "VAR"
IF = "IF"
THEN = "THEN"
ELSE = "ELSE"
END = "END"
WHILE = "WHILE"
FOR = "FOR"
IN = "IN"
LOOP = "LOOP"
EXIT = "EXIT"
CONTINUE = "CONTINUE"
FUNC = "FUNC"
IS = "IS"
RETURN = "RETURN"
PRINT = "PRINT"
TRUE = "TRUE"
FALSE = "FALSE"
NONE = "NONE"
AND = "AND"
OR = "OR"
XOR = "XOR"
NOT = "NOT"
INT_TYPE = "INT_TYPE"
REAL_TYPE = "REAL_TYPE"
BOOL_TYPE = "BOOL_TYPE"
STRING_TYPE = "STRING_TYPE"
ARRAY_TYPE = "ARRAY_TYPE"
TUPLE_TYPE = "TUPLE_TYPE"

# Operators and delimiters
ASSIGN = "ASSIGN"  # :=
ARROW = "ARROW"  # =>
THIN_ARROW = "THIN_ARROW"  # ->
RANGE = "RANGE"  # ..
PLUS = "PLUS"
MINUS = "MINUS"
STAR = "STAR"
SLASH = "SLASH"
EQ = "EQ"  # = and ==
NOT_EQ = "NOT_EQ"  # != and /=
LT = "LT"
LE = "LE"
GT = "GT"
GE = "GE"
LPAREN = "LPAREN"
RPAREN = "RPAREN"
LBRACKET = "LBRACKET"
RBRACKET = "RBRACKET"
LBRACE = "LBRACE"
RBRACE = "RBRACE"
COMMA = "COMMA"
SEMICOLON = "SEMICOLON"
DOT = "DOT"

KEYWORDS: Dict[str, str] = {
    "var": VAR,
    "if": IF,
    "then": THEN,
    "else": ELSE,
    "end": END,
    "while": WHILE,
    "for": FOR,
    "in": IN,
    "loop": LOOP,
    "exit": EXIT,
    "continue": CONTINUE,
    "func": FUNC,
    "is": IS,
    "return": RETURN,
    "print": PRINT,
    "true": TRUE,
    "false": FALSE,
    "none": NONE,
    "and": AND,
    "or": OR,
    "xor": XOR,
    "not": NOT,
    "int": INT_TYPE,
    "real": REAL_TYPE,
    "bool": BOOL_TYPE,
    "string": STRING_TYPE,
    "array": ARRAY_TYPE,
    "tuple": TUPLE_TYPE,
}

# Words that may only appear as type indicators.
RESERVED_TYPE_WORDS = frozenset({INT_TYPE, REAL_TYPE, BOOL_TYPE, STRING_TYPE, ARRAY_TYPE, TUPLE_TYPE})

SEPARATORS = frozenset({NEWLINE, SEMICOLON})


@dataclass(frozen=True)
class Token:
    kind: str
    value: object
    line: int
    column: int
    text: str = ""

    def describe(self) -> str:
        if self.kind == EOF:
            return "end of input"
        if self.kind == NEWLINE:
            return "newline"
        return f"'{self.text}'"
