"""
Diagnostics and the error hierarchy shared by every stage.

Lexer and parser failures are raised (first error aborts); the checker and the
optimizer collect `Diagnostic` records; the interpreter raises `EvalError`
internally and turns each one into a diagnostic at the top-level statement
boundary. Line/column are 1-based, `(0, 0)` means "no specific location".
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional

from .ast import Located


class Severity(enum.Enum):
    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    message: str
    line: int = 0
    column: int = 0

    @classmethod
    def error(cls, message: str, loc: Optional[Located] = None) -> Diagnostic:
        return cls._at(Severity.ERROR, message, loc)

    @classmethod
    def info(cls, message: str, loc: Optional[Located] = None) -> Diagnostic:
        return cls._at(Severity.INFO, message, loc)

    @classmethod
    def _at(cls, severity: Severity, message: str, loc: Optional[Located]) -> Diagnostic:
        if loc is None:
            return cls(severity, message)
        return cls(severity, message, loc.line, loc.column)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        if self.line > 0 and self.column > 0:
            return f"{self.severity.value} at line {self.line}, column {self.column}: {self.message}"
        return f"{self.severity.value}: {self.message}"


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
    return any(diag.is_error for diag in diagnostics)


class DeeError(Exception):
    """Base class for located failures raised by the toolchain."""

    def __init__(self, message: str, line: int = 0, column: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    @property
    def located(self) -> bool:
        return self.line > 0 or self.column > 0

    def locate(self, loc: Located) -> None:
        self.line = loc.line
        self.column = loc.column

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(Severity.ERROR, self.message, self.line, self.column)

    def __str__(self) -> str:
        if self.located:
            return f"{self.line}:{self.column}: {self.message}"
        return self.message


class LexError(DeeError):
    pass


class ParseError(DeeError):
    pass


class EvalError(DeeError):
    """Runtime failure; unlocated instances get the position of the failing node."""
