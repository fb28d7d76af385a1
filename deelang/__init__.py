"""Dee: lexer, parser, checker, optimizer and tree-walking interpreter."""

import logging

from .checker import analyze
from .diagnostics import DeeError, Diagnostic, EvalError, LexError, ParseError, Severity
from .driver import RunOptions, RunResult, run_source
from .interp import interpret
from .optimizer import optimize
from .parser import parse_program as parse

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "DeeError",
    "Diagnostic",
    "EvalError",
    "LexError",
    "ParseError",
    "RunOptions",
    "RunResult",
    "Severity",
    "analyze",
    "interpret",
    "optimize",
    "parse",
    "run_source",
]
