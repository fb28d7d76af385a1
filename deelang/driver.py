"""
Staged pipeline: parse, analyze, optimize, interpret.

Each stage runs only when every earlier stage finished without an error
diagnostic. Optimizer notes are informational unless `RunOptions.strict` is set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from . import ast
from .checker import analyze
from .diagnostics import DeeError, Diagnostic, Severity, has_errors
from .interp import Interpreter, recursion_limit
from .optimizer import Optimizer
from .parser import parse_program

logger = logging.getLogger(__name__)

STAGE_PARSE = "parse"
STAGE_ANALYZE = "analyze"
STAGE_OPTIMIZE = "optimize"
STAGE_INTERPRET = "interpret"
STAGE_DONE = "done"

NESTING_LIMIT_MESSAGE = "Maximum nesting depth exceeded"


@dataclass(frozen=True)
class RunOptions:
    optimize: bool = True
    strict: bool = False


@dataclass
class RunResult:
    diagnostics: List[Diagnostic] = field(default_factory=list)
    stage: str = STAGE_DONE
    program: Optional[ast.Program] = None

    @property
    def ok(self) -> bool:
        return not has_errors(self.diagnostics)

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    @property
    def errors(self) -> List[Diagnostic]:
        return [diag for diag in self.diagnostics if diag.is_error]


def _stop(result: RunResult, stage: str) -> RunResult:
    result.stage = stage
    logger.debug("stopped at %s with %d diagnostics", stage, len(result.diagnostics))
    return result


def _too_deep(result: RunResult, stage: str) -> RunResult:
    result.diagnostics.append(Diagnostic.error(NESTING_LIMIT_MESSAGE))
    return _stop(result, stage)


def run_source(source: str, options: Optional[RunOptions] = None, stdout=None) -> RunResult:
    options = options or RunOptions()
    with recursion_limit():
        return _run_stages(source, options, stdout)


def _run_stages(source: str, options: RunOptions, stdout) -> RunResult:
    result = RunResult()

    logger.debug("parsing %d characters", len(source))
    try:
        program = parse_program(source)
    except DeeError as exc:
        result.diagnostics.append(exc.to_diagnostic())
        return _stop(result, STAGE_PARSE)
    except RecursionError:
        return _too_deep(result, STAGE_PARSE)
    result.program = program

    logger.debug("analyzing %d top-level statements", len(program.statements))
    try:
        result.diagnostics.extend(analyze(program))
    except RecursionError:
        return _too_deep(result, STAGE_ANALYZE)
    if has_errors(result.diagnostics):
        return _stop(result, STAGE_ANALYZE)

    if options.optimize:
        optimizer = Optimizer()
        try:
            program = optimizer.optimize(program)
        except RecursionError:
            return _too_deep(result, STAGE_OPTIMIZE)
        result.program = program
        if options.strict:
            result.diagnostics.extend(
                Diagnostic(Severity.ERROR, diag.message, diag.line, diag.column) for diag in optimizer.diagnostics
            )
        else:
            result.diagnostics.extend(optimizer.diagnostics)
        if has_errors(result.diagnostics):
            return _stop(result, STAGE_OPTIMIZE)

    logger.debug("interpreting")
    result.diagnostics.extend(Interpreter(stdout=stdout).run(program))
    if has_errors(result.diagnostics):
        return _stop(result, STAGE_INTERPRET)
    logger.debug("finished with %d diagnostics", len(result.diagnostics))
    return result
