#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from deelang.diagnostics import Severity
from deelang.driver import RunOptions, run_source


def load_source(path: Path | None) -> str:
    if path is None:
        return sys.stdin.read()
    return path.read_text()


def main(argv: list[str] | None = None) -> int:
    argp = argparse.ArgumentParser(description="Dee language runner")
    argp.add_argument("source", nargs="?", help="Path to a Dee source file (stdin when omitted)")
    argp.add_argument("--no-optimize", action="store_true", help="Skip the optimizer")
    argp.add_argument("--strict", action="store_true", help="Treat optimizer notes as errors")
    argp.add_argument("--show-info", action="store_true", help="Print informational diagnostics")
    argp.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr")
    args = argp.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    source_path = Path(args.source) if args.source else None
    try:
        source = load_source(source_path)
    except OSError as exc:
        print(f"error: unable to read source: {exc}", file=sys.stderr)
        return 1

    options = RunOptions(optimize=not args.no_optimize, strict=args.strict)
    result = run_source(source, options, stdout=sys.stdout)
    for diag in result.diagnostics:
        if diag.severity is Severity.INFO and not args.show_info:
            continue
        print(diag, file=sys.stderr)
    return result.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
