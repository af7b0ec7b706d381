"""CLI entry point for the Kotlet interpreter.

Usage:
    python -m kotlet [-v|-vv|-vvv|-vvvv] <program_file>
    python -m kotlet [-v...] --check <program_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --check       Parse and type-check the program without running it

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. Syntax errors and type errors are printed
with the offending source line underlined; nothing runs unless the
program passes the type checker.
"""

import argparse
import sys
from pathlib import Path

from .checker import check_program
from .debug import DebugLog
from .diagnostics import render_diagnostic
from .errors import KotletInternalError, KotletRuntimeError, ParseError
from .interpreter import Interpreter
from .lexer import Span
from .parser import parse_program

# deep expressions recurse once per operator in the parser and evaluator
RECURSION_LIMIT = 5_000


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog='kotlet', description="Kotlet language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--check', action='store_true', help='type-check the program without running it')
    parser.add_argument('program', nargs='*', help='Kotlet program file (.kt) to execute')
    args = parser.parse_args(argv)

    if not args.program:
        parser.error('pass path to kotlin file as argument')
    if len(args.program) > 1:
        parser.error('too many arguments')
    sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))
    program_file = Path(args.program[0])
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        return 1
    with open(program_file, 'r', encoding='utf-8') as f:
        source = f.read()

    debug = DebugLog(args.v)
    try:
        try:
            program = parse_program(source)
        except ParseError as e:
            span = e.span or Span(len(source), len(source))
            print(render_diagnostic(source, span, f"syntax error: {e}"), file=sys.stderr)
            return 1
        debug.write(1, f"parse: {len(program.functions)} functions")

        diagnostics = check_program(program, debug=debug)
        if diagnostics:
            for diagnostic in diagnostics:
                print(render_diagnostic(source, diagnostic.span, diagnostic.message), file=sys.stderr)
            return 1
        if args.check:
            return 0

        interpreter = Interpreter(program, debug=debug)
        try:
            interpreter.run()
        except KotletRuntimeError as e:
            print(f"Runtime error: {e}", file=sys.stderr)
            return 1
        except KotletInternalError as e:
            print(f"Internal error: {e}", file=sys.stderr)
            return 1
    except RecursionError:
        print("Error: maximum recursion depth exceeded", file=sys.stderr)
        return 1
    finally:
        debug.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
