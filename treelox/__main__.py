"""CLI entry point for the treelox interpreter.

Usage:
    python -m treelox [-v|-vv|-vvv] [script_file]
    python -m treelox [-v...] --emit-ast <script_file>
    python -m treelox [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --emit-ast    Parse the given script and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Without a script the interpreter starts an interactive prompt. Debug
information is written to `debug.txt` in the current directory when
verbosity is greater than zero.

Exit status: 0 on success, 64 on usage errors, 65 when the script has
syntax errors and 70 when it stops with a runtime error.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .ast_json import program_from_obj, program_to_obj
from .errors import ErrorReporter
from .interpreter import Interpreter
from .parser import parse_program

EX_OK = 0
EX_USAGE = 64
EX_DATAERR = 65
EX_SOFTWARE = 70


def read_source(path: Path) -> Optional[str]:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        return None
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def run_file(path: Path, debug_level: int = 0) -> int:
    source = read_source(path)
    if source is None:
        return EX_USAGE
    reporter = ErrorReporter()
    statements = parse_program(source, reporter)
    if reporter.had_error:
        return EX_DATAERR
    interpreter = Interpreter(debug_level=debug_level, reporter=reporter)
    try:
        interpreter.interpret(statements)
    finally:
        interpreter.close()
    return EX_SOFTWARE if reporter.had_runtime_error else EX_OK


def run_ast(path: Path, debug_level: int = 0) -> int:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        return EX_USAGE
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    try:
        statements = program_from_obj(data)
    except (KeyError, TypeError, ValueError) as e:
        print(f"Error: invalid AST file {path}: {e}", file=sys.stderr)
        return EX_DATAERR
    reporter = ErrorReporter()
    interpreter = Interpreter(debug_level=debug_level, reporter=reporter)
    try:
        interpreter.interpret(statements)
    finally:
        interpreter.close()
    return EX_SOFTWARE if reporter.had_runtime_error else EX_OK


def emit_ast(path: Path) -> int:
    source = read_source(path)
    if source is None:
        return EX_USAGE
    reporter = ErrorReporter()
    statements = parse_program(source, reporter)
    if reporter.had_error:
        return EX_DATAERR
    out_path = path.with_name(path.name + '.ast.json')
    with open(out_path, 'w', encoding='utf-8') as out:
        json.dump(program_to_obj(statements), out, ensure_ascii=False, indent=2)
    print(str(out_path))
    return EX_OK


def run_prompt(debug_level: int = 0) -> int:
    """Read-eval-print loop sharing one global environment across lines."""
    reporter = ErrorReporter()
    interpreter = Interpreter(debug_level=debug_level, reporter=reporter)
    try:
        while True:
            try:
                line = input('> ')
            except EOFError:
                print()
                break
            statements = parse_program(line, reporter)
            if not reporter.had_error:
                interpreter.interpret(statements)
            reporter.reset()
    finally:
        interpreter.close()
    return EX_OK


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(prog='treelox', description="treelox language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='SCRIPT_FILE', help='emit AST JSON for the given script')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('script', nargs='?', help='script file to execute; omit for a prompt')
    args = parser.parse_args(argv)

    if args.emit_ast:
        sys.exit(emit_ast(Path(args.emit_ast)))
    if args.ast:
        sys.exit(run_ast(Path(args.ast), debug_level=args.v))
    if args.script:
        sys.exit(run_file(Path(args.script), debug_level=args.v))
    sys.exit(run_prompt(debug_level=args.v))


if __name__ == '__main__':
    main()
