# treelox language package
# This package provides a scanner, parser and tree-walking interpreter for treelox.
from .errors import ErrorReporter, LoxRuntimeError
from .interpreter import Interpreter, LoxFunction, run_program
from .parser import Parser, parse_program
from .scanner import scan

__all__ = [
    'ErrorReporter',
    'Interpreter',
    'LoxFunction',
    'LoxRuntimeError',
    'Parser',
    'parse_program',
    'run_program',
    'scan',
]
