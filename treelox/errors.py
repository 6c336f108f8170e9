from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, Optional, TextIO

from .tokens import Token, TokenType


class ScanError(Exception):
    """Raised by the scanner when no diagnostic sink was supplied."""
    def __init__(self, line: int, message: str):
        super().__init__(f"[line {line}] Error: {message}")
        self.line = line
        self.message = message


class ParseError(Exception):
    """Internal exception used to unwind the parser to a recovery point."""


class LoxRuntimeError(Exception):
    """Exception type used to propagate runtime errors to the host."""
    def __init__(self, token: Token, message: str):
        super().__init__(message)
        self.token = token
        self.message = message


@dataclass(frozen=True)
class BreakSignal:
    """Result of executing `break`; consumed by the nearest loop."""


@dataclass(frozen=True)
class ReturnSignal:
    """Result of executing `return`; consumed by the function call."""
    value: Any


class ErrorReporter:
    """Collects diagnostics from the scanner, parser and interpreter.

    Reporting never stops the program. The host inspects `had_error` and
    `had_runtime_error` to decide what to do next.
    """
    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream
        self.had_error = False
        self.had_runtime_error = False

    def _write(self, text: str) -> None:
        print(text, file=self.stream if self.stream is not None else sys.stderr)

    def error(self, line: int, message: str) -> None:
        self.report(line, '', message)

    def token_error(self, token: Token, message: str) -> None:
        if token.type == TokenType.EOF:
            self.report(token.line, ' at end', message)
        else:
            self.report(token.line, f" at '{token.lexeme}'", message)

    def report(self, line: int, where: str, message: str) -> None:
        self._write(f"[line {line}] Error{where}: {message}")
        self.had_error = True

    def runtime_error(self, error: LoxRuntimeError) -> None:
        self._write(f"{error.message}\n[line {error.token.line}]")
        self.had_runtime_error = True

    def reset(self) -> None:
        self.had_error = False
        self.had_runtime_error = False
