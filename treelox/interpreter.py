"""Tree-walking interpreter for treelox.

The interpreter executes the statement list produced by
`treelox.parser` directly against a chain of `Environment` scopes.

Three kinds of non-local exit are kept apart:

* syntax errors never reach this module; the parser reports them;
* runtime errors are raised as `LoxRuntimeError` and abort the program;
* `break` and `return` are not exceptions at all. `execute` returns a
  `BreakSignal` or `ReturnSignal` value, every statement that contains
  other statements forwards it, and only a loop (for break) or a
  function call (for return) consumes it.
"""

from __future__ import annotations

import sys
from typing import Any, List, Optional, TextIO

from .ast import (
    Expr, Binary, Grouping, Literal, Unary, Variable, Assign, Logical,
    Ternary, Call, Stmt, Expression, Print, Var, Block, If, While, Break,
    Function, Return,
)
from .ast_printer import AstPrinter
from .builtin_function import LoxCallable, define_natives
from .environment import Environment
from .errors import BreakSignal, ErrorReporter, LoxRuntimeError, ReturnSignal
from .parser import parse_program
from .tokens import Token, TokenType
from .types import is_equal, is_truthy, to_string, type_name

# Each interpreted call costs about six Python frames.
RECURSION_LIMIT = 10000
if sys.getrecursionlimit() < RECURSION_LIMIT:
    sys.setrecursionlimit(RECURSION_LIMIT)


class LoxFunction(LoxCallable):
    """A user-defined function together with the scope it was declared in."""
    def __init__(self, declaration: Function, closure: Environment):
        self.declaration = declaration
        self.closure = closure

    @property
    def name(self) -> str:
        return self.declaration.name.lexeme

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        call_env = Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            call_env.define(param.lexeme, arg, True)
        result = interpreter.execute_block(self.declaration.body, call_env)
        if isinstance(result, ReturnSignal):
            return result.value
        if result is not None:
            raise AssertionError(f"{result!r} escaped from function {self.name}")
        return None

    def __str__(self) -> str:
        return f"<fn {self.name}>"

    def __repr__(self) -> str:
        return f"<function {self.name}>"


class Interpreter:
    """Executes treelox statements.

    One interpreter owns one global environment for its whole lifetime,
    so successive calls to `interpret` (as a REPL makes) see each other's
    definitions.
    """
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt',
                 out: Optional[TextIO] = None, reporter: Optional[ErrorReporter] = None):
        self.globals = Environment()
        self.out = out
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None
        self.printer = AstPrinter()
        define_natives(self.globals)

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self) -> None:
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    # Public API
    def interpret(self, statements: List[Stmt]) -> bool:
        """Run statements, reporting a runtime error instead of raising it.

        Returns False when execution stopped because of a runtime error.
        """
        try:
            self.run(statements)
        except LoxRuntimeError as e:
            self.debug(f"runtime error at line {e.token.line}: {e.message}")
            self.reporter.runtime_error(e)
            return False
        return True

    def run(self, statements: List[Stmt], env: Optional[Environment] = None) -> None:
        if env is None:
            env = self.globals
        for stmt in statements:
            if self.debug_level >= 1:
                self.debug(f"exec {self.describe(stmt)}")
            result = self.execute(stmt, env)
            if result is not None:
                raise AssertionError(f"{result!r} reached the top level")

    def describe(self, stmt: Stmt) -> str:
        if isinstance(stmt, (Expression, Print)):
            return f"{type(stmt).__name__} {self.printer.print(stmt.expression)}"
        if isinstance(stmt, (Var, Function)):
            return f"{type(stmt).__name__} {stmt.name.lexeme}"
        return type(stmt).__name__

    def execute_block(self, statements: List[Stmt], env: Environment) -> Any:
        for stmt in statements:
            result = self.execute(stmt, env)
            # forward break/return signals
            if result is not None:
                return result
        return None

    def execute(self, node: Stmt, env: Environment) -> Any:
        if isinstance(node, Expression):
            self.evaluate(node.expression, env)
            return None
        if isinstance(node, Print):
            value = self.evaluate(node.expression, env)
            print(to_string(value), file=self.out)
            return None
        if isinstance(node, Var):
            if node.initializer is not None:
                value = self.evaluate(node.initializer, env)
                env.define(node.name.lexeme, value, True)
                if self.debug_level >= 2:
                    self.debug(f"declare {node.name.lexeme}: {type_name(value)} = {to_string(value)}")
            else:
                env.define(node.name.lexeme, None, False)
                if self.debug_level >= 2:
                    self.debug(f"declare {node.name.lexeme} (unassigned)")
            return None
        if isinstance(node, Block):
            return self.execute_block(node.statements, Environment(env))
        if isinstance(node, If):
            cond = self.evaluate(node.condition, env)
            truthy = is_truthy(cond)
            if self.debug_level >= 3:
                self.debug(f"if condition {to_string(cond)} -> {truthy}")
            if truthy:
                return self.execute(node.then_branch, env)
            if node.else_branch is not None:
                return self.execute(node.else_branch, env)
            return None
        if isinstance(node, While):
            while True:
                cond = self.evaluate(node.condition, env)
                truthy = is_truthy(cond)
                if self.debug_level >= 3:
                    self.debug(f"while condition {to_string(cond)} -> {truthy}")
                if not truthy:
                    break
                res = self.execute(node.body, env)
                if isinstance(res, BreakSignal):
                    break
                if isinstance(res, ReturnSignal):
                    return res
            return None
        if isinstance(node, Break):
            return BreakSignal()
        if isinstance(node, Function):
            env.define(node.name.lexeme, LoxFunction(node, env), True)
            if self.debug_level >= 2:
                self.debug(f"define function {node.name.lexeme}")
            return None
        if isinstance(node, Return):
            value = self.evaluate(node.value, env) if node.value is not None else None
            return ReturnSignal(value)
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def evaluate(self, node: Expr, env: Environment) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Grouping):
            return self.evaluate(node.expression, env)
        if isinstance(node, Variable):
            return env.get(node.name)
        if isinstance(node, Assign):
            value = self.evaluate(node.value, env)
            env.assign(node.name, value)
            return value
        if isinstance(node, Unary):
            operand = self.evaluate(node.right, env)
            if node.operator.type == TokenType.BANG:
                return not is_truthy(operand)
            if node.operator.type == TokenType.MINUS:
                if not isinstance(operand, float):
                    raise LoxRuntimeError(node.operator, 'Operand must be a number.')
                return -operand
            raise NotImplementedError(f"unsupported unary operator {node.operator.lexeme}")
        if isinstance(node, Logical):
            left = self.evaluate(node.left, env)
            if node.operator.type == TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(node.right, env)
        if isinstance(node, Ternary):
            if is_truthy(self.evaluate(node.condition, env)):
                return self.evaluate(node.then_branch, env)
            return self.evaluate(node.else_branch, env)
        if isinstance(node, Binary):
            left = self.evaluate(node.left, env)
            if node.operator.type == TokenType.COMMA:
                return self.evaluate(node.right, env)
            right = self.evaluate(node.right, env)
            return self.apply_binary_op(node.operator, left, right)
        if isinstance(node, Call):
            callee = self.evaluate(node.callee, env)
            args = [self.evaluate(arg, env) for arg in node.arguments]
            return self.call_function(callee, args, node.paren)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def call_function(self, func: Any, args: List[Any], paren: Token) -> Any:
        if not isinstance(func, LoxCallable):
            raise LoxRuntimeError(paren, 'Can only call functions and classes.')
        if len(args) != func.arity():
            raise LoxRuntimeError(paren, f"Expected {func.arity()} arguments but got {len(args)}.")
        if self.debug_level >= 2:
            self.debug(f"call {func} with {len(args)} argument(s)")
        try:
            return func.call(self, args)
        except RecursionError:
            raise LoxRuntimeError(paren, 'Stack overflow.')

    def apply_binary_op(self, op: Token, a: Any, b: Any) -> Any:
        kind = op.type
        if kind == TokenType.PLUS:
            if isinstance(a, float) and isinstance(b, float):
                return a + b
            if isinstance(a, str) and isinstance(b, str):
                return a + b
            raise LoxRuntimeError(op, 'Operands must be two numbers or two strings.')
        if kind == TokenType.EQUAL_EQUAL:
            return is_equal(a, b)
        if kind == TokenType.BANG_EQUAL:
            return not is_equal(a, b)
        if not (isinstance(a, float) and isinstance(b, float)):
            raise LoxRuntimeError(op, 'Operands must be numbers.')
        if kind == TokenType.MINUS:
            return a - b
        if kind == TokenType.STAR:
            return a * b
        if kind == TokenType.SLASH:
            if b == 0.0:
                raise LoxRuntimeError(op, 'Division by zero.')
            return a / b
        if kind == TokenType.GREATER:
            return a > b
        if kind == TokenType.GREATER_EQUAL:
            return a >= b
        if kind == TokenType.LESS:
            return a < b
        if kind == TokenType.LESS_EQUAL:
            return a <= b
        raise NotImplementedError(f"unknown operator {op.lexeme}")


def run_program(source: str, debug_level: int = 0, out: Optional[TextIO] = None,
                reporter: Optional[ErrorReporter] = None) -> Interpreter:
    """Convenience function to parse and run a program from source string.

    Nothing is executed if the source has syntax errors. Diagnostics go to
    `reporter`, which the returned interpreter also holds.
    """
    if reporter is None:
        reporter = ErrorReporter()
    interpreter = Interpreter(debug_level=debug_level, out=out, reporter=reporter)
    try:
        statements = parse_program(source, reporter)
        if not reporter.had_error:
            interpreter.interpret(statements)
    finally:
        interpreter.close()
    return interpreter
