"""Textual renderings of expression trees, used for debug traces."""

from __future__ import annotations

from .ast import (
    Expr, Binary, Grouping, Literal, Unary, Variable, Assign, Logical,
    Ternary, Call,
)
from .types import to_string


class AstPrinter:
    """Renders an expression in parenthesized prefix form: `(+ 1 (* 2 3))`."""

    def print(self, expr: Expr) -> str:
        if isinstance(expr, (Binary, Logical)):
            return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)
        if isinstance(expr, Grouping):
            return self.parenthesize('group', expr.expression)
        if isinstance(expr, Literal):
            return self.literal(expr)
        if isinstance(expr, Unary):
            return self.parenthesize(expr.operator.lexeme, expr.right)
        if isinstance(expr, Variable):
            return expr.name.lexeme
        if isinstance(expr, Assign):
            return self.parenthesize(f"= {expr.name.lexeme}", expr.value)
        if isinstance(expr, Ternary):
            return self.parenthesize('?..', expr.condition, expr.then_branch, expr.else_branch)
        if isinstance(expr, Call):
            return self.parenthesize('call', expr.callee, *expr.arguments)
        raise NotImplementedError(f"print: unexpected node type {type(expr)}")

    def literal(self, expr: Literal) -> str:
        if isinstance(expr.value, str):
            return f'"{expr.value}"'
        return to_string(expr.value)

    def parenthesize(self, name: str, *exprs: Expr) -> str:
        parts = [name] + [self.print(e) for e in exprs]
        return '(' + ' '.join(parts) + ')'


class RpnPrinter(AstPrinter):
    """Renders an expression in reverse Polish notation: `1 2 3 * +`."""

    def print(self, expr: Expr) -> str:
        if isinstance(expr, Grouping):
            # Grouping only affects tree shape, which RPN already encodes.
            return self.print(expr.expression)
        return super().print(expr)

    def parenthesize(self, name: str, *exprs: Expr) -> str:
        parts = [self.print(e) for e in exprs] + [name]
        return ' '.join(parts)
