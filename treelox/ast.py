"""Abstract Syntax Tree (AST) definitions for treelox.

The AST is split into two closed families: expressions, which produce
values, and statements, which are executed for their effect. Nodes are
built once by the parser and never modified afterwards. Operator and name
tokens are kept on the nodes so that runtime errors can report the line
they occurred on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from .tokens import Token


@dataclass(frozen=True)
class Expr:
    """Base class for expression nodes."""
    pass


@dataclass(frozen=True)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Grouping(Expr):
    expression: Expr


@dataclass(frozen=True)
class Literal(Expr):
    value: Any  # float, str, bool or None


@dataclass(frozen=True)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Variable(Expr):
    name: Token


@dataclass(frozen=True)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(frozen=True)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Ternary(Expr):
    condition: Expr
    operator: Token  # the '?' token
    then_branch: Expr
    else_branch: Expr


@dataclass(frozen=True)
class Call(Expr):
    callee: Expr
    paren: Token
    arguments: List[Expr]


@dataclass(frozen=True)
class Stmt:
    """Base class for statement nodes."""
    pass


@dataclass(frozen=True)
class Expression(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Print(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr]


@dataclass(frozen=True)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(frozen=True)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass(frozen=True)
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass(frozen=True)
class Break(Stmt):
    pass


@dataclass(frozen=True)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(frozen=True)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr]
