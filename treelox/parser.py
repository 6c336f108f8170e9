"""Recursive-descent parser for treelox.

The parser consumes the token list produced by `treelox.scanner` and
builds the statement list defined in `treelox.ast`. Each grammar rule is a
method; binary precedence levels are loops that delegate to the next
tighter level, from lowest to highest:

    expression -> comma
    comma      -> assignment ( "," assignment )*
    assignment -> logic_or "=" assignment | logic_or
    logic_or   -> logic_and ( "or" logic_and )*
    logic_and  -> ternary ( "and" ternary )*
    ternary    -> equality ( "?" equality ".." equality )?
    equality   -> comparison ( ( "!=" | "==" ) comparison )*
    comparison -> term ( ( ">" | ">=" | "<" | "<=" ) term )*
    term       -> factor ( ( "-" | "+" ) factor )*
    factor     -> unary ( ( "/" | "*" ) unary )*
    unary      -> ( "!" | "-" ) unary | call
    call       -> primary ( "(" arguments? ")" )*
    primary    -> literal | IDENTIFIER | "(" expression ")"

Syntax errors are reported through the `ErrorReporter` and never escape
`Parser.parse`: the statement being parsed is dropped, tokens are skipped
up to the next statement boundary and parsing resumes, so a single run
reports every independent error in the file.
"""

from __future__ import annotations

from typing import List, Optional

from .ast import (
    Expr, Binary, Grouping, Literal, Unary, Variable, Assign, Logical,
    Ternary, Call, Stmt, Expression, Print, Var, Block, If, While, Break,
    Function, Return,
)
from .errors import ErrorReporter, ParseError
from .scanner import scan
from .tokens import Token, TokenType


MAX_ARGUMENTS = 255

# Tokens that begin a new statement; recovery stops in front of them.
STATEMENT_STARTS = {
    TokenType.CLASS, TokenType.FOR, TokenType.FUN, TokenType.IF,
    TokenType.PRINT, TokenType.RETURN, TokenType.VAR, TokenType.WHILE,
}

# Operators that are only valid between two operands.
BINARY_OPERATORS = {
    TokenType.PLUS, TokenType.SLASH, TokenType.STAR, TokenType.DOT,
    TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS,
    TokenType.LESS_EQUAL, TokenType.EQUAL_EQUAL, TokenType.BANG_EQUAL,
}


class Parser:
    def __init__(self, tokens: List[Token], reporter: Optional[ErrorReporter] = None):
        if not tokens or tokens[-1].type != TokenType.EOF:
            line = tokens[-1].line if tokens else 1
            tokens = list(tokens) + [Token(TokenType.EOF, '', None, line)]
        self.tokens = tokens
        self.pos = 0
        self.reporter = reporter if reporter is not None else ErrorReporter()
        # Whether the statement being parsed sits inside a loop body or a
        # function body. Function bodies clear the loop flag.
        self.inside_loop = False
        self.inside_function = False

    # Token navigation

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def is_at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def advance(self) -> Token:
        if not self.is_at_end():
            self.pos += 1
        return self.previous()

    def match(self, *types: TokenType) -> bool:
        if self.is_at_end():
            return False
        return self.peek().type in types

    def consume(self, expected: TokenType, message: str) -> Token:
        if self.match(expected):
            return self.advance()
        raise self.error(self.peek(), message)

    def error(self, token: Token, message: str) -> ParseError:
        self.reporter.token_error(token, message)
        return ParseError(message)

    def synchronize(self) -> None:
        self.advance()
        while not self.is_at_end():
            if self.previous().type == TokenType.SEMICOLON:
                return
            if self.peek().type in STATEMENT_STARTS:
                return
            self.advance()

    # Statements

    def parse(self) -> List[Stmt]:
        statements: List[Stmt] = []
        while not self.is_at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements

    def parse_declaration(self) -> Optional[Stmt]:
        try:
            if self.match(TokenType.VAR):
                self.advance()
                return self.parse_var_decl()
            return self.parse_statement()
        except ParseError:
            self.synchronize()
            return None

    def parse_var_decl(self, require_initializer: bool = False) -> Var:
        name = self.consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer: Optional[Expr] = None
        if self.match(TokenType.EQUAL):
            self.advance()
            initializer = self.parse_expression()
        elif require_initializer:
            raise self.error(self.peek(), "Expect '=' in for-loop variable declaration.")
        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    def parse_statement(self) -> Stmt:
        token = self.peek()
        if token.type == TokenType.PRINT:
            self.advance()
            return self.parse_print_stmt()
        if token.type == TokenType.LEFT_BRACE:
            self.advance()
            return Block(self.parse_block())
        if token.type == TokenType.IF:
            self.advance()
            return self.parse_if_stmt()
        if token.type == TokenType.WHILE:
            self.advance()
            return self.parse_while_stmt()
        if token.type == TokenType.FOR:
            self.advance()
            return self.parse_for_stmt()
        if token.type == TokenType.BREAK:
            self.advance()
            return self.parse_break_stmt()
        if token.type == TokenType.FUN:
            self.advance()
            return self.parse_function('function')
        if token.type == TokenType.RETURN:
            self.advance()
            return self.parse_return_stmt()
        return self.parse_expression_stmt()

    def parse_print_stmt(self) -> Print:
        value = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return Print(value)

    def parse_expression_stmt(self) -> Expression:
        expr = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return Expression(expr)

    def parse_block(self) -> List[Stmt]:
        """Parse the statements of a block; the '{' is already consumed."""
        statements: List[Stmt] = []
        while not self.match(TokenType.RIGHT_BRACE) and not self.is_at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def parse_if_stmt(self) -> If:
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.parse_expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self.parse_statement()
        else_branch: Optional[Stmt] = None
        if self.match(TokenType.ELSE):
            self.advance()
            else_branch = self.parse_statement()
        return If(condition, then_branch, else_branch)

    def parse_loop_body(self) -> Stmt:
        enclosing = self.inside_loop
        self.inside_loop = True
        try:
            return self.parse_statement()
        finally:
            self.inside_loop = enclosing

    def parse_while_stmt(self) -> While:
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.parse_expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        body = self.parse_loop_body()
        return While(condition, body)

    def parse_for_stmt(self) -> Stmt:
        """Parse a for loop and rewrite it into an equivalent while loop."""
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        initializer: Optional[Stmt]
        if self.match(TokenType.SEMICOLON):
            self.advance()
            initializer = None
        elif self.match(TokenType.VAR):
            self.advance()
            initializer = self.parse_var_decl(require_initializer=True)
        else:
            initializer = self.parse_expression_stmt()

        condition: Optional[Expr] = None
        if not self.match(TokenType.SEMICOLON):
            condition = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment: Optional[Expr] = None
        if not self.match(TokenType.RIGHT_PAREN):
            increment = self.parse_expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.parse_loop_body()

        if increment is not None:
            body = Block([body, Expression(increment)])
        if condition is None:
            condition = Literal(True)
        body = While(condition, body)
        if initializer is not None:
            body = Block([initializer, body])
        return body

    def parse_break_stmt(self) -> Break:
        if not self.inside_loop:
            raise self.error(self.previous(), "Break statement must be inside a loop.")
        self.consume(TokenType.SEMICOLON, "Expect ';' after 'break'.")
        return Break()

    def parse_return_stmt(self) -> Return:
        keyword = self.previous()
        if not self.inside_function:
            raise self.error(keyword, "Can't return from top-level code.")
        value: Optional[Expr] = None
        if not self.match(TokenType.SEMICOLON):
            value = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return Return(keyword, value)

    def parse_function(self, kind: str) -> Function:
        name = self.consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        self.consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params: List[Token] = []
        if not self.match(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self.error(self.peek(), f"Can't have more than {MAX_ARGUMENTS} parameters.")
                params.append(self.consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self.match(TokenType.COMMA):
                    break
                self.advance()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        self.consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")

        enclosing_loop, enclosing_function = self.inside_loop, self.inside_function
        self.inside_loop = False
        self.inside_function = True
        try:
            body = self.parse_block()
        finally:
            self.inside_loop = enclosing_loop
            self.inside_function = enclosing_function
        return Function(name, params, body)

    # Expressions

    def parse_expression(self) -> Expr:
        return self.parse_comma()

    def parse_comma(self) -> Expr:
        expr = self.parse_assignment()
        while self.match(TokenType.COMMA):
            operator = self.advance()
            right = self.parse_assignment()
            expr = Binary(expr, operator, right)
        return expr

    def parse_assignment(self) -> Expr:
        expr = self.parse_logic_or()
        if self.match(TokenType.EQUAL):
            equals = self.advance()
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            raise self.error(equals, "Invalid assignment target.")
        return expr

    def parse_logic_or(self) -> Expr:
        expr = self.parse_logic_and()
        while self.match(TokenType.OR):
            operator = self.advance()
            right = self.parse_logic_and()
            expr = Logical(expr, operator, right)
        return expr

    def parse_logic_and(self) -> Expr:
        expr = self.parse_ternary()
        while self.match(TokenType.AND):
            operator = self.advance()
            right = self.parse_ternary()
            expr = Logical(expr, operator, right)
        return expr

    def parse_ternary(self) -> Expr:
        expr = self.parse_equality()
        if self.match(TokenType.QUESTION_MARK):
            operator = self.advance()
            then_branch = self.parse_equality()
            self.consume(TokenType.DOUBLE_DOT, "Missing '..' in ternary operator.")
            else_branch = self.parse_equality()
            expr = Ternary(expr, operator, then_branch, else_branch)
        return expr

    def parse_equality(self) -> Expr:
        expr = self.parse_comparison()
        while self.match(TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL):
            operator = self.advance()
            right = self.parse_comparison()
            expr = Binary(expr, operator, right)
        return expr

    def parse_comparison(self) -> Expr:
        expr = self.parse_term()
        while self.match(TokenType.GREATER, TokenType.GREATER_EQUAL,
                         TokenType.LESS, TokenType.LESS_EQUAL):
            operator = self.advance()
            right = self.parse_term()
            expr = Binary(expr, operator, right)
        return expr

    def parse_term(self) -> Expr:
        expr = self.parse_factor()
        while self.match(TokenType.MINUS, TokenType.PLUS):
            operator = self.advance()
            right = self.parse_factor()
            expr = Binary(expr, operator, right)
        return expr

    def parse_factor(self) -> Expr:
        expr = self.parse_unary()
        while self.match(TokenType.SLASH, TokenType.STAR):
            operator = self.advance()
            right = self.parse_unary()
            expr = Binary(expr, operator, right)
        return expr

    def parse_unary(self) -> Expr:
        if self.match(TokenType.BANG, TokenType.MINUS):
            operator = self.advance()
            right = self.parse_unary()
            return Unary(operator, right)
        return self.parse_call()

    def parse_call(self) -> Expr:
        expr = self.parse_primary()
        while self.match(TokenType.LEFT_PAREN):
            self.advance()
            expr = self.finish_call(expr)
        return expr

    def finish_call(self, callee: Expr) -> Call:
        arguments: List[Expr] = []
        if not self.match(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self.error(self.peek(), f"Can't have more than {MAX_ARGUMENTS} arguments.")
                # Arguments are separated by commas, so skip the comma operator.
                arguments.append(self.parse_assignment())
                if not self.match(TokenType.COMMA):
                    break
                self.advance()
        paren = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, arguments)

    def parse_primary(self) -> Expr:
        token = self.peek()
        if token.type == TokenType.FALSE:
            self.advance()
            return Literal(False)
        if token.type == TokenType.TRUE:
            self.advance()
            return Literal(True)
        if token.type == TokenType.NIL:
            self.advance()
            return Literal(None)
        if token.type in (TokenType.NUMBER, TokenType.STRING):
            self.advance()
            return Literal(token.literal)
        if token.type == TokenType.IDENTIFIER:
            self.advance()
            return Variable(token)
        if token.type == TokenType.LEFT_PAREN:
            self.advance()
            expr = self.parse_expression()
            self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)
        if token.type in BINARY_OPERATORS:
            # Report the stray operator, then consume its would-be right
            # operand so recovery starts after the whole expression.
            self.advance()
            self.error(token, "Binary operator cannot start an expression.")
            self.parse_equality()
            raise ParseError("Binary operator cannot start an expression.")
        raise self.error(token, "Expect expression.")


def parse_program(source: str, reporter: Optional[ErrorReporter] = None) -> List[Stmt]:
    """Scan and parse source code into a list of statements."""
    if reporter is None:
        reporter = ErrorReporter()
    tokens = scan(source, reporter)
    return Parser(tokens, reporter).parse()
