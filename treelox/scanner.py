"""Lexical scanner for treelox.

The terminals of the language are declared as a Lark grammar and tokenized
with Lark's basic lexer. The grammar's only rule accepts any sequence of
tokens; it exists so that Lark keeps every terminal, and the parser it
builds is never used. Lark tokens are then converted into `Token` objects
carrying the literal values the parser expects. Keywords are scanned as
identifiers and looked up afterwards.
"""

from __future__ import annotations

from typing import List, Optional

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from .errors import ErrorReporter, ScanError
from .tokens import KEYWORDS, Token, TokenType


LOX_TERMINALS = r"""
    start: _token*
    _token: LEFT_PAREN | RIGHT_PAREN | LEFT_BRACE | RIGHT_BRACE
          | COMMA | DOT | DOUBLE_DOT | MINUS | PLUS | SEMICOLON | SLASH | STAR
          | QUESTION_MARK | BANG | BANG_EQUAL | EQUAL | EQUAL_EQUAL
          | GREATER | GREATER_EQUAL | LESS | LESS_EQUAL
          | IDENTIFIER | STRING | NUMBER

    LEFT_PAREN: "("
    RIGHT_PAREN: ")"
    LEFT_BRACE: "{"
    RIGHT_BRACE: "}"
    COMMA: ","
    DOT: "."
    DOUBLE_DOT: ".."
    MINUS: "-"
    PLUS: "+"
    SEMICOLON: ";"
    SLASH: "/"
    STAR: "*"
    QUESTION_MARK: "?"
    BANG: "!"
    BANG_EQUAL: "!="
    EQUAL: "="
    EQUAL_EQUAL: "=="
    GREATER: ">"
    GREATER_EQUAL: ">="
    LESS: "<"
    LESS_EQUAL: "<="

    IDENTIFIER: /[A-Za-z_][A-Za-z_0-9]*/
    STRING: /"[^"]*"/
    NUMBER: /[0-9]+(\.[0-9]+)?/

    COMMENT: /\/\/[^\n]*/
    %ignore COMMENT
    %import common.WS
    %ignore WS
"""


LOX_LEXER = Lark(
    LOX_TERMINALS,
    parser='lalr',
    lexer='basic',
)


def _convert(lark_token, line_base: int = 0) -> Token:
    lexeme = str(lark_token)
    kind = lark_token.type
    if kind == 'IDENTIFIER':
        token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
        literal = None
    elif kind == 'NUMBER':
        token_type = TokenType.NUMBER
        literal = float(lexeme)
    elif kind == 'STRING':
        token_type = TokenType.STRING
        literal = lexeme[1:-1]
    else:
        token_type = TokenType[kind]
        literal = None
    return Token(token_type, lexeme, literal, line_base + lark_token.line)


def scan(source: str, reporter: Optional[ErrorReporter] = None) -> List[Token]:
    """Convert source text into a list of tokens ending with EOF.

    A character that starts no token is reported through `reporter` and
    skipped, and scanning resumes right after it. An unterminated string
    swallows the rest of the source. Without a reporter the first such
    error raises `ScanError` instead.
    """
    tokens: List[Token] = []
    offset = 0
    while True:
        # Lark counts lines from 1 within the slice it is given.
        line_base = source.count('\n', 0, offset)
        try:
            for lark_token in LOX_LEXER.lex(source[offset:]):
                tokens.append(_convert(lark_token, line_base))
            break
        except UnexpectedCharacters as e:
            line = line_base + e.line
            unterminated = e.char == '"'
            message = 'Unterminated string.' if unterminated else 'Unexpected character.'
            if reporter is None:
                raise ScanError(line, message) from e
            reporter.error(line, message)
            if unterminated:
                break
            offset += e.pos_in_stream + 1
    tokens.append(Token(TokenType.EOF, '', None, source.count('\n') + 1))
    return tokens
