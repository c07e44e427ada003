"""
Lexical categories, tokens and syntax errors for the Eve language.
"""
import enum
from dataclasses import dataclass
from typing import Optional


class TokenType(enum.Enum):
    EOF = enum.auto()
    PLUS = enum.auto()
    MINUS = enum.auto()
    SLASH = enum.auto()
    STAR = enum.auto()
    SEMICOLON = enum.auto()
    LEFT_PAREN = enum.auto()
    RIGHT_PAREN = enum.auto()
    LEFT_BRACKET = enum.auto()
    RIGHT_BRACKET = enum.auto()
    LEFT_BRACE = enum.auto()
    RIGHT_BRACE = enum.auto()
    COLON = enum.auto()
    IDENTIFIER = enum.auto()
    NUMBER = enum.auto()
    STRING = enum.auto()
    EQUAL = enum.auto()
    EQUAL_EQUAL = enum.auto()
    BANG = enum.auto()
    BANG_EQUAL = enum.auto()
    LESS = enum.auto()
    LESS_EQUAL = enum.auto()
    GREATER = enum.auto()
    GREATER_EQUAL = enum.auto()
    ARROW = enum.auto()
    LET = enum.auto()
    IF = enum.auto()
    ELSE = enum.auto()
    RETURN = enum.auto()
    FN = enum.auto()
    WHILE = enum.auto()
    COMMA = enum.auto()
    TRUE = enum.auto()
    FALSE = enum.auto()
    NULL = enum.auto()
    PERIOD = enum.auto()


@dataclass(frozen=True)
class Token:
    """A lexical token. `line` and `col` are 1-based and only used for diagnostics."""
    type: TokenType
    literal: str
    line: int = 1
    col: int = 1


class EveSyntaxError(SyntaxError):
    """Base class for failures that abort a run before evaluation begins."""
    def __init__(self, message: str, line: Optional[int] = None, col: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.col = col

    def __str__(self) -> str:
        return self.message


class LexError(EveSyntaxError):
    pass


class ParseError(EveSyntaxError):
    pass
