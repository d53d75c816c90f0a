"""
Token definitions for the Zeal lexer.

This module defines all token types recognized by Zeal, the segment types
carried by string template tokens, and the operator lookup tables used
for maximal-munch scanning.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Union

from zeal.utils.errors import SourceLocation


class TokenType(Enum):
    """Enumeration of all token types in Zeal."""

    # End of file
    EOF = auto()

    # Literals
    INTEGER = auto()
    FLOAT = auto()
    STRING = auto()  # value is a tuple of TextSegment / ExprSegment

    # Identifiers
    IDENTIFIER = auto()

    # Keywords
    FN = auto()
    IF = auto()
    THEN = auto()
    ELSE = auto()
    FOR = auto()
    WHILE = auto()
    TRUE = auto()
    FALSE = auto()

    # Binding and assignment
    DECLARE = auto()  # :=
    ASSIGN = auto()  # =
    PLUS_ASSIGN = auto()  # +=
    CONCAT_ASSIGN = auto()  # ++=

    # Arithmetic
    PLUS = auto()  # +
    MINUS = auto()  # -
    STAR = auto()  # *
    SLASH = auto()  # /
    DOUBLE_SLASH = auto()  # //
    PERCENT = auto()  # %
    CONCAT = auto()  # ++

    # Comparison
    EQ = auto()  # ==
    NE = auto()  # !=
    LT = auto()  # <
    GT = auto()  # >
    LE = auto()  # <=
    GE = auto()  # >=

    # Logical
    AND = auto()  # &&
    OR = auto()  # ||
    NOT = auto()  # ! (prefix)
    BANG = auto()  # ! (postfix call marker, as in println!)

    # Calls, lambdas, ranges
    PIPE = auto()  # |>
    DOT = auto()  # .
    DOUBLE_DOT = auto()  # ..
    THIN_ARROW = auto()  # ->
    LEFT_ARROW = auto()  # <-

    # Delimiters
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()
    COLON = auto()
    SEMICOLON = auto()

    # Layout
    NEWLINE = auto()  # raw lexer output only
    BLOCK_START = auto()
    BLOCK_END = auto()
    STATEMENT_END = auto()

    # Anything the lexer could not make sense of; value holds the reason
    INVALID = auto()


# Reserved words. Built-in function names (map, join, print) are ordinary
# identifiers and can be shadowed.
KEYWORDS: dict[str, TokenType] = {
    "fn": TokenType.FN,
    "if": TokenType.IF,
    "then": TokenType.THEN,
    "else": TokenType.ELSE,
    "for": TokenType.FOR,
    "while": TokenType.WHILE,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
}

SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "=": TokenType.ASSIGN,
    "!": TokenType.NOT,
    ".": TokenType.DOT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    ";": TokenType.SEMICOLON,
}

DOUBLE_CHAR_TOKENS: dict[str, TokenType] = {
    ":=": TokenType.DECLARE,
    "+=": TokenType.PLUS_ASSIGN,
    "++": TokenType.CONCAT,
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "&&": TokenType.AND,
    "||": TokenType.OR,
    "|>": TokenType.PIPE,
    "..": TokenType.DOUBLE_DOT,
    "->": TokenType.THIN_ARROW,
    "<-": TokenType.LEFT_ARROW,
    "//": TokenType.DOUBLE_SLASH,
}

TRIPLE_CHAR_TOKENS: dict[str, TokenType] = {
    "++=": TokenType.CONCAT_ASSIGN,
}

# Binary operators that may begin a continuation line
BINARY_OPERATORS: frozenset[TokenType] = frozenset(
    {
        TokenType.PLUS,
        TokenType.MINUS,
        TokenType.STAR,
        TokenType.SLASH,
        TokenType.DOUBLE_SLASH,
        TokenType.PERCENT,
        TokenType.CONCAT,
        TokenType.EQ,
        TokenType.NE,
        TokenType.LT,
        TokenType.GT,
        TokenType.LE,
        TokenType.GE,
        TokenType.AND,
        TokenType.OR,
        TokenType.DOUBLE_DOT,
        TokenType.PIPE,
    }
)


@dataclass(frozen=True, slots=True)
class TextSegment:
    """Literal text inside a string template."""

    text: str


@dataclass(frozen=True, slots=True)
class ExprSegment:
    """An interpolated ``{expr}``; tokens are lexed and end with EOF."""

    tokens: tuple["Token", ...]
    source: str = ""


StringSegment = Union[TextSegment, ExprSegment]


@dataclass(slots=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The type of this token
        value: The literal value (for literals) or lexeme text
        location: Source location of this token
    """

    type: TokenType
    value: Any
    location: SourceLocation

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.location})"
        return f"Token({self.type.name}, {self.location})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Token):
            return self.type == other.type and self.value == other.value
        if isinstance(other, TokenType):
            return self.type == other
        return NotImplemented

    @property
    def column(self) -> int:
        return self.location.column

    @property
    def line(self) -> int:
        return self.location.line

    @property
    def lexeme(self) -> str:
        """Human-readable text of the token for error messages."""
        if self.type == TokenType.EOF:
            return "end of file"
        if self.type == TokenType.STRING:
            return "string"
        if self.type in (TokenType.BLOCK_START, TokenType.BLOCK_END):
            return "indented block" if self.type == TokenType.BLOCK_START else "end of block"
        if self.type == TokenType.STATEMENT_END:
            return "end of statement"
        if self.value is None:
            return self.type.name
        return str(self.value)
