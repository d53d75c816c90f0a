"""
Zeal layout normalizer.

Rewrites the raw token stream from the lexer into one with explicit block
structure so the parser never looks at columns:

    for (m, s) <- arr:          FOR ( m , s ) <- arr :
        if i % m == 0 then ...   BLOCK_START if ... BLOCK_END
    res                          STATEMENT_END res

Rules:
- A line ending in a block opener (``:``, ``->``, ``then``, ``else``)
  opens a block whose reference column is that of the next line.
- A line at the reference column starts a new statement.
- A line at a lesser column closes one or more blocks.
- A line starting with ``.`` or a binary operator (``|>`` included)
  continues the current statement, as does a more-indented line after a
  line that ends in an operator, ``,`` or the call marker ``!``. A
  ``-`` at the reference column is a prefix minus opening a new statement.
- Newlines inside brackets are ignored.
"""

from typing import Optional

from zeal.compiler.tokens import BINARY_OPERATORS, Token, TokenType
from zeal.utils.errors import IndentError, SourceLocation

# Tokens that open an indented block when they end a line
BLOCK_OPENERS: frozenset[TokenType] = frozenset(
    {
        TokenType.COLON,
        TokenType.THIN_ARROW,
        TokenType.THEN,
        TokenType.ELSE,
    }
)

# Tokens that, at the start of a line, continue the previous statement
LEADING_CONTINUATIONS: frozenset[TokenType] = BINARY_OPERATORS | {TokenType.DOT}

# Tokens that, at the end of a line, allow the next line to be indented further
TRAILING_CONTINUATIONS: frozenset[TokenType] = BINARY_OPERATORS | {
    TokenType.DOT,
    TokenType.COMMA,
    TokenType.DECLARE,
    TokenType.ASSIGN,
    TokenType.PLUS_ASSIGN,
    TokenType.CONCAT_ASSIGN,
    TokenType.LEFT_ARROW,
    TokenType.BANG,
    TokenType.NOT,
}

OPENING_BRACKETS = {TokenType.LPAREN, TokenType.LBRACKET, TokenType.LBRACE}
CLOSING_BRACKETS = {TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE}


class LayoutNormalizer:
    """
    Converts column-annotated tokens into a block-delimited stream.

    Usage:
        tokens = LayoutNormalizer(Lexer(source).tokenize()).normalize()
    """

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.output: list[Token] = []
        self.indent_stack: list[int] = []
        self._bracket_depth = 0
        self._pending_block: Optional[Token] = None
        self._previous: Optional[Token] = None

    def _emit(self, token_type: TokenType, location: SourceLocation) -> None:
        self.output.append(Token(token_type, None, location))

    def _emit_separator(self, location: SourceLocation) -> None:
        """Emit STATEMENT_END unless it would be redundant."""
        if not self.output:
            return
        if self.output[-1].type in (TokenType.STATEMENT_END, TokenType.BLOCK_START):
            return
        self._emit(TokenType.STATEMENT_END, location)

    def _licenses_continuation(self) -> bool:
        return self._previous is not None and self._previous.type in TRAILING_CONTINUATIONS

    def _handle_line_start(self, token: Token) -> None:
        """Apply the indentation rules to the first token of a line."""
        column = token.column

        if not self.indent_stack:
            self.indent_stack.append(column)
            return

        if self._pending_block is not None:
            opener = self._pending_block
            self._pending_block = None
            if column <= self.indent_stack[-1]:
                raise IndentError(
                    f"expected an indented block after '{opener.value}'",
                    token.location,
                )
            self.indent_stack.append(column)
            self._emit(TokenType.BLOCK_START, token.location)
            return

        continuation = token.type in LEADING_CONTINUATIONS

        if column > self.indent_stack[-1]:
            if continuation or self._licenses_continuation():
                return
            raise IndentError("unexpected indent", token.location)

        while len(self.indent_stack) > 1 and column < self.indent_stack[-1]:
            self.indent_stack.pop()
            self._emit(TokenType.BLOCK_END, token.location)

        if column != self.indent_stack[-1]:
            if continuation:
                return
            raise IndentError("inconsistent dedent", token.location)

        if not continuation or token.type == TokenType.MINUS:
            self._emit_separator(token.location)

    def normalize(self) -> list[Token]:
        """
        Produce the block-delimited token stream.

        Returns:
            Tokens with BLOCK_START, BLOCK_END and STATEMENT_END inserted
            and NEWLINE removed, ending with EOF.

        Raises:
            IndentError: On an unexpected indent, an inconsistent dedent
                or a block opener with no indented block after it.
        """
        self.output = []
        self.indent_stack = []
        self._bracket_depth = 0
        self._pending_block = None
        self._previous = None
        at_line_start = True
        eof: Optional[Token] = None

        for token in self.tokens:
            if token.type == TokenType.EOF:
                eof = token
                break

            if token.type == TokenType.NEWLINE:
                if (
                    self._bracket_depth == 0
                    and self._previous is not None
                    and self._previous.type in BLOCK_OPENERS
                    and not at_line_start
                ):
                    self._pending_block = self._previous
                at_line_start = True
                continue

            if at_line_start:
                at_line_start = False
                if self._bracket_depth == 0:
                    self._handle_line_start(token)

            if token.type == TokenType.SEMICOLON and self._bracket_depth == 0:
                self._emit_separator(token.location)
                self._previous = token
                continue

            if token.type in OPENING_BRACKETS:
                self._bracket_depth += 1
            elif token.type in CLOSING_BRACKETS and self._bracket_depth > 0:
                self._bracket_depth -= 1

            self.output.append(token)
            self._previous = token

        if eof is None:
            last = self.tokens[-1].location if self.tokens else SourceLocation(1, 1)
            eof = Token(TokenType.EOF, None, last)

        if self._pending_block is not None or (
            self._previous is not None
            and self._previous.type in BLOCK_OPENERS
            and self._bracket_depth == 0
        ):
            opener = self._pending_block or self._previous
            raise IndentError(f"expected an indented block after '{opener.value}'", eof.location)

        while len(self.indent_stack) > 1:
            self.indent_stack.pop()
            self._emit(TokenType.BLOCK_END, eof.location)

        self.output.append(eof)
        return self.output


def normalize(tokens: list[Token]) -> list[Token]:
    """Convenience wrapper around LayoutNormalizer."""
    return LayoutNormalizer(tokens).normalize()
