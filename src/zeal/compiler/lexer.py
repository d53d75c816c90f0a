"""
Zeal Lexer (Tokenizer).

Transforms Zeal source code into a stream of tokens. The lexer is total:
characters or literals it cannot make sense of become INVALID tokens, and
it is the parser that reports them. Indentation is not interpreted here;
every token carries its column and NEWLINE tokens mark line breaks, which
the layout normalizer turns into block structure.
"""

from typing import Iterator, Optional

from zeal.compiler.tokens import (
    DOUBLE_CHAR_TOKENS,
    KEYWORDS,
    SINGLE_CHAR_TOKENS,
    TRIPLE_CHAR_TOKENS,
    ExprSegment,
    StringSegment,
    TextSegment,
    Token,
    TokenType,
)
from zeal.utils.errors import SourceLocation

TAB_WIDTH = 4


def _is_digit(char: str) -> bool:
    """ASCII digits only; str.isdigit also accepts superscripts and other scripts."""
    return "0" <= char <= "9"


ESCAPE_SEQUENCES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    "'": "'",
    '"': '"',
    "`": "`",
    "{": "{",
    "}": "}",
    "0": "\0",
}


class _StringFailure(Exception):
    """Internal signal used to turn a malformed literal into an INVALID token."""

    def __init__(self, message: str, location: SourceLocation) -> None:
        super().__init__(message)
        self.message = message
        self.location = location


class Lexer:
    """
    Tokenizer for Zeal source code.

    The lexer supports:
    - Identifiers and the reserved words fn, if, then, else, for, while
    - Integer and floating-point literals
    - Backtick string templates with {expr} interpolation
    - Plain single and double quoted strings
    - Maximal-munch operators (:= ++= |> -> <- .. and friends)
    - Comments (# to end of line)

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        # or iterate: for token in lexer: ...
    """

    def __init__(
        self,
        source: str,
        filename: Optional[str] = None,
        start: Optional[SourceLocation] = None,
    ) -> None:
        """
        Initialize the lexer with source code.

        Args:
            source: The Zeal source code to tokenize
            filename: Optional filename for error reporting
            start: Location of the first character, used when lexing an
                interpolated expression out of a larger file
        """
        self.source = source
        self.filename = filename
        self._start = start or SourceLocation(1, 1, 0, filename)
        self.pos = 0
        self.line = self._start.line
        self.column = self._start.column
        self.tokens: list[Token] = []

    @property
    def _current_char(self) -> Optional[str]:
        """Return the current character or None if at end."""
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    @property
    def _peek_char(self) -> Optional[str]:
        """Return the next character without consuming it."""
        return self._peek_ahead(1)

    def _peek_ahead(self, n: int) -> Optional[str]:
        """Return the character n positions ahead."""
        peek_pos = self.pos + n
        if peek_pos >= len(self.source):
            return None
        return self.source[peek_pos]

    def _location(self) -> SourceLocation:
        """Create a SourceLocation for the current position."""
        return SourceLocation(
            line=self.line,
            column=self.column,
            offset=self._start.offset + self.pos,
            filename=self.filename,
        )

    def _advance(self) -> str:
        """Consume and return the current character."""
        char = self.source[self.pos]
        self.pos += 1

        if char == "\n":
            self.line += 1
            self.column = 1
        elif char == "\t":
            self.column = ((self.column - 1) // TAB_WIDTH + 1) * TAB_WIDTH + 1
        else:
            self.column += 1

        return char

    def _skip_whitespace(self) -> None:
        """Skip whitespace characters except newlines."""
        while self._current_char is not None and self._current_char in " \t\r\f":
            self._advance()

    def _skip_comment(self) -> None:
        """Skip single-line comments starting with #."""
        while self._current_char is not None and self._current_char != "\n":
            self._advance()

    def _invalid(self, message: str, location: SourceLocation) -> Token:
        return Token(TokenType.INVALID, message, location)

    def _recover_to_line_end(self, quote_char: str) -> None:
        """Skip the rest of a broken literal so lexing can carry on."""
        while self._current_char is not None and self._current_char != "\n":
            if self._advance() == quote_char:
                return

    def _read_escape(self) -> str:
        """Consume a backslash escape and return the character it denotes."""
        location = self._location()
        self._advance()  # consume '\'
        if self._current_char is None or self._current_char == "\n":
            raise _StringFailure("Unterminated escape sequence", location)
        escaped = ESCAPE_SEQUENCES.get(self._current_char)
        if escaped is None:
            raise _StringFailure(f"Invalid escape sequence: \\{self._current_char}", location)
        self._advance()
        return escaped

    def _read_string(self, quote_char: str) -> Token:
        """
        Read a plain string literal delimited by single or double quotes.

        Returns:
            A STRING token whose value is a one-segment template.
        """
        start_loc = self._location()
        self._advance()  # consume opening quote

        value_chars: list[str] = []
        try:
            while True:
                char = self._current_char
                if char is None or char == "\n":
                    raise _StringFailure("Unterminated string literal", start_loc)
                if char == quote_char:
                    self._advance()
                    break
                if char == "\\":
                    value_chars.append(self._read_escape())
                else:
                    value_chars.append(self._advance())
        except _StringFailure as failure:
            self._recover_to_line_end(quote_char)
            return self._invalid(failure.message, failure.location)

        segments: tuple[StringSegment, ...] = ()
        if value_chars:
            segments = (TextSegment("".join(value_chars)),)
        return Token(TokenType.STRING, segments, start_loc)

    def _read_template(self) -> Token:
        """
        Read a backtick string template.

        Text between ``{`` and the matching ``}`` is lexed recursively as an
        expression. ``{{`` and ``}}`` stand for literal braces.

        Returns:
            A STRING token whose value is a tuple of TextSegment and
            ExprSegment parts.
        """
        start_loc = self._location()
        self._advance()  # consume opening backtick

        segments: list[StringSegment] = []
        current_text: list[str] = []

        try:
            while True:
                char = self._current_char
                if char is None or char == "\n":
                    raise _StringFailure("Unterminated string template", start_loc)

                if char == "`":
                    self._advance()
                    break

                if char == "\\":
                    current_text.append(self._read_escape())
                    continue

                if char == "{" and self._peek_char == "{":
                    current_text.append("{")
                    self._advance()
                    self._advance()
                    continue

                if char == "}" and self._peek_char == "}":
                    current_text.append("}")
                    self._advance()
                    self._advance()
                    continue

                if char == "}":
                    raise _StringFailure("Single '}' in string template", self._location())

                if char == "{":
                    if current_text:
                        segments.append(TextSegment("".join(current_text)))
                        current_text = []
                    segments.append(self._read_interpolation())
                    continue

                current_text.append(self._advance())
        except _StringFailure as failure:
            self._recover_to_line_end("`")
            return self._invalid(failure.message, failure.location)

        if current_text:
            segments.append(TextSegment("".join(current_text)))
        return Token(TokenType.STRING, tuple(segments), start_loc)

    def _read_interpolation(self) -> ExprSegment:
        """Read ``{expr}`` and lex its contents with a nested lexer."""
        brace_loc = self._location()
        self._advance()  # consume '{'
        expr_start = self._location()
        expr_chars: list[str] = []
        depth = 1
        quote: Optional[str] = None

        while True:
            char = self._current_char
            if char is None or char == "\n":
                raise _StringFailure("Unterminated interpolation in string template", brace_loc)

            if quote is not None:
                if char == "\\" and self._peek_char is not None:
                    expr_chars.append(self._advance())
                elif char == quote:
                    quote = None
                expr_chars.append(self._advance())
                continue

            if char in "\"'`":
                quote = char
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    self._advance()
                    break
            expr_chars.append(self._advance())

        expr_source = "".join(expr_chars)
        if not expr_source.strip():
            raise _StringFailure("Empty interpolation in string template", brace_loc)

        nested = Lexer(expr_source, self.filename, start=expr_start)
        return ExprSegment(tuple(nested.tokenize()), expr_source)

    def _read_number(self) -> Token:
        """
        Read a numeric literal (integer or float).

        Supports:
        - Decimal integers: 123
        - Floats: 123.456
        - Underscores for readability: 1_000_000

        ``1..5`` is an integer followed by the range operator.
        """
        start_loc = self._location()
        num_chars: list[str] = []
        is_float = False

        while self._current_char is not None and (
            _is_digit(self._current_char) or self._current_char == "_"
        ):
            if self._current_char != "_":
                num_chars.append(self._current_char)
            self._advance()

        if self._current_char == "." and (
            self._peek_char is not None and _is_digit(self._peek_char)
        ):
            is_float = True
            num_chars.append(self._advance())

            while self._current_char is not None and (
                _is_digit(self._current_char) or self._current_char == "_"
            ):
                if self._current_char != "_":
                    num_chars.append(self._current_char)
                self._advance()

        value_str = "".join(num_chars)

        if is_float:
            return Token(TokenType.FLOAT, float(value_str), start_loc)
        return Token(TokenType.INTEGER, int(value_str), start_loc)

    def _read_identifier_or_keyword(self) -> Token:
        """
        Read an identifier or keyword.

        Identifiers start with a letter or underscore and contain
        letters, digits, and underscores.
        """
        start_loc = self._location()
        id_chars: list[str] = []

        while self._current_char is not None and (
            self._current_char.isalnum() or self._current_char == "_"
        ):
            id_chars.append(self._advance())

        identifier = "".join(id_chars)

        token_type = KEYWORDS.get(identifier)
        if token_type == TokenType.TRUE:
            return Token(token_type, True, start_loc)
        if token_type == TokenType.FALSE:
            return Token(token_type, False, start_loc)
        if token_type is not None:
            return Token(token_type, identifier, start_loc)

        return Token(TokenType.IDENTIFIER, identifier, start_loc)

    def _read_operator(self) -> Optional[Token]:
        """
        Read an operator or punctuation token, longest match first.

        Returns:
            An operator token, or None if the current character is not an operator.
        """
        if self._current_char is None:
            return None

        start_loc = self._location()

        for width, table in ((3, TRIPLE_CHAR_TOKENS), (2, DOUBLE_CHAR_TOKENS)):
            text = self.source[self.pos:self.pos + width]
            if len(text) == width and text in table:
                for _ in range(width):
                    self._advance()
                return Token(table[text], text, start_loc)

        char = self._current_char
        if char in SINGLE_CHAR_TOKENS:
            token_type = SINGLE_CHAR_TOKENS[char]
            # `f!` and `(...)!` mark a call; a detached `!` is logical not
            if token_type == TokenType.NOT and self._follows_callee():
                token_type = TokenType.BANG
            self._advance()
            return Token(token_type, char, start_loc)

        return None

    def _follows_callee(self) -> bool:
        if self.pos == 0:
            return False
        previous = self.source[self.pos - 1]
        return previous.isalnum() or previous in "_)]"

    def _next_token(self) -> Token:
        """
        Extract the next token from the source.

        Returns:
            The next token; EOF once the source is exhausted.
        """
        while True:
            self._skip_whitespace()
            if self._current_char == "#":
                self._skip_comment()
                continue
            break

        if self._current_char is None:
            return Token(TokenType.EOF, None, self._location())

        if self._current_char == "\n":
            loc = self._location()
            self._advance()
            return Token(TokenType.NEWLINE, "\n", loc)

        if self._current_char == "`":
            return self._read_template()

        if self._current_char in "\"'":
            return self._read_string(self._current_char)

        if _is_digit(self._current_char):
            return self._read_number()

        if self._current_char.isalpha() or self._current_char == "_":
            return self._read_identifier_or_keyword()

        op_token = self._read_operator()
        if op_token is not None:
            return op_token

        loc = self._location()
        char = self._advance()
        return self._invalid(f"Unexpected character: {char!r}", loc)

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source code.

        Returns:
            A list of all tokens including the final EOF token.
        """
        self.tokens = []
        self.pos = 0
        self.line = self._start.line
        self.column = self._start.column

        while True:
            token = self._next_token()
            self.tokens.append(token)
            if token.type == TokenType.EOF:
                break

        return self.tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens (re-tokenizes if necessary)."""
        if not self.tokens:
            self.tokenize()
        return iter(self.tokens)


def tokenize(source: str, filename: Optional[str] = None) -> list[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: Zeal source code
        filename: Optional filename for error reporting

    Returns:
        List of tokens
    """
    return Lexer(source, filename).tokenize()
