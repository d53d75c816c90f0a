"""
Error types and source location tracking for the Zeal interpreter.

Every failure surfaced by the pipeline (lexing, layout, parsing or
evaluation) is a ZealError carrying a stable ``kind`` tag, a message and
the source location of the offending token or node.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Attributes:
        line: 1-indexed line number
        column: 1-indexed column number
        offset: 0-indexed character offset from start of source
        filename: Optional filename for error reporting
    """

    line: int
    column: int
    offset: int = 0
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class ErrorReport:
    """Structured form of a failure: what went wrong and where."""

    kind: str
    message: str
    position: Optional[SourceLocation] = None

    def to_dict(self) -> dict:
        position = None
        if self.position is not None:
            position = {"line": self.position.line, "column": self.position.column}
        return {"kind": self.kind, "message": self.message, "position": position}


class ZealError(Exception):
    """Base exception for all Zeal errors."""

    kind = "Error"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []

        if self.location:
            parts.append(f"[{self.location}]")

        parts.append(self.message)

        if self.source_line and self.location:
            parts.append(f"\n    {self.source_line}")
            # Add caret pointing to the error column
            padding = " " * (4 + self.location.column - 1)
            parts.append(f"\n{padding}^")

        return " ".join(parts) if not self.source_line else parts[0] + " " + "".join(parts[1:])

    def with_source(self, source: str) -> "ZealError":
        """Attach the offending source line, if not already present."""
        if self.source_line is None and self.location is not None:
            lines = source.splitlines()
            if 1 <= self.location.line <= len(lines):
                self.source_line = lines[self.location.line - 1]
                self.args = (self._format_message(),)
        return self

    def report(self) -> ErrorReport:
        """Return the structured ``{kind, message, position}`` value."""
        return ErrorReport(self.kind, self.message, self.location)


# -----------------------------------------------------------------------------
# Syntax failures (exit code 1 in the CLI)
# -----------------------------------------------------------------------------


class SyntaxFailure(ZealError):
    """Base class for failures detected before evaluation starts."""

    pass


class LexerError(SyntaxFailure):
    """Raised when an invalid token reaches the parser."""

    kind = "LexError"


class IndentError(SyntaxFailure):
    """Raised on an unexpected indent, inconsistent dedent or missing block."""

    kind = "IndentError"


class ParserError(SyntaxFailure):
    """Raised when the parser encounters a syntax error."""

    kind = "ParseError"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        expected: Optional[str] = None,
        found: Optional[str] = None,
    ) -> None:
        self.expected = expected
        self.found = found
        super().__init__(message, location, source_line)


# -----------------------------------------------------------------------------
# Runtime failures (exit code 2 in the CLI)
# -----------------------------------------------------------------------------


class EvaluationError(ZealError):
    """Base class for failures raised while evaluating a program."""

    pass


class UnboundNameError(EvaluationError):
    """Raised when an identifier is not bound in any enclosing scope."""

    kind = "UnboundName"

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        candidates: Optional[list[str]] = None,
    ) -> None:
        self.name = name
        self.candidates = candidates or []
        super().__init__(f"unbound name '{name}'", location)


class NotCallableError(EvaluationError):
    """Raised when a non-function value is applied to arguments."""

    kind = "NotCallable"


class TypeMismatchError(EvaluationError):
    """Raised when an operator or built-in receives values of the wrong kind."""

    kind = "TypeMismatch"


class PatternMismatchError(EvaluationError):
    """Raised when a destructuring pattern does not fit the bound value."""

    kind = "PatternMismatch"


class DivisionByZeroError(EvaluationError):
    """Raised on division or modulo by zero."""

    kind = "DivisionByZero"


class StepLimitError(EvaluationError):
    """Raised when a host-imposed step or call-depth budget runs out."""

    kind = "StepLimitExceeded"
