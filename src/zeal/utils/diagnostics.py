"""
Rich error diagnostics for Zeal.

Turns ZealError values into rustc-style reports with source context,
labels, notes and "did you mean" help.

Example output:
    error[E0102]: unbound name 'fizbuzz'
      --> fizzbuzz.zl:9:1
       |
     9 | fizbuzz 15 rules |> println!
       | ^^^^^^^
       |
       = help: did you mean 'fizzbuzz'?
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from zeal.utils.errors import (
    DivisionByZeroError,
    IndentError,
    LexerError,
    NotCallableError,
    ParserError,
    PatternMismatchError,
    StepLimitError,
    TypeMismatchError,
    UnboundNameError,
    ZealError,
)


# =============================================================================
# Error Codes Catalog
# =============================================================================


class ErrorCode:
    """
    Centralized catalog of error codes for Zeal diagnostics.

    Error codes are organized by category:
    - E01xx: Runtime errors
    - E02xx: Syntax errors (lexing, layout, parsing)
    """

    # Runtime errors: E01xx
    E0101 = "E0101"  # type mismatch
    E0102 = "E0102"  # unbound name
    E0107 = "E0107"  # not callable
    E0113 = "E0113"  # pattern mismatch
    E0114 = "E0114"  # division by zero
    E0115 = "E0115"  # step limit exceeded

    # Syntax errors: E02xx
    E0201 = "E0201"  # unexpected token
    E0202 = "E0202"  # unclosed delimiter
    E0208 = "E0208"  # invalid token
    E0209 = "E0209"  # unexpected indent
    E0210 = "E0210"  # inconsistent dedent
    E0211 = "E0211"  # expected indented block


_RUNTIME_CODES: dict[type, str] = {
    TypeMismatchError: ErrorCode.E0101,
    UnboundNameError: ErrorCode.E0102,
    NotCallableError: ErrorCode.E0107,
    PatternMismatchError: ErrorCode.E0113,
    DivisionByZeroError: ErrorCode.E0114,
    StepLimitError: ErrorCode.E0115,
}


# =============================================================================
# Diagnostic Types
# =============================================================================


class DiagnosticLevel(Enum):
    """Severity level of a diagnostic message."""

    ERROR = "error"
    NOTE = "note"
    HELP = "help"

    def color_code(self) -> str:
        """Get ANSI color code for this level."""
        colors = {
            DiagnosticLevel.ERROR: "\033[91m",  # Red
            DiagnosticLevel.NOTE: "\033[96m",  # Cyan
            DiagnosticLevel.HELP: "\033[92m",  # Green
        }
        return colors.get(self, "")


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """
    A span of source code on one or more lines.

    Attributes:
        start_line: 1-indexed starting line number
        start_col: 1-indexed starting column number
        end_line: 1-indexed ending line number
        end_col: 1-indexed ending column number (exclusive)
        filename: Optional filename for display
    """

    start_line: int
    start_col: int
    end_line: int
    end_col: int
    filename: str = "<input>"

    @classmethod
    def from_location(
        cls, line: int, col: int, length: int = 1, filename: Optional[str] = None
    ) -> "SourceSpan":
        """Create a span from a single location with a given length."""
        return cls(
            start_line=line,
            start_col=col,
            end_line=line,
            end_col=col + max(1, length),
            filename=filename or "<input>",
        )

    def __str__(self) -> str:
        return f"{self.filename}:{self.start_line}:{self.start_col}"

    @property
    def length(self) -> int:
        if self.start_line != self.end_line:
            return 1
        return max(1, self.end_col - self.start_col)


@dataclass(slots=True)
class DiagnosticLabel:
    """
    A label pointing to a span of source code, drawn under the line.

    Primary labels are underlined with ^^^, secondary ones with ---.
    """

    span: SourceSpan
    message: str = ""
    is_primary: bool = True


@dataclass
class Diagnostic:
    """
    A rich diagnostic message with source context.

    Attributes:
        code: Error code (e.g., "E0102")
        level: Severity level
        message: The main diagnostic message
        labels: Source code labels
        notes: Additional notes to display
        helps: Help messages
    """

    code: str
    level: DiagnosticLevel
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    helps: list[str] = field(default_factory=list)

    @property
    def primary_span(self) -> Optional[SourceSpan]:
        for label in self.labels:
            if label.is_primary:
                return label.span
        return self.labels[0].span if self.labels else None

    def render(self, source_code: str, use_color: bool = True) -> str:
        """
        Render this diagnostic as a formatted string.

        Args:
            source_code: The original source code for context
            use_color: Whether to use ANSI color codes

        Returns:
            A formatted multi-line string representation
        """
        source_lines = source_code.splitlines()

        reset = "\033[0m" if use_color else ""
        bold = "\033[1m" if use_color else ""
        blue = "\033[94m" if use_color else ""
        green = "\033[92m" if use_color else ""
        level_color = self.level.color_code() if use_color else ""

        if self.code:
            header = f"{level_color}{bold}{self.level.value}[{self.code}]{reset}: {bold}{self.message}{reset}"
        else:
            header = f"{level_color}{bold}{self.level.value}{reset}: {bold}{self.message}{reset}"
        lines = [header]

        primary = self.primary_span
        if primary is not None:
            lines.append(f"  {blue}-->{reset} {primary}")

        if self.labels and source_lines:
            lines.append(f"   {blue}|{reset}")

            labels_by_line: dict[int, list[DiagnosticLabel]] = {}
            for label in self.labels:
                labels_by_line.setdefault(label.span.start_line, []).append(label)

            for line_num in sorted(labels_by_line):
                if not 1 <= line_num <= len(source_lines):
                    continue
                lines.append(f"{blue}{line_num:3} |{reset} {source_lines[line_num - 1]}")

                for label in labels_by_line[line_num]:
                    marker = "^" if label.is_primary else "-"
                    color = level_color if label.is_primary else blue
                    padding = " " * (label.span.start_col - 1)
                    underline = f"   {blue}|{reset} {padding}{color}{marker * label.span.length}{reset}"
                    if label.message:
                        underline += f" {color}{label.message}{reset}"
                    lines.append(underline)

            lines.append(f"   {blue}|{reset}")

        for note in self.notes:
            lines.append(f"   {blue}={reset} {bold}note:{reset} {note}")

        for help_msg in self.helps:
            lines.append(f"   {blue}={reset} {green}help:{reset} {help_msg}")

        return "\n".join(lines)


# =============================================================================
# Diagnostic Builder (Fluent API)
# =============================================================================


class DiagnosticBuilder:
    """
    Fluent builder for constructing Diagnostic objects.

        emitter.error(ErrorCode.E0102, "unbound name 'x'", span)
            .label(span, "not found in this scope")
            .help("did you mean 'y'?")
            .emit()
    """

    def __init__(
        self,
        emitter: "DiagnosticEmitter",
        code: str,
        level: DiagnosticLevel,
        message: str,
        primary_span: Optional[SourceSpan] = None,
    ) -> None:
        self._emitter = emitter
        self._diagnostic = Diagnostic(code=code, level=level, message=message)
        if primary_span:
            self._diagnostic.labels.append(DiagnosticLabel(primary_span, "", True))

    def label(
        self, span: SourceSpan, message: str = "", is_primary: bool = False
    ) -> "DiagnosticBuilder":
        self._diagnostic.labels.append(DiagnosticLabel(span, message, is_primary))
        return self

    def primary_label(self, span: SourceSpan, message: str = "") -> "DiagnosticBuilder":
        """Add a primary label (replaces any existing primary)."""
        labels = [label for label in self._diagnostic.labels if not label.is_primary]
        self._diagnostic.labels = [DiagnosticLabel(span, message, True), *labels]
        return self

    def secondary_label(self, span: SourceSpan, message: str = "") -> "DiagnosticBuilder":
        return self.label(span, message, is_primary=False)

    def note(self, message: str) -> "DiagnosticBuilder":
        self._diagnostic.notes.append(message)
        return self

    def help(self, message: str) -> "DiagnosticBuilder":
        self._diagnostic.helps.append(message)
        return self

    def emit(self) -> Diagnostic:
        """Build the diagnostic and record it on the emitter."""
        self._emitter.add_diagnostic(self._diagnostic)
        return self._diagnostic


# =============================================================================
# Diagnostic Emitter
# =============================================================================


class DiagnosticEmitter:
    """
    Collects and renders diagnostics for a source file.

    Usage:
        emitter = DiagnosticEmitter(source, "fizzbuzz.zl")
        diagnostic_from_error(error, emitter)
        print(emitter.render_all())
    """

    def __init__(self, source: str, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.diagnostics: list[Diagnostic] = []

    def add_diagnostic(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def error(
        self, code: str, message: str, span: Optional[SourceSpan] = None
    ) -> DiagnosticBuilder:
        """Create an error diagnostic builder."""
        return DiagnosticBuilder(self, code, DiagnosticLevel.ERROR, message, span)

    def has_errors(self) -> bool:
        return any(d.level == DiagnosticLevel.ERROR for d in self.diagnostics)

    def render_all(self, use_color: bool = True) -> str:
        """Render all diagnostics as a single string."""
        return "\n\n".join(d.render(self.source, use_color) for d in self.diagnostics)


# =============================================================================
# String Similarity (Levenshtein Distance)
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Calculate the Levenshtein (edit) distance between two strings.

    Returns:
        The minimum number of single-character insertions, deletions or
        substitutions turning one string into the other
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))

    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def suggest_similar(
    name: str,
    candidates: list[str],
    max_distance: int = 2,
    max_suggestions: int = 3,
) -> list[str]:
    """
    Find names close to ``name`` for "did you mean?" suggestions.

    Returns:
        Similar names, closest first, ties broken alphabetically
    """
    scored = []
    for candidate in candidates:
        if candidate == name or abs(len(candidate) - len(name)) > max_distance:
            continue
        distance = levenshtein_distance(name.lower(), candidate.lower())
        if distance <= max_distance:
            scored.append((distance, candidate))

    scored.sort()
    return [candidate for _, candidate in scored[:max_suggestions]]


# =============================================================================
# Common Diagnostic Helpers
# =============================================================================


def create_unbound_name_diagnostic(
    emitter: DiagnosticEmitter,
    name: str,
    span: SourceSpan,
    candidates: list[str],
) -> Diagnostic:
    """Create a diagnostic for a name that is not bound in any scope."""
    builder = emitter.error(ErrorCode.E0102, f"unbound name '{name}'", span)
    builder.primary_label(span, "not found in this scope")

    similar = suggest_similar(name, candidates)
    if len(similar) == 1:
        builder.help(f"did you mean '{similar[0]}'?")
    elif similar:
        suggestions_str = ", ".join(f"'{s}'" for s in similar)
        builder.help(f"did you mean one of: {suggestions_str}?")

    return builder.emit()


def create_unexpected_token_diagnostic(
    emitter: DiagnosticEmitter,
    expected: str,
    found: str,
    span: SourceSpan,
) -> Diagnostic:
    """Create a diagnostic for an unexpected token."""
    return emitter.error(ErrorCode.E0201, f"expected {expected}, found '{found}'", span).emit()


def create_unclosed_delimiter_diagnostic(
    emitter: DiagnosticEmitter,
    delimiter: str,
    open_span: SourceSpan,
    error_span: SourceSpan,
) -> Diagnostic:
    """Create a diagnostic for an unclosed delimiter."""
    closing = {"(": ")", "[": "]", "{": "}"}.get(delimiter, delimiter)
    return (
        emitter.error(ErrorCode.E0202, f"unclosed delimiter '{delimiter}'", error_span)
        .secondary_label(open_span, f"unclosed '{delimiter}' starts here")
        .help(f"add matching closing '{closing}'")
        .emit()
    )


def _indent_code(error: IndentError) -> str:
    if error.message.startswith("unexpected indent"):
        return ErrorCode.E0209
    if error.message.startswith("inconsistent dedent"):
        return ErrorCode.E0210
    return ErrorCode.E0211


def diagnostic_from_error(error: ZealError, emitter: DiagnosticEmitter) -> Diagnostic:
    """
    Convert any ZealError into a rich diagnostic recorded on ``emitter``.

    Parser errors that already produced a diagnostic should use that one
    instead; this covers everything else.
    """
    span = None
    if error.location is not None:
        span = SourceSpan.from_location(
            error.location.line, error.location.column, 1, emitter.filename
        )

    if isinstance(error, UnboundNameError) and span is not None:
        span = SourceSpan.from_location(
            span.start_line, span.start_col, len(error.name), emitter.filename
        )
        return create_unbound_name_diagnostic(emitter, error.name, span, error.candidates)

    if isinstance(error, IndentError):
        code = _indent_code(error)
    elif isinstance(error, LexerError):
        code = ErrorCode.E0208
    elif isinstance(error, ParserError):
        code = ErrorCode.E0201
    else:
        code = _RUNTIME_CODES.get(type(error), ErrorCode.E0101)

    builder = emitter.error(code, error.message, span)
    if isinstance(error, PatternMismatchError):
        builder.note("tuple patterns must have exactly as many elements as the value")
    elif isinstance(error, NotCallableError):
        builder.note("only functions and built-ins can be applied to arguments")
    return builder.emit()


__all__ = [
    "ErrorCode",
    "DiagnosticLevel",
    "SourceSpan",
    "DiagnosticLabel",
    "Diagnostic",
    "DiagnosticBuilder",
    "DiagnosticEmitter",
    "levenshtein_distance",
    "suggest_similar",
    "create_unbound_name_diagnostic",
    "create_unexpected_token_diagnostic",
    "create_unclosed_delimiter_diagnostic",
    "diagnostic_from_error",
]
