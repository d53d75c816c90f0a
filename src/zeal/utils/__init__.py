"""
Zeal Utilities Package.

Common utilities for error handling, source locations, and diagnostics.
"""

from zeal.utils.diagnostics import (
    Diagnostic,
    DiagnosticBuilder,
    DiagnosticEmitter,
    DiagnosticLabel,
    DiagnosticLevel,
    ErrorCode,
    SourceSpan,
    create_unbound_name_diagnostic,
    create_unclosed_delimiter_diagnostic,
    create_unexpected_token_diagnostic,
    diagnostic_from_error,
    levenshtein_distance,
    suggest_similar,
)
from zeal.utils.errors import (
    DivisionByZeroError,
    ErrorReport,
    EvaluationError,
    IndentError,
    LexerError,
    NotCallableError,
    ParserError,
    PatternMismatchError,
    SourceLocation,
    StepLimitError,
    SyntaxFailure,
    TypeMismatchError,
    UnboundNameError,
    ZealError,
)

__all__ = [
    # Errors
    "ZealError",
    "SyntaxFailure",
    "LexerError",
    "IndentError",
    "ParserError",
    "EvaluationError",
    "UnboundNameError",
    "NotCallableError",
    "TypeMismatchError",
    "PatternMismatchError",
    "DivisionByZeroError",
    "StepLimitError",
    "ErrorReport",
    "SourceLocation",
    # Diagnostics
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
