"""
Unit tests for rich error diagnostics.
"""

import pytest

from zeal.utils.diagnostics import (
    DiagnosticEmitter,
    DiagnosticLevel,
    ErrorCode,
    SourceSpan,
    diagnostic_from_error,
    levenshtein_distance,
    suggest_similar,
)
from zeal.utils.errors import (
    DivisionByZeroError,
    IndentError,
    LexerError,
    PatternMismatchError,
    SourceLocation,
    TypeMismatchError,
    UnboundNameError,
)


class TestLevenshtein:
    """Edit distance."""

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ("", "", 0),
            ("map", "map", 0),
            ("map", "", 3),
            ("kitten", "sitting", 3),
            ("fizbuzz", "fizzbuzz", 1),
        ],
    )
    def test_distance(self, a, b, expected):
        assert levenshtein_distance(a, b) == expected
        assert levenshtein_distance(b, a) == expected


class TestSuggestions:
    """Did-you-mean candidates."""

    def test_closest_first(self):
        assert suggest_similar("fizbuzz", ["fizzbuzz", "buzz", "fizz"]) == ["fizzbuzz"]

    def test_exact_name_skipped(self):
        assert suggest_similar("map", ["map"]) == []

    def test_limit(self):
        assert suggest_similar("ab", ["aa", "ac", "ad", "ae"], max_suggestions=2) == ["aa", "ac"]


class TestFromError:
    """Converting ZealErrors into diagnostics."""

    def _diagnostic(self, error, source="x := 1\n"):
        return diagnostic_from_error(error, DiagnosticEmitter(source, "test.zl"))

    @pytest.mark.parametrize(
        "error, code",
        [
            (TypeMismatchError("bad", SourceLocation(1, 1)), ErrorCode.E0101),
            (DivisionByZeroError("division by zero", SourceLocation(1, 1)), ErrorCode.E0114),
            (LexerError("invalid token", SourceLocation(1, 1)), ErrorCode.E0208),
            (IndentError("unexpected indent", SourceLocation(1, 1)), ErrorCode.E0209),
            (IndentError("inconsistent dedent", SourceLocation(1, 1)), ErrorCode.E0210),
            (
                IndentError("expected an indented block after ':'", SourceLocation(1, 1)),
                ErrorCode.E0211,
            ),
        ],
    )
    def test_codes(self, error, code):
        diagnostic = self._diagnostic(error)
        assert diagnostic.code == code
        assert diagnostic.level == DiagnosticLevel.ERROR

    def test_unbound_name_help(self):
        error = UnboundNameError("fizbuzz", SourceLocation(1, 1), candidates=["fizzbuzz", "map"])
        diagnostic = self._diagnostic(error, "fizbuzz 3\n")
        assert diagnostic.code == ErrorCode.E0102
        assert diagnostic.helps == ["did you mean 'fizzbuzz'?"]
        assert diagnostic.primary_span.length == len("fizbuzz")

    def test_unbound_name_from_program(self, run):
        with pytest.raises(UnboundNameError) as excinfo:
            run("lenght [1, 2]")
        diagnostic = self._diagnostic(excinfo.value, "lenght [1, 2]\n")
        assert diagnostic.helps == ["did you mean 'length'?"]

    def test_pattern_mismatch_note(self):
        diagnostic = self._diagnostic(PatternMismatchError("bad", SourceLocation(1, 1)))
        assert diagnostic.notes

    def test_without_location(self):
        diagnostic = self._diagnostic(TypeMismatchError("bad"))
        assert diagnostic.primary_span is None


class TestRender:
    """Plain-text rendering."""

    def test_render_without_color(self):
        source = "x := 1\nfizbuzz 15\n"
        error = UnboundNameError("fizbuzz", SourceLocation(2, 1, filename="test.zl"),
                                 candidates=["fizzbuzz"])
        text = diagnostic_from_error(error, DiagnosticEmitter(source, "test.zl")).render(
            source, use_color=False
        )
        lines = text.splitlines()
        assert lines[0] == "error[E0102]: unbound name 'fizbuzz'"
        assert lines[1] == "  --> test.zl:2:1"
        assert "  2 | fizbuzz 15" in lines
        assert "   | ^^^^^^^ not found in this scope" in lines
        assert lines[-1] == "   = help: did you mean 'fizzbuzz'?"

    def test_span_from_location(self):
        span = SourceSpan.from_location(3, 4, 2, "a.zl")
        assert str(span) == "a.zl:3:4"
        assert span.length == 2

    def test_render_all(self):
        emitter = DiagnosticEmitter("a\nb\n", "test.zl")
        diagnostic_from_error(TypeMismatchError("one", SourceLocation(1, 1)), emitter)
        diagnostic_from_error(TypeMismatchError("two", SourceLocation(2, 1)), emitter)
        assert emitter.has_errors()
        assert emitter.render_all(use_color=False).count("error[E0101]") == 2
