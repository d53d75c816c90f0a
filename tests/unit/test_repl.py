"""
Tests for the interactive session.
"""

import io

import pytest

from zeal.repl import Colors, REPLCompleter, REPLSession


@pytest.fixture
def session():
    Colors.disable()
    return REPLSession(output=io.StringIO())


class TestEvaluation:
    """What each input shows."""

    def test_binding_shows_name(self, session):
        assert session.eval_line("x := 1") == "x = 1"

    def test_plain_assignment_shows_name(self, session):
        session.eval_line("x := 1")
        assert session.eval_line("x = 2") == "x = 2"

    def test_expression_value(self, session):
        assert session.eval_line("1 + 2") == "3"

    def test_strings_are_quoted(self, session):
        assert session.eval_line('"a" + "b"') == '"ab"'

    def test_bindings_persist(self, session):
        session.eval_line("double := fn x -> x * 2")
        assert session.eval_line("[1, 2] .map double") == "[2, 4]"

    def test_unit_shows_nothing(self, session):
        assert session.eval_line("println 3") is None
        assert session.interpreter._output.getvalue() == "3\n"

    def test_loop_shows_nothing(self, session):
        assert session.eval_line("for i <- 1..2:\n    println! i\n") is None

    def test_blank_input(self, session):
        assert session.eval_line("   ") is None

    def test_error_is_reported(self, session):
        shown = session.eval_line("1 + true")
        assert shown.startswith("TypeMismatch:")

    def test_unbound_name(self, session):
        shown = session.eval_line("missing")
        assert shown.startswith("UnboundName:")
        assert "unbound name 'missing'" in shown

    def test_syntax_error_keeps_session(self, session):
        session.eval_line("x := 1")
        assert session.eval_line("x := (").startswith("ParseError:")
        assert session.eval_line("x") == "1"


class TestCommands:
    """Colon commands."""

    def test_help(self, session):
        shown = session.eval_line(":help")
        assert "Commands:" in shown
        assert "println" in shown

    def test_aliases(self, session):
        assert session.eval_line(":?") == session.eval_line(":h")

    def test_quit(self, session):
        session.eval_line(":q")
        assert session.running is False

    def test_unknown(self, session):
        assert session.eval_line(":bogus").startswith("Unknown command: :bogus")

    def test_vars(self, session):
        assert session.eval_line(":vars") == "No names bound"
        session.eval_line('name := "zeal"')
        assert session.eval_line(":v") == '  name: String = "zeal"'

    def test_reset(self, session):
        session.eval_line("x := 1")
        assert session.eval_line(":reset") == "Session reset"
        assert session.eval_line("x").startswith("UnboundName:")

    def test_ast(self, session):
        shown = session.eval_line(":ast 1 + 2")
        assert "BinaryOp(" in shown
        assert session.eval_line(":ast").startswith("Error:")

    def test_tokens(self, session):
        shown = session.eval_line(":tokens x := 1")
        assert "Token(IDENTIFIER, 'x'" in shown
        assert "Token(DECLARE" in shown

    def test_load(self, session, tmp_path):
        path = tmp_path / "lib.zl"
        path.write_text("answer := 42\n", encoding="utf-8")
        shown = session.eval_line(f":load {path}")
        assert shown == f"answer = 42\nLoaded {path}"
        assert session.eval_line("answer + 1") == "43"

    def test_load_missing_file(self, session, tmp_path):
        assert session.eval_line(f":load {tmp_path / 'nope.zl'}").startswith(
            "Error: File not found"
        )


class TestContinuation:
    """When the REPL asks for more lines."""

    @pytest.mark.parametrize(
        "text",
        [
            "f := fn x ->",
            "[1, 2",
            "total := 1 +",
            "if ready then",
            "for i <- 1..3:\n    println! i",
        ],
    )
    def test_incomplete(self, session, text):
        assert session.is_incomplete(text)

    @pytest.mark.parametrize(
        "text",
        [
            "x := 1",
            ":help",
            "for i <- 1..3:\n    println! i\n",
        ],
    )
    def test_complete(self, session, text):
        assert not session.is_incomplete(text)


class TestCompletion:
    """Tab completion."""

    def test_builtins_and_bindings(self, session):
        session.eval_line("mass := 1")
        completer = REPLCompleter(session)
        assert completer._get_completions("ma") == ["map", "mass"]

    def test_commands(self, session):
        assert REPLCompleter(session)._get_completions(":he") == [":help"]

    def test_complete_state(self, session):
        completer = REPLCompleter(session)
        assert completer.complete("fol", 0) == "fold"
        assert completer.complete("fol", 1) is None
