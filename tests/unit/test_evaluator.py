"""
Unit tests for the Zeal evaluator.
"""

import io

import pytest

from zeal import run_source
from zeal.compiler import parse_source
from zeal.config import InterpreterConfig
from zeal.runtime.evaluator import Interpreter, RunResult
from zeal.runtime.values import UNIT, Closure
from zeal.utils.errors import (
    DivisionByZeroError,
    NotCallableError,
    PatternMismatchError,
    StepLimitError,
    TypeMismatchError,
    UnboundNameError,
)


class TestArithmetic:
    """Numeric and string operators."""

    @pytest.mark.parametrize(
        "source, expected",
        [
            ("1 + 2 * 3", 7),
            ("(1 + 2) * 3", 9),
            ("7 / 2", 3.5),
            ("7 // 2", 3),
            ("7 % 3", 1),
            ("-5 + 2", -3),
            ("10 - 2 - 3", 5),
            ("1.5 * 2", 3.0),
        ],
    )
    def test_numbers(self, evaluate, source, expected):
        assert evaluate(source) == expected

    def test_string_concatenation(self, evaluate):
        assert evaluate('"Fizz" + "Buzz"') == "FizzBuzz"

    def test_comparisons(self, evaluate):
        assert evaluate("1 < 2.5") is True
        assert evaluate('"a" < "b"') is True
        assert evaluate("3 >= 4") is False

    def test_mixed_operands_fail(self, evaluate):
        with pytest.raises(TypeMismatchError, match="'\\+': Int and String"):
            evaluate('1 + "a"')

    def test_bools_are_not_numbers(self, evaluate):
        with pytest.raises(TypeMismatchError):
            evaluate("true + 1")

    def test_modulo_on_string_fails(self, evaluate):
        with pytest.raises(TypeMismatchError):
            evaluate('"a" % 2')

    @pytest.mark.parametrize("source", ["1 / 0", "5 // 0", "5 % 0", "1.0 / 0"])
    def test_division_by_zero(self, evaluate, source):
        with pytest.raises(DivisionByZeroError) as exc_info:
            evaluate(source)
        assert exc_info.value.kind == "DivisionByZero"

    def test_negation_needs_number(self, evaluate):
        with pytest.raises(TypeMismatchError, match="cannot negate String"):
            evaluate('-"a"')

    def test_negation_line_is_its_own_statement(self, evaluate):
        assert evaluate("i := 1\nj := 5\n-i\nj") == 5
        assert evaluate("i := 1\ni + 1 == 2\n-i") == -1


class TestEqualityAndLogic:
    """Structural equality and short-circuit logic."""

    def test_structural_equality(self, evaluate):
        assert evaluate('[1, (2, "x")] == [1, (2, "x")]') is True
        assert evaluate("(1, 2) != (1, 3)") is True

    def test_different_kinds_are_unequal(self, evaluate):
        assert evaluate('1 == "1"') is False
        assert evaluate("true == 1") is False

    def test_int_equals_float(self, evaluate):
        assert evaluate("1 == 1.0") is True

    def test_range_equals_list(self, evaluate):
        assert evaluate("1..3 == [1, 2, 3]") is True

    def test_short_circuit(self, evaluate):
        assert evaluate("false && 1 / 0 == 1") is False
        assert evaluate("true || 1 / 0 == 1") is True

    def test_logic_needs_bools(self, evaluate):
        with pytest.raises(TypeMismatchError, match="'&&' expects Bool"):
            evaluate("1 && true")

    def test_not(self, evaluate):
        assert evaluate("!false") is True
        with pytest.raises(TypeMismatchError):
            evaluate("!0")


class TestBindings:
    """:=, =, += and ++=."""

    def test_binding_statement_is_unit(self, evaluate):
        assert evaluate("x := 1") is UNIT

    def test_block_value_is_last_statement(self, evaluate):
        assert evaluate("x := 1\ny := x + 1\ny * 10") == 20

    def test_shadowing_in_inner_scope(self, evaluate):
        source = "x := 1\nf := fn ->\n    x := 2\n    x\n[f!, x]"
        assert evaluate(source) == [2, 1]

    def test_assign_is_fresh_binding_by_default(self, evaluate):
        source = "x := 1\nf := fn ->\n    x = 2\n    x\ny := f!\n[x, y]"
        assert evaluate(source) == [1, 2]

    def test_assign_rebinds_when_configured(self, evaluate):
        source = "x := 1\nf := fn ->\n    x = 2\n    x\ny := f!\n[x, y]"
        assert evaluate(source, rebind_on_assign=True) == [2, 2]

    def test_declare_never_rebinds(self, evaluate):
        source = "x := 1\nf := fn ->\n    x := 2\n    x\nf!\nx"
        assert evaluate(source, rebind_on_assign=True) == 1

    def test_append_updates_enclosing_binding(self, evaluate):
        source = 's := "a"\nfor x <- ["b", "c"]: s += x\ns'
        assert evaluate(source) == "abc"

    def test_append_needs_string_binding(self, evaluate):
        with pytest.raises(TypeMismatchError, match="needs a String binding"):
            evaluate('n := 1\nn += "x"')

    def test_append_needs_string_value(self, evaluate):
        with pytest.raises(TypeMismatchError, match="cannot append Int"):
            evaluate('s := "a"\ns += 1')

    def test_append_to_unbound_name(self, evaluate):
        with pytest.raises(UnboundNameError):
            evaluate('s += "x"')

    def test_concat_assign(self, evaluate):
        assert evaluate("xs := [1]\nxs ++= [2, 3]\nxs ++= 4..5\nxs") == [1, 2, 3, 4, 5]

    def test_concat_assign_needs_list(self, evaluate):
        with pytest.raises(TypeMismatchError, match="needs a List binding"):
            evaluate('s := "a"\ns ++= [1]')

    def test_concat_builds_new_list(self, evaluate):
        assert evaluate("xs := [1]\nys := xs ++ [2]\n(xs, ys)") == ([1], [1, 2])

    @pytest.mark.list_mutation
    def test_concat_without_rebinding_leaves_list_unchanged(self, evaluate):
        source = "res := []\nfor x <- [1, 2, 3]: res ++ [x]\nres"
        assert evaluate(source) == []

    def test_tuple_destructuring(self, evaluate):
        assert evaluate("(a, (b, c)) := (1, (2, 3))\na + b + c") == 6


class TestFunctions:
    """Closures, currying and calls."""

    def test_lambda_value(self, evaluate):
        assert isinstance(evaluate("fn x -> x"), Closure)

    def test_call(self, evaluate):
        assert evaluate("add := fn a b -> a + b\nadd 2 3") == 5

    def test_partial_application(self, evaluate):
        source = "add := fn a b c -> a + b + c\nadd1 := add 1\nadd1 2 3"
        assert evaluate(source) == 6

    def test_parenthesized_partial(self, evaluate):
        assert evaluate("add := fn a b c -> a + b + c\n(add 1 2) 3") == 6

    def test_surplus_arguments_apply_result(self, evaluate):
        assert evaluate("k := fn x -> fn y -> x * y\nk 3 4") == 12

    def test_closure_captures_defining_scope(self, evaluate):
        source = "make := fn n -> fn x -> x + n\nadd5 := make 5\nn := 100\nadd5 1"
        assert evaluate(source) == 6

    def test_zero_parameter_call(self, evaluate):
        assert evaluate("tick := fn -> 42\ntick!") == 42

    def test_recursion(self, evaluate):
        source = "fact := fn n -> if n <= 1 then 1 else n * (fact (n - 1))\nfact 5"
        assert evaluate(source) == 120

    def test_tuple_parameter(self, evaluate):
        assert evaluate('second := fn (a, b) -> b\nsecond (3, "Fizz")') == "Fizz"

    def test_block_body_returns_last_statement(self, evaluate):
        source = "f := fn n ->\n    m := n * 2\n    m + 1\nf 4"
        assert evaluate(source) == 9

    def test_not_callable(self, evaluate):
        with pytest.raises(NotCallableError, match="value of type Int is not callable"):
            evaluate("x := 5\nx 3")

    def test_closure_name_from_binding(self, evaluate):
        assert evaluate("double := fn x -> x * 2\ndouble").name == "double"

    def test_call_depth_limit(self, evaluate):
        with pytest.raises(StepLimitError, match="maximum call depth of 50"):
            evaluate("f := fn n -> f (n + 1)\nf 0", max_call_depth=50)


class TestControlFlow:
    """if, for and while."""

    def test_if_expression(self, evaluate):
        assert evaluate("if 1 < 2 then `yes` else `no`") == "yes"

    def test_missing_else_is_unit(self, evaluate):
        assert evaluate("if false then 1") is UNIT

    def test_condition_must_be_bool(self, evaluate):
        with pytest.raises(TypeMismatchError, match="condition must be a Bool"):
            evaluate("if 1 then 2 else 3")

    def test_else_if_chain(self, evaluate):
        source = (
            "classify := fn n ->\n"
            "    if n < 0:\n"
            "        `neg`\n"
            "    else if n == 0:\n"
            "        `zero`\n"
            "    else:\n"
            "        `pos`\n"
            "[classify (-1), classify 0, classify 5]"
        )
        assert evaluate(source) == ["neg", "zero", "pos"]

    def test_for_is_unit(self, evaluate):
        assert evaluate("for x <- [1]: x") is UNIT

    def test_for_over_string(self, run):
        assert run("for c <- `ab`: println c").output == "a\nb\n"

    def test_for_over_range(self, run):
        assert run("for i <- 1..3: print i").output == "1\n2\n3\n"

    def test_for_needs_iterable(self, evaluate):
        with pytest.raises(TypeMismatchError, match="cannot iterate over Int"):
            evaluate("for x <- 5: x")

    def test_loop_variable_is_scoped(self, evaluate):
        with pytest.raises(UnboundNameError):
            evaluate("for x <- [1]: x\nx")

    def test_while_with_rebinding(self, evaluate):
        source = (
            "n := 3\n"
            "total := 0\n"
            "while n > 0:\n"
            "    total = total + n\n"
            "    n = n - 1\n"
            "total"
        )
        assert evaluate(source, rebind_on_assign=True) == 6

    def test_while_counter_needs_rebinding(self, evaluate):
        source = "i := 1\nwhile i <= 15:\n    i = i + 1\ni"
        with pytest.raises(StepLimitError):
            evaluate(source, max_steps=200)
        assert evaluate(source, rebind_on_assign=True, max_steps=200) == 16

    def test_while_append_updates_without_rebinding(self, evaluate):
        source = "s := ``\nwhile (length s) < 3:\n    s += `x`\ns"
        assert evaluate(source, max_steps=200) == "xxx"

    def test_step_limit(self, evaluate):
        with pytest.raises(StepLimitError, match="step limit of 50 exceeded"):
            evaluate("while true: 1", max_steps=50)


class TestPatterns:
    """Destructuring failures."""

    def test_arity_mismatch(self, evaluate):
        with pytest.raises(PatternMismatchError, match="2 elements but the value has 3"):
            evaluate('for (m, s) <- [(3, "Fizz", 1)]: println s')

    def test_not_a_tuple(self, evaluate):
        with pytest.raises(PatternMismatchError, match="cannot destructure Int"):
            evaluate("(a, b) := 5")

    def test_list_is_not_a_tuple(self, evaluate):
        with pytest.raises(PatternMismatchError):
            evaluate("(a, b) := [1, 2]")


class TestTemplatesAndRanges:
    """String interpolation and range values."""

    def test_interpolation(self, evaluate):
        assert evaluate("`a{1+2}b`") == "a3b"

    def test_interpolation_uses_display_form(self, evaluate):
        assert evaluate('`{[1, "x"]} {true} {()}`') == '[1, "x"] true ()'

    def test_interpolation_sees_scope(self, evaluate):
        assert evaluate("i := 7\n`i = {i}`") == "i = 7"

    def test_range_is_inclusive(self, evaluate):
        assert list(evaluate("1..5")) == [1, 2, 3, 4, 5]

    def test_empty_range(self, evaluate):
        assert list(evaluate("5..1")) == []

    def test_range_bounds_must_be_int(self, evaluate):
        with pytest.raises(TypeMismatchError, match="range bounds must be Int"):
            evaluate("1..2.5")


class TestErrorsAndOutput:
    """Error reporting and output capture."""

    def test_unbound_name_position(self, evaluate):
        with pytest.raises(UnboundNameError) as exc_info:
            evaluate("x := 1\nprintln y")
        error = exc_info.value
        assert error.name == "y"
        assert error.location.line == 2
        assert error.location.column == 9
        assert error.report().to_dict() == {
            "kind": "UnboundName",
            "message": "unbound name 'y'",
            "position": {"line": 2, "column": 9},
        }

    def test_unbound_name_candidates(self, evaluate):
        with pytest.raises(UnboundNameError) as exc_info:
            evaluate("fizzbuzz := 1\nfizbuzz")
        assert "fizzbuzz" in exc_info.value.candidates

    def test_error_carries_source_line(self, evaluate):
        with pytest.raises(UnboundNameError) as exc_info:
            evaluate("println nope")
        assert exc_info.value.source_line == "println nope"
        assert "println nope" in str(exc_info.value)

    def test_output_is_captured(self, run):
        result = run("println 1\nprint `x`")
        assert isinstance(result, RunResult)
        assert result.output == "1\nx\n"

    def test_output_before_error_is_kept(self):
        stream = io.StringIO()
        with pytest.raises(UnboundNameError):
            run_source("println `before`\nmissing", output=stream)
        assert stream.getvalue() == "before\n"

    def test_display_value(self, run):
        assert run('[1, "a"]').display_value == '[1, "a"]'


class TestInterpreterState:
    """Interpreter reuse and isolation."""

    def test_globals_persist_across_runs(self):
        interpreter = Interpreter(output=io.StringIO())
        interpreter.run(parse_source("x := 41"))
        assert interpreter.run(parse_source("x + 1")).value == 42
        assert interpreter.user_bindings() == {"x": 41}

    def test_reset_forgets_bindings(self):
        interpreter = Interpreter(output=io.StringIO())
        interpreter.run(parse_source("x := 1"))
        interpreter.reset()
        with pytest.raises(UnboundNameError):
            interpreter.run(parse_source("x"))

    def test_interpreters_are_independent(self):
        first = Interpreter(output=io.StringIO())
        second = Interpreter(output=io.StringIO())
        first.run(parse_source("x := 1"))
        with pytest.raises(UnboundNameError):
            second.run(parse_source("x"))

    def test_builtins_can_be_shadowed(self, evaluate):
        assert evaluate("map := 3\nmap + 1") == 4

    def test_config_is_used(self):
        config = InterpreterConfig(max_steps=3)
        interpreter = Interpreter(output=io.StringIO(), config=config)
        with pytest.raises(StepLimitError):
            interpreter.run(parse_source("a := 1\nb := 2\nc := 3\nd := 4"))
