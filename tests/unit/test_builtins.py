"""
Unit tests for the built-in function library.
"""

import io

import pytest

from zeal.runtime.builtins import BUILTINS
from zeal.runtime.evaluator import Interpreter
from zeal.runtime.values import UNIT, Builtin
from zeal.utils.errors import TypeMismatchError


class TestRegistry:
    """The built-in table."""

    def test_core_builtins_registered(self):
        for name in ("map", "join", "print", "println", "range", "reverse"):
            assert name in BUILTINS

    def test_supplementary_builtins_registered(self):
        for name in ("filter", "fold", "length", "str", "sum"):
            assert name in BUILTINS

    def test_arity(self):
        assert BUILTINS["map"].arity == 2
        assert BUILTINS["fold"].arity == 3
        assert BUILTINS["println"].arity == 1

    def test_apply_directly(self):
        interpreter = Interpreter(output=io.StringIO())
        assert interpreter.apply(BUILTINS["reverse"], ([1, 2],)) == [2, 1]


class TestSequenceBuiltins:
    """map, filter, fold, reverse, length, sum."""

    def test_map(self, evaluate):
        assert evaluate("map [1, 2, 3] (fn x -> x * 2)") == [2, 4, 6]

    def test_map_over_range(self, evaluate):
        assert evaluate("map 1..3, fn x -> x * x") == [1, 4, 9]

    def test_map_preserves_length_and_order(self, evaluate):
        assert evaluate("map [3, 1, 2] (fn x -> x)") == [3, 1, 2]

    def test_map_is_curried(self, evaluate):
        source = "over := map [1, 2]\nover (fn x -> x + 1)"
        assert evaluate(source) == [2, 3]

    def test_map_needs_list(self, evaluate):
        with pytest.raises(TypeMismatchError, match="'map' expects a List, found Int"):
            evaluate("map 5 (fn x -> x)")

    def test_filter(self, evaluate):
        assert evaluate("filter 1..6 (fn x -> x % 2 == 0)") == [2, 4, 6]

    def test_filter_predicate_must_return_bool(self, evaluate):
        with pytest.raises(TypeMismatchError, match="must return a Bool"):
            evaluate("filter [1] (fn x -> x)")

    def test_fold(self, evaluate):
        assert evaluate("fold [1, 2, 3] 0 (fn acc x -> acc + x)") == 6

    def test_fold_empty_returns_initial(self, evaluate):
        assert evaluate('fold [] `start` (fn acc x -> acc)') == "start"

    def test_reverse(self, evaluate):
        assert evaluate("reverse [1, 2, 3]") == [3, 2, 1]
        assert evaluate("reverse 1..3") == [3, 2, 1]
        assert evaluate("reverse `abc`") == "cba"

    def test_reverse_returns_new_list(self, evaluate):
        assert evaluate("xs := [1, 2]\nys := reverse xs\nxs") == [1, 2]

    def test_length(self, evaluate):
        assert evaluate("length [1, 2]") == 2
        assert evaluate("length `abc`") == 3
        assert evaluate("length 1..10") == 10

    def test_sum(self, evaluate):
        assert evaluate("sum [1, 2.5]") == 3.5
        assert evaluate("sum []") == 0

    def test_sum_needs_numbers(self, evaluate):
        with pytest.raises(TypeMismatchError, match="List of numbers"):
            evaluate('sum ["a"]')


class TestRangeBuiltin:
    """range lo hi."""

    def test_inclusive(self, evaluate):
        assert list(evaluate("range 1 5")) == [1, 2, 3, 4, 5]

    def test_empty_when_reversed(self, evaluate):
        assert list(evaluate("range 3 1")) == []

    def test_same_as_range_literal(self, evaluate):
        assert evaluate("(range 2 4) == 2..4") is True

    def test_bounds_must_be_int(self, evaluate):
        with pytest.raises(TypeMismatchError, match="'range' expects an Int"):
            evaluate('range 1 "a"')


class TestStringBuiltins:
    """join and str."""

    def test_join(self, evaluate):
        assert evaluate('join ["a", "b", "c"] "-"') == "a-b-c"

    def test_join_empty(self, evaluate):
        assert evaluate('join [] ","') == ""

    def test_join_needs_strings(self, evaluate):
        with pytest.raises(TypeMismatchError, match="List of String"):
            evaluate('join [1, 2] ","')

    def test_join_separator_must_be_string(self, evaluate):
        with pytest.raises(TypeMismatchError, match="'join' expects a String"):
            evaluate('join ["a"] 1')

    @pytest.mark.parametrize(
        "source, expected",
        [
            ("str 42", "42"),
            ("str 2.5", "2.5"),
            ("str `x`", "x"),
            ('str [1, "a"]', '[1, "a"]'),
            ("str (1, true)", "(1, true)"),
            ("str map", "<builtin map>"),
            ("str (fn a b -> a)", "<fn a b>"),
            ("str (fn -> 1)", "<fn>"),
        ],
    )
    def test_str(self, evaluate, source, expected):
        assert evaluate(source) == expected


class TestOutputBuiltins:
    """print and println."""

    def test_println_writes_line(self, run):
        result = run("println `hello`")
        assert result.output == "hello\n"
        assert result.value is UNIT

    def test_print_matches_println(self, run):
        assert run("print [1, 2]").output == run("println [1, 2]").output == "[1, 2]\n"

    def test_println_marker(self, run):
        assert run("println! 3").output == "3\n"

    def test_partial_builtin_value(self, evaluate):
        partial = evaluate('join ["a"]')
        assert isinstance(partial, Builtin)
        assert partial.remaining == 1
