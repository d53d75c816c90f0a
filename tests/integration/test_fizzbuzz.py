"""
End-to-end tests: whole programs from source text to printed output.
"""

import pytest

from zeal.utils.errors import PatternMismatchError, UnboundNameError

FIZZBUZZ_LINES = [
    "FizzBuzz" if i % 15 == 0 else "Fizz" if i % 3 == 0 else "Buzz" if i % 5 == 0 else str(i)
    for i in range(1, 16)
]
FIZZBUZZ_OUTPUT = "\n".join(FIZZBUZZ_LINES) + "\n"

FIZZBUZZ_DEFINITION = """\
fizzbuzz := fn n rules ->
    res := ""
    for (m, s) <- rules:
        if n % m == 0 then res += s
    if res == "" then `{n}` else res
rules := [(3, "Fizz"), (5, "Buzz")]
"""


class TestFizzBuzz:
    """The same program written with each call notation."""

    def test_dot_chain(self, run):
        source = FIZZBUZZ_DEFINITION + '1..15 .map (fn i -> fizzbuzz i rules) .join "\\n" .println!\n'
        assert run(source).output == FIZZBUZZ_OUTPUT

    def test_pipes_with_block_lambda(self, run):
        source = """\
rules := [(3, "Fizz"), (5, "Buzz")]
range 1 15 |> map fn i ->
    s := rules |> map (fn (m, w) -> if i % m == 0 then w else "") |> join ""
    if s == "" then str i else s
|> join "\\n"
|> println
"""
        assert run(source).output == FIZZBUZZ_OUTPUT

    def test_comma_arguments(self, run):
        source = FIZZBUZZ_DEFINITION + """\
lines := map 1..15, fn i -> fizzbuzz i rules
text := join lines, "\\n"
println text
"""
        assert run(source).output == FIZZBUZZ_OUTPUT

    def test_loop_with_println(self, run):
        source = FIZZBUZZ_DEFINITION + """\
for i <- 1..15:
    println (fizzbuzz i rules)
"""
        assert run(source).output == FIZZBUZZ_OUTPUT

    def test_single_values(self, evaluate):
        assert evaluate(FIZZBUZZ_DEFINITION + "fizzbuzz 15 rules") == "FizzBuzz"
        assert evaluate(FIZZBUZZ_DEFINITION + "fizzbuzz 7 rules") == "7"


class TestLanguageLaws:
    """Properties that hold across the language."""

    @pytest.mark.parametrize(
        "call",
        ["sub 10 3", "sub 10, 3", "10 .sub 3", "10 |> sub 3", "(sub 10) 3", "sub! 10 3"],
    )
    def test_call_notations_agree(self, evaluate, call):
        assert evaluate(f"sub := fn a b -> a - b\n{call}") == 7

    def test_currying(self, evaluate):
        source = "add := fn a b -> a + b\ninc := add 1\n(inc 41, add 1 41)"
        assert evaluate(source) == (42, 42)

    def test_range_matches_builtin(self, evaluate):
        assert evaluate("(range 1 15) == 1..15") is True
        assert evaluate("length 1..15") == 15

    def test_template_interpolation(self, evaluate):
        assert evaluate("x := 3\n`a{x}b`") == "a3b"

    def test_pipe_feeds_first_argument(self, evaluate):
        assert evaluate('["a", "b"] |> join "-"') == "a-b"

    def test_closures_capture_definition_scope(self, evaluate):
        source = """\
make := fn n -> fn x -> x + n
add5 := make 5
n := 100
add5 1
"""
        assert evaluate(source) == 6


class TestFailures:
    """Runtime failures surface with their kind and position."""

    def test_tuple_pattern_arity(self, run):
        with pytest.raises(PatternMismatchError) as excinfo:
            run("for (a, b) <- [(1, 2, 3)]:\n    println a\n")
        assert excinfo.value.report().kind == "PatternMismatch"

    def test_unbound_name(self, run):
        with pytest.raises(UnboundNameError) as excinfo:
            run("println 1\nprintln missing\n")
        report = excinfo.value.report().to_dict()
        assert report["kind"] == "UnboundName"
        assert report["position"] == {"line": 2, "column": 9}


class TestProperties:
    """Small algebraic properties of ranges, map and templates."""

    @pytest.mark.parametrize("lo, hi", [(1, 15), (3, 3), (5, 1), (-2, 2)])
    def test_range_size(self, evaluate, lo, hi):
        assert evaluate(f"length (({lo})..({hi}))") == max(0, hi - lo + 1)

    def test_map_preserves_length_and_order(self, evaluate):
        assert evaluate("xs := [5, 3, 9]\nmap xs (fn x -> x)") == [5, 3, 9]

    def test_template_expression(self, evaluate):
        assert evaluate("`a{1+2}b`") == "a3b"
