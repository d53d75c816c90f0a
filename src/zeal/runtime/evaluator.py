"""
Zeal tree-walking evaluator.

The Interpreter is an AST visitor. Each visit_* method returns the Zeal
value of the node; statements evaluate to Unit. Scoping is lexical: every
block and every closure call gets a fresh Environment whose parent is the
enclosing (or captured) one.

Usage:
    program = parse_source(source)
    result = Interpreter().run(program)
    result.value, result.output
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Optional, TextIO

from zeal.compiler.ast_nodes import (
    Assign,
    AssignOperator,
    ASTVisitor,
    BinaryOp,
    BinaryOperator,
    Block,
    BooleanLiteral,
    Call,
    FloatLiteral,
    For,
    Identifier,
    If,
    IntegerLiteral,
    Lambda,
    Let,
    ListLiteral,
    NamePattern,
    Node,
    Pattern,
    Program,
    RangeLiteral,
    StringTemplate,
    TemplateExpression,
    TupleLiteral,
    TuplePattern,
    UnaryOp,
    UnaryOperator,
    UnitLiteral,
    While,
)
from zeal.config import InterpreterConfig
from zeal.runtime.builtins import BUILTINS
from zeal.runtime.environment import Environment, Frame
from zeal.runtime.values import (
    UNIT,
    Builtin,
    Closure,
    display,
    is_number,
    type_name,
    values_equal,
)
from zeal.utils.errors import (
    DivisionByZeroError,
    NotCallableError,
    PatternMismatchError,
    SourceLocation,
    StepLimitError,
    TypeMismatchError,
)

logger = logging.getLogger("zeal.runtime")

# Python frames used per Zeal call, roughly; sizes the recursion limit
_FRAMES_PER_CALL = 30

ARITHMETIC = {
    BinaryOperator.ADD: lambda a, b: a + b,
    BinaryOperator.SUB: lambda a, b: a - b,
    BinaryOperator.MUL: lambda a, b: a * b,
    BinaryOperator.DIV: lambda a, b: a / b,
    BinaryOperator.FLOOR_DIV: lambda a, b: a // b,
    BinaryOperator.MOD: lambda a, b: a % b,
}

COMPARISON = {
    BinaryOperator.LT: lambda a, b: a < b,
    BinaryOperator.GT: lambda a, b: a > b,
    BinaryOperator.LE: lambda a, b: a <= b,
    BinaryOperator.GE: lambda a, b: a >= b,
}


@dataclass(frozen=True)
class RunResult:
    """
    Outcome of running a program.

    Attributes:
        value: Value of the last top-level statement
        output: Everything written by print/println during the run
    """

    value: Any
    output: str

    @property
    def display_value(self) -> str:
        return display(self.value)


class Interpreter(ASTVisitor):
    """
    Evaluates Zeal programs.

    Top-level bindings persist across calls to ``run``, so one
    Interpreter can serve a whole REPL session. Separate Interpreter
    instances share nothing.
    """

    def __init__(
        self,
        output: Optional[TextIO] = None,
        config: Optional[InterpreterConfig] = None,
    ) -> None:
        """
        Args:
            output: Stream for print/println; sys.stdout when None
            config: Evaluation limits and assignment semantics
        """
        self.config = config or InterpreterConfig()
        self._output = output
        self._written: list[str] = []
        self.builtins = Environment()
        for name, function in BUILTINS.items():
            self.builtins.define(name, function)
        self.globals = self.builtins.child()
        self.environment = self.globals
        self.frames: list[Frame] = []
        self.steps = 0

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def run(self, program: Program) -> RunResult:
        """
        Evaluate a program in the global scope.

        Raises:
            EvaluationError: On the first runtime failure; output already
                written stays written
        """
        self._written = []
        self.steps = 0
        self.frames = []
        self.environment = self.globals

        limit = sys.getrecursionlimit()
        wanted = self.config.max_call_depth * _FRAMES_PER_CALL + 1000
        if wanted > limit:
            sys.setrecursionlimit(wanted)
        try:
            value = self.visit(program)
        except RecursionError:
            raise StepLimitError(
                "maximum recursion depth exceeded", self._innermost_location()
            ) from None
        finally:
            sys.setrecursionlimit(limit)
            self.environment = self.globals
            self.frames = []

        return RunResult(value, "".join(self._written))

    def reset(self) -> None:
        """Forget every top-level binding."""
        self.globals = self.builtins.child()
        self.environment = self.globals

    def write(self, text: str) -> None:
        """Write program output."""
        stream = self._output if self._output is not None else sys.stdout
        stream.write(text)
        self._written.append(text)

    def user_bindings(self) -> dict[str, Any]:
        """Top-level names defined by the program, in definition order."""
        return dict(self.globals.values)

    def _innermost_location(self) -> Optional[SourceLocation]:
        return self.frames[-1].location if self.frames else None

    # -------------------------------------------------------------------------
    # Scopes and statements
    # -------------------------------------------------------------------------

    @contextmanager
    def _scope(self, environment: Environment) -> Iterator[Environment]:
        previous = self.environment
        self.environment = environment
        try:
            yield environment
        finally:
            self.environment = previous

    def _tick(self, node: Node) -> None:
        self.steps += 1
        limit = self.config.max_steps
        if limit is not None and self.steps > limit:
            raise StepLimitError(f"step limit of {limit} exceeded", node.location)

    def _execute_statements(self, statements: tuple[Node, ...]) -> Any:
        value: Any = UNIT
        for statement in statements:
            self._tick(statement)
            value = self.visit(statement)
        return value

    def visit_program(self, node: Program) -> Any:
        return self._execute_statements(node.statements)

    def visit_block(self, node: Block) -> Any:
        with self._scope(self.environment.child()):
            return self._execute_statements(node.statements)

    def visit_let(self, node: Let) -> Any:
        value = self.visit(node.value)
        if isinstance(value, Closure) and value.name is None and isinstance(node.pattern, NamePattern):
            value = replace(value, name=node.pattern.name)

        rebind = not node.declare and self.config.rebind_on_assign
        self._bind_pattern(node.pattern, value, self.environment, rebind=rebind)
        return UNIT

    def visit_assign(self, node: Assign) -> Any:
        name = node.target.name
        current = self.environment.lookup(name, node.target.location)
        value = self.visit(node.value)

        if node.operator == AssignOperator.APPEND:
            if not isinstance(current, str):
                raise TypeMismatchError(
                    f"'+=' needs a String binding, but '{name}' is {type_name(current)}",
                    node.location,
                )
            if not isinstance(value, str):
                raise TypeMismatchError(
                    f"cannot append {type_name(value)} to String '{name}'", node.value.location
                )
            updated: Any = current + value
        else:
            if not isinstance(current, list):
                raise TypeMismatchError(
                    f"'++=' needs a List binding, but '{name}' is {type_name(current)}",
                    node.location,
                )
            if not isinstance(value, (list, range)):
                raise TypeMismatchError(
                    f"cannot concatenate {type_name(value)} onto List '{name}'",
                    node.value.location,
                )
            updated = current + list(value)

        self.environment.assign_existing(name, updated, node.target.location)
        return UNIT

    def visit_for(self, node: For) -> Any:
        iterable = self.visit(node.iterable)
        if not isinstance(iterable, (list, tuple, range, str)):
            raise TypeMismatchError(
                f"cannot iterate over {type_name(iterable)}", node.iterable.location
            )

        for item in iterable:
            scope = self.environment.child()
            self._bind_pattern(node.pattern, item, scope)
            with self._scope(scope):
                self._execute_statements(node.body.statements)
        return UNIT

    def visit_while(self, node: While) -> Any:
        """
        Each iteration runs in a fresh child scope, so a plain ``=`` in the
        body shadows an outer name instead of updating it unless
        ``rebind_on_assign`` is set. ``+=`` and ``++=`` always update.
        """
        while self._condition(node.condition):
            with self._scope(self.environment.child()):
                self._execute_statements(node.body.statements)
        return UNIT

    # -------------------------------------------------------------------------
    # Patterns
    # -------------------------------------------------------------------------

    def _bind_pattern(self, pattern: Pattern, value: Any, environment: Environment,
                      rebind: bool = False) -> None:
        """
        Bind ``value`` against ``pattern`` in ``environment``.

        With ``rebind`` an existing user binding of a name is updated where
        it lives instead of being shadowed.
        """
        if isinstance(pattern, NamePattern):
            if rebind:
                owner = environment.find(pattern.name)
                if owner is not None and owner is not self.builtins:
                    owner.define(pattern.name, value)
                    return
            environment.define(pattern.name, value)
            return

        assert isinstance(pattern, TuplePattern)
        expected = len(pattern.elements)
        if not isinstance(value, tuple):
            raise PatternMismatchError(
                f"cannot destructure {type_name(value)} with a {expected}-element tuple pattern",
                pattern.location,
            )
        if len(value) != expected:
            raise PatternMismatchError(
                f"tuple pattern has {expected} elements but the value has {len(value)}",
                pattern.location,
            )
        for element, item in zip(pattern.elements, value):
            self._bind_pattern(element, item, environment, rebind)

    # -------------------------------------------------------------------------
    # Calls
    # -------------------------------------------------------------------------

    def visit_call(self, node: Call) -> Any:
        callee = self.visit(node.callee)
        arguments = tuple(self.visit(argument) for argument in node.arguments)
        return self.apply(callee, arguments, node.location)

    def apply(self, callee: Any, arguments: tuple[Any, ...],
              location: Optional[SourceLocation] = None) -> Any:
        """
        Apply a callable to arguments with currying.

        Too few arguments give a partial application, exactly enough run
        the function, and any surplus is applied to the result.
        """
        while True:
            if isinstance(callee, Closure):
                wanted = callee.arity
            elif isinstance(callee, Builtin):
                wanted = callee.remaining
            else:
                raise NotCallableError(
                    f"value of type {type_name(callee)} is not callable", location
                )

            if len(arguments) < wanted:
                return callee.with_arguments(arguments)

            now, arguments = arguments[:wanted], arguments[wanted:]
            if isinstance(callee, Closure):
                result = self._call_closure(callee, callee.bound + now, location)
            else:
                logger.debug("call builtin %s", callee.name)
                result = callee.function(self, location, *callee.bound, *now)

            if not arguments:
                return result
            callee = result

    def _call_closure(self, closure: Closure, arguments: tuple[Any, ...],
                      location: Optional[SourceLocation]) -> Any:
        if len(self.frames) >= self.config.max_call_depth:
            raise StepLimitError(
                f"maximum call depth of {self.config.max_call_depth} exceeded", location
            )

        name = closure.name or "<fn>"
        scope = closure.environment.child()
        for param, value in zip(closure.params, arguments):
            self._bind_pattern(param, value, scope)

        logger.debug("call %s with %d argument(s), depth %d", name, len(arguments), len(self.frames))
        self.frames.append(Frame(name, scope, location))
        try:
            with self._scope(scope):
                return self._execute_statements(closure.body.statements)
        finally:
            self.frames.pop()

    def visit_lambda(self, node: Lambda) -> Any:
        return Closure(node.params, node.body, self.environment)

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def visit_identifier(self, node: Identifier) -> Any:
        return self.environment.lookup(node.name, node.location)

    def visit_integer_literal(self, node: IntegerLiteral) -> Any:
        return node.value

    def visit_float_literal(self, node: FloatLiteral) -> Any:
        return node.value

    def visit_boolean_literal(self, node: BooleanLiteral) -> Any:
        return node.value

    def visit_unit_literal(self, node: UnitLiteral) -> Any:
        return UNIT

    def visit_string_template(self, node: StringTemplate) -> Any:
        pieces = []
        for part in node.parts:
            if isinstance(part, TemplateExpression):
                pieces.append(display(self.visit(part.expression)))
            else:
                pieces.append(part.text)
        return "".join(pieces)

    def visit_list_literal(self, node: ListLiteral) -> Any:
        return [self.visit(element) for element in node.elements]

    def visit_tuple_literal(self, node: TupleLiteral) -> Any:
        return tuple(self.visit(element) for element in node.elements)

    def visit_range_literal(self, node: RangeLiteral) -> Any:
        low = self.visit(node.low)
        high = self.visit(node.high)
        for bound in (low, high):
            if not isinstance(bound, int) or isinstance(bound, bool):
                raise TypeMismatchError(
                    f"range bounds must be Int, found {type_name(bound)}", node.location
                )
        return range(low, high + 1)

    def _condition(self, node: Node) -> bool:
        value = self.visit(node)
        if not isinstance(value, bool):
            raise TypeMismatchError(
                f"condition must be a Bool, found {type_name(value)}", node.location
            )
        return value

    def visit_if(self, node: If) -> Any:
        if self._condition(node.condition):
            return self.visit(node.then_branch)
        return self.visit(node.else_branch)

    def visit_unary_op(self, node: UnaryOp) -> Any:
        operand = self.visit(node.operand)
        if node.operator == UnaryOperator.NEG:
            if not is_number(operand):
                raise TypeMismatchError(f"cannot negate {type_name(operand)}", node.location)
            return -operand

        if not isinstance(operand, bool):
            raise TypeMismatchError(
                f"'!' expects a Bool, found {type_name(operand)}", node.location
            )
        return not operand

    def visit_binary_op(self, node: BinaryOp) -> Any:
        operator = node.operator

        if operator in (BinaryOperator.AND, BinaryOperator.OR):
            left = self._logical_operand(node.left, operator)
            if operator == BinaryOperator.AND and not left:
                return False
            if operator == BinaryOperator.OR and left:
                return True
            return self._logical_operand(node.right, operator)

        left = self.visit(node.left)
        right = self.visit(node.right)

        if operator == BinaryOperator.EQ:
            return values_equal(left, right)
        if operator == BinaryOperator.NE:
            return not values_equal(left, right)

        if operator == BinaryOperator.CONCAT:
            if isinstance(left, (list, range)) and isinstance(right, (list, range)):
                return list(left) + list(right)
            raise self._operand_error(operator, left, right, node)

        if operator in COMPARISON:
            if (is_number(left) and is_number(right)) or (
                isinstance(left, str) and isinstance(right, str)
            ):
                return COMPARISON[operator](left, right)
            raise self._operand_error(operator, left, right, node)

        if operator == BinaryOperator.ADD and isinstance(left, str) and isinstance(right, str):
            return left + right

        if not (is_number(left) and is_number(right)):
            raise self._operand_error(operator, left, right, node)

        if operator in (BinaryOperator.DIV, BinaryOperator.FLOOR_DIV, BinaryOperator.MOD) \
                and right == 0:
            raise DivisionByZeroError(
                f"division by zero in '{operator.value}'", node.location
            )
        return ARITHMETIC[operator](left, right)

    def _logical_operand(self, node: Node, operator: BinaryOperator) -> bool:
        value = self.visit(node)
        if not isinstance(value, bool):
            raise TypeMismatchError(
                f"'{operator.value}' expects Bool operands, found {type_name(value)}",
                node.location,
            )
        return value

    def _operand_error(self, operator: BinaryOperator, left: Any, right: Any,
                       node: BinaryOp) -> TypeMismatchError:
        return TypeMismatchError(
            f"unsupported operand types for '{operator.value}': "
            f"{type_name(left)} and {type_name(right)}",
            node.location,
        )
