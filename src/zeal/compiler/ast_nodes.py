"""
Abstract Syntax Tree (AST) node definitions for Zeal.

This module defines all AST node types representing the structure of a
Zeal program after parsing. Each node is immutable and carries source
location information for error reporting. Every surface call notation
(juxtaposition, comma arguments, dot-calls, pipes) ends up as a Call.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from zeal.utils.errors import SourceLocation


class ASTNode(ABC):
    """Base class for all AST nodes."""

    location: Optional[SourceLocation]

    @abstractmethod
    def accept(self, visitor: "ASTVisitor") -> Any:
        """Accept a visitor for tree traversal."""
        pass


class ASTVisitor(ABC):
    """
    Visitor pattern base class for AST traversal.

    Implement this to create AST processors (the evaluator, symbol
    collectors, pretty printers).
    """

    def visit(self, node: ASTNode) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)


# -----------------------------------------------------------------------------
# Expressions
# -----------------------------------------------------------------------------


class Expression(ASTNode):
    """Base class for all expressions."""

    pass


@dataclass(frozen=True, slots=True)
class Identifier(Expression):
    """
    An identifier expression.

    Example:
        x, fizzbuzz, println
    """

    name: str
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_identifier(self)


@dataclass(frozen=True, slots=True)
class IntegerLiteral(Expression):
    """An integer literal."""

    value: int
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_integer_literal(self)


@dataclass(frozen=True, slots=True)
class FloatLiteral(Expression):
    """A floating-point literal."""

    value: float
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_float_literal(self)


@dataclass(frozen=True, slots=True)
class BooleanLiteral(Expression):
    """A boolean literal (true or false)."""

    value: bool
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_boolean_literal(self)


@dataclass(frozen=True, slots=True)
class UnitLiteral(Expression):
    """The unit value ``()``, also the value of a missing else branch."""

    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_unit_literal(self)


@dataclass(frozen=True, slots=True)
class TemplateText:
    """Literal text part of a string template."""

    text: str


@dataclass(frozen=True, slots=True)
class TemplateExpression:
    """Interpolated ``{expr}`` part of a string template."""

    expression: Expression


TemplatePart = Union[TemplateText, TemplateExpression]


@dataclass(frozen=True, slots=True)
class StringTemplate(Expression):
    """
    A string literal, possibly with interpolated expressions.

    Examples:
        `Fizz`         -> (TemplateText("Fizz"),)
        `a{1 + 2}b`    -> (TemplateText("a"), TemplateExpression(1 + 2), TemplateText("b"))
    """

    parts: tuple[TemplatePart, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_string_template(self)


@dataclass(frozen=True, slots=True)
class ListLiteral(Expression):
    """
    A list literal.

    Example:
        [(3, `Fizz`), (5, `Buzz`)]
    """

    elements: tuple[Expression, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_list_literal(self)


@dataclass(frozen=True, slots=True)
class TupleLiteral(Expression):
    """
    A tuple literal with two or more elements.

    Example:
        (3, `Fizz`)
    """

    elements: tuple[Expression, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_tuple_literal(self)


@dataclass(frozen=True, slots=True)
class RangeLiteral(Expression):
    """
    An inclusive integer range ``low..high``.

    ``5..1`` is empty rather than an error.
    """

    low: Expression
    high: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_range_literal(self)


class BinaryOperator(Enum):
    """Binary operators. The pipe is desugared into Call by the parser."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    FLOOR_DIV = "//"
    MOD = "%"
    CONCAT = "++"
    EQ = "=="
    NE = "!="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    AND = "&&"
    OR = "||"


class UnaryOperator(Enum):
    """Prefix operators."""

    NEG = "-"
    NOT = "!"


@dataclass(frozen=True, slots=True)
class BinaryOp(Expression):
    """
    A binary operation.

    Example:
        i % m == 0
    """

    operator: BinaryOperator
    left: Expression
    right: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_binary_op(self)


@dataclass(frozen=True, slots=True)
class UnaryOp(Expression):
    """A prefix operation such as ``-x`` or ``!done``."""

    operator: UnaryOperator
    operand: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_unary_op(self)


@dataclass(frozen=True, slots=True)
class Call(Expression):
    """
    A function application.

    All of these parse to Call(map, (arr, f)):
        map arr f
        map arr, f
        arr .map f
        arr |> map f
    """

    callee: Expression
    arguments: tuple[Expression, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_call(self)


@dataclass(frozen=True, slots=True)
class If(Expression):
    """
    A conditional. Always has an else branch; ``if c then a`` gets a
    UnitLiteral else branch.

    Example:
        if i % m == 0 then s else ``
    """

    condition: Expression
    then_branch: "Node"
    else_branch: "Node"
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_if(self)


@dataclass(frozen=True, slots=True)
class Lambda(Expression):
    """
    An anonymous function. The last statement of the body is its result.

    Examples:
        fn x -> x * 2
        fn (m, s) -> s
        fn -> print! `tick`
    """

    params: tuple["Pattern", ...]
    body: "Block"
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_lambda(self)


# -----------------------------------------------------------------------------
# Patterns
# -----------------------------------------------------------------------------


class Pattern(ABC):
    """Binding-side shape matched against a value by let and for."""

    location: Optional[SourceLocation]

    @abstractmethod
    def bound_names(self) -> list[str]:
        """Names introduced by this pattern, left to right."""
        pass


@dataclass(frozen=True, slots=True)
class NamePattern(Pattern):
    """Bind the whole value to a name."""

    name: str
    location: Optional[SourceLocation] = None

    def bound_names(self) -> list[str]:
        return [self.name]


@dataclass(frozen=True, slots=True)
class TuplePattern(Pattern):
    """
    Destructure a tuple of exactly matching arity.

    Example:
        for (m, s) <- arr:
    """

    elements: tuple[Pattern, ...]
    location: Optional[SourceLocation] = None

    def bound_names(self) -> list[str]:
        names: list[str] = []
        for element in self.elements:
            names.extend(element.bound_names())
        return names


# -----------------------------------------------------------------------------
# Statements
# -----------------------------------------------------------------------------


class Statement(ASTNode):
    """Base class for the statement-only forms."""

    pass


class AssignOperator(Enum):
    """In-place update operators; plain ``=`` is a Let with declare=False."""

    APPEND = "+="
    CONCAT = "++="


@dataclass(frozen=True, slots=True)
class Let(Statement):
    """
    A binding.

    Examples:
        res := ``          (declare=True)
        (a, b) = pair      (declare=False)
    """

    pattern: Pattern
    value: Expression
    declare: bool = True
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_let(self)


@dataclass(frozen=True, slots=True)
class Assign(Statement):
    """
    Update of an existing binding.

    Examples:
        res += s
        items ++= [x]
    """

    target: Identifier
    operator: AssignOperator
    value: Expression
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_assign(self)


@dataclass(frozen=True, slots=True)
class For(Statement):
    """
    Loop over a list, tuple, range or string.

    Example:
        for (m, s) <- arr:
            ...
    """

    pattern: Pattern
    iterable: Expression
    body: "Block"
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_for(self)


@dataclass(frozen=True, slots=True)
class While(Statement):
    """
    Loop while a condition holds.

    Without ``--rebind`` a plain ``=`` in the body makes a fresh binding,
    so ``i = i + 1`` never changes the ``i`` the condition reads and the
    loop runs until the step limit.
    """

    condition: Expression
    body: "Block"
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_while(self)


Node = Union[Expression, Statement]


@dataclass(frozen=True, slots=True)
class Block(Expression):
    """
    A sequence of statements; its value is the value of the last one.
    """

    statements: tuple[Node, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_block(self)


@dataclass(frozen=True, slots=True)
class Program(ASTNode):
    """
    The root node of a Zeal program: the top-level block.
    """

    statements: tuple[Node, ...]
    location: Optional[SourceLocation] = None

    def accept(self, visitor: ASTVisitor) -> Any:
        return visitor.visit_program(self)
