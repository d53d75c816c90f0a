"""
Runtime value model for the Zeal evaluator.

Zeal values are plain Python objects wherever one fits:

    Number  -> int / float
    String  -> str
    Bool    -> bool
    List    -> list
    Tuple   -> tuple
    Range   -> range (lazy, inclusive bounds already applied)

plus the UNIT singleton and the two callable kinds, Closure and Builtin.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from zeal.compiler.ast_nodes import Block, Pattern
    from zeal.runtime.environment import Environment


class Unit:
    """The type of ``()``; a single shared instance exists."""

    _instance: Unit | None = None

    def __new__(cls) -> Unit:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "()"

    def __bool__(self) -> bool:
        return False


UNIT = Unit()


@dataclass(frozen=True, eq=False)
class Closure:
    """
    A lambda together with the environment it was created in.

    ``bound`` holds arguments already supplied by partial application;
    they fill the leading parameters.
    """

    params: tuple[Pattern, ...]
    body: Block
    environment: Environment
    bound: tuple[Any, ...] = ()
    name: str | None = None

    @property
    def arity(self) -> int:
        """Number of parameters still open."""
        return len(self.params) - len(self.bound)

    def with_arguments(self, arguments: tuple[Any, ...]) -> Closure:
        return Closure(self.params, self.body, self.environment, self.bound + arguments, self.name)


@dataclass(frozen=True, eq=False)
class Builtin:
    """A native function with a fixed arity."""

    name: str
    arity: int
    function: Callable[..., Any] = field(repr=False)
    bound: tuple[Any, ...] = ()

    @property
    def remaining(self) -> int:
        return self.arity - len(self.bound)

    def with_arguments(self, arguments: tuple[Any, ...]) -> Builtin:
        return Builtin(self.name, self.arity, self.function, self.bound + arguments)


CALLABLE_TYPES = (Closure, Builtin)


def is_callable(value: Any) -> bool:
    return isinstance(value, CALLABLE_TYPES)


def is_number(value: Any) -> bool:
    """Bools are not numbers in Zeal even though Python says they are."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def type_name(value: Any) -> str:
    """Zeal-level name of a value's kind, for error messages."""
    if isinstance(value, bool):
        return "Bool"
    if isinstance(value, int):
        return "Int"
    if isinstance(value, float):
        return "Float"
    if isinstance(value, str):
        return "String"
    if value is UNIT:
        return "Unit"
    if isinstance(value, list):
        return "List"
    if isinstance(value, tuple):
        return "Tuple"
    if isinstance(value, range):
        return "Range"
    if isinstance(value, Closure):
        return "Function"
    if isinstance(value, Builtin):
        return "Builtin"
    return type(value).__name__


def values_equal(left: Any, right: Any) -> bool:
    """
    Structural equality. Never fails: values of different kinds are unequal,
    except that Int and Float compare numerically and a Range equals the
    List of its elements.
    """
    if is_number(left) and is_number(right):
        return left == right

    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right

    if isinstance(left, (list, range)) and isinstance(right, (list, range)):
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )

    if isinstance(left, tuple) and isinstance(right, tuple):
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )

    if isinstance(left, str) and isinstance(right, str):
        return left == right

    # Unit, functions: identity
    return left is right


def display(value: Any, nested: bool = False) -> str:
    """
    Render a value the way ``print`` shows it.

    Strings are shown raw at the top level and double-quoted inside
    collections.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        if nested:
            escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
            return f'"{escaped}"'
        return value
    if value is UNIT:
        return "()"
    if isinstance(value, (list, range)):
        return "[" + ", ".join(display(item, nested=True) for item in value) + "]"
    if isinstance(value, tuple):
        return "(" + ", ".join(display(item, nested=True) for item in value) + ")"
    if isinstance(value, Closure):
        names: list[str] = []
        for param in value.params[len(value.bound):]:
            names.extend(param.bound_names())
        return "<fn " + " ".join(names) + ">" if names else "<fn>"
    if isinstance(value, Builtin):
        return f"<builtin {value.name}>"
    return repr(value)
