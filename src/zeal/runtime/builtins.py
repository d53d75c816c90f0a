"""
Zeal built-in functions.

Every built-in receives the calling interpreter and the call-site
location ahead of its Zeal arguments, so it can call back into Zeal
functions (``map``, ``filter``, ``fold``) and report errors at the right
place. Built-ins are curried like closures: ``map xs`` is a function
waiting for its mapper.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Optional

from zeal.runtime.values import UNIT, Builtin, display, is_number, type_name
from zeal.utils.errors import SourceLocation, TypeMismatchError

if TYPE_CHECKING:
    from zeal.runtime.evaluator import Interpreter


BUILTINS: dict[str, Builtin] = {}


def builtin(name: str, arity: int) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Register a native function under ``name``."""

    def decorator(function: Callable[..., Any]) -> Callable[..., Any]:
        BUILTINS[name] = Builtin(name, arity, function)
        return function

    return decorator


# =============================================================================
# Argument checks
# =============================================================================


def _expect_sequence(name: str, value: Any, location: Optional[SourceLocation]) -> Any:
    if isinstance(value, (list, tuple, range)):
        return value
    raise TypeMismatchError(
        f"'{name}' expects a List, found {type_name(value)}", location
    )


def _expect_string(name: str, value: Any, location: Optional[SourceLocation]) -> str:
    if isinstance(value, str):
        return value
    raise TypeMismatchError(
        f"'{name}' expects a String, found {type_name(value)}", location
    )


def _expect_int(name: str, value: Any, location: Optional[SourceLocation]) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise TypeMismatchError(
        f"'{name}' expects an Int, found {type_name(value)}", location
    )


# =============================================================================
# Sequences
# =============================================================================


@builtin("map", 2)
def zeal_map(interp: Interpreter, location: Optional[SourceLocation],
             items: Any, function: Any) -> list:
    """
    Apply ``function`` to every element, left to right.

    Example:
        map [1, 2, 3] (fn x -> x * 2) -> [2, 4, 6]
    """
    items = _expect_sequence("map", items, location)
    return [interp.apply(function, (item,), location) for item in items]


@builtin("filter", 2)
def zeal_filter(interp: Interpreter, location: Optional[SourceLocation],
                items: Any, predicate: Any) -> list:
    """Keep the elements for which ``predicate`` returns true."""
    items = _expect_sequence("filter", items, location)
    kept = []
    for item in items:
        verdict = interp.apply(predicate, (item,), location)
        if not isinstance(verdict, bool):
            raise TypeMismatchError(
                f"'filter' predicate must return a Bool, found {type_name(verdict)}", location
            )
        if verdict:
            kept.append(item)
    return kept


@builtin("fold", 3)
def zeal_fold(interp: Interpreter, location: Optional[SourceLocation],
              items: Any, initial: Any, function: Any) -> Any:
    """
    Combine the elements left to right, starting from ``initial``.

    Example:
        fold [1, 2, 3] 0 (fn acc x -> acc + x) -> 6
    """
    accumulator = initial
    for item in _expect_sequence("fold", items, location):
        accumulator = interp.apply(function, (accumulator, item), location)
    return accumulator


@builtin("join", 2)
def zeal_join(interp: Interpreter, location: Optional[SourceLocation],
              items: Any, separator: Any) -> str:
    """Join a list of strings with ``separator``."""
    items = _expect_sequence("join", items, location)
    separator = _expect_string("join", separator, location)
    parts = []
    for item in items:
        if not isinstance(item, str):
            raise TypeMismatchError(
                f"'join' expects a List of String, found an element of type {type_name(item)}",
                location,
            )
        parts.append(item)
    return separator.join(parts)


@builtin("reverse", 1)
def zeal_reverse(interp: Interpreter, location: Optional[SourceLocation], items: Any) -> Any:
    if isinstance(items, str):
        return items[::-1]
    return list(reversed(_expect_sequence("reverse", items, location)))


@builtin("range", 2)
def zeal_range(interp: Interpreter, location: Optional[SourceLocation],
               low: Any, high: Any) -> range:
    """Inclusive integer range; empty when ``low > high``."""
    return range(_expect_int("range", low, location), _expect_int("range", high, location) + 1)


@builtin("length", 1)
def zeal_length(interp: Interpreter, location: Optional[SourceLocation], value: Any) -> int:
    if isinstance(value, str):
        return len(value)
    return len(_expect_sequence("length", value, location))


@builtin("sum", 1)
def zeal_sum(interp: Interpreter, location: Optional[SourceLocation], items: Any) -> Any:
    total: Any = 0
    for item in _expect_sequence("sum", items, location):
        if not is_number(item):
            raise TypeMismatchError(
                f"'sum' expects a List of numbers, found an element of type {type_name(item)}",
                location,
            )
        total += item
    return total


# =============================================================================
# Strings and output
# =============================================================================


@builtin("str", 1)
def zeal_str(interp: Interpreter, location: Optional[SourceLocation], value: Any) -> str:
    return display(value)


@builtin("print", 1)
def zeal_print(interp: Interpreter, location: Optional[SourceLocation], value: Any) -> Any:
    """Write the display form of ``value`` and a newline."""
    interp.write(display(value) + "\n")
    return UNIT


@builtin("println", 1)
def zeal_println(interp: Interpreter, location: Optional[SourceLocation], value: Any) -> Any:
    interp.write(display(value) + "\n")
    return UNIT


__all__ = ["BUILTINS", "builtin"]
