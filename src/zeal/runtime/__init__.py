"""
Zeal runtime: values, environments, built-ins and the evaluator.
"""

from zeal.runtime.builtins import BUILTINS
from zeal.runtime.environment import Environment, Frame
from zeal.runtime.evaluator import Interpreter, RunResult
from zeal.runtime.values import UNIT, Builtin, Closure, display, type_name, values_equal

__all__ = [
    "BUILTINS",
    "Builtin",
    "Closure",
    "Environment",
    "Frame",
    "Interpreter",
    "RunResult",
    "UNIT",
    "display",
    "type_name",
    "values_equal",
]
