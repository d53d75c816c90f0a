"""
Zeal - a small indentation-sensitive functional expression language.

Zeal has curried functions, dot-calls, a pipe operator, list, tuple and
range literals, string templates and destructuring loops. This package
holds the lexer, layout normalizer, parser and a tree-walking evaluator,
plus a command line, a REPL and a language server.
"""

from typing import Optional, TextIO

from zeal.compiler import parse_source
from zeal.compiler.lexer import Lexer
from zeal.compiler.parser import Parser
from zeal.config import InterpreterConfig
from zeal.runtime.evaluator import Interpreter, RunResult
from zeal.utils.errors import ZealError

__version__ = "0.1.0"


def run_source(
    source: str,
    output: Optional[TextIO] = None,
    config: Optional[InterpreterConfig] = None,
    filename: Optional[str] = None,
) -> RunResult:
    """
    Lex, parse and evaluate a program in a fresh interpreter.

    Raises:
        ZealError: The first syntax or runtime failure
    """
    program = parse_source(source, filename)
    interpreter = Interpreter(output=output, config=config)
    try:
        return interpreter.run(program)
    except ZealError as error:
        raise error.with_source(source)


__all__ = [
    "run_source",
    "parse_source",
    "Interpreter",
    "InterpreterConfig",
    "RunResult",
    "Lexer",
    "Parser",
]
