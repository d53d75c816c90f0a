"""
Zeal front-end: lexer, layout normalizer, parser and AST.
"""

from typing import Optional

from zeal.compiler.ast_nodes import Program
from zeal.compiler.layout import LayoutNormalizer, normalize
from zeal.compiler.lexer import Lexer, tokenize
from zeal.compiler.parser import Parser, parse
from zeal.compiler.tokens import Token, TokenType
from zeal.utils.errors import SyntaxFailure


def parse_source(source: str, filename: Optional[str] = None) -> Program:
    """
    Run the whole front-end over a program text.

    Raises:
        LexerError, IndentError, ParserError: On the first syntax failure,
            with the offending source line attached
    """
    try:
        tokens = normalize(Lexer(source, filename).tokenize())
        return Parser(tokens, source, filename or "<input>").parse()
    except SyntaxFailure as error:
        raise error.with_source(source)


__all__ = [
    "Lexer",
    "LayoutNormalizer",
    "Parser",
    "Program",
    "Token",
    "TokenType",
    "tokenize",
    "normalize",
    "parse",
    "parse_source",
]
