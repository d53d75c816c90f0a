"""
Pytest configuration and shared fixtures for Zeal tests.
"""

import io

import pytest

from zeal import run_source
from zeal.compiler.ast_nodes import Program
from zeal.compiler.layout import normalize as normalize_tokens
from zeal.compiler.lexer import Lexer
from zeal.compiler.parser import Parser
from zeal.compiler.tokens import Token, TokenType
from zeal.config import InterpreterConfig
from zeal.runtime.evaluator import RunResult


@pytest.fixture
def lexer_factory():
    """Factory fixture for creating lexers."""

    def _create_lexer(source: str, filename: str = "test.zl") -> Lexer:
        return Lexer(source, filename)

    return _create_lexer


@pytest.fixture
def parser_factory(lexer_factory):
    """Factory fixture for creating parsers from source."""

    def _create_parser(source: str) -> Parser:
        tokens = normalize_tokens(lexer_factory(source).tokenize())
        return Parser(tokens, source, "test.zl")

    return _create_parser


@pytest.fixture
def tokenize(lexer_factory):
    """Fixture to tokenize source code (raw lexer output)."""

    def _tokenize(source: str) -> list[Token]:
        return lexer_factory(source).tokenize()

    return _tokenize


@pytest.fixture
def token_types(tokenize):
    """Fixture returning only the token types, without the trailing EOF."""

    def _token_types(source: str) -> list[TokenType]:
        return [token.type for token in tokenize(source)[:-1]]

    return _token_types


@pytest.fixture
def normalize(tokenize):
    """Fixture returning the layout-normalized token types, without EOF."""

    def _normalize(source: str) -> list[TokenType]:
        return [token.type for token in normalize_tokens(tokenize(source))[:-1]]

    return _normalize


@pytest.fixture
def parse(parser_factory):
    """Fixture to parse source code into an AST."""

    def _parse(source: str) -> Program:
        return parser_factory(source).parse()

    return _parse


@pytest.fixture
def run():
    """Fixture to run a program, capturing what it prints."""

    def _run(source: str, **config) -> RunResult:
        return run_source(
            source,
            output=io.StringIO(),
            config=InterpreterConfig(**config),
            filename="test.zl",
        )

    return _run


@pytest.fixture
def evaluate(run):
    """Fixture returning only the value of the last statement."""

    def _evaluate(source: str, **config):
        return run(source, **config).value

    return _evaluate
