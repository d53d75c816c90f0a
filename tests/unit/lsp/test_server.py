"""Tests for the Zeal language server handlers."""

import pytest
from lsprotocol import types

from zeal.compiler import parse_source
from zeal.lsp.server import ZealLanguageServer, create_server, document_symbols

URI = "file:///tmp/test.zl"


@pytest.fixture
def server():
    instance = create_server()
    instance.published = []
    instance._publish_diagnostics = lambda uri, diagnostics: instance.published.append(
        (uri, diagnostics)
    )
    return instance


class TestDocumentSymbols:
    """Outline of top-level bindings."""

    def test_functions_and_variables(self) -> None:
        program = parse_source("double := fn x -> x * 2\n(a, b) := (1, 2)\nprintln a\n")
        symbols = document_symbols(program)

        assert [s.name for s in symbols] == ["double", "a", "b"]
        assert symbols[0].kind == types.SymbolKind.Function
        assert symbols[1].kind == types.SymbolKind.Variable
        assert symbols[0].range.start == types.Position(line=0, character=0)
        assert symbols[0].range.end == types.Position(line=0, character=6)
        assert symbols[2].range.start == types.Position(line=1, character=4)

    def test_nested_bindings_are_skipped(self) -> None:
        program = parse_source("for i <- 1..2:\n    inner := i\n")
        assert document_symbols(program) == []


class TestServer:
    """Handler registration and document synchronization."""

    def test_create_server(self) -> None:
        assert isinstance(create_server(), ZealLanguageServer)

    @pytest.mark.parametrize(
        "method",
        [
            types.TEXT_DOCUMENT_DID_OPEN,
            types.TEXT_DOCUMENT_DID_CHANGE,
            types.TEXT_DOCUMENT_DID_SAVE,
            types.TEXT_DOCUMENT_DID_CLOSE,
            types.TEXT_DOCUMENT_DOCUMENT_SYMBOL,
        ],
    )
    def test_handlers_registered(self, method) -> None:
        assert method in create_server().protocol.fm.features

    def test_open_publishes_diagnostics(self, server) -> None:
        server.refresh(URI, "x := )\n")

        assert len(server.published) == 1
        uri, diagnostics = server.published[0]
        assert uri == URI
        assert diagnostics[0].code == "E0201"

    def test_open_clean_document(self, server) -> None:
        server.refresh(URI, "x := 1\n")
        assert server.published == [(URI, [])]

    def test_symbols_use_last_good_parse(self, server) -> None:
        server.check_document(URI, "total := 1\n")
        server.check_document(URI, "total := )\n")

        assert [s.name for s in server.symbols(URI)] == ["total"]

    def test_symbols_for_unknown_document(self, server) -> None:
        assert server.symbols("file:///other.zl") is None

    def test_close_clears_state(self, server) -> None:
        server.refresh(URI, "x := 1\n")
        server.forget(URI)

        assert server.published[-1] == (URI, [])
        assert URI not in server._programs
        assert server.symbols(URI) is None
