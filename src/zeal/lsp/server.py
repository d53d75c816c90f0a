"""
Zeal Language Server Protocol (LSP) Server.

A small LSP server built on pygls. It provides:

- Document synchronization (open, change, save, close)
- Syntax diagnostics (lexing, layout and parse errors)
- Document symbols (outline of top-level bindings)

Usage:
    # Start the server in stdio mode (for IDE integration)
    zeal-lsp

    # Start in TCP mode (for debugging)
    zeal-lsp --tcp --port 2087
"""

import logging
from typing import Optional

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from zeal import __version__
from zeal.compiler.ast_nodes import Lambda, Let, NamePattern, Pattern, Program, TuplePattern
from zeal.lsp.diagnostics import DiagnosticProvider

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("zeal-lsp")


def _pattern_names(pattern: Pattern) -> list[NamePattern]:
    if isinstance(pattern, NamePattern):
        return [pattern]
    if isinstance(pattern, TuplePattern):
        names: list[NamePattern] = []
        for element in pattern.elements:
            names.extend(_pattern_names(element))
        return names
    return []


def document_symbols(program: Program) -> list[types.DocumentSymbol]:
    """One symbol per name bound by a top-level binding; lambdas show as functions."""
    symbols: list[types.DocumentSymbol] = []
    for statement in program.statements:
        if not isinstance(statement, Let):
            continue
        kind = (
            types.SymbolKind.Function
            if isinstance(statement.value, Lambda)
            else types.SymbolKind.Variable
        )
        for name in _pattern_names(statement.pattern):
            if name.location is None:
                continue
            line = name.location.line - 1
            character = name.location.column - 1
            selection = types.Range(
                start=types.Position(line=line, character=character),
                end=types.Position(line=line, character=character + len(name.name)),
            )
            symbols.append(
                types.DocumentSymbol(
                    name=name.name,
                    kind=kind,
                    range=selection,
                    selection_range=selection,
                )
            )
    return symbols


class ZealLanguageServer(LanguageServer):
    """
    Language Server Protocol implementation for Zeal.

    Every document is re-checked in full on each change; the last
    successful parse is kept per URI for the outline. Protocol handlers
    are registered by :func:`create_server`.
    """

    def __init__(self) -> None:
        super().__init__(
            name="zeal-lsp",
            version=f"v{__version__}",
        )

        # uri -> last parsed program
        self._programs: dict[str, Program] = {}

    def check_document(self, uri: str, text: str) -> list[types.Diagnostic]:
        """Diagnose a document and remember its program when it parses."""
        provider = DiagnosticProvider(text, uri)
        diagnostics = provider.get_diagnostics()
        if provider.program is not None:
            self._programs[uri] = provider.program
        return diagnostics

    def _publish_diagnostics(self, uri: str, diagnostics: list[types.Diagnostic]) -> None:
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    def refresh(self, uri: str, text: str) -> None:
        """Re-check a document and publish its diagnostics."""
        self._publish_diagnostics(uri, self.check_document(uri, text))

    def forget(self, uri: str) -> None:
        """Drop a closed document and clear its diagnostics."""
        self._programs.pop(uri, None)
        self._publish_diagnostics(uri, [])

    def symbols(self, uri: str) -> Optional[list[types.DocumentSymbol]]:
        program = self._programs.get(uri)
        if program is None:
            return None
        return document_symbols(program)


def create_server() -> ZealLanguageServer:
    """Create a Zeal language server with all handlers registered."""
    server = ZealLanguageServer()

    # =========================================================================
    # Document Synchronization
    # =========================================================================

    @server.feature(types.TEXT_DOCUMENT_DID_OPEN)
    def did_open(ls: ZealLanguageServer, params: types.DidOpenTextDocumentParams) -> None:
        document = params.text_document
        logger.info(f"Document opened: {document.uri}")
        ls.refresh(document.uri, document.text)

    @server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
    def did_change(ls: ZealLanguageServer, params: types.DidChangeTextDocumentParams) -> None:
        uri = params.text_document.uri
        doc = ls.workspace.get_text_document(uri)
        if doc is None:
            return

        logger.debug(f"Document changed: {uri}")
        ls.refresh(uri, doc.source)

    @server.feature(types.TEXT_DOCUMENT_DID_SAVE)
    def did_save(ls: ZealLanguageServer, params: types.DidSaveTextDocumentParams) -> None:
        uri = params.text_document.uri
        logger.info(f"Document saved: {uri}")

        doc = ls.workspace.get_text_document(uri)
        if doc:
            ls.refresh(uri, doc.source)

    @server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(ls: ZealLanguageServer, params: types.DidCloseTextDocumentParams) -> None:
        uri = params.text_document.uri
        logger.info(f"Document closed: {uri}")
        ls.forget(uri)

    # =========================================================================
    # Document Symbols
    # =========================================================================

    @server.feature(types.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
    def document_symbol(
        ls: ZealLanguageServer, params: types.DocumentSymbolParams
    ) -> Optional[list[types.DocumentSymbol]]:
        """Handle document symbols request (for outline view)."""
        return ls.symbols(params.text_document.uri)

    @server.feature(types.INITIALIZED)
    def on_initialized(
        ls: ZealLanguageServer,  # noqa: ARG001
        params: types.InitializedParams,  # noqa: ARG001
    ) -> None:
        logger.info("Zeal Language Server initialized successfully")

    @server.feature(types.SHUTDOWN)
    def on_shutdown(
        ls: ZealLanguageServer,  # noqa: ARG001
        params: None,  # noqa: ARG001
    ) -> None:
        logger.info("Shutting down Zeal Language Server")

    return server


def main() -> None:
    """
    Main entry point for the Zeal language server.

    Starts the server in stdio mode unless ``--tcp`` is given.
    """
    import argparse

    parser = argparse.ArgumentParser(
        description="Zeal Language Server",
        prog="zeal-lsp",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Start server in TCP mode instead of stdio",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to in TCP mode (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=2087,
        help="Port to listen on in TCP mode (default: 2087)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level (default: info)",
    )

    args = parser.parse_args()

    log_level = getattr(logging, args.log_level.upper())
    logging.getLogger("zeal-lsp").setLevel(log_level)

    server = create_server()

    if args.tcp:
        logger.info(f"Starting Zeal LSP in TCP mode on {args.host}:{args.port}")
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting Zeal LSP in stdio mode")
        server.start_io()


if __name__ == "__main__":
    main()
