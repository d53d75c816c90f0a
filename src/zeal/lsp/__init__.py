"""
Language Server Protocol support for Zeal.

Publishes syntax diagnostics and an outline of top-level bindings to
editors. Run with ``zeal-lsp`` (stdio) or ``zeal-lsp --tcp``.
"""

from zeal.lsp.diagnostics import DiagnosticProvider, get_diagnostics_for_document
from zeal.lsp.server import ZealLanguageServer, create_server, main

__all__ = [
    "DiagnosticProvider",
    "ZealLanguageServer",
    "create_server",
    "get_diagnostics_for_document",
    "main",
]
