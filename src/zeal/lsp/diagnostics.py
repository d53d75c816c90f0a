"""
Diagnostic generation for the Zeal LSP.

Runs the front end (lexer, layout normalizer, parser) over a document and
converts the first syntax failure into LSP diagnostics. Evaluation never
happens here; runtime errors only surface through ``zeal run``.
"""

from typing import Optional

from lsprotocol import types

from zeal.compiler.ast_nodes import Program
from zeal.compiler.layout import normalize
from zeal.compiler.lexer import Lexer
from zeal.compiler.parser import Parser
from zeal.utils.diagnostics import Diagnostic as CompilerDiagnostic
from zeal.utils.diagnostics import DiagnosticLevel
from zeal.utils.errors import SyntaxFailure, ZealError

SOURCE_NAME = "zeal"


class DiagnosticProvider:
    """
    Generates LSP diagnostics from Zeal source code.

    After ``get_diagnostics`` the parsed program (or None when parsing
    failed) is available as ``program``.
    """

    def __init__(self, source: str, uri: str) -> None:
        self.source = source
        self.uri = uri
        self.program: Optional[Program] = None
        self._diagnostics: list[types.Diagnostic] = []

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Get all diagnostics for the document.

        Returns:
            List of LSP diagnostic objects; empty for a well-formed document
        """
        self._diagnostics = []
        self.program = None

        tokens = Lexer(self.source, self.uri).tokenize()

        # Layout errors carry no rich diagnostic
        try:
            tokens = normalize(tokens)
        except SyntaxFailure as e:
            self._add_zeal_error(e.with_source(self.source))
            return self._diagnostics

        parser = Parser(tokens, source=self.source, filename=self.uri)
        try:
            self.program = parser.parse()
        except SyntaxFailure as e:
            rich = parser.get_diagnostics()
            if rich:
                for diag in rich:
                    self._add_compiler_diagnostic(diag)
            else:
                self._add_zeal_error(e.with_source(self.source))

        return self._diagnostics

    def _add_zeal_error(self, error: ZealError) -> None:
        """Add a Zeal error as an LSP diagnostic, underlining the offending token."""
        line = 0
        character = 0

        if error.location:
            line = max(0, error.location.line - 1)
            character = max(0, error.location.column - 1)

        end_character = character + 1
        if error.source_line:
            rest_of_line = error.source_line[character:]
            for i, c in enumerate(rest_of_line):
                if c.isspace() or c in "()[],:":
                    end_character = character + max(1, i)
                    break
            else:
                end_character = character + max(1, len(rest_of_line))

        self._diagnostics.append(
            types.Diagnostic(
                range=types.Range(
                    start=types.Position(line=line, character=character),
                    end=types.Position(line=line, character=end_character),
                ),
                message=f"{error.kind}: {error.message}",
                severity=types.DiagnosticSeverity.Error,
                source=SOURCE_NAME,
            )
        )

    def _add_compiler_diagnostic(self, diag: CompilerDiagnostic) -> None:
        """Add a rich parser diagnostic, folding its notes and helps into the message."""
        severity_map = {
            DiagnosticLevel.ERROR: types.DiagnosticSeverity.Error,
            DiagnosticLevel.NOTE: types.DiagnosticSeverity.Information,
            DiagnosticLevel.HELP: types.DiagnosticSeverity.Hint,
        }
        severity = severity_map.get(diag.level, types.DiagnosticSeverity.Error)

        line = 0
        character = 0
        end_line = 0
        end_character = 1

        span = diag.primary_span
        if span is not None:
            line = max(0, span.start_line - 1)
            character = max(0, span.start_col - 1)
            end_line = max(0, span.end_line - 1)
            end_character = max(0, span.end_col - 1)
            if end_line == line and end_character <= character:
                end_character = character + 1

        message_parts = [diag.message]
        for note in diag.notes:
            message_parts.append(f"note: {note}")
        for help_msg in diag.helps:
            message_parts.append(f"help: {help_msg}")

        self._diagnostics.append(
            types.Diagnostic(
                range=types.Range(
                    start=types.Position(line=line, character=character),
                    end=types.Position(line=end_line, character=end_character),
                ),
                message="\n".join(message_parts),
                severity=severity,
                source=SOURCE_NAME,
                code=diag.code,
            )
        )


def get_diagnostics_for_document(source: str, uri: str) -> list[types.Diagnostic]:
    """Convenience wrapper around DiagnosticProvider."""
    return DiagnosticProvider(source, uri).get_diagnostics()
