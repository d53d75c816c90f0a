"""
Zeal Command-Line Interface.

Provides commands to run and inspect Zeal programs.

Usage:
    zeal run program.zl
    zeal check program.zl
    zeal tokens program.zl [--raw]
    zeal ast program.zl
    zeal repl                    # Interactive mode
    zeal info                    # Show language info

Exit codes: 0 on success, 1 on a syntax failure (or a bad file or
configuration), 2 on a runtime failure.
"""

import argparse
import logging
import os
import sys
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any, Optional

from zeal import __version__
from zeal.compiler.layout import normalize
from zeal.compiler.lexer import Lexer
from zeal.compiler.parser import Parser
from zeal.config import ConfigError, InterpreterConfig, load_config
from zeal.runtime.builtins import BUILTINS
from zeal.runtime.evaluator import Interpreter
from zeal.utils.diagnostics import DiagnosticEmitter, diagnostic_from_error
from zeal.utils.errors import (
    EvaluationError,
    LexerError,
    ParserError,
    SyntaxFailure,
    ZealError,
)

EXIT_OK = 0
EXIT_SYNTAX = 1
EXIT_RUNTIME = 2


# =============================================================================
# ANSI Color Codes for Terminal Output
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"

    BOLD = "\033[1m"
    DIM = "\033[2m"

    RESET = "\033[0m"

    @classmethod
    def disable(cls) -> None:
        """Disable all colors (for non-TTY output)."""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.BLUE = ""
        cls.CYAN = ""
        cls.GRAY = ""
        cls.BOLD = ""
        cls.DIM = ""
        cls.RESET = ""


def _use_color() -> bool:
    return sys.stdout.isatty() and not os.environ.get("NO_COLOR")


def _init_colors() -> None:
    """Initialize colors based on terminal capabilities."""
    if not _use_color():
        Colors.disable()


# Initialize on module load
_init_colors()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="zeal",
        description="Zeal - a small indentation-sensitive functional language",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log interpreter activity to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser(
        "run",
        aliases=["r"],
        help="Run a Zeal program",
    )
    run_parser.add_argument(
        "input",
        type=Path,
        help="Input Zeal file (.zl)",
    )
    _add_config_arguments(run_parser)
    run_parser.add_argument(
        "--show-value",
        action="store_true",
        help="Print the value of the last top-level statement",
    )

    # Check command (syntax validation)
    check_parser = subparsers.add_parser(
        "check",
        help="Check a Zeal file for syntax errors",
    )
    check_parser.add_argument(
        "input",
        type=Path,
        help="Input Zeal file (.zl)",
    )

    # Tokens command (debug)
    tokens_parser = subparsers.add_parser(
        "tokens",
        help="Show tokens for a Zeal file (debug)",
    )
    tokens_parser.add_argument(
        "input",
        type=Path,
        help="Input Zeal file (.zl)",
    )
    tokens_parser.add_argument(
        "--raw",
        action="store_true",
        help="Show the lexer output before layout normalization",
    )

    # AST command (debug)
    ast_parser = subparsers.add_parser(
        "ast",
        help="Show AST for a Zeal file (debug)",
    )
    ast_parser.add_argument(
        "input",
        type=Path,
        help="Input Zeal file (.zl)",
    )

    repl_parser = subparsers.add_parser(
        "repl",
        aliases=["i"],
        help="Start an interactive session",
    )
    _add_config_arguments(repl_parser)

    subparsers.add_parser(
        "info",
        help="Show language information",
    )

    return parser


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: ./zeal.toml when present)",
    )
    parser.add_argument(
        "--rebind",
        action="store_true",
        default=None,
        help="Make '=' update the nearest existing binding",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Abort after this many executed statements",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum nesting of function calls",
    )


def _build_config(args: argparse.Namespace) -> InterpreterConfig:
    """Combine the configuration file with command-line overrides."""
    return load_config(args.config).merged(
        rebind_on_assign=args.rebind,
        max_steps=args.max_steps,
        max_call_depth=args.max_depth,
    )


# =============================================================================
# Shared helpers
# =============================================================================


def _read_source(input_path: Path) -> Optional[str]:
    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return None
    try:
        return input_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Cannot read {input_path}: {e}", file=sys.stderr)
        return None


def _make_parser(source: str, filename: str) -> Parser:
    """Lex and normalize; the parser keeps its diagnostics after a failure."""
    tokens = normalize(Lexer(source, filename).tokenize())
    return Parser(tokens, source, filename)


def _report_error(error: ZealError, source: str, filename: str,
                  parser: Optional[Parser] = None) -> None:
    """Render an error as a rich diagnostic on stderr."""
    use_color = sys.stderr.isatty() and not os.environ.get("NO_COLOR")
    if (
        parser is not None
        and parser.diagnostics
        and isinstance(error, (ParserError, LexerError))
    ):
        diagnostic = parser.diagnostics[-1]
    else:
        diagnostic = diagnostic_from_error(error, DiagnosticEmitter(source, filename))
    print(diagnostic.render(source, use_color=use_color), file=sys.stderr)


# =============================================================================
# Commands
# =============================================================================


def cmd_run(args: argparse.Namespace) -> int:
    """Handle the run command."""
    input_path: Path = args.input
    source = _read_source(input_path)
    if source is None:
        return EXIT_SYNTAX

    try:
        config = _build_config(args)
    except (ConfigError, OSError) as e:
        print(f"{Colors.RED}Configuration error:{Colors.RESET} {e}", file=sys.stderr)
        return EXIT_SYNTAX

    filename = str(input_path)
    parser = None
    try:
        parser = _make_parser(source, filename)
        program = parser.parse()
        result = Interpreter(config=config).run(program)
    except SyntaxFailure as e:
        _report_error(e, source, filename, parser)
        return EXIT_SYNTAX
    except EvaluationError as e:
        sys.stdout.flush()
        _report_error(e, source, filename)
        return EXIT_RUNTIME

    if args.show_value:
        print(result.display_value)
    return EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the check command."""
    input_path: Path = args.input
    source = _read_source(input_path)
    if source is None:
        return EXIT_SYNTAX

    filename = str(input_path)
    parser = None
    try:
        parser = _make_parser(source, filename)
        parser.parse()
    except SyntaxFailure as e:
        _report_error(e, source, filename, parser)
        return EXIT_SYNTAX

    print(f"{Colors.GREEN}OK:{Colors.RESET} {input_path} (no syntax errors)")
    return EXIT_OK


def cmd_tokens(args: argparse.Namespace) -> int:
    """Handle the tokens command (debug)."""
    input_path: Path = args.input
    source = _read_source(input_path)
    if source is None:
        return EXIT_SYNTAX

    tokens = Lexer(source, str(input_path)).tokenize()
    if not args.raw:
        try:
            tokens = normalize(tokens)
        except SyntaxFailure as e:
            _report_error(e, source, str(input_path))
            return EXIT_SYNTAX

    for token in tokens:
        print(token)
    return EXIT_OK


def cmd_ast(args: argparse.Namespace) -> int:
    """Handle the ast command (debug)."""
    input_path: Path = args.input
    source = _read_source(input_path)
    if source is None:
        return EXIT_SYNTAX

    filename = str(input_path)
    parser = None
    try:
        parser = _make_parser(source, filename)
        ast = parser.parse()
    except SyntaxFailure as e:
        _report_error(e, source, filename, parser)
        return EXIT_SYNTAX

    _print_ast(ast)
    return EXIT_OK


def cmd_repl(args: argparse.Namespace) -> int:
    """Handle the repl command - start interactive mode."""
    from zeal.repl import REPLSession

    try:
        config = _build_config(args)
    except (ConfigError, OSError) as e:
        print(f"{Colors.RED}Configuration error:{Colors.RESET} {e}", file=sys.stderr)
        return EXIT_SYNTAX

    session = REPLSession(config=config)
    session.run()
    return EXIT_OK


def cmd_info(args: argparse.Namespace) -> int:
    """Handle the info command - show language information."""
    builtins = ", ".join(sorted(BUILTINS))
    print(f"""
{Colors.BOLD}Zeal Language{Colors.RESET}
=============

{Colors.CYAN}Version:{Colors.RESET} {__version__}

{Colors.CYAN}Features:{Colors.RESET}
  - Curried functions: fn x y -> x + y
  - Four call notations: f a b, f a, b, a .f b, a |> f b
  - Indentation blocks after ':', '->', 'then' and 'else'
  - List, tuple and inclusive range literals: [1, 2], (3, `Fizz`), 1..15
  - String templates with interpolation: `i = {{i}}`
  - Destructuring loops: for (m, s) <- pairs: ...

{Colors.CYAN}Assignment:{Colors.RESET}
  x := v declares; s += `text` and xs ++= [v] update the nearest binding.
  Plain x = v makes a new binding in the current block, so a loop like
  `while i <= 15: ... i = i + 1` never ends unless run with --rebind.

{Colors.CYAN}Built-ins:{Colors.RESET}
  {builtins}

{Colors.CYAN}Commands:{Colors.RESET}
  zeal run <file>         Run a program
  zeal check <file>       Check syntax
  zeal tokens <file>      Show tokens
  zeal ast <file>         Show the syntax tree
  zeal repl               Start interactive REPL
""")
    return EXIT_OK


def _print_ast(node: Any, indent: int = 0) -> None:
    """Pretty print an AST node."""
    prefix = "  " * indent
    node_name = type(node).__name__

    attrs = {}
    if is_dataclass(node):
        for field in fields(node):
            if field.name != "location":
                attrs[field.name] = getattr(node, field.name)

    if not attrs:
        print(f"{prefix}{node_name}")
        return

    print(f"{prefix}{node_name}:")
    for key, value in attrs.items():
        if is_dataclass(value):
            print(f"{prefix}  {key}:")
            _print_ast(value, indent + 2)
        elif isinstance(value, tuple) and value and is_dataclass(value[0]):
            print(f"{prefix}  {key}: [")
            for item in value:
                _print_ast(item, indent + 2)
            print(f"{prefix}  ]")
        elif isinstance(value, tuple) and not value:
            print(f"{prefix}  {key}: []")
        else:
            print(f"{prefix}  {key}: {value!r}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s %(levelname)s: %(message)s",
            stream=sys.stderr,
        )

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    command_handlers = {
        "run": cmd_run,
        "r": cmd_run,
        "check": cmd_check,
        "tokens": cmd_tokens,
        "ast": cmd_ast,
        "repl": cmd_repl,
        "i": cmd_repl,
        "info": cmd_info,
    }

    handler = command_handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return EXIT_SYNTAX


if __name__ == "__main__":
    sys.exit(main())
