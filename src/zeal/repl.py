"""
Zeal Interactive REPL (Read-Eval-Print Loop).

Provides an interactive shell for experimenting with Zeal code,
featuring command handling, tab completion, history, and multi-line
input for indented blocks.

Usage:
    zeal repl
    zeal i

Example session:
    >>> double := fn x -> x * 2
    double = <fn x>

    >>> [1, 2, 3] .map double
    [2, 4, 6]

    >>> for i <- 1..2:
    ...     println! i
    ...
    1
    2
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, fields, is_dataclass
from pathlib import Path
from typing import Any, Callable, Optional, TextIO

try:
    import readline

    HAS_READLINE = True
except ImportError:
    # readline not available on some platforms (e.g., Windows without pyreadline)
    HAS_READLINE = False

from zeal import __version__
from zeal.compiler import parse_source
from zeal.compiler.ast_nodes import Let, NamePattern, Statement
from zeal.compiler.layout import BLOCK_OPENERS, TRAILING_CONTINUATIONS, normalize
from zeal.compiler.lexer import Lexer
from zeal.compiler.tokens import KEYWORDS, TokenType
from zeal.config import InterpreterConfig
from zeal.runtime.builtins import BUILTINS
from zeal.runtime.evaluator import Interpreter
from zeal.runtime.values import UNIT, display, type_name
from zeal.utils.errors import ZealError

HISTORY_FILE = Path.home() / ".zeal_history"


# =============================================================================
# ANSI Color Codes
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RESET = "\033[0m"

    @classmethod
    def disable(cls) -> None:
        """Disable all colors."""
        for attr in ["RED", "GREEN", "YELLOW", "CYAN", "GRAY", "BOLD", "DIM", "RESET"]:
            setattr(cls, attr, "")


def _init_colors() -> None:
    """Initialize colors based on terminal capabilities."""
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        Colors.disable()


_init_colors()


# =============================================================================
# REPL Commands
# =============================================================================


@dataclass
class REPLCommand:
    """A REPL command definition."""

    name: str
    aliases: tuple[str, ...] = ()
    help_text: str = ""
    handler: Optional[Callable[[str], Optional[str]]] = None


# =============================================================================
# REPL Session
# =============================================================================


class REPLSession:
    """
    Interactive REPL session for Zeal.

    One interpreter lives for the whole session, so bindings made by one
    input are visible to the next.
    """

    def __init__(self, config: Optional[InterpreterConfig] = None,
                 output: Optional[TextIO] = None) -> None:
        """Initialize a new REPL session."""
        self.config = config or InterpreterConfig()
        self.interpreter = Interpreter(output=output, config=self.config)
        self.history: list[str] = []
        self.running = True

        self._commands = self._setup_commands()

        self.prompt = ">>> "
        self.continuation_prompt = "... "

    def _setup_commands(self) -> dict[str, REPLCommand]:
        """Setup REPL commands."""
        commands = {
            "help": REPLCommand("help", ("h", "?"), "Show this help message", self._cmd_help),
            "quit": REPLCommand("quit", ("q", "exit"), "Exit the REPL", self._cmd_quit),
            "vars": REPLCommand("vars", ("v",), "Show all bound names", self._cmd_vars),
            "ast": REPLCommand("ast", (), "Show the AST of an input", self._cmd_ast),
            "tokens": REPLCommand("tokens", (), "Show the tokens of an input", self._cmd_tokens),
            "load": REPLCommand("load", (), "Run a .zl file in this session", self._cmd_load),
            "reset": REPLCommand("reset", (), "Forget all bindings", self._cmd_reset),
        }

        # Build alias lookup
        alias_map = {}
        for cmd in commands.values():
            alias_map[cmd.name] = cmd
            for alias in cmd.aliases:
                alias_map[alias] = cmd

        return alias_map

    # -------------------------------------------------------------------------
    # Command Handlers
    # -------------------------------------------------------------------------

    def _cmd_help(self, args: str) -> str:
        """Show help message."""
        lines = [
            f"{Colors.BOLD}Commands:{Colors.RESET}",
            f"  {Colors.CYAN}:help{Colors.RESET}           Show this help",
            f"  {Colors.CYAN}:quit, :q{Colors.RESET}       Exit REPL",
            f"  {Colors.CYAN}:vars{Colors.RESET}           Show all bound names",
            f"  {Colors.CYAN}:ast <code>{Colors.RESET}     Show the AST of code",
            f"  {Colors.CYAN}:tokens <code>{Colors.RESET}  Show the tokens of code",
            f"  {Colors.CYAN}:load <file>{Colors.RESET}    Run a .zl file in this session",
            f"  {Colors.CYAN}:reset{Colors.RESET}          Forget all bindings",
            "",
            f"{Colors.BOLD}Syntax:{Colors.RESET}",
            f"  {Colors.GREEN}x := 10{Colors.RESET}                     Binding",
            f"  {Colors.GREEN}add := fn a b -> a + b{Colors.RESET}      Curried function",
            f"  {Colors.GREEN}1..5 .map fn x -> x * x{Colors.RESET}     Dot-call with a lambda",
            "",
            f"{Colors.BOLD}Built-in Functions:{Colors.RESET}",
            "  " + ", ".join(sorted(BUILTINS)),
        ]
        return "\n".join(lines)

    def _cmd_quit(self, args: str) -> str:
        """Exit the REPL."""
        self.running = False
        return f"{Colors.DIM}Goodbye!{Colors.RESET}"

    def _cmd_vars(self, args: str) -> str:
        """Show all bound names."""
        bindings = self.interpreter.user_bindings()
        if not bindings:
            return f"{Colors.DIM}No names bound{Colors.RESET}"

        lines = []
        for name, value in sorted(bindings.items()):
            lines.append(
                f"  {Colors.CYAN}{name}{Colors.RESET}: {type_name(value)} = {display(value, nested=True)}"
            )
        return "\n".join(lines)

    def _cmd_ast(self, args: str) -> str:
        """Show the AST of an input."""
        if not args.strip():
            return f"{Colors.RED}Error: :ast requires code{Colors.RESET}"

        try:
            program = parse_source(args.strip(), "<repl>")
        except ZealError as e:
            return self._format_error(e)
        return self._format_ast(program)

    def _cmd_tokens(self, args: str) -> str:
        """Show the normalized tokens of an input."""
        if not args.strip():
            return f"{Colors.RED}Error: :tokens requires code{Colors.RESET}"

        try:
            tokens = normalize(Lexer(args.strip(), "<repl>").tokenize())
        except ZealError as e:
            return self._format_error(e)
        return "\n".join(repr(token) for token in tokens)

    def _cmd_load(self, args: str) -> str:
        """Run a .zl file in this session."""
        filepath = args.strip()
        if not filepath:
            return f"{Colors.RED}Error: :load requires a filename{Colors.RESET}"

        path = Path(filepath)
        if not path.exists():
            return f"{Colors.RED}Error: File not found: {filepath}{Colors.RESET}"

        result = self.evaluate(path.read_text(encoding="utf-8"), str(path))
        loaded = f"{Colors.GREEN}Loaded {filepath}{Colors.RESET}"
        return f"{result}\n{loaded}" if result else loaded

    def _cmd_reset(self, args: str) -> str:
        """Reset the session."""
        self.interpreter.reset()
        return f"{Colors.GREEN}Session reset{Colors.RESET}"

    # -------------------------------------------------------------------------
    # AST Formatting
    # -------------------------------------------------------------------------

    def _format_ast(self, node: Any, indent: int = 0) -> str:
        """Format an AST node as a readable string."""
        prefix = "  " * indent
        node_name = type(node).__name__

        attrs = {}
        if is_dataclass(node):
            for field in fields(node):
                if field.name != "location":
                    attrs[field.name] = getattr(node, field.name)

        if not attrs:
            return f"{prefix}{Colors.YELLOW}{node_name}{Colors.RESET}"

        lines = [f"{prefix}{Colors.YELLOW}{node_name}{Colors.RESET}("]
        for key, value in attrs.items():
            if is_dataclass(value):
                lines.append(f"{prefix}  {key}=")
                lines.append(self._format_ast(value, indent + 2))
            elif isinstance(value, tuple) and value and is_dataclass(value[0]):
                lines.append(f"{prefix}  {key}=[")
                for item in value:
                    lines.append(self._format_ast(item, indent + 2))
                lines.append(f"{prefix}  ]")
            else:
                lines.append(f"{prefix}  {key}={value!r}")
        lines.append(f"{prefix})")
        return "\n".join(lines)

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def eval_line(self, line: str) -> Optional[str]:
        """
        Evaluate one (possibly multi-line) input.

        Returns the text to show, or None if there is nothing to show.
        """
        if not line.strip():
            return None

        if line.strip().startswith(":"):
            return self._handle_command(line.strip())

        return self.evaluate(line, "<repl>")

    def evaluate(self, source: str, filename: str) -> Optional[str]:
        try:
            program = parse_source(source, filename)
            result = self.interpreter.run(program)
        except ZealError as e:
            return self._format_error(e.with_source(source))

        if not program.statements:
            return None

        last = program.statements[-1]
        if isinstance(last, Let) and isinstance(last.pattern, NamePattern):
            name = last.pattern.name
            value = self.interpreter.globals.values.get(name, UNIT)
            return f"{Colors.CYAN}{name}{Colors.RESET} = {display(value, nested=True)}"
        if isinstance(last, Statement) or result.value is UNIT:
            return None
        return display(result.value, nested=True)

    def _format_error(self, error: ZealError) -> str:
        return f"{Colors.RED}{error.kind}:{Colors.RESET} {error}"

    def _handle_command(self, cmd: str) -> str:
        """Handle a REPL command."""
        parts = cmd[1:].split(maxsplit=1)
        command_name = parts[0].lower() if parts else ""
        args = parts[1] if len(parts) > 1 else ""

        if command_name in self._commands:
            cmd_obj = self._commands[command_name]
            if cmd_obj.handler:
                return cmd_obj.handler(args) or ""
            return f"{Colors.YELLOW}Command not implemented: {command_name}{Colors.RESET}"

        return f"{Colors.RED}Unknown command: :{command_name}{Colors.RESET}\nType :help for available commands"

    def is_incomplete(self, text: str) -> bool:
        """
        Check whether an input needs more lines.

        True while brackets are open, while the last line ends in a block
        opener or an operator, and, once an indented block has started,
        until a blank line is entered.
        """
        if text.strip().startswith(":"):
            return False

        depth = 0
        last_type: Optional[TokenType] = None
        for token in Lexer(text).tokenize():
            if token.type in (TokenType.LPAREN, TokenType.LBRACKET, TokenType.LBRACE):
                depth += 1
            elif token.type in (TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE):
                depth -= 1
            if token.type not in (TokenType.NEWLINE, TokenType.EOF):
                last_type = token.type

        if depth > 0:
            return True
        if last_type in BLOCK_OPENERS or last_type in TRAILING_CONTINUATIONS:
            return True
        return "\n" in text and not text.endswith("\n")

    # -------------------------------------------------------------------------
    # Main Loop
    # -------------------------------------------------------------------------

    def read_input(self) -> str:
        """Read one logical input, prompting for continuation lines."""
        line = input(self.prompt)
        while self.is_incomplete(line):
            continuation = input(self.continuation_prompt)
            line += "\n" + continuation
        return line.rstrip("\n")

    def run(self) -> None:
        """Main REPL loop."""
        print(f"{Colors.BOLD}Zeal {__version__}{Colors.RESET} - Interactive Mode")
        print(
            f"Type {Colors.CYAN}:help{Colors.RESET} for help, {Colors.CYAN}:quit{Colors.RESET} to exit"
        )
        print()

        # Setup readline if available
        if HAS_READLINE:
            completer = REPLCompleter(self)
            readline.set_completer(completer.complete)
            readline.parse_and_bind("tab: complete")
            try:
                if HISTORY_FILE.exists():
                    readline.read_history_file(str(HISTORY_FILE))
            except OSError:
                pass

        try:
            while self.running:
                try:
                    line = self.read_input()
                    self.history.append(line)

                    result = self.eval_line(line)
                    if result:
                        print(result)

                except KeyboardInterrupt:
                    print(f"\n{Colors.DIM}Use :quit to exit{Colors.RESET}")
                except EOFError:
                    print(f"\n{Colors.DIM}Goodbye!{Colors.RESET}")
                    break
        finally:
            if HAS_READLINE:
                try:
                    readline.set_history_length(1000)
                    readline.write_history_file(str(HISTORY_FILE))
                except OSError:
                    pass


# =============================================================================
# Tab Completion
# =============================================================================


class REPLCompleter:
    """Tab completion for the REPL."""

    def __init__(self, session: REPLSession) -> None:
        self.session = session
        self.keywords = sorted(KEYWORDS)
        self.builtin_functions = sorted(BUILTINS)
        self.commands = [f":{name}" for name in session._commands]

    def complete(self, text: str, state: int) -> Optional[str]:
        """Get completions for the given text."""
        if state == 0:
            self._completions = self._get_completions(text)

        try:
            return self._completions[state]
        except IndexError:
            return None

    def _get_completions(self, text: str) -> list[str]:
        """Get all completions for the given text prefix."""
        if text.startswith(":"):
            return sorted({c for c in self.commands if c.startswith(text)})

        completions: list[str] = []
        completions.extend(
            name for name in self.session.interpreter.user_bindings() if name.startswith(text)
        )
        completions.extend(kw for kw in self.keywords if kw.startswith(text))
        completions.extend(f for f in self.builtin_functions if f.startswith(text))
        return sorted(set(completions))


# =============================================================================
# Entry Point
# =============================================================================


def main() -> int:
    """Entry point for the REPL."""
    session = REPLSession()
    session.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
