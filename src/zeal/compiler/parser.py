"""
Zeal Parser.

A recursive descent parser with precedence climbing for binary operators.
It consumes the block-delimited stream produced by the layout normalizer
and builds the AST. Every call notation is normalized to a single Call
node here, so the evaluator never sees surface syntax:

    map arr f       -> Call(map, [arr, f])
    map arr, f      -> Call(map, [arr, f])
    arr .map f      -> Call(map, [arr, f])
    arr |> map f    -> Call(map, [arr, f])

Precedence, loosest first: statements and bindings, pipe ``|>``,
dot-call, juxtaposition application, binary operators, prefix operators,
primaries. A ``fn ... ->`` argument captures everything to its right up
to the end of the enclosing block or bracket.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from zeal.compiler.ast_nodes import (
    Assign,
    AssignOperator,
    BinaryOp,
    BinaryOperator,
    Block,
    BooleanLiteral,
    Call,
    Expression,
    FloatLiteral,
    For,
    Identifier,
    If,
    IntegerLiteral,
    Lambda,
    Let,
    ListLiteral,
    NamePattern,
    Node,
    Pattern,
    Program,
    RangeLiteral,
    StringTemplate,
    TemplateExpression,
    TemplatePart,
    TemplateText,
    TupleLiteral,
    TuplePattern,
    UnaryOp,
    UnaryOperator,
    UnitLiteral,
    While,
)
from zeal.compiler.layout import normalize
from zeal.compiler.tokens import ExprSegment, TextSegment, Token, TokenType
from zeal.utils.diagnostics import (
    Diagnostic,
    DiagnosticEmitter,
    ErrorCode,
    SourceSpan,
    create_unclosed_delimiter_diagnostic,
    create_unexpected_token_diagnostic,
)
from zeal.utils.errors import LexerError, ParserError, SourceLocation, SyntaxFailure


# Operator precedence levels (higher = tighter binding)
class Precedence:
    """Binary operator precedence levels."""

    NONE = 0
    OR = 1              # ||
    AND = 2             # &&
    EQUALITY = 3        # == !=
    COMPARISON = 4      # < > <= >=
    RANGE = 5           # ..
    ADDITIVE = 6        # + - ++
    MULTIPLICATIVE = 7  # * / // %


BINARY_OP_MAP: dict[TokenType, BinaryOperator] = {
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUB,
    TokenType.STAR: BinaryOperator.MUL,
    TokenType.SLASH: BinaryOperator.DIV,
    TokenType.DOUBLE_SLASH: BinaryOperator.FLOOR_DIV,
    TokenType.PERCENT: BinaryOperator.MOD,
    TokenType.CONCAT: BinaryOperator.CONCAT,
    TokenType.EQ: BinaryOperator.EQ,
    TokenType.NE: BinaryOperator.NE,
    TokenType.LT: BinaryOperator.LT,
    TokenType.GT: BinaryOperator.GT,
    TokenType.LE: BinaryOperator.LE,
    TokenType.GE: BinaryOperator.GE,
    TokenType.AND: BinaryOperator.AND,
    TokenType.OR: BinaryOperator.OR,
}

# NOTE: the pipe, dot-call and assignment operators are not in this map;
# they sit above the binary levels and have their own parse methods.
PRECEDENCE_MAP: dict[TokenType, int] = {
    TokenType.OR: Precedence.OR,
    TokenType.AND: Precedence.AND,
    TokenType.EQ: Precedence.EQUALITY,
    TokenType.NE: Precedence.EQUALITY,
    TokenType.LT: Precedence.COMPARISON,
    TokenType.GT: Precedence.COMPARISON,
    TokenType.LE: Precedence.COMPARISON,
    TokenType.GE: Precedence.COMPARISON,
    TokenType.DOUBLE_DOT: Precedence.RANGE,
    TokenType.PLUS: Precedence.ADDITIVE,
    TokenType.MINUS: Precedence.ADDITIVE,
    TokenType.CONCAT: Precedence.ADDITIVE,
    TokenType.STAR: Precedence.MULTIPLICATIVE,
    TokenType.SLASH: Precedence.MULTIPLICATIVE,
    TokenType.DOUBLE_SLASH: Precedence.MULTIPLICATIVE,
    TokenType.PERCENT: Precedence.MULTIPLICATIVE,
}

# Tokens that can begin a juxtaposed argument
ARGUMENT_START: frozenset[TokenType] = frozenset(
    {
        TokenType.IDENTIFIER,
        TokenType.INTEGER,
        TokenType.FLOAT,
        TokenType.STRING,
        TokenType.TRUE,
        TokenType.FALSE,
        TokenType.LPAREN,
        TokenType.LBRACKET,
        TokenType.FN,
        TokenType.NOT,
        TokenType.IF,
    }
)

BINDING_OPERATORS = (TokenType.DECLARE, TokenType.ASSIGN)
UPDATE_OPERATORS: dict[TokenType, AssignOperator] = {
    TokenType.PLUS_ASSIGN: AssignOperator.APPEND,
    TokenType.CONCAT_ASSIGN: AssignOperator.CONCAT,
}

CLOSING_DELIMITERS = {"(": (TokenType.RPAREN, ")"), "[": (TokenType.RBRACKET, "]")}


class Parser:
    """
    Recursive descent parser for Zeal.

    Parses a normalized token list into a Program. The first grammar
    violation raises ParserError (or LexerError for an INVALID token);
    there is no error recovery.

    Usage:
        tokens = normalize(tokenize(source))
        program = Parser(tokens, source).parse()
    """

    def __init__(self, tokens: list[Token], source: str = "",
                 filename: str = "<input>") -> None:
        """
        Initialize the parser.

        Args:
            tokens: Normalized tokens (see zeal.compiler.layout)
            source: Optional source code for rich diagnostics
            filename: Optional filename for error reporting
        """
        self.tokens = tokens
        self.pos = 0
        self._source = source
        self._source_lines: list[str] = source.splitlines() if source else []
        self._filename = filename
        self._emitter: Optional[DiagnosticEmitter] = None
        self._delimiter_stack: list[tuple[str, SourceLocation]] = []
        # Whether `f a, b` may use commas here; off inside list/tuple elements
        self._comma_args: list[bool] = [True]
        self.diagnostics: list[Diagnostic] = []

        if source:
            self._emitter = DiagnosticEmitter(source, filename)

    @property
    def _current(self) -> Token:
        """Get the current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[self.pos]

    @property
    def _previous(self) -> Token:
        """Get the previous token."""
        return self.tokens[self.pos - 1] if self.pos > 0 else self.tokens[0]

    def _peek(self, offset: int = 1) -> Token:
        """Peek at a token ahead of the current position."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def _is_at_end(self) -> bool:
        return self._current.type == TokenType.EOF

    def _check(self, *types: TokenType) -> bool:
        """Check if the current token is one of the given types."""
        return self._current.type in types

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._current
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        """Consume current token if it matches one of the given types."""
        if self._check(*types):
            self._advance()
            return True
        return False

    def _expect(self, token_type: TokenType, message: str, expected: str) -> Token:
        """Consume current token if it matches, else raise error."""
        if self._check(token_type):
            return self._advance()
        raise self._error_with_context(message, expected=expected)

    @contextmanager
    def _comma_arguments(self, allowed: bool) -> Iterator[None]:
        self._comma_args.append(allowed)
        try:
            yield
        finally:
            self._comma_args.pop()

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def _source_line(self, location: SourceLocation) -> Optional[str]:
        if 1 <= location.line <= len(self._source_lines):
            return self._source_lines[location.line - 1]
        return None

    def _lex_error(self, token: Token) -> LexerError:
        if self._emitter is not None:
            span = SourceSpan.from_location(
                token.location.line, token.location.column, 1, self._filename
            )
            self.diagnostics.append(
                self._emitter.error(ErrorCode.E0208, str(token.value), span).emit()
            )
        return LexerError(str(token.value), token.location, self._source_line(token.location))

    def _error_with_context(self, message: str, expected: str) -> SyntaxFailure:
        """Create a parser error with rich diagnostic context."""
        token = self._current
        if token.type == TokenType.INVALID:
            return self._lex_error(token)

        found = token.lexeme
        if self._emitter is not None:
            length = len(found) if token.type == TokenType.IDENTIFIER else 1
            span = SourceSpan.from_location(
                token.location.line, token.location.column, length, self._filename
            )
            self.diagnostics.append(
                create_unexpected_token_diagnostic(self._emitter, expected, found, span)
            )

        return ParserError(
            message,
            token.location,
            self._source_line(token.location),
            expected=expected,
            found=found,
        )

    def _error_unclosed_delimiter(self, delimiter: str, open_loc: SourceLocation) -> ParserError:
        """Create an error for an unclosed delimiter with helpful context."""
        token = self._current

        if self._emitter is not None:
            open_span = SourceSpan.from_location(open_loc.line, open_loc.column, 1, self._filename)
            error_span = SourceSpan.from_location(
                token.location.line, token.location.column, 1, self._filename
            )
            self.diagnostics.append(
                create_unclosed_delimiter_diagnostic(self._emitter, delimiter, open_span, error_span)
            )

        return ParserError(
            f"Unclosed delimiter '{delimiter}'",
            token.location,
            self._source_line(token.location),
            expected=f"'{CLOSING_DELIMITERS[delimiter][1]}'",
            found=token.lexeme,
        )

    def _close_delimiter(self, delimiter: str, open_loc: SourceLocation) -> None:
        closing, closing_text = CLOSING_DELIMITERS[delimiter]
        if self._check(closing):
            self._advance()
            self._delimiter_stack.pop()
            return
        if self._is_at_end():
            raise self._error_unclosed_delimiter(delimiter, open_loc)
        raise self._error_with_context(
            f"Expected '{closing_text}' to close '{delimiter}'", expected=f"'{closing_text}'"
        )

    def get_diagnostics(self) -> list[Diagnostic]:
        """Get all rich diagnostics emitted during parsing."""
        return self.diagnostics

    # -------------------------------------------------------------------------
    # Program Parsing
    # -------------------------------------------------------------------------

    def parse(self) -> Program:
        """
        Parse the entire program.

        Returns:
            The root Program AST node.
        """
        location = self._current.location
        statements = self._parse_statements(TokenType.EOF)
        self._expect(TokenType.EOF, "Expected end of file", expected="end of file")
        return Program(tuple(statements), location=location)

    def _parse_statements(self, terminator: TokenType) -> list[Node]:
        """Parse statements separated by STATEMENT_END until ``terminator``."""
        statements: list[Node] = []
        while self._match(TokenType.STATEMENT_END):
            pass

        while not self._check(terminator, TokenType.EOF):
            statements.append(self._parse_statement())
            if self._check(terminator, TokenType.EOF):
                break
            if not self._match(TokenType.STATEMENT_END):
                raise self._error_with_context(
                    "Expected end of statement", expected="end of statement"
                )
            while self._match(TokenType.STATEMENT_END):
                pass

        return statements

    def _parse_block(self) -> Block:
        """
        Parse an indented block.

        Handles:
            BLOCK_START stmt (STATEMENT_END stmt)* BLOCK_END
        """
        loc = self._expect(
            TokenType.BLOCK_START, "Expected an indented block", expected="indented block"
        ).location
        with self._comma_arguments(True):
            statements = self._parse_statements(TokenType.BLOCK_END)
        self._expect(TokenType.BLOCK_END, "Expected end of block", expected="end of block")
        return Block(tuple(statements), location=loc)

    def _parse_clause_body(self) -> Block:
        """Body after ``:``: an indented block or one statement on the same line."""
        if self._check(TokenType.BLOCK_START):
            return self._parse_block()
        statement = self._parse_statement()
        return Block((statement,), location=statement.location)

    # -------------------------------------------------------------------------
    # Statement Parsing
    # -------------------------------------------------------------------------

    def _parse_statement(self) -> Node:
        """Parse a single statement."""
        if self._check(TokenType.FOR):
            return self._parse_for()
        if self._check(TokenType.WHILE):
            return self._parse_while()
        if self._check(TokenType.IF):
            conditional = self._parse_if(statement=True)
            return self._parse_pipe_chain(self._parse_dot_chain(conditional))
        if self._looks_like_binding():
            return self._parse_binding()
        return self._parse_expression()

    def _looks_like_binding(self) -> bool:
        """Check for ``name :=``, ``name +=`` or ``(a, b) =`` ahead."""
        if self._check(TokenType.IDENTIFIER):
            return self._peek().type in BINDING_OPERATORS or self._peek().type in UPDATE_OPERATORS

        if not self._check(TokenType.LPAREN):
            return False

        depth = 0
        offset = 0
        while True:
            token = self._peek(offset)
            if token.type == TokenType.LPAREN:
                depth += 1
            elif token.type == TokenType.RPAREN:
                depth -= 1
                if depth == 0:
                    return self._peek(offset + 1).type in BINDING_OPERATORS
            elif token.type not in (TokenType.IDENTIFIER, TokenType.COMMA):
                return False
            offset += 1

    def _parse_binding(self) -> Node:
        """
        Parse a binding or in-place update.

        Handles:
            name := expr
            name = expr
            (a, b) := expr
            name += expr
            name ++= expr
        """
        if self._check(TokenType.IDENTIFIER) and self._peek().type in UPDATE_OPERATORS:
            name_token = self._advance()
            operator = UPDATE_OPERATORS[self._advance().type]
            value = self._parse_expression()
            return Assign(
                target=Identifier(name_token.value, location=name_token.location),
                operator=operator,
                value=value,
                location=name_token.location,
            )

        pattern = self._parse_pattern()
        operator = self._advance()
        value = self._parse_expression()
        return Let(
            pattern=pattern,
            value=value,
            declare=operator.type == TokenType.DECLARE,
            location=pattern.location,
        )

    def _parse_for(self) -> For:
        """
        Parse a for loop.

        Handles:
            for x <- xs: stmt
            for (m, s) <- arr:
                ...
        """
        loc = self._advance().location  # consume 'for'
        pattern = self._parse_pattern()
        self._expect(TokenType.LEFT_ARROW, "Expected '<-' after loop pattern", expected="'<-'")
        iterable = self._parse_expression()
        self._expect(TokenType.COLON, "Expected ':' after loop iterable", expected="':'")
        body = self._parse_clause_body()
        return For(pattern=pattern, iterable=iterable, body=body, location=loc)

    def _parse_while(self) -> While:
        """Parse ``while cond: body``."""
        loc = self._advance().location  # consume 'while'
        condition = self._parse_expression()
        self._expect(TokenType.COLON, "Expected ':' after loop condition", expected="':'")
        body = self._parse_clause_body()
        return While(condition=condition, body=body, location=loc)

    def _parse_if(self, statement: bool = False) -> If:
        """
        Parse a conditional.

        Expression form (both branches at application level):
            if c then a else b
        Statement form additionally accepts blocks and updates:
            if c:
                ...
            else if d:
                ...
            else:
                ...
            if i % m == 0 then res += s
        """
        loc = self._advance().location  # consume 'if'
        condition = self._parse_expression()

        if statement and self._match(TokenType.COLON):
            then_branch: Node = self._parse_clause_body()
        else:
            self._expect(TokenType.THEN, "Expected 'then' after condition", expected="'then'")
            then_branch = self._parse_branch(statement)

        else_branch: Node = UnitLiteral(location=loc)
        if self._match_else():
            if self._check(TokenType.IF):
                else_branch = self._parse_if(statement)
            elif statement and self._match(TokenType.COLON):
                else_branch = self._parse_clause_body()
            else:
                else_branch = self._parse_branch(statement)

        return If(condition, then_branch, else_branch, location=loc)

    def _match_else(self) -> bool:
        """Consume ``else``, also when it starts the line after a branch."""
        if self._match(TokenType.ELSE):
            return True
        if self._check(TokenType.STATEMENT_END) and self._peek().type == TokenType.ELSE:
            self._advance()
            self._advance()
            return True
        return False

    def _parse_branch(self, statement: bool) -> Node:
        if self._check(TokenType.BLOCK_START):
            return self._parse_block()
        if statement:
            if self._check(TokenType.IF):
                return self._parse_if(statement=True)
            if self._looks_like_binding():
                return self._parse_binding()
        return self._parse_application()

    # -------------------------------------------------------------------------
    # Patterns
    # -------------------------------------------------------------------------

    def _parse_pattern(self) -> Pattern:
        """
        Parse a binding pattern.

        Handles:
            name
            (a, b)
            (a, (b, c))
        """
        token = self._current
        if self._match(TokenType.IDENTIFIER):
            return NamePattern(token.value, location=token.location)

        if self._match(TokenType.LPAREN):
            self._delimiter_stack.append(("(", token.location))
            elements = [self._parse_pattern()]
            is_tuple = False
            while self._match(TokenType.COMMA):
                is_tuple = True
                if self._check(TokenType.RPAREN):
                    break
                elements.append(self._parse_pattern())
            self._close_delimiter("(", token.location)
            if not is_tuple:
                return elements[0]
            return TuplePattern(tuple(elements), location=token.location)

        raise self._error_with_context("Expected a name or tuple pattern", expected="pattern")

    # -------------------------------------------------------------------------
    # Expression Parsing
    # -------------------------------------------------------------------------

    def _parse_expression(self) -> Expression:
        """Parse a full expression: pipes over dot-calls over applications."""
        return self._parse_pipe_chain(self._parse_dot_chain())

    def _parse_pipe_chain(self, left: Expression) -> Expression:
        """
        Parse ``left |> f a |> g``.

        The left operand becomes the first argument of the call on the right.
        """
        while self._check(TokenType.PIPE):
            loc = self._advance().location
            right = self._parse_dot_chain()
            if isinstance(right, Call):
                left = Call(right.callee, (left, *right.arguments), location=right.location)
            else:
                left = Call(right, (left,), location=loc)
        return left

    def _parse_dot_chain(self, left: Optional[Expression] = None) -> Expression:
        """
        Parse ``recv .f a b .g c`` as ``g(f(recv, a, b), c)``.
        """
        if left is None:
            left = self._parse_application()

        while self._check(TokenType.DOT):
            self._advance()
            name = self._expect(
                TokenType.IDENTIFIER, "Expected a function name after '.'", expected="identifier"
            )
            self._match(TokenType.BANG)
            arguments = self._parse_arguments()
            left = Call(
                Identifier(name.value, location=name.location),
                (left, *arguments),
                location=name.location,
            )
        return left

    def _parse_application(self) -> Expression:
        """
        Parse juxtaposition application ``f a b`` or ``f a, b``.
        """
        callee = self._parse_binary()
        arguments = self._parse_arguments()
        if not arguments:
            return callee
        return Call(callee, tuple(arguments), location=callee.location)

    def _parse_arguments(self) -> list[Expression]:
        """
        Parse the arguments following a callee.

        Juxtaposed arguments are binary-level expressions. Once at least one
        argument has been read, ``, arg`` continues the list where commas
        are not separating list or tuple elements.
        """
        arguments: list[Expression] = []
        while self._check(*ARGUMENT_START):
            arguments.append(self._parse_binary())

        if arguments and self._comma_args[-1]:
            while self._match(TokenType.COMMA):
                with self._comma_arguments(False):
                    arguments.append(self._parse_application())

        return arguments

    def _parse_binary(self, min_precedence: int = Precedence.NONE) -> Expression:
        """
        Parse binary operators using precedence climbing.

        All binary operators are left-associative; ``a..b`` builds a
        RangeLiteral.
        """
        left = self._parse_unary()

        while True:
            precedence = PRECEDENCE_MAP.get(self._current.type, Precedence.NONE)
            if precedence <= min_precedence:
                break

            operator = self._advance()
            right = self._parse_binary(precedence)
            if operator.type == TokenType.DOUBLE_DOT:
                left = RangeLiteral(left, right, location=operator.location)
            else:
                left = BinaryOp(
                    BINARY_OP_MAP[operator.type], left, right, location=operator.location
                )

        return left

    def _parse_unary(self) -> Expression:
        """Parse prefix ``-`` and ``!``."""
        loc = self._current.location

        if self._match(TokenType.MINUS):
            return UnaryOp(UnaryOperator.NEG, self._parse_unary(), location=loc)

        if self._match(TokenType.NOT):
            return UnaryOp(UnaryOperator.NOT, self._parse_unary(), location=loc)

        return self._parse_postfix(self._parse_primary())

    def _parse_postfix(self, expr: Expression) -> Expression:
        """
        Parse the call marker: ``f!`` calls ``f`` with the arguments that
        follow it, possibly none.
        """
        while self._check(TokenType.BANG):
            self._advance()
            arguments = self._parse_arguments()
            expr = Call(expr, tuple(arguments), location=expr.location)
        return expr

    def _parse_primary(self) -> Expression:
        """Parse a primary expression (literals, identifiers, etc.)."""
        token = self._current
        loc = token.location

        if self._match(TokenType.INTEGER):
            return IntegerLiteral(token.value, location=loc)

        if self._match(TokenType.FLOAT):
            return FloatLiteral(token.value, location=loc)

        if self._match(TokenType.STRING):
            return self._parse_template(token)

        if self._match(TokenType.TRUE, TokenType.FALSE):
            return BooleanLiteral(token.value, location=loc)

        if self._match(TokenType.IDENTIFIER):
            return Identifier(token.value, location=loc)

        if self._match(TokenType.LPAREN):
            return self._parse_grouped_or_tuple(loc)

        if self._match(TokenType.LBRACKET):
            return self._parse_list_literal(loc)

        if self._check(TokenType.FN):
            return self._parse_lambda()

        if self._check(TokenType.IF):
            return self._parse_if()

        if self._check(TokenType.INVALID):
            raise self._lex_error(token)

        raise self._error_with_context("Expected an expression", expected="expression")

    def _parse_grouped_or_tuple(self, loc: SourceLocation) -> Expression:
        """
        Parse a parenthesized expression, tuple, or unit.

        Handles:
            ()                -> Unit
            (expr)            -> Grouped expression
            (expr,)           -> Single-element tuple
            (expr, expr, ...) -> Multi-element tuple
        """
        if self._match(TokenType.RPAREN):
            return UnitLiteral(location=loc)

        self._delimiter_stack.append(("(", loc))
        with self._comma_arguments(False):
            first = self._parse_expression()
            if not self._check(TokenType.COMMA):
                self._close_delimiter("(", loc)
                return first

            elements = [first]
            while self._match(TokenType.COMMA):
                if self._check(TokenType.RPAREN):
                    break
                elements.append(self._parse_expression())
            self._close_delimiter("(", loc)

        return TupleLiteral(tuple(elements), location=loc)

    def _parse_list_literal(self, loc: SourceLocation) -> ListLiteral:
        """Parse ``[a, b, c]`` (trailing comma allowed)."""
        self._delimiter_stack.append(("[", loc))
        elements: list[Expression] = []
        with self._comma_arguments(False):
            while not self._check(TokenType.RBRACKET, TokenType.EOF):
                elements.append(self._parse_expression())
                if not self._match(TokenType.COMMA):
                    break
            self._close_delimiter("[", loc)
        return ListLiteral(tuple(elements), location=loc)

    def _parse_lambda(self) -> Lambda:
        """
        Parse a lambda.

        Handles:
            fn x y -> expr
            fn (m, s) -> expr
            fn ->
                block
        """
        loc = self._advance().location  # consume 'fn'
        params: list[Pattern] = []
        while not self._check(TokenType.THIN_ARROW):
            params.append(self._parse_pattern())
        self._advance()  # consume '->'

        if self._check(TokenType.BLOCK_START):
            body = self._parse_block()
        else:
            expression = self._parse_expression()
            body = Block((expression,), location=expression.location)
        return Lambda(tuple(params), body, location=loc)

    def _parse_template(self, token: Token) -> StringTemplate:
        """
        Build a StringTemplate from a STRING token.

        Interpolated segments carry their own token lists; each is
        normalized and parsed as a standalone expression.
        """
        parts: list[TemplatePart] = []
        for segment in token.value:
            if isinstance(segment, TextSegment):
                parts.append(TemplateText(segment.text))
                continue

            assert isinstance(segment, ExprSegment)
            nested = Parser(normalize(list(segment.tokens)), self._source, self._filename)
            try:
                expression = nested._parse_expression()
                nested._expect(
                    TokenType.EOF,
                    "Expected '}' after interpolated expression",
                    expected="'}'",
                )
            finally:
                self.diagnostics.extend(nested.diagnostics)
            parts.append(TemplateExpression(expression))

        return StringTemplate(tuple(parts), location=token.location)


def parse(tokens: list[Token], source: str = "", filename: str = "<input>") -> Program:
    """
    Convenience function to parse normalized tokens.

    Args:
        tokens: Tokens from the layout normalizer
        source: Optional source code for rich diagnostics
        filename: Optional filename for error reporting

    Returns:
        Program AST node
    """
    return Parser(tokens, source, filename).parse()
