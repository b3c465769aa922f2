"""
toyc Recursive Descent Parser

Builds AST nodes from the scanner's token stream using one token of
lookahead and no backtracking.

Chained binary expressions are parsed by recursing into parse_expression()
for the right operand, so `1 + 2 + 3` groups as `1 + (2 + 3)` and all four operators
share a single precedence level.

Author: xwest
"""

import logging
from contextlib import contextmanager
from typing import Optional, Tuple

from ..config import CompilerConfig, DEFAULT_CONFIG, DEFAULT_FILENAME, INT_MIN, INT_MAX
from ..errors import RecursionLimitExceeded
from ..lexer.lexer import Scanner
from ..lexer.tokens import Token, TokenKind
from .ast_nodes import (
    ASTNode, NumberLiteral, BinaryExpr, IfStatement, WhileStatement, SourceSpan
)
from .errors import (
    create_unexpected_token_error, create_invalid_expression_error,
    create_literal_range_error
)

logger = logging.getLogger(__name__)


class Parser:
    """
    toy recursive descent parser.

    The parser pulls its first token on construction; current_token is the
    single token of lookahead every parse method decides on.
    """

    def __init__(self, scanner: Scanner, config: Optional[CompilerConfig] = None):
        """
        Initialize parser over a scanner.

        Args:
            scanner: Token source
            config: Compiler options; max_depth bounds expression nesting
        """
        self.scanner = scanner
        self.config = config or scanner.config or DEFAULT_CONFIG
        self._depth = 0
        self._previous: Optional[Token] = None
        self.current_token: Token = self.scanner.next_token()

    # Expressions

    def parse_expression(self) -> ASTNode:
        """
        Parse `NUMBER (OPERATOR expression)?`.

        Raises:
            MalformedExpression: if the current token is not an integer
                literal, or the literal does not fit the integer type
            RecursionLimitExceeded: if the operator chain is nested deeper than
                config.depth_limit
        """
        with self._nested("expression"):
            left = self._parse_number()

            if self.current_token.kind is not TokenKind.OPERATOR:
                return left

            operator = self._advance().text
            right = self.parse_expression()

            span = SourceSpan(left.span.start, right.span.end)
            return BinaryExpr(left, operator, right, span)

    def _parse_number(self) -> NumberLiteral:
        token = self.current_token
        if token.kind is not TokenKind.NUMBER:
            raise create_invalid_expression_error(token)

        value = int(token.text)
        if not INT_MIN <= value <= INT_MAX:
            raise create_literal_range_error(token, INT_MIN, INT_MAX)

        self._advance()
        return NumberLiteral(value, SourceSpan(token.location, token.location))

    # Statements

    def parse_if_statement(self) -> IfStatement:
        """
        Parse `if expression { expression [;] } [else { expression [;] }]`.

        Raises:
            MalformedStatement: if a keyword or brace is missing
        """
        start_token = self._expect_keyword(TokenKind.IF, "if", "if statement")

        condition = self.parse_expression()
        then_branch = self._parse_body("if statement")

        else_branch = None
        if self._check_keyword(TokenKind.ELSE, "else"):
            self._advance()
            else_branch = self._parse_body("else branch")

        span = SourceSpan(start_token.location, self._previous.location)
        return IfStatement(condition, then_branch, else_branch, span)

    def parse_while_statement(self) -> WhileStatement:
        """
        Parse `while expression { expression [;] }`.

        Raises:
            MalformedStatement: if the keyword or a brace is missing
        """
        start_token = self._expect_keyword(TokenKind.WHILE, "while", "while statement")

        condition = self.parse_expression()
        body = self._parse_body("while statement")

        span = SourceSpan(start_token.location, self._previous.location)
        return WhileStatement(condition, body, span)

    def parse_statement(self) -> ASTNode:
        """Parse an if statement, a while statement, or `expression [;]`."""
        if self._check_keyword(TokenKind.IF, "if"):
            return self.parse_if_statement()
        if self._check_keyword(TokenKind.WHILE, "while"):
            return self.parse_while_statement()

        expr = self.parse_expression()
        self._match(TokenKind.SEMICOLON)
        return expr

    def parse_program(self) -> Tuple[ASTNode, ...]:
        """Parse statements until the end of input."""
        statements = []
        while self.current_token.kind is not TokenKind.END_OF_INPUT:
            statements.append(self.parse_statement())
        logger.debug("parsed %d statements from %s", len(statements), self.scanner.filename)
        return tuple(statements)

    def _parse_body(self, context: str) -> ASTNode:
        """Parse a braced body holding exactly one expression."""
        self._expect(TokenKind.BRACE_OPEN, context)
        body = self.parse_expression()
        self._match(TokenKind.SEMICOLON)
        self._expect(TokenKind.BRACE_CLOSE, context)
        return body

    # Utility methods

    def _advance(self) -> Token:
        """Consume and return the current token."""
        self._previous = self.current_token
        self.current_token = self.scanner.next_token()
        return self._previous

    def _match(self, kind: TokenKind) -> bool:
        """Consume the current token if it has the given kind."""
        if self.current_token.kind is kind:
            self._advance()
            return True
        return False

    def _expect(self, kind: TokenKind, context: str) -> Token:
        """Consume a token of the expected kind or raise MalformedStatement."""
        if self.current_token.kind is kind:
            return self._advance()
        raise create_unexpected_token_error(kind, self.current_token, context)

    def _check_keyword(self, kind: TokenKind, spelling: str) -> bool:
        # The scanner's keyword table only knows int/return, so if/else/while
        # arrive as identifiers. Accept either form.
        token = self.current_token
        return token.kind is kind or (token.kind is TokenKind.IDENTIFIER and token.text == spelling)

    def _expect_keyword(self, kind: TokenKind, spelling: str, context: str) -> Token:
        if self._check_keyword(kind, spelling):
            return self._advance()
        raise create_unexpected_token_error(spelling, self.current_token, context)

    @contextmanager
    def _nested(self, what: str):
        if self._depth >= self.config.depth_limit:
            raise RecursionLimitExceeded(f"Parser {what}", self.config.depth_limit,
                                         self.current_token.location)
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1


def parse_string(source: str, filename: str = DEFAULT_FILENAME,
                 config: Optional[CompilerConfig] = None) -> Tuple[ASTNode, ...]:
    """
    Convenience function to parse a source string into its statements.

    Args:
        source: Source code string
        filename: Filename for error reporting
        config: Compiler options

    Returns:
        Tuple of statement nodes

    Raises:
        CompilationError: If scanning or parsing fails
    """
    scanner = Scanner(source, filename, config)
    parser = Parser(scanner, config)
    return parser.parse_program()
