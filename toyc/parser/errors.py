"""
Error handling for the toyc parser.

Provides syntax errors with source location information and hints about the
token the parser expected at the failing position.

Author: xwest
"""

from typing import Optional, List, Union

from ..errors import CompilationError
from ..lexer.tokens import Token, TokenKind


class ParseError(CompilationError):
    """
    Exception raised when the parser encounters a syntax error.
    """

    def __init__(
        self,
        message: str,
        token: Optional[Token] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(
            message,
            location=token.location if token is not None else None,
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )
        self.token = token


class MalformedExpression(ParseError):
    """An expression did not start with an integer literal, or the literal is out of range."""

    def __init__(self, message: str, token: Optional[Token] = None,
                 help_text: Optional[str] = None, suggestions: Optional[List[str]] = None):
        super().__init__(message, token, code="P001", help_text=help_text, suggestions=suggestions)


class MalformedStatement(ParseError):
    """An if/while statement did not have the expected token at a structural position."""

    def __init__(self, message: str, token: Optional[Token] = None,
                 help_text: Optional[str] = None, suggestions: Optional[List[str]] = None):
        super().__init__(message, token, code="P002", help_text=help_text, suggestions=suggestions)


TOKEN_DESCRIPTIONS = {
    TokenKind.BRACE_OPEN: "'{'",
    TokenKind.BRACE_CLOSE: "'}'",
    TokenKind.PAREN_OPEN: "'('",
    TokenKind.PAREN_CLOSE: "')'",
    TokenKind.SEMICOLON: "';'",
    TokenKind.NUMBER: "an integer literal",
    TokenKind.IDENTIFIER: "an identifier",
    TokenKind.OPERATOR: "an operator",
    TokenKind.END_OF_INPUT: "end of input",
}


def describe(expected: Union[TokenKind, str]) -> str:
    """Human readable name for an expected token kind or keyword spelling."""
    if isinstance(expected, TokenKind):
        return TOKEN_DESCRIPTIONS.get(expected, expected.name)
    return f"'{expected}'"


def describe_token(token: Token) -> str:
    if token.kind is TokenKind.END_OF_INPUT:
        return "end of input"
    return f"{token.kind.name} {token.text!r}"


def suggest_missing_token(expected: Union[TokenKind, str]) -> List[str]:
    """Suggest what token might be missing."""
    token_suggestions = {
        TokenKind.BRACE_OPEN: ["Add an opening brace '{' to start the body"],
        TokenKind.BRACE_CLOSE: ["Add a closing brace '}' to end the body"],
        TokenKind.NUMBER: ["Start the expression with an integer literal"],
    }
    return token_suggestions.get(expected, [])


def create_unexpected_token_error(expected: Union[TokenKind, str], found: Token,
                                  context: str) -> MalformedStatement:
    """Create an error for an unexpected token inside an if/while statement."""
    expected_str = describe(expected)
    found_str = describe_token(found)

    return MalformedStatement(
        message=f"Expected {expected_str} in {context}, found {found_str}",
        token=found,
        help_text=f"The parser expected to see {expected_str} at this position, but found {found_str} instead.",
        suggestions=suggest_missing_token(expected)
    )


def create_invalid_expression_error(found: Token) -> MalformedExpression:
    """Create an error for an expression that does not start with a number."""
    found_str = describe_token(found)
    help_text = None
    if found.kind is TokenKind.PAREN_OPEN:
        help_text = "Parenthesised grouping is not part of the expression grammar."
    elif found.kind is TokenKind.OPERATOR:
        help_text = "Unary operators are not supported; expressions start with a literal."

    return MalformedExpression(
        message=f"Expected an integer literal, found {found_str}",
        token=found,
        help_text=help_text,
        suggestions=suggest_missing_token(TokenKind.NUMBER)
    )


def create_literal_range_error(token: Token, low: int, high: int) -> MalformedExpression:
    """Create an error for an integer literal that does not fit the integer type."""
    return MalformedExpression(
        message=f"Integer literal {token.text} is out of range",
        token=token,
        help_text=f"Integer literals must lie between {low} and {high}."
    )
