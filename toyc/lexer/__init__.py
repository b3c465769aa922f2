"""
toyc Lexer Package

Implements the pull-based scanner for the toy language: integer literals,
identifiers, the int/return keywords, the four arithmetic operators and the
parenthesis, brace and semicolon delimiters.

Author: xwest
"""

from .tokens import Token, TokenKind, SourceLocation
from .lexer import Scanner, tokenize_string
from .errors import LexerError, UnexpectedCharacter

__all__ = [
    "Scanner",
    "Token",
    "TokenKind",
    "SourceLocation",
    "tokenize_string",
    "LexerError",
    "UnexpectedCharacter",
]
