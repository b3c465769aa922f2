"""
Token definitions for the toyc scanner.

This module defines the closed set of token kinds the language knows about:
- Keywords (int, return, if, else, while)
- Identifiers and integer literals
- The single-character arithmetic operators
- Punctuation and delimiters

Author: xwest
"""

from enum import Enum, auto
from dataclasses import dataclass, field


class TokenKind(Enum):
    """
    Enumeration of all token kinds in the toy language.
    """

    # Keywords
    INT = auto()                    # int
    RETURN = auto()                 # return
    IF = auto()                     # if (declared, never produced by the scanner)
    ELSE = auto()                   # else (declared, never produced by the scanner)
    WHILE = auto()                  # while (declared, never produced by the scanner)

    # Identifiers and literals
    IDENTIFIER = auto()             # counter, x1
    NUMBER = auto()                 # 42

    # Operators
    OPERATOR = auto()               # + - * /

    # Punctuation and delimiters
    PAREN_OPEN = auto()             # (
    PAREN_CLOSE = auto()            # )
    BRACE_OPEN = auto()             # {
    BRACE_CLOSE = auto()            # }
    SEMICOLON = auto()              # ;

    # Special
    END_OF_INPUT = auto()


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Used for error reporting and debugging information.
    """
    filename: str
    line: int
    column: int
    offset: int  # Character offset from start of source

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class Token:
    """
    A lexical token: its kind and the source text it was scanned from.

    Two tokens are equal when kind and text match; the location only feeds
    diagnostics.
    """
    kind: TokenKind
    text: str
    location: SourceLocation = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.kind.name}({self.text!r})"

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, {self.location!r})"

    @property
    def is_keyword(self) -> bool:
        """Check if this token is a keyword."""
        return self.kind in KEYWORD_KINDS

    @property
    def is_end(self) -> bool:
        return self.kind is TokenKind.END_OF_INPUT


# Keywords the scanner resolves identifiers against. if/else/while have token
# kinds but are deliberately absent here and scan as IDENTIFIER.
KEYWORDS = {
    "int": TokenKind.INT,
    "return": TokenKind.RETURN,
}

KEYWORD_KINDS = frozenset({
    TokenKind.INT,
    TokenKind.RETURN,
    TokenKind.IF,
    TokenKind.ELSE,
    TokenKind.WHILE,
})

OPERATORS = frozenset({"+", "-", "*", "/"})

PUNCTUATION = {
    "(": TokenKind.PAREN_OPEN,
    ")": TokenKind.PAREN_CLOSE,
    "{": TokenKind.BRACE_OPEN,
    "}": TokenKind.BRACE_CLOSE,
    ";": TokenKind.SEMICOLON,
}
