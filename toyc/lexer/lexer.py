"""
toyc Scanner - turns source text into tokens, one per call.

The scanner is pull-based: the parser asks for the next token when it needs
it. tokenize() is a convenience wrapper that drains the stream for tests and
tooling.

Author: xwest
"""

import logging
import string
from typing import List, Optional

from ..config import CompilerConfig, DEFAULT_CONFIG, DEFAULT_FILENAME
from .tokens import Token, TokenKind, SourceLocation, KEYWORDS, OPERATORS, PUNCTUATION
from .errors import LexerError, create_unexpected_character_error

logger = logging.getLogger(__name__)

# The language is ASCII only; str.isdigit()/isalpha() would accept Unicode
# digits and letters that int() and the keyword table cannot handle.
DIGITS = frozenset(string.digits)
LETTERS = frozenset(string.ascii_letters)
WHITESPACE = frozenset(string.whitespace)


class Scanner:
    """
    toy lexical analyzer.

    Each call to next_token() skips whitespace and returns exactly one token.
    Once the input is exhausted every further call returns END_OF_INPUT.
    """

    def __init__(self, source: str, filename: str = DEFAULT_FILENAME,
                 config: Optional[CompilerConfig] = None):
        """
        Initialize the scanner with source code.

        Args:
            source: Source code string
            filename: Name of source file for error reporting
            config: Compiler options; strict_scanning selects whether unknown
                characters raise UnexpectedCharacter or end the stream
        """
        self.source = source
        self.filename = filename
        self.config = config or DEFAULT_CONFIG
        self.pos = 0
        self.line = 1
        self.column = 1
        self.errors: List[LexerError] = []

    def next_token(self) -> Token:
        """
        Scan and return the next token.

        Raises:
            UnexpectedCharacter: in strict mode, when the next non-whitespace
                character is not part of the language. The character is not
                consumed.
        """
        self._skip_whitespace()

        location = self._location()

        if self.pos >= len(self.source):
            return Token(TokenKind.END_OF_INPUT, "", location)

        current_char = self.source[self.pos]

        # Numbers
        if current_char in DIGITS:
            return self._scan_run(DIGITS, TokenKind.NUMBER, location)

        # Identifiers and keywords
        if current_char in LETTERS:
            token = self._scan_run(LETTERS | DIGITS, TokenKind.IDENTIFIER, location)
            keyword = KEYWORDS.get(token.text)
            if keyword is not None:
                return Token(keyword, token.text, location)
            return token

        if current_char in OPERATORS:
            self._advance()
            return Token(TokenKind.OPERATOR, current_char, location)

        if current_char in PUNCTUATION:
            self._advance()
            return Token(PUNCTUATION[current_char], current_char, location)

        if self.config.strict_scanning:
            raise create_unexpected_character_error(current_char, location)

        # Permissive mode: anything unrecognised ends the stream. The character
        # stays unconsumed, so every later call lands here again.
        logger.debug("treating %r at %s as end of input", current_char, location)
        return Token(TokenKind.END_OF_INPUT, "", location)

    def tokenize(self) -> List[Token]:
        """
        Scan the remaining source into a list ending with one END_OF_INPUT.

        Unexpected characters are recorded in self.errors and skipped so a
        single pass reports all of them.
        """
        tokens: List[Token] = []
        self.errors.clear()

        while True:
            try:
                token = self.next_token()
            except LexerError as e:
                self.errors.append(e)
                # Recover by skipping the offending character
                self._advance()
                continue

            tokens.append(token)
            if token.kind is TokenKind.END_OF_INPUT:
                break

        logger.debug("scanned %d tokens from %s", len(tokens), self.filename)
        return tokens

    def _scan_run(self, alphabet: frozenset, kind: TokenKind, location: SourceLocation) -> Token:
        """Consume the maximal run of characters drawn from alphabet."""
        start = self.pos
        while self.pos < len(self.source) and self.source[self.pos] in alphabet:
            self._advance()
        return Token(kind, self.source[start:self.pos], location)

    def _skip_whitespace(self):
        while self.pos < len(self.source) and self.source[self.pos] in WHITESPACE:
            self._advance()

    def _advance(self):
        """Advance position by one character, updating line/column."""
        if self.pos < len(self.source):
            if self.source[self.pos] == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def _location(self) -> SourceLocation:
        return SourceLocation(self.filename, self.line, self.column, self.pos)

    def has_errors(self) -> bool:
        """Check if tokenize() recorded any errors."""
        return len(self.errors) > 0


def tokenize_string(source: str, filename: str = DEFAULT_FILENAME,
                    config: Optional[CompilerConfig] = None) -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting
        config: Compiler options

    Returns:
        List of tokens ending with END_OF_INPUT

    Raises:
        LexerError: If scanning fails
    """
    scanner = Scanner(source, filename, config)
    tokens = scanner.tokenize()

    if scanner.has_errors():
        # Raise the first error encountered
        raise scanner.errors[0]

    return tokens
