"""
Error handling for the toyc scanner.

Author: xwest
"""

from typing import List

from ..errors import CompilationError
from .tokens import SourceLocation, OPERATORS, PUNCTUATION


class LexerError(CompilationError):
    """
    Exception raised when the scanner cannot classify the input.
    """


class UnexpectedCharacter(LexerError):
    """A character outside the language alphabet was found."""

    def __init__(self, char: str, location: SourceLocation, help_text: str = None,
                 suggestions: List[str] = None):
        super().__init__(
            message=f"Unexpected character: {char!r}",
            location=location,
            code="L001",
            help_text=help_text,
            suggestions=suggestions
        )
        self.char = char


def suggest_alternatives(char: str) -> List[str]:
    """Suggest symbols of the language that look like an unsupported character."""
    lookalikes = {
        '×': ['*'],
        '·': ['*'],
        '÷': ['/'],
        '−': ['-'],
        '[': ['('],
        ']': [')'],
        ',': [';'],
    }
    return [alt for alt in lookalikes.get(char, []) if alt in OPERATORS or alt in PUNCTUATION]


def create_unexpected_character_error(char: str, location: SourceLocation) -> UnexpectedCharacter:
    """Create an error for a character the scanner does not recognise."""
    suggestions = suggest_alternatives(char)

    if suggestions:
        help_text = f"Did you mean {', '.join(repr(s) for s in suggestions)}?"
    elif char.isprintable():
        help_text = f"The character {char!r} is not valid in toy source code."
    else:
        help_text = f"Non-printable character (Unicode: U+{ord(char):04X}) is not allowed."

    return UnexpectedCharacter(char, location, help_text=help_text, suggestions=suggestions)
