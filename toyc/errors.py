"""
Shared error handling for the toyc compiler.

Every stage reports problems as a CompilationError subclass carrying a
Diagnostic, so a driver can render any failure the same way regardless of
which stage raised it.

Author: xwest
"""

from typing import Optional, List, TYPE_CHECKING
from dataclasses import dataclass

if TYPE_CHECKING:
    from .lexer.tokens import SourceLocation


@dataclass
class Diagnostic:
    """A single compiler diagnostic (error, warning, info, hint)."""
    message: str
    location: Optional['SourceLocation']
    severity: str  # "error", "warning", "info", "hint"
    code: Optional[str] = None
    help_text: Optional[str] = None
    suggestions: Optional[List[str]] = None

    def __str__(self) -> str:
        result = f"{self.severity.upper()}"
        if self.code:
            result += f"[{self.code}]"
        result += f": {self.message}\n"
        if self.location is not None:
            result += f"  --> {self.location}\n"

        if self.help_text:
            result += f"  help: {self.help_text}\n"

        if self.suggestions:
            result += "  suggestions:\n"
            for suggestion in self.suggestions:
                result += f"    - {suggestion}\n"

        return result


class CompilationError(Exception):
    """
    Base class for all recoverable errors raised while compiling one source unit.
    """

    def __init__(
        self,
        message: str,
        location: Optional['SourceLocation'] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )

    @property
    def location(self) -> Optional['SourceLocation']:
        return self.diagnostic.location

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        return str(self.diagnostic)


class RecursionLimitExceeded(CompilationError):
    """Raised when expression nesting exceeds the configured maximum depth."""

    def __init__(self, stage: str, limit: int, location: Optional['SourceLocation'] = None):
        super().__init__(
            f"{stage} nesting exceeds the maximum depth of {limit}",
            location=location,
            code="R001",
            help_text="Split the expression into smaller statements or raise CompilerConfig.max_depth.",
        )
        self.stage = stage
        self.limit = limit
