"""
Error handling for the toyc lowering pass.

Author: xwest
"""

from typing import Optional, TYPE_CHECKING

from ..errors import CompilationError

if TYPE_CHECKING:
    from ..lexer.tokens import SourceLocation


class LoweringError(CompilationError):
    """Base class for errors raised while translating the AST into IR."""
    pass


class DivisionByZero(LoweringError):
    """A division whose divisor is statically known to be zero."""

    def __init__(self, location: Optional['SourceLocation'] = None):
        super().__init__(
            "Division by zero",
            location=location,
            code="G001",
            help_text="The divisor of this division always evaluates to 0."
        )


class UnknownCallee(LoweringError):
    """A call names a function that is not defined in the module."""

    def __init__(self, name: str, location: Optional['SourceLocation'] = None):
        super().__init__(
            f"Call to unknown function '{name}'",
            location=location,
            code="G002",
            help_text="Callees must be declared in the module before they are called."
        )
        self.name = name


class ArgumentCountMismatch(LoweringError):
    """A call passes a different number of arguments than the callee declares."""

    def __init__(self, name: str, expected: int, found: int,
                 location: Optional['SourceLocation'] = None):
        super().__init__(
            f"Function '{name}' takes {expected} argument(s) but {found} were given",
            location=location,
            code="G003"
        )
        self.name = name
        self.expected = expected
        self.found = found


class FunctionRedefinition(LoweringError):
    """A function name is declared twice in one module."""

    def __init__(self, name: str, reason: str):
        super().__init__(
            f"Function '{name}' is already defined: {reason}",
            code="G004",
            help_text="Rename the external function."
        )
        self.name = name
