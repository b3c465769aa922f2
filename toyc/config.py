"""
Compiler configuration for toyc.

Named constants for the values the pipeline would otherwise hard-code, plus
the CompilerConfig options object that is threaded through the scanner,
parser and lowering pass.

Author: xwest
"""

import sys
from dataclasses import dataclass


# Source handling
DEFAULT_FILENAME = "<string>"

# IR module layout
DEFAULT_MODULE_NAME = "toy"
DEFAULT_ENTRY_FUNCTION = "main"

# Integer model: every value in the language is a signed machine integer
INT_BITS = 32
INT_MIN = -(2 ** (INT_BITS - 1))
INT_MAX = 2 ** (INT_BITS - 1) - 1

# Nesting depth accepted by the parser and the lowering pass
DEFAULT_MAX_DEPTH = 256

# Interpreter frames one nesting level costs in the deepest pass (lowering
# recurses through lower(), a _generate_* method and an argument comprehension)
FRAMES_PER_LEVEL = 3

# Frames left for the caller and the exception machinery
STACK_RESERVE = 200

# Runtime hook called when a dynamically computed divisor is zero
DIVISION_BY_ZERO_HOOK = "__toyc_division_by_zero"


def max_safe_depth() -> int:
    """Deepest nesting the interpreter stack can hold at the current recursion limit."""
    return max(1, (sys.getrecursionlimit() - STACK_RESERVE) // FRAMES_PER_LEVEL)


@dataclass(frozen=True)
class CompilerConfig:
    """
    Options for one compilation.

    strict_scanning: raise UnexpectedCharacter on characters outside the
        language alphabet instead of ending the token stream early.
    max_depth: maximum expression nesting the parser and lowering pass accept.
        It is clamped to max_safe_depth() when the limit is checked.
    checked_division: guard divisions whose divisor is only known at run time.
    """
    strict_scanning: bool = True
    max_depth: int = DEFAULT_MAX_DEPTH
    checked_division: bool = True
    module_name: str = DEFAULT_MODULE_NAME
    entry_function: str = DEFAULT_ENTRY_FUNCTION

    def __post_init__(self):
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")

    @property
    def depth_limit(self) -> int:
        """Nesting limit actually enforced: max_depth, bounded by the interpreter stack."""
        return min(self.max_depth, max_safe_depth())


DEFAULT_CONFIG = CompilerConfig()
