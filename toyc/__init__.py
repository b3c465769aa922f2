"""
toyc Compiler Package

A small compiler front-end for a toy integer expression language: a
pull-based scanner, a recursive descent parser producing an immutable AST,
and a lowering pass that emits SSA IR (optionally translated to LLVM IR).

Architecture:
    toyc/
    ├── lexer/           # Tokenization and lexical analysis
    ├── parser/          # Syntax analysis and AST generation
    ├── ir/              # Intermediate representation and lowering
    └── backend/         # LLVM IR generation (optional, needs llvmlite)

Author: xwest
License: MIT
"""

__version__ = "0.1.0"
__author__ = "xwest"
__license__ = "MIT"

from .config import CompilerConfig, DEFAULT_CONFIG
from .errors import CompilationError, Diagnostic, RecursionLimitExceeded
from .lexer import Scanner, Token, TokenKind
from .parser import Parser, parse_string
from .ir import IRGenerator, IRBuilder, IRContext, lower_program, lower_string

__all__ = [
    # Core classes
    "Scanner",
    "Parser",
    "IRGenerator",
    "IRBuilder",
    "IRContext",
    "Token",
    "TokenKind",

    # Pipeline helpers
    "parse_string",
    "lower_program",
    "lower_string",

    # Configuration and errors
    "CompilerConfig",
    "DEFAULT_CONFIG",
    "CompilationError",
    "Diagnostic",
    "RecursionLimitExceeded",

    # Version info
    "__version__",
    "__author__",
    "__license__",
]
