"""
toyc Parser Package

Implements the recursive descent parser for the toy language and the
immutable AST it produces.

Key Features:
- One token of lookahead, no backtracking
- Right-associative chained arithmetic
- Explicit keyword and brace checks in if/while statements
- Bounded nesting depth

Author: xwest
"""

from .ast_nodes import (
    ASTNode, ASTNodeType, ASTVisitor, SourceSpan, Node,
    NumberLiteral, BinaryExpr, IfStatement, WhileStatement, CallExpr,
    BINARY_OPERATORS, walk,
)
from .parser import Parser, parse_string
from .errors import ParseError, MalformedExpression, MalformedStatement

__all__ = [
    # Core parser
    "Parser",
    "parse_string",

    # AST nodes
    "ASTNode", "ASTNodeType", "ASTVisitor", "SourceSpan", "Node",
    "NumberLiteral", "BinaryExpr", "IfStatement", "WhileStatement", "CallExpr",
    "BINARY_OPERATORS", "walk",

    # Error handling
    "ParseError", "MalformedExpression", "MalformedStatement",
]
