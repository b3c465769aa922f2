"""
Abstract Syntax Tree node definitions for toyc.

The tree is a closed set of immutable node variants. Each variant carries an
ASTNodeType tag; consumers dispatch on the tag, and the lowering pass checks
at construction time that it handles every tag.

Nodes are frozen dataclasses: children are fully built before their parent
exists and nothing is mutated afterwards, so sub-trees (call arguments in
particular) can be shared between parents. Equality is structural and ignores
source spans.

Author: xwest
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple, Union

from ..lexer.tokens import SourceLocation


class ASTNodeType(Enum):
    """Enumeration of all AST node types."""

    NUMBER_LITERAL = "NumberLiteral"
    BINARY_EXPR = "BinaryExpr"
    IF_STATEMENT = "IfStatement"
    WHILE_STATEMENT = "WhileStatement"
    CALL_EXPR = "CallExpr"


BINARY_OPERATORS = frozenset({"+", "-", "*", "/"})


@dataclass(frozen=True)
class SourceSpan:
    """Represents a span of source code (start and end locations)."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename == self.end.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start}-{self.end}"


class ASTVisitor(ABC):
    """Abstract visitor interface for traversing AST nodes."""

    @abstractmethod
    def visit(self, node: 'ASTNode') -> Any:
        """Visit a generic AST node."""
        pass


class ASTNode(ABC):
    """Base class for all AST nodes."""

    node_type: ASTNodeType

    def accept(self, visitor: ASTVisitor) -> Any:
        """Accept a visitor (visitor pattern)."""
        return visitor.visit(self)

    @abstractmethod
    def children(self) -> Tuple['ASTNode', ...]:
        """Get all child nodes, left to right."""
        pass

    @property
    def location(self) -> Optional[SourceLocation]:
        span = getattr(self, "span", None)
        return span.start if span is not None else None


@dataclass(frozen=True)
class NumberLiteral(ASTNode):
    """Integer literal."""
    value: int
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    node_type = ASTNodeType.NUMBER_LITERAL

    def children(self) -> Tuple[ASTNode, ...]:
        return ()


@dataclass(frozen=True)
class BinaryExpr(ASTNode):
    """Binary arithmetic expression: left operator right."""
    left: ASTNode
    operator: str
    right: ASTNode
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    node_type = ASTNodeType.BINARY_EXPR

    def __post_init__(self):
        if self.operator not in BINARY_OPERATORS:
            raise ValueError(f"Unsupported binary operator: {self.operator!r}")

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.left, self.right)


@dataclass(frozen=True)
class IfStatement(ASTNode):
    """If statement with optional else branch."""
    condition: ASTNode
    then_branch: ASTNode
    else_branch: Optional[ASTNode] = None
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    node_type = ASTNodeType.IF_STATEMENT

    def children(self) -> Tuple[ASTNode, ...]:
        if self.else_branch is not None:
            return (self.condition, self.then_branch, self.else_branch)
        return (self.condition, self.then_branch)


@dataclass(frozen=True)
class WhileStatement(ASTNode):
    """While loop statement."""
    condition: ASTNode
    body: ASTNode
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    node_type = ASTNodeType.WHILE_STATEMENT

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.condition, self.body)


@dataclass(frozen=True)
class CallExpr(ASTNode):
    """
    Call of a named function.

    The same argument node may appear in several calls; since nodes are
    immutable, sharing them is indistinguishable from copying.
    """
    name: str
    args: Tuple[ASTNode, ...] = ()
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    node_type = ASTNodeType.CALL_EXPR

    def __post_init__(self):
        # Accept any sequence but store a tuple so the node stays immutable
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))

    def children(self) -> Tuple[ASTNode, ...]:
        return self.args


Node = Union[NumberLiteral, BinaryExpr, IfStatement, WhileStatement, CallExpr]


def walk(node: ASTNode):
    """Yield node and all of its descendants in pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children()))
