"""
toyc Intermediate Representation (IR) Package

Implements a small Static Single Assignment (SSA) form intermediate
representation for the toy language, the IRContext/IRBuilder construction
interface, and the IRGenerator pass that lowers the AST into it.

Key Features:
- SSA form with phi nodes for if/else merges
- Deterministic value and block naming
- Guarded signed division

Author: xwest
"""

from .ir_nodes import *
from .ir_builder import IRContext, IRBuilder
from .ir_generator import IRGenerator, lower_program, lower_string, static_value
from .errors import (
    LoweringError, DivisionByZero, UnknownCallee, ArgumentCountMismatch, FunctionRedefinition
)

__all__ = [
    # Core IR components
    "IRGenerator",
    "IRContext",
    "IRBuilder",
    "lower_program",
    "lower_string",
    "static_value",

    # IR nodes
    "IRModule",
    "IRFunction",
    "IRFunctionType",
    "IRBasicBlock",
    "IRValue",
    "IRConstant",
    "IRInstruction",
    "IRBinaryOp",
    "IRCall",
    "IRReturn",
    "IRBranch",
    "IRCondBranch",
    "IRPhi",
    "IRUnreachable",
    "IRType",
    "IRPrimitiveType",
    "IRDataType",
    "IRNodeType",
    "I1",
    "I32",
    "VOID",

    # Errors
    "LoweringError",
    "DivisionByZero",
    "UnknownCallee",
    "ArgumentCountMismatch",
    "FunctionRedefinition",
]
