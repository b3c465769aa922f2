"""
IR construction context.

IRContext is the interface the lowering pass builds code through: it owns
the insertion point and knows how to append constants, instructions and
blocks. IRBuilder implements it over the SSA nodes in ir_nodes.

Author: xwest
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

from .ir_nodes import (
    IRModule, IRFunction, IRFunctionType, IRBasicBlock, IRType, IRValue,
    IRConstant, IRInstruction, IRBinaryOp, IRCall, IRReturn, IRBranch,
    IRCondBranch, IRPhi, IRUnreachable, I32, VOID
)

logger = logging.getLogger(__name__)


class IRContext(ABC):
    """Abstract code construction context with a single insertion point."""

    @property
    @abstractmethod
    def block(self) -> Optional[IRBasicBlock]:
        """The block new instructions are appended to."""
        pass

    @abstractmethod
    def const_int(self, value: int) -> IRValue:
        pass

    @abstractmethod
    def binary_op(self, operator: str, left: IRValue, right: IRValue, name: str) -> IRValue:
        """Append an arithmetic instruction (add, sub, mul, sdiv)."""
        pass

    @abstractmethod
    def compare(self, predicate: str, left: IRValue, right: IRValue, name: str) -> IRValue:
        """Append an integer comparison (eq, ne) producing an i1."""
        pass

    @abstractmethod
    def cond_branch(self, condition: IRValue, true_block: IRBasicBlock, false_block: IRBasicBlock):
        pass

    @abstractmethod
    def branch(self, target: IRBasicBlock):
        pass

    @abstractmethod
    def call(self, function: IRFunction, args: Sequence[IRValue], name: str = "") -> Optional[IRValue]:
        pass

    @abstractmethod
    def phi(self, ir_type: IRType, incoming: Sequence[Tuple[IRValue, IRBasicBlock]], name: str) -> IRValue:
        pass

    @abstractmethod
    def ret(self, value: Optional[IRValue] = None):
        pass

    @abstractmethod
    def unreachable(self):
        pass

    @abstractmethod
    def append_basic_block(self, name: str, function: Optional[IRFunction] = None) -> IRBasicBlock:
        """Create a block at the end of function (default: the current one)."""
        pass

    @abstractmethod
    def position_at_end(self, block: IRBasicBlock):
        pass

    @abstractmethod
    def get_function(self, name: str) -> Optional[IRFunction]:
        pass

    @abstractmethod
    def declare_function(self, name: str, return_type: IRType,
                         param_types: Sequence[IRType] = ()) -> IRFunction:
        pass


class IRBuilder(IRContext):
    """
    Builds toyc IR into an IRModule.

    Value and block names are made unique per function by suffixing a
    counter, so building the same program twice produces identical text.
    """

    def __init__(self, module: IRModule):
        self.module = module
        self._block: Optional[IRBasicBlock] = None

    @property
    def block(self) -> Optional[IRBasicBlock]:
        return self._block

    @property
    def function(self) -> Optional[IRFunction]:
        return self._block.function if self._block is not None else None

    # Values

    def const_int(self, value: int) -> IRValue:
        return IRConstant(I32, value)

    def binary_op(self, operator: str, left: IRValue, right: IRValue, name: str) -> IRValue:
        if operator not in IRBinaryOp.ARITHMETIC:
            raise ValueError(f"Not an arithmetic operator: {operator!r}")
        return self._insert(IRBinaryOp(operator, left, right, self._unique(name))).result

    def compare(self, predicate: str, left: IRValue, right: IRValue, name: str) -> IRValue:
        if predicate not in IRBinaryOp.COMPARISONS:
            raise ValueError(f"Not a comparison predicate: {predicate!r}")
        return self._insert(IRBinaryOp(predicate, left, right, self._unique(name))).result

    def call(self, function: IRFunction, args: Sequence[IRValue], name: str = "") -> Optional[IRValue]:
        if len(args) != len(function.parameters):
            raise ValueError(f"{function.name} expects {len(function.parameters)} arguments, got {len(args)}")
        result_name = self._unique(name or "calltmp") if function.return_type != VOID else ""
        return self._insert(IRCall(function, list(args), result_name)).result

    def phi(self, ir_type: IRType, incoming: Sequence[Tuple[IRValue, IRBasicBlock]], name: str) -> IRValue:
        return self._insert(IRPhi(ir_type, list(incoming), self._unique(name))).result

    # Terminators

    def cond_branch(self, condition: IRValue, true_block: IRBasicBlock, false_block: IRBasicBlock):
        self._insert(IRCondBranch(condition, true_block, false_block))
        self._block.add_successor(true_block)
        self._block.add_successor(false_block)

    def branch(self, target: IRBasicBlock):
        self._insert(IRBranch(target))
        self._block.add_successor(target)

    def ret(self, value: Optional[IRValue] = None):
        self._insert(IRReturn(value))

    def unreachable(self):
        self._insert(IRUnreachable())

    # Blocks and functions

    def append_basic_block(self, name: str, function: Optional[IRFunction] = None) -> IRBasicBlock:
        function = function or self.function
        if function is None:
            raise ValueError("No function to append a block to")
        block = IRBasicBlock(function.unique_name(name))
        function.add_basic_block(block)
        return block

    def position_at_end(self, block: IRBasicBlock):
        self._block = block

    def get_function(self, name: str) -> Optional[IRFunction]:
        return self.module.get_function(name)

    def declare_function(self, name: str, return_type: IRType,
                         param_types: Sequence[IRType] = ()) -> IRFunction:
        function = IRFunction(name, IRFunctionType(return_type, list(param_types)))
        self.module.add_function(function)
        logger.debug("declared %s in module %s", name, self.module.name)
        return function

    # Utility methods

    def _unique(self, name: str) -> str:
        if self._block is None:
            raise ValueError("Builder is not positioned in a block")
        return self.function.unique_name(name)

    def _insert(self, instruction: IRInstruction) -> IRInstruction:
        if self._block is None:
            raise ValueError("Builder is not positioned in a block")
        self._block.add_instruction(instruction)
        return instruction
