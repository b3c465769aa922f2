"""
toyc Intermediate Representation (IR) Nodes

Defines the IR node types the lowering pass produces. The IR is in SSA form:
modules hold functions, functions hold basic blocks, blocks hold
instructions, and every instruction that yields a value defines a fresh
IRValue. Nothing is mutated after it has been appended.

Author: xwest
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Tuple
from enum import Enum


class IRNodeType(Enum):
    """Enumeration of IR instruction kinds."""

    BINARY_OP = "binary_op"
    CALL = "call"
    RETURN = "return"
    BRANCH = "branch"
    COND_BRANCH = "cond_branch"
    PHI = "phi"
    UNREACHABLE = "unreachable"


class IRDataType(Enum):
    """IR data types."""
    VOID = "void"
    I1 = "i1"      # boolean
    I32 = "i32"


class IRType:
    """Base class for IR types."""

    def __init__(self, name: str):
        self.name = name

    def __eq__(self, other) -> bool:
        return isinstance(other, IRType) and self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class IRPrimitiveType(IRType):
    """Primitive IR type."""

    def __init__(self, data_type: IRDataType):
        super().__init__(data_type.value)
        self.data_type = data_type


class IRFunctionType(IRType):
    """Function IR type."""

    def __init__(self, return_type: IRType, param_types: List[IRType]):
        name = f"({', '.join(t.name for t in param_types)}) -> {return_type.name}"
        super().__init__(name)
        self.return_type = return_type
        self.param_types = list(param_types)


VOID = IRPrimitiveType(IRDataType.VOID)
I1 = IRPrimitiveType(IRDataType.I1)
I32 = IRPrimitiveType(IRDataType.I32)


class IRNode(ABC):
    """Base class for all IR nodes."""

    def __init__(self, name: str = ""):
        self.name = name
        self.parent: Optional['IRNode'] = None

    @abstractmethod
    def __str__(self) -> str:
        pass


class IRValue:
    """Represents a value in SSA form."""

    def __init__(self, ir_type: IRType, name: str):
        self.type = ir_type
        self.name = name
        self.def_node: Optional['IRInstruction'] = None
        self.users: List['IRInstruction'] = []

    def add_user(self, user: 'IRInstruction'):
        """Add a user of this value."""
        self.users.append(user)

    @property
    def ref(self) -> str:
        """How an instruction operand spells this value."""
        return f"%{self.name}"

    def __str__(self) -> str:
        return f"{self.type.name} {self.ref}"

    def __repr__(self) -> str:
        return f"IRValue({self.type.name}, {self.name!r})"


class IRConstant(IRValue):
    """Constant value in IR."""

    def __init__(self, ir_type: IRType, value: int):
        super().__init__(ir_type, f"const_{value}")
        self.value = value

    @property
    def ref(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"IRConstant({self.type.name}, {self.value})"


class IRBasicBlock(IRNode):
    """Basic block containing a sequence of instructions."""

    def __init__(self, name: str):
        super().__init__(name)
        self.instructions: List['IRInstruction'] = []
        self.predecessors: List['IRBasicBlock'] = []
        self.successors: List['IRBasicBlock'] = []
        self.function: Optional['IRFunction'] = None

    def add_instruction(self, instruction: 'IRInstruction'):
        """Append an instruction; a terminated block accepts no more."""
        if self.is_terminated:
            raise ValueError(f"Block {self.name} already ends in {self.terminator}")
        instruction.parent = self
        self.instructions.append(instruction)

    def add_successor(self, succ: 'IRBasicBlock'):
        """Record a control flow edge from this block to succ."""
        if succ not in self.successors:
            self.successors.append(succ)
        if self not in succ.predecessors:
            succ.predecessors.append(self)

    @property
    def terminator(self) -> Optional['IRInstruction']:
        if self.instructions and isinstance(self.instructions[-1], TERMINATORS):
            return self.instructions[-1]
        return None

    @property
    def is_terminated(self) -> bool:
        return self.terminator is not None

    def __str__(self) -> str:
        lines = [f"{self.name}:"]
        for instr in self.instructions:
            lines.append(f"  {instr}")
        return "\n".join(lines)


class IRFunction(IRNode):
    """Function in IR. A function without basic blocks is an external declaration."""

    def __init__(self, name: str, func_type: IRFunctionType):
        super().__init__(name)
        self.type = func_type
        self.basic_blocks: List[IRBasicBlock] = []
        self.parameters: List[IRValue] = []
        self.entry_block: Optional[IRBasicBlock] = None
        self.module: Optional['IRModule'] = None
        self._name_counts: Dict[str, int] = {}

        # Create parameter values
        for i, param_type in enumerate(func_type.param_types):
            param = IRValue(param_type, self.unique_name(f"arg{i}"))
            self.parameters.append(param)

    @property
    def return_type(self) -> IRType:
        return self.type.return_type

    @property
    def is_declaration(self) -> bool:
        return not self.basic_blocks

    def unique_name(self, base: str) -> str:
        """Return base, or base.N if base is already taken in this function."""
        count = self._name_counts.get(base, 0)
        self._name_counts[base] = count + 1
        return base if count == 0 else f"{base}.{count}"

    def add_basic_block(self, block: IRBasicBlock):
        """Add a basic block to this function."""
        block.function = self
        block.parent = self
        self.basic_blocks.append(block)

        # Set entry block if this is the first block
        if self.entry_block is None:
            self.entry_block = block

    def __str__(self) -> str:
        param_strs = [str(param) for param in self.parameters]
        signature = f"{self.return_type.name} @{self.name}({', '.join(param_strs)})"
        if self.is_declaration:
            return f"declare {signature}"

        lines = [f"define {signature} {{"]
        for block in self.basic_blocks:
            lines.append(str(block))
        lines.append("}")
        return "\n".join(lines)


class IRModule(IRNode):
    """Top-level IR module."""

    def __init__(self, name: str):
        super().__init__(name)
        self.functions: Dict[str, IRFunction] = {}

    def add_function(self, function: IRFunction):
        """Add a function to this module."""
        if function.name in self.functions:
            raise ValueError(f"Function {function.name} is already defined in module {self.name}")
        function.module = self
        function.parent = self
        self.functions[function.name] = function

    def get_function(self, name: str) -> Optional[IRFunction]:
        """Get a function by name."""
        return self.functions.get(name)

    def __str__(self) -> str:
        lines = [f"; Module: {self.name}"]

        for func in self.functions.values():
            lines.append(str(func))
            lines.append("")

        return "\n".join(lines)


# ============================================================================
# Instructions
# ============================================================================

class IRInstruction(IRNode):
    """Base class for IR instructions."""

    def __init__(self, node_type: IRNodeType, operands: List[IRValue],
                 result_type: Optional[IRType] = None, name: str = ""):
        super().__init__(name)
        self.node_type = node_type
        self.operands = list(operands)
        self.result: Optional[IRValue] = None

        # Track uses
        for operand in self.operands:
            operand.add_user(self)

        # Create result value if needed
        if result_type is not None and result_type != VOID:
            self.result = IRValue(result_type, name)
            self.result.def_node = self


class IRBinaryOp(IRInstruction):
    """Binary arithmetic or comparison instruction."""

    ARITHMETIC = ("add", "sub", "mul", "sdiv")
    COMPARISONS = ("eq", "ne")

    def __init__(self, operator: str, left: IRValue, right: IRValue, name: str):
        if operator in self.ARITHMETIC:
            result_type = left.type
        elif operator in self.COMPARISONS:
            result_type = I1
        else:
            raise ValueError(f"Unknown binary operator: {operator!r}")
        if left.type != right.type:
            raise TypeError(f"Operand types differ: {left.type} and {right.type}")

        super().__init__(IRNodeType.BINARY_OP, [left, right], result_type, name)
        self.operator = operator
        self.left = left
        self.right = right

    @property
    def is_comparison(self) -> bool:
        return self.operator in self.COMPARISONS

    def __str__(self) -> str:
        return f"%{self.result.name} = {self.operator} {self.left.type.name} {self.left.ref}, {self.right.ref}"


class IRCall(IRInstruction):
    """Function call instruction."""

    def __init__(self, function: IRFunction, args: List[IRValue], name: str = ""):
        super().__init__(IRNodeType.CALL, args, function.return_type, name)
        self.function = function
        self.args = list(args)

    def __str__(self) -> str:
        arg_strs = [str(arg) for arg in self.args]
        call = f"call {self.function.return_type.name} @{self.function.name}({', '.join(arg_strs)})"
        if self.result:
            return f"%{self.result.name} = {call}"
        return call


class IRReturn(IRInstruction):
    """Return instruction."""

    def __init__(self, value: Optional[IRValue] = None):
        operands = [value] if value is not None else []
        super().__init__(IRNodeType.RETURN, operands)
        self.value = value

    def __str__(self) -> str:
        if self.value is not None:
            return f"ret {self.value.type.name} {self.value.ref}"
        return "ret void"


class IRBranch(IRInstruction):
    """Unconditional branch instruction."""

    def __init__(self, target: IRBasicBlock):
        super().__init__(IRNodeType.BRANCH, [])
        self.target = target

    def __str__(self) -> str:
        return f"br label %{self.target.name}"


class IRCondBranch(IRInstruction):
    """Conditional branch instruction."""

    def __init__(self, condition: IRValue, true_target: IRBasicBlock, false_target: IRBasicBlock):
        if condition.type != I1:
            raise TypeError(f"Branch condition must be i1, got {condition.type}")
        super().__init__(IRNodeType.COND_BRANCH, [condition])
        self.condition = condition
        self.true_target = true_target
        self.false_target = false_target

    def __str__(self) -> str:
        return (f"br i1 {self.condition.ref}, label %{self.true_target.name}, "
                f"label %{self.false_target.name}")


class IRPhi(IRInstruction):
    """Phi node for SSA form."""

    def __init__(self, result_type: IRType, incoming: List[Tuple[IRValue, IRBasicBlock]], name: str):
        values = [val for val, _ in incoming]
        super().__init__(IRNodeType.PHI, values, result_type, name)
        self.incoming = list(incoming)

    def __str__(self) -> str:
        incoming_strs = [f"[{val.ref}, %{block.name}]" for val, block in self.incoming]
        return f"%{self.result.name} = phi {self.result.type.name} {', '.join(incoming_strs)}"


class IRUnreachable(IRInstruction):
    """Marks the end of a block control never falls out of."""

    def __init__(self):
        super().__init__(IRNodeType.UNREACHABLE, [])

    def __str__(self) -> str:
        return "unreachable"


TERMINATORS = (IRReturn, IRBranch, IRCondBranch, IRUnreachable)
