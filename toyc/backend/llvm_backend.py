"""
LLVM Backend for toyc.

Translates toyc IR into LLVM IR with llvmlite and verifies the result.
Native code generation is left to the caller; the verified module can be
handed to any llvmlite execution engine.

Author: xwest
"""

import logging
from typing import Dict, Optional, Any
from dataclasses import dataclass, field

try:
    import llvmlite.binding as llvm
    import llvmlite.ir as ll
    HAS_LLVMLITE = True
except ImportError:
    HAS_LLVMLITE = False

from ..ir.ir_nodes import (
    IRModule, IRFunction, IRFunctionType, IRBasicBlock, IRType, IRPrimitiveType,
    IRDataType, IRNodeType, IRValue, IRConstant, IRInstruction, IRBinaryOp, IRCall,
    IRReturn, IRBranch, IRCondBranch, IRPhi, IRUnreachable
)

logger = logging.getLogger(__name__)


@dataclass
class LLVMGenContext:
    """Context for LLVM code generation."""
    module: Optional['ll.Module'] = None
    builder: Optional['ll.IRBuilder'] = None
    value_map: Dict[int, Any] = field(default_factory=dict)  # id(IR value) -> LLVM value
    block_map: Dict[int, Any] = field(default_factory=dict)  # id(IR block) -> LLVM block
    pending_phis: list = field(default_factory=list)


class LLVMBackend:
    """
    LLVM backend for toyc.

    Converts toyc IR to an llvmlite module and checks it with LLVM's
    verifier.
    """

    def __init__(self, target_triple: Optional[str] = None):
        """
        Initialize the LLVM backend.

        Args:
            target_triple: Target triple (e.g., "x86_64-pc-linux-gnu");
                defaults to the host
        """
        if not HAS_LLVMLITE:
            raise ImportError("llvmlite is required for LLVM backend. Install with: pip install toyc[llvm]")

        try:
            llvm.initialize()
        except RuntimeError:
            # Recent llvmlite releases initialize the core on import
            pass

        self.target_triple = target_triple or llvm.get_default_triple()
        self.context = LLVMGenContext()
        self._init_type_mappings()
        self._instruction_handlers = {
            IRNodeType.BINARY_OP: self._generate_binary_op,
            IRNodeType.CALL: self._generate_call,
            IRNodeType.RETURN: self._generate_return,
            IRNodeType.BRANCH: self._generate_branch,
            IRNodeType.COND_BRANCH: self._generate_cond_branch,
            IRNodeType.PHI: self._generate_phi,
            IRNodeType.UNREACHABLE: self._generate_unreachable,
        }

    def _init_type_mappings(self):
        """Initialize mappings from IR types to LLVM types."""
        self.type_map = {
            IRDataType.VOID: ll.VoidType(),
            IRDataType.I1: ll.IntType(1),
            IRDataType.I32: ll.IntType(32),
        }

    def generate(self, ir_module: IRModule) -> 'llvm.ModuleRef':
        """
        Generate and verify LLVM IR for a toyc module.

        Args:
            ir_module: toyc IR module

        Returns:
            Verified LLVM module

        Raises:
            RuntimeError: if LLVM rejects the generated IR
        """
        return self.verify(self.build_module(ir_module))

    def build_module(self, ir_module: IRModule) -> 'll.Module':
        """Translate a toyc IR module into an unverified llvmlite module."""
        self.context = LLVMGenContext()
        self.context.module = ll.Module(name=ir_module.name)
        self.context.module.triple = self.target_triple

        self._generate_function_declarations(ir_module)
        self._generate_function_definitions(ir_module)

        return self.context.module

    def verify(self, module: 'll.Module') -> 'llvm.ModuleRef':
        """Parse module text with LLVM and run the verifier."""
        try:
            llvm_module = llvm.parse_assembly(str(module))
            llvm_module.verify()
        except RuntimeError as e:
            logger.error("LLVM module verification failed: %s\nGenerated LLVM IR:\n%s", e, module)
            raise

        logger.debug("verified LLVM module %s", module.name)
        return llvm_module

    def _generate_function_declarations(self, ir_module: IRModule):
        """Generate function declarations."""
        for func_name, ir_function in ir_module.functions.items():
            llvm_func_type = self._convert_ir_function_type_to_llvm(ir_function.type)
            llvm_function = ll.Function(self.context.module, llvm_func_type, func_name)

            self.context.value_map[id(ir_function)] = llvm_function

            # Map IR parameters to LLVM parameters
            for ir_param, llvm_arg in zip(ir_function.parameters, llvm_function.args):
                llvm_arg.name = ir_param.name
                self.context.value_map[id(ir_param)] = llvm_arg

    def _generate_function_definitions(self, ir_module: IRModule):
        """Generate function definitions."""
        for ir_function in ir_module.functions.values():
            if not ir_function.is_declaration:
                self._generate_function(ir_function)

    def _generate_function(self, ir_function: IRFunction):
        """Generate a single function."""
        llvm_function = self.context.value_map[id(ir_function)]
        self.context.block_map.clear()
        self.context.pending_phis = []

        # Create LLVM basic blocks
        for ir_block in ir_function.basic_blocks:
            self.context.block_map[id(ir_block)] = llvm_function.append_basic_block(ir_block.name)

        for ir_block in ir_function.basic_blocks:
            self._generate_basic_block(ir_block)

        # Phi operands may be defined in blocks emitted after the phi itself
        for ir_phi, phi in self.context.pending_phis:
            for value, block in ir_phi.incoming:
                phi.add_incoming(self._get_llvm_value(value), self.context.block_map[id(block)])

    def _generate_basic_block(self, ir_block: IRBasicBlock):
        """Generate a basic block."""
        self.context.builder = ll.IRBuilder(self.context.block_map[id(ir_block)])
        for ir_instruction in ir_block.instructions:
            self._generate_instruction(ir_instruction)

    def _generate_instruction(self, ir_instruction: IRInstruction):
        """Generate an instruction."""
        try:
            handler = self._instruction_handlers[ir_instruction.node_type]
        except KeyError:
            raise TypeError(f"Cannot translate {type(ir_instruction).__name__} to LLVM IR") from None
        handler(ir_instruction)

    def _generate_binary_op(self, ir_instruction: IRBinaryOp):
        """Generate a binary operation."""
        left = self._get_llvm_value(ir_instruction.left)
        right = self._get_llvm_value(ir_instruction.right)
        builder = self.context.builder
        name = ir_instruction.result.name

        if ir_instruction.is_comparison:
            op_map = {"eq": "==", "ne": "!="}
            result = builder.icmp_signed(op_map[ir_instruction.operator], left, right, name=name)
        elif ir_instruction.operator == "add":
            result = builder.add(left, right, name=name)
        elif ir_instruction.operator == "sub":
            result = builder.sub(left, right, name=name)
        elif ir_instruction.operator == "mul":
            result = builder.mul(left, right, name=name)
        else:
            result = builder.sdiv(left, right, name=name)

        self.context.value_map[id(ir_instruction.result)] = result

    def _generate_call(self, ir_instruction: IRCall):
        """Generate a function call."""
        func = self.context.value_map[id(ir_instruction.function)]
        args = [self._get_llvm_value(arg) for arg in ir_instruction.args]

        if ir_instruction.result:
            result = self.context.builder.call(func, args, name=ir_instruction.result.name)
            self.context.value_map[id(ir_instruction.result)] = result
        else:
            self.context.builder.call(func, args)

    def _generate_return(self, ir_instruction: IRReturn):
        """Generate a return instruction."""
        if ir_instruction.value is not None:
            self.context.builder.ret(self._get_llvm_value(ir_instruction.value))
        else:
            self.context.builder.ret_void()

    def _generate_branch(self, ir_instruction: IRBranch):
        """Generate an unconditional branch."""
        self.context.builder.branch(self.context.block_map[id(ir_instruction.target)])

    def _generate_cond_branch(self, ir_instruction: IRCondBranch):
        """Generate a conditional branch."""
        condition = self._get_llvm_value(ir_instruction.condition)
        true_block = self.context.block_map[id(ir_instruction.true_target)]
        false_block = self.context.block_map[id(ir_instruction.false_target)]

        self.context.builder.cbranch(condition, true_block, false_block)

    def _generate_phi(self, ir_instruction: IRPhi):
        """Generate a phi node; incoming edges are added once the function is complete."""
        llvm_type = self._convert_ir_type_to_llvm(ir_instruction.result.type)
        phi = self.context.builder.phi(llvm_type, name=ir_instruction.result.name)
        self.context.value_map[id(ir_instruction.result)] = phi
        self.context.pending_phis.append((ir_instruction, phi))

    def _generate_unreachable(self, ir_instruction: IRUnreachable):
        self.context.builder.unreachable()

    def _convert_ir_type_to_llvm(self, ir_type: IRType) -> Any:
        """Convert an IR type to an LLVM type."""
        if isinstance(ir_type, IRFunctionType):
            return self._convert_ir_function_type_to_llvm(ir_type)
        if isinstance(ir_type, IRPrimitiveType):
            return self.type_map[ir_type.data_type]
        raise TypeError(f"No LLVM type for {ir_type}")

    def _convert_ir_function_type_to_llvm(self, ir_func_type: IRFunctionType) -> Any:
        """Convert an IR function type to an LLVM function type."""
        return_type = self._convert_ir_type_to_llvm(ir_func_type.return_type)
        param_types = [self._convert_ir_type_to_llvm(param_type) for param_type in ir_func_type.param_types]
        return ll.FunctionType(return_type, param_types)

    def _get_llvm_value(self, ir_value: IRValue) -> Any:
        """Get the LLVM value corresponding to an IR value."""
        if isinstance(ir_value, IRConstant):
            return ll.Constant(self._convert_ir_type_to_llvm(ir_value.type), ir_value.value)
        try:
            return self.context.value_map[id(ir_value)]
        except KeyError:
            raise ValueError(f"IR value {ir_value.ref} is used before it is defined") from None

    def print_llvm_ir(self, ir_module: IRModule) -> str:
        """
        Get the LLVM IR for a toyc module as a string.

        Args:
            ir_module: toyc IR module

        Returns:
            LLVM IR as string
        """
        return str(self.build_module(ir_module))
