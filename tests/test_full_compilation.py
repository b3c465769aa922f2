"""
End-to-end compilation tests for toyc.

Tests the full compilation pipeline from source code to LLVM IR, and runs
the result with llvmlite's MCJIT when llvmlite is installed.

Author: xwest
"""

import ctypes
import unittest
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from toyc.config import CompilerConfig, DIVISION_BY_ZERO_HOOK
from toyc.lexer import Scanner
from toyc.parser import Parser, CallExpr, NumberLiteral, BinaryExpr
from toyc.ir import IRBuilder, IRGenerator, IRModule, IRNodeType, lower_program, I32
from toyc.backend.llvm_backend import LLVMBackend, HAS_LLVMLITE

if HAS_LLVMLITE:
    import llvmlite.binding as llvm


@unittest.skipUnless(HAS_LLVMLITE, "llvmlite is not installed")
class TestFullCompilation(unittest.TestCase):
    """Test the full compilation pipeline."""

    @classmethod
    def setUpClass(cls):
        llvm.initialize_native_target()
        llvm.initialize_native_asmprinter()

    def setUp(self):
        """Set up test fixtures."""
        self.backend = LLVMBackend()
        self.engines = []

    def _compile_code(self, code: str, config: CompilerConfig = None) -> IRModule:
        """Compile a code snippet through the front-end."""
        parser = Parser(Scanner(code, config=config), config)
        statements = parser.parse_program()
        return lower_program(statements, config=config)

    def _run(self, ir_module: IRModule, entry: str = "main") -> int:
        """JIT-compile a module and call its entry function."""
        llvm_module = self.backend.generate(ir_module)

        target_machine = llvm.Target.from_default_triple().create_target_machine()
        engine = llvm.create_mcjit_compiler(llvm_module, target_machine)
        engine.finalize_object()
        engine.run_static_constructors()
        # Keep the engine alive while its code may still be called
        self.engines.append(engine)

        address = engine.get_function_address(entry)
        return ctypes.CFUNCTYPE(ctypes.c_int32)(address)()

    def test_simple_addition(self):
        """`5 + 3` evaluates to 8."""
        self.assertEqual(self._run(self._compile_code("5 + 3")), 8)

    def test_right_associative_chain(self):
        self.assertEqual(self._run(self._compile_code("1 + 2 + 3")), 6)
        # 10 - (4 - 1)
        self.assertEqual(self._run(self._compile_code("10 - 4 - 1")), 7)
        # 2 * (3 + 4)
        self.assertEqual(self._run(self._compile_code("2 * 3 + 4")), 14)

    def test_signed_division_truncates(self):
        self.assertEqual(self._run(self._compile_code("7 / 2")), 3)
        self.assertEqual(self._run(self._compile_code("1 - 8 / 2")), -3)

    def test_wraparound(self):
        self.assertEqual(self._run(self._compile_code("2147483647 + 1")), -2147483648)

    def test_if_else(self):
        self.assertEqual(self._run(self._compile_code("if 1 { 10 } else { 20 }")), 10)
        self.assertEqual(self._run(self._compile_code("if 2 - 2 { 10 } else { 20 }")), 20)
        self.assertEqual(self._run(self._compile_code("if 0 { 10 }")), 0)

    def test_while_evaluates_to_zero(self):
        self.assertEqual(self._run(self._compile_code("while 0 { 1 }")), 0)

    def test_last_statement_is_result(self):
        self.assertEqual(self._run(self._compile_code("1; 2; 3 * 3")), 9)
        self.assertEqual(self._run(self._compile_code("")), 0)

    def test_guarded_division(self):
        """A divisor computed by control flow gets a run-time check that passes."""
        divisor = Parser(Scanner("if 1 { 5 } else { 0 }")).parse_if_statement()
        ir_module = lower_program([BinaryExpr(NumberLiteral(100), "/", divisor)])

        self.assertIsNotNone(ir_module.get_function(DIVISION_BY_ZERO_HOOK))
        llvm_ir = self.backend.print_llvm_ir(ir_module)
        self.assertIn("icmp eq", llvm_ir)
        self.assertIn("unreachable", llvm_ir)

        # The hook is only referenced from the trap block, so supply it
        hook = ctypes.CFUNCTYPE(None)(lambda: None)
        self._hook = hook
        llvm.add_symbol(DIVISION_BY_ZERO_HOOK, ctypes.cast(hook, ctypes.c_void_p).value)
        self.assertEqual(self._run(ir_module), 20)

    def test_call_defined_function(self):
        """Calls resolve against functions already in the module."""
        module = IRModule("calls")
        builder = IRBuilder(module)

        # i32 triple(i32 x) { return x * 3 }
        triple = builder.declare_function("triple", I32, [I32])
        builder.position_at_end(builder.append_basic_block("entry", triple))
        builder.ret(builder.binary_op("mul", triple.parameters[0], builder.const_int(3), "multmp"))

        main = builder.declare_function("main", I32)
        builder.position_at_end(builder.append_basic_block("entry", main))
        arg = BinaryExpr(NumberLiteral(2), "+", NumberLiteral(5))
        value = IRGenerator(builder).lower(CallExpr("triple", [arg]))
        builder.ret(value)

        self.assertEqual(self._run(module), 21)

    def test_llvm_ir_text(self):
        ir_module = self._compile_code("if 1 { 10 } else { 20 }")
        llvm_ir = self.backend.print_llvm_ir(ir_module)
        self.assertRegex(llvm_ir, r'define\s+i32\s+@"?main"?\(\)')
        self.assertRegex(llvm_ir, r"phi\s+i32")

        main = self.backend.generate(ir_module).get_function("main")
        blocks = list(main.blocks)
        opcodes = [instr.opcode for block in blocks for instr in block.instructions]
        self.assertEqual(len(blocks), 4)
        self.assertEqual(opcodes.count("phi"), 1)
        self.assertIn("icmp", opcodes)
        self.assertEqual(opcodes[-1], "ret")

    def test_every_instruction_kind_is_translated(self):
        self.assertEqual(set(self.backend._instruction_handlers), set(IRNodeType))

    def test_verifier_rejects_unterminated_block(self):
        module = IRModule("broken")
        builder = IRBuilder(module)
        main = builder.declare_function("main", I32)
        builder.append_basic_block("entry", main)

        with self.assertRaises(RuntimeError):
            self.backend.generate(module)

    def test_generation_is_repeatable(self):
        first = self.backend.print_llvm_ir(self._compile_code("1 + 2; while 0 { 3 } 4 / 2"))
        second = self.backend.print_llvm_ir(self._compile_code("1 + 2; while 0 { 3 } 4 / 2"))
        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
