"""
Tests for IR generation.

Author: xwest
"""

import unittest
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from toyc.config import CompilerConfig, DIVISION_BY_ZERO_HOOK, max_safe_depth
from toyc.errors import RecursionLimitExceeded
from toyc.parser import (
    ASTNodeType, NumberLiteral, BinaryExpr, IfStatement, WhileStatement, CallExpr, parse_string
)
from toyc.ir import (
    IRGenerator, IRBuilder, IRModule, IRConstant, IRBinaryOp, IRCall, IRPhi,
    IRReturn, IRCondBranch, IRUnreachable, I1, I32, VOID,
    lower_program, lower_string, static_value,
    DivisionByZero, UnknownCallee, ArgumentCountMismatch, FunctionRedefinition, LoweringError
)


def num(value: int) -> NumberLiteral:
    return NumberLiteral(value)


def binary(left, op: str, right) -> BinaryExpr:
    return BinaryExpr(left, op, right)


class GeneratorTestCase(unittest.TestCase):
    """Lowers into a fresh module with an open `main` function."""

    def setUp(self):
        self.module = IRModule("test")
        self.builder = IRBuilder(self.module)
        self.main = self.builder.declare_function("main", I32)
        self.builder.position_at_end(self.builder.append_basic_block("entry", self.main))
        self.generator = IRGenerator(self.builder)

    def instructions(self):
        return [i for block in self.main.basic_blocks for i in block.instructions]


class TestExpressionLowering(GeneratorTestCase):
    """Test lowering of literals and arithmetic."""

    def test_number_is_constant(self):
        value = self.generator.lower(num(42))
        self.assertIsInstance(value, IRConstant)
        self.assertEqual(value.value, 42)
        self.assertEqual(value.type, I32)
        self.assertEqual(self.instructions(), [])

    def test_simple_addition(self):
        value = self.generator.lower(binary(num(5), "+", num(3)))
        instr = value.def_node

        self.assertIsInstance(instr, IRBinaryOp)
        self.assertEqual(instr.operator, "add")
        self.assertEqual((instr.left.value, instr.right.value), (5, 3))
        self.assertEqual(str(instr), "%addtmp = add i32 5, 3")
        self.assertEqual(instr.left.users, [instr])

    def test_operator_mapping(self):
        for op, expected in (("+", "add"), ("-", "sub"), ("*", "mul"), ("/", "sdiv")):
            value = self.generator.lower(binary(num(8), op, num(2)))
            self.assertEqual(value.def_node.operator, expected)

    def test_left_operand_lowered_first(self):
        expr = binary(binary(num(1), "+", num(2)), "*", binary(num(3), "-", num(4)))
        self.generator.lower(expr)
        self.assertEqual([i.operator for i in self.instructions()], ["add", "sub", "mul"])

    def test_names_are_unique_within_function(self):
        self.generator.lower(binary(num(1), "+", binary(num(2), "+", num(3))))
        names = [i.result.name for i in self.instructions()]
        self.assertEqual(names, ["addtmp", "addtmp.1"])


class TestDivisionLowering(GeneratorTestCase):
    """Test division by zero handling."""

    def test_literal_zero_divisor(self):
        with self.assertRaises(DivisionByZero) as ctx:
            self.generator.lower(binary(num(1), "/", num(0)))
        self.assertEqual(ctx.exception.code, "G001")
        self.assertIsInstance(ctx.exception, LoweringError)

    def test_folded_zero_divisor(self):
        with self.assertRaises(DivisionByZero):
            self.generator.lower(binary(num(10), "/", binary(num(2), "-", num(2))))

    def test_static_nonzero_divisor_is_unguarded(self):
        self.generator.lower(binary(num(10), "/", num(2)))
        self.assertEqual(len(self.main.basic_blocks), 1)
        self.assertIsNone(self.module.get_function(DIVISION_BY_ZERO_HOOK))

    def test_dynamic_divisor_is_guarded(self):
        divisor = IfStatement(num(1), num(2), num(0))
        value = self.generator.lower(binary(num(10), "/", divisor))

        hook = self.module.get_function(DIVISION_BY_ZERO_HOOK)
        self.assertIsNotNone(hook)
        self.assertTrue(hook.is_declaration)
        self.assertEqual(hook.return_type, VOID)

        names = [b.name for b in self.main.basic_blocks]
        self.assertIn("div.zero", names)
        self.assertIn("div.ok", names)

        trap = self.main.basic_blocks[names.index("div.zero")]
        self.assertIsInstance(trap.instructions[0], IRCall)
        self.assertIs(trap.instructions[0].function, hook)
        self.assertIsInstance(trap.instructions[-1], IRUnreachable)

        self.assertEqual(value.def_node.operator, "sdiv")
        self.assertIs(value.def_node.parent, self.main.basic_blocks[names.index("div.ok")])

    def test_unchecked_division(self):
        generator = IRGenerator(self.builder, CompilerConfig(checked_division=False))
        generator.lower(binary(num(10), "/", WhileStatement(num(0), num(1))))
        self.assertNotIn("div.zero", [b.name for b in self.main.basic_blocks])

    def test_static_value(self):
        self.assertEqual(static_value(binary(num(7), "/", num(2))), 3)
        self.assertEqual(static_value(binary(num(-7), "/", num(2))), -3)
        self.assertEqual(static_value(binary(num(2147483647), "+", num(1))), -2147483648)
        self.assertIsNone(static_value(CallExpr("f")))
        self.assertIsNone(static_value(IfStatement(num(1), num(0))))

    def test_static_value_of_deep_chain(self):
        expr = num(0)
        for _ in range(10000):
            expr = binary(num(1), "+", expr)
        self.assertEqual(static_value(expr), 10000)
        self.assertIsNone(static_value(binary(expr, "/", binary(num(1), "-", num(1)))))


class TestControlFlowLowering(GeneratorTestCase):
    """Test lowering of if and while statements."""

    def test_if_else_phi(self):
        value = self.generator.lower(IfStatement(num(1), num(10), num(20)))

        self.assertEqual([b.name for b in self.main.basic_blocks],
                         ["entry", "if.then", "if.else", "if.end"])
        phi = value.def_node
        self.assertIsInstance(phi, IRPhi)
        self.assertEqual([(v.value, b.name) for v, b in phi.incoming],
                         [(10, "if.then"), (20, "if.else")])

        branch = self.main.entry_block.terminator
        self.assertIsInstance(branch, IRCondBranch)
        self.assertEqual(branch.condition.type, I1)
        self.assertEqual(branch.condition.def_node.operator, "ne")

    def test_if_without_else_yields_zero(self):
        value = self.generator.lower(IfStatement(num(1), num(10)))
        self.assertEqual(value.def_node.incoming[1][0].value, 0)

    def test_nested_if_phi_uses_end_blocks(self):
        inner = IfStatement(num(0), num(1), num(2))
        value = self.generator.lower(IfStatement(num(1), inner, num(3)))
        incoming_blocks = [b.name for _, b in value.def_node.incoming]
        self.assertEqual(incoming_blocks, ["if.end.1", "if.else"])

    def test_while_blocks(self):
        value = self.generator.lower(WhileStatement(num(0), binary(num(1), "+", num(1))))

        self.assertEqual([b.name for b in self.main.basic_blocks],
                         ["entry", "while.cond", "while.body", "while.end"])
        self.assertEqual(value.value, 0)

        cond, body, end = self.main.basic_blocks[1:]
        self.assertIs(body.terminator.target, cond)
        self.assertEqual(cond.successors, [body, end])
        self.assertIn(body, cond.predecessors)

    def test_repeated_statements_get_distinct_blocks(self):
        self.generator.lower(WhileStatement(num(0), num(1)))
        self.generator.lower(WhileStatement(num(0), num(1)))
        names = [b.name for b in self.main.basic_blocks]
        self.assertEqual(len(names), len(set(names)))
        self.assertIn("while.cond.1", names)


class TestCallLowering(GeneratorTestCase):
    """Test lowering of calls."""

    def setUp(self):
        super().setUp()
        self.add = self.builder.declare_function("add", I32, [I32, I32])

    def test_call(self):
        value = self.generator.lower(CallExpr("add", [num(1), binary(num(2), "*", num(3))]))
        call = value.def_node

        self.assertIsInstance(call, IRCall)
        self.assertIs(call.function, self.add)
        self.assertEqual(call.args[0].value, 1)
        self.assertEqual(call.args[1].def_node.operator, "mul")

    def test_shared_arguments(self):
        arg = binary(num(4), "-", num(1))
        self.generator.lower(CallExpr("add", (arg, arg)))
        self.assertEqual([i.result.name for i in self.instructions()], ["subtmp", "subtmp.1", "calltmp"])

    def test_unknown_callee(self):
        with self.assertRaises(UnknownCallee) as ctx:
            self.generator.lower(CallExpr("missing", [num(1)]))
        self.assertEqual(ctx.exception.name, "missing")
        self.assertEqual(ctx.exception.code, "G002")

    def test_argument_count_mismatch(self):
        with self.assertRaises(ArgumentCountMismatch) as ctx:
            self.generator.lower(CallExpr("add", [num(1)]))
        self.assertEqual((ctx.exception.expected, ctx.exception.found), (2, 1))
        self.assertEqual(self.instructions(), [])


class TestGeneratorContract(GeneratorTestCase):
    """Test properties of the pass as a whole."""

    def test_missing_lowering_rejected(self):
        class PartialGenerator(IRGenerator):
            def _lowering_table(self):
                table = super()._lowering_table()
                del table[ASTNodeType.WHILE_STATEMENT]
                return table

        with self.assertRaises(TypeError) as ctx:
            PartialGenerator(self.builder)
        self.assertIn("WHILE_STATEMENT", str(ctx.exception))

    def test_non_node_rejected(self):
        with self.assertRaises(TypeError):
            self.generator.lower(42)

    def test_recursion_limit(self):
        expr = num(1)
        for _ in range(20):
            expr = binary(num(1), "+", expr)
        generator = IRGenerator(self.builder, CompilerConfig(max_depth=8))
        with self.assertRaises(RecursionLimitExceeded):
            generator.lower(expr)

    def test_huge_max_depth_is_bounded_by_stack(self):
        expr = num(1)
        for _ in range(5000):
            expr = binary(num(1), "+", expr)
        generator = IRGenerator(self.builder, CompilerConfig(max_depth=100000))
        with self.assertRaises(RecursionLimitExceeded) as ctx:
            generator.lower(expr)
        self.assertEqual(ctx.exception.limit, max_safe_depth())

    def test_ast_is_not_mutated(self):
        tree = IfStatement(num(1), binary(num(2), "+", num(3)), WhileStatement(num(0), num(4)))
        before = repr(tree)
        self.generator.lower(tree)
        self.assertEqual(repr(tree), before)

    def test_lowering_is_deterministic(self):
        program = parse_string("1 + 2; if 1 { 10 / 3 } else { 4 } while 0 { 5 * 6 }")
        first = lower_program(program)
        second = lower_program(program)
        self.assertEqual(str(first), str(second))


class TestLowerProgram(unittest.TestCase):
    """Test whole-program lowering."""

    def test_returns_last_value(self):
        module = lower_string("1 + 2; 5 + 3")
        main = module.get_function("main")
        ret = main.basic_blocks[-1].terminator

        self.assertEqual(module.name, "toy")
        self.assertIsInstance(ret, IRReturn)
        self.assertEqual(ret.value.def_node.operator, "add")
        self.assertEqual(ret.value.def_node.right.value, 3)

    def test_empty_program_returns_zero(self):
        module = lower_program(())
        ret = module.get_function("main").entry_block.terminator
        self.assertEqual(ret.value.value, 0)

    def test_custom_names(self):
        module = lower_program([num(1)], module_name="calc", entry="start")
        self.assertEqual(module.name, "calc")
        self.assertIsNotNone(module.get_function("start"))
        self.assertIsNone(module.get_function("main"))

    def test_externals(self):
        module = lower_program([CallExpr("twice", [num(4)])], externals={"twice": 1})
        twice = module.get_function("twice")
        self.assertTrue(twice.is_declaration)
        self.assertEqual(len(twice.parameters), 1)

    def test_external_named_like_entry(self):
        with self.assertRaises(FunctionRedefinition) as ctx:
            lower_program([num(1)], externals={"main": 0})
        self.assertEqual(ctx.exception.code, "G004")
        self.assertIsInstance(ctx.exception, LoweringError)

        module = lower_program([num(1)], entry="start", externals={"main": 0})
        self.assertTrue(module.get_function("main").is_declaration)

    def test_external_named_like_division_hook(self):
        with self.assertRaises(FunctionRedefinition) as ctx:
            lower_program([num(1)], externals={DIVISION_BY_ZERO_HOOK: 1})
        self.assertEqual(ctx.exception.name, DIVISION_BY_ZERO_HOOK)

    def test_text_form(self):
        text = str(lower_string("if 1 { 10 } else { 20 }"))
        self.assertIn("define i32 @main() {", text)
        self.assertIn("%ifcond = ne i32 1, 0", text)
        self.assertIn("%iftmp = phi i32 [10, %if.then], [20, %if.else]", text)
        self.assertIn("ret i32 %iftmp", text)

    def test_errors_carry_location(self):
        with self.assertRaises(DivisionByZero) as ctx:
            lower_string("1 +\n 4 / 0", filename="calc.toy")
        self.assertEqual(ctx.exception.location.line, 2)
        self.assertEqual(ctx.exception.location.filename, "calc.toy")


if __name__ == "__main__":
    unittest.main()
