"""
IR Generator for toyc.

Lowers AST nodes into toyc IR through an IRContext. Every node lowers to an
i32 value: literals become constants, arithmetic becomes one instruction,
if statements merge their branch values with a phi, and while loops
evaluate to 0.

Author: xwest
"""

import logging
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, Optional

from ..config import (
    CompilerConfig, DEFAULT_CONFIG, DEFAULT_FILENAME, DIVISION_BY_ZERO_HOOK,
    INT_BITS
)
from ..errors import RecursionLimitExceeded
from ..parser.ast_nodes import (
    ASTNode, ASTNodeType, NumberLiteral, BinaryExpr, IfStatement,
    WhileStatement, CallExpr
)
from ..parser.parser import parse_string
from .errors import DivisionByZero, UnknownCallee, ArgumentCountMismatch, FunctionRedefinition
from .ir_builder import IRContext, IRBuilder
from .ir_nodes import IRModule, IRValue, I32, VOID

logger = logging.getLogger(__name__)


# Map source operators to IR instructions and their result names
OPERATOR_MAP = {
    "+": ("add", "addtmp"),
    "-": ("sub", "subtmp"),
    "*": ("mul", "multmp"),
    "/": ("sdiv", "divtmp"),
}


class IRGenerator:
    """
    Lowers toy AST nodes into IR.

    The generator dispatches on ASTNodeType through a table built by
    _lowering_table(); construction fails with TypeError if that table does
    not cover every node type. The AST is only read, so the same tree can be
    lowered any number of times.
    """

    def __init__(self, builder: IRContext, config: Optional[CompilerConfig] = None):
        self.builder = builder
        self.config = config or DEFAULT_CONFIG
        self._depth = 0
        self._handlers = self._lowering_table()

        missing = [t.name for t in ASTNodeType if t not in self._handlers]
        if missing:
            raise TypeError(f"{type(self).__name__} has no lowering for {', '.join(missing)}")

    def _lowering_table(self) -> Dict[ASTNodeType, Callable[[ASTNode], IRValue]]:
        return {
            ASTNodeType.NUMBER_LITERAL: self._generate_number,
            ASTNodeType.BINARY_EXPR: self._generate_binary_expr,
            ASTNodeType.IF_STATEMENT: self._generate_if_statement,
            ASTNodeType.WHILE_STATEMENT: self._generate_while_statement,
            ASTNodeType.CALL_EXPR: self._generate_call,
        }

    def lower(self, node: ASTNode) -> IRValue:
        """
        Emit IR computing node's value at the builder's insertion point.

        Raises:
            DivisionByZero: if a divisor is statically zero
            UnknownCallee: if a call names a function the module lacks
            ArgumentCountMismatch: if a call has the wrong number of arguments
            RecursionLimitExceeded: if the tree is nested deeper than
                config.depth_limit
        """
        if not isinstance(node, ASTNode):
            raise TypeError(f"Cannot lower {type(node).__name__}")

        with self._nested(node):
            return self._handlers[node.node_type](node)

    # Expressions

    def _generate_number(self, node: NumberLiteral) -> IRValue:
        return self.builder.const_int(node.value)

    def _generate_binary_expr(self, node: BinaryExpr) -> IRValue:
        instruction, name = OPERATOR_MAP[node.operator]

        divisor = None
        if instruction == "sdiv":
            divisor = static_value(node.right)
            if divisor == 0:
                raise DivisionByZero(node.right.location or node.location)

        left = self.lower(node.left)
        right = self.lower(node.right)

        if instruction == "sdiv" and divisor is None and self.config.checked_division:
            self._guard_divisor(right)

        return self.builder.binary_op(instruction, left, right, name)

    def _guard_divisor(self, divisor: IRValue):
        """Branch to a trap block when a divisor computed at run time is zero."""
        b = self.builder
        hook = b.get_function(DIVISION_BY_ZERO_HOOK)
        if hook is None:
            hook = b.declare_function(DIVISION_BY_ZERO_HOOK, VOID)

        is_zero = b.compare("eq", divisor, b.const_int(0), "divzero")
        trap_block = b.append_basic_block("div.zero")
        ok_block = b.append_basic_block("div.ok")
        b.cond_branch(is_zero, trap_block, ok_block)

        b.position_at_end(trap_block)
        b.call(hook, [])
        b.unreachable()

        b.position_at_end(ok_block)

    def _generate_call(self, node: CallExpr) -> IRValue:
        b = self.builder
        function = b.get_function(node.name)
        if function is None:
            raise UnknownCallee(node.name, node.location)
        if len(function.parameters) != len(node.args):
            raise ArgumentCountMismatch(node.name, len(function.parameters), len(node.args), node.location)

        args = [self.lower(arg) for arg in node.args]
        result = b.call(function, args, "calltmp")
        # Void callees still produce a value in the toy language
        return result if result is not None else b.const_int(0)

    # Statements

    def _generate_if_statement(self, node: IfStatement) -> IRValue:
        b = self.builder
        condition = self.lower(node.condition)
        truthy = b.compare("ne", condition, b.const_int(0), "ifcond")

        then_block = b.append_basic_block("if.then")
        else_block = b.append_basic_block("if.else")
        merge_block = b.append_basic_block("if.end")
        b.cond_branch(truthy, then_block, else_block)

        # Branch bodies may open blocks of their own, so the phi's incoming
        # edges come from wherever each branch finished.
        b.position_at_end(then_block)
        then_value = self.lower(node.then_branch)
        then_end = b.block
        b.branch(merge_block)

        b.position_at_end(else_block)
        if node.else_branch is not None:
            else_value = self.lower(node.else_branch)
        else:
            else_value = b.const_int(0)
        else_end = b.block
        b.branch(merge_block)

        b.position_at_end(merge_block)
        return b.phi(I32, [(then_value, then_end), (else_value, else_end)], "iftmp")

    def _generate_while_statement(self, node: WhileStatement) -> IRValue:
        b = self.builder
        cond_block = b.append_basic_block("while.cond")
        body_block = b.append_basic_block("while.body")
        exit_block = b.append_basic_block("while.end")
        b.branch(cond_block)

        b.position_at_end(cond_block)
        condition = self.lower(node.condition)
        truthy = b.compare("ne", condition, b.const_int(0), "loopcond")
        b.cond_branch(truthy, body_block, exit_block)

        b.position_at_end(body_block)
        self.lower(node.body)
        b.branch(cond_block)

        b.position_at_end(exit_block)
        return b.const_int(0)

    @contextmanager
    def _nested(self, node: ASTNode):
        if self._depth >= self.config.depth_limit:
            raise RecursionLimitExceeded("Lowering", self.config.depth_limit, node.location)
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1


def wrap_int(value: int) -> int:
    """Reduce value to the signed machine integer range."""
    mask = (1 << INT_BITS) - 1
    value &= mask
    return value - (1 << INT_BITS) if value >> (INT_BITS - 1) else value


def static_value(node: ASTNode) -> Optional[int]:
    """
    Value of a literal arithmetic subtree, or None if it is only known at run time.

    Arithmetic wraps like the generated code does and division truncates
    toward zero. The tree is folded bottom-up with an explicit stack.
    """
    values: Dict[int, int] = {}
    stack = [node]
    while stack:
        current = stack[-1]
        if isinstance(current, NumberLiteral):
            values[id(current)] = current.value
            stack.pop()
            continue
        if not isinstance(current, BinaryExpr):
            return None

        pending = [child for child in (current.left, current.right) if id(child) not in values]
        if pending:
            stack.extend(reversed(pending))
            continue

        stack.pop()
        folded = _fold(current.operator, values[id(current.left)], values[id(current.right)])
        if folded is None:
            return None
        values[id(current)] = folded

    return values[id(node)]


def _fold(operator: str, left: int, right: int) -> Optional[int]:
    if operator == "+":
        return wrap_int(left + right)
    if operator == "-":
        return wrap_int(left - right)
    if operator == "*":
        return wrap_int(left * right)
    if right == 0:
        return None
    quotient = abs(left) // abs(right)
    return wrap_int(quotient if (left < 0) == (right < 0) else -quotient)


def lower_program(statements: Iterable[ASTNode], module_name: Optional[str] = None,
                  entry: Optional[str] = None, config: Optional[CompilerConfig] = None,
                  externals: Optional[Dict[str, int]] = None) -> IRModule:
    """
    Lower a sequence of statements into a module.

    The module holds one `i32 entry()` function that evaluates the statements
    in order and returns the value of the last one (0 for no statements).

    Args:
        statements: Statement nodes, in program order
        module_name: Module name (default: config.module_name)
        entry: Entry function name (default: config.entry_function)
        config: Compiler options
        externals: Extra callees to declare, as name -> number of i32 parameters

    Returns:
        The IR module

    Raises:
        FunctionRedefinition: if an external is named like the entry
            function or the division-by-zero hook
    """
    config = config or DEFAULT_CONFIG
    entry = entry or config.entry_function
    externals = externals or {}

    reserved = {
        entry: "it is the entry function",
        DIVISION_BY_ZERO_HOOK: "it is the division-by-zero hook",
    }
    for name in externals:
        if name in reserved:
            raise FunctionRedefinition(name, reserved[name])

    module = IRModule(module_name or config.module_name)
    builder = IRBuilder(module)

    function = builder.declare_function(entry, I32)
    for name, arity in externals.items():
        builder.declare_function(name, I32, [I32] * arity)

    builder.position_at_end(builder.append_basic_block("entry", function))
    generator = IRGenerator(builder, config)

    value = builder.const_int(0)
    count = 0
    for statement in statements:
        value = generator.lower(statement)
        count += 1
    builder.ret(value)

    logger.debug("lowered %d statements into %s.%s (%d blocks)",
                 count, module.name, function.name, len(function.basic_blocks))
    return module


def lower_string(source: str, filename: str = DEFAULT_FILENAME,
                 config: Optional[CompilerConfig] = None) -> IRModule:
    """Scan, parse and lower source in one step."""
    return lower_program(parse_string(source, filename, config), config=config)
