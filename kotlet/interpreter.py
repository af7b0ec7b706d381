"""Tree-walking interpreter for the Kotlet language.

The interpreter runs a program the checker has already accepted,
starting at ``main``. Statements are run by ``execute`` and expressions
by ``evaluate``. ``execute`` returns a ``ReturnSignal`` once a
``return`` has run, and every loop over a body stops as soon as one of
its statements hands back such a signal. That is how a return nested
inside an ``if`` or a loop ends the whole function.

Int arithmetic wraps around in 32 bits. Arrays are shared handles. The
few conditions a checked program can still hit at runtime, such as an
index out of range or a failed read, raise ``KotletRuntimeError``. No
statement runs after one is raised.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from .ast import (
    Add, And, Binding, BoolLiteral, BoolNeg, Call, CharLiteral, Div, For, Fun, GetByIndex,
    Ident, If, IntLiteral, LessThan, MoreThan, Mul, Neg, Node, Or, Parens, Program, Range,
    Return, Set, SetByIndex, StrLiteral, Sub, TOP_EXPRS, While,
)
from .builtin_function import BuiltinFunction
from .checker import check_program
from .debug import DebugLog
from .environment import Environment
from .errors import CheckFailed, KotletInternalError, KotletRuntimeError, ReturnSignal
from .lexer import tokenize
from .parser import parse_program
from .std import load_builtins
from .std.io import BasicIO
from .types import UNIT, ArrayVal, CharVal, RangeVal, to_string, type_name, wrap_i32


class Interpreter:
    """Core interpreter that executes a checked Kotlet program."""
    def __init__(self, program: Program, io: Optional[BasicIO] = None,
                 debug_level: int = 0, debug_file: str = 'debug.txt',
                 debug: Optional[DebugLog] = None):
        self.program = program
        self.debug = debug or DebugLog(debug_level, debug_file)
        self.builtins: Dict[str, Any] = load_builtins(io).values
        self.functions: Dict[str, Fun] = {}
        for fun in program.functions:
            # the checker rejects duplicates; keep the first like it does
            self.functions.setdefault(fun.name, fun)

    # Public API
    def run(self) -> Any:
        self.debug.write(1, 'run: main')
        try:
            result = self.call_function('main', [])
            self.debug.write(1, 'run: finished')
            return result
        finally:
            self.debug.close()

    def call_function(self, name: str, args: List[Any]) -> Any:
        builtin = self.builtins.get(name)
        if isinstance(builtin, BuiltinFunction):
            if self.debug.enabled(2):
                self.debug.write(2, f"call builtin {name}({', '.join(to_string(a) for a in args)})")
            return builtin.fn(args)
        func = self.functions.get(name)
        if func is None:
            raise KotletInternalError(f'function {name} not found')
        if self.debug.enabled(2):
            self.debug.write(2, f"call {name}({', '.join(to_string(a) for a in args)})")
        call_env = Environment()
        for param, arg in zip(func.params, args):
            call_env.declare(param.name, arg)
        try:
            res = self.execute_block(func.body, call_env)
            ret_val = res.value if isinstance(res, ReturnSignal) else UNIT
        except ReturnSignal as r:
            ret_val = r.value
        self.debug.write(2, f"return from {name}: {to_string(ret_val)}")
        return ret_val

    def execute_block(self, statements, env: Environment) -> Optional[ReturnSignal]:
        for stmt in statements:
            result = self.execute(stmt, env)
            # propagate return signals
            if isinstance(result, ReturnSignal):
                return result
        return None

    def execute(self, node: Node, env: Environment) -> Optional[ReturnSignal]:
        self.debug.write(4, f"exec {type(node).__name__} at {node.span!r}")
        if isinstance(node, Binding):
            value = self.evaluate(node.expr, env)
            env.declare(node.name, value)
            self.debug.write(2, f"declare {node.name}: {type_name(value)} = {to_string(value)}")
            return None
        if isinstance(node, Set):
            env.set(node.name, self.evaluate(node.expr, env))
            return None
        if isinstance(node, SetByIndex):
            self.assign_index(node, env)
            return None
        if isinstance(node, If):
            cond = self.evaluate(node.cond, env)
            self.debug.write(3, f"if condition -> {to_string(cond)}")
            branch = node.body if cond else node.else_branch
            return self.execute_block(branch, Environment(parent=env))
        if isinstance(node, While):
            while True:
                cond = self.evaluate(node.cond, env)
                if not cond:
                    break
                self.debug.write(3, 'while iteration')
                # fresh scope on every iteration
                res = self.execute_block(node.body, Environment(parent=env))
                if isinstance(res, ReturnSignal):
                    return res
            return None
        if isinstance(node, For):
            iterable = self.evaluate(node.iterable, env)
            # one scope shared by all iterations
            loop_env = Environment(parent=env)
            for item in self.iterate(iterable):
                self.debug.write(3, f"for {node.var} = {to_string(item)}")
                loop_env.declare(node.var, item)
                res = self.execute_block(node.body, loop_env)
                if isinstance(res, ReturnSignal):
                    return res
            return None
        if isinstance(node, Return):
            value = self.evaluate(node.expr, env) if node.expr is not None else UNIT
            return ReturnSignal(value)
        # calls, and the lone expression an else branch may hold
        self.evaluate(node, env)
        return None

    def iterate(self, iterable: Any):
        if isinstance(iterable, ArrayVal):
            # snapshot: writes during the loop do not change what is visited
            return list(iterable.items)
        if isinstance(iterable, RangeVal):
            if isinstance(iterable.start, CharVal):
                return [CharVal(chr(c)) for c in range(ord(iterable.start.value), ord(iterable.end.value) + 1)]
            return range(self.expect_int(iterable.start), self.expect_int(iterable.end) + 1)
        if isinstance(iterable, str):
            return [CharVal(c) for c in iterable]
        raise KotletInternalError(f'cannot iterate over {type_name(iterable)}')

    def evaluate(self, node: Node, env: Environment) -> Any:
        # Evaluate expression nodes
        if isinstance(node, (IntLiteral, BoolLiteral, StrLiteral)):
            return node.value
        if isinstance(node, CharLiteral):
            return CharVal(node.value)
        if isinstance(node, Ident):
            return env.get(node.name)
        if isinstance(node, GetByIndex):
            container = env.get(node.ident.name)
            index = self.evaluate(node.index, env)
            if isinstance(container, ArrayVal):
                return container.items[self.check_index(index, len(container.items))]
            if isinstance(container, str):
                return CharVal(container[self.check_index(index, len(container))])
            raise KotletInternalError(f'cannot index {type_name(container)}')
        if isinstance(node, Parens):
            return self.evaluate(node.expr, env)
        if isinstance(node, Neg):
            return wrap_i32(-self.expect_int(self.evaluate(node.expr, env)))
        if isinstance(node, BoolNeg):
            return not self.evaluate(node.expr, env)
        if isinstance(node, And):
            # right side only runs when needed
            return bool(self.evaluate(node.left, env)) and bool(self.evaluate(node.right, env))
        if isinstance(node, Or):
            return bool(self.evaluate(node.left, env)) or bool(self.evaluate(node.right, env))
        if isinstance(node, (Add, Sub, Mul, Div, Range, LessThan, MoreThan)):
            left = self.evaluate(node.left, env)
            right = self.evaluate(node.right, env)
            return self.apply_binary_op(node, left, right)
        if isinstance(node, Call):
            args = [self.evaluate(arg, env) for arg in node.args]
            return self.call_function(node.name, args)
        if isinstance(node, TOP_EXPRS):
            res = self.execute(node, env)
            if isinstance(res, ReturnSignal):
                # return used as a value; unwinds to the enclosing call
                raise res
            return UNIT
        raise KotletInternalError(f"evaluate: unexpected node type {type(node).__name__}")

    def assign_index(self, node: SetByIndex, env: Environment):
        name = node.target.ident.name
        container = env.get(name)
        index = self.evaluate(node.target.index, env)
        value = self.evaluate(node.expr, env)
        if isinstance(container, ArrayVal):
            container.items[self.check_index(index, len(container.items))] = value
            return
        if isinstance(container, str) and isinstance(value, CharVal):
            i = self.check_index(index, len(container))
            env.set(name, container[:i] + value.value + container[i + 1:])
            return
        raise KotletInternalError(f'cannot assign to index on type {type_name(container)}')

    def check_index(self, index: Any, length: int) -> int:
        index = self.expect_int(index)
        if index < 0 or index >= length:
            raise KotletRuntimeError('Index out of range')
        return index

    def expect_int(self, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise KotletInternalError(f'expected Int, got {type_name(value)}')
        return value

    def apply_binary_op(self, node: Node, a: Any, b: Any) -> Any:
        if isinstance(node, Add):
            if isinstance(a, str) or isinstance(b, str):
                return to_string(a) + to_string(b)
            return wrap_i32(self.expect_int(a) + self.expect_int(b))
        if isinstance(node, Sub):
            return wrap_i32(self.expect_int(a) - self.expect_int(b))
        if isinstance(node, Mul):
            return wrap_i32(self.expect_int(a) * self.expect_int(b))
        if isinstance(node, Div):
            a, b = self.expect_int(a), self.expect_int(b)
            if b == 0:
                raise KotletRuntimeError('Division by zero')
            # truncate toward zero
            quotient = abs(a) // abs(b)
            if (a < 0) != (b < 0):
                quotient = -quotient
            return wrap_i32(quotient)
        if isinstance(node, Range):
            return RangeVal(a, b)
        if isinstance(node, (LessThan, MoreThan)):
            if type_name(a) != type_name(b) or isinstance(a, (ArrayVal, RangeVal)):
                raise KotletInternalError(f'cannot compare {type_name(a)} and {type_name(b)}')
            if isinstance(a, CharVal):
                a, b = a.value, b.value
            return a < b if isinstance(node, LessThan) else a > b
        raise KotletInternalError(f'unsupported operator {type(node).__name__}')


def run_program(source: str, io: Optional[BasicIO] = None, debug_level: int = 0,
                debug_file: str = 'debug.txt') -> Any:
    """Convenience function to parse, check and run a Kotlet program from source."""
    debug = DebugLog(debug_level, debug_file)
    try:
        if debug.enabled(1):
            debug.write(1, f"tokenize: {sum(1 for _ in tokenize(source))} tokens")
        program = parse_program(source)
        debug.write(1, f"parse: {len(program.functions)} functions")
        diagnostics = check_program(program, debug=debug)
        if diagnostics:
            raise CheckFailed(diagnostics)
        return Interpreter(program, io=io, debug=debug).run()
    finally:
        debug.close()


def compile_module(file_path: str, io: Optional[BasicIO] = None, debug_level: int = 0) -> Any:
    """Read a Kotlet source file and run it."""
    source = Path(file_path).read_text(encoding='utf-8')
    return run_program(source, io=io, debug_level=debug_level)
