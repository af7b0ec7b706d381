"""Static type checker for Kotlet programs.

The checker makes one pass over the program and collects diagnostics
instead of stopping at the first problem. Checking an expression
returns its ``ExprType``, or None when the expression is ill-typed. A
None means the problem has already been reported: callers pass it up
without adding a second diagnostic, and they keep checking sibling
statements. An empty diagnostics list means the program is accepted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .ast import (
    Add, And, Binding, BoolLiteral, BoolNeg, Call, CharLiteral, Div, For, Fun, GetByIndex,
    Ident, If, IntLiteral, LessThan, MoreThan, Mul, Neg, Node, Or, Parens, Program, Range,
    Return, Set, SetByIndex, StrLiteral, Sub, While,
)
from .debug import DebugLog
from .environment import Environment
from .errors import KotletInternalError
from .lexer import Span
from .std import load_builtins
from .types import ExprType, from_type_ref


@dataclass(frozen=True)
class Diagnostic:
    span: Span
    message: str


@dataclass(frozen=True)
class FunType:
    args: Tuple[ExprType, ...]
    ret_type: ExprType

    @staticmethod
    def of(fun: Fun) -> 'FunType':
        return FunType(tuple(from_type_ref(p.type) for p in fun.params), from_type_ref(fun.ret_type))


class Checker:
    def __init__(self, debug: Optional[DebugLog] = None):
        self.debug = debug or DebugLog()
        self.builtins = load_builtins().values
        self.functions: Dict[str, FunType] = {}
        self.diagnostics: List[Diagnostic] = []
        self.current_ret_type = ExprType.unit()

    def error(self, node: Optional[Node], message: str):
        span = node.span if node is not None else Span(0, 0)
        self.diagnostics.append(Diagnostic(span, message))
        self.debug.write(2, f"error at {span!r}: {message}")

    def check(self, program: Program) -> List[Diagnostic]:
        self.collect_functions(program)
        for fun in program.functions:
            self.check_function(fun)
        self.debug.write(1, f"check: {len(self.diagnostics)} diagnostics")
        return self.diagnostics

    def collect_functions(self, program: Program):
        for fun in program.functions:
            if fun.name in self.functions:
                self.error(fun, f"function {fun.name} already defined")
            else:
                self.functions[fun.name] = FunType.of(fun)
        main = self.functions.get('main')
        if main is None:
            self.error(None, 'main function not found')
        elif main.args:
            main_fun = next(f for f in program.functions if f.name == 'main')
            self.error(main_fun, 'main must accept no arguments')

    def check_function(self, fun: Fun):
        self.debug.write(2, f"check function {fun.name}")
        self.current_ret_type = from_type_ref(fun.ret_type)
        env = Environment()
        for param in fun.params:
            if env.declared_here(param.name):
                self.error(param, f"variable {param.name} already defined in this scope")
            else:
                env.declare(param.name, from_type_ref(param.type))
        self.check_block(fun.body, env)

    def check_block(self, statements, env: Environment):
        for stmt in statements:
            self.check_expr(stmt, env)

    def check_expr(self, node: Node, env: Environment) -> Optional[ExprType]:
        # Literals
        if isinstance(node, IntLiteral):
            return ExprType.int()
        if isinstance(node, BoolLiteral):
            return ExprType.boolean()
        if isinstance(node, CharLiteral):
            return ExprType.char()
        if isinstance(node, StrLiteral):
            return ExprType.string()
        if isinstance(node, Ident):
            ty = env.lookup(node.name)
            if ty is None:
                self.error(node, f"variable {node.name} not found in scope")
            return ty
        if isinstance(node, GetByIndex):
            return self.check_get_by_index(node, env)
        # Math
        if isinstance(node, Neg):
            ty = self.check_expr(node.expr, env)
            if ty is None:
                return None
            if ty != ExprType.int():
                self.error(node, 'negation only applicable to Int type')
                return None
            return ty
        if isinstance(node, BoolNeg):
            ty = self.check_expr(node.expr, env)
            if ty is None:
                return None
            if ty != ExprType.boolean():
                self.error(node, 'boolean negation only applicable to Boolean type')
                return None
            return ty
        if isinstance(node, Parens):
            return self.check_expr(node.expr, env)
        if isinstance(node, Add):
            return self.check_add(node, env)
        if isinstance(node, (Sub, Mul, Div)):
            return self.ensure_same_type(node, env)
        if isinstance(node, Range):
            ty = self.ensure_same_type(node, env)
            return ExprType.range(ty) if ty is not None else None
        # Comparison
        if isinstance(node, (LessThan, MoreThan)):
            ty = self.ensure_same_type(node, env)
            if ty is None:
                return None
            if ty == ExprType.boolean():
                self.error(node, "can't compare booleans")
                return None
            if not ty.is_primitive:
                self.error(node, "can't compare types")
                return None
            return ExprType.boolean()
        if isinstance(node, (And, Or)):
            left = self.check_expr(node.left, env)
            right = self.check_expr(node.right, env)
            if left is None or right is None:
                return None
            if left != ExprType.boolean() or right != ExprType.boolean():
                self.error(node, 'boolean operators only applicable to booleans')
                return None
            return ExprType.boolean()
        # Statements
        if isinstance(node, Binding):
            ty = self.check_expr(node.expr, env)
            if ty is None:
                return None
            if env.declared_here(node.name):
                self.error(node, f"variable {node.name} already defined in this scope")
                return None
            env.declare(node.name, ty)
            self.debug.write(2, f"declare {node.name}: {ty}")
            return ExprType.unit()
        if isinstance(node, Set):
            ty = self.check_expr(node.expr, env)
            expected = env.lookup(node.name)
            if expected is None:
                self.error(node, f"variable {node.name} not found in scope")
                return None
            if ty is None:
                return None
            if ty != expected:
                self.error(node, f"variable {node.name} found but it has different type")
                return None
            return ExprType.unit()
        if isinstance(node, SetByIndex):
            target = self.check_expr(node.target, env)
            value = self.check_expr(node.expr, env)
            if target is None or value is None:
                return None
            if target != value:
                self.error(node, f"wrong operands: {target} and {value}")
                return None
            return ExprType.unit()
        if isinstance(node, Call):
            return self.check_call(node, env)
        if isinstance(node, If):
            cond_ok = self.check_condition(node, env)
            self.check_block(node.body, Environment(parent=env))
            self.check_block(node.else_branch, Environment(parent=env))
            return ExprType.unit() if cond_ok else None
        if isinstance(node, While):
            cond_ok = self.check_condition(node, env)
            self.check_block(node.body, Environment(parent=env))
            return ExprType.unit() if cond_ok else None
        if isinstance(node, For):
            ty = self.check_expr(node.iterable, env)
            if ty is None:
                return None
            if ty.kind not in ('Array', 'Range'):
                self.error(node, 'only array and range are iterable types')
                return None
            loop_env = Environment(parent=env)
            loop_env.declare(node.var, ty.elem)
            self.check_block(node.body, loop_env)
            return ExprType.unit()
        if isinstance(node, Return):
            expected = self.current_ret_type
            if node.expr is not None:
                actual = self.check_expr(node.expr, env)
                if actual is None:
                    return None
            else:
                actual = ExprType.unit()
            if actual != expected:
                self.error(node, f"wrong return type: expected {expected}, found {actual}")
            return ExprType.unit()
        raise KotletInternalError(f"check: unexpected node type {type(node).__name__}")

    def check_condition(self, node, env: Environment) -> bool:
        ty = self.check_expr(node.cond, env)
        if ty is None:
            return False
        if ty != ExprType.boolean():
            self.error(node, 'condition must have boolean type')
            return False
        return True

    def ensure_same_type(self, node, env: Environment) -> Optional[ExprType]:
        # both sides are checked so that errors in either get reported
        left = self.check_expr(node.left, env)
        right = self.check_expr(node.right, env)
        if left is None or right is None:
            return None
        if left != right:
            self.error(node, f"wrong operands: {left} and {right}")
            return None
        return left

    def check_add(self, node: Add, env: Environment) -> Optional[ExprType]:
        left = self.check_expr(node.left, env)
        right = self.check_expr(node.right, env)
        if left is None or right is None:
            return None
        if ExprType.unit() in (left, right):
            self.error(node, "it isn't possible to add items of unit type")
            return None
        if ExprType.string() in (left, right):
            return ExprType.string()
        if left != right:
            self.error(node, f"wrong operands: {left} and {right}")
            return None
        return left

    def check_get_by_index(self, node: GetByIndex, env: Environment) -> Optional[ExprType]:
        base = self.check_expr(node.ident, env)
        index = self.check_expr(node.index, env)
        ok = base is not None and index is not None
        if index is not None and index != ExprType.int():
            self.error(node, 'index must have Int type')
            ok = False
        result = None
        if base is not None:
            if base.kind == 'Array':
                result = base.elem
            elif base == ExprType.string():
                result = ExprType.char()
            else:
                self.error(node, 'only arrays and strings can be indexed')
                ok = False
        return result if ok else None

    def check_call(self, node: Call, env: Environment) -> Optional[ExprType]:
        args = [self.check_expr(arg, env) for arg in node.args]
        failed = any(a is None for a in args)
        builtin = self.builtins.get(node.name)
        if builtin is not None:
            if failed:
                return builtin.return_type
            if node.name in ('print', 'println'):
                ok = True
                for arg in args:
                    if not arg.is_primitive:
                        self.error(node, f"can't print value of type {arg}")
                        ok = False
                return ExprType.unit() if ok else None
            if node.name == 'arrayOf':
                if not args:
                    self.error(node, 'arrayOf requires at least one argument')
                    return None
                if any(a != args[0] for a in args):
                    self.error(node, 'arguments must have the same type')
                    return None
                return ExprType.array(args[0])
            if builtin.arity is not None and len(args) != builtin.arity:
                self.error(node, f"{node.name} takes no arguments")
                return None
            return builtin.return_type
        fun = self.functions.get(node.name)
        if fun is None:
            self.error(node, f"function {node.name} not found")
            return None
        if failed:
            return fun.ret_type
        if tuple(args) != fun.args:
            self.error(node, f"function {node.name} found but wrong arguments")
            return None
        return fun.ret_type


def check_program(program: Program, debug: Optional[DebugLog] = None) -> List[Diagnostic]:
    return Checker(debug=debug).check(program)
