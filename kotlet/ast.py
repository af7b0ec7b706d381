"""Abstract Syntax Tree (AST) definitions for the Kotlet language.

The parser builds this tree once and nothing mutates it afterwards: the
checker and the interpreter only read it. Expressions are split into
four levels (top, math, comparison and short expressions) and a node
belongs to exactly one of them. Every node carries the span of source
text it was parsed from; spans take no part in node equality, so trees
built by hand in tests compare equal to parsed ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from .lexer import Span


@dataclass(frozen=True)
class Node:
    """Base class for all AST nodes."""
    span: Span = field(default=Span(0, 0), compare=False, kw_only=True, repr=False)


# Short expressions

@dataclass(frozen=True)
class IntLiteral(Node):
    value: int


@dataclass(frozen=True)
class BoolLiteral(Node):
    value: bool


@dataclass(frozen=True)
class CharLiteral(Node):
    value: str


@dataclass(frozen=True)
class StrLiteral(Node):
    value: str


@dataclass(frozen=True)
class Ident(Node):
    name: str


@dataclass(frozen=True)
class GetByIndex(Node):
    ident: Ident
    index: 'Expr'


# Math expressions

@dataclass(frozen=True)
class Neg(Node):
    expr: 'Expr'


@dataclass(frozen=True)
class BoolNeg(Node):
    expr: 'Expr'


@dataclass(frozen=True)
class Parens(Node):
    expr: 'Expr'


@dataclass(frozen=True)
class BinaryOp(Node):
    left: 'Expr'
    right: 'Expr'


@dataclass(frozen=True)
class Range(BinaryOp):
    pass


@dataclass(frozen=True)
class Sub(BinaryOp):
    pass


@dataclass(frozen=True)
class Add(BinaryOp):
    pass


@dataclass(frozen=True)
class Mul(BinaryOp):
    pass


@dataclass(frozen=True)
class Div(BinaryOp):
    pass


# Comparison expressions

@dataclass(frozen=True)
class LessThan(BinaryOp):
    pass


@dataclass(frozen=True)
class MoreThan(BinaryOp):
    pass


@dataclass(frozen=True)
class And(BinaryOp):
    pass


@dataclass(frozen=True)
class Or(BinaryOp):
    pass


# Top expressions (statements)

@dataclass(frozen=True)
class Binding(Node):
    is_mut: bool  # var or val
    name: str
    expr: 'Expr'


@dataclass(frozen=True)
class Set(Node):
    name: str
    expr: 'Expr'


@dataclass(frozen=True)
class Call(Node):
    name: str
    args: Tuple['Expr', ...]


@dataclass(frozen=True)
class SetByIndex(Node):
    target: GetByIndex
    expr: 'Expr'


@dataclass(frozen=True)
class If(Node):
    cond: 'Expr'
    body: Tuple['TopExpr', ...]
    else_branch: Tuple['Expr', ...] = ()  # empty means no else


@dataclass(frozen=True)
class For(Node):
    var: str
    iterable: 'Expr'
    body: Tuple['TopExpr', ...]


@dataclass(frozen=True)
class While(Node):
    cond: 'Expr'
    body: Tuple['TopExpr', ...]


@dataclass(frozen=True)
class Return(Node):
    expr: Optional['Expr'] = None


# Declarations

@dataclass(frozen=True)
class SimpleType(Node):
    name: str


@dataclass(frozen=True)
class GenericType(Node):
    name: str
    params: Tuple['TypeRef', ...]


@dataclass(frozen=True)
class Param(Node):
    name: str
    type: 'TypeRef'


@dataclass(frozen=True)
class Fun(Node):
    name: str
    params: Tuple[Param, ...]
    ret_type: Optional['TypeRef']
    body: Tuple['TopExpr', ...]


@dataclass(frozen=True)
class Program(Node):
    functions: Tuple[Fun, ...]


Literal = Union[IntLiteral, BoolLiteral, CharLiteral, StrLiteral]
ShortExpr = Union[Ident, GetByIndex, IntLiteral, BoolLiteral, CharLiteral, StrLiteral]
MathExpr = Union[Neg, BoolNeg, Range, Sub, Add, Mul, Div, Parens]
ComparisonExpr = Union[LessThan, MoreThan, And, Or]
ControlExpr = Union[If, For, While, Return]
TopExpr = Union[If, For, While, Return, Binding, Set, Call, SetByIndex]
Expr = Union[TopExpr, MathExpr, ComparisonExpr, ShortExpr]
TypeRef = Union[SimpleType, GenericType]

TOP_EXPRS = (If, For, While, Return, Binding, Set, Call, SetByIndex)
