"""Type definitions and runtime values for Kotlet.

``ExprType`` is what the checker assigns to every expression. Runtime
values use plain Python objects where they fit: ``int`` for Int, ``str``
for String and ``bool`` for Boolean. Kotlet values that Python has no
direct equivalent for get small wrapper classes. ``ArrayVal`` relies on
object identity, so every variable bound to the same array sees writes
made through any of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from .ast import GenericType, SimpleType, TypeRef

I32_MIN = -2 ** 31
I32_MAX = 2 ** 31 - 1


@dataclass(frozen=True)
class ExprType:
    """Static type of an expression.

    ``kind`` is one of 'Int', 'String', 'Boolean', 'Char', 'Array',
    'Range' or 'Unit'. Arrays and ranges carry their element type in
    ``elem``: ``Array<Int>`` is ``ExprType('Array', ExprType('Int'))``.
    Types are compared structurally, with no coercion between them.
    """
    kind: str
    elem: Optional['ExprType'] = None

    def __repr__(self) -> str:
        if self.elem is None:
            return self.kind
        return f"{self.kind}<{self.elem!r}>"

    __str__ = __repr__

    @property
    def is_primitive(self) -> bool:
        return self.kind in PRIMITIVES

    # Convenience constructors
    @staticmethod
    def int() -> 'ExprType':
        return ExprType('Int')

    @staticmethod
    def string() -> 'ExprType':
        return ExprType('String')

    @staticmethod
    def boolean() -> 'ExprType':
        return ExprType('Boolean')

    @staticmethod
    def char() -> 'ExprType':
        return ExprType('Char')

    @staticmethod
    def array(elem: 'ExprType') -> 'ExprType':
        return ExprType('Array', elem)

    @staticmethod
    def range(elem: 'ExprType') -> 'ExprType':
        return ExprType('Range', elem)

    @staticmethod
    def unit() -> 'ExprType':
        return ExprType('Unit')


PRIMITIVES = ('Int', 'String', 'Boolean', 'Char')


def from_type_ref(type_ref: Optional[TypeRef]) -> ExprType:
    """Resolve a declared type; anything unrecognized is ``Unit``."""
    if type_ref is None:
        return ExprType.unit()
    if isinstance(type_ref, SimpleType):
        if type_ref.name in PRIMITIVES:
            return ExprType(type_ref.name)
        return ExprType.unit()
    if isinstance(type_ref, GenericType):
        if type_ref.name != 'Array' or len(type_ref.params) != 1:
            return ExprType.unit()
        elem = from_type_ref(type_ref.params[0])
        if elem == ExprType.unit():
            return ExprType.unit()
        return ExprType.array(elem)
    raise TypeError(f"not a type reference: {type_ref!r}")


class UnitVal:
    """Marker object for the Kotlet ``Unit`` value."""
    def __repr__(self) -> str:
        return 'Unit'


UNIT = UnitVal()


@dataclass(frozen=True)
class CharVal:
    value: str

    def __repr__(self) -> str:
        return f"'{self.value}'"


@dataclass(eq=False)
class ArrayVal:
    """Handle to a mutable sequence of values; copies share the items."""
    items: List[Any]

    def __repr__(self) -> str:
        return 'arrayOf(' + ', '.join(repr(i) for i in self.items) + ')'


@dataclass(frozen=True)
class RangeVal:
    """Inclusive range ``start..end``."""
    start: Any
    end: Any

    def __repr__(self) -> str:
        return f"{self.start!r}..{self.end!r}"


def wrap_i32(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 32-bit range."""
    return (value - I32_MIN) % (2 ** 32) + I32_MIN


def to_string(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, CharVal):
        return value.value
    return repr(value)


def type_name(value: Any) -> str:
    if isinstance(value, bool):
        return 'Boolean'
    if isinstance(value, int):
        return 'Int'
    if isinstance(value, str):
        return 'String'
    if isinstance(value, CharVal):
        return 'Char'
    if isinstance(value, ArrayVal):
        return 'Array'
    if isinstance(value, RangeVal):
        return 'Range'
    if isinstance(value, UnitVal):
        return 'Unit'
    return type(value).__name__
