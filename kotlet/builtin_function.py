from dataclasses import dataclass
from typing import Any, Optional

from kotlet.types import ExprType


@dataclass
class BuiltinFunction:
    """A host-implemented function resolved before user functions.

    ``arity`` is None for functions that take any number of arguments.
    ``return_type`` is None when the result type depends on the
    arguments (``arrayOf``). ``fn`` receives the list of evaluated
    arguments.
    """
    name: str
    arity: Optional[int]
    return_type: Optional[ExprType]
    fn: Any

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"
