"""Built-in functions available to every Kotlet program.

Built-ins are resolved before user functions, so a user function can
never replace one of them.
"""

from typing import Any, List, Optional

from kotlet.builtin_function import BuiltinFunction
from kotlet.environment import Environment
from kotlet.std.io import BasicIO, populate_io_environment
from kotlet.types import ArrayVal


def std_array_of(args: List[Any]) -> Any:
    return ArrayVal(list(args))


def load_builtins(basic_io: Optional[BasicIO] = None) -> Environment:
    env = populate_io_environment(basic_io)
    env.values['arrayOf'] = BuiltinFunction('arrayOf', None, None, std_array_of)
    return env
