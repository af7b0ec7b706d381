import re
from typing import Any, List, Optional

from .basic_io import BasicIO
from kotlet.builtin_function import BuiltinFunction
from kotlet.environment import Environment
from kotlet.errors import KotletRuntimeError
from kotlet.types import I32_MAX, I32_MIN, UNIT, ExprType, to_string

INT_PATTERN = re.compile(r'[+-]?[0-9]+')


def populate_io_environment(basic_io: Optional[BasicIO] = None) -> Environment:
        basic_io = basic_io or BasicIO()
        io_env = Environment()

        def std_print(args: List[Any]) -> Any:
            basic_io.write(''.join(to_string(a) for a in args))
            return UNIT

        def std_println(args: List[Any]) -> Any:
            basic_io.write(''.join(to_string(a) for a in args) + '\n')
            return UNIT

        def std_readln(args: List[Any]) -> Any:
            return basic_io.read_line()

        def std_readln_int(args: List[Any]) -> Any:
            line = basic_io.read_line().strip()
            if not INT_PATTERN.fullmatch(line) or not I32_MIN <= int(line) <= I32_MAX:
                raise KotletRuntimeError('Failed to parse Int from input')
            return int(line)

        def std_readln_boolean(args: List[Any]) -> Any:
            line = basic_io.read_line().strip()
            if line == 'true':
                return True
            if line == 'false':
                return False
            raise KotletRuntimeError('Failed to parse Boolean from input')

        io_env.values['print'] = BuiltinFunction('print', None, ExprType.unit(), std_print)
        io_env.values['println'] = BuiltinFunction('println', None, ExprType.unit(), std_println)
        io_env.values['readln'] = BuiltinFunction('readln', 0, ExprType.string(), std_readln)
        io_env.values['readlnInt'] = BuiltinFunction('readlnInt', 0, ExprType.int(), std_readln_int)
        io_env.values['readlnBoolean'] = BuiltinFunction(
            'readlnBoolean', 0, ExprType.boolean(), std_readln_boolean)

        return io_env
