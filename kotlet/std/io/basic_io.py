import builtins

from kotlet.errors import KotletRuntimeError


class BasicIO:
    """Console streams used by the I/O built-ins.

    Output goes through ``print`` and input through ``input``, so both
    can be redirected the usual way (capsys, monkeypatching ``input``).
    """
    def write(self, text: str):
        builtins.print(text, end='', flush=True)

    def read_line(self) -> str:
        try:
            return builtins.input()
        except EOFError:
            raise KotletRuntimeError('Failed to read line')
