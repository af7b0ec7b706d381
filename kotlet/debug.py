from typing import Optional, TextIO


class DebugLog:
    """Verbosity-gated trace written to ``debug.txt``.

    Level 1 traces pipeline stages, 2 function calls and declarations,
    3 branches and loop iterations, 4 every executed statement. With
    level 0 no file is created.
    """
    def __init__(self, level: int = 0, path: str = 'debug.txt'):
        self.level = level
        self.fp: Optional[TextIO] = open(path, 'w', encoding='utf-8') if level > 0 else None

    def enabled(self, level: int) -> bool:
        return self.fp is not None and level <= self.level

    def write(self, level: int, msg: str):
        if self.enabled(level):
            self.fp.write(msg + '\n')
            self.fp.flush()

    def close(self):
        if self.fp:
            self.fp.close()
            self.fp = None
