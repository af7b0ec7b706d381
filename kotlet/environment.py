from typing import Any, Dict, Optional

from kotlet.errors import KotletInternalError


class Environment:
    """One scope frame mapping identifiers to values (or, in the checker, types).

    Frames are chained through ``parent``; lookups walk outwards from the
    innermost frame. A new frame is created per function call and per
    block, and dropped when the block exits.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}

    def lookup(self, name: str) -> Optional[Any]:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return env.values[name]
            env = env.parent
        return None

    def get(self, name: str) -> Any:
        env = self.find(name)
        if env is None:
            raise KotletInternalError(f'undefined variable {name}')
        return env.values[name]

    def find(self, name: str) -> Optional['Environment']:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return env
            env = env.parent
        return None

    def declared_here(self, name: str) -> bool:
        return name in self.values

    def declare(self, name: str, value: Any):
        # shadows any binding of the same name in outer frames
        self.values[name] = value

    def set(self, name: str, value: Any):
        env = self.find(name)
        if env is None:
            raise KotletInternalError(f'assignment to undefined variable {name}')
        env.values[name] = value
