from typing import Any, List, Optional

from kotlet.lexer import Pair, Span


class KotletError(Exception):
    """Base class for every error the Kotlet toolchain reports."""


class ParseError(KotletError):
    span: Optional[Span] = None


class UnexpectedEndOfInput(ParseError):
    def __init__(self):
        super().__init__('Unexpected end of input')


class NotImplementedYet(ParseError):
    def __init__(self, pair: Optional[Pair] = None):
        super().__init__('Not implemented yet')
        self.pair = pair
        self.span = pair.span if pair is not None else None


class WrongExprType(ParseError):
    def __init__(self, pair: Pair, expected: str):
        super().__init__(f"Wrong expression type, expected {expected}")
        self.pair = pair
        self.expected = expected
        self.span = pair.span


class UnexpectedToken(ParseError):
    def __init__(self, pair: Pair, expected: Any):
        super().__init__(f"Expected {expected!r} but got {pair.token!r} : {pair.text}")
        self.pair = pair
        self.expected = expected
        self.span = pair.span


class NotFullyParsed(ParseError):
    def __init__(self, pair: Pair):
        super().__init__('source not fully parsed')
        self.pair = pair
        self.span = pair.span


class CheckFailed(KotletError):
    """Raised when the type checker rejected a program."""
    def __init__(self, diagnostics: List[Any]):
        super().__init__('\n'.join(d.message for d in diagnostics))
        self.diagnostics = diagnostics


class KotletRuntimeError(KotletError):
    """Fatal error raised while running a checked program."""


class KotletInternalError(KotletError):
    """A runtime invariant that the checker should have guaranteed was broken."""


class ReturnSignal(Exception):
    """Carries a pending return value out of a function body."""
    def __init__(self, value: Any):
        super().__init__('return')
        self.value = value
