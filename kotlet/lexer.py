"""Tokenizer for the Kotlet language.

The lexer walks the source once, front to back, and yields ``Pair``
objects (token, span, text). At each position an ordered list of match
functions is tried and the first one that recognizes something wins.
Whitespace is matched like any other token but never yielded. When no
match function recognizes the input, the lexer keeps advancing one
character at a time until something does, and reports the whole run as
a single ``UNEXPECTED`` token.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional, Tuple

# Token kinds
NEWLINE = 'NewLine'
IDENT = 'Ident'
SYMBOL = 'Symbol'
STR = 'Str'
CHAR = 'Char'
INT = 'Int'
BOOL = 'Bool'
AND_OP = 'AndOp'
OR_OP = 'OrOp'
RANGE_OP = 'RangeOp'
UNEXPECTED = 'Unexpected'
WHITESPACE = 'WhiteSpace'

FUN = 'Fun'
IF = 'If'
ELSE = 'Else'
FOR = 'For'
IN = 'In'
WHILE = 'While'
VAR = 'Var'
VAL = 'Val'
RETURN = 'Return'
BREAK = 'Break'

KEYWORDS = {
    'fun': FUN,
    'if': IF,
    'else': ELSE,
    'for': FOR,
    'in': IN,
    'while': WHILE,
    'var': VAR,
    'val': VAL,
    'return': RETURN,
    'break': BREAK,
}

SYMBOLS = '(){}[],:+-*/%<>=!'

STRING_ESCAPES = {'t': '\t', 'b': '\b', 'n': '\n', 'r': '\r', '"': '"', "'": "'", '\\': '\\', '$': '$'}

I32_MIN = -2 ** 31
I32_MAX = 2 ** 31 - 1


@dataclass(frozen=True)
class Span:
    """Half-open ``[lo, hi)`` range of offsets into the source text."""
    lo: int
    hi: int

    def __repr__(self) -> str:
        return f"{self.lo}..{self.hi}"


@dataclass(frozen=True)
class Token:
    """A token kind plus its payload.

    ``value`` holds the symbol character for ``SYMBOL``, the decoded
    number for ``INT``, the boolean for ``BOOL`` and the decoded text for
    ``STR`` and ``CHAR``. Every other kind has no payload.
    """
    kind: str
    value: Any = None

    @staticmethod
    def symbol(c: str) -> 'Token':
        return Token(SYMBOL, c)

    def __repr__(self) -> str:
        if self.value is None:
            return self.kind
        return f"{self.kind}({self.value!r})"


@dataclass(frozen=True)
class Pair:
    token: Token
    span: Span
    text: str

    def __repr__(self) -> str:
        return f"{self.token!r}@{self.span!r}"


# A match function looks at source[pos:] and returns (token, new_pos),
# or None when it does not apply.
MatchResult = Optional[Tuple[Optional[Token], int]]


def _lex_comment(source: str, pos: int) -> MatchResult:
    if source.startswith('/*', pos):
        end = source.find('*/', pos + 2)
        if end == -1:
            return Token(UNEXPECTED), len(source)
        return Token(WHITESPACE), end + 2
    if source.startswith('//', pos):
        end = source.find('\n', pos)
        if end == -1:
            end = source.find('\r', pos)
        if end == -1:
            # comment runs to the end of input
            return None, len(source)
        return Token(NEWLINE), end + 1
    return None


def _lex_symbol(source: str, pos: int) -> MatchResult:
    c = source[pos]
    if c in SYMBOLS:
        return Token.symbol(c), pos + 1
    return None


def _alpha_run(source: str, pos: int) -> int:
    end = pos
    while end < len(source) and source[end].isascii() and source[end].isalpha():
        end += 1
    return end


def _alnum_run(source: str, pos: int) -> int:
    end = pos
    while end < len(source) and source[end].isascii() and source[end].isalnum():
        end += 1
    return end


def _lex_keyword(source: str, pos: int) -> MatchResult:
    end = _alpha_run(source, pos)
    kind = KEYWORDS.get(source[pos:end])
    if kind is None:
        return None
    return Token(kind), end


def _lex_bool(source: str, pos: int) -> MatchResult:
    end = _alpha_run(source, pos)
    word = source[pos:end]
    if word == 'true':
        return Token(BOOL, True), end
    if word == 'false':
        return Token(BOOL, False), end
    return None


def _scan_quoted(source: str, pos: int, quote: str) -> Tuple[Optional[str], int]:
    """Scan a quoted literal starting at the opening quote.

    Returns the decoded contents and the position after the closing
    quote. The contents are None when the literal holds an unknown
    escape or is never closed; in the unterminated case the position is
    the end of input.
    """
    i = pos + 1
    chars: List[str] = []
    bad_escape = False
    while i < len(source):
        c = source[i]
        if c == '\\':
            if i + 1 >= len(source):
                break
            escaped = STRING_ESCAPES.get(source[i + 1])
            if escaped is None:
                bad_escape = True
            else:
                chars.append(escaped)
            i += 2
            continue
        if c == quote:
            if bad_escape:
                return None, i + 1
            return ''.join(chars), i + 1
        chars.append(c)
        i += 1
    return None, len(source)


def _lex_char(source: str, pos: int) -> MatchResult:
    if source[pos] != "'":
        return None
    value, end = _scan_quoted(source, pos, "'")
    if value is None or len(value) != 1:
        return Token(UNEXPECTED), end
    return Token(CHAR, value), end


def _lex_ident(source: str, pos: int) -> MatchResult:
    end = _alnum_run(source, pos)
    if end == pos or source[pos].isdigit():
        return None
    return Token(IDENT, source[pos:end]), end


def _lex_int(source: str, pos: int) -> MatchResult:
    end = pos
    while end < len(source) and (source[end] in '0123456789abcdefABCDEF' or source[end] == 'x'):
        end += 1
    if end == pos:
        return None
    digits = source[pos:end]
    try:
        if digits.startswith('0x'):
            number = int(digits[2:], 16)
        elif digits.startswith('0b'):
            number = int(digits[2:], 2)
        else:
            number = int(digits, 10)
    except ValueError:
        number = None
    if number is not None and not (I32_MIN <= number <= I32_MAX):
        number = None
    # a number glued to letters or digits (e.g. 12abz) is not a number
    after = _alnum_run(source, end)
    if after != end or number is None:
        return Token(UNEXPECTED), after
    return Token(INT, number), end


def _lex_newline(source: str, pos: int) -> MatchResult:
    if source.startswith('\r\n', pos):
        return Token(NEWLINE), pos + 2
    if source[pos] in '\r\n':
        return Token(NEWLINE), pos + 1
    return None


def _lex_bool_op(source: str, pos: int) -> MatchResult:
    if source.startswith('&&', pos):
        return Token(AND_OP), pos + 2
    if source.startswith('||', pos):
        return Token(OR_OP), pos + 2
    return None


def _lex_range_op(source: str, pos: int) -> MatchResult:
    if source.startswith('..', pos):
        return Token(RANGE_OP), pos + 2
    return None


def _lex_str(source: str, pos: int) -> MatchResult:
    if source[pos] != '"':
        return None
    value, end = _scan_quoted(source, pos, '"')
    if value is None:
        return Token(UNEXPECTED), end
    return Token(STR, value), end


def _lex_whitespace(source: str, pos: int) -> MatchResult:
    end = pos
    while end < len(source) and source[end] == ' ':
        end += 1
    if end == pos:
        return None
    return Token(WHITESPACE), end


MATCHERS: List[Callable[[str, int], MatchResult]] = [
    _lex_comment,
    _lex_symbol,
    _lex_keyword,
    _lex_bool,
    _lex_char,
    _lex_ident,
    _lex_int,
    _lex_newline,
    _lex_bool_op,
    _lex_range_op,
    _lex_str,
    _lex_whitespace,
]


def _match(source: str, pos: int) -> MatchResult:
    for match in MATCHERS:
        result = match(source, pos)
        if result is not None:
            return result
    return None


def next_token(source: str, pos: int) -> Tuple[Optional[Token], int]:
    """Match one token at ``pos``.

    A None token means end of input. Unrecognized characters are
    gathered into one ``UNEXPECTED`` token that stops right before the
    next recognizable token.
    """
    if pos >= len(source):
        return None, pos
    result = _match(source, pos)
    if result is not None:
        return result
    end = pos + 1
    while end < len(source):
        result = _match(source, end)
        if result is not None and (result[0] is None or result[0].kind != UNEXPECTED):
            break
        end += 1
    return Token(UNEXPECTED), end


def tokenize(source: str) -> Iterator[Pair]:
    pos = 0
    while True:
        token, end = next_token(source, pos)
        if token is None:
            return
        if token.kind != WHITESPACE:
            yield Pair(token, Span(pos, end), source[pos:end])
        pos = end
