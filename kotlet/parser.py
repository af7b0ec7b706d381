"""Backtracking recursive-descent parser for the Kotlet language.

The parser never moves a cursor. Each rule receives a ``TokenSlice`` (an
immutable window over the token list) and returns the parsed node along
with the slice that is left over. A rule that fails raises a
``ParseError``. When a rule has alternatives, it tries them in a fixed
order and the caller simply moves on to the next one after a failure,
so there is nothing to roll back.

Binary operators are parsed by splitting at the first occurrence of the
operator that is not nested inside parentheses. Everything before the
split must parse as one complete expression. The right-hand side may
leave tokens behind for the caller. Which operator binds tighter is
decided only by the order in which the math and comparison rules try
their alternatives:

    math:       Neg, BoolNeg, Range, Sub, Add, Mul, Div, Parens
    comparison: And, Or, LessThan, MoreThan

Operators listed earlier split first, so they end up higher in the tree
and bind looser. Changing this order silently changes precedence.

The same rule is often retried on the same slice from different
alternatives. Results, including failures, are memoized per
(rule, slice) so the retries cost nothing.
Operator and parenthesis positions come from a ``ParenIndex`` built
once per token list, so finding a split point does not rescan tokens.
"""

from __future__ import annotations

import bisect
import functools
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from .ast import (
    Add, And, Binding, BoolLiteral, BoolNeg, Call, CharLiteral, Div, Expr, For, Fun,
    GenericType, GetByIndex, Ident, If, IntLiteral, LessThan, MoreThan, Mul, Neg, Node,
    Or, Param, Parens, Program, Range, Return, Set, SetByIndex, SimpleType, StrLiteral,
    Sub, TopExpr, TypeRef, While,
)
from .errors import (
    NotFullyParsed, NotImplementedYet, ParseError, UnexpectedEndOfInput, UnexpectedToken,
    WrongExprType,
)
from .lexer import (
    AND_OP, BOOL, BREAK, CHAR, ELSE, FOR, FUN, IDENT, IF, IN, INT, NEWLINE, OR_OP, RANGE_OP,
    RETURN, STR, VAL, VAR, WHILE, Pair, Span, Token, tokenize,
)

T = TypeVar('T')


class TokenSlice:
    """Immutable view ``pairs[lo:hi]`` over the token list."""
    __slots__ = ('pairs', 'lo', 'hi')

    def __init__(self, pairs: Sequence[Pair], lo: int = 0, hi: Optional[int] = None):
        self.pairs = pairs
        self.lo = lo
        self.hi = len(pairs) if hi is None else hi

    def __len__(self) -> int:
        return self.hi - self.lo

    def __getitem__(self, index: int) -> Pair:
        if not 0 <= index < len(self):
            raise IndexError(index)
        return self.pairs[self.lo + index]

    def __iter__(self):
        for i in range(self.lo, self.hi):
            yield self.pairs[i]

    def first(self) -> Pair:
        if self.lo >= self.hi:
            raise UnexpectedEndOfInput()
        return self.pairs[self.lo]

    def advance(self, n: int = 1) -> 'TokenSlice':
        return TokenSlice(self.pairs, min(self.lo + n, self.hi), self.hi)

    def split_at(self, index: int) -> Tuple['TokenSlice', 'TokenSlice']:
        mid = self.lo + index
        return TokenSlice(self.pairs, self.lo, mid), TokenSlice(self.pairs, mid, self.hi)

    def to_list(self) -> List[Pair]:
        return list(self.pairs[self.lo:self.hi])

    def __repr__(self) -> str:
        return f"TokenSlice({self.lo}..{self.hi})"


ParseResult = Tuple[T, TokenSlice]


def token_matches(pair: Pair, token: Token) -> bool:
    if pair.token.kind != token.kind:
        return False
    return token.value is None or pair.token.value == token.value


def expect_token(pairs: TokenSlice, token: Token) -> ParseResult[Pair]:
    pair = pairs.first()
    if token_matches(pair, token):
        return pair, pairs.advance()
    raise UnexpectedToken(pair, token)


def expect_symbol(pairs: TokenSlice, symbol: str) -> TokenSlice:
    _, pairs = expect_token(pairs, Token.symbol(symbol))
    return pairs


def ignore_newlines(pairs: TokenSlice) -> TokenSlice:
    while len(pairs) and pairs[0].token.kind == NEWLINE:
        pairs = pairs.advance()
    return pairs


def expect_sequence(
    pairs: TokenSlice,
    start: Token,
    end: Token,
    separator: Token,
    parse_element: Callable[[TokenSlice], ParseResult[T]],
) -> ParseResult[List[T]]:
    """Parse ``start element (separator element)* end``.

    A missing separator between elements is tolerated, and so is a
    trailing one before ``end``.
    """
    _, pairs = expect_token(pairs, start)
    sequence: List[T] = []
    while True:
        try:
            _, rest = expect_token(pairs, end)
            return sequence, rest
        except UnexpectedToken:
            pass
        element, pairs = parse_element(pairs)
        sequence.append(element)
        try:
            _, pairs = expect_token(pairs, separator)
        except UnexpectedToken:
            pass


class ParenIndex:
    """Parenthesis structure of a token list, computed once.

    ``depths[i]`` is the nesting level before token ``i``. For a start
    position ``lo`` the enclosing parentheses close at ``closers[lo]``,
    the first ``)`` at or after ``lo`` that drops below ``depths[lo]``.
    A slice starting at ``lo`` that reaches past it can never be parsed
    completely, so operator searches stop there.
    """

    def __init__(self, pairs: Sequence[Pair]):
        n = len(pairs)
        self.depths = [0] * (n + 1)
        for i, pair in enumerate(pairs):
            depth = self.depths[i]
            if pair.token == Token.symbol('('):
                depth += 1
            elif pair.token == Token.symbol(')'):
                depth -= 1
            self.depths[i + 1] = depth
        self.closers = [n] * (n + 1)
        next_closer: Dict[int, int] = {}
        for i in range(n - 1, -1, -1):
            if pairs[i].token == Token.symbol(')'):
                next_closer[self.depths[i]] = i
            self.closers[i] = next_closer.get(self.depths[i], n)
        # (token, depth) -> ascending positions
        self.positions: Dict[Tuple[Token, int], List[int]] = {}
        for i, pair in enumerate(pairs):
            self.positions.setdefault((pair.token, self.depths[i]), []).append(i)

    def closing(self, pairs: TokenSlice) -> Optional[int]:
        """Index within ``pairs`` of the ``)`` closing the parentheses it starts in."""
        closer = self.closers[pairs.lo]
        if closer >= pairs.hi:
            return None
        return closer - pairs.lo

    def toplevel_index_of(self, pairs: TokenSlice, operator: Token) -> Optional[int]:
        """Index within ``pairs`` of the first ``operator`` outside any parentheses."""
        positions = self.positions.get((operator, self.depths[pairs.lo]))
        if not positions:
            return None
        k = bisect.bisect_left(positions, pairs.lo)
        if k == len(positions):
            return None
        index = positions[k]
        if index >= min(pairs.hi, self.closers[pairs.lo]):
            return None
        return index - pairs.lo


def memoized(method):
    rule = method.__name__

    @functools.wraps(method)
    def wrapper(self: 'Parser', pairs: TokenSlice):
        key = (rule, pairs.lo, pairs.hi)
        cached = self.memo.get(key)
        if cached is None:
            try:
                cached = (True, method(self, pairs))
            except ParseError as e:
                cached = (False, e)
            self.memo[key] = cached
        ok, result = cached
        if not ok:
            raise result
        return result

    return wrapper


class Parser:
    def __init__(self, pairs: Sequence[Pair]):
        self.pairs = list(pairs)
        self.memo: Dict[Tuple[str, int, int], Tuple[bool, object]] = {}
        self.parens = ParenIndex(self.pairs)

    def slice(self) -> TokenSlice:
        return TokenSlice(self.pairs)

    def span(self, start: TokenSlice, rest: TokenSlice) -> Span:
        if rest.lo <= start.lo:
            return Span(0, 0)
        return Span(self.pairs[start.lo].span.lo, self.pairs[rest.lo - 1].span.hi)

    # Declarations

    def parse_program(self, pairs: TokenSlice) -> ParseResult[Program]:
        start = pairs
        functions: List[Fun] = []
        while True:
            pairs = ignore_newlines(pairs)
            if not len(pairs):
                return Program(tuple(functions), span=self.span(start, pairs)), pairs
            fun, pairs = self.parse_fun(pairs)
            functions.append(fun)

    def parse_fun(self, pairs: TokenSlice) -> ParseResult[Fun]:
        start = pairs
        _, pairs = expect_token(pairs, Token(FUN))
        name, pairs = self.parse_ident(pairs)
        params, pairs = expect_sequence(
            pairs, Token.symbol('('), Token.symbol(')'), Token.symbol(','), self.parse_param)
        ret_type = None
        try:
            pairs_after_colon = expect_symbol(pairs, ':')
        except ParseError:
            pass
        else:
            ret_type, pairs = self.parse_type(pairs_after_colon)
        body, pairs = self.expect_body(pairs)
        fun = Fun(name.name, tuple(params), ret_type, tuple(body), span=self.span(start, pairs))
        return fun, pairs

    def parse_param(self, pairs: TokenSlice) -> ParseResult[Param]:
        start = pairs
        name, pairs = self.parse_ident(pairs)
        pairs = expect_symbol(pairs, ':')
        type_ref, pairs = self.parse_type(pairs)
        return Param(name.name, type_ref, span=self.span(start, pairs)), pairs

    def parse_type(self, pairs: TokenSlice) -> ParseResult[TypeRef]:
        start = pairs
        name, pairs = self.parse_ident(pairs)
        if len(pairs) and pairs[0].token == Token.symbol('<'):
            params, pairs = expect_sequence(
                pairs, Token.symbol('<'), Token.symbol('>'), Token.symbol(','), self.parse_type)
            return GenericType(name.name, tuple(params), span=self.span(start, pairs)), pairs
        return SimpleType(name.name, span=name.span), pairs

    def expect_body(self, pairs: TokenSlice) -> ParseResult[List[TopExpr]]:
        pairs = expect_symbol(pairs, '{')
        body: List[TopExpr] = []
        while True:
            pairs = ignore_newlines(pairs)
            try:
                return body, expect_symbol(pairs, '}')
            except UnexpectedToken:
                pass
            statement, pairs = self.parse_top_expr(pairs)
            body.append(statement)

    # Expressions

    @memoized
    def parse_expr(self, pairs: TokenSlice) -> ParseResult[Expr]:
        """Parse one expression of any level.

        Every level is attempted and the longest parse wins. On a tie the
        earlier level wins, in the order top, math, comparison, short.
        """
        pair = pairs.first()
        best: Optional[ParseResult[Expr]] = None
        for rule in (self.parse_top_expr, self.parse_math_expr,
                     self.parse_comparison_expr, self.parse_short_expr):
            try:
                node, rest = rule(pairs)
            except ParseError:
                continue
            if best is None or rest.lo > best[1].lo:
                best = (node, rest)
        if best is None:
            raise WrongExprType(pair, 'Expr')
        return best

    def first_of(self, pairs: TokenSlice, rules, expected: str) -> ParseResult[Expr]:
        pair = pairs.first()
        for rule in rules:
            try:
                return rule(pairs)
            except ParseError:
                continue
        raise WrongExprType(pair, expected)

    @memoized
    def parse_top_expr(self, pairs: TokenSlice) -> ParseResult[TopExpr]:
        pair = pairs.first()
        kind = pair.token.kind
        if kind == IDENT:
            return self.first_of(pairs, (self.parse_set, self.parse_call, self.parse_set_by_index),
                                 'TopExpr')
        if kind in (IF, FOR, WHILE, RETURN):
            return self.parse_control_expr(pairs)
        if kind in (VAR, VAL):
            return self.parse_binding(pairs)
        if kind == BREAK:
            raise NotImplementedYet(pair)
        raise WrongExprType(pair, 'TopExpr')

    def parse_control_expr(self, pairs: TokenSlice) -> ParseResult[TopExpr]:
        pair = pairs.first()
        kind = pair.token.kind
        if kind == IF:
            return self.parse_if(pairs)
        if kind == FOR:
            return self.parse_for(pairs)
        if kind == WHILE:
            return self.parse_while(pairs)
        if kind == RETURN:
            return self.parse_return(pairs)
        raise WrongExprType(pair, 'ControlExpr')

    def parse_binding(self, pairs: TokenSlice) -> ParseResult[Binding]:
        start = pairs
        pair = pairs.first()
        if pair.token.kind not in (VAL, VAR):
            raise WrongExprType(pair, 'Binding')
        set_node, pairs = self.parse_set(pairs.advance())
        binding = Binding(pair.token.kind == VAR, set_node.name, set_node.expr,
                          span=self.span(start, pairs))
        return binding, pairs

    def parse_set(self, pairs: TokenSlice) -> ParseResult[Set]:
        start = pairs
        name, pairs = self.parse_ident(pairs)
        pairs = expect_symbol(pairs, '=')
        expr, pairs = self.parse_expr(pairs)
        return Set(name.name, expr, span=self.span(start, pairs)), pairs

    def parse_call(self, pairs: TokenSlice) -> ParseResult[Call]:
        start = pairs
        name, pairs = self.parse_ident(pairs)
        args, pairs = expect_sequence(
            pairs, Token.symbol('('), Token.symbol(')'), Token.symbol(','), self.parse_expr)
        return Call(name.name, tuple(args), span=self.span(start, pairs)), pairs

    def parse_set_by_index(self, pairs: TokenSlice) -> ParseResult[SetByIndex]:
        start = pairs
        target, pairs = self.parse_get_by_index(pairs)
        pairs = expect_symbol(pairs, '=')
        expr, pairs = self.parse_expr(pairs)
        return SetByIndex(target, expr, span=self.span(start, pairs)), pairs

    def parse_if(self, pairs: TokenSlice) -> ParseResult[If]:
        start = pairs
        _, pairs = expect_token(pairs, Token(IF))
        pairs = expect_symbol(pairs, '(')
        cond, pairs = self.parse_expr(pairs)
        pairs = expect_symbol(pairs, ')')
        body, pairs = self.expect_body(pairs)
        else_branch: List[Expr] = []
        if len(pairs) and pairs[0].token.kind == ELSE:
            pairs = pairs.advance()
            try:
                statement, pairs = self.parse_expr(pairs)
                else_branch = [statement]
            except ParseError:
                else_branch, pairs = self.expect_body(pairs)
        node = If(cond, tuple(body), tuple(else_branch), span=self.span(start, pairs))
        return node, pairs

    def parse_for(self, pairs: TokenSlice) -> ParseResult[For]:
        start = pairs
        _, pairs = expect_token(pairs, Token(FOR))
        pairs = expect_symbol(pairs, '(')
        var, pairs = self.parse_ident(pairs)
        _, pairs = expect_token(pairs, Token(IN))
        iterable, pairs = self.parse_expr(pairs)
        pairs = expect_symbol(pairs, ')')
        body, pairs = self.expect_body(pairs)
        return For(var.name, iterable, tuple(body), span=self.span(start, pairs)), pairs

    def parse_while(self, pairs: TokenSlice) -> ParseResult[While]:
        start = pairs
        _, pairs = expect_token(pairs, Token(WHILE))
        pairs = expect_symbol(pairs, '(')
        cond, pairs = self.parse_expr(pairs)
        pairs = expect_symbol(pairs, ')')
        body, pairs = self.expect_body(pairs)
        return While(cond, tuple(body), span=self.span(start, pairs)), pairs

    def parse_return(self, pairs: TokenSlice) -> ParseResult[Return]:
        start = pairs
        _, pairs = expect_token(pairs, Token(RETURN))
        try:
            expr, pairs = self.parse_expr(pairs)
        except ParseError:
            expr = None
        return Return(expr, span=self.span(start, pairs)), pairs

    @memoized
    def parse_math_expr(self, pairs: TokenSlice) -> ParseResult[Expr]:
        return self.first_of(pairs, (
            self.parse_neg,
            self.parse_bool_neg,
            self.binary(Token(RANGE_OP), Range),
            self.binary(Token.symbol('-'), Sub),
            self.binary(Token.symbol('+'), Add),
            self.binary(Token.symbol('*'), Mul),
            self.binary(Token.symbol('/'), Div),
            self.parse_parens,
        ), 'MathExpr')

    @memoized
    def parse_comparison_expr(self, pairs: TokenSlice) -> ParseResult[Expr]:
        return self.first_of(pairs, (
            self.binary(Token(AND_OP), And),
            self.binary(Token(OR_OP), Or),
            self.binary(Token.symbol('<'), LessThan),
            self.binary(Token.symbol('>'), MoreThan),
        ), 'ComparisonExpr')

    def parse_neg(self, pairs: TokenSlice) -> ParseResult[Neg]:
        start = pairs
        pairs = expect_symbol(pairs, '-')
        expr, pairs = self.parse_expr(pairs)
        return Neg(expr, span=self.span(start, pairs)), pairs

    def parse_bool_neg(self, pairs: TokenSlice) -> ParseResult[BoolNeg]:
        start = pairs
        pairs = expect_symbol(pairs, '!')
        expr, pairs = self.parse_expr(pairs)
        return BoolNeg(expr, span=self.span(start, pairs)), pairs

    def binary(self, operator: Token, node_type) -> Callable[[TokenSlice], ParseResult[Expr]]:
        """Rule that parses ``left <operator> right`` into ``node_type``."""

        def parse_binary(pairs: TokenSlice) -> ParseResult[Expr]:
            index = self.parens.toplevel_index_of(pairs, operator)
            if index is None:
                raise UnexpectedEndOfInput()
            left_pairs, rest = pairs.split_at(index)
            left, leftover = self.parse_expr(left_pairs)
            if len(leftover):
                raise WrongExprType(leftover.first(), node_type.__name__)
            right, rest = self.parse_expr(rest.advance())
            return node_type(left, right, span=self.span(pairs, rest)), rest

        return parse_binary

    def parse_parens(self, pairs: TokenSlice) -> ParseResult[Parens]:
        start = pairs
        pairs = expect_symbol(pairs, '(')
        matching_index = self.parens.closing(pairs)
        if matching_index is None:
            raise UnexpectedEndOfInput()
        enclosed, pairs = pairs.split_at(matching_index)
        expr, leftover = self.parse_expr(enclosed)
        if len(leftover):
            raise WrongExprType(leftover.first(), 'Parens')
        pairs = expect_symbol(pairs, ')')
        return Parens(expr, span=self.span(start, pairs)), pairs

    @memoized
    def parse_short_expr(self, pairs: TokenSlice) -> ParseResult[Expr]:
        pair = pairs.first()
        kind = pair.token.kind
        if kind in (CHAR, STR, INT, BOOL):
            return self.parse_literal(pairs)
        if kind == IDENT:
            try:
                return self.parse_get_by_index(pairs)
            except ParseError:
                return self.parse_ident(pairs)
        raise WrongExprType(pair, 'ShortExpr')

    def parse_literal(self, pairs: TokenSlice) -> ParseResult[Node]:
        pair = pairs.first()
        token = pair.token
        if token.kind == INT:
            node = IntLiteral(token.value, span=pair.span)
        elif token.kind == BOOL:
            node = BoolLiteral(token.value, span=pair.span)
        elif token.kind == CHAR:
            node = CharLiteral(token.value, span=pair.span)
        elif token.kind == STR:
            node = StrLiteral(token.value, span=pair.span)
        else:
            raise WrongExprType(pair, 'Literal')
        return node, pairs.advance()

    def parse_ident(self, pairs: TokenSlice) -> ParseResult[Ident]:
        pair, pairs = expect_token(pairs, Token(IDENT))
        return Ident(pair.text, span=pair.span), pairs

    def parse_get_by_index(self, pairs: TokenSlice) -> ParseResult[GetByIndex]:
        start = pairs
        ident, pairs = self.parse_ident(pairs)
        pairs = expect_symbol(pairs, '[')
        index, pairs = self.parse_expr(pairs)
        pairs = expect_symbol(pairs, ']')
        return GetByIndex(ident, index, span=self.span(start, pairs)), pairs


def parse(pairs: Sequence[Pair]) -> Tuple[Program, List[Pair]]:
    """Parse a whole token sequence; returns the program and leftover tokens."""
    parser = Parser(pairs)
    program, rest = parser.parse_program(parser.slice())
    return program, rest.to_list()


def parse_program(source: str) -> Program:
    program, leftover = parse(list(tokenize(source)))
    if leftover:
        raise NotFullyParsed(leftover[0])
    return program
