from pathlib import Path

import pytest

from kotlet.lexer import (
    BOOL, CHAR, FUN, IDENT, IN, INT, NEWLINE, RANGE_OP, STR, SYMBOL, UNEXPECTED, AND_OP,
    OR_OP, Span, Token, tokenize,
)

EXAMPLES = sorted(Path('examples').glob('*.kt'))


def kinds(source):
    return [p.token.value if p.token.kind == SYMBOL else p.token.kind for p in tokenize(source)]


def test_hello_world_tokens():
    source = """
fun main() {
    println("Hello, World!")
}
"""
    assert kinds(source) == [
        NEWLINE, FUN, IDENT, '(', ')', '{', NEWLINE,
        IDENT, '(', STR, ')', NEWLINE,
        '}', NEWLINE,
    ]


@pytest.mark.parametrize('path', EXAMPLES, ids=lambda p: p.name)
def test_examples_have_no_unexpected_tokens(path):
    source = path.read_text(encoding='utf-8')
    pairs = list(tokenize(source))
    assert pairs
    assert all(p.token.kind != UNEXPECTED for p in pairs)
    for p in pairs:
        assert source[p.span.lo:p.span.hi] == p.text


def test_int_literals():
    tokens = [p.token for p in tokenize('42 0xfd2 0b10011 2147483647')]
    assert tokens == [Token(INT, 42), Token(INT, 0xfd2), Token(INT, 19), Token(INT, 2147483647)]


def test_int_out_of_range_is_unexpected():
    pairs = list(tokenize('2147483648'))
    assert [p.token.kind for p in pairs] == [UNEXPECTED]


def test_number_glued_to_letters_is_unexpected():
    pairs = list(tokenize('12abz + 1'))
    assert pairs[0].token.kind == UNEXPECTED
    assert pairs[0].text == '12abz'
    assert kinds('12abz + 1')[1:] == ['+', INT]


def test_keywords_bools_and_idents():
    tokens = [p.token for p in tokenize('fun in index true trueValue false')]
    assert tokens == [
        Token(FUN), Token(IN), Token(IDENT, 'index'), Token(BOOL, True),
        Token(IDENT, 'trueValue'), Token(BOOL, False),
    ]


def test_operators():
    assert kinds('a && b || 0..9') == [IDENT, AND_OP, IDENT, OR_OP, INT, RANGE_OP, INT]
    assert kinds('x[i] = -y % 2') == [IDENT, '[', IDENT, ']', '=', '-', IDENT, '%', INT]


def test_string_escapes():
    pair = next(tokenize(r'"a\tb\n\"q\" \$x \\"'))
    assert pair.token == Token(STR, 'a\tb\n"q" $x \\')


def test_string_with_bad_escape_is_unexpected():
    pairs = list(tokenize(r'"bad \l escape" x'))
    assert pairs[0].token.kind == UNEXPECTED
    assert pairs[0].text == r'"bad \l escape"'
    assert pairs[1].token == Token(IDENT, 'x')


def test_unterminated_string_runs_to_end():
    pairs = list(tokenize('"never closed\nfun'))
    assert len(pairs) == 1
    assert pairs[0].token.kind == UNEXPECTED


def test_char_literals():
    tokens = [p.token for p in tokenize(r"'a' '\t' '\''")]
    assert tokens == [Token(CHAR, 'a'), Token(CHAR, '\t'), Token(CHAR, "'")]
    assert kinds("'ab'") == [UNEXPECTED]


def test_unexpected_run_is_one_token():
    pairs = list(tokenize('x ## y'))
    assert [p.token.kind for p in pairs] == [IDENT, UNEXPECTED, IDENT]
    assert pairs[1].span == Span(2, 4)


def test_comments():
    assert kinds('a /* block\ncomment */ b') == [IDENT, IDENT]
    # a line comment ends with the newline it consumes
    assert kinds('a // note\nb') == [IDENT, NEWLINE, IDENT]
    assert kinds('a // trailing') == [IDENT]
    assert kinds('a /* open') == [IDENT, UNEXPECTED]


def test_crlf_is_one_newline():
    pairs = list(tokenize('a\r\nb'))
    assert [p.token.kind for p in pairs] == [IDENT, NEWLINE, IDENT]
    assert pairs[1].span == Span(1, 3)


def test_spans_skip_whitespace():
    pairs = list(tokenize('val  x = 1'))
    assert [p.span for p in pairs] == [Span(0, 3), Span(5, 6), Span(7, 8), Span(9, 10)]
