from kotlet.checker import check_program
from kotlet.diagnostics import render_diagnostic
from kotlet.lexer import Span
from kotlet.parser import parse_program


def test_underlines_span_on_its_line():
    source = 'fun main() {\n    foo()\n}\n'
    text = render_diagnostic(source, Span(17, 22), 'function foo not found')
    assert text.splitlines() == [
        'error: function foo not found',
        ' --> 2:5',
        '2 |     foo()',
        '  |     ^~~~~ function foo not found',
    ]


def test_whole_program_error_has_no_location():
    assert render_diagnostic('fun f() {\n}\n', Span(0, 0), 'main function not found') == \
        'error: main function not found'
    assert render_diagnostic('', None, 'oops') == 'error: oops'


def test_end_of_input_gets_single_caret():
    source = 'fun main() {'
    text = render_diagnostic(source, Span(len(source), len(source)), 'Unexpected end of input')
    assert text.splitlines()[1:] == [
        ' --> 1:13',
        '1 | fun main() {',
        '  |             ^ Unexpected end of input',
    ]


def test_multiline_span_is_cut_at_line_end():
    source = 'fun main() {\n    if (1) {\n    }\n}\n'
    [diag] = check_program(parse_program(source))
    text = render_diagnostic(source, diag.span, diag.message)
    assert text.splitlines()[2:] == [
        '2 |     if (1) {',
        '  |     ^~~~~~~~ condition must have boolean type',
    ]


def test_wide_gutter_for_long_files():
    source = '\n' * 11 + 'x\n'
    text = render_diagnostic(source, Span(11, 12), 'bad')
    assert text.splitlines()[1:] == [
        '  --> 12:1',
        '12 | x',
        '   | ^ bad',
    ]
