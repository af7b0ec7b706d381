import builtins

import pytest

from kotlet.errors import CheckFailed, KotletRuntimeError, ParseError
from kotlet.interpreter import Interpreter, compile_module, run_program
from kotlet.parser import parse_program
from kotlet.std.io import BasicIO
from kotlet.types import UNIT


def in_main(*lines):
    body = ''.join(f'    {line}\n' for line in lines)
    return f'fun main() {{\n{body}}}\n'


def run(source, capsys):
    run_program(source)
    return capsys.readouterr().out


def test_arrays_are_shared(capsys):
    source = in_main(
        'var a = arrayOf(1, 2, 3)',
        'var b = a',
        'b[0] = 99',
        'println(a[0])',
    )
    assert run(source, capsys) == '99\n'


def test_array_argument_is_shared(capsys):
    source = (
        'fun fill(arr: Array<Int>) {\n'
        '    arr[1] = 7\n'
        '}\n'
        '\n' + in_main('val a = arrayOf(0, 0)', 'fill(a)', 'println(a[1])')
    )
    assert run(source, capsys) == '7\n'


def test_strings_are_values(capsys):
    source = in_main(
        'var s = "ab"',
        'var t = s',
        "t[0] = 'x'",
        'println(s)',
        'println(t)',
    )
    assert run(source, capsys) == 'ab\nxb\n'


def test_int_wraps_around(capsys):
    source = in_main(
        'val big = 2147483647',
        'val min = big + 1',
        'println(min)',
        'println(big * 2)',
        'println(-min)',
        'println(min - 1)',
    )
    assert run(source, capsys) == '-2147483648\n-2\n-2147483648\n2147483647\n'


def test_return_from_nested_block(capsys):
    source = (
        'fun first(): Int {\n'
        '    if (true) {\n'
        '        return 1\n'
        '    }\n'
        '    return 2\n'
        '}\n'
        '\n' + in_main('println(first())')
    )
    assert run(source, capsys) == '1\n'


def test_return_stops_loop(capsys):
    source = (
        'fun find(arr: Array<Int>): Int {\n'
        '    for (x in arr) {\n'
        '        print(x)\n'
        '        if (x > 2) {\n'
        '            return x\n'
        '        }\n'
        '    }\n'
        '    return -1\n'
        '}\n'
        '\n' + in_main('println(find(arrayOf(1, 3, 5)))', 'println(find(arrayOf(0)))')
    )
    assert run(source, capsys) == '133\n0-1\n'


def test_bare_return_ends_main(capsys):
    source = in_main('println("a")', 'return', 'println("b")')
    assert run(source, capsys) == 'a\n'


def test_boolean_operators_short_circuit(capsys):
    source = (
        'fun loud(): Boolean {\n'
        '    println("called")\n'
        '    return true\n'
        '}\n'
        '\n' + in_main(
            'val a = false && loud()',
            'val b = true || loud()',
            'println(a)',
            'println(b)',
            'val c = true && loud()',
            'println(c)',
        )
    )
    assert run(source, capsys) == 'false\ntrue\ncalled\ntrue\n'


@pytest.mark.parametrize('index', ['3', '5', '-1'])
def test_index_out_of_range(index, capsys):
    source = in_main('val a = arrayOf(1, 2, 3)', f'println(a[{index}])', 'println("after")')
    with pytest.raises(KotletRuntimeError, match='Index out of range'):
        run_program(source)
    assert 'after' not in capsys.readouterr().out


def test_assign_out_of_range():
    source = in_main('val s = "ab"', "s[2] = 'c'")
    with pytest.raises(KotletRuntimeError, match='Index out of range'):
        run_program(source)


def test_division_truncates_toward_zero(capsys):
    source = in_main('val a = -7', 'println(7 / 2)', 'println(a / 2)', 'println(7 / a)')
    assert run(source, capsys) == '3\n-3\n-1\n'


def test_division_by_zero():
    source = in_main('val z = 0', 'println(1 / z)')
    with pytest.raises(KotletRuntimeError, match='Division by zero'):
        run_program(source)


def test_for_iterates_over_snapshot(capsys):
    source = in_main(
        'val a = arrayOf(1, 2, 3)',
        'for (x in a) {',
        '    a[2] = 10',
        '    print(x)',
        '}',
        'println()',
        'println(a[2])',
    )
    assert run(source, capsys) == '123\n10\n'


def test_for_over_char_range(capsys):
    source = in_main("for (c in 'a'..'e') {", '    print(c)', '}')
    assert run(source, capsys) == 'abcde'


def test_empty_range_does_not_run(capsys):
    source = in_main('for (i in 3..1) {', '    print(i)', '}', 'println("done")')
    assert run(source, capsys) == 'done\n'


def test_while_gets_fresh_scope_each_iteration(capsys):
    source = in_main(
        'var i = 0',
        'while (i < 3) {',
        '    val sq = i * i',
        '    print(sq)',
        '    i = i + 1',
        '}',
        'println()',
    )
    assert run(source, capsys) == '014\n'


def test_scopes(capsys):
    source = in_main(
        'var total = 0',
        'val x = 1',
        'for (i in 1..3) {',
        '    total = total + i',
        '}',
        'if (true) {',
        '    val x = 2',
        '    println(x)',
        '}',
        'println(x)',
        'println(total)',
    )
    assert run(source, capsys) == '2\n1\n6\n'


def test_concatenation_formats_values(capsys):
    source = in_main('println("flag: " + true + ", char: " + \'c\')')
    assert run(source, capsys) == 'flag: true, char: c\n'


def test_comparisons(capsys):
    source = in_main('println("apple" < "banana")', "println('b' > 'a')", 'println(2 > 3)')
    assert run(source, capsys) == 'true\ntrue\nfalse\n'


def test_print_joins_arguments(capsys):
    source = in_main('print("a", 1, true)', 'println()')
    assert run(source, capsys) == 'a1true\n'


def test_readln(monkeypatch, capsys):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': 'Kotlet')
    assert run(in_main('println("Hello, " + readln())'), capsys) == 'Hello, Kotlet\n'


def test_readln_int(monkeypatch, capsys):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': ' 42 ')
    assert run(in_main('println(readlnInt() + 1)'), capsys) == '43\n'


@pytest.mark.parametrize('line', ['abc', '4.5', '2147483648', ''])
def test_readln_int_rejects_bad_input(line, monkeypatch):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': line)
    with pytest.raises(KotletRuntimeError, match='Failed to parse Int from input'):
        run_program(in_main('val n = readlnInt()'))


def test_readln_boolean(monkeypatch, capsys):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': 'true')
    assert run(in_main('println(!readlnBoolean())'), capsys) == 'false\n'
    monkeypatch.setattr(builtins, 'input', lambda prompt='': 'yes')
    with pytest.raises(KotletRuntimeError, match='Failed to parse Boolean from input'):
        run_program(in_main('val b = readlnBoolean()'))


def test_read_past_end_of_input(monkeypatch):
    def no_more_input(prompt=''):
        raise EOFError

    monkeypatch.setattr(builtins, 'input', no_more_input)
    with pytest.raises(KotletRuntimeError, match='Failed to read line'):
        run_program(in_main('val s = readln()'))


def test_custom_io():
    class RecordingIO(BasicIO):
        def __init__(self):
            self.written = []

        def write(self, text):
            self.written.append(text)

        def read_line(self):
            return '3'

    io = RecordingIO()
    run_program(in_main('val n = readlnInt()', 'print(n * n)', 'println("!")'), io=io)
    assert io.written == ['9', '!\n']


def test_type_errors_stop_before_running(capsys):
    with pytest.raises(CheckFailed) as info:
        run_program(in_main('println("never")', 'val x = 1 + true'))
    assert [d.message for d in info.value.diagnostics] == ['wrong operands: Int and Boolean']
    assert capsys.readouterr().out == ''


def test_syntax_errors_propagate():
    with pytest.raises(ParseError):
        run_program('fun main() {\n')


def test_run_returns_main_result(capsys):
    program = parse_program(in_main('println("hi")'))
    assert Interpreter(program).run() is UNIT
    assert capsys.readouterr().out == 'hi\n'


def test_debug_trace(tmp_path, capsys):
    debug_file = tmp_path / 'debug.txt'
    run_program(in_main('val x = 1', 'println(x)'), debug_level=2, debug_file=str(debug_file))
    trace = debug_file.read_text(encoding='utf-8').splitlines()
    assert trace[0].startswith('tokenize:')
    assert 'run: main' in trace
    assert 'call main()' in trace
    assert 'declare x: Int = 1' in trace
    assert capsys.readouterr().out == '1\n'


def test_no_debug_file_by_default(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    run_program(in_main('println(1)'))
    assert not (tmp_path / 'debug.txt').exists()


def test_compile_module(capsys):
    compile_module('examples/fibonacci.kt')
    assert capsys.readouterr().out == '0 1 1 2 3 5 8 13 21 34 \n'


def test_else_branch_expression(capsys):
    source = in_main(
        'var x = 0',
        'if (x > 0) {',
        '    println("positive")',
        '} else x = x - 5',
        'println(x)',
        'if (false) {',
        '} else x + 1',
        'println(x)',
    )
    assert run(source, capsys) == '-5\n-5\n'
