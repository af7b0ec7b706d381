from kotlet.checker import check_program
from kotlet.interpreter import Interpreter
from kotlet.parser import parse_program


def test_program_2_arrays(capsys):
    with open('examples/arrays.kt', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    assert check_program(ast) == []
    interp = Interpreter(ast)
    interp.run()
    out = capsys.readouterr().out.strip().splitlines()
    assert out == [
        'array = [',
        '  1,',
        '  4,',
        '  5,',
        '  8,',
        ']',
        'sum of array = 18',
        'mul of array = 160',
    ]
