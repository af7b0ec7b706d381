# Kotlet language package
# This package provides a parser, type checker and interpreter for Kotlet,
# a small statically typed subset of Kotlin.
from .checker import Diagnostic, check_program
from .errors import CheckFailed, KotletError, KotletRuntimeError, ParseError
from .interpreter import Interpreter, compile_module, run_program
from .lexer import tokenize
from .parser import parse, parse_program

__all__ = [
    'tokenize',
    'parse',
    'parse_program',
    'check_program',
    'Diagnostic',
    'run_program',
    'compile_module',
    'Interpreter',
    'KotletError',
    'ParseError',
    'CheckFailed',
    'KotletRuntimeError',
]
