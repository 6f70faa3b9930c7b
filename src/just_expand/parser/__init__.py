"""Parsers for expansion text: ${...}, arithmetic, array literals."""

from .arithmetic import ArithmeticParser, parse_arithmetic, parse_number
from .parameter import parse_parameter_expansion
from .words import expand_braces, parse_array_literal, split_subscript, split_words, unquote

__all__ = [
    "ArithmeticParser",
    "expand_braces",
    "parse_arithmetic",
    "parse_array_literal",
    "parse_number",
    "parse_parameter_expansion",
    "split_subscript",
    "split_words",
    "unquote",
]
