"""Arithmetic expression parser.

Turns the text of ``$(( ... ))`` / ``(( ... ))`` / array subscripts into
Arith* nodes. Precedence, lowest first::

    ,   = op=   ?:   ||   &&   |   ^   &   == !=   < > <= >=
    << >>   + -   * / %   ** (right)   unary ! ~ - + ++ --   postfix ++ --
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from ..ast.types import (
    ArithArrayElement,
    ArithAssignment,
    ArithBinary,
    ArithExpr,
    ArithGroup,
    ArithNumber,
    ArithParameter,
    ArithTernary,
    ArithUnary,
    ArithVariable,
)
from ..interpreter.errors import ArithmeticExpressionError
from .words import find_closing

_OPERATORS = (
    "<<=", ">>=",
    "**", "++", "--", "<<", ">>", "<=", ">=", "==", "!=", "&&", "||",
    "+=", "-=", "*=", "/=", "%=", "&=", "^=", "|=",
    "+", "-", "*", "/", "%", "<", ">", "=", "!", "~", "&", "^", "|",
    "?", ":", ",", "(", ")",
)

ASSIGNMENT_OPERATORS = frozenset(
    ("=", "+=", "-=", "*=", "/=", "%=", "<<=", ">>=", "&=", "^=", "|=")
)

# Binary levels from loosest to tightest, below ternary and above unary.
_BINARY_LEVELS = (
    ("||",),
    ("&&",),
    ("|",),
    ("^",),
    ("&",),
    ("==", "!="),
    ("<", ">", "<=", ">="),
    ("<<", ">>"),
    ("+", "-"),
    ("*", "/", "%"),
)

# Combined depth of nested groups, unary operators and ternaries.
MAX_NESTING = 64


@dataclass(frozen=True)
class Token:
    kind: str  # NUMBER, NAME, PARAM, OP, EOF
    text: str
    pos: int
    subscript: Optional[str] = None


def parse_number(text: str, source: str = "") -> int:
    """Parse an arithmetic constant: decimal, 0x hex, 0 octal or base#digits."""
    source = source or text
    if "#" in text:
        base_text, digits = text.split("#", 1)
        try:
            base = int(base_text, 10)
        except ValueError:
            raise ArithmeticExpressionError(source, "invalid number") from None
        if not 2 <= base <= 64:
            raise ArithmeticExpressionError(source, "invalid arithmetic base")
        return _parse_base_n(digits, base, source)
    try:
        if text[:2] in ("0x", "0X"):
            return int(text[2:], 16)
        if len(text) > 1 and text.startswith("0"):
            return int(text[1:], 8)
        return int(text, 10)
    except ValueError:
        raise ArithmeticExpressionError(
            source, f'value too great for base (error token is "{text}")'
        ) from None


def _parse_base_n(digits: str, base: int, source: str) -> int:
    """Digits 0-9, a-z, A-Z, @, _ (letters are case-insensitive up to base 36)."""
    if not digits:
        raise ArithmeticExpressionError(source, "invalid number")
    result = 0
    for char in digits:
        if char.isdigit():
            digit = int(char)
        elif "a" <= char <= "z":
            digit = ord(char) - ord("a") + 10
        elif "A" <= char <= "Z":
            if base <= 36:
                digit = ord(char.lower()) - ord("a") + 10
            else:
                digit = ord(char) - ord("A") + 36
        elif char == "@":
            digit = 62
        elif char == "_":
            digit = 63
        else:
            digit = base
        if digit >= base:
            raise ArithmeticExpressionError(
                source, f'value too great for base (error token is "{digits}")'
            )
        result = result * base + digit
    return result


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c in " \t\n":
            i += 1
            continue
        if c.isdigit():
            start = i
            while i < n and (text[i].isalnum() or text[i] in "#@_"):
                i += 1
            if i < n and text[i] == ".":
                raise ArithmeticExpressionError(
                    text,
                    f'syntax error: invalid arithmetic operator (error token is "{text[i:]}")',
                )
            tokens.append(Token("NUMBER", text[start:i], start))
            continue
        if c.isalpha() or c == "_":
            start = i
            while i < n and (text[i].isalnum() or text[i] == "_"):
                i += 1
            name = text[start:i]
            subscript = None
            if i < n and text[i] == "[":
                close = find_closing(text, i + 1, "[", "]")
                if close == -1:
                    raise ArithmeticExpressionError(text, "bad array subscript")
                subscript = text[i + 1:close]
                i = close + 1
            tokens.append(Token("NAME", name, start, subscript))
            continue
        if c == "$":
            start = i
            if text.startswith("$((", i):
                close = find_closing(text, i + 3, "(", ")")
                if close == -1 or text[close + 1:close + 2] != ")":
                    raise ArithmeticExpressionError(text, "unterminated arithmetic expansion")
                i = close + 2
            elif text.startswith("${", i):
                close = find_closing(text, i + 2, "{", "}")
                if close == -1:
                    raise ArithmeticExpressionError(text, "bad substitution")
                i = close + 1
            else:
                i += 1
                while i < n and (text[i].isalnum() or text[i] == "_"):
                    i += 1
                if i == start + 1 and i < n and text[i] in "#@*?":
                    i += 1
            tokens.append(Token("PARAM", text[start:i], start))
            continue
        for op in _OPERATORS:
            if text.startswith(op, i):
                tokens.append(Token("OP", op, i))
                i += len(op)
                break
        else:
            raise ArithmeticExpressionError(
                text, f'syntax error: invalid arithmetic operator (error token is "{text[i:]}")'
            )
    tokens.append(Token("EOF", "", n))
    return tokens


class ArithmeticParser:
    """Recursive-descent parser over the token list of one expression."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0
        self.depth = 0

    def parse(self) -> ArithExpr:
        if self._peek().kind == "EOF":
            return ArithNumber(0)
        node = self._parse_comma()
        if self._peek().kind != "EOF":
            self._error("syntax error in expression")
        return node

    # -------------------------------------------------------------------------

    def _peek(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != "EOF":
            self.pos += 1
        return token

    def _at_op(self, *ops: str) -> bool:
        token = self._peek()
        return token.kind == "OP" and token.text in ops

    def _expect(self, op: str) -> None:
        if not self._at_op(op):
            self._error(f"`{op}' expected")
        self._advance()

    def _descend(self) -> None:
        self.depth += 1
        if self.depth > MAX_NESTING:
            self._error("expression recursion level exceeded")

    def _error(self, reason: str) -> None:
        token = self._peek()
        rest = self.text[token.pos:].strip()
        if rest:
            reason = f'{reason} (error token is "{rest}")'
        raise ArithmeticExpressionError(self.text, reason)

    # -------------------------------------------------------------------------

    def _parse_comma(self) -> ArithExpr:
        node = self._parse_assignment()
        while self._at_op(","):
            self._advance()
            node = ArithBinary(",", node, self._parse_assignment())
        return node

    def _parse_assignment(self) -> ArithExpr:
        node = self._parse_ternary()
        token = self._peek()
        if token.kind == "OP" and token.text in ASSIGNMENT_OPERATORS:
            if not isinstance(node, (ArithVariable, ArithArrayElement)):
                self._error("attempted assignment to non-variable")
            self._advance()
            return ArithAssignment(token.text, node, self._parse_assignment())
        return node

    def _parse_ternary(self) -> ArithExpr:
        self._descend()
        try:
            condition = self._parse_binary(0)
            if not self._at_op("?"):
                return condition
            self._advance()
            consequent = self._parse_assignment()
            self._expect(":")
            alternate = self._parse_ternary()
            return ArithTernary(condition, consequent, alternate)
        finally:
            self.depth -= 1

    def _parse_binary(self, level: int) -> ArithExpr:
        if level == len(_BINARY_LEVELS):
            return self._parse_power()
        ops = _BINARY_LEVELS[level]
        node = self._parse_binary(level + 1)
        while self._at_op(*ops):
            op = self._advance().text
            node = ArithBinary(op, node, self._parse_binary(level + 1))
        return node

    def _parse_power(self) -> ArithExpr:
        base = self._parse_unary()
        if self._at_op("**"):
            self._advance()
            return ArithBinary("**", base, self._parse_power())
        return base

    def _parse_unary(self) -> ArithExpr:
        self._descend()
        try:
            if self._at_op("++", "--"):
                op = self._advance().text
                operand = self._parse_unary()
                if not isinstance(operand, (ArithVariable, ArithArrayElement)):
                    self._error("syntax error: operand expected")
                return ArithUnary(op, operand, prefix=True)
            if self._at_op("-", "+", "!", "~"):
                op = self._advance().text
                return ArithUnary(op, self._parse_unary())
            return self._parse_postfix()
        finally:
            self.depth -= 1

    def _parse_postfix(self) -> ArithExpr:
        node = self._parse_primary()
        if self._at_op("++", "--") and isinstance(node, (ArithVariable, ArithArrayElement)):
            op = self._advance().text
            return ArithUnary(op, node, prefix=False)
        return node

    def _parse_primary(self) -> ArithExpr:
        token = self._peek()
        if token.kind == "NUMBER":
            self._advance()
            return ArithNumber(parse_number(token.text, self.text))
        if token.kind == "NAME":
            self._advance()
            if token.subscript is None:
                return ArithVariable(token.text)
            return ArithArrayElement(token.text, _parse_index(token.subscript), token.subscript)
        if token.kind == "PARAM":
            self._advance()
            return ArithParameter(token.text)
        if self._at_op("("):
            self._advance()
            inner = self._parse_comma()
            self._expect(")")
            return ArithGroup(inner)
        self._error("syntax error: operand expected")
        raise AssertionError("unreachable")


def _parse_index(subscript: str) -> Optional[ArithExpr]:
    """Parse an element subscript; None when it is not arithmetic (assoc keys)."""
    try:
        return parse_arithmetic(subscript)
    except ArithmeticExpressionError:
        return None


@lru_cache(maxsize=512)
def parse_arithmetic(text: str) -> ArithExpr:
    """Parse arithmetic expression text into a node tree."""
    return ArithmeticParser(text).parse()
