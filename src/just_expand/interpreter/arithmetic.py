"""Arithmetic evaluation.

Evaluates Arith* trees on signed 64-bit integers with C semantics:
truncating division, remainder taking the dividend's sign, wrap-around
on overflow. Identifiers are read through the variable store; a value
that is not a plain number is itself evaluated as an expression, up to
``ExecutionLimits.max_arithmetic_depth`` levels deep.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Union

from ..ast.types import ArithExpr
from ..parser.arithmetic import parse_arithmetic, parse_number
from .errors import ArithmeticExpressionError, DivisionByZeroError

if TYPE_CHECKING:
    from .types import InterpreterContext

_INT64_MODULUS = 1 << 64
_INT64_MIN = -(1 << 63)

_NUMBER_RE = re.compile(r"^[+-]?\s*[0-9][0-9a-zA-Z#@_]*$")


def wrap_int64(value: int) -> int:
    """Wrap an unbounded int into the signed 64-bit range."""
    return ((value - _INT64_MIN) % _INT64_MODULUS) + _INT64_MIN


def _truncating_div(left: int, right: int) -> int:
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def evaluate_arithmetic(ctx: "InterpreterContext", expr: Union[str, ArithExpr]) -> int:
    """Evaluate expression text (or a parsed tree) to an integer."""
    if isinstance(expr, str):
        source = expr
        node = parse_arithmetic(expr)
    else:
        source = ""
        node = expr
    return _evaluate(ctx, node, source)


def evaluate_condition(ctx: "InterpreterContext", text: str) -> tuple[int, bool]:
    """Evaluate ``(( text ))``: the value and whether it counts as true."""
    value = evaluate_arithmetic(ctx, text)
    return value, value != 0


def resolve_arith_value(ctx: "InterpreterContext", value: str | None, source: str = "") -> int:
    """Integer meaning of a variable's string value.

    Plain numbers are parsed directly. Anything else is evaluated as an
    expression in its own right (so ``x=y; y=3`` gives 3), and text that
    does not parse counts as 0.
    """
    if value is None:
        return 0
    value = value.strip()
    if not value:
        return 0
    if _NUMBER_RE.match(value):
        sign = -1 if value.startswith("-") else 1
        return wrap_int64(sign * parse_number(value.lstrip("+-").strip(), source or value))

    state = ctx.state
    state.arith_depth += 1
    try:
        if state.arith_depth > ctx.limits.max_arithmetic_depth:
            raise ArithmeticExpressionError(
                source or value, "expression recursion level exceeded"
            )
        try:
            node = parse_arithmetic(value)
        except ArithmeticExpressionError:
            return 0
        return _evaluate(ctx, node, source or value)
    finally:
        state.arith_depth -= 1


def _read_variable(ctx: "InterpreterContext", name: str, source: str) -> int:
    from .expansion import read_scalar

    return resolve_arith_value(ctx, read_scalar(ctx, name), source)


def _read_element(ctx: "InterpreterContext", expr, source: str) -> int:
    from .arrays import get_element

    key = _element_key(ctx, expr, source)
    return resolve_arith_value(ctx, get_element(ctx, expr.array, key), source)


def _element_key(ctx: "InterpreterContext", expr, source: str) -> Union[int, str]:
    """Integer index for indexed arrays, raw key text for associative ones."""
    from .arrays import is_associative
    from ..parser.words import unquote

    if is_associative(ctx, expr.array):
        return unquote(expr.raw_index)
    if expr.index is None:
        raise ArithmeticExpressionError(source or expr.raw_index, "bad array subscript")
    return _evaluate(ctx, expr.index, source)


def _write_target(ctx: "InterpreterContext", target, value: int, source: str) -> None:
    from .arrays import set_element

    if target.type == "ArithArrayElement":
        set_element(ctx, target.array, _element_key(ctx, target, source), str(value))
    else:
        ctx.state.env.assign(target.name, str(value))


def _read_target(ctx: "InterpreterContext", target, source: str) -> int:
    if target.type == "ArithArrayElement":
        return _read_element(ctx, target, source)
    return _read_variable(ctx, target.name, source)


def _binary(op: str, left: int, right: int, source: str) -> int:
    if op == "+":
        return wrap_int64(left + right)
    elif op == "-":
        return wrap_int64(left - right)
    elif op == "*":
        return wrap_int64(left * right)
    elif op == "/":
        if right == 0:
            raise DivisionByZeroError(source)
        return wrap_int64(_truncating_div(left, right))
    elif op == "%":
        if right == 0:
            raise DivisionByZeroError(source)
        return wrap_int64(left - _truncating_div(left, right) * right)
    elif op == "**":
        if right < 0:
            raise ArithmeticExpressionError(source, "exponent less than 0")
        return wrap_int64(pow(left, right, _INT64_MODULUS))
    elif op == "<<":
        return wrap_int64(left << (right & 63))
    elif op == ">>":
        return left >> (right & 63)
    elif op == "&":
        return left & right
    elif op == "|":
        return left | right
    elif op == "^":
        return left ^ right
    elif op == "<":
        return 1 if left < right else 0
    elif op == ">":
        return 1 if left > right else 0
    elif op == "<=":
        return 1 if left <= right else 0
    elif op == ">=":
        return 1 if left >= right else 0
    elif op == "==":
        return 1 if left == right else 0
    elif op == "!=":
        return 1 if left != right else 0
    raise ArithmeticExpressionError(source, f"unknown operator {op}")


def _evaluate(ctx: "InterpreterContext", expr: ArithExpr, source: str) -> int:
    if expr.type == "ArithNumber":
        return wrap_int64(expr.value)

    elif expr.type == "ArithVariable":
        return _read_variable(ctx, expr.name, source)

    elif expr.type == "ArithArrayElement":
        return _read_element(ctx, expr, source)

    elif expr.type == "ArithParameter":
        text = expr.text
        if text.startswith("$((") and text.endswith("))"):
            return evaluate_arithmetic(ctx, text[3:-2])
        from .expansion import expand_word

        return resolve_arith_value(ctx, expand_word(ctx, text), source)

    elif expr.type == "ArithGroup":
        return _evaluate(ctx, expr.expression, source)

    elif expr.type == "ArithBinary":
        op = expr.operator
        # Short-circuit for && and ||
        if op == "&&":
            if not _evaluate(ctx, expr.left, source):
                return 0
            return 1 if _evaluate(ctx, expr.right, source) else 0
        elif op == "||":
            if _evaluate(ctx, expr.left, source):
                return 1
            return 1 if _evaluate(ctx, expr.right, source) else 0
        elif op == ",":
            _evaluate(ctx, expr.left, source)
            return _evaluate(ctx, expr.right, source)
        left = _evaluate(ctx, expr.left, source)
        right = _evaluate(ctx, expr.right, source)
        return _binary(op, left, right, source)

    elif expr.type == "ArithUnary":
        op = expr.operator
        if op in ("++", "--"):
            # Unset variables start at 0.
            current = _read_target(ctx, expr.operand, source)
            new_value = wrap_int64(current + 1 if op == "++" else current - 1)
            _write_target(ctx, expr.operand, new_value, source)
            return new_value if expr.prefix else current
        operand = _evaluate(ctx, expr.operand, source)
        if op == "-":
            return wrap_int64(-operand)
        elif op == "+":
            return operand
        elif op == "!":
            return 0 if operand else 1
        elif op == "~":
            return ~operand

    elif expr.type == "ArithTernary":
        if _evaluate(ctx, expr.condition, source):
            return _evaluate(ctx, expr.consequent, source)
        return _evaluate(ctx, expr.alternate, source)

    elif expr.type == "ArithAssignment":
        op = expr.operator
        rhs = _evaluate(ctx, expr.value, source)
        if op == "=":
            value = rhs
        else:
            current = _read_target(ctx, expr.target, source)
            value = _binary(op[:-1], current, rhs, source)
        _write_target(ctx, expr.target, value, source)
        return value

    raise ArithmeticExpressionError(source, f"cannot evaluate {expr.type}")
