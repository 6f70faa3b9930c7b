"""Parameter expansion.

``expand_parameter`` is the dispatcher: it resolves the parameter
(positional, special, scalar, element or all-elements form), then applies
the operation. Operators that act on strings apply per element for the
``[@]`` / ``[*]`` forms.

``expand_word`` expands the argument words of operators (defaults,
patterns, replacements) as well as subscripts: quotes, ``$name``,
``${...}`` and ``$((...))``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..ast.types import ParameterExpansionPart
from ..parser.parameter import parse_parameter_expansion
from ..parser.words import find_closing, split_subscript
from .arithmetic import evaluate_arithmetic
from .arrays import (
    all_keys,
    all_values,
    assign_variable,
    element_key,
    get_element,
    slice_values,
)
from .errors import (
    BadSubstitutionError,
    ExecutionLimitError,
    UnboundParameterError,
)
from .pattern import escape_glob, find_all, find_first, find_prefix, find_suffix, matches
from .types import is_valid_name

if TYPE_CHECKING:
    from .types import InterpreterContext

logger = logging.getLogger(__name__)

_DEFAULT_OPS = ("DefaultValue", "AssignDefault", "ErrorIfUnset", "UseAlternative")


# =============================================================================
# Reading parameters
# =============================================================================


def read_scalar(ctx: "InterpreterContext", name: str) -> Optional[str]:
    """Value of a plain name after reference resolution; None when unset."""
    return ctx.state.env.get(name)


def ifs_separator(ctx: "InterpreterContext") -> str:
    """First character of IFS, used to join ``$*`` and ``${a[*]}``."""
    ifs = ctx.state.env.get("IFS")
    if ifs is None:
        return " "
    return ifs[:1]


def _positional_name(name: str) -> bool:
    return name.isdigit() or name in ("@", "*", "#")


def _read_special(ctx: "InterpreterContext", name: str) -> Optional[str]:
    env = ctx.state.env
    if name == "0":
        return ctx.state.script_name
    if name.isdigit():
        return env.get_positional(int(name))
    if name == "#":
        return str(len(env.positional))
    return None


@dataclass
class _Resolved:
    """A parameter's value(s) before an operation is applied."""

    parameter: str
    value: Optional[str] = None
    values: Optional[list[str]] = None
    star: bool = False

    @property
    def is_list(self) -> bool:
        return self.values is not None

    @property
    def is_unset(self) -> bool:
        if self.is_list:
            return not self.values
        return self.value is None

    def is_null(self) -> bool:
        if self.is_list:
            return not "".join(self.values)
        return not self.value


def _resolve(ctx: "InterpreterContext", part: ParameterExpansionPart) -> _Resolved:
    name = part.name
    subscript = part.subscript
    env = ctx.state.env

    if part.indirect:
        binding = env.lookup(name) if subscript is None else None
        if binding is not None and binding.is_reference:
            # ${!ref} on a nameref names its target.
            return _Resolved(name, binding.value.target or None)
        reference = _resolve(ctx, ParameterExpansionPart(name=name, subscript=subscript))
        text = reference.value if not reference.is_list else " ".join(reference.values)
        if not text:
            return _Resolved(part.parameter, None)
        name, subscript = split_subscript(text)
        if not (is_valid_name(name) or _positional_name(name) or name == "0"):
            raise BadSubstitutionError(f"{text}: invalid variable name")

    parameter = name if subscript is None else f"{name}[{subscript}]"

    if name in ("@", "*"):
        return _Resolved(parameter, values=list(env.positional), star=name == "*")
    if name.isdigit() or name == "#":
        return _Resolved(parameter, _read_special(ctx, name))
    if not is_valid_name(name):
        return _Resolved(parameter, None)

    if subscript in ("@", "*"):
        return _Resolved(parameter, values=all_values(ctx, name), star=subscript == "*")
    if subscript is not None:
        return _Resolved(parameter, get_element(ctx, name, element_key(ctx, name, subscript)))
    return _Resolved(parameter, env.get(name))


# =============================================================================
# Dispatcher
# =============================================================================


def expand_parameter(ctx: "InterpreterContext", part: ParameterExpansionPart) -> list[str]:
    """Expand one parameter expansion to its word list.

    All-elements forms (``${a[@]}``, ``$@``) give one word per element;
    the ``[*]`` forms and every other expansion give exactly one word.
    """
    operation = part.operation
    op_type = operation.type if operation else None

    if op_type == "VarNamePrefix":
        names = [n for n in ctx.state.env.names() if n.startswith(part.name)]
        return _words(ctx, names, operation.star)

    if op_type == "ArrayKeys":
        return _words(ctx, all_keys(ctx, part.name), operation.star)

    resolved = _resolve(ctx, part)

    if op_type == "Length":
        if resolved.is_list:
            return [str(len(resolved.values))]
        _check_nounset(ctx, resolved)
        return [str(len(resolved.value or ""))]

    if op_type in _DEFAULT_OPS:
        return _apply_default(ctx, part, resolved)

    _check_nounset(ctx, resolved)

    if op_type == "Substring":
        return _apply_substring(ctx, part, resolved)

    if resolved.is_list:
        results = [_apply_string_op(ctx, part, v, resolved) for v in resolved.values]
        return _words(ctx, results, resolved.star)
    if operation is None:
        return [_limit(ctx, resolved.value or "")]
    if resolved.is_unset and op_type == "Transform" and operation.operator in "QA":
        return [""]
    return [_limit(ctx, _apply_string_op(ctx, part, resolved.value or "", resolved))]


def _check_nounset(ctx: "InterpreterContext", resolved: _Resolved) -> None:
    if resolved.is_list or not ctx.state.options.nounset:
        return
    if resolved.is_unset:
        raise UnboundParameterError(resolved.parameter, "unbound variable")


def _words(ctx: "InterpreterContext", values: list[str], star: bool) -> list[str]:
    if star:
        return [_limit(ctx, ifs_separator(ctx).join(values))]
    return [_limit(ctx, v) for v in values]


def _limit(ctx: "InterpreterContext", value: str) -> str:
    if len(value) > ctx.limits.max_string_length:
        raise ExecutionLimitError(
            f"expansion result too long ({len(value)} > {ctx.limits.max_string_length})",
            "string_length",
        )
    return value


def _current(ctx: "InterpreterContext", resolved: _Resolved) -> list[str]:
    if resolved.is_list:
        return _words(ctx, resolved.values, resolved.star)
    return [_limit(ctx, resolved.value or "")]


def _apply_default(
    ctx: "InterpreterContext", part: ParameterExpansionPart, resolved: _Resolved
) -> list[str]:
    operation = part.operation
    missing = resolved.is_unset or (operation.check_empty and resolved.is_null())

    if operation.type == "DefaultValue":
        if missing:
            return [_limit(ctx, expand_word(ctx, operation.word))]
        return _current(ctx, resolved)

    elif operation.type == "AssignDefault":
        if not missing:
            return _current(ctx, resolved)
        name, _ = split_subscript(resolved.parameter)
        if resolved.is_list or not is_valid_name(name):
            raise BadSubstitutionError(f"${resolved.parameter}: cannot assign in this way")
        value = expand_word(ctx, operation.word)
        assign_variable(ctx, resolved.parameter, value)
        logger.debug("assigned default to %s", resolved.parameter)
        return [_limit(ctx, value)]

    elif operation.type == "ErrorIfUnset":
        if missing:
            message = expand_word(ctx, operation.word) if operation.word else None
            raise UnboundParameterError(resolved.parameter, message)
        return _current(ctx, resolved)

    # UseAlternative
    if missing:
        return [""]
    return [_limit(ctx, expand_word(ctx, operation.word))]


def _apply_substring(
    ctx: "InterpreterContext", part: ParameterExpansionPart, resolved: _Resolved
) -> list[str]:
    operation = part.operation
    offset = evaluate_arithmetic(ctx, operation.offset)
    length = evaluate_arithmetic(ctx, operation.length) if operation.length is not None else None

    if resolved.is_list:
        if part.name in ("@", "*") and not part.indirect:
            if length is not None and length < 0:
                raise BadSubstitutionError(f"{length}: substring expression < 0")
            params = [ctx.state.script_name] + list(ctx.state.env.positional)
            if offset < 0:
                offset += len(params)
                if offset < 1:
                    return _words(ctx, [], resolved.star)
            selected = params[offset:] if length is None else params[offset:offset + length]
        else:
            name, _ = split_subscript(resolved.parameter)
            selected = slice_values(ctx, name, offset, length)
        return _words(ctx, selected, resolved.star)

    value = resolved.value or ""
    if offset < 0:
        offset = max(0, len(value) + offset)
    if length is None:
        return [value[offset:]]
    if length < 0:
        end = len(value) + length
        if offset <= len(value) and end < offset:
            raise BadSubstitutionError(f"{length}: substring expression < 0")
        return [value[offset:end]]
    return [value[offset:offset + length]]


def _apply_string_op(
    ctx: "InterpreterContext", part: ParameterExpansionPart, value: str, resolved: _Resolved
) -> str:
    operation = part.operation
    if operation is None:
        return value

    if operation.type == "PatternRemoval":
        pattern = expand_word(ctx, operation.pattern, pattern=True)
        if operation.side == "prefix":
            span = find_prefix(pattern, value, operation.greedy)
            return value[span.end:] if span else value
        span = find_suffix(pattern, value, operation.greedy)
        return value[:span.start] if span else value

    elif operation.type == "PatternReplacement":
        pattern = expand_word(ctx, operation.pattern, pattern=True)
        replacement = expand_word(ctx, operation.replacement)
        return replace_pattern(value, pattern, replacement, operation.all, operation.anchor)

    elif operation.type == "CaseModification":
        pattern = expand_word(ctx, operation.pattern, pattern=True) if operation.pattern else "?"
        convert = str.upper if operation.direction == "upper" else str.lower
        chars = list(value)
        for i, c in enumerate(chars if operation.all else chars[:1]):
            if matches(pattern, c):
                chars[i] = convert(c)
        return "".join(chars)

    elif operation.type == "Transform":
        return _transform(ctx, operation.operator, value, resolved)

    raise BadSubstitutionError(f"${{{part.parameter}}}: bad substitution")


def replace_pattern(
    value: str, pattern: str, replacement: str, replace_all: bool = False, anchor=None
) -> str:
    """Substitute replacement for pattern matches in value."""
    if not pattern:
        # Empty pattern with anchor: insert/append
        if anchor == "start":
            return replacement + value
        elif anchor == "end":
            return value + replacement
        return value

    if anchor == "start":
        span = find_prefix(pattern, value, greedy=True)
        return replacement + value[span.end:] if span else value
    elif anchor == "end":
        span = find_suffix(pattern, value, greedy=True)
        return value[:span.start] + replacement if span else value
    elif replace_all:
        spans = find_all(pattern, value)
    else:
        first = find_first(pattern, value)
        spans = [first] if first else []

    result = []
    pos = 0
    for span in spans:
        result.append(value[pos:span.start])
        result.append(replacement)
        pos = span.end
    result.append(value[pos:])
    return "".join(result)


def shell_quote(s: str) -> str:
    """Quote a string so the shell reads it back unchanged."""
    return "'" + s.replace("'", "'\\''") + "'"


def _transform(ctx: "InterpreterContext", op: str, value: str, resolved: _Resolved) -> str:
    if op == "Q":
        return shell_quote(value)
    elif op == "U":
        return value.upper()
    elif op == "L":
        return value.lower()
    elif op == "u":
        return value[:1].upper() + value[1:]

    name, _ = split_subscript(resolved.parameter)
    binding = ctx.state.env.get_binding(name) if is_valid_name(name) else None
    if op == "a":
        return binding.flags if binding is not None else ""
    # A: an assignment statement that recreates the value.
    if binding is None:
        return ""
    flags = binding.flags.replace("a", "").replace("A", "")
    statement = f"{name}={shell_quote(value)}"
    if flags:
        return f"declare -{flags} {statement}"
    return statement


# =============================================================================
# Words
# =============================================================================


def expand_word(ctx: "InterpreterContext", text: Optional[str], pattern: bool = False) -> str:
    """Expand an operator argument or subscript word to a single string.

    With ``pattern`` set, quoted text is glob-escaped so it only matches
    itself while unquoted text keeps its pattern meaning.
    """
    if not text:
        return ""
    result: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c == "'":
            end = text.find("'", i + 1)
            if end == -1:
                end = n
            literal = text[i + 1:end]
            result.append(escape_glob(literal) if pattern else literal)
            i = end + 1
        elif c == '"':
            end = _closing_quote(text, i + 1)
            inner = _expand_double_quoted(ctx, text[i + 1:end])
            result.append(escape_glob(inner) if pattern else inner)
            i = end + 1
        elif c == "\\" and i + 1 < n:
            result.append(text[i:i + 2] if pattern else text[i + 1])
            i += 2
        elif c == "$":
            expanded, i = _expand_dollar(ctx, text, i)
            result.append(expanded)
        else:
            result.append(c)
            i += 1
    return "".join(result)


def _closing_quote(text: str, start: int) -> int:
    i = start
    while i < len(text):
        if text[i] == "\\" and i + 1 < len(text):
            i += 2
            continue
        if text[i] == '"':
            return i
        i += 1
    return len(text)


def _expand_double_quoted(ctx: "InterpreterContext", text: str) -> str:
    result: list[str] = []
    i = 0
    while i < len(text):
        c = text[i]
        if c == "\\" and i + 1 < len(text) and text[i + 1] in '"\\$`':
            result.append(text[i + 1])
            i += 2
        elif c == "$":
            expanded, i = _expand_dollar(ctx, text, i)
            result.append(expanded)
        else:
            result.append(c)
            i += 1
    return "".join(result)


def _expand_dollar(ctx: "InterpreterContext", text: str, i: int) -> tuple[str, int]:
    """Expand the ``$`` form at text[i]; returns (expansion, next index)."""
    if text.startswith("$((", i):
        close = find_closing(text, i + 3, "(", ")")
        if close != -1 and text[close + 1:close + 2] == ")":
            return str(evaluate_arithmetic(ctx, text[i + 3:close])), close + 2
    if text.startswith("${", i):
        close = find_closing(text, i + 2, "{", "}")
        if close == -1:
            raise BadSubstitutionError(f"{text[i:]}: bad substitution")
        part = parse_parameter_expansion(text[i + 2:close])
        return " ".join(expand_parameter(ctx, part)), close + 1
    j = i + 1
    if j < len(text) and (text[j].isalpha() or text[j] == "_"):
        while j < len(text) and (text[j].isalnum() or text[j] == "_"):
            j += 1
    elif j < len(text) and (text[j].isdigit() or text[j] in "@*#"):
        j += 1
    else:
        return "$", i + 1
    part = ParameterExpansionPart(name=text[i + 1:j])
    return " ".join(expand_parameter(ctx, part)), j


def expand(ctx: "InterpreterContext", expression: str) -> list[str]:
    """Expand expression text to its words.

    A lone parameter expansion (``${...}``, ``$name``, optionally inside
    double quotes) yields its full word list; any other text yields one
    word.
    """
    text = expression
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1]
    if text.startswith("${"):
        close = find_closing(text, 2, "{", "}")
        if close == len(text) - 1:
            return expand_parameter(ctx, parse_parameter_expansion(text))
    elif text.startswith("$") and len(text) > 1:
        name = text[1:]
        if is_valid_name(name) or (len(name) == 1 and name in "@*#0123456789"):
            return expand_parameter(ctx, ParameterExpansionPart(name=name))
    return [expand_word(ctx, expression)]
