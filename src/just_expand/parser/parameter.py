"""Parser for ``${...}`` parameter expansion text.

Produces a ParameterExpansionPart whose operation words are kept raw;
the expansion engine expands them lazily, so ``${x:-$(( y++ ))}`` only
touches ``y`` when the default is actually used.
"""

from __future__ import annotations

import re
from typing import Optional

from ..ast.types import (
    ArrayKeysOp,
    AssignDefaultOp,
    CaseModificationOp,
    DefaultValueOp,
    ErrorIfUnsetOp,
    LengthOp,
    ParameterExpansionPart,
    ParameterOperation,
    PatternRemovalOp,
    PatternReplacementOp,
    SubstringOp,
    TransformOp,
    UseAlternativeOp,
    VarNamePrefixOp,
)
from ..interpreter.errors import BadSubstitutionError
from .words import find_closing

_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_DIGITS_RE = re.compile(r"[0-9]+")
_SPECIAL = "@*#?$!-"

# Transform operators understood after '@'.
TRANSFORM_OPERATORS = "QULuaA"


def _bad(content: str) -> BadSubstitutionError:
    return BadSubstitutionError(f"${{{content}}}: bad substitution")


def _find_unquoted(text: str, char: str, start: int = 0) -> int:
    """Index of char outside quotes, escapes and nested ${...}, or -1."""
    i = start
    quote: Optional[str] = None
    while i < len(text):
        c = text[i]
        if quote:
            if c == "\\" and quote == '"':
                i += 2
                continue
            if c == quote:
                quote = None
        elif c == "\\":
            i += 2
            continue
        elif c in "'\"":
            quote = c
        elif c == "$" and text.startswith("${", i):
            close = find_closing(text, i + 2, "{", "}")
            if close == -1:
                return -1
            i = close + 1
            continue
        elif c == "$" and text.startswith("$((", i):
            close = find_closing(text, i + 3, "(", ")")
            if close == -1:
                return -1
            i = close + 1
            continue
        elif c == char:
            return i
        i += 1
    return -1


def _split_substring(text: str) -> tuple[str, Optional[str]]:
    """Split ``offset[:length]`` at the first colon outside brackets and ?:."""
    depth = 0
    pending_ternary = 0
    for i, c in enumerate(text):
        if c in "([":
            depth += 1
        elif c in ")]":
            depth -= 1
        elif depth == 0 and c == "?":
            pending_ternary += 1
        elif depth == 0 and c == ":":
            if pending_ternary:
                pending_ternary -= 1
            else:
                return text[:i], text[i + 1:]
    return text, None


def _parse_name(content: str, pos: int) -> tuple[str, Optional[str], int]:
    """Read a name (identifier, positional or special) and optional [subscript]."""
    match = _NAME_RE.match(content, pos)
    if match:
        name = match.group(0)
        end = match.end()
        if end < len(content) and content[end] == "[":
            close = find_closing(content, end + 1, "[", "]")
            if close == -1:
                raise _bad(content)
            return name, content[end + 1:close], close + 1
        return name, None, end
    match = _DIGITS_RE.match(content, pos)
    if match:
        return match.group(0), None, match.end()
    if pos < len(content) and content[pos] in _SPECIAL:
        return content[pos], None, pos + 1
    raise _bad(content)


def _parse_operation(content: str, rest: str) -> Optional[ParameterOperation]:
    if not rest:
        return None
    if rest[0] == ":" and len(rest) > 1 and rest[1] in "-=?+":
        return _default_family(rest[1], rest[2:], check_empty=True)
    if rest[0] in "-=?+":
        return _default_family(rest[0], rest[1:], check_empty=False)
    if rest[0] == ":":
        offset, length = _split_substring(rest[1:])
        return SubstringOp(offset=offset, length=length)
    if rest[0] in "#%":
        greedy = rest[:2] in ("##", "%%")
        pattern = rest[2:] if greedy else rest[1:]
        side = "prefix" if rest[0] == "#" else "suffix"
        return PatternRemovalOp(pattern=pattern, greedy=greedy, side=side)
    if rest[0] == "/":
        replace_all = False
        anchor = None
        body = rest[1:]
        if body.startswith("/"):
            replace_all = True
            body = body[1:]
        elif body.startswith("#"):
            anchor = "start"
            body = body[1:]
        elif body.startswith("%"):
            anchor = "end"
            body = body[1:]
        slash = _find_unquoted(body, "/")
        if slash == -1:
            pattern, replacement = body, ""
        else:
            pattern, replacement = body[:slash], body[slash + 1:]
        return PatternReplacementOp(
            pattern=pattern, replacement=replacement, all=replace_all, anchor=anchor
        )
    if rest[0] in "^,":
        direction = "upper" if rest[0] == "^" else "lower"
        both = rest[:2] in ("^^", ",,")
        pattern = rest[2:] if both else rest[1:]
        return CaseModificationOp(direction=direction, all=both, pattern=pattern or None)
    if rest[0] == "@" and len(rest) == 2 and rest[1] in TRANSFORM_OPERATORS:
        return TransformOp(operator=rest[1])
    raise _bad(content)


def _default_family(symbol: str, word: str, check_empty: bool) -> ParameterOperation:
    if symbol == "-":
        return DefaultValueOp(word=word, check_empty=check_empty)
    if symbol == "=":
        return AssignDefaultOp(word=word, check_empty=check_empty)
    if symbol == "?":
        return ErrorIfUnsetOp(word=word or None, check_empty=check_empty)
    return UseAlternativeOp(word=word, check_empty=check_empty)


def parse_parameter_expansion(text: str) -> ParameterExpansionPart:
    """Parse ``${...}`` (or just its inside) into a ParameterExpansionPart."""
    content = text
    if content.startswith("${") and content.endswith("}"):
        content = content[2:-1]
    if not content:
        raise _bad(content)

    # ${#name...}: length. A lone "#" (or "#" followed by an operator) is $#.
    if content[0] == "#" and len(content) > 1 and content[1] not in ":-=?+%/}":
        name, subscript, end = _parse_name(content, 1)
        if end != len(content):
            raise _bad(content)
        return ParameterExpansionPart(name=name, subscript=subscript, operation=LengthOp())

    if content[0] == "!" and len(content) > 1:
        match = re.fullmatch(r"([a-zA-Z_][a-zA-Z0-9_]*)\[([@*])\]", content[1:])
        if match:
            return ParameterExpansionPart(
                name=match.group(1),
                subscript=match.group(2),
                operation=ArrayKeysOp(star=match.group(2) == "*"),
            )
        match = re.fullmatch(r"([a-zA-Z_][a-zA-Z0-9_]*)([@*])", content[1:])
        if match:
            return ParameterExpansionPart(
                name=match.group(1), operation=VarNamePrefixOp(star=match.group(2) == "*")
            )
        name, subscript, end = _parse_name(content, 1)
        return ParameterExpansionPart(
            name=name,
            subscript=subscript,
            indirect=True,
            operation=_parse_operation(content, content[end:]),
        )

    name, subscript, end = _parse_name(content, 0)
    return ParameterExpansionPart(
        name=name, subscript=subscript, operation=_parse_operation(content, content[end:])
    )
