"""Quote-aware word helpers.

Used for array literals ``(a 'b c' [5]=d)``, for brace expansion and for
the argument words of expansion operators. Nothing here expands variables;
callers pass an ``expand`` callable when they want expansion.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

from ..ast.types import ArrayItem, ArrayLiteral

_SUBSCRIPT_RE = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_]*)\[(.*)\]$", re.DOTALL)


def split_subscript(text: str) -> tuple[str, Optional[str]]:
    """Split ``name[sub]`` into ``("name", "sub")``; plain names get None."""
    match = _SUBSCRIPT_RE.match(text)
    if match:
        return match.group(1), match.group(2)
    return text, None


def find_closing(text: str, start: int, opener: str, closer: str) -> int:
    """Index of the closer matching the opener just before ``start``.

    Skips quoted sections, backslash escapes and nested pairs. Returns -1
    if the text ends first.
    """
    depth = 1
    i = start
    quote: Optional[str] = None
    while i < len(text):
        c = text[i]
        if quote:
            if c == "\\" and quote == '"' and i + 1 < len(text):
                i += 2
                continue
            if c == quote:
                quote = None
        elif c == "\\" and i + 1 < len(text):
            i += 2
            continue
        elif c in "'\"":
            quote = c
        elif c == opener:
            depth += 1
        elif c == closer:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def split_words(text: str) -> list[str]:
    """Split on unquoted blanks, keeping quotes inside each raw word."""
    words: list[str] = []
    current: list[str] = []
    in_word = False
    quote: Optional[str] = None
    i = 0
    while i < len(text):
        c = text[i]
        if quote:
            current.append(c)
            if c == "\\" and quote == '"' and i + 1 < len(text):
                current.append(text[i + 1])
                i += 2
                continue
            if c == quote:
                quote = None
        elif c == "\\" and i + 1 < len(text):
            current.append(text[i:i + 2])
            in_word = True
            i += 2
            continue
        elif c in "'\"":
            quote = c
            current.append(c)
            in_word = True
        elif c in " \t\n":
            if in_word:
                words.append("".join(current))
                current = []
                in_word = False
        elif c == "$" and text.startswith("${", i):
            end = find_closing(text, i + 2, "{", "}")
            stop = len(text) if end == -1 else end + 1
            current.append(text[i:stop])
            in_word = True
            i = stop
            continue
        else:
            current.append(c)
            in_word = True
        i += 1
    if in_word:
        words.append("".join(current))
    return words


def unquote(word: str) -> str:
    """Remove quotes and backslash escapes without expanding anything."""
    result = []
    quote: Optional[str] = None
    i = 0
    while i < len(word):
        c = word[i]
        if quote == "'":
            if c == "'":
                quote = None
            else:
                result.append(c)
        elif quote == '"':
            if c == '"':
                quote = None
            elif c == "\\" and i + 1 < len(word) and word[i + 1] in '"\\$`':
                result.append(word[i + 1])
                i += 1
            else:
                result.append(c)
        elif c in "'\"":
            quote = c
        elif c == "\\" and i + 1 < len(word):
            result.append(word[i + 1])
            i += 1
        else:
            result.append(c)
        i += 1
    return "".join(result)


def is_array_literal(text: str) -> bool:
    return text.startswith("(") and text.endswith(")")


def parse_array_literal(
    text: str, expand: Optional[Callable[[str], str]] = None
) -> ArrayLiteral:
    """Parse ``(v0 v1 [i]=vx ...)`` into an ArrayLiteral.

    Keys and values are passed through ``expand`` (default: quote
    removal). Keys stay text; indexed arrays evaluate them later.
    """
    expand = expand or unquote
    inner = text.strip()
    if is_array_literal(inner):
        inner = inner[1:-1]
    items = []
    for word in split_words(inner):
        if word.startswith("["):
            close = find_closing(word, 1, "[", "]")
            if close != -1 and word[close + 1:close + 2] == "=":
                key = expand(word[1:close])
                items.append(ArrayItem(value=expand(word[close + 2:]), key=key))
                continue
        items.append(ArrayItem(value=expand(word)))
    return ArrayLiteral(items=tuple(items))


# =============================================================================
# Brace expansion
# =============================================================================

_SEQUENCE_RE = re.compile(r"^(-?[0-9]+|[a-zA-Z])\.\.(-?[0-9]+|[a-zA-Z])(?:\.\.(-?[0-9]+))?$")


def _skip_quoted(text: str, i: int) -> int:
    """Index just past a quote, escape or ``${...}`` starting at i; i if none does."""
    c = text[i]
    if c == "\\" and i + 1 < len(text):
        return i + 2
    if c == "'":
        end = text.find("'", i + 1)
        return len(text) if end == -1 else end + 1
    if c == '"':
        j = i + 1
        while j < len(text):
            if text[j] == "\\" and j + 1 < len(text):
                j += 2
                continue
            if text[j] == '"':
                return j + 1
            j += 1
        return len(text)
    if text.startswith("${", i):
        end = find_closing(text, i + 2, "{", "}")
        return len(text) if end == -1 else end + 1
    return i


def _matching_brace(text: str, start: int) -> int:
    depth = 0
    i = start
    while i < len(text):
        after = _skip_quoted(text, i)
        if after != i:
            i = after
            continue
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _split_alternatives(body: str) -> list[str]:
    """Split a brace body on its top-level commas."""
    parts = []
    depth = 0
    last = 0
    i = 0
    while i < len(body):
        after = _skip_quoted(body, i)
        if after != i:
            i = after
            continue
        c = body[i]
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
        elif c == "," and depth == 0:
            parts.append(body[last:i])
            last = i + 1
        i += 1
    parts.append(body[last:])
    return parts


def _steps(start: int, end: int, step: int) -> range:
    if start <= end:
        return range(start, end + 1, step)
    return range(start, end - 1, -step)


def _is_padded(number: str) -> bool:
    digits = number.lstrip("-")
    return len(digits) > 1 and digits.startswith("0")


def _sequence(body: str) -> Optional[list[str]]:
    """Values of ``x..y[..step]``, or None when body is not a valid sequence."""
    match = _SEQUENCE_RE.match(body)
    if not match:
        return None
    first, last, step_text = match.groups()
    step = abs(int(step_text)) if step_text else 1
    step = step or 1
    if first.lstrip("-").isdigit() and last.lstrip("-").isdigit():
        width = max(len(first), len(last)) if _is_padded(first) or _is_padded(last) else 0
        return [str(n).zfill(width) for n in _steps(int(first), int(last), step)]
    if first.isalpha() and last.isalpha() and first.isupper() == last.isupper():
        return [chr(n) for n in _steps(ord(first), ord(last), step)]
    return None


def expand_braces(text: str) -> list[str]:
    """Brace-expand one raw word.

    ``a{X,Y}b`` gives ``aXb aYb``, ``{1..3}`` gives ``1 2 3`` and groups
    nest and combine left to right. Quoted text, backslash escapes and
    ``${...}`` are never brace-expanded. A group with no top-level comma
    and no valid ``x..y[..step]`` sequence stays literal. Results keep
    their quotes for the caller to expand.
    """
    start = 0
    while True:
        i = start
        while i < len(text):
            after = _skip_quoted(text, i)
            if after != i:
                i = after
                continue
            if text[i] == "{":
                break
            i += 1
        if i >= len(text):
            return [text]
        close = _matching_brace(text, i)
        if close == -1:
            return [text]

        body = text[i + 1:close]
        alternatives = _split_alternatives(body)
        if len(alternatives) > 1:
            choices = [word for alternative in alternatives for word in expand_braces(alternative)]
        else:
            choices = _sequence(body)
        if choices is None:
            start = i + 1
            continue

        prefix = text[:i]
        suffixes = expand_braces(text[close + 1:])
        return [prefix + choice + suffix for choice in choices for suffix in suffixes]
