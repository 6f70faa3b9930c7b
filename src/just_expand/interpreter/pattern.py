"""Glob pattern matching.

Dialect: ``*`` any sequence, ``?`` one character, ``[set]`` one character
from set (``[!set]`` / ``[^set]`` negate; ranges like ``a-c`` and POSIX
classes like ``[:digit:]`` allowed), ``\\x`` a literal x. Matching is
purely syntactic, no locale collation.

Patterns are compiled to unanchored regexes once and cached. Greedy and
non-greedy searches only move span boundaries, never match existence.
"""

import re
from functools import lru_cache
from typing import NamedTuple, Optional

# POSIX character class mappings
POSIX_CLASSES = {
    "[:alpha:]": "a-zA-Z",
    "[:digit:]": "0-9",
    "[:alnum:]": "a-zA-Z0-9",
    "[:upper:]": "A-Z",
    "[:lower:]": "a-z",
    "[:space:]": " \\t\\n\\r\\f\\v",
    "[:blank:]": " \\t",
    "[:punct:]": r"!\"#$%&'()*+,\-./:;<=>?@\[\\\]^_`{|}~",
    "[:graph:]": "!-~",
    "[:print:]": " -~",
    "[:cntrl:]": "\\x00-\\x1f\\x7f",
    "[:xdigit:]": "0-9a-fA-F",
    "[:word:]": "a-zA-Z0-9_",
}


class MatchSpan(NamedTuple):
    """Half-open span ``[start, end)`` of a match."""

    start: int
    end: int


def _find_bracket_end(pattern: str, i: int) -> int:
    """Index of the ']' closing the bracket expression opened at i, or -1."""
    j = i + 1
    if j < len(pattern) and pattern[j] in "!^":
        j += 1
    # A ']' right after the opening (or the negation) is literal.
    if j < len(pattern) and pattern[j] == "]":
        j += 1
    while j < len(pattern):
        if pattern.startswith("[:", j):
            end = pattern.find(":]", j + 2)
            if end != -1 and pattern[j:end + 2] in POSIX_CLASSES:
                j = end + 2
                continue
        if pattern[j] == "\\" and j + 1 < len(pattern):
            j += 2
            continue
        if pattern[j] == "]":
            return j
        j += 1
    return -1


def _bracket_char(body: str, j: int) -> tuple[str, int]:
    """Literal character at j in a bracket body and the index after it."""
    if body[j] == "\\" and j + 1 < len(body):
        return body[j + 1], j + 2
    return body[j], j + 1


def _convert_bracket(body: str) -> str:
    negate = bool(body) and body[0] in "!^"
    j = 1 if negate else 0
    items = []
    while j < len(body):
        if body.startswith("[:", j):
            end = body.find(":]", j + 2)
            if end != -1 and body[j:end + 2] in POSIX_CLASSES:
                items.append(POSIX_CLASSES[body[j:end + 2]])
                j = end + 2
                continue
        low, j = _bracket_char(body, j)
        if j + 1 < len(body) and body[j] == "-":
            high, j = _bracket_char(body, j + 1)
            # A reversed range like z-a contains nothing.
            if low <= high:
                items.append(re.escape(low) + "-" + re.escape(high))
            continue
        items.append(re.escape(low))
    if not items:
        return "." if negate else "(?!)"
    return ("[^" if negate else "[") + "".join(items) + "]"


def glob_to_regex(pattern: str) -> str:
    """Convert a glob pattern to an (unanchored) regex pattern."""
    result = []
    i = 0
    while i < len(pattern):
        c = pattern[i]
        if c == "*":
            # Runs of stars match the same as one.
            while i + 1 < len(pattern) and pattern[i + 1] == "*":
                i += 1
            result.append(".*")
        elif c == "?":
            result.append(".")
        elif c == "[":
            close = _find_bracket_end(pattern, i)
            if close == -1:
                # No closing ']' - treat '[' as literal
                result.append("\\[")
            else:
                result.append(_convert_bracket(pattern[i + 1:close]))
                i = close
        elif c == "\\":
            # Backslash escape in glob pattern - next char is literal
            if i + 1 < len(pattern):
                i += 1
                result.append(re.escape(pattern[i]))
            else:
                result.append("\\\\")
        else:
            result.append(re.escape(c))
        i += 1
    return "".join(result)


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> "re.Pattern[str]":
    return re.compile(glob_to_regex(pattern), re.DOTALL)


def escape_glob(text: str) -> str:
    """Escape glob metacharacters so text matches only itself."""
    return "".join("\\" + c if c in "*?[]\\" else c for c in text)


def matches(pattern: str, string: str) -> bool:
    """Whole-string match, as used by [[ == ]] and case."""
    return compile_glob(pattern).fullmatch(string) is not None


def find_prefix(pattern: str, string: str, greedy: bool) -> Optional[MatchSpan]:
    """Longest (greedy) or shortest prefix of string matched by pattern."""
    regex = compile_glob(pattern)
    if greedy:
        m = regex.match(string)
        return MatchSpan(0, m.end()) if m else None
    for end in range(len(string) + 1):
        if regex.fullmatch(string, 0, end):
            return MatchSpan(0, end)
    return None


def find_suffix(pattern: str, string: str, greedy: bool) -> Optional[MatchSpan]:
    """Longest (greedy) or shortest suffix of string matched by pattern."""
    regex = compile_glob(pattern)
    n = len(string)
    starts = range(n + 1) if greedy else range(n, -1, -1)
    for start in starts:
        if regex.fullmatch(string, start, n):
            return MatchSpan(start, n)
    return None


def find_first(pattern: str, string: str, start: int = 0) -> Optional[MatchSpan]:
    """Leftmost match at or after start, longest at that position.

    Glob regexes hold only single-character atoms and greedy ``.*``, so the
    first match the regex engine finds at a position is also the longest.
    """
    if start > len(string):
        return None
    m = compile_glob(pattern).search(string, start)
    return MatchSpan(m.start(), m.end()) if m else None


def find_all(pattern: str, string: str) -> list[MatchSpan]:
    """Non-overlapping leftmost-longest matches, scanning left to right.

    Scanning resumes at each match's end. A zero-length match advances
    the scan by one position; one that abuts the previous match is
    dropped so ``*`` does not match again at the very end.
    """
    spans: list[MatchSpan] = []
    pos = 0
    while pos <= len(string):
        span = find_first(pattern, string, pos)
        if span is None:
            break
        if span.start == span.end:
            if not spans or spans[-1].end != span.start:
                spans.append(span)
            pos = span.end + 1
        else:
            spans.append(span)
            pos = span.end
    return spans
