"""Pattern-driven control flow.

Covers the parts of ``case`` and ``[[ word == pattern ]]`` that belong to
expansion: expanding the words, matching, and choosing which case
bodies run. Running the bodies is the caller's business.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Iterator

from ..ast.types import CaseClause
from .expansion import expand_word
from .pattern import matches

if TYPE_CHECKING:
    from .types import InterpreterContext


def pattern_matches(ctx: "InterpreterContext", string: str, pattern_word: str) -> bool:
    """Expand pattern_word in pattern mode and match the whole string."""
    return matches(expand_word(ctx, pattern_word, pattern=True), string)


def iter_case_bodies(
    ctx: "InterpreterContext", word: str, clauses: Iterable[CaseClause]
) -> Iterator[int]:
    """Yield the index of each clause whose body should run, in order.

    Terminators after a body that ran:
      ``;;``  stop.
      ``;&``  run the next body without testing its patterns.
      ``;;&`` resume testing patterns at the next clause.

    Patterns are expanded lazily, so a clause skipped by ``;&`` or never
    reached has no side effects.
    """
    value = expand_word(ctx, word)
    fall_through = False
    for index, clause in enumerate(clauses):
        if fall_through:
            matched = True
            fall_through = False
        else:
            matched = any(pattern_matches(ctx, value, p) for p in clause.patterns)

        if not matched:
            continue

        yield index

        if clause.terminator == ";&":
            fall_through = True
        elif clause.terminator == ";;&":
            continue
        else:
            return
