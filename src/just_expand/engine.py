"""Main Engine class - the primary API for just-expand.

Example usage:
    from just_expand import Engine

    engine = Engine(env={"HOME": "/home/user"})
    engine.assign("files", "(a.txt b.txt [5]=c.txt)")
    engine.expand("${files[@]%.txt}")     # ["a", "b", "c"]
    engine.expand("${missing:-default}")  # ["default"]
    engine.evaluate_arithmetic("2 + 3 * 4")  # (14, True)

    # Function frames and subshells
    with engine.function_call("f", ["x", "y"]):
        engine.local(["tmp=1"])
        engine.expand("$2")               # ["y"]
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from .ast.types import CaseClause
from .interpreter.arithmetic import evaluate_condition
from .interpreter.arrays import assign_variable, element_key, get_element
from .interpreter.builtins import BUILTINS
from .interpreter.control_flow import iter_case_bodies, pattern_matches
from .interpreter.expansion import expand, expand_word
from .interpreter.types import (
    Attribute,
    Binding,
    Frame,
    InterpreterContext,
    InterpreterState,
    ShellOptions,
    VariableStore,
    is_valid_name,
)
from .parser.words import expand_braces, split_subscript
from .types import ExecResult, ExecutionLimits


class Engine:
    """Variable and expansion engine.

    Owns one variable store (global frame plus function frames) and
    answers expansion, arithmetic and pattern questions against it.
    Errors raised by expansion are ExpansionError subclasses; the
    builtin methods report them through ExecResult instead.
    """

    def __init__(
        self,
        *,
        env: Optional[dict[str, str]] = None,
        limits: Optional[ExecutionLimits] = None,
        nounset: bool = False,
        positional: Optional[list[str]] = None,
        script_name: str = "bash",
        logger: Optional[logging.Logger] = None,
        state: Optional[InterpreterState] = None,
    ):
        """Initialize the engine.

        Args:
            env: Initial variables, marked exported. Names that are not
                identifiers (such as ``_``) are skipped.
            limits: Execution limits.
            nounset: Enable nounset (set -u) mode.
            positional: Initial positional parameters ($1, $2, ...).
            script_name: Value of $0.
            logger: Logger for engine events.
            state: Existing state to run over (used for subshells).
        """
        self.logger = logger or logging.getLogger("Engine")
        self._limits = limits or ExecutionLimits()

        if state is None:
            initial = {}
            for name, value in (env or {}).items():
                if is_valid_name(name):
                    initial[name] = value
                else:
                    self.logger.debug("Skipping environment entry %r: not an identifier", name)
            store = VariableStore(initial, limits=self._limits, logger=self.logger)
            # Mark provided environment variables as exported
            for name in initial:
                store.declare(name, add=(Attribute.EXPORTED,), scope="global")
            store.set_positional(positional or [])
            state = InterpreterState(
                env=store,
                options=ShellOptions(nounset=nounset),
                script_name=script_name,
            )
        self._state = state
        self._ctx = InterpreterContext(state=state, limits=self._limits)

    @property
    def state(self) -> InterpreterState:
        return self._state

    @property
    def context(self) -> InterpreterContext:
        return self._ctx

    @property
    def store(self) -> VariableStore:
        """Get the variable store."""
        return self._state.env

    @property
    def limits(self) -> ExecutionLimits:
        return self._limits

    # =========================================================================
    # Expansion
    # =========================================================================

    def expand(self, expression: str) -> list[str]:
        """Expand ``${...}`` / ``$name`` text to its words."""
        return expand(self._ctx, expression)

    def expand_word(self, text: str) -> str:
        """Expand a word with quotes, ``$name``, ``${...}`` and ``$((...))``."""
        return expand_word(self._ctx, text)

    def expand_braces(self, word: str) -> list[str]:
        """Brace-expand a word, then expand each result like expand_word.

        Alternatives that are empty before expansion (``{X,,Y}``) produce
        no word.
        """
        return [expand_word(self._ctx, raw) for raw in expand_braces(word) if raw]

    def evaluate_arithmetic(self, expression: str) -> tuple[int, bool]:
        """Evaluate an arithmetic expression: its value and truthiness."""
        return evaluate_condition(self._ctx, expression)

    def match_glob(self, pattern: str, string: str) -> bool:
        """Whole-string glob match; the pattern word is expanded first."""
        return pattern_matches(self._ctx, string, pattern)

    def case_bodies(self, word: str, clauses: Iterable[CaseClause]) -> Iterator[int]:
        """Indices of the case clauses whose bodies run, in order."""
        return iter_case_bodies(self._ctx, word, clauses)

    # =========================================================================
    # Storage
    # =========================================================================

    def assign(
        self, name: str, value: str, *, scope: Optional[str] = None, append: bool = False
    ) -> Binding:
        """Assign ``name``, ``name[sub]`` or an array literal ``(...)`` value."""
        return assign_variable(self._ctx, name, value, scope=scope, append=append)

    def get(self, name: str) -> Optional[str]:
        """Value of ``name`` or ``name[sub]``; None when unset."""
        base, subscript = split_subscript(name)
        if subscript is None:
            return self.store.get(name)
        return get_element(self._ctx, base, element_key(self._ctx, base, subscript))

    def erase(self, name: str, keep_target: bool = False) -> bool:
        """Remove a binding (and, for a reference, its target)."""
        return self.store.erase(name, keep_target=keep_target)

    def exported_env(self) -> dict[str, str]:
        return self.store.exported()

    # =========================================================================
    # Builtins
    # =========================================================================

    def run_builtin(self, name: str, args: list[str]) -> ExecResult:
        return BUILTINS[name](self._ctx, args)

    def declare(self, args: list[str]) -> ExecResult:
        return self.run_builtin("declare", args)

    def local(self, args: list[str]) -> ExecResult:
        return self.run_builtin("local", args)

    def unset(self, args: list[str]) -> ExecResult:
        return self.run_builtin("unset", args)

    def readonly(self, args: list[str]) -> ExecResult:
        return self.run_builtin("readonly", args)

    def export(self, args: list[str]) -> ExecResult:
        return self.run_builtin("export", args)

    def set(self, args: list[str]) -> ExecResult:
        return self.run_builtin("set", args)

    # =========================================================================
    # Frames
    # =========================================================================

    @contextmanager
    def function_call(self, name: str, args: Optional[list[str]] = None) -> Iterator[Frame]:
        """Run a function body: a fresh frame with its own positional parameters."""
        with self.store.function_scope(name, args) as frame:
            yield frame

    @contextmanager
    def subshell(self) -> Iterator["Engine"]:
        """Fork: an engine over a copy of the store, discarded afterwards."""
        state = InterpreterState(
            env=self.store.clone(),
            options=copy.copy(self._state.options),
            script_name=self._state.script_name,
        )
        self.logger.debug("subshell fork at depth %d", self.store.depth)
        yield Engine(limits=self._limits, logger=self.logger, state=state)
