"""Interpreter types for just-expand."""

from __future__ import annotations

import copy
import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Union

from ..types import ExecutionLimits
from .errors import (
    ExecutionLimitError,
    InvalidAttributeCombinationError,
    InvalidIdentifierError,
    ReadOnlyError,
    ReferenceCycleError,
)

_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def is_valid_name(name: str) -> bool:
    """Check that name is an identifier other than the lone underscore."""
    return name != "_" and _NAME_RE.match(name) is not None


class Attribute(str, Enum):
    """Binding attributes, valued by their declare flag letter."""

    READONLY = "r"
    EXPORTED = "x"
    INTEGER = "i"
    REFERENCE = "n"
    INDEXED = "a"
    ASSOCIATIVE = "A"


# Order in which declare prints flags.
ATTRIBUTE_ORDER = "aAinrx"


@dataclass
class IndexedArray:
    """Sparse mapping from non-negative integer index to string."""

    elements: dict[int, str] = field(default_factory=dict)

    def max_index(self) -> int:
        return max(self.elements) if self.elements else -1

    def indices(self) -> list[int]:
        return sorted(self.elements)

    def values(self) -> list[str]:
        return [self.elements[i] for i in self.indices()]

    def copy(self) -> IndexedArray:
        return IndexedArray(dict(self.elements))


@dataclass
class AssociativeArray:
    """Mapping from string key to string, iterated in insertion order."""

    elements: dict[str, str] = field(default_factory=dict)

    def keys(self) -> list[str]:
        return list(self.elements)

    def values(self) -> list[str]:
        return list(self.elements.values())

    def copy(self) -> AssociativeArray:
        return AssociativeArray(dict(self.elements))


@dataclass
class Reference:
    """Indirect binding: the value names another binding."""

    target: str = ""


Value = Union[str, IndexedArray, AssociativeArray, Reference, None]
"""A binding's value. ``None`` is the unset state, distinct from ``""``."""


@dataclass
class Binding:
    """A name's attributes and value within one frame."""

    name: str
    value: Value = None
    attributes: set[Attribute] = field(default_factory=set)
    """User-settable attributes (r, x, i). The container kind and the
    reference flag come from the value itself, see ``kind``."""

    @property
    def kind(self) -> Optional[Attribute]:
        """INDEXED, ASSOCIATIVE or REFERENCE; None for scalars."""
        if isinstance(self.value, IndexedArray):
            return Attribute.INDEXED
        if isinstance(self.value, AssociativeArray):
            return Attribute.ASSOCIATIVE
        if isinstance(self.value, Reference):
            return Attribute.REFERENCE
        return None

    @property
    def flags(self) -> str:
        """All attributes as a declare flag string, e.g. ``"ar"``."""
        letters = {a.value for a in self.attributes}
        if self.kind is not None:
            letters.add(self.kind.value)
        return "".join(c for c in ATTRIBUTE_ORDER if c in letters)

    @property
    def readonly(self) -> bool:
        return Attribute.READONLY in self.attributes

    @property
    def is_reference(self) -> bool:
        return isinstance(self.value, Reference)

    def copy(self) -> Binding:
        return Binding(self.name, copy.deepcopy(self.value), set(self.attributes))


def scalar_value(binding: Optional[Binding]) -> Optional[str]:
    """The value a binding yields when read without a subscript.

    Arrays read as their element 0 (key "0" for associative arrays).
    Unset bindings and target-less references read as None.
    """
    if binding is None:
        return None
    value = binding.value
    if isinstance(value, IndexedArray):
        return value.elements.get(0)
    if isinstance(value, AssociativeArray):
        return value.elements.get("0")
    if isinstance(value, Reference):
        return None
    return value


@dataclass
class Frame:
    """One scope's bindings plus its own positional parameters."""

    name: str = "global"
    bindings: dict[str, Binding] = field(default_factory=dict)
    positional: list[str] = field(default_factory=list)

    def copy(self) -> Frame:
        return Frame(
            name=self.name,
            bindings={k: b.copy() for k, b in self.bindings.items()},
            positional=list(self.positional),
        )


class VariableStore:
    """Scoped, attributed name-to-value bindings.

    Holds a stack of frames: one persistent global frame plus one frame
    per active function call. Lookups walk from the innermost frame out.
    Positional parameters live on each frame and are never shadowed by
    ordinary bindings.

    Reference bindings are transparent: every read, write and erase goes
    through ``resolve`` first.
    """

    def __init__(
        self,
        initial: Optional[dict[str, str]] = None,
        limits: Optional[ExecutionLimits] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.limits = limits or ExecutionLimits()
        self.logger = logger or logging.getLogger("VariableStore")
        self._frames: list[Frame] = [Frame()]
        for name, value in (initial or {}).items():
            self._frames[0].bindings[name] = Binding(name, value)

    # =========================================================================
    # Frames
    # =========================================================================

    @property
    def frames(self) -> tuple[Frame, ...]:
        return tuple(self._frames)

    @property
    def global_frame(self) -> Frame:
        return self._frames[0]

    @property
    def current_frame(self) -> Frame:
        return self._frames[-1]

    @property
    def depth(self) -> int:
        """Number of function frames above the global frame."""
        return len(self._frames) - 1

    def push_frame(self, name: str = "", positional: Optional[list[str]] = None) -> Frame:
        """Push a function frame. Pair every call with ``pop_frame``."""
        if self.depth >= self.limits.max_call_depth:
            raise ExecutionLimitError(
                f"{name}: maximum function nesting level exceeded "
                f"({self.limits.max_call_depth})",
                "call_depth",
            )
        frame = Frame(name=name, positional=list(positional or []))
        self._frames.append(frame)
        self.logger.debug("push frame %s (depth %d)", name, self.depth)
        return frame

    def pop_frame(self) -> Frame:
        """Pop the innermost function frame, dropping its bindings."""
        if len(self._frames) == 1:
            raise RuntimeError("cannot pop the global frame")
        frame = self._frames.pop()
        self.logger.debug("pop frame %s (depth %d)", frame.name, self.depth)
        return frame

    @contextmanager
    def function_scope(
        self, name: str = "", positional: Optional[list[str]] = None
    ) -> Iterator[Frame]:
        """Bracket a function call; the frame is popped on every exit path."""
        frame = self.push_frame(name, positional)
        try:
            yield frame
        finally:
            self.pop_frame()

    def _frame_for(self, scope: Optional[str]) -> Frame:
        if scope == "local":
            return self.current_frame
        return self.global_frame

    # =========================================================================
    # Positional parameters
    # =========================================================================

    @property
    def positional(self) -> list[str]:
        return self.current_frame.positional

    def set_positional(self, args: list[str]) -> None:
        self.current_frame.positional = list(args)

    def get_positional(self, index: int) -> Optional[str]:
        """The index-th positional parameter (1-based), None if missing."""
        params = self.current_frame.positional
        if 1 <= index <= len(params):
            return params[index - 1]
        return None

    # =========================================================================
    # Lookup and reference resolution
    # =========================================================================

    def lookup(self, name: str) -> Optional[Binding]:
        """Nearest binding for name, without following references."""
        for frame in reversed(self._frames):
            binding = frame.bindings.get(name)
            if binding is not None:
                return binding
        return None

    def _frame_holding(self, binding: Binding) -> Optional[Frame]:
        for frame in reversed(self._frames):
            if frame.bindings.get(binding.name) is binding:
                return frame
        return None

    def resolve(self, name: str) -> tuple[str, Optional[Binding]]:
        """Follow references from name to the binding they designate.

        Returns ``(final_name, binding)``. The binding is None when the
        chain ends at a name nothing is bound to. A reference without a
        target resolves to itself. A chain that revisits a name raises
        ``ReferenceCycleError``.
        """
        visited: set[str] = set()
        current = name
        for _ in range(self.limits.max_reference_depth):
            binding = self.lookup(current)
            if binding is None or not isinstance(binding.value, Reference):
                return current, binding
            target = binding.value.target
            if not target:
                return current, binding
            visited.add(current)
            if target in visited:
                self.logger.debug("reference cycle through %s", name)
                raise ReferenceCycleError(name)
            current = target
        raise ExecutionLimitError(f"{name}: nameref chain too long", "reference_depth")

    def get_binding(self, name: str) -> Optional[Binding]:
        """Resolved binding for name, or None when unset."""
        return self.resolve(name)[1]

    def get(self, name: str) -> Optional[str]:
        """Scalar value of name after resolution; None when unset."""
        return scalar_value(self.get_binding(name))

    def is_set(self, name: str) -> bool:
        return self.get(name) is not None

    def names(self) -> list[str]:
        """All names bound to a value in any frame, sorted."""
        seen: set[str] = set()
        for frame in self._frames:
            for name, binding in frame.bindings.items():
                if binding.value is not None:
                    seen.add(name)
        return sorted(seen)

    # =========================================================================
    # Writes
    # =========================================================================

    def writable_binding(self, name: str, scope: Optional[str] = None) -> Binding:
        """Resolved binding for name, ready to be written.

        With ``scope=None`` the nearest existing binding is used, falling
        back to a new binding in the global frame. ``"local"`` and
        ``"global"`` pin the frame: a binding that only exists in another
        frame is shadowed by a new one in the pinned frame.
        """
        target, binding = self.resolve(name)
        if binding is not None and scope is not None and target == name:
            binding = self._frame_for(scope).bindings.get(target)
        if binding is None:
            if not is_valid_name(target):
                raise InvalidIdentifierError(target)
            binding = Binding(target)
            self._frame_for(scope).bindings[target] = binding
            return binding
        if binding.readonly:
            self.logger.warning("rejected write to readonly %s", target)
            raise ReadOnlyError(target)
        return binding

    def assign(
        self, name: str, value: str, scope: Optional[str] = None, append: bool = False
    ) -> Binding:
        """Assign a scalar string, following references.

        Arrays keep their kind: the write lands on element 0 (key "0").
        A reference without a target takes value as its target name.
        """
        binding = self.writable_binding(name, scope)
        current = binding.value
        if isinstance(current, Reference):
            if not is_valid_name(value):
                raise InvalidIdentifierError(value, "declare")
            binding.value = Reference(value)
        elif isinstance(current, IndexedArray):
            old = current.elements.get(0, "") if append else ""
            current.elements[0] = old + value
        elif isinstance(current, AssociativeArray):
            old = current.elements.get("0", "") if append else ""
            current.elements["0"] = old + value
        else:
            old = (current or "") if append else ""
            binding.value = old + value
        return binding

    def declare(
        self,
        name: str,
        *,
        kind: Optional[Attribute] = None,
        add: tuple[Attribute, ...] = (),
        remove: tuple[Attribute, ...] = (),
        scope: Optional[str] = "local",
        inherit: bool = False,
    ) -> Binding:
        """Create a binding in the scope frame or change a live one's attributes.

        ``kind`` converts the value to INDEXED, ASSOCIATIVE or REFERENCE.
        ``inherit`` snapshots the value and attributes visible from outer
        frames into the new binding (``local -I``). ``scope=None`` uses the
        frame already holding name, else the global frame.
        """
        if not is_valid_name(name):
            raise InvalidIdentifierError(name, "declare")
        existing = self.lookup(name) if scope is None else None
        if existing is not None:
            frame = self._frame_holding(existing) or self.global_frame
        else:
            frame = self._frame_for(scope)
        binding = frame.bindings.get(name)
        if binding is None:
            binding = Binding(name)
            if inherit:
                outer = self.lookup(name)
                if outer is not None:
                    binding = outer.copy()
                    binding.attributes.discard(Attribute.READONLY)
            frame.bindings[name] = binding
        elif binding.is_reference and kind != Attribute.REFERENCE and (kind or add or remove):
            # Attribute changes on a reference apply to what it designates.
            _, target = self.resolve(name)
            if target is not None and target is not binding:
                binding = target

        if Attribute.READONLY in remove and binding.readonly:
            raise ReadOnlyError(binding.name)
        if kind is not None and kind != binding.kind:
            if binding.readonly:
                raise ReadOnlyError(binding.name)
            binding.value = self._convert(binding, kind)
        binding.attributes.update(a for a in add if a.value in "rxi")
        binding.attributes.difference_update(remove)
        return binding

    def set_reference(self, name: str, target: str, scope: Optional[str] = "local") -> Binding:
        """Make name a reference to target, re-pointing an existing reference."""
        binding = self.declare(name, kind=Attribute.REFERENCE, scope=scope)
        if binding.readonly:
            raise ReadOnlyError(name)
        if not is_valid_name(target):
            raise InvalidIdentifierError(target, "declare")
        if target == name:
            raise ReferenceCycleError(name)
        binding.value = Reference(target)
        self.logger.debug("reference %s -> %s", name, target)
        return binding

    def _convert(self, binding: Binding, kind: Attribute) -> Value:
        value = binding.value
        if kind == Attribute.INDEXED:
            if isinstance(value, AssociativeArray):
                raise InvalidAttributeCombinationError(
                    binding.name, "cannot convert associative to indexed array"
                )
            if isinstance(value, Reference):
                raise InvalidAttributeCombinationError(
                    binding.name, "reference variable cannot be an array"
                )
            self.logger.debug("convert %s to indexed array", binding.name)
            return IndexedArray({0: value} if value is not None else {})
        if kind == Attribute.ASSOCIATIVE:
            if isinstance(value, IndexedArray):
                raise InvalidAttributeCombinationError(
                    binding.name, "cannot convert indexed to associative array"
                )
            if isinstance(value, Reference):
                raise InvalidAttributeCombinationError(
                    binding.name, "reference variable cannot be an array"
                )
            self.logger.debug("convert %s to associative array", binding.name)
            return AssociativeArray({"0": value} if value is not None else {})
        if kind == Attribute.REFERENCE:
            if isinstance(value, (IndexedArray, AssociativeArray)):
                raise InvalidAttributeCombinationError(
                    binding.name, "reference variable cannot be an array"
                )
            if value and not is_valid_name(value):
                raise InvalidIdentifierError(value, "declare")
            if value == binding.name:
                raise ReferenceCycleError(binding.name)
            return Reference(value or "")
        raise ValueError(f"not a binding kind: {kind}")

    # =========================================================================
    # Erase
    # =========================================================================

    def erase(self, name: str, keep_target: bool = False) -> bool:
        """Remove the binding for name; returns False when nothing was bound.

        A reference is removed together with whatever it designates
        unless ``keep_target`` is set. The chain is checked for cycles
        before anything is removed.
        """
        binding = self.lookup(name)
        if binding is None:
            return False
        if binding.readonly:
            raise ReadOnlyError(name)
        if binding.is_reference and not keep_target:
            self.resolve(name)
            target = binding.value.target
            if target:
                self.logger.debug("erase %s through reference %s", target, name)
                self.erase(target)
        frame = self._frame_holding(binding)
        if frame is not None:
            del frame.bindings[name]
        return True

    # =========================================================================
    # Views
    # =========================================================================

    def exported(self) -> dict[str, str]:
        """Exported scalar values, as a process environment would see them."""
        env: dict[str, str] = {}
        for name in self.names():
            binding = self.lookup(name)
            if binding is None or Attribute.EXPORTED not in binding.attributes:
                continue
            value = self.get(name)
            if value is not None:
                env[name] = value
        return env

    def clone(self) -> VariableStore:
        """Independent copy of the whole frame stack (subshell fork)."""
        new = VariableStore(limits=self.limits, logger=self.logger)
        new._frames = [frame.copy() for frame in self._frames]
        return new


@dataclass
class ShellOptions:
    """Shell options that change expansion behavior."""

    nounset: bool = False
    """set -u: Treat unset variables as an error when substituting."""


@dataclass
class InterpreterState:
    """Mutable state shared by every engine component."""

    env: VariableStore = field(default_factory=VariableStore)
    """Scoped variable storage."""

    options: ShellOptions = field(default_factory=ShellOptions)
    """Shell options."""

    script_name: str = "bash"
    """Value of $0."""

    arith_depth: int = 0
    """Current depth of identifier re-evaluation in arithmetic."""


@dataclass
class InterpreterContext:
    """Context passed to every engine function."""

    state: InterpreterState
    """Mutable interpreter state."""

    limits: ExecutionLimits = field(default_factory=ExecutionLimits)
    """Execution limits."""
