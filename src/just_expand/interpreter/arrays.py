"""Array engine.

Indexed arrays are sparse ``int -> str`` maps walked in ascending index
order; associative arrays are ``str -> str`` maps walked in insertion
order. A scalar binding behaves as a one-element indexed array holding
its value at index 0.

Indexed subscripts are arithmetic expressions; associative subscripts
are taken as text (after quote removal and ``$`` expansion).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Union

from ..ast.types import ArrayItem, ArrayLiteral
from ..parser.words import is_array_literal, parse_array_literal, split_subscript
from .arithmetic import evaluate_arithmetic, resolve_arith_value
from .errors import (
    BadSubstitutionError,
    InvalidAttributeCombinationError,
    NegativeIndexError,
    ReadOnlyError,
)
from .types import AssociativeArray, Attribute, Binding, IndexedArray, Reference

if TYPE_CHECKING:
    from .types import InterpreterContext

logger = logging.getLogger(__name__)

Key = Union[int, str]


# =============================================================================
# Kinds and subscripts
# =============================================================================


def is_associative(ctx: "InterpreterContext", name: str) -> bool:
    binding = ctx.state.env.get_binding(name)
    return binding is not None and isinstance(binding.value, AssociativeArray)


def evaluate_index(ctx: "InterpreterContext", name: str, subscript: str) -> int:
    """Arithmetic value of an indexed-array subscript."""
    if not subscript.strip():
        raise BadSubstitutionError(f"{name}[{subscript}]: bad array subscript")
    return evaluate_arithmetic(ctx, subscript)


def element_key(ctx: "InterpreterContext", name: str, subscript: str) -> Key:
    """Turn subscript text into the key type the array at name uses."""
    if is_associative(ctx, name):
        from .expansion import expand_word

        return expand_word(ctx, subscript)
    return evaluate_index(ctx, name, subscript)


def _from_end(elements: dict[int, str], index: int) -> int:
    """Map a negative read index -k to max + 1 - k."""
    if index >= 0:
        return index
    top = max(elements) if elements else -1
    return top + 1 + index


def _coerce(ctx: "InterpreterContext", binding: Binding, value: str, old: Optional[str]) -> str:
    """Apply the integer attribute: evaluate value (and add old when appending)."""
    if Attribute.INTEGER not in binding.attributes:
        return (old or "") + value
    result = evaluate_arithmetic(ctx, value) if value.strip() else 0
    if old is not None:
        result += resolve_arith_value(ctx, old)
    return str(result)


# =============================================================================
# Element access
# =============================================================================


def get_element(ctx: "InterpreterContext", name: str, key: Key) -> Optional[str]:
    """Value at key, or None for a missing element or unset name."""
    binding = ctx.state.env.get_binding(name)
    if binding is None:
        return None
    value = binding.value
    if isinstance(value, IndexedArray):
        return value.elements.get(_from_end(value.elements, int(key)))
    if isinstance(value, AssociativeArray):
        return value.elements.get(str(key))
    if isinstance(value, str) and str(key) in ("0", "-1"):
        return value
    return None


def set_element(
    ctx: "InterpreterContext",
    name: str,
    key: Key,
    value: str,
    append: bool = False,
    scope: Optional[str] = None,
) -> Binding:
    """Assign one element, turning an unset or scalar binding into an array."""
    binding = ctx.state.env.writable_binding(name, scope)
    current = binding.value
    if isinstance(current, Reference):
        raise InvalidAttributeCombinationError(
            binding.name, "reference variable cannot be an array"
        )
    if isinstance(current, AssociativeArray):
        key = str(key)
        old = current.elements.get(key) if append else None
        current.elements[key] = _coerce(ctx, binding, value, old)
        return binding

    index = int(key)
    if index < 0:
        raise NegativeIndexError(binding.name, index)
    if not isinstance(current, IndexedArray):
        current = IndexedArray({0: current} if current is not None else {})
        binding.value = current
    old = current.elements.get(index) if append else None
    current.elements[index] = _coerce(ctx, binding, value, old)
    return binding


def unset_element(ctx: "InterpreterContext", name: str, key: Key) -> bool:
    """Remove one element without renumbering the rest."""
    env = ctx.state.env
    binding = env.get_binding(name)
    if binding is None:
        return False
    if binding.readonly:
        raise ReadOnlyError(binding.name)
    value = binding.value
    if isinstance(value, AssociativeArray):
        return value.elements.pop(str(key), None) is not None
    if isinstance(value, IndexedArray):
        index = _from_end(value.elements, int(key))
        if index < 0:
            raise NegativeIndexError(binding.name, int(key))
        return value.elements.pop(index, None) is not None
    if isinstance(value, str) and int(key) in (0, -1):
        return env.erase(binding.name)
    return False


# =============================================================================
# Whole-array views
# =============================================================================


def all_values(ctx: "InterpreterContext", name: str) -> list[str]:
    binding = ctx.state.env.get_binding(name)
    if binding is None or binding.value is None:
        return []
    value = binding.value
    if isinstance(value, (IndexedArray, AssociativeArray)):
        return value.values()
    if isinstance(value, Reference):
        return []
    return [value]


def all_keys(ctx: "InterpreterContext", name: str) -> list[str]:
    binding = ctx.state.env.get_binding(name)
    if binding is None or binding.value is None:
        return []
    value = binding.value
    if isinstance(value, IndexedArray):
        return [str(i) for i in value.indices()]
    if isinstance(value, AssociativeArray):
        return value.keys()
    if isinstance(value, Reference):
        return []
    return ["0"]


def length(ctx: "InterpreterContext", name: str) -> int:
    return len(all_values(ctx, name))


def slice_values(
    ctx: "InterpreterContext", name: str, start: int, count: Optional[int] = None
) -> list[str]:
    """Up to count values starting at start; never fails on short arrays.

    For indexed arrays start is an index (elements at or above it are
    taken, gaps skipped); for associative arrays it is a position. A
    negative start counts back from the end.
    """
    if count is not None and count < 0:
        raise BadSubstitutionError(f"{count}: substring expression < 0")
    binding = ctx.state.env.get_binding(name)
    if binding is None:
        return []
    value = binding.value
    if isinstance(value, AssociativeArray):
        values = value.values()
        if start < 0:
            start += len(values)
            if start < 0:
                return []
        selected = values[start:]
    else:
        elements = value.elements if isinstance(value, IndexedArray) else (
            {0: value} if isinstance(value, str) else {}
        )
        start = _from_end(elements, start)
        if start < 0:
            return []
        selected = [elements[i] for i in sorted(elements) if i >= start]
    if count is not None:
        selected = selected[:count]
    return selected


# =============================================================================
# Literal assignment
# =============================================================================


def assign_literal(
    ctx: "InterpreterContext",
    name: str,
    literal: ArrayLiteral,
    scope: Optional[str] = None,
    append: bool = False,
) -> Binding:
    """Assign ``(v0 v1 [i]=vx ...)``, replacing or (with append) extending.

    Indexed arrays place unkeyed values at a running index that starts
    at 0 (or after the current maximum when appending) and continues
    after each explicit ``[i]=``. Associative arrays take ``[k]=v``
    pairs, or flattened ``k1 v1 k2 v2`` when no item has a key.
    """
    binding = ctx.state.env.writable_binding(name, scope)
    current = binding.value
    if isinstance(current, Reference):
        raise InvalidAttributeCombinationError(
            binding.name, "reference variable cannot be an array"
        )

    if isinstance(current, AssociativeArray):
        elements = dict(current.elements) if append else {}
        for key, value in _associative_pairs(binding.name, literal):
            elements[key] = _coerce(ctx, binding, value, None)
        binding.value = AssociativeArray(elements)
        logger.debug("assigned %d keys to %s", len(elements), binding.name)
        return binding

    if append and isinstance(current, IndexedArray):
        elements = dict(current.elements)
    elif append and isinstance(current, str):
        elements = {0: current}
    else:
        elements = {}
    running = max(elements) + 1 if elements else 0
    for item in literal.items:
        if item.key is not None:
            index = evaluate_index(ctx, binding.name, item.key)
            if index < 0:
                raise NegativeIndexError(binding.name, index)
            running = index
        elements[running] = _coerce(ctx, binding, item.value, None)
        running += 1
    binding.value = IndexedArray(elements)
    logger.debug("assigned %d elements to %s", len(elements), binding.name)
    return binding


def _associative_pairs(name: str, literal: ArrayLiteral) -> list[tuple[str, str]]:
    if not literal.has_keys:
        values = [item.value for item in literal.items]
        if len(values) % 2:
            values.append("")
        return list(zip(values[::2], values[1::2]))
    pairs = []
    for item in literal.items:
        if item.key is None:
            raise BadSubstitutionError(
                f"{name}: {item.value}: must use subscript when assigning associative array"
            )
        pairs.append((item.key, item.value))
    return pairs


def append_literal(
    ctx: "InterpreterContext",
    name: str,
    positional_values: list[str],
    overrides: dict[str, str],
) -> Binding:
    """Append positional values after the current maximum, then overlay overrides.

    Overrides may overwrite elements the positional values just created.
    """
    items = [ArrayItem(value) for value in positional_values]
    items.extend(ArrayItem(value, key=key) for key, value in overrides.items())
    return assign_literal(ctx, name, ArrayLiteral(tuple(items)), append=True)


def assign_variable(
    ctx: "InterpreterContext",
    name: str,
    value: str,
    scope: Optional[str] = None,
    append: bool = False,
) -> Binding:
    """Assignment as written in a script: ``name=v``, ``name[i]=v``, ``name=(..)``.

    ``append`` gives ``+=``: string concatenation, arithmetic addition
    for integer bindings, array extension for literals.
    """
    base, subscript = split_subscript(name)
    if subscript is not None:
        key = element_key(ctx, base, subscript)
        return set_element(ctx, base, key, value, append=append, scope=scope)

    if is_array_literal(value):
        return assign_literal(ctx, name, parse_array_literal(value), scope, append)

    env = ctx.state.env
    binding = env.writable_binding(name, scope)
    if binding.is_reference:
        return env.assign(name, value, scope)
    if Attribute.INTEGER in binding.attributes:
        from .types import scalar_value

        old = scalar_value(binding) if append else None
        return env.assign(name, _coerce(ctx, binding, value, old), scope)
    return env.assign(name, value, scope, append)
