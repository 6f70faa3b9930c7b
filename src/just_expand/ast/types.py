"""AST node types for just-expand.

Nodes are frozen dataclasses tagged with a ``type`` string so the
interpreter can dispatch on ``node.type`` without isinstance chains.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union


# =============================================================================
# Array literals: (v0 v1 [i]=vx ...)
# =============================================================================


@dataclass(frozen=True)
class ArrayItem:
    """One element of an array literal, optionally with an explicit key."""

    value: str
    key: Optional[str] = None


@dataclass(frozen=True)
class ArrayLiteral:
    """A parenthesised array literal."""

    items: tuple[ArrayItem, ...] = ()
    type: str = field(default="ArrayLiteral", init=False)

    @property
    def positional_values(self) -> list[str]:
        """Values that appear before the first explicit key."""
        values = []
        for item in self.items:
            if item.key is not None:
                break
            values.append(item.value)
        return values

    @property
    def has_keys(self) -> bool:
        return any(item.key is not None for item in self.items)


# =============================================================================
# Parameter expansion operations
# =============================================================================


@dataclass(frozen=True)
class DefaultValueOp:
    """${name-word} / ${name:-word}"""

    word: str
    check_empty: bool = False
    type: str = field(default="DefaultValue", init=False)


@dataclass(frozen=True)
class AssignDefaultOp:
    """${name=word} / ${name:=word}"""

    word: str
    check_empty: bool = False
    type: str = field(default="AssignDefault", init=False)


@dataclass(frozen=True)
class ErrorIfUnsetOp:
    """${name?word} / ${name:?word}"""

    word: Optional[str] = None
    check_empty: bool = False
    type: str = field(default="ErrorIfUnset", init=False)


@dataclass(frozen=True)
class UseAlternativeOp:
    """${name+word} / ${name:+word}"""

    word: str
    check_empty: bool = False
    type: str = field(default="UseAlternative", init=False)


@dataclass(frozen=True)
class LengthOp:
    """${#name}"""

    type: str = field(default="Length", init=False)


@dataclass(frozen=True)
class SubstringOp:
    """${name:offset} / ${name:offset:length}, both arithmetic text."""

    offset: str
    length: Optional[str] = None
    type: str = field(default="Substring", init=False)


@dataclass(frozen=True)
class PatternRemovalOp:
    """${name#pat} ${name##pat} ${name%pat} ${name%%pat}"""

    pattern: str
    greedy: bool = False
    side: str = "prefix"
    type: str = field(default="PatternRemoval", init=False)


@dataclass(frozen=True)
class PatternReplacementOp:
    """${name/pat/rep} ${name//pat/rep} ${name/#pat/rep} ${name/%pat/rep}"""

    pattern: str
    replacement: str = ""
    all: bool = False
    anchor: Optional[str] = None
    type: str = field(default="PatternReplacement", init=False)


@dataclass(frozen=True)
class CaseModificationOp:
    """${name^} ${name^^} ${name,} ${name,,}"""

    direction: str
    all: bool = False
    pattern: Optional[str] = None
    type: str = field(default="CaseModification", init=False)


@dataclass(frozen=True)
class TransformOp:
    """${name@X}"""

    operator: str
    type: str = field(default="Transform", init=False)


@dataclass(frozen=True)
class VarNamePrefixOp:
    """${!prefix*} / ${!prefix@}"""

    star: bool = False
    type: str = field(default="VarNamePrefix", init=False)


@dataclass(frozen=True)
class ArrayKeysOp:
    """${!name[@]} / ${!name[*]}"""

    star: bool = False
    type: str = field(default="ArrayKeys", init=False)


ParameterOperation = Union[
    DefaultValueOp,
    AssignDefaultOp,
    ErrorIfUnsetOp,
    UseAlternativeOp,
    LengthOp,
    SubstringOp,
    PatternRemovalOp,
    PatternReplacementOp,
    CaseModificationOp,
    TransformOp,
    VarNamePrefixOp,
    ArrayKeysOp,
]


@dataclass(frozen=True)
class ParameterExpansionPart:
    """A parsed ${...} expression.

    ``name`` is an identifier, a positional digit string or one of the
    special parameters ``@ * #``. ``subscript`` is the raw text between
    the brackets, if any. ``indirect`` marks ``${!name...}``.
    """

    name: str
    subscript: Optional[str] = None
    indirect: bool = False
    operation: Optional[ParameterOperation] = None
    type: str = field(default="ParameterExpansion", init=False)

    @property
    def is_all_elements(self) -> bool:
        return self.subscript in ("@", "*")

    @property
    def parameter(self) -> str:
        """Name with subscript, as written."""
        if self.subscript is None:
            return self.name
        return f"{self.name}[{self.subscript}]"


# =============================================================================
# Arithmetic expressions
# =============================================================================


@dataclass(frozen=True)
class ArithNumber:
    value: int
    type: str = field(default="ArithNumber", init=False)


@dataclass(frozen=True)
class ArithVariable:
    name: str
    type: str = field(default="ArithVariable", init=False)


@dataclass(frozen=True)
class ArithArrayElement:
    array: str
    index: Optional["ArithExpr"]
    raw_index: str = ""
    type: str = field(default="ArithArrayElement", init=False)


@dataclass(frozen=True)
class ArithParameter:
    """$name or ${...} inside an arithmetic expression."""

    text: str
    type: str = field(default="ArithParameter", init=False)


@dataclass(frozen=True)
class ArithBinary:
    operator: str
    left: "ArithExpr"
    right: "ArithExpr"
    type: str = field(default="ArithBinary", init=False)


@dataclass(frozen=True)
class ArithUnary:
    operator: str
    operand: "ArithExpr"
    prefix: bool = True
    type: str = field(default="ArithUnary", init=False)


@dataclass(frozen=True)
class ArithTernary:
    condition: "ArithExpr"
    consequent: "ArithExpr"
    alternate: "ArithExpr"
    type: str = field(default="ArithTernary", init=False)


@dataclass(frozen=True)
class ArithAssignment:
    operator: str
    target: Union[ArithVariable, ArithArrayElement]
    value: "ArithExpr"
    type: str = field(default="ArithAssignment", init=False)


@dataclass(frozen=True)
class ArithGroup:
    expression: "ArithExpr"
    type: str = field(default="ArithGroup", init=False)


ArithExpr = Union[
    ArithNumber,
    ArithVariable,
    ArithArrayElement,
    ArithParameter,
    ArithBinary,
    ArithUnary,
    ArithTernary,
    ArithAssignment,
    ArithGroup,
]


# =============================================================================
# Case clauses
# =============================================================================


@dataclass(frozen=True)
class CaseClause:
    """One ``pat1 | pat2) body <terminator>`` clause of a case statement.

    The body itself belongs to the caller; only patterns and the
    terminator (``;;``, ``;&`` or ``;;&``) matter for selection.
    """

    patterns: tuple[str, ...]
    terminator: str = ";;"
    type: str = field(default="CaseClause", init=False)
