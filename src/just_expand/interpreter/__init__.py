"""Interpreter components for just-expand.

Only errors and data types are re-exported here; the engine modules
(expansion, arrays, arithmetic, pattern) import the parser and are
loaded on demand.
"""

from .errors import (
    ArithmeticExpressionError,
    BadSubstitutionError,
    DivisionByZeroError,
    ExecutionLimitError,
    ExpansionError,
    InvalidAttributeCombinationError,
    InvalidIdentifierError,
    NegativeIndexError,
    ReadOnlyError,
    ReferenceCycleError,
    UnboundParameterError,
)
from .types import (
    AssociativeArray,
    Attribute,
    Binding,
    Frame,
    IndexedArray,
    InterpreterContext,
    InterpreterState,
    Reference,
    ShellOptions,
    VariableStore,
)

__all__ = [
    "ArithmeticExpressionError",
    "AssociativeArray",
    "Attribute",
    "BadSubstitutionError",
    "Binding",
    "DivisionByZeroError",
    "ExecutionLimitError",
    "ExpansionError",
    "Frame",
    "IndexedArray",
    "InterpreterContext",
    "InterpreterState",
    "InvalidAttributeCombinationError",
    "InvalidIdentifierError",
    "NegativeIndexError",
    "ReadOnlyError",
    "Reference",
    "ReferenceCycleError",
    "ShellOptions",
    "UnboundParameterError",
    "VariableStore",
]
