"""just-expand - the variable and expansion engine of a bash-like shell.

Scoped variables with namerefs, indexed and associative arrays, glob
matching, integer arithmetic and ${...} parameter expansion.
"""

from .ast.types import CaseClause
from .engine import Engine
from .interpreter.errors import (
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
from .types import ExecResult, ExecutionLimits

__version__ = "0.1.0"

__all__ = [
    "ArithmeticExpressionError",
    "BadSubstitutionError",
    "CaseClause",
    "DivisionByZeroError",
    "Engine",
    "ExecResult",
    "ExecutionLimitError",
    "ExecutionLimits",
    "ExpansionError",
    "InvalidAttributeCombinationError",
    "InvalidIdentifierError",
    "NegativeIndexError",
    "ReadOnlyError",
    "ReferenceCycleError",
    "UnboundParameterError",
]
