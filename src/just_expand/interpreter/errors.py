"""Errors raised while expanding parameters.

Every error here is fatal to the expansion in flight. The engine never
returns partial results: the exception travels up to the calling
execution unit, which decides whether the whole script stops.
"""

from __future__ import annotations


class ExpansionError(Exception):
    """Base class for errors that abort the current expansion."""

    exit_code = 1

    def __init__(self, message: str, stderr: str | None = None):
        super().__init__(message)
        self.message = message
        self.stderr = stderr if stderr is not None else f"bash: {message}\n"


class UnboundParameterError(ExpansionError):
    """Unset name used with an error-if-unset operator (or under set -u)."""

    def __init__(self, name: str, message: str | None = None):
        self.name = name
        super().__init__(f"{name}: {message or 'parameter null or not set'}")


class ReadOnlyError(ExpansionError):
    """Write to a read-only binding."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name}: readonly variable")


class NegativeIndexError(ExpansionError):
    """Assignment at a negative indexed-array index."""

    def __init__(self, name: str, index: int):
        self.name = name
        self.index = index
        super().__init__(f"{name}[{index}]: bad array subscript")


class ReferenceCycleError(ExpansionError):
    """A nameref chain that revisits a name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name}: circular name reference")


class ArithmeticExpressionError(ExpansionError):
    """Malformed arithmetic expression or runaway identifier indirection."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"{expression}: {reason}")


class DivisionByZeroError(ArithmeticExpressionError):
    """Division or modulo by zero."""

    def __init__(self, expression: str):
        super().__init__(expression, "division by 0")


class InvalidAttributeCombinationError(ExpansionError):
    """Attributes that cannot live on one binding, e.g. -a together with -A."""

    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(f"{name}: {reason}")


class InvalidIdentifierError(ExpansionError):
    """A name that is not a valid variable identifier."""

    def __init__(self, name: str, builtin: str | None = None):
        self.name = name
        prefix = f"{builtin}: " if builtin else ""
        super().__init__(f"{prefix}`{name}': not a valid identifier")


class BadSubstitutionError(ExpansionError):
    """Malformed ${...} text or an operator that cannot apply."""


class ExecutionLimitError(ExpansionError):
    """An ExecutionLimits bound was exceeded."""

    exit_code = 126

    def __init__(self, message: str, limit_type: str = "unknown"):
        super().__init__(message)
        self.limit_type = limit_type
