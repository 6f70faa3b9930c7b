"""AST node types for just-expand."""

from .types import (
    ArithArrayElement,
    ArithAssignment,
    ArithBinary,
    ArithExpr,
    ArithGroup,
    ArithNumber,
    ArithParameter,
    ArithTernary,
    ArithUnary,
    ArithVariable,
    ArrayItem,
    ArrayKeysOp,
    ArrayLiteral,
    AssignDefaultOp,
    CaseClause,
    CaseModificationOp,
    DefaultValueOp,
    ErrorIfUnsetOp,
    LengthOp,
    ParameterExpansionPart,
    ParameterOperation,
    PatternRemovalOp,
    PatternReplacementOp,
    SubstringOp,
    TransformOp,
    UseAlternativeOp,
    VarNamePrefixOp,
)

__all__ = [
    "ArithArrayElement",
    "ArithAssignment",
    "ArithBinary",
    "ArithExpr",
    "ArithGroup",
    "ArithNumber",
    "ArithParameter",
    "ArithTernary",
    "ArithUnary",
    "ArithVariable",
    "ArrayItem",
    "ArrayKeysOp",
    "ArrayLiteral",
    "AssignDefaultOp",
    "CaseClause",
    "CaseModificationOp",
    "DefaultValueOp",
    "ErrorIfUnsetOp",
    "LengthOp",
    "ParameterExpansionPart",
    "ParameterOperation",
    "PatternRemovalOp",
    "PatternReplacementOp",
    "SubstringOp",
    "TransformOp",
    "UseAlternativeOp",
    "VarNamePrefixOp",
]
