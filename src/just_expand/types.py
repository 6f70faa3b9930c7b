"""Shared types for just-expand."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ExecResult:
    """Result of running a storage builtin."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


@dataclass
class ExecutionLimits:
    """Limits that keep expansion from running away."""

    max_call_depth: int = 1000
    """Maximum number of nested function frames."""

    max_reference_depth: int = 100
    """Maximum length of a nameref chain."""

    max_arithmetic_depth: int = 128
    """Maximum depth of identifier re-evaluation inside arithmetic."""

    max_string_length: int = 10 * 1024 * 1024
    """Maximum length of a single expansion result (10MB)."""
