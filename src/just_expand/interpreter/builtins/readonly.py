"""Readonly builtin implementation.

Usage: readonly [-aAp] [name[=value] ...]

Marks variables as readonly. Once a variable is marked readonly, it cannot
be reassigned or unset.

Options:
  -a    Declare indexed arrays
  -A    Declare associative arrays
  -p    Display all readonly variables
"""

from typing import TYPE_CHECKING

from .declare import apply_declarations, parse_options, print_declarations

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


def handle_readonly(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the readonly builtin."""
    options, names, error = parse_options("readonly", args, "aAp")
    if error is not None:
        return error

    # If no names or -p, show all readonly variables
    if options.pop("p", False) or not names:
        return print_declarations(
            ctx, "readonly", names, predicate=lambda binding: binding.readonly
        )

    options["r"] = True
    return apply_declarations(ctx, "readonly", names, options, scope=None)
