"""Export builtin implementation.

Usage: export [name[=value] ...]
       export -p
       export -n name

Mark variables for export to child processes. If no arguments are given,
list all exported variables.
"""

from typing import TYPE_CHECKING

from ..types import Attribute
from .declare import apply_declarations, parse_options, print_declarations

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


def handle_export(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the export builtin."""
    options, names, error = parse_options("export", args, "np")
    if error is not None:
        return error

    # No arguments or -p: list all exported variables
    if options.pop("p", False) or not names:
        return print_declarations(
            ctx,
            "export",
            names,
            predicate=lambda binding: Attribute.EXPORTED in binding.attributes,
        )

    # -n removes the export attribute instead of adding it
    remove_export = options.pop("n", False)
    return apply_declarations(ctx, "export", names, {"x": not remove_export}, scope=None)
