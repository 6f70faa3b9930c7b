"""Local builtin implementation.

Usage: local [-aAiInrx] [name[=value] ...]

Create variables in the current function's frame. They shadow outer
bindings until the function returns and the frame is popped.

Options:
  -I  inherit the value and attributes of the visible outer binding
"""

from typing import TYPE_CHECKING

from .declare import _result, apply_declarations, parse_options

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


def handle_local(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the local builtin."""
    # Check if we're inside a function
    if ctx.state.env.depth == 0:
        return _result("", "bash: local: can only be used in a function\n", 1)

    options, names, error = parse_options("local", args, "aAiInrx")
    if error is not None:
        return error
    inherit = options.pop("I", False)
    return apply_declarations(ctx, "local", names, options, "local", inherit=inherit)
