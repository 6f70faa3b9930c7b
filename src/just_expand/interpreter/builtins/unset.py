"""Unset builtin implementation.

Usage: unset [-v] [-n] [name ...]

Remove variables or array elements.

Options:
  -v  Treat each name as a variable name (default)
  -n  If name is a nameref, remove the reference itself, not its target
"""

from typing import TYPE_CHECKING

from ..arrays import element_key, unset_element
from ..errors import ExpansionError, ReadOnlyError
from ..types import is_valid_name
from ...parser.words import split_subscript
from .declare import _result, parse_options

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


def handle_unset(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the unset builtin."""
    options, names, error = parse_options("unset", args, "vn")
    if error is not None:
        return error
    keep_target = options.get("n", False)

    env = ctx.state.env
    exit_code = 0
    stderr_parts = []

    for name in names:
        # Allow name and name[subscript]
        base_name, subscript = split_subscript(name)
        if not is_valid_name(base_name):
            stderr_parts.append(f"bash: unset: `{name}': not a valid identifier\n")
            exit_code = 1
            continue
        try:
            if subscript is not None:
                unset_element(ctx, base_name, element_key(ctx, base_name, subscript))
            else:
                env.erase(base_name, keep_target=keep_target)
        except ReadOnlyError as e:
            stderr_parts.append(f"bash: unset: {e.name}: cannot unset: readonly variable\n")
            exit_code = 1
        except ExpansionError as e:
            stderr_parts.append(e.stderr)
            exit_code = 1

    return _result("", "".join(stderr_parts), exit_code)
