"""Set builtin implementation.

set - Set or unset shell options and positional parameters.

Usage: set [-u | +u] [-o nounset | +o nounset] [--] [arg ...]

Options:
  -u  nounset    Treat unset variables as an error when substituting

Arguments after the options (or after --) replace the positional
parameters of the current frame. With no arguments, print every
variable in a form that can be read back.
"""

import re
from typing import TYPE_CHECKING

from ..types import AssociativeArray, IndexedArray
from .declare import _result

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult

_SAFE_VALUE_RE = re.compile(r'^[a-zA-Z0-9_/.,:@%^+=~-]+$')

# Long option names understood by -o / +o.
_LONG_OPTIONS = {"nounset": "nounset"}


def _shell_quote_value(value: str) -> str:
    """Quote a value for set output, matching bash behavior.

    Simple values (alphanumeric etc.) are unquoted.
    Empty values become ''.
    Values with special chars are single-quoted with embedded
    single quotes escaped as '\\''."""
    if not value:
        return "''"
    if _SAFE_VALUE_RE.match(value):
        return value
    return "'" + value.replace("'", "'\\''") + "'"


def _list_variables(ctx: "InterpreterContext") -> "ExecResult":
    env = ctx.state.env
    lines = []
    for name in env.names():
        binding = env.lookup(name)
        value = binding.value
        if isinstance(value, IndexedArray):
            pairs = " ".join(
                f"[{i}]={_shell_quote_value(value.elements[i])}" for i in value.indices()
            )
            lines.append(f"{name}=({pairs})")
        elif isinstance(value, AssociativeArray):
            pairs = " ".join(f"[{k}]={_shell_quote_value(v)}" for k, v in value.elements.items())
            lines.append(f"{name}=({pairs})")
        elif isinstance(value, str):
            lines.append(f"{name}={_shell_quote_value(value)}")
    return _result("\n".join(lines) + "\n" if lines else "", "", 0)


def handle_set(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the set builtin."""
    # No arguments: print all variables
    if not args:
        return _list_variables(ctx)

    options = ctx.state.options
    i = 0
    while i < len(args):
        arg = args[i]

        # Handle -- which starts positional parameters
        if arg == "--":
            ctx.state.env.set_positional(args[i + 1:])
            return _result("", "", 0)

        if arg in ("-o", "+o"):
            if i + 1 >= len(args):
                state = "on" if options.nounset else "off"
                return _result(f"nounset        \t{state}\n", "", 0)
            i += 1
            if args[i] not in _LONG_OPTIONS:
                return _result("", f"bash: set: {args[i]}: invalid option name\n", 1)
            setattr(options, _LONG_OPTIONS[args[i]], arg == "-o")
        elif arg[:1] in "-+" and len(arg) > 1:
            for c in arg[1:]:
                if c != "u":
                    return _result("", f"bash: set: {arg[0]}{c}: invalid option\n", 2)
                options.nounset = arg[0] == "-"
        else:
            # First non-option argument starts the positional parameters
            ctx.state.env.set_positional(args[i:])
            return _result("", "", 0)
        i += 1

    return _result("", "", 0)
