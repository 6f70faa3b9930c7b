"""Declare/typeset builtin implementation.

Usage: declare [-aAginrx] [-p] [name[=value] ...]
       typeset [-aAginrx] [-p] [name[=value] ...]

Options:
  -a  indexed array
  -A  associative array
  -g  global scope (in function context)
  -i  integer attribute
  -n  nameref
  -p  print declarations
  -r  readonly
  -x  export

Using '+' instead of '-' turns an attribute off (+i, +n, +x).
"""

from typing import TYPE_CHECKING, Optional

from ..arrays import assign_variable
from ..errors import ExpansionError, InvalidAttributeCombinationError, InvalidIdentifierError
from ..types import Attribute, AssociativeArray, IndexedArray, Reference, is_valid_name
from ...parser.words import split_subscript

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


_FLAG_ATTRIBUTES = {
    "a": Attribute.INDEXED,
    "A": Attribute.ASSOCIATIVE,
    "i": Attribute.INTEGER,
    "n": Attribute.REFERENCE,
    "r": Attribute.READONLY,
    "x": Attribute.EXPORTED,
}


def _result(stdout: str, stderr: str, exit_code: int) -> "ExecResult":
    """Create an ExecResult."""
    from ...types import ExecResult
    return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)


def parse_options(
    builtin: str, args: list[str], allowed: str
) -> tuple[dict, list[str], Optional["ExecResult"]]:
    """Split args into option flags and operands.

    Returns ``(options, names, error)``; options maps each flag letter to
    True (``-x``) or False (``+x``).
    """
    options: dict[str, bool] = {}
    names: list[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--":
            names.extend(args[i + 1:])
            break
        if arg[:1] in "-+" and len(arg) > 1 and "=" not in arg:
            for c in arg[1:]:
                if c not in allowed:
                    return options, names, _result(
                        "", f"bash: {builtin}: {arg[0]}{c}: invalid option\n", 2
                    )
                options[c] = arg[0] == "-"
        else:
            names.append(arg)
        i += 1
    return options, names, None


def split_assignment(arg: str) -> tuple[str, Optional[str], bool]:
    """``name=value`` / ``name+=value`` / ``name`` -> (name, value, append)."""
    if "=" not in arg:
        return arg, None, False
    name, value = arg.split("=", 1)
    if name.endswith("+"):
        return name[:-1], value, True
    return name, value, False


def apply_declarations(
    ctx: "InterpreterContext",
    builtin: str,
    names: list[str],
    options: dict,
    scope: Optional[str],
    inherit: bool = False,
) -> "ExecResult":
    """Create or update each named binding according to options.

    Shared by declare, local, readonly and export. Errors for one name
    are reported and the rest are still processed.
    """
    env = ctx.state.env
    set_flags = {c for c, on in options.items() if on}
    clear_flags = {c for c, on in options.items() if not on}

    if {"a", "A"} <= set_flags:
        return _result(
            "", f"bash: {builtin}: cannot use -a and -A together\n", 1
        )

    kind = None
    for c in ("a", "A", "n"):
        if c in set_flags:
            kind = _FLAG_ATTRIBUTES[c]
    add = tuple(_FLAG_ATTRIBUTES[c] for c in "ix" if c in set_flags)
    remove = tuple(_FLAG_ATTRIBUTES[c] for c in "inrx" if c in clear_flags)

    stderr_parts = []
    exit_code = 0
    for arg in names:
        name, value, append = split_assignment(arg)
        base, subscript = split_subscript(name)
        try:
            if not is_valid_name(base):
                raise InvalidIdentifierError(arg, builtin)
            if kind == Attribute.REFERENCE and ({"a", "A"} & set_flags or subscript):
                raise InvalidAttributeCombinationError(
                    base, "reference variable cannot be an array"
                )
            if Attribute.REFERENCE in remove:
                _drop_reference(ctx, base)
            if kind == Attribute.REFERENCE and value is not None:
                env.set_reference(base, value, scope)
            else:
                env.declare(base, kind=kind, add=add, remove=remove, scope=scope, inherit=inherit)
                if value is not None:
                    assign_variable(ctx, name, value, scope=scope, append=append)
            if "r" in set_flags:
                env.declare(base, add=(Attribute.READONLY,), scope=scope)
        except ExpansionError as e:
            stderr_parts.append(e.stderr)
            exit_code = 1
    return _result("", "".join(stderr_parts), exit_code)


def _drop_reference(ctx: "InterpreterContext", name: str) -> None:
    """+n: keep the target name as a plain string value."""
    binding = ctx.state.env.lookup(name)
    if binding is not None and isinstance(binding.value, Reference):
        binding.value = binding.value.target or None


def _quote_value(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$").replace("`", "\\`")
    )
    return f'"{escaped}"'


def format_declaration(ctx: "InterpreterContext", name: str) -> Optional[str]:
    """Render the ``declare`` statement that recreates name, or None if unbound."""
    binding = ctx.state.env.lookup(name)
    if binding is None:
        return None
    flags = binding.flags
    value = binding.value

    if isinstance(value, Reference):
        if not value.target:
            return f"declare -{flags} {name}"
        return f"declare -{flags} {name}={_quote_value(value.target)}"

    if isinstance(value, (IndexedArray, AssociativeArray)):
        pairs = " ".join(
            f"[{key}]={_quote_value(val)}" for key, val in _binding_items(value)
        )
        return f"declare -{flags} {name}=({pairs})"

    flag_str = f"-{flags}" if flags else "--"
    if value is None:
        return f"declare {flag_str} {name}"
    return f"declare {flag_str} {name}={_quote_value(value)}"


def _binding_items(value) -> list[tuple[str, str]]:
    if isinstance(value, IndexedArray):
        return [(str(i), value.elements[i]) for i in value.indices()]
    return list(value.elements.items())


def print_declarations(
    ctx: "InterpreterContext", builtin: str, names: list[str], predicate=None
) -> "ExecResult":
    """declare -p: one line per name (or every visible binding)."""
    lines = []
    stderr_parts = []
    exit_code = 0
    env = ctx.state.env

    if not names:
        seen = set()
        for frame in reversed(env.frames):
            seen.update(frame.bindings)
        names_to_print = sorted(seen)
    else:
        names_to_print = names

    for name in names_to_print:
        binding = env.lookup(name)
        if binding is not None and predicate is not None and not predicate(binding):
            continue
        decl = format_declaration(ctx, name)
        if decl:
            lines.append(decl)
        elif names:
            stderr_parts.append(f"bash: {builtin}: {name}: not found\n")
            exit_code = 1

    stdout = "\n".join(lines) + "\n" if lines else ""
    return _result(stdout, "".join(stderr_parts), exit_code)


def handle_declare(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the declare/typeset builtin."""
    options, names, error = parse_options("declare", args, "aAginprx")
    if error is not None:
        return error

    # Print mode: show variable declarations
    if options.pop("p", False) or not names:
        return print_declarations(ctx, "declare", names)

    scope = "global" if options.pop("g", False) else "local"
    return apply_declarations(ctx, "declare", names, options, scope)
