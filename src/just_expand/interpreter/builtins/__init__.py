"""Storage builtins: declare/typeset, local, unset, readonly, export, set.

Each handler takes ``(ctx, args)`` and returns an ExecResult; engine
errors are reported through stderr and the exit code rather than raised.
"""

from .declare import handle_declare
from .export import handle_export
from .local import handle_local
from .readonly import handle_readonly
from .set import handle_set
from .unset import handle_unset

BUILTINS = {
    "declare": handle_declare,
    "typeset": handle_declare,
    "local": handle_local,
    "unset": handle_unset,
    "readonly": handle_readonly,
    "export": handle_export,
    "set": handle_set,
}

__all__ = [
    "BUILTINS",
    "handle_declare",
    "handle_export",
    "handle_local",
    "handle_readonly",
    "handle_set",
    "handle_unset",
]
