"""Single-quote escaping for shell arguments.

Inside single quotes a POSIX shell interprets nothing, so the only
character that needs handling is the single quote itself. Each one is
replaced by ``'\\''``: close the quote, emit an escaped quote, reopen.

Embedded NUL bytes are passed through untouched. Whether they survive the
trip to the child process depends on the execution primitive, not on this
module (``subprocess`` rejects them outright).
"""

import os
from typing import Any, Sequence

QUOTE = "'"
ESCAPED_QUOTE = "'\\''"


def escape(value: Any) -> str:
    """Quote one value so the shell reads it as a single literal argument.

    Args:
        value: Anything convertible to text. Path-like and bytes values are
            decoded with ``os.fsdecode``, everything else goes through ``str``.

    Returns:
        The quoted token

    Example:
        >>> escape("it's")
        "'it'\\\\''s'"
        >>> escape("$(whoami)")
        "'$(whoami)'"
    """
    if isinstance(value, (bytes, os.PathLike)):
        text = os.fsdecode(value)
    else:
        text = str(value)
    return QUOTE + text.replace(QUOTE, ESCAPED_QUOTE) + QUOTE


def escape_args(args: Sequence[Any] | None) -> str:
    """Escape every argument and join them with single spaces.

    An empty or missing argument list yields an empty string.
    """
    if not args:
        return ""
    return " ".join(escape(arg) for arg in args)
