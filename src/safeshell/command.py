"""Command construction from a program name and an argument list.

The program name and the arguments are made safe in two different ways:

- The program name is the first, unquoted token of the command, so it is
  validated by rejecting shell metacharacters, whitespace and quotes.
- Arguments are always quoted (see ``safeshell.quoting``) and their content
  is never inspected. Any byte sequence, metacharacters included, can be
  passed as data.

The metacharacter set is curated by hand and is not proven complete for
every shell grammar. ``strict=True`` adds a path-like allowlist on top of
it for callers who want a closed set of accepted characters.
"""

import re
from typing import Any, Sequence

from .exceptions import InvalidProgramName
from .quoting import escape_args
from .validate import CheckResult, check_type

SHELL_METACHARACTERS = frozenset(";&|`$(){}[]<>!#~")
QUOTE_CHARACTERS = frozenset("\"'")

# Path-like names only. "=" is excluded so a name cannot turn into an
# environment assignment.
STRICT_PROGRAM_PATTERN = re.compile(r"^[A-Za-z0-9_./+@%,:-]+$")


def validate_program(name: Any, strict: bool = False) -> CheckResult:
    """Check that a program name can be used unquoted at the head of a command.

    Args:
        name: Candidate program name
        strict: Also require every character to be in the path-like allowlist

    Returns:
        ``(True, None)`` if the name is acceptable, ``(False, error)`` otherwise

    Example:
        >>> validate_program("/usr/bin/find")
        (True, None)
        >>> validate_program("ls; rm")
        (False, 'program name contains shell metacharacters: ls; rm')
    """
    ok, _ = check_type(name, str, "program name")
    if not ok:
        return False, f"program name must be str, got {type(name).__name__}"
    if name == "":
        return False, "program name must not be empty"
    if any(ch in SHELL_METACHARACTERS for ch in name):
        return False, f"program name contains shell metacharacters: {name}"
    if any(ch.isspace() for ch in name):
        return False, f"program name contains whitespace: {name!r}"
    if any(ch in QUOTE_CHARACTERS for ch in name):
        return False, f"program name contains quote characters: {name}"
    if strict and not STRICT_PROGRAM_PATTERN.match(name):
        return False, f"program name contains characters outside the strict allowlist: {name!r}"
    return True, None


def validate_args(args: Any) -> CheckResult:
    """Check that an argument list is a list or tuple of strings.

    Only the types are checked. The content of each argument is left alone
    because quoting makes any content safe.

    Returns:
        ``(True, None)`` if every element is a str, ``(False, error)`` naming
        the first offending index otherwise
    """
    if not isinstance(args, (list, tuple)):
        return False, f"args must be list or tuple, got {type(args).__name__}"
    for index, arg in enumerate(args):
        ok, _ = check_type(arg, str, f"args[{index}]")
        if not ok:
            return False, f"args[{index}] must be str, got {type(arg).__name__}"
    return True, None


def build_command(
    program: str,
    args: Sequence[Any] | None = None,
    strict: bool = False,
) -> str:
    """Build a shell command string from a program name and arguments.

    Args:
        program: Program to run, validated with ``validate_program``
        args: Arguments, each quoted with ``escape``. ``None`` means none.
        strict: Apply the strict allowlist to the program name

    Returns:
        ``program`` alone when there are no arguments, otherwise the program
        followed by a space and the escaped arguments

    Raises:
        InvalidProgramName: If the program name fails validation

    Example:
        >>> build_command("echo", ["hello world"])
        "echo 'hello world'"
        >>> build_command("echo", [])
        'echo'
    """
    ok, err = validate_program(program, strict=strict)
    if not ok:
        raise InvalidProgramName(err or "invalid program name", program=program)
    if args:
        return f"{program} {escape_args(args)}"
    return program
