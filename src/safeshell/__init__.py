"""safeshell - Shell command construction and execution without injection.

Commands are always built from a program name plus a list of arguments,
never from a raw string. The program name is validated, every argument is
single-quoted, and the command runs through a swappable backend.

Quick Start:
    from safeshell import execute, capture

    ok, code = execute("mkdir", ["-p", "/tmp/work dir"])
    ok, output = capture("git", ["log", "-1", "--format=%H"])
"""

__version__ = "0.1.0"

from safeshell.backends import ExecutionBackend, RecordingBackend, SubprocessBackend
from safeshell.command import build_command, validate_args, validate_program
from safeshell.exceptions import ErrorTypes, InvalidProgramName, ShellError
from safeshell.executor import (
    ShellExecutor,
    capture,
    execute,
    get_executor,
    set_backend,
    use_backend,
)
from safeshell.quoting import escape, escape_args
from safeshell.results import CaptureResult, ExecResult, normalize_exit

__all__ = [
    "__version__",
    "CaptureResult",
    "ErrorTypes",
    "ExecResult",
    "ExecutionBackend",
    "InvalidProgramName",
    "RecordingBackend",
    "ShellError",
    "ShellExecutor",
    "SubprocessBackend",
    "build_command",
    "capture",
    "escape",
    "escape_args",
    "execute",
    "get_executor",
    "normalize_exit",
    "set_backend",
    "use_backend",
    "validate_args",
    "validate_program",
]
