"""Safe command execution.

``ShellExecutor`` ties the pieces together. It validates and builds the
command, hands the command string to its backend, and shapes the result.
The backend is injected, so tests can substitute a ``RecordingBackend``
and never spawn a process.

Module-level ``execute`` and ``capture`` use a process-wide default
executor. Its backend can be swapped with ``set_backend`` or, for a
bounded block, ``use_backend``. Swapping is an unsynchronized write meant
for setup time, not for use while commands are running on other threads.

Only an invalid program name raises (``InvalidProgramName``). Every other
failure comes back in the result with ``success`` False. A caller that
does not look at ``success`` will carry on as if the command had worked.
"""

from contextlib import contextmanager
from typing import Any, Generator, Sequence

from .backends import ExecutionBackend
from .command import build_command, validate_args, validate_program
from .config import ShellConfig, create_backend, load_config
from .exceptions import ErrorTypes, InvalidProgramName
from .logging import get_logger
from .results import CaptureResult, ExecResult, normalize_exit

logger = get_logger(__name__)


class ShellExecutor:
    """Runs commands built from a program name and an argument list.

    Attributes:
        backend: Execution capability used for every call
        strict_programs: Apply the strict allowlist to program names

    Example:
        >>> executor = ShellExecutor(RecordingBackend(responses=[(True, 0)]))
        >>> executor.execute("echo", ["hello world"])
        ExecResult(success=True, code=0)
        >>> executor.backend.commands
        ["echo 'hello world'"]
    """

    def __init__(self, backend: ExecutionBackend, strict_programs: bool = False) -> None:
        self.backend = backend
        self.strict_programs = strict_programs

    @classmethod
    def from_config(cls, config: ShellConfig) -> "ShellExecutor":
        """Create an executor bound to the production backend for ``config``."""
        return cls(create_backend(config), strict_programs=config.strict_programs)

    def build(self, program: str, args: Sequence[Any] | None = None) -> str:
        """Build the command string this executor would run.

        Raises:
            InvalidProgramName: If the program name fails validation
        """
        return build_command(program, args, strict=self.strict_programs)

    def _check_program(self, program: str) -> None:
        ok, err = validate_program(program, strict=self.strict_programs)
        if not ok:
            raise InvalidProgramName(err or "invalid program name", program=program)

    def _check_args(self, program: str, args: Sequence[Any] | None) -> bool:
        if args is None:
            return True
        ok, err = validate_args(args)
        if not ok:
            logger.warning(
                f"Rejected arguments: {err}",
                program=program,
                error_type=ErrorTypes.INVALID_ARGUMENT_TYPE,
            )
        return ok

    def execute(self, program: str, args: Sequence[str] | None = None) -> ExecResult:
        """Run a command and report only its completion status.

        Args:
            program: Program name, used unquoted
            args: Arguments, each quoted

        Returns:
            ``ExecResult(success, code)``. An argument list that is not a
            list of str returns ``ExecResult(False, None)`` without running
            anything.

        Raises:
            InvalidProgramName: If the program name fails validation
        """
        self._check_program(program)
        if not self._check_args(program, args):
            return ExecResult(success=False, code=None)

        command = self.build(program, args)
        logger.trace(f"Executing: {command}")
        raw = self.backend.run(command)
        if not isinstance(raw, tuple):
            raw = (raw,)
        result = normalize_exit(*raw)
        if result.failed:
            logger.debug(
                f"Command failed: {command}",
                code=result.code,
                error_type=ErrorTypes.EXECUTION_FAILURE,
            )
        return result

    def capture(self, program: str, args: Sequence[str] | None = None) -> CaptureResult:
        """Run a command and read its entire standard output.

        The pipe is always closed before returning, whether or not the read
        succeeded. ``success`` means the output was read; the child's exit
        status is not reflected in it.

        Returns:
            ``CaptureResult(True, output)``, or ``CaptureResult(False, None)``
            if the pipe could not be opened or read, or if the arguments are
            not a list of str

        Raises:
            InvalidProgramName: If the program name fails validation
        """
        self._check_program(program)
        if not self._check_args(program, args):
            return CaptureResult.unavailable()

        command = self.build(program, args)
        logger.trace(f"Capturing: {command}")
        handle = self.backend.open(command)
        if handle is None:
            logger.warning(
                f"Pipe could not be opened: {command}",
                error_type=ErrorTypes.PIPE_OPEN_FAILURE,
            )
            return CaptureResult.unavailable()

        try:
            output = handle.read()
        except OSError as e:
            logger.warning(
                f"Pipe read failed: {command}: {e}",
                error_type=ErrorTypes.PIPE_READ_FAILURE,
            )
            return CaptureResult.unavailable()
        finally:
            handle.close()
        return CaptureResult.captured(output)


_default_executor: ShellExecutor | None = None


def get_executor() -> ShellExecutor:
    """Return the process-wide executor, creating it from config on first use."""
    global _default_executor
    if _default_executor is None:
        _default_executor = ShellExecutor.from_config(load_config())
    return _default_executor


def set_executor(executor: ShellExecutor | None) -> ShellExecutor | None:
    """Replace the process-wide executor and return the previous one.

    Passing None makes the next ``get_executor`` call rebuild it from config.
    """
    global _default_executor
    previous = _default_executor
    _default_executor = executor
    return previous


def set_backend(backend: ExecutionBackend) -> ExecutionBackend:
    """Rebind the process-wide executor's backend and return the previous one."""
    executor = get_executor()
    previous = executor.backend
    executor.backend = backend
    return previous


@contextmanager
def use_backend(backend: ExecutionBackend) -> Generator[ExecutionBackend, None, None]:
    """Temporarily rebind the process-wide backend.

    Example:
        >>> with use_backend(RecordingBackend(responses=[(True, 0)])) as backend:
        ...     execute("make", ["test"])
        >>> backend.commands
        ["make 'test'"]
    """
    previous = set_backend(backend)
    try:
        yield backend
    finally:
        set_backend(previous)


def execute(program: str, args: Sequence[str] | None = None) -> ExecResult:
    """Run a command with the process-wide executor. See ``ShellExecutor.execute``."""
    return get_executor().execute(program, args)


def capture(program: str, args: Sequence[str] | None = None) -> CaptureResult:
    """Capture a command's output with the process-wide executor. See ``ShellExecutor.capture``."""
    return get_executor().capture(program, args)
