"""Exceptions and error classifications for safeshell.

Only one failure is raised out of the command layer: an invalid program
name passed to ``build_command``. Every other failure mode (bad argument
types, non-zero exits, pipes that cannot be opened) is returned to the
caller as a value and classified with one of the ``ErrorTypes`` constants.
"""

from typing import Any


class ErrorTypes:
    """Classification of command-layer failures.

    These strings are used in log context and pipeline reports so that
    callers can tell failure categories apart without exception handling.
    """

    INVALID_PROGRAM_NAME = "InvalidProgramName"
    INVALID_ARGUMENT_TYPE = "InvalidArgumentType"
    EXECUTION_FAILURE = "ExecutionFailure"
    PIPE_OPEN_FAILURE = "PipeOpenFailure"
    PIPE_READ_FAILURE = "PipeReadFailure"
    VALIDATION_ERROR = "ValidationError"


class ShellError(Exception):
    """Base class for safeshell errors.

    Attributes:
        msg: Human-readable error message
        result: Result dict with failed=True and any additional fields

    Example:
        raise ShellError("Pipeline file is empty", path="/tmp/build.yml")
        # Creates result: {"failed": True, "msg": "Pipeline file is empty", "path": "/tmp/build.yml"}
    """

    error_type = ErrorTypes.VALIDATION_ERROR

    def __init__(self, msg: str, **result_fields: Any) -> None:
        super().__init__(msg)
        self.msg = msg
        self.result: dict[str, Any] = {
            "failed": True,
            "msg": msg,
            "error_type": self.error_type,
            **result_fields,
        }

    def __str__(self) -> str:
        return self.msg


class InvalidProgramName(ShellError):
    """Raised when a program name cannot be placed at the head of a command.

    The program name is the one token that is never quoted, so a name that
    fails validation aborts command construction instead of being returned
    as a value.
    """

    error_type = ErrorTypes.INVALID_PROGRAM_NAME

    def __init__(self, msg: str, program: Any = None) -> None:
        super().__init__(msg, program=program)
        self.program = program


class ValidationError(ShellError):
    """Raised by ``Checker.raise_if_failed`` when any check failed."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors), errors=list(errors))
        self.errors = list(errors)


class PipelineError(ShellError):
    """Raised when a pipeline definition is malformed or empty."""

    def __init__(self, msg: str, **result_fields: Any) -> None:
        super().__init__(msg, **result_fields)
