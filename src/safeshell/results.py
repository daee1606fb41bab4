"""Execution outcomes and exit-result normalization.

Process-completion primitives report back in more than one shape:

- a triple ``(status, reason, code)``, where ``status`` is True on a clean
  exit and ``reason`` is ``"exit"`` or ``"signal"``
- a single exit code, where zero means success
- a single boolean
- nothing at all

``decode_raw_exit`` sorts the raw positional values into one of the
``RawExit`` variants below, and ``normalize_exit`` maps each variant onto
one ``ExecResult``. Shapes outside this list are failures with code 1;
they are never raised.
"""

from dataclasses import dataclass
from typing import Any, NamedTuple

FAILURE_CODE = 1


class ExecResult(NamedTuple):
    """Outcome of fire-and-forget execution.

    Unpacks as ``(success, code)``. Check ``success``: a caller that ignores
    it carries on exactly as if the command had worked.
    """

    success: bool
    code: int | float | None

    @property
    def failed(self) -> bool:
        return not self.success


class CaptureResult(NamedTuple):
    """Outcome of capture execution.

    Unpacks as ``(success, output)``. ``output`` is None when the pipe
    could not be opened or read.
    """

    success: bool
    output: str | None

    @property
    def failed(self) -> bool:
        return not self.success

    @classmethod
    def captured(cls, output: str) -> "CaptureResult":
        return cls(success=True, output=output)

    @classmethod
    def unavailable(cls) -> "CaptureResult":
        return cls(success=False, output=None)


@dataclass(frozen=True)
class ExitTriple:
    """Three or more values: ``(status, reason, code, ...)``."""

    status: Any
    reason: Any
    code: Any


@dataclass(frozen=True)
class ExitCode:
    """A single numeric exit code."""

    code: int | float


@dataclass(frozen=True)
class ExitFlag:
    """A single boolean completion flag."""

    flag: bool


@dataclass(frozen=True)
class ExitMissing:
    """No value, or an explicit None."""


@dataclass(frozen=True)
class ExitUnknown:
    """Any shape not listed above."""

    values: tuple[Any, ...]


RawExit = ExitTriple | ExitCode | ExitFlag | ExitMissing | ExitUnknown


def decode_raw_exit(*raw: Any) -> RawExit:
    """Classify raw completion values by arity and type.

    ``bool`` is tested before ``int`` since it is a subclass of it.
    """
    if len(raw) >= 3:
        return ExitTriple(status=raw[0], reason=raw[1], code=raw[2])
    if len(raw) == 0:
        return ExitMissing()
    if len(raw) == 1:
        value = raw[0]
        if value is None:
            return ExitMissing()
        if isinstance(value, bool):
            return ExitFlag(flag=value)
        if isinstance(value, (int, float)):
            return ExitCode(code=value)
    return ExitUnknown(values=tuple(raw))


def normalize_exit(*raw: Any) -> ExecResult:
    """Reduce a raw completion result to ``ExecResult(success, code)``.

    Example:
        >>> normalize_exit(True, "exit", 0)
        ExecResult(success=True, code=0)
        >>> normalize_exit(1)
        ExecResult(success=False, code=1)
        >>> normalize_exit(True)
        ExecResult(success=True, code=0)
        >>> normalize_exit(None)
        ExecResult(success=False, code=1)
    """
    decoded = decode_raw_exit(*raw)
    if isinstance(decoded, ExitTriple):
        return ExecResult(success=decoded.status is True, code=decoded.code)
    if isinstance(decoded, ExitCode):
        return ExecResult(success=decoded.code == 0, code=decoded.code)
    if isinstance(decoded, ExitFlag):
        return ExecResult(success=decoded.flag, code=0 if decoded.flag else FAILURE_CODE)
    # ExitMissing and ExitUnknown
    return ExecResult(success=False, code=FAILURE_CODE)
