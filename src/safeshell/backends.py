"""Execution backends.

A backend is the only component that touches the operating system. It
offers two capabilities:

- ``run(command)`` runs a command string through the shell, blocks until
  it completes, and returns the raw completion values as a tuple. The
  tuple is handed to ``normalize_exit`` unchanged.
- ``open(command)`` starts a command with its standard output on a pipe
  and returns a readable handle, or None if the pipe could not be opened.

``SubprocessBackend`` is the production binding. ``RecordingBackend``
records every command it receives and replays pre-programmed responses,
so tests can observe execution without spawning anything.
"""

import io
import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Any, Iterable, Protocol

logger = logging.getLogger(__name__)


class PipeHandle(Protocol):
    """Readable handle to a child's standard output."""

    def read(self) -> str:
        """Read until end of stream."""
        ...

    def close(self) -> Any:
        """Release the pipe."""
        ...


class ExecutionBackend(ABC):
    """Abstract base class for command execution strategies."""

    @abstractmethod
    def run(self, command: str) -> tuple[Any, ...]:
        """Run a command synchronously.

        Args:
            command: Complete shell command string

        Returns:
            Raw completion values in any shape ``normalize_exit`` accepts
        """
        pass

    @abstractmethod
    def open(self, command: str) -> PipeHandle | None:
        """Start a command with a pipe on its standard output.

        Args:
            command: Complete shell command string

        Returns:
            A handle to read from, or None if the pipe could not be opened
        """
        pass


class ProcessPipe:
    """Pipe handle backed by a ``subprocess.Popen``.

    Closing the handle closes the stream and reaps the child.
    """

    def __init__(self, process: "subprocess.Popen[str]") -> None:
        self.process = process
        self.returncode: int | None = None

    def read(self) -> str:
        if self.process.stdout is None:
            return ""
        return self.process.stdout.read()

    def close(self) -> int | None:
        if self.process.stdout is not None:
            self.process.stdout.close()
        self.returncode = self.process.wait()
        return self.returncode


class SubprocessBackend(ExecutionBackend):
    """Backend that runs commands with ``subprocess`` through ``/bin/sh``.

    Attributes:
        shell: Shell executable, or None for the platform default
        encoding: Encoding used to decode captured output
    """

    def __init__(self, shell: str | None = None, encoding: str = "utf-8") -> None:
        self.shell = shell
        self.encoding = encoding

    def run(self, command: str) -> tuple[Any, ...]:
        try:
            completed = subprocess.run(  # noqa: S602
                command,
                shell=True,
                executable=self.shell,
            )
        except (OSError, ValueError) as e:
            logger.debug("Failed to spawn %r: %s", command, e)
            return ()

        code = completed.returncode
        if code < 0:
            return (False, "signal", -code)
        return (code == 0, "exit", code)

    def open(self, command: str) -> ProcessPipe | None:
        try:
            process = subprocess.Popen(  # noqa: S602
                command,
                shell=True,
                executable=self.shell,
                stdout=subprocess.PIPE,
                text=True,
                encoding=self.encoding,
                errors="surrogateescape",
            )
        except (OSError, LookupError, ValueError) as e:
            logger.debug("Failed to open pipe for %r: %s", command, e)
            return None
        return ProcessPipe(process)


class RecordingPipe(io.StringIO):
    """In-memory pipe handle that counts reads and closes."""

    def __init__(self, output: str) -> None:
        super().__init__(output)
        self.reads = 0
        self.closes = 0

    def read(self, size: int | None = -1) -> str:
        self.reads += 1
        return super().read(size)

    def close(self) -> None:
        self.closes += 1
        super().close()


class RecordingBackend(ExecutionBackend):
    """Backend that records commands and replays canned responses.

    Responses are consumed in order. Once a list is exhausted, ``run``
    reports failure with code 1 and ``open`` reports that no pipe could be
    opened.

    Attributes:
        commands: Every command passed to ``run``, in call order
        opened: Every command passed to ``open``, in call order
        pipes: Handles returned by ``open``, in call order

    Example:
        >>> backend = RecordingBackend(responses=[(True, 0), (False, 2)])
        >>> backend.run("make 'test'")
        (True, 'exit', 0)
        >>> backend.commands
        ["make 'test'"]
    """

    def __init__(
        self,
        responses: Iterable[tuple[bool, int | None]] = (),
        outputs: Iterable[tuple[bool, str | None]] = (),
    ) -> None:
        self.responses = list(responses)
        self.outputs = list(outputs)
        self.commands: list[str] = []
        self.opened: list[str] = []
        self.pipes: list[RecordingPipe] = []

    def run(self, command: str) -> tuple[Any, ...]:
        index = len(self.commands)
        self.commands.append(command)
        if index < len(self.responses):
            success, code = self.responses[index]
            return (success, "exit", code)
        return (False, "exit", 1)

    def open(self, command: str) -> RecordingPipe | None:
        index = len(self.opened)
        self.opened.append(command)
        if index >= len(self.outputs):
            return None
        ok, output = self.outputs[index]
        if not ok:
            return None
        pipe = RecordingPipe(output or "")
        self.pipes.append(pipe)
        return pipe
