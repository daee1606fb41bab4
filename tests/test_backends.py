"""Tests for execution backends."""

import pytest

from safeshell.backends import (
    ExecutionBackend,
    ProcessPipe,
    RecordingBackend,
    RecordingPipe,
    SubprocessBackend,
)


class TestRecordingBackend:
    """Tests for RecordingBackend."""

    def test_is_execution_backend(self):
        assert isinstance(RecordingBackend(), ExecutionBackend)

    def test_replays_responses_as_triples(self):
        backend = RecordingBackend(responses=[(True, 0), (False, 2)])

        assert backend.run("first") == (True, "exit", 0)
        assert backend.run("second") == (False, "exit", 2)

    def test_exhausted_responses_fail(self):
        backend = RecordingBackend(responses=[(True, 0)])
        backend.run("one")

        assert backend.run("two") == (False, "exit", 1)

    def test_records_commands_in_order(self):
        backend = RecordingBackend()
        for i in range(5):
            backend.run(f"cmd {i}")

        assert backend.commands == [f"cmd {i}" for i in range(5)]

    def test_open_returns_pipe(self):
        backend = RecordingBackend(outputs=[(True, "hello\n")])
        pipe = backend.open("echo 'hello'")

        assert isinstance(pipe, RecordingPipe)
        assert pipe.read() == "hello\n"
        assert backend.opened == ["echo 'hello'"]
        assert backend.pipes == [pipe]

    def test_open_failure_returns_none(self):
        backend = RecordingBackend(outputs=[(False, None)])

        assert backend.open("missing") is None
        assert backend.opened == ["missing"]
        assert backend.pipes == []

    def test_open_exhausted_returns_none(self):
        assert RecordingBackend().open("anything") is None

    def test_run_and_open_recorded_separately(self):
        backend = RecordingBackend(responses=[(True, 0)], outputs=[(True, "")])
        backend.run("a")
        backend.open("b")

        assert backend.commands == ["a"]
        assert backend.opened == ["b"]


class TestRecordingPipe:
    """Tests for RecordingPipe."""

    def test_counts_reads_and_closes(self):
        pipe = RecordingPipe("data")
        assert pipe.read() == "data"
        pipe.close()

        assert pipe.reads == 1
        assert pipe.closes == 1
        assert pipe.closed


@pytest.mark.posix
class TestSubprocessBackend:
    """Tests for SubprocessBackend against a real /bin/sh."""

    def test_run_success(self):
        assert SubprocessBackend().run("true") == (True, "exit", 0)

    def test_run_failure(self):
        assert SubprocessBackend().run("false") == (False, "exit", 1)

    def test_run_exit_code(self):
        assert SubprocessBackend().run("exit 3") == (False, "exit", 3)

    def test_run_signal(self):
        assert SubprocessBackend().run("kill -9 $$") == (False, "signal", 9)

    def test_run_nul_byte_returns_empty(self):
        """subprocess refuses embedded NUL bytes; that surfaces as no result."""
        assert SubprocessBackend().run("echo 'a\x00b'") == ()

    def test_run_missing_shell_returns_empty(self):
        backend = SubprocessBackend(shell="/nonexistent/shell")
        assert backend.run("true") == ()

    def test_open_reads_output(self):
        pipe = SubprocessBackend().open("printf '%s' 'hello world'")

        assert isinstance(pipe, ProcessPipe)
        try:
            assert pipe.read() == "hello world"
        finally:
            assert pipe.close() == 0
        assert pipe.returncode == 0

    def test_open_reports_child_status_on_close(self):
        pipe = SubprocessBackend().open("echo x; exit 4")
        pipe.read()

        assert pipe.close() == 4

    def test_open_failure_returns_none(self):
        backend = SubprocessBackend(shell="/nonexistent/shell")
        assert backend.open("true") is None

    def test_open_unknown_encoding_returns_none(self):
        assert SubprocessBackend(encoding="no-such-codec").open("echo hi") is None

    def test_open_decodes_with_encoding(self):
        pipe = SubprocessBackend(encoding="utf-8").open("printf '%s' 'café'")
        try:
            assert pipe.read() == "café"
        finally:
            pipe.close()
