"""Tests for pipeline orchestration."""

import io
import json
import logging

import pytest
from rich.console import Console

from safeshell.backends import RecordingBackend
from safeshell.exceptions import InvalidProgramName, PipelineError
from safeshell.executor import ShellExecutor, use_backend
from safeshell.pipeline import (
    JsonPipelineReporter,
    PipelineResult,
    Step,
    StepResult,
    TextPipelineReporter,
    format_summary_table,
    load_pipeline,
    run_pipeline,
)

STEPS = [
    Step("lint", "ruff", ["check", "src"]),
    Step("test", "pytest", ["-q"]),
    Step("build", "python", ["-m", "build"]),
]


class TestStep:
    """Tests for Step validation."""

    def test_valid_step(self):
        assert Step("lint", "ruff", ["check"]).validate().ok

    def test_collects_all_failures(self):
        checker = Step("", "ls; rm", ["ok", 3]).validate()

        assert checker.errors == [
            "name must not be empty",
            "program name contains shell metacharacters: ls; rm",
            "args[1] must be str, got int",
        ]

    def test_strict_validation(self):
        assert Step("env", "A=b").validate().ok
        assert not Step("env", "A=b").validate(strict=True).ok

    def test_from_dict_defaults(self):
        step = Step.from_dict({"name": "date", "program": "date"})
        assert step.args == []


class TestRunPipeline:
    """Tests for run_pipeline."""

    def test_runs_all_steps_in_order(self):
        backend = RecordingBackend(responses=[(True, 0)] * 3)
        result = run_pipeline(STEPS, executor=ShellExecutor(backend))

        assert result.success is True
        assert result.passed == 3
        assert backend.commands == [
            "ruff 'check' 'src'",
            "pytest '-q'",
            "python '-m' 'build'",
        ]

    def test_halts_on_first_failure(self, caplog):
        caplog.set_level(logging.INFO, logger="safeshell")
        backend = RecordingBackend(responses=[(True, 0), (False, 2), (True, 0)])
        result = run_pipeline(STEPS, executor=ShellExecutor(backend))

        assert result.success is False
        assert [s.status for s in result.steps] == ["PASS", "FAIL"]
        assert result.steps[1].code == 2
        assert result.not_run == 1
        assert len(backend.commands) == 2
        assert "step test failed, halting pipeline" in caplog.text

    def test_dry_run_runs_nothing(self):
        backend = RecordingBackend()
        result = run_pipeline(STEPS, executor=ShellExecutor(backend), dry_run=True)

        assert backend.commands == []
        assert result.success is True
        assert result.skipped == 3
        assert result.steps[0].command == "ruff 'check' 'src'"

    def test_empty_pipeline_raises(self):
        with pytest.raises(PipelineError, match="at least one step"):
            run_pipeline([], executor=ShellExecutor(RecordingBackend()))

    def test_invalid_program_raises(self):
        with pytest.raises(InvalidProgramName):
            run_pipeline([Step("bad", "rm -rf")], executor=ShellExecutor(RecordingBackend()))

    def test_uses_default_executor(self):
        stub = RecordingBackend(responses=[(True, 0)])
        with use_backend(stub):
            run_pipeline([Step("date", "date")])

        assert stub.commands == ["date"]

    def test_text_reporter(self):
        output = io.StringIO()
        backend = RecordingBackend(responses=[(True, 0), (False, 1)])
        run_pipeline(STEPS, executor=ShellExecutor(backend), reporter=TextPipelineReporter(output))

        text = output.getvalue()
        assert "Pipeline: 3 steps" in text
        assert "[1/3] lint [OK]" in text
        assert "[2/3] test [FAIL]" in text
        assert "1 passed, 1 failed, 1 not run" in text

    def test_text_reporter_dry_run(self):
        output = io.StringIO()
        run_pipeline(
            STEPS[:1],
            executor=ShellExecutor(RecordingBackend()),
            dry_run=True,
            reporter=TextPipelineReporter(output),
        )

        assert "(dry run)" in output.getvalue()
        assert "[1/1] lint -> ruff 'check' 'src' (skipped)" in output.getvalue()

    def test_json_reporter(self):
        output = io.StringIO()
        backend = RecordingBackend(responses=[(True, 0)] * 3)
        run_pipeline(STEPS, executor=ShellExecutor(backend), reporter=JsonPipelineReporter(output))

        events = [json.loads(line) for line in output.getvalue().splitlines()]
        assert [e["event"] for e in events] == [
            "pipeline_start",
            "step_complete",
            "step_complete",
            "step_complete",
            "pipeline_complete",
        ]
        assert events[1]["command"] == "ruff 'check' 'src'"
        assert events[-1]["passed"] == 3


class TestPipelineResult:
    """Tests for result formatting."""

    def make_result(self):
        return PipelineResult(
            steps=[
                StepResult("lint", "ruff 'check'", True, 0, 0.01),
                StepResult("test", "pytest", False, 1, 0.02),
            ],
            success=False,
            total=3,
        )

    def test_counts(self):
        result = self.make_result()
        assert (result.passed, result.failed, result.skipped, result.not_run) == (1, 1, 0, 1)

    def test_to_dict(self):
        data = self.make_result().to_dict()

        assert data["success"] is False
        assert data["steps"][1] == {
            "name": "test",
            "command": "pytest",
            "status": "FAIL",
            "success": False,
            "code": 1,
            "duration": 0.02,
        }
        assert json.loads(self.make_result().format_json()) == data

    def test_summary_table(self):
        console = Console(file=io.StringIO(), width=120)
        console.print(format_summary_table(self.make_result()))
        rendered = console.file.getvalue()

        assert "Pipeline Summary" in rendered
        assert "lint" in rendered
        assert "FAIL" in rendered


class TestLoadPipeline:
    """Tests for load_pipeline."""

    def test_loads_steps(self, tmp_path):
        path = tmp_path / "ci.yml"
        path.write_text(
            "steps:\n"
            "  - name: lint\n"
            "    program: ruff\n"
            "    args: [check, src]\n"
            "  - name: date\n"
            "    program: date\n"
        )

        assert load_pipeline(path) == [
            Step("lint", "ruff", ["check", "src"]),
            Step("date", "date", []),
        ]

    def test_missing_file(self, tmp_path):
        with pytest.raises(PipelineError, match="not found"):
            load_pipeline(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("steps: [unclosed\n")
        with pytest.raises(PipelineError, match="Invalid YAML"):
            load_pipeline(path)

    def test_missing_steps(self, tmp_path):
        path = tmp_path / "nosteps.yml"
        path.write_text("name: ci\n")
        with pytest.raises(PipelineError, match="'steps' list"):
            load_pipeline(path)

    def test_empty_steps(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("steps: []\n")
        with pytest.raises(PipelineError, match="at least one step"):
            load_pipeline(path)

    def test_reports_every_invalid_step(self, tmp_path):
        path = tmp_path / "invalid.yml"
        path.write_text(
            "steps:\n"
            "  - name: inject\n"
            "    program: 'ls; rm'\n"
            "  - just a string\n"
            "  - name: numbers\n"
            "    program: sleep\n"
            "    args: [1]\n"
        )

        with pytest.raises(PipelineError) as exc_info:
            load_pipeline(path)

        errors = exc_info.value.result["errors"]
        assert errors == [
            "steps[0]: program name contains shell metacharacters: ls; rm",
            "steps[1] must be a mapping",
            "steps[2]: args[0] must be str, got int",
        ]
