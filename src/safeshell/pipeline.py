"""Sequential command pipelines.

A pipeline is an ordered list of steps, each a program plus arguments.
Steps run one after another and the pipeline halts at the first failure,
like a minimal CI job. A dry run builds every command without running any.

Pipelines can be loaded from YAML::

    steps:
      - name: lint
        program: ruff
        args: [check, src]
      - name: test
        program: pytest
        args: [-q]
"""

import json
import logging
import sys
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml
from rich.table import Table

from .command import validate_args, validate_program
from .exceptions import ErrorTypes, PipelineError
from .executor import ShellExecutor, get_executor
from .logging import get_logger, log_performance
from .validate import Checker

logger = get_logger(__name__)


@dataclass
class Step:
    """A single pipeline step.

    Attributes:
        name: Label shown in reports
        program: Program to run
        args: Arguments passed to the program
    """

    name: str
    program: str
    args: list[str] = field(default_factory=list)

    def validate(self, strict: bool = False) -> Checker:
        """Check the step without raising.

        Returns:
            Checker holding any failures
        """
        checker = Checker()
        checker.check_string_not_empty(self.name, "name")
        checker.check(*validate_program(self.program, strict=strict))
        checker.check(*validate_args(self.args))
        return checker

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        """Create from a mapping loaded from YAML."""
        return cls(
            name=data.get("name", ""),
            program=data.get("program", ""),
            args=data.get("args") or [],
        )


@dataclass
class StepResult:
    """Outcome of one step.

    Attributes:
        name: Step name
        command: Command string that was (or would have been) run
        success: Whether the step succeeded
        code: Exit code, None when skipped
        duration: Seconds spent running the step
        skipped: True for dry runs
    """

    name: str
    command: str
    success: bool
    code: int | None = None
    duration: float = 0.0
    skipped: bool = False

    @property
    def status(self) -> str:
        if self.skipped:
            return "SKIP"
        return "PASS" if self.success else "FAIL"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "command": self.command,
            "status": self.status,
            "success": self.success,
            "code": self.code,
            "duration": round(self.duration, 3),
        }


@dataclass
class PipelineResult:
    """Outcome of a pipeline run.

    Attributes:
        steps: Results for the steps that were reached, in order
        success: False if any step failed
        total: Number of steps in the pipeline, including unreached ones
    """

    steps: list[StepResult] = field(default_factory=list)
    success: bool = True
    total: int = 0

    @property
    def passed(self) -> int:
        return sum(1 for s in self.steps if s.success and not s.skipped)

    @property
    def failed(self) -> int:
        return sum(1 for s in self.steps if not s.success)

    @property
    def skipped(self) -> int:
        return sum(1 for s in self.steps if s.skipped)

    @property
    def not_run(self) -> int:
        return self.total - len(self.steps)

    def format_text(self) -> str:
        """Format as a plain-text summary."""
        lines = ["", "Summary:", "-" * 50]
        for step in self.steps:
            lines.append(f"  {step.name:<20} [{step.status}]")
        lines.append("-" * 50)

        parts = [f"{self.passed} passed"]
        if self.failed:
            parts.append(f"{self.failed} failed")
        if self.skipped:
            parts.append(f"{self.skipped} skipped")
        if self.not_run:
            parts.append(f"{self.not_run} not run")
        lines.append(", ".join(parts))
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "not_run": self.not_run,
            "steps": [s.to_dict() for s in self.steps],
        }

    def format_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def format_summary_table(result: PipelineResult) -> Table:
    """Build a rich table summarizing a pipeline run."""
    table = Table(title="Pipeline Summary")
    table.add_column("Step", style="cyan")
    table.add_column("Status")
    table.add_column("Code", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Command", style="dim")

    styles = {"PASS": "green", "FAIL": "red", "SKIP": "yellow"}
    for step in result.steps:
        table.add_row(
            step.name,
            f"[{styles[step.status]}]{step.status}[/]",
            "" if step.code is None else str(step.code),
            f"{step.duration * 1000:.1f}ms",
            step.command,
        )
    return table


class PipelineReporter(ABC):
    """Base class for pipeline progress reporters."""

    @abstractmethod
    def on_pipeline_start(self, total_steps: int, dry_run: bool) -> None:
        pass

    @abstractmethod
    def on_step_complete(self, index: int, total: int, result: StepResult) -> None:
        pass

    @abstractmethod
    def on_pipeline_complete(self, result: PipelineResult, duration: float) -> None:
        pass


class TextPipelineReporter(PipelineReporter):
    """Reports progress as human-readable lines."""

    def __init__(self, output: Any = None) -> None:
        self.output = output or sys.stderr

    def _emit(self, message: str) -> None:
        print(message, file=self.output, flush=True)

    def on_pipeline_start(self, total_steps: int, dry_run: bool) -> None:
        suffix = " (dry run)" if dry_run else ""
        self._emit(f"Pipeline: {total_steps} steps{suffix}")
        self._emit("-" * 50)

    def on_step_complete(self, index: int, total: int, result: StepResult) -> None:
        prefix = f"[{index}/{total}] {result.name}"
        if result.skipped:
            self._emit(f"{prefix} -> {result.command} (skipped)")
        elif result.success:
            self._emit(f"{prefix} [OK] ({result.duration * 1000:.2f} ms)")
        else:
            self._emit(f"{prefix} [FAIL] ({result.duration * 1000:.2f} ms)")

    def on_pipeline_complete(self, result: PipelineResult, duration: float) -> None:
        self._emit(result.format_text())


class JsonPipelineReporter(PipelineReporter):
    """Reports progress as NDJSON events."""

    def __init__(self, output: Any = None) -> None:
        self.output = output or sys.stderr

    def _emit(self, event: str, **details: Any) -> None:
        payload = {
            "event": event,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **details,
        }
        print(json.dumps(payload), file=self.output, flush=True)

    def on_pipeline_start(self, total_steps: int, dry_run: bool) -> None:
        self._emit("pipeline_start", total_steps=total_steps, dry_run=dry_run)

    def on_step_complete(self, index: int, total: int, result: StepResult) -> None:
        self._emit("step_complete", index=index, total=total, **result.to_dict())

    def on_pipeline_complete(self, result: PipelineResult, duration: float) -> None:
        self._emit(
            "pipeline_complete",
            success=result.success,
            passed=result.passed,
            failed=result.failed,
            skipped=result.skipped,
            duration=round(duration, 3),
        )


class NullPipelineReporter(PipelineReporter):
    """Reporter that discards all events."""

    def on_pipeline_start(self, total_steps: int, dry_run: bool) -> None:
        pass

    def on_step_complete(self, index: int, total: int, result: StepResult) -> None:
        pass

    def on_pipeline_complete(self, result: PipelineResult, duration: float) -> None:
        pass


def run_pipeline(
    steps: list[Step],
    executor: ShellExecutor | None = None,
    dry_run: bool = False,
    reporter: PipelineReporter | None = None,
) -> PipelineResult:
    """Run steps in order, halting at the first failure.

    Args:
        steps: Steps to run
        executor: Executor to use (defaults to the process-wide executor)
        dry_run: Build every command but run none
        reporter: Progress reporter (defaults to no reporting)

    Returns:
        PipelineResult for the steps that were reached

    Raises:
        PipelineError: If there are no steps
        InvalidProgramName: If a step's program name fails validation
    """
    if not steps:
        raise PipelineError("pipeline must have at least one step")

    executor = executor or get_executor()
    reporter = reporter or NullPipelineReporter()
    result = PipelineResult(total=len(steps))
    total = len(steps)

    reporter.on_pipeline_start(total, dry_run)
    start = time.perf_counter()

    with logger.scope("Pipeline", level=logging.DEBUG, steps=total, dry_run=dry_run), \
            log_performance(logger.logger, "Pipeline", steps=total):
        for index, step in enumerate(steps, start=1):
            command = executor.build(step.program, step.args)

            if dry_run:
                step_result = StepResult(
                    name=step.name, command=command, success=True, skipped=True
                )
            else:
                logger.info(f"step {index}/{total}: {step.name} -> {command}")
                step_start = time.perf_counter()
                outcome = executor.execute(step.program, step.args)
                step_result = StepResult(
                    name=step.name,
                    command=command,
                    success=outcome.success,
                    code=outcome.code,
                    duration=time.perf_counter() - step_start,
                )

            result.steps.append(step_result)
            reporter.on_step_complete(index, total, step_result)

            if not step_result.success:
                result.success = False
                logger.error(
                    f"step {step.name} failed, halting pipeline",
                    code=step_result.code,
                    error_type=ErrorTypes.EXECUTION_FAILURE,
                )
                break

    reporter.on_pipeline_complete(result, time.perf_counter() - start)
    return result


def load_pipeline(path: str | Path, strict: bool = False) -> list[Step]:
    """Load and validate pipeline steps from a YAML file.

    Raises:
        PipelineError: If the file is missing, malformed, empty, or any step
            fails validation
    """
    path = Path(path)
    if not path.exists():
        raise PipelineError(f"Pipeline file not found: {path}", path=str(path))

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise PipelineError(f"Invalid YAML in {path}: {e}", path=str(path)) from e

    if not isinstance(data, dict) or not isinstance(data.get("steps"), list):
        raise PipelineError(f"Pipeline file must define a 'steps' list: {path}", path=str(path))
    if not data["steps"]:
        raise PipelineError(f"pipeline must have at least one step: {path}", path=str(path))

    steps: list[Step] = []
    errors: list[str] = []
    for index, entry in enumerate(data["steps"]):
        if not isinstance(entry, dict):
            errors.append(f"steps[{index}] must be a mapping")
            continue
        step = Step.from_dict(entry)
        checker = step.validate(strict=strict)
        errors.extend(f"steps[{index}]: {err}" for err in checker.errors)
        steps.append(step)

    if errors:
        raise PipelineError("; ".join(errors), path=str(path), errors=errors)
    return steps
