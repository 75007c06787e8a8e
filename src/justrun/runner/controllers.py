"""Controllers for task CLI commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from justrun.config import Settings, SettingsError
from justrun.runner.service import NoLastTaskError, RunOutcome, TaskNotFoundError, TaskRunner
from justrun.runner.session import SessionStartError
from justrun.tasks.describe import complete_task_names, describe_tasks
from justrun.tasks.models import TaskDefinitionError
from justrun.tasks.resolver import TaskResolutionError
from justrun.tasks.source import TaskSourceError

logger = logging.getLogger(__name__)

EXPECTED_ERRORS = (
    SettingsError,
    TaskSourceError,
    TaskDefinitionError,
    TaskNotFoundError,
    NoLastTaskError,
    TaskResolutionError,
    SessionStartError,
)


@dataclass(slots=True)
class TaskRunCommand:
    """CLI input for running or showing a task."""

    workdir: Path | None
    filename: str | None
    task_name: str | None


@dataclass(slots=True)
class TaskListCommand:
    """CLI input for task listing."""

    workdir: Path | None
    filename: str | None


@dataclass(slots=True)
class CommandResult:
    """Lines to print plus the process exit code."""

    lines: list[str] = field(default_factory=list)
    exit_code: int = 0
    error: str | None = None


class TaskCliController:
    """Translate CLI commands into runner calls and printable lines."""

    def __init__(self, runner: TaskRunner | None = None) -> None:
        self.runner = runner

    def runner_for(self, workdir: Path | None, filename: str | None) -> TaskRunner:
        if self.runner is not None:
            return self.runner
        return TaskRunner(Settings.from_env(workdir=workdir, filename=filename))

    def run(self, command: TaskRunCommand) -> CommandResult:
        try:
            runner = self.runner_for(command.workdir, command.filename)
            outcome = runner.run(command.task_name)
        except EXPECTED_ERRORS as error:
            return CommandResult(exit_code=1, error=str(error))
        return _outcome_result(outcome)

    def run_last(self, command: TaskListCommand) -> CommandResult:
        try:
            runner = self.runner_for(command.workdir, command.filename)
            outcome = runner.run_last()
        except EXPECTED_ERRORS as error:
            return CommandResult(exit_code=1, error=str(error))
        return _outcome_result(outcome)

    def show(self, command: TaskRunCommand) -> CommandResult:
        try:
            runner = self.runner_for(command.workdir, command.filename)
            prepared = runner.prepare(command.task_name)
        except EXPECTED_ERRORS as error:
            return CommandResult(exit_code=1, error=str(error))
        return CommandResult(lines=[prepared.command])

    def list_tasks(self, command: TaskListCommand) -> CommandResult:
        try:
            runner = self.runner_for(command.workdir, command.filename)
            mapping = runner.load()
        except EXPECTED_ERRORS as error:
            return CommandResult(exit_code=1, error=str(error))
        return CommandResult(lines=describe_tasks(mapping, runner.resolver.separator))

    def complete(self, command: TaskListCommand, prefix: str) -> list[str]:
        """Task names for shell completion; a broken task file yields none."""

        try:
            runner = self.runner_for(command.workdir, command.filename)
            mapping = runner.load()
        except EXPECTED_ERRORS:
            logger.debug("Task completion unavailable", exc_info=True)
            return []
        return complete_task_names(mapping, prefix)


def _outcome_result(outcome: RunOutcome) -> CommandResult:
    lines: list[str] = []
    if outcome.task.fallback:
        lines.append(f"No tasks were provided. Running: {outcome.task.name}")
    lines.append(f"Task '{outcome.task.name}' finished with code: {outcome.exit_code}")
    return CommandResult(lines=lines, exit_code=outcome.exit_code)
