"""Select, resolve and execute tasks."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from justrun.config import Settings
from justrun.runner.session import RunSession, ShellSession, TerminalSession
from justrun.tasks.models import ObjectSpec, TaskMapping, TaskSpec
from justrun.tasks.resolver import TaskResolver
from justrun.tasks.source import TaskSource

logger = logging.getLogger(__name__)


class TaskNotFoundError(LookupError):
    """Requested task is not defined and no fallback applies."""


class NoLastTaskError(LookupError):
    """Repeat was requested before any task ran."""

    def __init__(self) -> None:
        super().__init__("No tasks have been run yet!")


@dataclass(slots=True)
class TaskSelection:
    """Task picked for a run and whether it came from the force-run fallback."""

    name: str
    spec: TaskSpec
    fallback: bool = False


@dataclass(slots=True)
class PreparedTask:
    """Resolved command ready for execution."""

    name: str
    command: str
    cwd: Path
    exit_on_success: bool
    fallback: bool = False


@dataclass(slots=True)
class RunOutcome:
    """Result of executing one task."""

    task: PreparedTask
    exit_code: int
    closed: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class TaskRunner:
    """Load the task file, pick a task, resolve it and run it in a session."""

    def __init__(
        self,
        settings: Settings,
        *,
        source: TaskSource | None = None,
        resolver: TaskResolver | None = None,
        session_factory: Callable[[], TerminalSession] | None = None,
        state: RunSession | None = None,
    ) -> None:
        self.settings = settings
        self.source = source or TaskSource(settings.workdir, settings.tasks.filename)
        self.resolver = resolver or TaskResolver(
            separator=settings.resolver.separator,
            max_depth=settings.resolver.max_depth,
        )
        self.session_factory = session_factory or (
            lambda: ShellSession(shell=settings.execution.shell)
        )
        self.state = state or RunSession()

    def load(self) -> dict[str, TaskSpec]:
        return self.source.load()

    def select_task(self, mapping: TaskMapping, task_name: str | None) -> TaskSelection:
        """Pick the requested task, the default task, or the first defined task.

        The first task is only used when no name was given, the default task
        is missing and ``force_run`` is enabled.
        """

        user_provided = bool(task_name)
        target = task_name if user_provided else self.settings.tasks.default_task
        if target in mapping:
            return TaskSelection(name=target, spec=mapping[target])

        if not user_provided and self.settings.tasks.force_run:
            for first_name, first_spec in mapping.items():
                logger.info("No tasks were provided. Running: %s", first_name)
                return TaskSelection(name=first_name, spec=first_spec, fallback=True)
            raise TaskNotFoundError("No tasks found in file.")

        raise TaskNotFoundError(f"Task not found: {target}")

    def prepare(self, task_name: str | None = None) -> PreparedTask:
        mapping = self.load()
        selection = self.select_task(mapping, task_name)
        command = self.resolver.resolve(selection.spec, mapping)
        logger.debug("Resolved task %r to: %s", selection.name, command)
        return PreparedTask(
            name=selection.name,
            command=command,
            cwd=self._working_directory(selection.spec),
            exit_on_success=self._exit_on_success(selection.spec),
            fallback=selection.fallback,
        )

    def run(self, task_name: str | None = None) -> RunOutcome:
        prepared = self.prepare(task_name)
        self.state.last_task = prepared.name

        session = self.state.replace(self.session_factory())
        logger.info("Running task: %s", prepared.name)
        exit_code = session.run(prepared.command, prepared.cwd)

        outcome = RunOutcome(task=prepared, exit_code=exit_code)
        if outcome.succeeded and prepared.exit_on_success:
            self.state.close()
            outcome.closed = True
        if not outcome.succeeded:
            logger.warning("Task %r finished with code %d", prepared.name, exit_code)
        return outcome

    def run_last(self) -> RunOutcome:
        if self.state.last_task is None:
            raise NoLastTaskError()
        return self.run(self.state.last_task)

    def _working_directory(self, spec: TaskSpec) -> Path:
        default = self.settings.execution.cwd or self.settings.workdir
        if isinstance(spec, ObjectSpec) and spec.cwd:
            task_cwd = Path(spec.cwd).expanduser()
            return task_cwd if task_cwd.is_absolute() else self.settings.workdir / task_cwd
        if not default.is_absolute():
            return self.settings.workdir / default
        return default

    def _exit_on_success(self, spec: TaskSpec) -> bool:
        if isinstance(spec, ObjectSpec) and spec.exit_on_success is not None:
            return spec.exit_on_success
        return self.settings.execution.exit_on_success
