"""Load the per-project task file."""

from __future__ import annotations

import logging
import runpy
from collections.abc import Mapping
from pathlib import Path

from justrun.tasks.models import TaskDefinitionError, TaskSpec, parse_task_mapping

logger = logging.getLogger(__name__)

DEFAULT_TASK_FILENAME = ".justrun.py"
TASKS_VARIABLE = "tasks"


class TaskSourceError(RuntimeError):
    """Task file is missing, broken, or does not define a task mapping."""


class TaskSource:
    """Read tasks from a Python file in the project root.

    The file is executed as a module and must bind a ``tasks`` dict at the
    top level. Values may use any task shape, including callables.
    """

    def __init__(self, workdir: Path, filename: str = DEFAULT_TASK_FILENAME) -> None:
        self.workdir = workdir
        self.filename = filename

    @property
    def path(self) -> Path:
        return self.workdir / self.filename

    def load(self) -> dict[str, TaskSpec]:
        task_file = self.path
        if not task_file.is_file():
            raise TaskSourceError(
                f"File {self.filename} not found in root workdir: {self.workdir}",
            )

        logger.debug("Loading tasks from %s", task_file)
        try:
            namespace = runpy.run_path(str(task_file), run_name="__justrun__")
        except Exception as error:  # noqa: BLE001
            raise TaskSourceError(f"Syntax error in {self.filename}: {error}") from error

        raw = namespace.get(TASKS_VARIABLE)
        if not isinstance(raw, Mapping):
            raise TaskSourceError(
                f"The file {self.filename} must define a {TASKS_VARIABLE!r} dict.",
            )

        try:
            tasks = parse_task_mapping(raw)
        except TaskDefinitionError as error:
            raise TaskSourceError(f"Invalid task in {self.filename}: {error}") from error

        if not tasks:
            raise TaskSourceError(f"No tasks found in {self.filename}.")
        logger.debug("Loaded %d tasks from %s", len(tasks), task_file)
        return tasks
