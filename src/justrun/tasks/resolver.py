"""Flatten task definitions into a single shell command string."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

from justrun.tasks.models import (
    DynamicSpec,
    LiteralSpec,
    ObjectSpec,
    SequenceSpec,
    TaskDefinitionError,
    TaskMapping,
    TaskSpec,
    parse_task_spec,
)

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "&&"
DEFAULT_MAX_DEPTH = 20
UNBOUNDED_DEPTH = -1
FRAMES_PER_LEVEL = 4
MAX_RECURSION_LIMIT = 100_000


class TaskResolutionError(RuntimeError):
    """Task could not be resolved to a command."""


class MaxDepthExceededError(TaskResolutionError):
    """Recursion went deeper than the configured bound."""

    def __init__(self, max_depth: int) -> None:
        super().__init__(
            f"Max nesting depth ({max_depth}) exceeded - possible circular dependency",
        )
        self.max_depth = max_depth


class TaskResolver:
    """Expand ``run_before`` dependencies and nested commands depth-first.

    Cycles are not tracked by name. A self-referencing or mutually
    referencing task keeps expanding until ``max_depth`` is exceeded; with
    ``max_depth=-1`` there is no bound at all.
    """

    def __init__(
        self,
        *,
        separator: str = DEFAULT_SEPARATOR,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.separator = separator
        self.max_depth = max_depth

    @property
    def bounded(self) -> bool:
        return self.max_depth != UNBOUNDED_DEPTH

    def join(self, commands: tuple[str, ...] | list[str]) -> str:
        return f" {self.separator} ".join(commands)

    def resolve(self, task: TaskSpec | str, mapping: TaskMapping, depth: int = 1) -> str:
        """Return the flattened command for ``task``.

        A string naming a key of ``mapping`` is looked up first; any other
        string is a literal command.
        """

        if depth == 1:
            with _recursion_headroom(self.max_depth):
                try:
                    return self._resolve(task, mapping, depth)
                except RecursionError as error:
                    if self.bounded:
                        raise MaxDepthExceededError(self.max_depth) from error
                    raise TaskResolutionError(
                        "Interpreter recursion limit reached - possible circular dependency",
                    ) from error
        return self._resolve(task, mapping, depth)

    def _resolve(self, task: TaskSpec | str, mapping: TaskMapping, depth: int) -> str:
        if self.bounded and depth > self.max_depth:
            raise MaxDepthExceededError(self.max_depth)

        if isinstance(task, str):
            task = mapping[task] if task in mapping else LiteralSpec(task)

        match task:
            case LiteralSpec(command=command):
                return command
            case SequenceSpec(commands=commands):
                return self.join(commands)
            case DynamicSpec():
                return self._resolve_dynamic(task, mapping, depth)
            case ObjectSpec():
                return self._resolve_object(task, mapping, depth)
        raise TypeError(f"Unsupported task spec: {task!r}")

    def _resolve_object(self, task: ObjectSpec, mapping: TaskMapping, depth: int) -> str:
        commands: list[str] = []

        for item in task.run_before:
            if item in mapping:
                logger.debug("Resolving dependency %r at depth %d", item, depth + 1)
                commands.append(self.resolve(mapping[item], mapping, depth + 1))
            else:
                commands.append(item)

        match task.cmd:
            case None:
                pass
            case DynamicSpec():
                commands.append(self._resolve_dynamic(task.cmd, mapping, depth))
            case SequenceSpec(commands=cmd_commands):
                commands.append(self.join(cmd_commands))
            case _:
                commands.append(self.resolve(task.cmd, mapping, depth + 1))

        return self.join(commands)

    def _resolve_dynamic(self, task: DynamicSpec, mapping: TaskMapping, depth: int) -> str:
        produced = parse_task_spec(task.generator(), name=_generator_name(task))
        match produced:
            case LiteralSpec(command=command):
                return command
            case SequenceSpec(commands=commands):
                return self.join(commands)
            case ObjectSpec():
                return self.resolve(produced, mapping, depth + 1)
        raise TaskDefinitionError(
            f"Dynamic task {_generator_name(task)} must return a str, list or dict, "
            f"got {type(produced).__name__}",
        )


def _generator_name(task: DynamicSpec) -> str:
    return getattr(task.generator, "__qualname__", repr(task.generator))


@contextmanager
def _recursion_headroom(max_depth: int) -> Iterator[None]:
    """Raise the interpreter recursion limit so ``max_depth`` levels fit."""

    previous = sys.getrecursionlimit()
    if max_depth == UNBOUNDED_DEPTH:
        yield
        return
    wanted = min(previous + max_depth * FRAMES_PER_LEVEL, MAX_RECURSION_LIMIT)
    if wanted > previous:
        sys.setrecursionlimit(wanted)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)
