"""Task definition models and load-time classification."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

OBJECT_FIELDS = frozenset({"cmd", "run_before", "exit_on_success", "cwd", "desc"})


class TaskKind(str, Enum):
    """Shape of a task definition."""

    LITERAL = "literal"
    SEQUENCE = "sequence"
    DYNAMIC = "dynamic"
    OBJECT = "object"


class TaskDefinitionError(ValueError):
    """Task value has a shape that cannot be classified."""


@dataclass(slots=True, frozen=True)
class LiteralSpec:
    """A single shell command."""

    command: str

    @property
    def kind(self) -> TaskKind:
        return TaskKind.LITERAL


@dataclass(slots=True, frozen=True)
class SequenceSpec:
    """Commands joined with the separator, in order."""

    commands: tuple[str, ...]

    @property
    def kind(self) -> TaskKind:
        return TaskKind.SEQUENCE


@dataclass(slots=True, frozen=True)
class DynamicSpec:
    """Zero-argument callable evaluated at resolution time."""

    generator: Callable[[], Any]

    @property
    def kind(self) -> TaskKind:
        return TaskKind.DYNAMIC


@dataclass(slots=True, frozen=True)
class ObjectSpec:
    """Composite task with dependencies and per-task overrides."""

    cmd: TaskSpec | None = None
    run_before: tuple[str, ...] = ()
    exit_on_success: bool | None = None
    cwd: str | None = None
    desc: str | None = None

    @property
    def kind(self) -> TaskKind:
        return TaskKind.OBJECT


TaskSpec = LiteralSpec | SequenceSpec | DynamicSpec | ObjectSpec
TaskMapping = Mapping[str, TaskSpec]

_SPEC_TYPES = (LiteralSpec, SequenceSpec, DynamicSpec, ObjectSpec)


def parse_task_spec(raw: Any, *, name: str = "<anonymous>") -> TaskSpec:
    """Classify a raw task value into one of the four spec shapes.

    Strings become literals, lists and tuples of strings become sequences,
    callables become dynamic specs and dicts become task objects. Spec
    instances are returned unchanged.
    """

    if isinstance(raw, _SPEC_TYPES):
        return raw
    if isinstance(raw, str):
        return LiteralSpec(raw)
    if isinstance(raw, (list, tuple)):
        return SequenceSpec(_string_tuple(raw, name=name, field="commands"))
    if isinstance(raw, Mapping):
        return _parse_object(raw, name=name)
    if callable(raw):
        return DynamicSpec(raw)
    raise TaskDefinitionError(
        f"Task {name!r} has unsupported definition type {type(raw).__name__}; "
        "expected str, list of str, callable or dict.",
    )


def parse_task_mapping(raw: Mapping[str, Any]) -> dict[str, TaskSpec]:
    """Classify every value of a raw task mapping, preserving key order."""

    tasks: dict[str, TaskSpec] = {}
    for name, value in raw.items():
        if not isinstance(name, str) or not name:
            raise TaskDefinitionError(f"Task names must be non-empty strings, got {name!r}.")
        tasks[name] = parse_task_spec(value, name=name)
    return tasks


def create_tasks(tasks: dict[str, Any]) -> dict[str, Any]:
    """Return ``tasks`` unchanged; lets task files annotate their mapping."""

    return tasks


def _parse_object(raw: Mapping[str, Any], *, name: str) -> ObjectSpec:
    unknown = sorted(str(key) for key in raw if key not in OBJECT_FIELDS)
    if unknown:
        raise TaskDefinitionError(
            f"Task {name!r} has unknown fields: {', '.join(unknown)}. "
            f"Allowed: {', '.join(sorted(OBJECT_FIELDS))}.",
        )

    cmd_raw = raw.get("cmd")
    cmd = parse_task_spec(cmd_raw, name=f"{name}.cmd") if cmd_raw is not None else None

    run_before_raw = raw.get("run_before")
    if run_before_raw is None:
        run_before: tuple[str, ...] = ()
    elif isinstance(run_before_raw, (list, tuple)):
        run_before = _string_tuple(run_before_raw, name=name, field="run_before")
    else:
        raise TaskDefinitionError(f"Task {name!r}: run_before must be a list of strings.")

    exit_on_success = raw.get("exit_on_success")
    if exit_on_success is not None and not isinstance(exit_on_success, bool):
        raise TaskDefinitionError(f"Task {name!r}: exit_on_success must be a boolean.")

    return ObjectSpec(
        cmd=cmd,
        run_before=run_before,
        exit_on_success=exit_on_success,
        cwd=_optional_string(raw.get("cwd"), name=name, field="cwd"),
        desc=_optional_string(raw.get("desc"), name=name, field="desc"),
    )


def _string_tuple(values: list[Any] | tuple[Any, ...], *, name: str, field: str) -> tuple[str, ...]:
    for value in values:
        if not isinstance(value, str):
            raise TaskDefinitionError(
                f"Task {name!r}: {field} entries must be strings, got {value!r}.",
            )
    return tuple(values)


def _optional_string(value: Any, *, name: str, field: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise TaskDefinitionError(f"Task {name!r}: {field} must be a string.")
