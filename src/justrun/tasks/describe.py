"""Short human-readable labels for task listings."""

from __future__ import annotations

from justrun.tasks.models import (
    DynamicSpec,
    LiteralSpec,
    ObjectSpec,
    SequenceSpec,
    TaskMapping,
    TaskSpec,
)

DYNAMIC_PREVIEW = "<dynamic>"


def describe_task(name: str, spec: TaskSpec, separator: str = "&&") -> str:
    """Label a task as ``name (detail)``; generators are never invoked."""

    detail = _detail(spec, separator)
    if detail is None:
        return name
    return f"{name} ({detail})"


def list_task_names(mapping: TaskMapping) -> list[str]:
    return sorted(mapping)


def describe_tasks(mapping: TaskMapping, separator: str = "&&") -> list[str]:
    return [describe_task(name, mapping[name], separator) for name in list_task_names(mapping)]


def complete_task_names(mapping: TaskMapping, prefix: str) -> list[str]:
    return [name for name in list_task_names(mapping) if name.startswith(prefix)]


def _detail(spec: TaskSpec | None, separator: str) -> str | None:
    match spec:
        case LiteralSpec(command=command):
            return command
        case SequenceSpec(commands=commands):
            return f" {separator} ".join(commands)
        case DynamicSpec():
            return DYNAMIC_PREVIEW
        case ObjectSpec(desc=desc) if desc:
            return desc
        case ObjectSpec(cmd=cmd):
            # a nested object has no single command to preview
            return _detail(cmd, separator) if not isinstance(cmd, ObjectSpec) else None
    return None
