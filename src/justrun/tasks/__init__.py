"""Task definitions, loading and resolution."""

from justrun.tasks.models import (
    DynamicSpec,
    LiteralSpec,
    ObjectSpec,
    SequenceSpec,
    TaskDefinitionError,
    TaskKind,
    TaskMapping,
    TaskSpec,
    create_tasks,
    parse_task_mapping,
    parse_task_spec,
)
from justrun.tasks.resolver import MaxDepthExceededError, TaskResolutionError, TaskResolver
from justrun.tasks.source import TaskSource, TaskSourceError

__all__ = [
    "DynamicSpec",
    "LiteralSpec",
    "MaxDepthExceededError",
    "ObjectSpec",
    "SequenceSpec",
    "TaskDefinitionError",
    "TaskKind",
    "TaskMapping",
    "TaskResolutionError",
    "TaskResolver",
    "TaskSource",
    "TaskSourceError",
    "TaskSpec",
    "create_tasks",
    "parse_task_mapping",
    "parse_task_spec",
]
