"""Runtime configuration for task loading, resolution and execution."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from justrun.tasks.resolver import DEFAULT_MAX_DEPTH, DEFAULT_SEPARATOR, UNBOUNDED_DEPTH
from justrun.tasks.source import DEFAULT_TASK_FILENAME


class SettingsError(ValueError):
    """Configuration value is missing or malformed."""


@dataclass(slots=True)
class TaskSettings:
    """Where tasks come from and which one runs by default."""

    filename: str = DEFAULT_TASK_FILENAME
    default_task: str = "default"
    force_run: bool = False


@dataclass(slots=True)
class ResolverSettings:
    """Command flattening settings."""

    separator: str = DEFAULT_SEPARATOR
    max_depth: int = DEFAULT_MAX_DEPTH


@dataclass(slots=True)
class ExecutionSettings:
    """Shell session settings."""

    exit_on_success: bool = False
    cwd: Path | None = None
    shell: str | None = None


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    workdir: Path = field(default_factory=Path.cwd)
    tasks: TaskSettings = field(default_factory=TaskSettings)
    resolver: ResolverSettings = field(default_factory=ResolverSettings)
    execution: ExecutionSettings = field(default_factory=ExecutionSettings)

    @classmethod
    def from_env(cls, workdir: Path | None = None, filename: str | None = None) -> Settings:
        """Load settings from environment, falling back to the built-in defaults."""

        cwd_raw = os.getenv("JUSTRUN_CWD", "").strip()
        shell_raw = os.getenv("JUSTRUN_SHELL", "").strip()
        settings = cls(
            workdir=workdir or Path.cwd(),
            tasks=TaskSettings(
                filename=filename or os.getenv("JUSTRUN_FILENAME", DEFAULT_TASK_FILENAME),
                default_task=os.getenv("JUSTRUN_DEFAULT_TASK", "default"),
                force_run=_env_bool("JUSTRUN_FORCE_RUN", default=False),
            ),
            resolver=ResolverSettings(
                separator=os.getenv("JUSTRUN_SEPARATOR", DEFAULT_SEPARATOR),
                max_depth=_env_int("JUSTRUN_MAX_DEPTH", default=DEFAULT_MAX_DEPTH),
            ),
            execution=ExecutionSettings(
                exit_on_success=_env_bool("JUSTRUN_EXIT_ON_SUCCESS", default=False),
                cwd=Path(cwd_raw) if cwd_raw else None,
                shell=shell_raw or None,
            ),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Raise configuration error for values the runner cannot work with."""

        if not self.tasks.filename.strip():
            raise SettingsError("JUSTRUN_FILENAME must not be empty.")
        if not self.tasks.default_task.strip():
            raise SettingsError("JUSTRUN_DEFAULT_TASK must not be empty.")
        if not self.resolver.separator.strip():
            raise SettingsError("JUSTRUN_SEPARATOR must not be empty.")
        if self.resolver.max_depth != UNBOUNDED_DEPTH and self.resolver.max_depth <= 0:
            raise SettingsError(
                f"JUSTRUN_MAX_DEPTH must be a positive integer or {UNBOUNDED_DEPTH}, "
                f"got {self.resolver.max_depth}.",
            )


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as error:
        raise SettingsError(f"Invalid integer value for {name}: {value!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise SettingsError(f"Invalid boolean value for {name}: {value!r}")
