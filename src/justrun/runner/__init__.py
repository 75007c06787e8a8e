"""Task selection and execution."""

from justrun.runner.service import (
    NoLastTaskError,
    PreparedTask,
    RunOutcome,
    TaskNotFoundError,
    TaskRunner,
)
from justrun.runner.session import (
    RunSession,
    SessionStartError,
    ShellSession,
    TerminalSession,
)

__all__ = [
    "NoLastTaskError",
    "PreparedTask",
    "RunOutcome",
    "RunSession",
    "SessionStartError",
    "ShellSession",
    "TaskNotFoundError",
    "TaskRunner",
    "TerminalSession",
]
