"""Terminal sessions that execute resolved commands."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

INTERRUPTED_EXIT_CODE = 130


class SessionStartError(RuntimeError):
    """Shell process could not be started."""


class TerminalSession(Protocol):
    """Protocol implemented by command execution sessions."""

    def run(self, command: str, cwd: Path) -> int:
        """Execute ``command`` in ``cwd`` and return its exit code."""

    def close(self) -> None:
        """Release the session once its output is no longer needed."""


class ShellSession:
    """Run commands through the system shell attached to the current terminal."""

    def __init__(self, shell: str | None = None) -> None:
        self.shell = shell
        self.process: subprocess.Popen[bytes] | None = None
        self.closed = False

    def run(self, command: str, cwd: Path) -> int:
        logger.debug("Starting shell command in %s: %s", cwd, command)
        if not cwd.is_dir():
            raise SessionStartError(f"Working directory does not exist: {cwd}")
        try:
            self.process = subprocess.Popen(  # noqa: S602
                command,
                shell=True,
                cwd=cwd,
                executable=self.shell,
            )
        except OSError as error:
            shell = self.shell or "default shell"
            raise SessionStartError(
                f"Failed to start {shell} in {cwd}: {error.strerror or error}",
            ) from error
        try:
            return self.process.wait()
        except KeyboardInterrupt:
            _terminate_process(self.process)
            return INTERRUPTED_EXIT_CODE

    def close(self) -> None:
        if self.process is not None and self.process.poll() is None:
            _terminate_process(self.process)
        self.process = None
        self.closed = True


@dataclass(slots=True)
class RunSession:
    """State kept between runs: the last task name and the active session."""

    last_task: str | None = None
    active: TerminalSession | None = None

    def replace(self, session: TerminalSession) -> TerminalSession:
        """Close the previous session, if any, and make ``session`` active."""

        if self.active is not None and self.active is not session:
            self.active.close()
        self.active = session
        return session

    def close(self) -> None:
        if self.active is not None:
            self.active.close()
            self.active = None


def _terminate_process(process: subprocess.Popen[bytes]) -> None:
    try:
        process.terminate()
    except OSError:
        return
    try:
        process.wait(timeout=2)
    except subprocess.TimeoutExpired:
        try:
            process.kill()
        except OSError:
            return
        process.wait(timeout=2)
