"""Shared test fixtures."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from justrun.config import Settings


class RecordingSession:
    """Terminal session double that records commands instead of running them."""

    def __init__(self, exit_code: int = 0) -> None:
        self.exit_code = exit_code
        self.calls: list[tuple[str, Path]] = []
        self.closed = False

    def run(self, command: str, cwd: Path) -> int:
        self.calls.append((command, cwd))
        return self.exit_code

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def write_tasks(tmp_path: Path) -> Callable[..., Path]:
    """Write a task file into ``tmp_path`` and return its path."""

    def _write(body: str, filename: str = ".justrun.py") -> Path:
        path = tmp_path / filename
        path.write_text(textwrap.dedent(body), "utf-8")
        return path

    return _write


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(workdir=tmp_path)


@pytest.fixture(autouse=True)
def _clean_justrun_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "JUSTRUN_FILENAME",
        "JUSTRUN_DEFAULT_TASK",
        "JUSTRUN_FORCE_RUN",
        "JUSTRUN_SEPARATOR",
        "JUSTRUN_MAX_DEPTH",
        "JUSTRUN_EXIT_ON_SUCCESS",
        "JUSTRUN_CWD",
        "JUSTRUN_SHELL",
    ):
        monkeypatch.delenv(name, raising=False)
