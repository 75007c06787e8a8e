from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import allure
import pytest

from conftest import RecordingSession
from justrun.config import ExecutionSettings, ResolverSettings, Settings, TaskSettings
from justrun.runner.service import NoLastTaskError, TaskNotFoundError, TaskRunner
from justrun.runner.session import RunSession
from justrun.tasks.resolver import MaxDepthExceededError
from justrun.tasks.source import TaskSourceError

pytestmark = [
    allure.epic("Task Execution"),
    allure.feature("Runner"),
]

TASKS = """
tasks = {
    "default": "echo hi",
    "build": {"cmd": "make", "run_before": ["default"]},
    "web": {"cmd": "npm start", "cwd": "frontend", "exit_on_success": True},
    "abs": {"cmd": "ls", "cwd": "/tmp"},
    "keep": {"cmd": "true", "exit_on_success": False},
    "loop": {"run_before": ["loop"]},
}
"""


def _runner(settings: Settings, session: RecordingSession) -> TaskRunner:
    return TaskRunner(settings, session_factory=lambda: session)


def test_run_executes_resolved_command_in_workdir(
    settings: Settings,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    session = RecordingSession()

    outcome = _runner(settings, session).run("build")

    assert session.calls == [("echo hi && make", settings.workdir)]
    assert outcome.exit_code == 0
    assert outcome.succeeded
    assert outcome.closed is False


def test_run_without_name_uses_default_task(
    settings: Settings,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    session = RecordingSession()

    outcome = _runner(settings, session).run()

    assert outcome.task.name == "default"
    assert session.calls[0][0] == "echo hi"


def test_run_missing_task_raises_lookup_error(
    settings: Settings,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    session = RecordingSession()

    with pytest.raises(TaskNotFoundError, match="Task not found: nope"):
        _runner(settings, session).run("nope")
    assert session.calls == []


def test_missing_default_without_force_run_fails(
    tmp_path: Path,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks('tasks = {"first": "echo 1", "second": "echo 2"}\n')
    runner = _runner(Settings(workdir=tmp_path), RecordingSession())

    with pytest.raises(TaskNotFoundError, match="Task not found: default"):
        runner.run()


def test_force_run_falls_back_to_first_task(
    tmp_path: Path,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks('tasks = {"first": "echo 1", "second": "echo 2"}\n')
    settings = Settings(workdir=tmp_path, tasks=TaskSettings(force_run=True))
    session = RecordingSession()

    outcome = _runner(settings, session).run()

    assert outcome.task.name == "first"
    assert outcome.task.fallback is True
    assert session.calls[0][0] == "echo 1"


def test_force_run_does_not_apply_to_explicit_names(
    tmp_path: Path,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks('tasks = {"first": "echo 1"}\n')
    settings = Settings(workdir=tmp_path, tasks=TaskSettings(force_run=True))

    with pytest.raises(TaskNotFoundError, match="Task not found: other"):
        _runner(settings, RecordingSession()).run("other")


def test_task_cwd_and_exit_on_success_override_defaults(
    settings: Settings,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    session = RecordingSession()

    outcome = _runner(settings, session).run("web")

    assert session.calls == [("npm start", settings.workdir / "frontend")]
    assert outcome.task.exit_on_success is True
    assert outcome.closed is True
    assert session.closed is True


def test_absolute_task_cwd_is_used_as_is(
    settings: Settings,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    session = RecordingSession()

    _runner(settings, session).run("abs")

    assert session.calls[0][1] == Path("/tmp")


def test_default_cwd_and_exit_on_success_come_from_settings(
    tmp_path: Path,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    settings = Settings(
        workdir=tmp_path,
        execution=ExecutionSettings(exit_on_success=True, cwd=Path("/srv")),
    )
    session = RecordingSession()

    outcome = _runner(settings, session).run("build")

    assert session.calls[0][1] == Path("/srv")
    assert outcome.closed is True


def test_task_exit_on_success_false_overrides_global_true(
    tmp_path: Path,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    settings = Settings(workdir=tmp_path, execution=ExecutionSettings(exit_on_success=True))
    session = RecordingSession()

    outcome = _runner(settings, session).run("keep")

    assert outcome.closed is False
    assert session.closed is False


def test_non_zero_exit_never_closes_session(
    settings: Settings,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    session = RecordingSession(exit_code=2)

    outcome = _runner(settings, session).run("web")

    assert outcome.exit_code == 2
    assert not outcome.succeeded
    assert outcome.closed is False
    assert session.closed is False


def test_depth_error_propagates_before_execution(
    tmp_path: Path,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    settings = Settings(workdir=tmp_path, resolver=ResolverSettings(max_depth=2))
    session = RecordingSession()

    with pytest.raises(MaxDepthExceededError, match=r"\(2\)"):
        _runner(settings, session).run("loop")
    assert session.calls == []


def test_source_error_propagates(settings: Settings) -> None:
    with pytest.raises(TaskSourceError, match="not found in root workdir"):
        _runner(settings, RecordingSession()).run("build")


def test_run_last_repeats_previous_task(
    settings: Settings,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    session = RecordingSession()
    runner = _runner(settings, session)

    with pytest.raises(NoLastTaskError, match="No tasks have been run yet!"):
        runner.run_last()

    runner.run("build")
    outcome = runner.run_last()

    assert outcome.task.name == "build"
    assert [call[0] for call in session.calls] == ["echo hi && make", "echo hi && make"]


def test_new_run_replaces_previous_session(
    settings: Settings,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    sessions: list[RecordingSession] = []

    def factory() -> RecordingSession:
        sessions.append(RecordingSession())
        return sessions[-1]

    state = RunSession()
    runner = TaskRunner(settings, session_factory=factory, state=state)
    runner.run("default")
    runner.run("build")

    assert sessions[0].closed is True
    assert sessions[1].closed is False
    assert state.active is sessions[1]
    assert state.last_task == "build"


def test_prepare_does_not_record_last_task(
    settings: Settings,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    runner = _runner(settings, RecordingSession())

    prepared = runner.prepare("build")

    assert prepared.command == "echo hi && make"
    assert runner.state.last_task is None


def test_failed_resolution_keeps_previous_last_task(
    tmp_path: Path,
    write_tasks: Callable[..., Path],
) -> None:
    write_tasks(TASKS)
    settings = Settings(workdir=tmp_path, resolver=ResolverSettings(max_depth=5))
    session = RecordingSession()
    runner = _runner(settings, session)

    runner.run("default")
    with pytest.raises(MaxDepthExceededError):
        runner.run("loop")
    with pytest.raises(TaskNotFoundError):
        runner.run("missing")

    assert runner.state.last_task == "default"
    assert runner.run_last().task.name == "default"
    assert [call[0] for call in session.calls] == ["echo hi", "echo hi"]
