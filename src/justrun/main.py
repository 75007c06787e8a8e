"""CLI entrypoint for justrun."""

from __future__ import annotations

import logging
from pathlib import Path

import rich_click as click

from justrun import __version__
from justrun.config import Settings, SettingsError
from justrun.runner.controllers import (
    CommandResult,
    TaskCliController,
    TaskListCommand,
    TaskRunCommand,
)
from justrun.runner.service import TaskRunner

click.rich_click.USE_MARKDOWN = True
TASK_CONTROLLER = TaskCliController()

QUIT_COMMANDS = frozenset({"q", "quit", "exit"})
REPEAT_COMMAND = "!!"


@click.group()
@click.version_option(version=__version__, prog_name="justrun")
@click.option(
    "-C",
    "--workdir",
    type=click.Path(path_type=Path, file_okay=False, exists=True),
    default=None,
    help="Project directory holding the task file. Defaults to the current directory.",
)
@click.option(
    "--file",
    "filename",
    default=None,
    help="Task file name inside the workdir. Defaults to JUSTRUN_FILENAME or .justrun.py.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def justrun(ctx: click.Context, workdir: Path | None, filename: str | None, verbose: bool) -> None:
    """Run shell tasks defined in a per-project task file."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = TaskListCommand(workdir=workdir, filename=filename)


def _complete_task_name(ctx: click.Context, _param: click.Parameter, incomplete: str) -> list[str]:
    root = ctx.find_root().params
    command = TaskListCommand(workdir=root.get("workdir"), filename=root.get("filename"))
    return TASK_CONTROLLER.complete(command, incomplete)


@justrun.command("run")
@click.argument("task_name", required=False, shell_complete=_complete_task_name)
@click.pass_obj
def run_task(obj: TaskListCommand, task_name: str | None) -> None:
    """Run a task, or the default task when no name is given.

    The exit status is the exit code of the task's shell command.
    """

    result = TASK_CONTROLLER.run(
        TaskRunCommand(workdir=obj.workdir, filename=obj.filename, task_name=task_name or None),
    )
    _finish(result)


@justrun.command("show")
@click.argument("task_name", required=False, shell_complete=_complete_task_name)
@click.pass_obj
def show_task(obj: TaskListCommand, task_name: str | None) -> None:
    """Print the resolved command of a task without running it."""

    result = TASK_CONTROLLER.show(
        TaskRunCommand(workdir=obj.workdir, filename=obj.filename, task_name=task_name or None),
    )
    _finish(result)


@justrun.command("list")
@click.pass_obj
def list_tasks(obj: TaskListCommand) -> None:
    """List tasks with their descriptions or commands."""

    _finish(TASK_CONTROLLER.list_tasks(obj))


@justrun.command("shell")
@click.pass_obj
def task_shell(obj: TaskListCommand) -> None:
    """Interactive loop that remembers the last task between runs.

    Enter a task name to run it, an empty line for the default task,
    `!!` to repeat the last task and `q` to leave.
    """

    try:
        runner = TaskRunner(Settings.from_env(workdir=obj.workdir, filename=obj.filename))
    except SettingsError as error:
        raise click.ClickException(str(error)) from error
    controller = TaskCliController(runner)

    while True:
        try:
            entry = click.prompt("justrun", default="", show_default=False).strip()
        except (EOFError, click.Abort):
            click.echo()
            break
        if entry in QUIT_COMMANDS:
            break
        if entry == REPEAT_COMMAND:
            result = controller.run_last(obj)
        else:
            result = controller.run(
                TaskRunCommand(workdir=obj.workdir, filename=obj.filename, task_name=entry or None),
            )
        _emit(result)
    runner.state.close()


def _emit(result: CommandResult) -> None:
    _emit_lines(result.lines)
    if result.error is not None:
        click.echo(result.error, err=True)


def _finish(result: CommandResult) -> None:
    if result.error is not None:
        _emit_lines(result.lines)
        raise click.ClickException(result.error)
    _emit_lines(result.lines)
    if result.exit_code != 0:
        raise SystemExit(result.exit_code)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    justrun()
