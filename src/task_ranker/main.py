"""CLI entrypoint for task-ranker."""

import logging
from pathlib import Path

import rich_click as click

from task_ranker import __version__
from task_ranker.config import ConfigError
from task_ranker.controllers import (
    GoalAddCommand,
    MarkCommand,
    ParentCommand,
    RankerCliController,
    TasksCommand,
)
from task_ranker.pipeline import RankingError
from task_ranker.state import StateError

click.rich_click.USE_MARKDOWN = True
CONTROLLER = RankerCliController()

_CONFIG_PATH_OPTION = click.option(
    "--config-path",
    type=click.Path(path_type=Path),
    default=None,
    help="Ranking config YAML. Defaults to TASK_RANKER_CONFIG_PATH or config.yaml.",
)
_STATE_PATH_OPTION = click.option(
    "--state-path",
    type=click.Path(path_type=Path),
    default=None,
    help="State YAML. Defaults to TASK_RANKER_STATE_PATH or state.yaml.",
)


@click.group()
@click.version_option(version=__version__, prog_name="task-ranker")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def task_ranker(verbose: bool) -> None:
    """Rank tasks from several sources by propagated priority score."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )


@task_ranker.command("tasks")
@_CONFIG_PATH_OPTION
@_STATE_PATH_OPTION
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the JSON task list.")
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Only show the top N tasks.",
)
@click.option(
    "--labels/--no-labels",
    "show_labels",
    default=False,
    show_default=True,
    help="Print task labels next to each task.",
)
def tasks(
    config_path: Path | None,
    state_path: Path | None,
    as_json: bool,
    limit: int | None,
    show_labels: bool,
) -> None:
    """Show tasks ranked by propagated score."""

    try:
        lines = CONTROLLER.tasks(
            TasksCommand(
                config_path=config_path,
                state_path=state_path,
                as_json=as_json,
                limit=limit,
                show_labels=show_labels,
            ),
        )
    except (ConfigError, StateError, RankingError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@task_ranker.command("mark")
@_STATE_PATH_OPTION
@click.argument("task_id")
@click.argument("marker")
@click.option(
    "--until",
    default=None,
    help="Marker expiry: `+<hours>h` or an ISO-8601 timestamp. Omit for no expiry.",
)
def mark(state_path: Path | None, task_id: str, marker: str, until: str | None) -> None:
    """Attach a marker such as `blocked` or `snoozed` to a task."""

    try:
        lines = CONTROLLER.mark(
            MarkCommand(state_path=state_path, task_id=task_id, marker=marker, until=until),
        )
    except (ConfigError, StateError) as error:
        raise click.ClickException(str(error)) from error
    except ValueError as error:
        raise click.BadParameter(str(error), param_hint="--until") from error
    _emit_lines(lines)


@task_ranker.command("parent")
@_STATE_PATH_OPTION
@click.argument("task_id")
@click.argument("parent_id")
def parent(state_path: Path | None, task_id: str, parent_id: str) -> None:
    """Make PARENT_ID the parent of TASK_ID unless the source already sets one."""

    try:
        lines = CONTROLLER.parent(
            ParentCommand(state_path=state_path, task_id=task_id, parent_id=parent_id),
        )
    except (ConfigError, StateError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@task_ranker.group()
def goal() -> None:
    """Goal commands."""


@goal.command("add")
@_STATE_PATH_OPTION
@click.argument("goal_id")
@click.option("--score", type=int, default=0, show_default=True, help="Goal score.")
def goal_add(state_path: Path | None, goal_id: str, score: int) -> None:
    """Add a goal that is ranked as task `goal:GOAL_ID`."""

    try:
        result = CONTROLLER.add_goal(
            GoalAddCommand(state_path=state_path, goal_id=goal_id, score=score),
        )
    except (ConfigError, StateError) as error:
        raise click.ClickException(str(error)) from error
    if not result.created:
        raise click.ClickException(result.lines[0])
    _emit_lines(result.lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    task_ranker()
