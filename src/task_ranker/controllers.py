"""Controllers for ranking and state CLI commands."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from task_ranker.config import Settings, load_config
from task_ranker.http.fetcher import HttpFetcher
from task_ranker.models import Goal, Marker, Task
from task_ranker.pipeline import RankingService, build_task_source
from task_ranker.state import StateManager, parse_until


@dataclass(slots=True)
class TasksCommand:
    """CLI inputs for the ranked task list."""

    config_path: Path | None
    state_path: Path | None
    as_json: bool
    limit: int | None
    show_labels: bool


@dataclass(slots=True)
class MarkCommand:
    """CLI inputs for attaching a marker to a task."""

    state_path: Path | None
    task_id: str
    marker: str
    until: str | None


@dataclass(slots=True)
class ParentCommand:
    """CLI inputs for overriding a task parent."""

    state_path: Path | None
    task_id: str
    parent_id: str


@dataclass(slots=True)
class GoalAddCommand:
    """CLI inputs for adding a goal."""

    state_path: Path | None
    goal_id: str
    score: int


@dataclass(slots=True)
class GoalAddResult:
    lines: list[str]
    created: bool


class RankerCliController:
    """Coordinates ranking and state command execution."""

    def tasks(self, command: TasksCommand) -> list[str]:
        settings = Settings.from_env(
            config_path=command.config_path,
            state_path=command.state_path,
        )
        settings.validate()
        state = StateManager.load(settings.state_path)
        config = load_config(settings.config_path)
        with _fetcher(settings) as fetcher:
            source = build_task_source(
                config=config,
                state=state,
                settings=settings,
                fetcher=fetcher,
            )
            result = RankingService(
                state=state,
                source=source,
                config_loader=lambda: config,
            ).rank()

        tasks = result.tasks[: command.limit] if command.limit else result.tasks
        if command.as_json:
            return [json.dumps([task.to_dict() for task in tasks], indent=2)]
        return [render_task_line(task, show_labels=command.show_labels) for task in tasks]

    def mark(self, command: MarkCommand) -> list[str]:
        until = parse_until(command.until) if command.until else None
        state = StateManager.load(Settings.from_env(state_path=command.state_path).state_path)
        state.add_task_marker(command.task_id, Marker(name=command.marker, until=until))
        suffix = f" until={until.isoformat()}" if until else ""
        return [f"Marker set: task_id={command.task_id} marker={command.marker}{suffix}"]

    def parent(self, command: ParentCommand) -> list[str]:
        state = StateManager.load(Settings.from_env(state_path=command.state_path).state_path)
        state.set_task_parent(command.task_id, command.parent_id)
        return [f"Parent set: task_id={command.task_id} parent_id={command.parent_id}"]

    def add_goal(self, command: GoalAddCommand) -> GoalAddResult:
        state = StateManager.load(Settings.from_env(state_path=command.state_path).state_path)
        created = state.add_goal(Goal(id=command.goal_id, score=command.score))
        if not created:
            return GoalAddResult(lines=[f"Goal already exists: {command.goal_id}"], created=False)
        return GoalAddResult(
            lines=[f"Goal added: goal_id={command.goal_id} task_id=goal:{command.goal_id}"],
            created=True,
        )


def render_task_line(task: Task, *, show_labels: bool = False) -> str:
    line = f"{task.score:>6}  {task.id}  {task.summary}"
    if show_labels:
        labels = " ".join(f"{label.key}={label.value}" for label in task.labels)
        line = f"{line}  [{labels}]"
    return line


@contextmanager
def _fetcher(settings: Settings) -> Iterator[HttpFetcher]:
    with HttpFetcher(
        timeout_seconds=settings.sources.request_timeout_seconds,
        max_retries=settings.sources.max_retries,
    ) as fetcher:
        yield fetcher
