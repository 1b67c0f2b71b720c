"""Locally stored goals exposed as tasks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from task_ranker.models import Goal, Labels, Task

if TYPE_CHECKING:
    from task_ranker.config import Config

GOAL_ID_PREFIX = "goal:"


class GoalReader(Protocol):
    def get_goals(self) -> list[Goal]:
        raise NotImplementedError


class GoalSource:
    """Turns each stored goal into a `goal:<id>` task."""

    name = "goal"

    def __init__(self, state: GoalReader) -> None:
        self.state = state

    def load_tasks(self, config: Config) -> list[Task]:
        return [
            Task(
                id=f"{GOAL_ID_PREFIX}{goal.id}",
                summary=goal.id,
                labels=Labels([("_source", self.name)]),
            )
            for goal in self.state.get_goals()
        ]
