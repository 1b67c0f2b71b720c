"""Per-task reconciliation: derived flags, base score, canonical labels."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Protocol

from task_ranker.models import ASSIGNEE_NONE, ScoreRule, Task, TaskState, TeamMember

logger = logging.getLogger(__name__)


class TaskStateLookup(Protocol):
    """Read-only access to locally stored task overrides."""

    def get_task_state(self, task_id: str) -> TaskState | None:
        raise NotImplementedError


def apply_task_state(
    tasks: Sequence[Task],
    state: TaskStateLookup,
    *,
    now: datetime | None = None,
) -> None:
    """Copy stored parent overrides and active markers into task labels."""

    current = now or datetime.now(tz=UTC)
    for task in tasks:
        task_state = state.get_task_state(task.id)
        if task_state is None:
            continue

        if not task.labels.get("parent") and task_state.parent_id:
            task.labels.add("parent", task_state.parent_id)

        for marker in task_state.markers:
            if marker.is_active(current):
                task.labels.add("marker", marker.name)


def reconcile_task(
    task: Task,
    team: Sequence[TeamMember],
    score_rules: Sequence[ScoreRule],
) -> Task:
    """Derive flags and the base score from task labels.

    The task is updated in place and returned. A `score=<base>` label is
    appended with add-if-absent semantics, so reconciling a task whose score
    changed leaves the earlier `score` label in place.
    """

    primary_id = team[0].id if team else None
    assignees = task.labels.get("assignee")
    if len(assignees) == 1 and assignees[0] not in (ASSIGNEE_NONE, primary_id):
        task.labels.add("flag", "delegated")

    if task.labels.get("blocked-by") or task.labels.has("marker", "blocked"):
        task.labels.add("flag", "blocked")

    task.score = base_score(task, score_rules)
    task.labels.add("score", str(task.score))
    task.labels.sort()
    return task


def base_score(task: Task, score_rules: Sequence[ScoreRule]) -> int:
    """Sum of rule scores; each matching rule counts once."""

    score = 0
    for rule in score_rules:
        if rule.match(task.labels):
            score += rule.score
    logger.debug("Base score for %s: %d", task.id, score)
    return score
