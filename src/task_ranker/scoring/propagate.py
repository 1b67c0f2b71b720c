"""Score propagation along parent links."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from task_ranker.models import Task
from task_ranker.scoring.mathgraph import Const, Max, Sum

logger = logging.getLogger(__name__)


def propagate_scores(tasks: Sequence[Task]) -> list[Task]:
    """Fold each task's most urgent descendant into its score and rank tasks.

    A task's score becomes its base score plus the highest propagated score
    among its children. Parent ids missing from the batch are ignored and
    cycles contribute nothing. Tasks with equal scores keep their input order.
    """

    totals: dict[str, Sum] = {}
    children: dict[str, Max] = {}
    for task in tasks:
        child_max = Max()
        totals[task.id] = Sum([Const(task.score), child_max])
        children[task.id] = child_max

    for task in tasks:
        for parent_id in task.labels.get("parent"):
            parent_children = children.get(parent_id)
            if parent_children is None:
                logger.debug("Task %s refers to unknown parent %s", task.id, parent_id)
                continue
            parent_children.add(totals[task.id])

    for task in tasks:
        task.score = totals[task.id].evaluate()
        task.labels.add("score", str(task.score))

    return sorted(tasks, key=lambda task: task.score, reverse=True)
