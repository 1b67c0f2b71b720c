"""Fan-in of several task sources."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from task_ranker.sources.base import TaskSource

if TYPE_CHECKING:
    from task_ranker.config import Config
    from task_ranker.models import Task

logger = logging.getLogger(__name__)


class AggregatedSource:
    """Concatenates tasks from sources in their configured order.

    The first failing source aborts the whole call.
    """

    name = "aggregated"

    def __init__(self, *sources: TaskSource) -> None:
        self.sources = list(sources)

    def load_tasks(self, config: Config) -> list[Task]:
        tasks: list[Task] = []
        for source in self.sources:
            loaded = source.load_tasks(config)
            logger.debug("Loaded %d tasks from source %s", len(loaded), source.name)
            tasks.extend(loaded)
        return tasks
