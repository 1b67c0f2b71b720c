"""Time-to-live cache around a task source."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from task_ranker.sources.base import TaskSource

if TYPE_CHECKING:
    from task_ranker.config import Config
    from task_ranker.models import Task

logger = logging.getLogger(__name__)


class CachedSource:
    """Memoizes a source's last successful result for `ttl_seconds`.

    Callers always receive deep copies, so mutating a returned task never
    leaks into the cache or into another caller's result. Failures are
    propagated and leave the cache untouched: nothing stale is served on
    error and the next call asks the wrapped source again.
    """

    def __init__(
        self,
        source: TaskSource,
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.source = source
        self.name = source.name
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._tasks: list[Task] = []
        self._valid_until: float | None = None

    def load_tasks(self, config: Config) -> list[Task]:
        with self._lock:
            if self._valid_until is not None and self._clock() < self._valid_until:
                logger.debug("Cache hit for source %s", self.name)
                return self._copy_tasks()

            tasks = self.source.load_tasks(config)
            self._tasks = tasks
            self._valid_until = self._clock() + self.ttl_seconds
            logger.debug("Cached %d tasks from source %s", len(tasks), self.name)
            return self._copy_tasks()

    def invalidate(self) -> None:
        with self._lock:
            self._tasks = []
            self._valid_until = None

    def _copy_tasks(self) -> list[Task]:
        return [task.deep_copy() for task in self._tasks]
