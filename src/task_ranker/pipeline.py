"""End-to-end ranking: load, annotate, reconcile, propagate."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from task_ranker.config import Config, ConfigError, Settings
from task_ranker.http.fetcher import HttpFetcher
from task_ranker.models import Goal, Task, TaskState
from task_ranker.scoring.propagate import propagate_scores
from task_ranker.scoring.reconcile import apply_task_state, reconcile_task
from task_ranker.sources.aggregated import AggregatedSource
from task_ranker.sources.base import SourceError, TaskSource
from task_ranker.sources.cached import CachedSource
from task_ranker.sources.feed import FeedSource
from task_ranker.sources.goals import GoalSource

logger = logging.getLogger(__name__)


class RankingError(Exception):
    """Ranking request failed before scoring could run."""


class TaskStateReader(Protocol):
    """Read-only view of locally owned state consumed by ranking."""

    def get_goals(self) -> list[Goal]:
        raise NotImplementedError

    def get_task_state(self, task_id: str) -> TaskState | None:
        raise NotImplementedError


@dataclass(slots=True)
class RankingResult:
    """Ranked tasks of one request."""

    tasks: list[Task]

    def to_json_list(self) -> list[dict[str, object]]:
        return [task.to_dict() for task in self.tasks]


class RankingService:
    """Coordinates task loading and scoring stages for one request at a time."""

    def __init__(
        self,
        *,
        state: TaskStateReader,
        source: TaskSource,
        config_loader: Callable[[], Config],
    ) -> None:
        self.state = state
        self.source = source
        self.config_loader = config_loader

    def rank(self) -> RankingResult:
        try:
            config = self.config_loader()
        except ConfigError as error:
            raise RankingError(f"failed to load config: {error}") from error

        try:
            tasks = self.source.load_tasks(config)
        except SourceError as error:
            raise RankingError(f"failed to load tasks: {error}") from error

        apply_task_state(tasks, self.state)
        for task in tasks:
            reconcile_task(task, config.team, config.score_rules)
        ranked = propagate_scores(tasks)
        logger.info("Ranked %d tasks", len(ranked))
        return RankingResult(tasks=ranked)


def build_task_source(
    *,
    config: Config,
    state: TaskStateReader,
    settings: Settings,
    fetcher: HttpFetcher,
) -> AggregatedSource:
    """Assemble cached feed sources followed by the goal source."""

    sources: list[TaskSource] = []
    for feed in config.feeds:
        ttl = (
            feed.ttl_seconds
            if feed.ttl_seconds is not None
            else settings.sources.default_ttl_seconds
        )
        sources.append(CachedSource(FeedSource(feed, fetcher), ttl))
    sources.append(GoalSource(state))
    return AggregatedSource(*sources)
