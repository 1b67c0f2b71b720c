"""JSON task feed source.

A feed is an HTTP endpoint returning a JSON list of task objects in the
`{id, url, summary, labels: [{key, value}, ...]}` shape. Task ids and task
references in labels are namespaced with the feed name so that ids from
different feeds never collide.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from task_ranker.http.fetcher import HttpFetcher
from task_ranker.models import ASSIGNEE_NONE, Labels, Task, TeamMember
from task_ranker.sources.base import NonRetryableSourceError, TemporarySourceError

if TYPE_CHECKING:
    from task_ranker.config import Config, FeedConfig

logger = logging.getLogger(__name__)

REFERENCE_LABEL_KEYS = frozenset({"parent", "blocked-by"})


class FeedSource:
    """Loads tasks from one JSON feed."""

    def __init__(self, feed: FeedConfig, fetcher: HttpFetcher) -> None:
        self.feed = feed
        self.name = feed.name
        self._fetcher = fetcher

    def load_tasks(self, config: Config) -> list[Task]:
        result = self._fetcher.fetch(self.feed.url)
        if not result.ok:
            raise TemporarySourceError(
                message=f"Feed {self.name} request failed: {result.error}",
                code="http_error" if result.status_code else "transport_error",
                retry_after=result.retry_after,
            )

        try:
            payload = json.loads(result.body)
        except json.JSONDecodeError as error:
            raise NonRetryableSourceError(
                message=f"Feed {self.name} returned invalid JSON: {error}",
                code="invalid_json",
            ) from error
        if not isinstance(payload, list):
            raise NonRetryableSourceError(
                message=f"Feed {self.name} must return a JSON list of tasks",
                code="invalid_payload",
            )

        tasks: list[Task] = []
        for item in payload:
            try:
                task = Task.from_dict(item)
            except (KeyError, TypeError, ValueError, AttributeError) as error:
                raise NonRetryableSourceError(
                    message=f"Feed {self.name} returned a malformed task: {error!r}",
                    code="invalid_task",
                ) from error
            tasks.append(self._convert(task, config.team))

        logger.info("Feed %s returned %d tasks", self.name, len(tasks))
        return tasks

    def _convert(self, raw: Task, team: Sequence[TeamMember]) -> Task:
        labels = Labels([("_source", self.name)])
        for label in raw.labels:
            if label.key in REFERENCE_LABEL_KEYS:
                labels.add(label.key, self._namespaced(label.value))
            elif label.key == "assignee":
                labels.add(label.key, resolve_assignee(label.value, team, self.feed.identity))
            else:
                labels.add(label.key, label.value)
        return Task(
            id=self._namespaced(raw.id),
            url=raw.url,
            summary=raw.summary,
            labels=labels,
        )

    def _namespaced(self, task_id: str) -> str:
        if ":" in task_id:
            return task_id
        return f"{self.name}:{task_id}"


def resolve_assignee(login: str, team: Sequence[TeamMember], identity: str | None) -> str:
    """Map a tracker login to a team member id.

    Logins listed under the member's `identity` aliases (`bugzilla` or `jira`)
    resolve to the member id; other logins are reduced to their local part.
    """

    if not login or login == ASSIGNEE_NONE:
        return ASSIGNEE_NONE
    if identity:
        for member in team:
            if login in member.aliases(identity):
                return member.id
    return login.split("@", 1)[0]
