"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from task_ranker.config import Config
from task_ranker.models import Labels, Task


class StaticSource:
    """In-memory task source that counts calls and can be told to fail."""

    def __init__(self, name: str, tasks: list[Task], error: Exception | None = None) -> None:
        self.name = name
        self.tasks = tasks
        self.error = error
        self.calls = 0

    def load_tasks(self, config: Config) -> list[Task]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.tasks


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_task() -> Callable[..., Task]:
    def _make(task_id: str, *labels: tuple[str, str], score: int = 0) -> Task:
        return Task(
            id=task_id,
            url=f"https://tracker.example.com/{task_id}",
            summary=f"Task {task_id}",
            labels=Labels(labels),
            score=score,
        )

    return _make


@pytest.fixture()
def make_source() -> type[StaticSource]:
    return StaticSource
