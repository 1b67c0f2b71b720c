"""Common task source contracts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from task_ranker.config import Config
    from task_ranker.models import Task


@dataclass(slots=True)
class SourceError(Exception):
    """Base task source error."""

    message: str
    code: str = "source_error"

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class TemporarySourceError(SourceError):
    """Transport-level failure that may succeed on a later request."""

    retry_after: int | None = None


@dataclass(slots=True)
class NonRetryableSourceError(SourceError):
    """Source answered with data that cannot be turned into tasks."""


class TaskSource(Protocol):
    """Interface for anything that yields tasks."""

    name: str

    def load_tasks(self, config: Config) -> list[Task]:
        """Load the current task list; raise `SourceError` on failure."""
        raise NotImplementedError
