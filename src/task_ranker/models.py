"""Domain models shared by sources, state, and scoring stages."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime

ASSIGNEE_NONE = "NONE"


@dataclass(frozen=True, slots=True)
class Label:
    """One `key=value` metadata pair attached to a task."""

    key: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"key": self.key, "value": self.value}


class Labels:
    """Ordered multimap of labels.

    A key may repeat with different values. Adding a pair that is already
    present is a no-op.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Label | tuple[str, str]] = ()) -> None:
        self._items: list[Label] = []
        for item in items:
            if isinstance(item, Label):
                self.add(item.key, item.value)
            else:
                self.add(*item)

    def has(self, key: str, value: str) -> bool:
        return Label(key, value) in self._items

    def add(self, key: str, value: str) -> None:
        if self.has(key, value):
            return
        self._items.append(Label(key, value))

    def get(self, key: str) -> list[str]:
        return [label.value for label in self._items if label.key == key]

    def sort(self) -> None:
        self._items.sort(key=lambda label: (label.key, label.value))

    def deep_copy(self) -> Labels:
        clone = Labels()
        clone._items = list(self._items)
        return clone

    def to_list(self) -> list[dict[str, str]]:
        return [label.to_dict() for label in self._items]

    def __iter__(self) -> Iterator[Label]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Labels):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        pairs = ", ".join(f"{label.key}={label.value}" for label in self._items)
        return f"Labels([{pairs}])"


@dataclass(slots=True)
class Task:
    """Unit of work loaded from a task source."""

    id: str
    url: str = ""
    summary: str = ""
    labels: Labels = field(default_factory=Labels)
    score: int = 0

    def deep_copy(self) -> Task:
        return Task(
            id=self.id,
            url=self.url,
            summary=self.summary,
            labels=self.labels.deep_copy(),
            score=self.score,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "url": self.url,
            "summary": self.summary,
            "labels": self.labels.to_list(),
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> Task:
        """Build a task from its JSON representation."""

        raw_labels = payload.get("labels") or []
        if not isinstance(raw_labels, list):
            raise TypeError("Task labels must be a list")
        labels = Labels()
        for raw_label in raw_labels:
            if not isinstance(raw_label, dict):
                raise TypeError("Task label must be an object with key and value")
            labels.add(str(raw_label["key"]), str(raw_label["value"]))
        return cls(
            id=str(payload["id"]),
            url=str(payload.get("url") or ""),
            summary=str(payload.get("summary") or ""),
            labels=labels,
            score=int(payload.get("score") or 0),  # type: ignore[call-overload]
        )


@dataclass(slots=True)
class TeamMember:
    """Team identity; the first configured member is the primary one."""

    id: str
    bugzilla: list[str] = field(default_factory=list)
    jira: list[str] = field(default_factory=list)

    def aliases(self, identity: str) -> list[str]:
        if identity == "bugzilla":
            return self.bugzilla
        if identity == "jira":
            return self.jira
        return []


@dataclass(slots=True)
class ScoreRule:
    """Label match that contributes `score` to a task's base score."""

    key: str
    value: str
    score: int

    def match(self, labels: Iterable[Label]) -> bool:
        return any(label.key == self.key and label.value == self.value for label in labels)


@dataclass(slots=True)
class Goal:
    """Locally owned goal that is ranked alongside tracker tasks."""

    id: str
    score: int = 0


@dataclass(slots=True)
class Marker:
    """Manual task annotation, optionally bounded in time."""

    name: str
    until: datetime | None = None

    def is_active(self, now: datetime) -> bool:
        return self.until is None or self.until > now


@dataclass(slots=True)
class TaskState:
    """Locally stored overrides for one task."""

    id: str
    parent_id: str | None = None
    markers: list[Marker] = field(default_factory=list)
