"""Locally owned task state: goals, markers, and parent overrides.

The scoring pipeline only reads state through `get_goals` and
`get_task_state`; mutations come from CLI commands and are flushed to the
YAML state file immediately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import yaml

from task_ranker.models import Goal, Marker, TaskState

logger = logging.getLogger(__name__)


class StateError(ValueError):
    """State file exists but cannot be interpreted."""


@dataclass(slots=True)
class State:
    goals: list[Goal] = field(default_factory=list)
    tasks: list[TaskState] = field(default_factory=list)


class StateManager:
    """Owns the state file and exposes read accessors and mutators."""

    def __init__(self, path: Path, state: State | None = None) -> None:
        self.path = path
        self._state = state or State()

    @classmethod
    def load(cls, path: Path) -> StateManager:
        """Load state from `path`; a missing file means empty state."""

        try:
            raw_text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("State file %s not found, starting empty", path)
            return cls(path)
        try:
            data = yaml.safe_load(raw_text) or {}
        except yaml.YAMLError as error:
            raise StateError(f"State file {path} is not valid YAML: {error}") from error
        return cls(path, _state_from_dict(data))

    def get_goals(self) -> list[Goal]:
        return list(self._state.goals)

    def get_task_state(self, task_id: str) -> TaskState | None:
        for task_state in self._state.tasks:
            if task_state.id == task_id:
                return task_state
        return None

    def add_task_marker(self, task_id: str, marker: Marker) -> None:
        """Attach a marker; re-adding a marker by name replaces its `until`."""

        task_state = self._get_or_create_task_state(task_id)
        for existing in task_state.markers:
            if existing.name == marker.name:
                existing.until = marker.until
                break
        else:
            task_state.markers.append(Marker(name=marker.name, until=marker.until))
        self._flush()

    def set_task_parent(self, task_id: str, parent_id: str) -> None:
        self._get_or_create_task_state(task_id).parent_id = parent_id
        self._flush()

    def add_goal(self, goal: Goal) -> bool:
        """Store a new goal; return False without writing if the id exists."""

        if any(existing.id == goal.id for existing in self._state.goals):
            return False
        self._state.goals.append(goal)
        self._flush()
        return True

    def _get_or_create_task_state(self, task_id: str) -> TaskState:
        task_state = self.get_task_state(task_id)
        if task_state is None:
            task_state = TaskState(id=task_id)
            self._state.tasks.append(task_state)
        return task_state

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            yaml.safe_dump(_state_to_dict(self._state), sort_keys=False),
            encoding="utf-8",
        )
        logger.debug("State saved to %s", self.path)


def parse_until(value: str, *, now: datetime | None = None) -> datetime:
    """Parse a marker expiry: `+<hours>h` relative to now, or an ISO-8601 timestamp."""

    text = value.strip()
    if text.startswith("+") and text.endswith("h"):
        try:
            hours = int(text[1:-1])
        except ValueError as error:
            raise ValueError(f"Invalid relative expiry: {value!r}") from error
        return (now or datetime.now(tz=UTC)) + timedelta(hours=hours)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as error:
        raise ValueError(f"Invalid expiry timestamp: {value!r}") from error
    return _aware(parsed)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _state_from_dict(data: object) -> State:
    if not isinstance(data, dict):
        raise StateError("State file must contain a mapping.")
    try:
        goals = [
            Goal(id=str(item["id"]), score=int(item.get("score") or 0))
            for item in data.get("goals") or []
        ]
        tasks = [
            TaskState(
                id=str(item["id"]),
                parent_id=item.get("parent_id") or None,
                markers=[_marker_from_dict(marker) for marker in item.get("markers") or []],
            )
            for item in data.get("tasks") or []
        ]
    except (KeyError, TypeError, ValueError, AttributeError) as error:
        raise StateError(f"Malformed state entry: {error!r}") from error
    return State(goals=goals, tasks=tasks)


def _marker_from_dict(data: dict[str, object]) -> Marker:
    until = data.get("until")
    if isinstance(until, datetime):
        parsed: datetime | None = _aware(until)
    elif until:
        parsed = _aware(datetime.fromisoformat(str(until)))
    else:
        parsed = None
    return Marker(name=str(data["name"]), until=parsed)


def _state_to_dict(state: State) -> dict[str, object]:
    data: dict[str, object] = {}
    if state.goals:
        data["goals"] = [{"id": goal.id, "score": goal.score} for goal in state.goals]
    if state.tasks:
        data["tasks"] = [_task_state_to_dict(task_state) for task_state in state.tasks]
    return data


def _task_state_to_dict(task_state: TaskState) -> dict[str, object]:
    item: dict[str, object] = {"id": task_state.id}
    if task_state.parent_id:
        item["parent_id"] = task_state.parent_id
    if task_state.markers:
        item["markers"] = [
            {"name": marker.name, "until": marker.until.isoformat()}
            if marker.until is not None
            else {"name": marker.name}
            for marker in task_state.markers
        ]
    return item
