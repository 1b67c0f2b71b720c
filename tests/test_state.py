from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import allure
import pytest

from task_ranker.models import Goal, Marker
from task_ranker.state import StateError, StateManager, parse_until

pytestmark = [
    allure.epic("Task Ranking"),
    allure.feature("State & Config"),
]


def test_missing_state_file_is_empty_state(tmp_path: Path) -> None:
    state = StateManager.load(tmp_path / "state.yaml")

    assert state.get_goals() == []
    assert state.get_task_state("rh:1") is None
    assert not (tmp_path / "state.yaml").exists()


def test_state_round_trips_through_yaml(tmp_path: Path) -> None:
    path = tmp_path / "state.yaml"
    until = datetime(2026, 10, 20, 9, 30, tzinfo=UTC)
    state = StateManager.load(path)

    assert state.add_goal(Goal(id="release", score=10))
    state.set_task_parent("rh:1", "goal:release")
    state.add_task_marker("rh:1", Marker(name="snoozed", until=until))
    state.add_task_marker("rh:1", Marker(name="blocked"))

    reloaded = StateManager.load(path)

    assert reloaded.get_goals() == [Goal(id="release", score=10)]
    task_state = reloaded.get_task_state("rh:1")
    assert task_state is not None
    assert task_state.parent_id == "goal:release"
    assert task_state.markers == [Marker(name="snoozed", until=until), Marker(name="blocked")]


def test_re_adding_marker_replaces_its_expiry(tmp_path: Path) -> None:
    state = StateManager.load(tmp_path / "state.yaml")
    until = datetime(2026, 10, 20, tzinfo=UTC)
    state.add_task_marker("rh:1", Marker(name="snoozed", until=until))

    state.add_task_marker("rh:1", Marker(name="snoozed"))

    task_state = state.get_task_state("rh:1")
    assert task_state is not None
    assert task_state.markers == [Marker(name="snoozed")]


def test_duplicate_goal_is_rejected(tmp_path: Path) -> None:
    state = StateManager.load(tmp_path / "state.yaml")
    state.add_goal(Goal(id="release", score=1))

    assert not state.add_goal(Goal(id="release", score=5))
    assert state.get_goals() == [Goal(id="release", score=1)]


def test_loads_original_state_layout(tmp_path: Path) -> None:
    path = tmp_path / "state.yaml"
    path.write_text(
        "goals:\n"
        "- id: release\n"
        "  score: 3\n"
        "tasks:\n"
        "- id: rhbz:100\n"
        "  parent_id: goal:release\n"
        "  markers:\n"
        "  - name: snoozed\n"
        "    until: 2026-10-20T10:00:00Z\n",
        encoding="utf-8",
    )

    state = StateManager.load(path)

    task_state = state.get_task_state("rhbz:100")
    assert task_state is not None
    assert task_state.markers[0].until == datetime(2026, 10, 20, 10, 0, tzinfo=UTC)


def test_malformed_state_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "state.yaml"
    path.write_text("tasks:\n- parent_id: x\n", encoding="utf-8")

    with pytest.raises(StateError, match="Malformed state entry"):
        StateManager.load(path)


def test_parse_until_relative_hours() -> None:
    now = datetime(2026, 10, 19, 8, 0, tzinfo=UTC)

    assert parse_until("+24h", now=now) == now + timedelta(hours=24)


def test_parse_until_timestamp_defaults_to_utc() -> None:
    assert parse_until("2026-10-20T10:00:00") == datetime(2026, 10, 20, 10, 0, tzinfo=UTC)
    assert parse_until("2026-10-20T10:00:00Z") == datetime(2026, 10, 20, 10, 0, tzinfo=UTC)


@pytest.mark.parametrize("value", ["+xh", "tomorrow", "+3d"])
def test_parse_until_rejects_invalid_values(value: str) -> None:
    with pytest.raises(ValueError, match="Invalid"):
        parse_until(value)
