from __future__ import annotations

from pathlib import Path

import allure
import httpx
import pytest

from task_ranker.config import Config, ConfigError, FeedConfig, Settings, SourceSettings
from task_ranker.http.fetcher import HttpFetcher
from task_ranker.models import Goal, Marker, ScoreRule, TeamMember
from task_ranker.pipeline import RankingError, RankingService, build_task_source
from task_ranker.sources.aggregated import AggregatedSource
from task_ranker.sources.base import TemporarySourceError
from task_ranker.sources.cached import CachedSource
from task_ranker.sources.goals import GoalSource
from task_ranker.state import StateManager

pytestmark = [
    allure.epic("Task Ranking"),
    allure.feature("Ranking Pipeline"),
]

CONFIG = Config(
    team=[TeamMember(id="alice")],
    score_rules=[
        ScoreRule(key="priority", value="P1", score=100),
        ScoreRule(key="priority", value="P3", score=10),
        ScoreRule(key="flag", value="blocked", score=-50),
        ScoreRule(key="_source", value="goal", score=1),
    ],
)


def test_rank_annotates_reconciles_and_propagates(tmp_path: Path, make_task, make_source) -> None:
    state = StateManager.load(tmp_path / "state.yaml")
    state.add_goal(Goal(id="release"))
    state.set_task_parent("rh:epic", "goal:release")
    state.add_task_marker("rh:blocked", Marker(name="blocked"))
    tracker = make_source(
        "rh",
        [
            make_task("rh:epic", ("priority", "P3"), ("assignee", "alice")),
            make_task("rh:story", ("priority", "P1"), ("parent", "rh:epic")),
            make_task("rh:blocked", ("priority", "P3")),
        ],
    )
    service = RankingService(
        state=state,
        source=AggregatedSource(tracker, GoalSource(state)),
        config_loader=lambda: CONFIG,
    )

    result = service.rank()

    scores = {task.id: task.score for task in result.tasks}
    assert scores == {
        "rh:story": 100,
        "rh:epic": 110,
        "goal:release": 111,
        "rh:blocked": -40,
    }
    assert [task.id for task in result.tasks] == [
        "goal:release",
        "rh:epic",
        "rh:story",
        "rh:blocked",
    ]
    blocked = result.tasks[-1]
    assert blocked.labels.has("flag", "blocked")
    assert blocked.labels.has("marker", "blocked")
    epic = result.tasks[1]
    assert epic.labels.get("parent") == ["goal:release"]
    assert epic.labels.get("score") == ["10", "110"]


def test_rank_wraps_source_errors(tmp_path: Path, make_source) -> None:
    broken = make_source("rh", [], error=TemporarySourceError(message="jira timeout"))
    service = RankingService(
        state=StateManager.load(tmp_path / "state.yaml"),
        source=broken,
        config_loader=lambda: CONFIG,
    )

    with pytest.raises(RankingError, match="failed to load tasks: jira timeout"):
        service.rank()


def test_rank_wraps_config_errors(tmp_path: Path, make_source) -> None:
    def _broken_config() -> Config:
        raise ConfigError("Config file not found: config.yaml")

    service = RankingService(
        state=StateManager.load(tmp_path / "state.yaml"),
        source=make_source("rh", []),
        config_loader=_broken_config,
    )

    with pytest.raises(RankingError, match="failed to load config"):
        service.rank()


def test_rank_results_are_isolated_between_requests(tmp_path: Path, make_task, make_source) -> None:
    tracker = make_source("rh", [make_task("rh:1", ("priority", "P1"))])
    cached = CachedSource(tracker, 120.0)
    service = RankingService(
        state=StateManager.load(tmp_path / "state.yaml"),
        source=cached,
        config_loader=lambda: CONFIG,
    )

    first = service.rank()
    second = service.rank()

    assert tracker.calls == 1
    assert first.tasks[0].labels.get("score") == ["100"]
    assert second.tasks[0].labels.get("score") == ["100"]
    assert second.to_json_list() == first.to_json_list()


def test_build_task_source_orders_feeds_before_goals(tmp_path: Path) -> None:
    config = Config(
        feeds=[
            FeedConfig(name="rhbz", url="https://x/rhbz.json", ttl_seconds=60),
            FeedConfig(name="rh", url="https://x/rh.json"),
        ],
    )
    settings = Settings(sources=SourceSettings(default_ttl_seconds=300))
    state = StateManager.load(tmp_path / "state.yaml")

    def handler(request: httpx.Request) -> httpx.Response:
        name = request.url.path.strip("/").removesuffix(".json")
        return httpx.Response(200, json=[{"id": "1", "summary": name}])

    with HttpFetcher(transport=httpx.MockTransport(handler)) as fetcher:
        source = build_task_source(config=config, state=state, settings=settings, fetcher=fetcher)
        state.add_goal(Goal(id="release"))
        tasks = source.load_tasks(config)

    assert [task.id for task in tasks] == ["rhbz:1", "rh:1", "goal:release"]
    cached = [item for item in source.sources if isinstance(item, CachedSource)]
    assert [item.ttl_seconds for item in cached] == [60, 300]
