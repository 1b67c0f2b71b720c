"""Runtime settings and ranking configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

import yaml

from task_ranker.models import ScoreRule, TeamMember

FEED_IDENTITIES = frozenset({"bugzilla", "jira"})


class ConfigError(ValueError):
    """Ranking configuration is missing or malformed."""


@dataclass(slots=True)
class SourceSettings:
    """Task source settings."""

    default_ttl_seconds: float = 120.0
    request_timeout_seconds: float = 30.0
    max_retries: int = 3


@dataclass(slots=True)
class Settings:
    """Process-level settings loaded from the environment."""

    config_path: Path = Path("config.yaml")
    state_path: Path = Path("state.yaml")
    sources: SourceSettings = field(default_factory=SourceSettings)

    @classmethod
    def from_env(
        cls,
        config_path: Path | None = None,
        state_path: Path | None = None,
    ) -> Settings:
        """Load settings from environment with defaults for local use."""

        return cls(
            config_path=config_path
            or Path(os.getenv("TASK_RANKER_CONFIG_PATH", "config.yaml")),
            state_path=state_path or Path(os.getenv("TASK_RANKER_STATE_PATH", "state.yaml")),
            sources=SourceSettings(
                default_ttl_seconds=_env_float("TASK_RANKER_DEFAULT_TTL_SECONDS", 120.0),
                request_timeout_seconds=_env_float("TASK_RANKER_REQUEST_TIMEOUT_SECONDS", 30.0),
                max_retries=_env_int("TASK_RANKER_MAX_RETRIES", 3),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for out-of-range settings."""

        if self.sources.default_ttl_seconds < 0:
            raise ConfigError("TASK_RANKER_DEFAULT_TTL_SECONDS must be >= 0.")
        if self.sources.request_timeout_seconds <= 0:
            raise ConfigError("TASK_RANKER_REQUEST_TIMEOUT_SECONDS must be > 0.")
        if self.sources.max_retries < 0:
            raise ConfigError("TASK_RANKER_MAX_RETRIES must be >= 0.")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as error:
        raise ConfigError(f"{name} must be a number, got {raw!r}.") from error


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as error:
        raise ConfigError(f"{name} must be an integer, got {raw!r}.") from error


@dataclass(slots=True)
class FeedConfig:
    """One JSON task feed."""

    name: str
    url: str
    ttl_seconds: float | None = None
    identity: str | None = None


@dataclass(slots=True)
class Config:
    """Team identities, scoring rules, and feeds used to rank tasks."""

    team: list[TeamMember] = field(default_factory=list)
    score_rules: list[ScoreRule] = field(default_factory=list)
    feeds: list[FeedConfig] = field(default_factory=list)


def load_config(path: Path) -> Config:
    """Read and validate the YAML ranking configuration."""

    try:
        raw_text = path.read_text(encoding="utf-8")
    except FileNotFoundError as error:
        raise ConfigError(f"Config file not found: {path}") from error
    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as error:
        raise ConfigError(f"Config file {path} is not valid YAML: {error}") from error
    return parse_config(data or {})


def parse_config(data: object) -> Config:
    if not isinstance(data, Mapping):
        raise ConfigError("Config must be a mapping.")

    team = [_parse_team_member(index, item) for index, item in enumerate(_list(data, "team"))]
    raw_rules = data.get("scoreRules", data.get("score_rules")) or []
    if not isinstance(raw_rules, list):
        raise ConfigError("Config field 'scoreRules' must be a list.")
    score_rules = [_parse_score_rule(index, item) for index, item in enumerate(raw_rules)]
    feeds = [_parse_feed(index, item) for index, item in enumerate(_list(data, "feeds"))]

    names = [feed.name for feed in feeds]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate feed names: {', '.join(duplicates)}")

    return Config(team=team, score_rules=score_rules, feeds=feeds)


def _list(data: Mapping[str, object], key: str) -> list[object]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ConfigError(f"Config field {key!r} must be a list.")
    return value


def _mapping(value: object, where: str) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"{where} must be a mapping.")
    return value


def _required_str(item: Mapping[str, object], key: str, where: str) -> str:
    value = item.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{where}: field {key!r} is required and must be a string.")
    return value


def _str_list(item: Mapping[str, object], key: str, where: str) -> list[str]:
    value = item.get(key) or []
    if not isinstance(value, list) or not all(isinstance(entry, str) for entry in value):
        raise ConfigError(f"{where}: field {key!r} must be a list of strings.")
    return list(value)


def _parse_team_member(index: int, raw: object) -> TeamMember:
    where = f"team[{index}]"
    item = _mapping(raw, where)
    return TeamMember(
        id=_required_str(item, "id", where),
        bugzilla=_str_list(item, "bugzilla", where),
        jira=_str_list(item, "jira", where),
    )


def _parse_score_rule(index: int, raw: object) -> ScoreRule:
    where = f"scoreRules[{index}]"
    item = _mapping(raw, where)
    # YAML may load bare values like `P1` or `true` as non-strings.
    value = item.get("value")
    if value is None or isinstance(value, (list, dict)):
        raise ConfigError(f"{where}: field 'value' is required and must be a scalar.")
    score = item.get("score")
    if isinstance(score, bool) or not isinstance(score, int):
        raise ConfigError(f"{where}: field 'score' must be an integer.")
    return ScoreRule(key=_required_str(item, "key", where), value=_scalar_text(value), score=score)


def _parse_feed(index: int, raw: object) -> FeedConfig:
    where = f"feeds[{index}]"
    item = _mapping(raw, where)
    name = _required_str(item, "name", where)
    if ":" in name:
        raise ConfigError(f"{where}: feed name must not contain ':'.")
    url = _required_str(item, "url", where)
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigError(
            f"{where}: invalid feed URL {url!r}. "
            "Expected an absolute URL with http:// or https:// scheme.",
        )

    ttl = item.get("ttl_seconds", item.get("ttlSeconds"))
    if ttl is not None and (isinstance(ttl, bool) or not isinstance(ttl, (int, float)) or ttl < 0):
        raise ConfigError(f"{where}: field 'ttl_seconds' must be a non-negative number.")

    identity = item.get("identity")
    if identity is not None and (not isinstance(identity, str) or identity not in FEED_IDENTITIES):
        raise ConfigError(
            f"{where}: field 'identity' must be one of {', '.join(sorted(FEED_IDENTITIES))}.",
        )
    return FeedConfig(
        name=name,
        url=url,
        ttl_seconds=float(ttl) if ttl is not None else None,
        identity=identity,
    )


def _scalar_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
