"""
Configuration for the chart recommender.

``load_config()`` layers, lowest precedence first:

  config/default.toml   committed defaults
  config/local.toml     per-machine overrides, merged key by key (gitignored)
  .env                  read into the process environment (gitignored)
  CHART_RECOMMENDER_*   environment variables, see ``_ENV_OVERRIDES``

The result is a frozen ``AppConfig``. Commands hand its sections to the
components that need them (``RecommendationConfig`` to the engine,
``DatabaseConfig`` to ``get_connection()``), so nothing else reads the
environment.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/chart_recommender.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class DataConfig(BaseModel):
    """Filesystem paths for seed data and report output."""

    model_config = ConfigDict(frozen=True)

    seed_file: str = "config/seed/sample_data.json"
    output_dir: str = "data/outputs/recommendations"


class RecommendationConfig(BaseModel):
    """Quotas and thresholds for the recommendation strategies.

    Defaults reproduce the behaviour players see on the site; changing them
    changes what is recommended, not how.
    """

    model_config = ConfigDict(frozen=True)

    default_competitive_level: int = 10
    push_level_quota: int = 6                # per chart type
    fill_level_window: int = 3               # levels below competitive level
    fill_pool_size: int = 6                  # ranked charts per (level, type) pool
    fill_per_group: int = 2
    old_score_level_window: int = 2
    old_score_min_age_days: int = 30
    old_score_pool_size: int = 30
    old_score_quota: int = 6
    pg_push_quota: int = 6
    top50_quota: int = 3                     # per chart type
    bounty_quota: int = 5
    scores_tier_list_max_level: int = 20     # exclusive
    concurrent_strategies: bool = True
    random_seed: Optional[int] = None

    @model_validator(mode="after")
    def validate_quotas(self) -> "RecommendationConfig":
        for name in (
            "push_level_quota", "fill_pool_size", "fill_per_group",
            "old_score_pool_size", "old_score_quota", "pg_push_quota",
            "top50_quota", "bounty_quota",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}.")
        if self.old_score_min_age_days < 0:
            raise ValueError(
                f"old_score_min_age_days must be >= 0, got {self.old_score_min_age_days}."
            )
        return self


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingConfig(BaseModel):
    """Where log records go and in what shape; ``log_file = ""`` disables the file."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/chart_recommender.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def normalise_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log level {v!r} is not one of {', '.join(_LOG_LEVELS)}.")
        return level


class AppConfig(BaseModel):
    """Every configuration section, as returned by ``load_config()``."""

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    data: DataConfig = DataConfig()
    recommendations: RecommendationConfig = RecommendationConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PACKAGE_DIR = Path(__file__).resolve().parent

# env var -> (section or None for top level, key, parser)
_ENV_OVERRIDES: dict[str, tuple[Optional[str], str, Callable[[str], Any]]] = {
    "CHART_RECOMMENDER_DB_PATH":     ("database", "db_path", str),
    "CHART_RECOMMENDER_LOG_LEVEL":   ("logging", "level", str),
    "CHART_RECOMMENDER_RANDOM_SEED": ("recommendations", "random_seed", int),
    "CHART_RECOMMENDER_DEBUG":       (None, "debug", lambda v: v.strip().lower() in {"1", "true", "yes"}),
}


def project_root() -> Path:
    """Nearest ancestor of the package holding ``pyproject.toml``; else its parent."""
    for parent in _PACKAGE_DIR.parents:
        if (parent / "pyproject.toml").is_file():
            return parent
    return _PACKAGE_DIR.parent


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return tomllib.load(f)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Build the ``AppConfig`` for this run.

    Args:
        config_path: TOML file to start from; ``config/default.toml`` under
            the project root when omitted. A ``local.toml`` next to it is
            merged on top when present.

    Raises:
        FileNotFoundError: ``config_path`` does not exist.
        pydantic.ValidationError: A merged value is invalid.
    """
    root = project_root()
    load_dotenv(dotenv_path=root / ".env", override=False)

    path = Path(config_path) if config_path is not None else root / "config" / "default.toml"
    if not path.is_file():
        raise FileNotFoundError(
            f"Config file not found: {path} (pass --config or create config/default.toml)"
        )

    raw = _read_toml(path)
    local = path.with_name("local.toml")
    if local.is_file():
        raw = _deep_merge(raw, _read_toml(local))

    return _build_app_config(_apply_env_overrides(raw))


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Overlay set, non-empty ``CHART_RECOMMENDER_*`` variables onto ``raw``."""
    for var, (section, key, parse) in _ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if not value:
            continue
        target = raw if section is None else raw.setdefault(section, {})
        target[key] = parse(value)
    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    sections = {
        name: raw.get(name, {})
        for name in ("database", "data", "recommendations", "logging")
    }
    debug = raw.get("debug", raw.get("project", {}).get("debug", False))
    return AppConfig.model_validate({**sections, "debug": debug})
