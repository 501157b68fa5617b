"""
Seed data loader: JSON → SQLite.

Responsibilities
----------------
1. Parse a seed JSON file into pydantic models (``SeedFile``).
2. Cross-check references: duplicate chart ids and references to charts
   not in the file (or already in the database) are rejected.
3. Upsert everything in foreign-key order: charts, tier lists, bounties,
   titles, then players (stats and scores).

File layout
-----------
::

    {
      "charts":     [{"chart_id", "song_name", "chart_type", "level"}, ...],
      "tier_lists": {"Popularity": [{"chart_id", "category"}, ...], ...},
      "titles":     [{"kind": "difficulty" | "skill", "name", "level", ...}, ...],
      "bounties":   [{"chart_id", "worth"}, ...],
      "players":    [{"user_id", "competitive_level",
                      "scores": [{"chart_id", "score", "recorded_date",
                                  "is_broken"}, ...]}, ...]
    }

Every section is optional. Tier lists are replaced wholesale; everything
else is upserted, so re-importing the same file is a no-op.

Usage
-----
    from chart_recommender.ingestion.seed_loader import import_seed_file

    summary = import_seed_file(conn, Path("config/seed/sample_data.json"))
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from chart_recommender.db.repositories.chart_repo import (
    BountyRepository,
    ChartRepository,
    TierListRepository,
)
from chart_recommender.db.repositories.score_repo import (
    PlayerStatsRepository,
    ScoreRepository,
)
from chart_recommender.db.repositories.title_repo import TitleRepository
from chart_recommender.models.chart import KNOWN_TIER_LISTS, Bounty, Chart, TierListEntry
from chart_recommender.models.score import PlayerStats, RecordedScore
from chart_recommender.models.title import Title
from chart_recommender.taxonomy.chart_taxonomy import TierListCategory

logger = logging.getLogger(__name__)


# ── Seed file models ──────────────────────────────────────────────────────────

class SeedTierEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    chart_id: UUID
    category: TierListCategory


class SeedPlayer(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    competitive_level: Optional[float] = None
    scores: list[RecordedScore] = Field(default_factory=list)


class SeedFile(BaseModel):
    """Top-level seed document."""

    model_config = ConfigDict(frozen=True)

    charts: list[Chart] = Field(default_factory=list)
    tier_lists: dict[str, list[SeedTierEntry]] = Field(default_factory=dict)
    titles: list[Title] = Field(default_factory=list)
    bounties: list[Bounty] = Field(default_factory=list)
    players: list[SeedPlayer] = Field(default_factory=list)


class SeedImportSummary(BaseModel):
    """Row counts written by one import."""

    model_config = ConfigDict(frozen=True)

    charts: int = 0
    tier_list_entries: int = 0
    titles: int = 0
    bounties: int = 0
    players: int = 0
    scores: int = 0


# ── Validation ────────────────────────────────────────────────────────────────

def _validate_seed(seed: SeedFile, existing_chart_ids: set[UUID]) -> None:
    """Raise ValueError for duplicate charts or dangling chart references."""
    seen: set[UUID] = set()
    for i, chart in enumerate(seed.charts):
        if chart.chart_id in seen:
            raise ValueError(f"Duplicate chart_id '{chart.chart_id}' at index {i}.")
        seen.add(chart.chart_id)

    known = seen | existing_chart_ids

    def _check(chart_id: UUID, where: str) -> None:
        if chart_id not in known:
            raise ValueError(f"{where} references unknown chart_id '{chart_id}'.")

    for name, entries in seed.tier_lists.items():
        if name not in KNOWN_TIER_LISTS:
            logger.warning("Tier list %r is not used by the approachability ranker.", name)
        for i, entry in enumerate(entries):
            _check(entry.chart_id, f"Tier list {name!r} entry {i}")

    for i, bounty in enumerate(seed.bounties):
        _check(bounty.chart_id, f"Bounty at index {i}")

    for player in seed.players:
        for i, score in enumerate(player.scores):
            _check(score.chart_id, f"Player {player.user_id} score {i}")


# ── Loading ───────────────────────────────────────────────────────────────────

def load_seed_file(path: Path) -> SeedFile:
    """Read and validate a seed JSON file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        pydantic.ValidationError: If the document does not match ``SeedFile``.
    """
    logger.info("Loading seed data from %s", path)
    raw = json.loads(path.read_text(encoding="utf-8"))
    return SeedFile.model_validate(raw)


def import_seed(conn: sqlite3.Connection, seed: SeedFile) -> SeedImportSummary:
    """Validate ``seed`` against the database and upsert it.

    Args:
        conn: Open connection with the schema applied.
        seed: Parsed seed document.

    Returns:
        ``SeedImportSummary`` of rows written.

    Raises:
        ValueError: On duplicate chart ids or unknown chart references.
    """
    charts = ChartRepository(conn)
    _validate_seed(seed, charts.existing_ids())

    n_charts = charts.upsert_many(seed.charts)

    tier_repo = TierListRepository(conn)
    n_entries = 0
    for name, entries in seed.tier_lists.items():
        n_entries += tier_repo.replace_list(
            name,
            (
                TierListEntry(chart_id=e.chart_id, tier_list_name=name, category=e.category)
                for e in entries
            ),
        )

    n_bounties = BountyRepository(conn).upsert_many(seed.bounties)
    n_titles = TitleRepository(conn).upsert_many(seed.titles)

    stats_repo = PlayerStatsRepository(conn)
    score_repo = ScoreRepository(conn)
    n_scores = 0
    for player in seed.players:
        if player.competitive_level is not None:
            stats_repo.upsert(
                PlayerStats(user_id=player.user_id, competitive_level=player.competitive_level)
            )
        n_scores += score_repo.upsert_many(player.user_id, player.scores)

    conn.commit()

    summary = SeedImportSummary(
        charts=n_charts,
        tier_list_entries=n_entries,
        titles=n_titles,
        bounties=n_bounties,
        players=len(seed.players),
        scores=n_scores,
    )
    logger.info("Seed import complete: %s", summary.model_dump())
    return summary


def import_seed_file(conn: sqlite3.Connection, path: Path) -> SeedImportSummary:
    """Load ``path`` and import it; see ``import_seed``."""
    return import_seed(conn, load_seed_file(path))
