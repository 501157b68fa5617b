"""
SQLite-backed ``ChartDataSource``.

Wraps the repositories over a single open connection. Queries are local
and short, so each coroutine runs its SQL inline; the connection is never
shared across threads. Derived data (title progress, relative tier lists,
top-50) is computed per call from the stored scores.

Usage::

    with get_connection(cfg.database.db_path, initialize=True) as conn:
        engine = RecommendationEngine(SqliteChartDataSource(conn), cfg.recommendations)
        recs = asyncio.run(engine.get_recommendations(user_id))
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional
from uuid import UUID

from chart_recommender.db.repositories.chart_repo import (
    BountyRepository,
    ChartRepository,
    TierListRepository,
)
from chart_recommender.db.repositories.feedback_repo import FeedbackRepository
from chart_recommender.db.repositories.score_repo import (
    PlayerStatsRepository,
    ScoreRepository,
)
from chart_recommender.db.repositories.title_repo import TitleRepository
from chart_recommender.models.chart import Bounty, Chart, RelativeTierEntry, TierListEntry
from chart_recommender.models.recommendation import Feedback
from chart_recommender.models.score import RecordedScore, Top50Entry
from chart_recommender.models.title import TitleProgress
from chart_recommender.sources.base import ChartDataSource
from chart_recommender.taxonomy.chart_taxonomy import ChartType
from chart_recommender.tier_lists.relative import build_relative_tier_list
from chart_recommender.titles.progress import compute_title_progress

logger = logging.getLogger(__name__)


class SqliteChartDataSource(ChartDataSource):
    """``ChartDataSource`` over the local SQLite database.

    Attributes:
        conn: Open connection from ``get_connection()``; not closed here.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.charts = ChartRepository(conn)
        self.tier_lists = TierListRepository(conn)
        self.bounties = BountyRepository(conn)
        self.titles = TitleRepository(conn)
        self.scores = ScoreRepository(conn)
        self.stats = PlayerStatsRepository(conn)
        self.feedback = FeedbackRepository(conn)

    async def get_competitive_level(self, user_id: UUID) -> Optional[float]:
        return self.stats.get_competitive_level(user_id)

    async def get_title_progress(self, user_id: UUID) -> list[TitleProgress]:
        return compute_title_progress(
            self.titles.get_all(),
            self.charts.get_all(),
            self.scores.get_for_user(user_id),
        )

    async def get_recorded_scores(self, user_id: UUID) -> list[RecordedScore]:
        return self.scores.get_for_user(user_id)

    async def get_feedback(self, user_id: UUID, hidden_only: bool = False) -> list[Feedback]:
        if hidden_only:
            return self.feedback.get_hidden_for_user(user_id)
        return self.feedback.get_for_user(user_id)

    async def get_charts(self, level: Optional[int] = None) -> list[Chart]:
        return self.charts.get_all(level=level)

    async def get_relative_tier_list(
        self,
        user_id: UUID,
        chart_type: ChartType,
        level: int,
    ) -> list[RelativeTierEntry]:
        return build_relative_tier_list(
            self.scores.get_scores_at(user_id, chart_type, level)
        )

    async def get_top50_competitive(
        self,
        user_id: UUID,
        chart_type: ChartType,
    ) -> list[Top50Entry]:
        return self.scores.get_top50(user_id, chart_type)

    async def get_chart_bounties(self) -> list[Bounty]:
        return self.bounties.get_all()

    async def get_tier_list(self, name: str) -> list[TierListEntry]:
        return self.tier_lists.get_list(name)

    async def save_feedback(self, user_id: UUID, feedback: Feedback) -> None:
        """Upsert and commit, so the signal survives even if the caller later fails."""
        self.feedback.upsert(user_id, feedback)
        self.conn.commit()
