"""
Repositories for recorded scores and player statistics.

``recorded_scores`` holds at most one row per (user, chart); writing a new
score for the same chart replaces the old one, matching how the site keeps
only a player's current record.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional
from uuid import UUID

from chart_recommender.db.repositories.base import (
    BaseRepository,
    uuid_from_db,
    uuid_to_db,
)
from chart_recommender.models.score import PlayerStats, RecordedScore, Top50Entry
from chart_recommender.taxonomy.chart_taxonomy import ChartType
from chart_recommender.utils.time_utils import parse_utc, to_utc

logger = logging.getLogger(__name__)

TOP50_LIMIT = 50


class ScoreRepository(BaseRepository):
    """Read/write access to the ``recorded_scores`` table."""

    def upsert_many(self, user_id: UUID, scores: Iterable[RecordedScore]) -> int:
        """Insert or replace the player's record on each chart.

        Args:
            user_id: Owner of the scores.
            scores: Records to write.

        Returns:
            Number of rows written.
        """
        return self.executemany(
            """
            INSERT INTO recorded_scores (user_id, chart_id, score, is_broken, recorded_date)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id, chart_id) DO UPDATE SET
                score         = excluded.score,
                is_broken     = excluded.is_broken,
                recorded_date = excluded.recorded_date;
            """,
            (
                (
                    uuid_to_db(user_id),
                    uuid_to_db(s.chart_id),
                    s.score,
                    int(s.is_broken),
                    to_utc(s.recorded_date).isoformat(),
                )
                for s in scores
            ),
        )

    def get_for_user(self, user_id: UUID) -> list[RecordedScore]:
        rows = self.fetchall(
            """
            SELECT * FROM recorded_scores
            WHERE user_id = ?
            ORDER BY recorded_date, chart_id;
            """,
            (uuid_to_db(user_id),),
        )
        return [_row_to_score(r) for r in rows]

    def get_scores_at(
        self,
        user_id: UUID,
        chart_type: ChartType,
        level: int,
    ) -> list[tuple[UUID, Optional[int]]]:
        """Every chart of one (type, level) with the player's score on it.

        Charts the player has no usable score on (none recorded, unscored,
        or broken) come back with ``None``.

        Returns:
            ``(chart_id, score)`` pairs in catalog order.
        """
        rows = self.fetchall(
            """
            SELECT c.chart_id,
                   CASE WHEN s.is_broken = 0 THEN s.score END AS score
            FROM charts c
            LEFT JOIN recorded_scores s
                   ON s.chart_id = c.chart_id AND s.user_id = ?
            WHERE c.chart_type = ? AND c.level = ?
            ORDER BY c.song_name, c.chart_id;
            """,
            (uuid_to_db(user_id), chart_type.value, level),
        )
        return [(uuid_from_db(r["chart_id"]), r["score"]) for r in rows]

    def get_top50(self, user_id: UUID, chart_type: ChartType) -> list[Top50Entry]:
        """The player's competitive top 50 for one chart type.

        Scored, non-broken charts ordered by level then score, both descending.
        """
        rows = self.fetchall(
            """
            SELECT s.chart_id, s.score
            FROM recorded_scores s
            JOIN charts c ON c.chart_id = s.chart_id
            WHERE s.user_id = ?
              AND c.chart_type = ?
              AND s.score IS NOT NULL
              AND s.is_broken = 0
            ORDER BY c.level DESC, s.score DESC, s.chart_id
            LIMIT ?;
            """,
            (uuid_to_db(user_id), chart_type.value, TOP50_LIMIT),
        )
        return [
            Top50Entry(chart_id=uuid_from_db(r["chart_id"]), score=r["score"])
            for r in rows
        ]


class PlayerStatsRepository(BaseRepository):
    """Read/write access to the ``player_stats`` table."""

    def upsert(self, stats: PlayerStats) -> None:
        self.execute(
            """
            INSERT INTO player_stats (user_id, competitive_level)
            VALUES (?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                competitive_level = excluded.competitive_level,
                updated_at        = strftime('%Y-%m-%dT%H:%M:%SZ', 'now');
            """,
            (uuid_to_db(stats.user_id), stats.competitive_level),
        )

    def get_competitive_level(self, user_id: UUID) -> Optional[float]:
        row = self.fetchone(
            "SELECT competitive_level FROM player_stats WHERE user_id = ?;",
            (uuid_to_db(user_id),),
        )
        return float(row["competitive_level"]) if row else None


def _row_to_score(row) -> RecordedScore:
    return RecordedScore(
        chart_id=uuid_from_db(row["chart_id"]),
        score=row["score"],
        recorded_date=parse_utc(row["recorded_date"]),
        is_broken=bool(row["is_broken"]),
    )
