"""
Repository for suggestion feedback.

One row per (user, chart, category). Saving the same key again overwrites
``should_hide``, so the latest signal always wins and repeats are no-ops.
"""

from __future__ import annotations

import logging
from uuid import UUID

from chart_recommender.db.repositories.base import (
    BaseRepository,
    uuid_from_db,
    uuid_to_db,
)
from chart_recommender.models.recommendation import Feedback

logger = logging.getLogger(__name__)


class FeedbackRepository(BaseRepository):
    """Read/write access to the ``suggestion_feedback`` table."""

    def upsert(self, user_id: UUID, feedback: Feedback) -> None:
        self.execute(
            """
            INSERT INTO suggestion_feedback
                (user_id, chart_id, suggestion_category, should_hide)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(user_id, chart_id, suggestion_category) DO UPDATE SET
                should_hide = excluded.should_hide,
                updated_at  = strftime('%Y-%m-%dT%H:%M:%SZ', 'now');
            """,
            (
                uuid_to_db(user_id),
                uuid_to_db(feedback.chart_id),
                feedback.suggestion_category,
                int(feedback.should_hide),
            ),
        )

    def get_for_user(self, user_id: UUID) -> list[Feedback]:
        rows = self.fetchall(
            """
            SELECT chart_id, suggestion_category, should_hide
            FROM suggestion_feedback
            WHERE user_id = ?
            ORDER BY suggestion_category, chart_id;
            """,
            (uuid_to_db(user_id),),
        )
        return [
            Feedback(
                chart_id=uuid_from_db(r["chart_id"]),
                suggestion_category=r["suggestion_category"],
                should_hide=bool(r["should_hide"]),
            )
            for r in rows
        ]

    def get_hidden_for_user(self, user_id: UUID) -> list[Feedback]:
        """Only the ``should_hide`` rows; served by the partial feedback index."""
        rows = self.fetchall(
            """
            SELECT chart_id, suggestion_category
            FROM suggestion_feedback
            WHERE user_id = ? AND should_hide = 1
            ORDER BY suggestion_category, chart_id;
            """,
            (uuid_to_db(user_id),),
        )
        return [
            Feedback(
                chart_id=uuid_from_db(r["chart_id"]),
                suggestion_category=r["suggestion_category"],
                should_hide=True,
            )
            for r in rows
        ]
