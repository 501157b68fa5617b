"""
Feedback suppression and recording.

``SuppressionIndex`` maps each recommendation category to the chart ids the
player has asked to stop seeing there. Strategies ask it for their own
category only; a chart hidden under "Push PGs" can still appear under
"Bounties".

``FeedbackRecorder`` is the only mutating path in the engine.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable
from uuid import UUID

from chart_recommender.models.recommendation import Feedback
from chart_recommender.sources.base import ChartDataSource
from chart_recommender.taxonomy.chart_taxonomy import is_known_category

logger = logging.getLogger(__name__)


class SuppressionIndex:
    """Per-category hidden chart ids for one player."""

    def __init__(self, hidden: dict[str, frozenset[UUID]] | None = None) -> None:
        self._hidden = dict(hidden or {})

    @classmethod
    def from_feedback(cls, feedback: Iterable[Feedback]) -> "SuppressionIndex":
        """Build the index from feedback entries; only ``should_hide`` entries count."""
        grouped: dict[str, set[UUID]] = defaultdict(set)
        for fb in feedback:
            if fb.should_hide:
                grouped[fb.suggestion_category].add(fb.chart_id)
        return cls({cat: frozenset(ids) for cat, ids in grouped.items()})

    def hidden(self, category: str) -> frozenset[UUID]:
        """Chart ids hidden under ``category``; empty when the player has none."""
        return self._hidden.get(category, frozenset())

    @property
    def categories(self) -> list[str]:
        return sorted(self._hidden)

    def __len__(self) -> int:
        return sum(len(ids) for ids in self._hidden.values())


class FeedbackRecorder:
    """Persists a player's hide/show signal through the data source."""

    def __init__(self, source: ChartDataSource) -> None:
        self.source = source

    async def record(self, user_id: UUID, feedback: Feedback) -> Feedback:
        """Save ``feedback`` for ``user_id`` and return it as the acknowledgement.

        Recording the same signal twice leaves the store unchanged. Errors from
        the data source propagate.
        """
        if not is_known_category(feedback.suggestion_category):
            logger.warning(
                "Feedback for unrecognised category %r will never match a recommendation",
                feedback.suggestion_category,
            )
        await self.source.save_feedback(user_id, feedback)
        logger.info(
            "Feedback saved | user=%s chart=%s category=%r hide=%s",
            user_id, feedback.chart_id, feedback.suggestion_category, feedback.should_hide,
        )
        return feedback
