"""
Approachability ranker: fuses three community tier lists into a single
ordering of chart ids, most approachable first.

Score formula (per chart, summed over every tier list it appears on)
---------------------------------------------------------------------
    total = Σ weight(tier_list) × value(category)

    weight: "Popularity" → 0.5, "Pass Count" → 1.0, "Scores" → 1.0
    value:  Overrated 7, Easy 6, VeryEasy 5, Medium 4, Hard 3,
            VeryHard 2, Underrated 1, anything else 0

The "Scores" list is only trusted below ``max_scores_level`` (20 by
default): at the top levels too few players score for it to mean much.

Ordering
--------
Charts are grouped in first-appearance order (Popularity, then Pass Count,
then Scores) and stable-sorted by total descending, so ties keep grouping
order. Charts whose total is zero are dropped; charts on none of the lists
are never ranked.

Usage flow
----------
1. ranker = ApproachabilityRanker(source)
2. ranked = await ranker.rank(user_id, charts=catalog)
   -> list[UUID]
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional
from uuid import UUID

from chart_recommender.models.chart import (
    TIER_LIST_PASS_COUNT,
    TIER_LIST_POPULARITY,
    TIER_LIST_SCORES,
    Chart,
    TierListEntry,
)
from chart_recommender.sources.base import ChartDataSource
from chart_recommender.taxonomy.chart_taxonomy import TierListCategory

logger = logging.getLogger(__name__)

CATEGORY_VALUES: dict[TierListCategory, float] = {
    TierListCategory.OVERRATED:  7.0,
    TierListCategory.EASY:       6.0,
    TierListCategory.VERY_EASY:  5.0,
    TierListCategory.MEDIUM:     4.0,
    TierListCategory.HARD:       3.0,
    TierListCategory.VERY_HARD:  2.0,
    TierListCategory.UNDERRATED: 1.0,
}

TIER_LIST_WEIGHTS: dict[str, float] = {
    TIER_LIST_POPULARITY: 0.5,
}


def entry_score(entry: TierListEntry) -> float:
    """Weighted contribution of one tier list entry."""
    weight = TIER_LIST_WEIGHTS.get(entry.tier_list_name, 1.0)
    return weight * CATEGORY_VALUES.get(entry.category, 0.0)


def rank_entries(entries: Iterable[TierListEntry]) -> list[UUID]:
    """Group ``entries`` by chart and order charts by summed score, descending.

    Pure function, no I/O. Ties keep first-appearance order.
    """
    totals: dict[UUID, float] = {}
    for entry in entries:
        totals[entry.chart_id] = totals.get(entry.chart_id, 0.0) + entry_score(entry)

    ranked = sorted(
        (chart_id for chart_id, total in totals.items() if total != 0.0),
        key=lambda chart_id: -totals[chart_id],
    )
    return ranked


class ApproachabilityRanker:
    """Ranks charts by how ready an average player is for them.

    Attributes:
        source:           Data source supplying tier lists and the catalog.
        max_scores_level: Scores-list entries at or above this level are ignored.
    """

    def __init__(self, source: ChartDataSource, max_scores_level: int = 20) -> None:
        self.source = source
        self.max_scores_level = max_scores_level

    async def rank(
        self,
        user_id: UUID,
        charts: Optional[list[Chart]] = None,
    ) -> list[UUID]:
        """Return chart ids ordered most-approachable first.

        Args:
            user_id: The requesting player. The community lists are the same
                for everyone; the id is kept so a personalised ranking can
                slot in without changing callers.
            charts:  Chart catalog used to look up levels for the Scores
                list. Fetched from the source when omitted.

        Returns:
            Ranked chart ids. Charts absent from all three lists are omitted.
        """
        if charts is None:
            charts = await self.source.get_charts()
        levels = {c.chart_id: c.level for c in charts}

        popularity = await self.source.get_tier_list(TIER_LIST_POPULARITY)
        pass_count = await self.source.get_tier_list(TIER_LIST_PASS_COUNT)
        scores = [
            e for e in await self.source.get_tier_list(TIER_LIST_SCORES)
            if e.chart_id in levels and levels[e.chart_id] < self.max_scores_level
        ]

        ranked = rank_entries([*popularity, *pass_count, *scores])
        logger.debug(
            "Approachability ranking for user=%s: %d charts ranked", user_id, len(ranked)
        )
        return ranked
