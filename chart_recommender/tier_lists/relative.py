"""
Relative (per-player) tier lists.

A relative tier list rates each chart of one (type, level) against the
player's own results at that level rather than against the community.
Each score is converted to a z-score against the mean and population
standard deviation of the player's scores in the group, then bucketed:

    z >= 1.5    Overrated     (far better than usual: easy for this player)
    z >= 1.0    VeryEasy
    z >= 0.5    Easy
    z >  -0.5   Medium
    z >  -1.0   Hard
    z >  -1.5   VeryHard
    otherwise   Underrated    (far worse than usual: hard for this player)

Charts without a usable score are ``Unrecorded``. With fewer than two
scores, or when every score is identical, all scored charts are ``Medium``.
"""

from __future__ import annotations

import statistics
from typing import Iterable, Optional
from uuid import UUID

from chart_recommender.models.chart import RelativeTierEntry
from chart_recommender.taxonomy.chart_taxonomy import TierListCategory

# (lower bound, inclusive?, category), checked top-down
_Z_BUCKETS: list[tuple[float, bool, TierListCategory]] = [
    (1.5,  True,  TierListCategory.OVERRATED),
    (1.0,  True,  TierListCategory.VERY_EASY),
    (0.5,  True,  TierListCategory.EASY),
    (-0.5, False, TierListCategory.MEDIUM),
    (-1.0, False, TierListCategory.HARD),
    (-1.5, False, TierListCategory.VERY_HARD),
]


def bucket_z_score(z: float) -> TierListCategory:
    """Map a z-score to its relative tier category."""
    for bound, inclusive, category in _Z_BUCKETS:
        if z > bound or (inclusive and z == bound):
            return category
    return TierListCategory.UNDERRATED


def build_relative_tier_list(
    chart_scores: Iterable[tuple[UUID, Optional[int]]],
) -> list[RelativeTierEntry]:
    """Rate every chart in one (type, level) group.

    Args:
        chart_scores: ``(chart_id, score)`` pairs; ``score`` is ``None`` when
            the player has no usable score on the chart.

    Returns:
        One ``RelativeTierEntry`` per input pair, in input order.
    """
    pairs = list(chart_scores)
    scores = [s for _, s in pairs if s is not None]

    spread = statistics.pstdev(scores) if len(scores) >= 2 else 0.0
    mean = statistics.fmean(scores) if scores else 0.0

    entries: list[RelativeTierEntry] = []
    for chart_id, score in pairs:
        if score is None:
            category = TierListCategory.UNRECORDED
        elif spread == 0.0:
            category = TierListCategory.MEDIUM
        else:
            category = bucket_z_score((score - mean) / spread)
        entries.append(RelativeTierEntry(chart_id=chart_id, category=category))
    return entries
