"""
Recommendation engine: builds one player's suggestion list from the seven
strategies and records their feedback.

Request flow (``get_recommendations``)
---------------------------------------
1. Resolve the competitive level: round half-to-even; fall back to the
   configured default (10) when stats are missing, the level is invalid,
   or it is below the default.
2. Fetch title progress, recorded scores, feedback and the chart catalog
   once; every strategy shares them.
3. Build the ``SuppressionIndex`` from ``should_hide`` feedback.
4. Rank the catalog once with the ``ApproachabilityRanker``.
5. Run every strategy (concurrently when ``concurrent_strategies`` is set)
   and concatenate results in the fixed ``STRATEGIES`` order.

No re-sorting and no de-duplication across categories happen after step 5.

Failure model
-------------
All-or-nothing. A failed fetch or a cancelled request propagates out of
``get_recommendations`` unchanged; when strategies run concurrently the
``asyncio.TaskGroup`` cancels the remaining strategies first. A missing
strategy is never silently dropped from the output.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import math
import random
from collections.abc import Callable
from datetime import datetime
from typing import Optional
from uuid import UUID

from chart_recommender.config import RecommendationConfig
from chart_recommender.models.chart import is_valid_level
from chart_recommender.models.recommendation import ChartRecommendation, Feedback
from chart_recommender.recommendations.approachability import ApproachabilityRanker
from chart_recommender.recommendations.feedback import FeedbackRecorder, SuppressionIndex
from chart_recommender.recommendations.strategies import (
    STRATEGIES,
    Strategy,
    StrategyContext,
)
from chart_recommender.sources.base import ChartDataSource
from chart_recommender.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def resolve_competitive_level(raw: Optional[float], floor: int = 10) -> int:
    """Round ``raw`` to a usable difficulty level, never below ``floor``.

    ``None``, NaN, levels outside the valid range and levels below ``floor``
    all resolve to ``floor``.
    """
    if raw is None or math.isnan(raw) or math.isinf(raw):
        return floor
    level = round(raw)
    if not is_valid_level(level) or level < floor:
        return floor
    return level


class RecommendationEngine:
    """Public entry point: recommendations for a player, and feedback.

    Attributes:
        source:     Data source for every read and the feedback write.
        config:     Strategy quotas and thresholds.
        strategies: Ordered (name, strategy) pairs; defaults to all seven.
        clock:      Returns the request time used for score ages.
    """

    def __init__(
        self,
        source: ChartDataSource,
        config: Optional[RecommendationConfig] = None,
        strategies: tuple[tuple[str, Strategy], ...] = STRATEGIES,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.source = source
        self.config = config or RecommendationConfig()
        self.strategies = strategies
        self.clock = clock
        self.ranker = ApproachabilityRanker(
            source, max_scores_level=self.config.scores_tier_list_max_level
        )
        self.recorder = FeedbackRecorder(source)

    def _new_rng(self, seed: Optional[int]) -> random.Random:
        """Per-request random source; ``None`` seeds from system entropy."""
        return random.Random(seed if seed is not None else self.config.random_seed)

    async def build_context(
        self,
        user_id: UUID,
        seed: Optional[int] = None,
    ) -> StrategyContext:
        """Fetch and derive every input shared by the strategies."""
        raw_level = await self.source.get_competitive_level(user_id)
        level = resolve_competitive_level(raw_level, self.config.default_competitive_level)
        logger.info(
            "Competitive level for user=%s: raw=%s resolved=%d",
            user_id, raw_level, level,
            extra={"user_id": str(user_id)},
        )

        titles = await self.source.get_title_progress(user_id)
        scores = await self.source.get_recorded_scores(user_id)
        suppression = SuppressionIndex.from_feedback(
            await self.source.get_feedback(user_id, hidden_only=True)
        )
        charts = await self.source.get_charts()
        approachable = await self.ranker.rank(user_id, charts=charts)

        return StrategyContext(
            user_id=user_id,
            source=self.source,
            config=self.config,
            competitive_level=level,
            titles=tuple(titles),
            scores=tuple(scores),
            suppression=suppression,
            charts=tuple(charts),
            approachable=tuple(approachable),
            rng=self._new_rng(seed),
            now=self.clock(),
        )

    async def get_recommendations(
        self,
        user_id: UUID,
        seed: Optional[int] = None,
    ) -> list[ChartRecommendation]:
        """Return the ordered recommendation list for ``user_id``.

        Read-only: nothing is persisted. Output order follows ``STRATEGIES``;
        within a strategy, order is the strategy's own.

        Args:
            user_id: The requesting player.
            seed:    Optional seed for reproducible sampling; overrides
                     ``config.random_seed`` for this request.

        Raises:
            Exception: Any data-source error, unchanged.
            asyncio.CancelledError: If the request is cancelled.
        """
        ctx = await self.build_context(user_id, seed=seed)

        # One child generator per strategy, drawn in fixed order, so sampling
        # does not depend on how concurrent strategies interleave.
        contexts = [
            dataclasses.replace(ctx, rng=random.Random(ctx.rng.getrandbits(64)))
            for _ in self.strategies
        ]

        if self.config.concurrent_strategies:
            try:
                async with asyncio.TaskGroup() as group:
                    tasks = [
                        group.create_task(strategy(sctx), name=f"strategy:{name}")
                        for (name, strategy), sctx in zip(self.strategies, contexts)
                    ]
            except BaseExceptionGroup as group_error:
                # Siblings are already cancelled; surface the first failure as raised.
                raise group_error.exceptions[0]
            outputs = [task.result() for task in tasks]
        else:
            outputs = [
                await strategy(sctx)
                for (_, strategy), sctx in zip(self.strategies, contexts)
            ]

        results: list[ChartRecommendation] = []
        for (name, _), recs in zip(self.strategies, outputs):
            logger.debug(
                "Strategy %s produced %d recommendations", name, len(recs),
                extra={"user_id": str(user_id), "strategy": name, "count": len(recs)},
            )
            results.extend(recs)

        logger.info(
            "Built %d recommendations for user=%s", len(results), user_id,
            extra={"user_id": str(user_id), "count": len(results)},
        )
        return results

    async def submit_feedback(self, user_id: UUID, feedback: Feedback) -> Feedback:
        """Record a hide/show signal; the only mutating operation."""
        return await self.recorder.record(user_id, feedback)
