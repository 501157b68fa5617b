"""
Recommendation strategies: seven independent heuristics, each producing a
bounded list of ``ChartRecommendation`` tagged with its own category.

Every strategy is a coroutine ``strategy(ctx) -> list[ChartRecommendation]``
over a ``StrategyContext`` snapshot built once per request by the engine.
Strategies never mutate the context; the only I/O they do is read-only
fetches through ``ctx.source``.

Suppression is applied *inside* each strategy, before its quota is taken,
using ``ctx.suppression.hidden(<its category>)``.

Strategy summary (engine output order)
--------------------------------------
  push_levels       next difficulty title: 6 Singles + 6 Doubles, ranker order
  pass_fills        unscored charts in [level-3, level]: 2 per (level, type)
  skill_title_charts first chart of each skill title that is S-or-better
  old_scores        weak scores older than 30 days: 6 from the 30 oldest
  pg_pushes         SSS+ scores closest to a perfect 1,000,000: 6
  random_top50      3 random top-50 charts per type still below max
  bounties          highest-worth bounties on unscored charts: 5

Randomised strategies cut a deterministic pool first (most approachable,
oldest, ...) and only then sample from it with ``ctx.rng``, so randomness is
bounded to the most relevant candidates.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence
from uuid import UUID

from chart_recommender.config import RecommendationConfig
from chart_recommender.models.chart import Chart
from chart_recommender.models.recommendation import ChartRecommendation
from chart_recommender.models.score import RecordedScore
from chart_recommender.models.title import DifficultyTitle, SkillTitle, TitleProgress
from chart_recommender.recommendations.feedback import SuppressionIndex
from chart_recommender.sources.base import ChartDataSource
from chart_recommender.taxonomy.chart_taxonomy import (
    MAX_SCORE,
    PUSH_LEVEL_CHART_TYPES,
    ChartType,
    LetterGrade,
    RecommendationCategory,
    TierListCategory,
    push_level_category,
)
from chart_recommender.utils.time_utils import age_in_days, to_utc

logger = logging.getLogger(__name__)

_DESCRIPTIONS: dict[str, str] = {
    RecommendationCategory.FILL_SCORES:        "Easier Charts From Lower Levels You Can Fill",
    RecommendationCategory.SKILL_TITLE_CHARTS: "Charts you are close to achieving a Skill title (SSS) on",
    RecommendationCategory.REVISIT_OLD_SCORES: "Your oldest scores that appear to be needing an update",
    RecommendationCategory.PUSH_PGS:           "These are your closest charts to a PG score wise",
    RecommendationCategory.IMPROVE_TOP_50:     (
        "These are randomly pulled from your best 100 charts based on "
        "competitive score. Push that score!"
    ),
    RecommendationCategory.BOUNTIES:           "Charts that have low data present on the site",
}

_OLD_SCORE_CATEGORIES = frozenset({TierListCategory.UNDERRATED, TierListCategory.VERY_HARD})


@dataclass(frozen=True)
class StrategyContext:
    """Per-request snapshot shared by every strategy.

    Attributes:
        user_id:           The requesting player.
        source:            Data source for strategy-specific fetches.
        config:            Quotas and thresholds.
        competitive_level: Clamped competitive level (>= 10).
        titles:            Title progress, fetched once.
        scores:            Recorded scores, fetched once.
        suppression:       Hidden chart ids per category.
        charts:            Full chart catalog, fetched once.
        approachable:      Approachability ranking over the whole catalog.
        rng:               Per-request random source.
        now:               Request time (UTC); all age checks use it.
    """

    user_id:           UUID
    source:            ChartDataSource
    config:            RecommendationConfig
    competitive_level: int
    titles:            Sequence[TitleProgress]
    scores:            Sequence[RecordedScore]
    suppression:       SuppressionIndex
    charts:            Sequence[Chart]
    approachable:      Sequence[UUID]
    rng:               random.Random
    now:               datetime

    @property
    def charts_by_id(self) -> dict[UUID, Chart]:
        return {c.chart_id: c for c in self.charts}

    @property
    def scores_by_chart(self) -> dict[UUID, RecordedScore]:
        return {s.chart_id: s for s in self.scores}


Strategy = Callable[[StrategyContext], Awaitable[list[ChartRecommendation]]]


def _needs_score(chart_id: UUID, scores: dict[UUID, RecordedScore]) -> bool:
    """True if the player has no record on the chart, or only a broken one."""
    score = scores.get(chart_id)
    return score is None or score.is_broken


def _recommend(
    category: str,
    chart_ids: Sequence[UUID],
    description: Optional[str] = None,
) -> list[ChartRecommendation]:
    text = description or _DESCRIPTIONS[category]
    return [
        ChartRecommendation(category=str(category), chart_id=cid, description=text)
        for cid in chart_ids
    ]


def _sample(rng: random.Random, pool: Sequence, k: int) -> list:
    """Random ``k`` items from ``pool`` in random order (fewer if the pool is small)."""
    return rng.sample(list(pool), min(k, len(pool)))


# ── Push-Levels ───────────────────────────────────────────────────────────────

def select_push_title(titles: Sequence[TitleProgress]) -> Optional[TitleProgress]:
    """Return the difficulty title the player should push next.

    Difficulty titles are ordered by (level, name). The target is the title
    immediately after the hardest completed one; the easiest title when none
    is complete. When the hardest title itself is complete, the target is
    the hardest title still incomplete, or the hardest title when all are.
    ``None`` if the player has no difficulty titles at all.
    """
    ordered = sorted(
        (t for t in titles if isinstance(t.title, DifficultyTitle)),
        key=lambda t: (t.title.level, t.title.name),
    )
    if not ordered:
        return None

    target = 0
    for index in range(len(ordered) - 1, -1, -1):
        if ordered[index].is_complete:
            target = index + 1
            break
    if target < len(ordered):
        return ordered[target]

    incomplete = [t for t in ordered if not t.is_complete]
    return incomplete[-1] if incomplete else ordered[-1]


async def push_levels(ctx: StrategyContext) -> list[ChartRecommendation]:
    """Unscored charts at the next difficulty title's level, per chart type."""
    push_title = select_push_title(ctx.titles)
    if push_title is None:
        return []

    title = push_title.title
    level_charts = {c.chart_id: c for c in await ctx.source.get_charts(level=title.level)}
    scores = ctx.scores_by_chart
    ordered = [
        cid for cid in ctx.approachable
        if cid in level_charts and _needs_score(cid, scores)
    ]

    results: list[ChartRecommendation] = []
    for chart_type in PUSH_LEVEL_CHART_TYPES:
        category = push_level_category(title.name, chart_type)
        hidden = ctx.suppression.hidden(category)
        picks = [
            cid for cid in ordered
            if level_charts[cid].chart_type == chart_type and cid not in hidden
        ][: ctx.config.push_level_quota]
        results.extend(
            _recommend(
                category,
                picks,
                f"Recommended {chart_type.plural} charts for achieving your next title",
            )
        )
    return results


# ── Pass-Fills ────────────────────────────────────────────────────────────────

async def pass_fills(ctx: StrategyContext) -> list[ChartRecommendation]:
    """Approachable unscored charts in the levels just below the player's."""
    category = RecommendationCategory.FILL_SCORES
    hidden = ctx.suppression.hidden(category)
    top = ctx.competitive_level
    bottom = top - ctx.config.fill_level_window
    charts = {
        c.chart_id: c for c in ctx.charts if bottom <= c.level <= top
    }
    scores = ctx.scores_by_chart

    # level -> chart type -> ranked chart ids, both keyed in first-appearance order
    groups: dict[int, dict[ChartType, list[UUID]]] = {}
    for cid in ctx.approachable:
        chart = charts.get(cid)
        if chart is None or not _needs_score(cid, scores) or cid in hidden:
            continue
        groups.setdefault(chart.level, {}).setdefault(chart.chart_type, []).append(cid)

    picks: list[UUID] = []
    for by_type in groups.values():
        for ranked in by_type.values():
            pool = ranked[: ctx.config.fill_pool_size]
            picks.extend(_sample(ctx.rng, pool, ctx.config.fill_per_group))
    return _recommend(category, picks)


# ── Skill-Title-Charts ────────────────────────────────────────────────────────

async def skill_title_charts(ctx: StrategyContext) -> list[ChartRecommendation]:
    """Charts whose skill title is within reach (S or better, not yet earned)."""
    category = RecommendationCategory.SKILL_TITLE_CHARTS
    hidden = ctx.suppression.hidden(category)
    threshold = LetterGrade.S.min_score

    picks: list[UUID] = []
    for progress in ctx.titles:
        match progress.title:
            case SkillTitle() as title if (
                threshold <= progress.completion_count < progress.completion_required
            ):
                chart = next((c for c in ctx.charts if title.applies_to_chart(c)), None)
                if chart is None:
                    logger.debug("Skill title %r matches no chart; skipped", title.name)
                    continue
                if chart.chart_id not in hidden:
                    picks.append(chart.chart_id)
            case _:
                continue
    return _recommend(category, picks)


# ── Old-Scores ────────────────────────────────────────────────────────────────

async def old_scores(ctx: StrategyContext) -> list[ChartRecommendation]:
    """Weak, stale scores near the player's level worth replaying."""
    category = RecommendationCategory.REVISIT_OLD_SCORES
    hidden = ctx.suppression.hidden(category)
    top = ctx.competitive_level
    bottom = top - ctx.config.old_score_level_window

    tiers: dict[UUID, TierListCategory] = {}
    for level in range(top, bottom - 1, -1):
        for chart_type in (ChartType.SINGLE, ChartType.DOUBLE):
            for entry in await ctx.source.get_relative_tier_list(ctx.user_id, chart_type, level):
                tiers[entry.chart_id] = entry.category

    in_range = {c.chart_id for c in ctx.charts if bottom <= c.level <= top}
    cutoff = to_utc(ctx.now) - timedelta(days=ctx.config.old_score_min_age_days)

    candidates = [
        s for s in ctx.scores
        if tiers.get(s.chart_id) in _OLD_SCORE_CATEGORIES
        and s.chart_id in in_range
        and s.chart_id not in hidden
        and to_utc(s.recorded_date) < cutoff
    ]
    pool = sorted(candidates, key=lambda s: to_utc(s.recorded_date))[: ctx.config.old_score_pool_size]

    return [
        ChartRecommendation(
            category=str(category),
            chart_id=s.chart_id,
            description=_DESCRIPTIONS[category],
            detail=f"{age_in_days(s.recorded_date, ctx.now):.0f} Days Old",
        )
        for s in _sample(ctx.rng, pool, ctx.config.old_score_quota)
    ]


# ── PG-Pushes ─────────────────────────────────────────────────────────────────

async def pg_pushes(ctx: StrategyContext) -> list[ChartRecommendation]:
    """SSS+ scores closest to a perfect game, hardest charts first."""
    category = RecommendationCategory.PUSH_PGS
    hidden = ctx.suppression.hidden(category)
    charts = ctx.charts_by_id

    candidates = [
        s for s in ctx.scores
        if s.score is not None
        and s.score != MAX_SCORE
        and s.letter_grade == LetterGrade.SSS_PLUS
        and s.chart_id not in hidden
        and s.chart_id in charts
    ]
    candidates.sort(key=lambda s: (-charts[s.chart_id].level, MAX_SCORE - s.score))
    return _recommend(category, [s.chart_id for s in candidates[: ctx.config.pg_push_quota]])


# ── Random-Top-50 ─────────────────────────────────────────────────────────────

async def random_top50(ctx: StrategyContext) -> list[ChartRecommendation]:
    """A few random charts from each top-50 list that can still improve."""
    category = RecommendationCategory.IMPROVE_TOP_50
    hidden = ctx.suppression.hidden(category)

    picks: list[UUID] = []
    for chart_type in (ChartType.SINGLE, ChartType.DOUBLE):
        entries = await ctx.source.get_top50_competitive(ctx.user_id, chart_type)
        pool = [
            e.chart_id for e in entries
            if e.score is not None and e.score < MAX_SCORE and e.chart_id not in hidden
        ]
        picks.extend(_sample(ctx.rng, pool, ctx.config.top50_quota))
    return _recommend(category, picks)


# ── Bounties ──────────────────────────────────────────────────────────────────

async def bounties(ctx: StrategyContext) -> list[ChartRecommendation]:
    """Highest-worth bounties on charts the player has never scored."""
    category = RecommendationCategory.BOUNTIES
    hidden = ctx.suppression.hidden(category)
    scored = {s.chart_id for s in ctx.scores if s.score is not None}

    open_bounties = [
        b for b in await ctx.source.get_chart_bounties()
        if b.chart_id not in hidden and b.chart_id not in scored
    ]
    open_bounties.sort(key=lambda b: -b.worth)

    return [
        ChartRecommendation(
            category=str(category),
            chart_id=b.chart_id,
            description=_DESCRIPTIONS[category],
            detail=f"{b.worth} Points",
        )
        for b in open_bounties[: ctx.config.bounty_quota]
    ]


# Fixed output order: front strategies are the most actionable.
STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("push_levels",        push_levels),
    ("pass_fills",         pass_fills),
    ("skill_title_charts", skill_title_charts),
    ("old_scores",         old_scores),
    ("pg_pushes",          pg_pushes),
    ("random_top50",       random_top50),
    ("bounties",           bounties),
)
