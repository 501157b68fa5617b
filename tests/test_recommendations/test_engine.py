"""
Tests for recommendations/engine.py.

What we test
------------
resolve_competitive_level():
  - Missing, NaN, invalid and sub-floor levels fall back to 10.
  - Rounding is half-to-even.
RecommendationEngine.get_recommendations():
  - Categories appear in fixed strategy order.
  - An empty player gets an empty list without errors.
  - Concurrent and sequential execution agree for a given seed.
  - A hidden chart never appears under the category it was hidden from.
  - Data-source failures propagate unchanged; no partial list.
  - Cancellation propagates and nothing is written.
RecommendationEngine.submit_feedback():
  - Latest signal wins on round-trip.
"""

from __future__ import annotations

import asyncio
import math

import pytest

from chart_recommender.config import RecommendationConfig
from chart_recommender.models.chart import TIER_LIST_PASS_COUNT, Bounty, RelativeTierEntry
from chart_recommender.models.recommendation import Feedback
from chart_recommender.models.score import Top50Entry
from chart_recommender.recommendations.engine import (
    RecommendationEngine,
    resolve_competitive_level,
)
from chart_recommender.taxonomy.chart_taxonomy import ChartType, TierListCategory


class TestResolveCompetitiveLevel:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, 10),
            (math.nan, 10),
            (math.inf, 10),
            (3.0, 10),
            (9.4, 10),
            (12.5, 12),
            (13.5, 14),
            (14.6, 15),
            (28.6, 29),
            (30.0, 10),
            (-2.0, 10),
        ],
    )
    def test_resolution(self, raw, expected):
        assert resolve_competitive_level(raw) == expected

    def test_custom_floor(self):
        assert resolve_competitive_level(11.0, floor=12) == 12


# ── Full scenario ─────────────────────────────────────────────────────────────

@pytest.fixture
def populated(fake_source, make_chart, make_score, make_title, user_id):
    """A player at level 15 with something for every strategy."""
    src = fake_source
    src.competitive_level = 15.2

    push_singles = [make_chart(16, ChartType.SINGLE) for _ in range(3)]
    push_doubles = [make_chart(16, ChartType.DOUBLE) for _ in range(3)]
    fills = [make_chart(13, ChartType.SINGLE) for _ in range(4)]
    skill = make_chart(15, ChartType.DOUBLE, "Conflict")
    stale = make_chart(14, ChartType.SINGLE)
    pg = make_chart(15, ChartType.SINGLE)
    bounty = make_chart(12, ChartType.DOUBLE)

    src.charts = [*push_singles, *push_doubles, *fills, skill, stale, pg, bounty]
    src.add_tier_entries(
        TIER_LIST_PASS_COUNT,
        *((c, TierListCategory.MEDIUM) for c in [*push_singles, *push_doubles, *fills]),
    )
    src.titles = [
        make_title("Intermediate Lv.6", 15, count=4, required=4),
        make_title("Intermediate Lv.7", 16, count=0, required=4),
        make_title("[SKILL] Conflict", 15, count=980_000, song_name="Conflict",
                   chart_type=ChartType.DOUBLE),
    ]
    src.scores = [
        make_score(skill, 980_000),
        make_score(stale, 700_000, days_old=120),
        make_score(pg, 998_000),
    ]
    src.relative[(ChartType.SINGLE, 14)] = [
        RelativeTierEntry(chart_id=stale.chart_id, category=TierListCategory.UNDERRATED)
    ]
    src.top50[ChartType.SINGLE] = [Top50Entry(chart_id=pg.chart_id, score=998_000)]
    src.bounties = [Bounty(chart_id=bounty.chart_id, worth=150)]
    return src


def _engine(source, now, **config):
    return RecommendationEngine(source, RecommendationConfig(**config), clock=lambda: now)


EXPECTED_ORDER = [
    "Intermediate Lv.7 Singles",
    "Intermediate Lv.7 Doubles",
    "Fill Scores",
    "Skill Title Charts",
    "Revisit Old Scores",
    "Push PGs",
    "Improve Your Top 50",
    "Bounties",
]


def _category_runs(recs):
    runs: list[str] = []
    for rec in recs:
        if not runs or runs[-1] != rec.category:
            runs.append(rec.category)
    return runs


class TestGetRecommendations:
    def test_fixed_category_order(self, populated, user_id, now):
        recs = asyncio.run(_engine(populated, now).get_recommendations(user_id, seed=3))
        assert _category_runs(recs) == EXPECTED_ORDER

    def test_details_filled_where_expected(self, populated, user_id, now):
        recs = asyncio.run(_engine(populated, now).get_recommendations(user_id, seed=3))
        by_cat = {r.category: r for r in recs}
        assert by_cat["Revisit Old Scores"].detail == "120 Days Old"
        assert by_cat["Bounties"].detail == "150 Points"
        assert by_cat["Push PGs"].detail is None

    def test_sequential_matches_concurrent(self, populated, user_id, now):
        concurrent = asyncio.run(
            _engine(populated, now).get_recommendations(user_id, seed=11)
        )
        sequential = asyncio.run(
            _engine(populated, now, concurrent_strategies=False).get_recommendations(user_id, seed=11)
        )
        assert concurrent == sequential

    def test_config_seed_used_when_no_request_seed(self, populated, user_id, now):
        engine = _engine(populated, now, random_seed=5)
        first = asyncio.run(engine.get_recommendations(user_id))
        second = asyncio.run(engine.get_recommendations(user_id))
        assert first == second

    def test_hidden_chart_not_in_its_category(self, populated, user_id, now):
        pg_chart = next(s.chart_id for s in populated.scores if s.score == 998_000)
        populated.feedback[(user_id, pg_chart, "Push PGs")] = Feedback(
            chart_id=pg_chart, suggestion_category="Push PGs"
        )
        recs = asyncio.run(_engine(populated, now).get_recommendations(user_id, seed=1))
        assert all(r.chart_id != pg_chart for r in recs if r.category == "Push PGs")
        # still eligible elsewhere
        assert any(r.chart_id == pg_chart for r in recs if r.category == "Improve Your Top 50")

    def test_empty_player(self, fake_source, user_id, now):
        recs = asyncio.run(_engine(fake_source, now).get_recommendations(user_id))
        assert recs == []

    def test_empty_player_uses_default_level(self, fake_source, make_chart, user_id, now):
        in_window = make_chart(10)
        above = make_chart(11)
        fake_source.charts = [in_window, above]
        fake_source.add_tier_entries(
            TIER_LIST_PASS_COUNT,
            (in_window, TierListCategory.EASY),
            (above, TierListCategory.EASY),
        )
        recs = asyncio.run(_engine(fake_source, now).get_recommendations(user_id))
        assert [r.chart_id for r in recs] == [in_window.chart_id]
        assert recs[0].category == "Fill Scores"

    def test_quotas_respected(self, populated, user_id, now):
        recs = asyncio.run(_engine(populated, now).get_recommendations(user_id, seed=2))
        counts: dict[str, int] = {}
        for rec in recs:
            counts[rec.category] = counts.get(rec.category, 0) + 1
        assert counts["Intermediate Lv.7 Singles"] <= 6
        assert counts["Intermediate Lv.7 Doubles"] <= 6
        assert counts["Push PGs"] <= 6
        assert counts["Bounties"] <= 5
        assert counts["Improve Your Top 50"] <= 6


class TestFailureModel:
    def test_strategy_fetch_failure_propagates(self, populated, user_id, now):
        populated.failures["get_chart_bounties"] = RuntimeError("bounty service down")
        with pytest.raises(RuntimeError, match="bounty service down"):
            asyncio.run(_engine(populated, now).get_recommendations(user_id))

    def test_shared_fetch_failure_propagates(self, populated, user_id, now):
        populated.failures["get_recorded_scores"] = ConnectionError("lost")
        with pytest.raises(ConnectionError):
            asyncio.run(_engine(populated, now).get_recommendations(user_id))
        assert "get_chart_bounties" not in populated.calls

    def test_sequential_failure_propagates(self, populated, user_id, now):
        populated.failures["get_top50_competitive"] = ValueError("bad data")
        engine = _engine(populated, now, concurrent_strategies=False)
        with pytest.raises(ValueError, match="bad data"):
            asyncio.run(engine.get_recommendations(user_id))

    def test_cancellation_propagates(self, populated, user_id, now):
        populated.blocking.add("get_chart_bounties")
        engine = _engine(populated, now)

        async def scenario():
            task = asyncio.create_task(engine.get_recommendations(user_id))
            await populated.started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        assert "save_feedback" not in populated.calls
        assert populated.feedback == {}


class TestSubmitFeedback:
    def test_round_trip_latest_wins(self, populated, user_id, now):
        engine = _engine(populated, now)
        chart = populated.charts[0]

        async def scenario():
            await engine.submit_feedback(
                user_id, Feedback(chart_id=chart.chart_id, suggestion_category="Bounties")
            )
            await engine.submit_feedback(
                user_id,
                Feedback(chart_id=chart.chart_id, suggestion_category="Bounties", should_hide=False),
            )
            return await populated.get_feedback(user_id)

        stored = asyncio.run(scenario())
        assert len(stored) == 1
        assert stored[0].should_hide is False

    def test_hidden_then_shown_returns_chart(self, populated, user_id, now):
        engine = _engine(populated, now)
        bounty_chart = populated.bounties[0].chart_id

        async def scenario():
            await engine.submit_feedback(
                user_id, Feedback(chart_id=bounty_chart, suggestion_category="Bounties")
            )
            hidden = await engine.get_recommendations(user_id, seed=1)
            await engine.submit_feedback(
                user_id,
                Feedback(chart_id=bounty_chart, suggestion_category="Bounties", should_hide=False),
            )
            shown = await engine.get_recommendations(user_id, seed=1)
            return hidden, shown

        hidden, shown = asyncio.run(scenario())
        assert not [r for r in hidden if r.category == "Bounties"]
        assert [r.chart_id for r in shown if r.category == "Bounties"] == [bounty_chart]
