"""
Tests for recommendations/approachability.py.

What we test
------------
rank_entries():
  - Sums weighted category values per chart across lists.
  - Popularity counts half.
  - Ties keep first-appearance order.
  - Zero-total charts are dropped.
ApproachabilityRanker.rank():
  - Scores-list entries at level >= 20 are ignored.
  - Charts on no list never appear.
"""

from __future__ import annotations

import asyncio

from chart_recommender.models.chart import (
    TIER_LIST_PASS_COUNT,
    TIER_LIST_POPULARITY,
    TIER_LIST_SCORES,
    TierListEntry,
)
from chart_recommender.recommendations.approachability import (
    ApproachabilityRanker,
    entry_score,
    rank_entries,
)
from chart_recommender.taxonomy.chart_taxonomy import TierListCategory as T


def _entry(chart, name, category):
    return TierListEntry(chart_id=chart.chart_id, tier_list_name=name, category=category)


class TestEntryScore:
    def test_popularity_is_half_weight(self, make_chart):
        chart = make_chart(12)
        assert entry_score(_entry(chart, TIER_LIST_POPULARITY, T.OVERRATED)) == 3.5
        assert entry_score(_entry(chart, TIER_LIST_PASS_COUNT, T.OVERRATED)) == 7.0

    def test_unrecorded_is_worth_nothing(self, make_chart):
        chart = make_chart(12)
        assert entry_score(_entry(chart, TIER_LIST_SCORES, T.UNRECORDED)) == 0.0

    def test_easy_outranks_very_easy(self, make_chart):
        chart = make_chart(12)
        easy = entry_score(_entry(chart, TIER_LIST_SCORES, T.EASY))
        very_easy = entry_score(_entry(chart, TIER_LIST_SCORES, T.VERY_EASY))
        assert easy > very_easy


class TestRankEntries:
    def test_sums_across_lists(self, make_chart):
        a, b = make_chart(12), make_chart(12)
        ranked = rank_entries([
            _entry(a, TIER_LIST_POPULARITY, T.MEDIUM),     # 2.0
            _entry(b, TIER_LIST_POPULARITY, T.EASY),       # 3.0
            _entry(a, TIER_LIST_PASS_COUNT, T.EASY),       # +6.0 -> 8.0
        ])
        assert ranked == [a.chart_id, b.chart_id]

    def test_ties_keep_first_appearance(self, make_chart):
        a, b, c = make_chart(12), make_chart(12), make_chart(12)
        ranked = rank_entries([
            _entry(b, TIER_LIST_PASS_COUNT, T.HARD),
            _entry(a, TIER_LIST_PASS_COUNT, T.HARD),
            _entry(c, TIER_LIST_PASS_COUNT, T.HARD),
        ])
        assert ranked == [b.chart_id, a.chart_id, c.chart_id]

    def test_zero_total_excluded(self, make_chart):
        a, b = make_chart(12), make_chart(12)
        ranked = rank_entries([
            _entry(a, TIER_LIST_PASS_COUNT, T.UNRECORDED),
            _entry(b, TIER_LIST_PASS_COUNT, T.UNDERRATED),
        ])
        assert ranked == [b.chart_id]

    def test_empty_input(self):
        assert rank_entries([]) == []


class TestApproachabilityRanker:
    def test_scores_list_capped_below_level_20(self, fake_source, make_chart, user_id):
        low, high = make_chart(19), make_chart(20)
        fake_source.charts = [low, high]
        fake_source.add_tier_entries(TIER_LIST_SCORES, (low, T.EASY), (high, T.OVERRATED))

        ranked = asyncio.run(ApproachabilityRanker(fake_source).rank(user_id))
        assert ranked == [low.chart_id]

    def test_high_level_chart_still_ranked_from_other_lists(self, fake_source, make_chart, user_id):
        high = make_chart(22)
        fake_source.charts = [high]
        fake_source.add_tier_entries(TIER_LIST_SCORES, (high, T.OVERRATED))
        fake_source.add_tier_entries(TIER_LIST_PASS_COUNT, (high, T.HARD))

        ranked = asyncio.run(ApproachabilityRanker(fake_source).rank(user_id))
        assert ranked == [high.chart_id]

    def test_charts_on_no_list_never_appear(self, fake_source, make_chart, user_id):
        listed, unlisted = make_chart(12), make_chart(12)
        fake_source.charts = [listed, unlisted]
        fake_source.add_tier_entries(TIER_LIST_POPULARITY, (listed, T.MEDIUM))

        ranked = asyncio.run(ApproachabilityRanker(fake_source).rank(user_id))
        assert unlisted.chart_id not in ranked

    def test_uses_supplied_catalog(self, fake_source, make_chart, user_id):
        chart = make_chart(12)
        fake_source.add_tier_entries(TIER_LIST_SCORES, (chart, T.EASY))

        ranked = asyncio.run(
            ApproachabilityRanker(fake_source).rank(user_id, charts=[chart])
        )
        assert ranked == [chart.chart_id]
        assert "get_charts" not in fake_source.calls
