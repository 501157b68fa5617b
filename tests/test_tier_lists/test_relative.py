"""Tests for tier_lists/relative.py: z-score bucketing of a player's own scores."""

from __future__ import annotations

from uuid import uuid4

import pytest

from chart_recommender.taxonomy.chart_taxonomy import TierListCategory
from chart_recommender.tier_lists.relative import bucket_z_score, build_relative_tier_list


class TestBucketZScore:
    @pytest.mark.parametrize(
        "z, expected",
        [
            (2.0, TierListCategory.OVERRATED),
            (1.5, TierListCategory.OVERRATED),
            (1.2, TierListCategory.VERY_EASY),
            (0.5, TierListCategory.EASY),
            (0.0, TierListCategory.MEDIUM),
            (-0.5, TierListCategory.HARD),
            (-1.0, TierListCategory.VERY_HARD),
            (-1.5, TierListCategory.UNDERRATED),
            (-3.0, TierListCategory.UNDERRATED),
        ],
    )
    def test_boundaries(self, z, expected):
        assert bucket_z_score(z) is expected


class TestBuildRelativeTierList:
    def test_preserves_input_order(self):
        ids = [uuid4() for _ in range(4)]
        entries = build_relative_tier_list(zip(ids, [900_000, None, 800_000, 700_000]))
        assert [e.chart_id for e in entries] == ids

    def test_unscored_is_unrecorded(self):
        cid = uuid4()
        entries = build_relative_tier_list([(cid, None), (uuid4(), 900_000), (uuid4(), 950_000)])
        assert entries[0].category is TierListCategory.UNRECORDED

    def test_single_score_is_medium(self):
        entries = build_relative_tier_list([(uuid4(), 900_000), (uuid4(), None)])
        assert [e.category for e in entries] == [
            TierListCategory.MEDIUM, TierListCategory.UNRECORDED,
        ]

    def test_identical_scores_are_medium(self):
        entries = build_relative_tier_list([(uuid4(), 950_000)] * 3)
        assert {e.category for e in entries} == {TierListCategory.MEDIUM}

    def test_outliers_at_both_ends(self):
        scores = [990_000] + [900_000] * 8 + [600_000]
        entries = build_relative_tier_list((uuid4(), s) for s in scores)
        assert entries[0].category in (TierListCategory.OVERRATED, TierListCategory.VERY_EASY)
        assert entries[-1].category is TierListCategory.UNDERRATED
        assert entries[1].category is TierListCategory.MEDIUM

    def test_empty_input(self):
        assert build_relative_tier_list([]) == []
