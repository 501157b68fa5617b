"""Tests for recommendations/reporter.py: CSV, JSON and terminal table output."""

from __future__ import annotations

import csv
import json
from datetime import date
from uuid import uuid4

import pytest

from chart_recommender.models.recommendation import ChartRecommendation
from chart_recommender.recommendations.reporter import (
    format_recommendations_table,
    group_by_category,
    write_recommendation_csv,
    write_recommendation_json,
)
from chart_recommender.taxonomy.chart_taxonomy import ChartType

RUN_DATE = date(2026, 10, 19)


@pytest.fixture
def charts(make_chart):
    return [
        make_chart(16, ChartType.DOUBLE, "Chimera"),
        make_chart(15, ChartType.SINGLE, "Conflict"),
        make_chart(12, ChartType.DOUBLE, "Yog-Sothoth"),
    ]


@pytest.fixture
def recs(charts):
    return [
        ChartRecommendation(category="Push PGs", chart_id=charts[1].chart_id,
                            description="Charts you're close to a PG on."),
        ChartRecommendation(category="Bounties", chart_id=charts[2].chart_id,
                            description="Bounties available on unscored charts.", detail="300 Points"),
        ChartRecommendation(category="Push PGs", chart_id=charts[0].chart_id,
                            description="Charts you're close to a PG on."),
    ]


def test_group_by_category_keeps_first_appearance(recs):
    grouped = group_by_category(recs)
    assert list(grouped) == ["Push PGs", "Bounties"]
    assert len(grouped["Push PGs"]) == 2


class TestCsv:
    def test_rows_in_output_order(self, tmp_path, recs, charts):
        user = uuid4()
        path = write_recommendation_csv(recs, tmp_path / "out", user, RUN_DATE,
                                        {c.chart_id: c for c in charts})
        assert path.name == f"recommendations_{user}_2026-10-19.csv"
        with path.open(encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert [r["position"] for r in rows] == ["1", "2", "3"]
        assert [r["song_name"] for r in rows] == ["Conflict", "Yog-Sothoth", "Chimera"]
        assert rows[1]["detail"] == "300 Points"
        assert rows[0]["detail"] == ""

    def test_without_catalog(self, tmp_path, recs):
        path = write_recommendation_csv(recs, tmp_path, uuid4(), RUN_DATE)
        with path.open(encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["song_name"] == ""
        assert rows[0]["chart_id"] == str(recs[0].chart_id)


class TestJson:
    def test_grouped_payload(self, tmp_path, recs, charts):
        user = uuid4()
        path = write_recommendation_json(recs, tmp_path, user, RUN_DATE,
                                         {c.chart_id: c for c in charts})
        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["user_id"] == str(user)
        assert payload["total"] == 3
        assert [c["category"] for c in payload["categories"]] == ["Push PGs", "Bounties"]
        pgs = payload["categories"][0]["charts"]
        assert [(c["rank"], c["song_name"]) for c in pgs] == [(1, "Conflict"), (2, "Chimera")]
        assert payload["categories"][1]["charts"][0]["detail"] == "300 Points"

    def test_empty_list(self, tmp_path):
        path = write_recommendation_json([], tmp_path, uuid4(), RUN_DATE)
        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["total"] == 0
        assert payload["categories"] == []


class TestTable:
    def test_sections_and_details(self, recs, charts):
        text = format_recommendations_table(recs, uuid4(), {c.chart_id: c for c in charts})
        assert text.index("[PUSH PGS]") < text.index("[BOUNTIES]")
        assert "Conflict" in text
        assert "300 Points" in text

    def test_empty_message(self):
        text = format_recommendations_table([], uuid4())
        assert "no recommendations" in text
