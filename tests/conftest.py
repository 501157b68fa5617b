"""
Shared pytest fixtures for the chart recommender test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema and migrations applied.
  - ``fake_source``: An ``InMemoryDataSource`` the engine can run against
    without a database. Tests fill its attributes directly.
  - ``make_chart`` / ``make_score`` / ``make_title``: factories for domain
    objects with sensible defaults.
  - ``now``: a fixed request time.

Async code is driven with ``asyncio.run`` inside ordinary test functions.
"""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Generator, Optional
from uuid import UUID, uuid4

import pytest

from chart_recommender.db.migrations import run_migrations
from chart_recommender.db.schema import apply_schema
from chart_recommender.models.chart import (
    Bounty,
    Chart,
    RelativeTierEntry,
    TierListEntry,
)
from chart_recommender.models.recommendation import Feedback
from chart_recommender.models.score import RecordedScore, Top50Entry
from chart_recommender.models.title import DifficultyTitle, SkillTitle, TitleProgress
from chart_recommender.sources.base import ChartDataSource
from chart_recommender.taxonomy.chart_taxonomy import ChartType

FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied.

    Foreign key enforcement is ON. Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    run_migrations(conn)
    yield conn
    conn.close()


# ── In-memory data source ─────────────────────────────────────────────────────

class InMemoryDataSource(ChartDataSource):
    """Dict-backed ``ChartDataSource`` for engine and strategy tests.

    ``failures`` maps a method name to an exception it raises; methods named
    in ``blocking`` set ``started`` and then wait until cancelled.
    Every call is appended to ``calls``.
    """

    def __init__(self) -> None:
        self.competitive_level: Optional[float] = None
        self.titles: list[TitleProgress] = []
        self.scores: list[RecordedScore] = []
        self.feedback: dict[tuple[UUID, UUID, str], Feedback] = {}
        self.charts: list[Chart] = []
        self.relative: dict[tuple[ChartType, int], list[RelativeTierEntry]] = {}
        self.top50: dict[ChartType, list[Top50Entry]] = {}
        self.bounties: list[Bounty] = []
        self.tier_lists: dict[str, list[TierListEntry]] = {}
        self.calls: list[str] = []
        self.failures: dict[str, BaseException] = {}
        self.blocking: set[str] = set()
        self.started = asyncio.Event()

    async def _enter(self, name: str) -> None:
        self.calls.append(name)
        await asyncio.sleep(0)
        if name in self.failures:
            raise self.failures[name]
        if name in self.blocking:
            self.started.set()
            await asyncio.Event().wait()

    async def get_competitive_level(self, user_id):
        await self._enter("get_competitive_level")
        return self.competitive_level

    async def get_title_progress(self, user_id):
        await self._enter("get_title_progress")
        return list(self.titles)

    async def get_recorded_scores(self, user_id):
        await self._enter("get_recorded_scores")
        return list(self.scores)

    async def get_feedback(self, user_id, hidden_only=False):
        await self._enter("get_feedback")
        return [
            fb for (uid, _, _), fb in self.feedback.items()
            if uid == user_id and (fb.should_hide or not hidden_only)
        ]

    async def get_charts(self, level=None):
        await self._enter("get_charts")
        return [c for c in self.charts if level is None or c.level == level]

    async def get_relative_tier_list(self, user_id, chart_type, level):
        await self._enter("get_relative_tier_list")
        return list(self.relative.get((chart_type, level), []))

    async def get_top50_competitive(self, user_id, chart_type):
        await self._enter("get_top50_competitive")
        return list(self.top50.get(chart_type, []))

    async def get_chart_bounties(self):
        await self._enter("get_chart_bounties")
        return list(self.bounties)

    async def get_tier_list(self, name):
        await self._enter("get_tier_list")
        return list(self.tier_lists.get(name, []))

    async def save_feedback(self, user_id, feedback):
        await self._enter("save_feedback")
        key = (user_id, feedback.chart_id, feedback.suggestion_category)
        self.feedback[key] = feedback

    # helpers for arranging state

    def add_tier_entries(self, name: str, *pairs) -> None:
        """Append ``(chart, category)`` pairs to tier list ``name``."""
        self.tier_lists.setdefault(name, []).extend(
            TierListEntry(chart_id=chart.chart_id, tier_list_name=name, category=category)
            for chart, category in pairs
        )


@pytest.fixture
def fake_source() -> InMemoryDataSource:
    return InMemoryDataSource()


@pytest.fixture
def user_id() -> UUID:
    return UUID("6f1c2d3e-0000-4000-8000-000000000001")


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def make_chart():
    """Factory: ``make_chart(level, chart_type=Single, song_name=None)``."""
    counter = iter(range(1, 10_000))

    def _make(
        level: int,
        chart_type: ChartType = ChartType.SINGLE,
        song_name: Optional[str] = None,
    ) -> Chart:
        return Chart(
            chart_id=uuid4(),
            song_name=song_name or f"Song {next(counter)}",
            chart_type=chart_type,
            level=level,
        )

    return _make


@pytest.fixture
def make_score():
    """Factory: ``make_score(chart, score=..., days_old=1, is_broken=False)``."""

    def _make(
        chart: Chart,
        score: Optional[int] = 900_000,
        days_old: float = 1,
        is_broken: bool = False,
    ) -> RecordedScore:
        return RecordedScore(
            chart_id=chart.chart_id,
            score=score,
            recorded_date=FIXED_NOW - timedelta(days=days_old),
            is_broken=is_broken,
        )

    return _make


@pytest.fixture
def make_title():
    """Factory for ``TitleProgress``.

    ``make_title("Intermediate Lv.5", level=14, count=2, required=5)`` builds
    a difficulty title; pass ``song_name`` and ``chart_type`` for a skill title.
    """

    def _make(
        name: str,
        level: int,
        count: int = 0,
        required: Optional[int] = None,
        song_name: Optional[str] = None,
        chart_type: ChartType = ChartType.SINGLE,
    ) -> TitleProgress:
        if song_name is None:
            title = DifficultyTitle(name=name, level=level, completion_required=required or 5)
        else:
            kwargs = {} if required is None else {"completion_required": required}
            title = SkillTitle(
                name=name, song_name=song_name, chart_type=chart_type, level=level, **kwargs
            )
        return TitleProgress(
            title=title,
            completion_count=count,
            completion_required=title.completion_required,
        )

    return _make
