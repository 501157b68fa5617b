"""
Data source port: everything the recommendation engine reads or writes.

The engine depends only on this abstract interface. ``SqliteChartDataSource``
(``sources/sqlite_source.py``) is the production implementation; tests use
an in-memory fake.

Every method is a coroutine. Cancelling the awaiting task cancels the fetch;
implementations must let ``asyncio.CancelledError`` and their own errors
propagate unchanged; the engine never retries or substitutes defaults for
a failed fetch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from chart_recommender.models.chart import Bounty, Chart, RelativeTierEntry, TierListEntry
from chart_recommender.models.recommendation import Feedback
from chart_recommender.models.score import RecordedScore, Top50Entry
from chart_recommender.models.title import TitleProgress
from chart_recommender.taxonomy.chart_taxonomy import ChartType


class ChartDataSource(ABC):
    """Read/write port for charts, scores, titles, tier lists and feedback."""

    @abstractmethod
    async def get_competitive_level(self, user_id: UUID) -> Optional[float]:
        """Return the player's competitive level, or ``None`` if no stats exist."""

    @abstractmethod
    async def get_title_progress(self, user_id: UUID) -> list[TitleProgress]:
        """Return progress toward every title for the player."""

    @abstractmethod
    async def get_recorded_scores(self, user_id: UUID) -> list[RecordedScore]:
        """Return the player's recorded scores, at most one per chart."""

    @abstractmethod
    async def get_feedback(self, user_id: UUID, hidden_only: bool = False) -> list[Feedback]:
        """Return the latest feedback signal per (chart, category).

        With ``hidden_only`` set, only signals with ``should_hide`` are returned.
        """

    @abstractmethod
    async def get_charts(self, level: Optional[int] = None) -> list[Chart]:
        """Return the chart catalog, optionally restricted to one level."""

    @abstractmethod
    async def get_relative_tier_list(
        self,
        user_id: UUID,
        chart_type: ChartType,
        level: int,
    ) -> list[RelativeTierEntry]:
        """Return the player's personal tier list for one (type, level)."""

    @abstractmethod
    async def get_top50_competitive(
        self,
        user_id: UUID,
        chart_type: ChartType,
    ) -> list[Top50Entry]:
        """Return the player's top-50 competitive charts for one type."""

    @abstractmethod
    async def get_chart_bounties(self) -> list[Bounty]:
        """Return all open bounties."""

    @abstractmethod
    async def get_tier_list(self, name: str) -> list[TierListEntry]:
        """Return every entry of the named community tier list."""

    @abstractmethod
    async def save_feedback(self, user_id: UUID, feedback: Feedback) -> None:
        """Persist ``feedback``, replacing any earlier signal for the same key."""
