"""
Recommendation and feedback models.

``ChartRecommendation`` is produced only by strategies and never mutated.
Its ``category`` is the exact key used to look up the player's hidden
charts for that strategy; build categories from
``taxonomy.chart_taxonomy`` rather than writing string literals.

``Feedback`` is the player's signal about one (category, chart) pair.
The latest signal per (user, chart, category) wins.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class ChartRecommendation(BaseModel):
    """One suggested chart.

    Attributes:
        category: Strategy label, e.g. ``"Push PGs"``.
        chart_id: The recommended chart.
        description: Human-readable reason shared by the whole category.
        detail: Optional per-chart detail, e.g. ``"42 Days Old"``.
    """

    model_config = ConfigDict(frozen=True)

    category: str
    chart_id: UUID
    description: str
    detail: Optional[str] = None


class Feedback(BaseModel):
    """A player's hide/show signal for one chart within one category."""

    model_config = ConfigDict(frozen=True)

    chart_id: UUID
    suggestion_category: str
    should_hide: bool = True

    @field_validator("suggestion_category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("suggestion_category must be non-empty.")
        return v
