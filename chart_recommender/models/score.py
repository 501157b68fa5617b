"""
Score models: recorded scores, competitive top-50 entries and player stats.

A player has at most one ``RecordedScore`` per chart. "No score" is
represented by the absence of a record; a record with ``score=None`` means
the player logged a pass/attempt without a numeric score.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from chart_recommender.taxonomy.chart_taxonomy import MAX_SCORE, LetterGrade


def _check_score(v: Optional[int]) -> Optional[int]:
    if v is not None and not 0 <= v <= MAX_SCORE:
        raise ValueError(f"score must be in [0, {MAX_SCORE}], got {v}.")
    return v


class RecordedScore(BaseModel):
    """A player's current record on one chart.

    Attributes:
        chart_id: The chart this record belongs to.
        score: Numeric score in ``[0, MAX_SCORE]``, or ``None`` if unscored.
        recorded_date: UTC timestamp of the last update to this record.
        is_broken: ``True`` if the player failed (broke) the chart.
    """

    model_config = ConfigDict(frozen=True)

    chart_id: UUID
    score: Optional[int] = None
    recorded_date: datetime
    is_broken: bool = False

    @field_validator("score")
    @classmethod
    def validate_score(cls, v: Optional[int]) -> Optional[int]:
        return _check_score(v)

    @property
    def letter_grade(self) -> Optional[LetterGrade]:
        """Grade band of ``score``, or ``None`` when unscored."""
        if self.score is None:
            return None
        return LetterGrade.from_score(self.score)

    @property
    def is_passed(self) -> bool:
        return self.score is not None and not self.is_broken


class Top50Entry(BaseModel):
    """A chart in a player's top-50 competitive list for one chart type."""

    model_config = ConfigDict(frozen=True)

    chart_id: UUID
    score: Optional[int] = None

    @field_validator("score")
    @classmethod
    def validate_score(cls, v: Optional[int]) -> Optional[int]:
        return _check_score(v)


class PlayerStats(BaseModel):
    """Summary statistics for a player; only the competitive level is used here."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    competitive_level: float
