"""
Title models: difficulty titles, skill titles, and per-player progress.

Titles are a tagged variant discriminated on ``kind``:

  - ``DifficultyTitle`` (``kind="difficulty"``): earned by passing enough
    charts at one ``level``.
  - ``SkillTitle`` (``kind="skill"``): earned by reaching a target score on
    one specific chart, identified by (song name, chart type, level).

Strategies dispatch with ``match`` on the concrete class rather than
calling per-kind methods, so adding a new kind only touches the strategies
that care about it.

``TitleProgress`` is computed fresh per request from score history and is
never persisted.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chart_recommender.models.chart import Chart, DifficultyLevel, check_level
from chart_recommender.taxonomy.chart_taxonomy import ChartType, LetterGrade


class DifficultyTitle(BaseModel):
    """Title for clearing a number of charts at one difficulty level."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["difficulty"] = "difficulty"
    name: str
    level: DifficultyLevel
    completion_required: int

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: int) -> int:
        return check_level(v)


class SkillTitle(BaseModel):
    """Title for scoring highly on a single named chart.

    ``completion_required`` is a score; it defaults to the SSS threshold.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["skill"] = "skill"
    name: str
    song_name: str
    chart_type: ChartType
    level: DifficultyLevel
    completion_required: int = LetterGrade.SSS.min_score

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: int) -> int:
        return check_level(v)

    def applies_to_chart(self, chart: Chart) -> bool:
        return (
            chart.song_name.casefold() == self.song_name.casefold()
            and chart.chart_type == self.chart_type
            and chart.level == self.level
        )


Title = Annotated[Union[DifficultyTitle, SkillTitle], Field(discriminator="kind")]


class TitleProgress(BaseModel):
    """A player's progress toward one title.

    Attributes:
        title: The title definition.
        completion_count: Progress so far (charts passed, or best score).
        completion_required: Progress needed to earn the title.
    """

    model_config = ConfigDict(frozen=True)

    title: Title
    completion_count: int = 0
    completion_required: int

    @property
    def is_complete(self) -> bool:
        return self.completion_count >= self.completion_required
