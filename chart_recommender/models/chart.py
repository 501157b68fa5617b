"""
Chart catalog models: charts, tier list entries, and bounties.

``Chart`` is one playable (song, type, level) combination. Chart ids are
opaque UUIDs assigned by the site; they are never derived from song names.

``DifficultyLevel`` is a plain ``int`` guarded by ``is_valid_level()``.
Callers clamp levels themselves (see ``resolve_competitive_level()`` in
``recommendations.engine``); models reject invalid levels at construction.

All models are frozen; the engine reads a snapshot and never mutates it.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from chart_recommender.taxonomy.chart_taxonomy import ChartType, TierListCategory

MIN_LEVEL = 1
MAX_LEVEL = 29

DifficultyLevel = int

TIER_LIST_POPULARITY = "Popularity"
TIER_LIST_PASS_COUNT = "Pass Count"
TIER_LIST_SCORES = "Scores"

KNOWN_TIER_LISTS = frozenset({TIER_LIST_POPULARITY, TIER_LIST_PASS_COUNT, TIER_LIST_SCORES})


def is_valid_level(level: int) -> bool:
    """True if ``level`` lies within ``[MIN_LEVEL, MAX_LEVEL]``."""
    return MIN_LEVEL <= level <= MAX_LEVEL


def check_level(v: int) -> int:
    if not is_valid_level(v):
        raise ValueError(f"level must be in [{MIN_LEVEL}, {MAX_LEVEL}], got {v}.")
    return v


class Chart(BaseModel):
    """A playable chart.

    Attributes:
        chart_id: Site-assigned chart identifier.
        song_name: Display name of the song the chart belongs to.
        chart_type: Pad layout (Single, Double, CoOp).
        level: Difficulty level in ``[MIN_LEVEL, MAX_LEVEL]``.
    """

    model_config = ConfigDict(frozen=True)

    chart_id: UUID
    song_name: str
    chart_type: ChartType
    level: DifficultyLevel

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: int) -> int:
        return check_level(v)


class TierListEntry(BaseModel):
    """One chart's placement on a named community tier list."""

    model_config = ConfigDict(frozen=True)

    chart_id: UUID
    tier_list_name: str
    category: TierListCategory


class RelativeTierEntry(BaseModel):
    """One chart's placement on a player's personal (relative) tier list."""

    model_config = ConfigDict(frozen=True)

    chart_id: UUID
    category: TierListCategory


class Bounty(BaseModel):
    """An open bounty rewarding the first scores on a low-data chart."""

    model_config = ConfigDict(frozen=True)

    chart_id: UUID
    worth: int

    @field_validator("worth")
    @classmethod
    def validate_worth(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"worth must be non-negative, got {v}.")
        return v
