"""
Chart taxonomy for the recommendation engine.

Four closed vocabularies describe every chart and recommendation:
  - ``ChartType``             : the *how*: Single, Double, or CoOp pads.
  - ``TierListCategory``      : qualitative difficulty bucket on a tier list.
  - ``LetterGrade``           : grade band a numeric score falls into.
  - ``RecommendationCategory``: label attached to each recommendation and
    used as the key for per-category feedback suppression.

Push-Levels categories are the only ones derived at runtime (they embed the
title name); build them with ``push_level_category()`` so strategies and
suppression lookups always agree on the exact string.

This module has NO imports from any other ``chart_recommender`` package.
"""

from enum import StrEnum

MAX_SCORE = 1_000_000


class ChartType(StrEnum):
    """Pad layout a chart is played on."""

    SINGLE = "Single"
    DOUBLE = "Double"
    COOP = "CoOp"

    @property
    def plural(self) -> str:
        return f"{self.value}s"


class TierListCategory(StrEnum):
    """Qualitative bucket a chart falls into on a tier list."""

    OVERRATED = "Overrated"
    """Much easier than its level suggests."""

    VERY_EASY = "VeryEasy"
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    VERY_HARD = "VeryHard"

    UNDERRATED = "Underrated"
    """Much harder than its level suggests."""

    UNRECORDED = "Unrecorded"
    """Not enough data to place the chart."""


class LetterGrade(StrEnum):
    """Score grade bands, lowest first."""

    F = "F"
    D = "D"
    C = "C"
    B = "B"
    A = "A"
    A_PLUS = "A+"
    AA = "AA"
    AA_PLUS = "AA+"
    AAA = "AAA"
    AAA_PLUS = "AAA+"
    S = "S"
    S_PLUS = "S+"
    SS = "SS"
    SS_PLUS = "SS+"
    SSS = "SSS"
    SSS_PLUS = "SSS+"

    @property
    def min_score(self) -> int:
        """Lowest score that earns this grade."""
        return GRADE_MIN_SCORES[self]

    @classmethod
    def from_score(cls, score: int) -> "LetterGrade":
        """Return the highest grade whose minimum ``score`` reaches."""
        best = cls.F
        for grade, minimum in GRADE_MIN_SCORES.items():
            if score >= minimum:
                best = grade
        return best


GRADE_MIN_SCORES: dict[LetterGrade, int] = {
    LetterGrade.F:        0,
    LetterGrade.D:        450_000,
    LetterGrade.C:        550_000,
    LetterGrade.B:        650_000,
    LetterGrade.A:        750_000,
    LetterGrade.A_PLUS:   825_000,
    LetterGrade.AA:       900_000,
    LetterGrade.AA_PLUS:  925_000,
    LetterGrade.AAA:      950_000,
    LetterGrade.AAA_PLUS: 960_000,
    LetterGrade.S:        970_000,
    LetterGrade.S_PLUS:   975_000,
    LetterGrade.SS:       980_000,
    LetterGrade.SS_PLUS:  985_000,
    LetterGrade.SSS:      990_000,
    LetterGrade.SSS_PLUS: 995_000,
}


class RecommendationCategory(StrEnum):
    """Fixed recommendation categories, in engine output order."""

    FILL_SCORES = "Fill Scores"
    SKILL_TITLE_CHARTS = "Skill Title Charts"
    REVISIT_OLD_SCORES = "Revisit Old Scores"
    PUSH_PGS = "Push PGs"
    IMPROVE_TOP_50 = "Improve Your Top 50"
    BOUNTIES = "Bounties"


PUSH_LEVEL_CHART_TYPES: tuple[ChartType, ...] = (ChartType.SINGLE, ChartType.DOUBLE)


def push_level_category(title_name: str, chart_type: ChartType) -> str:
    """Category label for Push-Levels recommendations, e.g. ``"Expert Lv.1 Singles"``."""
    return f"{title_name} {chart_type.plural}"


def is_known_category(category: str) -> bool:
    """True if ``category`` is a fixed category or a Push-Levels label."""
    if category in {c.value for c in RecommendationCategory}:
        return True
    return any(
        category.endswith(f" {t.plural}") and len(category) > len(t.plural) + 1
        for t in PUSH_LEVEL_CHART_TYPES
    )
