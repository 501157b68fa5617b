"""
Title progress, computed fresh from a player's recorded scores.

  - ``DifficultyTitle``: number of passed charts (scored, not broken) at
    the title's level, across all chart types.
  - ``SkillTitle``: the best score recorded on any chart matching the
    title's (song, type, level); 0 when there is none.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from chart_recommender.models.chart import Chart
from chart_recommender.models.score import RecordedScore
from chart_recommender.models.title import DifficultyTitle, SkillTitle, Title, TitleProgress


def compute_title_progress(
    titles: Iterable[Title],
    charts: Iterable[Chart],
    scores: Iterable[RecordedScore],
) -> list[TitleProgress]:
    """Return progress for each title, in the order given.

    Scores on charts missing from ``charts`` are ignored.
    """
    charts_by_id = {c.chart_id: c for c in charts}
    known_scores = [s for s in scores if s.chart_id in charts_by_id]

    passes_by_level: Counter[int] = Counter(
        charts_by_id[s.chart_id].level for s in known_scores if s.is_passed
    )

    progress: list[TitleProgress] = []
    for title in titles:
        match title:
            case DifficultyTitle(level=level):
                count = passes_by_level[level]
            case SkillTitle():
                count = max(
                    (
                        s.score
                        for s in known_scores
                        if s.score is not None
                        and title.applies_to_chart(charts_by_id[s.chart_id])
                    ),
                    default=0,
                )
            case _:
                raise TypeError(f"Unsupported title type: {type(title).__name__}")
        progress.append(
            TitleProgress(
                title=title,
                completion_count=count,
                completion_required=title.completion_required,
            )
        )
    return progress
