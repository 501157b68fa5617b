"""
Repository for title definitions.

Both title kinds share one ``titles`` table; ``kind`` selects the model.
Skill-only columns (``song_name``, ``chart_type``) are NULL for
difficulty titles.
"""

from __future__ import annotations

import logging
from typing import Iterable

from pydantic import TypeAdapter

from chart_recommender.db.repositories.base import BaseRepository
from chart_recommender.models.title import DifficultyTitle, SkillTitle, Title

logger = logging.getLogger(__name__)

_TITLE_ADAPTER: TypeAdapter[Title] = TypeAdapter(Title)


class TitleRepository(BaseRepository):
    """Read/write access to the ``titles`` table."""

    def upsert_many(self, titles: Iterable[Title]) -> int:
        return self.executemany(
            """
            INSERT INTO titles (name, kind, level, song_name, chart_type, completion_required)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(name) DO UPDATE SET
                kind                = excluded.kind,
                level               = excluded.level,
                song_name           = excluded.song_name,
                chart_type          = excluded.chart_type,
                completion_required = excluded.completion_required;
            """,
            (_title_params(t) for t in titles),
        )

    def get_all(self) -> list[Title]:
        """All titles, difficulty titles first, each kind by (level, name)."""
        rows = self.fetchall("SELECT * FROM titles ORDER BY kind, level, name;")
        return [_row_to_title(r) for r in rows]


def _title_params(title: Title) -> tuple:
    match title:
        case SkillTitle():
            return (
                title.name, title.kind, title.level,
                title.song_name, title.chart_type.value, title.completion_required,
            )
        case DifficultyTitle():
            return (
                title.name, title.kind, title.level,
                None, None, title.completion_required,
            )
    raise TypeError(f"Unsupported title type: {type(title).__name__}")


def _row_to_title(row) -> Title:
    data = {
        "kind": row["kind"],
        "name": row["name"],
        "level": row["level"],
        "completion_required": row["completion_required"],
    }
    if row["kind"] == "skill":
        data["song_name"] = row["song_name"]
        data["chart_type"] = row["chart_type"]
    return _TITLE_ADAPTER.validate_python(data)
