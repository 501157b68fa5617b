"""
Repositories for the chart catalog, community tier lists and bounties.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional
from uuid import UUID

from chart_recommender.db.repositories.base import (
    BaseRepository,
    uuid_from_db,
    uuid_to_db,
)
from chart_recommender.models.chart import Bounty, Chart, TierListEntry
from chart_recommender.taxonomy.chart_taxonomy import ChartType, TierListCategory

logger = logging.getLogger(__name__)


class ChartRepository(BaseRepository):
    """Read/write access to the ``charts`` table."""

    _UPSERT = """
        INSERT INTO charts (chart_id, song_name, chart_type, level)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(chart_id) DO UPDATE SET
            song_name  = excluded.song_name,
            chart_type = excluded.chart_type,
            level      = excluded.level;
    """

    def upsert(self, chart: Chart) -> None:
        self.execute(self._UPSERT, _chart_params(chart))

    def upsert_many(self, charts: Iterable[Chart]) -> int:
        """Insert or update every chart; returns how many were written."""
        return self.executemany(self._UPSERT, (_chart_params(c) for c in charts))

    def get_by_id(self, chart_id: UUID) -> Optional[Chart]:
        row = self.fetchone(
            "SELECT * FROM charts WHERE chart_id = ?;", (uuid_to_db(chart_id),)
        )
        return _row_to_chart(row) if row else None

    def get_all(self, level: Optional[int] = None) -> list[Chart]:
        """Fetch the catalog, optionally restricted to one level.

        Charts come back ordered by (level, song_name, chart_type) so
        "first matching chart" lookups are stable across runs.

        Args:
            level: If given, only charts at this level.

        Returns:
            List of ``Chart`` objects.
        """
        if level is None:
            rows = self.fetchall(
                "SELECT * FROM charts ORDER BY level, song_name, chart_type;"
            )
        else:
            rows = self.fetchall(
                "SELECT * FROM charts WHERE level = ? ORDER BY song_name, chart_type;",
                (level,),
            )
        return [_row_to_chart(r) for r in rows]

    def existing_ids(self) -> set[UUID]:
        rows = self.fetchall("SELECT chart_id FROM charts;")
        return {uuid_from_db(r["chart_id"]) for r in rows}

    def count(self) -> int:
        row = self.fetchone("SELECT COUNT(*) AS n FROM charts;")
        return int(row["n"]) if row else 0


class TierListRepository(BaseRepository):
    """Read/write access to the ``tier_list_entries`` table."""

    def replace_list(self, name: str, entries: Iterable[TierListEntry]) -> int:
        """Replace every entry of tier list ``name``, keeping the given order.

        Args:
            name: Tier list name, e.g. ``"Popularity"``.
            entries: Entries in list order; their ``tier_list_name`` must be ``name``.

        Returns:
            Number of entries written.

        Raises:
            ValueError: If an entry belongs to a different tier list.
        """
        params = []
        for position, entry in enumerate(entries):
            if entry.tier_list_name != name:
                raise ValueError(
                    f"Entry for chart {entry.chart_id} belongs to tier list "
                    f"{entry.tier_list_name!r}, not {name!r}."
                )
            params.append(
                (name, uuid_to_db(entry.chart_id), entry.category.value, position)
            )

        self.execute("DELETE FROM tier_list_entries WHERE tier_list_name = ?;", (name,))
        written = self.executemany(
            """
            INSERT INTO tier_list_entries (tier_list_name, chart_id, category, position)
            VALUES (?, ?, ?, ?);
            """,
            params,
        )
        logger.debug("Tier list %r replaced with %d entries", name, written)
        return written

    def get_list(self, name: str) -> list[TierListEntry]:
        rows = self.fetchall(
            """
            SELECT * FROM tier_list_entries
            WHERE tier_list_name = ?
            ORDER BY position;
            """,
            (name,),
        )
        return [
            TierListEntry(
                chart_id=uuid_from_db(r["chart_id"]),
                tier_list_name=r["tier_list_name"],
                category=TierListCategory(r["category"]),
            )
            for r in rows
        ]

    def list_names(self) -> list[str]:
        rows = self.fetchall(
            "SELECT DISTINCT tier_list_name FROM tier_list_entries ORDER BY tier_list_name;"
        )
        return [r["tier_list_name"] for r in rows]


class BountyRepository(BaseRepository):
    """Read/write access to the ``chart_bounties`` table."""

    def upsert_many(self, bounties: Iterable[Bounty]) -> int:
        return self.executemany(
            """
            INSERT INTO chart_bounties (chart_id, worth)
            VALUES (?, ?)
            ON CONFLICT(chart_id) DO UPDATE SET worth = excluded.worth;
            """,
            ((uuid_to_db(b.chart_id), b.worth) for b in bounties),
        )

    def get_all(self) -> list[Bounty]:
        rows = self.fetchall("SELECT * FROM chart_bounties ORDER BY worth DESC, chart_id;")
        return [
            Bounty(chart_id=uuid_from_db(r["chart_id"]), worth=r["worth"]) for r in rows
        ]

    def delete(self, chart_id: UUID) -> bool:
        """Close the bounty on ``chart_id``; returns ``False`` if none was open."""
        cur = self.execute(
            "DELETE FROM chart_bounties WHERE chart_id = ?;", (uuid_to_db(chart_id),)
        )
        return cur.rowcount > 0


# ── Row mappers ───────────────────────────────────────────────────────────────

def _chart_params(chart: Chart) -> tuple:
    return (
        uuid_to_db(chart.chart_id),
        chart.song_name,
        chart.chart_type.value,
        chart.level,
    )


def _row_to_chart(row) -> Chart:
    return Chart(
        chart_id=uuid_from_db(row["chart_id"]),
        song_name=row["song_name"],
        chart_type=ChartType(row["chart_type"]),
        level=row["level"],
    )
