"""
Base repository with the SQL helpers every repository shares.

Repositories receive an open ``sqlite3.Connection`` (normally from
``get_connection()``) and never open or close it themselves. All SQL is
explicit; repositories take and return pydantic models, not raw rows.
UUID columns are canonical lowercase TEXT, converted by ``uuid_to_db`` /
``uuid_from_db``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Iterable, Optional
from uuid import UUID

logger = logging.getLogger(__name__)

Params = tuple[Any, ...] | dict[str, Any]


def uuid_to_db(value: UUID) -> str:
    return str(value)


def uuid_from_db(value: str) -> UUID:
    return UUID(value)


class BaseRepository:
    """Shared SQL execution helpers.

    Attributes:
        conn: The active ``sqlite3.Connection``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        """Execute one statement with ``?`` or ``:name`` placeholders."""
        logger.debug("SQL: %s | params: %s", " ".join(sql.split()), params)
        return self.conn.execute(sql, params)

    def executemany(self, sql: str, params_list: Iterable[Params]) -> int:
        """Execute ``sql`` once per parameter set.

        Returns:
            Number of parameter sets executed.
        """
        rows = list(params_list)
        logger.debug("SQL (many): %s | count: %d", " ".join(sql.split()), len(rows))
        self.conn.executemany(sql, rows)
        return len(rows)

    def fetchone(self, sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()
