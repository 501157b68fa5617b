"""
SQLite connections for the CLI and the SQLite data source.

    with get_connection(config.database.db_path, initialize=True) as conn:
        source = SqliteChartDataSource(conn)

The block commits when it exits normally and rolls back when it raises;
the connection is closed either way.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


def _set_pragmas(conn: sqlite3.Connection, wal_mode: bool, busy_timeout_ms: int) -> None:
    # must run before the first statement that touches a table
    conn.execute("PRAGMA foreign_keys = ON;")
    conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
    if wal_mode:
        mode = conn.execute("PRAGMA journal_mode = WAL;").fetchone()[0]
        logger.debug("journal_mode=%s", mode)


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
    initialize: bool = False,
) -> Iterator[sqlite3.Connection]:
    """Open ``db_path`` with foreign keys enforced and ``sqlite3.Row`` rows.

    Args:
        db_path:         Database file (its directory is created) or ``":memory:"``.
        wal_mode:        Use WAL journaling; ignored for in-memory databases.
        busy_timeout_ms: How long to wait on a locked database.
        initialize:      Create the schema and apply pending migrations first.
    """
    in_memory = db_path == IN_MEMORY
    if not in_memory:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row
    try:
        _set_pragmas(conn, wal_mode and not in_memory, busy_timeout_ms)
        if initialize:
            from chart_recommender.db.migrations import run_migrations
            from chart_recommender.db.schema import apply_schema

            apply_schema(conn)
            run_migrations(conn)
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()
