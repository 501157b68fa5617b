"""
Ordered, forward-only schema migrations.

``apply_schema()`` always creates the current tables; a migration exists
only for a change that must also reach databases created by an older
release. Each step runs once: its id is written to ``schema_migrations``
after it succeeds, and ``run_migrations()`` skips ids already present.

Add a step by appending a ``Migration`` to ``MIGRATIONS``. Never reorder or
rename existing ids.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from typing import NamedTuple

logger = logging.getLogger(__name__)


class Migration(NamedTuple):
    migration_id: str
    description: str
    apply: Callable[[sqlite3.Connection], None]


_LEDGER_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    migration_id  TEXT NOT NULL PRIMARY KEY,
    description   TEXT NOT NULL,
    applied_at    TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""


def _baseline(conn: sqlite3.Connection) -> None:
    """Nothing to change; marks databases created by ``apply_schema()``."""


def _hidden_feedback_index(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_feedback_user_hidden
            ON suggestion_feedback(user_id, suggestion_category)
            WHERE should_hide = 1;
        """
    )


MIGRATIONS: tuple[Migration, ...] = (
    Migration("0001_baseline", "Initial chart recommender schema", _baseline),
    Migration(
        "0002_hidden_feedback_index",
        "Partial index over hidden suggestion_feedback rows",
        _hidden_feedback_index,
    ),
)


def applied_migration_ids(conn: sqlite3.Connection) -> set[str]:
    conn.execute(_LEDGER_DDL)
    return {row[0] for row in conn.execute("SELECT migration_id FROM schema_migrations;")}


def run_migrations(conn: sqlite3.Connection) -> int:
    """Apply pending migrations in order, committing after each.

    Returns:
        Number of migrations applied by this call.

    Raises:
        sqlite3.Error: The failing step is rolled back and nothing after it runs.
    """
    done = applied_migration_ids(conn)
    conn.commit()

    pending = [m for m in MIGRATIONS if m.migration_id not in done]
    for migration in pending:
        logger.info("Migration %s: %s", migration.migration_id, migration.description)
        try:
            migration.apply(conn)
            conn.execute(
                "INSERT INTO schema_migrations (migration_id, description) VALUES (?, ?);",
                (migration.migration_id, migration.description),
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            logger.exception("Migration %s failed", migration.migration_id)
            raise

    logger.debug("%d migration(s) applied, %d already present", len(pending), len(done))
    return len(pending)
