"""
SQLite schema DDL: all CREATE TABLE and CREATE INDEX statements.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent.

Table creation order respects foreign key dependencies:
  1. charts            (no FKs)
  2. tier_list_entries (→ charts)
  3. chart_bounties    (→ charts)
  4. titles            (no FKs; skill titles name their chart by song/type/level)
  5. player_stats      (no FKs; users live outside this database)
  6. recorded_scores   (→ charts)
  7. suggestion_feedback (→ charts)

UUIDs are stored as canonical lowercase TEXT; timestamps as ISO-8601 UTC TEXT.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_CHARTS = """
CREATE TABLE IF NOT EXISTS charts (
    chart_id    TEXT    PRIMARY KEY,
    song_name   TEXT    NOT NULL,
    chart_type  TEXT    NOT NULL CHECK (chart_type IN ('Single', 'Double', 'CoOp')),
    level       INTEGER NOT NULL CHECK (level BETWEEN 1 AND 29),
    created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
CREATE INDEX IF NOT EXISTS idx_charts_level ON charts(level, chart_type);
"""

_DDL_TIER_LIST_ENTRIES = """
CREATE TABLE IF NOT EXISTS tier_list_entries (
    tier_list_name  TEXT NOT NULL,
    chart_id        TEXT NOT NULL REFERENCES charts(chart_id),
    category        TEXT NOT NULL,
    position        INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (tier_list_name, chart_id)
);
"""

_DDL_CHART_BOUNTIES = """
CREATE TABLE IF NOT EXISTS chart_bounties (
    chart_id    TEXT    PRIMARY KEY REFERENCES charts(chart_id),
    worth       INTEGER NOT NULL CHECK (worth >= 0)
);
"""

_DDL_TITLES = """
CREATE TABLE IF NOT EXISTS titles (
    name                TEXT    PRIMARY KEY,
    kind                TEXT    NOT NULL CHECK (kind IN ('difficulty', 'skill')),
    level               INTEGER NOT NULL,
    song_name           TEXT,
    chart_type          TEXT,
    completion_required INTEGER NOT NULL
);
"""

_DDL_PLAYER_STATS = """
CREATE TABLE IF NOT EXISTS player_stats (
    user_id             TEXT PRIMARY KEY,
    competitive_level   REAL NOT NULL,
    updated_at          TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_RECORDED_SCORES = """
CREATE TABLE IF NOT EXISTS recorded_scores (
    user_id         TEXT    NOT NULL,
    chart_id        TEXT    NOT NULL REFERENCES charts(chart_id),
    score           INTEGER CHECK (score IS NULL OR score BETWEEN 0 AND 1000000),
    is_broken       INTEGER NOT NULL DEFAULT 0,
    recorded_date   TEXT    NOT NULL,
    PRIMARY KEY (user_id, chart_id)
);
CREATE INDEX IF NOT EXISTS idx_scores_user_date ON recorded_scores(user_id, recorded_date);
"""

_DDL_SUGGESTION_FEEDBACK = """
CREATE TABLE IF NOT EXISTS suggestion_feedback (
    user_id             TEXT    NOT NULL,
    chart_id            TEXT    NOT NULL REFERENCES charts(chart_id),
    suggestion_category TEXT    NOT NULL,
    should_hide         INTEGER NOT NULL,
    updated_at          TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    PRIMARY KEY (user_id, chart_id, suggestion_category)
);
"""

_ALL_DDL = [
    _DDL_CHARTS,
    _DDL_TIER_LIST_ENTRIES,
    _DDL_CHART_BOUNTIES,
    _DDL_TITLES,
    _DDL_PLAYER_STATS,
    _DDL_RECORDED_SCORES,
    _DDL_SUGGESTION_FEEDBACK,
]

# Table names for introspection / tests
ALL_TABLE_NAMES = [
    "charts",
    "tier_list_entries",
    "chart_bounties",
    "titles",
    "player_stats",
    "recorded_scores",
    "suggestion_feedback",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``. Safe to call repeatedly."""
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
