"""
Chart Recommender CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Open the SQLite database (schema applied on open).
  4. Execute the action (import, recommend, feedback).
  5. Report the result to stdout.

Install and run::

    pip install -e .
    chart-recommender --help
    chart-recommender init-db
    chart-recommender import-data
    chart-recommender recommend 6f1c2d3e-0000-4000-8000-000000000001 --seed 7
    chart-recommender submit-feedback USER_ID CHART_ID "Push PGs" --hide
    chart-recommender show-feedback USER_ID
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import date
from pathlib import Path
from typing import Optional
from uuid import UUID

import typer

app = typer.Typer(
    name="chart-recommender",
    help="Chart practice recommendations from a player's score history.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from chart_recommender.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    from chart_recommender.utils.logging import configure_logging
    configure_logging(config.logging)


def _open_db(config, db_path: Optional[str] = None):
    """Connection context for ``db_path`` (or the configured path), schema applied."""
    from chart_recommender.db.connection import get_connection

    return get_connection(
        db_path or config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
        initialize=True,
    )


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Create the SQLite database, apply the schema and run migrations.

    Safe to run repeatedly; all DDL uses IF NOT EXISTS.
    """
    from chart_recommender.db.connection import get_connection
    from chart_recommender.db.migrations import run_migrations
    from chart_recommender.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)
        migrations_applied = run_migrations(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo(f"  Migrations applied: {migrations_applied}")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print the parsed values."""
    config = _load_config_or_exit(config_path)
    rec = config.recommendations

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:     {config.database.db_path}")
    typer.echo(f"  Seed file:         {config.data.seed_file}")
    typer.echo(f"  Output dir:        {config.data.output_dir}")
    typer.echo(f"  Default level:     {rec.default_competitive_level}")
    typer.echo(f"  Concurrent:        {rec.concurrent_strategies}")
    typer.echo(f"  Random seed:       {rec.random_seed if rec.random_seed is not None else '(entropy)'}")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("import-data")
def import_data(
    seed_file: Optional[str] = typer.Option(
        None,
        "--seed-file",
        help="Seed JSON file (default: [data] seed_file from config).",
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Validate the seed file without writing to the database.",
    ),
) -> None:
    """Import charts, tier lists, titles, bounties and players from JSON."""
    from pydantic import ValidationError

    from chart_recommender.ingestion.seed_loader import import_seed, load_seed_file

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    seed_path = Path(seed_file or config.data.seed_file)
    if not seed_path.exists():
        typer.echo(f"[ERROR] Seed file not found: {seed_path}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Loading seed data from: {seed_path}")
    try:
        seed = load_seed_file(seed_path)
    except json.JSONDecodeError as exc:
        typer.echo(f"[ERROR] JSON parse error: {exc}", err=True)
        raise typer.Exit(code=1)
    except ValidationError as exc:
        typer.echo(f"[ERROR] Seed file failed validation:\n{exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(
        f"  Parsed {len(seed.charts)} chart(s), {len(seed.titles)} title(s), "
        f"{len(seed.players)} player(s)."
    )
    if dry_run:
        typer.echo("[DRY RUN] No data written to database.")
        return

    try:
        with _open_db(config, db_path) as conn:
            summary = import_seed(conn, seed)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    for key, count in summary.model_dump().items():
        typer.echo(f"  {key:<18} {count}")
    typer.echo("[OK] Seed data imported.")


@app.command("recommend")
def recommend(
    user_id: UUID = typer.Argument(..., help="Player to build recommendations for."),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output-dir",
        help="Directory for CSV/JSON output (default: [data] output_dir).",
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Random seed for reproducible sampling.",
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Print a player's recommended charts and write them to CSV and JSON."""
    from chart_recommender.recommendations.engine import RecommendationEngine
    from chart_recommender.recommendations.reporter import (
        format_recommendations_table,
        write_recommendation_csv,
        write_recommendation_json,
    )
    from chart_recommender.sources.sqlite_source import SqliteChartDataSource

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        with _open_db(config, db_path) as conn:
            source = SqliteChartDataSource(conn)
            engine = RecommendationEngine(source, config.recommendations)
            recs = asyncio.run(engine.get_recommendations(user_id, seed=seed))
            charts_by_id = {c.chart_id: c for c in source.charts.get_all()}
    except sqlite3.Error as exc:
        typer.echo(f"[ERROR] Database error: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_recommendations_table(recs, user_id, charts_by_id))

    out_dir = Path(output_dir or config.data.output_dir)
    today = date.today()
    csv_path = write_recommendation_csv(recs, out_dir, user_id, today, charts_by_id)
    json_path = write_recommendation_json(recs, out_dir, user_id, today, charts_by_id)

    typer.echo("")
    typer.echo(f"  CSV:  {csv_path}")
    typer.echo(f"  JSON: {json_path}")
    typer.echo(f"[OK] {len(recs)} recommendation(s).")


@app.command("submit-feedback")
def submit_feedback(
    user_id: UUID = typer.Argument(..., help="Player giving the feedback."),
    chart_id: UUID = typer.Argument(..., help="Chart the feedback is about."),
    category: str = typer.Argument(..., help='Recommendation category, e.g. "Push PGs".'),
    hide: bool = typer.Option(
        True,
        "--hide/--show",
        help="Hide the chart from this category, or show it again.",
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Hide (or un-hide) a chart within one recommendation category."""
    from pydantic import ValidationError

    from chart_recommender.models.recommendation import Feedback
    from chart_recommender.recommendations.engine import RecommendationEngine
    from chart_recommender.sources.sqlite_source import SqliteChartDataSource
    from chart_recommender.taxonomy.chart_taxonomy import is_known_category

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        feedback = Feedback(chart_id=chart_id, suggestion_category=category, should_hide=hide)
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid feedback: {exc}", err=True)
        raise typer.Exit(code=1)

    if not is_known_category(category):
        typer.echo(f"[WARN] '{category}' is not a known recommendation category.", err=True)

    try:
        with _open_db(config, db_path) as conn:
            engine = RecommendationEngine(SqliteChartDataSource(conn), config.recommendations)
            stored = asyncio.run(engine.submit_feedback(user_id, feedback))
    except sqlite3.IntegrityError:
        typer.echo(f"[ERROR] Unknown chart: {chart_id}", err=True)
        raise typer.Exit(code=1)

    action = "hidden from" if stored.should_hide else "shown in"
    typer.echo(f"[OK] Chart {stored.chart_id} {action} '{stored.suggestion_category}'.")


@app.command("show-feedback")
def show_feedback(
    user_id: UUID = typer.Argument(..., help="Player whose feedback to list."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """List a player's stored feedback, grouped by category."""
    from chart_recommender.recommendations.feedback import SuppressionIndex
    from chart_recommender.sources.sqlite_source import SqliteChartDataSource

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_db(config, db_path) as conn:
        source = SqliteChartDataSource(conn)
        entries = asyncio.run(source.get_feedback(user_id))

    if not entries:
        typer.echo(f"No feedback recorded for {user_id}.")
        return

    index = SuppressionIndex.from_feedback(entries)
    typer.echo(f"Feedback for {user_id} ({len(index)} hidden):")
    current = None
    for fb in entries:
        if fb.suggestion_category != current:
            current = fb.suggestion_category
            typer.echo(f"  [{current}]")
        state = "hidden" if fb.should_hide else "shown"
        typer.echo(f"    {fb.chart_id}  {state}")


if __name__ == "__main__":
    app()
