"""
Recommendation report writer: CSV and JSON files plus a terminal table.

Pure I/O; no DB access. Every function takes the engine's output list
as-is and keeps its order: categories appear in the order the strategies
ran, charts in the order each strategy chose them.

Output files
------------
  data/outputs/recommendations/
    recommendations_{user_id}_{date}.csv   -- one row per recommendation
    recommendations_{user_id}_{date}.json  -- grouped by category
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from pathlib import Path
from typing import Mapping, Optional
from uuid import UUID

from chart_recommender.models.chart import Chart
from chart_recommender.models.recommendation import ChartRecommendation

logger = logging.getLogger(__name__)

_CSV_FIELDS = [
    "position", "category", "chart_id", "song_name", "chart_type", "level",
    "description", "detail",
]


def group_by_category(
    recs: list[ChartRecommendation],
) -> dict[str, list[ChartRecommendation]]:
    """Group recommendations by category, keeping first-appearance order."""
    grouped: dict[str, list[ChartRecommendation]] = {}
    for rec in recs:
        grouped.setdefault(rec.category, []).append(rec)
    return grouped


def _chart_fields(chart: Optional[Chart]) -> dict:
    if chart is None:
        return {"song_name": "", "chart_type": "", "level": ""}
    return {
        "song_name":  chart.song_name,
        "chart_type": chart.chart_type.value,
        "level":      chart.level,
    }


def write_recommendation_csv(
    recs: list[ChartRecommendation],
    output_dir: Path,
    user_id: UUID,
    run_date: date | None = None,
    charts_by_id: Mapping[UUID, Chart] | None = None,
) -> Path:
    """Write one CSV row per recommendation.

    Args:
        recs:         Engine output, in output order.
        output_dir:   Target directory (created if missing).
        user_id:      Player the list was built for (used in filename).
        run_date:     Date label for the filename. Defaults to today.
        charts_by_id: Optional catalog lookup to add song, type and level.

    Returns:
        Path to the written CSV file.
    """
    if run_date is None:
        run_date = date.today()
    charts_by_id = charts_by_id or {}

    output_dir.mkdir(parents=True, exist_ok=True)
    csv_path = output_dir / f"recommendations_{user_id}_{run_date}.csv"

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_FIELDS)
        writer.writeheader()
        for position, rec in enumerate(recs, start=1):
            writer.writerow(
                {
                    "position":    position,
                    "category":    rec.category,
                    "chart_id":    str(rec.chart_id),
                    **_chart_fields(charts_by_id.get(rec.chart_id)),
                    "description": rec.description,
                    "detail":      rec.detail or "",
                }
            )

    logger.info("Recommendation CSV written: %s (%d rows)", csv_path, len(recs))
    return csv_path


def write_recommendation_json(
    recs: list[ChartRecommendation],
    output_dir: Path,
    user_id: UUID,
    run_date: date | None = None,
    charts_by_id: Mapping[UUID, Chart] | None = None,
) -> Path:
    """Write recommendations grouped by category to a JSON file.

    Each category carries its description once and a ranked chart list.

    Returns:
        Path to the written JSON file.
    """
    if run_date is None:
        run_date = date.today()
    charts_by_id = charts_by_id or {}

    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / f"recommendations_{user_id}_{run_date}.json"

    payload: dict = {
        "user_id":      str(user_id),
        "generated_at": run_date.isoformat(),
        "total":        len(recs),
        "categories":   [],
    }
    for category, items in group_by_category(recs).items():
        payload["categories"].append(
            {
                "category":    category,
                "description": items[0].description,
                "charts": [
                    {
                        "rank":     rank,
                        "chart_id": str(rec.chart_id),
                        **_chart_fields(charts_by_id.get(rec.chart_id)),
                        "detail":   rec.detail,
                    }
                    for rank, rec in enumerate(items, start=1)
                ],
            }
        )

    json_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Recommendation JSON written: %s", json_path)
    return json_path


def format_recommendations_table(
    recs: list[ChartRecommendation],
    user_id: UUID,
    charts_by_id: Mapping[UUID, Chart] | None = None,
) -> str:
    """Format recommendations as an ASCII table for ``typer.echo()``.

    One block per category, in output order::

      [PUSH PGS]
        Rank  Chart                           Type     Lvl  Detail
        ------------------------------------------------------------
           1  Conflict                        Single    21

    Returns:
        Multi-line string.
    """
    charts_by_id = charts_by_id or {}
    lines: list[str] = ["", "=== Recommended Charts ===", f"  User: {user_id}"]

    if not recs:
        lines.append("")
        lines.append("  (no recommendations; record some scores or import seed data)")
        return "\n".join(lines)

    for category, items in group_by_category(recs).items():
        lines.append("")
        lines.append(f"  [{category.upper()}]  {items[0].description}")
        header = f"    {'Rank':>4}  {'Chart':<30}  {'Type':<7}  {'Lvl':>3}  Detail"
        lines.append(header)
        lines.append("    " + "-" * (len(header) - 4))
        for rank, rec in enumerate(items, start=1):
            chart = charts_by_id.get(rec.chart_id)
            name  = chart.song_name[:30] if chart else str(rec.chart_id)[:30]
            ctype = chart.chart_type.value if chart else "?"
            level = str(chart.level) if chart else "?"
            lines.append(
                f"    {rank:>4}  {name:<30}  {ctype:<7}  {level:>3}  {rec.detail or ''}"
            )
    return "\n".join(lines)
