"""
Root logger setup for CLI runs.

Library modules only call ``logging.getLogger(__name__)``. The CLI calls
``configure_logging(config.logging)`` once per command, which replaces any
existing root handlers with:

  - a stdout handler, always;
  - a file handler when ``log_file`` is set (its directory is created).

With ``json_format = true`` every line is one JSON object::

    {"ts": "2026-10-19T12:00:00Z", "level": "INFO", "logger": "chart_recommender.recommendations.engine",
     "msg": "Built 27 recommendations for user=...", "user_id": "...", "count": 27}

Anything passed through ``extra=`` (the engine uses ``user_id``,
``strategy`` and ``count``) becomes a top-level key.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chart_recommender.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Attributes every LogRecord carries; anything else came from ``extra=``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class JsonLineFormatter(logging.Formatter):
    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, TIMESTAMP_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _text_formatter() -> logging.Formatter:
    formatter = logging.Formatter(TEXT_FORMAT, datefmt=TIMESTAMP_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def configure_logging(config: "LoggingConfig") -> None:
    """Install stdout and optional file handlers on the root logger.

    Args:
        config: ``[logging]`` section of ``AppConfig``.
    """
    formatter = JsonLineFormatter() if config.json_format else _text_formatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=config.level, handlers=handlers, force=True)
    # asyncio debug chatter is noise next to the engine's own records
    logging.getLogger("asyncio").setLevel(logging.WARNING)
