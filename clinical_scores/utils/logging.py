"""
Logging setup for the ``clinical-scores`` CLI.

Each command calls ``configure_logging(config.logging)`` once, right after the
layered config is loaded. The level comes from ``[logging] level`` or the
``CLINICAL_SCORES_LOG_LEVEL`` variable.

What the package logs:
  - INFO:  catalog loads (instrument count and source directory).
  - DEBUG: every selection transition, every evaluation (total, tier,
    completeness) and every calculator call with its inputs and result.

Inputs are clinical values, so DEBUG output written to ``log_file`` should be
handled like any other patient data.

Library modules only call ``logging.getLogger(__name__)``. An application that
embeds the evaluator configures logging itself and never calls this module.

Console output goes to stderr, so ``score --json`` on stdout stays parseable.

With ``json_format = true`` each record is one JSON object per line::

    {"ts": "2026-10-19T09:30:00Z", "level": "DEBUG", "logger": "clinical_scores.scoring.evaluator", "msg": "..."}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clinical_scores.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Attributes every LogRecord carries; anything else came from ``extra=``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class _JsonFormatter(logging.Formatter):
    """Emit one JSON object per log line.

    Fields: ``ts``, ``level``, ``logger``, ``msg``.
    Extra fields from ``extra=`` kwargs are included at the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        for key, val in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = val
        return json.dumps(payload, default=str)


def configure_logging(config: "LoggingConfig") -> None:
    """Point the root logger at stderr (and ``log_file`` if set).

    Replaces any handlers installed by a previous call, so CLI tests that
    invoke several commands in one process do not stack handlers.
    """
    level = getattr(logging, config.level.upper(), logging.WARNING)

    formatter: logging.Formatter
    if config.json_format:
        formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    handlers.append(console)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
