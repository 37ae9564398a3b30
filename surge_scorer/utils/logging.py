"""
Logging setup for surge-scorer.

Call ``configure_logging(config)`` once at CLI entry (before any analysis
work). Library modules only ever use ``logging.getLogger(__name__)``.

Analysis context
----------------
Log calls made while analysing a series pass ``extra=log_context(symbol, stage)``
so every line can be traced back to an instrument and a pipeline stage
(``parse``, ``regenerate``, ``score``, ``records``, ``analyze``). The text format
appends them as ``[AAPL/score]``; the JSON format writes them as top-level
``symbol`` / ``stage`` keys::

    {"ts": "2026-02-24T15:00:00Z", "level": "INFO", "logger": "...",
     "symbol": "AAPL", "stage": "score", "msg": "..."}

Any other ``extra=`` field is carried into the JSON object as well.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from surge_scorer.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s%(context)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

CONTEXT_FIELDS = ("symbol", "stage")

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "context"}


def log_context(symbol: Optional[str] = None, stage: Optional[str] = None) -> dict[str, Any]:
    """Build the ``extra=`` mapping for a log call made during an analysis."""
    return {k: v for k, v in (("symbol", symbol), ("stage", stage)) if v is not None}


def _context_suffix(record: logging.LogRecord) -> str:
    parts = [str(getattr(record, f)) for f in CONTEXT_FIELDS if getattr(record, f, None)]
    return f" [{'/'.join(parts)}]" if parts else ""


class _TextFormatter(logging.Formatter):
    """Plain text lines with the analysis context after the logger name."""

    def format(self, record: logging.LogRecord) -> str:
        record.context = _context_suffix(record)
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """Emit one JSON object per log line.

    Fields: ``ts``, ``level``, ``logger``, then ``symbol`` / ``stage`` when
    present, then any other ``extra=`` fields, then ``msg``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
        }
        for key in CONTEXT_FIELDS:
            if getattr(record, key, None) is not None:
                payload[key] = getattr(record, key)
        for key, val in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in payload and not key.startswith("_"):
                payload[key] = val
        payload["msg"] = record.getMessage()
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(config: "LoggingConfig", debug: bool = False) -> None:
    """Configure the root logger from a ``LoggingConfig`` instance.

    Sets up a stderr handler (stdout stays clean for command output), an
    optional file handler when ``config.log_file`` is set, and JSON lines
    when ``config.json_format`` is ``True``.

    Args:
        config: Logging configuration section from ``AppConfig``.
        debug:  ``AppConfig.debug``; forces ``DEBUG`` regardless of
                ``config.level``.
    """
    level = logging.DEBUG if debug else getattr(logging, config.level.upper(), logging.INFO)

    formatter: logging.Formatter
    if config.json_format:
        formatter = _JsonFormatter()
    else:
        formatter = _TextFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

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
