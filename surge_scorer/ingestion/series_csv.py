"""
Series normalizer: delimited daily price history → ordered ``OhlcvRow`` list.

Format - comma, semicolon or tab delimited, with a header row.
Header names are matched case-insensitively:
  date, open, high, low, close, volume

Required columns: ``date``, ``close``.
Optional columns: ``open``/``high``/``low`` (fall back to close when absent
or unparseable) and ``volume`` (0 when absent or unparseable).
A ``ticket`` column (some exporters' spelling of ticker) is tolerated and
ignored, as is any other unrecognised column.

Row handling
------------
A bad row never aborts the parse. These rows are skipped and reported as a
``RowWarning`` (and logged at WARNING):
  - fewer values than header columns
  - missing or unparseable date
  - missing, unparseable or non-positive close
  - a date already seen earlier in the file (first occurrence wins)

Blank lines are skipped silently. Surviving rows are sorted ascending by date.

Date formats
------------
ISO ``YYYY-MM-DD`` (with or without a time part), ``YYYY/MM/DD``,
``YYYYMMDD``, ``MM/DD/YYYY`` and ``DD-MM-YYYY``. Slash-separated dates with
the year last are read month-first.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional

from pydantic import ValidationError

from surge_scorer.models.factors import ExternalFactors
from surge_scorer.models.records import FactorRow
from surge_scorer.models.series import OhlcvRow
from surge_scorer.utils.logging import log_context

logger = logging.getLogger(__name__)

CANONICAL_COLUMNS = ("date", "open", "high", "low", "close", "volume")
IGNORED_COLUMNS = frozenset({"ticket"})
REQUIRED_COLUMNS = frozenset({"date", "close"})

_CANDIDATE_DELIMITERS = (",", ";", "\t")
_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%Y%m%d", "%m/%d/%Y", "%d-%m-%Y")


@dataclass(frozen=True)
class RowWarning:
    """A row that was skipped during parsing.

    Attributes:
        line_no: 1-based line number in the source text (header is line 1).
        reason:  Short human-readable reason.
        raw:     The offending line, as read.
    """

    line_no: int
    reason: str
    raw: str = ""


@dataclass(frozen=True)
class ParsedSeries:
    """Ordered OHLCV rows plus everything that was skipped on the way.

    Attributes:
        rows:     Valid rows, strictly ascending by date.
        warnings: One entry per skipped row.
        external: Previously stored external factor values by date. Only
                  populated by ``from_factor_rows()``; always empty for
                  freshly parsed text.
        symbol:   Instrument symbol when known.
    """

    rows: list[OhlcvRow]
    warnings: list[RowWarning] = field(default_factory=list)
    external: dict[date, ExternalFactors] = field(default_factory=dict)
    symbol: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @classmethod
    def from_factor_rows(cls, factor_rows: Iterable[FactorRow]) -> "ParsedSeries":
        """Rebuild a series from previously stored ``FactorRow`` records.

        Used when the original source text is no longer available. Stored
        indicators and deterministic flags are discarded (they are recomputed
        by the normal indicator/factor path); stored external factor values
        are kept and handed back through ``external``.

        Missing open/high/low fall back to close. Duplicate dates keep the
        first record seen.
        """
        rows: list[OhlcvRow] = []
        warnings: list[RowWarning] = []
        external: dict[date, ExternalFactors] = {}
        seen: set[date] = set()
        symbol: Optional[str] = None

        for i, rec in enumerate(factor_rows, start=1):
            symbol = symbol or rec.analysis_id
            if rec.date in seen:
                warnings.append(RowWarning(i, f"duplicate date {rec.date.isoformat()}"))
                continue
            try:
                row = OhlcvRow(
                    date=rec.date,
                    open=rec.open or rec.close,
                    high=rec.high or rec.close,
                    low=rec.low or rec.close,
                    close=rec.close,
                    volume=rec.volume,
                )
            except ValidationError as exc:
                warnings.append(RowWarning(i, f"invalid stored row: {exc.errors()[0]['msg']}"))
                continue
            seen.add(rec.date)
            rows.append(row)
            ext = rec.external_factors()
            if not ext.is_empty():
                external[rec.date] = ext

        for w in warnings:
            logger.warning(
                "Skipping stored factor row %d: %s", w.line_no, w.reason,
                extra=log_context(symbol, "regenerate"),
            )

        rows.sort(key=lambda r: r.date)
        logger.info(
            "Rebuilt %d rows from stored factor rows (%d skipped)", len(rows), len(warnings),
            extra=log_context(symbol, "regenerate"),
        )
        return cls(rows=rows, warnings=warnings, external=external, symbol=symbol)


def parse_series(text: str, symbol: Optional[str] = None) -> ParsedSeries:
    """Parse delimited price history into an ordered, validated series.

    Args:
        text:   Full file contents, header row first.
        symbol: Optional instrument symbol to attach to the result.

    Returns:
        ``ParsedSeries`` whose ``rows`` are strictly ascending by date. An
        input with a valid header but no valid rows yields empty ``rows``.

    Raises:
        ValueError: If the text has no header row or the header lacks a
            ``date`` or ``close`` column.
    """
    lines = text.lstrip("﻿").splitlines()
    header_idx = next((i for i, line in enumerate(lines) if line.strip()), None)
    if header_idx is None:
        raise ValueError("Price history is empty: no header row found.")

    delimiter = _detect_delimiter(lines[header_idx])
    reader = csv.reader(io.StringIO("\n".join(lines[header_idx:])), delimiter=delimiter)
    header = next(reader)
    columns = _map_header(header)

    missing = REQUIRED_COLUMNS - set(columns.values())
    if missing:
        raise ValueError(
            f"Price history header is missing required columns: {sorted(missing)}\n"
            f"Found columns: {[h.strip() for h in header]}"
        )

    rows: list[OhlcvRow] = []
    warnings: list[RowWarning] = []
    seen: set[date] = set()

    for offset, values in enumerate(reader, start=1):
        line_no = header_idx + offset + 1
        raw = delimiter.join(values)
        if not any(v.strip() for v in values):
            continue
        if len(values) < len(header):
            warnings.append(RowWarning(line_no, "insufficient columns", raw))
            continue

        fields = {
            canonical: values[idx].strip()
            for idx, canonical in columns.items()
        }

        day = _parse_date(fields.get("date", ""))
        if day is None:
            warnings.append(RowWarning(line_no, "missing or invalid date", raw))
            continue

        close = _parse_float(fields.get("close", ""))
        if close is None or close <= 0:
            warnings.append(RowWarning(line_no, "invalid close price", raw))
            continue

        if day in seen:
            warnings.append(RowWarning(line_no, f"duplicate date {day.isoformat()}", raw))
            continue

        rows.append(
            OhlcvRow(
                date=day,
                open=_positive_or(fields.get("open"), close),
                high=_positive_or(fields.get("high"), close),
                low=_positive_or(fields.get("low"), close),
                close=close,
                volume=_non_negative_or(fields.get("volume"), 0.0),
            )
        )
        seen.add(day)

    for w in warnings:
        logger.warning(
            "Skipping row %d: %s", w.line_no, w.reason, extra=log_context(symbol, "parse")
        )

    rows.sort(key=lambda r: r.date)
    logger.info(
        "Parsed %d rows (%d skipped)", len(rows), len(warnings),
        extra=log_context(symbol, "parse"),
    )
    return ParsedSeries(rows=rows, warnings=warnings, symbol=symbol)


# ── Private helpers ────────────────────────────────────────────────────────────

def _detect_delimiter(header_line: str) -> str:
    counts = {d: header_line.count(d) for d in _CANDIDATE_DELIMITERS}
    best = max(_CANDIDATE_DELIMITERS, key=lambda d: counts[d])
    return best if counts[best] > 0 else ","


def _map_header(header: list[str]) -> dict[int, str]:
    """Map column index → canonical field name for recognised columns.

    The first occurrence of a canonical name wins; ``ticket`` and unknown
    columns are dropped.
    """
    mapping: dict[int, str] = {}
    taken: set[str] = set()
    for idx, name in enumerate(header):
        key = name.strip().lower()
        if key in IGNORED_COLUMNS or key not in CANONICAL_COLUMNS or key in taken:
            continue
        mapping[idx] = key
        taken.add(key)
    return mapping


def _parse_date(value: str) -> Optional[date]:
    value = value.strip()
    if not value:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _positive_or(value: Optional[str], default: float) -> float:
    number = _parse_float(value)
    return number if number is not None and number > 0 else default


def _non_negative_or(value: Optional[str], default: float) -> float:
    number = _parse_float(value)
    return number if number is not None and number >= 0 else default
