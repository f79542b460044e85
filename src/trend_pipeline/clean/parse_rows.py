"""Row parsing: raw heterogeneous rows → `TimeSeriesPoint` sequence.

Per-row defects never abort the parse:

- a missing or unparsable date drops the row;
- a missing or non-numeric value is replaced by ``0.0``;
- an unparsable target / historical value becomes ``None``.

Each of these is recorded in a `ParseReport` and logged. Only a mapping that
declares no usable date or value field (or a DataFrame lacking a declared
column) raises `SchemaError`.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import numpy as np
import pandas as pd

from trend_pipeline.errors import InvalidArgumentError, SchemaError
from trend_pipeline.ingest.field_mapping import FieldKey, FieldMapping
from trend_pipeline.ingest.host_payload import unwrap_cell
from trend_pipeline.ingest.load_table import rows_from_frame
from trend_pipeline.models import TimeSeriesPoint

log = logging.getLogger(__name__)

_COMPACT_DATE = re.compile(r"^\d{8}$")
_COMPACT_MIN, _COMPACT_MAX = 10_000_101, 99_991_231


@dataclass
class ParseIssue:
    severity: str  # "warning" or "info"
    category: str  # "date", "value", "target", "historical_value"
    row: int
    message: str


@dataclass
class ParseReport:
    rows_read: int = 0
    rows_kept: int = 0
    issues: list[ParseIssue] = field(default_factory=list)

    def add(self, severity: str, category: str, row: int, message: str) -> None:
        self.issues.append(ParseIssue(severity=severity, category=category, row=row, message=message))
        level = logging.WARNING if severity == "warning" else logging.INFO
        log.log(level, "row %d: %s", row, message)

    @property
    def warnings(self) -> list[ParseIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def rows_dropped(self) -> int:
        return self.rows_read - self.rows_kept

    def messages(self) -> list[str]:
        return [f"row {i.row}: {i.message}" for i in self.issues]


def _is_missing(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return raw.strip() == ""
    if isinstance(raw, float):
        return bool(np.isnan(raw))
    return False


def parse_date(raw: Any) -> datetime | None:
    """Parse a cell into a day-truncated naive `datetime`, or ``None``.

    Accepts datetime-like objects, ISO-like strings, compact ``YYYYMMDD``
    strings or integers, and other numbers as epoch milliseconds. Aware
    instants keep their wall-clock time.
    """
    raw = unwrap_cell(raw)
    # multi-element lists and leftover mappings are not a single date
    if _is_missing(raw) or isinstance(raw, (bool, list, tuple, set, Mapping)):
        return None
    try:
        if isinstance(raw, (int, float, np.integer, np.floating)):
            if not np.isfinite(raw):
                return None
            if float(raw).is_integer() and _COMPACT_MIN <= raw <= _COMPACT_MAX:
                ts = pd.to_datetime(str(int(raw)), format="%Y%m%d", errors="coerce")
            else:
                ts = pd.to_datetime(raw, unit="ms", errors="coerce")
        elif isinstance(raw, str):
            text = raw.strip()
            if _COMPACT_DATE.match(text):
                ts = pd.to_datetime(text, format="%Y%m%d", errors="coerce")
            else:
                ts = pd.to_datetime(text, errors="coerce")
        else:
            ts = pd.to_datetime(raw, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None

    if not isinstance(ts, pd.Timestamp) or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize().to_pydatetime()


def parse_number(raw: Any) -> float | None:
    """Parse a cell into a finite float, or ``None`` when it is not numeric."""
    raw = unwrap_cell(raw)
    if _is_missing(raw) or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip().replace(",", "")
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return None
    return number if np.isfinite(number) else None


def _cell(row: Any, key: FieldKey) -> Any:
    """Read one field from a name-indexed or position-indexed row."""
    if isinstance(row, Mapping):
        return unwrap_cell(row.get(key))
    if isinstance(key, int) and isinstance(row, Sequence) and not isinstance(row, str):
        return unwrap_cell(row[key]) if key < len(row) else None
    return None


def _optional_measure(
    row: Any,
    key: FieldKey | None,
    category: str,
    index: int,
    report: ParseReport,
) -> float | None:
    if key is None:
        return None
    raw = _cell(row, key)
    if _is_missing(raw):
        return None
    number = parse_number(raw)
    if number is None:
        report.add("info", category, index, f"unparsable {category} {raw!r}; treated as absent")
    return number


def parse_rows(
    raw_rows: Iterable[Any] | pd.DataFrame,
    mapping: FieldMapping,
    report: ParseReport | None = None,
) -> list[TimeSeriesPoint]:
    """Convert raw rows into points, in input order.

    Args:
        raw_rows: Iterable of dict-like or list-like rows, or a DataFrame.
        mapping: Where each field lives within a row.
        report: Optional report that collects per-row diagnostics.

    Returns:
        List of `TimeSeriesPoint`, one per row with a usable date.

    Raises:
        SchemaError: if the mapping has no usable date/value field, or a
            DataFrame lacks a declared column.
        InvalidArgumentError: if ``raw_rows`` is not an iterable of rows.
    """
    mapping.validate()
    if report is None:
        report = ParseReport()

    if isinstance(raw_rows, pd.DataFrame):
        missing = [c for c in mapping.declared_columns() if c not in raw_rows.columns]
        if missing:
            raise SchemaError(f"Column(s) {missing} not found in data.")
        raw_rows = rows_from_frame(raw_rows)
    if isinstance(raw_rows, (str, bytes, Mapping)) or not isinstance(raw_rows, Iterable):
        raise InvalidArgumentError("raw_rows", type(raw_rows).__name__, "must be an iterable of rows")

    target_key = mapping.target_field if mapping.has_target else None
    historical_key = mapping.historical_field if mapping.has_historical else None

    points: list[TimeSeriesPoint] = []
    for index, row in enumerate(raw_rows):
        report.rows_read += 1

        raw_date = _cell(row, mapping.date_field)
        when = parse_date(raw_date)
        if when is None:
            report.add("warning", "date", index, f"missing or unparsable date {raw_date!r}; row dropped")
            continue

        raw_value = _cell(row, mapping.value_field)
        value = parse_number(raw_value)
        if value is None:
            report.add("warning", "value", index, f"missing or non-numeric value {raw_value!r}; using 0")
            value = 0.0

        points.append(
            TimeSeriesPoint(
                date=when,
                value=value,
                target=_optional_measure(row, target_key, "target", index, report),
                historical_value=_optional_measure(row, historical_key, "historical_value", index, report),
            )
        )
        report.rows_kept += 1

    log.info(
        "Parsed %d of %d rows (%d dropped, %d warnings)",
        report.rows_kept,
        report.rows_read,
        report.rows_dropped,
        len(report.warnings),
    )
    return points
