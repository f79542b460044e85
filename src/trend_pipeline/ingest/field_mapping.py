"""Field mapping: which row field holds the date and which hold the measures.

A `FieldMapping` is resolved once per invocation, before any row is parsed.
Fields are addressed by name (dict-shaped rows) or by positional slot
(list-shaped rows). Helpers build a mapping from the dashboard host's field
descriptors or auto-detect one from a pandas DataFrame.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

import pandas as pd

from trend_pipeline.errors import SchemaError

FieldKey = Union[str, int]

# Config element ids used by the host's object-transform payload
DATE_ELEMENT = "dateDimension"
VALUE_ELEMENT = "valueMeasure"
TARGET_ELEMENT = "targetMeasure"
HISTORICAL_ELEMENT = "historicalValueMeasure"


def _usable(key: FieldKey | None) -> bool:
    if key is None or isinstance(key, bool):
        return False
    if isinstance(key, int):
        return key >= 0
    return isinstance(key, str) and key.strip() != ""


@dataclass(frozen=True)
class FieldMapping:
    """Resolved location of each field within a raw row.

    Attributes:
        date_field: Name or position of the date dimension.
        value_field: Name or position of the primary measure.
        target_field: Optional name or position of the target measure.
        historical_field: Optional name or position of the prior-period measure.
    """
    date_field: FieldKey | None
    value_field: FieldKey | None
    target_field: FieldKey | None = None
    historical_field: FieldKey | None = None

    @property
    def has_target(self) -> bool:
        return _usable(self.target_field)

    @property
    def has_historical(self) -> bool:
        return _usable(self.historical_field)

    def validate(self) -> "FieldMapping":
        """Raise `SchemaError` unless a date and a value field are declared."""
        if not _usable(self.date_field):
            raise SchemaError(f"No usable date field in mapping (got {self.date_field!r}).")
        if not _usable(self.value_field):
            raise SchemaError(f"No usable value field in mapping (got {self.value_field!r}).")
        return self

    def declared_columns(self) -> list[FieldKey]:
        """Return every declared field key, date first."""
        keys = [self.date_field, self.value_field, self.target_field, self.historical_field]
        return [k for k in keys if _usable(k)]


def _descriptor_name(descriptors: Any) -> str | None:
    """Return the ``name`` (or ``id``) of the first descriptor in a host field list."""
    if isinstance(descriptors, Mapping):
        descriptors = [descriptors]
    if not isinstance(descriptors, Sequence) or isinstance(descriptors, str) or not descriptors:
        return None
    first = descriptors[0]
    if isinstance(first, Mapping):
        return first.get("name") or first.get("id")
    return None


def field_mapping_from_host_fields(fields: Mapping[str, Any] | None) -> FieldMapping:
    """Build a mapping for the host's object-transform rows.

    In that shape every row is keyed by config element id
    (``dateDimension``, ``valueMeasure``...), so the element id itself is the
    row key. Optional measures are declared only when the host lists a field
    for them.

    Args:
        fields: Host ``fields`` mapping of element id to a list of descriptors.
            ``None`` means the default element ids with no optional measures.
    """
    if fields is None:
        return FieldMapping(DATE_ELEMENT, VALUE_ELEMENT)

    def declared(element: str) -> str | None:
        return element if _descriptor_name(fields.get(element)) else None

    return FieldMapping(
        date_field=declared(DATE_ELEMENT),
        value_field=declared(VALUE_ELEMENT),
        target_field=declared(TARGET_ELEMENT),
        historical_field=declared(HISTORICAL_ELEMENT),
    )


def field_mapping_from_query_fields(query_fields: Mapping[str, Any]) -> FieldMapping:
    """Build a mapping from a positional query response.

    ``query_fields["dimensions"][0]`` is the date; ``measures[0..2]`` are the
    value, target and historical measures, each resolved to its field name.
    """
    dimensions = query_fields.get("dimensions") or []
    measures = query_fields.get("measures") or []

    def name_at(items: Sequence[Any], index: int) -> str | None:
        return _descriptor_name(items[index:index + 1])

    return FieldMapping(
        date_field=name_at(dimensions, 0),
        value_field=name_at(measures, 0),
        target_field=name_at(measures, 1),
        historical_field=name_at(measures, 2),
    )


_DATE_HINTS = ["date", "day", "week", "week_start", "period", "ds", "time", "timestamp"]
_VALUE_HINTS = ["value", "sales", "revenue", "amount", "volume", "orders", "units", "y"]
_TARGET_HINTS = ["target", "goal", "plan", "budget"]
_HISTORICAL_HINTS = [
    "historical", "historical_value", "last_year", "prior_year", "previous", "ly", "py",
]


def _normalize(name: Any) -> str:
    return str(name).strip().lower().replace(" ", "_").replace("-", "_")


def detect_field_mapping(df: pd.DataFrame) -> FieldMapping:
    """Auto-detect a mapping from column names, falling back to dtypes.

    The date column is the first whose name matches a date hint, else the
    first column that parses as dates. Value, target and historical columns
    are matched by name hints; the value column falls back to the first
    remaining numeric column.
    """
    names = {col: _normalize(col) for col in df.columns}
    taken: set[Any] = set()

    def by_hint(hints: list[str]) -> Any:
        for col, norm in names.items():
            if col not in taken and norm in hints:
                taken.add(col)
                return col
        return None

    date_col = by_hint(_DATE_HINTS)
    if date_col is None:
        for col in df.columns:
            sample = df[col].dropna().head(20)
            if sample.empty or pd.api.types.is_numeric_dtype(sample):
                continue
            if pd.to_datetime(sample, errors="coerce", format="mixed").notna().all():
                date_col = col
                taken.add(col)
                break

    target_col = by_hint(_TARGET_HINTS)
    historical_col = by_hint(_HISTORICAL_HINTS)
    value_col = by_hint(_VALUE_HINTS)
    if value_col is None:
        for col in df.columns:
            if col not in taken and pd.api.types.is_numeric_dtype(df[col]):
                value_col = col
                break

    return FieldMapping(
        date_field=date_col,
        value_field=value_col,
        target_field=target_col,
        historical_field=historical_col,
    )
