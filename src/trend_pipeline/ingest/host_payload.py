"""Adapter for the dashboard host's data/style payload.

The host delivers one payload per data or style change event::

    {
        "tables": {"DEFAULT": [{"dateDimension": ["20240101"], "valueMeasure": [100]}, ...]},
        "fields": {"dateDimension": [{"id": "...", "name": "Date"}], ...},
        "style": {"lineColor": {"value": {"color": "#3366CC"}}, ...},
    }

`unpack_host_payload` splits that into the rows, field mapping and chart
configuration the pipeline consumes. Cell values may be wrapped in
single-element lists or ``{"value": x}`` objects; `unwrap_cell` strips both.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from trend_pipeline.config import ChartConfig, chart_config_from_style
from trend_pipeline.errors import SchemaError
from trend_pipeline.ingest.field_mapping import FieldMapping, field_mapping_from_host_fields

log = logging.getLogger(__name__)

DEFAULT_TABLE = "DEFAULT"


def unwrap_cell(cell: Any) -> Any:
    """Strip host value wrappers from a single cell."""
    while True:
        if isinstance(cell, Mapping) and "value" in cell:
            cell = cell["value"]
        elif isinstance(cell, (list, tuple)) and len(cell) == 1:
            cell = cell[0]
        else:
            return cell


def unpack_host_payload(
    payload: Mapping[str, Any] | None,
    base_config: ChartConfig | None = None,
) -> tuple[list[Any], FieldMapping, ChartConfig]:
    """Split a host payload into ``(rows, mapping, config)``.

    Args:
        payload: Host payload with ``tables``, ``fields`` and ``style`` keys.
        base_config: Configuration that style options are overlaid onto.

    Raises:
        SchemaError: if the payload carries no ``tables.DEFAULT`` table.
    """
    if not isinstance(payload, Mapping):
        raise SchemaError("No data received from the dashboard host.")
    tables = payload.get("tables")
    if not isinstance(tables, Mapping) or tables.get(DEFAULT_TABLE) is None:
        raise SchemaError("No data received from the dashboard host.")

    rows = list(tables[DEFAULT_TABLE])
    mapping = field_mapping_from_host_fields(payload.get("fields"))
    config = chart_config_from_style(payload.get("style"), base_config)

    log.info(
        "Host payload: %d rows, target=%s historical=%s",
        len(rows),
        mapping.has_target,
        mapping.has_historical,
    )
    return rows, mapping, config
