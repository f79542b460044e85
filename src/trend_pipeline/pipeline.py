"""Chart pipeline: parse → aggregate → window → growth → box score.

`build_chart_summary` runs one invocation and raises labeled errors.
`run_invocation` and `run_host_payload` are the boundary used by hosts and
the CLI: they always return an `InvocationResult` and never let an exception
escape. Every invocation builds its own lists and frames, so overlapping
invocations share nothing.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

import pandas as pd

from trend_pipeline.aggregate.buckets import aggregate_to_weekly
from trend_pipeline.aggregate.growth import compute_growth
from trend_pipeline.aggregate.window import trailing_buckets, trailing_months
from trend_pipeline.clean.parse_rows import ParseReport, parse_rows
from trend_pipeline.config import ChartConfig
from trend_pipeline.errors import EmptySeriesError, InvalidArgumentError, TrendPipelineError
from trend_pipeline.ingest.field_mapping import FieldMapping
from trend_pipeline.ingest.host_payload import unpack_host_payload
from trend_pipeline.models import ChartSummary, TimeSeriesPoint
from trend_pipeline.summary import build_box_score

log = logging.getLogger(__name__)

CANNOT_RENDER = "Unable to display visualization. Please check your data configuration."
NO_VALID_DATA = "No valid data available to display"
INSUFFICIENT_DATA = "Insufficient data for visualization"


class ChartVariant(str, Enum):
    SIX_WEEK = "six_week"
    TWELVE_MONTH = "twelve_month"


@dataclass(frozen=True)
class InvocationResult:
    """Outcome of one invocation as seen by the host.

    Attributes:
        ok: True when ``summary`` can be rendered.
        summary: The chart summary, or ``None`` on failure.
        message: User-visible text explaining why nothing can be rendered.
    """
    ok: bool
    summary: ChartSummary | None = None
    message: str | None = None


def apply_series_toggles(points: Iterable[TimeSeriesPoint], config: ChartConfig) -> list[TimeSeriesPoint]:
    """Clear the optional fields that ``config`` disables."""
    update: dict[str, Any] = {}
    if not config.show_targets:
        update["target"] = None
    if not config.show_historical:
        update["historical_value"] = None
    if not update:
        return list(points)
    return [p.model_copy(update=update) for p in points]


def build_chart_summary(
    rows: Iterable[Any] | pd.DataFrame,
    mapping: FieldMapping,
    config: ChartConfig | None = None,
    variant: ChartVariant | str = ChartVariant.SIX_WEEK,
    reference_now: datetime | None = None,
) -> ChartSummary:
    """Run the full pipeline for one chart.

    Args:
        rows: Raw rows (or a DataFrame) to parse with ``mapping``.
        mapping: Location of the date and measure fields.
        config: Chart options; defaults to `ChartConfig()`.
        variant: ``six_week`` (trailing weekly buckets) or ``twelve_month``
            (rolling calendar months).
        reference_now: End of the twelve-month span; defaults to now.

    Raises:
        SchemaError: if the mapping cannot supply a date and a value.
        InvalidArgumentError: for an unknown variant or bad window size.
        EmptySeriesError: if no row parses or the window is empty.
    """
    config = config or ChartConfig()
    try:
        variant = ChartVariant(variant)
    except ValueError as exc:
        raise InvalidArgumentError("variant", variant, "must be 'six_week' or 'twelve_month'") from exc

    report = ParseReport()
    points = parse_rows(rows, mapping, report)
    if not points:
        raise EmptySeriesError(NO_VALID_DATA)

    points = sorted(apply_series_toggles(points, config), key=lambda p: p.date)
    weekly = aggregate_to_weekly(points)

    if variant is ChartVariant.SIX_WEEK:
        windowed = trailing_buckets(weekly, config.trailing_weeks)
    else:
        windowed = trailing_months(weekly, config.month_count, reference_now)
    if not windowed:
        raise EmptySeriesError(INSUFFICIENT_DATA)

    metrics = compute_growth(windowed)
    box_score = build_box_score(windowed, metrics, variant.value)

    log.info(
        "%s chart: %d points → %d weekly buckets → %d displayed",
        variant.value,
        len(points),
        len(weekly),
        len(windowed),
    )
    return ChartSummary(
        variant=variant.value,
        windowed_series=windowed,
        growth_metrics=metrics,
        box_score_summary=box_score,
        show_targets=config.show_targets,
        show_historical=config.show_historical,
        show_growth_rates=config.show_growth_rates,
        graph_number=config.graph_number,
        line_color=config.line_color,
        historical_line_color=config.historical_line_color,
        target_color=config.target_color,
        warnings=report.messages(),
    )


def _failure_message(exc: Exception) -> str:
    if isinstance(exc, EmptySeriesError):
        return str(exc.args[0]) if exc.args else NO_VALID_DATA
    return f"{CANNOT_RENDER} Error: {exc}"


def _guarded(build: Callable[[], ChartSummary]) -> InvocationResult:
    try:
        summary = build()
    except TrendPipelineError as exc:
        log.warning("Cannot render chart: %s", exc)
        return InvocationResult(ok=False, message=_failure_message(exc))
    except Exception as exc:  # never let a failure reach the host
        log.exception("Unexpected failure while building chart")
        return InvocationResult(ok=False, message=_failure_message(exc))
    return InvocationResult(ok=True, summary=summary)


def run_invocation(
    rows: Iterable[Any] | pd.DataFrame,
    mapping: FieldMapping,
    config: ChartConfig | None = None,
    variant: ChartVariant | str = ChartVariant.SIX_WEEK,
    reference_now: datetime | None = None,
) -> InvocationResult:
    """Boundary wrapper around `build_chart_summary`; never raises."""
    return _guarded(lambda: build_chart_summary(rows, mapping, config, variant, reference_now))


def run_host_payload(
    payload: Mapping[str, Any] | None,
    variant: ChartVariant | str = ChartVariant.SIX_WEEK,
    base_config: ChartConfig | None = None,
    reference_now: datetime | None = None,
) -> InvocationResult:
    """Handle one dashboard-host data/style event; never raises."""

    def build() -> ChartSummary:
        rows, mapping, config = unpack_host_payload(payload, base_config)
        return build_chart_summary(rows, mapping, config, variant, reference_now)

    return _guarded(build)
