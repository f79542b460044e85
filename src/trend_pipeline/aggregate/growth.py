"""Growth metrics over a windowed series.

All percentages use ``(current - baseline) / baseline * 100`` and resolve to
``None`` whenever the baseline is absent or zero, or the change overflows to a
non-finite number. The period-to-date metrics (MTD, QTD, YTD) compare the
latest value against the *historical* value of the first point in the current
period, where the period is taken from the last point's date rather than
today's date.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from datetime import datetime

from trend_pipeline.aggregate.calendar import month_start, quarter_start, year_start
from trend_pipeline.models import GrowthMetrics, TimeSeriesPoint

log = logging.getLogger(__name__)


def percent_change(current: float, baseline: float | None) -> float | None:
    """Return the percentage change from ``baseline`` to ``current``."""
    if baseline is None or baseline == 0:
        return None
    change = (current - baseline) / baseline * 100.0
    return change if math.isfinite(change) else None


def week_over_week(series: Sequence[TimeSeriesPoint]) -> float | None:
    if len(series) < 2:
        return None
    return percent_change(series[-1].value, series[-2].value)


def year_over_year(series: Sequence[TimeSeriesPoint]) -> float | None:
    if not series:
        return None
    last = series[-1]
    return percent_change(last.value, last.historical_value)


def period_to_date(
    series: Sequence[TimeSeriesPoint],
    period_start: Callable[[datetime], datetime],
) -> float | None:
    """Change of the last value against the historical value at the period's first point."""
    if not series:
        return None
    last = series[-1]
    start = period_start(last.date)
    anchor = next((p for p in series if p.date >= start), None)
    if anchor is None:
        return None
    return percent_change(last.value, anchor.historical_value)


_METRICS: dict[str, Callable[[Sequence[TimeSeriesPoint]], float | None]] = {
    "week_over_week": week_over_week,
    "year_over_year": year_over_year,
    "month_to_date": lambda s: period_to_date(s, month_start),
    "quarter_to_date": lambda s: period_to_date(s, quarter_start),
    "year_to_date": lambda s: period_to_date(s, year_start),
}


def compute_growth(series: Sequence[TimeSeriesPoint] | None) -> GrowthMetrics:
    """Compute WoW, YoY, MTD, QTD and YTD for an ascending series.

    Never raises: an empty or ``None`` series yields all-``None`` metrics,
    and a metric that cannot be computed does not affect the others.
    """
    if not series:
        return GrowthMetrics()

    values: dict[str, float | None] = {}
    for name, metric in _METRICS.items():
        try:
            values[name] = metric(series)
        except (AttributeError, TypeError, ValueError, ArithmeticError) as exc:
            log.warning("Could not compute %s: %s", name, exc)
            values[name] = None
    return GrowthMetrics(**values)
