"""Trailing-window selection over an aggregated series.

Two independent strategies, chosen by chart variant:

- `trailing_buckets` keeps the last N buckets (six-week chart);
- `trailing_months` keeps a rolling calendar span and rolls it up to months
  (twelve-month chart).
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from numbers import Integral
from typing import Any

from trend_pipeline.aggregate.buckets import aggregate
from trend_pipeline.aggregate.calendar import Granularity, months_before
from trend_pipeline.errors import InvalidArgumentError
from trend_pipeline.models import TimeSeriesPoint

log = logging.getLogger(__name__)


def _require_series(series: Any) -> Sequence[TimeSeriesPoint]:
    if isinstance(series, (str, bytes)) or not isinstance(series, Sequence):
        raise InvalidArgumentError("series", type(series).__name__, "must be a sequence of points")
    return series


def _require_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral) or value < 1:
        raise InvalidArgumentError(name, value, "must be a positive integer")
    return int(value)


def trailing_buckets(series: Sequence[TimeSeriesPoint], n: int) -> list[TimeSeriesPoint]:
    """Return the last ``min(n, len(series))`` points, in their original order.

    Raises:
        InvalidArgumentError: if ``series`` is not a sequence or ``n`` is not
            a positive integer.
    """
    series = _require_series(series)
    n = _require_positive_int("n", n)
    if not series:
        return []
    return list(series[-min(n, len(series)):])


def trailing_months(
    series: Sequence[TimeSeriesPoint],
    month_count: int,
    reference_now: datetime | None = None,
) -> list[TimeSeriesPoint]:
    """Keep points from the last ``month_count`` calendar months, rolled up to months.

    Args:
        series: Aggregated (typically weekly) points.
        month_count: Size of the rolling span in calendar months.
        reference_now: End of the span; defaults to the current local time.

    Returns:
        Monthly buckets for points dated on or after
        ``reference_now - month_count months``, sorted ascending.

    Raises:
        InvalidArgumentError: if ``series`` is not a sequence or
            ``month_count`` is not a positive integer.
    """
    series = _require_series(series)
    month_count = _require_positive_int("month_count", month_count)
    if reference_now is None:
        reference_now = datetime.now()
    elif reference_now.tzinfo is not None:
        reference_now = reference_now.replace(tzinfo=None)

    cutoff = months_before(reference_now, month_count)
    recent = [p for p in series if p.date >= cutoff]
    log.debug("trailing_months: %d of %d points on/after %s", len(recent), len(series), cutoff.date())
    return aggregate(recent, Granularity.MONTH)
