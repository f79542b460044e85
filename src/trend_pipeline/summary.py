"""Box-score summary shown beneath the trend line."""

from __future__ import annotations

from collections.abc import Sequence

from trend_pipeline.models import BoxScoreSummary, GrowthMetrics, TimeSeriesPoint

LAST_LABELS = {
    "six_week": "Last Week",
    "twelve_month": "Last Month",
}


def build_box_score(
    series: Sequence[TimeSeriesPoint],
    metrics: GrowthMetrics,
    variant: str,
) -> BoxScoreSummary:
    """Flatten the latest value and the five growth percentages.

    Args:
        series: Windowed, ascending series.
        metrics: Growth metrics computed from ``series``.
        variant: Chart variant value; picks the label of the last-value box.
    """
    return BoxScoreSummary(
        last_label=LAST_LABELS.get(variant, "Last Value"),
        last_value=series[-1].value if series else None,
        **metrics.model_dump(),
    )
