"""Pydantic models for points, growth metrics and the rendered summary.

These models define the shape handed from one pipeline stage to the next and
the final payload consumed by renderers (CLI, Streamlit dashboard, host
widgets).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

NOT_AVAILABLE = "N/A"


def format_value(value: float | None) -> str:
    """Format a headline value with thousands separators and no decimals."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:,.0f}"


def format_percent(value: float | None, decimals: int = 1) -> str:
    """Format a signed percentage, e.g. ``+20.0%``."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:+.{decimals}f}%"


class TimeSeriesPoint(BaseModel):
    """One observation (or one aggregated bucket) of the series.

    Attributes:
        date: Day-truncated instant; the bucket start after aggregation.
        value: Primary measure. Always finite.
        target: Optional target for the same date. ``None`` means absent.
        historical_value: Optional prior-period value (YoY baseline).
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    date: datetime
    value: float = Field(0.0, allow_inf_nan=False)
    target: float | None = Field(None, allow_inf_nan=False)
    historical_value: float | None = Field(None, allow_inf_nan=False)


class GrowthMetrics(BaseModel):
    """Percentage changes derived from a windowed series; ``None`` when not computable."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    week_over_week: float | None = None
    year_over_year: float | None = None
    month_to_date: float | None = None
    quarter_to_date: float | None = None
    year_to_date: float | None = None


class BoxScoreSummary(BaseModel):
    """Flattened headline statistics shown under the trend line."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    last_label: str = "Last Week"
    last_value: float | None = None
    week_over_week: float | None = None
    year_over_year: float | None = None
    month_to_date: float | None = None
    quarter_to_date: float | None = None
    year_to_date: float | None = None

    def formatted(self, include_growth: bool = True) -> dict[str, str]:
        """Return the box scores as display strings, in display order.

        The last-value box is always present; ``include_growth=False`` drops
        the five percentage boxes.
        """
        scores = {self.last_label: format_value(self.last_value)}
        if not include_growth:
            return scores
        return {
            **scores,
            "WoW": format_percent(self.week_over_week),
            "YoY": format_percent(self.year_over_year),
            "MTD": format_percent(self.month_to_date),
            "QTD": format_percent(self.quarter_to_date),
            "YTD": format_percent(self.year_to_date),
        }


class ChartSummary(BaseModel):
    """Everything a renderer needs to draw one widget."""
    model_config = ConfigDict(extra="forbid")
    variant: str
    windowed_series: list[TimeSeriesPoint]
    growth_metrics: GrowthMetrics
    box_score_summary: BoxScoreSummary
    show_targets: bool = True
    show_historical: bool = True
    show_growth_rates: bool = True
    graph_number: int = Field(1, ge=1)
    line_color: str = "#3366CC"
    historical_line_color: str = "#FF9999"
    target_color: str = "#00AA00"
    warnings: list[str] = Field(default_factory=list)
