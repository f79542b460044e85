from __future__ import annotations

from pathlib import Path

import altair as alt
import pandas as pd
import streamlit as st

from trend_pipeline.config import ChartConfig, get_settings
from trend_pipeline.ingest.field_mapping import FieldMapping, detect_field_mapping
from trend_pipeline.ingest.load_table import load_table
from trend_pipeline.models import ChartSummary
from trend_pipeline.pipeline import ChartVariant, run_invocation

# =====================================================
# Page config
# =====================================================
st.set_page_config(page_title="Trend Widgets", layout="wide")
st.title("📈 Trend Widgets")

NONE_OPTION = "(none)"


# =====================================================
# Helpers
# =====================================================
def kpi(label: str, value: str) -> None:
    """Display a single box score.

    Args:
        label: Box label (e.g. "WoW").
        value: Pre-formatted value; "N/A" when absent.
    """
    st.metric(label, value)


def read_upload(upload) -> pd.DataFrame:
    """Read an uploaded CSV/JSON file into a DataFrame."""
    suffix = Path(upload.name).suffix.lower()
    if suffix == ".json":
        return pd.read_json(upload, orient="records")
    return pd.read_csv(upload)


def column_select(label: str, columns: list[str], default, optional: bool = False):
    """Selectbox over the table's columns, preselecting the detected column."""
    options = ([NONE_OPTION] if optional else []) + columns
    index = options.index(default) if default in options else 0
    choice = st.sidebar.selectbox(label, options, index=index)
    return None if choice == NONE_OPTION else choice


def summary_chart(summary: ChartSummary) -> alt.LayerChart:
    """Value line, dashed historical line and target markers."""
    df = pd.DataFrame([p.model_dump() for p in summary.windowed_series])
    time_format = "%m/%d" if summary.variant == ChartVariant.SIX_WEEK.value else "%b %Y"
    x = alt.X("date:T", title=None, axis=alt.Axis(format=time_format))

    layers = [
        alt.Chart(df).mark_line(point=True, color=summary.line_color, strokeWidth=2).encode(
            x=x,
            y=alt.Y("value:Q", title=None),
            tooltip=["date:T", alt.Tooltip("value:Q", format=",.0f")],
        )
    ]
    if summary.show_historical and df["historical_value"].notna().any():
        layers.append(
            alt.Chart(df.dropna(subset=["historical_value"]))
            .mark_line(color=summary.historical_line_color, strokeDash=[4, 4], opacity=0.7)
            .encode(x=x, y="historical_value:Q")
        )
    if summary.show_targets and df["target"].notna().any():
        layers.append(
            alt.Chart(df.dropna(subset=["target"]))
            .mark_point(shape="triangle-up", filled=True, size=64, color=summary.target_color)
            .encode(x=x, y="target:Q", tooltip=["date:T", alt.Tooltip("target:Q", format=",.0f")])
        )
    return alt.layer(*layers).properties(height=360, title=f"Graph {summary.graph_number}")


# =====================================================
# Data source
# =====================================================
upload = st.sidebar.file_uploader("Upload a CSV or JSON table", type=["csv", "json"])
sample_path = st.sidebar.text_input("…or a local file path", value="")

try:
    if upload is not None:
        df = read_upload(upload)
    elif sample_path:
        df = load_table(Path(sample_path))
    else:
        st.info("Upload a table with a date column and a value column to get started.")
        st.stop()
except (OSError, ValueError) as exc:
    st.error(f"Could not read the table: {exc}")
    st.stop()

# =====================================================
# Mapping & options
# =====================================================
detected = detect_field_mapping(df)
columns = [str(c) for c in df.columns]

st.sidebar.header("Columns")
mapping = FieldMapping(
    date_field=column_select("Date", columns, detected.date_field),
    value_field=column_select("Value", columns, detected.value_field),
    target_field=column_select("Target", columns, detected.target_field, optional=True),
    historical_field=column_select("Historical value", columns, detected.historical_field, optional=True),
)

settings = get_settings()
st.sidebar.header("Display")
variant = st.sidebar.radio(
    "Chart",
    [ChartVariant.SIX_WEEK.value, ChartVariant.TWELVE_MONTH.value],
    format_func=lambda v: "6 weeks" if v == ChartVariant.SIX_WEEK.value else "12 months",
    horizontal=True,
)
config = ChartConfig(
    trailing_weeks=int(st.sidebar.number_input("Trailing weeks", 1, 52, settings.trailing_weeks)),
    month_count=int(st.sidebar.number_input("Trailing months", 1, 36, settings.month_count)),
    show_targets=st.sidebar.checkbox("Show targets", value=settings.show_targets),
    show_historical=st.sidebar.checkbox("Show historical data", value=settings.show_historical),
    show_growth_rates=st.sidebar.checkbox("Show growth rates", value=True),
)

# =====================================================
# Chart
# =====================================================
result = run_invocation(df, mapping, config, variant)

if not result.ok or result.summary is None:
    st.error(result.message)
    st.stop()

summary = result.summary
st.altair_chart(summary_chart(summary), width="stretch")

boxes = summary.box_score_summary.formatted(include_growth=summary.show_growth_rates)
for col, (label, text) in zip(st.columns(len(boxes)), boxes.items()):
    with col:
        kpi(label, text)

if summary.warnings:
    with st.expander(f"{len(summary.warnings)} row issue(s)"):
        st.write("\n".join(f"- {w}" for w in summary.warnings))
