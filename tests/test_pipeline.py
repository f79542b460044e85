from __future__ import annotations

from datetime import datetime, timedelta

import pytest

import trend_pipeline.pipeline as pipeline
from trend_pipeline.config import ChartConfig
from trend_pipeline.errors import EmptySeriesError, SchemaError
from trend_pipeline.ingest.field_mapping import FieldMapping
from trend_pipeline.pipeline import (
    CANNOT_RENDER,
    INSUFFICIENT_DATA,
    NO_VALID_DATA,
    ChartVariant,
    build_chart_summary,
    run_host_payload,
    run_invocation,
)

MAPPING = FieldMapping("date", "value", "target", "historical")

SAMPLE_PAYLOAD = {
    "tables": {
        "DEFAULT": [
            {"dateDimension": "2024-01-01", "valueMeasure": 100, "targetMeasure": 110, "historicalValueMeasure": 95},
            {"dateDimension": "2024-01-02", "valueMeasure": 120, "targetMeasure": 115, "historicalValueMeasure": 105},
        ]
    },
    "fields": {
        "dateDimension": [{"name": "dateDimension"}],
        "valueMeasure": [{"name": "valueMeasure"}],
        "targetMeasure": [{"name": "targetMeasure"}],
        "historicalValueMeasure": [{"name": "historicalValueMeasure"}],
    },
    "style": {
        "lineColor": {"value": {"color": "#3366CC"}},
        "showHistorical": {"value": True},
        "showTargets": {"value": True},
    },
}


def daily_rows(start: datetime, days: int) -> list[dict[str, object]]:
    return [
        {
            "date": (start + timedelta(days=i)).strftime("%Y-%m-%d"),
            "value": 100 + i,
            "target": 150,
            "historical": 80 + i,
        }
        for i in range(days)
    ]


def test_six_week_summary() -> None:
    summary = build_chart_summary(daily_rows(datetime(2024, 1, 1), 69), MAPPING)
    series = summary.windowed_series
    assert summary.variant == "six_week"
    assert len(series) == 6
    assert all(p.date.weekday() == 6 for p in series)
    assert [p.date for p in series] == sorted(p.date for p in series)
    assert series[-1].date == datetime(2024, 3, 3)
    # last bucket: Mar 3 - Mar 9 → days 62..68
    assert series[-1].value == pytest.approx(100 + 65)
    assert summary.box_score_summary.last_label == "Last Week"
    assert summary.box_score_summary.last_value == series[-1].value
    assert summary.growth_metrics.week_over_week == pytest.approx((165 - 158) / 158 * 100)


def test_trailing_weeks_comes_from_config() -> None:
    summary = build_chart_summary(daily_rows(datetime(2024, 1, 1), 70), MAPPING, ChartConfig(trailing_weeks=3))
    assert len(summary.windowed_series) == 3


def test_twelve_month_summary() -> None:
    rows = daily_rows(datetime(2023, 1, 1), 547)
    summary = build_chart_summary(
        rows, MAPPING, variant=ChartVariant.TWELVE_MONTH, reference_now=datetime(2024, 6, 30)
    )
    series = summary.windowed_series
    assert len(series) == 12
    assert series[0].date == datetime(2023, 7, 1)
    assert series[-1].date == datetime(2024, 6, 1)
    assert all(p.date.day == 1 for p in series)
    assert summary.box_score_summary.last_label == "Last Month"


def test_disabled_series_are_dropped() -> None:
    config = ChartConfig(show_targets=False, show_historical=False)
    summary = build_chart_summary(daily_rows(datetime(2024, 1, 1), 21), MAPPING, config)
    assert all(p.target is None and p.historical_value is None for p in summary.windowed_series)
    assert summary.growth_metrics.year_over_year is None
    assert summary.growth_metrics.week_over_week is not None
    assert summary.show_targets is False


def test_row_warnings_are_reported() -> None:
    rows = daily_rows(datetime(2024, 1, 1), 7) + [{"date": "2024-01-14", "value": "oops"}]
    summary = build_chart_summary(rows, MAPPING)
    assert len(summary.warnings) == 1
    assert summary.windowed_series[-1].value == 0


def test_no_valid_rows_raises_empty_series() -> None:
    with pytest.raises(EmptySeriesError):
        build_chart_summary([{"date": "bad", "value": 1}], MAPPING)


def test_run_invocation_reports_no_data() -> None:
    result = run_invocation([{"date": "bad", "value": 1}], MAPPING)
    assert not result.ok
    assert result.summary is None
    assert result.message == NO_VALID_DATA


def test_run_invocation_reports_empty_window() -> None:
    result = run_invocation(
        daily_rows(datetime(2020, 1, 1), 10),
        MAPPING,
        variant="twelve_month",
        reference_now=datetime(2024, 6, 30),
    )
    assert not result.ok
    assert result.message == INSUFFICIENT_DATA


def test_run_invocation_converts_schema_errors() -> None:
    with pytest.raises(SchemaError):
        build_chart_summary([], FieldMapping(None, "value"))
    result = run_invocation([], FieldMapping(None, "value"))
    assert not result.ok
    assert result.message is not None and result.message.startswith(CANNOT_RENDER)


def test_run_invocation_converts_argument_errors() -> None:
    result = run_invocation(daily_rows(datetime(2024, 1, 1), 14), MAPPING, ChartConfig(trailing_weeks=0))
    assert not result.ok
    assert "n=0" in (result.message or "")


def test_run_invocation_rejects_unknown_variant() -> None:
    result = run_invocation(daily_rows(datetime(2024, 1, 1), 14), MAPPING, variant="daily")
    assert not result.ok
    assert "variant" in (result.message or "")


def test_unexpected_failures_never_escape(monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(_series: object) -> None:
        raise RuntimeError("renderer exploded")

    monkeypatch.setattr(pipeline, "compute_growth", boom)
    result = run_invocation(daily_rows(datetime(2024, 1, 1), 14), MAPPING)
    assert not result.ok
    assert "renderer exploded" in (result.message or "")


def test_host_payload_sample() -> None:
    result = run_host_payload(SAMPLE_PAYLOAD)
    assert result.ok and result.summary is not None
    [week] = result.summary.windowed_series
    assert week.date == datetime(2023, 12, 31)
    assert week.value == 110
    assert week.target == pytest.approx(112.5)
    assert week.historical_value == pytest.approx(100)
    assert result.summary.box_score_summary.formatted()["Last Week"] == "110"


def test_host_payload_without_table() -> None:
    result = run_host_payload({"style": {}})
    assert not result.ok
    assert CANNOT_RENDER in (result.message or "")
    assert not run_host_payload(None).ok


def test_invocations_do_not_share_state() -> None:
    first = build_chart_summary(daily_rows(datetime(2024, 1, 1), 14), MAPPING)
    second = build_chart_summary(daily_rows(datetime(2024, 1, 1), 14), MAPPING)
    assert first == second
    assert first.windowed_series is not second.windowed_series


def test_empty_date_list_cell_does_not_fail_invocation() -> None:
    rows = [{"date": [], "value": 1}, {"date": "2024-01-03", "value": 2}]
    result = run_invocation(rows, MAPPING)
    assert result.ok and result.summary is not None
    assert [p.value for p in result.summary.windowed_series] == [2]
    assert len(result.summary.warnings) == 1
