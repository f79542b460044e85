from __future__ import annotations

import logging
from datetime import datetime

import pandas as pd
import pytest

from trend_pipeline.clean.parse_rows import ParseReport, parse_date, parse_number, parse_rows
from trend_pipeline.errors import InvalidArgumentError, SchemaError
from trend_pipeline.ingest.field_mapping import FieldMapping

MAPPING = FieldMapping("date", "value", "target", "historical")


def test_parse_rows_reads_named_fields() -> None:
    rows = [{"date": "2024-01-01", "value": "100", "target": 110, "historical": 95}]
    [point] = parse_rows(rows, MAPPING)
    assert point.date == datetime(2024, 1, 1)
    assert point.value == 100.0
    assert point.target == 110.0
    assert point.historical_value == 95.0


def test_unparsable_value_defaults_to_zero_and_keeps_row() -> None:
    report = ParseReport()
    points = parse_rows([{"date": "2024-01-01", "value": "n/a"}], MAPPING, report)
    assert len(points) == 1
    assert points[0].value == 0.0
    assert [i.category for i in report.warnings] == ["value"]


def test_missing_value_defaults_to_zero() -> None:
    points = parse_rows([{"date": "2024-01-01", "value": None}], MAPPING)
    assert points[0].value == 0.0
    assert points[0].target is None


def test_unparsable_date_drops_row() -> None:
    report = ParseReport()
    rows = [
        {"date": "not a date", "value": 1},
        {"date": None, "value": 2},
        {"date": "2024-01-02", "value": 3},
    ]
    points = parse_rows(rows, MAPPING, report)
    assert [p.value for p in points] == [3.0]
    assert report.rows_read == 3
    assert report.rows_dropped == 2
    assert {i.category for i in report.warnings} == {"date"}


def test_unparsable_optional_measure_is_absent_not_zero() -> None:
    report = ParseReport()
    rows = [{"date": "2024-01-01", "value": 5, "target": "abc", "historical": ""}]
    [point] = parse_rows(rows, MAPPING, report)
    assert point.target is None
    assert point.historical_value is None
    assert [i.category for i in report.issues] == ["target"]
    assert report.warnings == []


def test_zero_target_is_kept() -> None:
    [point] = parse_rows([{"date": "2024-01-01", "value": 5, "target": 0}], MAPPING)
    assert point.target == 0.0


def test_undeclared_optional_fields_are_ignored() -> None:
    rows = [{"date": "2024-01-01", "value": 5, "target": 7, "historical": 9}]
    [point] = parse_rows(rows, FieldMapping("date", "value"))
    assert point.target is None
    assert point.historical_value is None


def test_positional_rows() -> None:
    rows = [["2024-01-03", 5, 6, 7], ["2024-01-04", "8"]]
    points = parse_rows(rows, FieldMapping(0, 1, 2, 3))
    assert [(p.value, p.target, p.historical_value) for p in points] == [(5.0, 6.0, 7.0), (8.0, None, None)]


def test_host_wrapped_cells() -> None:
    rows = [{"dateDimension": ["20240105"], "valueMeasure": [{"value": "7"}]}]
    [point] = parse_rows(rows, FieldMapping("dateDimension", "valueMeasure"))
    assert point.date == datetime(2024, 1, 5)
    assert point.value == 7.0


def test_list_shaped_date_cells_drop_only_their_row() -> None:
    report = ParseReport()
    rows = [
        {"date": [], "value": 1},
        {"date": ["2024-01-01", "2024-01-02"], "value": 2},
        {"date": "2024-01-03", "value": 3},
    ]
    points = parse_rows(rows, MAPPING, report)
    assert [(p.date, p.value) for p in points] == [(datetime(2024, 1, 3), 3.0)]
    assert report.rows_dropped == 2


def test_output_follows_input_order() -> None:
    rows = [{"date": d, "value": i} for i, d in enumerate(["2024-03-01", "2024-01-01", "2024-02-01"])]
    points = parse_rows(rows, MAPPING)
    assert [p.date.month for p in points] == [3, 1, 2]


def test_mapping_without_date_or_value_is_fatal() -> None:
    with pytest.raises(SchemaError):
        parse_rows([{"value": 1}], FieldMapping(None, "value"))
    with pytest.raises(SchemaError):
        parse_rows([{"date": "2024-01-01"}], FieldMapping("date", " "))


def test_dataframe_missing_column_is_fatal() -> None:
    df = pd.DataFrame({"date": ["2024-01-01"], "sales": [1]})
    with pytest.raises(SchemaError):
        parse_rows(df, FieldMapping("date", "value"))


def test_dataframe_input() -> None:
    df = pd.DataFrame({"date": ["2024-01-01", "2024-01-02"], "value": [1.5, None]})
    points = parse_rows(df, FieldMapping("date", "value"))
    assert [p.value for p in points] == [1.5, 0.0]


@pytest.mark.parametrize("rows", [42, "2024-01-01,5", None])
def test_non_iterable_rows_are_rejected(rows: object) -> None:
    with pytest.raises(InvalidArgumentError) as excinfo:
        parse_rows(rows, MAPPING)  # type: ignore[arg-type]
    assert excinfo.value.argument == "raw_rows"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-01-05T13:45:00", datetime(2024, 1, 5)),
        ("2024-01-05T23:30:00+05:00", datetime(2024, 1, 5)),
        ("20240105", datetime(2024, 1, 5)),
        (20240105, datetime(2024, 1, 5)),
        (datetime(2024, 1, 5, 8, 30), datetime(2024, 1, 5)),
        (pd.Timestamp("2024-01-05 10:00"), datetime(2024, 1, 5)),
        (1704412800000, datetime(2024, 1, 5)),
        ("garbage", None),
        ("", None),
        (True, None),
        (float("nan"), None),
        ([], None),
        (["2024-01-01", "2024-01-02"], None),
        ({"foo": 1}, None),
    ],
)
def test_parse_date(raw: object, expected: datetime | None) -> None:
    assert parse_date(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        (" 1,234.5 ", 1234.5),
        (3, 3.0),
        ("-2", -2.0),
        ("abc", None),
        ("nan", None),
        (float("inf"), None),
        (False, None),
        ([4], 4.0),
    ],
)
def test_parse_number(raw: object, expected: float | None) -> None:
    assert parse_number(raw) == expected


def test_diagnostics_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    rows = [{"date": "??", "value": 1}, {"date": "2024-01-01", "value": 2, "target": "x"}]
    with caplog.at_level(logging.INFO, logger="trend_pipeline.clean.parse_rows"):
        parse_rows(rows, MAPPING)
    levels = {r.levelno for r in caplog.records if r.getMessage().startswith("row ")}
    assert levels == {logging.WARNING, logging.INFO}
