"""Configuration helpers: environment `Settings` and per-invocation `ChartConfig`.

`get_settings` reads process-level defaults from the environment (a `.env`
file at the project root is loaded first). `ChartConfig` is the explicit,
immutable configuration passed into every pipeline invocation; host style
options are overlaid onto it with `chart_config_from_style`.

`DATA_SCHEMA` and `STYLE_SCHEMA` describe the configuration elements a
dashboard host shows for the widget. They are static metadata.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

log = logging.getLogger(__name__)

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

DATA_SCHEMA: list[dict[str, Any]] = [
    {
        "id": "concepts",
        "label": "Data",
        "elements": [
            {"id": "dateDimension", "label": "Date Dimension", "type": "DIMENSION",
             "options": {"min": 1, "max": 1, "supportedTypes": ["DATE"]}},
            {"id": "valueMeasure", "label": "Value Measure", "type": "METRIC",
             "options": {"min": 1, "max": 1}},
            {"id": "targetMeasure", "label": "Target Measure", "type": "METRIC",
             "options": {"min": 0, "max": 1}},
            {"id": "historicalValueMeasure", "label": "Historical Value Measure", "type": "METRIC",
             "options": {"min": 0, "max": 1}},
        ],
    }
]

STYLE_SCHEMA: list[dict[str, Any]] = [
    {
        "id": "display",
        "label": "Display Options",
        "elements": [
            {"type": "CHECKBOX", "id": "showHistorical", "label": "Show Historical Data", "defaultValue": True},
            {"type": "CHECKBOX", "id": "showTargets", "label": "Show Targets", "defaultValue": True},
            {"type": "CHECKBOX", "id": "showGrowthRates", "label": "Show Growth Rates", "defaultValue": True},
            {"type": "NUMBER", "id": "graph_number", "label": "Graph Number", "defaultValue": 1,
             "options": {"min": 1, "max": 100}},
            {"type": "NUMBER", "id": "trailingWeeks", "label": "Trailing Weeks", "defaultValue": 6,
             "options": {"min": 1, "max": 52}},
            {"type": "NUMBER", "id": "monthCount", "label": "Trailing Months", "defaultValue": 12,
             "options": {"min": 1, "max": 36}},
        ],
    },
    {
        "id": "colors",
        "label": "Color Options",
        "elements": [
            {"type": "FILL_COLOR", "id": "lineColor", "label": "Line Color", "defaultValue": "#3366CC"},
            {"type": "FILL_COLOR", "id": "historicalLineColor", "label": "Historical Line Color",
             "defaultValue": "#FF9999"},
            {"type": "FILL_COLOR", "id": "targetColor", "label": "Target Color", "defaultValue": "#00AA00"},
        ],
    },
]

STYLE_DEFAULTS: dict[str, Any] = {
    element["id"]: element["defaultValue"]
    for section in STYLE_SCHEMA
    for element in section["elements"]
}


@dataclass(frozen=True)
class Settings:
    """Container for pipeline configuration read from the environment.

    Attributes:
        trailing_weeks: Buckets shown by the six-week chart.
        month_count: Calendar months shown by the twelve-month chart.
        show_targets: Whether target values are carried through by default.
        show_historical: Whether historical values are carried through by default.
        log_path: Optional log file written by the CLI.
        log_level: Root logging level name.
    """
    trailing_weeks: int
    month_count: int
    show_targets: bool
    show_historical: bool
    log_path: Path | None
    log_level: str


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}.") from exc
    if value < 1:
        raise RuntimeError(f"{name} must be a positive integer, got {value}.")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    raise RuntimeError(f"{name} must be a boolean (true/false), got {raw!r}.")


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if a numeric or boolean variable cannot be parsed.
    """
    log_path = os.getenv("TREND_LOG_PATH", "").strip()
    return Settings(
        trailing_weeks=_env_int("TREND_TRAILING_WEEKS", STYLE_DEFAULTS["trailingWeeks"]),
        month_count=_env_int("TREND_MONTH_COUNT", STYLE_DEFAULTS["monthCount"]),
        show_targets=_env_bool("TREND_SHOW_TARGETS", STYLE_DEFAULTS["showTargets"]),
        show_historical=_env_bool("TREND_SHOW_HISTORICAL", STYLE_DEFAULTS["showHistorical"]),
        log_path=Path(log_path) if log_path else None,
        log_level=os.getenv("TREND_LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )


@dataclass(frozen=True)
class ChartConfig:
    """Options for one chart invocation.

    Toggles only decide whether the target/historical fields are carried
    through aggregation, windowing and growth; they never alter the
    arithmetic.
    """
    trailing_weeks: int = STYLE_DEFAULTS["trailingWeeks"]
    month_count: int = STYLE_DEFAULTS["monthCount"]
    show_targets: bool = STYLE_DEFAULTS["showTargets"]
    show_historical: bool = STYLE_DEFAULTS["showHistorical"]
    show_growth_rates: bool = STYLE_DEFAULTS["showGrowthRates"]
    graph_number: int = STYLE_DEFAULTS["graph_number"]
    line_color: str = STYLE_DEFAULTS["lineColor"]
    historical_line_color: str = STYLE_DEFAULTS["historicalLineColor"]
    target_color: str = STYLE_DEFAULTS["targetColor"]

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChartConfig":
        return cls(
            trailing_weeks=settings.trailing_weeks,
            month_count=settings.month_count,
            show_targets=settings.show_targets,
            show_historical=settings.show_historical,
        )


def _style_value(style: Mapping[str, Any], key: str) -> Any:
    """Return a style option's value, accepting ``{"value": x}`` wrappers or bare values."""
    entry = style.get(key)
    if isinstance(entry, Mapping):
        return entry.get("value")
    return entry


def _style_color(style: Mapping[str, Any], key: str, default: str) -> str:
    value = _style_value(style, key)
    if isinstance(value, Mapping):
        value = value.get("color")
    return value if isinstance(value, str) and value else default


def _style_bool(style: Mapping[str, Any], key: str, default: bool) -> bool:
    value = _style_value(style, key)
    return default if value is None else bool(value)


def _style_int(style: Mapping[str, Any], key: str, default: int) -> int:
    value = _style_value(style, key)
    if not value:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        log.warning("Ignoring non-numeric style option %s=%r", key, value)
        return default
    return number if number >= 1 else default


def chart_config_from_style(
    style: Mapping[str, Any] | None,
    base: ChartConfig | None = None,
) -> ChartConfig:
    """Overlay host style options onto a base `ChartConfig`.

    Args:
        style: Host style mapping keyed by style element id. Missing or
            malformed options fall back to the base configuration.
        base: Configuration to start from (defaults to `ChartConfig()`).

    Returns:
        A new `ChartConfig`; `base` is left untouched.
    """
    base = base or ChartConfig()
    if not style:
        return base
    return replace(
        base,
        trailing_weeks=_style_int(style, "trailingWeeks", base.trailing_weeks),
        month_count=_style_int(style, "monthCount", base.month_count),
        show_targets=_style_bool(style, "showTargets", base.show_targets),
        show_historical=_style_bool(style, "showHistorical", base.show_historical),
        show_growth_rates=_style_bool(style, "showGrowthRates", base.show_growth_rates),
        graph_number=_style_int(style, "graph_number", base.graph_number),
        line_color=_style_color(style, "lineColor", base.line_color),
        historical_line_color=_style_color(style, "historicalLineColor", base.historical_line_color),
        target_color=_style_color(style, "targetColor", base.target_color),
    )
