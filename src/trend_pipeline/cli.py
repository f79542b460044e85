"""Command-line interface for building chart summaries from a local table.

Provides subcommands: `six-week` and `twelve-month`. Each command is
implemented as a `cmd_*` function that accepts an argparse namespace and
returns a process exit status.
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import pandas as pd

from trend_pipeline.aggregate.calendar import Granularity, axis_label
from trend_pipeline.config import ChartConfig, Settings, get_settings
from trend_pipeline.ingest.field_mapping import FieldMapping, detect_field_mapping
from trend_pipeline.ingest.load_table import load_table
from trend_pipeline.logging_config import configure_logging
from trend_pipeline.models import ChartSummary, format_value
from trend_pipeline.pipeline import ChartVariant, run_invocation

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def resolve_mapping(df: pd.DataFrame, args: argparse.Namespace) -> FieldMapping:
    """Return the columns given on the command line, auto-detecting the rest."""
    detected = detect_field_mapping(df)
    return FieldMapping(
        date_field=args.date_col or detected.date_field,
        value_field=args.value_col or detected.value_field,
        target_field=args.target_col or detected.target_field,
        historical_field=args.historical_col or detected.historical_field,
    )


def _config_from_args(args: argparse.Namespace, settings: Settings) -> ChartConfig:
    config = ChartConfig.from_settings(settings)
    if args.hide_targets:
        config = replace(config, show_targets=False)
    if args.hide_historical:
        config = replace(config, show_historical=False)
    if getattr(args, "weeks", None) is not None:
        config = replace(config, trailing_weeks=args.weeks)
    if getattr(args, "months", None) is not None:
        config = replace(config, month_count=args.months)
    return config


def series_frame(summary: ChartSummary) -> pd.DataFrame:
    """Tabulate the windowed series for printing."""
    granularity = Granularity.WEEK if summary.variant == ChartVariant.SIX_WEEK.value else Granularity.MONTH
    return pd.DataFrame(
        [
            {
                "bucket": axis_label(p.date, granularity),
                "start": p.date.strftime("%Y-%m-%d"),
                "value": format_value(p.value),
                "target": format_value(p.target),
                "historical": format_value(p.historical_value),
            }
            for p in summary.windowed_series
        ]
    )


def print_summary(summary: ChartSummary) -> None:
    print(f"Graph {summary.graph_number} ({summary.variant})")
    for label, text in summary.box_score_summary.formatted().items():
        print(f"  {label:<10} {text}")
    print()
    print(series_frame(summary).to_string(index=False))


def _run(args: argparse.Namespace, variant: ChartVariant, settings: Settings) -> int:
    try:
        df = load_table(args.input)
    except (OSError, ValueError) as exc:
        log.error("Could not read %s: %s", args.input, exc)
        print(f"Could not read {args.input}: {exc}", file=sys.stderr)
        return 1

    result = run_invocation(
        df,
        resolve_mapping(df, args),
        _config_from_args(args, settings),
        variant,
        args.reference_date,
    )
    if not result.ok or result.summary is None:
        print(result.message, file=sys.stderr)
        return 1

    if args.json:
        print(result.summary.model_dump_json(indent=2))
    else:
        print_summary(result.summary)
    return 0


# --------------------------------------------------
# Commands
# --------------------------------------------------
def cmd_six_week(args: argparse.Namespace, settings: Settings) -> int:
    """Weekly buckets, trailing `--weeks` (default from settings)."""
    return _run(args, ChartVariant.SIX_WEEK, settings)


def cmd_twelve_month(args: argparse.Namespace, settings: Settings) -> int:
    """Monthly buckets over the trailing `--months` calendar months."""
    return _run(args, ChartVariant.TWELVE_MONTH, settings)


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser with `six-week` and `twelve-month`
        subcommands sharing the input and column options.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--input", type=Path, required=True, help="CSV or JSON records file")
    common.add_argument("--date-col")
    common.add_argument("--value-col")
    common.add_argument("--target-col")
    common.add_argument("--historical-col")
    common.add_argument("--hide-targets", action="store_true")
    common.add_argument("--hide-historical", action="store_true")
    common.add_argument("--reference-date", type=datetime.fromisoformat, default=None)
    common.add_argument("--json", action="store_true", help="print the summary as JSON")

    p = argparse.ArgumentParser(prog="trend-pipeline")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_week = sub.add_parser("six-week", parents=[common])
    p_week.add_argument("--weeks", type=int, default=None)

    p_month = sub.add_parser("twelve-month", parents=[common])
    p_month.add_argument("--months", type=int, default=None)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    settings = get_settings()
    configure_logging(settings.log_path, settings.log_level, stream=sys.stderr)

    args = build_parser().parse_args(argv)

    if args.cmd == "six-week":
        return cmd_six_week(args, settings)
    if args.cmd == "twelve-month":
        return cmd_twelve_month(args, settings)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
