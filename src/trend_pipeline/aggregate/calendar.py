"""Calendar boundary helpers.

Weeks start on Sunday 00:00 (not ISO weeks); months on the 1st; quarters on
Jan/Apr/Jul/Oct 1st. All helpers work on naive datetimes and zero the time of
day.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

import pandas as pd


class Granularity(str, Enum):
    WEEK = "week"
    MONTH = "month"


def bucket_keys(dates: pd.Series, granularity: Granularity) -> pd.Series:
    """Return the bucket start timestamp for every date in ``dates``."""
    days = pd.to_datetime(dates).dt.normalize()
    if granularity is Granularity.WEEK:
        # dayofweek: Monday=0 .. Sunday=6
        return days - pd.to_timedelta((days.dt.dayofweek + 1) % 7, unit="D")
    return days.dt.to_period("M").dt.to_timestamp()


def week_start(when: datetime) -> datetime:
    """Most recent Sunday at or before ``when``, at midnight."""
    day = pd.Timestamp(when).normalize()
    return (day - pd.Timedelta(days=(day.dayofweek + 1) % 7)).to_pydatetime()


def month_start(when: datetime) -> datetime:
    return datetime(when.year, when.month, 1)


def quarter_start(when: datetime) -> datetime:
    return datetime(when.year, 3 * ((when.month - 1) // 3) + 1, 1)


def year_start(when: datetime) -> datetime:
    return datetime(when.year, 1, 1)


def months_before(when: datetime, months: int) -> datetime:
    """Shift ``when`` back by calendar months, clipping to the month's last day."""
    return (pd.Timestamp(when) - pd.DateOffset(months=months)).to_pydatetime()


def axis_label(when: datetime, granularity: Granularity) -> str:
    """Short axis label: ``01/07`` for weekly buckets, ``Jan 2024`` for monthly ones."""
    if granularity is Granularity.WEEK:
        return when.strftime("%m/%d")
    return when.strftime("%b %Y")
