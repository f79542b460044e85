"""Period aggregation: points → weekly or monthly buckets.

Each bucket keeps the value sum and point count, plus a sum and contributor
count for target and historical value. Optional fields are averaged over the
points that actually supplied them, so a bucket where only some days carry a
target is not pulled toward zero; a bucket where none do has no target.

Expectations:
- Input: any sequence of `TimeSeriesPoint`, in any order
- Output: one point per bucket, dated at the bucket start, sorted ascending
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import numpy as np
import pandas as pd

from trend_pipeline.aggregate.calendar import Granularity, bucket_keys
from trend_pipeline.errors import InvalidArgumentError
from trend_pipeline.models import TimeSeriesPoint

log = logging.getLogger(__name__)

FRAME_COLUMNS = ["date", "value", "target", "historical_value"]
OPTIONAL_COLUMNS = ["target", "historical_value"]


def points_to_frame(points: Iterable[TimeSeriesPoint]) -> pd.DataFrame:
    """Return points as a frame; absent optional fields become NaN."""
    df = pd.DataFrame.from_records([p.model_dump() for p in points], columns=FRAME_COLUMNS)
    df["date"] = pd.to_datetime(df["date"])
    for col in FRAME_COLUMNS[1:]:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    return df


def _optional(value: Any) -> float | None:
    if value is None or np.isnan(value):
        return None
    return float(value)


def frame_to_points(df: pd.DataFrame) -> list[TimeSeriesPoint]:
    """Convert a frame with `FRAME_COLUMNS` back into points; NaN becomes ``None``."""
    return [
        TimeSeriesPoint(
            date=pd.Timestamp(rec["date"]).to_pydatetime(),
            value=float(rec["value"]),
            target=_optional(rec["target"]),
            historical_value=_optional(rec["historical_value"]),
        )
        for rec in df[FRAME_COLUMNS].to_dict(orient="records")
    ]


def aggregate(points: Iterable[TimeSeriesPoint], granularity: Granularity | str) -> list[TimeSeriesPoint]:
    """Average points into calendar buckets.

    Args:
        points: Points to group. Order does not matter.
        granularity: ``Granularity.WEEK`` (Sunday start) or ``Granularity.MONTH``.

    Returns:
        One `TimeSeriesPoint` per bucket, sorted by bucket start. Empty input
        returns an empty list.

    Raises:
        InvalidArgumentError: for an unknown granularity.
    """
    try:
        granularity = Granularity(granularity)
    except ValueError as exc:
        raise InvalidArgumentError("granularity", granularity, "must be 'week' or 'month'") from exc

    frame = points_to_frame(points)
    if frame.empty:
        return []

    frame["bucket"] = bucket_keys(frame["date"], granularity)
    buckets = frame.groupby("bucket", sort=True).agg(
        value_sum=("value", "sum"),
        point_count=("value", "size"),
        target_sum=("target", "sum"),
        target_count=("target", "count"),
        historical_value_sum=("historical_value", "sum"),
        historical_value_count=("historical_value", "count"),
    )

    out = pd.DataFrame(index=buckets.index)
    out["value"] = buckets["value_sum"] / buckets["point_count"]
    for col in OPTIONAL_COLUMNS:
        count = buckets[f"{col}_count"]
        # sum() of an all-NaN group is 0; mask it back to absent
        out[col] = (buckets[f"{col}_sum"] / count).where(count > 0)
    out = out.reset_index().rename(columns={"bucket": "date"})

    log.debug("Aggregated %d points into %d %s buckets", len(frame), len(out), granularity.value)
    return frame_to_points(out)


def aggregate_to_weekly(points: Iterable[TimeSeriesPoint]) -> list[TimeSeriesPoint]:
    return aggregate(points, Granularity.WEEK)


def aggregate_to_monthly(points: Iterable[TimeSeriesPoint]) -> list[TimeSeriesPoint]:
    return aggregate(points, Granularity.MONTH)
