"""Aggregation helpers.

This package turns parsed points into the series a widget displays:
calendar bucketing (`buckets`), trailing-window selection (`window`) and the
growth-rate algebra (`growth`). `calendar` holds the shared week, month,
quarter and year boundary rules.
"""
