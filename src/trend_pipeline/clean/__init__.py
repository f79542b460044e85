"""Cleaning utilities for the pipeline.

Provides the row parser that validates raw rows against a field mapping and
normalizes dates and measures into `TimeSeriesPoint` records.
"""
