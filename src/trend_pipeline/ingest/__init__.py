"""Ingest adapters.

Normalize host-specific inputs (dashboard payloads, positional query
responses, CSV/JSON files, DataFrames) into raw rows plus a `FieldMapping`.
"""
