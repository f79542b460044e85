"""Load a local table (CSV or JSON records) into pandas."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pandas as pd

log = logging.getLogger(__name__)


def load_table(path: Path) -> pd.DataFrame:
    """Read a ``.csv`` or ``.json`` file into a DataFrame.

    Columns are kept as read; parsing and validation happen in the clean
    stage, so a malformed cell never fails the load.

    Raises:
        ValueError: for unsupported file extensions.
    """
    ext = path.suffix.lower()
    if ext == ".csv":
        df = pd.read_csv(path)
    elif ext == ".json":
        df = pd.read_json(path, orient="records")
    else:
        raise ValueError(f"Unsupported file type: {ext or path.name}. Use .csv or .json.")
    log.info("Loaded %s: %d rows x %d columns", path, len(df), len(df.columns))
    return df


def rows_from_frame(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Return DataFrame rows as records with missing cells as ``None``."""
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")
