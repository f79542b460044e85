"""trend_pipeline package.

Turns a finite table of dated observations into the summary shown by compact
trend-line dashboard widgets: a bucketed trailing window of the series plus a
handful of headline growth metrics (WoW, YoY, MTD, QTD, YTD).

Architecture:
- Ingest → Clean → Aggregate → Summary, re-run from scratch per invocation
- pandas is used for calendar bucketing and averaging
- Pydantic models validate points and the rendered summary
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
