"""Labeled failures raised by pipeline stages.

Row-level problems never raise; they are recorded in a `ParseReport` and the
row is dropped or defaulted. The exceptions below are reserved for defects
that make a stage unable to run at all, and are turned into a user-visible
message at the invocation boundary (see `trend_pipeline.pipeline`).
"""

from __future__ import annotations

from typing import Any


class TrendPipelineError(ValueError):
    """Base class for every labeled pipeline failure."""

    label = "pipeline error"

    def __str__(self) -> str:
        return f"{self.label}: {super().__str__()}"


class SchemaError(TrendPipelineError):
    """The field mapping or input table cannot supply a date and a value."""

    label = "schema error"


class InvalidArgumentError(TrendPipelineError):
    """A stage was called with an argument outside its contract.

    Attributes:
        argument: Name of the offending argument.
        value: The value that was passed.
    """

    label = "invalid argument"

    def __init__(self, argument: str, value: Any, reason: str) -> None:
        self.argument = argument
        self.value = value
        super().__init__(f"{argument}={value!r} {reason}")


class EmptySeriesError(TrendPipelineError):
    """Nothing is left to display after parsing or windowing."""

    label = "no data"
