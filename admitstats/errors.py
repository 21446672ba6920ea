"""
Exceptions raised by the admitstats analysis stages.

Every error here is fatal to the current analysis run.
"""

from typing import Optional


class AnalysisError(Exception):
    """Base class for analysis failures."""


class DataAccessError(AnalysisError):
    """The input file is missing, unreadable or cannot be parsed."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = str(path)
        self.reason = reason
        message = f"Cannot read dataset '{self.path}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SchemaError(AnalysisError):
    """The dataset has no usable numeric data."""


class DegenerateColumnError(AnalysisError):
    """A column has zero (or undefined) variance."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(
            f"Column '{column}' has zero variance; correlation and "
            f"standardization are undefined"
        )
