"""
Exceptions raised for unusable report inputs.

Only input problems are fatal. Rows that miss the lookup or match no
classification rule are kept and surface as nulls.
"""

from pathlib import Path
from typing import Iterable


class ReportInputError(ValueError):
    """Base class for fatal problems with an input file."""


class InputFileError(ReportInputError):
    """The input file is missing, has an unsupported format or cannot be parsed."""

    def __init__(self, source: str | Path, reason: str):
        self.source = str(source)
        self.reason = reason
        super().__init__(f"Cannot read input file '{self.source}': {reason}")


class MissingColumnError(ReportInputError):
    """A required column could not be mapped from the raw headers."""

    def __init__(self, source: str | Path, column: str, available: Iterable[str]):
        self.source = str(source)
        self.column = column
        self.available = list(available)
        super().__init__(
            f"Input '{self.source}' has no column for '{column}'. "
            f"Available columns: {self.available}"
        )
