"""Exceptions raised by the edna_compare pipeline. All of them are fatal for a run."""


class EdnaCompareError(Exception):
    """Base class for pipeline errors"""


class LoadError(EdnaCompareError):
    """An input or config file is missing, unreadable or malformed"""


class DataShapeError(EdnaCompareError):
    """An expected column is absent from a table"""

    def __init__(self, message, missing_columns=None):
        super().__init__(message)
        self.missing_columns = list(missing_columns or [])
