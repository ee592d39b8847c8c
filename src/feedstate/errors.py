"""
Errors raised while exporting or importing the feed store document.

Validation errors (``ValidationError`` subclasses) are raised before the
store is touched. ``MalformedValue`` is raised while rows are being decoded,
after earlier tables may already have been replaced.
"""
from typing import Iterable


class StateError(Exception):
    """Base class for all document import/export failures."""


class MalformedDocument(StateError):
    """The input is not a parseable JSON object."""


class ValidationError(StateError):
    """The document does not match the expected table set."""

    def __init__(self, table: str, message: str):
        super().__init__(message)
        self.table = table


class MissingTable(ValidationError):
    def __init__(self, table: str):
        super().__init__(table, f"Json contents does not reference table {table}")


class MalformedTable(ValidationError):
    pass


class UnknownColumn(ValidationError):
    def __init__(self, table: str, column: str):
        super().__init__(table, f"Json table {table} contains unknown column {column}")
        self.column = column


class MissingColumns(ValidationError):
    def __init__(self, table: str, columns: Iterable[str]):
        self.columns = sorted(columns)
        super().__init__(table, f"Json table {table} missing columns {', '.join(self.columns)}")


class UnsupportedType(StateError, TypeError):
    """A column declares a type the codec does not know. Configuration error."""


class MalformedValue(StateError, ValueError):
    """A column value cannot be converted to or from its declared type."""

    def __init__(self, column: str, message: str, table: str | None = None):
        self.column = column
        self.table = table
        self.detail = message
        prefix = f"{table}.{column}" if table else column
        super().__init__(f"{prefix}: {message}")
