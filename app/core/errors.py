"""Typed errors raised by the Databox core."""

from typing import Optional


class DataboxError(Exception):
    """Base class for every error an operation can surface to its caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DataboxError):
    """A value or request failed schema coercion or a structural constraint."""

    def __init__(self, message: str, column: Optional[str] = None):
        super().__init__(message)
        self.column = column


class NotFound(DataboxError):
    """A project, table, key, or policy reference did not resolve."""


class IndexOutOfRange(DataboxError):
    """A row position is outside the table's current row sequence."""

    def __init__(self, row_index: int, row_count: int):
        super().__init__(
            f"Row index {row_index} is out of range for a table with {row_count} rows"
        )
        self.row_index = row_index
        self.row_count = row_count


class PersistenceFailure(DataboxError):
    """The durable store could not be read or written."""


class DuplicateKey(DataboxError):
    """A generated API key string collided with an existing one."""
