"""
Exception hierarchy for round-trip verification.

Collection errors are fatal: they abort the run before any report is
written. Comparison mismatches are never raised; they are recorded in the
report and mapped to an exit code by the failure classifier.
"""


class RoundtripError(Exception):
    """Base class for all verifier errors."""

    pass


class InputPathError(RoundtripError):
    """Raised when a before/after root, data directory, or database is missing."""

    pass


class CollectionError(RoundtripError):
    """
    Raised when a table snapshot cannot be collected.

    Attributes:
        table: Logical table name the error belongs to
    """

    def __init__(self, table: str, message: str):
        super().__init__(f"{message} (table: {table})")
        self.table = table


class MissingPrimaryKeyError(CollectionError):
    """Raised when a record lacks its declared primary-key column."""

    def __init__(self, table: str, id_column: str):
        super().__init__(table, f"Row missing primary key column '{id_column}'")
        self.id_column = id_column


class MalformedRecordError(CollectionError):
    """Raised when a snapshot line cannot be parsed as a JSON object."""

    def __init__(self, table: str, path: str, line_number: int, reason: str):
        super().__init__(table, f"Malformed record at {path}:{line_number}: {reason}")
        self.path = path
        self.line_number = line_number
