"""Exceptions raised by the vector store."""


class VectorStoreError(Exception):
    """Base exception for vector store errors."""


class ConfigurationError(VectorStoreError, ValueError):
    """Raised for invalid store configuration or call arguments.

    Covers blank or conflicting schema fields, mismatched batch lengths,
    empty id sets on delete, and unsupported filter expressions. Never
    retried: the same input fails the same way.
    """

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        operation: str | None = None,
    ):
        if operation and table:
            message = f"{message} (operation: {operation}, table: {table})"
        super().__init__(message)
        self.table = table
        self.operation = operation


class UnsupportedFilterError(ConfigurationError):
    """Raised when a filter expression node has no SQL translation."""


class SchemaMismatchError(VectorStoreError):
    """Raised when the configured columns disagree with the live table."""

    def __init__(self, message: str, table: str):
        super().__init__(f"{message} (table: {table})")
        self.table = table


class ExecutionError(VectorStoreError):
    """Raised when the database fails while executing an operation.

    Attributes:
        table: Fully-qualified table name ("schema"."table")
        operation: Operation that was attempted (add_all, search, ...)
    """

    def __init__(self, table: str, operation: str, cause: BaseException):
        super().__init__(
            f"Exception caught during {operation} on vector store table {table}: {cause}"
        )
        self.table = table
        self.operation = operation
