"""
Custom exceptions for the key-value store.
"""


class StoreError(Exception):
    """Base class for every error raised by the store itself."""

    code = "STORE_ERROR"


class NotFoundError(StoreError, KeyError):
    """
    Raised when a point lookup finds no row for the key.

    This is an expected outcome, not a failure: callers use it to tell
    "missing" apart from every other error.
    """

    code = "LEVEL_NOT_FOUND"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Key {key!r} was not found")

    def __str__(self) -> str:
        return self.args[0]


class SchemaInitError(StoreError):
    """
    Raised when the backing table or index cannot be created.

    The store stays un-initialized, so the next operation retries the DDL.
    """

    code = "SCHEMA_INIT_FAILED"

    def __init__(self, table: str, cause: BaseException):
        """
        Initialize schema error.

        Args:
            table: Name of the table being created.
            cause: Driver error raised by the DDL statement.
        """
        self.table = table
        self.cause = cause
        super().__init__(f"Failed to create table {table!r}: {cause}")


class IterationError(StoreError):
    """Raised when a range scan cannot fetch its next page."""

    code = "ITERATION_FAILED"


class InvalidRangeError(StoreError, ValueError):
    """Raised when a range sets both bounds of the same side."""

    code = "INVALID_RANGE"

    def __init__(self, first: str, second: str):
        self.first = first
        self.second = second
        super().__init__(f"Range options {first!r} and {second!r} are mutually exclusive")


class StoreNotOpenError(StoreError):
    """Raised when an operation runs against a store that is not open."""

    code = "NOT_OPEN"

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Store is not open (status: {status})")


class BatchWrittenError(StoreError):
    """Raised when a chained batch is modified or written after write()."""

    code = "BATCH_WRITTEN"

    def __init__(self) -> None:
        super().__init__("Batch has already been written")


class PoolExhaustedError(StoreError):
    """Raised when no pooled connection frees up within the acquire timeout."""

    code = "POOL_EXHAUSTED"

    def __init__(self, timeout: float, max_size: int):
        self.timeout = timeout
        self.max_size = max_size
        super().__init__(
            f"No connection available after {timeout}s "
            f"(all {max_size} connections in use)"
        )
