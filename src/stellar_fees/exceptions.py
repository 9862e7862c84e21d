"""Custom exceptions for the fee telemetry store.

All storage, configuration, and parsing exceptions live here
to avoid circular imports between modules.
"""


class FeeStoreError(Exception):
    """Base exception for all fee telemetry errors."""


class ConfigError(FeeStoreError):
    """Raised when configuration is invalid (e.g. an unsupported database URL)."""


class StorageError(FeeStoreError):
    """Raised when the underlying SQLite database fails to open, migrate, read or write."""


class DatabaseNotConnectedError(StorageError):
    """Raised when the database is used before connect() or after close()."""


class ConstraintViolationError(StorageError):
    """Raised when a schema constraint rejects an insert (e.g. a NULL mandatory column).

    The enclosing transaction is rolled back, so no row is persisted.
    """


class ParseError(FeeStoreError):
    """Raised when a timestamp or decimal fee text cannot be parsed."""


class InvalidRecordError(ParseError):
    """Raised when a record fails application-level validation before insert."""
